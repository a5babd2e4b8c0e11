"""
The dependency-resolution container under benchmark.

Provides:
- Named factory registrations
- Singleton, Transient, and Scoped lifetimes
- Child scopes that share singletons with their provider
- Non-constructing cache inspection (peek_cache) for the cache-bypass path
"""

import logging
from threading import Lock
from typing import Any, Callable, Optional

from depi_bench.exceptions import (
    CyclicDependencyError,
    RegistrationError,
    RegistrationNotFoundError,
    ScopeRequiredError
)

logger = logging.getLogger(__name__)


class Lifetime:
    """
    Supported lifetimes for registered dependencies.
    """
    Singleton = 'singleton'
    Transient = 'transient'
    Scoped = 'scoped'

    @classmethod
    def values(cls) -> tuple:
        return (cls.Transient, cls.Scoped, cls.Singleton)


class DependencyRegistration:
    """
    Holds metadata and factory logic for a single registered service.

    Attributes:
        name:         Key the service is resolved by.
        lifetime:     Lifetime.Singleton, Transient, or Scoped.
        factory:      Callable(resolver) → instance.
        dependencies: Names the factory resolves, used to order singleton builds.
    """
    __slots__ = ("name", "lifetime", "factory", "dependencies")

    def __hash__(self):
        return hash(self.name)

    def __eq__(self, other):
        return isinstance(other, DependencyRegistration) and self.name == other.name

    def __init__(
        self,
        name: str,
        lifetime: str,
        factory: Callable[[Any], Any],
        dependencies: Optional[list[str]] = None
    ):
        self.name = name
        self.lifetime = lifetime
        self.factory = factory
        self.dependencies = list(dependencies or [])

    def activate(self, resolver) -> Any:
        """
        Construct a new instance through the factory using the given resolver.
        """
        return self.factory(resolver)


class ServiceCollection:
    """
    Collects service registrations before building a ServiceProvider.
    """

    __slots__ = ("_container",)

    def __init__(self):
        self._container: dict[str, DependencyRegistration] = {}

    def add(
        self,
        name: str,
        factory: Callable,
        lifetime: str = Lifetime.Transient,
        dependencies: Optional[list[str]] = None
    ) -> None:
        """
        Register a named factory (default: Transient).
        """
        self._register_dependency(name, factory, lifetime, dependencies)

    def add_singleton(self, name: str, factory: Callable, dependencies: Optional[list[str]] = None) -> None:
        """Register a singleton service."""
        self._register_dependency(name, factory, Lifetime.Singleton, dependencies)

    def add_transient(self, name: str, factory: Callable, dependencies: Optional[list[str]] = None) -> None:
        """Register a transient service."""
        self._register_dependency(name, factory, Lifetime.Transient, dependencies)

    def add_scoped(self, name: str, factory: Callable, dependencies: Optional[list[str]] = None) -> None:
        """Register a scoped service."""
        self._register_dependency(name, factory, Lifetime.Scoped, dependencies)

    def _register_dependency(
        self,
        name: str,
        factory: Callable,
        lifetime: str,
        dependencies: Optional[list[str]]
    ) -> None:
        if not name:
            raise RegistrationError("Registration name must be a non-empty string")
        if lifetime not in Lifetime.values():
            raise RegistrationError(f"Unknown lifetime '{lifetime}' for '{name}'")
        if not callable(factory):
            raise RegistrationError(f"Factory for '{name}' is not callable")

        self._container[name] = DependencyRegistration(
            name=name,
            lifetime=lifetime,
            factory=factory,
            dependencies=dependencies
        )

    def get_container(self) -> dict[str, DependencyRegistration]:
        """Expose raw registration dictionary."""
        return self._container

    def names(self) -> list[str]:
        return list(self._container)

    def build_provider(self) -> 'ServiceProvider':
        """
        Finalize registrations and return a built ServiceProvider.
        """
        provider = ServiceProvider(self)
        provider.build()
        return provider


class ServiceProvider:
    """
    Resolves and caches instances according to registration metadata.

    Key methods:
      - resolve(name)      → instance
      - peek_cache(name)   → cached singleton or None, never constructs
      - build()            → pre-instantiate singletons
      - create_scope()     → new ServiceScope for scoped lifetimes
    """

    __slots__ = ('_dependency_lookup', '_singleton_instances', '_cache_lock')

    def __init__(self, service_collection: ServiceCollection):
        # Snapshot so later registrations on the collection don't leak in
        self._dependency_lookup = dict(service_collection.get_container())
        self._singleton_instances: dict[str, Any] = {}
        self._cache_lock = Lock()

    def resolve(self, name: str) -> Any:
        """
        Resolve a registered service.
        Fast path for cached singletons, locking only on first construction.
        """
        reg = self._get_registered_dependency(name)
        lifetime = reg.lifetime

        if lifetime == Lifetime.Singleton:
            cache = self._singleton_instances

            instance = cache.get(name)
            if instance is not None:
                return instance

            with self._cache_lock:
                instance = cache.get(name)
                if instance is not None:
                    return instance

                instance = reg.activate(self)
                cache[name] = instance
                return instance

        elif lifetime == Lifetime.Transient:
            return reg.activate(self)

        elif lifetime == Lifetime.Scoped:
            raise ScopeRequiredError(
                f"Scoped resolution of '{name}' requires a scope. Call provider.create_scope()."
            )

        raise RegistrationError(f"Unknown lifetime: {lifetime}")

    def peek_cache(self, name: str) -> Any:
        return self._singleton_instances.get(name)

    def _get_registered_dependency(
        self,
        name: str,
        requesting: Optional[DependencyRegistration] = None
    ) -> DependencyRegistration:
        """
        Lookup registration or error out, optionally showing context.
        """
        reg = self._dependency_lookup.get(name)
        if reg:
            return reg
        raise RegistrationNotFoundError(name, requesting.name if requesting else None)

    def _topological_sort(self, dependencies: list[DependencyRegistration]) -> list[DependencyRegistration]:
        """
        Perform DFS-based topological sort to detect cycles and order singletons.
        """
        visited = set()
        visiting = set()
        order: list[DependencyRegistration] = []

        def dfs(dep: DependencyRegistration):
            if dep in visited:
                return
            if dep in visiting:
                raise CyclicDependencyError(f"Cyclic dependency detected: {dep.name}")
            visiting.add(dep)
            for dependency_name in dep.dependencies:
                dfs(self._get_registered_dependency(dependency_name, dep))
            visiting.remove(dep)
            visited.add(dep)
            order.append(dep)

        for d in dependencies:
            dfs(d)
        return order

    def build(self) -> 'ServiceProvider':
        """
        Instantiate all singletons in dependency order.
        """
        to_build = [d for d in self._dependency_lookup.values() if d.lifetime == Lifetime.Singleton]
        for reg in self._topological_sort(to_build):
            # Shared dependencies are already cached by an earlier factory call
            inst = self._singleton_instances.get(reg.name)
            if inst is None:
                inst = reg.activate(self)
            with self._cache_lock:
                self._singleton_instances[reg.name] = inst
        logger.debug("Built provider with %d singleton(s)", len(self._singleton_instances))
        return self

    def create_scope(self) -> 'ServiceScope':
        """Begin a new scoped lifetime context."""
        return ServiceScope(self)


class ServiceScope:
    """
    Provides scoped resolution: Singleton → cascades to provider, Transient → new each call,
    Scoped → one per scope instance.
    """

    __slots__ = ('_provider', '_scoped_instances')

    def __init__(self, provider: ServiceProvider):
        self._provider = provider
        self._scoped_instances: dict[str, Any] = {}

    def __enter__(self) -> 'ServiceScope':
        return self

    def __exit__(self, exc_type, exc_value, traceback) -> None:
        self.dispose()

    async def __aenter__(self) -> 'ServiceScope':
        return self

    async def __aexit__(self, exc_type, exc_value, traceback) -> None:
        self.dispose()

    def resolve(self, name: str) -> Any:
        provider = self._provider
        reg = provider._get_registered_dependency(name)
        life = reg.lifetime

        # Singleton always via root provider
        if life == Lifetime.Singleton:
            return provider.resolve(name)

        insts = self._scoped_instances

        if life == Lifetime.Scoped:
            inst = insts.get(name)
            if inst is not None:
                return inst

        inst = reg.activate(self)

        if life == Lifetime.Scoped:
            insts[name] = inst

        return inst

    def peek_cache(self, name: str) -> Any:
        """
        Return the instance already cached for name in this scope, falling back
        to the provider's singletons, or None. Never constructs.
        """
        inst = self._scoped_instances.get(name)
        if inst is not None:
            return inst
        return self._provider.peek_cache(name)

    def dispose(self) -> None:
        """
        Clear scoped instances, calling dispose on disposable ones.
        """
        for instance in self._scoped_instances.values():
            if callable(getattr(instance, 'dispose', None)):
                try:
                    instance.dispose()
                except Exception as e:
                    logger.warning(f"Error disposing scoped instance: {e}")

        self._scoped_instances.clear()
