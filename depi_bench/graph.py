"""
Synthetic service graphs: N service -> repository chains sharing one logger,
mimicking a web server where each handler has two dependencies and one calls
the other.
"""

import itertools
import logging
import random
from abc import ABC, abstractmethod
from typing import Any, NamedTuple, Union

from depi_bench.exceptions import ConfigurationError
from depi_bench.metrics import MetricsContext
from depi_bench.services import ServiceCollection, ServiceProvider, ServiceScope

logger = logging.getLogger(__name__)

LOGGER_NAME = 'logger'

_logger_ids = itertools.count(1)

Resolver = Union[ServiceProvider, ServiceScope]


class Actionable(ABC):
    """An entity exposing a single asynchronous action."""

    @abstractmethod
    async def perform(self, value: int) -> Any:
        ...


class MockLogger:
    """Mock logger, used to show the difference between lifetimes."""

    def __init__(self, metrics: MetricsContext):
        metrics.record_construction()
        self._metrics = metrics
        self.id = next(_logger_ids)

    def log(self, *values) -> None:
        self._metrics.record_log()


class MockRepository(Actionable):
    """Downstream layer called by a service."""

    def __init__(self, metrics: MetricsContext, logger: MockLogger):
        metrics.record_construction()
        self.logger = logger

    async def perform(self, value: int) -> float:
        result = random.random() * value
        self.logger.log(result)
        return result


class MockService(Actionable):
    """
    Service layer that's resolved and called by the driver.

    Logs through its repository's logger, so resolving a service builds one
    logger per resolution even when the logger is transient.
    """

    def __init__(self, metrics: MetricsContext, repository: MockRepository):
        metrics.record_construction()
        self.logger = repository.logger
        self.repository = repository

    async def perform(self, value: int) -> float:
        self.logger.log()
        return await self.repository.perform(value)


class ServiceGraph(NamedTuple):
    provider: ServiceProvider
    service_names: list[str]


def repository_name(index: int) -> str:
    return f'mock_repository_{index}'


def service_name(index: int) -> str:
    return f'mock_service_{index}'


def _repository_factory(metrics: MetricsContext):
    def factory(resolver: Resolver) -> MockRepository:
        return MockRepository(metrics, resolver.resolve(LOGGER_NAME))
    return factory


def _service_factory(metrics: MetricsContext, repository: str):
    def factory(resolver: Resolver) -> MockService:
        return MockService(metrics, resolver.resolve(repository))
    return factory


def build_service_graph(service_count: int, lifetime: str, metrics: MetricsContext) -> ServiceGraph:
    """
    Register service_count service/repository pairs plus one shared logger,
    all under the same lifetime, and build the provider.

    Building pre-instantiates singletons, so with Lifetime.Singleton every
    entity is constructed exactly once here.
    """
    if service_count <= 0:
        raise ConfigurationError(f"service_count must be positive, got {service_count}")

    services = ServiceCollection()
    services.add(LOGGER_NAME, lambda resolver: MockLogger(metrics), lifetime=lifetime)

    names = []
    for index in range(service_count):
        repository = repository_name(index)
        services.add(
            repository,
            _repository_factory(metrics),
            lifetime=lifetime,
            dependencies=[LOGGER_NAME]
        )

        name = service_name(index)
        services.add(
            name,
            _service_factory(metrics, repository),
            lifetime=lifetime,
            dependencies=[repository]
        )
        names.append(name)

    provider = services.build_provider()
    logger.debug("Built %s graph with %d services", lifetime, service_count)
    return ServiceGraph(provider, names)
