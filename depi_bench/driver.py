"""
The timed request loop run for a single test configuration.

Each iteration resolves a random service (optionally short-circuiting through
the scope cache), launches its action without awaiting it, and only yields to
the event loop once the in-flight cap is reached. The loop ends on the first
iteration that finishes past the duration budget; work still in flight at
that point is left running.

There is no per-request timeout: an action that never completes stalls the
backpressure await and the run with it.
"""

import asyncio
import logging
import random
import time
from typing import Any, Optional

from depi_bench.exceptions import ActionFailedError
from depi_bench.graph import Resolver, build_service_graph
from depi_bench.metrics import MemorySampler, MetricsContext, RunResult
from depi_bench.services import Lifetime

logger = logging.getLogger(__name__)


def resolve_service(resolver: Resolver, name: str, cache_bypass: bool) -> tuple[Any, bool]:
    """
    Resolve name, consulting the resolver's cache first when cache_bypass is set.

    Returns the instance and whether it came straight from the cache.
    """
    if cache_bypass:
        cached = resolver.peek_cache(name)
        if cached is not None:
            return cached, True
    return resolver.resolve(name), False


class RequestDriver:
    """
    Drives one benchmark run. Instances are single use.
    """

    def __init__(self, config, metrics: Optional[MetricsContext] = None):
        self._config = config
        self._metrics = metrics or MetricsContext()
        self._in_flight: dict[int, asyncio.Task] = {}
        self._completions = 0
        self._failure: Optional[ActionFailedError] = None
        self.peak_in_flight = 0

    @property
    def in_flight(self) -> int:
        return len(self._in_flight)

    def _on_done(self, request_number: int, task: asyncio.Task) -> None:
        self._in_flight.pop(request_number, None)
        if task.cancelled():
            return
        error = task.exception()
        if error is not None:
            logger.error("Action for request %d failed: %r", request_number, error)
            if self._failure is None:
                self._failure = ActionFailedError(request_number)
                self._failure.__cause__ = error
            return
        self._completions += 1

    def _raise_on_failure(self) -> None:
        if self._failure is not None:
            raise self._failure

    async def _await_oldest(self) -> None:
        request_number, task = next(iter(self._in_flight.items()))
        try:
            await task
        except Exception:
            # Surfaced through _raise_on_failure with the request context
            logger.debug("Oldest request %d finished with an error", request_number)

    async def run(self) -> RunResult:
        config = self._config
        metrics = self._metrics
        loop = asyncio.get_running_loop()

        sampler = MemorySampler()
        sampler.start()

        provider, service_names = build_service_graph(
            config.service_count,
            config.lifetime,
            metrics
        )
        scoped = config.lifetime == Lifetime.Scoped

        request_number = 0
        cache_hits = 0
        seconds_resolving = 0.0
        max_in_flight_hit = False
        start = time.perf_counter()

        while True:
            request_number += 1
            resolver = provider.create_scope() if scoped else provider
            name = random.choice(service_names)

            resolve_start = time.perf_counter()
            service, cache_hit = resolve_service(resolver, name, config.cache_bypass)
            seconds_resolving += time.perf_counter() - resolve_start
            if cache_hit:
                cache_hits += 1

            task = loop.create_task(service.perform(request_number))
            self._in_flight[request_number] = task
            task.add_done_callback(
                lambda t, number=request_number: self._on_done(number, t)
            )
            if len(self._in_flight) > self.peak_in_flight:
                self.peak_in_flight = len(self._in_flight)

            if len(self._in_flight) >= config.max_in_flight:
                max_in_flight_hit = True
                await self._await_oldest()

            self._raise_on_failure()

            if time.perf_counter() - start > config.duration_seconds:
                break

        elapsed = time.perf_counter() - start

        return RunResult(
            requests_issued=request_number,
            completions=self._completions,
            cache_hits=cache_hits,
            construction_count=metrics.construction_count,
            log_call_count=metrics.log_call_count,
            elapsed_seconds=elapsed,
            seconds_spent_resolving=seconds_resolving,
            max_in_flight_hit=max_in_flight_hit,
            memory_mb=sampler.stop()
        )


async def run_test(config) -> RunResult:
    """Run one configuration against a freshly built graph and metrics context."""
    logger.info("Testing with config: %s", config)
    return await RequestDriver(config).run()
