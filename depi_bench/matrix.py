"""
Expands a benchmark matrix into concrete configurations, runs them one after
another, and persists the (configuration, result) pairs as JSON.
"""

import itertools
import json
import logging
import time
from dataclasses import asdict, dataclass
from pathlib import Path
from typing import Union

from depi_bench.config import RESULT_FILENAME
from depi_bench.driver import run_test
from depi_bench.exceptions import ConfigurationError
from depi_bench.metrics import RunResult
from depi_bench.services import Lifetime

logger = logging.getLogger(__name__)


def _require_positive(field: str, value) -> None:
    if isinstance(value, bool) or not isinstance(value, (int, float)) or value <= 0:
        raise ConfigurationError(f"{field} must be a positive number, got {value!r}")


@dataclass(frozen=True)
class TestConfiguration:
    __test__ = False

    service_count: int
    max_in_flight: int
    lifetime: str
    cache_bypass: bool
    duration_seconds: float

    def __post_init__(self):
        _require_positive('service_count', self.service_count)
        _require_positive('max_in_flight', self.max_in_flight)
        _require_positive('duration_seconds', self.duration_seconds)
        if not isinstance(self.service_count, int) or not isinstance(self.max_in_flight, int):
            raise ConfigurationError("service_count and max_in_flight must be integers")
        if self.lifetime not in Lifetime.values():
            raise ConfigurationError(f"Unknown lifetime {self.lifetime!r}")
        if not isinstance(self.cache_bypass, bool):
            raise ConfigurationError(f"cache_bypass must be a bool, got {self.cache_bypass!r}")

    def to_dict(self) -> dict:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict) -> 'TestConfiguration':
        return cls(**data)


@dataclass(frozen=True)
class TestMatrix:
    __test__ = False

    service_counts: tuple
    max_in_flight: tuple
    lifetimes: tuple
    cache_bypass: tuple
    duration_seconds: float

    def size(self) -> int:
        return (
            len(self.service_counts) * len(self.max_in_flight)
            * len(self.lifetimes) * len(self.cache_bypass)
        )


def expand_matrix(matrix: TestMatrix) -> list[TestConfiguration]:
    """
    Cartesian product of the matrix axes, each combined with the fixed duration.

    Order: service counts, then max in flight, then lifetimes, then cache bypass
    (the last axis varies fastest).
    """
    axes = (matrix.service_counts, matrix.max_in_flight, matrix.lifetimes, matrix.cache_bypass)
    return [
        TestConfiguration(
            service_count=service_count,
            max_in_flight=max_in_flight,
            lifetime=lifetime,
            cache_bypass=cache_bypass,
            duration_seconds=matrix.duration_seconds
        )
        for service_count, max_in_flight, lifetime, cache_bypass in itertools.product(*axes)
    ]


def log_result(config: TestConfiguration, result: RunResult) -> None:
    logger.info(
        "%s services=%d max_in_flight=%d bypass=%s hit=%s | "
        "requests/s=%.1f logs/s=%.1f completions/s=%.1f resolving=%.3fs",
        config.lifetime,
        config.service_count,
        config.max_in_flight,
        config.cache_bypass,
        result.max_in_flight_hit,
        result.per_second(result.requests_issued),
        result.per_second(result.log_call_count),
        result.per_second(result.completions),
        result.seconds_spent_resolving
    )


async def run_all(matrix: TestMatrix) -> list[tuple[TestConfiguration, RunResult]]:
    """
    Run every expanded configuration sequentially, in expansion order.
    """
    configs = expand_matrix(matrix)
    logger.info("Running %d benchmark configuration(s)", len(configs))

    started = time.perf_counter()
    results = []
    for index, config in enumerate(configs, start=1):
        logger.info("[%d/%d] starting", index, len(configs))
        result = await run_test(config)
        log_result(config, result)
        results.append((config, result))

    logger.info("Matrix finished in %.2fs", time.perf_counter() - started)
    return results


def write_results(
    results: list[tuple[TestConfiguration, RunResult]],
    path: Union[str, Path] = RESULT_FILENAME
) -> Path:
    path = Path(path)
    payload = [[config.to_dict(), result.to_dict()] for config, result in results]
    path.write_text(json.dumps(payload, indent=2), encoding='utf-8')
    logger.info("Wrote %d result(s) to %s", len(payload), path)
    return path


def read_results(path: Union[str, Path] = RESULT_FILENAME) -> list[tuple[TestConfiguration, RunResult]]:
    payload = json.loads(Path(path).read_text(encoding='utf-8'))
    return [
        (TestConfiguration.from_dict(config), RunResult.from_dict(result))
        for config, result in payload
    ]
