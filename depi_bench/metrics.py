"""
Counters collected while a benchmark run is in progress, and the record
each run produces.
"""

import gc
import os
from dataclasses import asdict, dataclass

import psutil


class MetricsContext:
    """
    Per-run counters shared by every entity the graph builder constructs.

    A fresh context is created for each run, so late completions of an earlier
    run can never leak into the next one.
    """

    __slots__ = ('construction_count', 'log_call_count')

    def __init__(self):
        self.construction_count = 0
        self.log_call_count = 0

    def record_construction(self) -> None:
        self.construction_count += 1

    def record_log(self) -> None:
        self.log_call_count += 1


@dataclass(frozen=True)
class RunResult:
    requests_issued: int
    completions: int
    cache_hits: int
    construction_count: int
    log_call_count: int
    elapsed_seconds: float
    seconds_spent_resolving: float
    max_in_flight_hit: bool
    memory_mb: float = 0.0

    def to_dict(self) -> dict:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict) -> 'RunResult':
        return cls(**data)

    def per_second(self, count: int) -> float:
        if self.elapsed_seconds <= 0:
            return 0.0
        return count / self.elapsed_seconds


class MemorySampler:
    """
    Resident-set growth of the current process between start() and stop(), in MB.
    """

    def __init__(self):
        self._process = psutil.Process(os.getpid())
        self._rss_before = 0

    def start(self) -> None:
        # Force garbage collection before measurement
        gc.collect()
        self._rss_before = self._process.memory_info().rss

    def stop(self) -> float:
        gc.collect()
        rss_after = self._process.memory_info().rss
        return (rss_after - self._rss_before) / 1024 / 1024
