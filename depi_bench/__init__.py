"""
depi_bench – throughput and latency benchmarks for dependency-injection lifetimes
"""

from .services import (
    ServiceCollection,
    ServiceProvider,
    ServiceScope,
    Lifetime,
    DependencyRegistration
)
from .metrics import MetricsContext, RunResult
from .graph import Actionable, ServiceGraph, build_service_graph
from .driver import RequestDriver, resolve_service, run_test
from .matrix import (
    TestConfiguration,
    TestMatrix,
    expand_matrix,
    run_all,
    write_results,
    read_results
)

__all__ = [
    'ServiceCollection',
    'ServiceProvider',
    'ServiceScope',
    'Lifetime',
    'DependencyRegistration',
    'MetricsContext',
    'RunResult',
    'Actionable',
    'ServiceGraph',
    'build_service_graph',
    'RequestDriver',
    'resolve_service',
    'run_test',
    'TestConfiguration',
    'TestMatrix',
    'expand_matrix',
    'run_all',
    'write_results',
    'read_results'
]
