"""
Default benchmark matrix. Runs in about a minute and a half.

Each service registers two dependencies (its repository and the shared logger),
so a graph of N services holds 2N + 1 registrations.
"""

from depi_bench.services import Lifetime

# === Matrix axes ===
SERVICE_COUNTS = [50, 100, 500, 1_000]
MAX_IN_FLIGHT = [1_000]
LIFETIMES = [Lifetime.Transient, Lifetime.Scoped, Lifetime.Singleton]
CACHE_BYPASS = [True, False]

# Duration for each test to run
SECONDS_PER_TEST = 3

# Written to the working directory, overwritten on every execution
RESULT_FILENAME = 'awilix_lifetime_benchmark_result.json'

LOG_FORMAT = "%(asctime)s %(levelname)s %(message)s"


def default_matrix():
    from depi_bench.matrix import TestMatrix

    return TestMatrix(
        service_counts=tuple(SERVICE_COUNTS),
        max_in_flight=tuple(MAX_IN_FLIGHT),
        lifetimes=tuple(LIFETIMES),
        cache_bypass=tuple(CACHE_BYPASS),
        duration_seconds=SECONDS_PER_TEST
    )
