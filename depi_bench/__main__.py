import asyncio
import logging
import sys

from depi_bench.config import LOG_FORMAT, RESULT_FILENAME, default_matrix
from depi_bench.matrix import run_all, write_results

logger = logging.getLogger(__name__)


def main() -> int:
    logging.basicConfig(level=logging.INFO, format=LOG_FORMAT)
    logger.info("Starting depi_bench ...")

    try:
        results = asyncio.run(run_all(default_matrix()))
        write_results(results, RESULT_FILENAME)
    except Exception:
        logger.exception("Benchmark aborted")
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
