import asyncio
import logging
import unittest

from depi_bench.exceptions import ConfigurationError
from depi_bench.graph import (
    LOGGER_NAME,
    Actionable,
    MockLogger,
    MockRepository,
    MockService,
    build_service_graph,
    repository_name
)
from depi_bench.metrics import MetricsContext
from depi_bench.services import Lifetime

logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(message)s")
logger = logging.getLogger(__name__)


class TestServiceGraph(unittest.TestCase):
    def setUp(self):
        self.metrics = MetricsContext()

    def test_service_names(self):
        graph = build_service_graph(3, Lifetime.Transient, self.metrics)
        self.assertEqual(graph.service_names, ['mock_service_0', 'mock_service_1', 'mock_service_2'])

    def test_singleton_graph_built_eagerly(self):
        provider, names = build_service_graph(4, Lifetime.Singleton, self.metrics)
        logger.info("Singleton constructions after build: %d", self.metrics.construction_count)
        self.assertEqual(self.metrics.construction_count, 2 * 4 + 1)

        for name in names:
            provider.resolve(name)
        self.assertEqual(self.metrics.construction_count, 2 * 4 + 1)

    def test_singleton_logger_is_shared(self):
        provider, names = build_service_graph(2, Lifetime.Singleton, self.metrics)
        first = provider.resolve(names[0])
        second = provider.resolve(names[1])
        self.assertIs(first.logger, second.logger)
        self.assertIs(first.logger, provider.resolve(LOGGER_NAME))
        self.assertIsNot(first.repository, second.repository)

    def test_service_gets_its_own_repository(self):
        provider, names = build_service_graph(3, Lifetime.Singleton, self.metrics)
        service = provider.resolve(names[1])
        self.assertIs(service.repository, provider.resolve(repository_name(1)))

    def test_transient_graph_constructs_per_resolution(self):
        provider, names = build_service_graph(2, Lifetime.Transient, self.metrics)
        self.assertEqual(self.metrics.construction_count, 0)

        provider.resolve(names[0])
        self.assertEqual(self.metrics.construction_count, 3)
        provider.resolve(names[0])
        self.assertEqual(self.metrics.construction_count, 6)

    def test_scoped_graph_constructs_per_scope(self):
        provider, names = build_service_graph(2, Lifetime.Scoped, self.metrics)
        scope = provider.create_scope()
        one = scope.resolve(names[0])
        two = scope.resolve(names[1])
        self.assertIs(one.logger, two.logger)
        self.assertEqual(self.metrics.construction_count, 5)

        scope.resolve(names[0])
        self.assertEqual(self.metrics.construction_count, 5)

        other = provider.create_scope().resolve(names[0])
        self.assertIsNot(other, one)
        self.assertEqual(self.metrics.construction_count, 8)

    def test_non_positive_service_count(self):
        with self.assertRaises(ConfigurationError):
            build_service_graph(0, Lifetime.Singleton, self.metrics)


class TestActions(unittest.TestCase):
    def setUp(self):
        self.metrics = MetricsContext()

    def test_entities_are_actionable(self):
        mock_logger = MockLogger(self.metrics)
        repository = MockRepository(self.metrics, mock_logger)
        service = MockService(self.metrics, repository)
        self.assertIsInstance(repository, Actionable)
        self.assertIsInstance(service, Actionable)
        self.assertEqual(self.metrics.construction_count, 3)

    def test_logger_ids_increase(self):
        first = MockLogger(self.metrics)
        second = MockLogger(self.metrics)
        self.assertGreater(second.id, first.id)

    def test_service_action_logs_twice(self):
        provider, names = build_service_graph(1, Lifetime.Singleton, self.metrics)
        service = provider.resolve(names[0])

        result = asyncio.run(service.perform(10))

        self.assertGreaterEqual(result, 0)
        self.assertLess(result, 10)
        self.assertEqual(self.metrics.log_call_count, 2)

    def test_repository_action_scales_input(self):
        repository = MockRepository(self.metrics, MockLogger(self.metrics))
        self.assertEqual(asyncio.run(repository.perform(0)), 0)
        self.assertEqual(self.metrics.log_call_count, 1)


if __name__ == "__main__":
    unittest.main()
