"""
Unit tests for todosync.utils.metrics

Covers the Prometheus HTTP publisher and the sync metrics recorded by the
reconciler. Every test uses its own CollectorRegistry.
"""

from unittest.mock import patch

import pytest
from prometheus_client import CollectorRegistry, Counter

from todosync.utils.metrics import MetricsPublisher, SyncMetrics, get_or_create_metric


class TestMetricsPublisher:
    """Test MetricsPublisher class"""

    def test_defaults(self):
        publisher = MetricsPublisher()

        assert publisher.port == 9091
        assert publisher.registry is not None
        assert publisher.is_started() is False

    @patch("todosync.utils.metrics.publisher.start_http_server")
    def test_start(self, mock_start):
        registry = CollectorRegistry()
        publisher = MetricsPublisher(port=9100, registry=registry)

        publisher.start()

        mock_start.assert_called_once_with(9100, addr="0.0.0.0", registry=registry)
        assert publisher.is_started() is True
        assert registry.get_sample_value("todosync_build_info", {"version": "1.0.0"}) == 1

    @patch("todosync.utils.metrics.publisher.start_http_server")
    def test_start_twice_is_noop(self, mock_start):
        publisher = MetricsPublisher(registry=CollectorRegistry())

        publisher.start()
        publisher.start()

        mock_start.assert_called_once()

    @patch("todosync.utils.metrics.publisher.start_http_server")
    def test_port_in_use(self, mock_start):
        mock_start.side_effect = OSError("Address already in use")
        publisher = MetricsPublisher(port=9091, registry=CollectorRegistry())

        with pytest.raises(RuntimeError, match="cannot start on port 9091"):
            publisher.start()

        assert publisher.is_started() is False


class TestSyncMetrics:
    """Test SyncMetrics class"""

    def test_record_run(self, metrics_registry):
        metrics = SyncMetrics(registry=metrics_registry)

        metrics.record_run("two-way", "SUCCESS", 1.5)
        metrics.record_run("two-way", "SUCCESS", 0.5)

        labels = {"mode": "two-way", "status": "SUCCESS"}
        assert metrics_registry.get_sample_value("sync_runs_total", labels) == 2
        assert metrics_registry.get_sample_value(
            "sync_duration_seconds_sum", {"mode": "two-way"}
        ) == 2.0
        assert metrics_registry.get_sample_value(
            "sync_last_run_timestamp", {"mode": "two-way"}
        ) > 0

    def test_record_operation_and_retry(self, metrics_registry):
        metrics = SyncMetrics(registry=metrics_registry)

        metrics.record_operation("B", "create", "APPLIED")
        metrics.record_operation("A", "update", "FAILED")
        metrics.record_retry("update")

        assert metrics_registry.get_sample_value(
            "sync_operations_total", {"target": "B", "kind": "create", "outcome": "APPLIED"}
        ) == 1
        assert metrics_registry.get_sample_value(
            "sync_operations_total", {"target": "A", "kind": "update", "outcome": "FAILED"}
        ) == 1
        assert metrics_registry.get_sample_value(
            "sync_retries_total", {"operation": "update"}
        ) == 1

    def test_record_replica_size(self, metrics_registry):
        metrics = SyncMetrics(registry=metrics_registry)

        metrics.record_replica_size("local", 12)
        metrics.record_replica_size("local", 13)

        assert metrics_registry.get_sample_value(
            "sync_replica_records", {"replica": "local"}
        ) == 13

    def test_second_instance_reuses_collectors(self, metrics_registry):
        first = SyncMetrics(registry=metrics_registry)
        second = SyncMetrics(registry=metrics_registry)

        assert second.sync_runs_total is first.sync_runs_total
        second.record_retry("list")
        assert metrics_registry.get_sample_value(
            "sync_retries_total", {"operation": "list"}
        ) == 1


class TestGetOrCreateMetric:
    """Test get_or_create_metric helper"""

    def test_returns_existing(self):
        registry = CollectorRegistry()

        def factory():
            return Counter("todos_seen_total", "Todos seen", registry=registry)

        first = get_or_create_metric(factory, "todos_seen_total", registry)
        second = get_or_create_metric(factory, "todos_seen_total", registry)

        assert first is second

    def test_unrelated_error_propagates(self):
        registry = CollectorRegistry()

        def factory():
            raise ValueError("bad metric name")

        with pytest.raises(ValueError, match="bad metric name"):
            get_or_create_metric(factory, "missing_total", registry)
