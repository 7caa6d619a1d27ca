"""
Metrics for replica sync runs.

Tracks runs, per-operation outcomes, retries and replica sizes for
monitoring data convergence between replicas.
"""

import logging
import time
from typing import Optional

from prometheus_client import (
    REGISTRY,
    CollectorRegistry,
    Counter,
    Gauge,
    Histogram,
)

from .registry import get_or_create_metric

logger = logging.getLogger(__name__)


class SyncMetrics:
    """
    Metrics for sync operations

    Tracks sync runs, writes applied or failed, retries, and replica sizes.
    """

    def __init__(self, registry: Optional[CollectorRegistry] = None):
        """
        Initialize sync metrics

        Args:
            registry: Custom Prometheus registry (default: global REGISTRY)
        """
        self.registry = registry or REGISTRY

        self.sync_runs_total = get_or_create_metric(
            lambda: Counter(
                "sync_runs_total",
                "Total number of sync runs",
                ["mode", "status"],
                registry=self.registry,
            ),
            "sync_runs_total",
            self.registry,
        )

        self.sync_duration_seconds = get_or_create_metric(
            lambda: Histogram(
                "sync_duration_seconds",
                "Duration of sync runs in seconds",
                ["mode"],
                buckets=(0.1, 0.5, 1, 5, 10, 30, 60, 120, 300),
                registry=self.registry,
            ),
            "sync_duration_seconds",
            self.registry,
        )

        self.sync_last_run_timestamp = get_or_create_metric(
            lambda: Gauge(
                "sync_last_run_timestamp",
                "Timestamp of last sync run",
                ["mode"],
                registry=self.registry,
            ),
            "sync_last_run_timestamp",
            self.registry,
        )

        self.sync_operations_total = get_or_create_metric(
            lambda: Counter(
                "sync_operations_total",
                "Total number of replica writes attempted",
                ["target", "kind", "outcome"],
                registry=self.registry,
            ),
            "sync_operations_total",
            self.registry,
        )

        self.sync_retries_total = get_or_create_metric(
            lambda: Counter(
                "sync_retries_total",
                "Total number of retried accessor calls",
                ["operation"],
                registry=self.registry,
            ),
            "sync_retries_total",
            self.registry,
        )

        self.sync_replica_records = get_or_create_metric(
            lambda: Gauge(
                "sync_replica_records",
                "Number of records listed from a replica",
                ["replica"],
                registry=self.registry,
            ),
            "sync_replica_records",
            self.registry,
        )

    def record_run(self, mode: str, status: str, duration: float) -> None:
        """
        Record a completed or aborted sync run

        Args:
            mode: Sync mode (A-to-B, B-to-A, two-way)
            status: Report status, or ABORTED for read failures
            duration: Duration in seconds
        """
        self.sync_runs_total.labels(mode=mode, status=status).inc()
        self.sync_duration_seconds.labels(mode=mode).observe(duration)
        self.sync_last_run_timestamp.labels(mode=mode).set(time.time())

        logger.debug(f"Recorded sync run: mode={mode}, status={status}, duration={duration:.2f}s")

    def record_operation(self, target: str, kind: str, outcome: str) -> None:
        self.sync_operations_total.labels(target=target, kind=kind, outcome=outcome).inc()

    def record_retry(self, operation: str) -> None:
        self.sync_retries_total.labels(operation=operation).inc()

    def record_replica_size(self, replica: str, count: int) -> None:
        self.sync_replica_records.labels(replica=replica).set(count)
