"""
Custom metrics publishing to Prometheus

This module provides utilities for publishing sync metrics to Prometheus
for monitoring and alerting.

Usage:
    from todosync.utils.metrics import MetricsPublisher, SyncMetrics

    # Expose /metrics (optional, for scheduled runs)
    MetricsPublisher(port=9091).start()

    # Record sync metrics
    metrics = SyncMetrics()
    metrics.record_run("two-way", status="SUCCESS", duration=2.4)
    metrics.record_operation("B", "create", "APPLIED")
"""

from .publisher import MetricsPublisher
from .registry import get_or_create_metric
from .sync import SyncMetrics

__all__ = [
    "MetricsPublisher",
    "SyncMetrics",
    "get_or_create_metric",
]
