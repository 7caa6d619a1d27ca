"""
Utility modules for todosync

Provides:
- retry: bounded retry with timeout for async replica calls
- logging: console/JSON logging and the ContextLogger wrapper
- metrics: Prometheus metrics for sync runs
- tracing: OpenTelemetry spans around sync runs
"""

__version__ = "1.0.0"
__all__ = ["retry", "logging", "metrics", "tracing"]
