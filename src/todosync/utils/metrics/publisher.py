"""
HTTP exposition of sync metrics.

Used by ``todosync schedule`` (and ``run --metrics-port``) so Prometheus can
scrape runs, writes and retries from a long-lived process.
"""

import logging
from typing import Optional

from prometheus_client import REGISTRY, CollectorRegistry, Info, start_http_server

from .registry import get_or_create_metric

logger = logging.getLogger(__name__)


class MetricsPublisher:
    """
    Serves ``/metrics`` for one registry

    Args:
        port: Listening port (default: 9091)
        registry: Registry to expose (default: global REGISTRY)
        addr: Listening address
    """

    def __init__(
        self,
        port: int = 9091,
        registry: Optional[CollectorRegistry] = None,
        addr: str = "0.0.0.0",
    ):
        self.port = port
        self.addr = addr
        self.registry = registry or REGISTRY
        self._server_started = False

    def _publish_build_info(self) -> None:
        from todosync import __version__

        build_info = get_or_create_metric(
            lambda: Info("todosync_build", "todosync version", registry=self.registry),
            "todosync_build_info",
            self.registry,
        )
        build_info.info({"version": __version__})

    def start(self) -> None:
        """
        Start serving; a second call is a no-op

        Raises:
            RuntimeError: If the port cannot be bound
        """
        if self._server_started:
            logger.warning(f"Metrics endpoint already serving on port {self.port}")
            return

        try:
            start_http_server(self.port, addr=self.addr, registry=self.registry)
        except OSError as e:
            raise RuntimeError(
                f"Metrics server cannot start on port {self.port}: {e}"
            ) from e

        self._publish_build_info()
        self._server_started = True
        logger.info(f"Serving sync metrics on http://{self.addr}:{self.port}/metrics")

    def is_started(self) -> bool:
        return self._server_started
