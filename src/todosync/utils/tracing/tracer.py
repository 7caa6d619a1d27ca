"""
OpenTelemetry provider setup for todosync.

Nothing is exported until initialize_tracing installs an SDK provider; until
then the API's no-op provider makes every span free.
"""

import logging
import os

from opentelemetry import trace
from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import OTLPSpanExporter
from opentelemetry.sdk.resources import SERVICE_NAME, SERVICE_VERSION, Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor, ConsoleSpanExporter
from opentelemetry.sdk.trace.sampling import TraceIdRatioBased

logger = logging.getLogger(__name__)

TRACER_NAME = "todosync"

_provider: TracerProvider | None = None


def initialize_tracing(
    service_name: str = "todosync",
    otlp_endpoint: str | None = None,
    console_export: bool = False,
    sampling_rate: float = 1.0
) -> trace.Tracer:
    """
    Install the SDK tracer provider (once per process)

    Args:
        service_name: ``service.name`` resource attribute
        otlp_endpoint: gRPC collector address such as "localhost:4317";
            OTLP_ENDPOINT is used when omitted
        console_export: Also print finished spans (TRACE_CONSOLE=true does
            the same)
        sampling_rate: Fraction of runs to trace, 0.0 to 1.0

    Returns:
        The todosync tracer
    """
    global _provider

    if _provider is not None:
        logger.warning("Tracing already initialized")
        return get_tracer()

    from todosync import __version__

    provider = TracerProvider(
        resource=Resource.create({SERVICE_NAME: service_name, SERVICE_VERSION: __version__}),
        sampler=TraceIdRatioBased(sampling_rate),
    )

    exporters = {}
    otlp_endpoint = otlp_endpoint or os.getenv("OTLP_ENDPOINT")
    if otlp_endpoint:
        exporters["otlp"] = OTLPSpanExporter(endpoint=otlp_endpoint, insecure=True)
    if console_export or os.getenv("TRACE_CONSOLE", "").lower() == "true":
        exporters["console"] = ConsoleSpanExporter()

    for exporter in exporters.values():
        provider.add_span_processor(BatchSpanProcessor(exporter))

    if not exporters:
        logger.warning("Tracing initialized without exporters; spans are discarded")

    trace.set_tracer_provider(provider)
    _provider = provider

    logger.info(
        f"Tracing {service_name} to {', '.join(exporters) or 'nowhere'} "
        f"(sampling {sampling_rate:.0%})"
    )
    return get_tracer()


def get_tracer() -> trace.Tracer:
    """Tracer from whichever provider is installed (no-op by default)."""
    return trace.get_tracer(TRACER_NAME)


def shutdown_tracing() -> None:
    """Flush buffered spans; call before the process exits."""
    global _provider

    if _provider is None:
        return

    try:
        _provider.shutdown()
        logger.info("Tracing shut down")
    finally:
        _provider = None
