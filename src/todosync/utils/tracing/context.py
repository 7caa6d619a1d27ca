"""
Span helpers used by the reconciler.

Attribute keys without a namespace are placed under ``sync.`` so a run's
spans can be filtered on ``sync.replica``, ``sync.record_id`` and so on.
"""

from contextlib import contextmanager
from typing import Any, Iterator

from opentelemetry import trace

from .tracer import get_tracer

_NATIVE_TYPES = (str, bool, int, float)


def _attribute(key: str, value: Any) -> tuple[str, Any]:
    name = key if "." in key else f"sync.{key}"
    return name, value if isinstance(value, _NATIVE_TYPES) else str(value)


@contextmanager
def trace_operation(
    operation_name: str,
    kind: trace.SpanKind = trace.SpanKind.INTERNAL,
    **attributes,
) -> Iterator[trace.Span]:
    """
    Run a block inside a new current span

    An exception leaving the block is recorded on the span, marks it as an
    error and is re-raised. Safe to use across ``await`` inside a coroutine.

    Args:
        operation_name: Span name (``sync_run``, ``list_replica``, ...)
        kind: Span kind; CLIENT for calls out to a replica
        **attributes: Initial span attributes

    Example:
        >>> with trace_operation("list_replica", kind=trace.SpanKind.CLIENT, replica="local"):
        ...     records = await accessor.list()
    """
    with get_tracer().start_as_current_span(
        operation_name,
        kind=kind,
        record_exception=False,
        set_status_on_exception=False,
    ) as span:
        for key, value in attributes.items():
            span.set_attribute(*_attribute(key, value))

        try:
            yield span
        except Exception as e:
            span.record_exception(e)
            span.set_attribute("error.type", type(e).__name__)
            span.set_status(trace.Status(trace.StatusCode.ERROR, f"{type(e).__name__}: {e}"))
            raise


def add_span_attributes(**attributes) -> None:
    """Set attributes on the current span, if one is recording."""
    span = trace.get_current_span()
    if not span.is_recording():
        return
    for key, value in attributes.items():
        span.set_attribute(*_attribute(key, value))
