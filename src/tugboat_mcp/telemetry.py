"""OpenTelemetry spans for tool calls and upstream requests, no-op without OTel."""

from __future__ import annotations

import logging
import uuid
from collections.abc import Generator, Mapping
from contextlib import contextmanager
from importlib import import_module
from typing import Any

logger = logging.getLogger("tugboat_mcp.telemetry")

trace: Any | None = None
try:
    trace = import_module("opentelemetry.trace")
    _HAS_OTEL = True
except Exception:
    _HAS_OTEL = False

_TRACER_NAME = "tugboat_mcp"


def _get_tracer() -> Any:
    if _HAS_OTEL and trace is not None:
        return trace.get_tracer(_TRACER_NAME)
    return None


def generate_request_id() -> str:
    """Return a UUID4 used to correlate one tool call across log lines and spans."""
    return str(uuid.uuid4())


def set_span_attributes(span: Any, attributes: Mapping[str, Any]) -> None:
    """Attach attributes to ``span``; a missing span or a tracer failure is ignored."""
    if span is None:
        return
    for key, value in attributes.items():
        try:
            span.set_attribute(key, value)
        except Exception as exc:
            logger.debug("Failed to set span attribute %s: %s", key, exc)


@contextmanager
def trace_span(
    name: str,
    attributes: Mapping[str, Any] | None = None,
) -> Generator[Any, None, None]:
    """Run the block inside an OTel span named ``name``.

    Yields the span, or None when OpenTelemetry is not installed or the
    tracer cannot start a span. Exceptions raised by the block propagate
    unchanged after the span is closed.
    """
    try:
        tracer = _get_tracer()
        span_context = (
            tracer.start_as_current_span(name, attributes=dict(attributes or {}))
            if tracer is not None
            else None
        )
        span = span_context.__enter__() if span_context is not None else None
    except Exception as exc:
        logger.debug("Tracing disabled for span '%s': %s", name, exc)
        span_context = None
        span = None

    if span_context is None:
        yield None
        return

    exc_info: tuple[Any, Any, Any] = (None, None, None)
    try:
        yield span
    except BaseException as inner_exc:
        exc_info = (type(inner_exc), inner_exc, inner_exc.__traceback__)
        raise
    finally:
        try:
            span_context.__exit__(*exc_info)
        except Exception as exit_exc:
            logger.debug("Failed to close span '%s': %s", name, exit_exc)
