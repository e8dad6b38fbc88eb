"""
OpenTelemetry tracing for gangbook.

The TRACING_MODE setting picks the behaviour:
- "off": no OpenTelemetry imports, ``span`` and ``traced`` are no-ops
- "console": spans are printed to stdout
- "gcp": spans are exported to Google Cloud Trace

Usage:

    from gangbook.tracing import span, traced

    with span("gang_rating_recalculate", gang_id=str(gang.id)):
        ...

    @traced("handle_equipment_purchase")
    def handle_equipment_purchase(*, user, gang, ...):
        ...

Handlers decorated with ``traced`` also record the ids of any model instances
passed as keyword arguments (``gang``, ``fighter``, ``vehicle`` and so on).
"""

import logging
import os
from contextlib import contextmanager
from functools import wraps
from typing import Any, Callable, Generator, Optional

from django.conf import settings

logger = logging.getLogger(__name__)

_tracing_enabled = False
_tracer = None
_initialized = False


def _get_tracing_mode() -> str:
    return getattr(settings, "TRACING_MODE", "off")


def _build_processor(mode: str):
    if mode == "console":
        from opentelemetry.sdk.trace.export import (
            ConsoleSpanExporter,
            SimpleSpanProcessor,
        )

        return SimpleSpanProcessor(ConsoleSpanExporter())

    from opentelemetry.exporter.cloud_trace import CloudTraceSpanExporter
    from opentelemetry.sdk.trace.export import BatchSpanProcessor

    project_id = os.getenv("GOOGLE_CLOUD_PROJECT") or os.getenv("GCP_PROJECT_ID")
    return BatchSpanProcessor(CloudTraceSpanExporter(project_id=project_id))


def _init_tracing() -> None:
    """Configure the tracer provider once, according to TRACING_MODE."""
    global _tracing_enabled, _tracer, _initialized

    if _initialized:
        return
    _initialized = True

    mode = _get_tracing_mode()
    if mode == "off":
        logger.debug("Tracing disabled (TRACING_MODE=off)")
        return

    try:
        from opentelemetry import trace
        from opentelemetry.instrumentation.django import DjangoInstrumentor
        from opentelemetry.instrumentation.logging import LoggingInstrumentor
        from opentelemetry.propagate import set_global_textmap
        from opentelemetry.propagators.cloud_trace_propagator import (
            CloudTraceFormatPropagator,
        )
        from opentelemetry.sdk.trace import TracerProvider

        # Cloud Run sends X-Cloud-Trace-Context rather than traceparent
        set_global_textmap(CloudTraceFormatPropagator())

        provider = TracerProvider()
        provider.add_span_processor(_build_processor(mode))
        trace.set_tracer_provider(provider)

        DjangoInstrumentor().instrument()
        LoggingInstrumentor().instrument(set_logging_format=False)

        _tracer = trace.get_tracer("gangbook.tracing")
        _tracing_enabled = True
        logger.info(f"OpenTelemetry tracing enabled (mode={mode})")
    except ImportError as e:
        logger.warning(f"OpenTelemetry packages not installed: {e}")
    except Exception as e:
        logger.error(f"Failed to initialize OpenTelemetry tracing: {e}", exc_info=True)


@contextmanager
def span(
    name: str, *, record_exception: bool = True, **attributes: Any
) -> Generator[Optional[Any], None, None]:
    """Open a span named ``name`` with string-valued ``attributes``.

    Yields the span, or None when tracing is disabled. Exceptions are recorded
    on the span and re-raised.
    """
    if not _tracing_enabled or _tracer is None:
        yield None
        return

    with _tracer.start_as_current_span(name) as current_span:
        for key, value in attributes.items():
            current_span.set_attribute(key, str(value))

        try:
            yield current_span
        except Exception as e:
            if record_exception:
                from opentelemetry.trace import Status, StatusCode

                current_span.record_exception(e)
                current_span.set_status(Status(StatusCode.ERROR))
            raise


def _model_attributes(kwargs: dict) -> dict:
    attributes = {}
    for key, value in kwargs.items():
        pk = getattr(value, "pk", None)
        if pk is not None:
            attributes[f"{key}_id"] = pk
    return attributes


def traced(name: Optional[str] = None, **default_attributes: Any) -> Callable:
    """Decorator that runs the wrapped function inside a span."""

    def decorator(func: Callable) -> Callable:
        span_name = name or func.__name__

        @wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> Any:
            if not _tracing_enabled:
                return func(*args, **kwargs)
            attributes = {**default_attributes, **_model_attributes(kwargs)}
            with span(span_name, **attributes):
                return func(*args, **kwargs)

        return wrapper

    return decorator


def is_tracing_enabled() -> bool:
    return _tracing_enabled


def _reset_tracing() -> None:
    """Reset module state. Only for tests."""
    global _tracing_enabled, _tracer, _initialized
    _tracing_enabled = False
    _tracer = None
    _initialized = False


_init_tracing()
