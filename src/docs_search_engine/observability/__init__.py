"""Observability module for OpenTelemetry-aligned tracing, metrics, and logging."""

from docs_search_engine.observability.context import (
    bound_engine,
    get_trace_context,
    set_trace_context,
    trace_context,
)
from docs_search_engine.observability.logging import JsonFormatter, configure_logging
from docs_search_engine.observability.metrics import (
    INDEX_DOC_COUNT,
    INDEX_ERRORS,
    INDEX_MUTATIONS,
    SEARCH_LATENCY,
    SEARCH_REQUESTS,
    get_metrics,
    get_metrics_content_type,
    init_metrics,
    track_latency,
)
from docs_search_engine.observability.tracing import create_span, get_tracer, init_tracing


__all__ = [
    "INDEX_DOC_COUNT",
    "INDEX_ERRORS",
    "INDEX_MUTATIONS",
    "SEARCH_LATENCY",
    "SEARCH_REQUESTS",
    "JsonFormatter",
    "bound_engine",
    "configure_logging",
    "create_span",
    "get_metrics",
    "get_metrics_content_type",
    "get_trace_context",
    "get_tracer",
    "init_metrics",
    "init_tracing",
    "set_trace_context",
    "trace_context",
    "track_latency",
]
