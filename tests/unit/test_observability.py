"""Unit tests for observability module."""

import json
import logging
import sys

from opentelemetry import trace as trace_api
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import SimpleSpanProcessor
from opentelemetry.sdk.trace.export.in_memory_span_exporter import InMemorySpanExporter
from opentelemetry.trace import StatusCode
from prometheus_client import CollectorRegistry, Counter
import pytest

from docs_search_engine.observability import (
    SEARCH_LATENCY,
    SEARCH_REQUESTS,
    JsonFormatter,
    bound_engine,
    configure_logging,
    create_span,
    get_metrics,
    get_metrics_content_type,
    get_trace_context,
    init_metrics,
    init_tracing,
    set_trace_context,
    track_latency,
)
from docs_search_engine.observability.context import trace_context, update_span_id
from docs_search_engine.observability.metrics import MetricBridge


def _record(name="docs_search_engine.search_engine", level=logging.INFO, msg="message", args=()):
    return logging.LogRecord(
        name=name,
        level=level,
        pathname="search_engine.py",
        lineno=1,
        msg=msg,
        args=args,
        exc_info=None,
    )


@pytest.fixture(autouse=True)
def fresh_trace_context():
    token = trace_context.set(None)
    yield
    trace_context.reset(token)


@pytest.mark.unit
class TestJsonFormatter:
    """Tests for structured JSON logging."""

    def test_format_includes_trace_context(self):
        set_trace_context("a" * 32, "b" * 16)

        data = json.loads(JsonFormatter().format(_record(msg="indexed %d documents", args=(3,))))

        assert data["message"] == "indexed 3 documents"
        assert data["level"] == "INFO"
        assert data["logger"] == "docs_search_engine.search_engine"
        assert data["component"] == "search_engine"
        assert data["trace_id"] == "a" * 32
        assert data["span_id"] == "b" * 16
        assert "timestamp" in data

    def test_format_includes_engine_inside_bound_block(self):
        with bound_engine("phoenix"):
            data = json.loads(JsonFormatter().format(_record()))

        assert data["engine"] == "phoenix"
        assert "engine" not in json.loads(JsonFormatter().format(_record()))

    def test_format_includes_extra_fields(self):
        record = _record(level=logging.ERROR, msg="search failed")
        record.query = "phoenix channels"
        record.doc_ids = {"b", "a"}

        data = json.loads(JsonFormatter().format(record))

        assert data["query"] == "phoenix channels"
        assert data["doc_ids"] == ["a", "b"]

    def test_format_truncates_and_redacts(self):
        record = _record(msg="x" * 2500)
        record.token = "secret-value"
        record.details = "y" * 600

        data = json.loads(JsonFormatter().format(record))

        assert data["message"] == "x" * 2000 + "..."
        assert data["token"] == "[REDACTED]"
        assert data["details"] == "y" * 500 + "..."

    def test_format_includes_exception(self):
        try:
            raise ValueError("boom")
        except ValueError:
            record = logging.LogRecord("test", logging.ERROR, "t.py", 1, "failed", (), exc_info=sys.exc_info())

        data = json.loads(JsonFormatter().format(record))

        assert "ValueError: boom" in data["exception"]


@pytest.mark.unit
class TestTraceContext:
    def test_get_trace_context_generates_ids(self):
        ctx = get_trace_context()

        assert len(ctx["trace_id"]) == 32
        assert len(ctx["span_id"]) == 16
        assert get_trace_context() is ctx

    def test_update_span_id_preserves_trace_id_and_extras(self):
        set_trace_context("trace", "span", engine="docs")

        update_span_id("next")

        assert get_trace_context() == {"trace_id": "trace", "span_id": "next", "engine": "docs"}

    def test_bound_engine_restores_previous_context(self):
        set_trace_context("trace", "span")

        with bound_engine("docs") as ctx:
            assert ctx["engine"] == "docs"
            assert ctx["trace_id"] == "trace"

        assert "engine" not in get_trace_context()


@pytest.mark.unit
class TestTracing:
    @staticmethod
    def _setup_exporter() -> InMemorySpanExporter:
        exporter = InMemorySpanExporter()
        provider = trace_api.get_tracer_provider()
        if not isinstance(provider, TracerProvider):
            provider = init_tracing("test-service")
        provider.add_span_processor(SimpleSpanProcessor(exporter))
        return exporter

    def test_init_tracing_returns_sdk_provider(self):
        assert isinstance(init_tracing("test-service"), TracerProvider)

    def test_create_span_sets_attributes_and_span_id(self):
        exporter = self._setup_exporter()
        set_trace_context("trace", "parent")

        with create_span("search_engine.search", attributes={"engine": "docs"}) as span:
            span_id = format(span.get_span_context().span_id, "016x")
            assert get_trace_context() == {"trace_id": "trace", "span_id": span_id}

        finished = [item for item in exporter.get_finished_spans() if item.name == "search_engine.search"]
        assert len(finished) == 1
        assert finished[0].attributes["engine"] == "docs"

    def test_create_span_marks_error_on_exception(self):
        exporter = self._setup_exporter()

        with pytest.raises(ValueError, match="boom"), create_span("search_engine.rebuild"):
            raise ValueError("boom")

        finished = [item for item in exporter.get_finished_spans() if item.name == "search_engine.rebuild"]
        assert len(finished) == 1
        assert finished[0].status.status_code == StatusCode.ERROR
        assert finished[0].events[0].name == "exception"


@pytest.mark.unit
class TestMetrics:
    """Tests for Prometheus metrics."""

    def test_init_metrics_is_idempotent(self):
        assert init_metrics() is init_metrics()

    def test_get_metrics_returns_bytes(self):
        SEARCH_REQUESTS.labels(engine="metrics-test", status="success").inc()

        output = get_metrics()

        assert isinstance(output, bytes)
        assert b"search_requests_total" in output
        assert b'engine="metrics-test"' in output

    def test_track_latency_records_histogram(self):
        with track_latency(SEARCH_LATENCY, engine="latency-test"):
            pass

        assert b'search_latency_seconds_count{engine="latency-test"} 1.0' in get_metrics()

    def test_track_latency_records_on_error(self):
        with pytest.raises(RuntimeError), track_latency(SEARCH_LATENCY, engine="latency-error"):
            raise RuntimeError("boom")

        assert b'search_latency_seconds_count{engine="latency-error"} 1.0' in get_metrics()

    def test_metric_bridge_unknown_kind_raises(self):
        counter = Counter("bridge_test_total", "Bridge test", ["engine"], registry=CollectorRegistry())
        bridge = MetricBridge(counter, otel_name="bridge_test_total", otel_description="test", otel_kind="meter")

        with pytest.raises(ValueError, match="Unknown metric kind"):
            bridge.labels(engine="docs").inc()

    def test_get_metrics_content_type(self):
        assert get_metrics_content_type().startswith("text/plain")


@pytest.mark.unit
class TestConfigureLogging:
    """Tests for logging configuration."""

    @pytest.fixture(autouse=True)
    def restore_root_logger(self):
        root = logging.getLogger()
        handlers, level = root.handlers[:], root.level
        yield
        root.handlers[:] = handlers
        root.setLevel(level)
        logging.getLogger("docs_search_engine.search").setLevel(logging.NOTSET)

    def test_configure_logging_sets_level(self):
        configure_logging(level="DEBUG")

        assert logging.getLogger().level == logging.DEBUG

    def test_configure_logging_installs_single_json_handler(self):
        configure_logging(level="INFO")
        configure_logging(level="INFO")

        handlers = logging.getLogger().handlers
        assert len(handlers) == 1
        assert isinstance(handlers[0].formatter, JsonFormatter)

    def test_configure_logging_plain_text_and_overrides(self):
        configure_logging(level="WARNING", json_output=False, logger_levels={"docs_search_engine.search": "debug"})

        assert not isinstance(logging.getLogger().handlers[0].formatter, JsonFormatter)
        assert logging.getLogger("docs_search_engine.search").level == logging.DEBUG
