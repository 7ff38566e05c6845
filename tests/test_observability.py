import io
import json
import logging

from gradio_form_builder.observability.logging import JsonFormatter, get_logger, setup_logging
from gradio_form_builder.observability.metrics import RuntimeMetrics
from gradio_form_builder.store.store import FormSchemaStore


def test_json_formatter():
    formatter = JsonFormatter()
    log_record = logging.LogRecord(
        name="test_logger",
        level=logging.INFO,
        pathname="test.py",
        lineno=10,
        msg="test message",
        args=(),
        exc_info=None,
    )
    log_record.extra_fields = {"event": "test_event", "custom": "value"}
    log_record.node_id = "f-1"

    data = json.loads(formatter.format(log_record))

    assert data["message"] == "test message"
    assert data["level"] == "INFO"
    assert data["logger"] == "test_logger"
    assert data["event"] == "test_event"
    assert data["custom"] == "value"
    assert data["node_id"] == "f-1"
    assert "timestamp" in data
    assert "extra_fields" not in data


def test_json_formatter_includes_exception():
    formatter = JsonFormatter()
    try:
        raise ValueError("broken")
    except ValueError:
        import sys

        record = logging.LogRecord(
            "x", logging.ERROR, "t.py", 1, "failed", (), sys.exc_info()
        )
    data = json.loads(formatter.format(record))
    assert "ValueError: broken" in data["exception"]


def test_setup_logging_replaces_handlers():
    stream = io.StringIO()
    logger = setup_logging(level="debug", stream=stream)
    setup_logging(level="debug", stream=stream)
    try:
        assert logger.name == "gradio_form_builder"
        assert logger.level == logging.DEBUG
        assert len(logger.handlers) == 1

        get_logger("gradio_form_builder.test").info(
            "hello", extra={"extra_fields": {"event": "unit"}}
        )
        data = json.loads(stream.getvalue().strip().splitlines()[-1])
        assert data["message"] == "hello"
        assert data["event"] == "unit"
    finally:
        for handler in logger.handlers[:]:
            logger.removeHandler(handler)


def test_store_events_are_logged():
    stream = io.StringIO()
    logger = setup_logging(level="INFO", stream=stream)
    try:
        store = FormSchemaStore()
        store.load_default()
        store.remove(store.schema.root.id)
        events = [json.loads(line) for line in stream.getvalue().splitlines()]
        assert [e["event"] for e in events] == ["store.applied", "store.rejected"]
        assert events[1]["code"] == "node.root"
        assert events[0]["revision"] == 1
    finally:
        for handler in logger.handlers[:]:
            logger.removeHandler(handler)


def test_metrics_counters():
    metrics = RuntimeMetrics()
    metrics.inc("b")
    metrics.inc("a", 2)
    assert metrics.get("a") == 2
    assert metrics.get("missing") == 0


def test_metrics_command_and_submit_helpers():
    metrics = RuntimeMetrics()
    assert metrics.rejection_rate() == 0.0
    metrics.record_command(True)
    metrics.record_command(False, "node.root")
    metrics.record_command(False)
    metrics.record_submit(valid=False)
    metrics.record_submit(valid=True)
    assert metrics.counters == {
        "store.applied": 1,
        "store.rejected": 2,
        "store.rejected.node.root": 1,
        "form.submit": 2,
        "form.submit.invalid": 1,
    }
    assert metrics.rejection_rate() == 2 / 3
