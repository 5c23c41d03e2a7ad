import io
import json
import logging

import pytest

from sms_relay.logger import JsonFormatter, get_logger, log


@pytest.fixture
def captured():
    """Attach a JSON handler writing to a buffer on the shared relay logger."""
    stream = io.StringIO()
    handler = logging.StreamHandler(stream)
    handler.setFormatter(JsonFormatter())
    base = logging.getLogger("sms_relay")
    base.addHandler(handler)
    yield lambda: [json.loads(line) for line in stream.getvalue().splitlines()]
    base.removeHandler(handler)


def test_extra_fields_are_top_level(captured):
    get_logger("sms_relay").info("dispatch.sent", extra={"sid": "SM1", "record_id": "r1"})

    entry = captured()[-1]
    assert entry["message"] == "dispatch.sent"
    assert entry["level"] == "INFO"
    assert entry["logger"] == "sms_relay"
    assert entry["sid"] == "SM1"
    assert entry["record_id"] == "r1"
    assert "fields" not in entry


def test_log_helper_flattens_fields(captured):
    log("health.check", path="/healthz", sms_configured=True)

    entry = captured()[-1]
    assert entry["message"] == "health.check"
    assert entry["path"] == "/healthz"
    assert entry["sms_configured"] is True


def test_log_helper_accepts_logrecord_attribute_names(captured):
    log("queue.event", name="x", module="m", args=[1], lineno=7)

    entry = captured()[-1]
    assert entry["name"] == "x"
    assert entry["module"] == "m"
    assert entry["args"] == [1]
    assert entry["lineno"] == 7
    # Core keys are never replaced by fields
    assert entry["logger"] == "sms_relay"


def test_fields_cannot_overwrite_core_keys(captured):
    log("queue.event", level="fake", logger="other")

    entry = captured()[-1]
    assert entry["level"] == "INFO"
    assert entry["logger"] == "sms_relay"


def test_exception_text_included(captured):
    try:
        raise RuntimeError("boom")
    except RuntimeError:
        get_logger("sms_relay").exception("twilio.unexpected_error")

    entry = captured()[-1]
    assert entry["level"] == "ERROR"
    assert "RuntimeError: boom" in entry["exc_info"]


def test_get_logger_configures_once():
    first = get_logger("sms_relay.test_once")
    handlers = list(first.handlers)

    assert get_logger("sms_relay.test_once") is first
    assert first.handlers == handlers
    assert first.propagate is False
