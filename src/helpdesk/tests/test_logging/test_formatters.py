import json
import logging
import sys

from helpdesk.core.logging.formatters import ColorFormatter, JsonFormatter


def make_record():
    return logging.LogRecord("helpdesk", logging.INFO, __file__, 10, "hello %s", ("tester",), None)


def test_json_formatter_basic_fields():
    rec = make_record()
    rec.conversation_id = "c-42"
    rec.request_id = "req-1"

    data = json.loads(JsonFormatter(env="testing", service="svc").format(rec))

    assert data["message"] == "hello tester"
    assert data["level"] == "INFO"
    assert data["service"] == "svc"
    assert data["env"] == "testing"
    assert data["request_id"] == "req-1"
    assert data["conversation_id"] == "c-42"
    assert "timestamp" in data
    assert "version" in data


def test_json_formatter_leaves_out_record_internals():
    data = json.loads(JsonFormatter().format(make_record()))

    assert "args" not in data
    assert "msecs" not in data
    assert data["service"] == "helpdesk"


def test_json_formatter_non_serializable_extra():
    rec = make_record()

    class Unserializable:
        def __repr__(self):
            return "<Unserializable>"

    rec.obj = Unserializable()

    data = json.loads(JsonFormatter(env="dev").format(rec))
    assert data["obj"] == "<Unserializable>"


def test_json_formatter_includes_exception():
    try:
        raise ValueError("boom")
    except ValueError:
        rec = logging.LogRecord("helpdesk", logging.ERROR, __file__, 10, "failed", (), sys.exc_info())

    data = json.loads(JsonFormatter().format(rec))
    assert "ValueError: boom" in data["exc_info"]


def test_color_formatter_line_layout():
    rec = make_record()
    rec.request_id = "rid-7"

    line = ColorFormatter().format(rec)

    assert "hello tester" in line
    assert "rid-7" in line
    assert ColorFormatter.COLOR_CODES["INFO"] in line
