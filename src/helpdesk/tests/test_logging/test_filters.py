import logging

from helpdesk.core.logging.filters import (
    RedactFilter,
    RequestIdFilter,
    reset_request_id,
    set_request_id,
)


def make_record():
    return logging.LogRecord("helpdesk", logging.INFO, __file__, 1, "hello %s", ("world",), None)


def test_request_id_filter_defaults_to_dash():
    token = set_request_id(None)
    try:
        rec = make_record()
        assert RequestIdFilter().filter(rec) is True
        assert rec.request_id == "-"
    finally:
        reset_request_id(token)


def test_request_id_filter_uses_contextvar():
    token = set_request_id("abc-123")
    try:
        rec = make_record()
        RequestIdFilter().filter(rec)
        assert rec.request_id == "abc-123"
    finally:
        reset_request_id(token)


def test_request_id_filter_respects_record_extra():
    token = set_request_id("context-id")
    try:
        rec = make_record()
        rec.request_id = "explicit"
        RequestIdFilter().filter(rec)
        assert rec.request_id == "explicit"
    finally:
        reset_request_id(token)


def test_redact_filter_masks_sensitive_extras():
    rec = make_record()
    rec.hashed_password = "$2b$12$abc"
    rec.Authorization = "Bearer xyz"
    rec.conversation_id = "c-1"

    assert RedactFilter().filter(rec) is True
    assert rec.hashed_password == RedactFilter.MASK
    assert rec.Authorization == RedactFilter.MASK
    assert rec.conversation_id == "c-1"
