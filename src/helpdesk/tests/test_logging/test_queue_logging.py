import logging
from types import SimpleNamespace
from pathlib import Path

from helpdesk.core.logging.builder import get_queue_stats, setup_logging, stop_queue_logging
from helpdesk.core.logging.filters import reset_request_id, set_request_id


def make_test_settings(tmp_path: Path, **overrides):
    settings = SimpleNamespace(
        ENV="testing",
        LOG_LEVEL="DEBUG",
        LOG_FORMAT="json",
        LOG_TO_STDOUT=False,
        LOG_DIR=tmp_path,
        LOG_MAX_BYTES=1_000_000,
        LOG_BACKUP_COUNT=1,
        ENABLE_SQL_LOGGING=False,
        LOG_USE_QUEUE=True,
    )
    for key, value in overrides.items():
        setattr(settings, key, value)
    return settings


def test_queue_listener_writes_file(tmp_path):
    settings = make_test_settings(tmp_path)
    setup_logging(settings)
    assert get_queue_stats()["queue_present"] is True

    logger = logging.getLogger("helpdesk.test.queue")
    token = set_request_id("test-req-1")
    try:
        for i in range(10):
            logger.info("queued message %d", i, extra={"iteration": i, "hashed_password": "x"})
    finally:
        reset_request_id(token)

    # stop() drains the queue before returning
    stop_queue_logging()
    assert get_queue_stats()["queue_present"] is False

    text = (Path(settings.LOG_DIR) / "helpdesk.log").read_text()
    assert "queued message 0" in text
    assert "queued message 9" in text
    assert "iteration" in text
    assert "test-req-1" in text
    assert '"hashed_password": "***REDACTED***"' in text


def test_stop_queue_logging_without_listener_is_noop():
    stop_queue_logging()
    stop_queue_logging()
    assert get_queue_stats()["queue_present"] is False
