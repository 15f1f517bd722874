"""
Logging builder: build a dictConfig mapping from Settings, apply it, and
optionally move log I/O to a background QueueListener.

Queue mode (LOG_USE_QUEUE):
 - the real handlers are detached from every logger and run by a QueueListener
 - the root logger gets a QueueHandler carrying RequestIdFilter and RedactFilter,
   so the request id is read and secrets are masked in the producing context
 - LOG_QUEUE_MAX_SIZE > 0 bounds the queue; with LOG_QUEUE_BLOCKING=False full
   queues drop records (NonBlockingQueueHandler) instead of blocking producers
 - stop_queue_logging() flushes and stops the listener at shutdown
"""

from __future__ import annotations

import logging
import logging.config
import queue as _queue
import sys
import threading
from logging.handlers import QueueHandler, QueueListener
from pathlib import Path
from typing import Optional

from helpdesk.config.settings import Settings

from .filters import RequestIdFilter, RedactFilter
from .formatters import JsonFormatter, ColorFormatter
from .handlers import (
    get_console_handler,
    get_file_handler,
    get_error_file_handler,
    get_error_console_handler,
)
from .utils import SERVICE_NAME

TEXT_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(request_id)s | %(message)s"

_QUEUE_LISTENER: Optional[QueueListener] = None
_QUEUE: Optional[_queue.Queue] = None

_DROPPED_LOGS_COUNT = 0
_DROPPED_LOGS_LOCK = threading.Lock()


class NonBlockingQueueHandler(QueueHandler):
    """
    QueueHandler that drops the record instead of blocking when a bounded queue is full.

    Drops are counted (see get_queue_stats()); every `drop_warning_threshold`
    drops a line is written to stderr, since the logging pipeline itself is the
    thing that is saturated.
    """

    def __init__(self, q: _queue.Queue, drop_warning_threshold: int = 100):
        super().__init__(q)
        self.drop_warning_threshold = drop_warning_threshold

    def emit(self, record: logging.LogRecord) -> None:
        global _DROPPED_LOGS_COUNT
        try:
            self.queue.put_nowait(self.prepare(record))
        except _queue.Full:
            with _DROPPED_LOGS_LOCK:
                _DROPPED_LOGS_COUNT += 1
                dropped = _DROPPED_LOGS_COUNT
            if self.drop_warning_threshold and dropped % self.drop_warning_threshold == 0:
                sys.stderr.write(f"logging queue full: {dropped} records dropped so far\n")


def get_queue_stats() -> dict:
    with _DROPPED_LOGS_LOCK:
        return {"dropped_logs": _DROPPED_LOGS_COUNT, "queue_present": _QUEUE is not None}


def _writes_files(settings: Settings) -> bool:
    return (not settings.LOG_TO_STDOUT) and bool(settings.LOG_DIR)


def make_dict_config(settings: Settings) -> dict:
    """
    dictConfig mapping for the given settings.

    Handlers: "console" always; "file" + "error_file" when LOG_TO_STDOUT is off
    and LOG_DIR is set, "error_console" otherwise.
    """
    formatters = {
        "standard": {
            "()": ColorFormatter if settings.LOG_FORMAT == "text" else logging.Formatter,
            "format": TEXT_FORMAT,
        },
        "json": {
            "()": JsonFormatter,
            "env": settings.ENV,
            "service": SERVICE_NAME,
        },
    }

    filters = {
        "request_id": {"()": RequestIdFilter},
        "redact": {"()": RedactFilter},
    }

    handlers: dict[str, dict] = {"console": get_console_handler(settings)}
    if _writes_files(settings):
        handlers["file"] = get_file_handler(settings)
        handlers["error_file"] = get_error_file_handler(settings)
    else:
        handlers["error_console"] = get_error_console_handler(settings)

    return {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": formatters,
        "filters": filters,
        "handlers": handlers,
        "loggers": {
            "": {
                "handlers": list(handlers),
                "level": settings.LOG_LEVEL,
                "propagate": True,
            },
            "uvicorn.error": {
                "level": settings.LOG_LEVEL,
                "handlers": list(handlers),
                "propagate": False,
            },
            "uvicorn.access": {
                "level": "INFO",
                "handlers": ["console"],
                "propagate": False,
            },
            # SQL statements may carry customer data (addresses, message bodies)
            "sqlalchemy.engine": {
                "level": "DEBUG" if settings.ENABLE_SQL_LOGGING else "WARNING",
                "handlers": ["console"],
                "propagate": False,
            },
        },
    }


def setup_logging(settings: Settings) -> None:
    """
    Apply the logging configuration, then switch to queue mode if enabled.

    Safe to call more than once: an existing queue listener is stopped first.
    """
    global _QUEUE_LISTENER, _QUEUE

    stop_queue_logging()

    if _writes_files(settings):
        Path(settings.LOG_DIR).mkdir(parents=True, exist_ok=True)

    logging.config.dictConfig(make_dict_config(settings))
    root_logger = logging.getLogger()
    root_logger.addFilter(RequestIdFilter())

    if not getattr(settings, "LOG_USE_QUEUE", False):
        return

    max_size = getattr(settings, "LOG_QUEUE_MAX_SIZE", 0) or 0
    blocking = bool(getattr(settings, "LOG_QUEUE_BLOCKING", False))
    drop_warning_threshold = int(getattr(settings, "LOG_QUEUE_DROP_WARNING_THRESHOLD", 100))

    real_handlers = list(root_logger.handlers)
    if not real_handlers:
        return

    # Detach the real handlers everywhere so only the listener thread runs them
    for logger_obj in list(logging.Logger.manager.loggerDict.values()):
        if isinstance(logger_obj, logging.Logger):
            for handler in list(logger_obj.handlers):
                if handler in real_handlers:
                    logger_obj.removeHandler(handler)
    for handler in real_handlers:
        root_logger.removeHandler(handler)

    log_queue: _queue.Queue = _queue.Queue(max_size)
    if max_size > 0 and not blocking:
        queue_handler = NonBlockingQueueHandler(log_queue, drop_warning_threshold)
    else:
        queue_handler = QueueHandler(log_queue)

    listener = QueueListener(log_queue, *real_handlers, respect_handler_level=True)
    listener.start()

    queue_handler.addFilter(RequestIdFilter())
    queue_handler.addFilter(RedactFilter())
    root_logger.addHandler(queue_handler)

    _QUEUE_LISTENER = listener
    _QUEUE = log_queue


def stop_queue_logging() -> None:
    """Flush and stop the queue listener, if one is running."""
    global _QUEUE_LISTENER, _QUEUE
    listener = _QUEUE_LISTENER
    if listener is None:
        return

    try:
        listener.stop()
    except Exception:
        logging.getLogger(__name__).exception("logging.queue_listener_stop_failed")
    finally:
        _QUEUE_LISTENER = None
        _QUEUE = None

