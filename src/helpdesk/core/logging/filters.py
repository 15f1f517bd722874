"""
Logging filters.

- RequestIdFilter: stamps `record.request_id` from a contextvar set by
  RequestIDMiddleware, so every line of one HTTP request can be correlated.
  Falls back to "-" so format strings using %(request_id)s never fail.
- RedactFilter: masks sensitive attributes passed through `extra=`.

contextvars (not threading.local) keep the id attached across awaits and
asyncio tasks.
"""

import logging
from logging import LogRecord
import contextvars

# Request id of the current execution context; None outside a request
_request_id_ctx: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "request_id", default=None
)


def set_request_id(request_id: str | None) -> contextvars.Token:
    """
    Set the request id for the current context.

    Returns:
        the token to pass to reset_request_id() when the request ends.
    """
    return _request_id_ctx.set(request_id)


def reset_request_id(token: contextvars.Token) -> None:
    _request_id_ctx.reset(token)


def get_request_id() -> str | None:
    return _request_id_ctx.get()


class RequestIdFilter(logging.Filter):
    """
    Guarantee every record has a `request_id`.

    Precedence: an explicit `extra={"request_id": ...}`, then the contextvar,
    then "-". Never drops a record.
    """

    def filter(self, record: LogRecord) -> bool:
        record.request_id = (
            getattr(record, "request_id", None) or get_request_id() or "-"
        )
        return True


class RedactFilter(logging.Filter):
    """Replace the value of sensitive record attributes (from `extra=`) with a mask."""

    SENSITIVE = {
        "password",
        "hashed_password",
        "secret",
        "token",
        "access_token",
        "refresh_token",
        "authorization",
        "cookie",
    }
    MASK = "***REDACTED***"

    def filter(self, record: LogRecord) -> bool:
        for key in list(record.__dict__):
            if key.lower() in self.SENSITIVE:
                record.__dict__[key] = self.MASK
        return True
