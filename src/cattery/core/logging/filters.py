"""
Logging filters.

`RequestIdFilter` stamps every LogRecord with the id of the HTTP request that
produced it, so all lines of one request can be correlated. The id lives in a
`contextvars.ContextVar`, which follows asyncio tasks across awaits (unlike
`threading.local()`). `RequestIDMiddleware` sets it at the start of each request.

`RedactFilter` masks record attributes whose names look like secrets, for the
case where someone passes them through `extra={...}`.

Both filters always return True: they annotate records, never drop them.
"""

import logging
from logging import LogRecord
import contextvars

# Request id for the current execution context; None means "not in a request".
_request_id_ctx: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "request_id", default=None
)


def set_request_id(request_id: str | None) -> contextvars.Token:
    """
    Set the request id in the current context.

    Returns:
        token: pass it to reset_request_id(token) to restore the previous value.
    """
    return _request_id_ctx.set(request_id)


def reset_request_id(token: contextvars.Token) -> None:
    _request_id_ctx.reset(token)


def get_request_id() -> str | None:
    return _request_id_ctx.get()


class RequestIdFilter(logging.Filter):
    """
    Guarantee every LogRecord has a `request_id` attribute.

    Precedence:
      1. an explicit `extra={"request_id": ...}` on the logging call
      2. the contextvar set by the middleware
      3. the sentinel "-" so `%(request_id)s` in format strings never fails
    """

    def filter(self, record: LogRecord) -> bool:
        record.request_id = (
            getattr(record, "request_id", None) or get_request_id() or "-"
        )
        return True


class RedactFilter(logging.Filter):
    SENSITIVE = {"password", "secret", "token", "access_token", "refresh_token", "authorization", "cookie"}

    def filter(self, record: LogRecord) -> bool:
        for key in list(record.__dict__.keys()):
            if key.lower() in self.SENSITIVE:
                record.__dict__[key] = "***REDACTED***"
        return True
