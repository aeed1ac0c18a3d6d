"""
Request ID middleware for FastAPI / Starlette.

Each request gets an identifier that is stored in the logging contextvar (see
filters.py) for the duration of the request and echoed back to the client in
the `X-Request-ID` response header.

An incoming `X-Request-ID` is reused when it looks like an opaque token
(letters, digits, dashes, underscores, dots; at most 128 chars); anything else
is replaced with a fresh UUID4 so header values can't inject into log lines.
"""

import re
import uuid
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from .filters import set_request_id, reset_request_id

REQUEST_ID_HEADER = "X-Request-ID"
_VALID_REQUEST_ID = re.compile(r"^[A-Za-z0-9._-]{1,128}$")


class RequestIDMiddleware(BaseHTTPMiddleware):
    """
    Sets a request id for each incoming request.

    Usage:
        app.add_middleware(RequestIDMiddleware)
    """

    async def dispatch(self, request: Request, call_next):
        incoming = request.headers.get(REQUEST_ID_HEADER)
        rid = incoming if incoming and _VALID_REQUEST_ID.match(incoming) else str(uuid.uuid4())

        token = set_request_id(rid)
        try:
            response = await call_next(request)
            response.headers[REQUEST_ID_HEADER] = rid
            return response
        finally:
            reset_request_id(token)
