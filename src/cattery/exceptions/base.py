"""
Application-level exceptions.

Every exception here carries a client-safe message plus optional structured
context, and knows how to present itself as an HTTP response:

    - message: human-friendly message (safe to show to clients)
    - fields: optional list of field names related to the error (e.g. ['name'])
    - constraint: optional DB constraint name (for logs only, never in payloads)
    - error_code: canonical short code (e.g. 'not_found') used by clients

Repositories raise `RepositoryError` and its subclasses; request parameter
handling raises `ParameterMissingError`. The FastAPI handlers in
`cattery.api.error_handlers` only call `to_payload()` and `http_status()`.
"""

from typing import Iterable


class AppError(Exception):
    """
    Base exception for errors surfaced to HTTP clients.
    """

    # Map canonical error_code -> default HTTP status.
    ERROR_CODE_TO_STATUS = {
        "not_found": 404,
        "invalid_field": 422,
        "validation_failed": 422,
        "parameter_missing": 400,
        # fallback: 400 for anything without a known code
    }

    def __init__(self, message: str, *, fields: Iterable[str] | None = None,
                 constraint: str | None = None, error_code: str | None = None):
        super().__init__(message)
        self.message = message
        self.fields = list(fields) if fields else None
        self.constraint = constraint
        self.error_code = error_code

    def __str__(self) -> str:
        base = self.message
        parts = []
        if self.fields:
            parts.append(f"fields: {', '.join(self.fields)}")
        if self.constraint:
            parts.append(f"constraint: {self.constraint}")
        if self.error_code:
            parts.append(f"code: {self.error_code}")
        if parts:
            return f"{base} ({'; '.join(parts)})"
        return base

    def to_payload(self) -> dict:
        """
        Return a JSON-serializable dict suitable for HTTP responses:

            {
                "detail": "Cat with ID 7 not found",
                "code": "not_found",        # optional
                "fields": ["id"],           # optional
            }

        `constraint` is deliberately left out.
        """
        payload = {"detail": self.message}
        if self.error_code:
            payload["code"] = self.error_code
        if self.fields:
            payload["fields"] = list(self.fields)
        return payload

    def http_status(self) -> int:
        if self.error_code:
            return self.ERROR_CODE_TO_STATUS.get(self.error_code, 400)
        return 400


class RepositoryError(AppError):
    """Base exception for persistence-layer errors."""


class NotFoundError(RepositoryError):
    def __init__(self, message: str = "Not found", *, fields: Iterable[str] | None = None):
        super().__init__(message, fields=fields, error_code="not_found")


class InvalidFieldError(RepositoryError):
    """Raised when the caller passes unexpected/unknown fields."""

    def __init__(self, message: str, *, fields: Iterable[str] | None = None):
        super().__init__(message, fields=fields, error_code="invalid_field")


class ValidationFailedError(RepositoryError):
    """
    Raised when an entity's values are rejected before (or while) being written:
    missing required values, values too long for their column, wrong types,
    or a database integrity violation.

    `errors` maps each offending field to a short message for form rendering.
    """

    def __init__(self, message: str, *, fields: Iterable[str] | None = None,
                 constraint: str | None = None, errors: dict[str, str] | None = None):
        super().__init__(message, fields=fields, constraint=constraint, error_code="validation_failed")
        self.errors = dict(errors) if errors else {}

    def messages(self) -> list[str]:
        """Return one human-readable line per failed field, or the overall message."""
        if not self.errors:
            return [self.message]
        return [f"{field.capitalize()} {msg}" for field, msg in self.errors.items()]


class ParameterMissingError(AppError):
    """Raised when a required top-level request parameter is absent or empty."""

    def __init__(self, param: str):
        super().__init__(
            f"param is missing or the value is empty: {param}",
            fields=[param],
            error_code="parameter_missing",
        )
        self.param = param


__all__ = [
    "AppError",
    "RepositoryError",
    "NotFoundError",
    "InvalidFieldError",
    "ValidationFailedError",
    "ParameterMissingError",
]
