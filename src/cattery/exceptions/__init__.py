from .base import (
    AppError,
    RepositoryError,
    NotFoundError,
    InvalidFieldError,
    ValidationFailedError,
    ParameterMissingError,
)

__all__ = [
    "AppError",
    "RepositoryError",
    "NotFoundError",
    "InvalidFieldError",
    "ValidationFailedError",
    "ParameterMissingError",
]
