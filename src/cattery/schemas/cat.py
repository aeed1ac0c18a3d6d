"""
Allow-list schemas for the Cat resource's write actions.

Each schema lists exactly the fields a client may set through one action.
Anything else the client sends is either dropped (default) or rejected,
depending on `on_unpermitted`; both outcomes are logged.
"""

import logging
from typing import Any, Literal, Mapping

from pydantic import BaseModel, ConfigDict, ValidationError, field_validator

from cattery.exceptions.base import InvalidFieldError, ValidationFailedError
from cattery.validators.normalizers import blank_to_none

logger = logging.getLogger(__name__)


class PermittedParams(BaseModel):
    """
    Base class for per-action allow-lists.
    """

    model_config = ConfigDict(extra="ignore", str_strip_whitespace=True)

    @classmethod
    def from_params(
        cls,
        raw: Mapping[str, Any],
        *,
        on_unpermitted: Literal["drop", "raise"] = "drop",
    ) -> "PermittedParams":
        """
        Validate `raw` against the allow-list.

        Raises:
            InvalidFieldError: if `raw` has keys outside the allow-list and
                `on_unpermitted` is "raise".
            ValidationFailedError: if a permitted value has the wrong type.
        """
        unpermitted = sorted(k for k in raw if k not in cls.model_fields)
        if unpermitted:
            if on_unpermitted == "raise":
                logger.info("params.unpermitted.rejected", extra={"schema": cls.__name__, "keys": unpermitted})
                raise InvalidFieldError(
                    f"Unpermitted parameter(s): {', '.join(unpermitted)}", fields=unpermitted)
            logger.debug("params.unpermitted", extra={"schema": cls.__name__, "keys": unpermitted})

        try:
            return cls.model_validate(dict(raw))
        except ValidationError as exc:
            errors = {}
            for err in exc.errors():
                field = str(err["loc"][0]) if err.get("loc") else "base"
                errors.setdefault(field, "must be text")
            raise ValidationFailedError(
                f"Invalid parameter(s): {', '.join(sorted(errors))}",
                fields=sorted(errors),
                errors=errors,
            ) from exc

    def to_fields(self) -> dict[str, Any]:
        """Return only the fields the client actually sent."""
        return self.model_dump(exclude_unset=True)


class CatCreateParams(PermittedParams):
    """Fields accepted by the create action."""

    name: str | None = None
    color: str | None = None

    @field_validator("name", "color", mode="before")
    def normalize_blank(cls, v):
        return blank_to_none(v)


class CatUpdateParams(PermittedParams):
    """Fields accepted by the update action. A cat's name is fixed once created."""

    color: str | None = None

    @field_validator("color", mode="before")
    def normalize_blank(cls, v):
        return blank_to_none(v)


__all__ = ["PermittedParams", "CatCreateParams", "CatUpdateParams"]
