"""
Base repository class providing common database operations.

This class is the reusable foundation for repositories that talk to the
database through SQLAlchemy's async sessions. It covers the operations a
resource handler needs: find all, find by id, create, save, and update an
already-loaded entity.

Repositories `flush()` but never `commit()`: they decide *what* is written,
and the caller (the controller) decides *when* the transaction is final.
A flush is enough to obtain database-assigned primary keys.
"""
from cattery.exceptions.base import (
    RepositoryError,
    NotFoundError,
    InvalidFieldError,
    ValidationFailedError,
)
from cattery.exceptions.mapper import db_error_handler
from cattery.validators.model_validators import (
    find_unknown_model_kwargs,
    collect_validation_errors,
    column_values,
)

import re
import time
from typing import TypeVar, Generic, Type, Any
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from sqlalchemy import inspect as sa_inspect
import logging

from cattery.database.base import Base

# Type variable for the model class
ModelType = TypeVar("ModelType", bound=Base)

logger = logging.getLogger(__name__)

# Integer primary keys: canonical decimal form, signed 64-bit range
_DIGITS = re.compile(r"[0-9]+")
_INT64_MIN = -(2 ** 63)
_INT64_MAX = 2 ** 63 - 1


class BaseRepository(Generic[ModelType]):
    """
    Generic base repository providing common CRUD operations.

    Type Parameters:
        ModelType: The SQLAlchemy model class this repository manages.
    """

    def __init__(self, model: Type[ModelType], db: AsyncSession):
        """
        Initialize the repository.

        Args:
            model: The SQLAlchemy model class (e.g. Cat, not Cat())
            db: The async database session, usually injected per request
        """
        self.model = model
        self.db = db

    # =================================================================================================================
    # Validation helpers
    # =================================================================================================================

    def _reject_unknown(self, kwargs: dict, operation: str) -> None:
        unknown = find_unknown_model_kwargs(self.model, kwargs)
        if unknown:
            # INFO: caller error, expected -> no stack trace
            logger.info(
                f"repo.{operation}.invalid_fields",
                extra={
                    "model": self.model.__name__,
                    "operation": operation,
                    "invalid_fields": sorted(unknown),
                },
            )
            raise InvalidFieldError(
                f"Unknown field(s) for {self.model.__name__}: {', '.join(unknown)}", fields=unknown)

    def _validate(self, values: dict, operation: str, *, partial: bool = False) -> None:
        errors = collect_validation_errors(self.model, values, partial=partial)
        if errors:
            logger.info(
                f"repo.{operation}.validation_failed",
                extra={
                    "model": self.model.__name__,
                    "operation": operation,
                    "invalid_fields": sorted(errors),
                },
            )
            raise ValidationFailedError(
                f"{self.model.__name__} is invalid: {', '.join(sorted(errors))}",
                fields=sorted(errors),
                errors=errors,
            )

    def _coerce_id(self, entity_id: Any) -> Any:
        """
        Convert a raw id (typically a path segment) to the primary key's Python type.

        Integer keys accept ints and plain digit strings only ("0_2", " 2 " and
        "+2" are rejected), and must fit a signed 64-bit column.

        Raises:
            ValueError / TypeError: if the value cannot be converted.
        """
        pk_type = sa_inspect(self.model).primary_key[0].type.python_type
        if isinstance(entity_id, bool) or entity_id is None:
            raise TypeError(f"Invalid id: {entity_id!r}")

        if pk_type is int:
            if isinstance(entity_id, str):
                if not _DIGITS.fullmatch(entity_id):
                    raise ValueError(f"Invalid id: {entity_id!r}")
                entity_id = int(entity_id)
            elif not isinstance(entity_id, int):
                raise TypeError(f"Invalid id: {entity_id!r}")
            if not _INT64_MIN <= entity_id <= _INT64_MAX:
                raise ValueError(f"Id out of range: {entity_id!r}")
            return entity_id

        if isinstance(entity_id, pk_type):
            return entity_id
        return pk_type(entity_id)

    # =================================================================================================================
    # Create / Save
    # =================================================================================================================

    async def create(self, **kwargs) -> ModelType:
        """
        Build, validate and persist a new entity.

        Logging:
        - DEBUG: start event with model name and provided keys (not values).
        - INFO: expected domain errors (unknown fields, failed validation).
        - INFO: success event with created id and duration_ms.

        Raises:
            InvalidFieldError: if a key is not a mapped attribute of the model.
            ValidationFailedError: if required values are missing/blank, too long,
                or the database rejects the row.
            RepositoryError: for unexpected database errors.
        """
        logger.debug(
            "repo.create.start",
            extra={
                "model": self.model.__name__,
                "operation": "create",
                "provided_keys": sorted(kwargs.keys()),
            },
        )

        self._reject_unknown(kwargs, "create")
        self._validate(kwargs, "create")

        start = time.perf_counter()

        async with db_error_handler(self.db, self.model.__name__):
            entity = self.model(**kwargs)
            self.db.add(entity)
            await self.db.flush()
            await self.db.refresh(entity)

        duration_ms = int((time.perf_counter() - start) * 1000)
        logger.info(
            "repo.create.success",
            extra={
                "model": self.model.__name__,
                "operation": "create",
                "id": getattr(entity, "id", None),
                "duration_ms": duration_ms,
            },
        )
        return entity

    async def save(self, entity: ModelType) -> ModelType:
        """
        Validate and persist an entity built by the caller (new or already loaded).

        Returns:
            The same entity, refreshed so database-assigned values (id, timestamps)
            are available.
        """
        self._validate(column_values(entity), "save")

        async with db_error_handler(self.db, self.model.__name__):
            self.db.add(entity)
            await self.db.flush()
            await self.db.refresh(entity)

        logger.debug(
            "repo.save.success",
            extra={"model": self.model.__name__, "operation": "save", "id": getattr(entity, "id", None)},
        )
        return entity

    # =================================================================================================================
    # Read
    # =================================================================================================================

    async def get_by_id(self, entity_id: Any) -> ModelType | None:
        """
        Get an entity by its ID.

        Args:
            entity_id: The primary key value, or anything convertible to it.

        Returns:
            The entity if found, otherwise None (also when the id is malformed).

        Raises:
            RepositoryError: If an error occurs during retrieval.
        """
        try:
            entity_id = self._coerce_id(entity_id)
        except (TypeError, ValueError):
            logger.debug(f"Malformed {self.model.__name__} ID: {entity_id!r}")
            return None

        try:
            entity = await self.db.get(self.model, entity_id)
            logger.debug(f"Retrieved {self.model.__name__} by ID: {entity_id}")
            return entity

        except Exception as e:
            logger.error(
                f"Error retrieving {self.model.__name__} by ID {entity_id}: {e}")
            raise RepositoryError(
                f"Failed to retrieve {self.model.__name__}") from e

    async def get_by_id_or_raise(self, entity_id: Any) -> ModelType:
        """
        Get an entity by its ID or raise NotFoundError.

        Raises:
            NotFoundError: If no entity matches (or the id is malformed).
        """
        entity = await self.get_by_id(entity_id)

        if entity is None:
            raise NotFoundError(
                f"{self.model.__name__} with ID {entity_id} not found", fields=["id"])

        return entity

    async def get_all(
        self,
        offset: int = 0,                # how many records to skip
        limit: int | None = None,       # max number of records to return (None = all)
        order_by: str | None = None     # field to sort results by
    ) -> list[ModelType]:
        """
        Get all entities with optional ordering and pagination.

        Args:
            offset: Number of entities to skip.
            limit: Maximum number of entities to return, or None for no limit.
            order_by: Field name to order results by. Defaults to the primary key.

        Returns:
            A list of model instances (empty if none found).
        """
        try:
            query = select(self.model)
            pk_columns = sa_inspect(self.model).primary_key

            if order_by and hasattr(self.model, order_by):
                query = query.order_by(getattr(self.model, order_by))
                logger.debug(
                    f"Ordering {self.model.__name__} by field: '{order_by}'")
            else:
                if order_by:
                    logger.warning(
                        f"Ignored invalid 'order_by' field: '{order_by}' does not exist on {self.model.__name__}")
                query = query.order_by(*pk_columns)

            if offset:
                query = query.offset(offset)
            if limit is not None:
                query = query.limit(limit)

            result = await self.db.execute(query)
            entities = result.scalars().all()

            logger.debug(
                f"Retrieved {len(entities)} {self.model.__name__} entities")

            return list(entities)

        except Exception as e:
            logger.error(f"Error retrieving all {self.model.__name__}: {e}")
            raise RepositoryError(
                f"Failed to retrieve {self.model.__name__} entities") from e

    # =================================================================================================================
    # Update
    # =================================================================================================================

    async def update_entity(self, entity: ModelType, **kwargs) -> ModelType:
        """
        Apply a partial update to an already-loaded entity.

        None and blank-string values are skipped, so sending an empty field never
        clears a stored value. If nothing remains to change the entity is returned
        untouched and no UPDATE is issued.

        Raises:
            InvalidFieldError: if a key is not a mapped attribute.
            ValidationFailedError: if a value is too long or the database rejects it.
            RepositoryError: for unexpected database errors.
        """
        self._reject_unknown(kwargs, "update")

        update_data = {k: v for k, v in kwargs.items() if v is not None and v != ""}

        if not update_data:
            logger.warning(
                f"No valid data provided for updating {self.model.__name__}")
            return entity

        self._validate(update_data, "update", partial=True)

        async with db_error_handler(self.db, self.model.__name__):
            for field, value in update_data.items():
                setattr(entity, field, value)
            await self.db.flush()
            await self.db.refresh(entity)

        logger.info(
            "repo.update.success",
            extra={
                "model": self.model.__name__,
                "operation": "update",
                "id": getattr(entity, "id", None),
                "updated_fields": sorted(update_data),
            },
        )
        return entity
