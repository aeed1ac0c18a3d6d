import re
import logging
from contextlib import asynccontextmanager

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from .base import RepositoryError, ValidationFailedError

logger = logging.getLogger(__name__)

# -----------------------
# Column extraction helpers
# -----------------------

_POSTGRES_NOT_NULL = re.compile(r'null value in column "(?P<col>[^"]+)"', re.IGNORECASE)
_POSTGRES_KEY = re.compile(r'key \((?P<cols>[^)]+)\)=', re.IGNORECASE)
_SQLITE_CONSTRAINT = re.compile(r'(?:UNIQUE|NOT NULL|CHECK) constraint failed: (?P<cols>.+)$', re.IGNORECASE)


def extract_columns_from_integrity(exc: IntegrityError) -> list[str] | None:
    """
    Best-effort extraction of column names from the driver message (Postgres, SQLite).

      - 'null value in column "name" violates not-null constraint'
      - 'DETAIL:  Key (name)=(Tom) already exists.'
      - 'NOT NULL constraint failed: cats.name'
    """
    msg = str(exc.orig) if exc.orig is not None else str(exc)

    m = _POSTGRES_NOT_NULL.search(msg)
    if m:
        return [m.group("col")]

    m = _POSTGRES_KEY.search(msg)
    if m:
        return [c.strip().strip('"') for c in m.group("cols").split(",")]

    m = _SQLITE_CONSTRAINT.search(msg)
    if m:
        return [c.split(".")[-1].strip() for c in re.split(r",\s*", m.group("cols"))]

    return None


def raise_mapped_integrity_error(exc: IntegrityError, model_name: str | None = None) -> None:
    """
    Map a SQLAlchemy IntegrityError to ValidationFailedError and raise it.

    The database rejected the entity, which from the caller's point of view is
    the same outcome as a failed pre-write validation.
    """
    columns = extract_columns_from_integrity(exc)
    model_part = model_name or "Record"

    logger.info(
        "mapper.integrity_violation",
        extra={"model": model_part, "fields": columns},
    )
    # raw driver text stays at DEBUG only
    logger.debug("mapper.integrity_raw", extra={"model": model_part, "raw": str(exc.orig)})

    if columns:
        raise ValidationFailedError(
            f"{model_part} was rejected by the database for field(s): {', '.join(columns)}",
            fields=columns,
            errors={c: "is invalid" for c in columns},
        ) from exc
    raise ValidationFailedError(f"{model_part} was rejected by the database.") from exc


@asynccontextmanager
async def db_error_handler(db: AsyncSession, model_name: str | None = None):
    """
    Usage:
        async with db_error_handler(self.db, self.model.__name__):
            ... DB writes that may raise IntegrityError ...

    Rolls back on error and raises a mapped app-level exception.
    """
    try:
        yield
    except IntegrityError as exc:
        try:
            await db.rollback()
        except Exception:
            logger.exception("Failed to rollback session after IntegrityError", extra={"model": model_name})
        raise_mapped_integrity_error(exc, model_name)
    except RepositoryError:
        await db.rollback()
        raise
    except Exception as exc:
        try:
            await db.rollback()
        except Exception:
            logger.exception("Failed to rollback session after unexpected error", extra={"model": model_name})

        logger.exception("Unexpected DB error for %s", model_name, extra={"model": model_name})
        raise RepositoryError(f"Failed to operate on {model_name or 'database'}") from exc
