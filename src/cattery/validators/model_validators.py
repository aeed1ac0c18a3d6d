from typing import Any

from sqlalchemy import String
from sqlalchemy import inspect as sa_inspect


def find_unknown_model_kwargs(model, kwargs: dict) -> list[str]:
    """
    Return list of kwarg keys that are not mapped attributes of the model.
    - model: the SQLAlchemy model class (not instance)
    - kwargs: dict of incoming kwargs to validate
    """
    mapper = sa_inspect(model)
    allowed = {attr.key for attr in mapper.attrs}
    return [k for k in kwargs.keys() if k not in allowed]


def get_required_columns(model) -> list[str]:
    """
    Columns that are NOT NULL and have no server/client default and are not auto PKs.
    """
    cols = []
    for col in model.__table__.columns:
        has_default = col.default is not None or col.server_default is not None
        is_auto_pk = col.primary_key and col.autoincrement in (True, "auto")
        if not col.nullable and not has_default and not is_auto_pk:
            cols.append(col.name)
    return cols


def _is_blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def find_missing_required(model, values: dict) -> list[str]:
    """
    Required columns that are absent from `values`, None, or a blank string.
    """
    return [c for c in get_required_columns(model) if _is_blank(values.get(c))]


def find_overlong_strings(model, values: dict) -> dict[str, int]:
    """
    Return {column: max_length} for string values longer than their column allows.
    """
    overlong = {}
    for col in model.__table__.columns:
        value = values.get(col.name)
        length = getattr(col.type, "length", None)
        if isinstance(col.type, String) and length and isinstance(value, str) and len(value) > length:
            overlong[col.name] = length
    return overlong


def collect_validation_errors(model, values: dict, *, partial: bool = False) -> dict[str, str]:
    """
    Run the column-level checks and return {field: message}.

    With `partial=True` only the keys present in `values` are checked for
    blankness (used for updates, where absent keys keep their stored value).
    """
    errors: dict[str, str] = {}

    if partial:
        missing = [c for c in get_required_columns(model) if c in values and _is_blank(values[c])]
    else:
        missing = find_missing_required(model, values)
    for name in missing:
        errors[name] = "can't be blank"

    for name, length in find_overlong_strings(model, values).items():
        errors.setdefault(name, f"is too long (maximum is {length} characters)")

    return errors


def column_values(entity) -> dict:
    """Snapshot an entity's mapped column attributes as a plain dict."""
    mapper = sa_inspect(type(entity))
    return {attr.key: getattr(entity, attr.key) for attr in mapper.column_attrs}
