"""
Small value normalizers shared by settings and request parameter schemas.
"""


def to_uppercase(value: str | None) -> str | None:
    """
    Uppercase a string, passing None through.
    """
    if value is None:
        return None
    return value.upper()


def to_lowercase(value: str | None) -> str | None:
    if value is None:
        return None
    return value.lower()


def blank_to_none(value):
    """
    Strip surrounding whitespace from strings and turn blank strings into None.

    Non-string values are returned unchanged so the caller's type validation
    can reject them.
    """
    if isinstance(value, str):
        value = value.strip()
        return value or None
    return value
