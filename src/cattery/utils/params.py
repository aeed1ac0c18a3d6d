"""
Request parameter helpers.

HTML forms send nested resources with bracketed keys:

    cat[name]=Tom&cat[color]=gray&_method=patch

`parse_nested_params` turns those pairs into the nested mapping that JSON
clients send directly:

    {"cat": {"name": "Tom", "color": "gray"}, "_method": "patch"}
"""

import re
import logging
from typing import Any, Iterable, Mapping

from starlette.requests import Request

from cattery.exceptions.base import ParameterMissingError

logger = logging.getLogger(__name__)

# "cat[name]" -> root "cat", path ["name"]; "a[b][c]" -> "a", ["b", "c"]
_BRACKET_KEY = re.compile(r"^(?P<root>[^\[\]]+)(?P<path>(?:\[[^\[\]]*\])+)$")
_BRACKET_PART = re.compile(r"\[([^\[\]]*)\]")


def parse_nested_params(items: Iterable[tuple[str, Any]]) -> dict[str, Any]:
    """
    Build a nested dict from (key, value) pairs using bracket notation.

    - Keys without brackets stay top-level.
    - Later pairs win over earlier ones with the same key.
    - A key that is both a scalar and a nested prefix keeps the nested form.
    - Empty bracket segments (`tags[]`) are dropped, not turned into lists.
    """
    params: dict[str, Any] = {}
    for key, value in items:
        m = _BRACKET_KEY.match(key)
        if not m:
            if not isinstance(params.get(key), dict):
                params[key] = value
            continue

        path = [m.group("root")] + [p for p in _BRACKET_PART.findall(m.group("path")) if p]
        node = params
        for part in path[:-1]:
            child = node.get(part)
            if not isinstance(child, dict):
                child = {}
                node[part] = child
            node = child
        node[path[-1]] = value
    return params


async def read_request_params(request: Request) -> dict[str, Any]:
    """
    Return the request body as a params mapping.

    JSON bodies are used as-is when they decode to an object; form bodies
    (urlencoded or multipart) go through `parse_nested_params`.
    """
    content_type = request.headers.get("content-type", "")
    if content_type.startswith("application/json"):
        try:
            body = await request.json()
        except ValueError:
            logger.info("params.invalid_json", extra={"path": request.url.path})
            return {}
        return body if isinstance(body, dict) else {}

    form = await request.form()
    return parse_nested_params(form.multi_items())


def require_param(params: Mapping[str, Any], key: str) -> dict[str, Any]:
    """
    Return the nested mapping stored under `key`.

    Raises:
        ParameterMissingError: if the key is absent, empty, or not a mapping.
    """
    value = params.get(key)
    if not isinstance(value, Mapping) or not value:
        raise ParameterMissingError(key)
    return dict(value)


def method_override(params: Mapping[str, Any]) -> str | None:
    """
    Return the uppercased `_method` form field, if the client sent one.
    """
    value = params.get("_method")
    if isinstance(value, str) and value.strip():
        return value.strip().upper()
    return None
