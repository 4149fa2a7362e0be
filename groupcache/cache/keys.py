"""Deterministic cache key generation."""

from typing import Any, Mapping
from urllib.parse import quote_plus


def generate_cache_key(template: str, params: Any = None) -> str:
    """Generate a cache key from a group key template and call params.

    Format: {template}|{serialized_params}

    Mapping params are ordered by value (keys travel with their values)
    and serialized as a query string. Scalars are used verbatim.
    Only strings, numbers, booleans, None, mappings and lists/tuples of
    those are accepted, so keys stay stable across processes.

    Args:
        template: Key template of the cache group
        params: Mapping of params, or a scalar/string

    Returns:
        Deterministic cache key string

    Raises:
        TypeError: If a param value is of any other type
    """
    if isinstance(params, Mapping):
        ordered = sorted(params.items(), key=lambda item: _sort_value(item[1]))
        serialized = build_query(ordered)
    elif params is None:
        serialized = ""
    else:
        serialized = _scalar(params)

    return f"{template}|{serialized}"


def build_query(items: Any, prefix: str = "") -> str:
    """Serialize key/value pairs as a URL query string.

    Nested mappings and sequences use bracket notation (``a[b]=c``),
    booleans render as ``1``/``0`` and ``None`` values are left out.
    """
    if isinstance(items, Mapping):
        items = items.items()

    parts = []
    for key, value in items:
        name = f"{prefix}[{key}]" if prefix else str(key)

        if value is None:
            continue
        if isinstance(value, Mapping):
            nested = build_query(value, name)
        elif isinstance(value, (list, tuple)):
            nested = build_query(enumerate(value), name)
        else:
            nested = f"{quote_plus(name)}={quote_plus(_scalar(value))}"

        if nested:
            parts.append(nested)

    return "&".join(parts)


def _scalar(value: Any) -> str:
    if isinstance(value, bool):
        return "1" if value else "0"
    if isinstance(value, (str, int, float)):
        return str(value)
    raise TypeError(f"Unsupported cache key param type: {type(value).__name__}")


def _sort_value(value: Any) -> tuple:
    # Numbers sort before strings, containers last
    if isinstance(value, (bool, int, float)):
        return (0, value, "")
    if isinstance(value, str):
        return (1, 0, value)
    if value is None:
        return (1, 0, "")
    if isinstance(value, Mapping):
        return (2, 0, build_query(value))
    if isinstance(value, (list, tuple)):
        return (2, 0, build_query(enumerate(value)))
    raise TypeError(f"Unsupported cache key param type: {type(value).__name__}")
