"""Helpers for reshaping provider responses."""

import re
from typing import Any, Mapping

_INDEXED_KEY = re.compile(r"(.+)\[(\d+)\]")


def get_nested_value(data: Any, path: str) -> Any:
    """Get a value from nested dicts using dot notation (`a.b`, `items[0].id`).

    Missing keys, out-of-range indexes and non-container intermediates yield None.
    """
    value = data

    for part in path.split("."):
        if not isinstance(value, Mapping):
            return None

        match = _INDEXED_KEY.fullmatch(part)
        if match:
            key, index = match.groups()
            items = value.get(key)
            if not isinstance(items, list) or int(index) >= len(items):
                return None
            value = items[int(index)]
        else:
            value = value.get(part)

    return value


def count_data_points(data: Any) -> int:
    """Number of top-level keys (or items) in fetched provider data."""
    if isinstance(data, (Mapping, list, tuple)):
        return len(data)
    return 0 if data is None else 1
