"""
Deterministic JSON serialization for byte-stable manifests.

Ensures that identical records produce identical lines regardless of
dict ordering or platform differences.
"""

from __future__ import annotations

from typing import Any

import orjson


def canonical_json_dumps(obj: Any) -> str:
    """
    Serialize object to canonical JSON string.

    Guarantees:
    - Sorted dictionary keys
    - UTF-8 output, non-ASCII kept verbatim
    - Control characters (including newlines) escaped, so the result
      always fits on one line

    Args:
        obj: Object to serialize.

    Returns:
        Canonical JSON string.

    Raises:
        TypeError: If the object holds a type orjson cannot encode.

    Examples:
        >>> canonical_json_dumps({"b": 2, "a": 1})
        '{"a":1,"b":2}'
    """
    return orjson.dumps(obj, option=orjson.OPT_SORT_KEYS).decode("utf-8")


def canonical_json_loads(json_str: str | bytes) -> Any:
    """
    Parse JSON string.

    Raises:
        orjson.JSONDecodeError: If the input is not valid JSON.
    """
    return orjson.loads(json_str)
