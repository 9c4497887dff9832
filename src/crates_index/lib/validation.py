"""Typed field extraction for decoded index records.

These functions read values out of ``dict`` payloads produced by
``json.loads`` and raise :class:`~crates_index.lib.errors.DecodeError` with
the offending key in the message when a value is missing or has the wrong
type.
"""

from __future__ import annotations

from typing import Any

from crates_index.lib.errors import DecodeError

__all__ = [
    "parse_bool",
    "parse_object",
    "parse_optional_str",
    "parse_str",
    "parse_str_list",
]

_MISSING = object()


def _require(payload: dict[str, Any], key: str) -> Any:
    value = payload.get(key, _MISSING)
    if value is _MISSING:
        raise DecodeError(f"missing field `{key}`")
    return value


def parse_str(payload: dict[str, Any], *, key: str) -> str:
    """Extract a required string from *payload* at *key*.

    Raises:
        DecodeError: If the key is missing or the value is not a string.
    """
    raw = _require(payload, key)
    if not isinstance(raw, str):
        raise DecodeError(f"{key} must be a string")
    return raw


def parse_bool(payload: dict[str, Any], *, key: str) -> bool:
    """Extract a required boolean from *payload* at *key*.

    JSON numbers are not accepted in place of ``true``/``false``.
    """
    raw = _require(payload, key)
    if not isinstance(raw, bool):
        raise DecodeError(f"{key} must be a boolean")
    return raw


def parse_str_list(payload: dict[str, Any], *, key: str) -> tuple[str, ...]:
    """Extract a required list of strings, preserving order and duplicates.

    Raises:
        DecodeError: If the key is missing, the value is not a list, or an
            item is not a string.
    """
    raw = _require(payload, key)
    if not isinstance(raw, list):
        raise DecodeError(f"{key} must be a list of strings")
    for value in raw:
        if not isinstance(value, str):
            raise DecodeError(f"{key} must contain only strings")
    return tuple(raw)


def parse_optional_str(payload: dict[str, Any], *, key: str) -> str | None:
    """Extract an optional string; a missing key and ``null`` both give ``None``."""
    raw = payload.get(key)
    if raw is None:
        return None
    if not isinstance(raw, str):
        raise DecodeError(f"{key} must be a string")
    return raw


def parse_object(payload: dict[str, Any], *, key: str) -> dict[str, Any]:
    """Extract a required JSON object from *payload* at *key*."""
    raw = _require(payload, key)
    if not isinstance(raw, dict):
        raise DecodeError(f"{key} must be an object")
    return raw
