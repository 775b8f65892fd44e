"""
Typed access to flattened event payloads.

Payload fields are optional and loosely typed: integers usually arrive as
decimal strings, principals as plain strings, optionals still wrapped in
a ``{"type", "value"}`` node. These accessors own the rule that a missing
or unusable field falls back to the caller's default.
"""

from __future__ import annotations

from typing import Any


def _unwrap(value: Any) -> Any:
    """Strip remaining ``{"type", "value"}`` wrappers."""
    while isinstance(value, dict) and "value" in value:
        value = value["value"]
    return value


def get_uint(record: dict[str, Any], field: str, default: int = 0) -> int:
    """Read a non-negative integer field, falling back to ``default``."""
    value = _unwrap(record.get(field))
    if isinstance(value, bool) or value is None:
        return default
    if isinstance(value, int):
        return value if value >= 0 else default
    if isinstance(value, str):
        text = value.strip()
        if text.startswith("u"):
            text = text[1:]
        if text.isdigit():
            return int(text)
    return default


def get_str(record: dict[str, Any], field: str, default: str = "") -> str:
    """Read a text field; empty or missing values fall back to ``default``."""
    value = _unwrap(record.get(field))
    if value is None or value == "":
        return default
    if isinstance(value, str):
        return value
    return str(value)


def get_principal(record: dict[str, Any], field: str) -> str:
    """Read a principal field, empty string when absent."""
    return get_optional_principal(record, field) or ""


def get_optional_principal(record: dict[str, Any], field: str) -> str | None:
    """Read a principal field that may be absent or wrapped in an optional."""
    value = _unwrap(record.get(field))
    if not isinstance(value, str) or value in ("", "none"):
        return None
    return value


def get_bool(record: dict[str, Any], field: str, default: bool = False) -> bool:
    """Read a boolean field; the strings ``"true"``/``"false"`` are accepted."""
    value = _unwrap(record.get(field))
    if isinstance(value, bool):
        return value
    if value == "true":
        return True
    if value == "false":
        return False
    return default


def get_tag(record: dict[str, Any]) -> str | None:
    """Read the mandatory ``event`` tag of a payload."""
    value = _unwrap(record.get("event"))
    if isinstance(value, str) and value:
        return value
    return None
