from __future__ import annotations

from typing import Any

from ..core.exceptions import MissingScopeError, ValidationError


def require_non_empty(value: str, field_name: str) -> str:
    if not value or not str(value).strip():
        raise ValidationError(f"{field_name} is required")
    return str(value).strip()


def require_segment(value: Any, field_name: str) -> str:
    """A single path segment: non-blank and free of ``/``."""
    text = "" if value is None else str(value).strip()
    if not text:
        raise MissingScopeError([field_name])
    if "/" in text:
        raise ValidationError(f"{field_name} cannot contain slashes")
    return text


def require_fields(values: dict[str, Any]) -> None:
    """Raise MissingScopeError naming every blank entry."""
    missing = [name for name, value in values.items() if value is None or not str(value).strip()]
    if missing:
        raise MissingScopeError(missing)
