from __future__ import annotations

from datetime import date, datetime
from enum import Enum
from typing import Any, Optional

from ..core.exceptions import ValidationError


def parse_timestamp(value: Any) -> Optional[datetime]:
    """Accept a datetime or an ISO string; anything else is treated as missing."""
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value
    if isinstance(value, str):
        try:
            return datetime.fromisoformat(value.replace("Z", "+00:00"))
        except ValueError:
            raise ValidationError(f"Invalid timestamp: {value!r}")
    return None


def compact(document: dict[str, Any]) -> dict[str, Any]:
    """Drop None values; document stores do not keep explicit nulls."""
    return {k: v for k, v in document.items() if v is not None}


def jsonable(value: Any) -> Any:
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, dict):
        return {str(k): jsonable(v) for k, v in value.items()}
    if isinstance(value, (list, tuple, set)):
        return [jsonable(v) for v in value]
    return value
