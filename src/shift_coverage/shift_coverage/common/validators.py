from __future__ import annotations

from typing import Any, Optional

from ..core.exceptions import ValidationError


def require_non_empty(value: str, field_name: str) -> str:
    if not value or not value.strip():
        raise ValidationError(f"{field_name} must not be empty")
    return value.strip()


def require_positive_id(value: Any, field_name: str) -> int:
    try:
        v = int(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{field_name} is not a valid id")
    if v <= 0:
        raise ValidationError(f"{field_name} is not a valid id")
    return v


def optional_positive_id(value: Any, field_name: str) -> Optional[int]:
    if value is None or value == "":
        return None
    return require_positive_id(value, field_name)


def optional_note(value: Optional[str]) -> Optional[str]:
    return (value or "").strip() or None
