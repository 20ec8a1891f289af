from __future__ import annotations

from enum import Enum
from typing import Any, Type, TypeVar

from ..core.exceptions import ValidationError

E = TypeVar("E", bound=Enum)


def require_non_empty(value: Any, field_name: str) -> str:
    if not isinstance(value, str) or not value.strip():
        raise ValidationError(f"{field_name} is required")
    return value.strip()


def require_min_length(value: str, field_name: str, min_len: int) -> str:
    if not isinstance(value, str) or len(value) < min_len:
        raise ValidationError(f"{field_name} must be at least {min_len} characters")
    return value


def require_int(value: Any, field_name: str, *, min_value: int | None = None, max_value: int | None = None) -> int:
    # bool is an int subclass; true/false is never a valid number here.
    if isinstance(value, bool) or value is None:
        raise ValidationError(f"{field_name} must be an integer")
    try:
        number = int(str(value).strip())
    except ValueError:
        raise ValidationError(f"{field_name} must be an integer")

    if min_value is not None and max_value is not None:
        if not min_value <= number <= max_value:
            raise ValidationError(f"{field_name} must be between {min_value} and {max_value}")
    elif min_value is not None and number < min_value:
        raise ValidationError(f"{field_name} must be at least {min_value}")
    return number


def require_enum(value: Any, enum_cls: Type[E], field_name: str) -> E:
    if isinstance(value, enum_cls):
        return value
    try:
        return enum_cls(value)
    except ValueError:
        allowed = ", ".join(m.value for m in enum_cls)
        raise ValidationError(f"{field_name} must be one of: {allowed}")


def parse_bool(value: Any, field_name: str) -> bool:
    """Accept JSON booleans and the "true"/"false" strings sent by HTML forms."""
    if isinstance(value, bool):
        return value
    if isinstance(value, str) and value.strip().lower() in {"true", "1", "on", "yes"}:
        return True
    if isinstance(value, str) and value.strip().lower() in {"false", "0", "off", "no", ""}:
        return False
    raise ValidationError(f"{field_name} must be a boolean")
