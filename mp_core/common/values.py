# mp_core/common/values.py
from __future__ import annotations

from decimal import Decimal, InvalidOperation
from typing import Any
from uuid import UUID

from rest_framework.exceptions import ValidationError


def coerce_uuid(value: Any, field: str) -> UUID:
    """
    Ids arrive as UUIDs or strings. Anything else is a 400 on `field`.
    """
    if isinstance(value, UUID):
        return value
    try:
        return UUID(str(value))
    except (TypeError, ValueError, AttributeError):
        raise ValidationError({field: "Must be a valid id."})


def to_decimal(value: Any, field: str) -> Decimal:
    try:
        number = value if isinstance(value, Decimal) else Decimal(str(value))
    except (InvalidOperation, ValueError, TypeError):
        raise ValidationError({field: "Invalid decimal value."})
    if not number.is_finite():
        raise ValidationError({field: "Invalid decimal value."})
    return number


def is_count(value: Any) -> bool:
    """Non-negative int. bool is not a count."""
    return isinstance(value, int) and not isinstance(value, bool) and value >= 0
