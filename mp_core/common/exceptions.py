# mp_core/common/exceptions.py
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Type, TypeVar

from django.db import models
from django.db.models import QuerySet
from rest_framework import status
from rest_framework.exceptions import APIException, NotFound

from mp_core.common.values import coerce_uuid

M = TypeVar("M", bound=models.Model)


class ConflictError(APIException):
    """
    409 Conflict that still flows through DRF's exception handling.
    Use when business rules block a write.
    """
    status_code = status.HTTP_409_CONFLICT
    default_detail = "Conflict."
    default_code = "conflict"

    def __init__(self, detail=None, code=None):
        super().__init__(detail=detail or self.default_detail, code=code or self.default_code)


class CapacityExceeded(ConflictError):
    """
    A write would push a branch past a hard capacity ceiling
    (e.g. doctors per branch per day). Only raised at the write boundary.
    """
    default_detail = "Branch capacity exceeded."
    default_code = "capacity_exceeded"


@dataclass(frozen=True)
class ConfigurationWarning:
    """
    Inconsistent configuration that was recovered locally (e.g. clamped).
    Returned inside results so callers can alert administrators.
    """
    code: str
    message: str
    details: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {"code": self.code, "message": self.message, "details": dict(self.details)}


def get_or_not_found(source: Type[M] | QuerySet[M], *, label: str | None = None, **lookup) -> M:
    """
    Fetch one row or raise NotFound (kept distinct from validation errors).
    Accepts a model class or a prepared queryset. Id lookups are coerced
    first, so a malformed id is a ValidationError rather than a 404 or 500.
    """
    qs = source._default_manager.all() if isinstance(source, type) else source
    name = label or qs.model._meta.verbose_name.title()
    for key, value in lookup.items():
        if key == "id":
            lookup[key] = coerce_uuid(value, f"{name.lower().replace(' ', '_')}_id")
        elif key.endswith("_id"):
            lookup[key] = coerce_uuid(value, key)
    try:
        return qs.get(**lookup)
    except qs.model.DoesNotExist:
        raise NotFound(f"{name} not found.")
