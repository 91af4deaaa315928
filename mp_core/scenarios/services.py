# mp_core/scenarios/services.py
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Iterable, Optional, Sequence
from uuid import UUID

from django.db import transaction
from rest_framework.exceptions import ValidationError

from mp_core.audit.services import AuditService
from mp_core.branches.models import Branch, Position
from mp_core.common.dates import is_valid_day_of_week
from mp_core.common.exceptions import get_or_not_found
from mp_core.common.values import coerce_uuid, is_count, to_decimal
from mp_core.doctors.models import Doctor
from mp_core.revenue.models import RevenueLevelTier
from mp_core.scenarios.models import (
    PreferenceType,
    ScenarioPositionRequirement,
    ScenarioSpecificStaffRequirement,
    SpecificPreference,
    StaffRequirementScenario,
)
from mp_core.staffing.models import Staff

logger = logging.getLogger(__name__)

# Fields callers may set on a scenario
SCENARIO_FIELDS = (
    "scenario_name",
    "description",
    "doctor_id",
    "branch_id",
    "revenue_level_tier_id",
    "min_revenue",
    "max_revenue",
    "use_day_of_week_revenue",
    "use_specific_date_revenue",
    "doctor_count",
    "min_doctor_count",
    "day_of_week",
    "is_default",
    "is_active",
    "priority",
)

_FK_MODELS = {
    "doctor_id": (Doctor, "Doctor"),
    "branch_id": (Branch, "Branch"),
    "revenue_level_tier_id": (RevenueLevelTier, "Revenue level tier"),
}


@dataclass(frozen=True)
class PositionRequirementInput:
    position_id: UUID
    preferred_staff: int
    minimum_staff: int
    override_base: bool = False


def _validate_scenario_fields(data: dict[str, Any]) -> dict[str, Any]:
    errors: dict[str, str] = {}

    unknown = sorted(set(data) - set(SCENARIO_FIELDS))
    if unknown:
        raise ValidationError({"fields": f"Unknown fields: {', '.join(unknown)}"})

    if "scenario_name" in data:
        name = (data["scenario_name"] or "").strip()
        if not name:
            errors["scenario_name"] = "Scenario name is required."
        elif len(name) > 100:
            errors["scenario_name"] = "At most 100 characters."
        data["scenario_name"] = name

    dow = data.get("day_of_week")
    if dow is not None and not is_valid_day_of_week(dow):
        errors["day_of_week"] = "Must be 0-6 or empty."

    for key in ("doctor_count", "min_doctor_count"):
        value = data.get(key)
        if value is not None and not is_count(value):
            errors[key] = "Must be an integer >= 0 or empty."

    for key in ("min_revenue", "max_revenue"):
        value = data.get(key)
        if value is not None:
            try:
                data[key] = to_decimal(value, key)
            except ValidationError:
                errors[key] = "Invalid decimal value."
                continue
            if data[key] < 0:
                errors[key] = "Must be >= 0."

    for key, (model, label) in _FK_MODELS.items():
        value = data.get(key)
        if value is None:
            continue
        try:
            data[key] = coerce_uuid(value, key)
        except ValidationError:
            errors[key] = "Must be a valid id."
            continue
        if not model.objects.filter(id=data[key]).exists():
            errors[key] = f"{label} not found."

    if errors:
        raise ValidationError(errors)
    return data


def _validate_band(scenario: StaffRequirementScenario) -> None:
    lo, hi = scenario.min_revenue, scenario.max_revenue
    if lo is not None and hi is not None and hi <= lo:
        raise ValidationError({"max_revenue": "Must be greater than min_revenue."})


def _validate_requirements(requirements: Sequence[PositionRequirementInput]) -> list[UUID]:
    """
    Returns the coerced position ids, in input order.
    """
    errors: dict[str, list[str]] = {}
    position_ids: list[UUID] = []
    seen: set[UUID] = set()
    for r in requirements:
        if not (is_count(r.preferred_staff) and is_count(r.minimum_staff)):
            errors.setdefault("staff", []).append(f"Counts must be integers >= 0 (position {r.position_id}).")
        try:
            pid = coerce_uuid(r.position_id, "position_id")
        except ValidationError:
            errors.setdefault("position_id", []).append(f"Invalid position id {r.position_id!r}.")
            continue
        if pid in seen:
            errors.setdefault("position_id", []).append(f"Position {pid} listed more than once.")
        seen.add(pid)
        position_ids.append(pid)

    found = set(Position.objects.filter(id__in=list(seen)).values_list("id", flat=True))
    missing = [str(pid) for pid in seen if pid not in found]
    if missing:
        errors.setdefault("position_id", []).append(f"Unknown positions: {', '.join(sorted(missing))}")

    if errors:
        raise ValidationError(errors)
    return position_ids


class ScenarioService:
    @staticmethod
    @transaction.atomic
    def create(
        *,
        scenario_name: str,
        position_requirements: Sequence[PositionRequirementInput] = (),
        specific_staff_ids: Iterable[UUID] = (),
        actor_user_id: int | None = None,
        **fields,
    ) -> StaffRequirementScenario:
        data = _validate_scenario_fields({"scenario_name": scenario_name, **fields})
        scenario = StaffRequirementScenario(**data)
        _validate_band(scenario)
        scenario.save()

        ScenarioService._replace_position_requirements(scenario, position_requirements)
        ScenarioService._replace_specific_staff(scenario, specific_staff_ids)

        AuditService.log(
            event_code="scenarios.created",
            entity_type="StaffRequirementScenario",
            entity_id=scenario.id,
            branch_id=scenario.branch_id,
            actor_user_id=actor_user_id,
            metadata={"scenario_name": scenario.scenario_name, "priority": scenario.priority},
        )
        logger.info("Scenario created %s (priority %s)", scenario.scenario_name, scenario.priority)
        return scenario

    @staticmethod
    @transaction.atomic
    def update(*, scenario_id: UUID, actor_user_id: int | None = None, **fields) -> StaffRequirementScenario:
        """
        Partial update. Passing None for a predicate turns it into a wildcard.
        """
        scenario = get_or_not_found(
            StaffRequirementScenario.objects.select_for_update(), label="Scenario", id=scenario_id
        )
        data = _validate_scenario_fields(dict(fields))
        for key, value in data.items():
            setattr(scenario, key, value)
        _validate_band(scenario)
        scenario.save()

        AuditService.log(
            event_code="scenarios.updated",
            entity_type="StaffRequirementScenario",
            entity_id=scenario.id,
            branch_id=scenario.branch_id,
            actor_user_id=actor_user_id,
            metadata={"fields": sorted(data)},
        )
        return scenario

    @staticmethod
    @transaction.atomic
    def set_position_requirements(
        *,
        scenario_id: UUID,
        requirements: Sequence[PositionRequirementInput],
        actor_user_id: int | None = None,
    ) -> list[ScenarioPositionRequirement]:
        """
        Bulk replace of the scenario's position requirement set.
        """
        scenario = get_or_not_found(
            StaffRequirementScenario.objects.select_for_update(), label="Scenario", id=scenario_id
        )
        rows = ScenarioService._replace_position_requirements(scenario, requirements)
        AuditService.log(
            event_code="scenarios.position_requirements_replaced",
            entity_type="StaffRequirementScenario",
            entity_id=scenario.id,
            branch_id=scenario.branch_id,
            actor_user_id=actor_user_id,
            metadata={"count": len(rows)},
        )
        return rows

    @staticmethod
    @transaction.atomic
    def set_specific_staff(
        *,
        scenario_id: UUID,
        staff_ids: Iterable[UUID],
        actor_user_id: int | None = None,
    ) -> list[ScenarioSpecificStaffRequirement]:
        scenario = get_or_not_found(
            StaffRequirementScenario.objects.select_for_update(), label="Scenario", id=scenario_id
        )
        rows = ScenarioService._replace_specific_staff(scenario, staff_ids)
        AuditService.log(
            event_code="scenarios.specific_staff_replaced",
            entity_type="StaffRequirementScenario",
            entity_id=scenario.id,
            branch_id=scenario.branch_id,
            actor_user_id=actor_user_id,
            metadata={"count": len(rows)},
        )
        return rows

    @staticmethod
    def _replace_position_requirements(
        scenario: StaffRequirementScenario,
        requirements: Sequence[PositionRequirementInput],
    ) -> list[ScenarioPositionRequirement]:
        position_ids = _validate_requirements(requirements)
        ScenarioPositionRequirement.objects.filter(scenario=scenario).delete()
        return ScenarioPositionRequirement.objects.bulk_create(
            [
                ScenarioPositionRequirement(
                    scenario=scenario,
                    position_id=pid,
                    preferred_staff=r.preferred_staff,
                    minimum_staff=r.minimum_staff,
                    override_base=bool(r.override_base),
                )
                for pid, r in zip(position_ids, requirements)
            ]
        )

    @staticmethod
    def _replace_specific_staff(
        scenario: StaffRequirementScenario,
        staff_ids: Iterable[UUID],
    ) -> list[ScenarioSpecificStaffRequirement]:
        wanted = list(dict.fromkeys(coerce_uuid(sid, "staff_ids") for sid in staff_ids))
        found = set(Staff.objects.filter(id__in=wanted).values_list("id", flat=True))
        missing = [str(sid) for sid in wanted if sid not in found]
        if missing:
            raise ValidationError({"staff_ids": f"Unknown staff: {', '.join(missing)}"})

        ScenarioSpecificStaffRequirement.objects.filter(scenario=scenario).delete()
        return ScenarioSpecificStaffRequirement.objects.bulk_create(
            [ScenarioSpecificStaffRequirement(scenario=scenario, staff_id=sid) for sid in wanted]
        )


class SpecificPreferenceService:
    @staticmethod
    @transaction.atomic
    def create(
        *,
        preference_type: str,
        branch_id: UUID | None = None,
        doctor_id: UUID | None = None,
        day_of_week: int | None = None,
        position_id: UUID | None = None,
        staff_count: int | None = None,
        staff_id: UUID | None = None,
        is_active: bool = True,
    ) -> SpecificPreference:
        errors: dict[str, str] = {}
        if day_of_week is not None and not is_valid_day_of_week(day_of_week):
            errors["day_of_week"] = "Must be 0-6 or empty."

        if preference_type == PreferenceType.POSITION_COUNT:
            if position_id is None:
                errors["position_id"] = "Required for position_count preferences."
            if not is_count(staff_count) or staff_count < 1:
                errors["staff_count"] = "Must be at least 1 for position_count preferences."
        elif preference_type == PreferenceType.STAFF_NAME:
            if staff_id is None:
                errors["staff_id"] = "Required for staff_name preferences."
        else:
            errors["preference_type"] = f"Must be one of {', '.join(PreferenceType.values)}."

        if errors:
            raise ValidationError(errors)

        branch = get_or_not_found(Branch, label="Branch", id=branch_id) if branch_id else None
        doctor = get_or_not_found(Doctor, label="Doctor", id=doctor_id) if doctor_id else None
        position: Optional[Position] = None
        staff: Optional[Staff] = None
        if preference_type == PreferenceType.POSITION_COUNT:
            position = get_or_not_found(Position, label="Position", id=position_id)
        else:
            staff = get_or_not_found(Staff, label="Staff", id=staff_id)
            staff_count = None

        return SpecificPreference.objects.create(
            branch=branch,
            doctor=doctor,
            day_of_week=day_of_week,
            preference_type=preference_type,
            position=position,
            staff_count=staff_count,
            staff=staff,
            is_active=bool(is_active),
        )
