# mp_core/scenarios/selectors.py
from __future__ import annotations

from uuid import UUID

from django.db.models import Prefetch, QuerySet

from mp_core.common.exceptions import get_or_not_found
from mp_core.scenarios.models import (
    ScenarioPositionRequirement,
    ScenarioSpecificStaffRequirement,
    SpecificPreference,
    StaffRequirementScenario,
)


def _with_requirements(qs: QuerySet[StaffRequirementScenario]) -> QuerySet[StaffRequirementScenario]:
    return qs.select_related("revenue_level_tier").prefetch_related(
        Prefetch(
            "position_requirements",
            queryset=ScenarioPositionRequirement.objects.select_related("position"),
        ),
        Prefetch(
            "specific_staff_requirements",
            queryset=ScenarioSpecificStaffRequirement.objects.order_by("staff__name", "staff_id"),
        ),
    )


def active_scenarios() -> list[StaffRequirementScenario]:
    """
    Ordered by priority desc, then creation time (display tie-break only).
    """
    qs = StaffRequirementScenario.objects.filter(is_active=True).order_by("-priority", "created_at", "id")
    return list(_with_requirements(qs))


def scenario_by_id(*, scenario_id: UUID) -> StaffRequirementScenario:
    return get_or_not_found(
        _with_requirements(StaffRequirementScenario.objects.all()),
        label="Scenario",
        id=scenario_id,
    )


def active_specific_preferences() -> QuerySet[SpecificPreference]:
    return (
        SpecificPreference.objects.filter(is_active=True)
        .select_related("position", "staff")
        .order_by("created_at", "id")
    )
