# mp_core/staffing/selectors.py
from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field
from datetime import date
from typing import Iterable, Mapping
from uuid import UUID

from django.db.models import QuerySet

from mp_core.staffing.models import (
    BranchQuotaSummary,
    PositionQuotaSummary,
    RotationAssignment,
    ScheduleStatus,
    Staff,
    StaffSchedule,
    StaffType,
)


@dataclass(frozen=True)
class StaffingFacts:
    """
    Live staffing for one branch/date, keyed by position id.
    """
    available_local: Mapping[UUID, int] = field(default_factory=dict)
    assigned_rotation: Mapping[UUID, int] = field(default_factory=dict)
    present_staff_ids: frozenset[UUID] = frozenset()

    def local(self, position_id: UUID) -> int:
        return int(self.available_local.get(position_id, 0))

    def rotation(self, position_id: UUID) -> int:
        return int(self.assigned_rotation.get(position_id, 0))

    def present(self, position_id: UUID) -> int:
        return self.local(position_id) + self.rotation(position_id)


def working_local_staff(*, branch_id: UUID, on_date: date) -> QuerySet[StaffSchedule]:
    """
    Home-branch staff whose schedule for the date says working.
    """
    return StaffSchedule.objects.filter(
        date=on_date,
        status=ScheduleStatus.WORKING,
        staff__branch_id=branch_id,
        staff__staff_type=StaffType.BRANCH,
        staff__is_active=True,
    )


def rotation_assignments(*, branch_id: UUID, on_date: date) -> QuerySet[RotationAssignment]:
    return RotationAssignment.objects.filter(branch_id=branch_id, date=on_date, rotation_staff__is_active=True)


def staffing_facts(*, branch_id: UUID, on_date: date) -> StaffingFacts:
    local: Counter = Counter()
    present: set[UUID] = set()
    for staff_id, position_id in working_local_staff(branch_id=branch_id, on_date=on_date).values_list(
        "staff_id", "staff__position_id"
    ):
        local[position_id] += 1
        present.add(staff_id)

    rotation: Counter = Counter()
    for staff_id, covered_position_id, own_position_id in rotation_assignments(
        branch_id=branch_id, on_date=on_date
    ).values_list("rotation_staff_id", "position_id", "rotation_staff__position_id"):
        rotation[covered_position_id or own_position_id] += 1
        present.add(staff_id)

    return StaffingFacts(
        available_local=dict(local),
        assigned_rotation=dict(rotation),
        present_staff_ids=frozenset(present),
    )


def staff_display_names(*, staff_ids: Iterable[UUID]) -> dict[UUID, str]:
    return {s.id: s.display_name for s in Staff.objects.filter(id__in=list(staff_ids))}


def branch_quota_summary(*, branch_id: UUID, on_date: date) -> BranchQuotaSummary | None:
    return BranchQuotaSummary.objects.filter(branch_id=branch_id, date=on_date).first()


def position_quota_summaries(*, branch_id: UUID, on_date: date) -> QuerySet[PositionQuotaSummary]:
    return (
        PositionQuotaSummary.objects.filter(branch_id=branch_id, date=on_date)
        .select_related("position")
        .order_by("position__display_order", "position__name")
    )
