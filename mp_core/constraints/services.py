# mp_core/constraints/services.py
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Iterable, Sequence
from uuid import UUID

from django.db import transaction
from rest_framework.exceptions import ValidationError

from mp_core.audit.services import AuditService
from mp_core.branches.models import Branch, BranchType, StaffGroup
from mp_core.common.dates import is_valid_day_of_week
from mp_core.common.exceptions import get_or_not_found
from mp_core.common.values import coerce_uuid, is_count
from mp_core.constraints.models import (
    BranchConstraint,
    BranchConstraintStaffGroup,
    BranchTypeConstraint,
    BranchTypeConstraintStaffGroup,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class StaffGroupRequirementInput:
    staff_group_id: UUID
    minimum_count: int


@dataclass(frozen=True)
class DayConstraintInput:
    day_of_week: int
    requirements: Sequence[StaffGroupRequirementInput] = field(default_factory=tuple)


def _validate_days(days: Sequence[DayConstraintInput]) -> None:
    """
    Whole-payload validation. Nothing is written unless every day is valid.
    """
    errors: dict[str, list[str]] = {}

    def add(key: str, msg: str) -> None:
        errors.setdefault(key, []).append(msg)

    seen_days: set[int] = set()
    group_ids: set[UUID] = set()

    for day in days:
        if not is_valid_day_of_week(day.day_of_week):
            add("day_of_week", f"Must be 0-6, got {day.day_of_week!r}.")
        elif day.day_of_week in seen_days:
            add("day_of_week", f"Day {day.day_of_week} supplied more than once.")
        else:
            seen_days.add(day.day_of_week)

        seen_groups: set[UUID] = set()
        for req in day.requirements:
            if not is_count(req.minimum_count):
                add("minimum_count", f"Must be an integer >= 0 (day {day.day_of_week}).")
            try:
                gid = coerce_uuid(req.staff_group_id, "staff_group_id")
            except ValidationError:
                add("staff_group_id", f"Invalid staff group id {req.staff_group_id!r}.")
                continue
            if gid in seen_groups:
                add("staff_group_id", f"Staff group {gid} repeated for day {day.day_of_week}.")
            seen_groups.add(gid)
            group_ids.add(gid)

    if group_ids:
        found = {g.id: g for g in StaffGroup.objects.filter(id__in=list(group_ids))}
        for gid in sorted(group_ids, key=str):
            group = found.get(gid)
            if group is None:
                add("staff_group_id", f"Unknown staff group {gid}.")
            elif not group.is_active:
                add("staff_group_id", f"Staff group '{group.name}' is inactive.")

    if errors:
        raise ValidationError(errors)


def _day_numbers(days: Iterable[DayConstraintInput]) -> list[int]:
    return sorted(d.day_of_week for d in days)


class ConstraintService:
    @staticmethod
    @transaction.atomic
    def update_branch_constraints(
        *,
        branch_id: UUID,
        days: Sequence[DayConstraintInput],
        actor_user_id: int | None = None,
    ) -> list[BranchConstraint]:
        """
        Replace the branch's override rows for the supplied days.
        Rows are always flagged is_overridden and stamped with the branch's
        current type (None when the branch has no type). An empty requirement
        list is stored as an override too.
        """
        branch = get_or_not_found(Branch.objects.select_for_update(), label="Branch", id=branch_id)
        _validate_days(days)
        day_numbers = _day_numbers(days)

        BranchConstraint.objects.filter(branch=branch, day_of_week__in=day_numbers).delete()

        constraints = BranchConstraint.objects.bulk_create(
            [
                BranchConstraint(
                    branch=branch,
                    day_of_week=d.day_of_week,
                    is_overridden=True,
                    inherited_from_branch_type_id=branch.branch_type_id,
                )
                for d in days
            ]
        )
        by_day = {c.day_of_week: c for c in constraints}
        BranchConstraintStaffGroup.objects.bulk_create(
            [
                BranchConstraintStaffGroup(
                    constraint=by_day[d.day_of_week],
                    staff_group_id=r.staff_group_id,
                    minimum_count=r.minimum_count,
                )
                for d in days
                for r in d.requirements
            ]
        )

        AuditService.log(
            event_code="constraints.branch_replaced",
            entity_type="Branch",
            entity_id=branch.id,
            branch_id=branch.id,
            actor_user_id=actor_user_id,
            metadata={
                "days": day_numbers,
                "inherited_from_branch_type_id": branch.branch_type_id,
            },
        )
        logger.info("Branch constraints replaced branch=%s days=%s", branch.code, day_numbers)
        return sorted(constraints, key=lambda c: c.day_of_week)

    @staticmethod
    @transaction.atomic
    def reset_branch_constraints(
        *,
        branch_id: UUID,
        days: Sequence[int],
        actor_user_id: int | None = None,
    ) -> int:
        """
        Drop override rows so the given days inherit the branch-type template again.
        Returns the number of constraint rows removed.
        """
        branch = get_or_not_found(Branch.objects.select_for_update(), label="Branch", id=branch_id)
        bad = [d for d in days if not is_valid_day_of_week(d)]
        if bad:
            raise ValidationError({"day_of_week": f"Must be 0-6, got {bad}."})

        removed = BranchConstraint.objects.filter(branch=branch, day_of_week__in=list(days)).count()
        BranchConstraint.objects.filter(branch=branch, day_of_week__in=list(days)).delete()

        AuditService.log(
            event_code="constraints.branch_reset",
            entity_type="Branch",
            entity_id=branch.id,
            branch_id=branch.id,
            actor_user_id=actor_user_id,
            metadata={"days": sorted(set(days)), "removed": removed},
        )
        logger.info("Branch constraints reset branch=%s days=%s removed=%s", branch.code, sorted(set(days)), removed)
        return removed

    @staticmethod
    @transaction.atomic
    def update_branch_type_constraints(
        *,
        branch_type_id: UUID,
        days: Sequence[DayConstraintInput],
        actor_user_id: int | None = None,
    ) -> list[BranchTypeConstraint]:
        branch_type = get_or_not_found(
            BranchType.objects.select_for_update(), label="Branch type", id=branch_type_id
        )
        _validate_days(days)
        day_numbers = _day_numbers(days)

        BranchTypeConstraint.objects.filter(branch_type=branch_type, day_of_week__in=day_numbers).delete()

        templates = BranchTypeConstraint.objects.bulk_create(
            [BranchTypeConstraint(branch_type=branch_type, day_of_week=d.day_of_week) for d in days]
        )
        by_day = {t.day_of_week: t for t in templates}
        BranchTypeConstraintStaffGroup.objects.bulk_create(
            [
                BranchTypeConstraintStaffGroup(
                    constraint=by_day[d.day_of_week],
                    staff_group_id=r.staff_group_id,
                    minimum_count=r.minimum_count,
                )
                for d in days
                for r in d.requirements
            ]
        )

        AuditService.log(
            event_code="constraints.branch_type_replaced",
            entity_type="BranchType",
            entity_id=branch_type.id,
            actor_user_id=actor_user_id,
            metadata={"days": day_numbers},
        )
        logger.info("Branch type constraints replaced type=%s days=%s", branch_type.name, day_numbers)
        return sorted(templates, key=lambda t: t.day_of_week)
