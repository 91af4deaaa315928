# mp_core/constraints/selectors.py
from __future__ import annotations

from uuid import UUID

from django.db.models import Prefetch, QuerySet

from mp_core.constraints.models import (
    BranchConstraint,
    BranchConstraintStaffGroup,
    BranchTypeConstraint,
    BranchTypeConstraintStaffGroup,
)


def overridden_branch_constraints(*, branch_id: UUID) -> QuerySet[BranchConstraint]:
    return (
        BranchConstraint.objects.filter(branch_id=branch_id, is_overridden=True)
        .prefetch_related(
            Prefetch(
                "staff_group_requirements",
                queryset=BranchConstraintStaffGroup.objects.select_related("staff_group").order_by("staff_group__name"),
            )
        )
        .order_by("day_of_week")
    )


def branch_type_constraints(*, branch_type_id: UUID) -> QuerySet[BranchTypeConstraint]:
    return (
        BranchTypeConstraint.objects.filter(branch_type_id=branch_type_id)
        .prefetch_related(
            Prefetch(
                "staff_group_requirements",
                queryset=BranchTypeConstraintStaffGroup.objects.select_related("staff_group").order_by(
                    "staff_group__name"
                ),
            )
        )
        .order_by("day_of_week")
    )
