# mp_core/constraints/models.py
from __future__ import annotations

from django.db import models

from mp_core.branches.models import Branch, BranchType, StaffGroup
from mp_core.common.models import DayOfWeek, UUIDModel


class BranchTypeConstraint(UUIDModel):
    """
    Template minimums for every branch of a type on one day of week.
    Replaced in bulk by ConstraintService.update_branch_type_constraints.
    """
    branch_type = models.ForeignKey(BranchType, on_delete=models.CASCADE, related_name="constraints")
    day_of_week = models.PositiveSmallIntegerField(choices=DayOfWeek.choices)

    class Meta:
        db_table = "constraints_branch_type_constraint"
        constraints = [
            models.UniqueConstraint(fields=["branch_type", "day_of_week"], name="uq_branch_type_constraint_day"),
        ]


class BranchTypeConstraintStaffGroup(UUIDModel):
    constraint = models.ForeignKey(
        BranchTypeConstraint,
        on_delete=models.CASCADE,
        related_name="staff_group_requirements",
    )
    staff_group = models.ForeignKey(StaffGroup, on_delete=models.PROTECT, related_name="+")
    minimum_count = models.PositiveIntegerField(default=0)

    class Meta:
        db_table = "constraints_branch_type_constraint_staff_group"
        constraints = [
            models.UniqueConstraint(fields=["constraint", "staff_group"], name="uq_branch_type_constraint_group"),
        ]


class BranchConstraint(UUIDModel):
    """
    Branch-specific row for one day of week. Only rows flagged is_overridden
    take part in resolution; a branch without a row inherits its type's template.
    """
    branch = models.ForeignKey(Branch, on_delete=models.CASCADE, related_name="constraints")
    day_of_week = models.PositiveSmallIntegerField(choices=DayOfWeek.choices)

    is_overridden = models.BooleanField(default=False)

    # Branch type that was current when the override was written (audit/fallback)
    inherited_from_branch_type = models.ForeignKey(
        BranchType,
        on_delete=models.SET_NULL,
        related_name="+",
        null=True,
        blank=True,
    )

    class Meta:
        db_table = "constraints_branch_constraint"
        constraints = [
            models.UniqueConstraint(fields=["branch", "day_of_week"], name="uq_branch_constraint_day"),
        ]


class BranchConstraintStaffGroup(UUIDModel):
    constraint = models.ForeignKey(
        BranchConstraint,
        on_delete=models.CASCADE,
        related_name="staff_group_requirements",
    )
    staff_group = models.ForeignKey(StaffGroup, on_delete=models.PROTECT, related_name="+")
    minimum_count = models.PositiveIntegerField(default=0)

    class Meta:
        db_table = "constraints_branch_constraint_staff_group"
        constraints = [
            models.UniqueConstraint(fields=["constraint", "staff_group"], name="uq_branch_constraint_group"),
        ]
