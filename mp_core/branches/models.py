# mp_core/branches/models.py
from __future__ import annotations

from django.db import models

from mp_core.common.models import UUIDModel


class BranchType(UUIDModel):
    """
    Template grouping for branches. Constraint templates hang off this.
    """
    name = models.CharField(max_length=100, unique=True)
    description = models.CharField(max_length=255, blank=True, default="")

    class Meta:
        db_table = "branches_branch_type"

    def __str__(self) -> str:
        return self.name


class Branch(UUIDModel):
    """
    A physical service location.
    """
    name = models.CharField(max_length=255)
    code = models.SlugField(max_length=32, unique=True)

    branch_type = models.ForeignKey(
        BranchType,
        on_delete=models.SET_NULL,
        related_name="branches",
        null=True,
        blank=True,
    )

    address = models.CharField(max_length=255, blank=True, default="")
    priority = models.IntegerField(default=0)

    class Meta:
        db_table = "branches_branch"
        indexes = [
            models.Index(fields=["branch_type"]),
        ]

    def __str__(self) -> str:
        return f"{self.name} ({self.code})"


class PositionType(models.TextChoices):
    BRANCH = "branch", "Branch"
    ROTATION = "rotation", "Rotation"


class Position(UUIDModel):
    name = models.CharField(max_length=100, unique=True)
    position_type = models.CharField(
        max_length=16,
        choices=PositionType.choices,
        default=PositionType.BRANCH,
        db_index=True,
    )
    display_order = models.IntegerField(default=0)

    class Meta:
        db_table = "branches_position"
        ordering = ["display_order", "name"]

    def __str__(self) -> str:
        return self.name

    @property
    def is_rotation(self) -> bool:
        return self.position_type == PositionType.ROTATION


class PositionQuota(UUIDModel):
    """
    Preferred (designated) and floor (minimum) headcount for a position at a branch.
    Invariant: 0 <= minimum_required <= designated_quota; never for rotation positions.
    Enforced by PositionQuotaService.
    """
    branch = models.ForeignKey(Branch, on_delete=models.CASCADE, related_name="position_quotas")
    position = models.ForeignKey(Position, on_delete=models.PROTECT, related_name="quotas")

    designated_quota = models.PositiveIntegerField(default=0)
    minimum_required = models.PositiveIntegerField(default=0)

    is_active = models.BooleanField(default=True)

    class Meta:
        db_table = "branches_position_quota"
        constraints = [
            models.UniqueConstraint(fields=["branch", "position"], name="uq_position_quota_branch_position"),
        ]
        indexes = [
            models.Index(fields=["branch", "is_active"]),
        ]


class StaffGroup(UUIDModel):
    """
    Named set of substitutable positions used for minimum-headcount constraints.
    """
    name = models.CharField(max_length=100, unique=True)
    description = models.CharField(max_length=255, blank=True, default="")
    is_active = models.BooleanField(default=False, db_index=True)

    positions = models.ManyToManyField(
        Position,
        through="StaffGroupPosition",
        related_name="staff_groups",
    )

    class Meta:
        db_table = "branches_staff_group"

    def __str__(self) -> str:
        return self.name


class StaffGroupPosition(UUIDModel):
    staff_group = models.ForeignKey(StaffGroup, on_delete=models.CASCADE, related_name="memberships")
    position = models.ForeignKey(Position, on_delete=models.CASCADE, related_name="staff_group_memberships")

    class Meta:
        db_table = "branches_staff_group_position"
        constraints = [
            models.UniqueConstraint(fields=["staff_group", "position"], name="uq_staff_group_position"),
        ]
