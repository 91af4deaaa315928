# mp_core/staffing/models.py
from __future__ import annotations

from django.db import models

from mp_core.branches.models import Branch, Position
from mp_core.common.models import UUIDModel


class StaffType(models.TextChoices):
    BRANCH = "branch", "Branch"
    ROTATION = "rotation", "Rotation"


class Staff(UUIDModel):
    """
    Branch staff belong to a home branch; rotation staff have none and are
    assigned day by day through RotationAssignment.
    """
    name = models.CharField(max_length=255)
    nickname = models.CharField(max_length=64, blank=True, default="")
    staff_type = models.CharField(max_length=16, choices=StaffType.choices, default=StaffType.BRANCH, db_index=True)

    position = models.ForeignKey(Position, on_delete=models.PROTECT, related_name="staff")
    branch = models.ForeignKey(
        Branch,
        on_delete=models.SET_NULL,
        related_name="staff",
        null=True,
        blank=True,
    )

    is_active = models.BooleanField(default=True, db_index=True)

    class Meta:
        db_table = "staffing_staff"
        indexes = [
            models.Index(fields=["branch", "position"]),
        ]

    def __str__(self) -> str:
        return self.display_name

    @property
    def display_name(self) -> str:
        return self.nickname or self.name


class ScheduleStatus(models.TextChoices):
    WORKING = "working", "Working"
    OFF = "off", "Off"
    LEAVE = "leave", "Leave"
    SICK_LEAVE = "sick_leave", "Sick leave"


class StaffSchedule(UUIDModel):
    staff = models.ForeignKey(Staff, on_delete=models.CASCADE, related_name="schedules")
    date = models.DateField(db_index=True)
    status = models.CharField(max_length=16, choices=ScheduleStatus.choices, default=ScheduleStatus.WORKING)

    class Meta:
        db_table = "staffing_staff_schedule"
        constraints = [
            models.UniqueConstraint(fields=["staff", "date"], name="uq_staff_schedule_date"),
        ]


class RotationAssignment(UUIDModel):
    """
    Rotation staff member placed at a branch for one date.
    position is the branch position being covered; when empty the staff
    member's own position counts.
    """
    rotation_staff = models.ForeignKey(Staff, on_delete=models.CASCADE, related_name="rotation_assignments")
    branch = models.ForeignKey(Branch, on_delete=models.CASCADE, related_name="rotation_assignments")
    date = models.DateField(db_index=True)
    position = models.ForeignKey(
        Position,
        on_delete=models.PROTECT,
        related_name="rotation_assignments",
        null=True,
        blank=True,
    )

    class Meta:
        db_table = "staffing_rotation_assignment"
        constraints = [
            models.UniqueConstraint(fields=["rotation_staff", "date"], name="uq_rotation_assignment_staff_date"),
        ]
        indexes = [
            models.Index(fields=["branch", "date"]),
        ]


class BranchQuotaSummary(UUIDModel):
    """
    Derived snapshot written by QuotaSummaryService. Never edited by hand.
    """
    branch = models.ForeignKey(Branch, on_delete=models.CASCADE, related_name="quota_summaries")
    date = models.DateField(db_index=True)

    is_operational = models.BooleanField(default=True)
    total_designated = models.PositiveIntegerField(default=0)
    total_available = models.PositiveIntegerField(default=0)
    total_assigned = models.PositiveIntegerField(default=0)
    total_required = models.PositiveIntegerField(default=0)

    # [{staff_group_id, staff_group_name, minimum_count, present, score, member_positions, satisfied, missing_staff}]
    staff_groups = models.JSONField(default=list)
    missing_required_staff = models.JSONField(default=list)

    class Meta:
        db_table = "staffing_branch_quota_summary"
        constraints = [
            models.UniqueConstraint(fields=["branch", "date"], name="uq_branch_quota_summary_date"),
        ]


class PositionQuotaSummary(UUIDModel):
    branch = models.ForeignKey(Branch, on_delete=models.CASCADE, related_name="position_quota_summaries")
    position = models.ForeignKey(Position, on_delete=models.CASCADE, related_name="quota_summaries")
    date = models.DateField(db_index=True)

    designated_quota = models.PositiveIntegerField(default=0)
    minimum_required = models.PositiveIntegerField(default=0)
    available_local = models.PositiveIntegerField(default=0)
    assigned_rotation = models.PositiveIntegerField(default=0)
    total_assigned = models.PositiveIntegerField(default=0)
    still_required = models.PositiveIntegerField(default=0)

    class Meta:
        db_table = "staffing_position_quota_summary"
        constraints = [
            models.UniqueConstraint(fields=["branch", "position", "date"], name="uq_position_quota_summary_date"),
        ]
