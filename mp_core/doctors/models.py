# mp_core/doctors/models.py
from __future__ import annotations

from django.db import models

from mp_core.branches.models import Branch
from mp_core.common.models import DayOfWeek, UUIDModel


class Doctor(UUIDModel):
    name = models.CharField(max_length=255)
    code = models.SlugField(max_length=32, unique=True)
    is_active = models.BooleanField(default=True, db_index=True)

    class Meta:
        db_table = "doctors_doctor"
        ordering = ["name"]

    def __str__(self) -> str:
        return self.name


class DoctorDefaultSchedule(UUIDModel):
    """
    Recurring weekly assignment: (doctor, day_of_week) -> branch.
    """
    doctor = models.ForeignKey(Doctor, on_delete=models.CASCADE, related_name="default_schedules")
    day_of_week = models.PositiveSmallIntegerField(choices=DayOfWeek.choices)
    branch = models.ForeignKey(Branch, on_delete=models.CASCADE, related_name="doctor_default_schedules")

    class Meta:
        db_table = "doctors_default_schedule"
        constraints = [
            models.UniqueConstraint(fields=["doctor", "day_of_week"], name="uq_doctor_default_schedule_day"),
        ]


class DoctorWeeklyOffDay(UUIDModel):
    """
    Recurring day off. Presence is the whole payload.
    """
    doctor = models.ForeignKey(Doctor, on_delete=models.CASCADE, related_name="weekly_off_days")
    day_of_week = models.PositiveSmallIntegerField(choices=DayOfWeek.choices)

    class Meta:
        db_table = "doctors_weekly_off_day"
        constraints = [
            models.UniqueConstraint(fields=["doctor", "day_of_week"], name="uq_doctor_weekly_off_day"),
        ]


class OverrideType(models.TextChoices):
    WORKING = "working", "Working"
    OFF = "off", "Off"


class DoctorScheduleOverride(UUIDModel):
    """
    Date-specific entry that replaces every recurring rule for that date.
    Invariant: branch is set iff type=working (enforced by DoctorScheduleService).
    """
    doctor = models.ForeignKey(Doctor, on_delete=models.CASCADE, related_name="schedule_overrides")
    date = models.DateField(db_index=True)
    type = models.CharField(max_length=16, choices=OverrideType.choices)
    branch = models.ForeignKey(
        Branch,
        on_delete=models.CASCADE,
        related_name="doctor_overrides",
        null=True,
        blank=True,
    )

    class Meta:
        db_table = "doctors_schedule_override"
        constraints = [
            models.UniqueConstraint(fields=["doctor", "date"], name="uq_doctor_schedule_override_date"),
        ]
        indexes = [
            models.Index(fields=["branch", "date"]),
        ]
