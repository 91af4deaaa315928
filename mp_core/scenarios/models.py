# mp_core/scenarios/models.py
from __future__ import annotations

from django.db import models

from mp_core.branches.models import Branch, Position
from mp_core.common.models import DayOfWeek, UUIDModel
from mp_core.doctors.models import Doctor
from mp_core.revenue.models import RevenueLevelTier
from mp_core.staffing.models import Staff


class StaffRequirementScenario(UUIDModel):
    """
    Conditional staffing rule. Every nullable predicate is a wildcard when empty.
    Higher priority is applied first.
    """
    scenario_name = models.CharField(max_length=100)
    description = models.TextField(blank=True, default="")

    # Predicates
    doctor = models.ForeignKey(Doctor, on_delete=models.CASCADE, related_name="+", null=True, blank=True)
    branch = models.ForeignKey(Branch, on_delete=models.CASCADE, related_name="+", null=True, blank=True)
    revenue_level_tier = models.ForeignKey(
        RevenueLevelTier,
        on_delete=models.SET_NULL,
        related_name="+",
        null=True,
        blank=True,
    )
    min_revenue = models.DecimalField(max_digits=14, decimal_places=2, null=True, blank=True)
    max_revenue = models.DecimalField(max_digits=14, decimal_places=2, null=True, blank=True)
    doctor_count = models.PositiveIntegerField(null=True, blank=True)
    min_doctor_count = models.PositiveIntegerField(null=True, blank=True)
    day_of_week = models.PositiveSmallIntegerField(choices=DayOfWeek.choices, null=True, blank=True)

    # Which revenue figure the tier/band predicates read
    use_day_of_week_revenue = models.BooleanField(default=False)
    use_specific_date_revenue = models.BooleanField(default=False)

    is_default = models.BooleanField(default=False)
    is_active = models.BooleanField(default=True, db_index=True)
    priority = models.IntegerField(default=0, db_index=True)

    class Meta:
        db_table = "scenarios_staff_requirement_scenario"
        ordering = ["-priority", "created_at"]

    def __str__(self) -> str:
        return self.scenario_name


class ScenarioPositionRequirement(UUIDModel):
    scenario = models.ForeignKey(
        StaffRequirementScenario,
        on_delete=models.CASCADE,
        related_name="position_requirements",
    )
    position = models.ForeignKey(Position, on_delete=models.PROTECT, related_name="scenario_requirements")

    preferred_staff = models.PositiveIntegerField(default=0)
    minimum_staff = models.PositiveIntegerField(default=0)
    # True: replace the running requirement and stop; False: raise it to these values
    override_base = models.BooleanField(default=False)

    class Meta:
        db_table = "scenarios_position_requirement"
        constraints = [
            models.UniqueConstraint(fields=["scenario", "position"], name="uq_scenario_position_requirement"),
        ]


class ScenarioSpecificStaffRequirement(UUIDModel):
    """
    Named individual who must be present when the scenario applies.
    """
    scenario = models.ForeignKey(
        StaffRequirementScenario,
        on_delete=models.CASCADE,
        related_name="specific_staff_requirements",
    )
    staff = models.ForeignKey(Staff, on_delete=models.CASCADE, related_name="scenario_requirements")

    class Meta:
        db_table = "scenarios_specific_staff_requirement"
        constraints = [
            models.UniqueConstraint(fields=["scenario", "staff"], name="uq_scenario_specific_staff"),
        ]


class PreferenceType(models.TextChoices):
    POSITION_COUNT = "position_count", "Position count"
    STAFF_NAME = "staff_name", "Staff name"


class SpecificPreference(UUIDModel):
    """
    Ad-hoc staffing preference. branch/doctor/day_of_week are wildcards when empty.
    position_count carries position + staff_count; staff_name carries staff.
    """
    branch = models.ForeignKey(Branch, on_delete=models.CASCADE, related_name="+", null=True, blank=True)
    doctor = models.ForeignKey(Doctor, on_delete=models.CASCADE, related_name="+", null=True, blank=True)
    day_of_week = models.PositiveSmallIntegerField(choices=DayOfWeek.choices, null=True, blank=True)

    preference_type = models.CharField(max_length=32, choices=PreferenceType.choices)

    position = models.ForeignKey(Position, on_delete=models.CASCADE, related_name="+", null=True, blank=True)
    staff_count = models.PositiveIntegerField(null=True, blank=True)
    staff = models.ForeignKey(Staff, on_delete=models.CASCADE, related_name="+", null=True, blank=True)

    is_active = models.BooleanField(default=True, db_index=True)

    class Meta:
        db_table = "scenarios_specific_preference"
