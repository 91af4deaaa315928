# mp_core/revenue/models.py
from __future__ import annotations

from django.db import models

from mp_core.branches.models import Branch
from mp_core.common.models import DayOfWeek, UUIDModel


class RevenueLevelTier(UUIDModel):
    """
    Revenue band [min_revenue, max_revenue). max_revenue=None is unbounded above.
    """
    level_number = models.PositiveSmallIntegerField(unique=True)
    level_name = models.CharField(max_length=50)

    min_revenue = models.DecimalField(max_digits=14, decimal_places=2)
    max_revenue = models.DecimalField(max_digits=14, decimal_places=2, null=True, blank=True)

    display_order = models.IntegerField(default=0)
    color_code = models.CharField(max_length=16, blank=True, default="")
    description = models.CharField(max_length=255, blank=True, default="")

    class Meta:
        db_table = "revenue_level_tier"
        ordering = ["level_number"]

    def __str__(self) -> str:
        return f"Level {self.level_number} ({self.level_name})"


class RevenueFigures(models.Model):
    """
    Shared revenue columns. The component fields replace the legacy
    expected_revenue, which is still read as a fallback.
    """
    expected_revenue = models.DecimalField(max_digits=14, decimal_places=2, default=0)

    skin_revenue = models.DecimalField(max_digits=14, decimal_places=2, default=0)
    ls_hm_revenue = models.DecimalField(max_digits=14, decimal_places=2, default=0)
    vitamin_cases = models.PositiveIntegerField(default=0)
    slim_pen_cases = models.PositiveIntegerField(default=0)

    class Meta:
        abstract = True


class BranchWeeklyRevenue(UUIDModel, RevenueFigures):
    """
    Expected revenue baseline per branch and day of week.
    """
    branch = models.ForeignKey(Branch, on_delete=models.CASCADE, related_name="weekly_revenues")
    day_of_week = models.PositiveSmallIntegerField(choices=DayOfWeek.choices)

    class Meta:
        db_table = "revenue_branch_weekly"
        constraints = [
            models.UniqueConstraint(fields=["branch", "day_of_week"], name="uq_weekly_revenue_branch_day"),
        ]


class BranchDailyRevenue(UUIDModel, RevenueFigures):
    """
    Revenue for one branch on one calendar date (forecast and/or actual).
    """
    branch = models.ForeignKey(Branch, on_delete=models.CASCADE, related_name="daily_revenues")
    date = models.DateField(db_index=True)
    actual_revenue = models.DecimalField(max_digits=14, decimal_places=2, null=True, blank=True)

    class Meta:
        db_table = "revenue_branch_daily"
        constraints = [
            models.UniqueConstraint(fields=["branch", "date"], name="uq_daily_revenue_branch_date"),
        ]
