# mp_core/revenue/services.py
from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from uuid import UUID

from django.db import transaction
from rest_framework.exceptions import ValidationError

from mp_core.branches.models import Branch
from mp_core.common.dates import is_valid_day_of_week
from mp_core.common.exceptions import get_or_not_found
from mp_core.common.values import is_count, to_decimal
from mp_core.revenue.models import BranchDailyRevenue, BranchWeeklyRevenue, RevenueLevelTier


@dataclass(frozen=True)
class RevenueInput:
    expected_revenue: Decimal = Decimal("0")
    skin_revenue: Decimal = Decimal("0")
    ls_hm_revenue: Decimal = Decimal("0")
    vitamin_cases: int = 0
    slim_pen_cases: int = 0


def _figures(data: RevenueInput) -> dict:
    out = {
        "expected_revenue": to_decimal(data.expected_revenue, "expected_revenue"),
        "skin_revenue": to_decimal(data.skin_revenue, "skin_revenue"),
        "ls_hm_revenue": to_decimal(data.ls_hm_revenue, "ls_hm_revenue"),
        "vitamin_cases": data.vitamin_cases,
        "slim_pen_cases": data.slim_pen_cases,
    }
    for k, v in out.items():
        if k.endswith("_cases"):
            if not is_count(v):
                raise ValidationError({k: "Must be an integer >= 0"})
        elif v < 0:
            raise ValidationError({k: "Must be >= 0"})
    return out


class RevenueService:
    @staticmethod
    @transaction.atomic
    def set_weekly_revenue(*, branch_id: UUID, entries: dict[int, RevenueInput]) -> list[BranchWeeklyRevenue]:
        branch = get_or_not_found(Branch, label="Branch", id=branch_id)
        bad_days = [d for d in entries if not is_valid_day_of_week(d)]
        if bad_days:
            raise ValidationError({"day_of_week": f"Must be 0-6, got {bad_days}."})

        rows = []
        for dow in sorted(entries):
            row, _ = BranchWeeklyRevenue.objects.update_or_create(
                branch=branch,
                day_of_week=dow,
                defaults=_figures(entries[dow]),
            )
            rows.append(row)
        return rows

    @staticmethod
    @transaction.atomic
    def set_daily_revenue(
        *,
        branch_id: UUID,
        on_date: date,
        figures: RevenueInput = RevenueInput(),
        actual_revenue=None,
    ) -> BranchDailyRevenue:
        branch = get_or_not_found(Branch, label="Branch", id=branch_id)
        defaults = _figures(figures)
        if actual_revenue is not None:
            actual_revenue = to_decimal(actual_revenue, "actual_revenue")
            if actual_revenue < 0:
                raise ValidationError({"actual_revenue": "Must be >= 0"})
        defaults["actual_revenue"] = actual_revenue

        row, _ = BranchDailyRevenue.objects.update_or_create(branch=branch, date=on_date, defaults=defaults)
        return row


class RevenueLevelTierService:
    @staticmethod
    @transaction.atomic
    def upsert(
        *,
        level_number: int,
        level_name: str,
        min_revenue,
        max_revenue=None,
        display_order: int = 0,
        description: str = "",
    ) -> RevenueLevelTier:
        if not 1 <= level_number <= 10:
            raise ValidationError({"level_number": "Must be between 1 and 10."})
        min_revenue = to_decimal(min_revenue, "min_revenue")
        if min_revenue < 0:
            raise ValidationError({"min_revenue": "Must be >= 0"})
        if max_revenue is not None:
            max_revenue = to_decimal(max_revenue, "max_revenue")
            if max_revenue <= min_revenue:
                raise ValidationError({"max_revenue": "Must be greater than min_revenue."})

        tier, _ = RevenueLevelTier.objects.update_or_create(
            level_number=level_number,
            defaults={
                "level_name": (level_name or "").strip() or f"Level {level_number}",
                "min_revenue": min_revenue,
                "max_revenue": max_revenue,
                "display_order": display_order,
                "description": description or "",
            },
        )
        return tier
