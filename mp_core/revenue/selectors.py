# mp_core/revenue/selectors.py
from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Optional, Sequence
from uuid import UUID

from django.conf import settings

from mp_core.common.dates import day_of_week
from mp_core.revenue.models import BranchDailyRevenue, BranchWeeklyRevenue, RevenueLevelTier

ZERO = Decimal("0.00")


@dataclass(frozen=True)
class RevenueFacts:
    """
    Revenue figures a scenario can be tested against for one branch/date.
    specific_date_revenue is None when nothing is recorded for the date.
    """
    day_of_week_revenue: Decimal = ZERO
    specific_date_revenue: Optional[Decimal] = None


def _multiplier(name: str, default: str) -> Decimal:
    return Decimal(str(getattr(settings, name, default)))


def total_revenue_value(row) -> Decimal:
    """
    Weighted sum of the revenue components; case counts are converted with the
    configured multipliers. Falls back to the legacy expected_revenue when the
    components are all zero.
    """
    total = (
        Decimal(row.skin_revenue or 0)
        + Decimal(row.ls_hm_revenue or 0)
        + Decimal(row.vitamin_cases or 0) * _multiplier("REVENUE_VITAMIN_CASE_MULTIPLIER", "1000")
        + Decimal(row.slim_pen_cases or 0) * _multiplier("REVENUE_SLIM_PEN_CASE_MULTIPLIER", "1500")
    )
    if total == 0 and (row.expected_revenue or 0) > 0:
        total = Decimal(row.expected_revenue)
    return total


def day_of_week_revenue(*, branch_id: UUID, dow: int) -> Decimal:
    row = BranchWeeklyRevenue.objects.filter(branch_id=branch_id, day_of_week=dow).first()
    if row is None:
        return ZERO
    return total_revenue_value(row)


def specific_date_revenue(*, branch_id: UUID, on_date: date) -> Optional[Decimal]:
    """
    A positive actual_revenue wins; otherwise the recorded forecast, if any.
    """
    row = BranchDailyRevenue.objects.filter(branch_id=branch_id, date=on_date).first()
    if row is None:
        return None
    if row.actual_revenue is not None and row.actual_revenue > 0:
        return Decimal(row.actual_revenue)
    total = total_revenue_value(row)
    return total if total > 0 else None


def revenue_facts(*, branch_id: UUID, on_date: date) -> RevenueFacts:
    return RevenueFacts(
        day_of_week_revenue=day_of_week_revenue(branch_id=branch_id, dow=day_of_week(on_date)),
        specific_date_revenue=specific_date_revenue(branch_id=branch_id, on_date=on_date),
    )


def list_tiers() -> list[RevenueLevelTier]:
    return list(RevenueLevelTier.objects.order_by("level_number"))


def revenue_in_band(value: Decimal, min_revenue: Optional[Decimal], max_revenue: Optional[Decimal]) -> bool:
    """
    Half-open [min, max); a None bound is open on that side.
    """
    if min_revenue is not None and value < min_revenue:
        return False
    if max_revenue is not None and value >= max_revenue:
        return False
    return True


def tier_for_revenue(tiers: Sequence[RevenueLevelTier], value: Decimal) -> Optional[RevenueLevelTier]:
    """
    Highest level_number whose band contains the value.
    """
    best: Optional[RevenueLevelTier] = None
    for tier in tiers:
        if not revenue_in_band(value, tier.min_revenue, tier.max_revenue):
            continue
        if best is None or tier.level_number > best.level_number:
            best = tier
    return best
