# mp_core/scenarios/matching.py
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from typing import Any, Optional, Sequence
from uuid import UUID

from mp_core.branches.selectors import branch_by_id, position_by_id
from mp_core.common.dates import DAY_NAMES, day_of_week
from mp_core.common.predicates import OptionalEquals, evaluate_predicates
from mp_core.common.values import coerce_uuid
from mp_core.doctors.schedule import doctors_for_branch
from mp_core.revenue.models import RevenueLevelTier
from mp_core.revenue.selectors import RevenueFacts, list_tiers, revenue_facts, revenue_in_band, tier_for_revenue
from mp_core.scenarios import selectors
from mp_core.scenarios.models import StaffRequirementScenario

REVENUE_SPECIFIC_DATE = "specific date"
REVENUE_DAY_OF_WEEK = "day-of-week"


@dataclass(frozen=True)
class ScenarioContext:
    """
    Observed facts for one branch/date. doctor_id is set only for a
    doctor-scoped calculation; branch_doctor_ids are the doctors resolved to
    the branch that day.
    """
    branch_id: UUID
    date: date
    doctor_count: int = 0
    branch_doctor_ids: tuple[UUID, ...] = ()
    revenue: RevenueFacts = field(default_factory=RevenueFacts)
    doctor_id: Optional[UUID] = None
    position_id: Optional[UUID] = None

    @property
    def day_of_week(self) -> int:
        return day_of_week(self.date)


@dataclass(frozen=True)
class ScenarioMatch:
    scenario_id: UUID
    scenario_name: str
    priority: int
    matches: bool
    reasons: tuple[str, ...] = ()
    failed: tuple[str, ...] = ()
    scenario: Optional[StaffRequirementScenario] = field(default=None, compare=False, repr=False)

    @property
    def match_reason(self) -> str:
        return "; ".join(self.reasons)

    def to_dict(self) -> dict[str, Any]:
        return {
            "scenario_id": str(self.scenario_id),
            "scenario_name": self.scenario_name,
            "priority": self.priority,
            "matches": self.matches,
            "match_reason": self.match_reason,
            "failed": list(self.failed),
        }


def load_scenario_context(
    *,
    branch_id: UUID,
    on_date: date,
    doctor_id: Optional[UUID] = None,
    position_id: Optional[UUID] = None,
    revenue: Optional[RevenueFacts] = None,
) -> ScenarioContext:
    branch = branch_by_id(branch_id=branch_id)
    if position_id is not None:
        position_id = position_by_id(position_id=position_id).id
    if doctor_id is not None:
        doctor_id = coerce_uuid(doctor_id, "doctor_id")

    doctor_ids = tuple(doctors_for_branch(branch_id=branch.id, on_date=on_date))
    return ScenarioContext(
        branch_id=branch.id,
        date=on_date,
        doctor_count=len(doctor_ids),
        branch_doctor_ids=doctor_ids,
        revenue=revenue if revenue is not None else revenue_facts(branch_id=branch.id, on_date=on_date),
        doctor_id=doctor_id,
        position_id=position_id,
    )


def selected_revenue(scenario: StaffRequirementScenario, revenue: RevenueFacts) -> tuple[Decimal, str]:
    """
    specific-date figure when flagged and present; else weekly when flagged;
    else specific-date if present, weekly otherwise.
    """
    specific = revenue.specific_date_revenue
    if scenario.use_specific_date_revenue and specific is not None:
        return specific, REVENUE_SPECIFIC_DATE
    if scenario.use_day_of_week_revenue:
        return revenue.day_of_week_revenue, REVENUE_DAY_OF_WEEK
    if specific is not None:
        return specific, REVENUE_SPECIFIC_DATE
    return revenue.day_of_week_revenue, REVENUE_DAY_OF_WEEK


def _observed_doctor(scenario: StaffRequirementScenario, ctx: ScenarioContext) -> Optional[UUID]:
    if ctx.doctor_id is not None:
        return ctx.doctor_id
    if scenario.doctor_id is not None and scenario.doctor_id in ctx.branch_doctor_ids:
        return scenario.doctor_id
    return None


def _has_position(scenario: StaffRequirementScenario, position_id: UUID) -> bool:
    return any(r.position_id == position_id for r in scenario.position_requirements.all())


def _reasons(scenario: StaffRequirementScenario, ctx: ScenarioContext, revenue_source: str) -> list[str]:
    reasons: list[str] = []

    if scenario.branch_id is not None:
        reasons.append("Branch matches")
    if scenario.doctor_id is not None:
        reasons.append("Doctor on duty")

    tier = scenario.revenue_level_tier
    if tier is not None:
        reasons.append(f"Revenue Level {tier.level_number} ({tier.level_name}) from {revenue_source} revenue")

    lo, hi = scenario.min_revenue, scenario.max_revenue
    if lo is not None and hi is not None:
        reasons.append(f"Revenue {lo:.0f}-{hi:.0f} ({revenue_source})")
    elif lo is not None:
        reasons.append(f"Revenue >= {lo:.0f} ({revenue_source})")
    elif hi is not None:
        reasons.append(f"Revenue < {hi:.0f} ({revenue_source})")

    if scenario.doctor_count is not None:
        reasons.append(f"Doctors = {scenario.doctor_count}")
    if scenario.min_doctor_count is not None:
        reasons.append(f"Doctors >= {scenario.min_doctor_count}")
    if scenario.day_of_week is not None:
        reasons.append(f"Day: {DAY_NAMES[scenario.day_of_week]}")

    if not reasons:
        reasons.append("Applies to every context")
    return reasons


def match_scenario(
    scenario: StaffRequirementScenario,
    ctx: ScenarioContext,
    tiers: Sequence[RevenueLevelTier],
) -> ScenarioMatch:
    """
    Evaluate one scenario against the context. All predicates are checked so a
    non-match lists every failing field.
    """
    predicates = [
        OptionalEquals("doctor_id", scenario.doctor_id),
        OptionalEquals("branch_id", scenario.branch_id),
        OptionalEquals("day_of_week", scenario.day_of_week),
    ]
    observed = {
        "doctor_id": _observed_doctor(scenario, ctx),
        "branch_id": ctx.branch_id,
        "day_of_week": ctx.day_of_week,
    }
    result = evaluate_predicates(predicates, observed, is_active=scenario.is_active)
    failed = list(result.failed_fields)

    revenue_value, revenue_source = selected_revenue(scenario, ctx.revenue)

    if scenario.revenue_level_tier_id is not None:
        tier = tier_for_revenue(tiers, revenue_value)
        if tier is None or tier.id != scenario.revenue_level_tier_id:
            failed.append("revenue_level_tier")

    if (scenario.min_revenue is not None or scenario.max_revenue is not None) and not revenue_in_band(
        revenue_value, scenario.min_revenue, scenario.max_revenue
    ):
        failed.append("revenue_band")

    if scenario.doctor_count is not None and ctx.doctor_count != scenario.doctor_count:
        failed.append("doctor_count")
    if scenario.min_doctor_count is not None and ctx.doctor_count < scenario.min_doctor_count:
        failed.append("min_doctor_count")

    if ctx.position_id is not None and not _has_position(scenario, ctx.position_id):
        failed.append("position")

    matches = not failed
    return ScenarioMatch(
        scenario_id=scenario.id,
        scenario_name=scenario.scenario_name,
        priority=scenario.priority,
        matches=matches,
        reasons=tuple(_reasons(scenario, ctx, revenue_source)) if matches else (),
        failed=tuple(failed),
        scenario=scenario,
    )


def evaluate_scenarios(
    ctx: ScenarioContext,
    *,
    scenarios: Optional[Sequence[StaffRequirementScenario]] = None,
    tiers: Optional[Sequence[RevenueLevelTier]] = None,
) -> list[ScenarioMatch]:
    """
    Every active scenario as a ScenarioMatch, priority desc. Equal priorities
    keep creation order.
    """
    scenarios = selectors.active_scenarios() if scenarios is None else scenarios
    tiers = list_tiers() if tiers is None else tiers
    results = [match_scenario(s, ctx, tiers) for s in scenarios]
    return sorted(results, key=lambda m: -m.priority)


def match_scenarios(
    *,
    branch_id: UUID,
    on_date: date,
    position_id: Optional[UUID] = None,
    doctor_id: Optional[UUID] = None,
    revenue: Optional[RevenueFacts] = None,
) -> list[ScenarioMatch]:
    ctx = load_scenario_context(
        branch_id=branch_id,
        on_date=on_date,
        doctor_id=doctor_id,
        position_id=position_id,
        revenue=revenue,
    )
    return evaluate_scenarios(ctx)


def matching_only(matches: Sequence[ScenarioMatch]) -> list[ScenarioMatch]:
    return [m for m in matches if m.matches]
