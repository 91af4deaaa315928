# mp_core/staffing/quota.py
from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date
from typing import Any, Optional, Sequence
from uuid import UUID

from mp_core.branches.models import Position
from mp_core.branches.selectors import (
    active_quotas_for_branch,
    branch_by_id,
    positions_by_id,
    staff_group_position_ids,
)
from mp_core.common.exceptions import ConfigurationWarning
from mp_core.constraints.resolver import ResolvedDayConstraint, resolve_constraints_for_day
from mp_core.revenue.selectors import RevenueFacts
from mp_core.scenarios.calculator import (
    BaseRequirement,
    CalculatedRequirement,
    combine_requirements,
    required_staff_ids,
)
from mp_core.scenarios.matching import ScenarioMatch, evaluate_scenarios, load_scenario_context, matching_only
from mp_core.staffing.selectors import StaffingFacts, staff_display_names, staffing_facts

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PositionQuotaStatus:
    position_id: UUID
    position_name: str
    designated_quota: int
    minimum_required: int
    available_local: int
    assigned_rotation: int
    total_assigned: int
    still_required: int
    matched_scenario_id: Optional[UUID] = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "position_id": str(self.position_id),
            "position_name": self.position_name,
            "designated_quota": self.designated_quota,
            "minimum_required": self.minimum_required,
            "available_local": self.available_local,
            "assigned_rotation": self.assigned_rotation,
            "total_assigned": self.total_assigned,
            "still_required": self.still_required,
            "matched_scenario_id": str(self.matched_scenario_id) if self.matched_scenario_id else None,
        }


@dataclass(frozen=True)
class StaffGroupStatus:
    staff_group_id: UUID
    staff_group_name: str
    minimum_count: int
    present: int
    score: int
    member_positions: int
    satisfied: bool
    missing_staff: tuple[str, ...] = ()

    def to_dict(self) -> dict[str, Any]:
        return {
            "staff_group_id": str(self.staff_group_id),
            "staff_group_name": self.staff_group_name,
            "minimum_count": self.minimum_count,
            "present": self.present,
            "score": self.score,
            "member_positions": self.member_positions,
            "satisfied": self.satisfied,
            "missing_staff": list(self.missing_staff),
        }


@dataclass(frozen=True)
class BranchQuotaStatus:
    branch_id: UUID
    branch_name: str
    branch_code: str
    date: date
    is_operational: bool
    doctor_count: int
    position_statuses: tuple[PositionQuotaStatus, ...] = ()
    staff_groups: tuple[StaffGroupStatus, ...] = ()
    total_designated: int = 0
    total_available: int = 0
    total_assigned: int = 0
    total_required: int = 0
    missing_required_staff: tuple[str, ...] = ()
    warnings: tuple[ConfigurationWarning, ...] = ()

    def to_dict(self) -> dict[str, Any]:
        return {
            "branch_id": str(self.branch_id),
            "branch_name": self.branch_name,
            "branch_code": self.branch_code,
            "date": self.date.isoformat(),
            "is_operational": self.is_operational,
            "doctor_count": self.doctor_count,
            "position_statuses": [p.to_dict() for p in self.position_statuses],
            "staff_groups": [g.to_dict() for g in self.staff_groups],
            "total_designated": self.total_designated,
            "total_available": self.total_available,
            "total_assigned": self.total_assigned,
            "total_required": self.total_required,
            "missing_required_staff": list(self.missing_required_staff),
            "warnings": [w.to_dict() for w in self.warnings],
        }


def _position_sort_key(p: Position):
    return (p.display_order, p.name, str(p.id))


def _positions_in_scope(*, branch_id: UUID, matches: Sequence[ScenarioMatch]) -> list[Position]:
    """
    Positions with an active quota plus positions referenced by matching scenarios.
    """
    quotas = list(active_quotas_for_branch(branch_id=branch_id))
    by_id = {q.position_id: q.position for q in quotas}

    referenced = {
        req.position_id
        for m in matching_only(matches)
        for req in m.scenario.position_requirements.all()
        if req.position_id not in by_id
    }
    by_id.update(positions_by_id(position_ids=referenced))
    return sorted(by_id.values(), key=_position_sort_key)


def position_status(requirement: CalculatedRequirement, facts: StaffingFacts) -> PositionQuotaStatus:
    local = facts.local(requirement.position_id)
    rotation = facts.rotation(requirement.position_id)
    return PositionQuotaStatus(
        position_id=requirement.position_id,
        position_name=requirement.position_name,
        designated_quota=requirement.calculated_preferred,
        minimum_required=requirement.calculated_minimum,
        available_local=local,
        assigned_rotation=rotation,
        total_assigned=local + rotation,
        still_required=max(0, requirement.calculated_minimum - local - rotation),
        matched_scenario_id=requirement.matched_scenario_id,
    )


def staff_group_statuses(
    constraint: ResolvedDayConstraint,
    facts: StaffingFacts,
    position_statuses: Sequence[PositionQuotaStatus],
) -> list[StaffGroupStatus]:
    """
    score counts member positions with nothing still required, out of
    member_positions. satisfied compares the headcount present over all member
    positions against the group minimum. When unmet, missing_staff names member
    positions that are short ("Position (n)"), or the group itself when no
    member position reports a shortfall.
    """
    group_ids = [r.staff_group_id for r in constraint.staff_group_requirements]
    members = staff_group_position_ids(staff_group_ids=group_ids)
    rows = {p.position_id: p for p in position_statuses}

    out: list[StaffGroupStatus] = []
    for req in constraint.staff_group_requirements:
        member_ids = members.get(req.staff_group_id, [])
        present = sum(facts.present(pid) for pid in member_ids)
        score = sum(1 for pid in member_ids if pid not in rows or rows[pid].still_required == 0)
        satisfied = present >= req.minimum_count

        missing: list[str] = []
        if not satisfied:
            for pid in member_ids:
                row = rows.get(pid)
                if row is not None and row.still_required > 0:
                    missing.append(f"{row.position_name} ({row.still_required})")
            if not missing:
                missing.append(f"{req.staff_group_name} ({req.minimum_count - present})")

        out.append(
            StaffGroupStatus(
                staff_group_id=req.staff_group_id,
                staff_group_name=req.staff_group_name,
                minimum_count=req.minimum_count,
                present=present,
                score=score,
                member_positions=len(member_ids),
                satisfied=satisfied,
                missing_staff=tuple(missing),
            )
        )
    return out


def aggregate_quota_status(
    *,
    branch_id: UUID,
    on_date: date,
    staffing: Optional[StaffingFacts] = None,
    revenue: Optional[RevenueFacts] = None,
) -> BranchQuotaStatus:
    """
    Point-in-time fulfillment snapshot for a branch/date. Deterministic for
    unchanged data: no clock reads, stable ordering everywhere.
    """
    branch = branch_by_id(branch_id=branch_id)
    ctx = load_scenario_context(branch_id=branch.id, on_date=on_date, revenue=revenue)

    if ctx.doctor_count == 0:
        logger.debug("Branch %s not operational on %s (no doctors)", branch.code, on_date)
        return BranchQuotaStatus(
            branch_id=branch.id,
            branch_name=branch.name,
            branch_code=branch.code,
            date=on_date,
            is_operational=False,
            doctor_count=0,
        )

    facts = staffing if staffing is not None else staffing_facts(branch_id=branch.id, on_date=on_date)
    matches = evaluate_scenarios(ctx)

    quotas = {q.position_id: q for q in active_quotas_for_branch(branch_id=branch.id)}
    requirements: list[CalculatedRequirement] = []
    for position in _positions_in_scope(branch_id=branch.id, matches=matches):
        quota = quotas.get(position.id)
        base = (
            BaseRequirement(preferred=quota.designated_quota, minimum=quota.minimum_required)
            if quota is not None
            else BaseRequirement()
        )
        requirements.append(
            combine_requirements(position_id=position.id, position_name=position.name, base=base, matches=matches)
        )

    positions = [position_status(r, facts) for r in requirements]
    constraint = resolve_constraints_for_day(branch_id=branch.id, dow=ctx.day_of_week)
    groups = staff_group_statuses(constraint, facts, positions)

    required_ids = required_staff_ids(matches)
    absent = [sid for sid in required_ids if sid not in facts.present_staff_ids]
    names = staff_display_names(staff_ids=absent)
    missing_required = sorted(names.get(sid, str(sid)) for sid in absent)

    warnings = tuple(w for r in requirements for w in r.warnings)

    return BranchQuotaStatus(
        branch_id=branch.id,
        branch_name=branch.name,
        branch_code=branch.code,
        date=on_date,
        is_operational=True,
        doctor_count=ctx.doctor_count,
        position_statuses=tuple(positions),
        staff_groups=tuple(groups),
        total_designated=sum(p.designated_quota for p in positions),
        total_available=sum(p.available_local for p in positions),
        total_assigned=sum(p.total_assigned for p in positions),
        total_required=sum(p.still_required for p in positions),
        missing_required_staff=tuple(missing_required),
        warnings=warnings,
    )
