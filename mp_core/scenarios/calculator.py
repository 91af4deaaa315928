# mp_core/scenarios/calculator.py
from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date
from typing import Any, Optional, Sequence
from uuid import UUID

from rest_framework.exceptions import ValidationError

from mp_core.branches.selectors import active_quota, position_by_id
from mp_core.common.exceptions import ConfigurationWarning
from mp_core.common.values import coerce_uuid, is_count
from mp_core.scenarios.matching import ScenarioMatch, match_scenarios, matching_only

logger = logging.getLogger(__name__)

EFFECT_OVERRIDE = "override"
EFFECT_RAISED = "raised"
EFFECT_UNCHANGED = "unchanged"
EFFECT_SHADOWED = "shadowed"

WARNING_MINIMUM_CLAMPED = "minimum_exceeds_preferred"


@dataclass(frozen=True)
class BaseRequirement:
    preferred: int = 0
    minimum: int = 0


@dataclass(frozen=True)
class AppliedFactor:
    """
    One scenario evaluated for the position, with what it did to the running values.
    """
    scenario_id: UUID
    scenario_name: str
    priority: int
    effect: str
    preferred_staff: int
    minimum_staff: int
    override_base: bool

    def describe(self) -> str:
        mode = "override" if self.override_base else "floor"
        return (
            f"{self.scenario_name} (priority {self.priority}, {mode} "
            f"{self.preferred_staff}/{self.minimum_staff}): {self.effect}"
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "scenario_id": str(self.scenario_id),
            "scenario_name": self.scenario_name,
            "priority": self.priority,
            "effect": self.effect,
            "preferred_staff": self.preferred_staff,
            "minimum_staff": self.minimum_staff,
            "override_base": self.override_base,
        }


@dataclass(frozen=True)
class CalculatedRequirement:
    position_id: UUID
    position_name: str
    base_preferred: int
    base_minimum: int
    calculated_preferred: int
    calculated_minimum: int
    matched_scenario_id: Optional[UUID] = None
    matched_scenario_name: Optional[str] = None
    factors_applied: tuple[AppliedFactor, ...] = ()
    warnings: tuple[ConfigurationWarning, ...] = ()
    required_staff_ids: tuple[UUID, ...] = ()

    def to_dict(self) -> dict[str, Any]:
        return {
            "position_id": str(self.position_id),
            "position_name": self.position_name,
            "base_preferred": self.base_preferred,
            "base_minimum": self.base_minimum,
            "calculated_preferred": self.calculated_preferred,
            "calculated_minimum": self.calculated_minimum,
            "matched_scenario_id": str(self.matched_scenario_id) if self.matched_scenario_id else None,
            "matched_scenario_name": self.matched_scenario_name,
            "factors_applied": [f.to_dict() for f in self.factors_applied],
            "warnings": [w.to_dict() for w in self.warnings],
            "required_staff_ids": [str(s) for s in self.required_staff_ids],
        }


def base_requirement_for(*, branch_id: UUID, position_id: UUID) -> BaseRequirement:
    quota = active_quota(branch_id=branch_id, position_id=position_id)
    if quota is None:
        return BaseRequirement()
    return BaseRequirement(preferred=quota.designated_quota, minimum=quota.minimum_required)


def _requirement_for(match: ScenarioMatch, position_id: UUID):
    for req in match.scenario.position_requirements.all():
        if req.position_id == position_id:
            return req
    return None


def required_staff_ids(matches: Sequence[ScenarioMatch]) -> tuple[UUID, ...]:
    """
    Named individuals from every matching scenario, first occurrence order.
    """
    seen: dict[UUID, None] = {}
    for m in matching_only(matches):
        for req in m.scenario.specific_staff_requirements.all():
            seen.setdefault(req.staff_id, None)
    return tuple(seen)


def combine_requirements(
    *,
    position_id: UUID,
    position_name: str,
    base: BaseRequirement,
    matches: Sequence[ScenarioMatch],
) -> CalculatedRequirement:
    """
    Walk matching scenarios highest priority first.
    override_base replaces the running values and ends the walk (later
    scenarios are recorded as shadowed); otherwise each field is raised to
    the scenario's value, never lowered.
    """
    preferred, minimum = base.preferred, base.minimum
    override: Optional[ScenarioMatch] = None
    factors: list[AppliedFactor] = []

    for match in matching_only(matches):
        req = _requirement_for(match, position_id)
        if req is None:
            continue

        if override is not None:
            effect = EFFECT_SHADOWED
        elif req.override_base:
            preferred, minimum = req.preferred_staff, req.minimum_staff
            override = match
            effect = EFFECT_OVERRIDE
        else:
            raised = (max(preferred, req.preferred_staff), max(minimum, req.minimum_staff))
            effect = EFFECT_RAISED if raised != (preferred, minimum) else EFFECT_UNCHANGED
            preferred, minimum = raised

        factors.append(
            AppliedFactor(
                scenario_id=match.scenario_id,
                scenario_name=match.scenario_name,
                priority=match.priority,
                effect=effect,
                preferred_staff=req.preferred_staff,
                minimum_staff=req.minimum_staff,
                override_base=req.override_base,
            )
        )

    warnings: list[ConfigurationWarning] = []
    if minimum > preferred:
        warnings.append(
            ConfigurationWarning(
                code=WARNING_MINIMUM_CLAMPED,
                message=f"Calculated minimum {minimum} exceeded preferred {preferred} for {position_name}; clamped.",
                details={
                    "position_id": str(position_id),
                    "calculated_preferred": preferred,
                    "calculated_minimum": minimum,
                },
            )
        )
        logger.warning(
            "Clamped minimum %s to preferred %s for position=%s", minimum, preferred, position_name
        )
        minimum = preferred

    return CalculatedRequirement(
        position_id=position_id,
        position_name=position_name,
        base_preferred=base.preferred,
        base_minimum=base.minimum,
        calculated_preferred=preferred,
        calculated_minimum=minimum,
        matched_scenario_id=override.scenario_id if override else None,
        matched_scenario_name=override.scenario_name if override else None,
        factors_applied=tuple(factors),
        warnings=tuple(warnings),
        required_staff_ids=required_staff_ids(matches),
    )


def calculate_requirement(
    *,
    branch_id: UUID,
    on_date: date,
    position_id: UUID,
    base: Optional[BaseRequirement] = None,
    doctor_id: Optional[UUID] = None,
    matches: Optional[Sequence[ScenarioMatch]] = None,
) -> CalculatedRequirement:
    """
    base defaults to the branch's active PositionQuota (0/0 without one).
    matches may be passed in to reuse one matcher run across positions.
    """
    branch_id = coerce_uuid(branch_id, "branch_id")
    if base is not None and not (is_count(base.preferred) and is_count(base.minimum)):
        raise ValidationError({"base": "preferred and minimum must be integers >= 0."})
    position = position_by_id(position_id=position_id)
    if base is None:
        base = base_requirement_for(branch_id=branch_id, position_id=position.id)
    if matches is None:
        matches = match_scenarios(
            branch_id=branch_id,
            on_date=on_date,
            position_id=position.id,
            doctor_id=doctor_id,
        )

    result = combine_requirements(
        position_id=position.id,
        position_name=position.name,
        base=base,
        matches=matches,
    )
    logger.debug(
        "Requirement branch=%s date=%s position=%s base=%s/%s -> %s/%s",
        branch_id, on_date, position.name, base.preferred, base.minimum,
        result.calculated_preferred, result.calculated_minimum,
    )
    return result
