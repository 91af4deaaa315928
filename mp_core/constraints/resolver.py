# mp_core/constraints/resolver.py
from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Any, Iterable, Optional
from uuid import UUID

from mp_core.branches.selectors import branch_by_id
from mp_core.common.dates import DAYS_IN_WEEK
from mp_core.common.layers import Layer, resolve_first
from mp_core.constraints import selectors

LAYER_OVERRIDE = "override"
LAYER_TEMPLATE = "template"
LAYER_DEFAULT = "default"


@dataclass(frozen=True)
class StaffGroupMinimum:
    staff_group_id: UUID
    staff_group_name: str
    minimum_count: int


@dataclass(frozen=True)
class ResolvedDayConstraint:
    day_of_week: int
    staff_group_requirements: tuple[StaffGroupMinimum, ...] = field(default_factory=tuple)
    is_overridden: bool = False
    inherited_from_branch_type_id: Optional[UUID] = None
    source: str = LAYER_DEFAULT

    def minimum_for(self, staff_group_id: UUID) -> int:
        for req in self.staff_group_requirements:
            if req.staff_group_id == staff_group_id:
                return req.minimum_count
        return 0

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        data["inherited_from_branch_type_id"] = (
            str(self.inherited_from_branch_type_id) if self.inherited_from_branch_type_id else None
        )
        data["staff_group_requirements"] = [
            {**asdict(r), "staff_group_id": str(r.staff_group_id)} for r in self.staff_group_requirements
        ]
        return data


def _minimums(rows: Iterable) -> tuple[StaffGroupMinimum, ...]:
    return tuple(
        StaffGroupMinimum(
            staff_group_id=r.staff_group_id,
            staff_group_name=r.staff_group.name,
            minimum_count=r.minimum_count,
        )
        for r in rows
    )


def resolve_constraints(*, branch_id: UUID) -> list[ResolvedDayConstraint]:
    """
    Exactly 7 records (0=Sunday..6=Saturday).

    Per day: flagged branch override > branch-type template > empty default.
    An override row wins even when its staff-group list is empty.
    """
    branch = branch_by_id(branch_id=branch_id)
    branch_type_id = branch.branch_type_id

    overrides = {
        c.day_of_week: ResolvedDayConstraint(
            day_of_week=c.day_of_week,
            staff_group_requirements=_minimums(c.staff_group_requirements.all()),
            is_overridden=True,
            inherited_from_branch_type_id=c.inherited_from_branch_type_id,
            source=LAYER_OVERRIDE,
        )
        for c in selectors.overridden_branch_constraints(branch_id=branch.id)
    }
    layers = [Layer.from_mapping(LAYER_OVERRIDE, overrides)]

    if branch_type_id is not None:
        templates = {
            c.day_of_week: ResolvedDayConstraint(
                day_of_week=c.day_of_week,
                staff_group_requirements=_minimums(c.staff_group_requirements.all()),
                is_overridden=False,
                inherited_from_branch_type_id=branch_type_id,
                source=LAYER_TEMPLATE,
            )
            for c in selectors.branch_type_constraints(branch_type_id=branch_type_id)
        }
        layers.append(Layer.from_mapping(LAYER_TEMPLATE, templates))

    resolved: list[ResolvedDayConstraint] = []
    for dow in range(DAYS_IN_WEEK):
        default = ResolvedDayConstraint(
            day_of_week=dow,
            is_overridden=False,
            inherited_from_branch_type_id=branch_type_id,
            source=LAYER_DEFAULT,
        )
        resolved.append(resolve_first(layers, dow, default=default).value)
    return resolved


def resolve_constraints_for_day(*, branch_id: UUID, dow: int) -> ResolvedDayConstraint:
    return resolve_constraints(branch_id=branch_id)[dow]
