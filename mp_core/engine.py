# mp_core/engine.py
from __future__ import annotations

from datetime import date
from typing import Optional
from uuid import UUID

from mp_core.constraints.resolver import ResolvedDayConstraint, resolve_constraints
from mp_core.doctors.schedule import DoctorDayAssignment, resolve_doctor_assignment, resolve_doctor_assignments
from mp_core.revenue.selectors import RevenueFacts
from mp_core.scenarios.calculator import BaseRequirement, CalculatedRequirement, calculate_requirement
from mp_core.scenarios.matching import ScenarioMatch, match_scenarios
from mp_core.staffing.quota import BranchQuotaStatus, aggregate_quota_status
from mp_core.staffing.selectors import StaffingFacts


class RequirementEngine:
    """
    Read-side entry point for the requirement-resolution engine.
    Every call loads what it needs and returns frozen results; nothing is cached.
    """

    @staticmethod
    def resolve_constraints(*, branch_id: UUID) -> list[ResolvedDayConstraint]:
        return resolve_constraints(branch_id=branch_id)

    @staticmethod
    def resolve_doctor_assignment(*, doctor_id: UUID, on_date: date) -> DoctorDayAssignment:
        return resolve_doctor_assignment(doctor_id=doctor_id, on_date=on_date)

    @staticmethod
    def resolve_doctor_assignments(*, start: date, end: date) -> dict[UUID, dict[date, list[UUID]]]:
        return resolve_doctor_assignments(start=start, end=end)

    @staticmethod
    def match_scenarios(
        *,
        branch_id: UUID,
        on_date: date,
        position_id: Optional[UUID] = None,
        doctor_id: Optional[UUID] = None,
    ) -> list[ScenarioMatch]:
        return match_scenarios(branch_id=branch_id, on_date=on_date, position_id=position_id, doctor_id=doctor_id)

    @staticmethod
    def calculate_requirement(
        *,
        branch_id: UUID,
        on_date: date,
        position_id: UUID,
        base: Optional[BaseRequirement] = None,
        doctor_id: Optional[UUID] = None,
    ) -> CalculatedRequirement:
        return calculate_requirement(
            branch_id=branch_id,
            on_date=on_date,
            position_id=position_id,
            base=base,
            doctor_id=doctor_id,
        )

    @staticmethod
    def aggregate_quota_status(
        *,
        branch_id: UUID,
        on_date: date,
        staffing: Optional[StaffingFacts] = None,
        revenue: Optional[RevenueFacts] = None,
    ) -> BranchQuotaStatus:
        return aggregate_quota_status(branch_id=branch_id, on_date=on_date, staffing=staffing, revenue=revenue)
