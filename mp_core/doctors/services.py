# mp_core/doctors/services.py
from __future__ import annotations

import logging
from datetime import date
from uuid import UUID

from django.conf import settings
from django.db import transaction
from rest_framework.exceptions import ValidationError

from mp_core.audit.services import AuditService
from mp_core.branches.models import Branch
from mp_core.common.dates import is_valid_day_of_week
from mp_core.common.exceptions import CapacityExceeded, get_or_not_found
from mp_core.doctors.models import (
    Doctor,
    DoctorDefaultSchedule,
    DoctorScheduleOverride,
    DoctorWeeklyOffDay,
    OverrideType,
)
from mp_core.doctors.schedule import doctors_for_branch

logger = logging.getLogger(__name__)


def max_doctors_per_branch() -> int:
    return int(getattr(settings, "DOCTOR_MAX_PER_BRANCH_PER_DAY", 6))


def _require_day(dow: int) -> None:
    if not is_valid_day_of_week(dow):
        raise ValidationError({"day_of_week": f"Must be 0-6, got {dow!r}."})


class DoctorScheduleService:
    """
    Write boundary for doctor schedules. The resolver trusts what is stored
    here, so all shape checks and the per-branch ceiling live in this class.
    """

    @staticmethod
    @transaction.atomic
    def set_default_schedule(
        *,
        doctor_id: UUID,
        day_of_week: int,
        branch_id: UUID,
        actor_user_id: int | None = None,
    ) -> DoctorDefaultSchedule:
        _require_day(day_of_week)
        doctor = get_or_not_found(Doctor, label="Doctor", id=doctor_id)
        branch = get_or_not_found(Branch, label="Branch", id=branch_id)

        row, created = DoctorDefaultSchedule.objects.update_or_create(
            doctor=doctor,
            day_of_week=day_of_week,
            defaults={"branch": branch},
        )
        AuditService.log(
            event_code="doctors.default_schedule_set",
            entity_type="Doctor",
            entity_id=doctor.id,
            branch_id=branch.id,
            actor_user_id=actor_user_id,
            metadata={"day_of_week": day_of_week, "created": created},
        )
        logger.info("Default schedule doctor=%s dow=%s -> branch=%s", doctor.code, day_of_week, branch.code)
        return row

    @staticmethod
    @transaction.atomic
    def remove_default_schedule(*, doctor_id: UUID, day_of_week: int, actor_user_id: int | None = None) -> bool:
        _require_day(day_of_week)
        doctor = get_or_not_found(Doctor, label="Doctor", id=doctor_id)
        deleted, _ = DoctorDefaultSchedule.objects.filter(doctor=doctor, day_of_week=day_of_week).delete()
        if deleted:
            AuditService.log(
                event_code="doctors.default_schedule_removed",
                entity_type="Doctor",
                entity_id=doctor.id,
                actor_user_id=actor_user_id,
                metadata={"day_of_week": day_of_week},
            )
        return bool(deleted)

    @staticmethod
    @transaction.atomic
    def set_weekly_off_day(*, doctor_id: UUID, day_of_week: int, actor_user_id: int | None = None) -> DoctorWeeklyOffDay:
        _require_day(day_of_week)
        doctor = get_or_not_found(Doctor, label="Doctor", id=doctor_id)
        row, created = DoctorWeeklyOffDay.objects.get_or_create(doctor=doctor, day_of_week=day_of_week)
        if created:
            AuditService.log(
                event_code="doctors.weekly_off_set",
                entity_type="Doctor",
                entity_id=doctor.id,
                actor_user_id=actor_user_id,
                metadata={"day_of_week": day_of_week},
            )
        return row

    @staticmethod
    @transaction.atomic
    def remove_weekly_off_day(*, doctor_id: UUID, day_of_week: int, actor_user_id: int | None = None) -> bool:
        _require_day(day_of_week)
        doctor = get_or_not_found(Doctor, label="Doctor", id=doctor_id)
        deleted, _ = DoctorWeeklyOffDay.objects.filter(doctor=doctor, day_of_week=day_of_week).delete()
        if deleted:
            AuditService.log(
                event_code="doctors.weekly_off_removed",
                entity_type="Doctor",
                entity_id=doctor.id,
                actor_user_id=actor_user_id,
                metadata={"day_of_week": day_of_week},
            )
        return bool(deleted)

    @staticmethod
    def _check_capacity(*, branch: Branch, doctor: Doctor, on_date: date) -> None:
        """
        Must run inside the transaction holding the branch row lock.
        A doctor already resolved to this branch/date does not count twice.
        """
        assigned = doctors_for_branch(branch_id=branch.id, on_date=on_date)
        if doctor.id in assigned:
            return
        limit = max_doctors_per_branch()
        if len(assigned) >= limit:
            logger.warning(
                "Doctor ceiling reached branch=%s date=%s (%s/%s); rejected doctor=%s",
                branch.code, on_date, len(assigned), limit, doctor.code,
            )
            raise CapacityExceeded(
                f"Branch {branch.code} already has {len(assigned)} doctors on {on_date.isoformat()} "
                f"(maximum {limit})."
            )

    @staticmethod
    @transaction.atomic
    def set_override(
        *,
        doctor_id: UUID,
        on_date: date,
        type: str,
        branch_id: UUID | None = None,
        actor_user_id: int | None = None,
    ) -> DoctorScheduleOverride:
        """
        Upsert the (doctor, date) override.
        working requires a branch and is checked against the per-branch ceiling;
        off must not carry a branch.
        """
        if type not in OverrideType.values:
            raise ValidationError({"type": f"Must be one of {', '.join(OverrideType.values)}."})
        if type == OverrideType.WORKING and branch_id is None:
            raise ValidationError({"branch_id": "A working override requires a branch."})
        if type == OverrideType.OFF and branch_id is not None:
            raise ValidationError({"branch_id": "An off override must not have a branch."})

        doctor = get_or_not_found(Doctor, label="Doctor", id=doctor_id)

        branch = None
        if type == OverrideType.WORKING:
            # Serializes concurrent assignments to the same branch
            branch = get_or_not_found(Branch.objects.select_for_update(), label="Branch", id=branch_id)
            if not doctor.is_active:
                raise ValidationError({"doctor_id": "Inactive doctors cannot be assigned."})
            DoctorScheduleService._check_capacity(branch=branch, doctor=doctor, on_date=on_date)

        row, created = DoctorScheduleOverride.objects.update_or_create(
            doctor=doctor,
            date=on_date,
            defaults={"type": type, "branch": branch},
        )
        AuditService.log(
            event_code="doctors.override_set",
            entity_type="Doctor",
            entity_id=doctor.id,
            branch_id=branch.id if branch else None,
            actor_user_id=actor_user_id,
            metadata={"date": on_date, "type": type, "created": created},
        )
        logger.info(
            "Schedule override doctor=%s date=%s type=%s branch=%s",
            doctor.code, on_date, type, branch.code if branch else None,
        )
        return row

    @staticmethod
    def assign_doctor(
        *,
        doctor_id: UUID,
        branch_id: UUID,
        on_date: date,
        actor_user_id: int | None = None,
    ) -> DoctorScheduleOverride:
        return DoctorScheduleService.set_override(
            doctor_id=doctor_id,
            on_date=on_date,
            type=OverrideType.WORKING,
            branch_id=branch_id,
            actor_user_id=actor_user_id,
        )

    @staticmethod
    @transaction.atomic
    def remove_override(*, doctor_id: UUID, on_date: date, actor_user_id: int | None = None) -> bool:
        doctor = get_or_not_found(Doctor, label="Doctor", id=doctor_id)
        deleted, _ = DoctorScheduleOverride.objects.filter(doctor=doctor, date=on_date).delete()
        if deleted:
            AuditService.log(
                event_code="doctors.override_removed",
                entity_type="Doctor",
                entity_id=doctor.id,
                actor_user_id=actor_user_id,
                metadata={"date": on_date},
            )
        return bool(deleted)
