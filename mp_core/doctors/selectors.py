# mp_core/doctors/selectors.py
from __future__ import annotations

from datetime import date
from uuid import UUID

from django.db.models import QuerySet

from mp_core.common.exceptions import get_or_not_found
from mp_core.doctors.models import (
    Doctor,
    DoctorDefaultSchedule,
    DoctorScheduleOverride,
    DoctorWeeklyOffDay,
)


def doctor_by_id(*, doctor_id: UUID) -> Doctor:
    return get_or_not_found(Doctor, label="Doctor", id=doctor_id)


def active_doctor_ids() -> list[UUID]:
    return list(Doctor.objects.filter(is_active=True).order_by("name", "id").values_list("id", flat=True))


def override_for(*, doctor_id: UUID, on_date: date) -> DoctorScheduleOverride | None:
    return DoctorScheduleOverride.objects.filter(doctor_id=doctor_id, date=on_date).first()


def has_weekly_off(*, doctor_id: UUID, dow: int) -> bool:
    return DoctorWeeklyOffDay.objects.filter(doctor_id=doctor_id, day_of_week=dow).exists()


def default_schedule_for(*, doctor_id: UUID, dow: int) -> DoctorDefaultSchedule | None:
    return DoctorDefaultSchedule.objects.filter(doctor_id=doctor_id, day_of_week=dow).first()


def overrides_in_range(*, start: date, end: date) -> QuerySet[DoctorScheduleOverride]:
    return DoctorScheduleOverride.objects.filter(date__gte=start, date__lte=end, doctor__is_active=True)


def all_weekly_off_days() -> QuerySet[DoctorWeeklyOffDay]:
    return DoctorWeeklyOffDay.objects.filter(doctor__is_active=True)


def all_default_schedules() -> QuerySet[DoctorDefaultSchedule]:
    return DoctorDefaultSchedule.objects.filter(doctor__is_active=True)
