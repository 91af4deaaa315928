# mp_core/doctors/schedule.py
from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass
from datetime import date
from typing import Any, Optional, Sequence
from uuid import UUID

from rest_framework.exceptions import ValidationError

from mp_core.common.dates import date_range, day_of_week
from mp_core.common.layers import MISSING, Layer, resolve_first
from mp_core.common.values import coerce_uuid
from mp_core.doctors import selectors
from mp_core.doctors.models import OverrideType

LAYER_OVERRIDE = "override"
LAYER_WEEKLY_OFF = "weekly_off"
LAYER_DEFAULT = "default"
LAYER_NONE = "none"
LAYER_INACTIVE = "inactive"

# Value of a layer entry that puts the doctor off for the day
OFF = None


@dataclass(frozen=True)
class DoctorDayAssignment:
    doctor_id: UUID
    date: date
    branch_id: Optional[UUID]
    source: str

    @property
    def is_off(self) -> bool:
        return self.branch_id is None

    def to_dict(self) -> dict[str, Any]:
        return {
            "doctor_id": str(self.doctor_id),
            "date": self.date.isoformat(),
            "branch_id": str(self.branch_id) if self.branch_id else None,
            "is_off": self.is_off,
            "source": self.source,
        }


def _override_value(override) -> Optional[UUID]:
    if override.type == OverrideType.WORKING:
        return override.branch_id
    return OFF


class ScheduleSource:
    """
    Where the three schedule layers come from. Both implementations feed the
    same resolve_doctor_day(), so single and batch lookups cannot drift apart.
    """

    def doctor_ids(self) -> Sequence[UUID]:
        raise NotImplementedError

    def is_active(self, doctor_id: UUID) -> bool:
        raise NotImplementedError

    def layers(self, doctor_id: UUID) -> list[Layer[date, Optional[UUID]]]:
        raise NotImplementedError


class OrmScheduleSource(ScheduleSource):
    """
    On-demand point lookups. Fine for a single doctor/date.
    """

    def doctor_ids(self) -> Sequence[UUID]:
        return selectors.active_doctor_ids()

    def is_active(self, doctor_id: UUID) -> bool:
        return selectors.doctor_by_id(doctor_id=doctor_id).is_active

    def layers(self, doctor_id: UUID) -> list[Layer[date, Optional[UUID]]]:
        def override(d: date):
            row = selectors.override_for(doctor_id=doctor_id, on_date=d)
            return MISSING if row is None else _override_value(row)

        def weekly_off(d: date):
            return OFF if selectors.has_weekly_off(doctor_id=doctor_id, dow=day_of_week(d)) else MISSING

        def default(d: date):
            row = selectors.default_schedule_for(doctor_id=doctor_id, dow=day_of_week(d))
            return MISSING if row is None else row.branch_id

        return [
            Layer(kind=LAYER_OVERRIDE, lookup=override),
            Layer(kind=LAYER_WEEKLY_OFF, lookup=weekly_off),
            Layer(kind=LAYER_DEFAULT, lookup=default),
        ]


class PreloadedScheduleSource(ScheduleSource):
    """
    All rows needed for a date range, loaded once (one query per source).
    """

    def __init__(
        self,
        *,
        doctor_ids: Sequence[UUID],
        overrides: dict[UUID, dict[date, Optional[UUID]]],
        weekly_off_days: dict[UUID, dict[int, None]],
        default_schedules: dict[UUID, dict[int, UUID]],
    ):
        self._doctor_ids = list(doctor_ids)
        self._active = set(self._doctor_ids)
        self._overrides = overrides
        self._weekly_off_days = weekly_off_days
        self._default_schedules = default_schedules

    @classmethod
    def load(cls, *, start: date, end: date) -> "PreloadedScheduleSource":
        overrides: dict[UUID, dict[date, Optional[UUID]]] = defaultdict(dict)
        for row in selectors.overrides_in_range(start=start, end=end):
            overrides[row.doctor_id][row.date] = _override_value(row)

        weekly_off_days: dict[UUID, dict[int, None]] = defaultdict(dict)
        for doctor_id, dow in selectors.all_weekly_off_days().values_list("doctor_id", "day_of_week"):
            weekly_off_days[doctor_id][dow] = OFF

        default_schedules: dict[UUID, dict[int, UUID]] = defaultdict(dict)
        for doctor_id, dow, branch_id in selectors.all_default_schedules().values_list(
            "doctor_id", "day_of_week", "branch_id"
        ):
            default_schedules[doctor_id][dow] = branch_id

        return cls(
            doctor_ids=selectors.active_doctor_ids(),
            overrides=dict(overrides),
            weekly_off_days=dict(weekly_off_days),
            default_schedules=dict(default_schedules),
        )

    def doctor_ids(self) -> Sequence[UUID]:
        return self._doctor_ids

    def is_active(self, doctor_id: UUID) -> bool:
        return doctor_id in self._active

    def layers(self, doctor_id: UUID) -> list[Layer[date, Optional[UUID]]]:
        return [
            Layer.from_mapping(LAYER_OVERRIDE, self._overrides.get(doctor_id, {})),
            Layer.from_mapping(LAYER_WEEKLY_OFF, self._weekly_off_days.get(doctor_id, {}), key=day_of_week),
            Layer.from_mapping(LAYER_DEFAULT, self._default_schedules.get(doctor_id, {}), key=day_of_week),
        ]


def resolve_doctor_day(source: ScheduleSource, doctor_id: UUID, on_date: date) -> DoctorDayAssignment:
    """
    override (off/working) > weekly off day > default schedule > implicit off.
    First layer with an entry wins; inactive doctors are never assigned.
    """
    if not source.is_active(doctor_id):
        return DoctorDayAssignment(doctor_id=doctor_id, date=on_date, branch_id=None, source=LAYER_INACTIVE)

    resolution = resolve_first(source.layers(doctor_id), on_date, default=OFF, default_kind=LAYER_NONE)
    return DoctorDayAssignment(
        doctor_id=doctor_id,
        date=on_date,
        branch_id=resolution.value,
        source=resolution.kind,
    )


def resolve_doctor_assignment(*, doctor_id: UUID, on_date: date) -> DoctorDayAssignment:
    return resolve_doctor_day(OrmScheduleSource(), coerce_uuid(doctor_id, "doctor_id"), on_date)


def _validate_range(start: date, end: date) -> None:
    if start > end:
        raise ValidationError({"end": "end must be on or after start."})


def resolve_doctor_assignments(*, start: date, end: date) -> dict[UUID, dict[date, list[UUID]]]:
    """
    branch_id -> date -> [doctor_id] for every active doctor and every date in
    [start, end]. Off days do not appear. Doctor lists keep the doctor order
    (name, id) so results are stable.
    """
    _validate_range(start, end)
    source = PreloadedScheduleSource.load(start=start, end=end)

    out: dict[UUID, dict[date, list[UUID]]] = defaultdict(lambda: defaultdict(list))
    for d in date_range(start, end):
        for doctor_id in source.doctor_ids():
            assignment = resolve_doctor_day(source, doctor_id, d)
            if assignment.branch_id is not None:
                out[assignment.branch_id][d].append(doctor_id)

    return {branch_id: dict(by_date) for branch_id, by_date in out.items()}


def doctors_for_branch(*, branch_id: UUID, on_date: date) -> list[UUID]:
    return resolve_doctor_assignments(start=on_date, end=on_date).get(branch_id, {}).get(on_date, [])


def doctor_count_for_branch(*, branch_id: UUID, on_date: date) -> int:
    """
    Read-side snapshot only; the write path re-counts under a lock.
    """
    return len(doctors_for_branch(branch_id=branch_id, on_date=on_date))

