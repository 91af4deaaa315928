# mp_core/scenarios/preferences.py
from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import Any, Iterable, Optional
from uuid import UUID

from mp_core.common.dates import day_of_week
from mp_core.common.predicates import rule_matches
from mp_core.common.values import coerce_uuid
from mp_core.scenarios import selectors
from mp_core.scenarios.models import PreferenceType, SpecificPreference

PREFERENCE_FIELDS = ("branch_id", "doctor_id", "day_of_week")


@dataclass(frozen=True)
class PreferenceMatch:
    preference_id: UUID
    preference_type: str
    position_id: Optional[UUID]
    staff_count: Optional[int]
    staff_id: Optional[UUID]

    def to_dict(self) -> dict[str, Any]:
        return {
            "preference_id": str(self.preference_id),
            "preference_type": self.preference_type,
            "position_id": str(self.position_id) if self.position_id else None,
            "staff_count": self.staff_count,
            "staff_id": str(self.staff_id) if self.staff_id else None,
        }


def preference_matches(
    pref: SpecificPreference,
    *,
    branch_id: Optional[UUID],
    doctor_id: Optional[UUID],
    dow: Optional[int],
) -> bool:
    context = {"branch_id": branch_id, "doctor_id": doctor_id, "day_of_week": dow}
    return rule_matches(pref, context, PREFERENCE_FIELDS).matches


def match_specific_preferences(
    *,
    branch_id: UUID,
    on_date: date,
    doctor_id: Optional[UUID] = None,
    preferences: Optional[Iterable[SpecificPreference]] = None,
) -> list[PreferenceMatch]:
    branch_id = coerce_uuid(branch_id, "branch_id")
    if doctor_id is not None:
        doctor_id = coerce_uuid(doctor_id, "doctor_id")
    prefs = selectors.active_specific_preferences() if preferences is None else preferences
    dow = day_of_week(on_date)

    out: list[PreferenceMatch] = []
    for pref in prefs:
        if not preference_matches(pref, branch_id=branch_id, doctor_id=doctor_id, dow=dow):
            continue
        is_count = pref.preference_type == PreferenceType.POSITION_COUNT
        out.append(
            PreferenceMatch(
                preference_id=pref.id,
                preference_type=pref.preference_type,
                position_id=pref.position_id if is_count else None,
                staff_count=pref.staff_count if is_count else None,
                staff_id=None if is_count else pref.staff_id,
            )
        )
    return out
