# mp_core/scenarios/tests/test_preferences.py
from datetime import date

import pytest
from rest_framework.exceptions import ValidationError

from mp_core.scenarios.preferences import match_specific_preferences
from mp_core.scenarios.services import SpecificPreferenceService
from mp_core.staffing.models import Staff

pytestmark = pytest.mark.django_db

WEDNESDAY = date(2024, 1, 10)


def test_position_count_needs_position_and_count(branch):
    with pytest.raises(ValidationError) as exc:
        SpecificPreferenceService.create(preference_type="position_count", branch_id=branch.id, staff_count=0)
    assert set(exc.value.detail) == {"position_id", "staff_count"}


def test_staff_name_needs_staff():
    with pytest.raises(ValidationError) as exc:
        SpecificPreferenceService.create(preference_type="staff_name")
    assert "staff_id" in exc.value.detail


def test_unknown_type_rejected():
    with pytest.raises(ValidationError) as exc:
        SpecificPreferenceService.create(preference_type="vibes")
    assert "preference_type" in exc.value.detail


def test_wildcards_and_predicates(branch, other_branch, doctor, front_position):
    nok = Staff.objects.create(name="Nok", position=front_position, branch=branch)
    everywhere = SpecificPreferenceService.create(
        preference_type="position_count", position_id=front_position.id, staff_count=2
    )
    siam_wednesday = SpecificPreferenceService.create(
        preference_type="staff_name", staff_id=nok.id, branch_id=branch.id, day_of_week=3
    )
    with_doctor = SpecificPreferenceService.create(
        preference_type="staff_name", staff_id=nok.id, doctor_id=doctor.id
    )
    SpecificPreferenceService.create(
        preference_type="position_count", position_id=front_position.id, staff_count=1, is_active=False
    )

    siam = {m.preference_id for m in match_specific_preferences(branch_id=branch.id, on_date=WEDNESDAY)}
    assert siam == {everywhere.id, siam_wednesday.id}

    with_doc = {
        m.preference_id
        for m in match_specific_preferences(branch_id=branch.id, on_date=WEDNESDAY, doctor_id=doctor.id)
    }
    assert with_doc == {everywhere.id, siam_wednesday.id, with_doctor.id}

    thonglor = match_specific_preferences(branch_id=other_branch.id, on_date=WEDNESDAY)
    assert [m.preference_id for m in thonglor] == [everywhere.id]
    assert thonglor[0].to_dict()["staff_count"] == 2
    assert thonglor[0].staff_id is None


def test_string_ids_match_and_malformed_ids_rejected(branch, doctor, front_position):
    pref = SpecificPreferenceService.create(
        preference_type="position_count", branch_id=branch.id, position_id=front_position.id, staff_count=2
    )

    matched = match_specific_preferences(branch_id=str(branch.id), on_date=WEDNESDAY, doctor_id=str(doctor.id))
    assert [m.preference_id for m in matched] == [pref.id]

    with pytest.raises(ValidationError) as exc:
        match_specific_preferences(branch_id="nope", on_date=WEDNESDAY)
    assert "branch_id" in exc.value.detail
