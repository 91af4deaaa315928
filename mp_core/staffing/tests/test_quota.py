# mp_core/staffing/tests/test_quota.py
import json
from datetime import date

import pytest

from mp_core.constraints.services import ConstraintService, DayConstraintInput, StaffGroupRequirementInput
from mp_core.scenarios.services import PositionRequirementInput, ScenarioService
from mp_core.staffing.models import RotationAssignment, ScheduleStatus, Staff, StaffSchedule, StaffType
from mp_core.staffing.quota import aggregate_quota_status

pytestmark = pytest.mark.django_db

WEDNESDAY = date(2024, 1, 10)


def _local(branch, position, name, *, status=ScheduleStatus.WORKING, on_date=WEDNESDAY, nickname=""):
    staff = Staff.objects.create(name=name, nickname=nickname, position=position, branch=branch)
    StaffSchedule.objects.create(staff=staff, date=on_date, status=status)
    return staff


def _rotation(branch, own_position, name, *, covers=None, on_date=WEDNESDAY):
    staff = Staff.objects.create(name=name, position=own_position, staff_type=StaffType.ROTATION)
    RotationAssignment.objects.create(rotation_staff=staff, branch=branch, date=on_date, position=covers)
    return staff


def _front_minimum(branch, group, minimum, dow=3):
    ConstraintService.update_branch_constraints(
        branch_id=branch.id,
        days=[DayConstraintInput(day_of_week=dow, requirements=[StaffGroupRequirementInput(group.id, minimum)])],
    )


def test_no_doctors_means_not_operational(branch, front_quota, front_position):
    _local(branch, front_position, "Nok")

    status = aggregate_quota_status(branch_id=branch.id, on_date=WEDNESDAY)

    assert status.is_operational is False
    assert status.doctor_count == 0
    assert status.position_statuses == ()
    assert status.staff_groups == ()
    assert (status.total_designated, status.total_available, status.total_assigned, status.total_required) == (
        0,
        0,
        0,
        0,
    )


def test_position_counts_and_still_required(branch, doctor_on_duty, front_quota, front_position):
    _local(branch, front_position, "Nok")
    _local(branch, front_position, "Ploy", status=ScheduleStatus.SICK_LEAVE)

    status = aggregate_quota_status(branch_id=branch.id, on_date=WEDNESDAY)

    assert status.is_operational is True
    assert status.doctor_count == 1
    [front] = status.position_statuses
    assert (front.designated_quota, front.minimum_required) == (3, 2)
    assert (front.available_local, front.assigned_rotation, front.total_assigned) == (1, 0, 1)
    assert front.still_required == 1
    assert status.total_required == 1


def test_rotation_covering_position_counts_toward_it(
    branch, doctor_on_duty, front_quota, front_position, rotation_position
):
    _local(branch, front_position, "Nok")
    _rotation(branch, rotation_position, "Fon", covers=front_position)

    [front] = aggregate_quota_status(branch_id=branch.id, on_date=WEDNESDAY).position_statuses

    assert (front.available_local, front.assigned_rotation, front.total_assigned) == (1, 1, 2)
    assert front.still_required == 0


def test_staff_from_other_branch_or_day_ignored(branch, other_branch, doctor_on_duty, front_quota, front_position):
    _local(other_branch, front_position, "Elsewhere")
    _local(branch, front_position, "Tomorrow", on_date=date(2024, 1, 11))

    [front] = aggregate_quota_status(branch_id=branch.id, on_date=WEDNESDAY).position_statuses

    assert front.available_local == 0
    assert front.still_required == 2


def test_staff_group_shortfall_names_short_position(branch, doctor_on_duty, front_quota, front_position, front_group):
    _front_minimum(branch, front_group, 3)
    _local(branch, front_position, "Nok")

    [group] = aggregate_quota_status(branch_id=branch.id, on_date=WEDNESDAY).staff_groups

    assert (group.minimum_count, group.present) == (3, 1)
    assert (group.score, group.member_positions) == (0, 1)
    assert group.satisfied is False
    assert group.missing_staff == ("Front (1)",)


def test_staff_group_shortfall_without_short_position_names_group(
    branch, doctor_on_duty, front_quota, front_position, front_group
):
    _front_minimum(branch, front_group, 3)
    _local(branch, front_position, "Nok")
    _local(branch, front_position, "Ploy")

    [group] = aggregate_quota_status(branch_id=branch.id, on_date=WEDNESDAY).staff_groups

    assert (group.present, group.score, group.satisfied) == (2, 1, False)
    assert group.missing_staff == ("front (1)",)


def test_staff_group_satisfied_scores_member_positions(branch, doctor_on_duty, front_quota, front_position, front_group):
    _front_minimum(branch, front_group, 1)
    _local(branch, front_position, "Nok")
    _local(branch, front_position, "Ploy")

    [group] = aggregate_quota_status(branch_id=branch.id, on_date=WEDNESDAY).staff_groups

    assert (group.present, group.score, group.satisfied) == (2, 1, True)
    assert group.missing_staff == ()


def test_constraint_for_other_day_not_applied(branch, doctor_on_duty, front_quota, front_group):
    _front_minimum(branch, front_group, 3, dow=2)

    assert aggregate_quota_status(branch_id=branch.id, on_date=WEDNESDAY).staff_groups == ()


def test_scenario_position_without_quota_is_included(
    branch, doctor_on_duty, front_quota, front_position, assistant_position
):
    ScenarioService.create(
        scenario_name="Assistants on Wednesday",
        day_of_week=3,
        position_requirements=[PositionRequirementInput(assistant_position.id, 2, 1)],
    )

    status = aggregate_quota_status(branch_id=branch.id, on_date=WEDNESDAY)

    assert [p.position_name for p in status.position_statuses] == ["Front", "Doctor Assistant"]
    assistant = status.position_statuses[1]
    assert (assistant.designated_quota, assistant.minimum_required, assistant.still_required) == (2, 1, 1)
    assert status.total_designated == 5


def test_override_scenario_recorded_on_position(branch, doctor_on_duty, front_quota, front_position):
    override = ScenarioService.create(
        scenario_name="Quiet",
        position_requirements=[PositionRequirementInput(front_position.id, 1, 0, override_base=True)],
    )

    [front] = aggregate_quota_status(branch_id=branch.id, on_date=WEDNESDAY).position_statuses

    assert (front.designated_quota, front.minimum_required, front.still_required) == (1, 0, 0)
    assert front.matched_scenario_id == override.id


def test_missing_required_staff_uses_display_names(branch, doctor_on_duty, front_quota, front_position):
    here = _local(branch, front_position, "Here")
    away = Staff.objects.create(name="Siriporn", nickname="Pim", position=front_position, branch=branch)
    ScenarioService.create(scenario_name="Needs Pim", specific_staff_ids=[away.id, here.id])

    status = aggregate_quota_status(branch_id=branch.id, on_date=WEDNESDAY)

    assert status.missing_required_staff == ("Pim",)


def test_clamp_warning_surfaces_on_branch(branch, doctor_on_duty, front_position):
    ScenarioService.create(
        scenario_name="Odd",
        position_requirements=[PositionRequirementInput(front_position.id, 1, 3, override_base=True)],
    )

    status = aggregate_quota_status(branch_id=branch.id, on_date=WEDNESDAY)

    assert [w.code for w in status.warnings] == ["minimum_exceeds_preferred"]
    assert status.position_statuses[0].minimum_required == 1


def test_repeat_runs_are_identical(
    branch, doctor_on_duty, front_quota, front_position, assistant_position, front_group, rotation_position
):
    _front_minimum(branch, front_group, 2)
    _local(branch, front_position, "Nok")
    _rotation(branch, rotation_position, "Fon")
    ScenarioService.create(
        scenario_name="Assistants",
        position_requirements=[PositionRequirementInput(assistant_position.id, 1, 1)],
    )

    first = json.dumps(aggregate_quota_status(branch_id=branch.id, on_date=WEDNESDAY).to_dict(), sort_keys=True)
    second = json.dumps(aggregate_quota_status(branch_id=branch.id, on_date=WEDNESDAY).to_dict(), sort_keys=True)

    assert first == second
