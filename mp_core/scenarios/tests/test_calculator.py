# mp_core/scenarios/tests/test_calculator.py
import logging
from datetime import date

import pytest
from rest_framework.exceptions import ValidationError

from mp_core.scenarios.calculator import BaseRequirement, calculate_requirement
from mp_core.scenarios.matching import match_scenarios
from mp_core.scenarios.services import PositionRequirementInput, ScenarioService
from mp_core.staffing.models import Staff

pytestmark = pytest.mark.django_db

WEDNESDAY = date(2024, 1, 10)


def _scenario(name, position, preferred, minimum, *, override=False, priority=0, **fields):
    return ScenarioService.create(
        scenario_name=name,
        priority=priority,
        position_requirements=[PositionRequirementInput(position.id, preferred, minimum, override)],
        **fields,
    )


def test_base_from_active_quota(branch, front_position, front_quota):
    result = calculate_requirement(branch_id=branch.id, on_date=WEDNESDAY, position_id=front_position.id)

    assert (result.base_preferred, result.base_minimum) == (3, 2)
    assert (result.calculated_preferred, result.calculated_minimum) == (3, 2)
    assert result.factors_applied == ()
    assert result.matched_scenario_id is None


def test_base_is_zero_without_quota(branch, front_position):
    result = calculate_requirement(branch_id=branch.id, on_date=WEDNESDAY, position_id=front_position.id)
    assert (result.calculated_preferred, result.calculated_minimum) == (0, 0)


def test_explicit_base_is_used(branch, front_position, front_quota):
    result = calculate_requirement(
        branch_id=branch.id,
        on_date=WEDNESDAY,
        position_id=front_position.id,
        base=BaseRequirement(preferred=5, minimum=4),
    )
    assert (result.calculated_preferred, result.calculated_minimum) == (5, 4)


@pytest.mark.parametrize(
    "base",
    [
        BaseRequirement(preferred=-2, minimum=-5),
        BaseRequirement(preferred=3, minimum=-1),
        BaseRequirement(preferred=True, minimum=0),
    ],
)
def test_invalid_explicit_base_rejected(branch, front_position, base):
    _scenario("Busy", front_position, 6, 4)

    with pytest.raises(ValidationError) as exc:
        calculate_requirement(branch_id=branch.id, on_date=WEDNESDAY, position_id=front_position.id, base=base)
    assert "base" in exc.value.detail


def test_override_stops_lower_priority_floor(branch, front_position, front_quota):
    override = _scenario("Quiet day", front_position, 1, 1, override=True, priority=10)
    _scenario("Busy floor", front_position, 6, 4, priority=5)

    result = calculate_requirement(branch_id=branch.id, on_date=WEDNESDAY, position_id=front_position.id)

    assert (result.calculated_preferred, result.calculated_minimum) == (1, 1)
    assert result.matched_scenario_id == override.id
    assert result.matched_scenario_name == "Quiet day"
    assert [(f.scenario_name, f.effect) for f in result.factors_applied] == [
        ("Quiet day", "override"),
        ("Busy floor", "shadowed"),
    ]
    assert result.factors_applied[1].describe() == "Busy floor (priority 5, floor 6/4): shadowed"


def test_floor_above_override_raises_override(branch, front_position, front_quota):
    _scenario("Busy floor", front_position, 6, 4, priority=10)
    _scenario("Quiet day", front_position, 1, 1, override=True, priority=5)

    result = calculate_requirement(branch_id=branch.id, on_date=WEDNESDAY, position_id=front_position.id)

    # Override replaces whatever the walk had reached
    assert (result.calculated_preferred, result.calculated_minimum) == (1, 1)
    assert [f.effect for f in result.factors_applied] == ["raised", "override"]


def test_non_overriding_scenarios_combine_by_max(branch, front_position, front_quota):
    _scenario("More front", front_position, 5, 1, priority=3)
    _scenario("Higher minimum", front_position, 2, 3, priority=2)
    _scenario("Lower", front_position, 1, 1, priority=1)

    result = calculate_requirement(branch_id=branch.id, on_date=WEDNESDAY, position_id=front_position.id)

    assert (result.calculated_preferred, result.calculated_minimum) == (5, 3)
    assert [f.effect for f in result.factors_applied] == ["raised", "raised", "unchanged"]
    assert result.matched_scenario_id is None


def test_scenarios_for_other_positions_ignored(branch, front_position, assistant_position, front_quota):
    _scenario("Assistants", assistant_position, 9, 9, override=True, priority=50)

    result = calculate_requirement(branch_id=branch.id, on_date=WEDNESDAY, position_id=front_position.id)

    assert (result.calculated_preferred, result.calculated_minimum) == (3, 2)
    assert result.factors_applied == ()


def test_non_matching_scenario_has_no_effect(branch, other_branch, front_position, front_quota):
    _scenario("Elsewhere", front_position, 9, 9, override=True, branch_id=other_branch.id)

    result = calculate_requirement(branch_id=branch.id, on_date=WEDNESDAY, position_id=front_position.id)

    assert (result.calculated_preferred, result.calculated_minimum) == (3, 2)


def test_minimum_clamped_to_preferred_with_warning(branch, front_position, caplog):
    _scenario("Misconfigured", front_position, 2, 5, override=True)

    with caplog.at_level(logging.WARNING, logger="mp_core.scenarios.calculator"):
        result = calculate_requirement(branch_id=branch.id, on_date=WEDNESDAY, position_id=front_position.id)

    assert (result.calculated_preferred, result.calculated_minimum) == (2, 2)
    assert [w.code for w in result.warnings] == ["minimum_exceeds_preferred"]
    assert result.warnings[0].details["calculated_minimum"] == 5
    assert "Clamped minimum" in caplog.text


def test_result_is_consistent_across_calls(branch, front_position, front_quota):
    _scenario("Busy floor", front_position, 6, 4, priority=5)

    first = calculate_requirement(branch_id=branch.id, on_date=WEDNESDAY, position_id=front_position.id)
    second = calculate_requirement(branch_id=branch.id, on_date=WEDNESDAY, position_id=front_position.id)

    assert first.to_dict() == second.to_dict()
    assert first.calculated_minimum <= first.calculated_preferred


def test_required_staff_from_matching_scenarios(branch, front_position):
    nok = Staff.objects.create(name="Nok", position=front_position, branch=branch)
    ScenarioService.create(scenario_name="Nok on Wednesdays", day_of_week=3, specific_staff_ids=[nok.id])
    ScenarioService.create(scenario_name="Nok on Mondays", day_of_week=1, specific_staff_ids=[nok.id])

    # Unfiltered run, as the branch aggregation does
    matches = match_scenarios(branch_id=branch.id, on_date=WEDNESDAY)
    result = calculate_requirement(
        branch_id=branch.id, on_date=WEDNESDAY, position_id=front_position.id, matches=matches
    )

    assert result.required_staff_ids == (nok.id,)
    assert result.to_dict()["required_staff_ids"] == [str(nok.id)]
