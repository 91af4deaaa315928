# mp_core/scenarios/tests/test_matching.py
from datetime import date, timedelta
from decimal import Decimal
from types import SimpleNamespace

import pytest

from mp_core.revenue.selectors import RevenueFacts
from mp_core.revenue.services import RevenueInput, RevenueLevelTierService, RevenueService
from mp_core.scenarios.matching import match_scenarios, matching_only, selected_revenue
from mp_core.scenarios.services import PositionRequirementInput, ScenarioService

pytestmark = pytest.mark.django_db

SUNDAY = date(2024, 1, 7)
WEDNESDAY = date(2024, 1, 10)


def _by_name(matches):
    return {m.scenario_name: m for m in matches}


def test_wednesday_scenario_matches_only_on_wednesday(branch, other_branch):
    ScenarioService.create(scenario_name="Wednesday rush", day_of_week=3)

    for offset in range(7):
        d = SUNDAY + timedelta(days=offset)
        for b in (branch, other_branch):
            match = _by_name(match_scenarios(branch_id=b.id, on_date=d))["Wednesday rush"]
            assert match.matches is (offset == 3)
            if offset != 3:
                assert match.failed == ("day_of_week",)


@pytest.mark.parametrize(
    "revenue, max_revenue, expected",
    [
        ("1000", "2000", True),
        ("1999.99", "2000", True),
        ("2000", "2000", False),
        ("999.99", "2000", False),
        ("5000", None, True),
    ],
)
def test_revenue_band_is_half_open(branch, revenue, max_revenue, expected):
    ScenarioService.create(scenario_name="Band", min_revenue=1000, max_revenue=max_revenue)

    matches = match_scenarios(
        branch_id=branch.id,
        on_date=WEDNESDAY,
        revenue=RevenueFacts(day_of_week_revenue=Decimal(revenue)),
    )

    assert _by_name(matches)["Band"].matches is expected


def test_revenue_selection_follows_flags():
    facts = RevenueFacts(day_of_week_revenue=Decimal("100"), specific_date_revenue=Decimal("900"))
    no_specific = RevenueFacts(day_of_week_revenue=Decimal("100"))

    def scenario(dow_flag, specific_flag):
        return SimpleNamespace(use_day_of_week_revenue=dow_flag, use_specific_date_revenue=specific_flag)

    assert selected_revenue(scenario(False, True), facts) == (Decimal("900"), "specific date")
    assert selected_revenue(scenario(True, False), facts) == (Decimal("100"), "day-of-week")
    assert selected_revenue(scenario(True, True), no_specific) == (Decimal("100"), "day-of-week")
    assert selected_revenue(scenario(False, False), facts) == (Decimal("900"), "specific date")
    assert selected_revenue(scenario(False, False), no_specific) == (Decimal("100"), "day-of-week")


def test_weekly_revenue_uses_case_multipliers(branch):
    RevenueService.set_weekly_revenue(branch_id=branch.id, entries={3: RevenueInput(vitamin_cases=1)})
    ScenarioService.create(scenario_name="Band", min_revenue=1000, max_revenue=2000, use_day_of_week_revenue=True)

    assert _by_name(match_scenarios(branch_id=branch.id, on_date=WEDNESDAY))["Band"].matches is True


def test_actual_revenue_wins_for_specific_date(branch):
    RevenueService.set_weekly_revenue(branch_id=branch.id, entries={3: RevenueInput(expected_revenue=Decimal("500"))})
    RevenueService.set_daily_revenue(branch_id=branch.id, on_date=WEDNESDAY, actual_revenue=Decimal("1500"))
    ScenarioService.create(scenario_name="Band", min_revenue=1000, max_revenue=2000, use_specific_date_revenue=True)
    ScenarioService.create(scenario_name="Weekly", min_revenue=0, max_revenue=1000, use_day_of_week_revenue=True)

    matches = _by_name(match_scenarios(branch_id=branch.id, on_date=WEDNESDAY))
    assert matches["Band"].matches is True
    assert matches["Weekly"].matches is True


def test_revenue_tier_membership(branch):
    low = RevenueLevelTierService.upsert(level_number=1, level_name="Low", min_revenue=0, max_revenue=10000)
    high = RevenueLevelTierService.upsert(level_number=2, level_name="High", min_revenue=10000)
    ScenarioService.create(scenario_name="Low day", revenue_level_tier_id=low.id)
    ScenarioService.create(scenario_name="High day", revenue_level_tier_id=high.id)

    matches = _by_name(
        match_scenarios(
            branch_id=branch.id,
            on_date=WEDNESDAY,
            revenue=RevenueFacts(day_of_week_revenue=Decimal("12000")),
        )
    )

    assert matches["High day"].matches is True
    assert "Revenue Level 2 (High) from day-of-week revenue" in matches["High day"].reasons
    assert matches["Low day"].failed == ("revenue_level_tier",)


def test_doctor_count_predicates(branch, make_doctor):
    from mp_core.doctors.services import DoctorScheduleService

    for _ in range(2):
        DoctorScheduleService.assign_doctor(doctor_id=make_doctor().id, branch_id=branch.id, on_date=WEDNESDAY)
    ScenarioService.create(scenario_name="Exactly two", doctor_count=2)
    ScenarioService.create(scenario_name="Exactly three", doctor_count=3)
    ScenarioService.create(scenario_name="At least two", min_doctor_count=2)

    matches = _by_name(match_scenarios(branch_id=branch.id, on_date=WEDNESDAY))

    assert matches["Exactly two"].matches is True
    assert matches["Exactly three"].failed == ("doctor_count",)
    assert matches["At least two"].matches is True
    assert "Doctors >= 2" in matches["At least two"].reasons


def test_doctor_scenario_matches_when_doctor_on_duty(branch, other_branch, doctor_on_duty):
    ScenarioService.create(scenario_name="Dr. Anan day", doctor_id=doctor_on_duty.id)

    here = _by_name(match_scenarios(branch_id=branch.id, on_date=WEDNESDAY))["Dr. Anan day"]
    elsewhere = _by_name(match_scenarios(branch_id=other_branch.id, on_date=WEDNESDAY))["Dr. Anan day"]

    assert here.matches is True
    assert elsewhere.matches is False
    assert elsewhere.failed == ("doctor_id",)


def test_doctor_scoped_context_compares_given_doctor(branch, doctor, make_doctor):
    other = make_doctor()
    ScenarioService.create(scenario_name="Dr. Anan day", doctor_id=doctor.id)

    assert _by_name(match_scenarios(branch_id=branch.id, on_date=WEDNESDAY, doctor_id=doctor.id))[
        "Dr. Anan day"
    ].matches
    assert not _by_name(match_scenarios(branch_id=branch.id, on_date=WEDNESDAY, doctor_id=other.id))[
        "Dr. Anan day"
    ].matches


def test_branch_predicate(branch, other_branch):
    ScenarioService.create(scenario_name="Siam only", branch_id=branch.id)

    assert _by_name(match_scenarios(branch_id=branch.id, on_date=WEDNESDAY))["Siam only"].matches
    assert not _by_name(match_scenarios(branch_id=other_branch.id, on_date=WEDNESDAY))["Siam only"].matches


def test_position_filter_keeps_only_scenarios_for_position(branch, front_position, assistant_position):
    ScenarioService.create(
        scenario_name="Front boost",
        position_requirements=[PositionRequirementInput(front_position.id, 4, 2)],
    )
    ScenarioService.create(
        scenario_name="Assistant boost",
        position_requirements=[PositionRequirementInput(assistant_position.id, 2, 1)],
    )

    matches = match_scenarios(branch_id=branch.id, on_date=WEDNESDAY, position_id=front_position.id)

    assert [m.scenario_name for m in matching_only(matches)] == ["Front boost"]
    assert _by_name(matches)["Assistant boost"].failed == ("position",)


def test_ordered_by_priority_and_inactive_excluded(branch):
    ScenarioService.create(scenario_name="Low", priority=1)
    ScenarioService.create(scenario_name="High", priority=10)
    ScenarioService.create(scenario_name="Mid", priority=5)
    ScenarioService.create(scenario_name="Disabled", priority=99, is_active=False)

    matches = match_scenarios(branch_id=branch.id, on_date=WEDNESDAY)

    assert [m.scenario_name for m in matches] == ["High", "Mid", "Low"]
    assert [m.priority for m in matches] == [10, 5, 1]


def test_non_match_lists_every_failed_predicate(branch, other_branch):
    ScenarioService.create(scenario_name="Picky", branch_id=other_branch.id, day_of_week=1, doctor_count=4)

    match = _by_name(match_scenarios(branch_id=branch.id, on_date=WEDNESDAY))["Picky"]

    assert match.matches is False
    assert match.failed == ("branch_id", "day_of_week", "doctor_count")
    assert match.reasons == ()
    assert match.to_dict()["match_reason"] == ""
