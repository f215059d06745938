from __future__ import annotations

import math
from datetime import date
from math import isclose

import pytest

from retirement_sim.core.projection import (
    annual_to_monthly_rate,
    build_timeline,
    future_value_of_annuity,
    simulate_plan,
)
from retirement_sim.domain.errors import ErrorKind, InvalidArgument, PlanValidationError
from retirement_sim.models import RetirementInput


def make_input(**overrides) -> RetirementInput:
    values = {
        "birthDate": date(1990, 6, 15),
        "retirementAge": 65,
        "annualReturnRate": 0.06,
        "monthlyContributions": (300.0, 500.0, 800.0),
        "referenceNow": date(2024, 6, 15),
    }
    values.update(overrides)
    return RetirementInput(**values)


# -----------------------------
# Rate conversion and annuity
# -----------------------------


def test_monthly_rate_is_geometric():
    assert isclose(annual_to_monthly_rate(0.06), 0.0048675506, rel_tol=1e-8)
    assert (1 + annual_to_monthly_rate(0.06)) ** 12 == pytest.approx(1.06)


def test_monthly_rate_zero_and_negative():
    assert annual_to_monthly_rate(0.0) == 0.0
    assert annual_to_monthly_rate(-0.05) < 0
    assert annual_to_monthly_rate(-1.0) == -1.0


@pytest.mark.parametrize("bad", [float("nan"), float("inf"), -1.5, "0.06", None])
def test_monthly_rate_rejects_unusable_values(bad):
    with pytest.raises(InvalidArgument):
        annual_to_monthly_rate(bad)


@pytest.mark.parametrize("payment,periods", [(500.0, 120), (1.25, 7), (300.0, 360)])
def test_zero_rate_degenerates_to_simple_sum(payment, periods):
    assert future_value_of_annuity(payment, 0.0, periods) == payment * periods


@pytest.mark.parametrize("rate", [0.0, 0.01, -0.004])
def test_no_periods_means_no_value(rate):
    assert future_value_of_annuity(250.0, rate, 0) == 0.0
    assert future_value_of_annuity(250.0, rate, -3) == 0.0


def test_annuity_matches_closed_form():
    rate = 0.005
    expected = 100 * ((1.005 ** 12 - 1) / 0.005)
    assert isclose(future_value_of_annuity(100.0, rate, 12), expected, rel_tol=1e-12)
    # end-of-period deposits: a single period earns nothing
    assert isclose(future_value_of_annuity(100.0, rate, 1), 100.0, rel_tol=1e-12)


def test_annuity_rejects_unusable_values():
    with pytest.raises(InvalidArgument):
        future_value_of_annuity(float("inf"), 0.01, 12)
    with pytest.raises(InvalidArgument):
        future_value_of_annuity(100.0, float("nan"), 12)
    with pytest.raises(InvalidArgument):
        future_value_of_annuity(100.0, 0.01, float("inf"))


# -----------------------------
# Plan assembly
# -----------------------------


def test_plan_dates_and_ages():
    plan = simulate_plan(make_input())

    assert plan.currentAge == 34
    assert plan.targetDate == date(2055, 6, 15)
    assert plan.expectedRetirementYear == 2055
    assert plan.monthsToRetirement == 372
    assert (plan.durationYears, plan.durationMonths) == (31, 0)
    assert plan.yearMismatch is None


def test_zero_rate_plan_earns_no_interest():
    plan = simulate_plan(
        make_input(
            retirementAge=70,
            annualReturnRate=0.0,
            monthlyContributions=(500.0,),
            referenceNow=date(2050, 6, 15),
        )
    )

    assert plan.monthsToRetirement == 120
    scenario = plan.scenarios[0]
    assert scenario.futureValue == 60000.0
    assert scenario.totalContributed == 60000.0
    assert scenario.interestEarned == 0.0


def test_six_percent_for_thirty_years():
    plan = simulate_plan(
        make_input(
            birthDate=date(1990, 1, 1),
            retirementAge=60,
            monthlyContributions=(300.0,),
            referenceNow=date(2020, 1, 1),
        )
    )

    assert plan.monthsToRetirement == 360
    assert isclose(plan.monthlyRate * 100, 0.4868, abs_tol=1e-4)
    scenario = plan.scenarios[0]
    assert isclose(scenario.futureValue, 292353.89, abs_tol=0.01)
    assert scenario.totalContributed == 108000.0
    assert isclose(scenario.interestEarned, scenario.futureValue - 108000.0, abs_tol=1e-9)


def test_year_mismatch_is_advisory():
    plan = simulate_plan(
        make_input(birthDate=date(1986, 3, 10), retirementYear=2050)
    )

    assert plan.expectedRetirementYear == 2051
    assert plan.yearMismatch is not None
    assert plan.yearMismatch.expected == 2051
    assert plan.yearMismatch.provided == 2050
    assert plan.scenarios


def test_matching_year_has_no_mismatch():
    plan = simulate_plan(make_input(retirementYear=2055))
    assert plan.yearMismatch is None


def test_leap_day_birth_targets_end_of_february():
    plan = simulate_plan(make_input(birthDate=date(1960, 2, 29), referenceNow=date(2024, 6, 15)))
    # 1960 + 65 = 2025, not a leap year
    assert plan.targetDate == date(2025, 2, 28)
    assert plan.monthsToRetirement == 8


def test_target_equal_to_reference_is_past():
    with pytest.raises(PlanValidationError) as excinfo:
        simulate_plan(make_input(birthDate=date(1959, 6, 15)))
    assert excinfo.value.kinds == [ErrorKind.PAST_TARGET_DATE]


def test_target_less_than_a_month_away_is_past():
    with pytest.raises(PlanValidationError) as excinfo:
        simulate_plan(make_input(birthDate=date(1959, 6, 15), referenceNow=date(2024, 6, 1)))
    assert excinfo.value.kinds == [ErrorKind.PAST_TARGET_DATE]


def test_invalid_fields_are_reported_together():
    bad = make_input(
        birthDate=date(2030, 1, 1),
        retirementAge=0,
        annualReturnRate=-2.0,
        monthlyContributions=(0.0, 150.0, -5.0),
        initialSavings=-1.0,
    )
    with pytest.raises(PlanValidationError) as excinfo:
        simulate_plan(bad)

    kinds = excinfo.value.kinds
    assert ErrorKind.FUTURE_BIRTH_DATE in kinds
    assert ErrorKind.INVALID_AGE in kinds
    assert ErrorKind.INVALID_RATE in kinds
    assert ErrorKind.INVALID_SAVINGS in kinds
    assert kinds.count(ErrorKind.INVALID_CONTRIBUTION) == 2
    assert ErrorKind.PAST_TARGET_DATE not in kinds


def test_year_before_birth_is_rejected():
    with pytest.raises(PlanValidationError) as excinfo:
        simulate_plan(make_input(retirementYear=1980))
    assert excinfo.value.kinds == [ErrorKind.INVALID_YEAR]


def test_non_finite_values_are_rejected():
    with pytest.raises(PlanValidationError) as excinfo:
        simulate_plan(make_input(annualReturnRate=math.inf, monthlyContributions=(math.nan,)))
    assert excinfo.value.kinds == [ErrorKind.INVALID_RATE, ErrorKind.INVALID_CONTRIBUTION]


def test_empty_contribution_list_is_rejected():
    with pytest.raises(PlanValidationError) as excinfo:
        simulate_plan(make_input(monthlyContributions=()))
    assert excinfo.value.kinds == [ErrorKind.INVALID_CONTRIBUTION]


def test_simulation_is_repeatable():
    first = simulate_plan(make_input())
    second = simulate_plan(make_input())
    assert first == second
    assert first.model_dump() == second.model_dump()


def test_scenarios_keep_input_order():
    contributions = (800.0, 300.0, 500.0, 50.0)
    plan = simulate_plan(make_input(monthlyContributions=contributions))

    assert [s.id for s in plan.scenarios] == [0, 1, 2, 3]
    assert [s.monthlyContribution for s in plan.scenarios] == list(contributions)
    for scenario in plan.scenarios:
        assert scenario.totalContributed == scenario.monthlyContribution * plan.monthsToRetirement
        assert isclose(
            scenario.interestEarned,
            scenario.futureValue - scenario.totalContributed,
            abs_tol=1e-9,
        )


def test_negative_rate_loses_money():
    plan = simulate_plan(make_input(annualReturnRate=-0.02))
    assert all(s.interestEarned < 0 for s in plan.scenarios)


# -----------------------------
# Timeline
# -----------------------------


def test_timeline_covers_every_month():
    plan_input = make_input(monthlyContributions=(300.0,), initialSavings=1000.0)
    plan = simulate_plan(plan_input)
    points = build_timeline(0, plan_input, plan)

    assert len(points) == plan.monthsToRetirement + 1
    assert [p.monthIndex for p in points] == list(range(plan.monthsToRetirement + 1))
    assert points[0].balance == 1000.0
    assert points[0].contributed == 0.0
    assert points[0].date == date(2024, 6, 15)
    assert points[1].date == date(2024, 7, 15)
    assert points[-1].date == plan.targetDate
    assert [p.isRetirementMonth for p in points].count(True) == 1
    assert points[-1].isRetirementMonth


def test_timeline_ends_at_projected_value():
    plan_input = make_input(monthlyContributions=(300.0, 500.0), initialSavings=2500.0)
    plan = simulate_plan(plan_input)
    months = plan.monthsToRetirement

    last = build_timeline(1, plan_input, plan)[-1]
    grown_savings = 2500.0 * (1 + plan.monthlyRate) ** months
    assert isclose(last.balance, grown_savings + plan.scenarios[1].futureValue, rel_tol=1e-9)
    assert last.contributed == 500.0 * months


def test_timeline_without_savings_matches_annuity():
    plan_input = make_input(annualReturnRate=0.0)
    plan = simulate_plan(plan_input)
    points = build_timeline(plan.scenarios[2], plan_input, plan)
    assert points[-1].balance == pytest.approx(plan.scenarios[2].futureValue)
    assert all(b.balance >= a.balance for a, b in zip(points, points[1:]))


def test_timeline_is_recomputable():
    plan_input = make_input()
    plan = simulate_plan(plan_input)
    assert build_timeline(0, plan_input, plan) == build_timeline(0, plan_input, plan)


@pytest.mark.parametrize("scenario", [-1, 3, 1.5, "0"])
def test_timeline_rejects_unknown_scenario(scenario):
    plan_input = make_input()
    plan = simulate_plan(plan_input)
    with pytest.raises(InvalidArgument):
        build_timeline(scenario, plan_input, plan)


def test_past_target_message_names_the_date():
    with pytest.raises(PlanValidationError) as excinfo:
        simulate_plan(make_input(birthDate=date(1959, 6, 20), referenceNow=date(2024, 6, 1)))
    issue = excinfo.value.errors[0]
    assert issue.kind == ErrorKind.PAST_TARGET_DATE
    assert issue.message == "Retirement date 2024-06-20 must be at least one whole month away."


@pytest.mark.parametrize("age", [8009, 9000, 10**6])
def test_age_past_the_calendar_is_invalid_age(age):
    with pytest.raises(PlanValidationError) as excinfo:
        simulate_plan(make_input(retirementAge=age))
    assert excinfo.value.kinds == [ErrorKind.INVALID_AGE]


def test_latest_allowed_age_still_projects():
    plan = simulate_plan(make_input(retirementAge=8008, monthlyContributions=(1.0,), annualReturnRate=0.0))
    assert plan.targetDate == date(9998, 6, 15)


def test_year_before_reference_year_is_rejected():
    with pytest.raises(PlanValidationError) as excinfo:
        simulate_plan(make_input(retirementYear=2020))
    assert excinfo.value.kinds == [ErrorKind.INVALID_YEAR]
    assert excinfo.value.errors[0].field == "retirementYear"
