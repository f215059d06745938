from __future__ import annotations

import math
from numbers import Real
from typing import List, Union

from loguru import logger

from retirement_sim.core.dates import (
    MONTHS_PER_YEAR,
    add_months,
    add_years,
    age_in_years,
)
from retirement_sim.domain.errors import InvalidArgument, PlanValidationError
from retirement_sim.domain.validation import check_months_to_target, validate_input
from retirement_sim.models import (
    RetirementInput,
    RetirementPlan,
    ScenarioResult,
    TimelinePoint,
    YearMismatch,
)


def _is_number(value: object) -> bool:
    return isinstance(value, Real) and not isinstance(value, bool)


def annual_to_monthly_rate(annual_rate: float) -> float:
    """Geometric monthly equivalent: ``(1 + annual) ** (1/12) - 1``."""
    if not _is_number(annual_rate) or not math.isfinite(annual_rate):
        raise InvalidArgument("annual_rate must be a finite number")
    if annual_rate < -1:
        raise InvalidArgument("annual_rate cannot be below -100%")
    return (1.0 + annual_rate) ** (1.0 / MONTHS_PER_YEAR) - 1.0


def future_value_of_annuity(payment: float, monthly_rate: float, periods: float) -> float:
    """
    Ordinary annuity: ``payment`` deposited at the END of each of ``periods``
    months, each compounding for the months left after it.

      - periods <= 0  -> 0.0 (no time left to save)
      - rate == 0     -> payment * periods
      - otherwise     -> payment * ((1 + r)^n - 1) / r
    """
    if not _is_number(payment) or not math.isfinite(payment):
        raise InvalidArgument("payment must be a finite number")
    if not _is_number(monthly_rate) or math.isnan(monthly_rate):
        raise InvalidArgument("monthly_rate must be a number")
    if not _is_number(periods) or not math.isfinite(periods):
        raise InvalidArgument("periods must be a finite number")

    if periods <= 0:
        return 0.0
    if monthly_rate == 0:
        return float(payment * periods)
    return payment * (((1.0 + monthly_rate) ** periods - 1.0) / monthly_rate)


def _scenario(index: int, contribution: float, monthly_rate: float, months: int) -> ScenarioResult:
    future_value = future_value_of_annuity(contribution, monthly_rate, months)
    total_contributed = contribution * months
    return ScenarioResult(
        id=index,
        monthlyContribution=contribution,
        futureValue=future_value,
        totalContributed=total_contributed,
        interestEarned=future_value - total_contributed,
    )


def simulate_plan(plan_input: RetirementInput) -> RetirementPlan:
    """
    Project every contribution scenario up to the retirement date.

    Order of operations:
      1) Check all input values; any problem -> PlanValidationError with the full list.
      2) targetDate = birthDate + retirementAge years (Feb 29 clamps to Feb 28).
      3) Count whole months from referenceNow; zero -> PastTargetDate.
      4) Flag (never reject) a supplied retirementYear that disagrees with targetDate.
      5) One monthly rate, one ScenarioResult per contribution, input order kept.
    """
    issues = validate_input(plan_input)
    if issues:
        raise PlanValidationError(issues)

    now = plan_input.referenceNow
    target_date = add_years(plan_input.birthDate, plan_input.retirementAge)
    months = check_months_to_target(plan_input.birthDate, plan_input.retirementAge, now, issues)
    if months is None:
        raise PlanValidationError(issues)

    expected_year = target_date.year
    mismatch = None
    if plan_input.retirementYear is not None and plan_input.retirementYear != expected_year:
        mismatch = YearMismatch(expected=expected_year, provided=plan_input.retirementYear)

    monthly_rate = annual_to_monthly_rate(plan_input.annualReturnRate)
    scenarios = [
        _scenario(index, contribution, monthly_rate, months)
        for index, contribution in enumerate(plan_input.monthlyContributions)
    ]

    plan = RetirementPlan(
        referenceNow=now,
        targetDate=target_date,
        expectedRetirementYear=expected_year,
        monthsToRetirement=months,
        durationYears=months // MONTHS_PER_YEAR,
        durationMonths=months % MONTHS_PER_YEAR,
        annualReturnRate=plan_input.annualReturnRate,
        monthlyRate=monthly_rate,
        currentAge=age_in_years(now, plan_input.birthDate),
        retirementAge=plan_input.retirementAge,
        initialSavings=plan_input.initialSavings,
        yearMismatch=mismatch,
        scenarios=tuple(scenarios),
    )
    logger.debug(
        "Plan computed: target={} months={} scenarios={}",
        target_date.isoformat(),
        months,
        len(scenarios),
    )
    return plan


def build_timeline(
    scenario: Union[int, ScenarioResult],
    plan_input: RetirementInput,
    plan: RetirementPlan,
) -> List[TimelinePoint]:
    """
    Month-by-month balance for one scenario, months 0..monthsToRetirement.

    Month 0 holds the initial savings only. Each later month grows the previous
    balance by the monthly rate, then adds that month's contribution.
    """
    if isinstance(scenario, ScenarioResult):
        index = scenario.id
    elif _is_number(scenario) and math.isfinite(scenario) and int(scenario) == scenario:
        index = int(scenario)
    else:
        raise InvalidArgument("scenario must be an index or a ScenarioResult")
    if not 0 <= index < len(plan.scenarios):
        raise InvalidArgument(f"scenario {index} does not exist in this plan")

    contribution = plan.scenarios[index].monthlyContribution
    growth = 1.0 + plan.monthlyRate
    balance = float(plan_input.initialSavings)

    points: List[TimelinePoint] = [
        TimelinePoint(monthIndex=0, date=plan.referenceNow, balance=balance, contributed=0.0)
    ]
    for month in range(1, plan.monthsToRetirement + 1):
        balance = balance * growth + contribution
        points.append(
            TimelinePoint(
                monthIndex=month,
                date=add_months(plan.referenceNow, month),
                balance=balance,
                contributed=contribution * month,
                isRetirementMonth=month == plan.monthsToRetirement,
            )
        )
    return points


__all__ = [
    "annual_to_monthly_rate",
    "future_value_of_annuity",
    "simulate_plan",
    "build_timeline",
]
