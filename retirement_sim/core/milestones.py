"""Quick calculator: one monthly contribution evaluated at fixed target ages."""

from __future__ import annotations

from datetime import date
from typing import List, Optional, Sequence

from retirement_sim.core.dates import add_years, today_utc
from retirement_sim.core.projection import simulate_plan
from retirement_sim.domain.errors import ErrorKind, PlanValidationError
from retirement_sim.models import MilestoneResult, RetirementInput

DEFAULT_MILESTONE_AGES = (50, 55, 60, 65)
DEFAULT_MILESTONE_RATE = 0.10


def project_milestones(
    birth_date: date,
    monthly_contribution: float,
    ages: Sequence[int] = DEFAULT_MILESTONE_AGES,
    annual_rate: float = DEFAULT_MILESTONE_RATE,
    now: Optional[date] = None,
) -> List[MilestoneResult]:
    """Future value of ``monthly_contribution`` at each age in ``ages``.

    Ages whose date is not at least one whole month away come back with zero
    months and zero value; ``reached`` tells whether the birthday has passed.
    """
    now = now or today_utc()
    results: List[MilestoneResult] = []
    for age in ages:
        plan_input = RetirementInput(
            birthDate=birth_date,
            retirementAge=age,
            annualReturnRate=annual_rate,
            monthlyContributions=(monthly_contribution,),
            referenceNow=now,
        )
        try:
            plan = simulate_plan(plan_input)
        except PlanValidationError as exc:
            if exc.kinds != [ErrorKind.PAST_TARGET_DATE]:
                raise
            target_date = add_years(birth_date, age)
            results.append(
                MilestoneResult(
                    age=age,
                    targetDate=target_date,
                    monthsRemaining=0,
                    futureValue=0.0,
                    reached=target_date <= now,
                )
            )
            continue

        results.append(
            MilestoneResult(
                age=age,
                targetDate=plan.targetDate,
                monthsRemaining=plan.monthsToRetirement,
                futureValue=plan.scenarios[0].futureValue,
                reached=False,
            )
        )
    return results
