"""Plain-text rendering of plans for the terminal."""

from __future__ import annotations

from typing import List, Sequence

from retirement_sim.core.dates import format_date
from retirement_sim.models import MilestoneResult, RetirementPlan

SCENARIO_HEADERS = (
    "Scenario",
    "Monthly contribution",
    "Total contributed",
    "Projected capital",
    "Interest earned",
)

MILESTONE_HEADERS = ("Target age", "Months remaining", "Future value")


def format_currency(value: float) -> str:
    """USD with thousands separators and two decimals, e.g. ``-$1,234.50``."""
    sign = "-" if value < 0 else ""
    return f"{sign}${abs(value):,.2f}"


def render_table(headers: Sequence[str], rows: Sequence[Sequence[str]]) -> List[str]:
    widths = [
        max([len(header)] + [len(row[index]) for row in rows])
        for index, header in enumerate(headers)
    ]

    def line(cells: Sequence[str]) -> str:
        return "  ".join(cell.ljust(width) for cell, width in zip(cells, widths)).rstrip()

    return [line(headers), line(["-" * width for width in widths])] + [line(row) for row in rows]


def scenario_rows(plan: RetirementPlan) -> List[List[str]]:
    return [
        [
            f"Scenario {scenario.id + 1}",
            format_currency(scenario.monthlyContribution),
            format_currency(scenario.totalContributed),
            format_currency(scenario.futureValue),
            format_currency(scenario.interestEarned),
        ]
        for scenario in plan.scenarios
    ]


def plan_summary(plan: RetirementPlan, name: str = "") -> List[str]:
    lines: List[str] = []
    if name:
        lines.append(f"Name: {name}")
    lines += [
        f"Current age: {plan.currentAge}",
        f"Target age: {plan.retirementAge}",
        f"Estimated retirement date: {format_date(plan.targetDate)} (year {plan.expectedRetirementYear})",
        f"Time remaining: {plan.durationYears} years and {plan.durationMonths} months "
        f"({plan.monthsToRetirement} months in total)",
        f"Annual return: {plan.annualReturnRate * 100:.2f}% (monthly rate {plan.monthlyRate * 100:.3f}%)",
    ]
    if plan.initialSavings:
        lines.append(f"Current savings: {format_currency(plan.initialSavings)}")
    if plan.yearMismatch is not None:
        lines.append(
            f"Note: the year you entered ({plan.yearMismatch.provided}) does not match the target age "
            f"(expected year {plan.yearMismatch.expected})."
        )
    return lines


def render_plan(plan: RetirementPlan, name: str = "") -> List[str]:
    return (
        ["--- Summary ---"]
        + plan_summary(plan, name)
        + ["", "--- Savings scenarios (USD) ---"]
        + render_table(SCENARIO_HEADERS, scenario_rows(plan))
    )


def render_milestones(results: Sequence[MilestoneResult]) -> List[str]:
    rows = []
    for result in results:
        if result.reached:
            months = "0 (already reached)"
        elif result.monthsRemaining == 0:
            months = "0 (this month)"
        else:
            months = str(result.monthsRemaining)
        rows.append([f"{result.age} years", months, format_currency(result.futureValue)])
    return render_table(MILESTONE_HEADERS, rows)
