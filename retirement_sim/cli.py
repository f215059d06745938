"""Command-line front end.

``plan`` asks for each answer in turn and re-asks until it is valid; with
``--batch`` every value comes from flags and any problem aborts with status 1.
``milestones`` runs the quick calculator and ``serve`` starts the HTTP API.
"""

from __future__ import annotations

import argparse
import sys
from dataclasses import dataclass
from datetime import date
from typing import Any, Callable, List, Optional, Sequence, TypeVar

from loguru import logger

from retirement_sim.config import AppConfig, ConfigurationError
from retirement_sim.core.dates import parse_date, today_utc, year_to_age
from retirement_sim.core.milestones import (
    DEFAULT_MILESTONE_AGES,
    DEFAULT_MILESTONE_RATE,
    project_milestones,
)
from retirement_sim.core.projection import simulate_plan
from retirement_sim.domain.errors import PlanValidationError, ValidationIssue
from retirement_sim.domain.validation import (
    check_birth_date,
    check_contribution,
    check_months_to_target,
    check_name,
    check_retirement_age,
    check_retirement_year,
    check_return_percent,
    suggested_retirement_year,
    validate_form,
)
from retirement_sim.formatting import render_milestones, render_plan
from retirement_sim.log import configure_logging

T = TypeVar("T")

SCENARIO_COUNT = 3


@dataclass
class Console:
    """The streams a prompt session talks to."""

    read: Callable[[str], str]
    write: Callable[[str], None]


def default_console() -> Console:
    return Console(read=input, write=print)


def ask(console: Console, question: str, check: Callable[[str, List[ValidationIssue]], Optional[T]]) -> T:
    """Ask ``question`` until ``check`` accepts the answer."""
    while True:
        issues: List[ValidationIssue] = []
        value = check(console.read(question).strip(), issues)
        if not issues and value is not None:
            return value
        for issue in issues:
            console.write(issue.message)


def _optional_year(console: Console, question: str, check) -> Optional[int]:
    while True:
        issues: List[ValidationIssue] = []
        value = check(console.read(question).strip(), issues)
        if not issues:
            return value
        for issue in issues:
            console.write(issue.message)


def interactive_plan(console: Console, config: AppConfig, now: Optional[date] = None) -> int:
    now = now or today_utc()
    console.write("=== Retirement simulator (USD) ===")

    name = ask(console, "Name: ", check_name)
    birth = ask(console, "Birth date (YYYY-MM-DD): ", lambda raw, issues: check_birth_date(raw, now, issues))

    def check_age(raw: str, issues: List[ValidationIssue]) -> Optional[int]:
        age = check_retirement_age(raw, birth, now, issues)
        if age is None or check_months_to_target(birth, age, now, issues) is None:
            return None
        return age

    age = ask(console, "Retirement age (years): ", check_age)
    suggested = suggested_retirement_year(birth, age)
    year = _optional_year(
        console,
        f"Retirement year (suggested {suggested}): ",
        lambda raw, issues: check_retirement_year(raw, birth, now, issues),
    )
    if year is None:
        year = suggested
    else:
        implied_age = year_to_age(birth, year)
        if implied_age < age:
            console.write(
                f"Warning: retiring in {year} means an age of {implied_age}, "
                f"below the chosen {age}. Adjust the age or the year."
            )

    default_percent = config.default_return_percent
    percent = ask(
        console,
        f"Average annual return in % [{default_percent:g}]: ",
        lambda raw, issues: check_return_percent(raw or default_percent, issues),
    )

    defaults = list(config.default_contributions)
    contributions = []
    for index in range(SCENARIO_COUNT):
        fallback = defaults[index] if index < len(defaults) else defaults[-1]
        contributions.append(
            ask(
                console,
                f"Monthly contribution, scenario {index + 1} (USD) [{fallback:g}]: ",
                lambda raw, issues, i=index, d=fallback: check_contribution(raw or d, i, issues),
            )
        )

    form = {
        "name": name,
        "birthDate": birth,
        "retirementAge": age,
        "retirementYear": year,
        "averageReturnPercent": percent,
        "contributions": contributions,
    }
    plan = simulate_plan(validate_form(form, now=now))
    console.write("")
    for line in render_plan(plan, name):
        console.write(line)
    return 0


def _report(issues: Sequence[ValidationIssue]) -> None:
    for issue in issues:
        print(f"error: {issue.kind.value}: {issue.message}", file=sys.stderr)


def _reference(raw: Optional[str]) -> date:
    if raw is None:
        return today_utc()
    parsed = parse_date(raw)
    if parsed is None:
        raise argparse.ArgumentTypeError(f"invalid --today value '{raw}', expected YYYY-MM-DD")
    return parsed


def batch_plan(args: argparse.Namespace) -> int:
    form: dict[str, Any] = {
        "name": args.name,
        "birthDate": args.birth_date,
        "retirementAge": args.age,
        "retirementYear": args.year,
        "averageReturnPercent": args.rate,
        "currentSavings": args.savings,
        "contributions": args.contribution or [],
    }
    try:
        plan = simulate_plan(validate_form(form, now=_reference(args.today)))
    except PlanValidationError as exc:
        _report(exc.errors)
        return 1
    for line in render_plan(plan, args.name or ""):
        print(line)
    return 0


def run_milestones(args: argparse.Namespace) -> int:
    now = _reference(args.today)
    issues: List[ValidationIssue] = []
    birth = check_birth_date(args.birth_date, now, issues)
    contribution = check_contribution(args.contribution, 0, issues)
    percent = check_return_percent(args.rate, issues)
    if issues:
        _report(issues)
        return 1

    results = project_milestones(
        birth,
        contribution,
        ages=args.ages or DEFAULT_MILESTONE_AGES,
        annual_rate=percent / 100,
        now=now,
    )
    print(f"Estimated savings at {percent:g}% annual return:")
    for line in render_milestones(results):
        print(line)
    return 0


def serve(args: argparse.Namespace, config: AppConfig) -> int:
    from retirement_sim.app import create_app

    app = create_app(config)
    app.run(host=args.host or config.host, port=args.port or config.port, debug=args.debug)
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="retirement-sim",
        description="Project retirement savings for one or more monthly contribution scenarios.",
    )
    parser.add_argument("--log-level", help="Override the configured log level.")
    commands = parser.add_subparsers(dest="command")

    plan = commands.add_parser("plan", help="Project savings up to a retirement age (default).")
    plan.add_argument("--batch", action="store_true", help="Read every value from flags instead of prompting.")
    plan.add_argument("--name", help="Name shown in the summary.")
    plan.add_argument("--birth-date", help="Birth date, YYYY-MM-DD.")
    plan.add_argument("--age", help="Retirement age in years.")
    plan.add_argument("--year", help="Retirement year; checked against the age.")
    plan.add_argument("--rate", help="Average annual return in percent.")
    plan.add_argument("--savings", help="Current savings.")
    plan.add_argument(
        "--contribution",
        action="append",
        help="Monthly contribution for one scenario; repeat for more scenarios.",
    )
    plan.add_argument("--today", help="Simulate as of this YYYY-MM-DD date.")

    milestones = commands.add_parser("milestones", help="Future value of one contribution at fixed ages.")
    milestones.add_argument("--birth-date", required=True, help="Birth date, YYYY-MM-DD.")
    milestones.add_argument("--contribution", required=True, help="Monthly contribution.")
    milestones.add_argument(
        "--rate",
        default=str(DEFAULT_MILESTONE_RATE * 100),
        help="Average annual return in percent.",
    )
    milestones.add_argument("--ages", type=int, nargs="+", help="Target ages (default 50 55 60 65).")
    milestones.add_argument("--today", help="Simulate as of this YYYY-MM-DD date.")

    server = commands.add_parser("serve", help="Run the HTTP API.")
    server.add_argument("--host")
    server.add_argument("--port", type=int)
    server.add_argument("--debug", action="store_true")
    return parser


def main(argv: Optional[Sequence[str]] = None, console: Optional[Console] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        config = AppConfig.from_env()
    except ConfigurationError as e:
        print(f"error: {e}", file=sys.stderr)
        return 2
    configure_logging(args.log_level or config.log_level)

    command = args.command or "plan"
    try:
        if command == "milestones":
            return run_milestones(args)
        if command == "serve":
            return serve(args, config)
        if getattr(args, "batch", False):
            return batch_plan(args)
        return interactive_plan(console or default_console(), config)
    except argparse.ArgumentTypeError as e:
        parser.error(str(e))
    except PlanValidationError as exc:
        _report(exc.errors)
        return 1
    except (KeyboardInterrupt, EOFError):
        print("", file=sys.stderr)
        return 130
    except Exception:
        logger.exception("Unexpected failure while running '{}'", command)
        return 1
    return 0
