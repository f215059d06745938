"""Field-by-field validation of raw and typed plan inputs.

Each ``check_*`` helper appends a :class:`ValidationIssue` to ``issues`` and
returns None when its field is unusable, so a caller can sweep every field in
one pass (``validate_form``) or re-prompt for a single field (the CLI).
"""

from __future__ import annotations

import math
import re
from datetime import date, datetime
from numbers import Real
from typing import Any, List, Mapping, Optional, Sequence

from loguru import logger

from retirement_sim.core.dates import (
    add_years,
    age_in_years,
    format_date,
    months_between,
    parse_date,
    today_utc,
    year_to_age,
)
from retirement_sim.domain.errors import ErrorKind, PlanValidationError, ValidationIssue
from retirement_sim.models import RetirementInput

RATE_FLOOR = -1.0

# one year of headroom below date.max so month stepping past the target stays valid
LATEST_TARGET_YEAR = date.max.year - 1

_WHITESPACE = re.compile(r"\s+")


def _issue(issues: List[ValidationIssue], kind: ErrorKind, field: str, message: str) -> None:
    issues.append(ValidationIssue(kind=kind, field=field, message=message))


def _is_blank(raw: Any) -> bool:
    return raw is None or (isinstance(raw, str) and raw.strip() == "")


def parse_amount(raw: Any) -> Optional[float]:
    """Read a number typed with either ``,`` or ``.`` as decimal separator."""
    if isinstance(raw, bool):
        return None
    if isinstance(raw, Real):
        value = float(raw)
    elif isinstance(raw, str):
        normalized = _WHITESPACE.sub("", raw).replace(",", ".")
        if not normalized:
            return None
        try:
            value = float(normalized)
        except ValueError:
            return None
    else:
        return None
    return value if math.isfinite(value) else None


def parse_whole(raw: Any) -> Optional[int]:
    """Integer value of ``raw`` or None when it has a fractional part."""
    value = parse_amount(raw)
    if value is None or not value.is_integer():
        return None
    return int(value)


# -----------------------------
# Per-field checks
# -----------------------------


def check_name(raw: Any, issues: List[ValidationIssue]) -> Optional[str]:
    name = raw.strip() if isinstance(raw, str) else ""
    if not name:
        _issue(issues, ErrorKind.INVALID_NAME, "name", "Name cannot be empty.")
        return None
    return name


def check_birth_date(raw: Any, now: date, issues: List[ValidationIssue]) -> Optional[date]:
    if isinstance(raw, date) and not isinstance(raw, datetime):
        birth = raw
    else:
        birth = parse_date(raw.strip() if isinstance(raw, str) else raw)
    if birth is None:
        _issue(
            issues,
            ErrorKind.MALFORMED_DATE,
            "birthDate",
            "Birth date must be a real calendar date in YYYY-MM-DD format.",
        )
        return None
    if birth > now:
        _issue(issues, ErrorKind.FUTURE_BIRTH_DATE, "birthDate", "Birth date cannot be in the future.")
        return None
    return birth


def check_retirement_age(
    raw: Any,
    birth: Optional[date],
    now: date,
    issues: List[ValidationIssue],
) -> Optional[int]:
    age = parse_whole(raw)
    if age is None or age <= 0:
        _issue(issues, ErrorKind.INVALID_AGE, "retirementAge", "Retirement age must be a positive whole number.")
        return None
    if birth is not None and birth.year + age > LATEST_TARGET_YEAR:
        _issue(
            issues,
            ErrorKind.INVALID_AGE,
            "retirementAge",
            f"Retirement age must put retirement no later than the year {LATEST_TARGET_YEAR}.",
        )
        return None
    if birth is not None and age <= age_in_years(now, birth):
        _issue(
            issues,
            ErrorKind.INVALID_AGE,
            "retirementAge",
            "Retirement age must be greater than your current age.",
        )
        return None
    return age


def check_months_to_target(
    birth: date,
    retirement_age: int,
    now: date,
    issues: List[ValidationIssue],
) -> Optional[int]:
    """Whole months from ``now`` to the birthday at ``retirement_age``.

    A target less than one whole month away is ``PastTargetDate`` and gives None.
    """
    target = add_years(birth, retirement_age)
    months = months_between(now, target)
    if months <= 0:
        _issue(
            issues,
            ErrorKind.PAST_TARGET_DATE,
            "retirementAge",
            f"Retirement date {format_date(target)} must be at least one whole month away.",
        )
        return None
    return months


def check_retirement_year(
    raw: Any,
    birth: Optional[date],
    now: date,
    issues: List[ValidationIssue],
) -> Optional[int]:
    """Blank means "not supplied" and is not an error."""
    if _is_blank(raw):
        return None
    year = parse_whole(raw)
    if year is None:
        _issue(issues, ErrorKind.INVALID_YEAR, "retirementYear", "Retirement year must be a whole number (e.g. 2045).")
        return None
    if birth is not None and year < birth.year:
        _issue(
            issues,
            ErrorKind.INVALID_YEAR,
            "retirementYear",
            "Retirement year cannot be earlier than the birth year.",
        )
        return None
    if year < now.year:
        _issue(
            issues,
            ErrorKind.INVALID_YEAR,
            "retirementYear",
            "Retirement year must be the current year or later.",
        )
        return None
    return year


def check_return_percent(raw: Any, issues: List[ValidationIssue]) -> Optional[float]:
    percent = parse_amount(raw)
    if percent is None or percent / 100 < RATE_FLOOR:
        _issue(
            issues,
            ErrorKind.INVALID_RATE,
            "averageReturnPercent",
            "Average annual return must be a number no lower than -100%.",
        )
        return None
    return percent


def check_savings(raw: Any, issues: List[ValidationIssue]) -> Optional[float]:
    if _is_blank(raw):
        return 0.0
    savings = parse_amount(raw)
    if savings is None or savings < 0:
        _issue(issues, ErrorKind.INVALID_SAVINGS, "currentSavings", "Current savings must be a number of 0 or more.")
        return None
    return savings


def check_contribution(raw: Any, index: int, issues: List[ValidationIssue]) -> Optional[float]:
    amount = parse_amount(raw)
    if amount is None or amount <= 0:
        _issue(
            issues,
            ErrorKind.INVALID_CONTRIBUTION,
            f"contributions[{index}]",
            f"Scenario {index + 1} must be a number greater than 0.",
        )
        return None
    return amount


def check_contributions(raw: Any, issues: List[ValidationIssue]) -> Optional[List[float]]:
    if isinstance(raw, (str, bytes)) or not isinstance(raw, Sequence) or len(raw) == 0:
        _issue(
            issues,
            ErrorKind.INVALID_CONTRIBUTION,
            "contributions",
            "At least one monthly contribution scenario is required.",
        )
        return None
    before = len(issues)
    amounts = [check_contribution(value, index, issues) for index, value in enumerate(raw)]
    if len(issues) > before:
        return None
    return [amount for amount in amounts if amount is not None]


# -----------------------------
# Whole-form validation
# -----------------------------


def suggested_retirement_year(birth: date, retirement_age: int) -> int:
    return add_years(birth, retirement_age).year


def validate_form(
    form: Mapping[str, Any],
    now: Optional[date] = None,
    require_name: bool = False,
) -> RetirementInput:
    """Validate a raw form in one pass and build a ``RetirementInput``.

    Expected keys: ``name``, ``birthDate``, ``retirementAge``,
    ``retirementYear``, ``averageReturnPercent``, ``currentSavings`` and
    ``contributions``. Age and year can each be derived from the other.
    Raises :class:`PlanValidationError` carrying every issue found.
    """
    now = now or today_utc()
    issues: List[ValidationIssue] = []

    if require_name or not _is_blank(form.get("name")):
        check_name(form.get("name"), issues)

    birth = check_birth_date(form.get("birthDate"), now, issues)

    raw_age = form.get("retirementAge")
    raw_year = form.get("retirementYear")
    if _is_blank(raw_age) and birth is not None and parse_whole(raw_year) is not None:
        raw_age = year_to_age(birth, parse_whole(raw_year))
    if _is_blank(raw_age):
        # an unusable birth date or year is already reported on its own field
        if _is_blank(raw_year):
            _issue(issues, ErrorKind.INVALID_AGE, "retirementAge", "Retirement age or retirement year is required.")
        age = None
    else:
        age = check_retirement_age(raw_age, birth, now, issues)
    year = check_retirement_year(raw_year, birth, now, issues)

    percent = check_return_percent(form.get("averageReturnPercent"), issues)
    savings = check_savings(form.get("currentSavings"), issues)
    contributions = check_contributions(form.get("contributions"), issues)

    if issues:
        logger.debug("Rejected plan form with {} issue(s)", len(issues))
        raise PlanValidationError(issues)

    return RetirementInput(
        birthDate=birth,
        retirementAge=age,
        retirementYear=year,
        annualReturnRate=percent / 100,
        monthlyContributions=tuple(contributions),
        initialSavings=savings,
        referenceNow=now,
    )


def _finite(value: Any) -> bool:
    return isinstance(value, Real) and not isinstance(value, bool) and math.isfinite(value)


def validate_input(plan_input: RetirementInput) -> List[ValidationIssue]:
    """Value rules for an already-typed input; empty list when usable."""
    issues: List[ValidationIssue] = []
    birth = plan_input.birthDate
    now = plan_input.referenceNow

    if birth > now:
        _issue(issues, ErrorKind.FUTURE_BIRTH_DATE, "birthDate", "Birth date cannot be after the reference date.")

    age = plan_input.retirementAge
    if isinstance(age, bool) or not isinstance(age, int) or age <= 0:
        _issue(issues, ErrorKind.INVALID_AGE, "retirementAge", "Retirement age must be a positive whole number.")
    elif birth.year + age > LATEST_TARGET_YEAR:
        _issue(
            issues,
            ErrorKind.INVALID_AGE,
            "retirementAge",
            f"Retirement age must put retirement no later than the year {LATEST_TARGET_YEAR}.",
        )

    year = plan_input.retirementYear
    if year is not None and (isinstance(year, bool) or not isinstance(year, int) or year < birth.year):
        _issue(
            issues,
            ErrorKind.INVALID_YEAR,
            "retirementYear",
            "Retirement year must be a whole number no earlier than the birth year.",
        )
    elif year is not None and year < now.year:
        _issue(
            issues,
            ErrorKind.INVALID_YEAR,
            "retirementYear",
            "Retirement year cannot be earlier than the reference year.",
        )

    rate = plan_input.annualReturnRate
    if not _finite(rate) or rate < RATE_FLOOR:
        _issue(issues, ErrorKind.INVALID_RATE, "annualReturnRate", "Annual return rate must be finite and at least -100%.")

    contributions = plan_input.monthlyContributions
    if not contributions:
        _issue(
            issues,
            ErrorKind.INVALID_CONTRIBUTION,
            "monthlyContributions",
            "At least one monthly contribution scenario is required.",
        )
    for index, amount in enumerate(contributions):
        if not _finite(amount) or amount <= 0:
            _issue(
                issues,
                ErrorKind.INVALID_CONTRIBUTION,
                f"monthlyContributions[{index}]",
                f"Scenario {index + 1} must be a number greater than 0.",
            )

    savings = plan_input.initialSavings
    if not _finite(savings) or savings < 0:
        _issue(issues, ErrorKind.INVALID_SAVINGS, "initialSavings", "Initial savings must be finite and not negative.")

    return issues


__all__ = [
    "RATE_FLOOR",
    "LATEST_TARGET_YEAR",
    "parse_amount",
    "parse_whole",
    "check_name",
    "check_birth_date",
    "check_retirement_age",
    "check_months_to_target",
    "check_retirement_year",
    "check_return_percent",
    "check_savings",
    "check_contribution",
    "check_contributions",
    "suggested_retirement_year",
    "validate_form",
    "validate_input",
]
