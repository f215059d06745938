"""Calendar arithmetic on plain dates.

Every value here is a ``datetime.date``: no time of day and no timezone, so a
birth date typed in one place reads the same everywhere. ``datetime`` objects
are refused by the arithmetic helpers; use :func:`as_calendar_date` to bring
an instant down to its UTC calendar day first.
"""

from __future__ import annotations

import math
import re
from calendar import monthrange
from datetime import date, datetime, timezone
from numbers import Real
from typing import Optional

from retirement_sim.domain.errors import InvalidArgument

MONTHS_PER_YEAR = 12

_ISO_DATE = re.compile(r"^([0-9]{4})-([0-9]{2})-([0-9]{2})$")


def as_calendar_date(value: date) -> date:
    """Drop the time of day; aware datetimes are read in UTC first."""
    if isinstance(value, datetime):
        if value.tzinfo is not None:
            value = value.astimezone(timezone.utc)
        return value.date()
    if isinstance(value, date):
        return value
    raise InvalidArgument(f"expected a date, got {type(value).__name__}")


def today_utc() -> date:
    return as_calendar_date(datetime.now(timezone.utc))


def parse_date(text: object) -> Optional[date]:
    """Parse strict ``YYYY-MM-DD`` text; None for anything else."""
    if not isinstance(text, str):
        return None
    match = _ISO_DATE.match(text)
    if match is None:
        return None
    year, month, day = (int(part) for part in match.groups())
    try:
        return date(year, month, day)
    except ValueError:
        return None


def format_date(value: date) -> str:
    return _require_date(value, "value").isoformat()


def _require_date(value: object, name: str) -> date:
    if isinstance(value, datetime) or not isinstance(value, date):
        raise InvalidArgument(f"{name} must be a calendar date")
    return value


def _require_whole(value: object, name: str) -> int:
    if isinstance(value, bool) or not isinstance(value, Real):
        raise InvalidArgument(f"{name} must be a finite number")
    if not math.isfinite(value):
        raise InvalidArgument(f"{name} must be a finite number")
    return int(value)


def _clamped(year: int, month: int, day: int) -> date:
    try:
        last_day = monthrange(year, month)[1]
        return date(year, month, min(day, last_day))
    except (ValueError, OverflowError) as exc:
        raise InvalidArgument(f"date out of range: {year:04d}-{month:02d}") from exc


def add_years(value: date, years: float) -> date:
    """Shift ``value`` by whole years; fractions are dropped.

    A day that does not exist in the resulting month (Feb 29 in a common
    year) is clamped to the month's last day, so 2024-02-29 + 1 is 2025-02-28.
    """
    value = _require_date(value, "date")
    years = _require_whole(years, "years")
    return _clamped(value.year + years, value.month, value.day)


def add_months(value: date, months: int) -> date:
    """Shift ``value`` by whole months, clamping to the month's last day."""
    value = _require_date(value, "date")
    months = _require_whole(months, "months")
    index = value.year * MONTHS_PER_YEAR + (value.month - 1) + months
    year, month0 = divmod(index, MONTHS_PER_YEAR)
    return _clamped(year, month0 + 1, value.day)


def months_between(start: date, end: date) -> int:
    """Whole calendar months from ``start`` up to ``end``.

    Steps ``start`` forward one calendar month at a time and stops before a
    partial final month. Zero when ``end`` is not after ``start``.
    """
    start = _require_date(start, "start")
    end = _require_date(end, "end")
    if end <= start:
        return 0

    # jump close to the answer, then settle on the last step not past `end`
    months = (end.year - start.year) * MONTHS_PER_YEAR + (end.month - start.month)
    while months > 0 and add_months(start, months) > end:
        months -= 1
    while add_months(start, months + 1) <= end:
        months += 1
    return months


def age_in_years(reference: date, birth: date) -> int:
    reference = _require_date(reference, "reference")
    birth = _require_date(birth, "birth")
    age = reference.year - birth.year
    if (reference.month, reference.day) < (birth.month, birth.day):
        age -= 1
    return age


def year_to_age(birth: object, target_year: object) -> Optional[int]:
    """Age reached during ``target_year``; None when either input is unusable."""
    if isinstance(birth, datetime) or not isinstance(birth, date):
        return None
    if isinstance(target_year, bool) or not isinstance(target_year, Real):
        return None
    if not math.isfinite(target_year) or int(target_year) != target_year:
        return None
    return int(target_year) - birth.year


__all__ = [
    "MONTHS_PER_YEAR",
    "as_calendar_date",
    "today_utc",
    "parse_date",
    "format_date",
    "add_years",
    "add_months",
    "months_between",
    "age_in_years",
    "year_to_age",
]
