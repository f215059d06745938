from __future__ import annotations

import datetime as dt
from typing import Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field

from retirement_sim.core.dates import today_utc


class RetirementInput(BaseModel):
    """Typed inputs for one simulation call.

    Field types are enforced here; value rules (positive age, rate floor,
    positive contributions, ...) are checked by ``domain.validation`` so that
    every problem can be reported at once.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    birthDate: dt.date
    retirementAge: int
    retirementYear: Optional[int] = None
    annualReturnRate: float
    monthlyContributions: Tuple[float, ...]
    initialSavings: float = 0.0
    referenceNow: dt.date = Field(default_factory=today_utc)


class YearMismatch(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")

    expected: int
    provided: int


class ScenarioResult(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")

    id: int = Field(ge=0)
    monthlyContribution: float
    futureValue: float
    totalContributed: float
    interestEarned: float


class RetirementPlan(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")

    referenceNow: dt.date
    targetDate: dt.date
    expectedRetirementYear: int
    monthsToRetirement: int = Field(gt=0)
    durationYears: int = Field(ge=0)
    durationMonths: int = Field(ge=0, le=11)
    annualReturnRate: float
    monthlyRate: float
    currentAge: int
    retirementAge: int
    initialSavings: float
    yearMismatch: Optional[YearMismatch] = None
    scenarios: Tuple[ScenarioResult, ...]


class TimelinePoint(BaseModel):
    """Balance of one scenario at the end of month ``monthIndex``."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    monthIndex: int = Field(ge=0)
    date: dt.date
    balance: float
    contributed: float
    isRetirementMonth: bool = False


class MilestoneResult(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")

    age: int
    targetDate: dt.date
    monthsRemaining: int = Field(ge=0)
    futureValue: float
    reached: bool
