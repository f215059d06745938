"""Data contracts for the plan, timeline and milestone endpoints."""

from typing import List, Optional, Tuple, Union

from pydantic import BaseModel, ConfigDict, Field

from retirement_sim.models import MilestoneResult, RetirementPlan, TimelinePoint

# Text is accepted wherever a person types a number; domain.validation reads it.
NumberOrText = Union[int, float, str]


class PlanRequest(BaseModel):
    """Raw form fields, validated together so every problem is reported."""

    model_config = ConfigDict(extra="forbid")

    name: Optional[str] = None
    birthDate: str = Field(..., description="Birth date as YYYY-MM-DD.")
    retirementAge: Optional[NumberOrText] = None
    retirementYear: Optional[NumberOrText] = None
    averageReturnPercent: NumberOrText = Field(
        ...,
        description="Average annual return in percent (e.g. 6 for 6%).",
    )
    currentSavings: Optional[NumberOrText] = None
    contributions: List[NumberOrText] = Field(
        default_factory=list,
        description="Monthly contribution for each scenario, in order.",
    )
    referenceDate: Optional[str] = Field(
        None,
        description="Simulate as of this YYYY-MM-DD date instead of today (UTC).",
    )


class PlanResponse(BaseModel):
    name: Optional[str] = None
    plan: RetirementPlan


class TimelineRequest(PlanRequest):
    scenario: int = Field(0, description="Index of the contribution scenario to chart.")
    visibleMonths: int = Field(0, ge=0, description="Zoom to the first N months; 0 shows the whole timeline.")
    selectMonth: Optional[float] = Field(
        None,
        allow_inf_nan=False,
        description="Select the visible point nearest to this month index.",
    )


class ChartSummary(BaseModel):
    visibleMonths: int
    sliderStep: int
    selected: Optional[TimelinePoint] = None
    retirement: Optional[TimelinePoint] = None
    yearTicks: List[Tuple[int, int]]
    valueTicks: List[float]


class TimelineResponse(BaseModel):
    scenario: int
    points: List[TimelinePoint]
    chart: ChartSummary


class MilestoneRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    birthDate: str
    monthlyContribution: NumberOrText
    ages: Optional[List[int]] = None
    annualReturnPercent: Optional[NumberOrText] = None
    referenceDate: Optional[str] = None


class MilestoneResponse(BaseModel):
    milestones: List[MilestoneResult]
