"""HTTP routes for the Flask API."""

from datetime import date
from http import HTTPStatus
from typing import Any, Dict, List, Optional

from flask import Blueprint, jsonify, request
from loguru import logger
from pydantic import ValidationError

from retirement_sim.core.chart import (
    initial_view,
    nice_ticks,
    retirement_point,
    select_nearest,
    slider_step,
    year_ticks,
    zoom,
)
from retirement_sim.core.dates import parse_date, today_utc
from retirement_sim.core.milestones import (
    DEFAULT_MILESTONE_AGES,
    DEFAULT_MILESTONE_RATE,
    project_milestones,
)
from retirement_sim.core.ping import get_ping_message
from retirement_sim.core.projection import build_timeline, simulate_plan
from retirement_sim.domain.errors import (
    ErrorKind,
    InvalidArgument,
    PlanValidationError,
    ValidationIssue,
)
from retirement_sim.domain.validation import (
    check_birth_date,
    check_contribution,
    check_return_percent,
    validate_form,
)
from retirement_sim.models import TimelinePoint
from retirement_sim.schemas.ping import PingResponse
from retirement_sim.schemas.plan import (
    ChartSummary,
    MilestoneRequest,
    MilestoneResponse,
    PlanRequest,
    PlanResponse,
    TimelineRequest,
    TimelineResponse,
)

api_bp = Blueprint("api", __name__)

_REQUEST_ONLY_FIELDS = {"referenceDate", "scenario", "visibleMonths", "selectMonth"}


@api_bp.errorhandler(ValidationError)
def _handle_validation_error(exc: ValidationError):
    """Convert Pydantic schema errors into JSON responses."""
    logger.warning("Malformed payload on {}: {} error(s)", request.path, exc.error_count())
    return (
        jsonify({"detail": exc.errors(include_url=False, include_context=False)}),
        HTTPStatus.BAD_REQUEST,
    )


@api_bp.errorhandler(PlanValidationError)
def _handle_plan_error(exc: PlanValidationError):
    """Report every rejected field at once; no partial plan is returned."""
    logger.warning("Rejected input on {}: {}", request.path, ", ".join(kind.value for kind in exc.kinds))
    body = {"errors": [issue.model_dump(mode="json") for issue in exc.errors]}
    return jsonify(body), HTTPStatus.UNPROCESSABLE_ENTITY


@api_bp.errorhandler(InvalidArgument)
def _handle_invalid_argument(exc: InvalidArgument):
    logger.warning("Unusable value on {}: {}", request.path, exc)
    return jsonify({"detail": str(exc)}), HTTPStatus.UNPROCESSABLE_ENTITY


def _reference_date(raw: Optional[str]) -> date:
    if raw is None:
        return today_utc()
    parsed = parse_date(raw)
    if parsed is None:
        raise PlanValidationError(
            [
                ValidationIssue(
                    kind=ErrorKind.MALFORMED_DATE,
                    field="referenceDate",
                    message="Reference date must be a real calendar date in YYYY-MM-DD format.",
                )
            ]
        )
    return parsed


def _chart(points: List[TimelinePoint], payload: TimelineRequest) -> ChartSummary:
    view = initial_view(points)
    if payload.visibleMonths:
        view = zoom(view, payload.visibleMonths)
    if payload.selectMonth is not None:
        view = select_nearest(view, payload.selectMonth)
    visible = view.visible
    return ChartSummary(
        visibleMonths=view.visibleMonths,
        sliderStep=slider_step(points[-1].monthIndex),
        selected=view.selected,
        retirement=retirement_point(points),
        yearTicks=year_ticks(visible),
        valueTicks=nice_ticks(max(point.balance for point in visible)),
    )


def _payload() -> Dict[str, Any]:
    return request.get_json(force=True, silent=False)


@api_bp.get("/ping")
def ping() -> Any:
    """Health-check endpoint."""
    response = PingResponse(message=get_ping_message())
    return jsonify(response.model_dump())


@api_bp.post("/plan")
def plan() -> Any:
    """Project every contribution scenario to the retirement date."""
    payload = PlanRequest.model_validate(_payload())
    now = _reference_date(payload.referenceDate)
    plan_input = validate_form(payload.model_dump(exclude=_REQUEST_ONLY_FIELDS), now=now)
    result = simulate_plan(plan_input)
    response = PlanResponse(name=payload.name, plan=result)
    return jsonify(response.model_dump(mode="json"))


@api_bp.post("/timeline")
def timeline() -> Any:
    """Month-by-month balance of one scenario, for charting."""
    payload = TimelineRequest.model_validate(_payload())
    now = _reference_date(payload.referenceDate)
    plan_input = validate_form(payload.model_dump(exclude=_REQUEST_ONLY_FIELDS), now=now)
    if not 0 <= payload.scenario < len(plan_input.monthlyContributions):
        raise PlanValidationError(
            [
                ValidationIssue(
                    kind=ErrorKind.INVALID_CONTRIBUTION,
                    field="scenario",
                    message=f"Scenario {payload.scenario} does not exist.",
                )
            ]
        )
    result = simulate_plan(plan_input)
    points = build_timeline(payload.scenario, plan_input, result)
    response = TimelineResponse(scenario=payload.scenario, points=points, chart=_chart(points, payload))
    return jsonify(response.model_dump(mode="json"))


@api_bp.post("/milestones")
def milestones() -> Any:
    """Quick calculator: one contribution evaluated at several target ages."""
    payload = MilestoneRequest.model_validate(_payload())
    now = _reference_date(payload.referenceDate)

    issues: List[ValidationIssue] = []
    birth = check_birth_date(payload.birthDate, now, issues)
    contribution = check_contribution(payload.monthlyContribution, 0, issues)
    percent = DEFAULT_MILESTONE_RATE * 100
    if payload.annualReturnPercent is not None:
        percent = check_return_percent(payload.annualReturnPercent, issues)
    ages = payload.ages or list(DEFAULT_MILESTONE_AGES)
    if any(age <= 0 for age in ages):
        issues.append(
            ValidationIssue(
                kind=ErrorKind.INVALID_AGE,
                field="ages",
                message="Every target age must be a positive whole number.",
            )
        )
    if issues:
        raise PlanValidationError(issues)

    results = project_milestones(
        birth,
        contribution,
        ages=ages,
        annual_rate=percent / 100,
        now=now,
    )
    return jsonify(MilestoneResponse(milestones=results).model_dump(mode="json"))
