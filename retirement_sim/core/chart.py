"""Read-only views over a timeline for chart widgets.

Zooming or hovering never edits a view: each interaction builds a new
``ChartView`` from the same timeline points. The ``/api/timeline`` endpoint
returns a summary of the view it builds here.
"""

from __future__ import annotations

import math
from typing import List, Optional, Sequence, Tuple

from pydantic import BaseModel, ConfigDict

from retirement_sim.models import TimelinePoint

LONG_HORIZON_MONTHS = 240


class ChartView(BaseModel):
    model_config = ConfigDict(frozen=True)

    points: Tuple[TimelinePoint, ...]
    visibleMonths: int
    selected: Optional[TimelinePoint] = None

    @property
    def visible(self) -> List[TimelinePoint]:
        return visible_points(self.points, self.visibleMonths)


def visible_points(points: Sequence[TimelinePoint], visible_months: int) -> List[TimelinePoint]:
    """Points up to ``visible_months``; zero or less shows everything."""
    if not points:
        return []
    limit = visible_months if visible_months > 0 else points[-1].monthIndex
    return [point for point in points if point.monthIndex <= limit]


def nearest_point(points: Sequence[TimelinePoint], month_index: float) -> Optional[TimelinePoint]:
    nearest: Optional[TimelinePoint] = None
    best = math.inf
    for point in points:
        distance = abs(point.monthIndex - month_index)
        if distance < best:
            nearest, best = point, distance
    return nearest


def retirement_point(points: Sequence[TimelinePoint]) -> Optional[TimelinePoint]:
    return next((point for point in points if point.isRetirementMonth), None)


def nice_ticks(max_value: float, desired_count: int = 5) -> List[float]:
    """Axis ticks from 0 in steps of 1, 2 or 5 times a power of ten."""
    if max_value <= 0 or not math.isfinite(max_value):
        return [0.0]
    raw_step = max_value / desired_count
    magnitude = 10 ** math.floor(math.log10(raw_step))
    residual = raw_step / magnitude
    if residual >= 5:
        step = 5 * magnitude
    elif residual >= 2:
        step = 2 * magnitude
    else:
        step = magnitude

    ticks = [0.0]
    value = step
    while value < max_value:
        ticks.append(float(value))
        value += step
    if ticks[-1] < max_value:
        ticks.append(float(max_value))
    return ticks


def year_ticks(points: Sequence[TimelinePoint]) -> List[Tuple[int, int]]:
    """``(year, monthIndex)`` for the first point of each calendar year."""
    ticks: List[Tuple[int, int]] = []
    seen = set()
    for point in points:
        if point.date.year not in seen:
            seen.add(point.date.year)
            ticks.append((point.date.year, point.monthIndex))
    return ticks


def slider_step(last_month: int) -> int:
    return 6 if last_month > LONG_HORIZON_MONTHS else 1


def initial_view(points: Sequence[TimelinePoint]) -> ChartView:
    last = points[-1] if points else None
    return ChartView(
        points=tuple(points),
        visibleMonths=last.monthIndex if last else 0,
        selected=last,
    )


def zoom(view: ChartView, visible_months: int) -> ChartView:
    """New view limited to ``visible_months``; selection snaps inside the window."""
    window = visible_points(view.points, visible_months)
    selected = view.selected
    if window and (selected is None or selected.monthIndex > window[-1].monthIndex):
        selected = window[-1]
    if not window:
        selected = None
    return ChartView(points=view.points, visibleMonths=visible_months, selected=selected)


def reset_zoom(view: ChartView) -> ChartView:
    return initial_view(view.points)


def select_nearest(view: ChartView, month_index: float) -> ChartView:
    picked = nearest_point(view.visible, month_index)
    return ChartView(points=view.points, visibleMonths=view.visibleMonths, selected=picked or view.selected)
