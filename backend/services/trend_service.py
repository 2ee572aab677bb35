"""
trend_service.py — Trend & Consistency Analysis
Averages, consistency scores and moving-average trend direction over an
ordered window of {date, value} points. Stateless: the same window always
yields the same result.
"""

from dataclasses import dataclass

from services.scorer import clamp, round_half_up

NOT_ENOUGH_DATA = "Not enough data"
STABLE_THRESHOLD = 0.5
MOVING_AVERAGE_WINDOW = 3


@dataclass(frozen=True)
class TrendResult:
    average: float
    consistency_score: int
    direction: str


def _value(point) -> float:
    if isinstance(point, dict):
        raw = point.get("value")
    else:
        raw = getattr(point, "value", point)
    try:
        return float(raw or 0)
    except (TypeError, ValueError):
        return 0.0


def values_of(points) -> list[float]:
    return [_value(p) for p in points or []]


def average(values) -> float:
    values = list(values)
    return sum(values) / len(values) if values else 0.0


def consistency_score(values, target: float | None = None) -> int:
    """100 minus ten points per unit of mean deviation, clamped to 0..100.

    With a target the deviation is measured against it; without one it is
    the mean absolute day-to-day change.
    """
    values = list(values)
    if len(values) < 2:
        return 0

    if target is not None:
        penalty = average(abs(v - target) for v in values) * 10
    else:
        deltas = [abs(curr - prev) for prev, curr in zip(values, values[1:])]
        penalty = average(deltas) * 10
    return int(clamp(round_half_up(100 - penalty)))


def moving_average(values, window: int = MOVING_AVERAGE_WINDOW) -> list[float]:
    values = list(values)
    return [
        sum(values[i - window + 1:i + 1]) / window
        for i in range(window - 1, len(values))
    ]


def trend_direction(values) -> str:
    smoothed = moving_average(values)
    if not smoothed:
        return NOT_ENOUGH_DATA
    delta = smoothed[-1] - smoothed[0]
    if abs(delta) < STABLE_THRESHOLD:
        return "stable"
    return "improving" if delta > 0 else "declining"


def analyze_trend(points, target: float | None = None) -> TrendResult:
    values = values_of(points)
    return TrendResult(
        average=average(values),
        consistency_score=consistency_score(values, target),
        direction=trend_direction(values),
    )


def record_trend(direction: str) -> str:
    """Analysis records only carry improving/stable/declining."""
    return "stable" if direction == NOT_ENOUGH_DATA else direction
