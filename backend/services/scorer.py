"""
scorer.py — Health Metric Scoring
Maps raw journal signals onto normalized 0..100 scores and qualitative labels.
All functions are pure and never raise; missing inputs score as zero/neutral.
"""

import math

from schemas import RawMetrics, ScoredMetrics

IDEAL_SLEEP_HOURS = 8.0
SLEEP_POINTS_PER_HOUR = 12.5
EXERCISE_TARGET_MINUTES = 30.0

MENTAL_HEALTH_BASE = 75
MOOD_IMPACT = {
    "veryPositive": 25,
    "positive": 15,
    "neutral": 0,
    "negative": -15,
    "veryNegative": -25,
}
STRESS_IMPACT = {
    "veryLow": 25,
    "low": 15,
    "moderate": 0,
    "high": -15,
    "veryHigh": -25,
}
SYMPTOM_PENALTY = 5
MAX_SYMPTOM_PENALTY = 25

_LABEL_BUCKETS = [
    (90, "Excellent"),
    (80, "Very Good"),
    (70, "Good"),
    (60, "Fair"),
    (50, "Poor"),
]


def round_half_up(value: float) -> int:
    """Round .5 away from zero (62.5 -> 63), unlike Python's banker's rounding. NaN/inf -> 0."""
    if not math.isfinite(value):
        return 0
    return int(math.copysign(math.floor(abs(value) + 0.5), value))


def clamp(value: float, low: float = 0, high: float = 100) -> float:
    return max(low, min(high, value))


def _category_value(category) -> str:
    value = getattr(category, "value", category)
    return value if isinstance(value, str) else ""


def sleep_score(hours) -> int:
    if not hours:
        return 0
    try:
        deviation = abs(float(hours) - IDEAL_SLEEP_HOURS)
    except (TypeError, ValueError):
        return 0
    if not math.isfinite(deviation):
        return 0
    return int(clamp(round_half_up(100 - deviation * SLEEP_POINTS_PER_HOUR)))


def mental_health_score(mood, stress, symptom_count=0) -> int:
    score = MENTAL_HEALTH_BASE
    score += MOOD_IMPACT.get(_category_value(mood), 0)
    score += STRESS_IMPACT.get(_category_value(stress), 0)
    try:
        count = max(0, int(symptom_count or 0))
    except (TypeError, ValueError, OverflowError):
        count = 0
    score -= min(count * SYMPTOM_PENALTY, MAX_SYMPTOM_PENALTY)
    return int(clamp(round_half_up(score)))


def exercise_score(minutes) -> float:
    """30 minutes earns the full score; more does not exceed 100."""
    try:
        minutes = float(minutes or 0)
    except (TypeError, ValueError):
        return 0.0
    if not math.isfinite(minutes):
        return 0.0
    return clamp((minutes / EXERCISE_TARGET_MINUTES) * 100)


def _label(score, lowest: str) -> str:
    score = score or 0
    for threshold, label in _LABEL_BUCKETS:
        if score >= threshold:
            return label
    return lowest


def sleep_quality_label(score) -> str:
    return _label(score, "Very Poor")


def mental_health_label(score) -> str:
    return _label(score, "Needs Attention")


def score_metrics(raw: RawMetrics) -> ScoredMetrics:
    s_score = sleep_score(raw.sleep_hours)
    mh_score = mental_health_score(raw.mood, raw.stress, len(raw.symptoms))
    return ScoredMetrics(
        sleep_score=s_score,
        mental_health_score=mh_score,
        exercise_score=exercise_score(raw.exercise_minutes),
        sleep_quality=sleep_quality_label(s_score),
        mental_health_label=mental_health_label(mh_score),
    )
