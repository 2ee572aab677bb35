"""
analysis_service.py — Journal Analysis Orchestrator
Turns a batch of journal entries into one AnalysisRecord. The LLM is asked
for a structured JSON analysis first; transport errors, missing credentials,
unparseable or incomplete replies all degrade to a local analysis built from
the extractor, scorer and trend helpers. Callers always get a valid record.
"""

import json
import logging
import math
from collections import Counter
from dataclasses import dataclass, field
from datetime import datetime

from pydantic import ValidationError

from config import ANALYSIS_CACHE_TTL_SECONDS
from schemas import (
    AnalysisMetrics,
    AnalysisRecord,
    EntryAnalysis,
    ExerciseMetrics,
    JournalEntry,
    LLMAnalysis,
    MentalHealthMetrics,
    Mood,
    RawMetrics,
    SleepMetrics,
    Source,
    Stress,
)
from services import extractor, scorer
from services.history_service import AnalysisHistory
from services.storage_service import StorageError
from services.trend_service import record_trend, trend_direction

logger = logging.getLogger(__name__)

RECORD_TEXT_LIMIT = 3
HEALTHY_SLEEP_HOURS = 7
NEGATIVE_MOODS = {Mood.NEGATIVE.value, Mood.VERY_NEGATIVE.value}

DEFAULT_INSIGHTS = [
    "Not enough journal data yet to identify sleep patterns.",
    "Not enough journal data yet to identify activity patterns.",
    "Keep journaling daily to unlock personalized health insights.",
]
DEFAULT_RECOMMENDATIONS = [
    "Aim for 7-9 hours of sleep each night.",
    "Try to get at least 30 minutes of physical activity daily.",
    "Write a short journal entry each day about your sleep, activity and mood.",
]

SYSTEM_PROMPT = (
    "You are a health analytics expert. You MUST respond with ONLY a valid JSON object "
    "matching the EXACT structure specified. Do not include any other text, markdown, or explanation."
)

RESPONSE_CONTRACT = """Required JSON structure (return EXACTLY this structure):
{
  "metrics": {
    "sleep": {"average": number, "quality": number, "trend": string},
    "mentalHealth": {"averageScore": number, "predominantMood": string, "stressLevel": string, "trend": string},
    "exercise": {"average": number, "trend": string}
  },
  "insights": [string, string, string],
  "recommendations": [string, string, string]
}

Analysis rules:
1. Sleep score (0-100): based on deviation from the ideal 8 hours (subtract 12.5 points per hour of deviation)
2. Mental health score (0-100): based on mood, stress, and symptoms
3. Provide exactly 3 specific insights
4. Provide exactly 3 actionable recommendations
5. Calculate trends as "improving", "stable", or "declining" based on the last 3 entries
6. Round all numbers to 1 decimal place
7. DO NOT include any text or explanation, ONLY the JSON object
8. DO NOT add any additional fields to the JSON structure"""


class MalformedAnalysisError(ValueError):
    """The LLM reply was not a JSON object with the required fields."""


# ── Normalization ─────────────────────────────────────────────────
def _entry_field(entry, *names):
    for name in names:
        if isinstance(entry, dict):
            value = entry.get(name)
        else:
            value = getattr(entry, name, None)
        if value is not None:
            return value
    return None


def _as_iso(value) -> str:
    # Undated entries stay blank so identical batches hash to the same prompt
    if isinstance(value, datetime):
        return value.isoformat()
    return str(value) if value else ""


def _as_number(value):
    try:
        number = float(value) if value is not None and value != "" else None
    except (TypeError, ValueError):
        return None
    return number if number is not None and math.isfinite(number) else None


def normalize_entry(entry, metrics: RawMetrics | None = None) -> dict:
    """Canonical {content, date, mood, stress, energy, sleep, exercise, symptoms} shape."""
    if isinstance(entry, str):
        entry = {"text": entry}
    if isinstance(entry, JournalEntry):
        entry = entry.model_dump()

    content = _entry_field(entry, "text", "content") or ""
    raw = metrics or extractor.extract(str(content))

    # Values the client already recorded take precedence over extraction
    stored = _entry_field(entry, "metrics")
    if not isinstance(stored, dict):
        stored = {}
    sleep = _as_number(_entry_field(entry, "sleep") or stored.get("sleep"))
    exercise = _as_number(_entry_field(entry, "exercise") or stored.get("exercise"))
    mood = _entry_field(entry, "mood") or stored.get("mood")
    mood = getattr(mood, "value", mood)
    if not isinstance(mood, str):
        mood = None

    return {
        "content": str(content),
        "date": _as_iso(_entry_field(entry, "created_at", "createdAt", "date", "timestamp")),
        "mood": mood if mood in {m.value for m in Mood} else raw.mood.value,
        "stress": raw.stress.value,
        "energy": raw.energy.value,
        "sleep": sleep if sleep is not None else raw.sleep_hours,
        "exercise": exercise if exercise is not None else raw.exercise_minutes,
        "symptoms": list(raw.symptoms),
    }


# ── Local aggregation ─────────────────────────────────────────────
@dataclass
class LocalAggregate:
    entry_count: int = 0
    sleep_average: float = 0.0
    sleep_quality: int = 0
    sleep_trend: str = "stable"
    mental_health_score: float = 0.0
    mental_health_trend: str = "stable"
    predominant_mood: str = Mood.NEUTRAL.value
    stress_level: str = Stress.MODERATE.value
    predominant_energy: str = "medium"
    exercise_average: float = 0.0
    exercise_trend: str = "stable"
    symptoms: list = field(default_factory=list)


def _mean(values) -> float:
    values = [v for v in values if v is not None]
    return sum(values) / len(values) if values else 0.0


def _most_common(values, default: str) -> str:
    counts = Counter(v for v in values if v)
    return counts.most_common(1)[0][0] if counts else default


def aggregate(normalized: list[dict]) -> LocalAggregate:
    """Aggregate across all entries (not per entry), oldest to newest for trends."""
    ordered = sorted(normalized, key=lambda e: e["date"])

    sleep_values = [e["sleep"] for e in ordered if e["sleep"]]
    exercise_values = [e["exercise"] for e in ordered if e["exercise"] is not None]
    mental_scores = [
        scorer.mental_health_score(e["mood"], e["stress"], len(e["symptoms"])) for e in ordered
    ]
    sleep_average = round(_mean(sleep_values), 1)
    symptom_counts = Counter(s for e in ordered for s in e["symptoms"])

    return LocalAggregate(
        entry_count=len(ordered),
        sleep_average=sleep_average,
        sleep_quality=scorer.sleep_score(sleep_average),
        sleep_trend=record_trend(trend_direction([scorer.sleep_score(v) for v in sleep_values])),
        mental_health_score=round(_mean(mental_scores), 1),
        mental_health_trend=record_trend(trend_direction(mental_scores)),
        predominant_mood=_most_common([e["mood"] for e in ordered], Mood.NEUTRAL.value),
        stress_level=_most_common([e["stress"] for e in ordered], Stress.MODERATE.value),
        predominant_energy=_most_common([e["energy"] for e in ordered], "medium"),
        exercise_average=round(_mean(exercise_values), 1),
        exercise_trend=record_trend(trend_direction(exercise_values)),
        symptoms=[s for s, _ in symptom_counts.most_common()],
    )


def _humanize(category: str) -> str:
    """'veryPositive' -> 'very positive'."""
    return "".join(f" {c.lower()}" if c.isupper() else c for c in category).strip()


def local_insights(agg: LocalAggregate) -> list[str]:
    if agg.sleep_average > 0:
        healthy = agg.sleep_average >= HEALTHY_SLEEP_HOURS
        sleep = (
            f"Average sleep is {agg.sleep_average:.1f} hours "
            f"({'healthy' if healthy else 'below recommended'}), a sleep score of {agg.sleep_quality}."
        )
    else:
        sleep = "No sleep duration was mentioned in these entries, so sleep could not be assessed."

    if agg.exercise_average > 0:
        meeting = agg.exercise_average >= scorer.EXERCISE_TARGET_MINUTES
        exercise = (
            f"Exercise averages {agg.exercise_average:.0f} minutes "
            f"({'meeting' if meeting else 'below'} the recommended 30 minutes a day)."
        )
    else:
        exercise = "No exercise sessions were recorded in these entries."

    wellbeing = (
        f"Overall wellbeing shows {_humanize(agg.predominant_mood)} mood with "
        f"{agg.predominant_energy} energy and {_humanize(agg.stress_level)} stress"
    )
    if agg.symptoms:
        wellbeing += f"; symptoms noted: {', '.join(agg.symptoms)}."
    else:
        wellbeing += " and no reported symptoms."
    return [sleep, exercise, wellbeing]


def local_recommendations(agg: LocalAggregate) -> list[str]:
    if agg.sleep_average < HEALTHY_SLEEP_HOURS:
        sleep = "Increase your sleep duration: keep a consistent bedtime routine and aim for 7-9 hours of sleep."
    else:
        sleep = "Maintain your current sleep schedule; consistent bed and wake times protect sleep quality."

    if agg.exercise_average < scorer.EXERCISE_TARGET_MINUTES:
        exercise = "Start with short exercise sessions and gradually work up to 30 minutes of activity daily."
    else:
        exercise = "Keep up your activity level of at least 30 minutes a day."

    if agg.predominant_mood in NEGATIVE_MOODS:
        mood = "Set aside 10 minutes a day for mindfulness or deep breathing to help manage low moods."
    else:
        mood = "Your mood has been holding up well; keep making time for the routines that support it."
    return [sleep, exercise, mood]


def merge_texts(primary, secondary, limit: int = RECORD_TEXT_LIMIT) -> list[str]:
    """Primary items first, padded from secondary; case-insensitive de-duplication."""
    merged, seen = [], set()
    for text in list(primary or []) + list(secondary or []):
        text = str(text).strip()
        if not text or text.casefold() in seen:
            continue
        seen.add(text.casefold())
        merged.append(text)
        if len(merged) == limit:
            break
    return merged


def _local_metrics(agg: LocalAggregate) -> AnalysisMetrics:
    return AnalysisMetrics(
        sleep=SleepMetrics(average=agg.sleep_average, quality=agg.sleep_quality, trend=agg.sleep_trend),
        mental_health=MentalHealthMetrics(
            average_score=agg.mental_health_score,
            predominant_mood=agg.predominant_mood,
            stress_level=agg.stress_level,
            trend=agg.mental_health_trend,
        ),
        exercise=ExerciseMetrics(average=agg.exercise_average, trend=agg.exercise_trend),
    )


def fallback_record(agg: LocalAggregate) -> AnalysisRecord:
    return AnalysisRecord(
        metrics=_local_metrics(agg),
        insights=local_insights(agg),
        recommendations=local_recommendations(agg),
        source=Source.FALLBACK,
        entry_count=agg.entry_count,
    )


def default_record() -> AnalysisRecord:
    """Fixed record returned when there is nothing to analyze."""
    return AnalysisRecord(
        metrics=AnalysisMetrics(
            sleep=SleepMetrics(average=7.5, quality=75, trend="stable"),
            mental_health=MentalHealthMetrics(average_score=80, trend="stable"),
            exercise=ExerciseMetrics(average=30, trend="stable"),
        ),
        insights=list(DEFAULT_INSIGHTS),
        recommendations=list(DEFAULT_RECOMMENDATIONS),
        source=Source.FALLBACK,
        entry_count=0,
    )


# ── LLM path ──────────────────────────────────────────────────────
def build_messages(normalized: list[dict]) -> list[dict]:
    prompt = (
        "Analyze this array of journal entries and return ONLY a valid JSON object:\n"
        + json.dumps(normalized, indent=2)
        + "\n\n"
        + RESPONSE_CONTRACT
    )
    return [
        {"role": "system", "content": SYSTEM_PROMPT},
        {"role": "user", "content": prompt},
    ]


def parse_llm_reply(text: str | None) -> LLMAnalysis:
    """Pull the JSON object out of *text* and check the required fields."""
    if not text or not text.strip():
        raise MalformedAnalysisError("Empty response from analysis")

    start = text.find("{")
    end = text.rfind("}") + 1
    if start < 0 or end <= start:
        raise MalformedAnalysisError("No JSON object in response")

    try:
        payload = json.loads(text[start:end])
    except json.JSONDecodeError as e:
        raise MalformedAnalysisError(f"Invalid JSON: {e}") from e
    if not isinstance(payload, dict):
        raise MalformedAnalysisError("Response is not a JSON object")

    try:
        return LLMAnalysis.model_validate(payload)
    except ValidationError as e:
        raise MalformedAnalysisError(f"Invalid analysis structure: {e.error_count()} error(s)") from e


def _round1(value: float) -> float:
    return round(float(value), 1)


def merge_llm_analysis(llm: LLMAnalysis, agg: LocalAggregate) -> AnalysisRecord:
    local = _local_metrics(agg)
    sleep = llm.metrics.sleep
    mental = llm.metrics.mental_health or local.mental_health
    exercise = llm.metrics.exercise or local.exercise

    return AnalysisRecord(
        metrics=AnalysisMetrics(
            sleep=SleepMetrics(
                average=_round1(sleep.average),
                quality=_round1(scorer.clamp(sleep.quality)),
                trend=sleep.trend,
            ),
            mental_health=MentalHealthMetrics(
                average_score=_round1(scorer.clamp(mental.average_score)),
                predominant_mood=mental.predominant_mood,
                stress_level=mental.stress_level,
                trend=mental.trend,
            ),
            exercise=ExerciseMetrics(average=_round1(max(0.0, exercise.average)), trend=exercise.trend),
        ),
        insights=merge_texts(llm.insights, local_insights(agg)),
        recommendations=merge_texts(llm.recommendations, local_recommendations(agg)),
        source=Source.LLM,
        entry_count=agg.entry_count,
    )


# ── Single entry ──────────────────────────────────────────────────
def analyze_entry(text: str) -> EntryAnalysis:
    """Local analysis of one entry, attached to the entry when it is saved."""
    raw = extractor.extract(text)
    scores = scorer.score_metrics(raw)

    insights = []
    if raw.sleep_hours:
        healthy = raw.sleep_hours >= HEALTHY_SLEEP_HOURS
        insights.append(
            f"Sleep duration is {raw.sleep_hours:g} hours ({'healthy' if healthy else 'below recommended'}). "
            + ("Maintain this healthy sleep pattern." if healthy else "Consider aiming for 7-9 hours for optimal health.")
        )
    if raw.exercise_minutes:
        meeting = raw.exercise_minutes >= scorer.EXERCISE_TARGET_MINUTES
        insights.append(
            f"Exercise duration is {raw.exercise_minutes} minutes ({'meeting' if meeting else 'below'} recommended levels). "
            + ("Keep up this good level of activity." if meeting else "Aim for at least 30 minutes of daily activity.")
        )
    insights.append(
        f"Overall wellbeing shows {_humanize(raw.mood.value)} mood with {raw.energy.value} energy levels"
        + (f". Health concerns noted: {', '.join(raw.symptoms)}" if raw.symptoms else " with no reported symptoms.")
    )

    suggestions = []
    if (raw.sleep_hours or 0) < HEALTHY_SLEEP_HOURS:
        suggestions.append("Establish a consistent bedtime routine and aim for 7-9 hours of sleep")
    if (raw.exercise_minutes or 0) < scorer.EXERCISE_TARGET_MINUTES:
        suggestions.append("Start with short exercise sessions and gradually work up to 30 minutes daily")
    if raw.symptoms:
        suggestions.append("Monitor your symptoms and consider consulting a healthcare provider if they persist")
    if len(suggestions) < 2:
        if raw.energy.value == "low":
            suggestions.append("Try to identify and address factors affecting your energy levels")
        elif raw.mood.value in NEGATIVE_MOODS:
            suggestions.append("Consider activities that boost your mood like exercise or socializing")
        else:
            suggestions.append("Maintain your current healthy routines and track any changes in your wellbeing")

    return EntryAnalysis(metrics=raw, scores=scores, insights=insights, recommendations=suggestions)


# ── Orchestrator ──────────────────────────────────────────────────
class AnalysisOrchestrator:
    """Request-scoped analysis state machine.

    The router (and the response cache inside it) is shared across requests;
    the history is the calling user's.
    """

    def __init__(self, llm_router=None, history: AnalysisHistory | None = None,
                 cache_ttl: int = ANALYSIS_CACHE_TTL_SECONDS):
        self.llm_router = llm_router
        self.history = history
        self.cache_ttl = cache_ttl

    async def _external_analysis(self, normalized: list[dict]) -> LLMAnalysis | None:
        if self.llm_router is None or not getattr(self.llm_router, "has_credentials", False):
            logger.info("No LLM credentials configured; using local analysis")
            return None

        resp = await self.llm_router.route(
            build_messages(normalized), cache_ttl=self.cache_ttl, json_mode=True
        )
        if resp.get("status") != "success":
            logger.warning(f"LLM analysis unavailable: {resp.get('error')}")
            return None

        try:
            return parse_llm_reply(resp.get("text"))
        except MalformedAnalysisError as e:
            logger.warning(f"Discarding malformed LLM analysis: {e}")
            return None

    async def analyze(self, entries, prior_metrics: list[RawMetrics] | None = None) -> AnalysisRecord:
        if not isinstance(entries, (list, tuple)) or not entries:
            logger.info("No journal entries supplied; returning default analysis")
            return default_record()

        if prior_metrics is not None and len(prior_metrics) != len(entries):
            logger.warning("prior_metrics length does not match entries; re-extracting")
            prior_metrics = None

        normalized = [
            normalize_entry(entry, prior_metrics[i] if prior_metrics else None)
            for i, entry in enumerate(entries)
        ]
        agg = aggregate(normalized)

        try:
            llm = await self._external_analysis(normalized)
        except Exception:
            # The router already converts provider failures; this covers anything it missed.
            logger.exception("Unexpected failure during LLM analysis")
            llm = None

        record = merge_llm_analysis(llm, agg) if llm is not None else fallback_record(agg)
        logger.info(f"Analyzed {agg.entry_count} entries (source={record.source.value})")

        if self.history is not None:
            try:
                self.history.append(record)
            except StorageError as e:
                logger.error(f"Could not persist analysis record: {e}")
        return record
