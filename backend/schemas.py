"""
schemas.py — Core data shapes
Pydantic models shared by the extraction, scoring, analysis and report layers.
Field names serialize as camelCase so stored records match the JSON contract
exchanged with the LLM and the frontend.
"""

import uuid
from datetime import date, datetime, timezone
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


TREND_VALUES = ("improving", "stable", "declining")


class Mood(str, Enum):
    VERY_POSITIVE = "veryPositive"
    POSITIVE = "positive"
    NEUTRAL = "neutral"
    NEGATIVE = "negative"
    VERY_NEGATIVE = "veryNegative"


class Stress(str, Enum):
    VERY_LOW = "veryLow"
    LOW = "low"
    MODERATE = "moderate"
    HIGH = "high"
    VERY_HIGH = "veryHigh"


class Energy(str, Enum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class Source(str, Enum):
    LLM = "llm"
    FALLBACK = "fallback"


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def assume_utc(value: datetime) -> datetime:
    """Naive timestamps are treated as UTC so stored records stay sortable."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_json_dict(self) -> dict:
        return self.model_dump(by_alias=True, mode="json")


# ── Journal ───────────────────────────────────────────────────────
class JournalEntry(CamelModel):
    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=lambda: uuid.uuid4().hex)
    text: str = ""
    created_at: datetime = Field(default_factory=utcnow)
    deleted: bool = False

    utc_created_at = field_validator("created_at")(assume_utc)


# ── Extraction & scoring ──────────────────────────────────────────
class RawMetrics(CamelModel):
    sleep_hours: Optional[float] = None
    exercise_minutes: Optional[int] = None
    mood: Mood = Mood.NEUTRAL
    stress: Stress = Stress.MODERATE
    energy: Energy = Energy.MEDIUM
    symptoms: List[str] = Field(default_factory=list)


class ScoredMetrics(CamelModel):
    sleep_score: int = 0
    mental_health_score: int = 75
    exercise_score: float = 0.0
    sleep_quality: str = "Very Poor"
    mental_health_label: str = "Good"


# ── Analysis records ──────────────────────────────────────────────
class _TrendField(CamelModel):
    trend: str = "stable"

    @field_validator("trend", mode="before")
    @classmethod
    def normalize_trend(cls, value):
        value = str(value or "").strip().lower()
        return value if value in TREND_VALUES else "stable"


class SleepMetrics(_TrendField):
    average: float = 0.0
    quality: float = 0.0


class MentalHealthMetrics(_TrendField):
    average_score: float = 0.0
    predominant_mood: str = Mood.NEUTRAL.value
    stress_level: str = Stress.MODERATE.value


class ExerciseMetrics(_TrendField):
    average: float = 0.0


class AnalysisMetrics(CamelModel):
    sleep: SleepMetrics
    mental_health: MentalHealthMetrics = Field(default_factory=MentalHealthMetrics)
    exercise: ExerciseMetrics = Field(default_factory=ExerciseMetrics)


class AnalysisRecord(CamelModel):
    model_config = ConfigDict(frozen=True)

    timestamp: datetime = Field(default_factory=utcnow)
    metrics: AnalysisMetrics
    insights: List[str] = Field(default_factory=list, max_length=3)
    recommendations: List[str] = Field(default_factory=list, max_length=3)
    source: Source = Source.FALLBACK
    entry_count: int = 0

    utc_timestamp = field_validator("timestamp")(assume_utc)


class LLMMetrics(CamelModel):
    """Metrics block of an LLM reply. Only `sleep` is mandatory."""

    sleep: SleepMetrics
    mental_health: Optional[MentalHealthMetrics] = None
    exercise: Optional[ExerciseMetrics] = None


class LLMAnalysis(CamelModel):
    metrics: LLMMetrics
    insights: List[str]
    recommendations: List[str]


class EntryAnalysis(CamelModel):
    """Single-entry analysis returned when a journal entry is saved."""

    metrics: RawMetrics
    scores: ScoredMetrics
    insights: List[str] = Field(default_factory=list)
    recommendations: List[str] = Field(default_factory=list)
    timestamp: datetime = Field(default_factory=utcnow)


# ── Goals, habits, nutrition snapshots ────────────────────────────
class Goal(CamelModel):
    id: Optional[str] = None
    title: str = ""
    completed: bool = False
    completed_at: Optional[datetime] = None


class Habit(CamelModel):
    id: Optional[str] = None
    name: str = ""
    last_checked: Optional[datetime] = None
    streak: int = 0
    active: bool = True


class Meal(CamelModel):
    id: Optional[str] = None
    name: str = ""
    type: Optional[str] = None
    calories: float = 0
    date: Optional[datetime] = None


class GoalsSnapshot(CamelModel):
    goals: List[Goal] = Field(default_factory=list)
    habits: List[Habit] = Field(default_factory=list)
    timestamp: Optional[datetime] = None


class NutritionSnapshot(CamelModel):
    meals: List[Meal] = Field(default_factory=list)
    water_intake: float = 0
    timestamp: Optional[datetime] = None


# ── Reports ───────────────────────────────────────────────────────
class DateRange(CamelModel):
    start: date
    end: date

    def contains(self, moment) -> bool:
        if moment is None:
            return False
        day = moment.date() if isinstance(moment, datetime) else moment
        return self.start <= day <= self.end


class TrendPoint(CamelModel):
    day: Optional[date] = Field(default=None, alias="date")
    value: float = 0.0


class SleepReport(CamelModel):
    data: List[TrendPoint] = Field(default_factory=list)
    average: float = 0.0
    consistency: int = 0
    quality_score: int = 0
    insights: List[str] = Field(default_factory=list)


class ExerciseReport(CamelModel):
    data: List[TrendPoint] = Field(default_factory=list)
    average: int = 0
    consistency: int = 0
    intensity: int = 0
    insights: List[str] = Field(default_factory=list)


class MentalHealthReport(CamelModel):
    average_score: float = 0.0
    predominant_mood: str = Mood.NEUTRAL.value
    stress_level: str = Stress.MODERATE.value
    trend: str = "stable"


class ReportOverview(CamelModel):
    total_entries: int = 0
    completed_goals: int = 0
    active_habits: int = 0
    avg_calories: int = 0


class NutritionReport(CamelModel):
    avg_calories: int = 0
    meal_count: int = 0
    water_intake: float = 0


class GoalsReport(CamelModel):
    active: int = 0
    completed: int = 0
    total: int = 0


class HabitStreak(CamelModel):
    name: str
    streak: int = 0
    active: bool = True


class HabitsReport(CamelModel):
    active: int = 0
    total: int = 0
    streaks: List[HabitStreak] = Field(default_factory=list)


class Report(CamelModel):
    date_range: DateRange
    health_score: int = 0
    overview: ReportOverview = Field(default_factory=ReportOverview)
    sleep: SleepReport = Field(default_factory=SleepReport)
    exercise: ExerciseReport = Field(default_factory=ExerciseReport)
    mental_health: MentalHealthReport = Field(default_factory=MentalHealthReport)
    nutrition: NutritionReport = Field(default_factory=NutritionReport)
    goals: GoalsReport = Field(default_factory=GoalsReport)
    habits: HabitsReport = Field(default_factory=HabitsReport)
    alerts: List[str] = Field(default_factory=list)
