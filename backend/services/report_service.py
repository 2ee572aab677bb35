"""
report_service.py — Period Health Reports
Rolls the analysis history, goals, habits and nutrition snapshots into a
period Report: weighted health score, sleep/exercise consistency, habit and
goal counts, symptom alerts, plus the plain-text download rendering.
"""

import calendar
from collections import Counter
from datetime import date, datetime, timedelta

from schemas import (
    AnalysisRecord,
    DateRange,
    ExerciseReport,
    Goal,
    GoalsReport,
    Habit,
    HabitStreak,
    HabitsReport,
    Meal,
    MentalHealthReport,
    NutritionReport,
    NutritionSnapshot,
    Report,
    ReportOverview,
    SleepReport,
    TrendPoint,
)
from services import extractor, scorer
from services.trend_service import average, consistency_score

HEALTH_SCORE_WEIGHTS = {
    "sleep": 0.35,
    "exercise": 0.25,
    "mental_health": 0.40,
}
SLEEP_TARGET_HOURS = 8
EXERCISE_TARGET_MINUTES = 30
INTENSITY_SCORES = {"high": 100, "moderate": 70, "low": 40}
SYMPTOM_ALERT_WINDOW = 7
SYMPTOM_ALERT_THRESHOLD = 3


def _day(moment) -> date | None:
    if moment is None:
        return None
    if isinstance(moment, datetime):
        return moment.date()
    if isinstance(moment, date):
        return moment
    try:
        return datetime.fromisoformat(str(moment)).date()
    except ValueError:
        return None


def _months_back(day: date, months: int) -> date:
    month_index = day.month - 1 - months
    year = day.year + month_index // 12
    month = month_index % 12 + 1
    return date(year, month, min(day.day, calendar.monthrange(year, month)[1]))


def _exercise_intensity(minutes: float) -> str:
    if minutes >= 45:
        return "high"
    if minutes >= 20:
        return "moderate"
    return "low"


class ReportService:
    @staticmethod
    def period_range(period: str = "week", today: date | None = None) -> DateRange:
        """Inclusive calendar range ending today: week, month or year back."""
        end = today or date.today()
        if period == "month":
            start = _months_back(end, 1)
        elif period == "year":
            start = _months_back(end, 12)
        else:
            start = end - timedelta(days=7)
        return DateRange(start=start, end=end)

    # ------------------------------------------------------------------
    @staticmethod
    def health_score(records: list[AnalysisRecord]) -> int:
        """Weighted mean over the dimensions that actually have data.

        A dimension with no value in any record is left out of both the
        numerator and the denominator.
        """
        dimensions = {
            "sleep": [r.metrics.sleep.quality for r in records if r.metrics.sleep.quality],
            "exercise": [
                scorer.exercise_score(r.metrics.exercise.average)
                for r in records if r.metrics.exercise.average
            ],
            "mental_health": [
                r.metrics.mental_health.average_score
                for r in records if r.metrics.mental_health.average_score
            ],
        }
        weighted, weights = 0.0, 0.0
        for name, values in dimensions.items():
            if not values:
                continue
            weighted += average(values) * HEALTH_SCORE_WEIGHTS[name]
            weights += HEALTH_SCORE_WEIGHTS[name]
        return scorer.round_half_up(weighted / weights) if weights else 0

    # ------------------------------------------------------------------
    @staticmethod
    def sleep_section(records: list[AnalysisRecord]) -> SleepReport:
        if not records:
            return SleepReport()

        points = [TrendPoint(day=_day(r.timestamp), value=r.metrics.sleep.average) for r in records]
        avg_sleep = average(p.value for p in points)
        consistency = consistency_score([p.value for p in points], SLEEP_TARGET_HOURS)
        quality = scorer.round_half_up(average(r.metrics.sleep.quality for r in records))

        insights = []
        if avg_sleep < 6:
            insights.append("Critical: You're significantly under-sleeping. Aim for 7-9 hours.")
        elif avg_sleep < 7:
            insights.append("Warning: You're getting less than recommended sleep (7-9 hours).")
        elif avg_sleep > 9:
            insights.append("Note: You might be oversleeping. Try adjusting your sleep schedule.")
        else:
            insights.append("Great! Your sleep duration is within the recommended range.")

        if consistency >= 90:
            insights.append("Excellent sleep schedule consistency! Keep it up!")
        elif consistency >= 70:
            insights.append("Good sleep consistency with minor variations.")
        elif consistency >= 50:
            insights.append("Your sleep schedule shows some irregularity. Try to maintain consistent sleep times.")
        else:
            insights.append("Your sleep schedule is quite irregular. Consider setting a consistent sleep routine.")

        if quality >= 80:
            insights.append("You're experiencing good quality sleep overall.")
        elif quality >= 60:
            insights.append("Your sleep quality is moderate. Consider factors that might be affecting your sleep.")
        else:
            insights.append("Your sleep quality needs improvement. Consider factors like room temperature, noise, and pre-sleep routine.")

        return SleepReport(
            data=points,
            average=round(avg_sleep, 1),
            consistency=consistency,
            quality_score=quality,
            insights=insights,
        )

    # ------------------------------------------------------------------
    @staticmethod
    def exercise_section(records: list[AnalysisRecord]) -> ExerciseReport:
        if not records:
            return ExerciseReport()

        points = [TrendPoint(day=_day(r.timestamp), value=r.metrics.exercise.average) for r in records]
        avg_exercise = average(p.value for p in points)
        consistency = consistency_score([p.value for p in points], EXERCISE_TARGET_MINUTES)
        intensity = scorer.round_half_up(
            average(INTENSITY_SCORES[_exercise_intensity(p.value)] for p in points)
        )

        insights = []
        if avg_exercise < 15:
            insights.append("Critical: You're getting minimal exercise. Try to increase daily activity.")
        elif avg_exercise < 30:
            insights.append("Warning: You're below the recommended daily exercise (30 minutes).")
        else:
            insights.append("Great! You're meeting or exceeding daily exercise recommendations.")

        if consistency >= 90:
            insights.append("Excellent exercise consistency! Keep up the routine!")
        elif consistency >= 70:
            insights.append("Good exercise consistency with some variation.")
        elif consistency >= 50:
            insights.append("Your exercise routine shows some irregularity. Try to maintain a consistent schedule.")
        else:
            insights.append("Your exercise routine is quite irregular. Consider setting a regular workout schedule.")

        if intensity >= 80:
            insights.append("You're maintaining good exercise intensity!")
        elif intensity >= 60:
            insights.append("Consider increasing your workout intensity for better results.")
        else:
            insights.append("Try to incorporate more moderate to high-intensity exercises in your routine.")

        return ExerciseReport(
            data=points,
            average=scorer.round_half_up(avg_exercise),
            consistency=consistency,
            intensity=intensity,
            insights=insights,
        )

    # ------------------------------------------------------------------
    @staticmethod
    def active_habit_count(habits: list[Habit], today: date) -> int:
        """Habits checked today or yesterday; the extra day tolerates late-night check-ins."""
        window = {today, today - timedelta(days=1)}
        return sum(1 for h in habits if _day(h.last_checked) in window)

    @staticmethod
    def symptom_alerts(entries) -> list[str]:
        """Symptoms mentioned in at least 3 of the 7 most recent entries."""
        recent = [e for e in entries or [] if not getattr(e, "deleted", False)]
        recent = sorted(recent, key=lambda e: e.created_at, reverse=True)[:SYMPTOM_ALERT_WINDOW]
        counts = Counter(s for e in recent for s in extractor.extract(e.text).symptoms)
        return [
            f"You've reported {symptom} multiple times recently. Consider consulting a healthcare provider."
            for symptom, count in counts.most_common()
            if count >= SYMPTOM_ALERT_THRESHOLD
        ]

    # ------------------------------------------------------------------
    @staticmethod
    def build_report(
        history: list[AnalysisRecord],
        goals: list[Goal],
        habits: list[Habit],
        nutrition: NutritionSnapshot,
        date_range: DateRange,
        today: date | None = None,
        entries=None,
    ) -> Report:
        today = today or date.today()

        # Newest-first history, reported oldest to newest
        records = [r for r in history if date_range.contains(r.timestamp)]
        chronological = sorted(records, key=lambda r: r.timestamp)
        meals: list[Meal] = [m for m in nutrition.meals if date_range.contains(m.date)]

        completed_goals = sum(1 for g in goals if g.completed and date_range.contains(g.completed_at))
        active_habits = ReportService.active_habit_count(habits, today)
        avg_calories = scorer.round_half_up(average(m.calories or 0 for m in meals)) if meals else 0

        latest = max(records, key=lambda r: r.timestamp) if records else None
        mental = MentalHealthReport()
        if latest is not None:
            mh = latest.metrics.mental_health
            mental = MentalHealthReport(
                average_score=mh.average_score,
                predominant_mood=mh.predominant_mood,
                stress_level=mh.stress_level,
                trend=mh.trend,
            )

        return Report(
            date_range=date_range,
            health_score=ReportService.health_score(records),
            overview=ReportOverview(
                total_entries=len(records),
                completed_goals=completed_goals,
                active_habits=active_habits,
                avg_calories=avg_calories,
            ),
            sleep=ReportService.sleep_section(chronological),
            exercise=ReportService.exercise_section(chronological),
            mental_health=mental,
            nutrition=NutritionReport(
                avg_calories=avg_calories,
                meal_count=len(meals),
                water_intake=nutrition.water_intake,
            ),
            goals=GoalsReport(
                active=sum(1 for g in goals if not g.completed),
                completed=completed_goals,
                total=len(goals),
            ),
            habits=HabitsReport(
                active=active_habits,
                total=len(habits),
                streaks=[HabitStreak(name=h.name, streak=h.streak, active=h.active) for h in habits],
            ),
            alerts=ReportService.symptom_alerts(entries),
        )

    # ------------------------------------------------------------------
    @staticmethod
    def report_filename(period: str, generated_on: date | None = None) -> str:
        generated_on = generated_on or date.today()
        return f"health-report-{period}-{generated_on.isoformat()}.txt"

    @staticmethod
    def render_text(report: Report, period: str, generated_on: date | None = None) -> str:
        """Plain-text report: Overview, Health Score, Sleep Analysis, Exercise Analysis."""
        generated_on = generated_on or date.today()
        lines = [
            f"Health Report ({period})",
            f"Generated on: {generated_on.isoformat()}",
            f"Period: {report.date_range.start.isoformat()} to {report.date_range.end.isoformat()}",
            "",
            "Overview:",
            f"- Total Journal Entries: {report.overview.total_entries}",
            f"- Completed Goals: {report.overview.completed_goals}",
            f"- Active Habits: {report.overview.active_habits}",
            f"- Average Daily Calories: {report.overview.avg_calories}",
            "",
            f"Health Score: {report.health_score}%",
            "",
            "Sleep Analysis:",
            f"- Average Sleep: {report.sleep.average:.1f} hours",
            f"- Sleep Consistency: {report.sleep.consistency}%",
            f"- Sleep Quality: {report.sleep.quality_score}%",
            "Insights:",
            *[f"- {i}" for i in report.sleep.insights],
            "",
            "Exercise Analysis:",
            f"- Weekly Average: {report.exercise.average} minutes",
            f"- Exercise Consistency: {report.exercise.consistency}%",
            f"- Exercise Intensity: {report.exercise.intensity}%",
            "Insights:",
            *[f"- {i}" for i in report.exercise.insights],
        ]
        if report.alerts:
            lines += ["", "Alerts:", *[f"- {a}" for a in report.alerts]]
        return "\n".join(lines) + "\n"
