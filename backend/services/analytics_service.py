"""
analytics_service.py — Dashboard & Chart Aggregations
Shapes the analysis history into chart series, compares the two most recent
analyses and combines several per-entry analyses into one summary.
"""

from collections import Counter

from schemas import AnalysisRecord, EntryAnalysis
from services.trend_service import trend_direction

CHART_WINDOW = 7
SUMMARY_LIMIT = 5


def _recent_chronological(history: list[AnalysisRecord], limit: int = CHART_WINDOW) -> list[AnalysisRecord]:
    newest_first = sorted(history, key=lambda r: r.timestamp, reverse=True)[:limit]
    return list(reversed(newest_first))


def _pct_change(current: float, previous: float) -> float | None:
    if not previous:
        return None
    return round((current - previous) / previous * 100, 1)


class AnalyticsService:
    @staticmethod
    def chart_series(history: list[AnalysisRecord]) -> list[dict]:
        """Most recent 7 analyses, oldest first, flattened for charting."""
        return [
            {
                "date": r.timestamp.date().isoformat(),
                "hours": r.metrics.sleep.average,
                "quality": r.metrics.sleep.quality,
                "mentalScore": r.metrics.mental_health.average_score,
                "exercise": r.metrics.exercise.average,
            }
            for r in _recent_chronological(history)
        ]

    @staticmethod
    def mood_series(history: list[AnalysisRecord]) -> dict:
        recent = _recent_chronological(history)
        data = [
            {
                "date": r.timestamp.date().isoformat(),
                "mood": r.metrics.mental_health.predominant_mood,
                "moodScore": r.metrics.mental_health.average_score,
                "stress": r.metrics.mental_health.stress_level,
            }
            for r in recent
        ]
        latest = recent[-1].metrics.mental_health if recent else None
        return {
            "data": data,
            "predominantMood": latest.predominant_mood if latest else "neutral",
            "stressLevel": latest.stress_level if latest else "moderate",
            "trend": latest.trend if latest else "stable",
        }

    @staticmethod
    def patterns(history: list[AnalysisRecord]) -> dict:
        """Moving-average direction of each charted metric."""
        series = AnalyticsService.chart_series(history)
        return {
            "sleep": trend_direction([p["hours"] for p in series]),
            "sleepQuality": trend_direction([p["quality"] for p in series]),
            "mentalHealth": trend_direction([p["mentalScore"] for p in series]),
            "exercise": trend_direction([p["exercise"] for p in series]),
        }

    @staticmethod
    def compare_latest(history: list[AnalysisRecord]) -> dict | None:
        """Change between the two most recent analyses, or None with fewer than two."""
        ordered = sorted(history, key=lambda r: r.timestamp, reverse=True)
        if len(ordered) < 2:
            return None
        latest, previous = ordered[0].metrics, ordered[1].metrics
        return {
            "sleep": {
                "change": _pct_change(latest.sleep.average, previous.sleep.average),
                "direction": "up" if latest.sleep.average >= previous.sleep.average else "down",
            },
            "exercise": {
                "change": _pct_change(latest.exercise.average, previous.exercise.average),
                "direction": "up" if latest.exercise.average >= previous.exercise.average else "down",
            },
            "mentalHealth": {
                "change": _pct_change(latest.mental_health.average_score, previous.mental_health.average_score),
                "previous": previous.mental_health.predominant_mood,
                "current": latest.mental_health.predominant_mood,
                "improved": latest.mental_health.average_score > previous.mental_health.average_score,
            },
        }

    @staticmethod
    def summarize_results(results: list[EntryAnalysis]) -> dict | None:
        """Combine several single-entry analyses into one summary."""
        if not results:
            return None

        count = len(results)
        symptoms = Counter(s for r in results for s in r.metrics.symptoms)
        moods = Counter(r.metrics.mood.value for r in results)
        energy = Counter(r.metrics.energy.value for r in results)

        insights, recommendations = [], []
        for r in results:
            for text in r.insights:
                if text not in insights:
                    insights.append(text)
            for text in r.recommendations:
                if text not in recommendations:
                    recommendations.append(text)

        return {
            "metrics": {
                "sleep": round(sum(r.metrics.sleep_hours or 0 for r in results) / count, 1),
                "exercise": round(sum(r.metrics.exercise_minutes or 0 for r in results) / count, 1),
                "symptoms": [s for s, _ in symptoms.most_common(SUMMARY_LIMIT)],
                "mood": moods.most_common(1)[0][0],
                "energy": energy.most_common(1)[0][0],
            },
            "insights": insights[:SUMMARY_LIMIT],
            "recommendations": recommendations[:SUMMARY_LIMIT],
            "analysisCount": count,
        }
