from datetime import datetime, timedelta, timezone

from schemas import AnalysisMetrics, AnalysisRecord, ExerciseMetrics, MentalHealthMetrics, SleepMetrics
from services.analysis_service import analyze_entry
from services.analytics_service import AnalyticsService

START = datetime(2024, 5, 1, 8, tzinfo=timezone.utc)


def history_of(sleeps, exercise=20, mental=70):
    """Newest-first history, one record per day."""
    records = [
        AnalysisRecord(
            timestamp=START + timedelta(days=i),
            metrics=AnalysisMetrics(
                sleep=SleepMetrics(average=hours, quality=hours * 10),
                mental_health=MentalHealthMetrics(average_score=mental + i, predominant_mood="positive"),
                exercise=ExerciseMetrics(average=exercise),
            ),
        )
        for i, hours in enumerate(sleeps)
    ]
    return list(reversed(records))


def test_chart_series_is_last_seven_chronological():
    series = AnalyticsService.chart_series(history_of(range(1, 11)))
    assert len(series) == 7
    assert [p["hours"] for p in series] == [4, 5, 6, 7, 8, 9, 10]
    assert series[0]["date"] == "2024-05-04"
    assert set(series[0]) == {"date", "hours", "quality", "mentalScore", "exercise"}


def test_mood_series_defaults_when_empty():
    result = AnalyticsService.mood_series([])
    assert result["data"] == []
    assert result["predominantMood"] == "neutral"


def test_patterns():
    patterns = AnalyticsService.patterns(history_of([5, 6, 7, 8]))
    assert patterns["sleep"] == "improving"
    assert patterns["exercise"] == "stable"
    assert AnalyticsService.patterns([])["sleep"] == "Not enough data"


def test_compare_latest():
    comparison = AnalyticsService.compare_latest(history_of([8, 6]))
    assert comparison["sleep"] == {"change": -25.0, "direction": "down"}
    assert comparison["mentalHealth"]["improved"] is True
    assert AnalyticsService.compare_latest(history_of([8])) is None


def test_compare_latest_zero_baseline():
    comparison = AnalyticsService.compare_latest(history_of([0, 0], exercise=0))
    assert comparison["sleep"]["change"] is None
    assert comparison["exercise"]["change"] is None


def test_summarize_results():
    results = [
        analyze_entry("Slept 6 hours, had a headache, felt tired"),
        analyze_entry("Slept 8 hours, 40 minutes of running, feeling great"),
    ]
    summary = AnalyticsService.summarize_results(results)
    assert summary["analysisCount"] == 2
    assert summary["metrics"]["sleep"] == 7.0
    assert summary["metrics"]["exercise"] == 20.0
    assert "headache" in summary["metrics"]["symptoms"]
    assert len(summary["insights"]) <= 5
    assert len(set(summary["recommendations"])) == len(summary["recommendations"])
    assert AnalyticsService.summarize_results([]) is None
