from schemas import Energy, Mood, RawMetrics, Stress
from services import extractor


def test_sleep_hours_first_pattern_wins():
    assert extractor.extract_sleep_hours("Slept 6.5 hours last night") == 6.5
    assert extractor.extract_sleep_hours("Got 7 hours of sleep") == 7.0
    assert extractor.extract_sleep_hours("My sleep was bad, maybe 4 hrs") == 4.0
    assert extractor.extract_sleep_hours("No numbers here") is None


def test_exercise_minutes_converts_hours():
    assert extractor.extract_exercise_minutes("Did 45 minutes of yoga") == 45
    assert extractor.extract_exercise_minutes("Went for a 1 hour run") == 60
    assert extractor.extract_exercise_minutes("I ran for 20 min") == 20
    assert extractor.extract_exercise_minutes("Rested all day") is None


def test_categories_default_when_nothing_matches():
    raw = extractor.extract("Wrote some code.")
    assert raw.mood == Mood.NEUTRAL
    assert raw.stress == Stress.MODERATE
    assert raw.energy == Energy.MEDIUM
    assert raw.symptoms == []


def test_first_matching_category_wins():
    raw = extractor.extract("A great day, but I was stressed and tired")
    assert raw.mood == Mood.VERY_POSITIVE
    assert raw.stress == Stress.HIGH
    assert raw.energy == Energy.LOW


def test_symptoms_are_not_exclusive():
    symptoms = extractor.extract_symptoms("Headache and a cough, feeling dizzy")
    assert symptoms == ["headache", "cough", "dizziness"]


def test_empty_text_gives_defaults():
    assert extractor.extract("") == RawMetrics()
    assert extractor.extract(None) == RawMetrics()
    assert extractor.extract("   ") == RawMetrics()


def test_extract_is_idempotent():
    text = "Slept 5 hours, felt very stressed and anxious, had a headache"
    assert extractor.extract(text) == extractor.extract(text)


def test_stressed_anxious_entry():
    raw = extractor.extract("Slept 5 hours, felt very stressed and anxious, had a headache")
    assert raw.sleep_hours == 5
    assert raw.stress in (Stress.HIGH, Stress.VERY_HIGH)
    assert "headache" in raw.symptoms


def test_extract_many():
    results = extractor.extract_many(["Slept 8 hours", "", None])
    assert [r.sleep_hours for r in results] == [8.0, None, None]
    assert extractor.extract_many(None) == []
