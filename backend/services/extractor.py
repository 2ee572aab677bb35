"""
extractor.py — Journal Text Signal Extraction
Pattern-matches free-text journal entries into raw health signals:
sleep hours, exercise minutes, mood, stress, energy and symptom tags.
Every function here is pure and total; unmatched signals keep their defaults.
"""

import re

from schemas import Energy, Mood, RawMetrics, Stress

_NUMBER = r"(\d+(?:\.\d+)?)"
_HOURS = r"(?:hours?|hrs?)"
_DURATION_UNIT = r"(min(?:ute)?s?|hours?|hrs?)"

# Tried in order; the first pattern that matches wins.
SLEEP_PATTERNS = [
    re.compile(rf"\bslept\s+(?:for\s+|about\s+|around\s+)?{_NUMBER}\s*{_HOURS}", re.IGNORECASE),
    re.compile(rf"\b{_NUMBER}\s*{_HOURS}\s+of\s+sleep\b", re.IGNORECASE),
    re.compile(rf"\bsleep\b.*?{_NUMBER}\s*{_HOURS}", re.IGNORECASE),
]

# Each pattern captures (amount, unit); a missing unit means minutes.
EXERCISE_PATTERNS = [
    re.compile(
        rf"\b{_NUMBER}[\s-]*{_DURATION_UNIT}\s+(?:of\s+)?"
        r"(?:workout|exercise|exercising|run|running|jog|jogging|swim|swimming|yoga|gym|walk|walking)\b",
        re.IGNORECASE,
    ),
    re.compile(rf"\b(?:worked out|exercised|trained)\s+for\s+{_NUMBER}\s*{_DURATION_UNIT}?", re.IGNORECASE),
    re.compile(rf"\b(?:ran|jogged|walked|swam|cycled|biked)\s+(?:for\s+)?{_NUMBER}\s*{_DURATION_UNIT}", re.IGNORECASE),
]

# Category order is significant: the first category with any match wins.
MOOD_PATTERNS = [
    (Mood.VERY_POSITIVE, re.compile(r"\b(?:amazing|fantastic|excellent|wonderful|great|thrilled|ecstatic|overjoyed)\b", re.IGNORECASE)),
    (Mood.POSITIVE, re.compile(r"\b(?:happy|good|pleased|content|satisfied|cheerful|joyful)\b", re.IGNORECASE)),
    (Mood.NEUTRAL, re.compile(r"\b(?:okay|ok|fine|alright|normal|average|moderate)\b", re.IGNORECASE)),
    (Mood.NEGATIVE, re.compile(r"\b(?:sad|unhappy|down|upset|disappointed|frustrated|bad)\b", re.IGNORECASE)),
    (Mood.VERY_NEGATIVE, re.compile(r"\b(?:terrible|awful|horrible|depressed|miserable|devastated)\b", re.IGNORECASE)),
]

STRESS_PATTERNS = [
    (Stress.VERY_LOW, re.compile(r"\b(?:relaxed|peaceful|calm|serene|tranquil)\b", re.IGNORECASE)),
    (Stress.LOW, re.compile(r"\b(?:composed|steady|balanced|stable)\b", re.IGNORECASE)),
    (Stress.MODERATE, re.compile(r"\b(?:normal stress|some stress|bit stressed)\b", re.IGNORECASE)),
    (Stress.HIGH, re.compile(r"\b(?:stressed|anxious|worried|tense)\b", re.IGNORECASE)),
    (Stress.VERY_HIGH, re.compile(r"\b(?:extremely stressed|overwhelmed|panic|severe anxiety)\b", re.IGNORECASE)),
]

ENERGY_PATTERNS = [
    (Energy.HIGH, re.compile(r"\b(?:energetic|energized|active|full of energy|vigorous)\b", re.IGNORECASE)),
    (Energy.MEDIUM, re.compile(r"\b(?:moderate energy|decent energy|normal energy)\b", re.IGNORECASE)),
    (Energy.LOW, re.compile(r"\b(?:tired|exhausted|fatigued|low energy|drained)\b", re.IGNORECASE)),
]

# Not mutually exclusive: every matching tag is reported.
SYMPTOM_PATTERNS = [
    ("headache", re.compile(r"\b(?:headaches?|migraines?)\b", re.IGNORECASE)),
    ("nausea", re.compile(r"\b(?:nausea|nauseated|nauseous|sick to (?:my|the) stomach)\b", re.IGNORECASE)),
    ("pain", re.compile(r"\b(?:pain|painful|ache|aches|sore|soreness)\b", re.IGNORECASE)),
    ("anxiety", re.compile(r"\b(?:anxiety|anxious|worried|stress)\b", re.IGNORECASE)),
    ("fatigue", re.compile(r"\b(?:fatigue|fatigued|exhaustion|exhausted|tired)\b", re.IGNORECASE)),
    ("fever", re.compile(r"\b(?:fever|feverish)\b", re.IGNORECASE)),
    ("cough", re.compile(r"\b(?:cough|coughing)\b", re.IGNORECASE)),
    ("dizziness", re.compile(r"\b(?:dizzy|dizziness|lightheaded)\b", re.IGNORECASE)),
    ("insomnia", re.compile(r"\b(?:insomnia|couldn't sleep|could not sleep|can't sleep)\b", re.IGNORECASE)),
    ("cramps", re.compile(r"\b(?:cramps?|cramping)\b", re.IGNORECASE)),
]


def _first_category(text: str, patterns: list, default):
    for category, pattern in patterns:
        if pattern.search(text):
            return category
    return default


def extract_sleep_hours(text: str) -> float | None:
    for pattern in SLEEP_PATTERNS:
        match = pattern.search(text)
        if match:
            return float(match.group(1))
    return None


def extract_exercise_minutes(text: str) -> int | None:
    for pattern in EXERCISE_PATTERNS:
        match = pattern.search(text)
        if not match:
            continue
        amount = float(match.group(1))
        unit = (match.group(2) or "min").lower()
        if unit.startswith("h"):
            amount *= 60
        return int(round(amount))
    return None


def extract_symptoms(text: str) -> list[str]:
    return [tag for tag, pattern in SYMPTOM_PATTERNS if pattern.search(text)]


def extract(text: str | None) -> RawMetrics:
    """Turn one journal entry's text into RawMetrics."""
    text = text or ""
    if not text.strip():
        return RawMetrics()

    return RawMetrics(
        sleep_hours=extract_sleep_hours(text),
        exercise_minutes=extract_exercise_minutes(text),
        mood=_first_category(text, MOOD_PATTERNS, Mood.NEUTRAL),
        stress=_first_category(text, STRESS_PATTERNS, Stress.MODERATE),
        energy=_first_category(text, ENERGY_PATTERNS, Energy.MEDIUM),
        symptoms=extract_symptoms(text),
    )


def extract_many(texts) -> list[RawMetrics]:
    return [extract(t) for t in texts or []]
