"""
Lesson type and CEFR level suggestions for extracted content.
"""

import re

from lessonsource.analysis.text_metrics import count_words
from lessonsource.models import CEFRLevel, ContentMetadata, ContentQuality, ContentType, LessonType, QualityScore

# Matches per 1000 words needed before a category beats "discussion"
MIN_KEYWORD_DENSITY = 5.0

# Category order also breaks density ties
LESSON_KEYWORDS: dict[LessonType, tuple[str, ...]] = {
    LessonType.BUSINESS: (
        "business", "company", "corporate", "management", "marketing", "sales",
        "finance", "economy", "investment", "profit", "revenue", "strategy",
        "meeting", "presentation", "negotiation", "contract", "client",
    ),
    LessonType.GRAMMAR: (
        "grammar", "verb", "noun", "adjective", "tense", "sentence",
        "plural", "singular", "conjugation", "syntax", "language rule",
        "past tense", "present tense", "future tense", "conditional",
    ),
    LessonType.TRAVEL: (
        "travel", "trip", "vacation", "holiday", "destination", "hotel",
        "flight", "airport", "restaurant", "tourist", "sightseeing",
        "culture", "country", "city", "guide", "visit", "explore",
    ),
    LessonType.PRONUNCIATION: (
        "pronunciation", "phonetic", "accent", "sound", "vowel", "consonant",
        "stress", "intonation", "rhythm", "syllable", "phoneme", "speak",
        "speaking", "oral", "listening", "audio",
    ),
}

DOMAIN_HINTS: list[tuple[tuple[str, ...], LessonType]] = [
    (("business", "corporate", "finance"), LessonType.BUSINESS),
    (("travel", "tourism", "trip"), LessonType.TRAVEL),
]

# (minimum ease, level), checked top-down
CEFR_BANDS: list[tuple[float, CEFRLevel]] = [
    (0.8, CEFRLevel.A1),
    (0.65, CEFRLevel.A2),
    (0.5, CEFRLevel.B1),
    (0.35, CEFRLevel.B2),
]


def _keyword_pattern(keywords: tuple[str, ...]) -> re.Pattern[str]:
    alternatives = "|".join(re.escape(k) for k in sorted(keywords, key=len, reverse=True))
    return re.compile(rf"\b(?:{alternatives})\b", re.IGNORECASE)


_PATTERNS = {lesson: _keyword_pattern(words) for lesson, words in LESSON_KEYWORDS.items()}


def keyword_densities(text: str, title: str = "") -> dict[LessonType, float]:
    """Keyword matches per 1000 words for each scored category."""
    sample = f"{text or ''} {title or ''}"
    total = count_words(sample)
    if total == 0:
        return {lesson: 0.0 for lesson in _PATTERNS}
    return {
        lesson: len(pattern.findall(sample)) * 1000.0 / total
        for lesson, pattern in _PATTERNS.items()
    }


def suggest_lesson_type(text: str, metadata: ContentMetadata) -> LessonType:
    """
    Pick a lesson type for the content.

    Domain hints win outright, then a tutorial mentioning any grammar term
    becomes a grammar lesson. Otherwise the densest category at or above
    MIN_KEYWORD_DENSITY wins, falling back to discussion.
    """
    domain = (metadata.domain or "").lower()
    for fragments, lesson in DOMAIN_HINTS:
        if any(fragment in domain for fragment in fragments):
            return lesson

    densities = keyword_densities(text, metadata.title)

    if metadata.content_type == ContentType.TUTORIAL and densities[LessonType.GRAMMAR] > 0:
        return LessonType.GRAMMAR

    best = LessonType.DISCUSSION
    best_density = 0.0
    for lesson, density in densities.items():
        if density >= MIN_KEYWORD_DENSITY and density > best_density:
            best, best_density = lesson, density
    return best


def ease_score(quality: ContentQuality, scores: QualityScore | None = None) -> float:
    """0..1, higher means easier to read."""
    scores = scores or quality.scores
    readability = scores.readability if scores else 0.5
    length = scores.length if scores else 0.5
    return (
        0.35 * (quality.readability_score / 100.0)
        + 0.25 * (1.0 - quality.vocabulary_complexity)
        + 0.2 * (1.0 - quality.sentence_complexity)
        + 0.1 * readability
        + 0.1 * (1.0 - length)
    )


def suggest_cefr_level(quality: ContentQuality, scores: QualityScore | None = None) -> CEFRLevel:
    ease = ease_score(quality, scores)
    for minimum, level in CEFR_BANDS:
        if ease >= minimum:
            return level
    return CEFRLevel.C1
