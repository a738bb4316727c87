"""
Tests for lesson type and CEFR level suggestions.
"""

from lessonsource.extraction.suggestions import (
    keyword_densities,
    suggest_cefr_level,
    suggest_lesson_type,
)
from lessonsource.models import (
    CEFRLevel,
    Complexity,
    ContentMetadata,
    ContentQuality,
    ContentType,
    LessonType,
    QualityScore,
)


def _metadata(domain: str = "example.com", content_type: ContentType = ContentType.ARTICLE,
              title: str = "") -> ContentMetadata:
    return ContentMetadata(
        title=title,
        source_url=f"https://{domain}/page",
        domain=domain,
        content_type=content_type,
    )


def _quality(flesch: float, vocab: float, sentences: float, scores: QualityScore | None = None) -> ContentQuality:
    return ContentQuality(
        word_count=500,
        reading_time=3,
        complexity=Complexity.INTERMEDIATE,
        suitability_score=0.7,
        readability_score=flesch,
        vocabulary_complexity=vocab,
        sentence_complexity=sentences,
        meets_minimum_standards=True,
        scores=scores,
    )


class TestLessonType:
    """Tests for suggest_lesson_type."""

    def test_domain_hints_win(self) -> None:
        text = "The grammar of the past tense is simple."

        assert suggest_lesson_type(text, _metadata("www.travelblog.com")) == LessonType.TRAVEL
        assert suggest_lesson_type(text, _metadata("corporate.example.com")) == LessonType.BUSINESS

    def test_grammar_tutorial(self) -> None:
        metadata = _metadata(content_type=ContentType.TUTORIAL)
        text = "This lesson covers the past tense in detail."

        assert suggest_lesson_type(text, metadata) == LessonType.GRAMMAR

    def test_keyword_density(self) -> None:
        text = "Our company strategy meeting covered sales and marketing. " * 5
        assert suggest_lesson_type(text, _metadata(title="Quarterly review")) == LessonType.BUSINESS

    def test_low_density_is_discussion(self, prose) -> None:
        text = prose(1000) + " We stayed in a hotel."
        assert suggest_lesson_type(text, _metadata()) == LessonType.DISCUSSION

    def test_ties_keep_category_order(self) -> None:
        text = "The company wrote a grammar book."
        assert suggest_lesson_type(text, _metadata()) == LessonType.BUSINESS

    def test_keyword_densities(self) -> None:
        assert all(v == 0.0 for v in keyword_densities("", "").values())

        densities = keyword_densities("pronunciation and accent", "")
        assert densities[LessonType.PRONUNCIATION] == 2000 / 3

    def test_multi_word_keywords(self) -> None:
        """'past tense' counts once, not as 'tense' plus a miss."""
        densities = keyword_densities("the past tense", "")
        assert densities[LessonType.GRAMMAR] == 1000 / 3


class TestCEFRLevel:
    """Tests for suggest_cefr_level."""

    def test_easy_text_is_a1(self) -> None:
        scores = QualityScore(overall=0.9, readability=1.0, structure=1.0, length=0.2)
        assert suggest_cefr_level(_quality(95, 0.05, 0.0), scores) == CEFRLevel.A1

    def test_hard_text_is_c1(self) -> None:
        scores = QualityScore(overall=0.5, readability=0.2, structure=0.5, length=1.0)
        assert suggest_cefr_level(_quality(20, 0.8, 0.9), scores) == CEFRLevel.C1

    def test_missing_scores_use_midpoint(self) -> None:
        assert suggest_cefr_level(_quality(60, 0.3, 0.3)) == CEFRLevel.B1

    def test_scores_on_quality_are_used(self) -> None:
        scores = QualityScore(overall=0.9, readability=1.0, structure=1.0, length=0.2)
        assert suggest_cefr_level(_quality(95, 0.05, 0.0, scores)) == CEFRLevel.A1
