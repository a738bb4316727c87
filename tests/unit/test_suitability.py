"""
Tests for the page suitability gate.
"""

from dataclasses import replace

import pytest

from lessonsource.analysis.content_analyzer import ContentAnalysisEngine
from lessonsource.analysis.suitability import SuitabilityGate, is_content_suitable
from lessonsource.config import SuitabilityConfig
from lessonsource.extraction.document import PageDocument
from lessonsource.models import ContentType, PageAnalysis
from lessonsource.validation.engine import ContentValidationEngine


@pytest.fixture
def good_analysis() -> PageAnalysis:
    """Analysis of a long English tutorial with no boilerplate."""
    return PageAnalysis(
        word_count=1500,
        content_type=ContentType.TUTORIAL,
        language="en",
        language_confidence=0.95,
        quality_score=0.86,
        has_main_content=True,
        is_educational=True,
        advertising_ratio=0.05,
        has_social_media_feeds=False,
        has_comment_sections=False,
    )


class TestSuitabilityGate:
    """Tests for SuitabilityGate."""

    def test_good_page_is_suitable(self, good_analysis: PageAnalysis) -> None:
        decision = SuitabilityGate().evaluate(good_analysis)

        assert decision.suitable is True
        assert decision.reasons == []
        assert is_content_suitable(good_analysis) is True

    def test_unsupported_language(self, good_analysis: PageAnalysis) -> None:
        analysis = replace(good_analysis, language="sw")

        assert is_content_suitable(analysis) is False
        assert any('"sw"' in r for r in SuitabilityGate().failing_reasons(analysis))

    def test_low_language_confidence(self, good_analysis: PageAnalysis) -> None:
        assert is_content_suitable(replace(good_analysis, language_confidence=0.6)) is False

    def test_too_few_words(self, good_analysis: PageAnalysis) -> None:
        assert is_content_suitable(replace(good_analysis, word_count=199)) is False

    def test_not_educational(self, good_analysis: PageAnalysis) -> None:
        assert is_content_suitable(replace(good_analysis, is_educational=False)) is False

    @pytest.mark.parametrize(
        "content_type",
        [ContentType.PRODUCT, ContentType.SOCIAL, ContentType.NAVIGATION,
         ContentType.ECOMMERCE, ContentType.MULTIMEDIA],
    )
    def test_excluded_content_types(self, good_analysis: PageAnalysis, content_type: ContentType) -> None:
        assert is_content_suitable(replace(good_analysis, content_type=content_type)) is False

    def test_thresholds_are_inclusive(self, good_analysis: PageAnalysis) -> None:
        """Quality at the minimum and ads at the maximum still pass."""
        analysis = replace(good_analysis, quality_score=0.6, advertising_ratio=0.4, word_count=200)
        assert is_content_suitable(analysis) is True

    def test_every_failing_gate_is_reported(self, good_analysis: PageAnalysis) -> None:
        analysis = replace(
            good_analysis,
            content_type=ContentType.PRODUCT,
            has_social_media_feeds=True,
            has_comment_sections=True,
            advertising_ratio=0.9,
        )
        decision = SuitabilityGate().evaluate(analysis)

        assert decision.suitable is False
        assert len(decision.reasons) == 4

    def test_custom_config(self, good_analysis: PageAnalysis) -> None:
        gate = SuitabilityGate(SuitabilityConfig(min_word_count=2000))
        assert gate.is_content_suitable(good_analysis) is False


class TestTutorialScenario:
    """A long, clean English tutorial is accepted end to end."""

    def test_long_tutorial_page(self, article_factory) -> None:
        html = article_factory(word_target=1500)
        document = PageDocument.parse(html, "https://learn.example.com/guide/river-towns")

        analysis, decision = ContentAnalysisEngine().evaluate_page(document)

        assert analysis.content_type == ContentType.TUTORIAL
        assert analysis.word_count >= 1500
        assert analysis.quality_score > 0.6
        assert decision.suitable is True

    def test_long_tutorial_text_validates(self, prose) -> None:
        result = ContentValidationEngine().validate_content(
            prose(1500), {"language": "en", "language_confidence": 0.95}
        )

        assert result.is_valid is True
        assert result.score > 60
