"""
Tests for the extraction pipeline.
"""

from datetime import datetime, timezone

import httpx
import pytest

from lessonsource.config import PrivacySettings
from lessonsource.exceptions import ExtractionBlockedError
from lessonsource.extraction.document import PageDocument
from lessonsource.extraction.enhanced_extractor import (
    UNTITLED_CONTENT,
    EnhancedContentExtractor,
    clean_content,
    parse_date,
)
from lessonsource.models import (
    CEFRLevel,
    Complexity,
    ConsentRecord,
    ContentType,
    LessonType,
    StructuredContent,
    ValidationIssueType,
)
from lessonsource.privacy.manager import REASON_DISALLOWED, REASON_ERROR, REASON_EXCLUDED, PrivacyManager
from lessonsource.validation.error_handler import (
    USER_MESSAGES,
    VALIDATION_USER_MESSAGES,
    ExtractionErrorType,
)


@pytest.fixture
def extractor(manager_factory) -> EnhancedContentExtractor:
    return EnhancedContentExtractor(privacy_manager=manager_factory())


class RefusingConsentManager(PrivacyManager):
    def ensure_explicit_user_consent(self) -> ConsentRecord:
        return ConsentRecord(granted=False, session_id=self.session_id)


class TestCleanContent:
    """Tests for clean_content."""

    def test_removes_web_artifacts(self) -> None:
        raw = "Intro text [1] here.\r\n\r\nClick here to read   more.\n\n-----\n\nEnd."
        assert clean_content(raw) == "Intro text here.\n\nto read more.\n\nEnd."

    def test_keeps_paragraph_breaks(self) -> None:
        assert clean_content("First\tpart\n second part.\n\n\nNext one.") == "First part second part.\n\nNext one."

    def test_empty(self) -> None:
        assert clean_content(None) == ""
        assert clean_content("  \n\n ") == ""


class TestParseDate:
    """Tests for parse_date."""

    def test_iso_date(self) -> None:
        assert parse_date("2023-05-14T09:30:00Z") == datetime(2023, 5, 14, 9, 30, tzinfo=timezone.utc)

    def test_naive_date_is_utc(self) -> None:
        assert parse_date("March 5, 2020").tzinfo == timezone.utc

    def test_rejects_bad_and_future_dates(self) -> None:
        assert parse_date("not a date") is None
        assert parse_date("2999-01-01") is None
        assert parse_date("") is None
        assert parse_date(None) is None


class TestStructuredContent:
    """Tests for extract_structured_content."""

    @pytest.fixture
    def structured(self, extractor: EnhancedContentExtractor, article_html: str, article_url: str):
        return extractor.extract_structured_content(PageDocument.parse(article_html, article_url))

    def test_headings(self, structured) -> None:
        assert [(h.level, h.text) for h in structured.headings] == [
            (1, "How Rivers Shape Towns"),
            (2, "The early years"),
            (2, "Growth and change"),
        ]

    def test_paragraphs(self, structured) -> None:
        assert len(structured.paragraphs) > 5
        assert all(len(p) > 30 for p in structured.paragraphs)

    def test_nested_lists(self, structured) -> None:
        assert len(structured.lists) == 1
        block = structured.lists[0]
        assert block.type == "unordered"
        assert block.items == ["Markets and trade", "Bridges and roads"]
        assert block.nested_lists[0].items == ["Stone bridges", "Wooden bridges"]

    def test_quotes(self, structured) -> None:
        assert structured.quotes == ["The river gave the town its life and its name."]

    def test_images(self, structured) -> None:
        image = structured.images[0]
        assert image.src == "https://learn.example.com/images/river.jpg"
        assert image.alt == "The river at dawn"
        assert image.caption == "The river at dawn in early spring"

    def test_links(self, structured) -> None:
        links = {link.text: link for link in structured.links}

        assert links["regional history archive"].is_external is True
        assert links["overview of towns"].href == "https://learn.example.com/towns/overview"
        assert links["overview of towns"].is_external is False
        assert "Home" not in links

    def test_tables(self, structured) -> None:
        table = structured.tables[0]
        assert table.caption == "Population"
        assert table.headers == ["Year", "People"]
        assert table.rows == [["1900", "1200"], ["1950", "3400"]]

    def test_code_blocks(self, structured) -> None:
        assert len(structured.code_blocks) == 1
        assert structured.code_blocks[0].code == 'print("river towns")'
        assert structured.code_blocks[0].language == "python"

    def test_images_without_alt_are_skipped(self, extractor: EnhancedContentExtractor) -> None:
        document = PageDocument.parse('<main><img src="/a.png"><img alt="" src="/b.png"></main>', "https://example.com/")
        assert extractor.extract_structured_content(document).images == []


class TestMetadata:
    """Tests for extract_metadata."""

    def test_article_metadata(
        self, extractor: EnhancedContentExtractor, article_html: str, article_url: str
    ) -> None:
        document = PageDocument.parse(article_html, article_url)
        metadata = extractor.extract_metadata(document, document.main_text())

        assert metadata.title == "How Rivers Shape Towns"
        assert metadata.author == "Jane Smith"
        assert metadata.publication_date == datetime(2023, 5, 14, 9, 30, tzinfo=timezone.utc)
        assert metadata.description == "A guide to how rivers shaped the growth of small towns."
        assert metadata.keywords == ["rivers", "towns", "history"]
        assert metadata.language == "en"
        assert metadata.language_confidence >= 0.8
        assert metadata.content_type == ContentType.TUTORIAL
        assert metadata.domain == "learn.example.com"
        assert metadata.estimated_reading_time >= 3

    def test_title_fallbacks(self, extractor: EnhancedContentExtractor) -> None:
        og = PageDocument.parse(
            '<html><head><meta property="og:title" content="OG Title"><title>Plain</title></head></html>',
            "https://example.com/",
        )
        heading_only = PageDocument.parse("<html><body><h1>Heading Title</h1></body></html>", "https://example.com/")
        bare = PageDocument.parse("<html><body><p>text</p></body></html>", "https://example.com/")

        assert extractor.extract_metadata(og, "").title == "OG Title"
        assert extractor.extract_metadata(heading_only, "").title == "Heading Title"
        assert extractor.extract_metadata(bare, "").title == UNTITLED_CONTENT

    def test_author_and_date_from_markup(self, extractor: EnhancedContentExtractor) -> None:
        document = PageDocument.parse(
            '<html><body><article><p class="byline">By Sam Lee</p>'
            '<time datetime="2022-01-10">Jan 10</time></article></body></html>',
            "https://example.com/",
        )
        metadata = extractor.extract_metadata(document, "")

        assert metadata.author == "By Sam Lee"
        assert metadata.publication_date.date().isoformat() == "2022-01-10"

    def test_content_language_meta(self, extractor: EnhancedContentExtractor, prose) -> None:
        document = PageDocument.parse(
            '<html><head><meta http-equiv="content-language" content="fr-FR"></head><body></body></html>',
            "https://example.com/",
        )
        metadata = extractor.extract_metadata(document, prose(100))

        assert metadata.language == "fr"
        assert metadata.language_confidence == pytest.approx(0.8)

    def test_detected_language(self, extractor: EnhancedContentExtractor) -> None:
        document = PageDocument.parse("<html><body></body></html>", "https://example.com/")
        text = "El perro y el gato están en la casa. Los niños juegan en el parque por la tarde."

        assert extractor.extract_metadata(document, text).language == "es"

    def test_english_fallback_has_no_confidence(self, extractor: EnhancedContentExtractor) -> None:
        document = PageDocument.parse("<html><body></body></html>", "https://example.com/")
        metadata = extractor.extract_metadata(document, "12345")

        assert metadata.language == "en"
        assert metadata.language_confidence is None


class TestQuality:
    """Tests for analyze_content_quality."""

    def test_simple_prose(self, extractor: EnhancedContentExtractor, prose) -> None:
        quality = extractor.analyze_content_quality(prose(400), StructuredContent())

        assert quality.word_count >= 400
        assert quality.reading_time == 3
        assert quality.complexity != Complexity.ADVANCED
        assert 0.0 <= quality.suitability_score <= 1.0
        assert quality.scores is not None
        assert "Limited vocabulary variety" in quality.issues
        assert quality.meets_minimum_standards is False

    def test_short_text_issue(self, extractor: EnhancedContentExtractor, short_text: str) -> None:
        quality = extractor.analyze_content_quality(short_text, StructuredContent())
        assert quality.issues[0] == "Content too short (63 words)"


class TestExtractPageContent:
    """Tests for the synchronous extraction path."""

    def test_full_page(self, extractor: EnhancedContentExtractor, article_html: str, article_url: str) -> None:
        content = extractor.extract_page_content(article_html, article_url)

        assert content.validation is not None
        assert content.validation.is_valid is True
        assert content.text.startswith("How Rivers Shape Towns")
        assert content.suggested_lesson_type == LessonType.DISCUSSION
        assert isinstance(content.suggested_cefr_level, CEFRLevel)
        assert content.source_info.attribution.startswith(
            "Content extracted from: How Rivers Shape Towns (learn.example.com) on "
        )
        assert extractor.privacy.session_store.get(f"extraction:{article_url}") is content

    def test_pii_is_removed(self, extractor: EnhancedContentExtractor, article_factory, article_url: str) -> None:
        html = article_factory(
            extra_body="<p>Write to archive@example.com or call (555) 123-4567 to book a tour.</p>"
        )
        content = extractor.extract_page_content(html, article_url)

        assert "archive@example.com" not in content.text
        assert "(555) 123-4567" not in content.text
        assert "[REDACTED]" in content.text

    def test_without_attribution_or_storage(self, manager_factory, article_html: str, article_url: str) -> None:
        manager = manager_factory(include_attribution=False, session_only_storage=False)
        extractor = EnhancedContentExtractor(privacy_manager=manager)

        content = extractor.extract_page_content(article_html, article_url)

        assert content.source_info.attribution == ""
        assert manager.session_store.get(f"extraction:{article_url}") is None

    def test_revalidate(self, extractor: EnhancedContentExtractor, article_html: str, article_url: str) -> None:
        content = extractor.extract_page_content(article_html, article_url)
        assert extractor.validate_content(content).is_valid is True

    def test_serializes(self, extractor: EnhancedContentExtractor, article_html: str, article_url: str) -> None:
        data = extractor.extract_page_content(article_html, article_url).to_dict()

        assert data["metadata"]["publication_date"] == "2023-05-14T09:30:00+00:00"
        assert data["structured_content"]["tables"][0]["caption"] == "Population"


class TestExtract:
    """Tests for the full asynchronous pipeline."""

    @pytest.mark.asyncio
    async def test_success(self, manager_factory, article_html: str, article_url: str) -> None:
        manager = manager_factory()
        extractor = EnhancedContentExtractor(privacy_manager=manager)

        result = await extractor.extract(article_html, article_url)

        assert result.success is True
        assert result.blocked is False
        assert result.content is not None
        assert result.errors == []
        assert result.duration_ms >= 0
        assert manager.has_consent() is True

    @pytest.mark.asyncio
    async def test_excluded_domain(self, manager_factory, transport_factory, article_html: str) -> None:
        calls: list[httpx.Request] = []
        extractor = EnhancedContentExtractor(privacy_manager=manager_factory(transport_factory(calls=calls)))

        result = await extractor.extract(article_html, "https://www.facebook.com/groups/rivers")

        assert result.success is False
        assert result.blocked is True
        assert result.reason == REASON_EXCLUDED
        assert result.content is None
        assert calls == []

    @pytest.mark.asyncio
    async def test_robots_disallow(
        self, manager_factory, transport_factory, sample_robots_txt_restrictive: str,
        article_html: str, article_url: str,
    ) -> None:
        manager = manager_factory(transport_factory(200, sample_robots_txt_restrictive))
        result = await EnhancedContentExtractor(privacy_manager=manager).extract(article_html, article_url)

        assert result.blocked is True
        assert result.reason == REASON_DISALLOWED

    @pytest.mark.asyncio
    async def test_robots_unreachable(
        self, manager_factory, transport_factory, article_html: str, article_url: str
    ) -> None:
        manager = manager_factory(transport_factory(error=httpx.ConnectError("unreachable")))
        result = await EnhancedContentExtractor(privacy_manager=manager).extract(article_html, article_url)

        assert result.blocked is True
        assert result.reason == REASON_ERROR

    @pytest.mark.asyncio
    async def test_short_page_fails_validation(
        self, extractor: EnhancedContentExtractor, article_factory, article_url: str
    ) -> None:
        result = await extractor.extract(article_factory(word_target=40), article_url)

        assert result.success is False
        assert result.blocked is False
        assert result.content is not None
        assert result.validation.has_issue(ValidationIssueType.INSUFFICIENT_CONTENT)
        assert result.reason == VALIDATION_USER_MESSAGES[ValidationIssueType.INSUFFICIENT_CONTENT]
        assert any("too short" in e for e in result.errors)
        assert result.recovery_options

    @pytest.mark.asyncio
    async def test_exception_becomes_failed_result(
        self, extractor: EnhancedContentExtractor, article_url: str
    ) -> None:
        result = await extractor.extract(None, article_url)  # type: ignore[arg-type]

        assert result.success is False
        assert result.blocked is False
        assert result.reason == USER_MESSAGES[ExtractionErrorType.PARSING_ERROR]
        assert "Try Again" in result.recovery_options
        assert "Select Text Manually" in result.recovery_options

    @pytest.mark.asyncio
    async def test_retry_offer_runs_out(self, extractor: EnhancedContentExtractor, article_url: str) -> None:
        """Repeated failures for one URL stop offering another attempt."""
        results = [await extractor.extract(None, article_url) for _ in range(4)]  # type: ignore[arg-type]

        assert all("Try Again" in r.recovery_options for r in results[:3])
        assert "Try Again" not in results[3].recovery_options
        assert results[3].recovery_options[0] == "Select Text Manually"
        assert extractor.error_handler.retry_attempts(article_url) == 4

    @pytest.mark.asyncio
    async def test_success_clears_retries(
        self, extractor: EnhancedContentExtractor, article_html: str, article_url: str
    ) -> None:
        await extractor.extract(None, article_url)  # type: ignore[arg-type]
        assert extractor.error_handler.retry_attempts(article_url) == 1

        result = await extractor.extract(article_html, article_url)

        assert result.success is True
        assert extractor.error_handler.retry_attempts(article_url) == 0

    @pytest.mark.asyncio
    async def test_refused_consent(self, transport_factory, article_html: str, article_url: str) -> None:
        calls: list[httpx.Request] = []
        manager = RefusingConsentManager(
            PrivacySettings(),
            client=httpx.AsyncClient(transport=transport_factory(404, calls=calls)),
        )

        result = await EnhancedContentExtractor(privacy_manager=manager).extract(article_html, article_url)

        assert result.success is False
        assert result.content is None
        assert result.reason == USER_MESSAGES[ExtractionErrorType.PERMISSION_DENIED]
        assert "Try Again" not in result.recovery_options
        assert calls == []


class TestExcludedDomainExtraction:
    """Tests for direct extraction from excluded domains."""

    def test_extract_page_content_refuses(self, extractor: EnhancedContentExtractor, article_html: str) -> None:
        with pytest.raises(ExtractionBlockedError) as exc_info:
            extractor.extract_page_content(article_html, "https://m.facebook.com/notes/1")

        assert exc_info.value.reason == REASON_EXCLUDED
        assert extractor.privacy.session_store.keys() == []
