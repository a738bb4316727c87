"""
Extraction pipeline producing lesson-ready content.

Pulls readable text, structure and metadata out of a page, scores and
validates it, strips PII, attaches attribution, then suggests a lesson type
and CEFR level.
"""

import copy
import math
import re
import time
from datetime import datetime, timezone
from typing import Callable
from urllib.parse import urljoin

from bs4 import Tag
from dateutil import parser as dateutil_parser

from lessonsource.analysis.content_analyzer import ContentAnalysisEngine
from lessonsource.analysis.quality_scorer import QualityScorer
from lessonsource.analysis.text_metrics import (
    compute_metrics,
    flesch_reading_ease,
    sentence_complexity,
    vocabulary_complexity,
    words,
)
from lessonsource.config import DECLARED_LANGUAGE_CONFIDENCE, SuitabilityConfig, ValidationConfig
from lessonsource.extraction.document import PageDocument
from lessonsource.extraction.suggestions import suggest_cefr_level, suggest_lesson_type
from lessonsource.models import (
    CodeBlock,
    Complexity,
    ContentMetadata,
    ContentQuality,
    ExtractedContent,
    ExtractionResult,
    Heading,
    ImageInfo,
    LinkInfo,
    ListBlock,
    SourceInfo,
    StructuredContent,
    TableInfo,
    ValidationContext,
    ValidationResult,
)
from lessonsource.exceptions import ConsentRequiredError, ExtractionBlockedError
from lessonsource.privacy.manager import REASON_EXCLUDED, PrivacyManager
from lessonsource.utils.logging import ExtractorLogger
from lessonsource.utils.metrics import record_extraction
from lessonsource.utils.url_utils import get_domain, get_origin
from lessonsource.validation.engine import ContentValidationEngine, get_recovery_options
from lessonsource.validation.error_handler import ExtractionErrorHandler

UNTITLED_CONTENT = "Untitled Content"
WORDS_PER_MINUTE = 200
MAX_KEYWORDS = 10

MIN_PARAGRAPH_CHARS = 30
MIN_QUOTE_CHARS = 20
MIN_LINK_TEXT_CHARS = 3
MIN_CODE_CHARS = 10

REFERENCE_MARKER = re.compile(r"\[\d+\]")
UI_PHRASES = re.compile(
    r"\b(?:click here|read more|continue reading|learn more|see more|show more|"
    r"share on|follow us|like us|subscribe to|advertisement|sponsored|promoted)\b",
    re.IGNORECASE,
)
CODE_LANGUAGE_CLASS = re.compile(r"language-(\w+)|lang-(\w+)|(\w+)-code")


def clean_content(raw_text: str | None) -> str:
    """
    Normalize whitespace and drop web artifacts.

    Paragraph breaks (blank lines) are kept; everything else collapses to
    single spaces.
    """
    if not raw_text:
        return ""
    text = raw_text.replace("\r\n", "\n").replace("\r", "\n").replace("\t", " ")
    text = REFERENCE_MARKER.sub("", text)
    text = UI_PHRASES.sub("", text)
    text = re.sub(r"(?:_{3,}|-{3,}|={3,})", "", text)

    paragraphs = []
    for block in re.split(r"\n\s*\n", text):
        block = re.sub(r"\s+", " ", block).strip()
        block = re.sub(r"\s+([.,;:!?])", r"\1", block)
        if block:
            paragraphs.append(block)
    return "\n\n".join(paragraphs)


def parse_date(value: str | None) -> datetime | None:
    """Parse a date string with dateutil; future dates are rejected."""
    if not value or len(value.strip()) < 4:
        return None
    try:
        parsed = dateutil_parser.parse(value.strip())
    except (ValueError, OverflowError):
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    if parsed.astimezone(timezone.utc) > datetime.now(timezone.utc):
        return None
    return parsed


def _text(tag: Tag | None) -> str:
    if tag is None:
        return ""
    return re.sub(r"\s+", " ", tag.get_text(" ")).strip()


class EnhancedContentExtractor:
    """
    Runs the full extraction pipeline for one page at a time.

    extract_page_content() works on the document alone. extract() adds the
    consent and domain checks and never raises.
    """

    def __init__(
        self,
        privacy_manager: PrivacyManager | None = None,
        analysis_engine: ContentAnalysisEngine | None = None,
        validation_engine: ContentValidationEngine | None = None,
        error_handler: ExtractionErrorHandler | None = None,
        scorer: QualityScorer | None = None,
        validation_config: ValidationConfig | None = None,
        suitability_config: SuitabilityConfig | None = None,
        logger: ExtractorLogger | None = None,
        clock: Callable[[], float] = time.perf_counter,
    ):
        self.logger = logger or ExtractorLogger("content_extractor")
        self.privacy = privacy_manager or PrivacyManager(logger=self.logger)
        self.scorer = scorer or QualityScorer()
        self.analysis_engine = analysis_engine or ContentAnalysisEngine(
            scorer=self.scorer, logger=self.logger
        )
        self.validation_config = validation_config or ValidationConfig()
        self.validation_engine = validation_engine or ContentValidationEngine(
            self.validation_config, scorer=self.scorer, logger=self.logger
        )
        self.suitability_config = suitability_config or SuitabilityConfig()
        self.error_handler = error_handler or ExtractionErrorHandler(logger=self.logger)
        self._clock = clock

    # =========================================================================
    # Pipeline
    # =========================================================================

    async def extract(self, html: str, url: str) -> ExtractionResult:
        """
        Extract a page after consent and domain checks.

        Args:
            html: Page markup.
            url: Page URL.

        Returns:
            ExtractionResult. success is True only when the extracted
            content passes validation.
        """
        start = self._clock()

        def elapsed() -> float:
            return (self._clock() - start) * 1000

        try:
            consent = self.privacy.ensure_explicit_user_consent()
            if not consent.granted:
                raise ConsentRequiredError(consent.session_id)

            decision = await self.privacy.evaluate_domain(get_domain(url) or url, url=url)
            if not decision.allowed:
                result = ExtractionResult.refused(url, decision.reason)
                result.duration_ms = elapsed()
                record_extraction("blocked", result.duration_ms)
                self.logger.extraction_result(
                    url=url, success=False, word_count=0, issue_types=[], reason=decision.reason
                )
                return result

            content = self.extract_page_content(html, url)
        except Exception as e:
            failure = self.error_handler.handle_exception(e, key=url)
            self.error_handler.record_retry_attempt(url)
            result = ExtractionResult.failed(
                url,
                failure.user_message,
                recovery_options=[o.label for o in failure.recovery_options],
                duration_ms=elapsed(),
            )
            record_extraction("failed", result.duration_ms)
            return result

        validation = content.validation
        success = validation is not None and validation.is_valid
        if success:
            self.error_handler.clear_retry_attempts(url)
        errors: list[str] = []
        recovery: list[str] = []
        reason = None
        if validation is not None and not success:
            failure = self.error_handler.handle_validation_error(validation, key=url)
            errors = [issue.message for issue in validation.errors]
            recovery = get_recovery_options(validation.issues)
            reason = failure.user_message

        result = ExtractionResult(
            url=url,
            success=success,
            content=content,
            validation=validation,
            reason=reason,
            errors=errors,
            warnings=list(validation.warnings) if validation else [],
            recovery_options=recovery,
            duration_ms=elapsed(),
        )
        record_extraction("success" if success else "invalid", result.duration_ms)
        self.logger.extraction_result(
            url=url,
            success=success,
            word_count=content.quality.word_count,
            issue_types=[i.type.value for i in validation.issues] if validation else [],
            duration_ms=round(result.duration_ms, 2),
        )
        return result

    def extract_page_content(self, html: str, url: str) -> ExtractedContent:
        """
        Extract, score and validate a page's main content.

        Raises:
            ContentParseError: If the HTML cannot be parsed.
            ExtractionBlockedError: If the domain is on the exclusion list.
        """
        if self.privacy.is_domain_excluded(get_domain(url) or url):
            raise ExtractionBlockedError(url, REASON_EXCLUDED)
        document = PageDocument.parse(html, url)
        text = clean_content(document.main_text())

        structured = self.extract_structured_content(document)
        metadata = self.extract_metadata(document, text)
        quality = self.analyze_content_quality(text, structured)

        context = ValidationContext(
            title=metadata.title,
            url=url,
            content_type=metadata.content_type,
            language=metadata.language,
            language_confidence=metadata.language_confidence,
        )
        validation = self.validation_engine.validate_content(
            text, context, heading_count=len(structured.headings)
        )

        sanitized = self.privacy.sanitize_content(text, url)
        source_info = self.create_source_info(metadata)

        content = ExtractedContent(
            text=sanitized,
            structured_content=structured,
            metadata=metadata,
            quality=quality,
            source_info=source_info,
            suggested_lesson_type=suggest_lesson_type(sanitized, metadata),
            suggested_cefr_level=suggest_cefr_level(quality),
            validation=validation,
        )

        if self.privacy.get_privacy_settings().session_only_storage:
            self.privacy.session_store.set(f"extraction:{url}", content)
        return content

    def validate_content(self, extracted: ExtractedContent) -> ValidationResult:
        """Re-validate extracted content without touching the page."""
        metadata = extracted.metadata
        context = ValidationContext(
            title=metadata.title,
            url=metadata.source_url,
            content_type=metadata.content_type,
            language=metadata.language,
            language_confidence=metadata.language_confidence,
        )
        return self.validation_engine.validate_content(
            extracted.text,
            context,
            heading_count=len(extracted.structured_content.headings),
        )

    # =========================================================================
    # Structured content
    # =========================================================================

    def extract_structured_content(self, document: PageDocument) -> StructuredContent:
        root = document.cleaned_main()
        structured = StructuredContent()
        base_url = document.url

        for heading in root.find_all(["h1", "h2", "h3", "h4", "h5", "h6"]):
            text = _text(heading)
            if text:
                structured.headings.append(
                    Heading(level=int(heading.name[1]), text=text, id=heading.get("id") or None)
                )

        for paragraph in root.find_all("p"):
            text = _text(paragraph)
            if len(text) > MIN_PARAGRAPH_CHARS:
                structured.paragraphs.append(text)

        for list_tag in root.find_all(["ul", "ol"]):
            if list_tag.find_parent("li") is not None:
                continue
            block = self._extract_list(list_tag)
            if block.items:
                structured.lists.append(block)

        for quote in root.select("blockquote, q, .quote"):
            text = _text(quote)
            if len(text) > MIN_QUOTE_CHARS:
                structured.quotes.append(text)

        for img in root.find_all("img"):
            alt = (img.get("alt") or "").strip()
            src = img.get("src") or img.get("data-src")
            if alt and src:
                structured.images.append(
                    ImageInfo(src=urljoin(base_url, str(src)), alt=alt, caption=self._image_caption(img))
                )

        page_origin = get_origin(base_url)
        for link in root.find_all("a", href=True):
            text = _text(link)
            href = str(link["href"]).strip()
            if len(text) <= MIN_LINK_TEXT_CHARS or not href or href.lower().startswith("javascript:"):
                continue
            absolute = urljoin(base_url, href)
            structured.links.append(
                LinkInfo(text=text, href=absolute, is_external=get_origin(absolute) != page_origin)
            )

        for table in root.find_all("table"):
            info = self._extract_table(table)
            if info.headers or info.rows:
                structured.tables.append(info)

        for block in root.find_all(["pre", "code"]):
            if block.name == "code" and block.find_parent("pre") is not None:
                continue
            code = block.get_text().strip()
            if len(code) > MIN_CODE_CHARS:
                structured.code_blocks.append(CodeBlock(code=code, language=self._code_language(block)))

        return structured

    def _extract_list(self, list_tag: Tag) -> ListBlock:
        block = ListBlock(type="ordered" if list_tag.name == "ol" else "unordered")
        for item in list_tag.find_all("li", recursive=False):
            nested = [
                sub for sub in item.find_all(["ul", "ol"])
                if sub.find_parent("li") is item
            ]
            clone = copy.copy(item)
            for sub in clone.find_all(["ul", "ol"]):
                if not sub.decomposed:
                    sub.decompose()
            own_text = _text(clone)
            if own_text:
                block.items.append(own_text)
            for sub in nested:
                sub_block = self._extract_list(sub)
                if sub_block.items:
                    block.nested_lists.append(sub_block)
        return block

    def _image_caption(self, img: Tag) -> str | None:
        figure = img.find_parent("figure")
        if figure is not None:
            figcaption = figure.find("figcaption")
            if figcaption is not None:
                return _text(figcaption) or None

        sibling = img.find_next_sibling()
        if sibling is not None and (
            sibling.name == "figcaption" or "caption" in (sibling.get("class") or [])
        ):
            return _text(sibling) or None
        return None

    def _extract_table(self, table: Tag) -> TableInfo:
        caption_tag = table.find("caption")
        headers = [t for t in (_text(th) for th in table.find_all("th")) if t]
        rows = []
        for tr in table.find_all("tr"):
            cells = tr.find_all("td")
            if cells:
                rows.append([_text(td) for td in cells])
        return TableInfo(headers=headers, rows=rows, caption=_text(caption_tag) or None)

    def _code_language(self, block: Tag) -> str | None:
        candidates = [block]
        if block.name == "pre":
            code = block.find("code")
            if code is not None:
                candidates.append(code)
        for tag in candidates:
            for class_name in tag.get("class") or []:
                match = CODE_LANGUAGE_CLASS.search(str(class_name))
                if match:
                    return next(g for g in match.groups() if g)
            data_lang = tag.get("data-language") or tag.get("data-lang")
            if data_lang:
                return str(data_lang)
        return None

    # =========================================================================
    # Metadata
    # =========================================================================

    def extract_metadata(self, document: PageDocument, text: str) -> ContentMetadata:
        analysis = self.analysis_engine.analyze_page_content(document)
        language, confidence = self._resolve_language(document, text)
        word_count = len(words(text))

        keywords_raw = document.meta(name="keywords") or ""
        keywords = [k.strip() for k in keywords_raw.split(",") if k.strip()][:MAX_KEYWORDS]

        return ContentMetadata(
            title=self._title(document),
            source_url=document.url,
            domain=document.hostname,
            language=language,
            language_confidence=confidence,
            content_type=analysis.content_type,
            estimated_reading_time=math.ceil(word_count / WORDS_PER_MINUTE),
            author=self._author(document),
            publication_date=self._publication_date(document),
            description=(
                document.meta(prop="og:description")
                or document.meta(name="description")
                or document.meta(name="twitter:description")
            ),
            keywords=keywords,
            last_modified=parse_date(document.meta(prop="article:modified_time")),
        )

    def _title(self, document: PageDocument) -> str:
        return (
            document.meta(prop="og:title")
            or document.meta(name="twitter:title")
            or document.title
            or _text(document.select_one("h1"))
            or UNTITLED_CONTENT
        )

    def _author(self, document: PageDocument) -> str | None:
        author = document.meta(name="author")
        if author:
            return author
        for selector in ("[rel='author']", ".author", ".byline", "[class*='author']"):
            text = _text(document.select_one(selector))
            if text:
                return text
        return None

    def _publication_date(self, document: PageDocument) -> datetime | None:
        candidates = [
            document.meta(prop="article:published_time"),
            document.meta(name="date"),
        ]
        time_tag = document.select_one("time[datetime]")
        if time_tag is not None:
            candidates.append(str(time_tag.get("datetime")))
        candidates.append(_text(document.select_one(".date")))
        candidates.append(_text(document.select_one("[class*='date']")))

        for value in candidates:
            parsed = parse_date(value)
            if parsed is not None:
                return parsed
        return None

    def _resolve_language(self, document: PageDocument, text: str) -> tuple[str, float | None]:
        """
        Language chain: <html lang>, content-language meta, detector, "en".

        Declared languages carry at least DECLARED_LANGUAGE_CONFIDENCE. The
        final "en" fallback carries no confidence.
        """
        detected = self.analysis_engine.detector.detect_language(text)

        declared = document.html_lang
        if not declared:
            header = document.meta(http_equiv="content-language")
            if header:
                declared = re.split(r"[-_,;\s]", header.strip())[0].lower() or None

        if declared:
            confidence = DECLARED_LANGUAGE_CONFIDENCE
            if detected.language == declared:
                confidence = max(confidence, detected.confidence)
            return declared, confidence

        if detected.language != "unknown":
            return detected.language, detected.confidence
        return "en", None

    # =========================================================================
    # Quality
    # =========================================================================

    def analyze_content_quality(self, text: str, structured: StructuredContent) -> ContentQuality:
        metrics = compute_metrics(text)
        tokens = words(text)
        word_count = metrics.word_count
        flesch = flesch_reading_ease(text)
        vocab = vocabulary_complexity(text)
        sentences = sentence_complexity(text)
        scores = self.scorer.calculate_content_quality(
            text, heading_count=len(structured.headings), metrics=metrics
        )

        if flesch > 70 and vocab < 0.3 and sentences < 0.4:
            complexity = Complexity.BEGINNER
        elif flesch < 50 or vocab > 0.7 or sentences > 0.7:
            complexity = Complexity.ADVANCED
        else:
            complexity = Complexity.INTERMEDIATE

        structured_elements = len(structured.headings) + len(structured.lists) + len(structured.quotes)
        suitability = (
            0.2 * min(1.0, word_count / 300)
            + 0.3 * (flesch / 100)
            + 0.2 * max(0.0, 1 - vocab)
            + 0.2 * max(0.0, 1 - sentences)
            + 0.1 * min(1.0, structured_elements / 5)
        )

        minimum_words = self.validation_config.effective_min_word_count
        issues = []
        if word_count < minimum_words:
            issues.append(f"Content too short ({word_count} words)")
        if word_count and flesch < 30:
            issues.append("Content may be too complex for language learning")
        if metrics.average_sentence_length > 30:
            issues.append("Sentences are too long and complex")
        unique = {re.sub(r"[^\w]", "", t).lower() for t in tokens}
        if word_count and len(unique) / word_count < 0.3:
            issues.append("Limited vocabulary variety")

        return ContentQuality(
            word_count=word_count,
            reading_time=math.ceil(word_count / WORDS_PER_MINUTE),
            complexity=complexity,
            suitability_score=suitability,
            readability_score=flesch,
            vocabulary_complexity=vocab,
            sentence_complexity=sentences,
            meets_minimum_standards=(
                word_count >= minimum_words
                and suitability >= self.suitability_config.min_quality_score
                and not issues
            ),
            issues=issues,
            scores=scores,
        )

    def create_source_info(self, metadata: ContentMetadata) -> SourceInfo:
        settings = self.privacy.get_privacy_settings()
        attribution = ""
        extracted_at = datetime.now(timezone.utc)
        if settings.include_attribution:
            info = self.privacy.include_proper_attribution(metadata.source_url, metadata.title)
            attribution = info.attribution
            extracted_at = info.extracted_at
        return SourceInfo(
            url=metadata.source_url,
            domain=metadata.domain,
            title=metadata.title,
            extracted_at=extracted_at,
            user_agent=settings.user_agent,
            attribution=attribution,
        )
