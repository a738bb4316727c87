"""
DOM-facing page analysis.

Pulls text and structural counts from a PageDocument, runs the language,
content type and quality analyzers, and exposes the page-level suitability
decision. Results are memoized by document fingerprint.
"""

import re
import time
from typing import Callable

from lessonsource.analysis.cache import AnalysisCache, fingerprint
from lessonsource.analysis.content_classifier import SOCIAL_DOMAINS, ContentTypeClassifier
from lessonsource.analysis.language_detector import LanguageDetector
from lessonsource.analysis.quality_scorer import QualityScorer
from lessonsource.analysis.suitability import SuitabilityGate
from lessonsource.analysis.text_metrics import count_words
from lessonsource.config import AnalysisConfig
from lessonsource.extraction.document import PageDocument
from lessonsource.models import (
    ContentType,
    DomSignals,
    LanguageDetectionResult,
    PageAnalysis,
    SuitabilityDecision,
)
from lessonsource.utils.logging import ExtractorLogger
from lessonsource.utils.metrics import record_analysis, record_cache_lookup
from lessonsource.utils.url_utils import matches_any_domain

EDUCATIONAL_TYPES = frozenset([
    ContentType.ARTICLE,
    ContentType.BLOG,
    ContentType.NEWS,
    ContentType.TUTORIAL,
    ContentType.ENCYCLOPEDIA,
])

EDUCATIONAL_KEYWORDS = (
    "learn", "education", "tutorial", "guide", "how to", "explanation",
    "research", "study", "analysis", "academic", "scientific",
)

AD_TOKENS = re.compile(
    r"(?:^|[-_])(?:ad|ads|advert|advertisement|adsbygoogle|banner|sponsor|sponsored|"
    r"promo|dfp|google-ads)(?:[-_]|$)",
    re.IGNORECASE,
)
AD_IFRAME_SOURCES = re.compile(r"doubleclick|googlesyndication|adservice", re.IGNORECASE)

FEED_TOKENS = re.compile(
    r"(?:^|[-_])(?:feed|timeline|stream|social|tweet|tweets|post-list)(?:[-_]|$)",
    re.IGNORECASE,
)
COMMENT_TOKENS = re.compile(
    r"(?:^|[-_])(?:comment|comments|discussion|disqus|disqus_thread|reply|replies)(?:[-_]|$)",
    re.IGNORECASE,
)
PRICE_TOKENS = re.compile(r"(?:^|[-_])(?:price|pricing|amount|cost)(?:[-_]|$)", re.IGNORECASE)
CART_TOKENS = re.compile(
    r"(?:^|[-_])(?:cart|basket|checkout|add-to-cart|buy|buy-now)(?:[-_]|$)",
    re.IGNORECASE,
)
CART_TEXT = re.compile(r"\b(?:add to (?:cart|basket)|buy now|checkout)\b", re.IGNORECASE)
PRICE_TEXT = re.compile(r"[$€£¥]\s?\d+(?:[.,]\d{2})?")

STRUCTURAL_SELECTOR = "div, section, article, aside"


class ContentAnalysisEngine:
    """
    Orchestrates analyzers over a live document.

    Analysis only reads the document. Repeated calls for an unchanged
    document return the cached PageAnalysis.
    """

    def __init__(
        self,
        config: AnalysisConfig | None = None,
        detector: LanguageDetector | None = None,
        classifier: ContentTypeClassifier | None = None,
        scorer: QualityScorer | None = None,
        gate: SuitabilityGate | None = None,
        cache: AnalysisCache | None = None,
        logger: ExtractorLogger | None = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.config = config or AnalysisConfig()
        self.detector = detector or LanguageDetector(self.config.suitability.supported_languages)
        self.classifier = classifier or ContentTypeClassifier()
        self.scorer = scorer or QualityScorer(self.config.weights)
        self.gate = gate or SuitabilityGate(self.config.suitability)
        self.cache = cache or AnalysisCache(self.config.cache_size, clock=clock)
        self.logger = logger or ExtractorLogger("content_analysis")

    # =========================================================================
    # Public API
    # =========================================================================

    def analyze_page_content(self, document: PageDocument, force: bool = False) -> PageAnalysis:
        """
        Analyze a document.

        Args:
            document: Parsed page.
            force: Recompute even if cached. Forced recomputation is throttled
                by min_reanalysis_interval; inside the interval the cached
                result is returned.

        Returns:
            PageAnalysis for the document.
        """
        key = fingerprint(document.url, document.html, document.revision)
        cached = self.cache.get(key)
        if cached is not None:
            age = self.cache.age(key) or 0.0
            if not force or age < self.config.min_reanalysis_interval:
                record_cache_lookup(hit=True)
                return cached
        record_cache_lookup(hit=False)

        analysis = self._analyze(document)
        self.cache.put(key, analysis)
        return analysis

    def is_content_suitable(self, analysis: PageAnalysis) -> bool:
        return self.gate.is_content_suitable(analysis)

    def evaluate_page(self, document: PageDocument, force: bool = False) -> tuple[PageAnalysis, SuitabilityDecision]:
        """Analyze a document and apply every suitability gate."""
        analysis = self.analyze_page_content(document, force=force)
        decision = self.gate.evaluate(analysis)
        self.logger.suitability_decision(
            url=document.url,
            suitable=decision.suitable,
            reasons=decision.reasons,
        )
        record_analysis(analysis.content_type.value, decision.suitable, analysis.quality_score)
        return analysis, decision

    def invalidate(self, document: PageDocument | None = None) -> None:
        """Drop the cached analysis for a document, or all cached analyses."""
        if document is None:
            self.cache.invalidate()
        else:
            self.cache.invalidate(fingerprint(document.url, document.html, document.revision))

    def exclude_social_media_content(self, hostname: str) -> bool:
        """True when the host is a social network."""
        return matches_any_domain((hostname or "").lower(), SOCIAL_DOMAINS)

    # =========================================================================
    # Signals
    # =========================================================================

    def detect_page_language(self, document: PageDocument, text: str) -> LanguageDetectionResult:
        """Detect language, falling back to <html lang> on low confidence."""
        detected = self.detector.detect_language(text)
        if detected.confidence >= self.config.language_fallback_threshold:
            return detected

        declared = document.html_lang
        if declared and self.detector.is_supported(declared):
            return LanguageDetectionResult(
                language=declared,
                confidence=self.config.declared_language_confidence,
                is_supported=True,
            )
        return detected

    def collect_dom_signals(self, document: PageDocument) -> DomSignals:
        """Page-wide structural counts, including boilerplate."""
        soup = document.soup
        body_text = document.body_text()

        link_words = sum(count_words(a.get_text(" ")) for a in soup.find_all("a"))
        price_count = sum(1 for _ in document.elements_with_tokens(PRICE_TOKENS))
        price_count += len(PRICE_TEXT.findall(body_text))
        cart_count = sum(1 for _ in document.elements_with_tokens(CART_TOKENS))
        cart_count += sum(
            1 for el in soup.find_all(["button", "a", "input"])
            if CART_TEXT.search(el.get_text(" ") or str(el.get("value") or ""))
        )

        og_type = document.meta(prop="og:type")
        return DomSignals(
            word_count=count_words(body_text),
            paragraph_count=len(soup.find_all("p")),
            heading_count=len(soup.find_all(["h1", "h2", "h3", "h4", "h5", "h6"])),
            h1_count=len(soup.find_all("h1")),
            subheading_count=len(soup.find_all(["h2", "h3"])),
            list_item_count=len(soup.find_all("li")),
            link_count=len(soup.find_all("a")),
            link_word_count=link_words,
            nav_count=len(soup.find_all("nav")) + document.count("[role='navigation']"),
            price_indicator_count=price_count,
            cart_indicator_count=cart_count,
            video_count=len(soup.find_all("video")),
            audio_count=len(soup.find_all("audio")),
            embed_count=sum(
                1 for f in soup.find_all(["iframe", "embed", "object"])
                if not AD_IFRAME_SOURCES.search(str(f.get("src") or ""))
            ),
            og_type=og_type.lower() if og_type else None,
            json_ld_types=document.json_ld_types(),
        )

    def advertising_ratio(self, document: PageDocument) -> float:
        """Ad-marked elements over structural elements, clamped to [0, 1]."""
        total = document.count(STRUCTURAL_SELECTOR)
        if total == 0:
            return 0.0
        ads = sum(1 for _ in document.elements_with_tokens(AD_TOKENS))
        ads += sum(
            1 for f in document.soup.find_all("iframe")
            if AD_IFRAME_SOURCES.search(str(f.get("src") or ""))
        )
        return min(1.0, ads / total)

    def has_social_media_feeds(self, document: PageDocument) -> bool:
        return any(True for _ in document.elements_with_tokens(FEED_TOKENS))

    def has_comment_sections(self, document: PageDocument) -> bool:
        return any(True for _ in document.elements_with_tokens(COMMENT_TOKENS))

    def has_main_content(self, document: PageDocument) -> bool:
        headings = len(document.soup.find_all(["h1", "h2", "h3", "h4", "h5", "h6"]))
        paragraphs = len(document.soup.find_all("p"))
        return document.main_element() is not None and headings >= 2 and paragraphs >= 3

    def is_educational(self, content_type: ContentType, document: PageDocument) -> bool:
        if content_type in EDUCATIONAL_TYPES:
            return True
        title = document.title.lower()
        description = (document.meta(name="description") or "").lower()
        return any(k in title or k in description for k in EDUCATIONAL_KEYWORDS)

    # =========================================================================
    # Internals
    # =========================================================================

    def _analyze(self, document: PageDocument) -> PageAnalysis:
        text = document.main_text()
        word_count = count_words(text)
        language = self.detect_page_language(document, text)
        signals = self.collect_dom_signals(document)
        content_type = self.classifier.detect_content_type(
            document.path, document.hostname, signals
        )
        quality = self.scorer.calculate_content_quality(text, heading_count=signals.heading_count)

        analysis = PageAnalysis(
            word_count=word_count,
            content_type=content_type,
            language=language.language,
            language_confidence=language.confidence,
            quality_score=quality.overall,
            has_main_content=self.has_main_content(document),
            is_educational=self.is_educational(content_type, document),
            advertising_ratio=self.advertising_ratio(document),
            has_social_media_feeds=self.has_social_media_feeds(document),
            has_comment_sections=self.has_comment_sections(document),
        )
        self.logger.analysis_complete(
            url=document.url,
            content_type=content_type.value,
            language=analysis.language,
            word_count=word_count,
            quality=round(quality.overall, 3),
        )
        return analysis
