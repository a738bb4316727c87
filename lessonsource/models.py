"""
Core data models for the lesson source extractor.

These models are the contracts between analyzers, the validation engine,
the privacy manager and the extraction orchestrator.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Mapping


def _clamp(value: float, low: float = 0.0, high: float = 1.0) -> float:
    return max(low, min(high, float(value)))


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


# =============================================================================
# Enums
# =============================================================================


class ContentType(str, Enum):
    """Kind of page a document represents."""

    ARTICLE = "article"
    BLOG = "blog"
    NEWS = "news"
    TUTORIAL = "tutorial"
    ENCYCLOPEDIA = "encyclopedia"
    PRODUCT = "product"
    SOCIAL = "social"
    NAVIGATION = "navigation"
    ECOMMERCE = "ecommerce"
    MULTIMEDIA = "multimedia"
    UNKNOWN = "unknown"


class ValidationIssueType(str, Enum):
    """Problems the validation engine can report."""

    INSUFFICIENT_CONTENT = "insufficient_content"
    UNSUPPORTED_LANGUAGE = "unsupported_language"
    SOCIAL_MEDIA_CONTENT = "social_media_content"
    NAVIGATION_ONLY = "navigation_only"
    TOO_MUCH_ADVERTISING = "too_much_advertising"
    POOR_QUALITY = "poor_quality"
    LOW_READABILITY = "low_readability"
    NO_MAIN_CONTENT = "no_main_content"
    EXTRACTION_FAILED = "extraction_failed"


class Severity(str, Enum):
    """Validation issue severity."""

    ERROR = "error"
    WARNING = "warning"


class LessonType(str, Enum):
    """Lesson formats a page can be suggested for."""

    DISCUSSION = "discussion"
    GRAMMAR = "grammar"
    TRAVEL = "travel"
    BUSINESS = "business"
    PRONUNCIATION = "pronunciation"


class CEFRLevel(str, Enum):
    """Proficiency band suggested for extracted text."""

    A1 = "A1"
    A2 = "A2"
    B1 = "B1"
    B2 = "B2"
    C1 = "C1"


class Complexity(str, Enum):
    """Coarse reading complexity label."""

    BEGINNER = "beginner"
    INTERMEDIATE = "intermediate"
    ADVANCED = "advanced"


# =============================================================================
# Analysis Models
# =============================================================================


@dataclass(frozen=True)
class LanguageDetectionResult:
    """Outcome of signal-word language detection."""

    language: str
    confidence: float
    is_supported: bool

    def __post_init__(self) -> None:
        object.__setattr__(self, "confidence", _clamp(self.confidence))

    def to_dict(self) -> dict[str, Any]:
        return {
            "language": self.language,
            "confidence": self.confidence,
            "is_supported": self.is_supported,
        }


@dataclass(frozen=True)
class QualityScore:
    """Composite quality score and its sub-scores, all in [0, 1]."""

    overall: float
    readability: float
    structure: float
    length: float

    def __post_init__(self) -> None:
        for name in ("overall", "readability", "structure", "length"):
            object.__setattr__(self, name, _clamp(getattr(self, name)))

    def to_dict(self) -> dict[str, float]:
        return {
            "overall": self.overall,
            "readability": self.readability,
            "structure": self.structure,
            "length": self.length,
        }


@dataclass
class DomSignals:
    """Structural counts taken from a document for classification."""

    word_count: int = 0
    paragraph_count: int = 0
    heading_count: int = 0
    h1_count: int = 0
    subheading_count: int = 0
    list_item_count: int = 0
    link_count: int = 0
    link_word_count: int = 0
    nav_count: int = 0
    price_indicator_count: int = 0
    cart_indicator_count: int = 0
    video_count: int = 0
    audio_count: int = 0
    embed_count: int = 0
    og_type: str | None = None
    json_ld_types: list[str] = field(default_factory=list)

    @property
    def media_count(self) -> int:
        return self.video_count + self.audio_count + self.embed_count


@dataclass(frozen=True)
class PageAnalysis:
    """Per-page analysis used by the suitability gate."""

    word_count: int
    content_type: ContentType
    language: str
    language_confidence: float
    quality_score: float
    has_main_content: bool
    is_educational: bool
    advertising_ratio: float
    has_social_media_feeds: bool
    has_comment_sections: bool

    def __post_init__(self) -> None:
        object.__setattr__(self, "language_confidence", _clamp(self.language_confidence))
        object.__setattr__(self, "quality_score", _clamp(self.quality_score))
        object.__setattr__(self, "advertising_ratio", _clamp(self.advertising_ratio))

    def to_dict(self) -> dict[str, Any]:
        return {
            "word_count": self.word_count,
            "content_type": self.content_type.value,
            "language": self.language,
            "language_confidence": self.language_confidence,
            "quality_score": self.quality_score,
            "has_main_content": self.has_main_content,
            "is_educational": self.is_educational,
            "advertising_ratio": self.advertising_ratio,
            "has_social_media_feeds": self.has_social_media_feeds,
            "has_comment_sections": self.has_comment_sections,
        }


@dataclass(frozen=True)
class SuitabilityDecision:
    """Accept/reject decision with every failing reason."""

    suitable: bool
    reasons: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {"suitable": self.suitable, "reasons": list(self.reasons)}


# =============================================================================
# Validation Models
# =============================================================================


@dataclass(frozen=True)
class ValidationIssue:
    """A single problem found in content."""

    type: ValidationIssueType
    severity: Severity
    message: str
    recoverable: bool = True
    suggested_action: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "type": self.type.value,
            "severity": self.severity.value,
            "message": self.message,
            "recoverable": self.recoverable,
            "suggested_action": self.suggested_action,
        }


@dataclass(frozen=True)
class ValidationResult:
    """Outcome of validating a piece of text."""

    meets_minimum_quality: bool
    score: float
    issues: list[ValidationIssue] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
    recommendations: list[str] = field(default_factory=list)
    quality: QualityScore | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "score", _clamp(self.score, 0.0, 100.0))

    @property
    def is_valid(self) -> bool:
        """False when any issue is an error."""
        return not any(issue.severity == Severity.ERROR for issue in self.issues)

    @property
    def errors(self) -> list[ValidationIssue]:
        return [issue for issue in self.issues if issue.severity == Severity.ERROR]

    def has_issue(self, issue_type: ValidationIssueType) -> bool:
        return any(issue.type == issue_type for issue in self.issues)

    def to_dict(self) -> dict[str, Any]:
        return {
            "is_valid": self.is_valid,
            "meets_minimum_quality": self.meets_minimum_quality,
            "score": self.score,
            "issues": [issue.to_dict() for issue in self.issues],
            "warnings": list(self.warnings),
            "recommendations": list(self.recommendations),
            "quality": self.quality.to_dict() if self.quality else None,
        }


@dataclass(frozen=True)
class ValidationContext:
    """Optional metadata accompanying text under validation."""

    title: str | None = None
    url: str | None = None
    content_type: ContentType | None = None
    language: str | None = None
    language_confidence: float | None = None

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any] | None) -> "ValidationContext":
        """
        Build a context from loosely-typed data.

        Unknown keys and values of the wrong type are ignored. Both snake_case
        and camelCase keys are accepted.
        """
        if not isinstance(data, Mapping):
            return cls()

        def pick(*keys: str) -> Any:
            for key in keys:
                if key in data:
                    return data[key]
            return None

        def as_str(value: Any) -> str | None:
            return value if isinstance(value, str) and value else None

        confidence = pick("language_confidence", "languageConfidence")
        if isinstance(confidence, bool) or not isinstance(confidence, (int, float)):
            confidence = None

        content_type = pick("content_type", "contentType")
        try:
            content_type = ContentType(content_type) if content_type else None
        except ValueError:
            content_type = None

        return cls(
            title=as_str(pick("title")),
            url=as_str(pick("url", "source_url", "sourceUrl")),
            content_type=content_type,
            language=as_str(pick("language")),
            language_confidence=float(confidence) if confidence is not None else None,
        )


# =============================================================================
# Structured Content Models
# =============================================================================


@dataclass
class Heading:
    level: int
    text: str
    id: str | None = None


@dataclass
class ListBlock:
    type: str  # "ordered" or "unordered"
    items: list[str] = field(default_factory=list)
    nested_lists: list["ListBlock"] = field(default_factory=list)


@dataclass
class ImageInfo:
    src: str
    alt: str = ""
    caption: str | None = None


@dataclass
class LinkInfo:
    text: str
    href: str
    is_external: bool = False


@dataclass
class TableInfo:
    headers: list[str] = field(default_factory=list)
    rows: list[list[str]] = field(default_factory=list)
    caption: str | None = None


@dataclass
class CodeBlock:
    code: str
    language: str | None = None


@dataclass
class StructuredContent:
    """Headings, paragraphs and other blocks pulled from the main content."""

    headings: list[Heading] = field(default_factory=list)
    paragraphs: list[str] = field(default_factory=list)
    lists: list[ListBlock] = field(default_factory=list)
    quotes: list[str] = field(default_factory=list)
    images: list[ImageInfo] = field(default_factory=list)
    links: list[LinkInfo] = field(default_factory=list)
    tables: list[TableInfo] = field(default_factory=list)
    code_blocks: list[CodeBlock] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        def list_dict(block: ListBlock) -> dict[str, Any]:
            return {
                "type": block.type,
                "items": list(block.items),
                "nested_lists": [list_dict(n) for n in block.nested_lists],
            }

        return {
            "headings": [
                {"level": h.level, "text": h.text, "id": h.id} for h in self.headings
            ],
            "paragraphs": list(self.paragraphs),
            "lists": [list_dict(b) for b in self.lists],
            "quotes": list(self.quotes),
            "images": [
                {"src": i.src, "alt": i.alt, "caption": i.caption} for i in self.images
            ],
            "links": [
                {"text": l.text, "href": l.href, "is_external": l.is_external}
                for l in self.links
            ],
            "tables": [
                {"headers": t.headers, "rows": t.rows, "caption": t.caption}
                for t in self.tables
            ],
            "code_blocks": [
                {"code": c.code, "language": c.language} for c in self.code_blocks
            ],
        }


# =============================================================================
# Extraction Models
# =============================================================================


@dataclass
class ContentMetadata:
    """Descriptive metadata for extracted content."""

    title: str
    source_url: str
    domain: str
    language: str = "en"
    language_confidence: float | None = None
    content_type: ContentType = ContentType.UNKNOWN
    estimated_reading_time: int = 0
    author: str | None = None
    publication_date: datetime | None = None
    description: str | None = None
    keywords: list[str] = field(default_factory=list)
    last_modified: datetime | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "title": self.title,
            "source_url": self.source_url,
            "domain": self.domain,
            "language": self.language,
            "language_confidence": self.language_confidence,
            "content_type": self.content_type.value,
            "estimated_reading_time": self.estimated_reading_time,
            "author": self.author,
            "publication_date": (
                self.publication_date.isoformat() if self.publication_date else None
            ),
            "description": self.description,
            "keywords": list(self.keywords),
            "last_modified": (
                self.last_modified.isoformat() if self.last_modified else None
            ),
        }


@dataclass
class ContentQuality:
    """Quality summary attached to extracted content."""

    word_count: int
    reading_time: int
    complexity: Complexity
    suitability_score: float
    readability_score: float
    vocabulary_complexity: float
    sentence_complexity: float
    meets_minimum_standards: bool
    issues: list[str] = field(default_factory=list)
    scores: QualityScore | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "word_count": self.word_count,
            "reading_time": self.reading_time,
            "complexity": self.complexity.value,
            "suitability_score": self.suitability_score,
            "readability_score": self.readability_score,
            "vocabulary_complexity": self.vocabulary_complexity,
            "sentence_complexity": self.sentence_complexity,
            "meets_minimum_standards": self.meets_minimum_standards,
            "issues": list(self.issues),
            "scores": self.scores.to_dict() if self.scores else None,
        }


@dataclass
class SourceInfo:
    """Where the content came from and how to credit it."""

    url: str
    domain: str
    title: str
    extracted_at: datetime = field(default_factory=_utcnow)
    user_agent: str = ""
    attribution: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {
            "url": self.url,
            "domain": self.domain,
            "title": self.title,
            "extracted_at": self.extracted_at.isoformat(),
            "user_agent": self.user_agent,
            "attribution": self.attribution,
        }


@dataclass(frozen=True)
class ExtractedContent:
    """Final artifact handed to lesson generation."""

    text: str
    structured_content: StructuredContent
    metadata: ContentMetadata
    quality: ContentQuality
    source_info: SourceInfo
    suggested_lesson_type: LessonType
    suggested_cefr_level: CEFRLevel
    validation: ValidationResult | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "text": self.text,
            "structured_content": self.structured_content.to_dict(),
            "metadata": self.metadata.to_dict(),
            "quality": self.quality.to_dict(),
            "source_info": self.source_info.to_dict(),
            "suggested_lesson_type": self.suggested_lesson_type.value,
            "suggested_cefr_level": self.suggested_cefr_level.value,
            "validation": self.validation.to_dict() if self.validation else None,
        }


@dataclass
class ExtractionResult:
    """Result of an extraction attempt through the full pipeline."""

    url: str
    success: bool
    content: ExtractedContent | None = None
    validation: ValidationResult | None = None
    blocked: bool = False
    reason: str | None = None
    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
    recovery_options: list[str] = field(default_factory=list)
    duration_ms: float = 0.0

    @classmethod
    def refused(cls, url: str, reason: str) -> "ExtractionResult":
        """Create a result for an extraction denied by policy."""
        return cls(url=url, success=False, blocked=True, reason=reason, errors=[reason])

    @classmethod
    def failed(
        cls,
        url: str,
        message: str,
        recovery_options: list[str] | None = None,
        duration_ms: float = 0.0,
    ) -> "ExtractionResult":
        """Create a result for an extraction that raised."""
        return cls(
            url=url,
            success=False,
            reason=message,
            errors=[message],
            recovery_options=recovery_options or [],
            duration_ms=duration_ms,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "url": self.url,
            "success": self.success,
            "content": self.content.to_dict() if self.content else None,
            "validation": self.validation.to_dict() if self.validation else None,
            "blocked": self.blocked,
            "reason": self.reason,
            "errors": list(self.errors),
            "warnings": list(self.warnings),
            "recovery_options": list(self.recovery_options),
            "duration_ms": self.duration_ms,
        }


# =============================================================================
# Privacy Models
# =============================================================================


@dataclass(frozen=True)
class RobotsDecision:
    """Outcome of a robots.txt check."""

    allowed: bool
    reason: str
    user_agent: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {"allowed": self.allowed, "reason": self.reason, "user_agent": self.user_agent}


@dataclass(frozen=True)
class ConsentRecord:
    """Consent granted for one session."""

    granted: bool
    session_id: str
    timestamp: datetime = field(default_factory=_utcnow)

    def to_dict(self) -> dict[str, Any]:
        return {
            "granted": self.granted,
            "session_id": self.session_id,
            "timestamp": self.timestamp.isoformat(),
        }


@dataclass(frozen=True)
class DataUsageLogEntry:
    """One privacy-relevant action."""

    action: str
    data_size: int
    session_id: str
    url: str | None = None
    timestamp: datetime = field(default_factory=_utcnow)

    def to_dict(self) -> dict[str, Any]:
        return {
            "action": self.action,
            "data_size": self.data_size,
            "session_id": self.session_id,
            "url": self.url,
            "timestamp": self.timestamp.isoformat(),
        }


@dataclass(frozen=True)
class AttributionInfo:
    """Citation for extracted content."""

    source_url: str
    title: str
    domain: str
    extracted_at: datetime
    attribution: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "source_url": self.source_url,
            "title": self.title,
            "domain": self.domain,
            "extracted_at": self.extracted_at.isoformat(),
            "attribution": self.attribution,
        }
