"""
Content validation over raw text.

Validates extracted or pasted text independently of any document, producing
issues, warnings and a 0-100 quality score.
"""

import re
from dataclasses import dataclass
from typing import Any, Iterable, Mapping

from lessonsource.analysis.quality_scorer import QualityScorer
from lessonsource.analysis.text_metrics import TextMetrics, compute_metrics
from lessonsource.config import ValidationConfig
from lessonsource.models import (
    QualityScore,
    Severity,
    ValidationContext,
    ValidationIssue,
    ValidationIssueType,
    ValidationResult,
)
from lessonsource.utils.logging import ExtractorLogger
from lessonsource.utils.metrics import record_validation_issue

LOW_READABILITY_THRESHOLD = 0.3
WEAK_STRUCTURE_THRESHOLD = 0.4

SOCIAL_PATTERNS = [
    re.compile(r"(?<![\w.])@\w{2,}"),
    re.compile(r"(?<![\w&/])#[A-Za-z]\w*"),
    re.compile(r"\b(?:likes|shares|retweets|reposts|followers|upvotes)\b", re.IGNORECASE),
    re.compile(r"\bposted\s+\d+\s+(?:seconds?|minutes?|hours?|days?|weeks?)\s+ago\b", re.IGNORECASE),
    re.compile(r"\b(?:reply|retweet|like this|follow us)\b", re.IGNORECASE),
]

NAVIGATION_PATTERN = re.compile(
    r"\b(?:home|next|previous|prev|menu|back to top|skip to content|sign in|log in|"
    r"login|sign up|register|search|contact us|about us|sitemap|privacy policy|"
    r"terms of service)\b",
    re.IGNORECASE,
)

ADVERTISING_PATTERN = re.compile(
    r"\b(?:buy now|subscribe|sale|discount|free shipping|limited time|order now|"
    r"special offer|shop now|click here|coupon|promo code|best price)\b|\d+%\s*off\b",
    re.IGNORECASE,
)

GENERIC_RECOVERY_OPTIONS = [
    "Try manually selecting text from the main article area",
    "Copy and paste content directly into the lesson generator",
    "Look for content on educational or news websites",
]

GENERIC_ERROR_MESSAGE = "The content could not be validated for lesson generation."
GENERIC_RECOVERY_ACTION = "Try a different page or paste the content manually."

ISSUE_MESSAGES: dict[str, str] = {
    ValidationIssueType.INSUFFICIENT_CONTENT.value: "Content is too short for quality lesson generation.",
    ValidationIssueType.UNSUPPORTED_LANGUAGE.value: "The language of this content is not currently supported.",
    ValidationIssueType.SOCIAL_MEDIA_CONTENT.value: (
        "Content appears to be from social media feeds or comments, which are not suitable for lessons."
    ),
    ValidationIssueType.NAVIGATION_ONLY.value: "Content appears to be primarily navigation links or menu items.",
    ValidationIssueType.TOO_MUCH_ADVERTISING.value: (
        "This page contains too much advertising or promotional content for quality lesson generation."
    ),
    ValidationIssueType.POOR_QUALITY.value: "Content quality is below the minimum required for lesson generation.",
    ValidationIssueType.LOW_READABILITY.value: (
        "Content appears to have very low readability, which may not be suitable for language learning."
    ),
    ValidationIssueType.NO_MAIN_CONTENT.value: "Content appears to lack substantial paragraphs or main content.",
    ValidationIssueType.EXTRACTION_FAILED.value: "Content could not be extracted from this page.",
}

RECOVERY_ACTIONS: dict[str, str] = {
    ValidationIssueType.INSUFFICIENT_CONTENT.value: (
        "Try selecting a longer article or manually select additional text from the page."
    ),
    ValidationIssueType.UNSUPPORTED_LANGUAGE.value: (
        "Try content that is clearly written in a single supported language."
    ),
    ValidationIssueType.SOCIAL_MEDIA_CONTENT.value: (
        "Try extracting from articles, blogs, or news content instead of social media."
    ),
    ValidationIssueType.NAVIGATION_ONLY.value: (
        "Try selecting the main article content instead of navigation areas."
    ),
    ValidationIssueType.TOO_MUCH_ADVERTISING.value: (
        "Try finding content from educational or news sources with less advertising."
    ),
    ValidationIssueType.POOR_QUALITY.value: (
        "Look for well-written articles with clear paragraphs and headings."
    ),
    ValidationIssueType.LOW_READABILITY.value: (
        "Consider finding content with clearer, more structured writing."
    ),
    ValidationIssueType.NO_MAIN_CONTENT.value: (
        "Try extracting from the main article area or select content manually."
    ),
    ValidationIssueType.EXTRACTION_FAILED.value: (
        "Reload the page and try again, or copy and paste the content manually."
    ),
}


@dataclass(frozen=True)
class _IssueView:
    """Uniform view over issues given as objects, mappings or bare strings."""

    type: str
    severity: str
    message: str
    recoverable: bool
    suggested_action: str


def _view(issue: Any) -> _IssueView:
    if isinstance(issue, ValidationIssue):
        type_value = issue.type.value
        return _IssueView(
            type=type_value,
            severity=issue.severity.value,
            message=issue.message or ISSUE_MESSAGES.get(type_value, GENERIC_ERROR_MESSAGE),
            recoverable=issue.recoverable,
            suggested_action=issue.suggested_action
            or RECOVERY_ACTIONS.get(type_value, GENERIC_RECOVERY_ACTION),
        )

    if isinstance(issue, Mapping):
        raw_type = issue.get("type")
        type_value = getattr(raw_type, "value", raw_type)
        type_value = str(type_value) if type_value else "unknown"
        raw_severity = issue.get("severity", Severity.ERROR.value)
        severity = str(getattr(raw_severity, "value", raw_severity))
        message = issue.get("message")
        action = issue.get("suggested_action") or issue.get("suggestedAction")
        return _IssueView(
            type=type_value,
            severity=severity,
            message=str(message) if message else ISSUE_MESSAGES.get(type_value, GENERIC_ERROR_MESSAGE),
            recoverable=bool(issue.get("recoverable", True)),
            suggested_action=str(action) if action else RECOVERY_ACTIONS.get(type_value, GENERIC_RECOVERY_ACTION),
        )

    type_value = str(getattr(issue, "value", issue) or "unknown")
    return _IssueView(
        type=type_value,
        severity=Severity.ERROR.value,
        message=ISSUE_MESSAGES.get(type_value, GENERIC_ERROR_MESSAGE),
        recoverable=True,
        suggested_action=RECOVERY_ACTIONS.get(type_value, GENERIC_RECOVERY_ACTION),
    )


def get_error_message(issues: Iterable[Any] | None) -> str:
    """
    Summarize error-severity issues for display.

    Returns:
        Empty string when there are no errors, the message itself for a
        single error, or a combined message for several.
    """
    errors = [v for v in (_view(i) for i in issues or []) if v.severity == Severity.ERROR.value]
    if not errors:
        return ""
    if len(errors) == 1:
        return errors[0].message
    return "Multiple issues found: " + " ".join(e.message for e in errors)


def get_recovery_options(issues: Iterable[Any] | None) -> list[str]:
    """
    Actionable suggestions for recoverable issues plus general fallbacks.

    Suggestions are de-duplicated and keep first-seen order.
    """
    options: list[str] = []
    for view in (_view(i) for i in issues or []):
        if view.recoverable and view.suggested_action not in options:
            options.append(view.suggested_action)
    for fallback in GENERIC_RECOVERY_OPTIONS:
        if fallback not in options:
            options.append(fallback)
    return options


class ContentValidationEngine:
    """
    Validates text for lesson generation.

    Each check appends at most one issue. The result is invalid when any
    issue has error severity.
    """

    def __init__(
        self,
        config: ValidationConfig | None = None,
        scorer: QualityScorer | None = None,
        logger: ExtractorLogger | None = None,
    ):
        self.config = config or ValidationConfig()
        self.scorer = scorer or QualityScorer()
        self.logger = logger or ExtractorLogger("content_validation")

    def validate_content(
        self,
        text: str | None,
        context: ValidationContext | Mapping[str, Any] | None = None,
        heading_count: int | None = None,
    ) -> ValidationResult:
        """
        Validate text against the configured thresholds.

        Args:
            text: Raw extracted or pasted text.
            context: Optional metadata; mappings are converted with
                ValidationContext.from_mapping.
            heading_count: Headings known from the source document.

        Returns:
            ValidationResult with issues, warnings and a 0-100 score.
        """
        if not isinstance(context, ValidationContext):
            context = ValidationContext.from_mapping(context)
        if not isinstance(text, str):
            text = ""

        metrics = compute_metrics(text)
        issues: list[ValidationIssue] = []
        warnings: list[str] = []
        recommendations: list[str] = []

        self._check_length(metrics, issues, recommendations)
        self._check_language(context, issues)
        self._check_patterns(text, metrics, issues, warnings)

        quality = self.scorer.calculate_content_quality(text, heading_count, metrics=metrics)
        score = quality.overall * 100
        meets_minimum = score >= self.config.effective_min_quality_score
        self._check_quality(metrics, quality, score, meets_minimum, issues, warnings, recommendations)

        result = ValidationResult(
            meets_minimum_quality=meets_minimum,
            score=score,
            issues=issues,
            warnings=warnings,
            recommendations=recommendations,
            quality=quality,
        )
        for issue in issues:
            record_validation_issue(issue.type.value, issue.severity.value)
        self.logger.validation_result(
            is_valid=result.is_valid,
            score=round(score, 1),
            issue_types=[i.type.value for i in issues],
            word_count=metrics.word_count,
        )
        return result

    def validate_mapping(self, data: Mapping[str, Any] | None) -> ValidationResult:
        """Validate a loosely-typed payload with text under 'text' or 'content'."""
        data = data if isinstance(data, Mapping) else {}
        text = data.get("text", data.get("content"))
        return self.validate_content(text if isinstance(text, str) else "", data)

    # Formatting helpers, exposed on the engine for callers holding one.
    get_error_message = staticmethod(get_error_message)
    get_recovery_options = staticmethod(get_recovery_options)

    # =========================================================================
    # Checks
    # =========================================================================

    def _check_length(
        self,
        metrics: TextMetrics,
        issues: list[ValidationIssue],
        recommendations: list[str],
    ) -> None:
        minimum = self.config.effective_min_word_count

        if metrics.word_count == 0:
            issues.append(ValidationIssue(
                type=ValidationIssueType.NO_MAIN_CONTENT,
                severity=Severity.ERROR,
                message=ISSUE_MESSAGES[ValidationIssueType.NO_MAIN_CONTENT.value],
                recoverable=True,
                suggested_action=RECOVERY_ACTIONS[ValidationIssueType.NO_MAIN_CONTENT.value],
            ))

        if metrics.word_count < minimum:
            issues.append(ValidationIssue(
                type=ValidationIssueType.INSUFFICIENT_CONTENT,
                severity=Severity.ERROR,
                message=(
                    f"Content is too short ({metrics.word_count} words). Minimum {minimum} "
                    "words required for quality lesson generation."
                ),
                recoverable=True,
                suggested_action=RECOVERY_ACTIONS[ValidationIssueType.INSUFFICIENT_CONTENT.value],
            ))
            recommendations.append("Look for longer articles, blog posts, or news stories")
            recommendations.append("Consider combining multiple short sections of content")
        elif metrics.word_count < minimum * 1.5:
            recommendations.append(
                "Content is on the shorter side. Consider finding additional related "
                "content for a more comprehensive lesson."
            )

    def _check_language(self, context: ValidationContext, issues: list[ValidationIssue]) -> None:
        language = context.language
        if not language:
            return

        if language == "unknown":
            issues.append(ValidationIssue(
                type=ValidationIssueType.UNSUPPORTED_LANGUAGE,
                severity=Severity.ERROR,
                message="Could not detect the language of this content.",
                recoverable=True,
                suggested_action=(
                    "Try content in a clearly supported language "
                    "(English, Spanish, French, German, etc.)."
                ),
            ))
        elif language not in self.config.supported_languages:
            issues.append(ValidationIssue(
                type=ValidationIssueType.UNSUPPORTED_LANGUAGE,
                severity=Severity.ERROR,
                message=f'Language "{language}" is not currently supported for lesson generation.',
                recoverable=True,
                suggested_action=(
                    "Try content in one of these supported languages: "
                    f"{', '.join(self.config.supported_languages)}."
                ),
            ))
        elif (
            context.language_confidence is not None
            and context.language_confidence < self.config.effective_min_language_confidence
        ):
            issues.append(ValidationIssue(
                type=ValidationIssueType.UNSUPPORTED_LANGUAGE,
                severity=Severity.ERROR,
                message=(
                    "Language detection confidence is too low. The content may be "
                    "mixed-language or unclear."
                ),
                recoverable=True,
                suggested_action=RECOVERY_ACTIONS[ValidationIssueType.UNSUPPORTED_LANGUAGE.value],
            ))

    def _density(self, hits: int, word_count: int) -> float:
        if word_count == 0:
            return 0.0
        return hits * 1000 / word_count

    def _exceeds(self, hits: int, word_count: int, threshold: float) -> bool:
        return (
            hits >= self.config.min_pattern_hits
            and self._density(hits, word_count) > threshold
        )

    def _check_patterns(
        self,
        text: str,
        metrics: TextMetrics,
        issues: list[ValidationIssue],
        warnings: list[str],
    ) -> None:
        words = metrics.word_count
        cfg = self.config

        social_hits = sum(len(p.findall(text)) for p in SOCIAL_PATTERNS)
        if self._exceeds(social_hits, words, cfg.social_density_threshold):
            issues.append(self._pattern_issue(ValidationIssueType.SOCIAL_MEDIA_CONTENT))

        navigation_hits = len(NAVIGATION_PATTERN.findall(text))
        if self._exceeds(navigation_hits, words, cfg.navigation_density_threshold):
            issues.append(self._pattern_issue(ValidationIssueType.NAVIGATION_ONLY))

        ad_hits = len(ADVERTISING_PATTERN.findall(text))
        if self._exceeds(ad_hits, words, cfg.advertising_density_threshold):
            issues.append(self._pattern_issue(ValidationIssueType.TOO_MUCH_ADVERTISING))

        if metrics.sentence_count < 3 and words > 100:
            warnings.append("Content has very few sentences. Consider finding more substantial content.")

    def _pattern_issue(self, issue_type: ValidationIssueType) -> ValidationIssue:
        return ValidationIssue(
            type=issue_type,
            severity=Severity.ERROR,
            message=ISSUE_MESSAGES[issue_type.value],
            recoverable=True,
            suggested_action=RECOVERY_ACTIONS[issue_type.value],
        )

    def _check_quality(
        self,
        metrics: TextMetrics,
        quality: QualityScore,
        score: float,
        meets_minimum: bool,
        issues: list[ValidationIssue],
        warnings: list[str],
        recommendations: list[str],
    ) -> None:
        # Short text is already reported; sub-score complaints would only repeat it.
        if metrics.word_count < self.config.effective_min_word_count:
            return

        minimum = self.config.effective_min_quality_score
        if not meets_minimum:
            if self.config.strict_mode:
                issues.append(ValidationIssue(
                    type=ValidationIssueType.POOR_QUALITY,
                    severity=Severity.ERROR,
                    message=(
                        f"Content quality score ({score:.0f}) is below the required "
                        f"minimum ({minimum:.0f})."
                    ),
                    recoverable=True,
                    suggested_action=RECOVERY_ACTIONS[ValidationIssueType.POOR_QUALITY.value],
                ))
            else:
                warnings.append(
                    f"Content quality score ({score:.0f}) is below the recommended "
                    f"minimum ({minimum:.0f})."
                )

        if quality.readability < LOW_READABILITY_THRESHOLD:
            issues.append(ValidationIssue(
                type=ValidationIssueType.LOW_READABILITY,
                severity=Severity.WARNING,
                message=ISSUE_MESSAGES[ValidationIssueType.LOW_READABILITY.value],
                recoverable=True,
                suggested_action=RECOVERY_ACTIONS[ValidationIssueType.LOW_READABILITY.value],
            ))
            warnings.append(
                "Content readability is below average. Consider finding clearer, more structured content."
            )

        if quality.structure < WEAK_STRUCTURE_THRESHOLD:
            warnings.append(
                "Content lacks clear structure. Look for articles with headings, "
                "paragraphs, and organized sections."
            )
            recommendations.append(
                "Educational articles, news stories, and blog posts typically have better structure"
            )
