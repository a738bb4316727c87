"""
Extraction failure handling.

Maps failed validations and exceptions raised during extraction to
user-facing messages, recovery options and retry decisions.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

import httpx

from lessonsource.exceptions import (
    ComplianceError,
    ConsentRequiredError,
    ContentParseError,
    ExtractionBlockedError,
)
from lessonsource.models import Severity, ValidationIssue, ValidationIssueType, ValidationResult
from lessonsource.utils.logging import ExtractorLogger
from lessonsource.utils.metrics import record_error


class ExtractionErrorType(str, Enum):
    """Classified cause of a failed extraction."""

    VALIDATION_FAILED = "validation_failed"
    NETWORK_ERROR = "network_error"
    PARSING_ERROR = "parsing_error"
    PERMISSION_DENIED = "permission_denied"
    CONTENT_BLOCKED = "content_blocked"
    TIMEOUT_ERROR = "timeout_error"
    UNKNOWN_ERROR = "unknown_error"


class RecoveryAction(str, Enum):
    RETRY_EXTRACTION = "retry_extraction"
    MANUAL_SELECTION = "manual_selection"
    COPY_PASTE_FALLBACK = "copy_paste_fallback"
    TRY_DIFFERENT_PAGE = "try_different_page"


@dataclass(frozen=True)
class RecoveryOption:
    action: RecoveryAction
    label: str
    description: str
    primary: bool = False


@dataclass
class ExtractionFailure:
    """A classified extraction failure ready for display."""

    type: ExtractionErrorType
    message: str
    user_message: str
    can_retry: bool
    recovery_options: list[RecoveryOption] = field(default_factory=list)
    technical_details: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "type": self.type.value,
            "message": self.message,
            "user_message": self.user_message,
            "can_retry": self.can_retry,
            "recovery_options": [o.action.value for o in self.recovery_options],
            "technical_details": self.technical_details,
        }


USER_MESSAGES: dict[ExtractionErrorType, str] = {
    ExtractionErrorType.NETWORK_ERROR: (
        "Unable to connect to the website. Please check your internet connection and try again."
    ),
    ExtractionErrorType.PERMISSION_DENIED: (
        "This website doesn't allow content extraction. Try copying the content manually "
        "or use a different source."
    ),
    ExtractionErrorType.CONTENT_BLOCKED: (
        "This website has blocked automatic content extraction. You can still copy and "
        "paste the content manually."
    ),
    ExtractionErrorType.TIMEOUT_ERROR: (
        "The extraction took too long and timed out. The website might be slow or overloaded."
    ),
    ExtractionErrorType.PARSING_ERROR: (
        "Unable to understand the page structure. The content might be in an unusual format."
    ),
    ExtractionErrorType.VALIDATION_FAILED: (
        "The extracted content doesn't meet the requirements for lesson generation."
    ),
    ExtractionErrorType.UNKNOWN_ERROR: (
        "An unexpected error occurred during content extraction. Please try again or use "
        "manual copy-paste."
    ),
}

VALIDATION_USER_MESSAGES: dict[ValidationIssueType, str] = {
    ValidationIssueType.INSUFFICIENT_CONTENT: (
        "This page doesn't have enough content for a quality lesson. Try finding a longer "
        "article or selecting additional text."
    ),
    ValidationIssueType.POOR_QUALITY: (
        "The content quality is too low for effective lesson generation. Look for "
        "well-written articles or educational content."
    ),
    ValidationIssueType.UNSUPPORTED_LANGUAGE: (
        "The content language is not supported or couldn't be detected. Try content in "
        "English, Spanish, French, German, or other supported languages."
    ),
    ValidationIssueType.NO_MAIN_CONTENT: (
        "Unable to find substantial content on this page. Try selecting the main article "
        "text manually."
    ),
    ValidationIssueType.TOO_MUCH_ADVERTISING: (
        "This page has too much advertising content. Try educational websites, news "
        "articles, or blogs with less advertising."
    ),
    ValidationIssueType.SOCIAL_MEDIA_CONTENT: (
        "Social media content isn't suitable for lessons. Try articles, blog posts, or "
        "news stories instead."
    ),
    ValidationIssueType.NAVIGATION_ONLY: (
        "Only navigation links were found. Try selecting the main article content instead "
        "of menu areas."
    ),
    ValidationIssueType.LOW_READABILITY: (
        "The content is difficult to read and may not be suitable for language learning. "
        "Try finding clearer, better-structured content."
    ),
}

# Checked in order against the lower-cased exception message.
MESSAGE_KEYWORDS: list[tuple[tuple[str, ...], ExtractionErrorType]] = [
    (("network", "fetch", "connect"), ExtractionErrorType.NETWORK_ERROR),
    (("permission", "cors", "consent"), ExtractionErrorType.PERMISSION_DENIED),
    (("timeout", "timed out"), ExtractionErrorType.TIMEOUT_ERROR),
    (("parse", "syntax"), ExtractionErrorType.PARSING_ERROR),
    (("blocked", "forbidden"), ExtractionErrorType.CONTENT_BLOCKED),
]

NON_RETRYABLE = frozenset([
    ExtractionErrorType.PERMISSION_DENIED,
    ExtractionErrorType.CONTENT_BLOCKED,
])


class ExtractionErrorHandler:
    """
    Classifies extraction failures and tracks retries per key.

    Retry counts are kept per URL (or any caller-chosen key) and are only
    changed by record_retry_attempt and clear_retry_attempts.
    """

    def __init__(
        self,
        enable_retry: bool = True,
        max_retry_attempts: int = 3,
        retry_delay: float = 1.0,
        logger: ExtractorLogger | None = None,
    ):
        self.enable_retry = enable_retry
        self.max_retry_attempts = max_retry_attempts
        self.retry_delay = retry_delay
        self.logger = logger or ExtractorLogger("extraction_errors")
        self._retry_attempts: dict[str, int] = {}

    # =========================================================================
    # Classification
    # =========================================================================

    def classify_error(self, error: BaseException) -> ExtractionErrorType:
        if isinstance(error, (httpx.TimeoutException, TimeoutError)):
            return ExtractionErrorType.TIMEOUT_ERROR
        if isinstance(error, httpx.TransportError):
            return ExtractionErrorType.NETWORK_ERROR
        if isinstance(error, ContentParseError):
            return ExtractionErrorType.PARSING_ERROR
        if isinstance(error, ExtractionBlockedError):
            return ExtractionErrorType.CONTENT_BLOCKED
        if isinstance(error, (ConsentRequiredError, PermissionError)):
            return ExtractionErrorType.PERMISSION_DENIED
        if isinstance(error, ComplianceError):
            return ExtractionErrorType.CONTENT_BLOCKED

        message = str(error).lower()
        for keywords, error_type in MESSAGE_KEYWORDS:
            if any(k in message for k in keywords):
                return error_type
        return ExtractionErrorType.UNKNOWN_ERROR

    # =========================================================================
    # Handling
    # =========================================================================

    def handle_validation_error(self, result: ValidationResult, key: str = "") -> ExtractionFailure:
        """Describe a validation result that blocked extraction."""
        errors = [i for i in result.issues if i.severity == Severity.ERROR]
        primary = errors[0] if errors else (result.issues[0] if result.issues else None)

        failure = ExtractionFailure(
            type=ExtractionErrorType.VALIDATION_FAILED,
            message=self._validation_summary(errors),
            user_message=self._validation_user_message(primary),
            can_retry=all(i.severity == Severity.WARNING for i in result.issues),
            recovery_options=self._validation_recovery_options(errors),
            technical_details="; ".join(i.message for i in result.issues) or None,
        )
        self.logger.warning(
            "validation_failed",
            key=key,
            issue_types=[i.type.value for i in errors],
        )
        return failure

    def handle_exception(self, error: BaseException, key: str = "") -> ExtractionFailure:
        """Describe an exception raised during extraction."""
        error_type = self.classify_error(error)
        can_retry = self.can_retry(error_type, key)

        failure = ExtractionFailure(
            type=error_type,
            message=str(error) or error.__class__.__name__,
            user_message=USER_MESSAGES[error_type],
            can_retry=can_retry,
            recovery_options=self._exception_recovery_options(error_type, can_retry),
            technical_details=f"{error.__class__.__name__}: {error}",
        )
        record_error(error_type.value)
        self.logger.error(
            "extraction_error",
            key=key,
            error_type=error_type.value,
            error=str(error),
        )
        return failure

    # =========================================================================
    # Retries
    # =========================================================================

    def can_retry(self, error_type: ExtractionErrorType, key: str = "") -> bool:
        if not self.enable_retry or error_type in NON_RETRYABLE:
            return False
        return self._retry_attempts.get(key, 0) < self.max_retry_attempts

    def record_retry_attempt(self, key: str) -> None:
        self._retry_attempts[key] = self._retry_attempts.get(key, 0) + 1

    def clear_retry_attempts(self, key: str) -> None:
        self._retry_attempts.pop(key, None)

    def retry_attempts(self, key: str) -> int:
        return self._retry_attempts.get(key, 0)

    def get_retry_delay(self, key: str) -> float:
        """Exponential backoff delay in seconds for the next attempt."""
        return self.retry_delay * (2 ** self._retry_attempts.get(key, 0))

    # =========================================================================
    # Helpers
    # =========================================================================

    def _validation_summary(self, errors: list[ValidationIssue]) -> str:
        if not errors:
            return "Content did not pass validation"
        if len(errors) == 1:
            return errors[0].message
        types = {e.type for e in errors}
        if ValidationIssueType.INSUFFICIENT_CONTENT in types:
            return "Content is too short and has quality issues"
        if ValidationIssueType.UNSUPPORTED_LANGUAGE in types:
            return "Language not supported and content has quality issues"
        return f"Multiple validation issues: {len(errors)} problems found"

    def _validation_user_message(self, issue: ValidationIssue | None) -> str:
        if issue is None:
            return USER_MESSAGES[ExtractionErrorType.VALIDATION_FAILED]
        return VALIDATION_USER_MESSAGES.get(issue.type, issue.message)

    def _validation_recovery_options(self, errors: list[ValidationIssue]) -> list[RecoveryOption]:
        types = {e.type for e in errors}
        options = [
            RecoveryOption(
                action=RecoveryAction.MANUAL_SELECTION,
                label="Select Text Manually",
                description="Highlight the text you want to extract",
                primary=True,
            ),
            RecoveryOption(
                action=RecoveryAction.COPY_PASTE_FALLBACK,
                label="Copy & Paste Instead",
                description="Copy the content and paste it into the lesson generator",
            ),
        ]
        if types & {
            ValidationIssueType.SOCIAL_MEDIA_CONTENT,
            ValidationIssueType.NAVIGATION_ONLY,
            ValidationIssueType.TOO_MUCH_ADVERTISING,
            ValidationIssueType.UNSUPPORTED_LANGUAGE,
        }:
            options.append(RecoveryOption(
                action=RecoveryAction.TRY_DIFFERENT_PAGE,
                label="Try Different Page",
                description="Look for an article, blog post or news story instead",
            ))
        return options

    def _exception_recovery_options(
        self,
        error_type: ExtractionErrorType,
        can_retry: bool,
    ) -> list[RecoveryOption]:
        options = []
        if can_retry:
            options.append(RecoveryOption(
                action=RecoveryAction.RETRY_EXTRACTION,
                label="Try Again",
                description="Attempt to extract the content again",
                primary=True,
            ))
        if error_type in (
            ExtractionErrorType.PARSING_ERROR,
            ExtractionErrorType.CONTENT_BLOCKED,
            ExtractionErrorType.PERMISSION_DENIED,
        ):
            options.append(RecoveryOption(
                action=RecoveryAction.MANUAL_SELECTION,
                label="Select Text Manually",
                description="Highlight the text you want to extract",
                primary=not can_retry,
            ))
        options.append(RecoveryOption(
            action=RecoveryAction.COPY_PASTE_FALLBACK,
            label="Copy & Paste Instead",
            description="Copy the content and paste it into the lesson generator",
        ))
        if error_type in NON_RETRYABLE:
            options.append(RecoveryOption(
                action=RecoveryAction.TRY_DIFFERENT_PAGE,
                label="Try Different Website",
                description="Some websites block content extraction. Try a different source.",
            ))
        return options
