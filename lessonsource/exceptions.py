"""
Exception hierarchy for the lesson source extractor.

All exceptions inherit from LessonSourceError. Public analyzers do not raise
for malformed input; these types cross internal seams and are mapped to
result objects before reaching callers.
"""

from datetime import datetime, timezone
from typing import Any


class LessonSourceError(Exception):
    """Base exception for all extractor errors."""

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}
        self.timestamp = datetime.now(timezone.utc)


# =============================================================================
# Compliance Errors
# =============================================================================


class ComplianceError(LessonSourceError):
    """Raised when a privacy or compliance check fails."""

    pass


class ExtractionBlockedError(ComplianceError):
    """Extraction refused by domain policy or robots.txt."""

    def __init__(self, url: str, reason: str):
        super().__init__(
            f"Extraction blocked for {url}: {reason}",
            {"url": url, "reason": reason},
        )
        self.url = url
        self.reason = reason


class ConsentRequiredError(ComplianceError):
    """User consent has not been granted."""

    def __init__(self, session_id: str | None = None):
        super().__init__(
            "Explicit user consent is required before extraction",
            {"session_id": session_id},
        )
        self.session_id = session_id


# =============================================================================
# Extraction Errors
# =============================================================================


class ExtractionError(LessonSourceError):
    """Raised when content extraction fails."""

    pass


class ContentParseError(ExtractionError):
    """The page markup could not be parsed."""

    def __init__(self, url: str, reason: str):
        super().__init__(
            f"Failed to parse content from {url}: {reason}",
            {"url": url, "reason": reason},
        )
        self.url = url
        self.reason = reason


# =============================================================================
# Configuration Errors
# =============================================================================


class ConfigurationError(LessonSourceError):
    """Invalid configuration supplied."""

    pass
