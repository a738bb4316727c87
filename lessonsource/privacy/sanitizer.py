"""
PII redaction for extracted text.

Replaces email addresses, credit card numbers, SSNs, IPv4 addresses and phone
numbers with a fixed token, then truncates to a size limit.
"""

import re
from collections import Counter
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from lessonsource.utils.logging import ExtractorLogger
from lessonsource.utils import metrics

REDACTION_TOKEN = "[REDACTED]"
TRUNCATION_SUFFIX = "..."

# Upper bound on redact/truncate passes; each pass only touches the tail.
_MAX_PASSES = 10


class PIIType(str, Enum):
    """Kinds of PII removed from extracted text."""

    EMAIL = "email"
    CREDIT_CARD = "credit_card"
    SSN = "ssn"
    IP_ADDRESS = "ip_address"
    PHONE = "phone"


@dataclass
class SanitizationResult:
    """Sanitized text with per-type redaction counts."""

    text: str
    redactions: dict[PIIType, int] = field(default_factory=dict)
    truncated: bool = False

    @property
    def redaction_count(self) -> int:
        return sum(self.redactions.values())

    def to_dict(self) -> dict[str, Any]:
        return {
            "length": len(self.text),
            "redactions": {t.value: n for t, n in self.redactions.items()},
            "truncated": self.truncated,
        }


class PIISanitizer:
    """
    Regex-based PII redactor.

    Patterns are applied in a fixed order chosen so that broader patterns
    (phone numbers) run after the narrower ones they could overlap with.
    """

    PATTERNS: list[tuple[PIIType, re.Pattern[str]]] = [
        (
            PIIType.EMAIL,
            re.compile(r"\b[A-Za-z0-9._%+-]+@[A-Za-z0-9.-]+\.[A-Za-z]{2,}\b"),
        ),
        (
            PIIType.CREDIT_CARD,
            re.compile(
                r"\b(?:\d{4}[-\s]?){3}\d{4}\b"
                r"|\b\d{4}[-\s]?\d{6}[-\s]?\d{5}\b"
            ),
        ),
        (
            PIIType.SSN,
            re.compile(r"\b\d{3}[-\s]?\d{2}[-\s]?\d{4}\b"),
        ),
        (
            PIIType.IP_ADDRESS,
            re.compile(r"\b(?:\d{1,3}\.){3}\d{1,3}\b"),
        ),
        (
            PIIType.PHONE,
            re.compile(
                # International: +44 20 7946 0958, +33-1-23-45-67-89
                r"(?<![\w+])\+\d{1,3}[-.\s]?(?:\(?\d{1,4}\)?[-.\s]?){1,4}\d{2,4}\b"
                # North American: (555) 123-4567, 1-800-555-0199, 555.123.4567
                r"|(?<![\w+])(?:1[-.\s]?)?(?:\(\d{3}\)\s?|\d{3}[-.\s]?)\d{3}[-.\s]?\d{4}\b"
            ),
        ),
    ]

    def __init__(
        self,
        max_content_size: int = 50000,
        logger: ExtractorLogger | None = None,
    ):
        self.max_content_size = max_content_size
        self.logger = logger or ExtractorLogger("pii_sanitizer")

    def find(self, text: str) -> dict[PIIType, list[str]]:
        """All PII values present in text, grouped by type."""
        found: dict[PIIType, list[str]] = {}
        for pii_type, pattern in self.PATTERNS:
            values = [m.group(0) for m in pattern.finditer(text)]
            if values:
                found[pii_type] = values
        return found

    def contains_pii(self, text: str | None) -> bool:
        return bool(text) and any(p.search(text) for _, p in self.PATTERNS)

    def redact(self, text: str, counts: Counter | None = None) -> str:
        """Apply every pattern until the text stops changing."""
        for _ in range(_MAX_PASSES):
            before = text
            for pii_type, pattern in self.PATTERNS:
                text, n = pattern.subn(REDACTION_TOKEN, text)
                if n and counts is not None:
                    counts[pii_type] += n
            if text == before:
                break
        return text

    def sanitize_with_report(self, text: str | None) -> SanitizationResult:
        """
        Redact PII and enforce the size limit.

        Returns:
            SanitizationResult; None or empty input yields empty text.
        """
        if not text:
            return SanitizationResult(text="")

        counts: Counter = Counter()
        body = self.redact(text, counts)
        truncated = False

        # Cutting the text can expose a shorter digit run at the tail.
        for _ in range(_MAX_PASSES):
            if len(body) <= self.max_content_size:
                break
            truncated = True
            body = self.redact(body[: self.max_content_size], counts)
        body = body[: self.max_content_size]

        if truncated:
            body += TRUNCATION_SUFFIX

        redactions = dict(counts)
        if redactions:
            for pii_type, n in redactions.items():
                metrics.record_pii_redaction(pii_type.value, n)
            self.logger.pii_redacted(
                pii_types=[t.value for t in redactions],
                count=sum(redactions.values()),
            )
        return SanitizationResult(text=body, redactions=redactions, truncated=truncated)

    def sanitize(self, text: str | None) -> str:
        return self.sanitize_with_report(text).text
