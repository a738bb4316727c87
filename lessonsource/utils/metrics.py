"""
Prometheus metrics for the lesson source extractor.

Provides instrumentation for analysis, validation, privacy and extraction.
"""

from prometheus_client import Counter, Histogram, Info

# =============================================================================
# Extractor Info
# =============================================================================

EXTRACTOR_INFO = Info(
    "lessonsource",
    "Lesson source extractor metadata",
)

# =============================================================================
# Analysis Metrics
# =============================================================================

ANALYSIS_TOTAL = Counter(
    "lessonsource_analysis_total",
    "Number of page analyses",
    ["content_type", "suitable"],
)

QUALITY_SCORE = Histogram(
    "lessonsource_quality_score",
    "Overall content quality score",
    buckets=[0.1, 0.2, 0.3, 0.4, 0.5, 0.6, 0.7, 0.8, 0.9, 1.0],
)

ANALYSIS_CACHE = Counter(
    "lessonsource_analysis_cache_total",
    "Analysis cache lookups",
    ["result"],
)

# =============================================================================
# Validation Metrics
# =============================================================================

VALIDATION_ISSUES = Counter(
    "lessonsource_validation_issues_total",
    "Validation issues raised",
    ["issue_type", "severity"],
)

# =============================================================================
# Privacy Metrics
# =============================================================================

ROBOTS_CHECKS = Counter(
    "lessonsource_robots_checks_total",
    "robots.txt checks by outcome",
    ["outcome"],
)

DOMAINS_BLOCKED = Counter(
    "lessonsource_domains_blocked_total",
    "Extractions refused by domain policy",
    ["reason"],
)

PII_REDACTED = Counter(
    "lessonsource_pii_redacted_total",
    "PII values redacted from extracted text",
    ["pii_type"],
)

# =============================================================================
# Extraction Metrics
# =============================================================================

EXTRACTION_TOTAL = Counter(
    "lessonsource_extraction_total",
    "Extraction attempts by status",
    ["status"],
)

EXTRACTION_DURATION = Histogram(
    "lessonsource_extraction_duration_ms",
    "Extraction duration in milliseconds",
    buckets=[5, 10, 25, 50, 100, 250, 500, 1000, 2500],
)

ERRORS = Counter(
    "lessonsource_errors_total",
    "Extraction errors by type",
    ["error_type"],
)


# =============================================================================
# Helper Functions
# =============================================================================


def record_analysis(content_type: str, suitable: bool, quality: float) -> None:
    """Record a page analysis."""
    ANALYSIS_TOTAL.labels(content_type=content_type, suitable=str(suitable).lower()).inc()
    QUALITY_SCORE.observe(quality)


def record_cache_lookup(hit: bool) -> None:
    """Record an analysis cache lookup."""
    ANALYSIS_CACHE.labels(result="hit" if hit else "miss").inc()


def record_validation_issue(issue_type: str, severity: str) -> None:
    """Record a validation issue."""
    VALIDATION_ISSUES.labels(issue_type=issue_type, severity=severity).inc()


def record_robots_check(outcome: str) -> None:
    """Record a robots.txt check outcome (allowed, disallowed, missing, error)."""
    ROBOTS_CHECKS.labels(outcome=outcome).inc()


def record_domain_blocked(reason: str) -> None:
    """Record a refused domain."""
    DOMAINS_BLOCKED.labels(reason=reason).inc()


def record_pii_redaction(pii_type: str, count: int = 1) -> None:
    """Record redacted PII values."""
    PII_REDACTED.labels(pii_type=pii_type).inc(count)


def record_extraction(status: str, duration_ms: float = 0.0) -> None:
    """Record an extraction result."""
    EXTRACTION_TOTAL.labels(status=status).inc()
    if duration_ms > 0:
        EXTRACTION_DURATION.observe(duration_ms)


def record_error(error_type: str) -> None:
    """Record an error."""
    ERRORS.labels(error_type=error_type).inc()
