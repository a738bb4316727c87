"""
Structured logging for the lesson source extractor.

Provides JSON or console logging with bound context and named pipeline events.
"""

import logging
import sys
from typing import Any

import structlog


def setup_logging(
    level: str = "INFO",
    format_type: str = "json",
    log_file: str | None = None,
) -> None:
    """
    Configure structured logging for the extractor.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL).
        format_type: Output format ('json' or 'console').
        log_file: Optional file path to write logs to.
    """
    log_level = getattr(logging, level.upper(), logging.INFO)

    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stderr)]
    if log_file:
        handlers.append(logging.FileHandler(log_file))

    logging.basicConfig(
        level=log_level,
        format="%(message)s",
        handlers=handlers,
        force=True,
    )

    shared_processors: list[structlog.types.Processor] = [
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
    ]

    if format_type == "json":
        processors = shared_processors + [
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ]
    else:
        processors = shared_processors + [
            structlog.dev.ConsoleRenderer(colors=True),
        ]

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def get_logger(name: str | None = None) -> structlog.BoundLogger:
    """
    Get a structured logger instance.

    Args:
        name: Logger name (typically __name__).

    Returns:
        A bound structured logger.
    """
    return structlog.get_logger(name)


class ExtractorLogger:
    """
    Logger for extraction pipeline stages with pre-defined event types.
    """

    def __init__(self, name: str = "lessonsource"):
        self._logger = get_logger(name)
        self._context: dict[str, Any] = {}

    def bind(self, **kwargs: Any) -> "ExtractorLogger":
        """Bind context to all subsequent log calls."""
        new_logger = ExtractorLogger.__new__(ExtractorLogger)
        new_logger._logger = self._logger.bind(**kwargs)
        new_logger._context = {**self._context, **kwargs}
        return new_logger

    def analysis_complete(
        self,
        url: str,
        content_type: str,
        language: str,
        word_count: int,
        **kwargs: Any,
    ) -> None:
        """Log a finished page analysis."""
        self._logger.debug(
            "analysis_complete",
            event_type="analysis",
            url=url,
            content_type=content_type,
            language=language,
            word_count=word_count,
            **kwargs,
        )

    def suitability_decision(
        self,
        url: str,
        suitable: bool,
        reasons: list[str],
        **kwargs: Any,
    ) -> None:
        """Log a suitability gate decision."""
        level = "info" if suitable else "warning"
        getattr(self._logger, level)(
            "suitability_decision",
            event_type="analysis",
            url=url,
            suitable=suitable,
            reasons=reasons,
            **kwargs,
        )

    def validation_result(
        self,
        is_valid: bool,
        score: float,
        issue_types: list[str],
        **kwargs: Any,
    ) -> None:
        """Log a validation outcome."""
        self._logger.debug(
            "validation_result",
            event_type="validation",
            is_valid=is_valid,
            score=score,
            issue_types=issue_types,
            **kwargs,
        )

    def robots_check(
        self,
        url: str,
        allowed: bool,
        reason: str | None = None,
        **kwargs: Any,
    ) -> None:
        """Log a robots.txt check."""
        self._logger.debug(
            "robots_check",
            event_type="compliance",
            url=url,
            allowed=allowed,
            reason=reason,
            **kwargs,
        )

    def domain_blocked(
        self,
        domain: str,
        reason: str,
        **kwargs: Any,
    ) -> None:
        """Log a domain refused by privacy policy."""
        self._logger.warning(
            "domain_blocked",
            event_type="compliance",
            domain=domain,
            reason=reason,
            **kwargs,
        )

    def consent_granted(self, session_id: str, **kwargs: Any) -> None:
        """Log a consent grant for a session."""
        self._logger.info(
            "consent_granted",
            event_type="privacy",
            session_id=session_id,
            **kwargs,
        )

    def pii_redacted(
        self,
        pii_types: list[str],
        count: int,
        **kwargs: Any,
    ) -> None:
        """Log PII redaction."""
        self._logger.warning(
            "pii_redacted",
            event_type="privacy",
            pii_types=pii_types,
            count=count,
            **kwargs,
        )

    def extraction_result(
        self,
        url: str,
        success: bool,
        word_count: int,
        issue_types: list[str],
        **kwargs: Any,
    ) -> None:
        """Log extraction result."""
        level = "info" if success else "warning"
        getattr(self._logger, level)(
            "extraction_result",
            event_type="extraction",
            url=url,
            success=success,
            word_count=word_count,
            issue_types=issue_types,
            **kwargs,
        )

    def debug(self, message: str, **kwargs: Any) -> None:
        """Log a debug message."""
        self._logger.debug(message, **kwargs)

    def info(self, message: str, **kwargs: Any) -> None:
        """Log an info message."""
        self._logger.info(message, **kwargs)

    def warning(self, message: str, **kwargs: Any) -> None:
        """Log a warning message."""
        self._logger.warning(message, **kwargs)

    def error(self, message: str, **kwargs: Any) -> None:
        """Log an error message."""
        self._logger.error(message, **kwargs)

    def critical(self, message: str, **kwargs: Any) -> None:
        """Log a critical message."""
        self._logger.critical(message, **kwargs)
