"""Content validation and extraction failure handling."""

from lessonsource.validation.engine import (
    ContentValidationEngine,
    get_error_message,
    get_recovery_options,
)
from lessonsource.validation.error_handler import (
    ExtractionErrorHandler,
    ExtractionErrorType,
    ExtractionFailure,
    RecoveryAction,
    RecoveryOption,
)

__all__ = [
    "ContentValidationEngine",
    "ExtractionErrorHandler",
    "ExtractionErrorType",
    "ExtractionFailure",
    "RecoveryAction",
    "RecoveryOption",
    "get_error_message",
    "get_recovery_options",
]
