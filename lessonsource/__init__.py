"""
LessonSource

Content suitability analysis and privacy-safe extraction of web pages as raw
material for language lessons.
"""

__version__ = "0.1.0"

from lessonsource.config import ExtractorSettings, PrivacySettings, ValidationConfig, load_config
from lessonsource.exceptions import LessonSourceError
from lessonsource.models import (
    ContentType,
    ExtractedContent,
    ExtractionResult,
    PageAnalysis,
    ValidationResult,
)
from lessonsource.extraction.enhanced_extractor import EnhancedContentExtractor
from lessonsource.privacy.manager import PrivacyManager, get_privacy_manager

__all__ = [
    "ContentType",
    "EnhancedContentExtractor",
    "ExtractedContent",
    "ExtractionResult",
    "ExtractorSettings",
    "LessonSourceError",
    "PageAnalysis",
    "PrivacyManager",
    "PrivacySettings",
    "ValidationConfig",
    "ValidationResult",
    "get_privacy_manager",
    "load_config",
]
