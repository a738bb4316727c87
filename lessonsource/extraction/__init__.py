"""Content extraction modules."""

from lessonsource.extraction.document import PageDocument
from lessonsource.extraction.enhanced_extractor import EnhancedContentExtractor, clean_content
from lessonsource.extraction.suggestions import suggest_cefr_level, suggest_lesson_type

__all__ = [
    "EnhancedContentExtractor",
    "PageDocument",
    "clean_content",
    "suggest_cefr_level",
    "suggest_lesson_type",
]
