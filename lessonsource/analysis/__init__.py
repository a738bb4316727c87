"""Page analysis: language, content type, quality and suitability."""

from lessonsource.analysis.cache import AnalysisCache, fingerprint
from lessonsource.analysis.content_analyzer import ContentAnalysisEngine
from lessonsource.analysis.content_classifier import (
    ClassificationInput,
    ClassificationRule,
    ContentTypeClassifier,
    detect_content_type,
)
from lessonsource.analysis.language_detector import LanguageDetector, detect_language
from lessonsource.analysis.quality_scorer import QualityScorer, calculate_content_quality
from lessonsource.analysis.suitability import SuitabilityGate, is_content_suitable

__all__ = [
    "AnalysisCache",
    "ClassificationInput",
    "ClassificationRule",
    "ContentAnalysisEngine",
    "ContentTypeClassifier",
    "LanguageDetector",
    "QualityScorer",
    "SuitabilityGate",
    "calculate_content_quality",
    "detect_content_type",
    "detect_language",
    "fingerprint",
    "is_content_suitable",
]
