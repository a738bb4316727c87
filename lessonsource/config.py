"""
Configuration for the lesson source extractor.

Process settings are read from environment variables with the LESSONSOURCE_
prefix. Component configuration lives in plain dataclasses that can be built
from those settings or constructed directly by callers.
"""

from dataclasses import dataclass, field, fields
from typing import Any

from pydantic import ValidationError
from pydantic_settings import BaseSettings, SettingsConfigDict

from lessonsource.utils.logging import ExtractorLogger

DEFAULT_USER_AGENT = "LessonSource/1.0 (Educational Content Extractor)"

# Allow-list order doubles as the language tie-break order.
SUPPORTED_LANGUAGES: tuple[str, ...] = (
    "en", "es", "fr", "de", "it", "pt", "nl", "pl", "ru", "ja", "ko", "zh",
)

DEFAULT_EXCLUDED_DOMAINS: tuple[str, ...] = (
    # Social media platforms
    "facebook.com",
    "twitter.com",
    "x.com",
    "instagram.com",
    "linkedin.com",
    "tiktok.com",
    "snapchat.com",
    # Banking and financial
    "paypal.com",
    "stripe.com",
    "chase.com",
    "bankofamerica.com",
    # Email providers
    "gmail.com",
    "mail.google.com",
    "outlook.com",
    "yahoo.com",
    # Internal/admin
    "localhost",
    "127.0.0.1",
)

LANGUAGE_FALLBACK_THRESHOLD = 0.7
DECLARED_LANGUAGE_CONFIDENCE = 0.8


class ExtractorSettings(BaseSettings):
    """Main settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="LESSONSOURCE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Identity
    user_agent: str = DEFAULT_USER_AGENT

    # Privacy
    respect_robots_txt: bool = True
    explicit_consent_required: bool = True
    session_only_storage: bool = True
    include_attribution: bool = True
    max_content_size: int = 50000
    data_retention_hours: float = 1.0
    robots_timeout_seconds: float = 5.0

    # Validation
    min_word_count: int = 200
    min_quality_score: float = 60.0
    min_language_confidence: float = 0.7
    strict_mode: bool = False

    # Logging
    log_level: str = "INFO"
    log_format: str = "json"


@dataclass
class PrivacySettings:
    """Privacy policy applied by the privacy manager."""

    respect_robots_txt: bool = True
    exclude_domains: list[str] = field(
        default_factory=lambda: list(DEFAULT_EXCLUDED_DOMAINS)
    )
    max_content_size: int = 50000
    data_retention_hours: float = 1.0
    explicit_consent_required: bool = True
    session_only_storage: bool = True
    include_attribution: bool = True
    user_agent: str = DEFAULT_USER_AGENT
    robots_timeout_seconds: float = 5.0

    @classmethod
    def from_settings(cls, settings: ExtractorSettings) -> "PrivacySettings":
        """Build privacy settings from environment settings."""
        return cls(
            respect_robots_txt=settings.respect_robots_txt,
            max_content_size=settings.max_content_size,
            data_retention_hours=settings.data_retention_hours,
            explicit_consent_required=settings.explicit_consent_required,
            session_only_storage=settings.session_only_storage,
            include_attribution=settings.include_attribution,
            user_agent=settings.user_agent,
            robots_timeout_seconds=settings.robots_timeout_seconds,
        )

    @classmethod
    def field_names(cls) -> set[str]:
        return {f.name for f in fields(cls)}

    def to_dict(self) -> dict[str, Any]:
        return {
            "respect_robots_txt": self.respect_robots_txt,
            "exclude_domains": list(self.exclude_domains),
            "max_content_size": self.max_content_size,
            "data_retention_hours": self.data_retention_hours,
            "explicit_consent_required": self.explicit_consent_required,
            "session_only_storage": self.session_only_storage,
            "include_attribution": self.include_attribution,
            "user_agent": self.user_agent,
            "robots_timeout_seconds": self.robots_timeout_seconds,
        }


@dataclass
class QualityWeights:
    """Weights for combining quality sub-scores. Normalized on use."""

    readability: float = 0.4
    structure: float = 0.3
    length: float = 0.3

    def normalized(self) -> tuple[float, float, float]:
        total = self.readability + self.structure + self.length
        if total <= 0:
            return (1 / 3, 1 / 3, 1 / 3)
        return (
            self.readability / total,
            self.structure / total,
            self.length / total,
        )


@dataclass
class ValidationConfig:
    """Thresholds for text validation."""

    min_word_count: int = 200
    min_quality_score: float = 60.0
    min_language_confidence: float = 0.7
    supported_languages: tuple[str, ...] = SUPPORTED_LANGUAGES
    strict_mode: bool = False

    # Hits per 1000 words
    social_density_threshold: float = 20.0
    navigation_density_threshold: float = 100.0
    advertising_density_threshold: float = 30.0
    min_pattern_hits: int = 3

    # Margins applied in strict mode
    strict_quality_margin: float = 10.0
    strict_word_margin: int = 100
    strict_confidence_margin: float = 0.1

    @classmethod
    def from_settings(cls, settings: ExtractorSettings) -> "ValidationConfig":
        """Build validation thresholds from environment settings."""
        return cls(
            min_word_count=settings.min_word_count,
            min_quality_score=settings.min_quality_score,
            min_language_confidence=settings.min_language_confidence,
            strict_mode=settings.strict_mode,
        )

    @property
    def effective_min_word_count(self) -> int:
        if self.strict_mode:
            return self.min_word_count + self.strict_word_margin
        return self.min_word_count

    @property
    def effective_min_quality_score(self) -> float:
        if self.strict_mode:
            return min(100.0, self.min_quality_score + self.strict_quality_margin)
        return self.min_quality_score

    @property
    def effective_min_language_confidence(self) -> float:
        if self.strict_mode:
            return min(1.0, self.min_language_confidence + self.strict_confidence_margin)
        return self.min_language_confidence


@dataclass
class SuitabilityConfig:
    """Gate thresholds for page suitability."""

    min_word_count: int = 200
    min_language_confidence: float = 0.7
    supported_languages: tuple[str, ...] = SUPPORTED_LANGUAGES
    excluded_content_types: frozenset[str] = frozenset(
        {"product", "social", "navigation", "ecommerce", "multimedia"}
    )
    min_quality_score: float = 0.6
    max_advertising_ratio: float = 0.4


@dataclass
class AnalysisConfig:
    """Configuration for DOM-facing page analysis."""

    language_fallback_threshold: float = LANGUAGE_FALLBACK_THRESHOLD
    declared_language_confidence: float = DECLARED_LANGUAGE_CONFIDENCE
    min_reanalysis_interval: float = 1.0
    cache_size: int = 64
    weights: QualityWeights = field(default_factory=QualityWeights)
    suitability: SuitabilityConfig = field(default_factory=SuitabilityConfig)


def load_config(logger: ExtractorLogger | None = None) -> ExtractorSettings:
    """
    Load configuration from environment variables.

    Invalid environment values are logged and replaced by defaults.
    """
    try:
        return ExtractorSettings()
    except ValidationError as e:
        (logger or ExtractorLogger("config")).warning(
            "invalid_configuration",
            errors=[err.get("loc") for err in e.errors()],
        )
        return ExtractorSettings.model_construct()
