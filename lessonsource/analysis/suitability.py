"""
Page suitability gate.

Every gate is evaluated so a rejection can list all of its reasons.
"""

from lessonsource.config import SuitabilityConfig
from lessonsource.models import PageAnalysis, SuitabilityDecision


class SuitabilityGate:
    """Pure accept/reject decision over a PageAnalysis."""

    def __init__(self, config: SuitabilityConfig | None = None):
        self.config = config or SuitabilityConfig()

    def failing_reasons(self, analysis: PageAnalysis) -> list[str]:
        cfg = self.config
        reasons = []

        if analysis.word_count < cfg.min_word_count:
            reasons.append(
                f"Content has {analysis.word_count} words; at least {cfg.min_word_count} required"
            )
        if analysis.language not in cfg.supported_languages:
            reasons.append(f'Language "{analysis.language}" is not supported')
        if analysis.language_confidence < cfg.min_language_confidence:
            reasons.append(
                f"Language confidence {analysis.language_confidence:.2f} is below "
                f"{cfg.min_language_confidence:.2f}"
            )
        if not analysis.is_educational:
            reasons.append("Content does not appear to be educational")
        if analysis.content_type.value in cfg.excluded_content_types:
            reasons.append(f"Content type '{analysis.content_type.value}' is excluded")
        if analysis.has_social_media_feeds:
            reasons.append("Page contains social media feeds")
        if analysis.has_comment_sections:
            reasons.append("Page contains comment sections")
        if analysis.quality_score < cfg.min_quality_score:
            reasons.append(
                f"Quality score {analysis.quality_score:.2f} is below {cfg.min_quality_score:.2f}"
            )
        if analysis.advertising_ratio > cfg.max_advertising_ratio:
            reasons.append(
                f"Advertising ratio {analysis.advertising_ratio:.2f} exceeds "
                f"{cfg.max_advertising_ratio:.2f}"
            )
        return reasons

    def evaluate(self, analysis: PageAnalysis) -> SuitabilityDecision:
        reasons = self.failing_reasons(analysis)
        return SuitabilityDecision(suitable=not reasons, reasons=reasons)

    def is_content_suitable(self, analysis: PageAnalysis) -> bool:
        return not self.failing_reasons(analysis)


_default_gate = SuitabilityGate()


def is_content_suitable(analysis: PageAnalysis) -> bool:
    """Apply the default gates to an analysis."""
    return _default_gate.is_content_suitable(analysis)
