"""
Composite content quality scoring.

Quality is split into readability, structure and length sub-scores so callers
can explain which aspect of a text fell short.
"""

import math

from lessonsource.analysis.text_metrics import TextMetrics, compute_metrics
from lessonsource.config import QualityWeights
from lessonsource.models import QualityScore

TARGET_LENGTH_WORDS = 500

IDEAL_SENTENCE_MIN = 8
IDEAL_SENTENCE_MAX = 25
LONG_SENTENCE_LIMIT = 40

VARIATION_BAND = (0.3, 0.7)

MAX_PARAGRAPH_WORDS = 150
WALL_OF_TEXT_WORDS = 100


def length_score(word_count: int) -> float:
    """Saturating length score; about 0.95 at 500 words."""
    if word_count <= 0:
        return 0.0
    return 1.0 - math.exp(-3.0 * word_count / TARGET_LENGTH_WORDS)


def _sentence_length_band(average: float) -> float:
    if average <= 0:
        return 0.0
    if average < IDEAL_SENTENCE_MIN:
        return 0.7 * average / IDEAL_SENTENCE_MIN
    if average <= IDEAL_SENTENCE_MAX:
        return 1.0
    if average <= LONG_SENTENCE_LIMIT:
        span = LONG_SENTENCE_LIMIT - IDEAL_SENTENCE_MAX
        return 1.0 - 0.3 * (average - IDEAL_SENTENCE_MAX) / span
    return 0.7 * LONG_SENTENCE_LIMIT / average * math.exp(-(average - LONG_SENTENCE_LIMIT) / 40)


def _variation_score(metrics: TextMetrics) -> float:
    if metrics.sentence_count < 2:
        return 0.5
    low, high = VARIATION_BAND
    cv = metrics.sentence_length_variation
    if low <= cv <= high:
        return 1.0
    distance = low - cv if cv < low else cv - high
    return max(0.0, 1.0 - distance / low)


def readability_score(metrics: TextMetrics) -> float:
    """Reward average sentence length in the ideal band and some variety."""
    if metrics.word_count == 0:
        return 0.0
    base = _sentence_length_band(metrics.average_sentence_length)
    return 0.8 * base + 0.2 * _variation_score(metrics)


def structure_score(metrics: TextMetrics, heading_count: int | None = None) -> float:
    """Reward several moderately sized paragraphs, headings and lists."""
    if metrics.word_count == 0:
        return 0.0

    blocks = metrics.paragraph_word_counts
    if len(blocks) <= 1:
        paragraphs = 0.2 if metrics.word_count > WALL_OF_TEXT_WORDS else 0.5
    else:
        well_sized = sum(1 for n in blocks if n <= MAX_PARAGRAPH_WORDS) / len(blocks)
        count_factor = min(1.0, len(blocks) / 3)
        paragraphs = count_factor * (0.4 + 0.6 * well_sized)

    headings = metrics.heading_count if heading_count is None else heading_count
    heading_bonus = min(0.15, 0.075 * headings)
    list_bonus = 0.05 if metrics.list_line_count > 0 else 0.0

    return min(1.0, 0.8 * paragraphs + heading_bonus + list_bonus)


class QualityScorer:
    """Combines sub-scores into one composite quality score."""

    def __init__(self, weights: QualityWeights | None = None):
        self.weights = weights or QualityWeights()

    def calculate_content_quality(
        self,
        text: str | None,
        heading_count: int | None = None,
        metrics: TextMetrics | None = None,
    ) -> QualityScore:
        """
        Score a text.

        Args:
            text: Raw text.
            heading_count: Headings known from the document. When omitted,
                markdown headings in the text are counted.
            metrics: Precomputed metrics for the same text.

        Returns:
            QualityScore with all fields in [0, 1].
        """
        metrics = metrics or compute_metrics(text)
        readability = readability_score(metrics)
        structure = structure_score(metrics, heading_count)
        length = length_score(metrics.word_count)

        w_read, w_struct, w_len = self.weights.normalized()
        overall = w_read * readability + w_struct * structure + w_len * length

        return QualityScore(
            overall=overall,
            readability=readability,
            structure=structure,
            length=length,
        )


_default_scorer = QualityScorer()


def calculate_content_quality(text: str | None, heading_count: int | None = None) -> QualityScore:
    """Score a text with default weights."""
    return _default_scorer.calculate_content_quality(text, heading_count)
