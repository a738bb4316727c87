"""
Signal-word language detection.

Counts distinctive function words for each language and picks the language
whose words make up the largest share of the text. This is a lightweight
heuristic, not statistical language identification.
"""

import re
from collections import Counter

from lessonsource.config import SUPPORTED_LANGUAGES
from lessonsource.models import LanguageDetectionResult

MIN_SIGNAL_MATCHES = 3
LOW_CONFIDENCE_CAP = 0.3
# Signal ratio at which coverage stops limiting confidence.
FULL_COVERAGE_RATIO = 0.10

_TOKEN = re.compile(r"\w+")

SIGNAL_WORDS: dict[str, frozenset[str]] = {
    "en": frozenset([
        "the", "and", "that", "have", "for", "not", "with", "you", "this",
        "but", "is", "of", "to", "are", "was", "it", "be", "from", "they", "which",
    ]),
    "es": frozenset([
        "el", "los", "las", "y", "del", "por", "está", "muy", "pero", "más",
        "también", "hay", "este", "esta", "al", "como", "para", "cuando", "sobre", "entre",
    ]),
    "fr": frozenset([
        "le", "les", "des", "et", "est", "une", "du", "dans", "pour", "avec",
        "sur", "ce", "qui", "pas", "au", "aux", "sont", "nous", "vous", "cette",
    ]),
    "de": frozenset([
        "der", "die", "und", "den", "von", "zu", "das", "mit", "sich", "ist",
        "ein", "eine", "auf", "für", "nicht", "auch", "es", "dem", "wird", "sind",
    ]),
    "it": frozenset([
        "il", "di", "che", "gli", "della", "delle", "è", "sono", "alla", "nel",
        "anche", "non", "questo", "più", "ci", "una", "dei", "degli", "essere", "molto",
    ]),
    "pt": frozenset([
        "não", "um", "uma", "da", "em", "do", "na", "os", "com", "dos",
        "é", "são", "mais", "pelo", "ao", "isso", "também", "pela", "seu", "sua",
    ]),
}


class LanguageDetector:
    """
    Scores text against per-language signal-word sets.

    Languages are evaluated in allow-list order so that ties are resolved
    deterministically in favour of the earlier language.
    """

    def __init__(
        self,
        supported_languages: tuple[str, ...] = SUPPORTED_LANGUAGES,
        signal_words: dict[str, frozenset[str]] | None = None,
    ):
        self.supported_languages = tuple(supported_languages)
        words = signal_words or SIGNAL_WORDS
        ordered = [lang for lang in self.supported_languages if lang in words]
        ordered += [lang for lang in words if lang not in ordered]
        self._signal_words = [(lang, words[lang]) for lang in ordered]

    def is_supported(self, language: str | None) -> bool:
        return bool(language) and language in self.supported_languages

    def signal_matches(self, text: str | None) -> list[tuple[str, int, float]]:
        """
        Count signal words per language.

        Returns:
            (language, matches, ratio) tuples sorted by ratio, best first.
        """
        tokens = _TOKEN.findall((text or "").lower())
        if not tokens:
            return []
        counts = Counter(tokens)
        total = len(tokens)

        scored = []
        for lang, signals in self._signal_words:
            matches = sum(counts[word] for word in signals)
            scored.append((lang, matches, matches / total))
        # sorted() is stable, so equal ratios keep allow-list order
        return sorted(scored, key=lambda item: item[2], reverse=True)

    def detect_language(self, text: str | None) -> LanguageDetectionResult:
        """
        Detect the dominant language of a text.

        Args:
            text: Raw text to analyze.

        Returns:
            Best language, a confidence in [0, 1] and whether it is supported.
        """
        scored = self.signal_matches(text)
        if not scored or scored[0][1] == 0:
            return LanguageDetectionResult(language="unknown", confidence=0.0, is_supported=False)

        best_lang, best_matches, best_ratio = scored[0]
        second_ratio = scored[1][2] if len(scored) > 1 else 0.0

        margin = (best_ratio - second_ratio) / best_ratio
        coverage = min(1.0, best_ratio / FULL_COVERAGE_RATIO)
        confidence = max(0.0, min(1.0, margin * coverage))

        if best_matches < MIN_SIGNAL_MATCHES:
            confidence = min(confidence, LOW_CONFIDENCE_CAP)

        return LanguageDetectionResult(
            language=best_lang,
            confidence=confidence,
            is_supported=self.is_supported(best_lang),
        )


_default_detector = LanguageDetector()


def detect_language(text: str | None) -> LanguageDetectionResult:
    """Detect language with the default allow-list."""
    return _default_detector.detect_language(text)
