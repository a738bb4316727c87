"""
Text statistics used by the analyzers.

All functions are pure and accept None or empty input, returning zeros.
"""

import re
import statistics
from dataclasses import dataclass

_WORD_CHAR = re.compile(r"\w")
_SENTENCE_SPLIT = re.compile(r"(?<=[.!?])\s+|[.!?]+$")
_PARAGRAPH_SPLIT = re.compile(r"\n\s*\n")
_MARKDOWN_HEADING = re.compile(r"^\s{0,3}#{1,6}\s+\S", re.MULTILINE)
_LIST_LINE = re.compile(r"^\s*(?:[-*•]|\d+[.)])\s+\S", re.MULTILINE)
_COMPLEX_PUNCTUATION = re.compile(r"[;:,]")
_VOWELS = "aeiouy"

COMMON_WORDS = frozenset([
    "the", "be", "to", "of", "and", "a", "in", "that", "have", "i",
    "it", "for", "not", "on", "with", "he", "as", "you", "do", "at",
])


@dataclass(frozen=True)
class TextMetrics:
    """Word, sentence and paragraph statistics for a text."""

    word_count: int = 0
    sentence_count: int = 0
    paragraph_count: int = 0
    average_sentence_length: float = 0.0
    sentence_length_variation: float = 0.0
    paragraph_word_counts: tuple[int, ...] = ()
    heading_count: int = 0
    list_line_count: int = 0


def words(text: str | None) -> list[str]:
    """Split text into whitespace tokens that contain a word character."""
    if not text:
        return []
    return [token for token in text.split() if _WORD_CHAR.search(token)]


def count_words(text: str | None) -> int:
    return len(words(text))


def split_sentences(text: str | None) -> list[str]:
    """Split text on terminal punctuation, dropping fragments without words."""
    if not text:
        return []
    parts = _SENTENCE_SPLIT.split(text.strip())
    return [part.strip() for part in parts if part and _WORD_CHAR.search(part)]


def split_paragraphs(text: str | None) -> list[str]:
    """Split text into blank-line separated blocks."""
    if not text:
        return []
    return [block.strip() for block in _PARAGRAPH_SPLIT.split(text) if block.strip()]


def count_syllables(word: str) -> int:
    """Estimate syllables by counting vowel groups, less a silent final e."""
    word = re.sub(r"[^a-z]", "", word.lower())
    if len(word) <= 3:
        return 1

    count = 0
    previous_was_vowel = False
    for char in word:
        is_vowel = char in _VOWELS
        if is_vowel and not previous_was_vowel:
            count += 1
        previous_was_vowel = is_vowel

    if word.endswith("e"):
        count -= 1
    return max(1, count)


def flesch_reading_ease(text: str | None) -> float:
    """
    Flesch reading ease score.

    Returns:
        Score clamped to [0, 100]; higher is easier. Empty text scores 0.
    """
    tokens = words(text)
    sentences = split_sentences(text)
    if not tokens or not sentences:
        return 0.0

    avg_sentence_length = len(tokens) / len(sentences)
    avg_syllables = sum(count_syllables(t) for t in tokens) / len(tokens)
    score = 206.835 - 1.015 * avg_sentence_length - 84.6 * avg_syllables
    return max(0.0, min(100.0, score))


def vocabulary_complexity(text: str | None) -> float:
    """Share of words longer than six letters that are not common words."""
    tokens = [re.sub(r"[^\w]", "", t).lower() for t in words(text)]
    tokens = [t for t in tokens if t]
    if not tokens:
        return 0.0
    complex_words = [t for t in tokens if len(t) > 6 and t not in COMMON_WORDS]
    return len(complex_words) / len(tokens)


def sentence_complexity(text: str | None) -> float:
    """Share of sentences over 20 words or with clause punctuation."""
    sentences = split_sentences(text)
    if not sentences:
        return 0.0
    complex_sentences = [
        s for s in sentences
        if len(s.split()) > 20 or _COMPLEX_PUNCTUATION.search(s)
    ]
    return len(complex_sentences) / len(sentences)


def compute_metrics(text: str | None) -> TextMetrics:
    """Compute all structural statistics for a text in one pass."""
    if not text or not text.strip():
        return TextMetrics()

    sentence_lengths = [count_words(s) for s in split_sentences(text)]
    sentence_lengths = [n for n in sentence_lengths if n > 0]
    paragraphs = split_paragraphs(text)
    word_count = count_words(text)

    if sentence_lengths:
        average = sum(sentence_lengths) / len(sentence_lengths)
    else:
        average = float(word_count)

    variation = 0.0
    if len(sentence_lengths) > 1 and average > 0:
        variation = statistics.pstdev(sentence_lengths) / average

    return TextMetrics(
        word_count=word_count,
        sentence_count=len(sentence_lengths),
        paragraph_count=len(paragraphs),
        average_sentence_length=average,
        sentence_length_variation=variation,
        paragraph_word_counts=tuple(count_words(p) for p in paragraphs),
        heading_count=len(_MARKDOWN_HEADING.findall(text)),
        list_line_count=len(_LIST_LINE.findall(text)),
    )
