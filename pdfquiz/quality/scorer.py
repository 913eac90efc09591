"""Text quality scoring based on a Flesch reading-ease approximation."""

import re

from pdfquiz.quality.models import TextQualityMetrics

_SENTENCE_SPLIT = re.compile(r"[.!?]+")
_VOWELS = frozenset("aeiouyAEIOUY")


def count_syllables(word: str) -> int:
    """Approximate syllables as vowel groups, minus a trailing silent 'e'."""
    count = 0
    previous_was_vowel = False
    for char in word:
        is_vowel = char in _VOWELS
        if is_vowel and not previous_was_vowel:
            count += 1
        previous_was_vowel = is_vowel
    if word.endswith("e") and count > 1:
        count -= 1
    return max(1, count)


class QualityScorer:
    """Grades cleaned text on a 0-100 readability scale."""

    def __init__(self, threshold: float = 30.0) -> None:
        self._threshold = threshold

    @property
    def threshold(self) -> float:
        return self._threshold

    def score(
        self,
        text: str,
        page_count: int = 1,
        has_images: bool = False,
    ) -> TextQualityMetrics:
        words = text.split()
        sentences = self._sentences(text)
        return TextQualityMetrics(
            word_count=len(words),
            sentence_count=len(sentences),
            average_words_per_sentence=len(words) / max(len(sentences), 1),
            readability_score=self._readability(words, sentences),
            text_density=len(text) / max(page_count, 1),
            has_images=has_images,
        )

    def is_acceptable(self, readability_score: float) -> bool:
        """Return True when the score passes the question-generation gate."""
        return readability_score >= self._threshold

    @staticmethod
    def _sentences(text: str) -> list[str]:
        return [part for part in _SENTENCE_SPLIT.split(text) if part.strip()]

    @staticmethod
    def _readability(words: list[str], sentences: list[str]) -> float:
        if not words or not sentences:
            return 0.0
        syllables = sum(count_syllables(word) for word in words)
        avg_words_per_sentence = len(words) / len(sentences)
        avg_syllables_per_word = syllables / len(words)
        score = 206.835 - 1.015 * avg_words_per_sentence - 84.6 * avg_syllables_per_word
        return max(0.0, min(100.0, score))
