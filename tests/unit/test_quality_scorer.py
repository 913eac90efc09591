import pytest

from pdfquiz.quality.scorer import QualityScorer, count_syllables

READABLE_SENTENCE = "The cat sat on the mat."


class TestCountSyllables:
    @pytest.mark.parametrize(
        ("word", "expected"),
        [("cat", 1), ("table", 1), ("the", 1), ("reading", 2), ("beautiful", 3), ("rhythm", 1), ("", 1)],
    )
    def test_counts(self, word: str, expected: int) -> None:
        assert count_syllables(word) == expected


class TestQualityScorer:
    def test_simple_sentences_score_maximum(self) -> None:
        text = " ".join([READABLE_SENTENCE] * 5000)
        metrics = QualityScorer().score(text)
        assert metrics.word_count == 30_000
        assert metrics.sentence_count == 5000
        assert metrics.average_words_per_sentence == 6
        assert metrics.readability_score == 100.0

    def test_empty_text_scores_zero(self) -> None:
        metrics = QualityScorer().score("")
        assert metrics.word_count == 0
        assert metrics.readability_score == 0.0

    def test_text_without_sentences_scores_zero(self) -> None:
        assert QualityScorer().score("...").readability_score == 0.0

    def test_score_is_clamped_at_zero(self) -> None:
        word = "internationalization"
        text = " ".join([word] * 60) + "."
        assert QualityScorer().score(text).readability_score == 0.0

    def test_text_density_per_page(self) -> None:
        metrics = QualityScorer().score("abcd efgh.", page_count=2)
        assert metrics.text_density == 5.0

    def test_text_density_guards_zero_pages(self) -> None:
        assert QualityScorer().score("abc.", page_count=0).text_density == 4.0

    def test_passes_has_images_through(self) -> None:
        assert QualityScorer().score("Hi.", has_images=True).has_images is True

    def test_is_acceptable_uses_threshold(self) -> None:
        scorer = QualityScorer(threshold=30.0)
        assert scorer.is_acceptable(30.0) is True
        assert scorer.is_acceptable(29.9) is False
        assert scorer.threshold == 30.0

    def test_to_dict(self) -> None:
        data = QualityScorer().score(READABLE_SENTENCE).to_dict()
        assert data["word_count"] == 6
        assert data["sentence_count"] == 1
