import pytest

from pdfquiz.generation.exceptions import GenerationError
from pdfquiz.generation.extractive_generator import (
    ExtractiveQuestionGenerator,
    extract_key_sentences,
    key_terms,
)
from pdfquiz.generation.models import Difficulty, QuestionOptions, QuestionType

TEXT = (
    "Photosynthesis converts sunlight into chemical energy. "
    "Short one. "
    "Chlorophyll absorbs light mostly in the blue and red wavelengths. "
    "Plants release oxygen as a byproduct of this process."
)


class TestExtractKeySentences:
    def test_skips_short_sentences(self) -> None:
        sentences = extract_key_sentences(TEXT, 10)
        assert sentences == [
            "Photosynthesis converts sunlight into chemical energy",
            "Chlorophyll absorbs light mostly in the blue and red wavelengths",
            "Plants release oxygen as a byproduct of this process",
        ]

    def test_skips_very_long_sentences(self) -> None:
        assert extract_key_sentences("word " * 60 + ".", 10) == []

    def test_respects_limit(self) -> None:
        assert len(extract_key_sentences(TEXT, 2)) == 2


class TestKeyTerms:
    def test_first_three_long_words(self) -> None:
        sentence = "Chlorophyll absorbs light mostly in the blue and red wavelengths"
        assert key_terms(sentence) == ["Chlorophyll", "absorbs", "light"]

    def test_no_long_words(self) -> None:
        assert key_terms("a cat on a mat") == []


class TestExtractiveQuestionGenerator:
    def test_cycles_through_question_types(self) -> None:
        options = QuestionOptions(
            question_count=3,
            question_types=(
                QuestionType.MULTIPLE_CHOICE,
                QuestionType.SHORT_ANSWER,
                QuestionType.TRUE_FALSE,
            ),
        )
        questions = ExtractiveQuestionGenerator().generate(TEXT, options)
        assert [q.question_type for q in questions] == [
            QuestionType.MULTIPLE_CHOICE,
            QuestionType.SHORT_ANSWER,
            QuestionType.TRUE_FALSE,
        ]
        assert [q.order_index for q in questions] == [1, 2, 3]

    def test_multiple_choice_has_four_options(self) -> None:
        options = QuestionOptions(
            question_count=1, question_types=(QuestionType.MULTIPLE_CHOICE,)
        )
        question = ExtractiveQuestionGenerator().generate(TEXT, options)[0]
        assert question.options == [
            "Photosynthesis",
            "converts",
            "sunlight",
            "Cannot be determined",
        ]
        assert question.correct_answer == "Photosynthesis"
        assert question.question_text.startswith(
            'What is the main idea of "Photosynthesis converts'
        )

    def test_true_false_question(self) -> None:
        options = QuestionOptions(
            question_count=1,
            difficulty=Difficulty.EASY,
            question_types=(QuestionType.TRUE_FALSE,),
        )
        question = ExtractiveQuestionGenerator().generate(TEXT, options)[0]
        assert question.options == ["True", "False"]
        assert question.correct_answer == "True"
        assert question.difficulty is Difficulty.EASY

    def test_short_answer_has_no_options(self) -> None:
        options = QuestionOptions(question_count=1, question_types=(QuestionType.SHORT_ANSWER,))
        question = ExtractiveQuestionGenerator().generate(TEXT, options)[0]
        assert question.options == []
        assert "key concept" in question.explanation

    def test_returns_at_most_available_sentences(self) -> None:
        questions = ExtractiveQuestionGenerator().generate(TEXT, QuestionOptions(question_count=10))
        assert len(questions) == 3

    def test_no_suitable_sentences_raises(self) -> None:
        with pytest.raises(GenerationError, match="no sentences"):
            ExtractiveQuestionGenerator().generate("Too short.", QuestionOptions())
