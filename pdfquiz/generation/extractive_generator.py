"""Offline question generator.

Builds simple questions from sentences of the document itself. No network calls;
useful for local development, tests, and as the provider when no AI account is
available.
"""

import re

from pdfquiz.generation.base import BaseQuestionGenerator
from pdfquiz.generation.exceptions import GenerationError
from pdfquiz.generation.models import Question, QuestionOptions, QuestionType
from pdfquiz.logging.logger import Log

_SENTENCE_SPLIT = re.compile(r"[.!?]+")
_MIN_SENTENCE_LENGTH = 20
_MAX_SENTENCE_LENGTH = 200
_EXCERPT_LENGTH = 100
_MIN_KEY_TERM_LENGTH = 5
_KEY_TERMS = 3
_CHOICES = 4
_FILLER_CHOICES = ("All of the above", "None of the above", "Cannot be determined")
_TEMPLATES = (
    "What is the main idea of this statement?",
    "What does this text describe?",
    "Explain this concept.",
    "Explain what this means.",
)


def extract_key_sentences(text: str, limit: int) -> list[str]:
    """Return up to limit sentences of a length worth asking about."""
    sentences = (part.strip() for part in _SENTENCE_SPLIT.split(text))
    selected = [
        sentence
        for sentence in sentences
        if _MIN_SENTENCE_LENGTH < len(sentence) < _MAX_SENTENCE_LENGTH
    ]
    return selected[:limit]


def key_terms(sentence: str) -> list[str]:
    words = [word for word in sentence.split(" ") if len(word) >= _MIN_KEY_TERM_LENGTH]
    return words[:_KEY_TERMS]


class ExtractiveQuestionGenerator(BaseQuestionGenerator):
    """Generates template questions from the document's own sentences."""

    def generate(self, text: str, options: QuestionOptions) -> list[Question]:
        options.validate()
        sentences = extract_key_sentences(text, options.question_count * 2)
        if not sentences:
            raise GenerationError("Document has no sentences suitable for questions")

        questions = [
            self._build_question(sentence, index, options)
            for index, sentence in enumerate(sentences[: options.question_count])
        ]
        Log.info(f"Extractive generation complete: {len(questions)} questions")
        return questions

    @staticmethod
    def _build_question(sentence: str, index: int, options: QuestionOptions) -> Question:
        question_type = options.question_types[index % len(options.question_types)]
        terms = key_terms(sentence)
        excerpt = f'"{sentence[:_EXCERPT_LENGTH]}..."'
        explanation = (
            f"This question tests understanding of the key concept: {', '.join(terms)}"
        )

        if question_type is QuestionType.TRUE_FALSE:
            return Question(
                question_type=question_type,
                question_text=f"True or false: {sentence}.",
                correct_answer="True",
                difficulty=options.difficulty,
                order_index=index + 1,
                options=["True", "False"],
                explanation="The statement is taken directly from the document.",
            )

        template = _TEMPLATES[index % len(_TEMPLATES)]
        question_text = template.replace("this", excerpt, 1)
        answer = terms[0] if terms else "The main concept"
        if question_type is QuestionType.SHORT_ANSWER:
            return Question(
                question_type=question_type,
                question_text=question_text,
                correct_answer=answer,
                difficulty=options.difficulty,
                order_index=index + 1,
                explanation=explanation,
            )

        choices = terms[:] if terms else ["Option A"]
        while len(choices) < _CHOICES:
            choices.append(_FILLER_CHOICES[len(choices) - 1])
        return Question(
            question_type=question_type,
            question_text=question_text,
            correct_answer=answer,
            difficulty=options.difficulty,
            order_index=index + 1,
            options=choices[:_CHOICES],
            explanation=explanation,
        )
