from abc import ABC, abstractmethod

from pdfquiz.generation.models import Question, QuestionOptions


class BaseQuestionGenerator(ABC):
    """Contract for all question generation adapters."""

    @abstractmethod
    def generate(self, text: str, options: QuestionOptions) -> list[Question]:
        """Turn cleaned document text into quiz questions.

        Args:
            text: Cleaned text of a completed document.
            options: Requested count, difficulty and question types.

        Returns:
            At most options.question_count questions, ordered from 1.

        Raises:
            GenerationError: a subclass whose kind says whether retrying can help.
        """
