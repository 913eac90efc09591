import uuid
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from pdfquiz.generation.exceptions import InvalidRequestError

MIN_QUESTION_COUNT = 1
MAX_QUESTION_COUNT = 50


class QuestionType(str, Enum):
    MULTIPLE_CHOICE = "multiple_choice"
    SHORT_ANSWER = "short_answer"
    TRUE_FALSE = "true_false"


class Difficulty(str, Enum):
    EASY = "easy"
    MEDIUM = "medium"
    HARD = "hard"


@dataclass(frozen=True)
class Question:
    """A single generated quiz question."""

    question_type: QuestionType
    question_text: str
    correct_answer: str
    difficulty: Difficulty
    order_index: int
    options: list[str] = field(default_factory=list)
    explanation: str = ""
    id: str = field(default_factory=lambda: str(uuid.uuid4()))

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "question_type": self.question_type.value,
            "question_text": self.question_text,
            "correct_answer": self.correct_answer,
            "options": list(self.options),
            "difficulty": self.difficulty.value,
            "order_index": self.order_index,
            "explanation": self.explanation,
        }


@dataclass(frozen=True)
class QuestionOptions:
    """What the caller asks for when generating questions."""

    question_count: int = 10
    difficulty: Difficulty = Difficulty.MEDIUM
    question_types: tuple[QuestionType, ...] = (
        QuestionType.MULTIPLE_CHOICE,
        QuestionType.SHORT_ANSWER,
    )
    subject: str = "General"
    title: str = "Generated Questions"

    def validate(self) -> None:
        """Raises InvalidRequestError when the options cannot be served."""
        if not MIN_QUESTION_COUNT <= self.question_count <= MAX_QUESTION_COUNT:
            raise InvalidRequestError(
                f"Question count must be between {MIN_QUESTION_COUNT} "
                f"and {MAX_QUESTION_COUNT}",
                question_count=self.question_count,
            )
        if not self.question_types:
            raise InvalidRequestError("At least one question type must be selected")
