"""Validates parsed model output and builds Question objects."""

from typing import Any

from pdfquiz.generation.exceptions import GenerationValidationError
from pdfquiz.generation.models import (
    MAX_QUESTION_COUNT,
    Difficulty,
    Question,
    QuestionOptions,
    QuestionType,
)

_MIN_CHOICES = 2
_VALID_TYPES = frozenset(item.value for item in QuestionType)
_VALID_DIFFICULTIES = frozenset(item.value for item in Difficulty)


def validate_and_build(data: Any, options: QuestionOptions) -> list[Question]:
    """Validate a parsed JSON array and build at most options.question_count questions.

    Missing question_type and difficulty fall back to short_answer and the
    requested difficulty.

    Raises:
        GenerationValidationError: on any validation failure.
    """
    if not isinstance(data, list):
        raise GenerationValidationError("Response is not an array")
    if not data:
        raise GenerationValidationError("Response contains no questions")
    if len(data) > MAX_QUESTION_COUNT:
        raise GenerationValidationError(
            f"Too many questions: {len(data)} (max {MAX_QUESTION_COUNT})"
        )
    items = data[: options.question_count]
    return [_build_question(item, index, options) for index, item in enumerate(items)]


def _build_question(raw: Any, index: int, options: QuestionOptions) -> Question:
    if not isinstance(raw, dict):
        raise GenerationValidationError(f"Question at index {index} must be an object")

    question_type = raw.get("question_type") or QuestionType.SHORT_ANSWER.value
    if question_type not in _VALID_TYPES:
        raise GenerationValidationError(
            f"Question at index {index}: 'question_type' must be one of "
            f"{sorted(_VALID_TYPES)}, got {question_type!r}"
        )
    text = _require_string(raw, "question_text", index)
    answer = _require_string(raw, "correct_answer", index)

    difficulty = raw.get("difficulty") or options.difficulty.value
    if difficulty not in _VALID_DIFFICULTIES:
        raise GenerationValidationError(
            f"Question at index {index}: 'difficulty' must be one of "
            f"{sorted(_VALID_DIFFICULTIES)}, got {difficulty!r}"
        )

    choices = _build_options(raw.get("options"), index)
    if question_type == QuestionType.MULTIPLE_CHOICE.value and len(choices) < _MIN_CHOICES:
        raise GenerationValidationError(
            f"Question at index {index}: multiple_choice needs at least "
            f"{_MIN_CHOICES} options"
        )

    explanation = raw.get("explanation") or ""
    if not isinstance(explanation, str):
        raise GenerationValidationError(
            f"Question at index {index}: 'explanation' must be a string"
        )

    return Question(
        question_type=QuestionType(question_type),
        question_text=text,
        correct_answer=answer,
        difficulty=Difficulty(difficulty),
        order_index=index + 1,
        options=choices,
        explanation=explanation,
    )


def _require_string(raw: dict[str, Any], field: str, index: int) -> str:
    value = raw.get(field)
    if not isinstance(value, str) or not value.strip():
        raise GenerationValidationError(
            f"Question at index {index}: '{field}' must be a non-empty string"
        )
    return value.strip()


def _build_options(raw: Any, index: int) -> list[str]:
    if raw is None:
        return []
    if not isinstance(raw, list) or not all(isinstance(item, str) for item in raw):
        raise GenerationValidationError(
            f"Question at index {index}: 'options' must be a list of strings"
        )
    return list(raw)
