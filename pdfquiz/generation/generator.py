"""AI-powered quiz question generator."""

import json
import re
from pathlib import Path
from typing import Any

from pdfquiz.generation.base import BaseQuestionGenerator
from pdfquiz.generation.client_base import BaseGenerationClient
from pdfquiz.generation.exceptions import GenerationError
from pdfquiz.generation.models import Question, QuestionOptions
from pdfquiz.generation.prompt_loader import load_prompt_template, load_system_prompt
from pdfquiz.generation.validator import validate_and_build
from pdfquiz.logging.logger import Log

_JSON_ARRAY = re.compile(r"\[.*\]", re.DOTALL)


class QuestionGenerator(BaseQuestionGenerator):
    """Generates quiz questions from document text using an AI provider."""

    def __init__(
        self,
        *,
        client: BaseGenerationClient,
        model: str,
        temperature: float = 0.7,
        max_tokens: int = 2000,
        prompt_template_path: Path | None = None,
        system_prompt_path: Path | None = None,
    ) -> None:
        self._client = client
        self._model = model
        self._temperature = max(0.0, min(2.0, temperature))
        self._max_tokens = max_tokens
        self._prompt_template = load_prompt_template(prompt_template_path)
        self._system_prompt = load_system_prompt(system_prompt_path)

    def generate(self, text: str, options: QuestionOptions) -> list[Question]:
        options.validate()
        prompt = self._build_prompt(text, options)
        Log.debug(f"Question prompt:\n{prompt}")

        raw_response = self._client.create_chat_completion(
            model=self._model,
            temperature=self._temperature,
            max_tokens=self._max_tokens,
            system_prompt=self._system_prompt,
            user_prompt=prompt,
        )
        Log.debug(f"AI raw response:\n{raw_response}")

        questions = validate_and_build(self._parse_json(raw_response), options)
        Log.info(f"Question generation complete: {len(questions)} questions")
        return questions

    def _build_prompt(self, text: str, options: QuestionOptions) -> str:
        return self._prompt_template.format(
            question_count=options.question_count,
            subject=options.subject or "General",
            difficulty=options.difficulty.value,
            question_types=", ".join(item.value for item in options.question_types),
            text=text,
        )

    @staticmethod
    def _parse_json(raw: str) -> Any:
        cleaned = raw.strip()
        if cleaned.startswith("```"):
            lines = cleaned.splitlines()
            if lines and lines[0].startswith("```"):
                lines = lines[1:]
            if lines and lines[-1].strip() == "```":
                lines = lines[:-1]
            cleaned = "\n".join(lines)

        match = _JSON_ARRAY.search(cleaned)
        candidate = match.group(0) if match else cleaned
        try:
            return json.loads(candidate)
        except json.JSONDecodeError as exc:
            raise GenerationError(
                "Failed to parse questions from AI response. Please try again.",
                parse_error=str(exc),
            ) from exc
