from typing import ClassVar

from pdfquiz.config.settings import Settings
from pdfquiz.generation.base import BaseQuestionGenerator
from pdfquiz.generation.extractive_generator import ExtractiveQuestionGenerator
from pdfquiz.generation.generator import QuestionGenerator
from pdfquiz.generation.openai_client_adapter import OpenAIClientAdapter


class QuestionGeneratorFactory:
    """Creates the configured question generator."""

    OPENAI_COMPATIBLE_BASE_URLS: ClassVar[dict[str, str]] = {
        "openrouter": "https://openrouter.ai/api/v1",
        "groq": "https://api.groq.com/openai/v1",
        "together": "https://api.together.xyz/v1",
        "deepseek": "https://api.deepseek.com/v1",
        "ollama": "http://localhost:11434/v1",
    }

    @classmethod
    def create(cls, settings: Settings) -> BaseQuestionGenerator:
        """Create a configured question generator from application settings."""
        provider = settings.generation_provider.lower()
        if provider == "extractive":
            return ExtractiveQuestionGenerator()
        client = OpenAIClientAdapter(
            api_key=settings.generation_api_key,
            timeout_seconds=settings.generation_timeout_seconds,
            base_url=cls._resolve_base_url(provider, settings),
        )
        return QuestionGenerator(
            client=client,
            model=settings.generation_model_name,
            temperature=settings.generation_temperature,
            max_tokens=settings.generation_max_tokens,
        )

    @classmethod
    def supported_providers(cls) -> list[str]:
        return ["extractive", "openai", "openai_compatible", *sorted(cls.OPENAI_COMPATIBLE_BASE_URLS)]

    @classmethod
    def _resolve_base_url(cls, provider: str, settings: Settings) -> str | None:
        configured = (settings.generation_base_url or "").strip()
        if provider == "openai":
            return configured or None
        if provider == "openai_compatible":
            if not configured:
                raise ValueError(
                    "generation_base_url is required for "
                    "generation_provider=openai_compatible"
                )
            return configured
        default_base_url = cls.OPENAI_COMPATIBLE_BASE_URLS.get(provider)
        if default_base_url is not None:
            return configured or default_base_url
        raise ValueError(
            f"Unknown generation provider '{provider}'. "
            f"Choose from: {cls.supported_providers()}"
        )
