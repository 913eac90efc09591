import httpx
import openai

from pdfquiz.generation.client_base import BaseGenerationClient
from pdfquiz.generation.exceptions import (
    ERRORS_BY_KIND,
    ContextLengthExceededError,
    GenerationError,
    GenerationNetworkError,
    GenerationTimeoutError,
    InvalidCredentialsError,
    QuotaExceededError,
    RateLimitedError,
    ServiceBusyError,
)
from pdfquiz.processor.errors import classify_message

_QUOTA_CODES = frozenset({"insufficient_quota", "billing_hard_limit_reached"})


def _retry_after(exc: openai.APIStatusError) -> str | None:
    return exc.response.headers.get("retry-after")


class OpenAIClientAdapter(BaseGenerationClient):
    """Question generation client built on the OpenAI-compatible chat API."""

    def __init__(
        self,
        *,
        api_key: str,
        timeout_seconds: int,
        base_url: str | None = None,
    ) -> None:
        self._client = openai.OpenAI(
            api_key=api_key,
            timeout=timeout_seconds,
            base_url=base_url,
            max_retries=0,
        )

    def create_chat_completion(
        self,
        *,
        model: str,
        temperature: float,
        max_tokens: int,
        system_prompt: str,
        user_prompt: str,
    ) -> str:
        try:
            response = self._client.chat.completions.create(
                model=model,
                temperature=temperature,
                max_tokens=max_tokens,
                messages=[
                    {"role": "system", "content": system_prompt},
                    {"role": "user", "content": user_prompt},
                ],
            )
        except openai.APIError as exc:
            raise self._map_api_error(exc, model) from exc
        except httpx.TimeoutException as exc:
            raise GenerationTimeoutError(f"AI provider timed out: {exc}") from exc
        except httpx.TransportError as exc:
            raise GenerationNetworkError(f"AI provider network error: {exc}") from exc

        if not response.choices:
            raise GenerationError("AI returned no choices")
        content = response.choices[0].message.content
        if content is None:
            raise GenerationError("No response generated from AI provider")
        return content

    @staticmethod
    def _map_api_error(exc: openai.APIError, model: str) -> GenerationError:
        """Translate an SDK error into the generation error taxonomy."""
        code = exc.code or ""
        if isinstance(exc, openai.APITimeoutError):
            return GenerationTimeoutError(
                "AI processing is taking longer than expected. Please try again."
            )
        if isinstance(exc, openai.APIConnectionError):
            return GenerationNetworkError(
                "Network error. Please check your connection and try again."
            )
        if isinstance(exc, openai.RateLimitError):
            if code in _QUOTA_CODES:
                return QuotaExceededError(
                    "AI service quota exceeded. Please check your account billing "
                    "and try again later.",
                    code=code,
                )
            retry_after = _retry_after(exc)
            if retry_after:
                return RateLimitedError(
                    f"AI service is busy. Please wait {retry_after} seconds and try again.",
                    retry_after=retry_after,
                )
            return RateLimitedError("AI service is busy. Please wait a moment and try again.")
        if isinstance(exc, (openai.AuthenticationError, openai.PermissionDeniedError)):
            return InvalidCredentialsError(
                "AI service configuration error. Please check the API key configuration.",
                status_code=exc.status_code,
            )
        if isinstance(exc, openai.BadRequestError) and code == "context_length_exceeded":
            return ContextLengthExceededError(
                "Text content is too long. Please use a shorter document."
            )
        if isinstance(exc, openai.NotFoundError):
            return GenerationError(
                f"Model '{model}' is not available. Please check your account access "
                "or try a different model.",
                status_code=exc.status_code,
            )
        if isinstance(exc, openai.InternalServerError):
            return ServiceBusyError(
                "AI service temporarily unavailable. Please try again later.",
                status_code=exc.status_code,
            )
        error_cls = ERRORS_BY_KIND.get(classify_message(str(exc)), GenerationError)
        return error_cls(f"AI provider API error: {exc}")
