from unittest.mock import MagicMock, patch

import httpx
import openai
import pytest

from pdfquiz.generation.exceptions import (
    ContextLengthExceededError,
    GenerationError,
    GenerationNetworkError,
    GenerationTimeoutError,
    InvalidCredentialsError,
    QuotaExceededError,
    RateLimitedError,
    ServiceBusyError,
)
from pdfquiz.generation.openai_client_adapter import OpenAIClientAdapter

_REQUEST = httpx.Request("POST", "https://api.openai.com/v1/chat/completions")


def _make_mock_response(content: str | None) -> MagicMock:
    choice = MagicMock()
    choice.message.content = content
    response = MagicMock()
    response.choices = [choice]
    return response


def _make_status_error(
    error_cls: type[openai.APIStatusError],
    status_code: int,
    code: str | None = None,
    headers: dict[str, str] | None = None,
) -> openai.APIStatusError:
    response = httpx.Response(status_code, headers=headers or {}, request=_REQUEST)
    body = {"code": code, "message": "error"} if code else None
    return error_cls("error", response=response, body=body)


def _call_with(side_effect: object = None, return_value: object = None) -> str:
    mock_client = MagicMock()
    mock_client.chat.completions.create.side_effect = side_effect
    mock_client.chat.completions.create.return_value = return_value
    with patch(
        "pdfquiz.generation.openai_client_adapter.openai.OpenAI",
        return_value=mock_client,
    ):
        adapter = OpenAIClientAdapter(api_key="k", timeout_seconds=30, base_url=None)
        return adapter.create_chat_completion(
            model="gpt-test",
            temperature=0.7,
            max_tokens=2000,
            system_prompt="system",
            user_prompt="user",
        )


class TestOpenAIClientAdapter:
    def test_returns_content(self) -> None:
        assert _call_with(return_value=_make_mock_response("[]")) == "[]"

    def test_sends_system_and_user_messages(self) -> None:
        mock_client = MagicMock()
        mock_client.chat.completions.create.return_value = _make_mock_response("[]")
        with patch(
            "pdfquiz.generation.openai_client_adapter.openai.OpenAI",
            return_value=mock_client,
        ) as openai_cls:
            adapter = OpenAIClientAdapter(
                api_key="k", timeout_seconds=30, base_url="http://localhost:11434/v1"
            )
            adapter.create_chat_completion(
                model="m",
                temperature=0.5,
                max_tokens=100,
                system_prompt="system",
                user_prompt="user",
            )
        openai_cls.assert_called_once_with(
            api_key="k", timeout=30, base_url="http://localhost:11434/v1", max_retries=0
        )
        kwargs = mock_client.chat.completions.create.call_args.kwargs
        assert kwargs["messages"] == [
            {"role": "system", "content": "system"},
            {"role": "user", "content": "user"},
        ]
        assert kwargs["max_tokens"] == 100

    def test_raises_error_for_empty_content(self) -> None:
        with pytest.raises(GenerationError, match="No response generated"):
            _call_with(return_value=_make_mock_response(None))

    def test_raises_error_for_no_choices(self) -> None:
        response = MagicMock()
        response.choices = []
        with pytest.raises(GenerationError, match="no choices"):
            _call_with(return_value=response)

    def test_connection_failure(self) -> None:
        with pytest.raises(GenerationNetworkError, match="Network error"):
            _call_with(side_effect=openai.APIConnectionError(request=_REQUEST))

    def test_sdk_timeout(self) -> None:
        with pytest.raises(GenerationTimeoutError):
            _call_with(side_effect=openai.APITimeoutError(request=_REQUEST))

    def test_httpx_timeout(self) -> None:
        with pytest.raises(GenerationTimeoutError, match="timed out"):
            _call_with(side_effect=httpx.TimeoutException("timeout"))

    def test_httpx_transport_error(self) -> None:
        with pytest.raises(GenerationNetworkError, match="network error"):
            _call_with(side_effect=httpx.ConnectError("refused"))

    def test_rate_limit_with_retry_after(self) -> None:
        error = _make_status_error(
            openai.RateLimitError, 429, headers={"retry-after": "20"}
        )
        with pytest.raises(RateLimitedError, match="wait 20 seconds") as exc_info:
            _call_with(side_effect=error)
        assert exc_info.value.details["retry_after"] == "20"

    def test_rate_limit_without_retry_after(self) -> None:
        with pytest.raises(RateLimitedError, match="wait a moment"):
            _call_with(side_effect=_make_status_error(openai.RateLimitError, 429))

    def test_insufficient_quota(self) -> None:
        error = _make_status_error(openai.RateLimitError, 429, code="insufficient_quota")
        with pytest.raises(QuotaExceededError, match="quota exceeded"):
            _call_with(side_effect=error)

    def test_authentication_error(self) -> None:
        error = _make_status_error(openai.AuthenticationError, 401)
        with pytest.raises(InvalidCredentialsError, match="API key"):
            _call_with(side_effect=error)

    def test_context_length_exceeded(self) -> None:
        error = _make_status_error(
            openai.BadRequestError, 400, code="context_length_exceeded"
        )
        with pytest.raises(ContextLengthExceededError, match="too long"):
            _call_with(side_effect=error)

    def test_model_not_found(self) -> None:
        error = _make_status_error(openai.NotFoundError, 404)
        with pytest.raises(GenerationError, match="Model 'gpt-test' is not available"):
            _call_with(side_effect=error)

    def test_internal_server_error(self) -> None:
        error = _make_status_error(openai.InternalServerError, 500)
        with pytest.raises(ServiceBusyError, match="temporarily unavailable"):
            _call_with(side_effect=error)

    def test_other_api_error_classified_by_message(self) -> None:
        error = openai.APIError(message="upstream overloaded", request=_REQUEST, body=None)
        with pytest.raises(ServiceBusyError, match="API error"):
            _call_with(side_effect=error)

    def test_unclassified_api_error(self) -> None:
        error = openai.APIError(message="strange failure", request=_REQUEST, body=None)
        with pytest.raises(GenerationError, match="API error") as exc_info:
            _call_with(side_effect=error)
        assert type(exc_info.value) is GenerationError
