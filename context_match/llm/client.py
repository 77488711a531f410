"""Chat completion client interface and implementations."""

import time
from abc import ABC, abstractmethod
from typing import Any

import httpx

from context_match.config import OpenAISettings, get_settings
from context_match.exceptions import ErrorCode, LLMError
from context_match.logging_config import get_logger
from context_match.observability.metrics import track_llm_request

logger = get_logger(__name__)

CHAT_COMPLETION_FAILED = "Failed to generate chat completion"


class ChatClient(ABC):
    """Abstract base class for chat completion clients."""

    @abstractmethod
    async def create_completion(
        self,
        messages: list[dict[str, Any]],
        model: str | None = None,
        max_tokens: int | None = None,
    ) -> dict[str, Any]:
        """Create a chat completion.

        Args:
            messages: Conversation messages, forwarded as given.
            model: Model override.
            max_tokens: Maximum tokens override.

        Returns:
            The provider's completion object, unmodified.

        Raises:
            LLMError: If the provider call fails.
        """
        ...

    @property
    @abstractmethod
    def model_name(self) -> str:
        """Get the default model name."""
        ...


class OpenAIChatClient(ChatClient):
    """Chat client for OpenAI-compatible ``/chat/completions`` APIs.

    Works with:
    - OpenAI API
    - vLLM
    - Ollama (localhost:11434/v1)
    """

    def __init__(
        self,
        settings: OpenAISettings | None = None,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        """Initialize the chat client.

        Args:
            settings: Provider configuration.
            client: HTTP client (for testing).
        """
        self._settings = settings or get_settings().openai
        self._client = client
        self._owns_client = client is None

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create HTTP client."""
        if self._client is None:
            self._client = httpx.AsyncClient(
                timeout=self._settings.timeout,
            )
        return self._client

    async def close(self) -> None:
        """Close the HTTP client."""
        if self._owns_client and self._client is not None:
            await self._client.aclose()
            self._client = None

    @property
    def model_name(self) -> str:
        """Get the default model name."""
        return self._settings.chat_model

    async def create_completion(
        self,
        messages: list[dict[str, Any]],
        model: str | None = None,
        max_tokens: int | None = None,
    ) -> dict[str, Any]:
        """Relay messages to the chat completions API."""
        client = await self._get_client()
        url = f"{self._settings.base_url}/chat/completions"
        model = model or self.model_name

        payload = {
            "model": model,
            "messages": messages,
            "max_tokens": max_tokens or self._settings.max_tokens,
        }
        headers = {
            "Authorization": f"Bearer {self._settings.api_key.get_secret_value()}",
        }

        start = time.perf_counter()
        try:
            response = await client.post(url, json=payload, headers=headers)
            response.raise_for_status()
            completion = response.json()

        except httpx.TimeoutException as e:
            track_llm_request(model, time.perf_counter() - start, success=False)
            logger.error(f"Chat completion timed out: {e}")
            raise LLMError(
                CHAT_COMPLETION_FAILED,
                code=ErrorCode.LLM_TIMEOUT,
                details=f"Request timed out after {self._settings.timeout}s",
            ) from e

        except httpx.HTTPStatusError as e:
            track_llm_request(model, time.perf_counter() - start, success=False)
            status = e.response.status_code
            logger.error(f"Chat completion failed: {status}")

            if status == 429:
                raise LLMError(
                    CHAT_COMPLETION_FAILED,
                    code=ErrorCode.LLM_RATE_LIMIT,
                    details="Rate limit exceeded",
                ) from e

            raise LLMError(
                CHAT_COMPLETION_FAILED,
                code=ErrorCode.LLM_SERVICE_ERROR,
                details=f"Provider returned {status}",
            ) from e

        except httpx.RequestError as e:
            track_llm_request(model, time.perf_counter() - start, success=False)
            logger.error(f"Chat completion connection error: {e}")
            raise LLMError(
                CHAT_COMPLETION_FAILED,
                code=ErrorCode.LLM_SERVICE_ERROR,
                details=f"Failed to connect to provider: {e}",
            ) from e

        except ValueError as e:
            track_llm_request(model, time.perf_counter() - start, success=False)
            raise LLMError(
                CHAT_COMPLETION_FAILED,
                code=ErrorCode.LLM_SERVICE_ERROR,
                details=f"Invalid response from provider: {e}",
            ) from e

        usage = completion.get("usage") or {}
        track_llm_request(
            model,
            time.perf_counter() - start,
            prompt_tokens=usage.get("prompt_tokens", 0),
            completion_tokens=usage.get("completion_tokens", 0),
        )
        return completion
