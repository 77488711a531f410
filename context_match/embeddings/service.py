"""Embedding service interface and OpenAI implementation."""

import time
from abc import ABC, abstractmethod

import httpx
from pydantic import ValidationError as PydanticValidationError

from context_match.config import OpenAISettings, get_settings
from context_match.embeddings.models import EmbeddingResult
from context_match.exceptions import EmbeddingError, ErrorCode
from context_match.logging_config import get_logger
from context_match.observability.metrics import track_embedding_request

logger = get_logger(__name__)


class EmbeddingService(ABC):
    """Abstract base class for embedding services.

    Defines the interface for generating text embeddings.
    """

    @abstractmethod
    async def embed(self, text: str) -> EmbeddingResult:
        """Generate embedding for a single text.

        Args:
            text: Text to embed.

        Returns:
            EmbeddingResult with vector.

        Raises:
            EmbeddingError: If embedding fails.
        """
        ...

    @property
    @abstractmethod
    def model_name(self) -> str:
        """Get the model name used for embeddings."""
        ...

    @property
    @abstractmethod
    def dimensions(self) -> int:
        """Get the embedding dimensions."""
        ...


class OpenAIEmbeddingService(EmbeddingService):
    """Embedding service for the OpenAI ``/embeddings`` API.

    Requests a fixed output size through the ``dimensions`` parameter, so
    every vector matches the collection it is written to.
    """

    def __init__(
        self,
        settings: OpenAISettings | None = None,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        """Initialize the embedding service.

        Args:
            settings: Provider configuration. Loaded from the environment if not provided.
            client: HTTP client. Creates new one if not provided.
        """
        self._settings = settings or get_settings().openai
        self._client = client
        self._owns_client = client is None

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create HTTP client."""
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self._settings.timeout)
        return self._client

    async def close(self) -> None:
        """Close the HTTP client if we own it."""
        if self._owns_client and self._client is not None:
            await self._client.aclose()
            self._client = None

    @property
    def model_name(self) -> str:
        """Get the model name."""
        return self._settings.embedding_model

    @property
    def dimensions(self) -> int:
        """Get embedding dimensions."""
        return self._settings.embedding_dimensions

    async def embed(self, text: str) -> EmbeddingResult:
        """Generate embedding for a single text.

        Args:
            text: Text to embed.

        Returns:
            EmbeddingResult with vector.

        Raises:
            EmbeddingError: If the request fails or the vector has the wrong size.
        """
        client = await self._get_client()
        url = f"{self._settings.base_url}/embeddings"
        payload = {
            "input": text,
            "model": self.model_name,
            "dimensions": self.dimensions,
        }
        headers = {
            "Authorization": f"Bearer {self._settings.api_key.get_secret_value()}",
        }

        start = time.perf_counter()
        try:
            response = await client.post(url, json=payload, headers=headers)
            response.raise_for_status()
            result = self._parse_embedding(response)
        except EmbeddingError:
            track_embedding_request(self.model_name, time.perf_counter() - start, success=False)
            raise
        except httpx.HTTPStatusError as e:
            track_embedding_request(self.model_name, time.perf_counter() - start, success=False)
            logger.error(
                f"Embedding request failed: {e.response.status_code}",
                extra={"url": url, "status": e.response.status_code},
            )
            raise EmbeddingError(
                f"Embedding service returned {e.response.status_code}",
                code=ErrorCode.EMBEDDING_SERVICE_ERROR,
                details={"status_code": e.response.status_code},
            ) from e
        except httpx.RequestError as e:
            track_embedding_request(self.model_name, time.perf_counter() - start, success=False)
            logger.error(f"Embedding request error: {e}", extra={"url": url})
            raise EmbeddingError(
                f"Failed to connect to embedding service: {e}",
                code=ErrorCode.EMBEDDING_SERVICE_ERROR,
                details={"url": url},
            ) from e

        track_embedding_request(self.model_name, time.perf_counter() - start)
        return result

    def _parse_embedding(self, response: httpx.Response) -> EmbeddingResult:
        """Build the result from the first vector in a provider response.

        Raises:
            EmbeddingError: If the body is malformed or the size is unexpected.
        """
        try:
            embedding = response.json()["data"][0]["embedding"]
        except (KeyError, IndexError, TypeError, ValueError) as e:
            raise EmbeddingError(
                f"Invalid response from embedding service: {e}",
                code=ErrorCode.EMBEDDING_SERVICE_ERROR,
                details={"error": str(e)},
            ) from e

        try:
            return EmbeddingResult(
                embedding=embedding,
                model=self.model_name,
                dimensions=self.dimensions,
            )
        except PydanticValidationError as e:
            if isinstance(embedding, list) and len(embedding) != self.dimensions:
                raise EmbeddingError(
                    f"Expected {self.dimensions} dimensions, got {len(embedding)}",
                    code=ErrorCode.EMBEDDING_DIMENSION_MISMATCH,
                    details={"expected": self.dimensions, "actual": len(embedding)},
                ) from e
            raise EmbeddingError(
                f"Invalid response from embedding service: {e}",
                code=ErrorCode.EMBEDDING_SERVICE_ERROR,
                details={"error": str(e)},
            ) from e
