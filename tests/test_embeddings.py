"""Tests for embedding service."""

from unittest.mock import AsyncMock, MagicMock

import httpx
import pytest
from pydantic import SecretStr
from pydantic import ValidationError as PydanticValidationError

from context_match.config import OpenAISettings
from context_match.embeddings.models import EmbeddingResult
from context_match.embeddings.service import OpenAIEmbeddingService
from context_match.exceptions import EmbeddingError, ErrorCode


def make_settings(**overrides: object) -> OpenAISettings:
    values: dict[str, object] = {
        "api_key": SecretStr("sk-test"),
        "base_url": "http://test/v1",
        "embedding_model": "text-embedding-3-small",
        "embedding_dimensions": 3,
    }
    values.update(overrides)
    return OpenAISettings(**values)  # type: ignore[arg-type]


def mock_response(body: object) -> MagicMock:
    response = MagicMock()
    response.json.return_value = body
    response.raise_for_status = MagicMock()
    return response


class TestEmbeddingResult:
    """Tests for EmbeddingResult model."""

    def test_valid_result(self) -> None:
        """Valid embedding result is created."""
        result = EmbeddingResult(
            embedding=[0.1, 0.2, 0.3],
            model="test-model",
            dimensions=3,
        )
        assert len(result.embedding) == 3
        assert result.dimensions == 3

    def test_dimensions_mismatch(self) -> None:
        """Vectors of another size are rejected."""
        with pytest.raises(PydanticValidationError, match="Expected 5 dimensions, got 3"):
            EmbeddingResult(
                embedding=[0.1, 0.2, 0.3],
                model="test-model",
                dimensions=5,
            )


class TestOpenAIEmbeddingService:
    """Tests for OpenAIEmbeddingService."""

    def test_model_and_dimensions_from_settings(self) -> None:
        """Service reports the configured model and size."""
        service = OpenAIEmbeddingService(settings=make_settings())
        assert service.model_name == "text-embedding-3-small"
        assert service.dimensions == 3

    async def test_embed(self) -> None:
        """Single text embedding works."""
        mock_client = AsyncMock(spec=httpx.AsyncClient)
        mock_client.post.return_value = mock_response(
            {"data": [{"embedding": [0.1, 0.2, 0.3]}]}
        )

        service = OpenAIEmbeddingService(settings=make_settings(), client=mock_client)
        result = await service.embed("test text")

        assert result.embedding == [0.1, 0.2, 0.3]
        assert result.model == "text-embedding-3-small"

    async def test_request_shape(self) -> None:
        """Request carries model, dimensions and bearer token."""
        mock_client = AsyncMock(spec=httpx.AsyncClient)
        mock_client.post.return_value = mock_response(
            {"data": [{"embedding": [0.1, 0.2, 0.3]}]}
        )

        service = OpenAIEmbeddingService(settings=make_settings(), client=mock_client)
        await service.embed("hello")

        call = mock_client.post.call_args
        assert call.args[0] == "http://test/v1/embeddings"
        assert call.kwargs["json"] == {
            "input": "hello",
            "model": "text-embedding-3-small",
            "dimensions": 3,
        }
        assert call.kwargs["headers"]["Authorization"] == "Bearer sk-test"

    async def test_dimension_mismatch(self) -> None:
        """A vector of the wrong size is rejected."""
        mock_client = AsyncMock(spec=httpx.AsyncClient)
        mock_client.post.return_value = mock_response({"data": [{"embedding": [0.1]}]})

        service = OpenAIEmbeddingService(settings=make_settings(), client=mock_client)

        with pytest.raises(EmbeddingError) as exc_info:
            await service.embed("test")

        assert exc_info.value.code == ErrorCode.EMBEDDING_DIMENSION_MISMATCH
        assert exc_info.value.details == {"expected": 3, "actual": 1}

    async def test_malformed_response(self) -> None:
        """A body without data raises EmbeddingError."""
        mock_client = AsyncMock(spec=httpx.AsyncClient)
        mock_client.post.return_value = mock_response({"error": "nope"})

        service = OpenAIEmbeddingService(settings=make_settings(), client=mock_client)

        with pytest.raises(EmbeddingError, match="Invalid response"):
            await service.embed("test")

    async def test_non_numeric_vector(self) -> None:
        """A vector that is not numbers is an invalid response."""
        mock_client = AsyncMock(spec=httpx.AsyncClient)
        mock_client.post.return_value = mock_response(
            {"data": [{"embedding": ["a", "b", "c"]}]}
        )

        service = OpenAIEmbeddingService(settings=make_settings(), client=mock_client)

        with pytest.raises(EmbeddingError) as exc_info:
            await service.embed("test")

        assert exc_info.value.code == ErrorCode.EMBEDDING_SERVICE_ERROR

    async def test_embed_http_error(self) -> None:
        """HTTP error raises EmbeddingError."""
        response = MagicMock()
        response.status_code = 429
        response.raise_for_status.side_effect = httpx.HTTPStatusError(
            "Too many requests",
            request=MagicMock(),
            response=response,
        )

        mock_client = AsyncMock(spec=httpx.AsyncClient)
        mock_client.post.return_value = response

        service = OpenAIEmbeddingService(settings=make_settings(), client=mock_client)

        with pytest.raises(EmbeddingError) as exc_info:
            await service.embed("test")

        assert exc_info.value.details == {"status_code": 429}

    async def test_embed_connection_error(self) -> None:
        """Connection error raises EmbeddingError."""
        mock_client = AsyncMock(spec=httpx.AsyncClient)
        mock_client.post.side_effect = httpx.RequestError("Connection failed")

        service = OpenAIEmbeddingService(settings=make_settings(), client=mock_client)

        with pytest.raises(EmbeddingError, match="Failed to connect"):
            await service.embed("test")

    async def test_close(self) -> None:
        """Service closes owned client."""
        mock_client = AsyncMock(spec=httpx.AsyncClient)
        service = OpenAIEmbeddingService(settings=make_settings(), client=mock_client)
        service._owns_client = True

        await service.close()
        mock_client.aclose.assert_called_once()

    async def test_close_keeps_injected_client(self) -> None:
        """Injected clients are left open."""
        mock_client = AsyncMock(spec=httpx.AsyncClient)
        service = OpenAIEmbeddingService(settings=make_settings(), client=mock_client)

        await service.close()
        mock_client.aclose.assert_not_called()
