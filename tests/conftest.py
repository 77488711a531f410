"""Pytest configuration and shared fixtures."""

import math
import os
import zlib
from collections.abc import AsyncGenerator
from unittest.mock import AsyncMock

# Credentials must exist before the app module is imported.
os.environ.setdefault("OPENAI_API_KEY", "test-openai-key")
os.environ.setdefault("QDRANT_API_KEY", "test-qdrant-key")

import pytest  # noqa: E402
from fastapi import FastAPI  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402

from context_match.api.app import app, create_app  # noqa: E402
from context_match.embeddings.models import EmbeddingResult  # noqa: E402
from context_match.embeddings.service import EmbeddingService  # noqa: E402
from context_match.exceptions import (  # noqa: E402
    EmbeddingError,
    ErrorCode,
    VectorStoreError,
)
from context_match.llm.client import ChatClient  # noqa: E402
from context_match.vectorstore.models import SearchResult, VectorRecord  # noqa: E402
from context_match.vectorstore.service import VectorStore  # noqa: E402

DIMENSIONS = 16


class WordHashEmbeddingService(EmbeddingService):
    """Deterministic bag-of-words embeddings.

    Texts sharing words get similar vectors, identical texts get identical ones.
    Set ``fail`` to fail every call, or add texts to ``fail_texts``.
    """

    def __init__(self, dimensions: int = DIMENSIONS) -> None:
        self._dimensions = dimensions
        self.calls: list[str] = []
        self.fail = False
        self.fail_texts: set[str] = set()

    @property
    def model_name(self) -> str:
        return "word-hash"

    @property
    def dimensions(self) -> int:
        return self._dimensions

    async def embed(self, text: str) -> EmbeddingResult:
        self.calls.append(text)
        if self.fail or text in self.fail_texts:
            raise EmbeddingError("Embedding service returned 429")

        vector = [0.0] * self._dimensions
        for word in text.lower().split():
            vector[zlib.crc32(word.encode()) % self._dimensions] += 1.0
        return EmbeddingResult(
            embedding=vector,
            model=self.model_name,
            dimensions=self._dimensions,
        )


class InMemoryVectorStore(VectorStore):
    """Vector store keeping points in dicts, ranked by cosine similarity.

    Operations named in ``fail_on`` raise VectorStoreError.
    """

    def __init__(self) -> None:
        self.collections: dict[str, dict[str, VectorRecord]] = {}
        self.dimensions: dict[str, int] = {}
        self.calls: list[str] = []
        self.fail_on: set[str] = set()

    def _record(self, operation: str) -> None:
        self.calls.append(operation)
        if operation in self.fail_on:
            raise VectorStoreError(f"Simulated {operation} failure")

    async def collection_exists(self, name: str) -> bool:
        self._record("exists")
        return name in self.collections

    async def create_collection(self, name: str, dimensions: int) -> None:
        self._record("create")
        if name in self.collections:
            raise VectorStoreError(
                f"Collection already exists: {name}",
                code=ErrorCode.COLLECTION_EXISTS,
            )
        self.collections[name] = {}
        self.dimensions[name] = dimensions

    async def upsert(self, collection: str, records: list[VectorRecord]) -> int:
        self._record("upsert")
        points = self.collections[collection]
        for record in records:
            points[record.id] = record
        return len(records)

    async def search(
        self,
        collection: str,
        vector: list[float],
        limit: int = 5,
        with_payload: bool = True,
        with_vectors: bool = False,
    ) -> list[SearchResult]:
        self._record("search")
        scored = [
            SearchResult(
                id=record.id,
                score=_cosine(vector, record.vector),
                payload=dict(record.payload) if with_payload else None,
            )
            for record in self.collections[collection].values()
        ]
        scored.sort(key=lambda r: r.score, reverse=True)
        return scored[:limit]

    async def count(self, collection: str) -> int:
        self._record("count")
        return len(self.collections.get(collection, {}))


def _cosine(a: list[float], b: list[float]) -> float:
    norm = math.sqrt(sum(x * x for x in a)) * math.sqrt(sum(y * y for y in b))
    if norm == 0:
        return 0.0
    return sum(x * y for x, y in zip(a, b)) / norm


@pytest.fixture
async def client() -> AsyncGenerator[AsyncClient, None]:
    """Create async test client for the default FastAPI app.

    Yields:
        AsyncClient configured for testing.
    """
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


@pytest.fixture
def embedding_service() -> WordHashEmbeddingService:
    """Deterministic embedding service."""
    return WordHashEmbeddingService()


@pytest.fixture
def vector_store() -> InMemoryVectorStore:
    """Empty in-memory vector store."""
    return InMemoryVectorStore()


@pytest.fixture
def chat_client() -> AsyncMock:
    """Chat client double."""
    mock = AsyncMock(spec=ChatClient)
    mock.model_name = "gpt-4"
    return mock


@pytest.fixture
def service_app(
    embedding_service: WordHashEmbeddingService,
    vector_store: InMemoryVectorStore,
    chat_client: AsyncMock,
) -> FastAPI:
    """App wired to the in-memory doubles."""
    return create_app(
        embedding_service=embedding_service,
        vector_store=vector_store,
        chat_client=chat_client,
    )


@pytest.fixture
async def service_client(service_app: FastAPI) -> AsyncGenerator[AsyncClient, None]:
    """Async test client for the app wired to the in-memory doubles."""
    transport = ASGITransport(app=service_app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
