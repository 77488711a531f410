"""Vector store interface and Qdrant implementation."""

import time
from abc import ABC, abstractmethod
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from qdrant_client import AsyncQdrantClient
from qdrant_client.http.exceptions import UnexpectedResponse
from qdrant_client.models import Distance, PointStruct, VectorParams

from context_match.config import QdrantSettings, get_settings
from context_match.exceptions import ErrorCode, VectorStoreError
from context_match.logging_config import get_logger
from context_match.observability.metrics import track_vectorstore_operation
from context_match.vectorstore.models import SearchResult, VectorRecord

logger = get_logger(__name__)


class VectorStore(ABC):
    """Abstract base class for vector stores.

    Defines the interface for storing and searching vectors.
    """

    @abstractmethod
    async def collection_exists(self, name: str) -> bool:
        """Check if a collection exists.

        Args:
            name: Collection name.

        Returns:
            True if collection exists.
        """
        ...

    @abstractmethod
    async def create_collection(
        self,
        name: str,
        dimensions: int,
    ) -> None:
        """Create a new cosine-distance collection.

        Args:
            name: Collection name.
            dimensions: Vector dimensions.

        Raises:
            VectorStoreError: If creation fails. The code is
                ``COLLECTION_EXISTS`` when the collection is already there.
        """
        ...

    @abstractmethod
    async def upsert(
        self,
        collection: str,
        records: list[VectorRecord],
    ) -> int:
        """Insert or update records.

        Args:
            collection: Collection name.
            records: Records to upsert.

        Returns:
            Number of records upserted.

        Raises:
            VectorStoreError: If upsert fails.
        """
        ...

    @abstractmethod
    async def search(
        self,
        collection: str,
        vector: list[float],
        limit: int = 5,
        with_payload: bool = True,
        with_vectors: bool = False,
    ) -> list[SearchResult]:
        """Search for similar vectors.

        Args:
            collection: Collection name.
            vector: Query vector.
            limit: Maximum results to return.
            with_payload: Return stored payloads.
            with_vectors: Return stored vectors.

        Returns:
            Results ordered by decreasing similarity score.

        Raises:
            VectorStoreError: If search fails.
        """
        ...

    @abstractmethod
    async def count(self, collection: str) -> int:
        """Count points in a collection.

        Raises:
            VectorStoreError: If the count fails.
        """
        ...


class QdrantVectorStore(VectorStore):
    """Qdrant vector store implementation."""

    def __init__(
        self,
        settings: QdrantSettings | None = None,
        client: AsyncQdrantClient | None = None,
    ) -> None:
        """Initialize Qdrant vector store.

        Args:
            settings: Qdrant configuration.
            client: Existing client (for testing).
        """
        self._settings = settings or get_settings().qdrant
        self._client = client
        self._owns_client = client is None

    async def _get_client(self) -> AsyncQdrantClient:
        """Get or create Qdrant client."""
        if self._client is None:
            self._client = AsyncQdrantClient(
                url=self._settings.url,
                api_key=self._settings.api_key.get_secret_value(),
            )
        return self._client

    async def close(self) -> None:
        """Close the Qdrant client."""
        if self._owns_client and self._client is not None:
            await self._client.close()
            self._client = None

    @asynccontextmanager
    async def _timed(self, operation: str) -> AsyncIterator[None]:
        """Record the duration and outcome of a Qdrant call."""
        start = time.perf_counter()
        try:
            yield
        except Exception:
            track_vectorstore_operation(operation, time.perf_counter() - start, success=False)
            raise
        track_vectorstore_operation(operation, time.perf_counter() - start)

    async def collection_exists(self, name: str) -> bool:
        """Check if collection exists."""
        client = await self._get_client()
        try:
            async with self._timed("exists"):
                return await client.collection_exists(name)
        except Exception as e:
            raise VectorStoreError(
                f"Failed to check collection: {e}",
                code=ErrorCode.VECTOR_STORE_ERROR,
                details={"collection": name, "error": str(e)},
            ) from e

    async def create_collection(
        self,
        name: str,
        dimensions: int,
    ) -> None:
        """Create a new Qdrant collection."""
        client = await self._get_client()

        try:
            async with self._timed("create"):
                await client.create_collection(
                    collection_name=name,
                    vectors_config=VectorParams(
                        size=dimensions,
                        distance=Distance.COSINE,
                    ),
                )
            logger.info(f"Created collection: {name}", extra={"dimensions": dimensions})

        except UnexpectedResponse as e:
            if e.status_code == 409:
                raise VectorStoreError(
                    f"Collection already exists: {name}",
                    code=ErrorCode.COLLECTION_EXISTS,
                    details={"collection": name},
                ) from e
            raise VectorStoreError(
                f"Failed to create collection: {e}",
                code=ErrorCode.VECTOR_STORE_ERROR,
                details={"collection": name, "error": str(e)},
            ) from e
        except Exception as e:
            raise VectorStoreError(
                f"Failed to create collection: {e}",
                code=ErrorCode.VECTOR_STORE_ERROR,
                details={"collection": name, "error": str(e)},
            ) from e

    async def upsert(
        self,
        collection: str,
        records: list[VectorRecord],
    ) -> int:
        """Upsert records into collection."""
        if not records:
            return 0

        client = await self._get_client()

        try:
            points = [
                PointStruct(
                    id=record.id,
                    vector=record.vector,
                    payload=record.payload,
                )
                for record in records
            ]

            async with self._timed("upsert"):
                await client.upsert(
                    collection_name=collection,
                    points=points,
                )

            logger.debug(
                f"Upserted {len(points)} records",
                extra={"collection": collection},
            )
            return len(points)

        except Exception as e:
            raise VectorStoreError(
                f"Failed to upsert records: {e}",
                code=ErrorCode.VECTOR_STORE_ERROR,
                details={"collection": collection, "error": str(e)},
            ) from e

    async def search(
        self,
        collection: str,
        vector: list[float],
        limit: int = 5,
        with_payload: bool = True,
        with_vectors: bool = False,
    ) -> list[SearchResult]:
        """Search for similar vectors."""
        client = await self._get_client()

        try:
            async with self._timed("search"):
                results = await client.query_points(
                    collection_name=collection,
                    query=vector,
                    limit=limit,
                    with_payload=with_payload,
                    with_vectors=with_vectors,
                )

            return [
                SearchResult(
                    id=str(point.id),
                    score=point.score if point.score is not None else 0.0,
                    payload=dict(point.payload) if point.payload is not None else None,
                )
                for point in results.points
            ]

        except Exception as e:
            raise VectorStoreError(
                f"Failed to search: {e}",
                code=ErrorCode.VECTOR_STORE_ERROR,
                details={"collection": collection, "error": str(e)},
            ) from e

    async def count(self, collection: str) -> int:
        """Count points with an exact count."""
        client = await self._get_client()

        try:
            async with self._timed("count"):
                result = await client.count(collection_name=collection, exact=True)
            return result.count

        except Exception as e:
            raise VectorStoreError(
                f"Failed to count points: {e}",
                code=ErrorCode.VECTOR_STORE_ERROR,
                details={"collection": collection, "error": str(e)},
            ) from e
