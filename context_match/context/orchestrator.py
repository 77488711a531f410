"""User-context orchestration.

Records a submitted context as a point in the users collection and returns the
most similar points already stored. Each request runs these stages in order:

    provision -> embedding -> upsert -> search

A failing stage stops the request with a ContextPipelineError naming the
stage. Nothing is retried or rolled back: when the search fails the new point
stays in the collection.
"""

import asyncio
from enum import Enum
from uuid import uuid4

from context_match.context.models import (
    Recommendation,
    UserContextPayload,
    utc_timestamp,
)
from context_match.context.seed import SampleDataSeeder
from context_match.embeddings.service import EmbeddingService
from context_match.exceptions import (
    ContextMatchError,
    ContextPipelineError,
    ErrorCode,
    ValidationError,
    VectorStoreError,
)
from context_match.logging_config import get_logger
from context_match.observability.metrics import (
    track_context_request,
    track_search_results,
)
from context_match.vectorstore.models import VectorRecord
from context_match.vectorstore.service import VectorStore

logger = get_logger(__name__)


class Stage(str, Enum):
    """Stages of a user-context request that can fail."""

    PROVISION = "provision"
    EMBEDDING = "embedding"
    UPSERT = "upsert"
    SEARCH = "search"


STAGE_MESSAGES: dict[Stage, str] = {
    Stage.PROVISION: "Internal server error",
    Stage.EMBEDDING: "Failed to generate embedding",
    Stage.UPSERT: "Failed to upsert data into Qdrant",
    Stage.SEARCH: "Failed to search Qdrant",
}


class RequestState(str, Enum):
    """Progress of a single user-context request."""

    IDLE = "idle"
    COLLECTION_CHECKED = "collection_checked"
    EMBEDDED = "embedded"
    UPSERTED = "upserted"
    SEARCHED = "searched"
    RESPONDED = "responded"
    FAILED = "failed"


class ContextOrchestrator:
    """Records user contexts and finds similar ones.

    The embedding service and vector store are injected so that tests and
    alternative deployments can substitute their own.
    """

    def __init__(
        self,
        embedding_service: EmbeddingService,
        vector_store: VectorStore,
        collection: str,
        search_limit: int = 5,
        seeder: SampleDataSeeder | None = None,
    ) -> None:
        """Initialize the orchestrator.

        Args:
            embedding_service: Produces vectors for submitted contexts.
            vector_store: Holds the users collection.
            collection: Name of the users collection.
            search_limit: Number of similar contexts to return.
            seeder: Fills a newly created collection with sample data.
        """
        self._embedding_service = embedding_service
        self._vector_store = vector_store
        self._collection = collection
        self._search_limit = search_limit
        self._seeder = seeder or SampleDataSeeder(
            embedding_service=embedding_service,
            vector_store=vector_store,
            collection=collection,
        )
        self._provision_lock = asyncio.Lock()

    @property
    def collection(self) -> str:
        """Name of the users collection."""
        return self._collection

    async def ensure_collection(self) -> bool:
        """Create and seed the collection if it does not exist yet.

        Concurrent cold starts in this process wait on a lock and re-check.
        If another process wins the race, the store reports the collection as
        existing and seeding is left to that process.

        Returns:
            True if this call created the collection.

        Raises:
            VectorStoreError: If the store cannot be checked or written.
            EmbeddingError: If seeding fails to embed a sample.
        """
        if await self._vector_store.collection_exists(self._collection):
            return False

        async with self._provision_lock:
            if await self._vector_store.collection_exists(self._collection):
                return False

            try:
                await self._vector_store.create_collection(
                    self._collection,
                    dimensions=self._embedding_service.dimensions,
                )
            except VectorStoreError as e:
                if e.code != ErrorCode.COLLECTION_EXISTS:
                    raise
                logger.info(
                    "Collection created by another worker, skipping seed",
                    extra={"collection": self._collection},
                )
                return False

            await self._seeder.seed()
            return True

    async def handle(
        self,
        user_context: str,
        name: str | None = None,
    ) -> list[Recommendation]:
        """Record a user context and return the most similar stored contexts.

        Args:
            user_context: Free text describing the user.
            name: Optional display name stored with the context.

        Returns:
            Up to ``search_limit`` recommendations, most similar first. The
            submitted context is itself a candidate.

        Raises:
            ValidationError: If ``user_context`` is empty.
            ContextPipelineError: If a stage fails.
        """
        if not user_context:
            raise ValidationError("user_context field is required in body")

        self._advance(RequestState.IDLE)

        try:
            await self.ensure_collection()
        except Exception as e:
            raise self._fail(Stage.PROVISION, e) from e
        self._advance(RequestState.COLLECTION_CHECKED)

        try:
            embedding = await self._embedding_service.embed(user_context)
        except Exception as e:
            raise self._fail(Stage.EMBEDDING, e) from e
        self._advance(RequestState.EMBEDDED)

        point_id = str(uuid4())
        payload = UserContextPayload(
            id=point_id,
            name=name,
            user_context=user_context,
            timestamp=utc_timestamp(),
        )
        try:
            await self._vector_store.upsert(
                self._collection,
                [VectorRecord(id=point_id, vector=embedding.embedding, payload=payload.to_store())],
            )
        except Exception as e:
            raise self._fail(Stage.UPSERT, e) from e
        self._advance(RequestState.UPSERTED, point_id=point_id)

        try:
            results = await self._vector_store.search(
                self._collection,
                vector=embedding.embedding,
                limit=self._search_limit,
                with_payload=True,
                with_vectors=False,
            )
        except Exception as e:
            raise self._fail(Stage.SEARCH, e) from e
        self._advance(RequestState.SEARCHED, point_id=point_id)

        recommendations = [
            Recommendation.from_payload(
                UserContextPayload.model_validate(result.payload),
                score=result.score,
            )
            for result in results
            if result.payload is not None
        ]

        track_search_results(
            len(recommendations),
            top_score=recommendations[0].score if recommendations else 0.0,
        )
        track_context_request("success")
        self._advance(RequestState.RESPONDED, point_id=point_id)
        logger.info(
            "User context recorded",
            extra={"point_id": point_id, "results_count": len(recommendations)},
        )
        return recommendations

    def _advance(self, state: RequestState, point_id: str | None = None) -> None:
        logger.debug(
            f"User context request {state.value}",
            extra={"state": state.value, "point_id": point_id},
        )

    def _fail(self, stage: Stage, error: Exception) -> ContextPipelineError:
        """Build the error reported for a failed stage."""
        detail = error.message if isinstance(error, ContextMatchError) else str(error)
        logger.error(
            f"User context request failed at {stage.value}: {detail}",
            extra={"state": RequestState.FAILED.value, "stage": stage.value},
        )
        track_context_request(stage.value)
        return ContextPipelineError(
            STAGE_MESSAGES[stage],
            stage=stage.value,
            details=detail,
        )
