"""Sample data for an empty users collection.

A freshly created collection has nothing to compare against, so it is filled
with a small catalog of example profiles before the first real context is
recorded.
"""

import asyncio
from dataclasses import dataclass, field
from uuid import uuid4

from context_match.context.models import UserContextPayload, utc_timestamp
from context_match.embeddings.service import EmbeddingService
from context_match.logging_config import get_logger
from context_match.vectorstore.models import VectorRecord
from context_match.vectorstore.service import VectorStore

logger = get_logger(__name__)


@dataclass(frozen=True)
class SampleContext:
    """An example profile used for seeding."""

    context: str
    img_url: str
    tags: list[str] = field(default_factory=list)


SAMPLE_CONTEXTS: tuple[SampleContext, ...] = (
    SampleContext(
        context=(
            "I'm a software engineer with 5 years of experience in web development. "
            "I specialize in React and Node.js, and I'm interested in learning more "
            "about machine learning and AI."
        ),
        img_url="https://images.unsplash.com/photo-1534972195531-d756b9bfa9f2?w=500&auto=format&fit=crop&q=60&ixlib=rb-4.0.3.jpg",
        tags=["software engineering", "web development", "react", "node.js", "machine learning", "AI"],
    ),
    SampleContext(
        context=(
            "I'm a data scientist working in healthcare. I have experience with Python, "
            "SQL, and machine learning models. I'm looking to improve my data "
            "visualization skills."
        ),
        img_url="https://images.unsplash.com/photo-1551288049-bebda4e38f71?w=500&auto=format&fit=crop&q=60&ixlib=rb-4.0.3.jpg",
        tags=["data science", "healthcare", "python", "sql", "machine learning", "data visualization"],
    ),
    SampleContext(
        context=(
            "I'm a UX designer with a background in psychology. I focus on creating "
            "accessible and user-friendly interfaces. I'm currently learning more about "
            "front-end development."
        ),
        img_url="https://images.unsplash.com/photo-1573496359142-b8d87734a5a2?w=500&auto=format&fit=crop&q=60&ixlib=rb-4.0.3.jpg",
        tags=["UX design", "psychology", "accessibility", "user interface", "front-end development"],
    ),
    SampleContext(
        context=(
            "I'm a product manager with experience in agile methodologies. I work with "
            "cross-functional teams to deliver digital products. I'm interested in "
            "learning more about technical aspects of development."
        ),
        img_url="https://images.unsplash.com/photo-1560250097-0b93528c311a?w=500&auto=format&fit=crop&q=60&ixlib=rb-4.0.3.jpg",
        tags=["product management", "agile", "cross-functional", "digital products", "technical development"],
    ),
    SampleContext(
        context=(
            "I'm a DevOps engineer specializing in cloud infrastructure. I work with "
            "AWS, Docker, and Kubernetes. I'm looking to improve my automation skills."
        ),
        img_url="https://images.unsplash.com/photo-1551434678-e076c223a692?w=500&auto=format&fit=crop&q=60&ixlib=rb-4.0.3.jpg",
        tags=["devops", "cloud infrastructure", "AWS", "docker", "kubernetes", "automation"],
    ),
)


class SampleDataSeeder:
    """Writes the sample catalog into a collection."""

    def __init__(
        self,
        embedding_service: EmbeddingService,
        vector_store: VectorStore,
        collection: str,
        samples: tuple[SampleContext, ...] = SAMPLE_CONTEXTS,
    ) -> None:
        self._embedding_service = embedding_service
        self._vector_store = vector_store
        self._collection = collection
        self._samples = samples

    async def seed(self) -> int:
        """Embed every sample and upsert them in one batch.

        Embeddings are requested concurrently. If any of them fails nothing is
        written.

        Returns:
            Number of records written.

        Raises:
            EmbeddingError: If an embedding request fails.
            VectorStoreError: If the upsert fails.
        """
        records = await asyncio.gather(*(self._build_record(s) for s in self._samples))
        written = await self._vector_store.upsert(self._collection, list(records))

        logger.info(
            f"Seeded {written} sample records",
            extra={"collection": self._collection},
        )
        return written

    async def _build_record(self, sample: SampleContext) -> VectorRecord:
        result = await self._embedding_service.embed(sample.context)
        point_id = str(uuid4())
        payload = UserContextPayload(
            id=point_id,
            name=f"Sample User {point_id[:8]}",
            user_context=sample.context,
            img_url=sample.img_url,
            tags=list(sample.tags),
            timestamp=utc_timestamp(),
        )
        return VectorRecord(id=point_id, vector=result.embedding, payload=payload.to_store())
