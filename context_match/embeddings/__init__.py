"""Embedding service module."""

from context_match.embeddings.models import EmbeddingResult
from context_match.embeddings.service import EmbeddingService, OpenAIEmbeddingService

__all__ = [
    "EmbeddingResult",
    "EmbeddingService",
    "OpenAIEmbeddingService",
]
