"""Vector store module."""

from context_match.vectorstore.models import SearchResult, VectorRecord
from context_match.vectorstore.service import QdrantVectorStore, VectorStore

__all__ = [
    "QdrantVectorStore",
    "SearchResult",
    "VectorRecord",
    "VectorStore",
]
