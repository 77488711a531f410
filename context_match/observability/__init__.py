"""Observability module for metrics and monitoring."""

from context_match.observability.metrics import (
    MetricsMiddleware,
    get_metrics,
    track_context_request,
    track_embedding_request,
    track_llm_request,
    track_search_results,
    track_vectorstore_operation,
)

__all__ = [
    "MetricsMiddleware",
    "get_metrics",
    "track_context_request",
    "track_embedding_request",
    "track_llm_request",
    "track_search_results",
    "track_vectorstore_operation",
]
