"""User-context recording and similarity module."""

from context_match.context.models import (
    Recommendation,
    UserContextPayload,
    UserContextRequest,
)
from context_match.context.orchestrator import ContextOrchestrator, Stage
from context_match.context.seed import SAMPLE_CONTEXTS, SampleDataSeeder

__all__ = [
    "SAMPLE_CONTEXTS",
    "ContextOrchestrator",
    "Recommendation",
    "SampleDataSeeder",
    "Stage",
    "UserContextPayload",
    "UserContextRequest",
]
