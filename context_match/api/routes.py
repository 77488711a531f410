"""API routes for the user-context and chat relay endpoints."""

from typing import Any

from fastapi import APIRouter, Depends, Request

from context_match.context.models import Recommendation, UserContextRequest
from context_match.context.orchestrator import ContextOrchestrator
from context_match.llm.client import ChatClient
from context_match.llm.models import ChatCompletionRequest
from context_match.logging_config import get_logger

logger = get_logger(__name__)


router = APIRouter(prefix="/api", tags=["Context"])


def get_context_orchestrator(request: Request) -> ContextOrchestrator:
    """Orchestrator built by the application factory."""
    return request.app.state.orchestrator


def get_chat_client(request: Request) -> ChatClient:
    """Chat client built by the application factory."""
    return request.app.state.chat_client


@router.api_route(
    "/user-context",
    methods=["GET", "POST"],
    response_model=list[Recommendation],
    response_model_exclude_none=True,
)
async def user_context_endpoint(
    body: UserContextRequest,
    orchestrator: ContextOrchestrator = Depends(get_context_orchestrator),
) -> list[Recommendation]:
    """Record a user context and return the most similar stored contexts.

    Fields missing from a stored payload are left out of its record.
    """
    return await orchestrator.handle(body.user_context, name=body.name)


@router.post("/chat-completion")
async def chat_completion_endpoint(
    body: ChatCompletionRequest,
    chat_client: ChatClient = Depends(get_chat_client),
) -> dict[str, Any]:
    """Forward chat messages to the provider and return its completion as-is."""
    logger.debug(
        "Relaying chat completion",
        extra={"messages": len(body.messages), "model": body.model or chat_client.model_name},
    )
    return await chat_client.create_completion(
        body.provider_messages(),
        model=body.model,
        max_tokens=body.max_tokens,
    )
