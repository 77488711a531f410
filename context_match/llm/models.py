"""Chat relay data models."""

from typing import Any

from pydantic import BaseModel, Field


class ChatCompletionRequest(BaseModel):
    """Request body for the chat completion relay.

    Messages are kept as the raw objects the caller sent; the provider decides
    whether they are well formed.
    """

    messages: list[dict[str, Any]] = Field(description="Conversation messages")
    model: str | None = Field(default=None, description="Model override")
    max_tokens: int | None = Field(default=None, ge=1, description="Completion token bound")

    def provider_messages(self) -> list[dict[str, Any]]:
        """Messages exactly as received."""
        return self.messages
