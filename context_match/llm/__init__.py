"""Chat completion relay module."""

from context_match.llm.client import ChatClient, OpenAIChatClient
from context_match.llm.models import ChatCompletionRequest

__all__ = [
    "ChatClient",
    "ChatCompletionRequest",
    "OpenAIChatClient",
]
