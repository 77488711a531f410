"""Application exception hierarchy.

All custom exceptions inherit from ContextMatchError.
Each exception has an error code for structured error handling.
"""

from enum import Enum
from typing import Any


class ErrorCode(str, Enum):
    """Error codes for structured error handling."""

    # General errors (1xxx)
    INTERNAL_ERROR = "CTX-1000"
    CONFIGURATION_ERROR = "CTX-1001"
    VALIDATION_ERROR = "CTX-1002"

    # Embedding errors (3xxx)
    EMBEDDING_SERVICE_ERROR = "CTX-3000"
    EMBEDDING_DIMENSION_MISMATCH = "CTX-3001"

    # Vector store errors (4xxx)
    VECTOR_STORE_ERROR = "CTX-4000"
    COLLECTION_EXISTS = "CTX-4002"

    # LLM errors (5xxx)
    LLM_SERVICE_ERROR = "CTX-5000"
    LLM_TIMEOUT = "CTX-5001"
    LLM_RATE_LIMIT = "CTX-5002"

    # Context pipeline errors (6xxx)
    PIPELINE_STAGE_FAILED = "CTX-6000"


class ContextMatchError(Exception):
    """Base exception for all service errors.

    Attributes:
        message: Human-readable error message.
        code: Structured error code.
        details: Underlying cause, either a message or a mapping of context.
    """

    def __init__(
        self,
        message: str,
        code: ErrorCode = ErrorCode.INTERNAL_ERROR,
        details: str | dict[str, Any] | None = None,
    ) -> None:
        self.message = message
        self.code = code
        self.details = details
        super().__init__(self.message)

    def to_dict(self) -> dict[str, Any]:
        """Convert exception to dictionary for API responses."""
        body: dict[str, Any] = {
            "error": self.message,
            "code": self.code.value,
        }
        if self.details:
            body["details"] = self.details
        return body


class ConfigurationError(ContextMatchError):
    """Configuration or environment error."""

    def __init__(
        self,
        message: str,
        details: str | dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, ErrorCode.CONFIGURATION_ERROR, details)


class ValidationError(ContextMatchError):
    """Input validation error."""

    def __init__(
        self,
        message: str,
        details: str | dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, ErrorCode.VALIDATION_ERROR, details)


class EmbeddingError(ContextMatchError):
    """Embedding service error."""

    def __init__(
        self,
        message: str,
        code: ErrorCode = ErrorCode.EMBEDDING_SERVICE_ERROR,
        details: str | dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, code, details)


class VectorStoreError(ContextMatchError):
    """Vector store operation error."""

    def __init__(
        self,
        message: str,
        code: ErrorCode = ErrorCode.VECTOR_STORE_ERROR,
        details: str | dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, code, details)


class LLMError(ContextMatchError):
    """Chat completion provider error."""

    def __init__(
        self,
        message: str,
        code: ErrorCode = ErrorCode.LLM_SERVICE_ERROR,
        details: str | dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, code, details)


class ContextPipelineError(ContextMatchError):
    """A stage of the user-context pipeline failed.

    Attributes:
        stage: Name of the failing stage (provision, embedding, upsert, search).
    """

    def __init__(
        self,
        message: str,
        stage: str,
        details: str | dict[str, Any] | None = None,
    ) -> None:
        self.stage = stage
        super().__init__(message, ErrorCode.PIPELINE_STAGE_FAILED, details)
