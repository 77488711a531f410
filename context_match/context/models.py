"""User-context data models."""

from datetime import UTC, datetime
from typing import Any

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    ValidationError,
    ValidatorFunctionWrapHandler,
    field_validator,
)


def utc_timestamp() -> str:
    """Current time as an ISO-8601 UTC string."""
    return datetime.now(UTC).isoformat()


class UserContextRequest(BaseModel):
    """Request body for the user-context endpoint."""

    name: str | None = Field(default=None, description="Display name")
    user_context: str = Field(min_length=1, description="Free-text context to record")


class UserContextPayload(BaseModel):
    """Payload stored with every point in the users collection.

    ``id`` mirrors the point id. Points written by other tools may carry only
    a subset of the fields, or values of another type; such fields read as
    ``None``.
    """

    model_config = ConfigDict(extra="ignore")

    id: str | None = None
    name: str | None = None
    user_context: str | None = None
    img_url: str | None = None
    tags: list[str] | None = None
    url: str | None = None
    timestamp: str | None = None

    @field_validator("*", mode="wrap")
    @classmethod
    def _none_if_invalid(cls, value: Any, handler: ValidatorFunctionWrapHandler) -> Any:
        try:
            return handler(value)
        except ValidationError:
            return None

    def to_store(self) -> dict[str, Any]:
        """Payload as written to the vector store, without empty fields."""
        return self.model_dump(exclude_none=True)


class Recommendation(BaseModel):
    """A similar user context returned to the caller.

    Attributes:
        score: Cosine similarity to the submitted context.
    """

    id: str | None = Field(default=None, description="Point identifier")
    img_url: str | None = Field(default=None, description="Profile image URL")
    name: str | None = Field(default=None, description="Display name")
    tags: list[str] | None = Field(default=None, description="Interest tags")
    url: str | None = Field(default=None, description="Profile URL")
    user_context: str | None = Field(default=None, description="Recorded context")
    score: float = Field(description="Similarity score")

    @classmethod
    def from_payload(cls, payload: UserContextPayload, score: float) -> "Recommendation":
        """Project a stored payload into a response record."""
        return cls(
            id=payload.id,
            img_url=payload.img_url,
            name=payload.name,
            tags=payload.tags,
            url=payload.url,
            user_context=payload.user_context,
            score=score,
        )
