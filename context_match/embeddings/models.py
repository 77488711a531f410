"""Embedding data models."""

from pydantic import BaseModel, Field, model_validator


class EmbeddingResult(BaseModel):
    """Vector produced for one piece of text.

    ``dimensions`` is the size the collection expects; a vector of any other
    length is rejected.
    """

    embedding: list[float] = Field(description="Embedding vector")
    model: str = Field(description="Model used for embedding")
    dimensions: int = Field(gt=0, description="Expected vector size")

    @model_validator(mode="after")
    def check_size(self) -> "EmbeddingResult":
        if len(self.embedding) != self.dimensions:
            raise ValueError(
                f"Expected {self.dimensions} dimensions, got {len(self.embedding)}"
            )
        return self
