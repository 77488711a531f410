"""Application configuration using Pydantic Settings.

All configuration is loaded from environment variables.
Provider credentials are required; startup fails if they are missing.
"""

from enum import Enum
from functools import lru_cache

from pydantic import Field, SecretStr
from pydantic import ValidationError as PydanticValidationError
from pydantic_settings import BaseSettings, SettingsConfigDict

from context_match.exceptions import ConfigurationError


class Environment(str, Enum):
    """Application environment."""

    DEVELOPMENT = "development"
    STAGING = "staging"
    PRODUCTION = "production"


class OpenAISettings(BaseSettings):
    """OpenAI-compatible provider configuration.

    Covers both the embeddings and the chat-completion endpoints.
    """

    model_config = SettingsConfigDict(
        env_prefix="OPENAI_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    api_key: SecretStr = Field(description="Provider API key")
    base_url: str = Field(
        default="https://api.openai.com/v1",
        description="Provider API base URL",
    )
    chat_model: str = Field(
        default="gpt-4",
        description="Default model for chat completions",
    )
    max_tokens: int = Field(
        default=1000,
        description="Default completion token bound",
    )
    embedding_model: str = Field(
        default="text-embedding-3-small",
        description="Embedding model name",
    )
    embedding_dimensions: int = Field(
        default=256,
        gt=0,
        description="Requested embedding size; must match the collection",
    )
    timeout: float = Field(
        default=60.0,
        description="Request timeout in seconds",
    )


class QdrantSettings(BaseSettings):
    """Qdrant vector database configuration."""

    model_config = SettingsConfigDict(
        env_prefix="QDRANT_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    url: str = Field(
        default="http://localhost:6333",
        description="Qdrant server URL",
    )
    api_key: SecretStr = Field(description="Qdrant API key")
    collection_name: str = Field(
        default="users",
        description="Collection holding user contexts",
    )
    search_limit: int = Field(
        default=5,
        ge=1,
        description="Number of similar contexts returned per request",
    )


class Settings(BaseSettings):
    """Main application settings.

    Aggregates all configuration sections.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Application settings
    environment: Environment = Field(
        default=Environment.DEVELOPMENT,
        description="Application environment",
    )
    log_level: str = Field(
        default="INFO",
        description="Logging level",
    )
    debug: bool = Field(
        default=False,
        description="Enable debug mode",
    )

    # API settings
    api_host: str = Field(
        default="0.0.0.0",
        description="API server host",
    )
    api_port: int = Field(
        default=8000,
        description="API server port",
    )

    # Nested settings
    openai: OpenAISettings = Field(default_factory=OpenAISettings)
    qdrant: QdrantSettings = Field(default_factory=QdrantSettings)


def load_settings() -> Settings:
    """Load settings from the environment.

    Returns:
        Settings instance.

    Raises:
        ConfigurationError: If a required variable is missing or invalid.
    """
    try:
        return Settings()
    except PydanticValidationError as e:
        missing = [
            ".".join([e.title, *(str(part) for part in err["loc"])])
            for err in e.errors()
        ]
        raise ConfigurationError(
            "Invalid or missing configuration",
            details={"fields": missing},
        ) from e


@lru_cache
def get_settings() -> Settings:
    """Get cached application settings.

    Returns:
        Settings instance loaded from environment.
    """
    return load_settings()
