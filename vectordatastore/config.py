"""Application configuration using Pydantic Settings.

All configuration is loaded from environment variables.
No secrets are hardcoded.
"""

from enum import Enum
from functools import lru_cache

from pydantic import Field, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict


class Environment(str, Enum):
    """Application environment."""

    DEVELOPMENT = "development"
    STAGING = "staging"
    PRODUCTION = "production"


class DistanceMetric(str, Enum):
    """Distance metric declared for a store's vectors."""

    COSINE = "cosine"
    DOT = "dot"
    EUCLID = "euclid"


class MetadataOverflowPolicy(str, Enum):
    """What to do when a record's metadata exceeds the configured caps.

    ``TRUNCATE`` drops keys past the key cap and cuts over-long values of
    plain string fields. Over-long JSON-encoded values cannot be cut without
    corrupting them, so they are rejected under either policy.
    """

    TRUNCATE = "truncate"
    REJECT = "reject"


class BackendKind(str, Enum):
    """Storage backend to wire into the store."""

    MEMORY = "memory"
    QDRANT = "qdrant"


class ProviderKind(str, Enum):
    """Embedding provider to wire into the store."""

    HTTP = "http"
    MOCK = "mock"


class StoreSettings(BaseSettings):
    """Store orchestration configuration."""

    model_config = SettingsConfigDict(env_prefix="STORE_")

    name: str = Field(
        default="default",
        description="Store name (also the remote collection name)",
    )
    vector_dimensions: int = Field(
        default=1536,
        gt=0,
        description="Dimensionality shared by every vector in the store",
    )
    metric: DistanceMetric = Field(
        default=DistanceMetric.EUCLID,
        description="Declared distance metric",
    )
    backend: BackendKind = Field(
        default=BackendKind.MEMORY,
        description="Storage backend",
    )
    max_batch_upsert: int = Field(
        default=1000,
        gt=0,
        description="Maximum records per save request",
    )
    max_fetch_limit: int = Field(
        default=100,
        gt=0,
        description="Ceiling applied to every fetch limit",
    )
    default_fetch_limit: int = Field(
        default=10,
        ge=0,
        description="Fetch limit used when a request does not set one",
    )
    max_metadata_keys: int = Field(
        default=64,
        gt=0,
        description="Maximum metadata keys stored per record",
    )
    max_metadata_value_length: int = Field(
        default=1024,
        gt=0,
        description="Maximum characters per metadata value",
    )
    metadata_overflow: MetadataOverflowPolicy = Field(
        default=MetadataOverflowPolicy.TRUNCATE,
        description="Truncate oversized metadata or reject the save",
    )


class EmbeddingSettings(BaseSettings):
    """Embedding provider configuration."""

    model_config = SettingsConfigDict(env_prefix="EMBEDDING_")

    provider: ProviderKind = Field(
        default=ProviderKind.HTTP,
        description="Embedding provider implementation",
    )
    base_url: str = Field(
        default="https://api.openai.com/v1",
        description="OpenAI-compatible embedding API base URL",
    )
    model: str = Field(
        default="text-embedding-3-small",
        description="Embedding model name",
    )
    api_key: SecretStr | None = Field(
        default=None,
        description="Bearer token for the embedding API",
    )
    timeout: float = Field(
        default=60.0,
        description="Request timeout in seconds",
    )
    batch_size: int = Field(
        default=100,
        gt=0,
        description="Maximum texts per embedding request",
    )


class QdrantSettings(BaseSettings):
    """Qdrant vector database configuration."""

    model_config = SettingsConfigDict(env_prefix="QDRANT_")

    url: str = Field(
        default="http://localhost:6333",
        description="Qdrant server URL",
    )
    api_key: SecretStr | None = Field(
        default=None,
        description="Qdrant API key (optional for local)",
    )
    timeout: int = Field(
        default=30,
        description="Request timeout in seconds",
    )
    scroll_batch_size: int = Field(
        default=256,
        gt=0,
        description="Page size used when scrolling a whole collection",
    )


class RetrySettings(BaseSettings):
    """Retry policy for remote collaborators."""

    model_config = SettingsConfigDict(env_prefix="RETRY_")

    max_attempts: int = Field(
        default=3,
        ge=1,
        description="Total attempts including the first call",
    )
    base_delay: float = Field(
        default=1.0,
        ge=0.0,
        description="Initial backoff delay in seconds",
    )
    max_delay: float = Field(
        default=30.0,
        ge=0.0,
        description="Upper bound for a single backoff delay",
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
    store: StoreSettings = Field(default_factory=StoreSettings)
    embedding: EmbeddingSettings = Field(default_factory=EmbeddingSettings)
    qdrant: QdrantSettings = Field(default_factory=QdrantSettings)
    retry: RetrySettings = Field(default_factory=RetrySettings)


@lru_cache
def get_settings() -> Settings:
    """Get cached application settings.

    Returns:
        Settings instance loaded from environment.
    """
    return Settings()
