"""Store configuration and request/response models."""

from typing import Self

from pydantic import BaseModel, ConfigDict, Field, SecretStr

from vectordatastore.config import (
    DistanceMetric,
    MetadataOverflowPolicy,
    Settings,
    get_settings,
)
from vectordatastore.query.predicate import Predicate
from vectordatastore.query.sort import SortDescriptor
from vectordatastore.records.models import Snapshot, VectorRecord


class VectorSchema(BaseModel):
    """Shape of every vector in a store."""

    model_config = ConfigDict(frozen=True)

    vector_dimensions: int = Field(gt=0, description="Vector length")
    metric: DistanceMetric = Field(
        default=DistanceMetric.EUCLID,
        description="Declared distance metric",
    )


class StoreLimits(BaseModel):
    """Request and metadata caps enforced by the store."""

    model_config = ConfigDict(frozen=True)

    max_batch_upsert: int = Field(default=1000, gt=0)
    max_fetch_limit: int = Field(default=100, gt=0)
    default_fetch_limit: int = Field(default=10, ge=0)
    max_metadata_keys: int = Field(default=64, gt=0)
    max_metadata_value_length: int = Field(default=1024, gt=0)
    metadata_overflow: MetadataOverflowPolicy = MetadataOverflowPolicy.TRUNCATE


class StoreConfiguration(BaseModel):
    """Immutable store configuration."""

    model_config = ConfigDict(frozen=True)

    store_name: str = Field(default="default", min_length=1)
    vector_schema: VectorSchema
    endpoint: str | None = Field(default=None, description="Remote backend URL")
    api_key: SecretStr | None = Field(default=None, description="Remote backend key")
    limits: StoreLimits = Field(default_factory=StoreLimits)

    @classmethod
    def from_settings(cls, settings: Settings | None = None) -> Self:
        """Build a configuration from environment settings."""
        settings = settings or get_settings()
        store = settings.store
        return cls(
            store_name=store.name,
            vector_schema=VectorSchema(
                vector_dimensions=store.vector_dimensions,
                metric=store.metric,
            ),
            endpoint=settings.qdrant.url,
            api_key=settings.qdrant.api_key,
            limits=StoreLimits(
                max_batch_upsert=store.max_batch_upsert,
                max_fetch_limit=store.max_fetch_limit,
                default_fetch_limit=store.default_fetch_limit,
                max_metadata_keys=store.max_metadata_keys,
                max_metadata_value_length=store.max_metadata_value_length,
                metadata_overflow=store.metadata_overflow,
            ),
        )


class FetchRequest(BaseModel):
    """Parameters of a fetch.

    Without ``semantic_query`` the fetch is metadata-only and scans every
    stored record.
    """

    semantic_query: str | None = Field(default=None, description="Text to search for")
    fetch_limit: int | None = Field(
        default=None,
        description="Maximum records; clamped to the store's ceiling",
    )
    similarity_threshold: float | None = Field(
        default=None,
        description="Maximum distance for semantic results",
    )
    predicate: Predicate | None = Field(default=None, description="Record filter")
    sort_descriptors: list[SortDescriptor] = Field(
        default_factory=list,
        description="Sort keys, highest precedence first",
    )


class FetchResult(BaseModel):
    """Records produced by a fetch, in result order."""

    records: list[VectorRecord] = Field(default_factory=list)

    @property
    def snapshots(self) -> list[Snapshot]:
        return [Snapshot(model=record) for record in self.records]

    @property
    def count(self) -> int:
        return len(self.records)
