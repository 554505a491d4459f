"""Store wiring for the API."""

from fastapi import Request

from vectordatastore.backends.base import VectorBackend
from vectordatastore.backends.memory import InMemoryBackend
from vectordatastore.backends.qdrant import QdrantBackend
from vectordatastore.config import BackendKind, ProviderKind, Settings
from vectordatastore.embeddings.mock import MockEmbeddingProvider
from vectordatastore.embeddings.service import EmbeddingProvider, HTTPEmbeddingProvider
from vectordatastore.exceptions import ConfigurationError
from vectordatastore.records.document import Document
from vectordatastore.store.models import StoreConfiguration
from vectordatastore.store.store import VectorDataStore
from vectordatastore.utils.retry import RetryPolicy

DocumentStore = VectorDataStore[Document]


def build_store(settings: Settings) -> DocumentStore:
    """Build a document store from settings.

    Args:
        settings: Application settings.

    Returns:
        Store wired with the configured provider and backend.
    """
    configuration = StoreConfiguration.from_settings(settings)
    retry_policy = RetryPolicy.from_settings(settings.retry)
    dimensions = configuration.vector_schema.vector_dimensions

    provider: EmbeddingProvider
    if settings.embedding.provider is ProviderKind.MOCK:
        provider = MockEmbeddingProvider(dimensions=dimensions)
    else:
        provider = HTTPEmbeddingProvider(
            settings=settings.embedding,
            retry_policy=retry_policy,
        )

    backend: VectorBackend
    if settings.store.backend is BackendKind.QDRANT:
        backend = QdrantBackend(
            collection_name=configuration.store_name,
            vector_dimensions=dimensions,
            metric=configuration.vector_schema.metric,
            settings=settings.qdrant,
            retry_policy=retry_policy,
        )
    else:
        backend = InMemoryBackend()

    return VectorDataStore(configuration, provider, backend, Document)


def get_store(request: Request) -> DocumentStore:
    """FastAPI dependency returning the application's store."""
    store: DocumentStore | None = getattr(request.app.state, "store", None)
    if store is None:
        raise ConfigurationError("Vector store is not initialized")
    return store
