"""Pytest configuration and shared fixtures."""

from collections.abc import AsyncGenerator

import pytest
from httpx import ASGITransport, AsyncClient

from vectordatastore.api.app import create_app
from vectordatastore.backends.memory import InMemoryBackend
from vectordatastore.embeddings.mock import MockEmbeddingProvider
from vectordatastore.records.document import Document
from vectordatastore.store.models import StoreConfiguration, VectorSchema
from vectordatastore.store.store import VectorDataStore


@pytest.fixture
def embedder() -> MockEmbeddingProvider:
    """Three-dimensional mock embedding provider."""
    return MockEmbeddingProvider(dimensions=3)


@pytest.fixture
def backend() -> InMemoryBackend:
    """Empty in-memory backend."""
    return InMemoryBackend()


@pytest.fixture
def configuration() -> StoreConfiguration:
    """Store configuration for three-dimensional vectors."""
    return StoreConfiguration(
        store_name="test",
        vector_schema=VectorSchema(vector_dimensions=3),
    )


@pytest.fixture
def store(
    configuration: StoreConfiguration,
    embedder: MockEmbeddingProvider,
    backend: InMemoryBackend,
) -> VectorDataStore[Document]:
    """Document store over the mock provider and in-memory backend."""
    return VectorDataStore(configuration, embedder, backend, Document)


@pytest.fixture
async def client(store: VectorDataStore[Document]) -> AsyncGenerator[AsyncClient, None]:
    """Create async test client for FastAPI app.

    Yields:
        AsyncClient configured for testing.
    """
    app = create_app(store=store)
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
