"""Embedding provider module."""

from vectordatastore.embeddings.mock import MockEmbeddingProvider
from vectordatastore.embeddings.service import EmbeddingProvider, HTTPEmbeddingProvider

__all__ = [
    "EmbeddingProvider",
    "HTTPEmbeddingProvider",
    "MockEmbeddingProvider",
]
