"""Vector backend module."""

from vectordatastore.backends.base import VectorBackend
from vectordatastore.backends.memory import InMemoryBackend
from vectordatastore.backends.models import Payload
from vectordatastore.backends.qdrant import QdrantBackend

__all__ = [
    "InMemoryBackend",
    "Payload",
    "QdrantBackend",
    "VectorBackend",
]
