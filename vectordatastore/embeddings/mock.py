"""Deterministic embedding provider for tests and local development."""

from collections.abc import Sequence

from vectordatastore.embeddings.service import EmbeddingProvider
from vectordatastore.exceptions import ErrorCode, ValidationError
from vectordatastore.vectors.distance import Vector


class MockEmbeddingProvider(EmbeddingProvider):
    """Returns pre-registered vectors, or a zero vector for unknown texts."""

    def __init__(self, dimensions: int = 384, model: str = "mock-embedding") -> None:
        self._dimensions = dimensions
        self._model = model
        self._embeddings: dict[str, Vector] = {}
        self.call_count = 0

    @property
    def model_name(self) -> str:
        """Get the model name."""
        return self._model

    @property
    def dimensions(self) -> int:
        """Length of every vector this provider returns by default."""
        return self._dimensions

    def set_embedding(self, text: str, vector: Sequence[float]) -> None:
        """Register the vector returned for ``text``."""
        if len(vector) != self._dimensions:
            raise ValidationError(
                f"Mock embedding for {text!r} has {len(vector)} dimensions, "
                f"expected {self._dimensions}",
                code=ErrorCode.DIMENSION_MISMATCH,
                details={"expected": self._dimensions, "got": len(vector)},
            )
        self._embeddings[text] = [float(x) for x in vector]

    def reset_call_count(self) -> None:
        self.call_count = 0

    async def embed(self, texts: Sequence[str]) -> list[Vector]:
        """Return the registered vector per text, zeros when none is set."""
        self.call_count += 1
        return [
            list(self._embeddings.get(text, [0.0] * self._dimensions))
            for text in texts
        ]
