"""Vector backend interface."""

from abc import ABC, abstractmethod
from collections.abc import Sequence

from vectordatastore.backends.models import Payload
from vectordatastore.exceptions import UnsupportedOperationError


class VectorBackend(ABC):
    """Abstract base class for vector storage backends.

    Every storage adapter persists (vector, metadata) pairs keyed by the
    metadata ``"id"`` and answers nearest-neighbour queries.
    """

    name: str = "backend"

    @abstractmethod
    async def upsert(self, payloads: Sequence[Payload]) -> None:
        """Insert or fully replace entries by id.

        Payloads are applied one at a time; a failure part-way through a
        batch may leave the earlier payloads applied.

        Args:
            payloads: Payloads to store.

        Raises:
            BackendError: If the write fails.
        """
        ...

    @abstractmethod
    async def search(
        self,
        vector: Sequence[float],
        top_k: int,
        threshold: float | None = None,
    ) -> list[dict[str, str]]:
        """Find the entries nearest to ``vector``.

        Args:
            vector: Query vector.
            top_k: Maximum results to return.
            threshold: Maximum distance; farther entries are excluded.

        Returns:
            Metadata of at most ``top_k`` entries, nearest first.

        Raises:
            BackendError: If the search fails.
        """
        ...

    @abstractmethod
    async def delete(self, ids: Sequence[str]) -> None:
        """Remove entries whose id is in ``ids``. Unknown ids are ignored.

        Raises:
            BackendError: If the deletion fails.
        """
        ...

    @abstractmethod
    async def fetch_all(self) -> list[dict[str, str]]:
        """Return the metadata of every stored entry, in no particular order.

        Raises:
            BackendError: If the read fails.
        """
        ...

    async def count(self) -> int:
        """Number of stored entries.

        Raises:
            UnsupportedOperationError: If the backend cannot count entries.
        """
        raise UnsupportedOperationError(
            f"{type(self).__name__} does not support count",
            details={"backend": self.name, "operation": "count"},
        )

    async def close(self) -> None:
        """Release any resources held by the backend."""
        return None
