"""In-memory reference backend with exhaustive linear-scan search."""

import asyncio
import time
from collections.abc import Sequence
from dataclasses import dataclass

import numpy as np

from vectordatastore.backends.base import VectorBackend
from vectordatastore.backends.models import Payload
from vectordatastore.logging_config import get_logger
from vectordatastore.observability.metrics import (
    set_backend_entries,
    track_backend_operation,
)
from vectordatastore.vectors.distance import l2_distances

logger = get_logger(__name__)


@dataclass(frozen=True)
class _Entry:
    vector: np.ndarray
    metadata: dict[str, str]


class InMemoryBackend(VectorBackend):
    """Keeps entries in a list guarded by a single lock.

    Every operation holds the lock for its whole read-modify-write section,
    so operations are strictly serialized in lock-acquisition order.
    Search computes the L2 distance to every entry.
    """

    name = "memory"

    def __init__(self) -> None:
        self._entries: list[_Entry] = []
        self._lock = asyncio.Lock()

    async def upsert(self, payloads: Sequence[Payload]) -> None:
        """Remove any entry with the same id, then append the new one."""
        start = time.perf_counter()
        async with self._lock:
            for payload in payloads:
                entry_id = payload.metadata.get("id")
                if entry_id is not None:
                    self._entries = [
                        e for e in self._entries if e.metadata.get("id") != entry_id
                    ]
                self._entries.append(
                    _Entry(
                        vector=np.asarray(payload.vector, dtype=np.float64),
                        metadata=dict(payload.metadata),
                    )
                )
            size = len(self._entries)

        set_backend_entries(self.name, size)
        track_backend_operation(self.name, "upsert", time.perf_counter() - start)
        logger.debug(f"Upserted {len(payloads)} payloads", extra={"entries": size})

    async def search(
        self,
        vector: Sequence[float],
        top_k: int,
        threshold: float | None = None,
    ) -> list[dict[str, str]]:
        """Rank every entry by distance to ``vector``.

        Equal distances keep insertion order.
        """
        if top_k <= 0:
            return []

        start = time.perf_counter()
        async with self._lock:
            entries = list(self._entries)
            distances = l2_distances([e.vector for e in entries], vector)

        order = np.argsort(distances, kind="stable")
        results: list[dict[str, str]] = []
        for index in order:
            if threshold is not None and distances[index] > threshold:
                # Sorted ascending, nothing further can qualify
                break
            results.append(dict(entries[index].metadata))
            if len(results) == top_k:
                break

        track_backend_operation(self.name, "search", time.perf_counter() - start)
        return results

    async def delete(self, ids: Sequence[str]) -> None:
        """Drop entries whose id is in ``ids``."""
        targets = set(ids)
        if not targets:
            return

        start = time.perf_counter()
        async with self._lock:
            self._entries = [
                e for e in self._entries if e.metadata.get("id") not in targets
            ]
            size = len(self._entries)

        set_backend_entries(self.name, size)
        track_backend_operation(self.name, "delete", time.perf_counter() - start)

    async def fetch_all(self) -> list[dict[str, str]]:
        """Copy out every entry's metadata."""
        async with self._lock:
            return [dict(e.metadata) for e in self._entries]

    async def count(self) -> int:
        async with self._lock:
            return len(self._entries)

    async def clear(self) -> None:
        """Remove every entry."""
        async with self._lock:
            self._entries = []
        set_backend_entries(self.name, 0)
