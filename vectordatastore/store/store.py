"""Vector data store orchestrator.

Ties an embedding provider and a vector backend together: records go in,
get embedded and validated, and are persisted as (vector, metadata)
payloads; queries come back out as decoded records.
"""

import inspect
import time
from collections.abc import Awaitable, Callable, Sequence
from typing import Generic, TypeVar

from vectordatastore.backends.base import VectorBackend
from vectordatastore.backends.models import Payload
from vectordatastore.config import DistanceMetric
from vectordatastore.embeddings.service import EmbeddingProvider
from vectordatastore.exceptions import (
    ErrorCode,
    RecordError,
    ValidationError,
    VectorDataStoreError,
)
from vectordatastore.logging_config import get_logger
from vectordatastore.observability.metrics import (
    track_fetch_results,
    track_store_operation,
    track_transaction_phase,
)
from vectordatastore.query.sort import sort_records
from vectordatastore.records.codec import sanitize_metadata, verbatim_fields
from vectordatastore.records.models import Snapshot, VectorRecord
from vectordatastore.store.models import FetchRequest, FetchResult, StoreConfiguration
from vectordatastore.store.transaction import ChangeKind, EditingState, TransactionPhase
from vectordatastore.utils.batching import BatchProcessor
from vectordatastore.vectors.distance import Vector

logger = get_logger(__name__)

R = TypeVar("R", bound=VectorRecord)
T = TypeVar("T")


def _unwrap(items: Sequence[R | Snapshot]) -> list[R]:
    return [item.model if isinstance(item, Snapshot) else item for item in items]


class VectorDataStore(Generic[R]):
    """Async store for records of one type.

    The store keeps no mutable state of its own, so any number of
    coroutines may call it concurrently. Ordering between concurrent
    calls is whatever the backend provides.

    Example:
        store = VectorDataStore(config, MockEmbeddingProvider(3), InMemoryBackend(), Document)
        await store.save([Document(id="a", content="hello")])
        result = await store.fetch(FetchRequest(semantic_query="hello"))
    """

    def __init__(
        self,
        configuration: StoreConfiguration,
        embedding_provider: EmbeddingProvider,
        backend: VectorBackend,
        record_type: type[R],
    ) -> None:
        """Initialize the store.

        Args:
            configuration: Store configuration.
            embedding_provider: Provider turning record text into vectors.
            backend: Storage backend.
            record_type: Record class stored in this store.
        """
        self._configuration = configuration
        self._embedding_provider = embedding_provider
        self._backend = backend
        self._record_type = record_type

    @property
    def configuration(self) -> StoreConfiguration:
        return self._configuration

    @property
    def embedding_provider(self) -> EmbeddingProvider:
        return self._embedding_provider

    @property
    def backend(self) -> VectorBackend:
        return self._backend

    @property
    def record_type(self) -> type[R]:
        return self._record_type

    async def close(self) -> None:
        """Close the provider and the backend."""
        await self._embedding_provider.close()
        await self._backend.close()

    async def save(self, records: Sequence[R | Snapshot]) -> int:
        """Embed and upsert records.

        Every record is validated before anything is written: a single bad
        record fails the whole call and the backend is never touched.

        Args:
            records: Records or snapshots to save.

        Returns:
            Number of records upserted.

        Raises:
            ValidationError: If the batch, a vector or any metadata is invalid.
            EmbeddingError: If the provider fails.
            BackendError: If the upsert fails.
        """
        start = time.perf_counter()
        try:
            count = await self._save(_unwrap(records))
        except VectorDataStoreError:
            track_store_operation("save", time.perf_counter() - start, success=False)
            raise

        track_store_operation("save", time.perf_counter() - start)
        logger.info(
            f"Saved {count} records",
            extra={"store": self._configuration.store_name, "count": count},
        )
        return count

    async def _save(self, records: list[R]) -> int:
        limits = self._configuration.limits

        if not records:
            raise ValidationError(
                "Cannot save an empty batch",
                code=ErrorCode.EMPTY_BATCH,
            )
        if len(records) > limits.max_batch_upsert:
            raise ValidationError(
                f"Batch of {len(records)} exceeds the limit of {limits.max_batch_upsert}",
                code=ErrorCode.BATCH_TOO_LARGE,
                details={"limit": limits.max_batch_upsert, "size": len(records)},
            )

        vectors = await self._embedding_provider.embed(
            [record.embedding_text for record in records]
        )
        self._check_vector_count(len(records), vectors)
        for vector in vectors:
            self._check_dimensions(vector)

        metadata = [
            sanitize_metadata(
                record.to_metadata(),
                max_keys=limits.max_metadata_keys,
                max_value_length=limits.max_metadata_value_length,
                policy=limits.metadata_overflow,
                truncatable=verbatim_fields(type(record)),
            )
            for record in records
        ]
        for index, entry in enumerate(metadata):
            if not entry.get("id"):
                raise ValidationError(
                    "Record metadata has no id",
                    code=ErrorCode.MISSING_ID_IN_METADATA,
                    details={"index": index},
                )

        payloads = [
            Payload(vector=list(vector), metadata=entry)
            for vector, entry in zip(vectors, metadata, strict=True)
        ]
        await self._backend.upsert(payloads)
        return len(payloads)

    async def fetch(self, request: FetchRequest | None = None) -> FetchResult:
        """Query stored records.

        Without a semantic query every record is read, filtered, sorted and
        cut to the limit. With one, the query text is embedded and the
        backend returns the nearest records, which are then filtered and
        sorted. Records that fail to decode are skipped.

        Args:
            request: Fetch parameters. Defaults to a metadata-only fetch.

        Returns:
            Matching records.

        Raises:
            ValidationError: If the threshold is negative under L2 or the query vector
                is invalid.
            EmbeddingError: If the provider fails.
            BackendError: If the backend fails.
        """
        request = request or FetchRequest()
        start = time.perf_counter()
        try:
            result = await self._fetch(request)
        except VectorDataStoreError:
            track_store_operation("fetch", time.perf_counter() - start, success=False)
            raise

        track_store_operation("fetch", time.perf_counter() - start)
        return result

    async def _fetch(self, request: FetchRequest) -> FetchResult:
        threshold = request.similarity_threshold
        metric = self._configuration.vector_schema.metric
        # Distances are non-negative under L2; other metrics score freely
        if threshold is not None and threshold < 0 and metric is DistanceMetric.EUCLID:
            raise ValidationError(
                f"Similarity threshold must not be negative, got {threshold}",
                code=ErrorCode.INVALID_THRESHOLD,
                details={"threshold": threshold, "metric": metric.value},
            )

        limits = self._configuration.limits
        limit = request.fetch_limit
        if limit is None:
            limit = limits.default_fetch_limit
        limit = max(0, min(limit, limits.max_fetch_limit))

        if request.semantic_query is None:
            mode = "metadata"
            raw = await self._backend.fetch_all()
        else:
            mode = "semantic"
            vectors = await self._embedding_provider.embed([request.semantic_query])
            self._check_vector_count(1, vectors)
            self._check_dimensions(vectors[0])
            raw = await self._backend.search(vectors[0], top_k=limit, threshold=threshold)

        records, skipped = self._decode(raw)
        if request.predicate is not None:
            records = [r for r in records if request.predicate.evaluate(r)]
        records = sort_records(records, request.sort_descriptors)[:limit]

        track_fetch_results(mode, len(records), skipped)
        logger.debug(
            f"Fetched {len(records)} records",
            extra={"mode": mode, "limit": limit, "skipped": skipped},
        )
        return FetchResult(records=records)

    async def delete(self, ids: Sequence[str]) -> None:
        """Delete records by id. Unknown ids are ignored."""
        start = time.perf_counter()
        try:
            await self._backend.delete(list(ids))
        except VectorDataStoreError:
            track_store_operation("delete", time.perf_counter() - start, success=False)
            raise
        track_store_operation("delete", time.perf_counter() - start)

    async def delete_records(self, records: Sequence[R | Snapshot]) -> None:
        """Delete the given records or snapshots."""
        await self.delete([record.id for record in _unwrap(records)])

    async def run_transaction(
        self,
        body: Callable[[EditingState[R]], T | Awaitable[T]],
    ) -> T:
        """Record changes in ``body``, then apply them.

        Changes are applied as every delete, then every update, then every
        insert; updates and inserts go through ``save`` in chunks of
        ``max_batch_upsert``. There is no rollback: if a phase fails the
        later phases are skipped, earlier phases stay applied, and the error
        propagates with ``details["transaction_phase"]`` set. If ``body``
        raises, nothing is applied.

        Args:
            body: Sync or async callable receiving the editing state.

        Returns:
            Whatever ``body`` returned.
        """
        state: EditingState[R] = EditingState()
        result = body(state)
        if inspect.isawaitable(result):
            result = await result

        start = time.perf_counter()
        try:
            await self._apply(state)
        except VectorDataStoreError as e:
            e.details["transaction_phase"] = state.phase.value
            track_transaction_phase(state.phase.value, success=False)
            track_store_operation(
                "transaction", time.perf_counter() - start, success=False
            )
            logger.error(
                f"Transaction failed while {state.phase.value}: {e.message}",
                extra={"error_code": e.code.value, "phase": state.phase.value},
            )
            raise

        track_store_operation("transaction", time.perf_counter() - start)
        logger.info(
            "Transaction committed",
            extra={
                "store": self._configuration.store_name,
                "changes": len(state.changes),
            },
        )
        return result

    async def _apply(self, state: EditingState[R]) -> None:
        deletes = state.of_kind(ChangeKind.DELETE)
        if deletes:
            state.phase = TransactionPhase.APPLYING_DELETES
            await self.delete([snapshot.model.id for snapshot in deletes])
            track_transaction_phase(state.phase.value)

        processor = BatchProcessor(batch_size=self._configuration.limits.max_batch_upsert)
        for phase, kind in (
            (TransactionPhase.APPLYING_UPDATES, ChangeKind.UPDATE),
            (TransactionPhase.APPLYING_INSERTS, ChangeKind.INSERT),
        ):
            snapshots = state.of_kind(kind)
            if not snapshots:
                continue
            state.phase = phase
            await processor.process(snapshots, self.save)
            track_transaction_phase(phase.value)

        state.phase = TransactionPhase.COMMITTED

    def _decode(self, raw: list[dict[str, str]]) -> tuple[list[R], int]:
        records: list[R] = []
        skipped = 0
        for metadata in raw:
            try:
                records.append(self._record_type.from_metadata(metadata))
            except RecordError as e:
                skipped += 1
                logger.debug(
                    f"Skipping undecodable record: {e.message}",
                    extra={"id": metadata.get("id")},
                )
        return records, skipped

    def _check_vector_count(self, expected: int, vectors: list[Vector]) -> None:
        if len(vectors) != expected:
            raise ValidationError(
                f"Provider returned {len(vectors)} vectors for {expected} inputs",
                code=ErrorCode.VECTOR_COUNT_MISMATCH,
                details={"expected": expected, "got": len(vectors)},
            )

    def _check_dimensions(self, vector: Vector) -> None:
        expected = self._configuration.vector_schema.vector_dimensions
        if len(vector) != expected:
            raise ValidationError(
                f"Vector has {len(vector)} dimensions, expected {expected}",
                code=ErrorCode.INVALID_VECTOR_DIMENSIONS,
                details={"expected": expected, "got": len(vector)},
            )
