"""Qdrant backend."""

import json
import time
from collections.abc import Awaitable, Callable, Sequence
from typing import Any, TypeVar
from uuid import NAMESPACE_URL, uuid4, uuid5

import httpx
from qdrant_client import AsyncQdrantClient
from qdrant_client.http.exceptions import ResponseHandlingException, UnexpectedResponse
from qdrant_client.models import Distance, PointIdsList, PointStruct, VectorParams

from vectordatastore.backends.base import VectorBackend
from vectordatastore.backends.models import Payload
from vectordatastore.config import DistanceMetric, QdrantSettings, get_settings
from vectordatastore.exceptions import BackendError, ErrorCode
from vectordatastore.logging_config import get_logger
from vectordatastore.observability.metrics import track_backend_operation
from vectordatastore.utils.retry import RETRYABLE_STATUS_CODES, RetryPolicy

logger = get_logger(__name__)

T = TypeVar("T")

_DISTANCES = {
    DistanceMetric.COSINE: Distance.COSINE,
    DistanceMetric.DOT: Distance.DOT,
    DistanceMetric.EUCLID: Distance.EUCLID,
}


def point_id(record_id: str) -> str:
    """Stable Qdrant point id (UUIDv5) for a record id."""
    return str(uuid5(NAMESPACE_URL, f"vectorstore://{record_id}"))


def _stringify_payload(payload: dict[str, Any] | None) -> dict[str, str]:
    if not payload:
        return {}
    return {
        key: value if isinstance(value, str) else json.dumps(value)
        for key, value in payload.items()
    }


class QdrantBackend(VectorBackend):
    """Qdrant vector backend.

    Points are addressed by a UUIDv5 of the record id and carry the
    metadata as their payload. Every call is wrapped in the retry policy.
    The ``threshold`` passed to ``search`` maps to Qdrant's
    ``score_threshold``, whose direction depends on the collection metric.
    """

    name = "qdrant"

    def __init__(
        self,
        collection_name: str,
        vector_dimensions: int,
        metric: DistanceMetric = DistanceMetric.EUCLID,
        settings: QdrantSettings | None = None,
        client: AsyncQdrantClient | None = None,
        retry_policy: RetryPolicy | None = None,
    ) -> None:
        """Initialize Qdrant backend.

        Args:
            collection_name: Collection holding the store's points.
            vector_dimensions: Vector size used when creating the collection.
            metric: Distance metric used when creating the collection.
            settings: Qdrant configuration.
            client: Existing client (for testing).
            retry_policy: Retry policy for each call.
        """
        self._collection = collection_name
        self._dimensions = vector_dimensions
        self._metric = metric
        self._settings = settings or get_settings().qdrant
        self._client = client
        self._owns_client = client is None
        self._retry_policy = retry_policy or RetryPolicy.from_settings(
            get_settings().retry
        )

    async def _get_client(self) -> AsyncQdrantClient:
        """Get or create Qdrant client."""
        if self._client is None:
            api_key = None
            if self._settings.api_key:
                api_key = self._settings.api_key.get_secret_value()

            self._client = AsyncQdrantClient(
                url=self._settings.url,
                api_key=api_key,
                timeout=self._settings.timeout,
            )
        return self._client

    async def close(self) -> None:
        """Close the Qdrant client."""
        if self._owns_client and self._client is not None:
            await self._client.close()
            self._client = None

    async def _call(
        self,
        operation: str,
        fn: Callable[[AsyncQdrantClient], Awaitable[T]],
    ) -> T:
        """Run one client call with error mapping, retries and metrics."""
        client = await self._get_client()

        async def attempt() -> T:
            try:
                return await fn(client)
            except UnexpectedResponse as e:
                raise self._status_error(operation, e.status_code) from e
            except (
                ResponseHandlingException,
                httpx.TimeoutException,
                httpx.NetworkError,
            ) as e:
                raise BackendError(
                    f"Qdrant {operation} failed: {e}",
                    code=ErrorCode.BACKEND_TRANSIENT,
                    details={"collection": self._collection, "error": str(e)},
                ) from e
            except Exception as e:
                raise BackendError(
                    f"Qdrant {operation} failed: {e}",
                    code=ErrorCode.BACKEND_ERROR,
                    details={"collection": self._collection, "error": str(e)},
                ) from e

        start = time.perf_counter()
        try:
            result = await self._retry_policy.execute(attempt, name=f"qdrant.{operation}")
        except BackendError as e:
            track_backend_operation(
                self.name, operation, time.perf_counter() - start, success=False
            )
            logger.error(
                f"Qdrant {operation} failed: {e.message}",
                extra={"collection": self._collection, "error_code": e.code.value},
            )
            raise

        track_backend_operation(self.name, operation, time.perf_counter() - start)
        return result

    def _status_error(self, operation: str, status: int | None) -> BackendError:
        """Map an HTTP status from Qdrant to a typed backend error."""
        details = {"collection": self._collection, "status_code": status}

        if status in (401, 403):
            return BackendError(
                "Qdrant rejected the credentials",
                code=ErrorCode.BACKEND_UNAUTHORIZED,
                details=details,
            )
        if status == 404:
            return BackendError(
                f"Collection not found: {self._collection}",
                code=ErrorCode.COLLECTION_NOT_FOUND,
                details=details,
            )
        if status in RETRYABLE_STATUS_CODES:
            return BackendError(
                f"Qdrant {operation} temporarily unavailable ({status})",
                code=ErrorCode.BACKEND_TRANSIENT,
                details=details,
            )
        return BackendError(
            f"Qdrant {operation} returned {status}",
            code=ErrorCode.BACKEND_ERROR,
            details=details,
        )

    async def ensure_collection(self) -> bool:
        """Create the collection if it does not exist.

        Returns:
            True if the collection was created.
        """
        if await self._call("collection_exists", lambda c: c.collection_exists(self._collection)):
            return False

        await self._call(
            "create_collection",
            lambda c: c.create_collection(
                collection_name=self._collection,
                vectors_config=VectorParams(
                    size=self._dimensions,
                    distance=_DISTANCES[self._metric],
                ),
            ),
        )
        logger.info(
            f"Created collection: {self._collection}",
            extra={"dimensions": self._dimensions, "metric": self._metric.value},
        )
        return True

    async def upsert(self, payloads: Sequence[Payload]) -> None:
        """Upsert payloads as points keyed by their record id."""
        if not payloads:
            return

        points = [
            PointStruct(
                id=point_id(payload.id) if payload.id else str(uuid4()),
                vector=list(payload.vector),
                payload=dict(payload.metadata),
            )
            for payload in payloads
        ]

        await self._call(
            "upsert",
            lambda c: c.upsert(collection_name=self._collection, points=points, wait=True),
        )
        logger.debug(
            f"Upserted {len(points)} points",
            extra={"collection": self._collection},
        )

    async def search(
        self,
        vector: Sequence[float],
        top_k: int,
        threshold: float | None = None,
    ) -> list[dict[str, str]]:
        """Query the nearest points."""
        if top_k <= 0:
            return []

        response = await self._call(
            "search",
            lambda c: c.query_points(
                collection_name=self._collection,
                query=list(vector),
                limit=top_k,
                score_threshold=threshold,
                with_payload=True,
            ),
        )
        return [_stringify_payload(point.payload) for point in response.points]

    async def delete(self, ids: Sequence[str]) -> None:
        """Delete points by record id."""
        if not ids:
            return

        selector = PointIdsList(points=[point_id(record_id) for record_id in ids])
        await self._call(
            "delete",
            lambda c: c.delete(
                collection_name=self._collection,
                points_selector=selector,
                wait=True,
            ),
        )
        logger.debug(
            f"Deleted {len(ids)} points",
            extra={"collection": self._collection},
        )

    async def fetch_all(self) -> list[dict[str, str]]:
        """Scroll through the whole collection."""
        results: list[dict[str, str]] = []
        offset: Any = None

        while True:
            records, offset = await self._call(
                "scroll",
                lambda c, offset=offset: c.scroll(
                    collection_name=self._collection,
                    limit=self._settings.scroll_batch_size,
                    offset=offset,
                    with_payload=True,
                    with_vectors=False,
                ),
            )
            results.extend(_stringify_payload(record.payload) for record in records)
            if offset is None:
                return results

    async def count(self) -> int:
        """Exact number of points in the collection."""
        result = await self._call(
            "count",
            lambda c: c.count(collection_name=self._collection, exact=True),
        )
        return result.count
