"""Tests for the Qdrant backend."""

from unittest.mock import AsyncMock, MagicMock

import httpx
import pytest
from qdrant_client.http.exceptions import ResponseHandlingException, UnexpectedResponse
from qdrant_client.models import Distance

from vectordatastore.backends.models import Payload
from vectordatastore.backends.qdrant import QdrantBackend, point_id
from vectordatastore.config import DistanceMetric, QdrantSettings
from vectordatastore.exceptions import BackendError, ErrorCode
from vectordatastore.utils.retry import RetryPolicy


def _unexpected(status: int) -> UnexpectedResponse:
    return UnexpectedResponse(
        status_code=status,
        reason_phrase="error",
        content=b"",
        headers=httpx.Headers(),
    )


def _point(payload: dict) -> MagicMock:
    point = MagicMock()
    point.payload = payload
    return point


class TestPointId:
    """Tests for point id derivation."""

    def test_stable(self) -> None:
        """The same record id maps to the same point id."""
        assert point_id("doc-1") == point_id("doc-1")

    def test_distinct(self) -> None:
        """Different record ids map to different point ids."""
        assert point_id("doc-1") != point_id("doc-2")


class TestQdrantBackend:
    """Tests for QdrantBackend."""

    def _create_mock_client(self) -> AsyncMock:
        """Create a mock Qdrant client."""
        client = AsyncMock()
        client.collection_exists = AsyncMock(return_value=False)
        client.create_collection = AsyncMock()
        client.upsert = AsyncMock()
        mock_response = MagicMock()
        mock_response.points = []
        client.query_points = AsyncMock(return_value=mock_response)
        client.delete = AsyncMock()
        client.scroll = AsyncMock(return_value=([], None))
        client.close = AsyncMock()
        return client

    def _backend(
        self,
        client: AsyncMock,
        metric: DistanceMetric = DistanceMetric.EUCLID,
        max_attempts: int = 3,
    ) -> QdrantBackend:
        return QdrantBackend(
            collection_name="docs",
            vector_dimensions=3,
            metric=metric,
            settings=QdrantSettings(url="http://localhost:6333", scroll_batch_size=2),
            client=client,
            retry_policy=RetryPolicy(max_attempts=max_attempts, sleep=AsyncMock()),
        )

    @pytest.mark.asyncio
    async def test_ensure_collection_creates(self) -> None:
        """Missing collection is created with the configured metric."""
        client = self._create_mock_client()
        backend = self._backend(client, metric=DistanceMetric.COSINE)

        created = await backend.ensure_collection()

        assert created is True
        call_kwargs = client.create_collection.call_args.kwargs
        assert call_kwargs["collection_name"] == "docs"
        assert call_kwargs["vectors_config"].size == 3
        assert call_kwargs["vectors_config"].distance == Distance.COSINE

    @pytest.mark.asyncio
    async def test_ensure_collection_existing(self) -> None:
        """Existing collection is left alone."""
        client = self._create_mock_client()
        client.collection_exists.return_value = True
        backend = self._backend(client)

        assert await backend.ensure_collection() is False
        client.create_collection.assert_not_called()

    @pytest.mark.asyncio
    async def test_upsert(self) -> None:
        """Payloads become points keyed by hashed record id."""
        client = self._create_mock_client()
        backend = self._backend(client)

        await backend.upsert(
            [Payload(vector=[1.0, 2.0, 3.0], metadata={"id": "a", "title": "A"})]
        )

        call_kwargs = client.upsert.call_args.kwargs
        assert call_kwargs["collection_name"] == "docs"
        (point,) = call_kwargs["points"]
        assert point.id == point_id("a")
        assert point.vector == [1.0, 2.0, 3.0]
        assert point.payload == {"id": "a", "title": "A"}

    @pytest.mark.asyncio
    async def test_upsert_empty_skips_call(self) -> None:
        """No payloads means no request."""
        client = self._create_mock_client()
        await self._backend(client).upsert([])
        client.upsert.assert_not_called()

    @pytest.mark.asyncio
    async def test_search(self) -> None:
        """Search returns payloads as string metadata."""
        client = self._create_mock_client()
        client.query_points.return_value.points = [
            _point({"id": "a", "count": 3}),
            _point({"id": "b", "flag": True}),
        ]
        backend = self._backend(client)

        results = await backend.search([1.0, 0.0, 0.0], top_k=2, threshold=0.5)

        assert results == [{"id": "a", "count": "3"}, {"id": "b", "flag": "true"}]
        call_kwargs = client.query_points.call_args.kwargs
        assert call_kwargs["limit"] == 2
        assert call_kwargs["score_threshold"] == 0.5
        assert call_kwargs["with_payload"] is True

    @pytest.mark.asyncio
    async def test_search_zero_top_k(self) -> None:
        """top_k of zero makes no request."""
        client = self._create_mock_client()

        assert await self._backend(client).search([1.0, 0.0, 0.0], top_k=0) == []
        client.query_points.assert_not_called()

    @pytest.mark.asyncio
    async def test_delete(self) -> None:
        """Delete selects points by hashed id."""
        client = self._create_mock_client()
        backend = self._backend(client)

        await backend.delete(["a", "b"])

        selector = client.delete.call_args.kwargs["points_selector"]
        assert selector.points == [point_id("a"), point_id("b")]

    @pytest.mark.asyncio
    async def test_fetch_all_scrolls_pages(self) -> None:
        """fetch_all follows next_page_offset until it is None."""
        client = self._create_mock_client()
        client.scroll.side_effect = [
            ([_point({"id": "a"}), _point({"id": "b"})], "next"),
            ([_point({"id": "c"})], None),
        ]
        backend = self._backend(client)

        results = await backend.fetch_all()

        assert [r["id"] for r in results] == ["a", "b", "c"]
        offsets = [c.kwargs["offset"] for c in client.scroll.call_args_list]
        assert offsets == [None, "next"]

    @pytest.mark.asyncio
    async def test_count(self) -> None:
        """count returns the exact point count."""
        client = self._create_mock_client()
        client.count = AsyncMock(return_value=MagicMock(count=7))

        assert await self._backend(client).count() == 7

    @pytest.mark.asyncio
    async def test_close_does_not_close_injected_client(self) -> None:
        """Injected clients are owned by the caller."""
        client = self._create_mock_client()
        await self._backend(client).close()
        client.close.assert_not_called()

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        ("status", "code"),
        [
            (401, ErrorCode.BACKEND_UNAUTHORIZED),
            (403, ErrorCode.BACKEND_UNAUTHORIZED),
            (404, ErrorCode.COLLECTION_NOT_FOUND),
            (400, ErrorCode.BACKEND_ERROR),
        ],
    )
    async def test_status_mapping(self, status: int, code: ErrorCode) -> None:
        """Non-retryable statuses map to typed errors on the first attempt."""
        client = self._create_mock_client()
        client.query_points.side_effect = _unexpected(status)
        backend = self._backend(client)

        with pytest.raises(BackendError) as exc_info:
            await backend.search([1.0, 0.0, 0.0], top_k=1)

        assert exc_info.value.code == code
        assert exc_info.value.details["status_code"] == status
        assert client.query_points.await_count == 1

    @pytest.mark.asyncio
    async def test_transient_status_is_retried(self) -> None:
        """503 is retried and then succeeds."""
        client = self._create_mock_client()
        client.upsert.side_effect = [_unexpected(503), None]
        backend = self._backend(client)

        await backend.upsert([Payload(vector=[1.0, 0.0, 0.0], metadata={"id": "a"})])

        assert client.upsert.await_count == 2

    @pytest.mark.asyncio
    async def test_transport_failure_is_transient(self) -> None:
        """Transport failures exhaust retries with the transient code."""
        client = self._create_mock_client()
        client.delete.side_effect = ResponseHandlingException(Exception("down"))
        backend = self._backend(client, max_attempts=2)

        with pytest.raises(BackendError) as exc_info:
            await backend.delete(["a"])

        assert exc_info.value.code == ErrorCode.BACKEND_TRANSIENT
        assert client.delete.await_count == 2
