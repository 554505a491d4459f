"""Tests for document API routes."""

from unittest.mock import patch

import pytest
from httpx import ASGITransport, AsyncClient

from vectordatastore.api.app import create_app, get_status_code, run
from vectordatastore.api.routes import DeleteDocumentsRequest, SaveDocumentsRequest
from vectordatastore.config import Settings
from vectordatastore.embeddings.mock import MockEmbeddingProvider
from vectordatastore.exceptions import ErrorCode
from vectordatastore.records.document import Document
from vectordatastore.store.store import VectorDataStore


def _document_json(doc_id: str, **fields: object) -> dict[str, object]:
    return {"id": doc_id, "content": f"content of {doc_id}", **fields}


class TestRequestModels:
    """Tests for request models."""

    def test_save_request_parses_documents(self) -> None:
        """Documents are parsed with their defaults."""
        req = SaveDocumentsRequest.model_validate({"documents": [_document_json("a")]})

        (doc,) = req.documents
        assert doc.id == "a"
        assert doc.title == ""
        assert doc.tags == []

    def test_delete_request(self) -> None:
        """Request can be created."""
        req = DeleteDocumentsRequest(ids=["a", "b"])
        assert req.ids == ["a", "b"]


class TestStatusCodes:
    """Tests for error code to HTTP status mapping."""

    @pytest.mark.parametrize(
        ("code", "status"),
        [
            (ErrorCode.EMPTY_BATCH, 400),
            (ErrorCode.BATCH_TOO_LARGE, 400),
            (ErrorCode.INVALID_THRESHOLD, 400),
            (ErrorCode.METADATA_TOO_LARGE, 400),
            (ErrorCode.COLLECTION_NOT_FOUND, 404),
            (ErrorCode.EMBEDDING_RATE_LIMITED, 429),
            (ErrorCode.UNSUPPORTED_OPERATION, 501),
            (ErrorCode.BACKEND_UNAUTHORIZED, 502),
            (ErrorCode.EMBEDDING_UNAUTHORIZED, 502),
            (ErrorCode.BACKEND_TRANSIENT, 503),
            (ErrorCode.EMBEDDING_TRANSIENT, 503),
            (ErrorCode.BACKEND_ERROR, 500),
            (ErrorCode.INTERNAL_ERROR, 500),
        ],
    )
    def test_mapping(self, code: ErrorCode, status: int) -> None:
        """Each error code maps to the expected status."""
        assert get_status_code(code) == status


class TestSaveEndpoint:
    """Tests for POST /api/v1/documents."""

    @pytest.mark.asyncio
    async def test_save_returns_201(self, client: AsyncClient) -> None:
        """Saving documents returns the saved count."""
        response = await client.post(
            "/api/v1/documents",
            json={"documents": [_document_json("a"), _document_json("b")]},
        )

        assert response.status_code == 201
        assert response.json() == {"saved": 2}

    @pytest.mark.asyncio
    async def test_empty_batch_returns_400(self, client: AsyncClient) -> None:
        """An empty batch is a structured client error."""
        response = await client.post("/api/v1/documents", json={"documents": []})

        assert response.status_code == 400
        assert response.json()["error"]["code"] == ErrorCode.EMPTY_BATCH.value

    @pytest.mark.asyncio
    async def test_validates_request(self, client: AsyncClient) -> None:
        """Documents without content fail request validation."""
        response = await client.post(
            "/api/v1/documents",
            json={"documents": [{"id": "a"}]},
        )

        assert response.status_code == 422


class TestSearchEndpoint:
    """Tests for POST /api/v1/documents/search."""

    @pytest.mark.asyncio
    async def test_metadata_search(self, client: AsyncClient) -> None:
        """A search without query text returns filtered documents."""
        await client.post(
            "/api/v1/documents",
            json={
                "documents": [
                    _document_json("a", source="wiki"),
                    _document_json("b", source="blog"),
                ]
            },
        )

        response = await client.post(
            "/api/v1/documents/search",
            json={"predicate": {"op": "equal", "key": "source", "value": "wiki"}},
        )

        assert response.status_code == 200
        data = response.json()
        assert data["count"] == 1
        assert data["records"][0]["id"] == "a"
        assert data["records"][0]["content"] == "content of a"

    @pytest.mark.asyncio
    async def test_semantic_search(
        self,
        store: VectorDataStore[Document],
        client: AsyncClient,
    ) -> None:
        """Query text returns the nearest document first."""
        embedder = store.embedding_provider
        assert isinstance(embedder, MockEmbeddingProvider)
        near = Document(id="near", content="near")
        far = Document(id="far", content="far")
        embedder.set_embedding(near.embedding_text, [1.0, 0.0, 0.0])
        embedder.set_embedding(far.embedding_text, [0.0, 0.0, 5.0])
        embedder.set_embedding("question", [0.9, 0.0, 0.0])
        await store.save([far, near])

        response = await client.post(
            "/api/v1/documents/search",
            json={"semantic_query": "question", "fetch_limit": 1},
        )

        assert response.status_code == 200
        assert [r["id"] for r in response.json()["records"]] == ["near"]

    @pytest.mark.asyncio
    async def test_negative_threshold_returns_400(self, client: AsyncClient) -> None:
        """A negative threshold is rejected."""
        response = await client.post(
            "/api/v1/documents/search",
            json={"semantic_query": "q", "similarity_threshold": -1},
        )

        assert response.status_code == 400
        assert response.json()["error"]["code"] == ErrorCode.INVALID_THRESHOLD.value

    @pytest.mark.asyncio
    async def test_unknown_predicate_op(self, client: AsyncClient) -> None:
        """Unknown predicate operators fail request validation."""
        response = await client.post(
            "/api/v1/documents/search",
            json={"predicate": {"op": "regex", "key": "title", "value": ".*"}},
        )

        assert response.status_code == 422


class TestDeleteEndpoint:
    """Tests for DELETE /api/v1/documents."""

    @pytest.mark.asyncio
    async def test_delete(
        self,
        store: VectorDataStore[Document],
        client: AsyncClient,
    ) -> None:
        """Deleting returns the number of ids submitted."""
        await store.save([Document(id="a", content="x"), Document(id="b", content="y")])

        response = await client.request(
            "DELETE",
            "/api/v1/documents",
            json={"ids": ["a", "missing"]},
        )

        assert response.status_code == 200
        assert response.json() == {"requested": 2}
        assert await store.backend.count() == 1


class TestWithoutStore:
    """Tests for an app whose store was never built."""

    @pytest.mark.asyncio
    async def test_routes_report_configuration_error(self) -> None:
        """Requests fail with a configuration error."""
        app = create_app()
        transport = ASGITransport(app=app)
        async with AsyncClient(transport=transport, base_url="http://test") as client:
            response = await client.post("/api/v1/documents/search", json={})

        assert response.status_code == 500
        assert response.json()["error"]["code"] == ErrorCode.CONFIGURATION_ERROR.value


class TestRun:
    """Tests for the uvicorn entry point."""

    def test_serves_configured_host_and_port(self) -> None:
        """run passes the API settings to uvicorn."""
        settings = Settings(api_host="127.0.0.1", api_port=9001, log_level="DEBUG")

        with patch("vectordatastore.api.app.uvicorn.run") as mock_run:
            run(settings)

        mock_run.assert_called_once_with(
            "vectordatastore.api.app:app",
            host="127.0.0.1",
            port=9001,
            log_level="debug",
        )
