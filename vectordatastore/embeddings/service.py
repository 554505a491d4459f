"""Embedding provider interface and HTTP implementation."""

import time
from abc import ABC, abstractmethod
from collections.abc import Sequence
from typing import Any

import httpx

from vectordatastore.config import EmbeddingSettings, get_settings
from vectordatastore.exceptions import EmbeddingError, ErrorCode
from vectordatastore.logging_config import get_logger
from vectordatastore.observability.metrics import track_embedding_request
from vectordatastore.utils.batching import BatchProcessor
from vectordatastore.utils.retry import RETRYABLE_STATUS_CODES, RetryPolicy
from vectordatastore.vectors.distance import Vector

logger = get_logger(__name__)


class EmbeddingProvider(ABC):
    """Abstract base class for embedding providers.

    Converts texts to vectors. Implementations may suspend on network I/O.
    """

    @abstractmethod
    async def embed(self, texts: Sequence[str]) -> list[Vector]:
        """Generate one embedding per text.

        Args:
            texts: Texts to embed.

        Returns:
            Vectors in the same order and of the same count as ``texts``.

        Raises:
            EmbeddingError: If embedding fails.
        """
        ...

    @property
    @abstractmethod
    def model_name(self) -> str:
        """Get the model name used for embeddings."""
        ...

    async def close(self) -> None:
        """Release any resources held by the provider."""
        return None


class HTTPEmbeddingProvider(EmbeddingProvider):
    """Embedding provider for OpenAI-compatible embedding APIs.

    Large inputs are split into ``batch_size`` requests; each request is
    retried on transient failures and rate limiting.
    """

    def __init__(
        self,
        settings: EmbeddingSettings | None = None,
        client: httpx.AsyncClient | None = None,
        retry_policy: RetryPolicy | None = None,
    ) -> None:
        """Initialize the HTTP embedding provider.

        Args:
            settings: Embedding configuration. Uses defaults if not provided.
            client: HTTP client. Creates new one if not provided.
            retry_policy: Retry policy for each request.
        """
        self._settings = settings or get_settings().embedding
        self._client = client
        self._owns_client = client is None
        self._retry_policy = retry_policy or RetryPolicy.from_settings(
            get_settings().retry
        )

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create HTTP client."""
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self._settings.timeout)
        return self._client

    async def close(self) -> None:
        """Close the HTTP client if we own it."""
        if self._owns_client and self._client is not None:
            await self._client.aclose()
            self._client = None

    @property
    def model_name(self) -> str:
        """Get the model name."""
        return self._settings.model

    async def embed(self, texts: Sequence[str]) -> list[Vector]:
        """Generate embeddings for ``texts``."""
        if not texts:
            return []

        client = await self._get_client()
        url = f"{self._settings.base_url.rstrip('/')}/embeddings"

        async def embed_batch(batch: list[str]) -> list[Vector]:
            return await self._retry_policy.execute(
                lambda: self._embed_batch_request(client, url, batch),
                name="embed",
            )

        processor = BatchProcessor(batch_size=self._settings.batch_size)
        batches = await processor.process(list(texts), embed_batch)
        return [vector for batch in batches for vector in batch]

    def _headers(self) -> dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if self._settings.api_key:
            api_key = self._settings.api_key.get_secret_value()
            headers["Authorization"] = f"Bearer {api_key}"
        return headers

    async def _embed_batch_request(
        self,
        client: httpx.AsyncClient,
        url: str,
        texts: list[str],
    ) -> list[Vector]:
        """Make one embedding request.

        Args:
            client: HTTP client.
            url: Embedding endpoint URL.
            texts: Batch of texts.

        Returns:
            One vector per text.

        Raises:
            EmbeddingError: If the request fails or the response is malformed.
        """
        payload = {
            "input": texts,
            "model": self._settings.model,
            "encoding_format": "float",
        }

        start = time.perf_counter()
        try:
            response = await client.post(url, json=payload, headers=self._headers())
            response.raise_for_status()
            vectors = self._parse_response(response, expected=len(texts))
        except httpx.HTTPStatusError as e:
            self._track(start, len(texts), success=False)
            raise self._status_error(e.response.status_code) from e
        except httpx.TimeoutException as e:
            self._track(start, len(texts), success=False)
            logger.error(f"Embedding request timed out: {e}", extra={"url": url})
            raise EmbeddingError(
                "Embedding request timed out",
                code=ErrorCode.EMBEDDING_TRANSIENT,
                details={"url": url, "timeout": self._settings.timeout},
            ) from e
        except httpx.RequestError as e:
            self._track(start, len(texts), success=False)
            logger.error(f"Embedding request error: {e}", extra={"url": url})
            raise EmbeddingError(
                f"Failed to connect to embedding service: {e}",
                code=ErrorCode.EMBEDDING_TRANSIENT,
                details={"url": url},
            ) from e
        except EmbeddingError:
            self._track(start, len(texts), success=False)
            raise

        self._track(start, len(texts), success=True)
        return vectors

    def _track(self, start: float, batch_size: int, success: bool) -> None:
        track_embedding_request(
            model=self._settings.model,
            duration=time.perf_counter() - start,
            batch_size=batch_size,
            success=success,
        )

    def _status_error(self, status: int) -> EmbeddingError:
        """Map an HTTP status code to a typed provider error."""
        logger.error(
            f"Embedding request failed: {status}",
            extra={"status": status, "model": self._settings.model},
        )
        details = {"status_code": status}

        if status in (401, 403):
            return EmbeddingError(
                "Embedding service rejected the credentials",
                code=ErrorCode.EMBEDDING_UNAUTHORIZED,
                details=details,
            )
        if status == 429:
            return EmbeddingError(
                "Embedding rate limit exceeded",
                code=ErrorCode.EMBEDDING_RATE_LIMITED,
                details=details,
            )
        if status in RETRYABLE_STATUS_CODES:
            return EmbeddingError(
                f"Embedding service temporarily unavailable ({status})",
                code=ErrorCode.EMBEDDING_TRANSIENT,
                details=details,
            )
        return EmbeddingError(
            f"Embedding service returned {status}",
            code=ErrorCode.EMBEDDING_SERVICE_ERROR,
            details=details,
        )

    def _parse_response(self, response: httpx.Response, expected: int) -> list[Vector]:
        """Extract vectors from an OpenAI-style embeddings response."""
        try:
            data: Any = response.json()
            items = data["data"]
            if all("index" in item for item in items):
                items = sorted(items, key=lambda item: item["index"])
            vectors = [[float(x) for x in item["embedding"]] for item in items]
        except (KeyError, IndexError, TypeError, ValueError) as e:
            raise EmbeddingError(
                f"Invalid response from embedding service: {e}",
                code=ErrorCode.EMBEDDING_MALFORMED_RESPONSE,
                details={"error": str(e)},
            ) from e

        if len(vectors) != expected:
            raise EmbeddingError(
                f"Embedding service returned {len(vectors)} vectors for {expected} texts",
                code=ErrorCode.EMBEDDING_MALFORMED_RESPONSE,
                details={"expected": expected, "got": len(vectors)},
            )
        return vectors
