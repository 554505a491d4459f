"""Prometheus metrics for the vector data store.

Provides metrics instrumentation for:
- HTTP request latency and counts
- Store operations (save, fetch, delete, transaction)
- Embedding request latency and batch sizes
- Backend operation latency
- Retries and transaction phases
"""

import time
from collections.abc import Awaitable, Callable

from fastapi import Request, Response
from prometheus_client import (
    CONTENT_TYPE_LATEST,
    Counter,
    Gauge,
    Histogram,
    generate_latest,
)
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.types import ASGIApp

from vectordatastore.logging_config import get_logger

logger = get_logger(__name__)

# HTTP Request Metrics
HTTP_REQUEST_DURATION = Histogram(
    "http_request_duration_seconds",
    "HTTP request duration in seconds",
    ["method", "endpoint", "status_code"],
    buckets=[0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0],
)

HTTP_REQUEST_TOTAL = Counter(
    "http_requests_total",
    "Total HTTP requests",
    ["method", "endpoint", "status_code"],
)

# Store Metrics
STORE_OPERATION_DURATION = Histogram(
    "store_operation_duration_seconds",
    "Store operation duration in seconds",
    ["operation", "status"],
    buckets=[0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0],
)

STORE_OPERATION_TOTAL = Counter(
    "store_operations_total",
    "Total store operations",
    ["operation", "status"],
)

STORE_RECORDS_RETURNED = Histogram(
    "store_records_returned",
    "Number of records returned per fetch",
    ["mode"],  # "mode" label values: semantic, metadata
    buckets=[0, 1, 2, 5, 10, 20, 50, 100],
)

STORE_DECODE_SKIPPED_TOTAL = Counter(
    "store_decode_skipped_total",
    "Stored entries skipped because they could not be decoded",
)

# Embedding Metrics
EMBEDDING_REQUEST_DURATION = Histogram(
    "embedding_request_duration_seconds",
    "Embedding request duration in seconds",
    ["model", "status"],
    buckets=[0.01, 0.05, 0.1, 0.25, 0.5, 1.0, 2.0, 5.0],
)

EMBEDDING_REQUEST_TOTAL = Counter(
    "embedding_requests_total",
    "Total embedding requests",
    ["model", "status"],
)

EMBEDDING_BATCH_SIZE = Histogram(
    "embedding_batch_size",
    "Embedding batch size",
    ["model"],
    buckets=[1, 5, 10, 25, 50, 100, 250, 500, 1000],
)

# Backend Metrics
BACKEND_OPERATION_DURATION = Histogram(
    "backend_operation_duration_seconds",
    "Vector backend operation duration",
    ["backend", "operation", "status"],
    buckets=[0.001, 0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.0],
)

BACKEND_ENTRIES = Gauge(
    "backend_entries",
    "Entries currently held by an in-process backend",
    ["backend"],
)

# Retry and Transaction Metrics
RETRY_ATTEMPTS_TOTAL = Counter(
    "retry_attempts_total",
    "Retries scheduled after a transient failure",
    ["operation"],
)

TRANSACTION_PHASE_TOTAL = Counter(
    "transaction_phase_total",
    "Transaction phases applied",
    ["phase", "status"],
)


class MetricsMiddleware(BaseHTTPMiddleware):
    """Middleware to collect HTTP request metrics."""

    def __init__(self, app: ASGIApp) -> None:
        """Initialize the middleware."""
        super().__init__(app)

    async def dispatch(
        self,
        request: Request,
        call_next: Callable[[Request], Awaitable[Response]],
    ) -> Response:
        """Process request and collect metrics."""
        # Skip metrics endpoint to avoid recursion
        if request.url.path == "/metrics":
            return await call_next(request)

        start_time = time.perf_counter()

        response = await call_next(request)

        duration = time.perf_counter() - start_time

        # Normalize endpoint for cardinality control
        endpoint = self._normalize_endpoint(request.url.path)

        HTTP_REQUEST_DURATION.labels(
            method=request.method,
            endpoint=endpoint,
            status_code=response.status_code,
        ).observe(duration)

        HTTP_REQUEST_TOTAL.labels(
            method=request.method,
            endpoint=endpoint,
            status_code=response.status_code,
        ).inc()

        return response

    def _normalize_endpoint(self, path: str) -> str:
        """Normalize endpoint path to reduce cardinality."""
        if path.startswith("/health"):
            return "/health"
        if path.startswith("/api/v1/"):
            parts = path.split("/")
            if len(parts) >= 4:
                return f"/api/v1/{parts[3]}"
        return path


def get_metrics() -> bytes:
    """Generate Prometheus metrics output."""
    return generate_latest()


def get_metrics_content_type() -> str:
    """Get the content type for metrics response."""
    return CONTENT_TYPE_LATEST


def _status(success: bool) -> str:
    return "success" if success else "error"


def track_store_operation(
    operation: str,
    duration: float,
    success: bool = True,
) -> None:
    """Track a store operation.

    Args:
        operation: Operation name (save, fetch, delete, transaction).
        duration: Duration in seconds.
        success: Whether the operation succeeded.
    """
    status = _status(success)
    STORE_OPERATION_DURATION.labels(operation=operation, status=status).observe(
        duration
    )
    STORE_OPERATION_TOTAL.labels(operation=operation, status=status).inc()


def track_fetch_results(mode: str, returned: int, skipped: int = 0) -> None:
    """Track how many records a fetch produced and how many were undecodable."""
    STORE_RECORDS_RETURNED.labels(mode=mode).observe(returned)
    if skipped:
        STORE_DECODE_SKIPPED_TOTAL.inc(skipped)


def track_embedding_request(
    model: str,
    duration: float,
    batch_size: int,
    success: bool = True,
) -> None:
    """Track embedding request metrics.

    Args:
        model: Embedding model name.
        duration: Request duration in seconds.
        batch_size: Number of texts in the batch.
        success: Whether the request succeeded.
    """
    status = _status(success)

    EMBEDDING_REQUEST_DURATION.labels(model=model, status=status).observe(duration)
    EMBEDDING_REQUEST_TOTAL.labels(model=model, status=status).inc()
    EMBEDDING_BATCH_SIZE.labels(model=model).observe(batch_size)


def track_backend_operation(
    backend: str,
    operation: str,
    duration: float,
    success: bool = True,
) -> None:
    """Track a vector backend call."""
    BACKEND_OPERATION_DURATION.labels(
        backend=backend,
        operation=operation,
        status=_status(success),
    ).observe(duration)


def set_backend_entries(backend: str, entries: int) -> None:
    """Record the current entry count of an in-process backend."""
    BACKEND_ENTRIES.labels(backend=backend).set(entries)


def track_retry_attempt(operation: str) -> None:
    """Count a retry scheduled for ``operation``."""
    RETRY_ATTEMPTS_TOTAL.labels(operation=operation).inc()


def track_transaction_phase(phase: str, success: bool = True) -> None:
    """Count a transaction phase that was applied or failed."""
    TRANSACTION_PHASE_TOTAL.labels(phase=phase, status=_status(success)).inc()
