"""Observability module for metrics and monitoring."""

from vectordatastore.observability.metrics import (
    MetricsMiddleware,
    get_metrics,
    track_backend_operation,
    track_embedding_request,
    track_store_operation,
)

__all__ = [
    "MetricsMiddleware",
    "get_metrics",
    "track_backend_operation",
    "track_embedding_request",
    "track_store_operation",
]
