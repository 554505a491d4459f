"""Batching and retry helpers."""

from vectordatastore.utils.batching import BatchProcessor, chunked
from vectordatastore.utils.retry import RETRYABLE_STATUS_CODES, RetryPolicy, is_retryable

__all__ = [
    "RETRYABLE_STATUS_CODES",
    "BatchProcessor",
    "RetryPolicy",
    "chunked",
    "is_retryable",
]
