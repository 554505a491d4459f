"""Vector data store exception hierarchy.

All custom exceptions inherit from VectorDataStoreError.
Each exception has an error code for structured error handling.
"""

from enum import Enum
from typing import Any


class ErrorCode(str, Enum):
    """Error codes for structured error handling."""

    # General errors (1xxx)
    INTERNAL_ERROR = "VDS-1000"
    CONFIGURATION_ERROR = "VDS-1001"
    VALIDATION_ERROR = "VDS-1002"
    UNSUPPORTED_OPERATION = "VDS-1003"

    # Request validation errors (2xxx)
    EMPTY_BATCH = "VDS-2000"
    BATCH_TOO_LARGE = "VDS-2001"
    VECTOR_COUNT_MISMATCH = "VDS-2002"
    INVALID_VECTOR_DIMENSIONS = "VDS-2003"
    MISSING_ID_IN_METADATA = "VDS-2004"
    METADATA_TOO_LARGE = "VDS-2005"
    INVALID_THRESHOLD = "VDS-2006"
    DIMENSION_MISMATCH = "VDS-2007"

    # Embedding provider errors (3xxx)
    EMBEDDING_SERVICE_ERROR = "VDS-3000"
    EMBEDDING_UNAUTHORIZED = "VDS-3001"
    EMBEDDING_RATE_LIMITED = "VDS-3002"
    EMBEDDING_TRANSIENT = "VDS-3003"
    EMBEDDING_MALFORMED_RESPONSE = "VDS-3004"

    # Vector backend errors (4xxx)
    BACKEND_ERROR = "VDS-4000"
    COLLECTION_NOT_FOUND = "VDS-4001"
    BACKEND_UNAUTHORIZED = "VDS-4002"
    BACKEND_TRANSIENT = "VDS-4003"

    # Record errors (5xxx)
    RECORD_DECODE_ERROR = "VDS-5000"


RETRYABLE_CODES = frozenset(
    {
        ErrorCode.EMBEDDING_RATE_LIMITED,
        ErrorCode.EMBEDDING_TRANSIENT,
        ErrorCode.BACKEND_TRANSIENT,
    }
)


class VectorDataStoreError(Exception):
    """Base exception for all vector data store errors.

    Attributes:
        message: Human-readable error message.
        code: Structured error code.
        details: Additional error context.
    """

    def __init__(
        self,
        message: str,
        code: ErrorCode = ErrorCode.INTERNAL_ERROR,
        details: dict[str, Any] | None = None,
    ) -> None:
        self.message = message
        self.code = code
        self.details = details or {}
        super().__init__(self.message)

    @property
    def retryable(self) -> bool:
        """Whether the failure is transient and worth retrying."""
        return self.code in RETRYABLE_CODES

    def to_dict(self) -> dict[str, Any]:
        """Convert exception to dictionary for API responses."""
        return {
            "error": {
                "code": self.code.value,
                "message": self.message,
                "details": self.details,
            }
        }


class ConfigurationError(VectorDataStoreError):
    """Configuration or environment error."""

    def __init__(
        self,
        message: str,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, ErrorCode.CONFIGURATION_ERROR, details)


class UnsupportedOperationError(VectorDataStoreError):
    """Operation is not implemented by this component."""

    def __init__(
        self,
        message: str,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, ErrorCode.UNSUPPORTED_OPERATION, details)


class ValidationError(VectorDataStoreError):
    """Request validation error, raised before any backend call."""

    def __init__(
        self,
        message: str,
        code: ErrorCode = ErrorCode.VALIDATION_ERROR,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, code, details)


class EmbeddingError(VectorDataStoreError):
    """Embedding provider error."""

    def __init__(
        self,
        message: str,
        code: ErrorCode = ErrorCode.EMBEDDING_SERVICE_ERROR,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, code, details)


class BackendError(VectorDataStoreError):
    """Vector backend operation error."""

    def __init__(
        self,
        message: str,
        code: ErrorCode = ErrorCode.BACKEND_ERROR,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, code, details)


class RecordError(VectorDataStoreError):
    """Record could not be rebuilt from stored metadata."""

    def __init__(
        self,
        message: str,
        code: ErrorCode = ErrorCode.RECORD_DECODE_ERROR,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, code, details)
