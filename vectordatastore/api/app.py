"""FastAPI application entry point.

Configures the application with logging, exception handling, metrics,
health checks and the document routes.
"""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from datetime import UTC, datetime
from typing import Any

import uvicorn
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse, Response

from vectordatastore import __version__
from vectordatastore.api.dependencies import DocumentStore, build_store
from vectordatastore.api.routes import router
from vectordatastore.backends.qdrant import QdrantBackend
from vectordatastore.config import Settings, get_settings
from vectordatastore.exceptions import (
    ErrorCode,
    UnsupportedOperationError,
    VectorDataStoreError,
)
from vectordatastore.logging_config import get_logger, setup_logging
from vectordatastore.observability.metrics import (
    MetricsMiddleware,
    get_metrics,
    get_metrics_content_type,
)

logger = get_logger(__name__)

_BAD_REQUEST = {
    ErrorCode.VALIDATION_ERROR,
    ErrorCode.EMPTY_BATCH,
    ErrorCode.BATCH_TOO_LARGE,
    ErrorCode.VECTOR_COUNT_MISMATCH,
    ErrorCode.INVALID_VECTOR_DIMENSIONS,
    ErrorCode.MISSING_ID_IN_METADATA,
    ErrorCode.METADATA_TOO_LARGE,
    ErrorCode.INVALID_THRESHOLD,
    ErrorCode.DIMENSION_MISMATCH,
}
_UPSTREAM_UNAUTHORIZED = {
    ErrorCode.EMBEDDING_UNAUTHORIZED,
    ErrorCode.BACKEND_UNAUTHORIZED,
}
_UNAVAILABLE = {
    ErrorCode.EMBEDDING_TRANSIENT,
    ErrorCode.BACKEND_TRANSIENT,
}


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan manager.

    Builds the store from settings unless one was injected, and closes
    the store it built on shutdown.
    """
    # Startup
    settings = get_settings()
    setup_logging(level=settings.log_level)
    logger.info(
        "Starting vector data store API",
        extra={
            "version": __version__,
            "environment": settings.environment.value,
        },
    )

    owned: DocumentStore | None = None
    if app.state.store is None:
        owned = build_store(settings)
        if isinstance(owned.backend, QdrantBackend):
            await owned.backend.ensure_collection()
        app.state.store = owned

    yield

    # Shutdown
    if owned is not None:
        await owned.close()
        app.state.store = None
    logger.info("Shutting down vector data store API")


def create_app(store: DocumentStore | None = None) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        store: Store to serve. Built from settings at startup if omitted.

    Returns:
        Configured FastAPI application instance.
    """
    settings = get_settings()

    app = FastAPI(
        title="Vector Data Store",
        description="Pluggable vector storage with semantic and metadata queries",
        version=__version__,
        lifespan=lifespan,
        debug=settings.debug,
    )
    app.state.store = store

    app.add_middleware(MetricsMiddleware)

    # Register exception handlers
    app.add_exception_handler(VectorDataStoreError, store_exception_handler)

    # Register routes
    app.add_api_route("/health", health_check, methods=["GET"], tags=["Health"])
    app.add_api_route("/health/ready", readiness_check, methods=["GET"], tags=["Health"])
    app.add_api_route("/health/live", liveness_check, methods=["GET"], tags=["Health"])
    app.add_api_route("/metrics", metrics_endpoint, methods=["GET"], tags=["Metrics"])
    app.include_router(router)

    return app


async def store_exception_handler(
    request: Request,
    exc: Exception,
) -> JSONResponse:
    """Handle VectorDataStoreError exceptions.

    Converts exceptions to structured JSON responses.
    """
    if not isinstance(exc, VectorDataStoreError):
        return JSONResponse(
            status_code=500,
            content={
                "error": {
                    "code": ErrorCode.INTERNAL_ERROR.value,
                    "message": str(exc),
                    "details": {},
                }
            },
        )

    logger.error(
        f"Request failed: {exc.message}",
        extra={
            "error_code": exc.code.value,
            "path": request.url.path,
            "details": exc.details,
        },
    )

    return JSONResponse(
        status_code=get_status_code(exc.code),
        content=exc.to_dict(),
    )


def get_status_code(code: ErrorCode) -> int:
    """Map error code to HTTP status code."""
    if code in _BAD_REQUEST:
        return 400
    if code is ErrorCode.COLLECTION_NOT_FOUND:
        return 404
    if code is ErrorCode.EMBEDDING_RATE_LIMITED:
        return 429
    if code is ErrorCode.UNSUPPORTED_OPERATION:
        return 501
    if code in _UPSTREAM_UNAUTHORIZED:
        return 502
    if code in _UNAVAILABLE:
        return 503
    return 500


async def health_check() -> dict[str, Any]:
    """Basic health check endpoint.

    Returns:
        Health status with version and timestamp.
    """
    return {
        "status": "healthy",
        "version": __version__,
        "timestamp": datetime.now(UTC).isoformat(),
    }


async def readiness_check(request: Request) -> dict[str, Any]:
    """Kubernetes readiness probe.

    Ready once the store exists and its backend answers a count.
    Backends that cannot count are treated as reachable.
    """
    checks: dict[str, str] = {"config": "ok"}

    store: DocumentStore | None = request.app.state.store
    if store is None:
        checks["backend"] = "not_initialized"
    else:
        try:
            await store.backend.count()
            checks["backend"] = "ok"
        except UnsupportedOperationError:
            checks["backend"] = "ok"
        except VectorDataStoreError as e:
            logger.warning(
                f"Backend not ready: {e.message}",
                extra={"error_code": e.code.value},
            )
            checks["backend"] = "error"

    all_ok = all(v == "ok" for v in checks.values())

    return {
        "status": "ready" if all_ok else "not_ready",
        "checks": checks,
        "timestamp": datetime.now(UTC).isoformat(),
    }


async def liveness_check() -> dict[str, str]:
    """Kubernetes liveness probe.

    Returns:
        Liveness status.
    """
    return {"status": "alive"}


async def metrics_endpoint() -> Response:
    """Prometheus scrape endpoint."""
    return Response(content=get_metrics(), media_type=get_metrics_content_type())


# Create the application instance
app = create_app()


def run(settings: Settings | None = None) -> None:
    """Serve the application with uvicorn on the configured host and port."""
    settings = settings or get_settings()
    uvicorn.run(
        "vectordatastore.api.app:app",
        host=settings.api_host,
        port=settings.api_port,
        log_level=settings.log_level.lower(),
    )
