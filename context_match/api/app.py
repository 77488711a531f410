"""FastAPI application entry point.

Configures the application with logging, exception handling, metrics and
health checks, and wires the service clients into the request handlers.
"""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from datetime import UTC, datetime
from typing import Any

from fastapi import FastAPI, Request, Response
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from context_match import __version__
from context_match.api.routes import router
from context_match.config import Settings, get_settings
from context_match.context.orchestrator import ContextOrchestrator
from context_match.embeddings.service import EmbeddingService, OpenAIEmbeddingService
from context_match.exceptions import ContextMatchError, ErrorCode, ValidationError
from context_match.llm.client import ChatClient, OpenAIChatClient
from context_match.logging_config import get_logger, setup_logging
from context_match.observability.metrics import (
    MetricsMiddleware,
    get_metrics,
    get_metrics_content_type,
)
from context_match.vectorstore.service import QdrantVectorStore, VectorStore

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan manager.

    Sets up logging on startup and closes the clients the app created on
    shutdown.
    """
    settings: Settings = app.state.settings
    setup_logging(level=settings.log_level)
    logger.info(
        "Starting context-match",
        extra={
            "version": __version__,
            "environment": settings.environment.value,
        },
    )

    yield

    for service in app.state.owned_services:
        await service.close()
    logger.info("Shutting down context-match")


def create_app(
    settings: Settings | None = None,
    embedding_service: EmbeddingService | None = None,
    vector_store: VectorStore | None = None,
    chat_client: ChatClient | None = None,
) -> FastAPI:
    """Create and configure the FastAPI application.

    Services that are not passed in are built from settings; the app closes
    those on shutdown.

    Returns:
        Configured FastAPI application instance.
    """
    settings = settings or get_settings()

    app = FastAPI(
        title="context-match",
        description="Records user contexts and finds similar ones",
        version=__version__,
        lifespan=lifespan,
        debug=settings.debug,
    )

    owned: list[Any] = []
    if embedding_service is None:
        embedding_service = OpenAIEmbeddingService(settings=settings.openai)
        owned.append(embedding_service)
    if vector_store is None:
        vector_store = QdrantVectorStore(settings=settings.qdrant)
        owned.append(vector_store)
    if chat_client is None:
        chat_client = OpenAIChatClient(settings=settings.openai)
        owned.append(chat_client)

    app.state.settings = settings
    app.state.owned_services = owned
    app.state.vector_store = vector_store
    app.state.chat_client = chat_client
    app.state.orchestrator = ContextOrchestrator(
        embedding_service=embedding_service,
        vector_store=vector_store,
        collection=settings.qdrant.collection_name,
        search_limit=settings.qdrant.search_limit,
    )

    # Register exception handlers
    app.add_exception_handler(ContextMatchError, context_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)

    app.add_middleware(MetricsMiddleware)

    # Register routes
    app.include_router(router)
    app.add_api_route("/health", health_check, methods=["GET"], tags=["Health"])
    app.add_api_route("/health/ready", readiness_check, methods=["GET"], tags=["Health"])
    app.add_api_route("/health/live", liveness_check, methods=["GET"], tags=["Health"])
    app.add_api_route("/metrics", metrics_endpoint, methods=["GET"], tags=["Observability"])

    return app


async def context_exception_handler(
    request: Request,
    exc: Exception,
) -> JSONResponse:
    """Handle ContextMatchError exceptions.

    Converts exceptions to structured JSON responses.
    """
    if not isinstance(exc, ContextMatchError):
        return await unhandled_exception_handler(request, exc)

    logger.error(
        f"Request failed: {exc.message}",
        extra={
            "error_code": exc.code.value,
            "path": request.url.path,
            "details": exc.details,
        },
    )

    return JSONResponse(
        status_code=_get_status_code(exc.code),
        content=exc.to_dict(),
    )


async def validation_exception_handler(
    request: Request,
    exc: Exception,
) -> JSONResponse:
    """Report malformed request bodies as 400 client errors."""
    errors = exc.errors() if isinstance(exc, RequestValidationError) else []
    error = ValidationError(describe_validation_error(errors))

    logger.info(
        f"Rejected request: {error.message}",
        extra={"path": request.url.path},
    )
    return JSONResponse(status_code=400, content=error.to_dict())


async def http_exception_handler(
    _request: Request,
    exc: Exception,
) -> JSONResponse:
    """Render routing errors (404, 405) in the service's error envelope."""
    if not isinstance(exc, StarletteHTTPException):
        return await unhandled_exception_handler(_request, exc)

    return JSONResponse(
        status_code=exc.status_code,
        content={"error": exc.detail},
        headers=exc.headers,
    )


async def unhandled_exception_handler(
    request: Request,
    exc: Exception,
) -> JSONResponse:
    """Last-resort handler for errors nothing else caught."""
    logger.exception(
        f"Unhandled error: {exc}",
        extra={"path": request.url.path},
    )
    return JSONResponse(
        status_code=500,
        content={"error": "Internal server error", "details": str(exc)},
    )


def describe_validation_error(errors: Any) -> str:
    """Turn pydantic validation errors into a one-line client message."""
    if not errors:
        return "Invalid request body"

    first = errors[0]
    field = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
    if not field:
        return "Request body is required"

    error_type = first.get("type")
    if error_type in ("missing", "string_too_short"):
        return f"{field} field is required in body"
    if error_type == "list_type":
        return f"{field} array is required"
    return f"{field}: {first.get('msg', 'invalid value')}"


def _get_status_code(code: ErrorCode) -> int:
    """Map error code to HTTP status code."""
    if code == ErrorCode.VALIDATION_ERROR:
        return 400

    # Provider and store failures are all reported as internal errors
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


async def readiness_check(request: Request) -> JSONResponse:
    """Readiness probe.

    Checks that Qdrant answers. A missing collection is not a failure; it is
    created on the first user-context request.

    Returns:
        Readiness status with component checks.
    """
    vector_store: VectorStore = request.app.state.vector_store
    collection = request.app.state.orchestrator.collection

    checks: dict[str, str] = {"config": "ok"}
    collection_info: dict[str, Any] = {"name": collection}
    try:
        exists = await vector_store.collection_exists(collection)
        collection_info["exists"] = exists
        collection_info["points"] = await vector_store.count(collection) if exists else 0
        checks["qdrant"] = "ok"
    except ContextMatchError as e:
        logger.warning(f"Readiness check failed: {e.message}")
        checks["qdrant"] = "unavailable"

    all_ok = all(v == "ok" for v in checks.values())

    return JSONResponse(
        status_code=200 if all_ok else 503,
        content={
            "status": "ready" if all_ok else "not_ready",
            "checks": checks,
            "collection": collection_info,
            "timestamp": datetime.now(UTC).isoformat(),
        },
    )


async def liveness_check() -> dict[str, str]:
    """Liveness probe.

    Returns:
        Liveness status.
    """
    return {"status": "alive"}


async def metrics_endpoint() -> Response:
    """Prometheus metrics in text exposition format."""
    return Response(content=get_metrics(), media_type=get_metrics_content_type())


# Create the application instance
app = create_app()
