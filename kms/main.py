"""
Knowledge Management Platform

FastAPI application entry point.
"""

from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI, HTTPException, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError

from kms.config import get_settings
from kms.database import async_session_maker, init_db, close_db
from kms.api.v1 import router as api_v1_router
from kms.api.middleware.rate_limit import RateLimitMiddleware
from kms.api.middleware.request_id import RequestIdMiddleware
from kms.engines.config import ConfigurationRepository, ConfigurationService
from kms.kernel.errors import KMSError
from kms.schemas.common import HealthResponse
from kms.logging_config import configure_logging, get_logger

settings = get_settings()
logger = get_logger(__name__)


async def build_config_service() -> ConfigurationService:
    """Defaults overlaid with whatever is stored in the configurations table."""
    config_service = ConfigurationService()
    async with async_session_maker() as session:
        await config_service.load(ConfigurationRepository(session))
    return config_service


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator:
    """
    Application lifespan handler.

    Runs startup and shutdown tasks.
    """
    # Configure logging first
    configure_logging(
        log_level=settings.log_level,
        environment=settings.environment,
        debug=settings.debug,
    )

    # Startup
    logger.info("Starting %s v%s", settings.project_name, settings.version)
    await init_db()
    logger.info("Database initialized")
    app.state.config_service = await build_config_service()

    yield

    # Shutdown
    logger.info("Shutting down...")
    await close_db()
    logger.info("Database connections closed")


# Create FastAPI application
app = FastAPI(
    title=settings.project_name,
    description="""
    Knowledge Management Platform

    Capture, review and reuse consulting knowledge.

    ## Features

    - **Knowledge**: Upload with content, metadata, policy and duplicate checks
    - **Validation**: One review workflow per item with history and reassignment
    - **Leaderboard**: Weighted contribution scores, streaks and period totals
    - **Audit**: Append-only trail with summaries for governance
    - **Learning**: Mentorship, training modules and live sessions
    - **Migration**: Import of legacy content
    """,
    version=settings.version,
    lifespan=lifespan,
    docs_url="/docs" if settings.debug else None,
    redoc_url="/redoc" if settings.debug else None,
)


# add_middleware stacks innermost-first, so the last one added is outermost.
# CORS must be outermost so that 429s and other early responses carry its headers.
_cors_origins = list(settings.cors_origins)

app.add_middleware(RateLimitMiddleware)
app.add_middleware(RequestIdMiddleware)

app.add_middleware(
    CORSMiddleware,
    allow_origins=_cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def _cors_headers(request: Request) -> dict:
    """CORS headers for error responses (500s can bypass the CORS middleware)."""
    origin = request.headers.get("origin") or ""
    allow_origin = origin if origin in _cors_origins else (_cors_origins[0] if _cors_origins else "*")
    return {
        "Access-Control-Allow-Origin": allow_origin,
        "Access-Control-Allow-Credentials": "true",
        "Access-Control-Allow-Methods": "*",
        "Access-Control-Allow-Headers": "*",
    }


def _error_headers(request: Request) -> dict:
    headers = _cors_headers(request)
    req_id = getattr(request.state, "request_id", None)
    if req_id:
        headers["X-Request-ID"] = req_id
    return headers


@app.exception_handler(KMSError)
async def kms_exception_handler(request: Request, exc: KMSError):
    """Domain errors carry their own status code and body."""
    if exc.status_code >= 500:
        logger.error("Domain error: %s", exc.message)
    return JSONResponse(
        status_code=exc.status_code,
        content=exc.to_dict(),
        headers=_error_headers(request),
    )


@app.exception_handler(HTTPException)
async def http_exception_handler(request: Request, exc: HTTPException):
    """401/403 from the auth dependencies, 404 for unknown routes and the like."""
    headers = _error_headers(request)
    if exc.headers:
        headers.update(exc.headers)
    content = {"message": exc.detail if isinstance(exc.detail, str) else str(exc.detail)}
    req_id = getattr(request.state, "request_id", None)
    if req_id and exc.status_code >= 500:
        content["request_id"] = req_id
    return JSONResponse(status_code=exc.status_code, content=content, headers=headers)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(
    request: Request,
    exc: RequestValidationError,
):
    """Malformed requests are reported as 400 with per-field errors."""
    errors = []
    for error in exc.errors():
        field = ".".join(str(loc) for loc in error["loc"])
        errors.append({
            "field": field,
            "message": error["msg"],
            "type": error["type"],
        })
    content = {"message": "Validation error", "errors": errors}
    req_id = getattr(request.state, "request_id", None)
    if req_id:
        content["request_id"] = req_id
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content=content,
        headers=_error_headers(request),
    )


@app.exception_handler(Exception)
async def general_exception_handler(
    request: Request,
    exc: Exception,
):
    """Handle unexpected exceptions."""
    logger.exception("Unhandled exception: %s", exc)
    req_id = getattr(request.state, "request_id", None)
    if settings.debug:
        content = {
            "message": str(exc),
            "type": type(exc).__name__,
            "request_id": req_id,
        }
    else:
        content = {"message": "Internal server error", "request_id": req_id}
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=content,
        headers=_error_headers(request),
    )


# Health check endpoint
@app.get("/health", response_model=HealthResponse, tags=["Health"])
async def health_check():
    """Check application health."""
    return HealthResponse(
        status="ok",
        version=settings.version,
        database="connected",
    )


# Root endpoint
@app.get("/", tags=["Root"])
async def root():
    """Root endpoint with API information."""
    return {
        "name": settings.project_name,
        "version": settings.version,
        "docs": "/docs" if settings.debug else "disabled",
        "api": {
            "v1": settings.api_v1_prefix,
        },
    }


# Mount API v1 routes
app.include_router(
    api_v1_router,
    prefix=settings.api_v1_prefix,
)


# Main entry point for development
if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "kms.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.debug,
    )
