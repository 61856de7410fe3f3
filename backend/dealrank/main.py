"""dealrank backend -- FastAPI application entry point."""

from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from dealrank import __version__
from dealrank.api.v1.router import api_v1_router
from dealrank.config import settings
from dealrank.core.exceptions import DatastoreUnavailableError
from dealrank.core.logging import configure_logging
from dealrank.db.session import create_tables, engine
from dealrank.schemas import ErrorDetail, ErrorResponse

logger = structlog.get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan: startup and shutdown events."""
    configure_logging()

    # Startup
    logger.info(
        "starting_api_server",
        environment=settings.ENVIRONMENT,
        debug=settings.DEBUG,
        version=__version__,
    )

    # Auto-create tables on startup (safe for fresh deployments)
    try:
        await create_tables()
        logger.info("database_tables_ready")
    except Exception as e:
        logger.error("database_init_failed", error=str(e), exc_info=True)

    yield

    # Shutdown
    logger.info("shutting_down_api_server")
    await engine.dispose()


app = FastAPI(
    title="dealrank API",
    description="Deal discovery and ranking API",
    version=__version__,
    docs_url="/docs" if settings.DEBUG else None,
    redoc_url="/redoc" if settings.DEBUG else None,
    lifespan=lifespan,
)

# CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=[
        settings.FRONTEND_URL,
        "http://localhost:8081",
        "http://localhost:19006",
    ],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(DatastoreUnavailableError)
async def datastore_unavailable_handler(request: Request, exc: DatastoreUnavailableError):
    """Answer 503 for any request the datastore could not serve.

    The client may retry. For writes the outcome is unknown and should be
    re-read rather than assumed.
    """
    logger.warning(
        "datastore_unavailable_response",
        method=request.method,
        path=request.url.path,
        operation=exc.operation,
    )
    message = (
        "Could not load deals" if request.method == "GET" else "Could not save changes"
    )
    body = ErrorResponse(
        error=ErrorDetail(code="datastore_unavailable", message=message, retryable=True),
    )
    return JSONResponse(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        content=body.model_dump(),
    )


# Register API v1 router
app.include_router(api_v1_router, prefix="/api/v1")


@app.get("/")
async def root():
    """Root endpoint with API information."""
    return {
        "name": "dealrank API",
        "version": __version__,
        "description": "Deal discovery and ranking engine",
        "docs": "/docs" if settings.DEBUG else None,
        "health": "/api/v1/health",
    }
