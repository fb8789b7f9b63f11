"""FastAPI application setup"""
import logging
from contextlib import asynccontextmanager
from datetime import datetime
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from antar import __version__
from antar.ai.text_generator import create_text_generator
from antar.api.metrics_routes import router as metrics_router
from antar.api.middleware import setup_cors, setup_rate_limiting, setup_request_metrics
from antar.api.models import ErrorResponse
from antar.api.routes import router
from antar.config import ENABLE_PROMETHEUS, LOG_LEVEL, validate_config
from antar.db.connection import Database
from antar.monitoring import capture_exception, init_sentry
from antar.services.container import ServiceContainer

# Configure logging
logging.basicConfig(
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    level=getattr(logging, LOG_LEVEL)
)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Lifecycle manager for FastAPI application"""
    # Startup
    logger.info("Starting API server...")
    validate_config()
    init_sentry()

    db = Database()
    await db.init_pool()
    logger.info("Database pool initialized")

    app.state.container = ServiceContainer(db=db, text_generator=create_text_generator())

    yield

    # Shutdown
    logger.info("Shutting down API server...")
    await db.close_pool()
    app.state.container = None
    logger.info("Database pool closed")


def create_api_application() -> FastAPI:
    """Create and configure FastAPI application"""
    app = FastAPI(
        title="Antar Habit Tracker API",
        description="REST API for gamified habit tracking",
        version=__version__,
        lifespan=lifespan
    )

    # Setup middleware
    setup_cors(app)
    setup_rate_limiting(app)
    if ENABLE_PROMETHEUS:
        setup_request_metrics(app)
        app.include_router(metrics_router)

    # Include routes
    app.include_router(router)

    # Global exception handler
    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception):
        logger.error(f"Unhandled exception: {exc}", exc_info=True)
        capture_exception(exc, path=request.url.path, method=request.method)
        error = ErrorResponse(
            error="Internal server error",
            message="Something went wrong. Please try again.",
            request_id=request.headers.get("x-request-id"),
            timestamp=datetime.now()
        )
        return JSONResponse(status_code=500, content=error.model_dump(mode="json"))

    logger.info("FastAPI application created")

    return app
