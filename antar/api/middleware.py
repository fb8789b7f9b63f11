"""API middleware for rate limiting, CORS and request metrics"""
import logging
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from slowapi import Limiter, _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from slowapi.util import get_remote_address

from antar.config import CORS_ORIGINS
from antar.monitoring.prometheus_metrics import track_request

logger = logging.getLogger(__name__)

limiter = Limiter(key_func=get_remote_address)


def setup_cors(app: FastAPI) -> None:
    """Configure CORS middleware"""
    app.add_middleware(
        CORSMiddleware,
        allow_origins=CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    logger.info(f"CORS configured for origins: {CORS_ORIGINS}")


def setup_rate_limiting(app: FastAPI) -> None:
    """Configure per-IP rate limiting (limits are declared on each route)"""
    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)
    logger.info("Rate limiting configured")


def setup_request_metrics(app: FastAPI) -> None:
    """Count and time every request, labelled by route template"""

    @app.middleware("http")
    async def request_metrics(request: Request, call_next):
        with track_request(request.method, request.url.path) as tracker:
            response = await call_next(request)
            # Set by the router once a path template matched
            route = request.scope.get("route")
            if route is not None:
                tracker.endpoint = route.path
            tracker.status_code = response.status_code
            return response
