"""Prometheus HTTP metrics"""
import logging
import time
from contextlib import contextmanager

from prometheus_client import Counter, Histogram

from antar.config import ENABLE_PROMETHEUS

logger = logging.getLogger(__name__)

http_requests_total = Counter(
    'antar_http_requests_total',
    'Total HTTP requests',
    ['method', 'endpoint', 'status']
)

http_request_duration_seconds = Histogram(
    'antar_http_request_duration_seconds',
    'HTTP request latency',
    ['method', 'endpoint'],
    buckets=[0.01, 0.05, 0.1, 0.5, 1.0, 2.0, 5.0, 10.0]
)

http_errors_total = Counter(
    'antar_http_errors_total',
    'Total unhandled HTTP errors',
    ['method', 'endpoint', 'error_type']
)


class RequestTracker:
    """
    Labels for a tracked request

    The caller sets status_code, and may replace endpoint once routing has
    resolved the path template.
    """

    def __init__(self, endpoint: str):
        self.endpoint = endpoint
        self.status_code = 500


@contextmanager
def track_request(method: str, endpoint: str):
    """
    Track HTTP request count, latency and unhandled errors

    Example:
        with track_request("GET", "/api/health") as tracker:
            response = await call_next(request)
            tracker.status_code = response.status_code
    """
    tracker = RequestTracker(endpoint)
    if not ENABLE_PROMETHEUS:
        yield tracker
        return

    start_time = time.monotonic()
    try:
        yield tracker
    except Exception as e:
        http_errors_total.labels(
            method=method,
            endpoint=tracker.endpoint,
            error_type=type(e).__name__
        ).inc()
        raise
    finally:
        http_request_duration_seconds.labels(
            method=method,
            endpoint=tracker.endpoint
        ).observe(time.monotonic() - start_time)

        http_requests_total.labels(
            method=method,
            endpoint=tracker.endpoint,
            status=tracker.status_code
        ).inc()
