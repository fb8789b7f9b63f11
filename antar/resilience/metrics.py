"""Prometheus metrics for AI provider calls

Per-model request counts, latency and error types, plus retry, model
fallback and circuit breaker state. Served on /metrics with the HTTP metrics.
"""

import logging
from typing import Callable
from prometheus_client import Counter, Histogram, Enum

logger = logging.getLogger(__name__)

ai_breaker_state = Enum(
    'antar_ai_breaker_state',
    'AI provider circuit breaker state',
    ['breaker'],
    states=['closed', 'open', 'half_open']
)

ai_requests_total = Counter(
    'antar_ai_requests_total',
    'AI provider requests by model and outcome',
    ['model', 'outcome']
)

ai_request_duration_seconds = Histogram(
    'antar_ai_request_duration_seconds',
    'AI provider request latency',
    ['model'],
    buckets=(0.1, 0.5, 1.0, 2.0, 5.0, 10.0, 15.0, 30.0, float('inf'))
)

# error_type is the exception class name (APITimeoutError, RateLimitError, ...)
ai_errors_total = Counter(
    'antar_ai_errors_total',
    'AI provider errors seen by the circuit breaker',
    ['breaker', 'error_type']
)

ai_retries_total = Counter(
    'antar_ai_retries_total',
    'Retried AI provider calls',
    ['operation']
)

# primary is the model tried first, used is the one that ran in its place
ai_fallbacks_total = Counter(
    'antar_ai_fallbacks_total',
    'Calls answered (or not) by a fallback model',
    ['primary', 'used', 'outcome']
)


def _observe(description: str, update: Callable[[], None]) -> None:
    """Apply a metric update; a broken metric never breaks the call it measures"""
    try:
        update()
    except Exception as e:
        logger.error(f"Failed to record {description}: {e}")


def _outcome(success: bool) -> str:
    return 'success' if success else 'failure'


def record_circuit_breaker_state(breaker: str, state: str) -> None:
    """
    Record a circuit breaker transition.

    Args:
        breaker: Breaker name (ai_provider)
        state: closed, open or half_open
    """
    _observe("breaker state", lambda: ai_breaker_state.labels(breaker=breaker).state(state))
    logger.debug(f"[METRICS] Breaker {breaker} -> {state}")


def record_api_call(model: str, success: bool, duration: float) -> None:
    """Count one request to a model and observe its latency"""
    def update():
        ai_requests_total.labels(model=model, outcome=_outcome(success)).inc()
        ai_request_duration_seconds.labels(model=model).observe(duration)

    _observe("AI request", update)


def record_api_failure(breaker: str, error_type: str) -> None:
    _observe("AI error", lambda: ai_errors_total.labels(breaker=breaker, error_type=error_type).inc())


def record_retry(operation: str) -> None:
    _observe("retry", lambda: ai_retries_total.labels(operation=operation).inc())


def record_fallback(primary: str, used: str, success: bool) -> None:
    """
    Record a call that ran on a fallback model.

    Args:
        primary: Model tried first
        used: Model that ran instead
        success: Whether the fallback model answered
    """
    _observe(
        "fallback",
        lambda: ai_fallbacks_total.labels(primary=primary, used=used, outcome=_outcome(success)).inc()
    )
    logger.debug(f"[METRICS] Fallback {primary} -> {used}: {_outcome(success)}")
