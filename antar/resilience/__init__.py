"""Resilience patterns for calls to the AI text provider

Circuit breaker, retry with backoff, ordered fallbacks and Prometheus
metrics, so a slow or failing provider degrades to static copy instead of
failing the request.
"""

from antar.resilience.circuit_breaker import AI_PROVIDER_BREAKER, with_circuit_breaker
from antar.resilience.retry import retry_with_backoff, with_retry
from antar.resilience.fallback import execute_with_fallbacks, FallbackStrategy
from antar.resilience.metrics import (
    record_circuit_breaker_state,
    record_api_call,
    record_api_failure,
    record_retry,
    record_fallback,
)

__all__ = [
    # Circuit Breakers
    "AI_PROVIDER_BREAKER",
    "with_circuit_breaker",
    # Retry
    "retry_with_backoff",
    "with_retry",
    # Fallback
    "execute_with_fallbacks",
    "FallbackStrategy",
    # Metrics
    "record_circuit_breaker_state",
    "record_api_call",
    "record_api_failure",
    "record_retry",
    "record_fallback",
]
