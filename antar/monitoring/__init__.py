"""Monitoring infrastructure: Sentry error reporting and Prometheus HTTP metrics"""
from antar.monitoring.sentry_config import init_sentry, capture_exception, set_user_context
from antar.monitoring.prometheus_metrics import track_request

__all__ = [
    "init_sentry",
    "capture_exception",
    "set_user_context",
    "track_request",
]
