"""Utility modules for the leaked resource garbage collector."""

from .cloudwatch_logger import CloudWatchHandler, configure_cloudwatch_logging
from .retry import calculate_backoff_delay, retry_async
from .telemetry import (
    generate_correlation_id,
    get_correlation_id,
    log_batched,
    set_correlation_id,
    telemetry_scope,
)

__all__ = [
    "CloudWatchHandler",
    "configure_cloudwatch_logging",
    "calculate_backoff_delay",
    "retry_async",
    "generate_correlation_id",
    "get_correlation_id",
    "log_batched",
    "set_correlation_id",
    "telemetry_scope",
]
