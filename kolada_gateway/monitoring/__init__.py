"""Monitoring module for structured logging and observability.

Provides structlog-based logging (JSON in production, console in
development, correlation IDs per tool call) and metrics dataclasses for
upstream requests and cache performance.
"""

from kolada_gateway.monitoring.logging import (
    bind_correlation_id,
    configure_logging,
    get_logger,
    unbind_correlation_id,
)
from kolada_gateway.monitoring.metrics import CacheMetrics, RequestMetrics

__all__ = [
    "configure_logging",
    "get_logger",
    "bind_correlation_id",
    "unbind_correlation_id",
    "CacheMetrics",
    "RequestMetrics",
]
