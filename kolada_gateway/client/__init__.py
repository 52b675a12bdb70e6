"""Kolada API access layer.

This module provides:
- RateLimiter: global FIFO scheduler spacing request starts
- RetryPolicy: linear-backoff retry for network errors and HTTP 429
- KoladaClient: request / walk_pages / fetch_all / batch_fetch
- Pydantic models for the page envelope and Kolada records
"""

from kolada_gateway.client.kolada_client import KoladaClient, chunked
from kolada_gateway.client.models import (
    KPI,
    DataPoint,
    KoladaGroup,
    KPIData,
    Municipality,
    OrganizationalUnit,
    PageEnvelope,
)
from kolada_gateway.client.rate_limiter import RateLimiter
from kolada_gateway.client.retry import RetryPolicy, is_retryable

__all__ = [
    # Client
    "KoladaClient",
    "chunked",
    "RateLimiter",
    "RetryPolicy",
    "is_retryable",
    # Models
    "PageEnvelope",
    "KPI",
    "Municipality",
    "KoladaGroup",
    "OrganizationalUnit",
    "DataPoint",
    "KPIData",
]
