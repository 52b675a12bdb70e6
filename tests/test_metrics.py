"""Tests for observability metrics and structured logging.

Tests CacheMetrics and RequestMetrics from the monitoring module.
"""

import json
import logging

import pytest
import structlog

from kolada_gateway.monitoring import (
    CacheMetrics,
    RequestMetrics,
    bind_correlation_id,
    configure_logging,
    get_logger,
    unbind_correlation_id,
)


class TestCacheMetrics:
    """Tests for CacheMetrics dataclass."""

    def test_hit_rate_counts_coalesced_as_hits(self):
        metrics = CacheMetrics(hits=80, misses=15, coalesced=5)
        assert metrics.hit_rate == 85.0

    def test_empty(self):
        metrics = CacheMetrics()
        assert metrics.hits == 0
        assert metrics.misses == 0
        assert metrics.coalesced == 0
        assert metrics.hit_rate == 0.0

    def test_to_dict(self):
        d = CacheMetrics(hits=10, misses=5, coalesced=2).to_dict()

        assert d["hits"] == 10
        assert d["misses"] == 5
        assert d["coalesced"] == 2
        assert d["hit_rate"] == pytest.approx(70.6, rel=0.1)  # (10+2)/17*100

    def test_all_misses(self):
        assert CacheMetrics(misses=100).hit_rate == 0.0


class TestRequestMetrics:
    def test_defaults(self):
        assert RequestMetrics().to_dict() == {
            "requests": 0,
            "retries": 0,
            "not_found": 0,
            "failures": 0,
        }


class TestLogging:
    def test_production_mode_renders_json_with_correlation_id(self, caplog):
        caplog.set_level(logging.INFO)
        configure_logging("production")
        log = get_logger("test")

        bind_correlation_id("abc123")
        try:
            log.info("tool_call_started", tool="get_kpi")
        finally:
            unbind_correlation_id()
            configure_logging("development")

        event = json.loads(caplog.records[-1].getMessage())
        assert event["event"] == "tool_call_started"
        assert event["tool"] == "get_kpi"
        assert event["correlation_id"] == "abc123"

    def test_nothing_written_to_stdout(self, capsys):
        get_logger("test").info("kolada_request_completed", endpoint="/kpi")
        assert capsys.readouterr().out == ""

    def test_unbind_removes_correlation_id(self):
        bind_correlation_id("abc123")
        unbind_correlation_id()
        assert "correlation_id" not in structlog.contextvars.get_contextvars()
