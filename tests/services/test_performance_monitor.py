"""Tests for the query performance monitor."""

from typing import Any

import pytest
from flask import Flask
from sqlalchemy import create_engine, text
from sqlalchemy.exc import OperationalError

from parish.config import Settings
from parish.services.cache_service import TaggedMemoryCache
from parish.services.performance_monitor_service import (
    _QUERY_START_KEY,
    PerformanceMonitorService,
    format_bytes,
)


@pytest.fixture
def monitor(tmp_path: Any) -> PerformanceMonitorService:
    settings = Settings(
        slow_query_threshold_ms=100,
        critical_query_threshold_ms=500,
        slow_request_threshold_ms=500,
        storage_path=str(tmp_path),
    )
    return PerformanceMonitorService(settings, cache_store=TaggedMemoryCache())


class TestFormatBytes:
    @pytest.mark.parametrize(
        ("value", "expected"),
        [
            (0, "0.00 B"),
            (512, "512.00 B"),
            (2048, "2.00 KB"),
            (5 * 1024 * 1024, "5.00 MB"),
            (3 * 1024 ** 3, "3.00 GB"),
        ],
    )
    def test_units(self, value, expected):
        assert format_bytes(value) == expected


class TestQueryAccounting:
    def test_record_query_counts_and_times(self, monitor):
        monitor.record_query("SELECT 1", 20.0)
        monitor.record_query("SELECT * FROM members", 150.0)

        metrics = monitor.get_metrics()["queries"]

        assert metrics["total_count"] == 2
        assert metrics["total_time"] == 170.0
        assert metrics["average_time"] == 85.0
        assert metrics["slow_queries"] == 1
        assert [q.sql for q in monitor.slow_queries] == ["SELECT * FROM members"]

    def test_critical_queries_are_logged(self, monitor, caplog):
        with caplog.at_level("WARNING"):
            monitor.record_query("SELECT * FROM tithes", 800.0, parameters={"year": 2024})

        assert "Slow query detected (800.0ms)" in caplog.text

    def test_reset(self, monitor):
        monitor.record_query("SELECT * FROM members", 150.0)

        monitor.reset()

        assert monitor.get_metrics()["queries"] == {
            "total_count": 0,
            "total_time": 0.0,
            "average_time": 0,
            "slow_queries": 0,
        }
        assert monitor.slow_queries == []

    def test_metrics_sections(self, monitor):
        metrics = monitor.get_metrics()

        assert metrics["cache"]["driver"] == "tagged"
        assert metrics["memory"]["peak_usage"].endswith("B")
        assert metrics["storage"]["log_file_size"] == "0.00 B"

    def test_cache_metrics_without_store(self):
        monitor = PerformanceMonitorService(Settings())

        assert monitor.get_metrics()["cache"] == {"error": "Unable to retrieve cache metrics"}


class TestSlowQueryAnalysis:
    def test_patterns(self, monitor):
        monitor.record_query("SELECT * FROM members", 150.0)
        monitor.record_query("SELECT * FROM members WHERE id > 1 ORDER BY last_name", 150.0)
        monitor.record_query("SELECT * FROM members WHERE email LIKE '%@example.com%' LIMIT 5", 150.0)
        monitor.record_query("UPDATE members SET notes = ''", 150.0)

        types = [r["type"] for r in monitor.analyze_slow_queries()]

        assert types == ["missing_where", "unlimited_order", "inefficient_like"]

    def test_fast_queries_are_not_analysed(self, monitor):
        monitor.record_query("SELECT * FROM members", 5.0)

        assert monitor.analyze_slow_queries() == []


class TestEngineIntegration:
    def test_queries_are_captured_from_engine(self, monitor):
        engine = create_engine("sqlite://")
        app = Flask(__name__)

        monitor.init_app(app, engine)
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))

        assert monitor.get_metrics()["queries"]["total_count"] >= 1

    def test_failed_query_leaves_no_pending_start(self, monitor):
        engine = create_engine("sqlite://")
        monitor.init_app(Flask(__name__), engine)

        with engine.connect() as conn:
            with pytest.raises(OperationalError):
                conn.execute(text("SELECT * FROM no_such_table"))

            assert conn.info.get(_QUERY_START_KEY) == []

            conn.execute(text("SELECT 1"))
            assert conn.info.get(_QUERY_START_KEY) == []

        assert monitor.get_metrics()["queries"]["total_count"] >= 1

    def test_index_suggestions(self, monitor):
        engine = create_engine("sqlite://")
        with engine.begin() as conn:
            conn.execute(text("CREATE TABLE activities (id INTEGER PRIMARY KEY, status TEXT, created_at TEXT)"))
            conn.execute(text("CREATE INDEX ix_activities_created_at ON activities (created_at)"))

        monitor.init_app(Flask(__name__), engine)
        suggestions = monitor.get_database_optimizations()

        assert suggestions == [
            {
                "type": "missing_index",
                "table": "activities",
                "column": "status",
                "suggestion": "Consider adding an index on activities.status",
            }
        ]

    def test_disabled_monitor_installs_no_hooks(self):
        monitor = PerformanceMonitorService(Settings(performance_monitoring_enabled=False))
        engine = create_engine("sqlite://")

        monitor.init_app(Flask(__name__), engine)
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))

        assert monitor.get_metrics()["queries"]["total_count"] == 0

    def test_report(self, monitor):
        monitor.record_query("SELECT * FROM members", 150.0)

        report = monitor.generate_report()

        assert report["slow_queries"][0]["sql"] == "SELECT * FROM members"
        assert report["recommendations"][0]["type"] == "missing_where"
        assert report["system_info"]["database_driver"] == "sqlite"
        assert report["database_optimizations"] == []
