"""Query performance monitoring.

Counts every database query, keeps a log of slow queries for pattern
analysis, and times HTTP requests so slow endpoints and N+1 query issues
can be found. Counters are process-wide and guarded by a lock; call
``reset()`` to start a fresh measurement window.
"""

import logging
import platform
import re
import resource
import shutil
import threading
import time
from dataclasses import asdict, dataclass, field
from datetime import datetime
from importlib.metadata import PackageNotFoundError, version
from pathlib import Path
from typing import TYPE_CHECKING, Any

from flask import Flask, g, request
from prometheus_client import Counter, Gauge, Histogram
from sqlalchemy import event, inspect, text
from sqlalchemy.engine import Engine

if TYPE_CHECKING:
    from parish.config import Settings
    from parish.services.cache_service import SimpleMemoryCache

logger = logging.getLogger(__name__)

MONITORED_TABLES = ("members", "families", "sacraments", "tithes", "activities")
INDEX_CANDIDATE_COLUMNS = ("created_at", "updated_at", "status", "type", "date")
LARGE_TABLE_MB = 100

_INEFFICIENT_LIKE = re.compile(r"""like\s+['"]%.*%['"]""")
_BYTE_UNITS = ("B", "KB", "MB", "GB")

_QUERY_START_KEY = "parish_query_start"


def format_bytes(num_bytes: int | float) -> str:
    """Human readable size; the unit is picked from the number of decimal digits."""
    num_bytes = int(num_bytes)
    factor = (len(str(num_bytes)) - 1) // 3
    unit = _BYTE_UNITS[factor] if factor < len(_BYTE_UNITS) else "TB"
    return "%.2f %s" % (num_bytes / (1024 ** factor), unit)


@dataclass
class QueryInfo:
    """Information about a single query execution."""
    sql: str
    duration_ms: float
    parameters: Any = None
    connection: str | None = None


@dataclass
class RequestDiagnostics:
    """Diagnostics data collected during a single request."""
    start_time: float = field(default_factory=time.perf_counter)
    queries: list[QueryInfo] = field(default_factory=list)

    @property
    def query_count(self) -> int:
        return len(self.queries)

    @property
    def total_query_time_ms(self) -> float:
        return sum(q.duration_ms for q in self.queries)

    @property
    def request_duration_ms(self) -> float:
        return (time.perf_counter() - self.start_time) * 1000

    @property
    def python_time_ms(self) -> float:
        """Time spent outside the database (ms)."""
        return self.request_duration_ms - self.total_query_time_ms


class PerformanceMonitorService:
    """Collects query and request performance data.

    When enabled, this service:
    - Counts every query and accumulates total query time
    - Records queries slower than the slow threshold for later analysis
    - Logs a warning for queries slower than the critical threshold
    - Times HTTP requests and logs slow ones with their slowest queries
    - Exposes the same data via Prometheus metrics
    """

    def __init__(self, settings: "Settings", cache_store: "SimpleMemoryCache | None" = None):
        self.settings = settings
        self.cache_store = cache_store
        self.enabled = settings.performance_monitoring_enabled
        self.slow_query_threshold_ms = settings.slow_query_threshold_ms
        self.critical_query_threshold_ms = settings.critical_query_threshold_ms
        self.slow_request_threshold_ms = settings.slow_request_threshold_ms

        self._lock = threading.Lock()
        self._query_count = 0
        self._query_time_ms = 0.0
        self._slow_queries: list[QueryInfo] = []
        self._engine: Engine | None = None

        self._init_metrics()

    def _init_metrics(self) -> None:
        """Initialize Prometheus metric collectors."""
        self.request_duration_seconds = Histogram(
            'http_request_duration_seconds',
            'HTTP request duration in seconds',
            ['method', 'endpoint', 'status'],
            buckets=(0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0)
        )

        self.request_query_count = Histogram(
            'http_request_query_count',
            'Number of database queries per HTTP request',
            ['method', 'endpoint'],
            buckets=(1, 2, 3, 5, 10, 20, 50, 100)
        )

        self.query_duration_seconds = Histogram(
            'db_query_duration_seconds',
            'Individual database query duration',
            buckets=(0.001, 0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5)
        )

        self.query_total = Counter(
            'db_query_total',
            'Total number of database queries executed'
        )

        self.slow_query_total = Counter(
            'db_slow_query_total',
            'Total number of slow queries detected'
        )

        self.slow_request_total = Counter(
            'http_slow_request_total',
            'Total number of slow requests detected',
            ['method', 'endpoint']
        )

        self.active_requests = Gauge(
            'http_active_requests',
            'Number of requests currently being processed'
        )

    def init_app(self, app: Flask, engine: Engine) -> None:
        """Attach request hooks to ``app`` and query listeners to ``engine``."""
        self._engine = engine

        if not self.enabled:
            logger.info(
                "Performance monitoring disabled (set PERFORMANCE_MONITORING_ENABLED=true to enable)"
            )
            return

        logger.info(
            "Performance monitoring enabled: slow_query=%dms critical_query=%dms slow_request=%dms",
            self.slow_query_threshold_ms,
            self.critical_query_threshold_ms,
            self.slow_request_threshold_ms,
        )

        app.before_request(self._before_request)
        app.after_request(self._after_request)

        event.listen(engine, "before_cursor_execute", self._before_cursor_execute)
        event.listen(engine, "after_cursor_execute", self._after_cursor_execute)
        event.listen(engine, "handle_error", self._handle_error)

    # ── Request hooks ──────────────────────────────────────────────────

    def _get_diagnostics(self) -> RequestDiagnostics | None:
        try:
            return getattr(g, "_diagnostics", None)
        except RuntimeError:
            return None

    def _before_request(self) -> None:
        g._diagnostics = RequestDiagnostics()
        self.active_requests.inc()

    def _after_request(self, response: Any) -> Any:
        diag = self._get_diagnostics()
        if diag is None:
            return response

        self.active_requests.dec()

        endpoint = request.endpoint or request.path
        method = request.method

        self.request_duration_seconds.labels(
            method=method, endpoint=endpoint, status=str(response.status_code)
        ).observe(diag.request_duration_ms / 1000)
        self.request_query_count.labels(
            method=method, endpoint=endpoint
        ).observe(diag.query_count)

        if diag.request_duration_ms >= self.slow_request_threshold_ms:
            self.slow_request_total.labels(method=method, endpoint=endpoint).inc()
            logger.warning(
                "SLOW REQUEST %s %s: %.1fms total (%.1fms db, %.1fms python, %d queries)",
                method,
                request.path,
                diag.request_duration_ms,
                diag.total_query_time_ms,
                diag.python_time_ms,
                diag.query_count
            )
            slowest = sorted(diag.queries, key=lambda q: q.duration_ms, reverse=True)
            for i, q in enumerate(slowest[:5]):
                logger.warning(
                    "  Query %d: %.1fms - %s",
                    i + 1,
                    q.duration_ms,
                    q.sql[:200] + "..." if len(q.sql) > 200 else q.sql
                )

        return response

    # ── Query hooks ────────────────────────────────────────────────────

    def _before_cursor_execute(
        self,
        conn: Any,
        cursor: Any,
        statement: str,
        parameters: Any,
        context: Any,
        executemany: bool
    ) -> None:
        conn.info.setdefault(_QUERY_START_KEY, []).append(time.perf_counter())

    def _after_cursor_execute(
        self,
        conn: Any,
        cursor: Any,
        statement: str,
        parameters: Any,
        context: Any,
        executemany: bool
    ) -> None:
        starts = conn.info.get(_QUERY_START_KEY)
        if not starts:
            return
        duration_ms = (time.perf_counter() - starts.pop()) * 1000
        self.record_query(statement, duration_ms, parameters, conn.engine.url.get_backend_name())

    def _handle_error(self, context: Any) -> None:
        # Failed statements never reach after_cursor_execute
        conn = context.connection
        if conn is None:
            return
        starts = conn.info.get(_QUERY_START_KEY)
        if starts:
            starts.pop()

    def record_query(
        self,
        sql: str,
        duration_ms: float,
        parameters: Any = None,
        connection: str | None = None,
    ) -> None:
        """Account for one executed query."""
        info = QueryInfo(sql=sql, duration_ms=duration_ms, parameters=parameters, connection=connection)

        with self._lock:
            self._query_count += 1
            self._query_time_ms += duration_ms
            if duration_ms > self.slow_query_threshold_ms:
                self._slow_queries.append(info)

        self.query_total.inc()
        self.query_duration_seconds.observe(duration_ms / 1000)

        diag = self._get_diagnostics()
        if diag is not None:
            diag.queries.append(info)

        if duration_ms > self.slow_query_threshold_ms:
            self.slow_query_total.inc()
            if duration_ms > self.critical_query_threshold_ms:
                logger.warning(
                    "Slow query detected (%.1fms): %s params=%r",
                    duration_ms,
                    sql[:500] + "..." if len(sql) > 500 else sql,
                    parameters,
                )

    # ── Reporting ──────────────────────────────────────────────────────

    @property
    def slow_queries(self) -> list[QueryInfo]:
        with self._lock:
            return list(self._slow_queries)

    def get_metrics(self) -> dict[str, Any]:
        with self._lock:
            count = self._query_count
            total = self._query_time_ms
            slow_count = len(self._slow_queries)

        return {
            "queries": {
                "total_count": count,
                "total_time": round(total, 2),
                "average_time": round(total / count, 2) if count else 0,
                "slow_queries": slow_count,
            },
            "memory": self._memory_metrics(),
            "cache": self._cache_metrics(),
            "storage": self._storage_metrics(),
        }

    def _memory_metrics(self) -> dict[str, Any]:
        # ru_maxrss is reported in kilobytes on Linux
        peak = resource.getrusage(resource.RUSAGE_SELF).ru_maxrss * 1024
        soft_limit, _ = resource.getrlimit(resource.RLIMIT_AS)
        return {
            "peak_usage": format_bytes(peak),
            "limit": "unlimited" if soft_limit == resource.RLIM_INFINITY else format_bytes(soft_limit),
        }

    def _cache_metrics(self) -> dict[str, Any]:
        if self.cache_store is None:
            return {"error": "Unable to retrieve cache metrics"}
        return {
            "driver": self.cache_store.backend_name,
            "prefix": self.cache_store.prefix,
            "entries": len(self.cache_store),
        }

    def _storage_metrics(self) -> dict[str, Any]:
        storage_path = Path(self.settings.storage_path)
        log_size = 0
        if self.settings.log_file:
            log_path = Path(self.settings.log_file)
            if log_path.is_file():
                log_size = log_path.stat().st_size

        target = storage_path if storage_path.exists() else Path.cwd()
        return {
            "log_file_size": format_bytes(log_size),
            "storage_path": str(storage_path),
            "disk_free_space": format_bytes(shutil.disk_usage(target).free),
        }

    def analyze_slow_queries(self) -> list[dict[str, Any]]:
        """Flag common anti-patterns in the recorded slow SELECT statements."""
        recommendations: list[dict[str, Any]] = []

        for query in self.slow_queries:
            sql = query.sql.strip().lower()
            if not sql.startswith("select"):
                continue

            if "where" not in sql:
                recommendations.append({
                    "type": "missing_where",
                    "message": "Query without WHERE clause detected",
                    "query": query.sql,
                    "time": query.duration_ms,
                })

            if "order by" in sql and "limit" not in sql:
                recommendations.append({
                    "type": "unlimited_order",
                    "message": "ORDER BY without LIMIT detected",
                    "query": query.sql,
                    "time": query.duration_ms,
                })

            if _INEFFICIENT_LIKE.search(sql):
                recommendations.append({
                    "type": "inefficient_like",
                    "message": "Inefficient LIKE query with leading wildcard",
                    "query": query.sql,
                    "time": query.duration_ms,
                    "suggestion": "Consider full-text search or restructuring the query",
                })

        return recommendations

    def get_database_optimizations(self) -> list[dict[str, Any]]:
        """Suggest indexes for commonly filtered columns that have none."""
        suggestions: list[dict[str, Any]] = []
        if self._engine is None:
            return suggestions

        try:
            inspector = inspect(self._engine)
            existing_tables = set(inspector.get_table_names())

            for table in MONITORED_TABLES:
                if table not in existing_tables:
                    continue
                columns = {column["name"] for column in inspector.get_columns(table)}
                indexed: set[str] = set()
                for index in inspector.get_indexes(table):
                    indexed.update(name for name in index["column_names"] if name)
                indexed.update(inspector.get_pk_constraint(table).get("constrained_columns") or [])

                for column in INDEX_CANDIDATE_COLUMNS:
                    if column in columns and column not in indexed:
                        suggestions.append({
                            "type": "missing_index",
                            "table": table,
                            "column": column,
                            "suggestion": f"Consider adding an index on {table}.{column}",
                        })

            if self._engine.dialect.name in ("mysql", "mariadb"):
                suggestions.extend(self._large_table_suggestions())

        except Exception as e:
            logger.error("Database optimization analysis failed: %s", e)

        return suggestions

    def _large_table_suggestions(self) -> list[dict[str, Any]]:
        assert self._engine is not None
        sql = text(
            "SELECT table_name, "
            "ROUND(((data_length + index_length) / 1024 / 1024), 2) AS size_mb "
            "FROM information_schema.tables WHERE table_schema = DATABASE() "
            "ORDER BY size_mb DESC"
        )
        with self._engine.connect() as conn:
            rows = conn.execute(sql).mappings().all()
        return [
            {
                "type": "large_table",
                "table": row["table_name"],
                "size": f"{row['size_mb']} MB",
                "suggestion": "Consider partitioning or archiving old data",
            }
            for row in rows
            if row["size_mb"] is not None and float(row["size_mb"]) > LARGE_TABLE_MB
        ]

    def generate_report(self) -> dict[str, Any]:
        return {
            "timestamp": datetime.now().isoformat(timespec="seconds"),
            "metrics": self.get_metrics(),
            "slow_queries": [asdict(q) for q in self.slow_queries],
            "recommendations": self.analyze_slow_queries(),
            "database_optimizations": self.get_database_optimizations(),
            "system_info": {
                "python_version": platform.python_version(),
                "flask_version": _package_version("flask"),
                "sqlalchemy_version": _package_version("sqlalchemy"),
                "database_driver": self.settings.database_driver,
            },
        }

    def reset(self) -> None:
        with self._lock:
            self._query_count = 0
            self._query_time_ms = 0.0
            self._slow_queries = []


def _package_version(name: str) -> str:
    try:
        return version(name)
    except PackageNotFoundError:
        return "unknown"
