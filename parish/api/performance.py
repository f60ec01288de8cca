"""Query performance monitoring endpoints."""

from dataclasses import asdict

from dependency_injector.wiring import Provide, inject
from flask import Blueprint
from spectree import Response as SpectreeResponse

from parish.schemas.report_schema import (
    PerformanceMetricsResponseSchema,
    PerformanceReportResponseSchema,
    SlowQueriesResponseSchema,
)
from parish.services.container import ServiceContainer
from parish.services.performance_monitor_service import PerformanceMonitorService
from parish.utils.spectree_config import api

performance_bp = Blueprint("performance", __name__, url_prefix="/performance")


@performance_bp.route("/metrics", methods=["GET"])
@api.validate(resp=SpectreeResponse(HTTP_200=PerformanceMetricsResponseSchema))
@inject
def get_performance_metrics(
    monitor: PerformanceMonitorService = Provide[ServiceContainer.performance_monitor],
):
    """Query counters, memory, cache and storage figures."""
    return PerformanceMetricsResponseSchema(**monitor.get_metrics()).model_dump()


@performance_bp.route("/slow-queries", methods=["GET"])
@api.validate(resp=SpectreeResponse(HTTP_200=SlowQueriesResponseSchema))
@inject
def get_slow_queries(
    monitor: PerformanceMonitorService = Provide[ServiceContainer.performance_monitor],
):
    """Recorded slow queries with the problem patterns found in them."""
    return SlowQueriesResponseSchema(
        slow_queries=[asdict(query) for query in monitor.slow_queries],
        analysis=monitor.analyze_slow_queries(),
    ).model_dump(mode="json")


@performance_bp.route("/report", methods=["GET"])
@api.validate(resp=SpectreeResponse(HTTP_200=PerformanceReportResponseSchema))
@inject
def get_performance_report(
    monitor: PerformanceMonitorService = Provide[ServiceContainer.performance_monitor],
):
    """Full performance report including index suggestions."""
    return PerformanceReportResponseSchema(**monitor.generate_report()).model_dump(mode="json")


@performance_bp.route("/reset", methods=["POST"])
@inject
def reset_performance_counters(
    monitor: PerformanceMonitorService = Provide[ServiceContainer.performance_monitor],
):
    """Start a fresh measurement window."""
    monitor.reset()
    return "", 204
