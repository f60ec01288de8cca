"""Flask application class carrying the service container."""

from typing import TYPE_CHECKING

from flask import Flask

if TYPE_CHECKING:
    from parish.services.container import ServiceContainer
    from parish.services.performance_monitor_service import PerformanceMonitorService


class App(Flask):
    """Flask app with typed access to the DI container."""

    container: "ServiceContainer"
    performance_monitor: "PerformanceMonitorService"
