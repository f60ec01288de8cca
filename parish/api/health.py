"""Health check endpoints for container probes."""

from typing import Any

from flask import Blueprint, jsonify

from parish import database as _database_module

health_bp = Blueprint("health", __name__, url_prefix="/health")


def _check_database() -> dict[str, Any]:
    # Look up functions via module to allow test patching
    connected = _database_module.check_db_connection()
    if not connected:
        return {"connected": False, "ok": False}
    pending = _database_module.get_pending_migrations()
    return {
        "connected": True,
        "migrations_pending": len(pending),
        "ok": not pending,
    }


@health_bp.route("/healthz", methods=["GET"])
def healthz() -> Any:
    """Liveness probe: the process is up and serving requests."""
    return jsonify({"status": "alive", "ready": True}), 200


@health_bp.route("/readyz", methods=["GET"])
def readyz() -> Any:
    """Readiness probe: the database is reachable and fully migrated."""
    database = _check_database()
    if not database["ok"]:
        return jsonify({"status": "not ready", "ready": False, "database": database}), 503
    return jsonify({"status": "ready", "ready": True, "database": database}), 200
