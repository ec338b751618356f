"""Health check endpoints for liveness and readiness probes."""

from typing import Any

from dependency_injector.wiring import Provide, inject
from flask import Blueprint, jsonify

from marathon_exporter.core.shutdown import ShutdownCoordinatorProtocol

health_bp = Blueprint("health", __name__, url_prefix="/health")


@health_bp.route("/healthz", methods=["GET"])
def healthz() -> Any:
    """Liveness probe; the process is alive as long as it answers."""
    return jsonify({"status": "alive", "ready": True}), 200


@health_bp.route("/readyz", methods=["GET"])
@inject
def readyz(
    shutdown_coordinator: ShutdownCoordinatorProtocol = Provide["shutdown_coordinator"],
) -> Any:
    """Readiness probe; not ready once shutdown has started."""
    if shutdown_coordinator.is_shutting_down():
        return jsonify({"status": "shutting down", "ready": False}), 503

    return jsonify({"status": "ready", "ready": True}), 200
