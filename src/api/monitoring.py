"""
Monitoring and metrics API endpoints.

This blueprint provides:
- /metrics: Prometheus-compatible metrics endpoint
- /metrics/json: JSON format metrics
- /health: Basic health check
- /health/live: Liveness check
- /health/ready: Readiness check
"""

import os
import time

from flask import Blueprint, Response, jsonify

from monitoring import metrics

from .state import get_engine, get_storage

monitoring_bp = Blueprint("monitoring", __name__)

_startup_time = time.time()


@monitoring_bp.route("/metrics", methods=["GET"])
def prometheus_metrics():
    """Prometheus text exposition of all collected metrics."""
    _update_dynamic_metrics()
    return Response(metrics.to_prometheus(), mimetype="text/plain; charset=utf-8")


@monitoring_bp.route("/metrics/json", methods=["GET"])
def json_metrics():
    """All collected metrics as JSON."""
    _update_dynamic_metrics()
    return jsonify(metrics.get_all())


@monitoring_bp.route("/health", methods=["GET"])
def health():
    """
    Basic health check endpoint.

    Returns service status and key statistics.
    """
    engine = get_engine()
    stats = engine.get_pool_stats()
    return jsonify({
        "status": "healthy",
        "service": "StakePool API",
        "version": _get_version(),
        "uptime_seconds": time.time() - _startup_time,
        "checks": {
            "pool": {
                "status": "ok" if stats["solvent"] else "undercollateralized",
                "accounts": stats["account_count"],
                "total_staked": stats["total_staked"],
                "pool_balance": stats["pool_balance"],
            },
            "storage": _check_storage(),
        },
        "environment": {
            "storage_backend": os.getenv("STORAGE_BACKEND", "json"),
            "log_level": os.getenv("LOG_LEVEL", "INFO"),
        },
    })


@monitoring_bp.route("/health/live", methods=["GET"])
def liveness():
    """Returns 200 while the process is running."""
    return jsonify({"status": "alive"})


@monitoring_bp.route("/health/ready", methods=["GET"])
def readiness():
    """
    Returns 200 if the service can accept traffic.

    Checks that the asset ledger answers and storage is writable.
    """
    issues = []

    try:
        get_engine().asset.pool_balance()
    except Exception as e:
        issues.append(f"asset: {e}")

    try:
        if not get_storage().is_available():
            issues.append("storage: not available")
    except Exception as e:
        issues.append(f"storage: {e}")

    if issues:
        return jsonify({"status": "not_ready", "issues": issues}), 503

    return jsonify({"status": "ready"})


def _get_version() -> str:
    """Get application version from package metadata."""
    from importlib.metadata import PackageNotFoundError, version

    try:
        return version("stakepool")
    except PackageNotFoundError:
        return "0.1.0"


def _check_storage() -> dict:
    """Check storage backend status."""
    try:
        storage = get_storage()
        available = storage.is_available()
        return {
            "status": "ok" if available else "degraded",
            "available": available,
            "backend": storage.__class__.__name__,
        }
    except Exception as e:
        return {
            "status": "error",
            "available": False,
            "error": str(e),
        }


def _update_dynamic_metrics() -> None:
    """Refresh pool gauges before export."""
    stats = get_engine().get_pool_stats()
    metrics.set_gauge("staking_pool_balance", float(stats["pool_balance"]))
    metrics.set_gauge("staking_outstanding_rewards", float(stats["outstanding_rewards"]))
    metrics.set_gauge("staking_active_stakers", float(stats["active_stakers"]))
    metrics.set_gauge("storage_available", 1.0 if _check_storage()["available"] else 0.0)
