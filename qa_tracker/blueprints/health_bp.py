"""
QA Task Tracker
Health Blueprint — probes for load balancers and container orchestrators.

Endpoints:
    GET /api/health/ready  — process is up (no dependency checks)
    GET /api/health/live   — database round-trip plus tracker record counts
"""

import logging
import time

from flask import Blueprint, current_app, jsonify
from sqlalchemy.exc import SQLAlchemyError

from qa_tracker.models import db
from qa_tracker.models.testing import Task, TestExecution
from qa_tracker.utils.errors import api_ok

logger = logging.getLogger(__name__)

health_bp = Blueprint("health", __name__, url_prefix="/api/health")


def _check_database():
    t0 = time.perf_counter()
    db.session.execute(db.text("SELECT 1"))
    return {"status": "ok", "latency_ms": round((time.perf_counter() - t0) * 1000, 1)}


def _record_counts():
    return {
        "tasks": db.session.query(Task.id).count(),
        "testExecutions": db.session.query(TestExecution.id).count(),
    }


@health_bp.route("/ready", methods=["GET"])
def ready():
    return api_ok({"status": "ok"})


@health_bp.route("/live", methods=["GET"])
def live():
    checks = {
        "app": {
            "name": "QA Task Tracker",
            "debug": current_app.debug,
            "testing": current_app.testing,
        },
    }
    try:
        checks["database"] = _check_database()
        checks["records"] = _record_counts()
    except SQLAlchemyError:
        db.session.rollback()
        logger.exception("Health check: database unavailable")
        checks["database"] = {"status": "error"}
        return jsonify({
            "success": False,
            "error": "Database unavailable",
            "data": {"status": "degraded", "checks": checks},
        }), 503

    return api_ok({"status": "ok", "checks": checks})
