"""
QA Task Tracker
Dashboard Blueprint — aggregate figures for tasks and test executions.

Endpoints:
    GET /api/dashboard   — totals, status distribution, pass rate, recent runs

Query params:
    recent — number of newest executions to include (0..50, default from
             DASHBOARD_RECENT_LIMIT)
"""

import logging

from flask import Blueprint, current_app, request

from qa_tracker.blueprints import register_error_handlers
from qa_tracker.services import dashboard_service
from qa_tracker.utils.errors import api_ok

logger = logging.getLogger(__name__)

dashboard_bp = Blueprint("dashboard", __name__, url_prefix="/api")
register_error_handlers(dashboard_bp)

MAX_RECENT = 50


@dashboard_bp.route("/dashboard", methods=["GET"])
def dashboard():
    default = current_app.config.get("DASHBOARD_RECENT_LIMIT", dashboard_service.RECENT_LIMIT)
    try:
        recent = min(max(int(request.args.get("recent", default)), 0), MAX_RECENT)
    except (ValueError, TypeError):
        recent = default
    return api_ok(dashboard_service.compute_dashboard(recent_limit=recent))
