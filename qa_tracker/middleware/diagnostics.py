"""
Startup diagnostics for the tracker.

Logs one summary line when the app boots: database backend and reachability,
whether the tracker tables exist, and where rate-limit counters live.
Skipped under TESTING.
"""

import logging

from flask import Flask
from sqlalchemy import inspect as sa_inspect
from sqlalchemy.exc import SQLAlchemyError

from qa_tracker.models import db

logger = logging.getLogger(__name__)

REQUIRED_TABLES = ("tasks", "test_executions", "execution_case_results")


def _backend_name(uri):
    if uri.startswith("postgresql"):
        return "PostgreSQL"
    if uri.startswith("sqlite"):
        return "SQLite"
    return uri.split(":", 1)[0] or "unknown"


def run_startup_diagnostics(app: Flask):
    """Check the database and log a summary; never raises."""
    if app.config.get("TESTING"):
        return

    backend = _backend_name(str(app.config.get("SQLALCHEMY_DATABASE_URI") or ""))
    issues = []

    with app.app_context():
        try:
            db.session.execute(db.text("SELECT 1"))
            present = set(sa_inspect(db.engine).get_table_names())
            missing = [t for t in REQUIRED_TABLES if t not in present]
            db_status = "ok"
        except SQLAlchemyError as exc:
            db.session.rollback()
            db_status, missing = "unreachable", list(REQUIRED_TABLES)
            issues.append(f"Database unreachable: {exc}")

        if missing and db_status == "ok":
            issues.append(f"Missing tables: {', '.join(missing)} (run 'flask db upgrade')")

    logger.info(
        "QA Task Tracker startup: database=%s (%s) tables=%d/%d limiter=%s",
        backend, db_status, len(REQUIRED_TABLES) - len(missing), len(REQUIRED_TABLES),
        app.config.get("RATELIMIT_STORAGE_URI", "memory://"),
    )
    for issue in issues:
        logger.warning("Startup issue: %s", issue)
