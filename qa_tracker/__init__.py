"""
QA Task Tracker
Flask Application Factory.

Usage:
    from qa_tracker import create_app
    app = create_app()           # defaults to "development"
    app = create_app("testing")  # explicit config
"""

import logging
import os

import click
from flask import Flask, request
from flask_cors import CORS
from flask_limiter import Limiter
from flask_limiter.util import get_remote_address
from flask_migrate import Migrate

from qa_tracker.config import config
from qa_tracker.models import db
from qa_tracker.middleware.logging_config import configure_logging
from qa_tracker.middleware.timing import init_request_timing
from qa_tracker.middleware.diagnostics import run_startup_diagnostics
from qa_tracker.middleware.rate_limiter import init_rate_limits
from qa_tracker.utils.errors import E, api_error

logger = logging.getLogger(__name__)

migrate = Migrate()
limiter = Limiter(
    key_func=get_remote_address,
    default_limits=[],                     # limits are attached per blueprint
)


def create_app(config_name=None):
    """
    Create and configure the Flask application.

    Args:
        config_name: Configuration environment name.
                     One of: "development", "testing", "production".
                     Defaults to APP_ENV env var, or "development" if unset.

    Returns:
        Configured Flask application instance.
    """
    if config_name is None:
        config_name = os.getenv("APP_ENV", "development")

    app = Flask(__name__, instance_relative_config=True)
    app.config.from_object(config[config_name]())

    # ── Structured logging (must be first) ───────────────────────────────
    configure_logging(app)

    os.makedirs(app.instance_path, exist_ok=True)

    # ── Extensions ───────────────────────────────────────────────────────
    db.init_app(app)
    migrate.init_app(app, db)
    limiter.init_app(app)
    cors_origins = app.config.get("CORS_ORIGINS", "*")
    if cors_origins and cors_origins != "*":
        CORS(app, origins=[o.strip() for o in cors_origins.split(",") if o.strip()])
    else:
        CORS(app)

    # ── Request timing middleware ────────────────────────────────────────
    init_request_timing(app)

    # ── Request guard (Content-Type on mutating API calls) ───────────────
    @app.before_request
    def _guard_request():
        if request.method in ("POST", "PUT", "PATCH") and request.path.startswith("/api/"):
            ct = request.content_type or ""
            if request.data and "json" not in ct:
                return api_error(E.UNSUPPORTED_MEDIA, "Content-Type must be application/json")
        return None

    # ── Import models so Alembic can detect them ─────────────────────────
    from qa_tracker.models import testing as _testing_models  # noqa: F401

    # ── Auto-create tables (CREATE IF NOT EXISTS) ────────────────────────
    with app.app_context():
        try:
            db.create_all()
            app.logger.info("db.create_all() completed successfully")
        except Exception as e:
            app.logger.warning("db.create_all() failed: %s", e)

    # ── Blueprints ───────────────────────────────────────────────────────
    from qa_tracker.blueprints.task_bp import task_bp
    from qa_tracker.blueprints.test_execution_bp import test_execution_bp
    from qa_tracker.blueprints.dashboard_bp import dashboard_bp
    from qa_tracker.blueprints.health_bp import health_bp

    app.register_blueprint(task_bp)
    app.register_blueprint(test_execution_bp)
    app.register_blueprint(dashboard_bp)
    app.register_blueprint(health_bp)

    # ── CLI commands ─────────────────────────────────────────────────────
    @app.cli.command("seed-demo")
    @click.option("--executions/--no-executions", default=True,
                  help="Also record one sample run per task.")
    def seed_demo_cmd(executions):
        """Insert a handful of demo QA tasks (and sample runs)."""
        from qa_tracker.services.seed import seed_demo_data
        tasks, runs = seed_demo_data(with_executions=executions)
        db.session.commit()
        logger.info("Seeded %s demo tasks and %s test executions.", tasks, runs)

    # ── Error handlers ───────────────────────────────────────────────────
    @app.errorhandler(404)
    def not_found(e):
        return api_error(E.NOT_FOUND, "Not found", details={"path": request.path})

    @app.errorhandler(405)
    def method_not_allowed(e):
        return api_error(E.METHOD_NOT_ALLOWED, "Method not allowed")

    @app.errorhandler(413)
    def payload_too_large(e):
        return api_error(E.PAYLOAD_TOO_LARGE, "Request body too large")

    @app.errorhandler(429)
    def rate_limited(e):
        return api_error(E.RATE_LIMITED, "Too many requests", details={"retry_after": str(e.description)})

    @app.errorhandler(500)
    def server_error(e):
        logger.error("500 error: %s", e, exc_info=True)
        return api_error(E.INTERNAL, "Internal server error")

    # ── Startup diagnostics ──────────────────────────────────────────────
    run_startup_diagnostics(app)

    # ── Rate limiting (after blueprints registered) ──────────────────────
    init_rate_limits(app, limiter)

    return app
