"""
Rate limits for the tracker blueprints (Flask-Limiter).

The Limiter in ``qa_tracker/__init__.py`` has no default limit; limits are
attached here per blueprint after registration. Mutating blueprints share
the write budget, the dashboard uses the read budget and health probes are
exempt. Nothing is applied when TESTING or RATELIMIT_ENABLED is off.
"""

import logging

logger = logging.getLogger(__name__)

WRITE_LIMIT = "60/minute"
READ_LIMIT = "200/minute"

# blueprint name -> (config key, fallback)
BLUEPRINT_LIMITS = {
    "tasks": ("RATELIMIT_WRITE", WRITE_LIMIT),
    "test_executions": ("RATELIMIT_WRITE", WRITE_LIMIT),
    "dashboard": ("RATELIMIT_READ", READ_LIMIT),
}

EXEMPT_BLUEPRINTS = ("health",)


def init_rate_limits(app, limiter):
    """Attach per-blueprint limits; returns the applied mapping."""
    if app.config.get("TESTING") or not app.config.get("RATELIMIT_ENABLED", True):
        logger.info("Rate limiter disabled")
        return {}

    applied = {}
    for bp_name, (config_key, fallback) in BLUEPRINT_LIMITS.items():
        bp = app.blueprints.get(bp_name)
        if bp is None:
            continue
        applied[bp_name] = app.config.get(config_key) or fallback
        limiter.limit(applied[bp_name])(bp)

    for bp_name in EXEMPT_BLUEPRINTS:
        bp = app.blueprints.get(bp_name)
        if bp is not None:
            limiter.exempt(bp)

    logger.info("Rate limits applied: %s", applied)
    return applied
