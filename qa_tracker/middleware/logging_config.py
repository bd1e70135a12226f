"""
Logging setup for the tracker.

Production writes one JSON object per line; development and tests use a
short coloured line. The level comes from ``LOG_LEVEL`` (env var first,
then app config) and defaults to INFO in production, DEBUG elsewhere.
"""

import json
import logging
import os
import sys
from datetime import datetime, timezone

# Attributes the timing middleware passes through ``extra=``
REQUEST_FIELDS = (
    "request_id",
    "method",
    "path",
    "endpoint",
    "entity_id",
    "status",
    "duration_ms",
)

_NOISY_LOGGERS = ("urllib3", "werkzeug", "sqlalchemy.engine", "flask_limiter")


class JSONFormatter(logging.Formatter):
    """One JSON document per record, request fields flattened in."""

    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "location": f"{record.module}:{record.funcName}:{record.lineno}",
        }
        entry.update(
            (key, getattr(record, key))
            for key in REQUEST_FIELDS
            if getattr(record, key, None) is not None
        )
        if record.exc_info and record.exc_info[0] is not None:
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry, ensure_ascii=False, default=str)


class ReadableFormatter(logging.Formatter):
    """``HH:MM:SS LEVEL logger: message [12ms] (request-id)`` with ANSI colour."""

    COLORS = {
        "DEBUG": "\033[36m",
        "INFO": "\033[32m",
        "WARNING": "\033[33m",
        "ERROR": "\033[31m",
        "CRITICAL": "\033[35m",
    }
    RESET = "\033[0m"

    def format(self, record: logging.LogRecord) -> str:
        ts = datetime.fromtimestamp(record.created).strftime("%H:%M:%S")
        parts = [
            f"{self.COLORS.get(record.levelname, '')}{ts} {record.levelname:<8}{self.RESET}",
            f"{record.name}: {record.getMessage()}",
        ]
        duration = getattr(record, "duration_ms", None)
        if duration is not None:
            parts.append(f"[{duration:.0f}ms]")
        request_id = getattr(record, "request_id", None)
        if request_id:
            parts.append(f"({request_id})")
        line = " ".join(parts)
        if record.exc_info and record.exc_info[0] is not None:
            line += "\n" + self.formatException(record.exc_info)
        return line


def _resolve_level(app, is_prod):
    name = os.getenv("LOG_LEVEL") or app.config.get("LOG_LEVEL") or ("INFO" if is_prod else "DEBUG")
    return name.upper(), getattr(logging, name.upper(), logging.INFO)


def configure_logging(app):
    """Install a single stderr handler on the root logger for ``app``.

    Existing root handlers are removed first, so building several apps in
    one process (the test suite does) never duplicates output.
    """
    is_testing = app.config.get("TESTING", False)
    is_prod = not app.config.get("DEBUG", False) and not is_testing
    level_name, level = _resolve_level(app, is_prod)

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(JSONFormatter() if is_prod else ReadableFormatter())
    handler.setLevel(level)

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(level)

    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
    app.logger.setLevel(level)

    if not is_testing:
        app.logger.info("Logging configured: level=%s format=%s",
                        level_name, "json" if is_prod else "readable")
