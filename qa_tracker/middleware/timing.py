"""
Per-request bookkeeping for the tracker API.

Every response gets ``X-Request-ID`` (echoed from the caller when supplied)
and ``X-Request-Duration-Ms``. API calls are logged with the endpoint name
and, for routes addressing a single task or execution, the id they touched.
Probes under ``/api/health`` are timed but never logged.
"""

import logging
import time
import uuid

from flask import Flask, g, request

logger = logging.getLogger(__name__)

SLOW_THRESHOLD_MS = 1000

_QUIET_PREFIXES = ("/api/health", "/static")

# view_args keys that identify the record a request operates on
_ENTITY_ARGS = ("task_id", "execution_id")


def _entity_id():
    view_args = request.view_args or {}
    for key in _ENTITY_ARGS:
        if key in view_args:
            return view_args[key]
    return None


def _level_for(status_code, duration_ms, slow_ms):
    if status_code >= 500:
        return logging.ERROR
    if duration_ms > slow_ms:
        return logging.WARNING
    return logging.DEBUG


def init_request_timing(app: Flask):
    """Attach request-id / duration hooks to ``app``."""
    slow_ms = app.config.get("SLOW_REQUEST_MS", SLOW_THRESHOLD_MS)

    @app.before_request
    def _stamp_request():
        g.request_start = time.perf_counter()
        g.request_id = request.headers.get("X-Request-ID") or uuid.uuid4().hex[:12]

    @app.after_request
    def _finish_request(response):
        start = getattr(g, "request_start", None)
        if start is None:
            return response

        duration_ms = (time.perf_counter() - start) * 1000
        response.headers["X-Request-ID"] = g.request_id
        response.headers["X-Request-Duration-Ms"] = f"{duration_ms:.1f}"

        if request.path.startswith(_QUIET_PREFIXES):
            return response

        level = _level_for(response.status_code, duration_ms, slow_ms)
        logger.log(
            level, "%s %s -> %d (%.0fms)",
            request.method, request.path, response.status_code, duration_ms,
            extra={
                "method": request.method,
                "path": request.path,
                "endpoint": request.endpoint,
                "entity_id": _entity_id(),
                "status": response.status_code,
                "duration_ms": duration_ms,
                "request_id": g.request_id,
            },
        )
        return response
