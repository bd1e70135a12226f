"""Standardised API response envelopes.

Every endpoint answers with ``{"success": bool, "data"?, "error"?, "message"?}``.

Usage
-----
    from qa_tracker.utils.errors import api_error, api_ok, E

    return api_ok(task.to_dict(), message="Task created successfully")
    return api_error(E.NOT_FOUND, "Task not found")
    return api_error(E.VALIDATION_REQUIRED, "At least one tag is required")
"""

from __future__ import annotations

from flask import jsonify


# ── Error kind constants ──────────────────────────────────────────────
class E:
    """Error kinds used to pick an HTTP status.

    The kind itself is not sent to clients; only the message is.
    """

    # Validation – HTTP 400
    VALIDATION_REQUIRED = "ERR_VALIDATION_REQUIRED"
    VALIDATION_INVALID = "ERR_VALIDATION_INVALID"

    # Not-found – HTTP 404
    NOT_FOUND = "ERR_NOT_FOUND"

    # Conflict / duplicate – HTTP 409
    CONFLICT_DUPLICATE = "ERR_CONFLICT_DUPLICATE"

    # Request shape – HTTP 405 / 413 / 415 / 429
    METHOD_NOT_ALLOWED = "ERR_METHOD_NOT_ALLOWED"
    PAYLOAD_TOO_LARGE = "ERR_PAYLOAD_TOO_LARGE"
    UNSUPPORTED_MEDIA = "ERR_UNSUPPORTED_MEDIA"
    RATE_LIMITED = "ERR_RATE_LIMITED"

    # Server – HTTP 500
    DATABASE = "ERR_DATABASE"
    INTERNAL = "ERR_INTERNAL"


# ── Default HTTP status mapping ───────────────────────────────────────
_DEFAULT_STATUS: dict[str, int] = {
    E.VALIDATION_REQUIRED: 400,
    E.VALIDATION_INVALID: 400,
    E.NOT_FOUND: 404,
    E.CONFLICT_DUPLICATE: 409,
    E.METHOD_NOT_ALLOWED: 405,
    E.PAYLOAD_TOO_LARGE: 413,
    E.UNSUPPORTED_MEDIA: 415,
    E.RATE_LIMITED: 429,
    E.DATABASE: 500,
    E.INTERNAL: 500,
}


def api_error(
    code: str,
    message: str,
    *,
    status: int | None = None,
    details: dict | None = None,
):
    """Build ``({"success": false, "error": message, "details"?}, status)``.

    ``code`` is one of the ``E.*`` kinds and only selects the HTTP status
    (unknown kinds answer 400); ``status`` overrides it. ``details`` is
    omitted when empty.
    """
    http_status = status or _DEFAULT_STATUS.get(code, 400)

    body: dict = {
        "success": False,
        "error": message,
    }
    if details:
        body["details"] = details

    return jsonify(body), http_status


def api_ok(data=None, *, message: str | None = None, status: int = 200):
    """Return a standard JSON success envelope.

    ``data`` is omitted from the body when ``None`` (e.g. deletes).
    """
    body: dict = {"success": True}
    if data is not None:
        body["data"] = data
    if message:
        body["message"] = message
    return jsonify(body), status
