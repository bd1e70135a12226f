"""
QA Task Tracker
Blueprint registry and shared request helpers.
"""

import logging

from flask import request
from werkzeug.exceptions import HTTPException

from qa_tracker.core.exceptions import ConflictError, NotFoundError, ValidationError
from qa_tracker.models import db
from qa_tracker.utils.errors import E, api_error

logger = logging.getLogger(__name__)


def json_body():
    """Return the request JSON as a dict (empty dict for missing/invalid bodies)."""
    data = request.get_json(silent=True)
    return data if isinstance(data, dict) else {}


def register_error_handlers(bp):
    """Map service-layer exceptions to envelope responses for one blueprint.

    ValidationError → 400, NotFoundError → 404, ConflictError → 409,
    anything else → opaque 500 (logged with traceback, session rolled back).
    """

    @bp.errorhandler(ValidationError)
    def _handle_validation(error: ValidationError):
        return api_error(E.VALIDATION_INVALID, str(error), details=error.details)

    @bp.errorhandler(NotFoundError)
    def _handle_not_found(error: NotFoundError):
        logger.info("Not found: %s", error)
        return api_error(E.NOT_FOUND, error.public_message)

    @bp.errorhandler(ConflictError)
    def _handle_conflict(error: ConflictError):
        return api_error(E.CONFLICT_DUPLICATE, str(error))

    @bp.errorhandler(Exception)
    def _handle_unexpected(error: Exception):
        if isinstance(error, HTTPException):
            return error
        db.session.rollback()
        logger.exception("Unexpected error in %s endpoint=%s", bp.name, request.endpoint)
        return api_error(E.INTERNAL, "Internal server error")
