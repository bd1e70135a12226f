"""Shared utility functions used by blueprints and services.

parse_date:          lenient date parser (returns None on bad input)
parse_date_input:    strict date parser (raises ValueError on bad input)
is_valid_id:         UUID shape check for path identifiers
clean_str_list:      strip / drop blanks / de-duplicate a list of strings
db_commit_or_error:  commit with rollback + opaque 500 on failure
"""
import logging
import uuid
from datetime import date, datetime

from qa_tracker.models import db
from qa_tracker.utils.errors import E, api_error

logger = logging.getLogger(__name__)


def is_valid_id(value):
    """Return True when ``value`` is a well-formed UUID string.

    Identifiers are generated as ``str(uuid.uuid4())``; anything that does not
    parse as a UUID is rejected with 400 before touching the database.
    """
    if not isinstance(value, str) or not value:
        return False
    try:
        uuid.UUID(value)
    except (ValueError, AttributeError):
        return False
    return True


def parse_date(value):
    """Parse a date string (ISO or DD.MM.YYYY) to a date object.

    Returns None for empty/invalid input. Supports:
    - YYYY-MM-DD (ISO format)
    - YYYY-MM-DDTHH:MM:SS (datetime ISO → .date())
    - DD.MM.YYYY
    """
    if not value:
        return None
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat(str(value))
    except (ValueError, TypeError):
        pass
    try:
        return datetime.fromisoformat(str(value)).date()
    except (ValueError, TypeError):
        pass
    try:
        return datetime.strptime(str(value), "%d.%m.%Y").date()
    except (ValueError, TypeError):
        return None


def parse_date_input(value):
    """Parse a date string, raising ValueError on bad input.

    Same as parse_date() but raises ValueError instead of returning None,
    so callers can answer 400.
    """
    if not value:
        return None
    parsed = parse_date(value)
    if parsed is None:
        raise ValueError("Invalid date format. Use YYYY-MM-DD or DD.MM.YYYY.")
    return parsed


def clean_str_list(values, dedupe=False):
    """Strip each entry and drop blanks; optionally de-duplicate preserving order."""
    out = []
    for value in (values or []):
        if value is None:
            continue
        text = str(value).strip()
        if text:
            out.append(text)
    if dedupe:
        return list(dict.fromkeys(out))
    return out


# ── Database commit helper ───────────────────────────────────────────────────

def db_commit_or_error(failure_message="Database error"):
    """Commit the current SQLAlchemy session, returning an error response on failure.

    Returns:
        None on success.
        (response, status_code) tuple on failure — ready for ``return``.

    Usage::

        err = db_commit_or_error("Failed to create task")
        if err:
            return err

    Every failure is a 500 with ``failure_message``; the detail is logged
    server-side only.
    """
    from sqlalchemy.exc import OperationalError

    try:
        db.session.commit()
        return None
    except OperationalError:
        db.session.rollback()
        logger.exception("Database operational error on commit")
        return api_error(E.DATABASE, failure_message)
    except Exception:
        db.session.rollback()
        logger.exception("Unexpected database error on commit")
        return api_error(E.DATABASE, failure_message)
