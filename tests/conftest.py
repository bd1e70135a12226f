"""
Shared pytest fixtures for the QA Task Tracker test suite.

Provides:
    - app: Flask application (session-scoped)
    - _setup_db: Database table creation/teardown (session-scoped)
    - session: Per-test DB cleanup w/ rollback + recreate (autouse)
    - client: Flask test client (function-scoped)
    - task: Pre-created Task (via the API)
"""

import pytest

from qa_tracker import create_app
from qa_tracker.models import db as _db


# ── App & DB fixtures ────────────────────────────────────────────────────


@pytest.fixture(scope="session")
def app():
    """Create the Flask application once per test session."""
    application = create_app("testing")
    return application


@pytest.fixture(scope="session")
def _setup_db(app):
    """Create all tables at session start, drop at end."""
    with app.app_context():
        _db.create_all()
    yield
    with app.app_context():
        _db.drop_all()


@pytest.fixture(autouse=True)
def session(app, _setup_db):
    """Per-test: open app context, rollback after test, recreate tables."""
    with app.app_context():
        yield
        _db.session.rollback()
        _db.drop_all()
        _db.create_all()


@pytest.fixture()
def client(app):
    """Flask test client."""
    return app.test_client()


# ── Convenience helpers ──────────────────────────────────────────────────


def _make_task(client, **overrides):
    payload = {
        "tags": ["Bug Fix"],
        "description": "Checkout total is off by one cent",
        "testCases": ["Apply discount", "Compare totals"],
    }
    payload.update(overrides)
    res = client.post("/api/tasks", json=payload)
    assert res.status_code == 200, res.get_json()
    return res.get_json()["data"]


@pytest.fixture()
def task(client):
    """Create and return a test Task via the API."""
    return _make_task(client)
