"""
HTTP client for the QA Task Tracker API.

Usage:
    from qa_tracker.client import TrackerApi, TaskContext, TestExecutionContext

    api = TrackerApi("http://localhost:5000")
    tasks = TaskContext(api)
    tasks.refresh()
    tasks.create_task({"tags": ["Bug Fix"], "description": "d", "testCases": ["t1"]})
"""

from qa_tracker.client.context import (  # noqa: F401
    ApiClientError,
    TaskContext,
    TestExecutionContext,
    TrackerApi,
)
