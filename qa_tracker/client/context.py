"""
Client-side data contexts over the QA Task Tracker HTTP API.

A context keeps the current collection in memory together with a
``loading`` flag and the last ``error``. Every mutation is followed by a full
re-fetch of the list; there is no incremental cache update. Mutations raise
:class:`ApiClientError` so the calling UI code can show a notification, while
``refresh()`` only records the error (fetch-on-mount never raises).

All HTTP goes through :class:`TrackerApi`. Pass a custom ``session`` in tests
to route calls somewhere other than the network.
"""

from __future__ import annotations

import logging
from typing import Any

import requests

logger = logging.getLogger(__name__)

_DEFAULT_TIMEOUT = 30


class ApiClientError(Exception):
    """Raised when an API call fails or answers with ``success: false``.

    Attributes:
        status_code: HTTP status (None for network-level failures).
    """

    def __init__(self, message: str, status_code: int | None = None) -> None:
        self.status_code = status_code
        super().__init__(message)


class TrackerApi:
    """Thin envelope-aware wrapper around a ``requests.Session``."""

    def __init__(
        self,
        base_url: str = "http://localhost:5000",
        session: requests.Session | None = None,
        timeout: int = _DEFAULT_TIMEOUT,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._session = session

    @property
    def session(self) -> requests.Session:
        """Return (or lazily create) the requests.Session."""
        if self._session is None:
            self._session = requests.Session()
        return self._session

    def call(
        self,
        method: str,
        path: str,
        *,
        json_body: dict | None = None,
        params: dict | None = None,
        fallback_error: str = "Request failed",
    ) -> Any:
        """Execute one request and unwrap the envelope.

        Returns:
            The envelope's ``data`` member (None when absent).

        Raises:
            ApiClientError: network failure, non-JSON body, or
                ``success: false`` (message taken from the envelope's
                ``error`` when present, else ``fallback_error``).
        """
        kwargs: dict[str, Any] = {"timeout": self.timeout}
        if json_body is not None:
            kwargs["json"] = json_body
        if params:
            kwargs["params"] = {k: v for k, v in params.items() if v not in (None, "")}

        url = f"{self.base_url}{path}"
        try:
            resp = self.session.request(method, url, **kwargs)
        except requests.RequestException as exc:
            logger.warning("%s %s failed: %s", method, path, exc)
            raise ApiClientError(fallback_error) from exc

        try:
            body = resp.json()
        except ValueError as exc:
            raise ApiClientError(fallback_error, status_code=resp.status_code) from exc

        if not isinstance(body, dict) or not body.get("success"):
            message = body.get("error") if isinstance(body, dict) else None
            raise ApiClientError(message or fallback_error, status_code=resp.status_code)
        return body.get("data")


class _CollectionContext:
    """Shared state handling for list-backed contexts."""

    list_path = ""
    fetch_error = "Failed to fetch"

    def __init__(self, api: TrackerApi) -> None:
        self.api = api
        self.items: list[dict] = []
        self.loading = False
        self.error: str | None = None
        self._last_params: dict | None = None

    def refresh(self, params: dict | None = None) -> list[dict]:
        """Re-fetch the whole collection. Records failures in ``error``."""
        if params is not None:
            self._last_params = params
        self.loading = True
        try:
            data = self.api.call(
                "GET", self.list_path, params=self._last_params,
                fallback_error=self.fetch_error,
            )
            self.items = list(data or [])
            self.error = None
        except ApiClientError as exc:
            self.error = str(exc)
            logger.warning("%s: %s", self.fetch_error, exc)
        finally:
            self.loading = False
        return self.items

    def _mutate(self, method: str, path: str, fallback_error: str, json_body: dict | None = None):
        self.loading = True
        try:
            data = self.api.call(method, path, json_body=json_body, fallback_error=fallback_error)
        except ApiClientError as exc:
            self.error = str(exc)
            raise
        finally:
            self.loading = False
        self.refresh()
        return data


class TaskContext(_CollectionContext):
    """Tasks collection: create / update / delete / lookup."""

    list_path = "/api/tasks"
    fetch_error = "Failed to fetch tasks"

    def create_task(self, payload: dict) -> dict:
        return self._mutate("POST", "/api/tasks", "Failed to create task", payload)

    def update_task(self, task_id: str, payload: dict) -> dict:
        return self._mutate("PUT", f"/api/tasks/{task_id}", "Failed to update task", payload)

    def delete_task(self, task_id: str) -> None:
        self._mutate("DELETE", f"/api/tasks/{task_id}", "Failed to delete task")

    def get_task_by_id(self, task_id: str) -> dict | None:
        """Look a task up in the in-memory collection."""
        return next((t for t in self.items if t.get("id") == task_id), None)


class TestExecutionContext(_CollectionContext):
    """Test executions collection with filter-aware refresh."""

    __test__ = False  # not a pytest test class

    list_path = "/api/test-executions"
    fetch_error = "Failed to fetch test executions"

    def get_test_executions(self, filters: dict | None = None) -> list[dict]:
        """Refresh with filters (status, taskId, testId, search, sortBy, sortOrder)."""
        return self.refresh(filters or {})

    def new_test_id(self) -> str:
        data = self.api.call(
            "GET", "/api/test-executions/new-id", fallback_error="Failed to generate test ID",
        )
        return data["testId"]

    def create_test_execution(self, payload: dict) -> dict:
        """Submit a run; reuses the record when the testId already exists."""
        if not (payload.get("testId") or "").strip():
            payload = {**payload, "testId": self.new_test_id()}
        return self._mutate(
            "POST", "/api/test-executions", "Failed to create test execution", payload,
        )

    def update_test_execution(self, execution_id: str, payload: dict) -> dict:
        return self._mutate(
            "PUT", f"/api/test-executions/{execution_id}",
            "Failed to update test execution", payload,
        )

    def delete_test_execution(self, execution_id: str) -> None:
        self._mutate(
            "DELETE", f"/api/test-executions/{execution_id}", "Failed to delete test execution",
        )

    def get_test_execution_by_id(self, execution_id: str) -> dict | None:
        """Fetch one run from the API; None when it does not exist."""
        try:
            return self.api.call(
                "GET", f"/api/test-executions/{execution_id}",
                fallback_error="Failed to fetch test execution",
            )
        except ApiClientError as exc:
            if exc.status_code in (400, 404):
                return None
            raise

    def get_test_executions_by_task_id(self, task_id: str) -> list[dict]:
        return self.api.call(
            "GET", f"/api/tasks/{task_id}/test-executions",
            fallback_error="Failed to fetch test executions",
        ) or []
