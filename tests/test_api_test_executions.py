"""
QA Task Tracker
Tests — Test Execution API.

Covers:
    - Submit run: derived counts, task summary, create-or-overwrite by testId
    - Validation: missing fields, malformed / unknown task id, bad case entries
    - Filtering (status, taskId, testId, search) and sorting
    - new-id generation
    - Detail / update / delete by execution id
    - Per-task listing
"""

import importlib
import re
import uuid
from types import SimpleNamespace

import pytest
from sqlalchemy.exc import IntegrityError, OperationalError

from qa_tracker.models.testing import ExecutionCaseResult, TestExecution
from qa_tracker.services import test_execution_service


# ── Helpers ─────────────────────────────────────────────────────────────────

def _create_task(client, **overrides):
    payload = {
        "tags": ["Regression"],
        "description": "Password reset email",
        "testCases": ["Request reset", "Open link", "Set password"],
    }
    payload.update(overrides)
    res = client.post("/api/tasks", json=payload)
    assert res.status_code == 200
    return res.get_json()["data"]


def _cases(*outcomes):
    return [{"testCase": f"Case {i + 1}", "passed": p} for i, p in enumerate(outcomes)]


def _submit(client, task_id, **overrides):
    payload = {
        "taskId": task_id,
        "testId": "TEST-000001-AAA",
        "testCases": _cases(True, True, False),
        "feedback": "Link expired too early",
        "testerName": "Maya",
    }
    payload.update(overrides)
    return client.post("/api/test-executions", json=payload)


def _run(client, task_id, **overrides):
    res = _submit(client, task_id, **overrides)
    assert res.status_code == 200, res.get_json()
    return res.get_json()["data"]


class _RecordingSession:
    def __init__(self):
        self.rollbacks = 0

    def rollback(self):
        self.rollbacks += 1


# ═════════════════════════════════════════════════════════════════════════════
# SUBMIT
# ═════════════════════════════════════════════════════════════════════════════

class TestSubmitExecution:
    def test_counts_derived_from_cases(self, client, task):
        res = _submit(client, task["id"])
        assert res.status_code == 200
        body = res.get_json()
        assert body["message"] == "Test execution created successfully"
        data = body["data"]
        assert data["passedTestCases"] == 2
        assert data["totalTestCases"] == 3
        assert data["passRate"] == 66.7
        assert data["status"] == "pending"
        assert [c["passed"] for c in data["testCases"]] == [True, True, False]

    def test_client_supplied_counts_ignored(self, client, task):
        data = _run(client, task["id"], passedTestCases=99, totalTestCases=100)
        assert data["passedTestCases"] == 2
        assert data["totalTestCases"] == 3

    def test_case_order_and_notes_kept(self, client, task):
        cases = [
            {"testCase": "Third", "passed": False, "notes": "  timeout  "},
            {"testCase": "First", "passed": True},
            {"testCase": "Second", "passed": True, "notes": ""},
        ]
        data = _run(client, task["id"], testCases=cases)
        assert data["testCases"] == [
            {"testCase": "Third", "passed": False, "notes": "timeout"},
            {"testCase": "First", "passed": True},
            {"testCase": "Second", "passed": True},
        ]

    def test_task_summary_embedded(self, client, task):
        data = _run(client, task["id"])
        assert data["taskId"] == task["id"]
        assert data["task"] == {
            "id": task["id"],
            "description": task["description"],
            "tags": task["tags"],
        }

    def test_same_test_id_overwrites_in_place(self, client, task):
        first = _run(client, task["id"])
        res = _submit(
            client, task["id"],
            testCases=_cases(True), feedback="Fixed", testerName="Jonas", status="completed",
        )
        assert res.status_code == 200
        body = res.get_json()
        assert body["message"] == "Test execution updated successfully"
        second = body["data"]
        assert second["id"] == first["id"]
        assert second["createdAt"] == first["createdAt"]
        assert second["passedTestCases"] == 1
        assert second["totalTestCases"] == 1
        assert second["feedback"] == "Fixed"
        assert second["status"] == "completed"
        assert TestExecution.query.count() == 1
        assert ExecutionCaseResult.query.count() == 1

    def test_empty_case_list_recorded_with_zero_counts(self, client, task):
        res = _submit(client, task["id"], testCases=[])
        assert res.status_code == 200
        data = res.get_json()["data"]
        assert data["testCases"] == []
        assert data["passedTestCases"] == 0
        assert data["totalTestCases"] == 0
        assert data["passRate"] == 0.0

    def test_non_list_cases_rejected(self, client, task):
        res = _submit(client, task["id"], testCases={"testCase": "x"})
        assert res.status_code == 400
        assert res.get_json()["error"] == "testCases must be a list"

    def test_concurrent_insert_retried_as_overwrite(self, client, task, monkeypatch):
        _run(client, task["id"], testId="TEST-RACE-001")
        real_upsert = test_execution_service.upsert_execution
        calls = []

        def _lose_first_insert(data):
            calls.append(data["testId"])
            if len(calls) == 1:
                raise IntegrityError(
                    "INSERT INTO test_executions", {},
                    Exception("UNIQUE constraint failed: test_executions.test_id"),
                )
            return real_upsert(data)

        monkeypatch.setattr(test_execution_service, "upsert_execution", _lose_first_insert)
        res = _submit(client, task["id"], testId="TEST-RACE-001", feedback="second writer")
        assert res.status_code == 200
        body = res.get_json()
        assert body["message"] == "Test execution updated successfully"
        assert body["data"]["feedback"] == "second writer"
        assert len(calls) == 2
        assert TestExecution.query.count() == 1

    def test_persistent_collision_is_opaque_500(self, client, task, monkeypatch):
        calls = []

        def _always_collide(data):
            calls.append(data["testId"])
            raise IntegrityError("INSERT INTO test_executions", {}, Exception("UNIQUE"))

        monkeypatch.setattr(test_execution_service, "upsert_execution", _always_collide)
        res = _submit(client, task["id"])
        assert res.status_code == 500
        assert res.get_json() == {"success": False, "error": "Failed to create test execution"}
        assert len(calls) == 2
        assert TestExecution.query.count() == 0

    @pytest.mark.parametrize("field", ["taskId", "testId", "testCases", "feedback", "testerName"])
    def test_missing_field_rejected(self, client, task, field):
        payload = {
            "taskId": task["id"],
            "testId": "TEST-000001-AAA",
            "testCases": _cases(True),
            "feedback": "ok",
            "testerName": "Maya",
        }
        payload.pop(field)
        res = client.post("/api/test-executions", json=payload)
        assert res.status_code == 400
        body = res.get_json()
        assert body["error"] == "Task ID, Test ID, test cases, feedback, and tester name are required"
        assert field in body["details"]
        assert TestExecution.query.count() == 0

    def test_blank_tester_name_rejected(self, client, task):
        res = _submit(client, task["id"], testerName="   ")
        assert res.status_code == 400

    def test_malformed_task_id_rejected(self, client):
        res = _submit(client, "bad-id")
        assert res.status_code == 400
        assert res.get_json()["error"] == "Invalid task ID"

    def test_unknown_task_is_404(self, client):
        res = _submit(client, str(uuid.uuid4()))
        assert res.status_code == 404
        assert res.get_json()["error"] == "Task not found"
        assert TestExecution.query.count() == 0

    def test_case_without_text_rejected(self, client, task):
        res = _submit(client, task["id"], testCases=[{"testCase": "ok", "passed": True}, {"passed": True}])
        assert res.status_code == 400
        assert res.get_json()["error"] == "Test case #2 text is required"

    def test_case_must_be_object(self, client, task):
        res = _submit(client, task["id"], testCases=["plain string"])
        assert res.status_code == 400

    def test_invalid_status_rejected(self, client, task):
        res = _submit(client, task["id"], status="skipped")
        assert res.status_code == 400


# ═════════════════════════════════════════════════════════════════════════════
# LIST — filters & sorting
# ═════════════════════════════════════════════════════════════════════════════

class TestListExecutions:
    @pytest.fixture()
    def runs(self, client):
        t1 = _create_task(client, description="Checkout")
        t2 = _create_task(client, description="Login")
        _run(client, t1["id"], testId="TEST-100001-AAA", status="completed",
             testerName="Maya", feedback="All good", testCases=_cases(True, True))
        _run(client, t1["id"], testId="TEST-100002-BBB", status="failed",
             testerName="Jonas", feedback="Rounding broken", testCases=_cases(False))
        _run(client, t2["id"], testId="TEST-200003-CCC", status="in-progress",
             testerName="Priya", feedback="Halfway", testCases=_cases(True, False, True))
        return t1, t2

    def test_list_all_newest_first(self, client, runs):
        data = client.get("/api/test-executions").get_json()["data"]
        assert [e["testId"] for e in data] == [
            "TEST-200003-CCC", "TEST-100002-BBB", "TEST-100001-AAA",
        ]

    def test_filter_status(self, client, runs):
        data = client.get("/api/test-executions?status=failed").get_json()["data"]
        assert [e["testId"] for e in data] == ["TEST-100002-BBB"]

    def test_status_all_disables_filter(self, client, runs):
        data = client.get("/api/test-executions?status=all").get_json()["data"]
        assert len(data) == 3

    def test_filter_task_id(self, client, runs):
        t1, _ = runs
        data = client.get(f"/api/test-executions?taskId={t1['id']}").get_json()["data"]
        assert {e["testId"] for e in data} == {"TEST-100001-AAA", "TEST-100002-BBB"}

    def test_filter_test_id_substring_case_insensitive(self, client, runs):
        data = client.get("/api/test-executions?testId=bbb").get_json()["data"]
        assert [e["testId"] for e in data] == ["TEST-100002-BBB"]

    def test_search_over_tester_and_feedback(self, client, runs):
        by_tester = client.get("/api/test-executions?search=priya").get_json()["data"]
        assert [e["testId"] for e in by_tester] == ["TEST-200003-CCC"]
        by_feedback = client.get("/api/test-executions?search=ROUNDING").get_json()["data"]
        assert [e["testId"] for e in by_feedback] == ["TEST-100002-BBB"]

    def test_filters_combine(self, client, runs):
        t1, _ = runs
        data = client.get(
            f"/api/test-executions?taskId={t1['id']}&status=completed"
        ).get_json()["data"]
        assert [e["testId"] for e in data] == ["TEST-100001-AAA"]

    def test_sort_by_tester_ascending(self, client, runs):
        data = client.get(
            "/api/test-executions?sortBy=testerName&sortOrder=asc"
        ).get_json()["data"]
        assert [e["testerName"] for e in data] == ["Jonas", "Maya", "Priya"]

    def test_sort_by_total_descending(self, client, runs):
        data = client.get("/api/test-executions?sortBy=totalTestCases").get_json()["data"]
        assert [e["totalTestCases"] for e in data] == [3, 2, 1]

    def test_unknown_sort_field_falls_back(self, client, runs):
        data = client.get("/api/test-executions?sortBy=__class__").get_json()["data"]
        assert data[0]["testId"] == "TEST-200003-CCC"

    def test_no_match_is_empty_list(self, client, runs):
        res = client.get("/api/test-executions?search=nothing-like-this")
        assert res.status_code == 200
        assert res.get_json()["data"] == []

    def test_query_failure_rolls_back(self, client, monkeypatch):
        bp_module = importlib.import_module("qa_tracker.blueprints.test_execution_bp")
        recorder = _RecordingSession()

        def _boom(**kwargs):
            raise OperationalError("SELECT", {}, Exception("database is locked"))

        monkeypatch.setattr(test_execution_service, "list_executions", _boom)
        monkeypatch.setattr(bp_module, "db", SimpleNamespace(session=recorder))
        res = client.get("/api/test-executions")
        assert res.status_code == 500
        assert res.get_json() == {"success": False, "error": "Failed to fetch test executions"}
        assert recorder.rollbacks == 1


# ═════════════════════════════════════════════════════════════════════════════
# NEW ID
# ═════════════════════════════════════════════════════════════════════════════

class TestNewTestId:
    def test_format(self, client):
        res = client.get("/api/test-executions/new-id")
        assert res.status_code == 200
        test_id = res.get_json()["data"]["testId"]
        assert re.fullmatch(r"TEST-\d{6}-[A-Z0-9]{3}", test_id)


# ═════════════════════════════════════════════════════════════════════════════
# DETAIL / UPDATE / DELETE
# ═════════════════════════════════════════════════════════════════════════════

class TestExecutionById:
    def test_get(self, client, task):
        run = _run(client, task["id"])
        res = client.get(f"/api/test-executions/{run['id']}")
        assert res.status_code == 200
        assert res.get_json()["data"]["testId"] == run["testId"]

    def test_get_malformed_id(self, client):
        res = client.get("/api/test-executions/42")
        assert res.status_code == 400
        assert res.get_json()["error"] == "Invalid test execution ID"

    def test_get_absent_id(self, client):
        res = client.get(f"/api/test-executions/{uuid.uuid4()}")
        assert res.status_code == 404
        assert res.get_json()["error"] == "Test execution not found"

    def test_update(self, client, task):
        run = _run(client, task["id"])
        res = client.put(f"/api/test-executions/{run['id']}", json={
            "taskId": task["id"],
            "testId": "TEST-000001-ZZZ",
            "testCases": _cases(True, True),
            "feedback": "Retested",
            "testerName": "Jonas",
            "status": "completed",
        })
        assert res.status_code == 200
        body = res.get_json()
        assert body["message"] == "Test execution updated successfully"
        assert body["data"]["id"] == run["id"]
        assert body["data"]["testId"] == "TEST-000001-ZZZ"
        assert body["data"]["passedTestCases"] == 2
        assert body["data"]["totalTestCases"] == 2

    def test_update_duplicate_test_id_is_409(self, client, task):
        _run(client, task["id"], testId="TEST-000001-AAA")
        other = _run(client, task["id"], testId="TEST-000002-BBB")
        res = client.put(f"/api/test-executions/{other['id']}", json={
            "taskId": task["id"],
            "testId": "TEST-000001-AAA",
            "testCases": _cases(True),
            "feedback": "dup",
            "testerName": "Maya",
        })
        assert res.status_code == 409
        assert res.get_json()["success"] is False
        unchanged = client.get(f"/api/test-executions/{other['id']}").get_json()["data"]
        assert unchanged["testId"] == "TEST-000002-BBB"

    def test_update_missing_fields_is_400(self, client, task):
        run = _run(client, task["id"])
        res = client.put(f"/api/test-executions/{run['id']}", json={"feedback": "only"})
        assert res.status_code == 400

    def test_delete(self, client, task):
        run = _run(client, task["id"])
        res = client.delete(f"/api/test-executions/{run['id']}")
        assert res.status_code == 200
        assert res.get_json() == {
            "success": True, "message": "Test execution deleted successfully",
        }
        assert TestExecution.query.count() == 0
        assert ExecutionCaseResult.query.count() == 0

    def test_delete_absent_id(self, client):
        assert client.delete(f"/api/test-executions/{uuid.uuid4()}").status_code == 404


# ═════════════════════════════════════════════════════════════════════════════
# PER-TASK LISTING
# ═════════════════════════════════════════════════════════════════════════════

class TestTaskExecutions:
    def test_lists_only_that_task(self, client, task):
        other = _create_task(client)
        _run(client, task["id"], testId="TEST-1")
        _run(client, other["id"], testId="TEST-2")
        res = client.get(f"/api/tasks/{task['id']}/test-executions")
        assert res.status_code == 200
        assert [e["testId"] for e in res.get_json()["data"]] == ["TEST-1"]

    def test_unknown_task_is_404(self, client):
        res = client.get(f"/api/tasks/{uuid.uuid4()}/test-executions")
        assert res.status_code == 404

    def test_malformed_task_id_is_400(self, client):
        assert client.get("/api/tasks/nope/test-executions").status_code == 400
