"""
QA Task Tracker
Testing domain models.

Models:
    - Task:                 QA task with tags, description and test-case texts
    - TestExecution:        one recorded run of a task's test cases by a tester
    - ExecutionCaseResult:  pass/fail outcome of a single test case within a run

Architecture ref:
    Task ◀──N:1── TestExecution ──1:N──▶ ExecutionCaseResult

TestExecution references its Task by id only (no FK, no cascade): deleting a
task leaves its executions in place with an orphaned task_id.
"""

import uuid
from datetime import datetime, timezone

from qa_tracker.models import db


# ── Constants ────────────────────────────────────────────────────────────

TASK_STATUSES = {"pending", "in-progress", "completed", "failed"}

TASK_PRIORITIES = {"low", "medium", "high"}

EXECUTION_STATUSES = {"pending", "in-progress", "completed", "failed"}


def _uuid():
    return str(uuid.uuid4())


def _utcnow():
    return datetime.now(timezone.utc)


def _iso(value):
    if value is None:
        return None
    # SQLite hands timestamps back naive; they are always stored as UTC
    if isinstance(value, datetime) and value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.isoformat()


# ═════════════════════════════════════════════════════════════════════════════
# TASK
# ═════════════════════════════════════════════════════════════════════════════

class Task(db.Model):
    """
    A unit of QA work.

    Tags and test cases are stored as JSON string lists; the service layer
    guarantees at least one non-blank entry in each.
    """

    __tablename__ = "tasks"

    id = db.Column(db.String(36), primary_key=True, default=_uuid)
    title = db.Column(db.String(300), default="")
    description = db.Column(db.Text, nullable=False)
    status = db.Column(
        db.String(20), default="pending", index=True,
        comment="pending | in-progress | completed | failed",
    )
    priority = db.Column(
        db.String(20), default="medium",
        comment="low | medium | high",
    )
    assignee = db.Column(db.String(100), nullable=True)
    due_date = db.Column(db.Date, nullable=True)
    tags = db.Column(db.JSON, nullable=False, default=list)
    test_cases = db.Column(db.JSON, nullable=False, default=list, comment="Test-case description strings")
    notes = db.Column(db.Text, default="")
    attached_images = db.Column(db.JSON, nullable=False, default=list, comment="Image references (URLs)")

    created_at = db.Column(db.DateTime(timezone=True), default=_utcnow, index=True)
    updated_at = db.Column(db.DateTime(timezone=True), default=_utcnow, onupdate=_utcnow)

    def to_summary(self):
        """Reduced view embedded into execution payloads."""
        return {
            "id": self.id,
            "description": self.description,
            "tags": list(self.tags or []),
        }

    def to_dict(self):
        return {
            "id": self.id,
            "title": self.title or "",
            "description": self.description,
            "status": self.status,
            "priority": self.priority,
            "assignee": self.assignee,
            "dueDate": _iso(self.due_date),
            "tags": list(self.tags or []),
            "testCases": list(self.test_cases or []),
            "notes": self.notes or "",
            "attachedImages": list(self.attached_images or []),
            "createdAt": _iso(self.created_at),
            "updatedAt": _iso(self.updated_at),
        }

    def __repr__(self):
        return f"<Task {self.id}: {(self.title or self.description or '')[:30]}>"


# ═════════════════════════════════════════════════════════════════════════════
# TEST EXECUTION
# ═════════════════════════════════════════════════════════════════════════════

class TestExecution(db.Model):
    """
    One recorded run of a task's test cases.

    ``test_id`` is the human-facing run identifier and is unique; a second
    submission with the same value overwrites this record.
    ``passed_test_cases`` / ``total_test_cases`` are derived from
    ``case_results`` and refreshed by :meth:`recompute_counts`.
    """

    __test__ = False  # not a pytest test class
    __tablename__ = "test_executions"

    id = db.Column(db.String(36), primary_key=True, default=_uuid)
    task_id = db.Column(
        db.String(36), nullable=False, index=True,
        comment="Task reference by id (no FK; executions survive task deletion)",
    )
    test_id = db.Column(db.String(100), nullable=False, unique=True, index=True)
    status = db.Column(
        db.String(20), default="pending", index=True,
        comment="pending | in-progress | completed | failed",
    )
    feedback = db.Column(db.Text, nullable=False)
    tester_name = db.Column(db.String(100), nullable=False)
    attached_images = db.Column(db.JSON, nullable=False, default=list)
    passed_test_cases = db.Column(db.Integer, default=0, nullable=False)
    total_test_cases = db.Column(db.Integer, default=0, nullable=False)

    created_at = db.Column(db.DateTime(timezone=True), default=_utcnow, index=True)
    updated_at = db.Column(db.DateTime(timezone=True), default=_utcnow, onupdate=_utcnow)

    case_results = db.relationship(
        "ExecutionCaseResult", backref="execution", lazy="select",
        cascade="all, delete-orphan",
        order_by="ExecutionCaseResult.position",
    )
    task = db.relationship(
        "Task",
        primaryjoin="foreign(TestExecution.task_id) == Task.id",
        viewonly=True, uselist=False, lazy="select",
    )

    def set_case_results(self, cases):
        """Replace the ordered test-case results and refresh derived counts.

        ``cases`` is a list of dicts with ``testCase``, ``passed`` and
        optional ``notes`` keys, already validated by the service layer.
        """
        self.case_results = [
            ExecutionCaseResult(
                position=idx,
                test_case=case["testCase"],
                passed=bool(case.get("passed", False)),
                notes=case.get("notes"),
            )
            for idx, case in enumerate(cases)
        ]
        self.recompute_counts()

    def recompute_counts(self):
        """Derive passed/total counts from the current case results."""
        self.total_test_cases = len(self.case_results)
        self.passed_test_cases = sum(1 for r in self.case_results if r.passed)
        return self.passed_test_cases, self.total_test_cases

    @property
    def pass_rate(self):
        if not self.total_test_cases:
            return 0.0
        return round(100.0 * self.passed_test_cases / self.total_test_cases, 1)

    def to_dict(self, include_task=True):
        d = {
            "id": self.id,
            "taskId": self.task_id,
            "testId": self.test_id,
            "testCases": [r.to_dict() for r in self.case_results],
            "status": self.status,
            "feedback": self.feedback,
            "testerName": self.tester_name,
            "attachedImages": list(self.attached_images or []),
            "passedTestCases": self.passed_test_cases,
            "totalTestCases": self.total_test_cases,
            "passRate": self.pass_rate,
            "createdAt": _iso(self.created_at),
            "updatedAt": _iso(self.updated_at),
        }
        if include_task:
            d["task"] = self.task.to_summary() if self.task else None
        return d

    def __repr__(self):
        return f"<TestExecution {self.test_id}: {self.passed_test_cases}/{self.total_test_cases}>"


class ExecutionCaseResult(db.Model):
    """Outcome of one test case inside a run, kept in submission order."""

    __tablename__ = "execution_case_results"

    id = db.Column(db.Integer, primary_key=True)
    execution_id = db.Column(
        db.String(36), db.ForeignKey("test_executions.id", ondelete="CASCADE"),
        nullable=False, index=True,
    )
    position = db.Column(db.Integer, nullable=False, default=0)
    test_case = db.Column(db.Text, nullable=False)
    passed = db.Column(db.Boolean, default=False, nullable=False)
    notes = db.Column(db.Text, nullable=True)

    def to_dict(self):
        d = {"testCase": self.test_case, "passed": bool(self.passed)}
        if self.notes:
            d["notes"] = self.notes
        return d

    def __repr__(self):
        return f"<ExecutionCaseResult {self.position}: {'pass' if self.passed else 'fail'}>"
