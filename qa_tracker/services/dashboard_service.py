"""Dashboard aggregates for tasks and test executions.

Read-only; no session writes.
"""
import logging

from qa_tracker.models import db
from qa_tracker.models.testing import EXECUTION_STATUSES, Task, TestExecution

logger = logging.getLogger(__name__)

RECENT_LIMIT = 5


def compute_dashboard(recent_limit=RECENT_LIMIT):
    """Compute dashboard figures via SQL aggregates.

    Returns a dict ready for JSON serialization.
    """
    # ── Counts ──
    total_tasks = Task.query.count()
    total_executions = TestExecution.query.count()

    # ── Status distribution ──
    status_rows = dict(
        db.session.query(TestExecution.status, db.func.count(TestExecution.id))
        .group_by(TestExecution.status)
        .all()
    )
    status_counts = {s: status_rows.get(s, 0) for s in sorted(EXECUTION_STATUSES)}

    # ── Pass rate (weighted by test-case count) ──
    passed_sum, total_sum = db.session.query(
        db.func.coalesce(db.func.sum(TestExecution.passed_test_cases), 0),
        db.func.coalesce(db.func.sum(TestExecution.total_test_cases), 0),
    ).one()
    passed_sum, total_sum = int(passed_sum), int(total_sum)
    average_pass_rate = round(passed_sum / total_sum * 100, 1) if total_sum else 0

    # ── Recent activity ──
    recent = (
        TestExecution.query
        .order_by(TestExecution.created_at.desc(), TestExecution.id)
        .limit(recent_limit)
        .all()
    )

    return {
        "totalTasks": total_tasks,
        "totalExecutions": total_executions,
        "completedExecutions": status_counts.get("completed", 0),
        "inProgressExecutions": status_counts.get("in-progress", 0),
        "pendingExecutions": status_counts.get("pending", 0),
        "failedExecutions": status_counts.get("failed", 0),
        "statusCounts": status_counts,
        "totalPassedTests": passed_sum,
        "totalTests": total_sum,
        "averagePassRate": average_pass_rate,
        "recentExecutions": [e.to_dict() for e in recent],
    }
