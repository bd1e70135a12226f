"""
Demo data for local development (``flask seed-demo``).

4 Tasks            (bug fix, feature, regression, UI)
4 Test Executions  (one run per task when requested)

Goes through the service layer so demo rows obey the same validation as
API-created ones. Caller commits.
"""

from qa_tracker.services import task_service, test_execution_service

TASK_DATA = [
    {"title": "Checkout total rounding",
     "tags": ["Bug Fix", "Payments"],
     "description": "Order totals with three or more discounted items are off by one cent.",
     "testCases": [
         "Apply two percentage discounts to a three-item cart",
         "Compare displayed total with invoice total",
         "Repeat with a fixed-amount voucher",
     ],
     "priority": "high", "status": "in-progress", "assignee": "Maya"},
    {"title": "CSV export of order history",
     "tags": ["Feature"],
     "description": "Customers can download their order history as CSV from the account page.",
     "testCases": [
         "Export with zero orders produces a header-only file",
         "Export with 500 orders completes under 5 seconds",
     ],
     "priority": "medium"},
    {"title": "Login regression pack",
     "tags": ["Regression", "Auth"],
     "description": "Regression sweep over password, SSO and remember-me login flows.",
     "testCases": [
         "Password login with valid credentials",
         "Password login with locked account",
         "SSO login round-trip",
         "Remember-me cookie survives browser restart",
     ],
     "priority": "high", "notes": "Run on staging after every auth deploy."},
    {"title": "Dark mode contrast",
     "tags": ["UI"],
     "description": "Secondary buttons in dark mode fail WCAG AA contrast.",
     "testCases": ["Check contrast ratio of secondary buttons", "Check focus ring visibility"],
     "priority": "low"},
]

TESTERS = ["Maya", "Jonas", "Priya", "Tomás"]


def seed_demo_data(with_executions=True):
    """Insert demo tasks (and one run each). Returns (task_count, run_count)."""
    runs = 0
    for idx, payload in enumerate(TASK_DATA):
        task = task_service.create_task(payload)
        if not with_executions:
            continue
        cases = [
            {"testCase": text, "passed": (pos + idx) % 3 != 0}
            for pos, text in enumerate(task.test_cases)
        ]
        all_passed = all(c["passed"] for c in cases)
        test_execution_service.upsert_execution({
            "taskId": task.id,
            "testId": f"TEST-DEMO-{idx + 1:03d}",
            "testCases": cases,
            "status": "completed" if all_passed else "failed",
            "feedback": "All checks green." if all_passed else "Some checks failed, see case notes.",
            "testerName": TESTERS[idx % len(TESTERS)],
        })
        runs += 1
    return len(TASK_DATA), runs
