"""Task service layer — validation and persistence for QA tasks.

Transaction policy: methods use flush() for id generation, never commit().
Caller (route handler) is responsible for db.session.commit().

Operations:
- Payload validation (tags / description / test cases / enums / due date)
- List (newest first), create, read, update, delete
"""
import logging

from qa_tracker.core.exceptions import NotFoundError, ValidationError
from qa_tracker.models import db
from qa_tracker.models.testing import Task, TASK_PRIORITIES, TASK_STATUSES
from qa_tracker.utils.helpers import clean_str_list, is_valid_id, parse_date_input

logger = logging.getLogger(__name__)


def validate_task_payload(data):
    """Validate a create/update payload and return normalised column values.

    Raises:
        ValidationError: with a message naming the missing or invalid field.
    """
    tags = data.get("tags")
    description = data.get("description")
    test_cases = data.get("testCases")

    if not tags or not isinstance(tags, list):
        raise ValidationError("At least one tag is required", details={"tags": "required"})

    if (
        not isinstance(description, str) or not description.strip()
        or not test_cases or not isinstance(test_cases, list)
    ):
        raise ValidationError(
            "Description and at least one test case are required",
            details={"description": "required", "testCases": "required"},
        )

    valid_cases = clean_str_list(test_cases)
    if not valid_cases:
        raise ValidationError(
            "At least one valid test case is required", details={"testCases": "empty"},
        )

    valid_tags = clean_str_list(tags, dedupe=True)
    if not valid_tags:
        raise ValidationError("At least one tag is required", details={"tags": "empty"})

    status = data.get("status") or "pending"
    if status not in TASK_STATUSES:
        raise ValidationError(
            f"Invalid status. Must be one of: {', '.join(sorted(TASK_STATUSES))}",
            details={"status": status},
        )

    priority = data.get("priority") or "medium"
    if priority not in TASK_PRIORITIES:
        raise ValidationError(
            f"Invalid priority. Must be one of: {', '.join(sorted(TASK_PRIORITIES))}",
            details={"priority": priority},
        )

    try:
        due_date = parse_date_input(data.get("dueDate"))
    except ValueError as exc:
        raise ValidationError(str(exc), details={"dueDate": data.get("dueDate")}) from exc

    images = data.get("attachedImages") or []
    if not isinstance(images, list):
        raise ValidationError("attachedImages must be a list", details={"attachedImages": "type"})

    notes = data.get("notes")
    assignee = data.get("assignee")

    return {
        "title": (data.get("title") or "").strip(),
        "description": description.strip(),
        "status": status,
        "priority": priority,
        "assignee": (assignee.strip() or None) if isinstance(assignee, str) else None,
        "due_date": due_date,
        "tags": valid_tags,
        "test_cases": valid_cases,
        "notes": notes.strip() if isinstance(notes, str) else "",
        "attached_images": clean_str_list(images),
    }


def _require_valid_id(task_id):
    if not is_valid_id(task_id):
        raise ValidationError("Invalid task ID", details={"id": task_id})


def list_tasks():
    """Return all tasks, newest first."""
    return Task.query.order_by(Task.created_at.desc(), Task.id).all()


def get_task(task_id):
    """Fetch a task by id.

    Raises:
        ValidationError: id is not a well-formed identifier.
        NotFoundError: no task with that id.
    """
    _require_valid_id(task_id)
    task = db.session.get(Task, task_id)
    if task is None:
        raise NotFoundError(resource="Task", resource_id=task_id)
    return task


def create_task(data):
    """Validate and add a new task (uncommitted — caller must commit)."""
    values = validate_task_payload(data)
    task = Task(**values)
    db.session.add(task)
    db.session.flush()
    logger.info("Task created id=%s tags=%s cases=%d", task.id, task.tags, len(task.test_cases))
    return task


def update_task(task_id, data):
    """Replace the editable fields of an existing task (uncommitted).

    The id is checked before the payload so a malformed id answers 400
    and a missing task answers 404 regardless of the body.
    """
    task = get_task(task_id)
    values = validate_task_payload(data)
    for field, value in values.items():
        setattr(task, field, value)
    db.session.flush()
    logger.info("Task updated id=%s", task.id)
    return task


def delete_task(task_id):
    """Delete a task (uncommitted). Executions referencing it are kept."""
    task = get_task(task_id)
    db.session.delete(task)
    db.session.flush()
    logger.info("Task deleted id=%s", task_id)
    return task_id
