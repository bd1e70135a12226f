"""
QA Task Tracker
Task Blueprint — QA task CRUD API.

Endpoints:
    GET    /api/tasks                        — List tasks (newest first)
    POST   /api/tasks                        — Create task
    GET    /api/tasks/<id>                   — Detail
    PUT    /api/tasks/<id>                   — Update
    DELETE /api/tasks/<id>                   — Delete (executions are kept)
    GET    /api/tasks/<id>/test-executions   — Executions recorded for the task
"""

import logging

from flask import Blueprint
from sqlalchemy.exc import SQLAlchemyError

from qa_tracker.blueprints import json_body, register_error_handlers
from qa_tracker.models import db
from qa_tracker.services import task_service, test_execution_service
from qa_tracker.utils.errors import E, api_error, api_ok
from qa_tracker.utils.helpers import db_commit_or_error

logger = logging.getLogger(__name__)

task_bp = Blueprint("tasks", __name__, url_prefix="/api")
register_error_handlers(task_bp)


@task_bp.route("/tasks", methods=["GET"])
def list_tasks():
    """All tasks, newest first."""
    try:
        tasks = task_service.list_tasks()
    except SQLAlchemyError:
        db.session.rollback()
        logger.exception("Error fetching tasks")
        return api_error(E.DATABASE, "Failed to fetch tasks")
    return api_ok([t.to_dict() for t in tasks])


@task_bp.route("/tasks", methods=["POST"])
def create_task():
    data = json_body()
    try:
        task = task_service.create_task(data)
    except SQLAlchemyError:
        db.session.rollback()
        logger.exception("Error creating task")
        return api_error(E.DATABASE, "Failed to create task")
    err = db_commit_or_error("Failed to create task")
    if err:
        return err
    return api_ok(task.to_dict(), message="Task created successfully")


@task_bp.route("/tasks/<task_id>", methods=["GET"])
def get_task(task_id):
    task = task_service.get_task(task_id)
    return api_ok(task.to_dict())


@task_bp.route("/tasks/<task_id>", methods=["PUT"])
def update_task(task_id):
    data = json_body()
    try:
        task = task_service.update_task(task_id, data)
    except SQLAlchemyError:
        db.session.rollback()
        logger.exception("Error updating task id=%s", task_id)
        return api_error(E.DATABASE, "Failed to update task")
    err = db_commit_or_error("Failed to update task")
    if err:
        return err
    return api_ok(task.to_dict(), message="Task updated successfully")


@task_bp.route("/tasks/<task_id>", methods=["DELETE"])
def delete_task(task_id):
    try:
        task_service.delete_task(task_id)
    except SQLAlchemyError:
        db.session.rollback()
        logger.exception("Error deleting task id=%s", task_id)
        return api_error(E.DATABASE, "Failed to delete task")
    err = db_commit_or_error("Failed to delete task")
    if err:
        return err
    return api_ok(message="Task deleted successfully")


@task_bp.route("/tasks/<task_id>/test-executions", methods=["GET"])
def list_task_executions(task_id):
    """Executions recorded against one task."""
    executions = test_execution_service.list_for_task(task_id)
    return api_ok([e.to_dict() for e in executions])
