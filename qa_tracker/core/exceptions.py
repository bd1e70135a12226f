"""
Application-wide exception hierarchy.

Services raise these types; blueprints register one handler per type and
turn them into envelope responses with consistent HTTP status codes.

Usage:
    from qa_tracker.core.exceptions import NotFoundError, ValidationError

    raise NotFoundError(resource="Task", resource_id=task_id)
    raise ValidationError("At least one tag is required", details={"tags": "empty"})
"""


class NotFoundError(Exception):
    """Raised when a requested resource does not exist.

    Args:
        resource: Human-readable entity name (e.g. "Task", "Test execution").
        resource_id: The id that was looked up. Included in logs, not in the HTTP response.
    """

    def __init__(self, resource: str, resource_id: str | None = None) -> None:
        self.resource = resource
        self.resource_id = resource_id
        msg = f"{resource}"
        if resource_id is not None:
            msg += f" id={resource_id}"
        msg += " not found"
        super().__init__(msg)

    @property
    def public_message(self) -> str:
        return f"{self.resource} not found"


class ValidationError(Exception):
    """Raised when input is missing or malformed.

    Maps to HTTP 400. The message is shown to the client as-is, so it names
    the offending field.

    Args:
        message: Human-readable explanation of what failed.
        details: Optional field-level breakdown. Keys are field names.
    """

    def __init__(self, message: str, details: dict | None = None) -> None:
        self.details = details or {}
        super().__init__(message)


class ConflictError(Exception):
    """Raised when an operation would duplicate a unique value.

    Maps to HTTP 409.
    """

    def __init__(self, resource: str, field: str, value: str | None = None) -> None:
        self.resource = resource
        self.field = field
        self.value = value
        msg = f"{resource} with {field}={value!r} already exists"
        super().__init__(msg)
