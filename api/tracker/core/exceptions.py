"""Workflow error taxonomy.

Each error carries the HTTP status and machine-readable code the API returns;
tracker.main registers a single handler that renders them.
"""


class WorkflowError(Exception):
    status_code = 500
    code = "INTERNAL_ERROR"
    default_message = "Internal error"

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class Unauthorized(WorkflowError):
    status_code = 401
    code = "UNAUTHORIZED"
    default_message = "Not authenticated"


class Forbidden(WorkflowError):
    status_code = 403
    code = "FORBIDDEN"
    default_message = "Access denied"


class NotFound(WorkflowError):
    status_code = 404
    code = "NOT_FOUND"
    default_message = "Resource not found"


class InvalidReference(NotFound):
    """A submission pointed at a project that does not exist."""
    code = "INVALID_REFERENCE"
    default_message = "Project not found"


class AlreadyProcessed(WorkflowError):
    status_code = 400
    code = "ALREADY_PROCESSED"
    default_message = "This request has already been processed"


class InvalidRequest(WorkflowError):
    """Submitted data is inconsistent with the request type."""
    status_code = 422
    code = "INVALID_REQUEST"
    default_message = "Invalid request data"


class DatabaseError(WorkflowError):
    status_code = 500
    code = "DATABASE_ERROR"
    default_message = "Database error"
