"""Lifecycle error taxonomy and user-facing error classification."""

from enum import Enum

from pydantic import BaseModel

from worklink.core.db_client import ConcurrentUpdateError, RecordNotFoundError


class ErrorSeverity(Enum):
    """Severity levels for errors."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class ErrorCode:
    """Error codes for specific error conditions."""

    # Lifecycle errors
    ERR_ALREADY_APPLIED = "ERR_ALREADY_APPLIED"
    ERR_TASK_NOT_OPEN = "ERR_TASK_NOT_OPEN"
    ERR_APPLICANT_NOT_FOUND = "ERR_APPLICANT_NOT_FOUND"
    ERR_ALREADY_ASSIGNED = "ERR_ALREADY_ASSIGNED"
    ERR_INVALID_STATE_TRANSITION = "ERR_INVALID_STATE_TRANSITION"

    # Store errors
    ERR_TASK_NOT_FOUND = "ERR_TASK_NOT_FOUND"
    ERR_CONCURRENT_UPDATE = "ERR_CONCURRENT_UPDATE"

    # Permission errors
    ERR_PERMISSION_DENIED = "ERR_PERMISSION_DENIED"

    # Service errors
    ERR_NETWORK_ERROR = "ERR_NETWORK_ERROR"

    # Generic errors
    ERR_UNKNOWN = "ERR_UNKNOWN"


class LifecycleError(Exception):
    """A lifecycle precondition did not hold; the task was left unchanged."""

    code: str = ErrorCode.ERR_UNKNOWN

    def __init__(self, message: str, *, task_id: str, worker_id: str | None = None) -> None:
        super().__init__(message)
        self.task_id = task_id
        self.worker_id = worker_id


class AlreadyAppliedError(LifecycleError):
    """The worker already has an application on the task."""

    code = ErrorCode.ERR_ALREADY_APPLIED


class TaskNotOpenError(LifecycleError):
    """The task no longer accepts applications."""

    code = ErrorCode.ERR_TASK_NOT_OPEN


class ApplicantNotFoundError(LifecycleError):
    """No pending application exists for the worker."""

    code = ErrorCode.ERR_APPLICANT_NOT_FOUND


class AlreadyAssignedError(LifecycleError):
    """The task already has a hired worker."""

    code = ErrorCode.ERR_ALREADY_ASSIGNED


class InvalidTransitionError(LifecycleError):
    """The requested status change is not allowed from the current status."""

    code = ErrorCode.ERR_INVALID_STATE_TRANSITION

    def __init__(self, message: str, *, task_id: str, current: str, target: str) -> None:
        super().__init__(message, task_id=task_id)
        self.current = current
        self.target = target


class ErrorResponse(BaseModel):
    """Structured error response with user-friendly messaging."""

    code: str
    message: str
    suggestion: str
    severity: ErrorSeverity


_LIFECYCLE_RESPONSES: dict[str, tuple[str, str]] = {
    ErrorCode.ERR_ALREADY_APPLIED: (
        "You have already applied for this job.",
        "Check My Tasks to follow your application.",
    ),
    ErrorCode.ERR_TASK_NOT_OPEN: (
        "This job is no longer accepting applications.",
        "Browse nearby jobs to find another one.",
    ),
    ErrorCode.ERR_APPLICANT_NOT_FOUND: (
        "That application is no longer pending.",
        "Refresh the applicant list and try again.",
    ),
    ErrorCode.ERR_ALREADY_ASSIGNED: (
        "A worker has already been hired for this job.",
        "Refresh the job to see who was hired.",
    ),
    ErrorCode.ERR_INVALID_STATE_TRANSITION: (
        "This action cannot be performed in the job's current state.",
        "Refresh the job status and try again.",
    ),
}

_NETWORK_PHRASES = ("connection", "timeout", "network", "unreachable", "502", "503", "504")


def classify_error_with_response(exception: Exception) -> ErrorResponse:
    """Classify an error and return a structured response with recovery suggestions.

    Args:
        exception: The exception raised by a lifecycle operation or a collaborator

    Returns:
        ErrorResponse with code, message, suggestion, and severity
    """
    if isinstance(exception, LifecycleError):
        message, suggestion = _LIFECYCLE_RESPONSES.get(
            exception.code,
            ("This action cannot be performed right now.", "Please try again."),
        )
        return ErrorResponse(code=exception.code, message=message, suggestion=suggestion, severity=ErrorSeverity.LOW)

    if isinstance(exception, PermissionError):
        return ErrorResponse(
            code=ErrorCode.ERR_PERMISSION_DENIED,
            message="You don't have permission for this action.",
            suggestion="Only the job's provider or hired worker can do this.",
            severity=ErrorSeverity.MEDIUM,
        )

    if isinstance(exception, RecordNotFoundError):
        return ErrorResponse(
            code=ErrorCode.ERR_TASK_NOT_FOUND,
            message="I couldn't find that job.",
            suggestion="Refresh the job list.",
            severity=ErrorSeverity.LOW,
        )

    if isinstance(exception, ConcurrentUpdateError):
        return ErrorResponse(
            code=ErrorCode.ERR_CONCURRENT_UPDATE,
            message="This job was updated by someone else.",
            suggestion="Refresh the job and try again.",
            severity=ErrorSeverity.MEDIUM,
        )

    error_str = str(exception).lower()
    if isinstance(exception, ConnectionError | TimeoutError) or any(p in error_str for p in _NETWORK_PHRASES):
        return ErrorResponse(
            code=ErrorCode.ERR_NETWORK_ERROR,
            message="Network error occurred.",
            suggestion="Please check your connection and try again.",
            severity=ErrorSeverity.MEDIUM,
        )

    return ErrorResponse(
        code=ErrorCode.ERR_UNKNOWN,
        message="An unexpected error occurred.",
        suggestion="Please try again later. If the problem persists, contact support.",
        severity=ErrorSeverity.MEDIUM,
    )
