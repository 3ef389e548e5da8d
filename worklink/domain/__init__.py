"""Domain models and DTOs."""

from worklink.domain.draft import TaskDraft
from worklink.domain.notification import Notification, NotificationType
from worklink.domain.task import (
    TERMINAL_STATUSES,
    WORKER_BOUND_STATUSES,
    ApplicantStatus,
    AppliedWorker,
    GeoPoint,
    Task,
    TaskCategory,
    TaskStatus,
)
from worklink.domain.user import User, UserRole


__all__ = [
    "TERMINAL_STATUSES",
    "WORKER_BOUND_STATUSES",
    "ApplicantStatus",
    "AppliedWorker",
    "GeoPoint",
    "Notification",
    "NotificationType",
    "Task",
    "TaskCategory",
    "TaskDraft",
    "TaskStatus",
    "User",
    "UserRole",
]
