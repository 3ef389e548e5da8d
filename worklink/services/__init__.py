from worklink.services import (
    matching_service,
    notification_service,
    task_lifecycle,
    task_service,
    tracking_service,
    user_service,
)


__all__ = [
    "matching_service",
    "notification_service",
    "task_lifecycle",
    "task_service",
    "tracking_service",
    "user_service",
]
