"""Notification service for lifecycle events (hired worker alerts, read state)."""

import logging
import uuid

from worklink.core import db_client
from worklink.core.config import Constants
from worklink.core.logging import span
from worklink.domain.notification import Notification, NotificationType
from worklink.domain.task import Task


logger = logging.getLogger(__name__)

_COLLECTION = "notifications"


def build_hired_notification(task: Task) -> Notification:
    """Notification telling the hired worker they got the job.

    Raises:
        ValueError: If the task has no hired worker
    """
    if task.worker_id is None:
        msg = f"Cannot notify: task {task.id} has no hired worker"
        raise ValueError(msg)

    return Notification(
        id=f"n-{uuid.uuid4().hex[:12]}",
        recipient_id=task.worker_id,
        title="Job Assigned!",
        message=f'You have been hired for "{task.title}" by {task.provider_name}',
        time="Just now",
        read=False,
        type=NotificationType.SUCCESS,
    )


async def notify_hired(*, task: Task) -> Notification:
    """Store the hired notification for the task's worker."""
    with span("notification_service.notify_hired", task_id=task.id):
        notification = build_hired_notification(task)
        record = await db_client.create_record(collection=_COLLECTION, data=notification.model_dump(mode="json"))
        logger.info("Notified worker %s of hire on task %s", notification.recipient_id, task.id)
        return Notification.model_validate(record)


async def list_notifications(*, user_id: str) -> list[Notification]:
    """Notifications for a user, newest first."""
    records = await db_client.list_records(
        collection=_COLLECTION,
        where={"recipient_id": user_id},
        sort="created DESC",
        per_page=Constants.DEFAULT_PER_PAGE_LIMIT,
    )
    return [Notification.model_validate(record) for record in records]


async def mark_read(*, notification_id: str) -> Notification:
    record = await db_client.update_record(collection=_COLLECTION, record_id=notification_id, data={"read": True})
    return Notification.model_validate(record)


async def has_unread(*, user_id: str) -> bool:
    return any(not n.read for n in await list_notifications(user_id=user_id))
