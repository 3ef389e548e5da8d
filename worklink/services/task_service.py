"""Task service: lifecycle transitions persisted to the document store.

Every write goes through dispatch(): read the latest stored snapshot, run the
pure lifecycle reducer on it, then write only the changed fields with a
compare-and-set on the snapshot's version. If another writer got there first the
snapshot is re-read and the action re-validated once. An accept that lost the race
to another hire fails with AlreadyAssignedError, whichever worker either side
picked, so two providers accepting from the same stale view cannot both hire.

TaskBoard is the local, optimistically updated view a client holds. It applies a
transform immediately, then reconciles with the store: on a failed write the
entry is replaced by a fresh copy from the store, or restored to its
pre-transform value when the store cannot be reached either.
"""

import logging
import time
import uuid
from collections.abc import Iterable
from typing import Any

from worklink.core import db_client
from worklink.core.config import Constants
from worklink.core.db_client import ConcurrentUpdateError
from worklink.core.errors import AlreadyAssignedError
from worklink.core.geo import distance_between
from worklink.core.logging import log_task_event, span
from worklink.domain.draft import TaskDraft
from worklink.domain.task import GeoPoint, Task, TaskStatus
from worklink.domain.user import User, UserRole
from worklink.services import notification_service
from worklink.services.matching_service import newest_first
from worklink.services.task_lifecycle import (
    AdvanceAction,
    ApplyAction,
    Decision,
    DecideAction,
    TaskAction,
    reduce_task,
)


logger = logging.getLogger(__name__)

_COLLECTION = "tasks"

# Fields a lifecycle transition may change
_LIFECYCLE_FIELDS = ("status", "applicants", "worker_id", "worker_name")


def _to_task(record: dict[str, Any]) -> Task:
    return Task.model_validate(record)


def _changed_fields(before: Task, after: Task) -> dict[str, Any]:
    old = before.model_dump(mode="json")
    new = after.model_dump(mode="json")
    return {field: new[field] for field in _LIFECYCLE_FIELDS if old[field] != new[field]}


def _is_accept(action: TaskAction) -> bool:
    return isinstance(action, DecideAction) and action.decision == Decision.ACCEPT


def _has_hire(task: Task) -> bool:
    return task.worker_id is not None


async def post_task(
    *,
    provider: User,
    draft: TaskDraft,
    location: GeoPoint | None = None,
) -> Task:
    """Publish a new OPEN task from a reviewed draft.

    Raises:
        PermissionError: If the poster is not a provider
    """
    if provider.role != UserRole.PROVIDER:
        msg = f"Permission denied: user {provider.id} is not a provider"
        raise PermissionError(msg)

    with span("task_service.post_task", provider_id=provider.id):
        task = Task(
            id=f"t-{uuid.uuid4().hex[:12]}",
            provider_id=provider.id,
            provider_name=provider.name,
            provider_phone=provider.phone or None,
            provider_photo=provider.photo_url,
            title=draft.title,
            description=draft.description,
            budget=draft.budget or 0.0,
            category=draft.category,
            location=location or provider.location,
            address=draft.location_text or provider.address,
            status=TaskStatus.OPEN,
            created_at=int(time.time() * 1000),
            date=draft.date or Constants.DEFAULT_TASK_DATE,
            skills=tuple(draft.skills),
        )
        record = await db_client.create_record(collection=_COLLECTION, data=task.model_dump(mode="json"))
        logger.info("Posted task %s by provider %s", task.id, provider.id)
        return _to_task(record)


async def get_task(*, task_id: str) -> Task:
    """Fetch a task, raising RecordNotFoundError if unknown."""
    record = await db_client.get_record(collection=_COLLECTION, record_id=task_id)
    return _to_task(record)


async def list_tasks(*, origin: GeoPoint | None = None) -> list[Task]:
    """All tasks newest first, with distances from ``origin`` when given."""
    records = await db_client.list_records(
        collection=_COLLECTION,
        sort="created_at DESC",
        per_page=Constants.DEFAULT_PER_PAGE_LIMIT,
    )
    tasks = [_to_task(record) for record in records]
    if origin is None:
        return tasks
    return [task.model_copy(update={"distance_km": distance_between(origin, task.location)}) for task in tasks]


async def dispatch(*, task_id: str, action: TaskAction) -> Task:
    """Apply a lifecycle action against the latest stored task.

    Raises:
        LifecycleError: The action is not valid for the stored task
        RecordNotFoundError: Unknown task
        ConcurrentUpdateError: The task kept changing underneath every attempt
    """
    with span("task_service.dispatch", task_id=task_id, action=type(action).__name__):
        attempt = 1
        while True:
            record = await db_client.get_record(collection=_COLLECTION, record_id=task_id)
            current = _to_task(record)
            if attempt > 1 and _is_accept(action) and _has_hire(current):
                msg = f"Cannot accept worker {action.worker_id}: task {task_id} was assigned concurrently"
                raise AlreadyAssignedError(msg, task_id=task_id, worker_id=action.worker_id)
            updated = reduce_task(current, action)

            changes = _changed_fields(current, updated)
            if not changes:
                return updated

            try:
                stored = await db_client.update_record(
                    collection=_COLLECTION,
                    record_id=task_id,
                    data=changes,
                    expected_version=record["version"],
                )
            except ConcurrentUpdateError:
                if attempt >= Constants.DISPATCH_MAX_ATTEMPTS:
                    raise
                attempt += 1
                logger.warning("Task %s changed during %s, retrying", task_id, type(action).__name__)
                continue

            return _to_task(stored)


async def apply_to_task(*, task_id: str, worker: User) -> Task:
    """Submit ``worker``'s application to a task.

    Raises:
        PermissionError: If the applicant is not a worker
        TaskNotOpenError: The task stopped hiring
        AlreadyAppliedError: The worker already applied
    """
    if worker.role != UserRole.WORKER:
        msg = f"Permission denied: user {worker.id} is not a worker"
        raise PermissionError(msg)

    task = await get_task(task_id=task_id)
    updated = await dispatch(
        task_id=task_id,
        action=ApplyAction(worker=worker, distance_km=distance_between(worker.location, task.location)),
    )
    log_task_event(logger, "Applied to task", task_id=task_id, actor_id=worker.id)
    return updated


async def decide_application(
    *,
    task_id: str,
    provider_id: str,
    worker_id: str,
    decision: Decision,
) -> Task:
    """Accept or reject an applicant on behalf of the task's provider.

    Accepting stores a hired notification for the worker.

    Raises:
        PermissionError: If ``provider_id`` does not own the task
        ApplicantNotFoundError: No pending application from ``worker_id``
        AlreadyAssignedError: Someone is already hired
    """
    task = await get_task(task_id=task_id)
    if task.provider_id != provider_id:
        msg = f"Permission denied: task {task_id} does not belong to provider {provider_id}"
        raise PermissionError(msg)

    updated = await dispatch(task_id=task_id, action=DecideAction(worker_id=worker_id, decision=decision))
    if decision == Decision.ACCEPT:
        await notification_service.notify_hired(task=updated)

    log_task_event(
        logger,
        "Decided application",
        task_id=task_id,
        actor_id=provider_id,
        worker_id=worker_id,
        decision=str(decision),
    )
    return updated


async def advance_task(*, task_id: str, actor_id: str, next_status: TaskStatus) -> Task:
    """Move a task to ``next_status``.

    The hired worker drives progress; the provider may only cancel.

    Raises:
        PermissionError: If ``actor_id`` may not make this change
        InvalidTransitionError: ``next_status`` is not reachable
    """
    task = await get_task(task_id=task_id)
    is_worker = task.worker_id is not None and task.worker_id == actor_id
    is_provider_cancel = task.provider_id == actor_id and next_status == TaskStatus.CANCELLED
    if not (is_worker or is_provider_cancel):
        msg = f"Permission denied: user {actor_id} cannot move task {task_id} to {next_status}"
        raise PermissionError(msg)

    updated = await dispatch(task_id=task_id, action=AdvanceAction(next_status=next_status))
    log_task_event(logger, "Advanced task", task_id=task_id, actor_id=actor_id, status=str(next_status))
    return updated


class TaskBoard:
    """Client-side task snapshot with optimistic updates reconciled against the store."""

    def __init__(self, tasks: Iterable[Task] = ()) -> None:
        self._tasks: dict[str, Task] = {task.id: task for task in tasks}

    @property
    def tasks(self) -> list[Task]:
        return newest_first(self._tasks.values())

    def get(self, task_id: str) -> Task:
        return self._tasks[task_id]

    async def refresh(self, *, origin: GeoPoint | None = None) -> list[Task]:
        """Replace the whole snapshot with the store's current tasks."""
        self._tasks = {task.id: task for task in await list_tasks(origin=origin)}
        return self.tasks

    async def dispatch(self, task_id: str, action: TaskAction) -> Task:
        """Apply ``action`` locally at once, then persist it.

        Lifecycle errors raised by the local transform leave the board untouched.
        If the store rejects the write, the entry is re-fetched and replaced (or
        rolled back to its previous value if that fails too) and the error is re-raised.
        """
        previous = self._tasks[task_id]
        self._tasks[task_id] = reduce_task(previous, action)

        try:
            stored = await dispatch(task_id=task_id, action=action)
        except Exception:
            await self._reconcile(task_id, previous)
            raise

        self._tasks[task_id] = stored.model_copy(update={"distance_km": previous.distance_km})
        return self._tasks[task_id]

    async def _reconcile(self, task_id: str, previous: Task) -> None:
        try:
            fresh = await get_task(task_id=task_id)
        except (db_client.DatabaseError, KeyError) as e:
            logger.warning("Rolling back task %s after failed write; re-fetch failed: %s", task_id, e)
            self._tasks[task_id] = previous
            return
        self._tasks[task_id] = fresh.model_copy(update={"distance_km": previous.distance_km})
        logger.info("Replaced task %s with the stored copy after a failed write", task_id)
