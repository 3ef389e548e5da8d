"""Pure state transition functions for task lifecycle management.

Every operation takes a task and returns a new one. Preconditions are checked
before anything is built, so a raised LifecycleError leaves the caller's task
exactly as it was.
"""

import logging
from dataclasses import dataclass
from enum import StrEnum
from typing import Any

from worklink.core.config import Constants, settings
from worklink.core.errors import (
    AlreadyAppliedError,
    AlreadyAssignedError,
    ApplicantNotFoundError,
    InvalidTransitionError,
    TaskNotOpenError,
)
from worklink.domain.task import TERMINAL_STATUSES, ApplicantStatus, AppliedWorker, Task, TaskStatus
from worklink.domain.user import User


logger = logging.getLogger(__name__)


class Decision(StrEnum):
    ACCEPT = "accept"
    REJECT = "reject"


# Statuses in which workers may still apply
ACCEPTING_STATUSES = frozenset({TaskStatus.OPEN, TaskStatus.APPLIED})

# Status changes driven by advance(); OPEN -> APPLIED and -> ASSIGNED happen through apply()/decide()
PROGRESS_TRANSITIONS: dict[TaskStatus, set[TaskStatus]] = {
    TaskStatus.OPEN: {TaskStatus.CANCELLED},
    TaskStatus.APPLIED: {TaskStatus.CANCELLED},
    TaskStatus.ASSIGNED: {TaskStatus.ON_THE_WAY, TaskStatus.IN_PROGRESS, TaskStatus.CANCELLED},
    TaskStatus.ON_THE_WAY: {TaskStatus.IN_PROGRESS, TaskStatus.CANCELLED},
    TaskStatus.IN_PROGRESS: {TaskStatus.COMPLETED, TaskStatus.CANCELLED},
    TaskStatus.COMPLETED: set(),
    TaskStatus.CANCELLED: set(),
}


def allowed_transitions(current: TaskStatus) -> set[TaskStatus]:
    """Statuses reachable from ``current`` through advance()."""
    return set(PROGRESS_TRANSITIONS[current])


def can_transition(current: TaskStatus, target: TaskStatus) -> bool:
    return target in PROGRESS_TRANSITIONS[current]


def _replace(task: Task, **changes: Any) -> Task:
    """Build a validated copy of ``task`` with ``changes`` applied."""
    data = task.model_dump()
    data.update(changes)
    data.setdefault("distance_km", task.distance_km)
    return Task.model_validate(data)


def apply(
    task: Task,
    worker: User,
    *,
    distance_km: float | None = None,
    mark_applied: bool | None = None,
) -> Task:
    """Add ``worker`` as a pending applicant.

    Raises:
        TaskNotOpenError: The task no longer accepts applications
        AlreadyAppliedError: The worker already applied to this task
    """
    mark_applied = settings.mark_applied_on_apply if mark_applied is None else mark_applied

    if task.status not in ACCEPTING_STATUSES:
        msg = f"Cannot apply: task {task.id} is in {task.status} state"
        raise TaskNotOpenError(msg, task_id=task.id, worker_id=worker.id)

    if task.applicant(worker.id) is not None:
        msg = f"Cannot apply: worker {worker.id} already applied to task {task.id}"
        raise AlreadyAppliedError(msg, task_id=task.id, worker_id=worker.id)

    application = AppliedWorker(
        worker_id=worker.id,
        worker_name=worker.name,
        worker_rating=worker.rating if worker.rating is not None else Constants.DEFAULT_WORKER_RATING,
        skills=tuple(worker.skills),
        experience_years=worker.experience_years,
        distance_km=distance_km,
        worker_photo=worker.photo_url,
        status=ApplicantStatus.PENDING,
    )
    status = TaskStatus.APPLIED if mark_applied else task.status

    logger.info("Worker %s applied to task %s", worker.id, task.id)
    return _replace(task, applicants=[*task.applicants, application], status=status)


def decide(task: Task, worker_id: str, decision: Decision) -> Task:
    """Accept or reject a worker's application.

    Accepting hires that worker: every other applicant is rejected and the task
    moves to ASSIGNED. Rejecting touches only that worker's entry. The caller is
    responsible for checking that the provider owns the task.

    Raises:
        ApplicantNotFoundError: No pending application for ``worker_id``
        AlreadyAssignedError: Accepting while another worker is already hired
        InvalidTransitionError: The task is finished, or accepting on a task that stopped hiring
    """
    if task.status in TERMINAL_STATUSES:
        target = TaskStatus.ASSIGNED if decision == Decision.ACCEPT else task.status
        msg = f"Cannot {decision} worker {worker_id}: task {task.id} is in {task.status} state"
        raise InvalidTransitionError(msg, task_id=task.id, current=task.status, target=target)

    applicant = task.applicant(worker_id)
    if applicant is None or applicant.status == ApplicantStatus.REJECTED:
        msg = f"No pending application from worker {worker_id} on task {task.id}"
        raise ApplicantNotFoundError(msg, task_id=task.id, worker_id=worker_id)

    if decision == Decision.ACCEPT:
        if task.accepted_applicant is not None or task.worker_id is not None:
            msg = f"Cannot accept worker {worker_id}: task {task.id} already has a hired worker"
            raise AlreadyAssignedError(msg, task_id=task.id, worker_id=worker_id)
        if task.status not in ACCEPTING_STATUSES:
            msg = f"Cannot assign: task {task.id} is in {task.status} state"
            raise InvalidTransitionError(msg, task_id=task.id, current=task.status, target=TaskStatus.ASSIGNED)

    if applicant.status != ApplicantStatus.PENDING:
        msg = f"Application from worker {worker_id} on task {task.id} is {applicant.status}, not pending"
        raise ApplicantNotFoundError(msg, task_id=task.id, worker_id=worker_id)

    if decision == Decision.REJECT:
        applicants = [
            a.model_copy(update={"status": ApplicantStatus.REJECTED}) if a.worker_id == worker_id else a
            for a in task.applicants
        ]
        logger.info("Rejected worker %s on task %s", worker_id, task.id)
        return _replace(task, applicants=applicants)

    applicants = [
        a.model_copy(
            update={"status": ApplicantStatus.ACCEPTED if a.worker_id == worker_id else ApplicantStatus.REJECTED}
        )
        for a in task.applicants
    ]
    logger.info("Assigned worker %s to task %s", worker_id, task.id)
    return _replace(
        task,
        applicants=applicants,
        status=TaskStatus.ASSIGNED,
        worker_id=applicant.worker_id,
        worker_name=applicant.worker_name,
    )


def advance(task: Task, next_status: TaskStatus) -> Task:
    """Move a task forward through its progress states, or cancel it.

    Cancelling releases the hired worker and rejects applications still pending.

    Raises:
        InvalidTransitionError: ``next_status`` is not reachable from the current status
    """
    if not can_transition(task.status, next_status):
        msg = f"Cannot move task {task.id} from {task.status} to {next_status}"
        raise InvalidTransitionError(msg, task_id=task.id, current=task.status, target=next_status)

    changes: dict[str, Any] = {"status": next_status}
    if next_status == TaskStatus.CANCELLED:
        applicants = [
            a.model_copy(update={"status": ApplicantStatus.REJECTED}) if a.status == ApplicantStatus.PENDING else a
            for a in task.applicants
        ]
        changes.update(worker_id=None, worker_name=None, applicants=applicants)

    logger.info("Transitioned task %s from %s to %s", task.id, task.status, next_status)
    return _replace(task, **changes)


@dataclass(frozen=True)
class ApplyAction:
    worker: User
    distance_km: float | None = None


@dataclass(frozen=True)
class DecideAction:
    worker_id: str
    decision: Decision


@dataclass(frozen=True)
class AdvanceAction:
    next_status: TaskStatus


TaskAction = ApplyAction | DecideAction | AdvanceAction


def reduce_task(task: Task, action: TaskAction) -> Task:
    """Apply one lifecycle action to a task (reducer form of apply/decide/advance)."""
    match action:
        case ApplyAction(worker=worker, distance_km=distance):
            return apply(task, worker, distance_km=distance)
        case DecideAction(worker_id=worker_id, decision=decision):
            return decide(task, worker_id, decision)
        case AdvanceAction(next_status=next_status):
            return advance(task, next_status)
    raise TypeError(f"Unknown task action: {action!r}")
