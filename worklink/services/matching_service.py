"""Task discovery, per-viewer task buckets and dashboard statistics.

This module provides pure projections over a collection of tasks:
- Discovering tasks that still accept applications (category and title search)
- Enriching tasks with their distance from the viewer
- Splitting a viewer's tasks into ASSIGNED / ONGOING / COMPLETED buckets
- Dashboard counters, recomputed on every call

Key Concepts:
- Role views: WorkerView and ProviderView implement DashboardView. The view is
  chosen once from the viewer's role by dashboard_view_for().
- Accepting statuses: OPEN, plus APPLIED when applying marks the task. Both mean
  "still hiring" and are treated alike by discovery.
"""

from abc import ABC, abstractmethod
from collections.abc import Iterable
from enum import StrEnum

from pydantic import BaseModel

from worklink.core.geo import distance_between
from worklink.domain.task import ApplicantStatus, AppliedWorker, GeoPoint, Task, TaskCategory, TaskStatus
from worklink.domain.user import User, UserRole
from worklink.services.task_lifecycle import ACCEPTING_STATUSES


class TaskBucket(StrEnum):
    """Tabs of the My Tasks screen."""

    ASSIGNED = "ASSIGNED"
    ONGOING = "ONGOING"
    COMPLETED = "COMPLETED"


class StatSummary(BaseModel):
    """Dashboard counters for one viewer."""

    active: int
    completed: int
    open: int = 0
    rating: float | None = None


class PendingApplication(BaseModel):
    """A pending applicant together with the task applied for."""

    task_id: str
    task_title: str
    applicant: AppliedWorker


_ACTIVE_STATUSES = frozenset({TaskStatus.ASSIGNED, TaskStatus.ON_THE_WAY, TaskStatus.IN_PROGRESS})


def discoverable_tasks(
    tasks: Iterable[Task],
    *,
    category: TaskCategory | None = None,
    search_text: str | None = None,
) -> list[Task]:
    """Tasks still accepting applications, optionally filtered.

    Category must match exactly; ``search_text`` is a case-insensitive substring of
    the title. Input order is preserved.
    """
    needle = (search_text or "").strip().lower()
    return [
        task
        for task in tasks
        if task.status in ACCEPTING_STATUSES
        and (category is None or task.category == category)
        and (not needle or needle in task.title.lower())
    ]


def newest_first(tasks: Iterable[Task]) -> list[Task]:
    return sorted(tasks, key=lambda task: task.created_at, reverse=True)


def with_distances(tasks: Iterable[Task], *, origin: GeoPoint) -> list[Task]:
    """Copies of ``tasks`` carrying their distance from ``origin``."""
    return [task.model_copy(update={"distance_km": distance_between(origin, task.location)}) for task in tasks]


class DashboardView(ABC):
    """Role-specific projections for a signed-in viewer."""

    def __init__(self, viewer: User) -> None:
        self.viewer = viewer

    @abstractmethod
    def my_tasks(self, tasks: Iterable[Task], bucket: TaskBucket) -> list[Task]:
        """Viewer's tasks in one My Tasks bucket."""

    @abstractmethod
    def stat_summary(self, tasks: Iterable[Task]) -> StatSummary:
        """Dashboard counters derived from ``tasks``."""


class WorkerView(DashboardView):
    """Jobs a worker applied to or was hired for."""

    def _is_involved(self, task: Task) -> bool:
        if task.worker_id == self.viewer.id:
            return True
        applicant = task.applicant(self.viewer.id)
        return applicant is not None and applicant.status in (ApplicantStatus.PENDING, ApplicantStatus.ACCEPTED)

    def my_tasks(self, tasks: Iterable[Task], bucket: TaskBucket) -> list[Task]:
        if bucket == TaskBucket.ASSIGNED:
            waiting = {TaskStatus.OPEN, TaskStatus.APPLIED, TaskStatus.ASSIGNED, TaskStatus.ON_THE_WAY}
            return [t for t in tasks if t.status in waiting and self._is_involved(t)]
        status = TaskStatus.IN_PROGRESS if bucket == TaskBucket.ONGOING else TaskStatus.COMPLETED
        return [t for t in tasks if t.status == status and t.worker_id == self.viewer.id]

    def stat_summary(self, tasks: Iterable[Task]) -> StatSummary:
        tasks = list(tasks)
        return StatSummary(
            active=sum(1 for t in tasks if t.status in _ACTIVE_STATUSES and t.worker_id == self.viewer.id),
            completed=len(self.my_tasks(tasks, TaskBucket.COMPLETED)),
            open=sum(1 for t in tasks if t.status in ACCEPTING_STATUSES and self._is_involved(t)),
            rating=self.viewer.rating,
        )


class ProviderView(DashboardView):
    """Jobs a provider posted."""

    _BUCKET_STATUSES: dict[TaskBucket, frozenset[TaskStatus]] = {
        TaskBucket.ASSIGNED: frozenset(
            {TaskStatus.OPEN, TaskStatus.APPLIED, TaskStatus.ASSIGNED, TaskStatus.ON_THE_WAY}
        ),
        TaskBucket.ONGOING: frozenset({TaskStatus.IN_PROGRESS}),
        TaskBucket.COMPLETED: frozenset({TaskStatus.COMPLETED}),
    }

    def posted(self, tasks: Iterable[Task]) -> list[Task]:
        return [t for t in tasks if t.provider_id == self.viewer.id]

    def my_tasks(self, tasks: Iterable[Task], bucket: TaskBucket) -> list[Task]:
        statuses = self._BUCKET_STATUSES[bucket]
        return [t for t in self.posted(tasks) if t.status in statuses]

    def stat_summary(self, tasks: Iterable[Task]) -> StatSummary:
        posted = self.posted(tasks)
        return StatSummary(
            active=sum(1 for t in posted if t.status in _ACTIVE_STATUSES),
            completed=sum(1 for t in posted if t.status == TaskStatus.COMPLETED),
            open=sum(1 for t in posted if t.status in ACCEPTING_STATUSES),
            rating=None,
        )

    def pending_applications(self, tasks: Iterable[Task]) -> list[PendingApplication]:
        """Every pending applicant across the provider's posted tasks that are still hiring."""
        return [
            PendingApplication(task_id=task.id, task_title=task.title, applicant=applicant)
            for task in self.posted(tasks)
            if task.status in ACCEPTING_STATUSES
            for applicant in task.applicants
            if applicant.status == ApplicantStatus.PENDING
        ]


def dashboard_view_for(viewer: User) -> DashboardView:
    if viewer.role == UserRole.WORKER:
        return WorkerView(viewer)
    return ProviderView(viewer)


def my_tasks(tasks: Iterable[Task], viewer: User, bucket: TaskBucket) -> list[Task]:
    return dashboard_view_for(viewer).my_tasks(tasks, bucket)


def stat_summary(tasks: Iterable[Task], viewer: User) -> StatSummary:
    return dashboard_view_for(viewer).stat_summary(tasks)


def pending_applications(tasks: Iterable[Task], provider: User) -> list[PendingApplication]:
    return ProviderView(provider).pending_applications(tasks)
