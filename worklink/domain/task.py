"""Task domain models and enums."""

from enum import StrEnum
from typing import Self

from pydantic import BaseModel, ConfigDict, Field, model_validator


class TaskStatus(StrEnum):
    """Task lifecycle state."""

    OPEN = "OPEN"
    APPLIED = "APPLIED"  # Has at least one applicant, still hiring
    ASSIGNED = "ASSIGNED"
    ON_THE_WAY = "ON_THE_WAY"
    IN_PROGRESS = "IN_PROGRESS"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"


class TaskCategory(StrEnum):
    """Kind of work a task asks for."""

    CLEANING = "Cleaning"
    SHIFTING = "Shifting"
    HELPER = "Helper"
    REPAIR = "Repair"
    DELIVERY = "Delivery"
    OTHER = "Other"


class ApplicantStatus(StrEnum):
    """Provider decision on a worker's application."""

    PENDING = "pending"
    ACCEPTED = "accepted"
    REJECTED = "rejected"


# Statuses in which a hired worker is attached to the task
WORKER_BOUND_STATUSES = frozenset(
    {TaskStatus.ASSIGNED, TaskStatus.ON_THE_WAY, TaskStatus.IN_PROGRESS, TaskStatus.COMPLETED}
)
TERMINAL_STATUSES = frozenset({TaskStatus.COMPLETED, TaskStatus.CANCELLED})


class GeoPoint(BaseModel):
    """A latitude/longitude pair in degrees."""

    model_config = ConfigDict(frozen=True)

    lat: float
    lng: float


class AppliedWorker(BaseModel):
    """A worker's application embedded in a task."""

    model_config = ConfigDict(frozen=True)

    worker_id: str = Field(..., description="Applicant user ID")
    worker_name: str = Field(..., description="Applicant display name")
    worker_rating: float = Field(..., ge=0, le=5, description="Applicant rating at application time")
    skills: tuple[str, ...] = Field(default=(), description="Applicant skills")
    experience_years: int | None = Field(default=None, ge=0)
    distance_km: float | None = Field(default=None, ge=0, description="Distance to the task when applying")
    worker_photo: str | None = Field(default=None, description="Applicant photo URL")
    status: ApplicantStatus = Field(default=ApplicantStatus.PENDING)


class Task(BaseModel):
    """Task data transfer object.

    Instances are immutable; lifecycle operations return updated copies.
    """

    model_config = ConfigDict(frozen=True)

    id: str = Field(..., description="Unique task ID")
    provider_id: str = Field(..., description="Posting provider user ID")
    provider_name: str = Field(..., description="Posting provider display name")
    provider_phone: str | None = Field(default=None)
    provider_photo: str | None = Field(default=None)
    title: str = Field(..., min_length=1, description="Task title")
    description: str = Field(default="", description="Detailed task description")
    budget: float = Field(default=0.0, ge=0, description="Offered budget")
    category: TaskCategory = Field(default=TaskCategory.OTHER)
    location: GeoPoint = Field(..., description="Where the work happens")
    address: str = Field(default="")
    status: TaskStatus = Field(default=TaskStatus.OPEN, description="Current lifecycle state")
    created_at: int = Field(..., description="Creation time in epoch milliseconds")
    date: str | None = Field(default=None, description="Requested date, free text")
    skills: tuple[str, ...] = Field(default=())
    applicants: tuple[AppliedWorker, ...] = Field(default=())
    worker_id: str | None = Field(default=None, description="Hired worker user ID")
    worker_name: str | None = Field(default=None, description="Hired worker display name")
    distance_km: float | None = Field(
        default=None,
        exclude=True,
        description="Distance from the current viewer; derived, never persisted",
    )

    @model_validator(mode="after")
    def validate_roster(self) -> Self:
        """Check the hired-worker and applicant roster invariants."""
        is_bound = self.status in WORKER_BOUND_STATUSES
        if is_bound and self.worker_id is None:
            raise ValueError(f"Task in {self.status} state must have a worker")
        if not is_bound and self.worker_id is not None:
            raise ValueError(f"Task in {self.status} state cannot have a worker")

        worker_ids = [applicant.worker_id for applicant in self.applicants]
        if len(worker_ids) != len(set(worker_ids)):
            raise ValueError("A worker can apply to a task only once")

        accepted = [a for a in self.applicants if a.status == ApplicantStatus.ACCEPTED]
        if len(accepted) > 1:
            raise ValueError("At most one applicant can be accepted")
        if accepted and self.worker_id is not None and accepted[0].worker_id != self.worker_id:
            raise ValueError("Hired worker must match the accepted applicant")

        return self

    def applicant(self, worker_id: str) -> AppliedWorker | None:
        """Return the application entry for a worker, if any."""
        return next((a for a in self.applicants if a.worker_id == worker_id), None)

    @property
    def accepted_applicant(self) -> AppliedWorker | None:
        return next((a for a in self.applicants if a.status == ApplicantStatus.ACCEPTED), None)
