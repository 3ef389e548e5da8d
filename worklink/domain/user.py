"""User domain models and enums."""

from enum import StrEnum
from typing import Self

from pydantic import BaseModel, Field, field_validator, model_validator

from worklink.domain.task import GeoPoint


# Constants for validation
MAX_NAME_LENGTH = 50


class UserRole(StrEnum):
    """Marketplace role chosen at sign-up."""

    WORKER = "WORKER"
    PROVIDER = "PROVIDER"


# Fields written only by the completion settlement process
SETTLEMENT_FIELDS = frozenset({"rating", "completed_tasks"})


class User(BaseModel):
    """User data transfer object.

    Identity is owned by the auth collaborator; ``id`` is an opaque stable key.
    """

    id: str = Field(..., description="Unique user ID from the auth collaborator")
    role: UserRole = Field(..., description="Marketplace role")
    name: str = Field(..., description="Display name")
    email: str = Field(default="")
    phone: str = Field(default="")
    location: GeoPoint = Field(..., description="Last known location")
    address: str = Field(default="")
    rating: float | None = Field(default=None, ge=0, le=5, description="Average rating, workers only")
    completed_tasks: int = Field(default=0, ge=0)
    skills: list[str] = Field(default_factory=list)
    bio: str | None = Field(default=None)
    experience_years: int | None = Field(default=None, ge=0)
    photo_url: str | None = Field(default=None, description="Profile photo URL from the upload collaborator")
    availability: str | None = Field(default=None)
    certifications: list[str] = Field(default_factory=list)
    business_name: str | None = Field(default=None, description="Trading name, providers only")

    @field_validator("name")
    @classmethod
    def validate_name_usable(cls, v: str) -> str:
        """Validate name is non-empty and of reasonable length."""
        v = v.strip()
        if not v:
            raise ValueError("Name cannot be empty")
        if len(v) > MAX_NAME_LENGTH:
            raise ValueError(f"Name too long (max {MAX_NAME_LENGTH} characters)")
        return v

    @model_validator(mode="after")
    def validate_provider_has_no_rating(self) -> Self:
        if self.role == UserRole.PROVIDER and self.rating is not None:
            raise ValueError("Providers do not carry a rating")
        return self

    @property
    def is_worker(self) -> bool:
        return self.role == UserRole.WORKER
