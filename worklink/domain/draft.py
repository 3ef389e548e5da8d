"""Structured task draft produced from a free-text job description."""

from typing import Any

from pydantic import BaseModel, Field, field_validator

from worklink.domain.task import TaskCategory


class TaskDraft(BaseModel):
    """Task fields extracted from a provider's description, editable before posting."""

    title: str = Field(..., description="Short, catchy job title")
    description: str = Field(default="", description="Professional job description")
    budget: float | None = Field(default=None, description="Fair budget estimate in USD")
    category: TaskCategory = Field(default=TaskCategory.OTHER, description="Best matching category")
    date: str | None = Field(default=None, description="When the job should happen, e.g. 'ASAP'")
    location_text: str | None = Field(default=None, description="Address or place mentioned, if any")
    skills: list[str] = Field(default_factory=list, description="Two to four required skills")

    @field_validator("category", mode="before")
    @classmethod
    def coerce_category(cls, v: Any) -> Any:
        """Map unknown or differently-cased categories to a known value, falling back to Other."""
        if isinstance(v, TaskCategory):
            return v
        if isinstance(v, str):
            for category in TaskCategory:
                if v.strip().lower() in (category.value.lower(), category.name.lower()):
                    return category
        return TaskCategory.OTHER

    @field_validator("budget", mode="before")
    @classmethod
    def drop_invalid_budget(cls, v: Any) -> Any:
        if isinstance(v, int | float) and not isinstance(v, bool) and v >= 0:
            return v
        return None

    @field_validator("skills", mode="before")
    @classmethod
    def coerce_skills(cls, v: Any) -> Any:
        if v is None:
            return []
        if isinstance(v, str):
            return [s.strip() for s in v.split(",") if s.strip()]
        return v
