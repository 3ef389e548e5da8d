"""Notification domain model."""

from enum import StrEnum

from pydantic import BaseModel, Field


class NotificationType(StrEnum):
    INFO = "info"
    SUCCESS = "success"
    WARNING = "warning"
    ERROR = "error"


class Notification(BaseModel):
    """In-app notification produced by lifecycle events."""

    id: str = Field(..., description="Unique notification ID")
    recipient_id: str = Field(..., description="User the notification is for")
    title: str
    message: str
    time: str = Field(..., description="Human readable time label")
    read: bool = Field(default=False)
    type: NotificationType = Field(default=NotificationType.INFO)
