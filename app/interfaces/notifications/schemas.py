"""
Pydantic schemas for the notifications API.
"""

from datetime import datetime
from typing import Any
from uuid import UUID

from pydantic import BaseModel, Field


class NotificationItem(BaseModel):
    """A notification as seen by one user."""

    id: UUID
    title: str
    message: str
    type: str
    priority: str
    target_users: str
    icon: str
    action_url: str | None = None
    action_text: str | None = None
    is_automatic: bool
    related_alert_id: str | None = None
    expires_at: datetime | None = None
    created_at: datetime
    is_read: bool


class FeedResponse(BaseModel):
    notifications: list[NotificationItem]
    total: int
    unread_count: int
    page: int
    limit: int


class BroadcastRequest(BaseModel):
    """Request schema for an admin-authored notification.

    Attributes:
        target_users: todos, suscriptores, admin, alertas_trader,
            alertas_smart or alertas_cashflow.
    """

    title: str = Field(..., min_length=1, max_length=100)
    message: str = Field(..., min_length=1, max_length=500)
    type: str = Field(default="novedad")
    priority: str = Field(default="media")
    target_users: str = Field(default="todos")
    icon: str = Field(default="🔔", max_length=10)
    action_url: str | None = None
    action_text: str | None = Field(default=None, max_length=50)
    expires_at: datetime | None = None
    metadata: dict[str, Any] = Field(default_factory=dict)


class ProcessJobsResponse(BaseModel):
    """Counts of one notification job run."""

    processed: int
    sent: int
    retried: int
    failed: int
    errors: list[str]


class SubscriptionRemindersResponse(BaseModel):
    checked: int
    warnings_sent: int
    expired_sent: int
    skipped: int
    errors: int
    purged: int


class TrainingRemindersResponse(BaseModel):
    """Counts of one class reminder run."""

    classes: int
    sent: int
    skipped: int
    failed: int
    errors: list[str]
