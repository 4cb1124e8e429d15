"""
Data Transfer Objects for the notifications application layer.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Optional
from uuid import UUID

from app.domain.notifications.entities import Notification


@dataclass(frozen=True)
class DispatchResult:
    """Outcome of fanning a notification out to a service group.

    Attributes:
        notification_id: Id of the saved notification (None when skipped).
        skipped: True when an equivalent notification already existed.
        recipients: Number of email recipients resolved.
        emails_sent: Emails delivered.
        emails_failed: Emails that failed.
        telegram_sent: Whether the Telegram post succeeded.
    """

    notification_id: Optional[UUID] = None
    skipped: bool = False
    recipients: int = 0
    emails_sent: int = 0
    emails_failed: int = 0
    telegram_sent: bool = False


@dataclass(frozen=True)
class ProcessJobsResult:
    """Counts returned by one job-processing run."""

    processed: int = 0
    sent: int = 0
    retried: int = 0
    failed: int = 0
    errors: list[str] = field(default_factory=list)


@dataclass(frozen=True)
class FeedQuery:
    """Input DTO for the user notification feed.

    Attributes:
        page: 1-based page number.
        limit: Page size.
        type: Optional notification type filter.
        priority: Optional priority filter.
        unread_only: Only return notifications the user has not read.
    """

    page: int = 1
    limit: int = 20
    type: Optional[str] = None
    priority: Optional[str] = None
    unread_only: bool = False


@dataclass(frozen=True)
class FeedItem:
    notification: Notification
    is_read: bool


@dataclass(frozen=True)
class FeedResult:
    items: list[FeedItem]
    total: int
    unread_count: int
    page: int
    limit: int


@dataclass(frozen=True)
class BroadcastCommand:
    """Input DTO for an admin-authored notification."""

    created_by: str
    title: str
    message: str
    type: str = "novedad"
    priority: str = "media"
    target_users: str = "todos"
    icon: str = "🔔"
    action_url: Optional[str] = None
    action_text: Optional[str] = None
    expires_at: Optional[datetime] = None
    metadata: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class SubscriptionRemindersResult:
    """Counts returned by one subscription reminder run."""

    checked: int = 0
    warnings_sent: int = 0
    expired_sent: int = 0
    skipped: int = 0
    errors: int = 0
    purged: int = 0


@dataclass(frozen=True)
class TrainingRemindersResult:
    """Counts returned by one training reminder run.

    Attributes:
        classes: Scheduled classes starting inside the reminder window.
        sent: Reminders delivered.
        skipped: Students already reminded about that class.
        failed: Deliveries that raised.
        errors: First few failure messages.
    """

    classes: int = 0
    sent: int = 0
    skipped: int = 0
    failed: int = 0
    errors: list[str] = field(default_factory=list)
