"""
Port interfaces (ABCs) for the notifications bounded context.

Ports define the contracts that the domain requires from the outside world:
storage for notifications and delivery jobs, and the outbound channels
(email, Telegram). Infrastructure adapters implement these interfaces.
"""

from abc import ABC, abstractmethod
from datetime import datetime
from typing import Optional
from uuid import UUID

from app.domain.notifications.entities import (
    Notification,
    NotificationJob,
    TargetUsers,
)


class NotificationRepository(ABC):
    """Port for persisting and querying notifications."""

    @abstractmethod
    def get(self, notification_id: UUID) -> Optional[Notification]:
        raise NotImplementedError

    @abstractmethod
    def save(self, notification: Notification) -> None:
        """Insert or update a notification."""
        raise NotImplementedError

    @abstractmethod
    def find_active_for_alert(
        self, alert_id: str, target_users: TargetUsers
    ) -> Optional[Notification]:
        """Return an active notification already published for the alert and group."""
        raise NotImplementedError

    @abstractmethod
    def find_active_by_metadata(
        self, key: str, value: str, target_users: TargetUsers
    ) -> Optional[Notification]:
        """Return an active notification whose metadata[key] equals value."""
        raise NotImplementedError

    @abstractmethod
    def list_for_groups(
        self,
        groups: list[TargetUsers],
        created_after: Optional[datetime],
        now: datetime,
    ) -> list[Notification]:
        """Return active, unexpired notifications for the groups, newest first."""
        raise NotImplementedError


class NotificationJobRepository(ABC):
    """Port for the durable delivery job queue."""

    @abstractmethod
    def enqueue(self, job: NotificationJob) -> None:
        raise NotImplementedError

    @abstractmethod
    def claim_next(self, now: datetime, lock_id: str) -> Optional[NotificationJob]:
        """Atomically claim the oldest due PENDING job.

        The claimed job is switched to PROCESSING, locked with `lock_id`
        and has its attempt counter incremented. Returns None when no job
        is due.
        """
        raise NotImplementedError

    @abstractmethod
    def save(self, job: NotificationJob) -> None:
        """Persist the outcome of a processed job."""
        raise NotImplementedError

    @abstractmethod
    def count_by_status(self) -> dict[str, int]:
        raise NotImplementedError


class EmailSender(ABC):
    """Port for transactional email delivery."""

    @abstractmethod
    def send(self, to: str, subject: str, html: str, text: str = "") -> None:
        """Deliver one email.

        Raises:
            EmailRateLimitError: When the provider throttles the sender.
            EmailDeliveryError: For any other delivery failure.
        """
        raise NotImplementedError


class TelegramPublisher(ABC):
    """Port for posting messages to Telegram channels."""

    @property
    @abstractmethod
    def enabled(self) -> bool:
        raise NotImplementedError

    @abstractmethod
    def send_message(self, chat_id: str, text: str) -> bool:
        """Post a Markdown message. Returns False on any failure."""
        raise NotImplementedError

    @abstractmethod
    def send_photo(self, chat_id: str, photo_url: str, caption: str) -> bool:
        """Post a photo with caption. Returns False on any failure."""
        raise NotImplementedError


class DeliveryLogRepository(ABC):
    """Port for the log of one-off messages that must not repeat.

    Reminders and daily announcements are keyed by a string such as
    `subscription:<user>:<service>:warning:5`; a key seen inside the
    dedupe window is not sent again.
    """

    @abstractmethod
    def was_sent(self, key: str, since: datetime) -> bool:
        """True if `key` was recorded at or after `since`."""
        raise NotImplementedError

    @abstractmethod
    def record(self, key: str, sent_at: datetime) -> None:
        raise NotImplementedError

    @abstractmethod
    def purge_before(self, cutoff: datetime) -> int:
        """Delete entries older than `cutoff` and return how many went."""
        raise NotImplementedError
