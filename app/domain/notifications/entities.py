"""
Domain entities for the notifications bounded context.

A Notification is a single global document shown to every user of its
target group; per-user state (read / dismissed) is tracked on it.
A NotificationJob is a durable unit of deferred delivery work with
retry and exponential-ish backoff.
No framework imports and no IO operations.
"""

from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Any, Optional
from uuid import UUID, uuid4

from app.domain.notifications.errors import InvalidNotificationError

TITLE_MAX_LENGTH = 100
MESSAGE_MAX_LENGTH = 500

# Seconds to wait before retry N (1-based), clamped to the last entry.
RETRY_BACKOFF_SECONDS = [60, 180, 600, 1800, 3600, 7200]
DEFAULT_MAX_ATTEMPTS = 5


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class NotificationType(Enum):
    NOVEDAD = "novedad"
    ACTUALIZACION = "actualizacion"
    SISTEMA = "sistema"
    PROMOCION = "promocion"
    ALERTA = "alerta"


class NotificationPriority(Enum):
    ALTA = "alta"
    MEDIA = "media"
    BAJA = "baja"


class TargetUsers(Enum):
    """Audience group a notification is published to."""

    TODOS = "todos"
    SUSCRIPTORES = "suscriptores"
    ADMIN = "admin"
    ALERTAS_TRADER = "alertas_trader"
    ALERTAS_SMART = "alertas_smart"
    ALERTAS_CASHFLOW = "alertas_cashflow"


SERVICE_TARGET_GROUPS = {
    "TraderCall": TargetUsers.ALERTAS_TRADER,
    "SmartMoney": TargetUsers.ALERTAS_SMART,
    "CashFlow": TargetUsers.ALERTAS_CASHFLOW,
}


def target_group_for_service(service: str) -> TargetUsers:
    """Alert group of a service; unknown services fall back to TraderCall's."""
    return SERVICE_TARGET_GROUPS.get(service, TargetUsers.ALERTAS_TRADER)


@dataclass
class Notification:
    """A notification visible to every member of its target group."""

    title: str
    message: str
    id: UUID = field(default_factory=uuid4)
    type: NotificationType = NotificationType.NOVEDAD
    priority: NotificationPriority = NotificationPriority.MEDIA
    target_users: TargetUsers = TargetUsers.TODOS
    is_active: bool = True
    created_by: str = "sistema"
    expires_at: Optional[datetime] = None
    icon: str = "🔔"
    action_url: Optional[str] = None
    action_text: Optional[str] = None
    is_automatic: bool = False
    related_alert_id: Optional[str] = None
    email_sent: bool = False
    read_by: list[str] = field(default_factory=list)
    dismissed_by: list[str] = field(default_factory=list)
    total_reads: int = 0
    metadata: dict[str, Any] = field(default_factory=dict)
    created_at: datetime = field(default_factory=_utcnow)

    def __post_init__(self) -> None:
        self.title = self.title.strip()
        self.message = self.message.strip()
        if not self.title or not self.message:
            raise InvalidNotificationError("Title and message are required")
        if len(self.title) > TITLE_MAX_LENGTH:
            raise InvalidNotificationError(
                f"Title exceeds {TITLE_MAX_LENGTH} characters"
            )
        if len(self.message) > MESSAGE_MAX_LENGTH:
            raise InvalidNotificationError(
                f"Message exceeds {MESSAGE_MAX_LENGTH} characters"
            )

    def is_visible(self, now: Optional[datetime] = None) -> bool:
        now = now or _utcnow()
        return self.is_active and (self.expires_at is None or self.expires_at > now)

    def is_read_by(self, email: str) -> bool:
        return email.lower() in self.read_by

    def mark_as_read(self, email: str) -> bool:
        """Idempotent. Returns True only the first time a user reads it."""
        email = email.lower()
        if email in self.read_by:
            return False
        self.read_by.append(email)
        self.total_reads += 1
        return True

    def dismiss(self, email: str) -> bool:
        email = email.lower()
        if email in self.dismissed_by:
            return False
        self.dismissed_by.append(email)
        return True


# ══════════════════════════════════════════════════════════════════════
# Deferred delivery jobs
# ══════════════════════════════════════════════════════════════════════


class JobStatus(Enum):
    PENDING = "PENDING"
    PROCESSING = "PROCESSING"
    SENT = "SENT"
    FAILED = "FAILED"


class JobType(Enum):
    """Work items the job processor knows how to run."""

    ALERT_NOTIFICATION = "alert_notification"
    REPORT_NOTIFICATION = "report_notification"


def retry_delay(attempts: int) -> timedelta:
    """Backoff before the next try, indexed by attempts - 1 and clamped."""
    index = min(max(attempts - 1, 0), len(RETRY_BACKOFF_SECONDS) - 1)
    return timedelta(seconds=RETRY_BACKOFF_SECONDS[index])


@dataclass
class NotificationJob:
    """A queued delivery task with retry bookkeeping."""

    type: str
    payload: dict[str, Any] = field(default_factory=dict)
    id: UUID = field(default_factory=uuid4)
    status: JobStatus = JobStatus.PENDING
    attempts: int = 0
    max_attempts: int = DEFAULT_MAX_ATTEMPTS
    next_attempt_at: datetime = field(default_factory=_utcnow)
    locked_at: Optional[datetime] = None
    lock_id: Optional[str] = None
    last_error: Optional[str] = None
    sent_at: Optional[datetime] = None
    created_at: datetime = field(default_factory=_utcnow)

    def mark_sent(self, now: Optional[datetime] = None) -> None:
        self.status = JobStatus.SENT
        self.sent_at = now or _utcnow()
        self.locked_at = None
        self.lock_id = None
        self.last_error = None

    def mark_failed(self, error: str, now: Optional[datetime] = None) -> None:
        """Give up after max_attempts, else requeue with backoff."""
        now = now or _utcnow()
        self.last_error = error[:1000]
        self.locked_at = None
        self.lock_id = None
        if self.attempts >= self.max_attempts:
            self.status = JobStatus.FAILED
        else:
            self.status = JobStatus.PENDING
            self.next_attempt_at = now + retry_delay(self.attempts)
