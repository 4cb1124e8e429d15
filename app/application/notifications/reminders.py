"""
Use cases: Scheduled reminder emails.

SubscriptionRemindersUseCase warns subscribers 5 days and 1 day before a
subscription lapses and tells them once it has expired.
TrainingRemindersUseCase reminds paid students of classes starting soon.
Every email is keyed in the delivery log so a rerun never repeats it.
"""

import logging
import math
from datetime import datetime, timedelta, timezone
from typing import Optional
from zoneinfo import ZoneInfo

from app.application.notifications.dtos import (
    SubscriptionRemindersResult,
    TrainingRemindersResult,
)
from app.domain.accounts.entities import ActiveSubscription, User
from app.domain.accounts.ports import UserRepository
from app.domain.content.entities import (
    ClassStatus,
    MonthlyTraining,
    StudentPaymentStatus,
    TrainingClass,
    TrainingStatus,
)
from app.domain.content.ports import TrainingRepository
from app.domain.notifications.ports import DeliveryLogRepository, EmailSender
from app.domain.notifications.templates import (
    render_subscription_expired,
    render_subscription_expiring,
    render_training_reminder,
)

logger = logging.getLogger(__name__)

WARNING_DAYS = (5, 1)
WARNING_DEDUPE_WINDOW = timedelta(days=1)
# Covers a notice sent on the expiry day and the run right after it.
EXPIRED_DEDUPE_WINDOW = timedelta(days=2)
LOG_RETENTION = timedelta(days=30)
MAX_REPORTED_ERRORS = 5


def days_left(sub: ActiveSubscription, now: datetime) -> int:
    return math.ceil((sub.expiry_date - now).total_seconds() / 86400)


class SubscriptionRemindersUseCase:
    """Email expiry warnings and expired notices, once each."""

    def __init__(
        self,
        user_repo: UserRepository,
        email_sender: EmailSender,
        delivery_log: DeliveryLogRepository,
        base_url: str,
    ) -> None:
        self._user_repo = user_repo
        self._email_sender = email_sender
        self._delivery_log = delivery_log
        self._base_url = base_url

    def execute(self, now: Optional[datetime] = None) -> SubscriptionRemindersResult:
        """Send the reminders that are due at `now`.

        Entries expiring within the next 5 days, or lapsed during the last
        day, are considered. Lapsed entries still get their notice after
        the expiry sweep has switched them off.

        Args:
            now: Reference instant (UTC). Defaults to the current time.

        Returns:
            SubscriptionRemindersResult with the counts of the run,
            including how many old log entries were purged.
        """
        now = now or datetime.now(timezone.utc)
        window_start = now - timedelta(days=1)
        window_end = now + timedelta(days=max(WARNING_DAYS))

        checked = 0
        warnings = 0
        expired = 0
        skipped = 0
        errors = 0
        for user in self._user_repo.list_with_subscriptions():
            for sub in user.active_subscriptions:
                if not window_start <= sub.expiry_date <= window_end:
                    continue
                checked += 1
                try:
                    outcome = self._remind(user, sub, now)
                except Exception:
                    errors += 1
                    logger.exception(
                        "Subscription reminder failed: user=%s service=%s",
                        user.id,
                        sub.service.value,
                    )
                    continue
                if outcome == "warning":
                    warnings += 1
                elif outcome == "expired":
                    expired += 1
                elif outcome == "duplicate":
                    skipped += 1

        purged = self._delivery_log.purge_before(now - LOG_RETENTION)
        logger.info(
            "Subscription reminders: checked=%d warnings=%d expired=%d skipped=%d errors=%d",
            checked,
            warnings,
            expired,
            skipped,
            errors,
        )
        return SubscriptionRemindersResult(
            checked=checked,
            warnings_sent=warnings,
            expired_sent=expired,
            skipped=skipped,
            errors=errors,
            purged=purged,
        )

    def _remind(self, user: User, sub: ActiveSubscription, now: datetime) -> Optional[str]:
        """Send at most one email for the entry and say which kind went out."""
        remaining = days_left(sub, now)
        service = sub.service.value
        name = user.name or user.email

        if remaining in WARNING_DAYS and sub.is_current(now):
            key = f"subscription:{user.id}:{service}:warning:{remaining}"
            if self._delivery_log.was_sent(key, now - WARNING_DEDUPE_WINDOW):
                return "duplicate"
            subject, html, text = render_subscription_expiring(
                name, service, remaining, sub.expiry_date, self._base_url
            )
            kind = "warning"
        elif remaining <= 0:
            key = f"subscription:{user.id}:{service}:expired"
            if self._delivery_log.was_sent(key, now - EXPIRED_DEDUPE_WINDOW):
                return "duplicate"
            subject, html, text = render_subscription_expired(name, service, self._base_url)
            kind = "expired"
        else:
            return None

        self._email_sender.send(user.email, subject, html, text)
        self._delivery_log.record(key, now)
        logger.info("Sent %s reminder to %s for %s (%d days)", kind, user.email, service, remaining)
        return kind


class TrainingRemindersUseCase:
    """Email paid students about classes starting within the lookahead."""

    def __init__(
        self,
        training_repo: TrainingRepository,
        email_sender: EmailSender,
        delivery_log: DeliveryLogRepository,
        lookahead_hours: int = 24,
        timezone_name: str = "America/Argentina/Buenos_Aires",
    ) -> None:
        self._training_repo = training_repo
        self._email_sender = email_sender
        self._delivery_log = delivery_log
        self._lookahead = timedelta(hours=lookahead_hours)
        self._timezone = ZoneInfo(timezone_name)

    def execute(self, now: Optional[datetime] = None) -> TrainingRemindersResult:
        """Send reminders for classes starting between `now` and the lookahead.

        Returns:
            TrainingRemindersResult; at most five error messages are kept.
        """
        now = now or datetime.now(timezone.utc)
        horizon = now + self._lookahead

        classes = 0
        sent = 0
        skipped = 0
        failed = 0
        errors: list[str] = []
        for training in self._trainings_between(now, horizon):
            for cls in training.classes:
                if cls.status is not ClassStatus.SCHEDULED:
                    continue
                if not now <= cls.starts_at(self._timezone) < horizon:
                    continue
                classes += 1
                for student_name, email in self._paid_students(training):
                    key = f"training:{training.id}:{cls.id}:{email}"
                    if self._delivery_log.was_sent(key, now - self._lookahead - timedelta(days=1)):
                        skipped += 1
                        continue
                    try:
                        self._send(training, cls, student_name, email)
                        self._delivery_log.record(key, now)
                        sent += 1
                    except Exception as exc:
                        failed += 1
                        logger.exception("Training reminder to %s failed", email)
                        if len(errors) < MAX_REPORTED_ERRORS:
                            errors.append(f"{email}: {exc}")

        logger.info(
            "Training reminders: classes=%d sent=%d skipped=%d failed=%d",
            classes,
            sent,
            skipped,
            failed,
        )
        return TrainingRemindersResult(
            classes=classes, sent=sent, skipped=skipped, failed=failed, errors=errors
        )

    def _trainings_between(self, start: datetime, end: datetime) -> list[MonthlyTraining]:
        months = {(start.year, start.month), (end.year, end.month)}
        trainings = []
        for year, month in sorted(months):
            trainings.extend(
                t for t in self._training_repo.find(month=month, year=year)
                if t.status is not TrainingStatus.CANCELLED
            )
        return trainings

    @staticmethod
    def _paid_students(training: MonthlyTraining) -> list[tuple[str, str]]:
        seen = set()
        students = []
        for student in training.students:
            email = student.email.lower()
            if student.payment_status is not StudentPaymentStatus.COMPLETED or email in seen:
                continue
            seen.add(email)
            students.append((student.name, email))
        return students

    def _send(
        self, training: MonthlyTraining, cls: TrainingClass, student_name: str, email: str
    ) -> None:
        subject, html, text = render_training_reminder(
            student_name,
            training.title,
            training.month_name,
            training.year,
            cls.title,
            cls.starts_at(self._timezone),
            cls.start_time,
            cls.meeting_link,
        )
        self._email_sender.send(email, subject, html, text)
        logger.info("Reminded %s of class %s (%s)", email, cls.id, training.title)
