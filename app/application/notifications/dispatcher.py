"""
Fan-out of alert and report notifications.

For each event one global Notification is saved for the service group,
the alert is posted to Telegram, and every subscriber of the service is
emailed in small paced batches so the SMTP provider does not throttle
the sender.
"""

import logging
import time
from datetime import datetime, timezone
from typing import Any, Callable, Optional

from app.application.notifications.dtos import DispatchResult
from app.domain.accounts.entities import Service, User
from app.domain.accounts.ports import UserRepository
from app.domain.alerts.entities import Alert
from app.domain.content.entities import Report
from app.domain.content.formatting import plain_text
from app.domain.notifications.entities import Notification
from app.domain.notifications.errors import EmailRateLimitError
from app.domain.notifications.ports import (
    EmailSender,
    NotificationRepository,
    TelegramPublisher,
)
from app.domain.notifications.templates import (
    REPORT_CATEGORY_SERVICES,
    build_alert_notification,
    build_report_notification,
    format_telegram_alert,
    render_notification_email,
)

logger = logging.getLogger(__name__)

EMAIL_BATCH_SIZE = 5
PAUSE_AFTER_EMAIL_SECONDS = 0.5
PAUSE_BETWEEN_BATCHES_SECONDS = 2.0
RATE_LIMIT_BACKOFF_SECONDS = 10.0


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class NotificationDispatcher:
    """Saves, posts and emails notifications for a service's subscribers."""

    def __init__(
        self,
        notification_repo: NotificationRepository,
        user_repo: UserRepository,
        email_sender: EmailSender,
        telegram: TelegramPublisher,
        telegram_channels: dict[str, str],
        base_url: str,
        testing_mode: bool = False,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self._notification_repo = notification_repo
        self._user_repo = user_repo
        self._email_sender = email_sender
        self._telegram = telegram
        self._telegram_channels = telegram_channels
        self._base_url = base_url
        self._testing_mode = testing_mode
        self._sleep = sleep

    def publish_alert(
        self, alert: Alert, overrides: Optional[dict[str, Any]] = None
    ) -> DispatchResult:
        """Announce an alert to its service's subscribers.

        Args:
            alert: The published or updated alert.
            overrides: Optional title, message, price and image for the
                announcement. `skip_duplicate_check` forces a new notification
                even when one already exists for the alert.

        Returns:
            DispatchResult; `skipped` is set when a notification already existed.
        """
        overrides = dict(overrides or {})
        skip_duplicate_check = bool(overrides.pop("skip_duplicate_check", False))
        notification = build_alert_notification(alert, overrides)

        if not skip_duplicate_check:
            existing = self._notification_repo.find_active_for_alert(
                str(alert.id), notification.target_users
            )
            if existing is not None:
                logger.info("Notification for alert %s already exists; skipping", alert.id)
                return DispatchResult(notification_id=existing.id, skipped=True)

        subscribers = self._user_repo.list_subscribers(Service(alert.tipo.value), _utcnow())
        self._notification_repo.save(notification)
        logger.info(
            "Alert notification %s saved for group=%s (%d subscribers)",
            notification.id,
            notification.target_users.value,
            len(subscribers),
        )

        telegram_sent = self._post_to_telegram(alert, overrides)
        return self._email_group(notification, subscribers, telegram_sent)

    def publish_report(self, report: Report) -> DispatchResult:
        """Announce a report to the subscribers of its category's service."""
        category = report.category.value
        notification = build_report_notification(
            str(report.id), report.title, category, plain_text(report.summary or report.content)
        )
        existing = self._notification_repo.find_active_by_metadata(
            "report_id", str(report.id), notification.target_users
        )
        if existing is not None:
            logger.info("Notification for report %s already exists; skipping", report.id)
            return DispatchResult(notification_id=existing.id, skipped=True)

        service = Service(REPORT_CATEGORY_SERVICES.get(category, "TraderCall"))
        subscribers = self._user_repo.list_subscribers(service, _utcnow())
        self._notification_repo.save(notification)
        logger.info("Report notification %s saved for report %s", notification.id, report.id)
        return self._email_group(notification, subscribers, telegram_sent=False)

    def _post_to_telegram(self, alert: Alert, overrides: dict[str, Any]) -> bool:
        """Best effort; a Telegram failure never fails the notification."""
        if not self._telegram.enabled:
            return False
        chat_id = self._telegram_channels.get(alert.tipo.value)
        if not chat_id:
            logger.warning("No Telegram channel configured for %s", alert.tipo.value)
            return False
        try:
            text = format_telegram_alert(alert, overrides)
            image_url = overrides.get("image_url")
            if image_url:
                return self._telegram.send_photo(chat_id, image_url, text)
            return self._telegram.send_message(chat_id, text)
        except Exception:
            logger.exception("Telegram post failed for alert %s", alert.id)
            return False

    def _email_group(
        self, notification: Notification, subscribers: list[User], telegram_sent: bool
    ) -> DispatchResult:
        recipients = subscribers
        if self._testing_mode:
            recipients = [user for user in subscribers if user.is_admin]
            logger.info("Email testing mode: restricting %d recipients to admins", len(recipients))

        sent = 0
        failed = 0
        for start in range(0, len(recipients), EMAIL_BATCH_SIZE):
            for user in recipients[start:start + EMAIL_BATCH_SIZE]:
                if self._send_one(notification, user):
                    sent += 1
                else:
                    failed += 1
            if start + EMAIL_BATCH_SIZE < len(recipients):
                self._sleep(PAUSE_BETWEEN_BATCHES_SECONDS)

        notification.email_sent = sent > 0
        self._notification_repo.save(notification)
        logger.info(
            "Notification %s emailed: sent=%d failed=%d of %d",
            notification.id,
            sent,
            failed,
            len(recipients),
        )
        return DispatchResult(
            notification_id=notification.id,
            recipients=len(recipients),
            emails_sent=sent,
            emails_failed=failed,
            telegram_sent=telegram_sent,
        )

    def _send_one(self, notification: Notification, user: User) -> bool:
        subject, html, text = render_notification_email(
            notification, user.name or user.email, self._base_url
        )
        try:
            self._email_sender.send(user.email, subject, html, text)
            self._sleep(PAUSE_AFTER_EMAIL_SECONDS)
            return True
        except EmailRateLimitError:
            logger.warning("Email rate limit hit; backing off %ss", RATE_LIMIT_BACKOFF_SECONDS)
            self._sleep(RATE_LIMIT_BACKOFF_SECONDS)
            return False
        except Exception:
            logger.exception("Email to %s failed", user.email)
            return False
