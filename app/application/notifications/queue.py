"""
Deferred announcement of alert and report events.

Use cases publish through the notification ports; this implementation
turns each event into a durable NotificationJob that the job processor
delivers later, so request handlers never wait on SMTP or Telegram.
"""

import logging
from typing import Any, Optional

from app.domain.alerts.entities import Alert
from app.domain.alerts.ports import AlertNotificationPort
from app.domain.content.entities import Report
from app.domain.content.ports import ReportNotificationPort
from app.domain.notifications.entities import JobType, NotificationJob
from app.domain.notifications.ports import NotificationJobRepository

logger = logging.getLogger(__name__)


class NotificationJobQueue(AlertNotificationPort, ReportNotificationPort):
    """Enqueues one delivery job per published event."""

    def __init__(self, job_repo: NotificationJobRepository) -> None:
        self._job_repo = job_repo

    def alert_published(self, alert: Alert, overrides: Optional[dict[str, Any]] = None) -> None:
        """Queue the announcement; None-valued overrides are dropped."""
        job = NotificationJob(
            type=JobType.ALERT_NOTIFICATION.value,
            payload={
                "alert_id": str(alert.id),
                "overrides": {k: v for k, v in (overrides or {}).items() if v is not None},
            },
        )
        self._job_repo.enqueue(job)
        logger.info("Queued alert notification job=%s alert=%s", job.id, alert.id)

    def report_published(self, report: Report) -> None:
        job = NotificationJob(
            type=JobType.REPORT_NOTIFICATION.value,
            payload={"report_id": str(report.id)},
        )
        self._job_repo.enqueue(job)
        logger.info("Queued report notification job=%s report=%s", job.id, report.id)
