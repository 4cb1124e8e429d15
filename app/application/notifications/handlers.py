"""
Job handlers: load the subject of a queued job and hand it to the dispatcher.
"""

from typing import Any
from uuid import UUID

from app.application.notifications.dispatcher import NotificationDispatcher
from app.application.notifications.process_jobs import JobHandler
from app.domain.alerts.errors import AlertNotFoundError
from app.domain.alerts.ports import AlertRepository
from app.domain.content.errors import ReportNotFoundError
from app.domain.content.ports import ReportRepository
from app.domain.notifications.entities import JobType


def build_job_handlers(
    dispatcher: NotificationDispatcher,
    alert_repo: AlertRepository,
    report_repo: ReportRepository,
) -> dict[str, JobHandler]:
    """Map every JobType to the function that delivers it."""

    def deliver_alert(payload: dict[str, Any]) -> None:
        alert = alert_repo.get(UUID(payload["alert_id"]))
        if alert is None:
            raise AlertNotFoundError(payload["alert_id"])
        dispatcher.publish_alert(alert, payload.get("overrides") or {})

    def deliver_report(payload: dict[str, Any]) -> None:
        report = report_repo.get(UUID(payload["report_id"]))
        if report is None:
            raise ReportNotFoundError(payload["report_id"])
        dispatcher.publish_report(report)

    return {
        JobType.ALERT_NOTIFICATION.value: deliver_alert,
        JobType.REPORT_NOTIFICATION.value: deliver_report,
    }
