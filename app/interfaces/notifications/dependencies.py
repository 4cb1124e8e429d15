"""
Dependency injection for the notifications bounded context.
"""

from fastapi import Depends
from sqlalchemy.engine import Engine

from app.application.notifications.dispatcher import NotificationDispatcher
from app.application.notifications.feed import (
    BroadcastNotificationUseCase,
    DismissNotificationUseCase,
    GetNotificationFeedUseCase,
    MarkNotificationReadUseCase,
)
from app.application.notifications.handlers import build_job_handlers
from app.application.notifications.process_jobs import ProcessNotificationJobsUseCase
from app.application.notifications.reminders import (
    SubscriptionRemindersUseCase,
    TrainingRemindersUseCase,
)
from app.core.config import settings
from app.domain.notifications.ports import EmailSender
from app.infrastructure.accounts.user_repository import UserRepositoryAdapter
from app.infrastructure.alerts.alert_repository import AlertRepositoryAdapter
from app.infrastructure.content.report_repository import ReportRepositoryAdapter
from app.infrastructure.content.training_repository import TrainingRepositoryAdapter
from app.infrastructure.notifications.delivery_log_repository import (
    DeliveryLogRepositoryAdapter,
)
from app.infrastructure.notifications.job_repository import NotificationJobRepositoryAdapter
from app.infrastructure.notifications.notification_repository import (
    NotificationRepositoryAdapter,
)
from app.interfaces.dependencies import (
    get_db_engine,
    get_email_sender,
    get_notification_dispatcher,
)


def get_feed_use_case(engine: Engine = Depends(get_db_engine)) -> GetNotificationFeedUseCase:
    return GetNotificationFeedUseCase(notification_repo=NotificationRepositoryAdapter(engine))


def get_mark_read_use_case(
    engine: Engine = Depends(get_db_engine),
) -> MarkNotificationReadUseCase:
    return MarkNotificationReadUseCase(notification_repo=NotificationRepositoryAdapter(engine))


def get_dismiss_use_case(engine: Engine = Depends(get_db_engine)) -> DismissNotificationUseCase:
    return DismissNotificationUseCase(notification_repo=NotificationRepositoryAdapter(engine))


def get_broadcast_use_case(
    engine: Engine = Depends(get_db_engine),
) -> BroadcastNotificationUseCase:
    return BroadcastNotificationUseCase(notification_repo=NotificationRepositoryAdapter(engine))


def get_process_jobs_use_case(
    engine: Engine = Depends(get_db_engine),
    dispatcher: NotificationDispatcher = Depends(get_notification_dispatcher),
) -> ProcessNotificationJobsUseCase:
    """Build the job processor with a handler per job type."""
    handlers = build_job_handlers(
        dispatcher=dispatcher,
        alert_repo=AlertRepositoryAdapter(engine),
        report_repo=ReportRepositoryAdapter(engine),
    )
    return ProcessNotificationJobsUseCase(
        job_repo=NotificationJobRepositoryAdapter(engine), handlers=handlers
    )


def get_subscription_reminders_use_case(
    engine: Engine = Depends(get_db_engine),
    email_sender: EmailSender = Depends(get_email_sender),
) -> SubscriptionRemindersUseCase:
    return SubscriptionRemindersUseCase(
        user_repo=UserRepositoryAdapter(engine),
        email_sender=email_sender,
        delivery_log=DeliveryLogRepositoryAdapter(engine),
        base_url=settings.base_url,
    )


def get_training_reminders_use_case(
    engine: Engine = Depends(get_db_engine),
    email_sender: EmailSender = Depends(get_email_sender),
) -> TrainingRemindersUseCase:
    return TrainingRemindersUseCase(
        training_repo=TrainingRepositoryAdapter(engine),
        email_sender=email_sender,
        delivery_log=DeliveryLogRepositoryAdapter(engine),
        lookahead_hours=settings.training_reminder_lookahead_hours,
        timezone_name=settings.scheduler_timezone,
    )
