"""
Tests for the notifications application layer.

Covers the dispatcher fan-out (in-app notification, Telegram, paced
emails), the durable job processor with retries, and the user feed.
"""

from datetime import datetime, timedelta, timezone
from uuid import uuid4

import pytest

from app.application.notifications.dispatcher import NotificationDispatcher
from app.application.notifications.dtos import BroadcastCommand, FeedQuery
from app.application.notifications.feed import (
    BroadcastNotificationUseCase,
    DismissNotificationUseCase,
    GetNotificationFeedUseCase,
    MarkNotificationReadUseCase,
    visible_groups,
)
from app.application.notifications.handlers import build_job_handlers
from app.application.notifications.process_jobs import ProcessNotificationJobsUseCase
from app.application.notifications.queue import NotificationJobQueue
from app.application.notifications.reminders import (
    SubscriptionRemindersUseCase,
    TrainingRemindersUseCase,
)
from app.domain.accounts.entities import ActiveSubscription, Service, User, UserRole
from app.domain.alerts.entities import Alert, AlertAction, AlertService
from app.domain.content.entities import (
    ClassStatus,
    MonthlyTraining,
    Report,
    ReportCategory,
    ReportType,
    Student,
    StudentPaymentStatus,
    TrainingClass,
)
from app.domain.notifications.entities import (
    JobStatus,
    NotificationJob,
    NotificationType,
    TargetUsers,
)
from app.domain.notifications.errors import (
    EmailDeliveryError,
    EmailRateLimitError,
    InvalidNotificationError,
    NotificationNotFoundError,
)
from app.infrastructure.alerts.alert_repository import AlertRepositoryAdapter
from app.infrastructure.content.report_repository import ReportRepositoryAdapter
from app.infrastructure.content.training_repository import TrainingRepositoryAdapter
from app.infrastructure.notifications.delivery_log_repository import (
    DeliveryLogRepositoryAdapter,
)
from app.infrastructure.notifications.job_repository import (
    NotificationJobRepositoryAdapter,
)
from app.infrastructure.notifications.notification_repository import (
    NotificationRepositoryAdapter,
)
from tests.fakes import FakeEmailSender, FakeTelegram


@pytest.fixture
def notification_repo(engine):
    return NotificationRepositoryAdapter(engine)


@pytest.fixture
def alert_repo(engine):
    return AlertRepositoryAdapter(engine)


@pytest.fixture
def report_repo(engine):
    return ReportRepositoryAdapter(engine)


@pytest.fixture
def job_repo(engine):
    return NotificationJobRepositoryAdapter(engine)


@pytest.fixture
def audience(make_user):
    """One TraderCall subscriber, one SmartMoney subscriber, one free user."""
    return {
        "trader": make_user("ana@example.com", UserRole.SUSCRIPTOR, (Service.TRADER_CALL,)),
        "smart": make_user("leo@example.com", UserRole.SUSCRIPTOR, (Service.SMART_MONEY,)),
        "free": make_user("bob@example.com"),
    }


def _alert(**overrides) -> Alert:
    fields = {
        "symbol": "AAPL",
        "action": AlertAction.BUY,
        "stop_loss": 90.0,
        "take_profit": 130.0,
        "entry_price": 100.0,
        "current_price": 100.0,
    }
    fields.update(overrides)
    return Alert(**fields)


def _report() -> Report:
    return Report(
        title="Semana clave",
        type=ReportType.TEXT,
        content="<p>Contenido del informe</p>",
        summary="Resumen del informe",
        category=ReportCategory.SMART_MONEY,
    )


def _dispatcher(engine, user_repo, email_sender, telegram, testing_mode=False):
    return NotificationDispatcher(
        notification_repo=NotificationRepositoryAdapter(engine),
        user_repo=user_repo,
        email_sender=email_sender,
        telegram=telegram,
        telegram_channels={"TraderCall": "@tradercall"},
        base_url="https://alertas.example",
        testing_mode=testing_mode,
        sleep=lambda _seconds: None,
    )


# ══════════════════════════════════════════════════════════════════════
# Dispatcher
# ══════════════════════════════════════════════════════════════════════


class TestPublishAlert:
    def test_fans_out_to_service_subscribers(
        self, dispatcher, notification_repo, email_sender, telegram, audience
    ):
        result = dispatcher.publish_alert(_alert())

        assert not result.skipped
        assert result.recipients == 1
        assert result.emails_sent == 1
        assert result.telegram_sent
        assert [e["to"] for e in email_sender.sent] == ["ana@example.com"]
        assert telegram.messages[0][0] == "@tradercall"
        assert "AAPL" in telegram.messages[0][1]

        saved = notification_repo.get(result.notification_id)
        assert saved.target_users is TargetUsers.ALERTAS_TRADER
        assert saved.type is NotificationType.ALERTA
        assert saved.email_sent

    def test_duplicate_announcement_is_skipped(self, dispatcher, email_sender, audience):
        alert = _alert()
        first = dispatcher.publish_alert(alert)
        second = dispatcher.publish_alert(alert)

        assert second.skipped
        assert second.notification_id == first.notification_id
        assert len(email_sender.sent) == 1

    def test_follow_up_events_bypass_duplicate_check(self, dispatcher, email_sender, audience):
        alert = _alert()
        dispatcher.publish_alert(alert)
        result = dispatcher.publish_alert(
            alert, {"title": "Cierre AAPL", "price": 120.0, "skip_duplicate_check": True}
        )

        assert not result.skipped
        assert len(email_sender.sent) == 2

    def test_image_is_posted_as_photo(self, dispatcher, telegram, audience):
        dispatcher.publish_alert(_alert(), {"image_url": "https://img.example/chart.png"})
        assert telegram.photos[0][:2] == ("@tradercall", "https://img.example/chart.png")
        assert telegram.messages == []

    def test_disabled_telegram_still_emails(self, engine, user_repo, email_sender, audience):
        dispatcher = _dispatcher(engine, user_repo, email_sender, FakeTelegram(enabled=False))
        result = dispatcher.publish_alert(_alert())
        assert not result.telegram_sent
        assert result.emails_sent == 1

    def test_missing_channel_skips_telegram(
        self, engine, user_repo, email_sender, telegram, audience
    ):
        dispatcher = _dispatcher(engine, user_repo, email_sender, telegram)
        result = dispatcher.publish_alert(_alert(tipo=AlertService.SMART_MONEY))
        assert not result.telegram_sent
        assert result.emails_sent == 1

    @pytest.mark.parametrize("error", [EmailRateLimitError("ana@example.com", "SMTP 421"), RuntimeError("smtp")])
    def test_email_failures_are_counted(self, engine, user_repo, telegram, audience, error):
        dispatcher = _dispatcher(engine, user_repo, FakeEmailSender(error), telegram)
        result = dispatcher.publish_alert(_alert())
        assert result.emails_sent == 0
        assert result.emails_failed == 1

    def test_testing_mode_only_emails_admins(
        self, engine, user_repo, email_sender, telegram, make_user, audience
    ):
        make_user("boss@alertas.example", UserRole.ADMIN, (Service.TRADER_CALL,))
        dispatcher = _dispatcher(engine, user_repo, email_sender, telegram, testing_mode=True)

        result = dispatcher.publish_alert(_alert())

        assert result.recipients == 1
        assert [e["to"] for e in email_sender.sent] == ["boss@alertas.example"]

    def test_recipients_are_emailed_in_batches(self, engine, user_repo, telegram, make_user):
        for i in range(7):
            make_user(f"user{i}@example.com", UserRole.SUSCRIPTOR, (Service.TRADER_CALL,))
        pauses = []
        dispatcher = NotificationDispatcher(
            notification_repo=NotificationRepositoryAdapter(engine),
            user_repo=user_repo,
            email_sender=FakeEmailSender(),
            telegram=telegram,
            telegram_channels={},
            base_url="https://alertas.example",
            sleep=pauses.append,
        )

        result = dispatcher.publish_alert(_alert())

        assert result.emails_sent == 7
        assert pauses.count(2.0) == 1


class TestPublishReport:
    def test_report_goes_to_category_service(self, dispatcher, email_sender, audience):
        result = dispatcher.publish_report(_report())
        assert result.recipients == 1
        assert [e["to"] for e in email_sender.sent] == ["leo@example.com"]
        assert not result.telegram_sent

    def test_report_is_announced_once(self, dispatcher, email_sender, audience):
        report = _report()
        dispatcher.publish_report(report)
        assert dispatcher.publish_report(report).skipped
        assert len(email_sender.sent) == 1


# ══════════════════════════════════════════════════════════════════════
# Job processing
# ══════════════════════════════════════════════════════════════════════


class TestProcessNotificationJobs:
    def test_queued_alert_is_delivered(
        self, dispatcher, alert_repo, report_repo, job_repo, email_sender, audience
    ):
        alert = _alert()
        alert_repo.save(alert)
        NotificationJobQueue(job_repo).alert_published(alert, {"message": "Compra AAPL"})
        use_case = ProcessNotificationJobsUseCase(
            job_repo, build_job_handlers(dispatcher, alert_repo, report_repo)
        )

        result = use_case.execute(limit=10)

        assert result.processed == 1
        assert result.sent == 1
        assert len(email_sender.sent) == 1
        assert job_repo.count_by_status()["SENT"] == 1

    def test_queued_report_is_delivered(
        self, dispatcher, alert_repo, report_repo, job_repo, email_sender, audience
    ):
        report = _report()
        report_repo.save(report)
        NotificationJobQueue(job_repo).report_published(report)
        use_case = ProcessNotificationJobsUseCase(
            job_repo, build_job_handlers(dispatcher, alert_repo, report_repo)
        )

        assert use_case.execute().sent == 1
        assert email_sender.sent[0]["to"] == "leo@example.com"

    def test_missing_alert_is_retried(self, dispatcher, alert_repo, report_repo, job_repo):
        NotificationJobQueue(job_repo).alert_published(_alert())
        use_case = ProcessNotificationJobsUseCase(
            job_repo, build_job_handlers(dispatcher, alert_repo, report_repo)
        )

        result = use_case.execute()

        assert result.retried == 1
        assert result.errors
        counts = job_repo.count_by_status()
        assert counts["PENDING"] == 1
        # Backoff pushes the retry into the future.
        assert use_case.execute().processed == 0

    def test_unknown_type_fails_after_last_attempt(self, job_repo):
        job_repo.enqueue(NotificationJob(type="carrier_pigeon", max_attempts=1))
        result = ProcessNotificationJobsUseCase(job_repo, {}).execute()
        assert result.failed == 1
        assert job_repo.count_by_status()["FAILED"] == 1

    def test_limit_is_respected(self, job_repo):
        calls = []
        for _ in range(3):
            job_repo.enqueue(NotificationJob(type="ping"))
        use_case = ProcessNotificationJobsUseCase(job_repo, {"ping": calls.append})

        assert use_case.execute(limit=2).processed == 2
        assert use_case.execute(limit=2).processed == 1
        assert len(calls) == 3

    def test_claimed_job_is_not_claimed_twice(self, job_repo):
        job_repo.enqueue(NotificationJob(type="ping"))
        now = datetime.now(timezone.utc) + timedelta(seconds=1)

        first = job_repo.claim_next(now, "worker-a")
        second = job_repo.claim_next(now, "worker-b")

        assert first.status is JobStatus.PROCESSING
        assert first.attempts == 1
        assert first.lock_id == "worker-a"
        assert second is None


# ══════════════════════════════════════════════════════════════════════
# Feed
# ══════════════════════════════════════════════════════════════════════


class TestFeed:
    def test_visible_groups(self, audience, admin):
        assert visible_groups(audience["free"]) == [TargetUsers.TODOS]
        assert visible_groups(audience["trader"]) == [
            TargetUsers.TODOS,
            TargetUsers.SUSCRIPTORES,
            TargetUsers.ALERTAS_TRADER,
        ]
        assert set(visible_groups(admin)) == set(TargetUsers)

    def test_feed_shows_only_own_groups(self, notification_repo, audience):
        broadcast = BroadcastNotificationUseCase(notification_repo)
        broadcast.execute(BroadcastCommand(created_by="admin", title="Hola", message="A todos"))
        broadcast.execute(
            BroadcastCommand(created_by="admin", title="Smart", message="Solo smart",
                             target_users="alertas_smart")
        )
        broadcast.execute(
            BroadcastCommand(created_by="admin", title="Mantenimiento", message="Sistema",
                             type="sistema")
        )

        feed = GetNotificationFeedUseCase(notification_repo).execute(
            audience["trader"], FeedQuery()
        )

        assert [item.notification.title for item in feed.items] == ["Hola"]
        assert feed.unread_count == 1

    def test_read_and_dismiss(self, notification_repo, audience):
        user = audience["free"]
        notification = BroadcastNotificationUseCase(notification_repo).execute(
            BroadcastCommand(created_by="admin", title="Hola", message="A todos")
        )
        feed = GetNotificationFeedUseCase(notification_repo)

        MarkNotificationReadUseCase(notification_repo).execute(user, notification.id)
        MarkNotificationReadUseCase(notification_repo).execute(user, notification.id)
        after_read = feed.execute(user, FeedQuery())
        assert after_read.unread_count == 0
        assert after_read.items[0].is_read
        assert notification_repo.get(notification.id).total_reads == 1
        assert feed.execute(user, FeedQuery(unread_only=True)).total == 0

        DismissNotificationUseCase(notification_repo).execute(user, notification.id)
        assert feed.execute(user, FeedQuery()).total == 0

    def test_other_groups_cannot_be_marked(self, notification_repo, audience):
        broadcast = BroadcastNotificationUseCase(notification_repo)
        admin_only = broadcast.execute(
            BroadcastCommand(created_by="admin", title="Interno", message="Solo admins",
                             target_users="admin")
        )
        maintenance = broadcast.execute(
            BroadcastCommand(created_by="admin", title="Mantenimiento", message="Sistema",
                             type="sistema")
        )

        for notification in (admin_only, maintenance):
            with pytest.raises(NotificationNotFoundError):
                MarkNotificationReadUseCase(notification_repo).execute(
                    audience["trader"], notification.id
                )
            with pytest.raises(NotificationNotFoundError):
                DismissNotificationUseCase(notification_repo).execute(
                    audience["trader"], notification.id
                )
            stored = notification_repo.get(notification.id)
            assert stored.total_reads == 0
            assert stored.dismissed_by == []

    def test_unknown_notification(self, notification_repo, audience):
        with pytest.raises(NotificationNotFoundError):
            MarkNotificationReadUseCase(notification_repo).execute(audience["free"], uuid4())

    def test_invalid_filters(self, notification_repo, audience):
        with pytest.raises(InvalidNotificationError):
            GetNotificationFeedUseCase(notification_repo).execute(
                audience["free"], FeedQuery(priority="urgente")
            )
        with pytest.raises(InvalidNotificationError):
            BroadcastNotificationUseCase(notification_repo).execute(
                BroadcastCommand(created_by="admin", title="x", message="y", target_users="vip")
            )


# ══════════════════════════════════════════════════════════════════════
# Reminders
# ══════════════════════════════════════════════════════════════════════

REMINDER_NOW = datetime(2026, 10, 19, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def delivery_log(engine):
    return DeliveryLogRepositoryAdapter(engine)


def _subscriber(user_repo, email: str, expires_in: timedelta, active: bool = True) -> User:
    user = User(email=email, name=email.split("@")[0], role=UserRole.SUSCRIPTOR)
    user.active_subscriptions = [
        ActiveSubscription(
            service=Service.TRADER_CALL,
            start_date=REMINDER_NOW - timedelta(days=25),
            expiry_date=REMINDER_NOW + expires_in,
            is_active=active,
        )
    ]
    user_repo.save(user)
    return user


class TestSubscriptionReminders:
    def _use_case(self, user_repo, email_sender, delivery_log):
        return SubscriptionRemindersUseCase(
            user_repo, email_sender, delivery_log, base_url="https://alertas.example"
        )

    def test_warns_five_days_and_one_day_ahead(self, user_repo, email_sender, delivery_log):
        _subscriber(user_repo, "five@example.com", timedelta(days=4, hours=12))
        _subscriber(user_repo, "one@example.com", timedelta(hours=12))
        _subscriber(user_repo, "three@example.com", timedelta(days=2, hours=12))

        result = self._use_case(user_repo, email_sender, delivery_log).execute(REMINDER_NOW)

        assert result.checked == 3
        assert result.warnings_sent == 2
        subjects = {e["to"]: e["subject"] for e in email_sender.sent}
        assert subjects == {
            "five@example.com": "⚠️ Tu suscripción de Trader Call vence en 5 días",
            "one@example.com": "⚠️ Tu suscripción de Trader Call vence en 1 día",
        }
        assert "https://alertas.example/alertas/trader-call" in email_sender.sent[0]["text"]

    def test_lapsed_subscription_gets_one_expired_notice(
        self, user_repo, email_sender, delivery_log
    ):
        _subscriber(user_repo, "gone@example.com", -timedelta(hours=6), active=False)
        use_case = self._use_case(user_repo, email_sender, delivery_log)

        first = use_case.execute(REMINDER_NOW)
        second = use_case.execute(REMINDER_NOW + timedelta(hours=10))

        assert first.expired_sent == 1
        assert second.expired_sent == 0
        assert second.skipped == 1
        assert [e["subject"] for e in email_sender.sent] == [
            "❌ Tu suscripción de Trader Call ha expirado"
        ]

    def test_reruns_do_not_repeat_warnings(self, user_repo, email_sender, delivery_log):
        _subscriber(user_repo, "five@example.com", timedelta(days=4, hours=12))
        use_case = self._use_case(user_repo, email_sender, delivery_log)

        use_case.execute(REMINDER_NOW)
        again = use_case.execute(REMINDER_NOW + timedelta(hours=1))

        assert again.warnings_sent == 0
        assert again.skipped == 1
        assert len(email_sender.sent) == 1

    def test_failed_email_is_retried_next_run(self, user_repo, delivery_log):
        _subscriber(user_repo, "one@example.com", timedelta(hours=12))
        broken = FakeEmailSender(error=EmailDeliveryError("one@example.com", "smtp down"))
        working = FakeEmailSender()

        failed = self._use_case(user_repo, broken, delivery_log).execute(REMINDER_NOW)
        retried = self._use_case(user_repo, working, delivery_log).execute(
            REMINDER_NOW + timedelta(minutes=10)
        )

        assert failed.errors == 1
        assert retried.warnings_sent == 1
        assert [e["to"] for e in working.sent] == ["one@example.com"]

    def test_old_log_entries_are_purged(self, user_repo, email_sender, delivery_log):
        delivery_log.record("subscription:old:TraderCall:expired", REMINDER_NOW - timedelta(days=40))

        result = self._use_case(user_repo, email_sender, delivery_log).execute(REMINDER_NOW)

        assert result.purged == 1


# Tuesday 2026-10-20, 19:00 in Buenos Aires.
CLASS_START = datetime(2026, 10, 20, 22, 0, tzinfo=timezone.utc)


def _training(training_repo) -> MonthlyTraining:
    training = MonthlyTraining(
        title="Swing Trading",
        description="Cohorte de octubre",
        month=10,
        year=2026,
        price=50000.0,
        classes=[
            TrainingClass(date=CLASS_START, start_time="19:00", title="Gestión de riesgo",
                          meeting_link="https://meet.example/abc"),
            TrainingClass(date=CLASS_START, start_time="19:00", title="Suspendida",
                          status=ClassStatus.CANCELLED),
            TrainingClass(date=CLASS_START + timedelta(days=7), start_time="19:00",
                          title="Entradas"),
        ],
        students=[
            Student(user_id="u-1", name="Ana", email="ana@example.com",
                    payment_status=StudentPaymentStatus.COMPLETED),
            Student(user_id="u-2", name="Ana", email="ANA@example.com",
                    payment_status=StudentPaymentStatus.COMPLETED),
            Student(user_id="u-3", name="Bob", email="bob@example.com"),
        ],
    )
    training_repo.save(training)
    return training


class TestTrainingReminders:
    def test_paid_students_hear_about_tomorrows_class(
        self, engine, email_sender, delivery_log
    ):
        training_repo = TrainingRepositoryAdapter(engine)
        _training(training_repo)
        use_case = TrainingRemindersUseCase(training_repo, email_sender, delivery_log)

        result = use_case.execute(CLASS_START - timedelta(hours=20))

        assert result.classes == 1
        assert result.sent == 1
        assert [e["to"] for e in email_sender.sent] == ["ana@example.com"]
        email = email_sender.sent[0]
        assert email["subject"] == "📚 Recordatorio: Clases de Swing Trading - Octubre 2026"
        assert "Gestión de riesgo" in email["text"]
        assert "https://meet.example/abc" in email["text"]

    def test_each_class_is_reminded_once(self, engine, email_sender, delivery_log):
        training_repo = TrainingRepositoryAdapter(engine)
        _training(training_repo)
        use_case = TrainingRemindersUseCase(training_repo, email_sender, delivery_log)

        use_case.execute(CLASS_START - timedelta(hours=20))
        again = use_case.execute(CLASS_START - timedelta(hours=2))

        assert again.sent == 0
        assert again.skipped == 1
        assert len(email_sender.sent) == 1

    def test_classes_beyond_the_lookahead_wait(self, engine, email_sender, delivery_log):
        training_repo = TrainingRepositoryAdapter(engine)
        _training(training_repo)
        use_case = TrainingRemindersUseCase(training_repo, email_sender, delivery_log)

        result = use_case.execute(CLASS_START - timedelta(days=2))

        assert result.classes == 0
        assert email_sender.sent == []

    def test_delivery_failures_are_reported(self, engine, delivery_log):
        training_repo = TrainingRepositoryAdapter(engine)
        _training(training_repo)
        broken = FakeEmailSender(error=EmailDeliveryError("ana@example.com", "smtp down"))

        result = TrainingRemindersUseCase(training_repo, broken, delivery_log).execute(
            CLASS_START - timedelta(hours=20)
        )

        assert result.failed == 1
        assert result.errors and "ana@example.com" in result.errors[0]
