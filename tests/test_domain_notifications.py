"""
Tests for the notifications domain layer.

Notification validation and per-user state, plus the retry schedule of
delivery jobs.
"""

from datetime import datetime, timedelta, timezone

import pytest

from app.domain.notifications.entities import (
    DEFAULT_MAX_ATTEMPTS,
    JobStatus,
    Notification,
    NotificationJob,
    TargetUsers,
    retry_delay,
    target_group_for_service,
)
from app.domain.notifications.errors import InvalidNotificationError

NOW = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)


class TestNotification:
    def test_title_and_message_required(self):
        with pytest.raises(InvalidNotificationError):
            Notification(title="  ", message="body")

    def test_title_length_limit(self):
        with pytest.raises(InvalidNotificationError):
            Notification(title="x" * 101, message="body")

    def test_message_length_limit(self):
        with pytest.raises(InvalidNotificationError):
            Notification(title="t", message="x" * 501)

    def test_mark_as_read_is_idempotent(self):
        n = Notification(title="t", message="m")
        assert n.mark_as_read("Ana@Example.com")
        assert not n.mark_as_read("ana@example.com")
        assert n.total_reads == 1
        assert n.is_read_by("ANA@example.com")

    def test_dismiss_is_idempotent(self):
        n = Notification(title="t", message="m")
        assert n.dismiss("ana@example.com")
        assert not n.dismiss("ana@example.com")
        assert n.dismissed_by == ["ana@example.com"]

    def test_visibility_honours_expiry(self):
        n = Notification(title="t", message="m", expires_at=NOW + timedelta(hours=1))
        assert n.is_visible(NOW)
        assert not n.is_visible(NOW + timedelta(hours=2))

    def test_service_groups(self):
        assert target_group_for_service("SmartMoney") is TargetUsers.ALERTAS_SMART
        assert target_group_for_service("Unknown") is TargetUsers.ALERTAS_TRADER


class TestNotificationJob:
    def test_retry_delay_is_clamped(self):
        assert retry_delay(1) == timedelta(seconds=60)
        assert retry_delay(2) == timedelta(seconds=180)
        assert retry_delay(99) == timedelta(seconds=7200)

    def test_failed_attempt_requeues_with_backoff(self):
        job = NotificationJob(type="alert_notification", attempts=1, lock_id="abc")
        job.mark_failed("smtp down", now=NOW)
        assert job.status is JobStatus.PENDING
        assert job.next_attempt_at == NOW + timedelta(seconds=60)
        assert job.lock_id is None
        assert job.last_error == "smtp down"

    def test_gives_up_after_max_attempts(self):
        job = NotificationJob(type="alert_notification", attempts=DEFAULT_MAX_ATTEMPTS)
        job.mark_failed("boom", now=NOW)
        assert job.status is JobStatus.FAILED

    def test_mark_sent(self):
        job = NotificationJob(type="alert_notification", attempts=1, last_error="old")
        job.mark_sent(NOW)
        assert job.status is JobStatus.SENT
        assert job.sent_at == NOW
        assert job.last_error is None
