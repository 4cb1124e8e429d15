"""
Adapter: Notification job queue.

Implements NotificationJobRepository port on the notification_jobs table.
A claim selects the oldest due PENDING job and flips it to PROCESSING with
a conditional UPDATE; a claim only succeeds when that UPDATE touched the
row, so two workers never hold the same job.
"""

import logging
from datetime import datetime
from typing import Any, Optional
from uuid import UUID

from sqlalchemy import text
from sqlalchemy.engine import Engine

from app.domain.notifications.entities import JobStatus, NotificationJob
from app.domain.notifications.ports import NotificationJobRepository
from app.infrastructure.database import (
    from_db_datetime,
    from_json,
    to_db_datetime,
    to_json,
)

logger = logging.getLogger(__name__)

_COLUMNS = """
    id, type, status, payload, attempts, max_attempts, next_attempt_at,
    locked_at, lock_id, last_error, sent_at, created_at
"""

CLAIM_RETRIES = 3


def _row_to_job(row: Any) -> NotificationJob:
    return NotificationJob(
        id=UUID(row[0]),
        type=row[1],
        status=JobStatus(row[2]),
        payload=from_json(row[3], {}),
        attempts=int(row[4]),
        max_attempts=int(row[5]),
        next_attempt_at=from_db_datetime(row[6]),
        locked_at=from_db_datetime(row[7]),
        lock_id=row[8],
        last_error=row[9],
        sent_at=from_db_datetime(row[10]),
        created_at=from_db_datetime(row[11]),
    )


class NotificationJobRepositoryAdapter(NotificationJobRepository):
    """SQL adapter for the notification_jobs table."""

    def __init__(self, engine: Engine) -> None:
        self._engine = engine

    def enqueue(self, job: NotificationJob) -> None:
        query = text(
            """
            INSERT INTO notification_jobs (
                id, type, status, payload, attempts, max_attempts,
                next_attempt_at, created_at
            )
            VALUES (
                :id, :type, :status, :payload, :attempts, :max_attempts,
                :next_attempt_at, :created_at
            )
            """
        )
        with self._engine.begin() as conn:
            conn.execute(
                query,
                {
                    "id": str(job.id),
                    "type": job.type,
                    "status": job.status.value,
                    "payload": to_json(job.payload),
                    "attempts": job.attempts,
                    "max_attempts": job.max_attempts,
                    "next_attempt_at": to_db_datetime(job.next_attempt_at),
                    "created_at": to_db_datetime(job.created_at),
                },
            )
        logger.info("Enqueued notification job: id=%s type=%s", job.id, job.type)

    def claim_next(self, now: datetime, lock_id: str) -> Optional[NotificationJob]:
        """Atomically move the oldest due PENDING job to PROCESSING.

        Args:
            now: Jobs with next_attempt_at at or before this instant are due.
            lock_id: Identifier of the claiming run, stored on the job.

        Returns:
            The claimed job with its attempt counter incremented, or None when
            nothing is due or every race for a row was lost.
        """
        select_due = text(
            """
            SELECT id FROM notification_jobs
            WHERE status = :pending AND next_attempt_at <= :now
            ORDER BY next_attempt_at ASC, created_at ASC
            LIMIT 1
            """
        )
        claim = text(
            """
            UPDATE notification_jobs
            SET status = :processing,
                attempts = attempts + 1,
                locked_at = :now,
                lock_id = :lock_id
            WHERE id = :id AND status = :pending
            """
        )
        fetch = text(f"SELECT {_COLUMNS} FROM notification_jobs WHERE id = :id")
        db_now = to_db_datetime(now)

        # Another worker may win the race for the selected row; try the next one.
        for _ in range(CLAIM_RETRIES):
            with self._engine.begin() as conn:
                job_id = conn.execute(
                    select_due, {"pending": JobStatus.PENDING.value, "now": db_now}
                ).scalar()
                if job_id is None:
                    return None
                result = conn.execute(
                    claim,
                    {
                        "processing": JobStatus.PROCESSING.value,
                        "pending": JobStatus.PENDING.value,
                        "now": db_now,
                        "lock_id": lock_id,
                        "id": job_id,
                    },
                )
                if result.rowcount == 1:
                    row = conn.execute(fetch, {"id": job_id}).fetchone()
                    return _row_to_job(row)
        return None

    def save(self, job: NotificationJob) -> None:
        query = text(
            """
            UPDATE notification_jobs
            SET status = :status,
                attempts = :attempts,
                next_attempt_at = :next_attempt_at,
                locked_at = :locked_at,
                lock_id = :lock_id,
                last_error = :last_error,
                sent_at = :sent_at
            WHERE id = :id
            """
        )
        with self._engine.begin() as conn:
            conn.execute(
                query,
                {
                    "id": str(job.id),
                    "status": job.status.value,
                    "attempts": job.attempts,
                    "next_attempt_at": to_db_datetime(job.next_attempt_at),
                    "locked_at": to_db_datetime(job.locked_at),
                    "lock_id": job.lock_id,
                    "last_error": job.last_error,
                    "sent_at": to_db_datetime(job.sent_at),
                },
            )

    def count_by_status(self) -> dict[str, int]:
        """Job counts keyed by status value, zero-filled."""
        query = text("SELECT status, COUNT(*) FROM notification_jobs GROUP BY status")
        with self._engine.connect() as conn:
            rows = conn.execute(query).fetchall()
        counts = {status.value: 0 for status in JobStatus}
        counts.update({row[0]: int(row[1]) for row in rows})
        return counts
