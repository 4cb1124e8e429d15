"""
Use case: Deliver queued notification jobs.

Input: maximum number of jobs to process
Output: ProcessJobsResult
Side effects: Claims jobs one at a time, runs the handler for each job
    type and records success or the retry schedule.
Failure cases: None raised; handler errors are stored on the job.
"""

import logging
from datetime import datetime, timezone
from typing import Any, Callable
from uuid import uuid4

from app.application.notifications.dtos import ProcessJobsResult
from app.domain.notifications.entities import JobStatus
from app.domain.notifications.errors import UnknownJobTypeError
from app.domain.notifications.ports import NotificationJobRepository

logger = logging.getLogger(__name__)

JobHandler = Callable[[dict[str, Any]], None]

MAX_JOBS_PER_RUN = 50


class ProcessNotificationJobsUseCase:
    """Claims due jobs and dispatches them to the handler for their type."""

    def __init__(
        self,
        job_repo: NotificationJobRepository,
        handlers: dict[str, JobHandler],
    ) -> None:
        self._job_repo = job_repo
        self._handlers = handlers

    def execute(self, limit: int = 10) -> ProcessJobsResult:
        """Process up to `limit` due jobs, one at a time.

        A failing handler schedules a retry with backoff until the job runs
        out of attempts, after which it is marked FAILED.

        Args:
            limit: Maximum number of jobs to claim, capped per run.

        Returns:
            ProcessJobsResult with the per-outcome counts and the error
            messages of this run.
        """
        limit = max(1, min(limit, MAX_JOBS_PER_RUN))
        lock_id = uuid4().hex
        processed = sent = retried = failed = 0
        errors: list[str] = []

        while processed < limit:
            now = datetime.now(timezone.utc)
            job = self._job_repo.claim_next(now, lock_id)
            if job is None:
                break
            processed += 1

            try:
                handler = self._handlers.get(job.type)
                if handler is None:
                    raise UnknownJobTypeError(job.type)
                handler(job.payload)
                job.mark_sent(datetime.now(timezone.utc))
                sent += 1
                logger.info("Job %s (%s) sent on attempt %d", job.id, job.type, job.attempts)
            except Exception as exc:
                job.mark_failed(str(exc) or type(exc).__name__, datetime.now(timezone.utc))
                errors.append(f"{job.id}: {exc}")
                if job.status is JobStatus.FAILED:
                    failed += 1
                    logger.error("Job %s (%s) failed permanently: %s", job.id, job.type, exc)
                else:
                    retried += 1
                    logger.warning(
                        "Job %s (%s) attempt %d failed, retry at %s: %s",
                        job.id,
                        job.type,
                        job.attempts,
                        job.next_attempt_at.isoformat(),
                        exc,
                    )
            self._job_repo.save(job)

        if processed:
            logger.info(
                "Notification jobs run: processed=%d sent=%d retried=%d failed=%d",
                processed,
                sent,
                retried,
                failed,
            )
        return ProcessJobsResult(
            processed=processed, sent=sent, retried=retried, failed=failed, errors=errors
        )
