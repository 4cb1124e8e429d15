"""
Background scheduler for the periodic platform tasks.

Uses APScheduler's BackgroundScheduler:
- **Every N seconds**: process due notification jobs
- **Every N minutes**: dismiss range alerts whose price left the range
- **Daily (00:05)**: expire subscriptions and downgrade idle subscribers
- **Weekdays (17:35 by default)**: fix final prices at market close
- **Daily (09:00 / 10:00 by default)**: subscription and training reminders

The task callables are injected so the scheduler holds no wiring of its
own; every run is logged and a failing run never stops the schedule.
"""

import logging
import threading
import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Callable, Optional

from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.cron import CronTrigger
from apscheduler.triggers.interval import IntervalTrigger

logger = logging.getLogger(__name__)


@dataclass
class TaskRun:
    """Outcome of one scheduled task execution."""

    task_name: str
    started_at: str
    succeeded: bool
    duration_seconds: float = 0.0
    details: Any = None
    error: Optional[str] = None


@dataclass
class ScheduledTasks:
    process_notification_jobs: Callable[[], Any]
    expire_subscriptions: Callable[[], Any]
    check_range_breaks: Callable[[], Any]
    market_close: Callable[[], Any]
    subscription_reminders: Callable[[], Any]
    training_reminders: Callable[[], Any]
    extra: dict[str, Callable[[], Any]] = field(default_factory=dict)


class PlatformScheduler:
    """Runs the periodic tasks in a background thread pool.

    Usage:
        scheduler = PlatformScheduler(tasks, timezone="America/Argentina/Buenos_Aires")
        scheduler.start()
        scheduler.stop()
    """

    def __init__(
        self,
        tasks: ScheduledTasks,
        timezone: str = "UTC",
        notification_jobs_interval_seconds: int = 60,
        range_check_interval_minutes: int = 15,
        market_close_time: tuple[int, int] = (17, 35),
        subscription_reminders_hour: int = 9,
        training_reminders_hour: int = 10,
    ) -> None:
        self._tasks = tasks
        self._timezone = timezone
        self._jobs_interval = notification_jobs_interval_seconds
        self._range_interval = range_check_interval_minutes
        self._market_close_time = market_close_time
        self._subscription_reminders_hour = subscription_reminders_hour
        self._training_reminders_hour = training_reminders_hour
        self._scheduler: Optional[BackgroundScheduler] = None
        self._history: list[TaskRun] = []
        self._max_history = 100
        self._lock = threading.Lock()

    @property
    def is_running(self) -> bool:
        return self._scheduler is not None

    @property
    def history(self) -> list[TaskRun]:
        with self._lock:
            return list(self._history)

    def start(self) -> None:
        """Register every periodic job and start the background scheduler.

        Cron jobs fire in the configured timezone. Overlapping runs of the
        same job are coalesced into one.
        """
        if self._scheduler is not None:
            logger.warning("Scheduler already running.")
            return

        self._scheduler = BackgroundScheduler(
            timezone=self._timezone,
            job_defaults={"coalesce": True, "max_instances": 1},
        )
        self._scheduler.add_job(
            self.run_now,
            IntervalTrigger(seconds=self._jobs_interval),
            args=["process_notification_jobs"],
            id="process_notification_jobs",
            name="Deliver queued notifications",
        )
        self._scheduler.add_job(
            self.run_now,
            IntervalTrigger(minutes=self._range_interval),
            args=["check_range_breaks"],
            id="check_range_breaks",
            name="Dismiss broken range alerts",
        )
        self._scheduler.add_job(
            self.run_now,
            CronTrigger(hour=0, minute=5),
            args=["expire_subscriptions"],
            id="expire_subscriptions",
            name="Expire subscriptions",
        )
        close_hour, close_minute = self._market_close_time
        self._scheduler.add_job(
            self.run_now,
            CronTrigger(day_of_week="mon-fri", hour=close_hour, minute=close_minute),
            args=["market_close"],
            id="market_close",
            name="Fix final prices at market close",
        )
        self._scheduler.add_job(
            self.run_now,
            CronTrigger(hour=self._subscription_reminders_hour, minute=0),
            args=["subscription_reminders"],
            id="subscription_reminders",
            name="Subscription expiry reminders",
        )
        self._scheduler.add_job(
            self.run_now,
            CronTrigger(hour=self._training_reminders_hour, minute=0),
            args=["training_reminders"],
            id="training_reminders",
            name="Training class reminders",
        )
        self._scheduler.start()
        logger.info("Scheduler started with %d jobs.", len(self._scheduler.get_jobs()))

    def stop(self) -> None:
        """Shut down without waiting for running jobs."""
        if self._scheduler is not None:
            self._scheduler.shutdown(wait=False)
            self._scheduler = None
            logger.info("Scheduler stopped.")

    def run_now(self, task_name: str) -> TaskRun:
        """Execute a named task immediately (blocking)."""
        task_map = {
            "process_notification_jobs": self._tasks.process_notification_jobs,
            "expire_subscriptions": self._tasks.expire_subscriptions,
            "check_range_breaks": self._tasks.check_range_breaks,
            "market_close": self._tasks.market_close,
            "subscription_reminders": self._tasks.subscription_reminders,
            "training_reminders": self._tasks.training_reminders,
            **self._tasks.extra,
        }
        started = datetime.now(timezone.utc).isoformat()
        fn = task_map.get(task_name)
        if fn is None:
            return TaskRun(
                task_name=task_name,
                started_at=started,
                succeeded=False,
                error=f"Unknown task: {task_name}",
            )

        start = time.monotonic()
        try:
            details = fn()
            run = TaskRun(task_name, started, True, time.monotonic() - start, details)
            logger.info("Task %s finished in %.2fs", task_name, run.duration_seconds)
        except Exception as exc:
            logger.exception("Task %s failed", task_name)
            run = TaskRun(
                task_name, started, False, time.monotonic() - start, error=str(exc)
            )

        with self._lock:
            self._history.append(run)
            if len(self._history) > self._max_history:
                self._history = self._history[-self._max_history:]
        return run
