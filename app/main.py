"""
Application entry point.

Creates the FastAPI application and wires together:
- Routers (one per bounded context, plus health and cron)
- Error handlers (centralized domain-to-HTTP mapping)
- Security middleware (headers, rate limiting)
- Logging configuration
- Schema bootstrap and the background scheduler

No business logic belongs here.
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware

from app.core.config import settings
from app.infrastructure.database import ensure_schema, get_engine
from app.infrastructure.scheduler import PlatformScheduler, ScheduledTasks
from app.interfaces.accounts.dependencies import get_expire_subscriptions_use_case
from app.interfaces.accounts.router import router as accounts_router
from app.interfaces.alerts.dependencies import (
    get_check_range_breaks_use_case,
    get_market_close_use_case,
)
from app.interfaces.alerts.router import router as alerts_router
from app.interfaces.billing.router import router as billing_router
from app.interfaces.content.router import router as content_router
from app.interfaces.cron import router as cron_router
from app.interfaces.dependencies import (
    get_email_sender,
    get_notification_dispatcher,
    get_notification_queue,
    get_telegram_publisher,
)
from app.interfaces.health import router as health_router
from app.interfaces.notifications.dependencies import (
    get_process_jobs_use_case,
    get_subscription_reminders_use_case,
    get_training_reminders_use_case,
)
from app.interfaces.notifications.router import router as notifications_router
from app.shared.errors.handlers import register_error_handlers
from app.shared.logging import configure_logging
from app.shared.security.headers import SecurityHeadersMiddleware
from app.shared.security.rate_limiting import limiter, rate_limit_exceeded_handler

logger = logging.getLogger(__name__)

_scheduler: PlatformScheduler | None = None


def build_scheduled_tasks() -> ScheduledTasks:
    """Wire the periodic tasks outside of a request, from the same factories."""
    engine = get_engine()

    def process_notification_jobs():
        dispatcher = get_notification_dispatcher(
            engine, get_email_sender(), get_telegram_publisher()
        )
        use_case = get_process_jobs_use_case(engine, dispatcher)
        return use_case.execute(settings.notification_jobs_batch_size)

    def expire_subscriptions():
        return get_expire_subscriptions_use_case(engine).execute()

    def check_range_breaks():
        return get_check_range_breaks_use_case(engine).execute()

    def market_close():
        use_case = get_market_close_use_case(
            engine,
            get_email_sender(),
            get_telegram_publisher(),
            get_notification_queue(engine),
        )
        return use_case.execute()

    def subscription_reminders():
        return get_subscription_reminders_use_case(engine, get_email_sender()).execute()

    def training_reminders():
        return get_training_reminders_use_case(engine, get_email_sender()).execute()

    return ScheduledTasks(
        process_notification_jobs=process_notification_jobs,
        expire_subscriptions=expire_subscriptions,
        check_range_breaks=check_range_breaks,
        market_close=market_close,
        subscription_reminders=subscription_reminders,
        training_reminders=training_reminders,
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan: create the schema, start/stop the scheduler."""
    global _scheduler

    ensure_schema(get_engine())

    if settings.scheduler_enabled:
        _scheduler = PlatformScheduler(
            build_scheduled_tasks(),
            timezone=settings.scheduler_timezone,
            notification_jobs_interval_seconds=settings.notification_jobs_interval_seconds,
            range_check_interval_minutes=settings.range_check_interval_minutes,
            market_close_time=(settings.market_close_hour, settings.market_close_minute),
            subscription_reminders_hour=settings.subscription_reminders_hour,
            training_reminders_hour=settings.training_reminders_hour,
        )
        _scheduler.start()
    else:
        logger.info("Background scheduler disabled; rely on the /cron endpoints.")

    yield

    if _scheduler is not None:
        _scheduler.stop()
        _scheduler = None


def create_app() -> FastAPI:
    """Create and configure the FastAPI application.

    Registers routers, error handlers, and security middleware.
    This is the composition root of the application.

    Returns:
        A fully configured FastAPI application instance.
    """
    configure_logging(level=settings.log_level)

    app = FastAPI(
        title=settings.project_name,
        version=settings.version,
        docs_url="/docs" if settings.debug else None,
        redoc_url="/redoc" if settings.debug else None,
        lifespan=lifespan,
    )

    # --- Rate Limiting ---
    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, rate_limit_exceeded_handler)
    app.add_middleware(SlowAPIMiddleware)

    # --- Security Middleware ---
    app.add_middleware(SecurityHeadersMiddleware)

    # --- Error Handlers ---
    register_error_handlers(app)

    # --- Routers ---
    for router in (
        health_router,
        accounts_router,
        alerts_router,
        notifications_router,
        billing_router,
        content_router,
        cron_router,
    ):
        app.include_router(router, prefix="/api/v1")

    return app


app = create_app()
