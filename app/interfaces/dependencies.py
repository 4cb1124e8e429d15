"""
Shared dependency injection.

Provides the database engine, the repository and outbound adapters, and
the caller identity (bearer API token, admin role, cron secret). Every
context's dependencies module builds its use cases from these, so tests
can swap any of them through `app.dependency_overrides`.
"""

import logging
import secrets
from typing import Optional

from fastapi import Depends, Query
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.engine import Engine

from app.application.accounts.authenticate import AuthenticateUserUseCase, ensure_admin
from app.application.notifications.dispatcher import NotificationDispatcher
from app.application.notifications.queue import NotificationJobQueue
from app.core.config import settings
from app.domain.accounts.entities import User
from app.domain.accounts.errors import AuthenticationError
from app.domain.billing.ports import PaymentGateway
from app.domain.notifications.ports import EmailSender, TelegramPublisher
from app.infrastructure.accounts.user_repository import UserRepositoryAdapter
from app.infrastructure.billing.mercadopago_gateway import MercadoPagoGateway
from app.infrastructure.database import get_engine
from app.infrastructure.notifications.job_repository import NotificationJobRepositoryAdapter
from app.infrastructure.notifications.notification_repository import (
    NotificationRepositoryAdapter,
)
from app.infrastructure.notifications.smtp_email_sender import SmtpEmailSender
from app.infrastructure.notifications.telegram_publisher import TelegramBotPublisher

logger = logging.getLogger(__name__)

bearer_scheme = HTTPBearer(auto_error=False)


def get_db_engine() -> Engine:
    """Return the process-wide SQLAlchemy engine."""
    return get_engine()


# ── Outbound adapters ─────────────────────────────────────────────


def get_email_sender() -> EmailSender:
    return SmtpEmailSender(
        host=settings.smtp_host,
        port=settings.smtp_port,
        from_address=settings.email_from,
        from_name=settings.email_from_name,
        username=settings.smtp_user,
        password=settings.smtp_password,
        use_tls=settings.smtp_use_tls,
    )


def get_telegram_publisher() -> TelegramPublisher:
    return TelegramBotPublisher(
        bot_token=settings.telegram_bot_token,
        enabled=settings.telegram_enabled,
    )


def get_payment_gateway() -> PaymentGateway:
    return MercadoPagoGateway(
        access_token=settings.mercadopago_access_token,
        api_url=settings.mercadopago_api_url,
        notification_url=f"{settings.base_url.rstrip('/')}/api/v1/webhooks/mercadopago",
    )


# ── Notifications plumbing shared by several contexts ─────────────


def get_notification_queue(
    engine: Engine = Depends(get_db_engine),
) -> NotificationJobQueue:
    """Port implementation used by use cases that announce events."""
    return NotificationJobQueue(job_repo=NotificationJobRepositoryAdapter(engine))


def get_notification_dispatcher(
    engine: Engine = Depends(get_db_engine),
    email_sender: EmailSender = Depends(get_email_sender),
    telegram: TelegramPublisher = Depends(get_telegram_publisher),
) -> NotificationDispatcher:
    return NotificationDispatcher(
        notification_repo=NotificationRepositoryAdapter(engine),
        user_repo=UserRepositoryAdapter(engine),
        email_sender=email_sender,
        telegram=telegram,
        telegram_channels=settings.telegram_channels(),
        base_url=settings.base_url,
        testing_mode=settings.email_testing_mode,
    )


# ── Caller identity ───────────────────────────────────────────────


def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    engine: Engine = Depends(get_db_engine),
) -> User:
    """Resolve the caller from `Authorization: Bearer <api token>`."""
    if credentials is None or credentials.scheme.lower() != "bearer":
        raise AuthenticationError()
    use_case = AuthenticateUserUseCase(user_repo=UserRepositoryAdapter(engine))
    return use_case.execute(credentials.credentials)


def require_admin(user: User = Depends(get_current_user)) -> User:
    """Only admins pass; everybody else gets a 403."""
    return ensure_admin(user)


def verify_cron_secret(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    secret: Optional[str] = Query(default=None, description="Cron secret"),
) -> None:
    """Accept the cron secret as a bearer token or a `secret` query param."""
    expected = settings.cron_secret
    if not expected:
        logger.error("Cron endpoint called but CRON_SECRET is not configured")
        raise AuthenticationError("Cron secret not configured")

    provided = credentials.credentials if credentials is not None else secret
    if not provided or not secrets.compare_digest(provided, expected):
        logger.warning("Rejected cron call with an invalid secret")
        raise AuthenticationError("Invalid cron secret")
