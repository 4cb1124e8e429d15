"""
Shared pytest fixtures.

Every test gets a fresh in-memory SQLite database and fake outbound
adapters (email, Telegram, payment processor) wired through
`app.dependency_overrides`.
"""

import os

os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("SCHEDULER_ENABLED", "false")
os.environ.setdefault("RATE_LIMIT_ENABLED", "false")
os.environ.setdefault("CRON_SECRET", "test-cron-secret")
os.environ.setdefault("TELEGRAM_ENABLED", "false")

from datetime import datetime, timedelta, timezone
from typing import Any, Optional
from unittest.mock import MagicMock

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.pool import StaticPool

from app.application.accounts.authenticate import hash_token
from app.application.notifications.dispatcher import NotificationDispatcher
from app.domain.accounts.entities import Service, User, UserRole
from app.infrastructure.accounts.user_repository import UserRepositoryAdapter
from app.infrastructure.database import ensure_schema
from app.infrastructure.notifications.notification_repository import (
    NotificationRepositoryAdapter,
)
from app.interfaces.dependencies import (
    get_db_engine,
    get_email_sender,
    get_notification_dispatcher,
    get_payment_gateway,
    get_telegram_publisher,
)
from app.main import app
from tests.fakes import FakeEmailSender, FakeTelegram, auth, make_gateway


# ══════════════════════════════════════════════════════════════════════
# Database
# ══════════════════════════════════════════════════════════════════════


@pytest.fixture
def engine() -> Engine:
    engine = create_engine(
        "sqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    ensure_schema(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def user_repo(engine: Engine) -> UserRepositoryAdapter:
    return UserRepositoryAdapter(engine)


@pytest.fixture
def make_user(user_repo: UserRepositoryAdapter):
    """Persist a user and give it an API token equal to `token`."""

    def _make(
        email: str,
        role: UserRole = UserRole.NORMAL,
        services: tuple[Service, ...] = (),
        token: Optional[str] = None,
        name: str = "",
    ) -> User:
        user = User(email=email, role=role, name=name or email.split("@")[0])
        now = datetime.now(timezone.utc)
        for service in services:
            user.renew_subscription(service, 100.0, "ARS", None, now=now - timedelta(days=1))
        user_repo.save(user)
        if token:
            user_repo.set_api_token_hash(user.id, hash_token(token))
        return user

    return _make


# ══════════════════════════════════════════════════════════════════════
# Outbound adapters
# ══════════════════════════════════════════════════════════════════════


@pytest.fixture
def email_sender() -> FakeEmailSender:
    return FakeEmailSender()


@pytest.fixture
def telegram() -> FakeTelegram:
    return FakeTelegram()


@pytest.fixture
def gateway() -> MagicMock:
    return make_gateway()


@pytest.fixture
def dispatcher(engine, user_repo, email_sender, telegram) -> NotificationDispatcher:
    return NotificationDispatcher(
        notification_repo=NotificationRepositoryAdapter(engine),
        user_repo=user_repo,
        email_sender=email_sender,
        telegram=telegram,
        telegram_channels={"TraderCall": "@tradercall", "SmartMoney": "@smartmoney"},
        base_url="https://alertas.example",
        sleep=lambda _seconds: None,
    )


# ══════════════════════════════════════════════════════════════════════
# API client
# ══════════════════════════════════════════════════════════════════════


@pytest.fixture
def client(engine, email_sender, telegram, gateway, dispatcher) -> TestClient:
    overrides: dict[Any, Any] = {
        get_db_engine: lambda: engine,
        get_email_sender: lambda: email_sender,
        get_telegram_publisher: lambda: telegram,
        get_payment_gateway: lambda: gateway,
        get_notification_dispatcher: lambda: dispatcher,
    }
    app.dependency_overrides.update(overrides)
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def admin(make_user) -> User:
    return make_user("admin@alertas.example", role=UserRole.ADMIN, token="admin-token")


@pytest.fixture
def subscriber(make_user) -> User:
    return make_user(
        "ana@example.com",
        role=UserRole.SUSCRIPTOR,
        services=(Service.TRADER_CALL,),
        token="ana-token",
        name="Ana",
    )


@pytest.fixture
def admin_headers(admin) -> dict[str, str]:
    return auth("admin-token")


@pytest.fixture
def subscriber_headers(subscriber) -> dict[str, str]:
    return auth("ana-token")
