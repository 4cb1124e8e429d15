"""
Adapter: User repository.

Implements UserRepository port.
Reads/writes the users table; subscriptions and used trials are JSON columns.
"""

import logging
from datetime import datetime
from typing import Any, Optional
from uuid import UUID

from sqlalchemy import text
from sqlalchemy.engine import Engine

from app.domain.accounts.entities import (
    ActiveSubscription,
    Service,
    SubscriptionType,
    User,
    UserRole,
)
from app.domain.accounts.ports import UserRepository
from app.infrastructure.database import (
    from_db_datetime,
    from_json,
    to_db_datetime,
    to_json,
)

logger = logging.getLogger(__name__)

_COLUMNS = """
    id, email, name, role, active_subscriptions, trials_used,
    subscription_expiry, last_payment_date, created_at
"""


def _subscription_to_dict(sub: ActiveSubscription) -> dict[str, Any]:
    return {
        "service": sub.service.value,
        "start_date": to_db_datetime(sub.start_date),
        "expiry_date": to_db_datetime(sub.expiry_date),
        "is_active": sub.is_active,
        "payment_id": sub.payment_id,
        "amount": sub.amount,
        "currency": sub.currency,
        "subscription_type": sub.subscription_type.value,
    }


def _subscription_from_dict(data: dict[str, Any]) -> ActiveSubscription:
    return ActiveSubscription(
        service=Service(data["service"]),
        start_date=from_db_datetime(data["start_date"]),
        expiry_date=from_db_datetime(data["expiry_date"]),
        is_active=bool(data.get("is_active", True)),
        payment_id=data.get("payment_id"),
        amount=float(data.get("amount") or 0),
        currency=data.get("currency") or "ARS",
        subscription_type=SubscriptionType(data.get("subscription_type", "full")),
    )


def _row_to_user(row: Any) -> User:
    return User(
        id=UUID(row[0]),
        email=row[1],
        name=row[2] or "",
        role=UserRole(row[3]),
        active_subscriptions=[
            _subscription_from_dict(item) for item in from_json(row[4], [])
        ],
        trials_used=from_json(row[5], {}),
        subscription_expiry=from_db_datetime(row[6]),
        last_payment_date=from_db_datetime(row[7]),
        created_at=from_db_datetime(row[8]),
    )


class UserRepositoryAdapter(UserRepository):
    """SQL adapter for the users table."""

    def __init__(self, engine: Engine) -> None:
        self._engine = engine

    def _fetch_one(self, where: str, params: dict[str, Any]) -> Optional[User]:
        query = text(f"SELECT {_COLUMNS} FROM users WHERE {where}")
        with self._engine.connect() as conn:
            row = conn.execute(query, params).fetchone()
        return _row_to_user(row) if row else None

    def get(self, user_id: UUID) -> Optional[User]:
        return self._fetch_one("id = :id", {"id": str(user_id)})

    def get_by_email(self, email: str) -> Optional[User]:
        return self._fetch_one("email = :email", {"email": email.strip().lower()})

    def get_by_token_hash(self, token_hash: str) -> Optional[User]:
        return self._fetch_one("api_token_hash = :hash", {"hash": token_hash})

    def save(self, user: User) -> None:
        """Upsert a user. The API token digest is managed separately."""
        query = text(
            """
            INSERT INTO users (
                id, email, name, role, active_subscriptions, trials_used,
                subscription_expiry, last_payment_date, created_at
            )
            VALUES (
                :id, :email, :name, :role, :active_subscriptions, :trials_used,
                :subscription_expiry, :last_payment_date, :created_at
            )
            ON CONFLICT (id)
            DO UPDATE SET
                email = EXCLUDED.email,
                name = EXCLUDED.name,
                role = EXCLUDED.role,
                active_subscriptions = EXCLUDED.active_subscriptions,
                trials_used = EXCLUDED.trials_used,
                subscription_expiry = EXCLUDED.subscription_expiry,
                last_payment_date = EXCLUDED.last_payment_date
            """
        )
        with self._engine.begin() as conn:
            conn.execute(
                query,
                {
                    "id": str(user.id),
                    "email": user.email,
                    "name": user.name,
                    "role": user.role.value,
                    "active_subscriptions": to_json(
                        [_subscription_to_dict(s) for s in user.active_subscriptions]
                    ),
                    "trials_used": to_json(user.trials_used),
                    "subscription_expiry": to_db_datetime(user.subscription_expiry),
                    "last_payment_date": to_db_datetime(user.last_payment_date),
                    "created_at": to_db_datetime(user.created_at),
                },
            )
        logger.debug("Saved user: id=%s role=%s", user.id, user.role.value)

    def set_api_token_hash(self, user_id: UUID, token_hash: str) -> None:
        """Attach an API token digest to an existing user."""
        query = text("UPDATE users SET api_token_hash = :hash WHERE id = :id")
        with self._engine.begin() as conn:
            conn.execute(query, {"hash": token_hash, "id": str(user_id)})

    def _fetch_many(self, where: str, params: dict[str, Any]) -> list[User]:
        query = text(f"SELECT {_COLUMNS} FROM users WHERE {where} ORDER BY created_at ASC")
        with self._engine.connect() as conn:
            rows = conn.execute(query, params).fetchall()
        return [_row_to_user(r) for r in rows]

    def list_subscribers(self, service: Service, now: datetime) -> list[User]:
        """Users with current access to `service` at `now`.

        The LIKE filter only narrows candidates; access is decided by the
        domain entity.
        """
        candidates = self._fetch_many(
            "active_subscriptions LIKE :pattern",
            {"pattern": f'%"service": "{service.value}"%'},
        )
        return [user for user in candidates if user.has_service_access(service, now)]

    def list_with_active_subscriptions(self) -> list[User]:
        candidates = self._fetch_many(
            "active_subscriptions LIKE :pattern", {"pattern": '%"is_active": true%'}
        )
        return [
            user
            for user in candidates
            if any(sub.is_active for sub in user.active_subscriptions)
        ]

    def list_with_subscriptions(self) -> list[User]:
        """Every user holding at least one subscription entry, lapsed or not."""
        users = self._fetch_many("active_subscriptions <> :empty", {"empty": "[]"})
        return [user for user in users if user.active_subscriptions]

    def list_admins(self) -> list[User]:
        return self._fetch_many("role = :role", {"role": UserRole.ADMIN.value})
