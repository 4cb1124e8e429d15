"""
Adapter: Notification repository.

Implements NotificationRepository port.
Per-user read/dismiss state and metadata are JSON columns.
"""

import logging
from datetime import datetime
from typing import Any, Optional
from uuid import UUID

from sqlalchemy import bindparam, text
from sqlalchemy.engine import Engine

from app.domain.notifications.entities import (
    Notification,
    NotificationPriority,
    NotificationType,
    TargetUsers,
)
from app.domain.notifications.ports import NotificationRepository
from app.infrastructure.database import (
    from_db_datetime,
    from_json,
    to_db_datetime,
    to_json,
)

logger = logging.getLogger(__name__)

_FIELDS = [
    "id", "title", "message", "type", "priority", "target_users", "is_active",
    "created_by", "expires_at", "icon", "action_url", "action_text",
    "is_automatic", "related_alert_id", "email_sent", "read_by",
    "dismissed_by", "total_reads", "metadata", "created_at",
]
_COLUMNS = ", ".join(_FIELDS)


def _row_to_notification(row: Any) -> Notification:
    r = dict(zip(_FIELDS, row))
    return Notification(
        id=UUID(r["id"]),
        title=r["title"],
        message=r["message"],
        type=NotificationType(r["type"]),
        priority=NotificationPriority(r["priority"]),
        target_users=TargetUsers(r["target_users"]),
        is_active=bool(r["is_active"]),
        created_by=r["created_by"],
        expires_at=from_db_datetime(r["expires_at"]),
        icon=r["icon"] or "🔔",
        action_url=r["action_url"],
        action_text=r["action_text"],
        is_automatic=bool(r["is_automatic"]),
        related_alert_id=r["related_alert_id"],
        email_sent=bool(r["email_sent"]),
        read_by=from_json(r["read_by"], []),
        dismissed_by=from_json(r["dismissed_by"], []),
        total_reads=int(r["total_reads"] or 0),
        metadata=from_json(r["metadata"], {}),
        created_at=from_db_datetime(r["created_at"]),
    )


def _notification_to_params(notification: Notification) -> dict[str, Any]:
    return {
        "id": str(notification.id),
        "title": notification.title,
        "message": notification.message,
        "type": notification.type.value,
        "priority": notification.priority.value,
        "target_users": notification.target_users.value,
        "is_active": notification.is_active,
        "created_by": notification.created_by,
        "expires_at": to_db_datetime(notification.expires_at),
        "icon": notification.icon,
        "action_url": notification.action_url,
        "action_text": notification.action_text,
        "is_automatic": notification.is_automatic,
        "related_alert_id": notification.related_alert_id,
        "email_sent": notification.email_sent,
        "read_by": to_json(notification.read_by),
        "dismissed_by": to_json(notification.dismissed_by),
        "total_reads": notification.total_reads,
        "metadata": to_json(notification.metadata),
        "created_at": to_db_datetime(notification.created_at),
    }


class NotificationRepositoryAdapter(NotificationRepository):
    """SQL adapter for the notifications table."""

    def __init__(self, engine: Engine) -> None:
        self._engine = engine

    def get(self, notification_id: UUID) -> Optional[Notification]:
        query = text(f"SELECT {_COLUMNS} FROM notifications WHERE id = :id")
        with self._engine.connect() as conn:
            row = conn.execute(query, {"id": str(notification_id)}).fetchone()
        return _row_to_notification(row) if row else None

    def save(self, notification: Notification) -> None:
        updates = ", ".join(
            f"{name} = EXCLUDED.{name}" for name in _FIELDS if name not in ("id", "created_at")
        )
        query = text(
            f"""
            INSERT INTO notifications ({_COLUMNS})
            VALUES ({", ".join(":" + name for name in _FIELDS)})
            ON CONFLICT (id)
            DO UPDATE SET {updates}
            """
        )
        with self._engine.begin() as conn:
            conn.execute(query, _notification_to_params(notification))
        logger.debug(
            "Saved notification: id=%s target=%s",
            notification.id,
            notification.target_users.value,
        )

    def find_active_for_alert(
        self, alert_id: str, target_users: TargetUsers
    ) -> Optional[Notification]:
        query = text(
            f"""
            SELECT {_COLUMNS} FROM notifications
            WHERE related_alert_id = :alert_id
              AND target_users = :target
              AND is_active = :active
            ORDER BY created_at DESC
            LIMIT 1
            """
        )
        with self._engine.connect() as conn:
            row = conn.execute(
                query,
                {"alert_id": alert_id, "target": target_users.value, "active": True},
            ).fetchone()
        return _row_to_notification(row) if row else None

    def find_active_by_metadata(
        self, key: str, value: str, target_users: TargetUsers
    ) -> Optional[Notification]:
        """Newest active notification of the group whose metadata[key] equals value."""
        query = text(
            f"""
            SELECT {_COLUMNS} FROM notifications
            WHERE target_users = :target
              AND is_active = :active
              AND metadata LIKE :pattern
            ORDER BY created_at DESC
            """
        )
        with self._engine.connect() as conn:
            rows = conn.execute(
                query,
                {"target": target_users.value, "active": True, "pattern": f"%{value}%"},
            ).fetchall()
        for row in rows:
            notification = _row_to_notification(row)
            if str(notification.metadata.get(key)) == value:
                return notification
        return None

    def list_for_groups(
        self,
        groups: list[TargetUsers],
        created_after: Optional[datetime],
        now: datetime,
    ) -> list[Notification]:
        """Active, unexpired notifications addressed to any of `groups`.

        Args:
            groups: Target groups visible to the reader.
            created_after: When set, older notifications are left out.
            now: Reference instant for expiry.

        Returns:
            Notifications ordered by created_at descending.
        """
        if not groups:
            return []
        clauses = [
            "target_users IN :groups",
            "is_active = :active",
            "(expires_at IS NULL OR expires_at > :now)",
        ]
        params: dict[str, Any] = {
            "groups": [g.value for g in groups],
            "active": True,
            "now": to_db_datetime(now),
        }
        if created_after is not None:
            clauses.append("created_at >= :created_after")
            params["created_after"] = to_db_datetime(created_after)

        query = text(
            f"""
            SELECT {_COLUMNS} FROM notifications
            WHERE {" AND ".join(clauses)}
            ORDER BY created_at DESC
            """
        ).bindparams(bindparam("groups", expanding=True))
        with self._engine.connect() as conn:
            rows = conn.execute(query, params).fetchall()
        return [_row_to_notification(r) for r in rows]
