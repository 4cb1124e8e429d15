"""
Use cases: The in-app notification feed.

Users see the notifications of the groups they belong to; per-user read
and dismiss state lives on each notification. Admins can broadcast.
"""

import logging
from datetime import datetime, timezone
from typing import Optional
from uuid import UUID

from app.application.notifications.dtos import (
    BroadcastCommand,
    FeedItem,
    FeedQuery,
    FeedResult,
)
from app.domain.accounts.entities import User, UserRole
from app.domain.notifications.entities import (
    Notification,
    NotificationPriority,
    NotificationType,
    TargetUsers,
    target_group_for_service,
)
from app.domain.notifications.errors import (
    InvalidNotificationError,
    NotificationNotFoundError,
)
from app.domain.notifications.ports import NotificationRepository

logger = logging.getLogger(__name__)


def visible_groups(user: User, now: Optional[datetime] = None) -> list[TargetUsers]:
    """Target groups whose notifications the user may see."""
    if user.is_admin:
        return list(TargetUsers)

    groups = [TargetUsers.TODOS]
    if user.role is UserRole.SUSCRIPTOR:
        groups.append(TargetUsers.SUSCRIPTORES)
    for service in user.active_services(now):
        group = target_group_for_service(service.value)
        if group not in groups:
            groups.append(group)
    return groups


def _parse_enum(enum_cls, value: str, label: str):
    try:
        return enum_cls(value)
    except ValueError as exc:
        raise InvalidNotificationError(f"Invalid {label}: {value}") from exc


class GetNotificationFeedUseCase:
    """Paginated feed of notifications visible to a user."""

    def __init__(self, notification_repo: NotificationRepository) -> None:
        self._notification_repo = notification_repo

    def execute(self, user: User, query: FeedQuery) -> FeedResult:
        """Build one page of the user's feed.

        Dismissed notifications never show, and system notifications are
        admin-only. The unread count ignores the type, priority and unread
        filters.

        Args:
            user: The caller.
            query: Filters and paging.

        Returns:
            FeedResult with the page, the filtered total and the unread count.

        Raises:
            InvalidNotificationError: If a type or priority filter is unknown.
        """
        now = datetime.now(timezone.utc)
        type_filter = (
            _parse_enum(NotificationType, query.type, "type") if query.type else None
        )
        priority_filter = (
            _parse_enum(NotificationPriority, query.priority, "priority")
            if query.priority
            else None
        )

        candidates = self._notification_repo.list_for_groups(
            visible_groups(user, now), user.created_at, now
        )
        visible = [
            n
            for n in candidates
            if user.email not in n.dismissed_by
            and (user.is_admin or n.type is not NotificationType.SISTEMA)
        ]
        unread_count = sum(1 for n in visible if not n.is_read_by(user.email))

        if type_filter is not None:
            visible = [n for n in visible if n.type is type_filter]
        if priority_filter is not None:
            visible = [n for n in visible if n.priority is priority_filter]
        if query.unread_only:
            visible = [n for n in visible if not n.is_read_by(user.email)]

        limit = max(1, min(query.limit, 100))
        page = max(1, query.page)
        start = (page - 1) * limit
        items = [
            FeedItem(notification=n, is_read=n.is_read_by(user.email))
            for n in visible[start:start + limit]
        ]
        return FeedResult(
            items=items, total=len(visible), unread_count=unread_count, page=page, limit=limit
        )


def load_visible_notification(
    notification_repo: NotificationRepository, user: User, notification_id: UUID
) -> Notification:
    """Fetch a notification the user is allowed to see.

    Notifications outside the user's groups are reported as missing so
    their existence does not leak.

    Raises:
        NotificationNotFoundError: Unknown id or not visible to the user.
    """
    notification = notification_repo.get(notification_id)
    if notification is None:
        raise NotificationNotFoundError(str(notification_id))
    hidden = notification.target_users not in visible_groups(user) or (
        not user.is_admin and notification.type is NotificationType.SISTEMA
    )
    if hidden:
        logger.warning(
            "User %s tried to reach notification %s outside their groups",
            user.id,
            notification_id,
        )
        raise NotificationNotFoundError(str(notification_id))
    return notification


class MarkNotificationReadUseCase:
    """Record that the user read a notification (idempotent)."""

    def __init__(self, notification_repo: NotificationRepository) -> None:
        self._notification_repo = notification_repo

    def execute(self, user: User, notification_id: UUID) -> Notification:
        """Mark one notification as read by `user`.

        Args:
            user: The caller.
            notification_id: Notification to mark.

        Returns:
            The notification with its updated read state.

        Raises:
            NotificationNotFoundError: Unknown id or not visible to the user.
        """
        notification = load_visible_notification(self._notification_repo, user, notification_id)
        if notification.mark_as_read(user.email):
            self._notification_repo.save(notification)
        return notification


class DismissNotificationUseCase:
    """Hide a notification from the user's feed (idempotent)."""

    def __init__(self, notification_repo: NotificationRepository) -> None:
        self._notification_repo = notification_repo

    def execute(self, user: User, notification_id: UUID) -> Notification:
        notification = load_visible_notification(self._notification_repo, user, notification_id)
        if notification.dismiss(user.email):
            self._notification_repo.save(notification)
        return notification


class BroadcastNotificationUseCase:
    """Admin-authored notification for any target group."""

    def __init__(self, notification_repo: NotificationRepository) -> None:
        self._notification_repo = notification_repo

    def execute(self, command: BroadcastCommand) -> Notification:
        """Raises:
            InvalidNotificationError: Unknown type, priority or target group.
        """
        notification = Notification(
            title=command.title,
            message=command.message,
            type=_parse_enum(NotificationType, command.type, "type"),
            priority=_parse_enum(NotificationPriority, command.priority, "priority"),
            target_users=_parse_enum(TargetUsers, command.target_users, "target group"),
            created_by=command.created_by,
            icon=command.icon,
            action_url=command.action_url,
            action_text=command.action_text,
            expires_at=command.expires_at,
            metadata=dict(command.metadata),
        )
        self._notification_repo.save(notification)
        logger.info(
            "Broadcast notification %s to %s by %s",
            notification.id,
            notification.target_users.value,
            command.created_by,
        )
        return notification
