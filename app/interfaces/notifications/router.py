"""
FastAPI router for the notifications bounded context.

All routes delegate to use cases. No business logic here.
"""

from uuid import UUID

from fastapi import APIRouter, Depends, Query

from app.application.notifications.dtos import BroadcastCommand, FeedQuery
from app.application.notifications.feed import (
    BroadcastNotificationUseCase,
    DismissNotificationUseCase,
    GetNotificationFeedUseCase,
    MarkNotificationReadUseCase,
)
from app.domain.accounts.entities import User
from app.domain.notifications.entities import Notification
from app.interfaces.dependencies import get_current_user, require_admin
from app.interfaces.notifications.dependencies import (
    get_broadcast_use_case,
    get_dismiss_use_case,
    get_feed_use_case,
    get_mark_read_use_case,
)
from app.interfaces.notifications.schemas import (
    BroadcastRequest,
    FeedResponse,
    NotificationItem,
)
from app.interfaces.schemas import ErrorResponse, MessageResponse

router = APIRouter(tags=["notifications"])


def to_notification_item(notification: Notification, is_read: bool) -> NotificationItem:
    return NotificationItem(
        id=notification.id,
        title=notification.title,
        message=notification.message,
        type=notification.type.value,
        priority=notification.priority.value,
        target_users=notification.target_users.value,
        icon=notification.icon,
        action_url=notification.action_url,
        action_text=notification.action_text,
        is_automatic=notification.is_automatic,
        related_alert_id=notification.related_alert_id,
        expires_at=notification.expires_at,
        created_at=notification.created_at,
        is_read=is_read,
    )


@router.get(
    "/notifications",
    response_model=FeedResponse,
    responses={400: {"model": ErrorResponse}, 401: {"model": ErrorResponse}},
    summary="Notification feed",
    description=(
        "Notifications of the groups the caller belongs to, newest first. "
        "Dismissed notifications are hidden."
    ),
)
def get_feed(
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=20, ge=1, le=100),
    type: str | None = Query(default=None, description="Notification type"),
    priority: str | None = Query(default=None, description="alta, media or baja"),
    unread_only: bool = Query(default=False),
    user: User = Depends(get_current_user),
    use_case: GetNotificationFeedUseCase = Depends(get_feed_use_case),
) -> FeedResponse:
    """Return the caller's notification feed."""
    result = use_case.execute(
        user,
        FeedQuery(
            page=page, limit=limit, type=type, priority=priority, unread_only=unread_only
        ),
    )
    return FeedResponse(
        notifications=[
            to_notification_item(item.notification, item.is_read) for item in result.items
        ],
        total=result.total,
        unread_count=result.unread_count,
        page=result.page,
        limit=result.limit,
    )


@router.post(
    "/notifications/{notification_id}/read",
    response_model=MessageResponse,
    responses={401: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
    summary="Mark as read",
)
def mark_read(
    notification_id: UUID,
    user: User = Depends(get_current_user),
    use_case: MarkNotificationReadUseCase = Depends(get_mark_read_use_case),
) -> MessageResponse:
    use_case.execute(user, notification_id)
    return MessageResponse(message="Notification marked as read")


@router.post(
    "/notifications/{notification_id}/dismiss",
    response_model=MessageResponse,
    responses={401: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
    summary="Dismiss",
)
def dismiss(
    notification_id: UUID,
    user: User = Depends(get_current_user),
    use_case: DismissNotificationUseCase = Depends(get_dismiss_use_case),
) -> MessageResponse:
    use_case.execute(user, notification_id)
    return MessageResponse(message="Notification dismissed")


@router.post(
    "/admin/notifications",
    response_model=NotificationItem,
    status_code=201,
    responses={
        400: {"model": ErrorResponse},
        401: {"model": ErrorResponse},
        403: {"model": ErrorResponse},
    },
    summary="Broadcast a notification",
)
def broadcast(
    body: BroadcastRequest,
    admin: User = Depends(require_admin),
    use_case: BroadcastNotificationUseCase = Depends(get_broadcast_use_case),
) -> NotificationItem:
    """Create an admin notification for a target group."""
    notification = use_case.execute(
        BroadcastCommand(created_by=admin.email, **body.model_dump())
    )
    return to_notification_item(notification, is_read=False)
