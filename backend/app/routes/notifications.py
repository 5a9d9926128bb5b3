"""Notification routes."""

from fastapi import APIRouter, Query, Request, status

from ezclear.marketplace.errors import NotFoundError, NotOwnerError
from ezclear.marketplace.models import Notification

from ..auth import CurrentUser
from ..database import Notifications
from ..logging_config import get_logger
from ..models import NotificationCreate, NotificationResponse, NotificationUpdate
from ..rate_limit import limiter

logger = get_logger("notifications")
router = APIRouter(prefix="/api/notifications", tags=["notifications"])


@router.get("", response_model=list[NotificationResponse])
@limiter.limit("60/minute")
async def list_notifications(
    request: Request,
    auth: CurrentUser,
    sink: Notifications,
    user_id: str | None = Query(None),
    unread_only: bool = Query(False),
    limit: int = Query(50, ge=1, le=200),
):
    """The caller's notifications, newest first."""
    logger.info(f"GET /notifications | user={auth.user_id} | unread_only={unread_only}")
    if user_id is not None and user_id != auth.user_id:
        raise NotOwnerError("You can only read your own notifications")
    notifications = sink.list_for_user(auth.user_id, unread_only=unread_only, limit=limit)
    return [NotificationResponse.from_notification(n) for n in notifications]


@router.post("", response_model=NotificationResponse, status_code=status.HTTP_201_CREATED)
@limiter.limit("20/minute")
async def create_notification(
    request: Request,
    body: NotificationCreate,
    auth: CurrentUser,
    sink: Notifications,
):
    """
    Create a notification for a user.

    Lifecycle notifications are emitted by the lifecycle operations
    themselves; this endpoint is for ad-hoc ones.
    """
    logger.info(f"POST /notifications | sender={auth.user_id} | recipient={body.user_id} | type={body.type}")
    created = sink.emit(
        Notification(
            user_id=body.user_id,
            type=body.type,
            title=body.title,
            description=body.description,
            data=body.data,
        )
    )
    return NotificationResponse.from_notification(created)


@router.patch("", response_model=NotificationResponse)
@limiter.limit("60/minute")
async def mark_notification_read(
    request: Request,
    body: NotificationUpdate,
    auth: CurrentUser,
    sink: Notifications,
):
    """Set the read flag on one of the caller's notifications."""
    logger.info(f"PATCH /notifications | user={auth.user_id} | id={body.id} | read={body.read}")
    updated = sink.mark_read(body.id, auth.user_id, read=body.read)
    if updated is None:
        raise NotFoundError(f"Notification {body.id} not found")
    return NotificationResponse.from_notification(updated)
