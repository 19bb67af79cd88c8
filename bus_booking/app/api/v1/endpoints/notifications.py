"""
Notification API Endpoints.
"""

from typing import Literal, Optional

from fastapi import APIRouter, Depends, Path, Query, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from bus_booking.app.core.dependencies import get_current_user
from bus_booking.app.core.exceptions import ValidationError
from bus_booking.app.core.guards import require_admin
from bus_booking.app.core.responses import success_response
from bus_booking.app.db.session import get_db
from bus_booking.app.models.notification import NotificationChannel, NotificationType
from bus_booking.app.schemas.common import CountResponse, ModifiedCountResponse, PageMeta
from bus_booking.app.schemas.notification import (
    NotificationCreate,
    NotificationListResponse,
    NotificationResponse,
    RemindersScheduled,
)
from bus_booking.app.services.notification_service import NotificationService

router = APIRouter(prefix="/notifications", tags=["Notifications"])


def _enum_value(enum_cls, value: Optional[str], field: str):
    try:
        return enum_cls(value)
    except ValueError:
        valid = ", ".join(member.value for member in enum_cls)
        raise ValidationError(f"Invalid notification {field}", details=f"Valid {field}s: {valid}")


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_notification(
    request: Request,
    body: NotificationCreate,
    admin: dict = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    """Send a notification to a user (admin-only)."""
    if body.user_id is None or not body.title or not body.message or not body.type or not body.channel:
        raise ValidationError(
            "Missing required fields",
            details="userId, title, message, type, and channel are required",
        )
    notif_type = _enum_value(NotificationType, body.type, "type")
    channel = _enum_value(NotificationChannel, body.channel, "channel")

    notif = await NotificationService.send(
        db,
        user_id=body.user_id,
        title=body.title,
        message=body.message,
        type=notif_type,
        channel=channel,
        priority=body.priority,
        payload=body.payload,
        expires_at=body.expires_at,
    )
    return success_response(
        request, NotificationResponse.model_validate(notif), "Notification sent successfully", status.HTTP_201_CREATED
    )


@router.get("")
async def list_notifications(
    request: Request,
    read: Literal["all", "read", "unread"] = Query("all"),
    type: Optional[NotificationType] = Query(None),
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """List the caller's notifications, newest first."""
    items, total = await NotificationService.list_for_user(
        db, current_user["user_id"], read=read, type=type, page=page, page_size=limit
    )
    data = NotificationListResponse(
        notifications=[NotificationResponse.model_validate(n) for n in items],
        pagination=PageMeta.build(total, page, limit),
    )
    return success_response(request, data, "Notifications retrieved successfully")


@router.get("/unread-count")
async def unread_count(
    request: Request,
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    count = await NotificationService.get_unread_count(db, current_user["user_id"])
    return success_response(request, CountResponse(count=count), "Unread count retrieved successfully")


@router.put("/mark-all-read")
async def mark_all_notifications_read(
    request: Request,
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    count = await NotificationService.mark_all_read(db, current_user["user_id"])
    return success_response(
        request, ModifiedCountResponse(modified_count=count), "All notifications marked as read"
    )


@router.put("/{notification_id}/read")
async def mark_notification_read(
    request: Request,
    notification_id: int = Path(..., ge=1),
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    notif = await NotificationService.mark_read(db, notification_id, current_user["user_id"])
    return success_response(request, NotificationResponse.model_validate(notif), "Notification marked as read")


@router.delete("/{notification_id}")
async def delete_notification(
    request: Request,
    notification_id: int = Path(..., ge=1),
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    await NotificationService.delete(db, notification_id, current_user["user_id"])
    return success_response(request, None, "Notification deleted successfully")


@router.post("/schedule-reminders")
async def schedule_reminders(
    request: Request,
    admin: dict = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    """Create reminders for confirmed bookings whose journey is tomorrow (admin-only)."""
    count = await NotificationService.schedule_journey_reminders(db)
    return success_response(request, RemindersScheduled(scheduled=count), "Journey reminders scheduled")
