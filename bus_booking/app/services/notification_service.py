"""
Notification Service.

Handles creation and state management of notifications. Delivery over
SMS/EMAIL/PUSH is a stub: the notification is logged and flagged sent.
"""

from datetime import datetime, timedelta
from typing import Optional, Dict, Any, List, Tuple

from sqlalchemy import select, update, delete, func
from sqlalchemy.ext.asyncio import AsyncSession

from bus_booking.app.core.exceptions import ResourceNotFoundError, ValidationError
from bus_booking.app.core.logging import get_logger
from bus_booking.app.core.time_utils import as_utc, utcnow
from bus_booking.app.models.booking import Booking
from bus_booking.app.models.bus import Bus
from bus_booking.app.models.enums import BookingStatus
from bus_booking.app.models.notification import (
    Notification,
    NotificationChannel,
    NotificationPriority,
    NotificationType,
)
from bus_booking.app.models.route import Route
from bus_booking.app.models.user import User

logger = get_logger(__name__)


def _journey_day(journey_date: datetime) -> str:
    return as_utc(journey_date).strftime("%a %b %d %Y")


def render_booking_template(event: str, booking: Booking, bus: Bus, route: Route) -> Dict[str, Any]:
    """Title, message and type for a booking event (confirmed, cancelled, reminder)."""
    templates = {
        "confirmed": {
            "title": "Booking Confirmed!",
            "message": (
                f"Your booking for {bus.bus_number} from {route.source} to {route.destination} "
                f"on {_journey_day(booking.journey_date)} has been confirmed."
            ),
            "type": NotificationType.BOOKING_CONFIRMED,
        },
        "cancelled": {
            "title": "Booking Cancelled",
            "message": (
                f"Your booking for {bus.bus_number} from {route.source} to {route.destination} "
                f"on {_journey_day(booking.journey_date)} has been cancelled."
            ),
            "type": NotificationType.BOOKING_CANCELLED,
        },
        "reminder": {
            "title": "Journey Reminder",
            "message": (
                f"Your journey from {route.source} to {route.destination} is tomorrow at "
                f"{as_utc(booking.journey_date).strftime('%H:%M')}."
            ),
            "type": NotificationType.JOURNEY_REMINDER,
        },
    }
    if event not in templates:
        raise ValueError(f"Invalid booking notification event: {event}")
    return templates[event]


class NotificationService:

    @staticmethod
    async def send(
        db: AsyncSession,
        user_id: int,
        title: str,
        message: str,
        type: NotificationType,
        channel: NotificationChannel,
        priority: NotificationPriority = NotificationPriority.MEDIUM,
        payload: Optional[Dict[str, Any]] = None,
        expires_at: Optional[datetime] = None,
    ) -> Notification:
        """Create a notification for ``user_id`` and dispatch it."""
        result = await db.execute(select(User).where(User.id == user_id))
        user = result.scalar_one_or_none()
        if not user:
            raise ResourceNotFoundError("User", user_id)

        notif = Notification(
            user_id=user_id,
            recipient={"phone": user.phone, "email": user.email},
            title=title,
            message=message,
            type=type,
            channel=channel,
            priority=priority,
            payload=payload or {},
            expires_at=expires_at,
        )
        db.add(notif)
        await db.flush()

        NotificationService._dispatch(notif)
        await db.commit()
        await db.refresh(notif)
        return notif

    @staticmethod
    def _dispatch(notif: Notification) -> None:
        logger.info(
            f"Delivering {notif.type.value} notification to user {notif.user_id} via {notif.channel.value}: {notif.title}"
        )
        notif.sent = True
        notif.sent_at = utcnow()

    @staticmethod
    async def create_booking_notification(
        db: AsyncSession,
        booking: Booking,
        event: str,
        extra: Optional[Dict[str, Any]] = None,
    ) -> Notification:
        """In-app HIGH priority notification for a booking event."""
        bus = await db.get(Bus, booking.bus_id)
        route = await db.get(Route, booking.route_id)
        if bus is None or route is None:
            raise ValueError(f"Booking {booking.id} references a missing bus or route")

        template = render_booking_template(event, booking, bus, route)
        notif = Notification(
            user_id=booking.user_id,
            title=template["title"],
            message=template["message"],
            type=template["type"],
            channel=NotificationChannel.IN_APP,
            priority=NotificationPriority.HIGH,
            payload={
                "bookingId": booking.id,
                "busId": booking.bus_id,
                "routeId": booking.route_id,
                **(extra or {}),
            },
        )
        db.add(notif)
        await db.commit()
        await db.refresh(notif)
        return notif

    @staticmethod
    async def schedule_journey_reminders(db: AsyncSession, now: Optional[datetime] = None) -> int:
        """Reminder for every confirmed booking whose journey is tomorrow (UTC)."""
        now = now or utcnow()
        tomorrow = (now + timedelta(days=1)).replace(hour=0, minute=0, second=0, microsecond=0)
        day_after = tomorrow + timedelta(days=1)

        result = await db.execute(
            select(Booking).where(
                Booking.status == BookingStatus.CONFIRMED,
                Booking.journey_date >= tomorrow,
                Booking.journey_date < day_after,
            )
        )
        bookings = result.scalars().all()
        for booking in bookings:
            await NotificationService.create_booking_notification(db, booking, "reminder")
        return len(bookings)

    @staticmethod
    async def list_for_user(
        db: AsyncSession,
        user_id: int,
        read: str = "all",
        type: Optional[NotificationType] = None,
        page: int = 1,
        page_size: int = 10,
    ) -> Tuple[List[Notification], int]:
        if read not in ("all", "read", "unread"):
            raise ValidationError("Invalid read filter", details="read must be one of: all, read, unread")

        conditions = [Notification.user_id == user_id]
        if read == "unread":
            conditions.append(Notification.read == False)  # noqa: E712
        elif read == "read":
            conditions.append(Notification.read == True)  # noqa: E712
        if type:
            conditions.append(Notification.type == type)

        total = (await db.execute(select(func.count(Notification.id)).where(*conditions))).scalar_one()
        result = await db.execute(
            select(Notification)
            .where(*conditions)
            .order_by(Notification.created_at.desc(), Notification.id.desc())
            .offset((page - 1) * page_size)
            .limit(page_size)
        )
        return list(result.scalars().all()), total

    @staticmethod
    async def get_unread_count(db: AsyncSession, user_id: int) -> int:
        stmt = select(func.count(Notification.id)).where(
            Notification.user_id == user_id,
            Notification.read == False  # noqa: E712
        )
        result = await db.execute(stmt)
        return result.scalar_one()

    @staticmethod
    async def mark_read(db: AsyncSession, notification_id: int, user_id: int) -> Notification:
        """Mark a notification as read."""
        result = await db.execute(
            select(Notification).where(
                Notification.id == notification_id,
                Notification.user_id == user_id,
            )
        )
        notif = result.scalar_one_or_none()
        if not notif:
            raise ResourceNotFoundError("Notification", notification_id)
        notif.read = True
        await db.commit()
        await db.refresh(notif)
        return notif

    @staticmethod
    async def mark_all_read(db: AsyncSession, user_id: int) -> int:
        """Mark all notifications for user as read."""
        stmt = update(Notification).where(
            Notification.user_id == user_id,
            Notification.read == False  # noqa: E712
        ).values(read=True)
        result = await db.execute(stmt)
        await db.commit()
        return result.rowcount

    @staticmethod
    async def delete(db: AsyncSession, notification_id: int, user_id: int) -> None:
        stmt = delete(Notification).where(
            Notification.id == notification_id,
            Notification.user_id == user_id,
        )
        result = await db.execute(stmt)
        if result.rowcount == 0:
            raise ResourceNotFoundError("Notification", notification_id)
        await db.commit()
