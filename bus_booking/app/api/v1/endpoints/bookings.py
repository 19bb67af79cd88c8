"""
Booking API endpoints.

Seats are not locked or reserved: two bookings may name the same seat.
Notification writes after create/cancel never fail the booking itself.
"""

import secrets
from collections import Counter
from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, Path, Query, Request, status
from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from bus_booking.app.core.dependencies import get_client_ip, get_current_user
from bus_booking.app.core.exceptions import ResourceNotFoundError, ValidationError
from bus_booking.app.core.guards import ownership_guard
from bus_booking.app.core.logging import get_logger
from bus_booking.app.core.responses import success_response
from bus_booking.app.core.time_utils import epoch_millis, utcnow
from bus_booking.app.db.session import get_db
from bus_booking.app.domain.seat_layout import price_for_seats
from bus_booking.app.domain.validation import validate_booking
from bus_booking.app.models.booking import Booking
from bus_booking.app.models.bus import Bus
from bus_booking.app.models.enums import BookingStatus, PaymentStatus
from bus_booking.app.models.route import Route
from bus_booking.app.schemas.booking import BookingCreate, BookingListResponse, BookingResponse, BookingUpdate
from bus_booking.app.schemas.common import PageMeta
from bus_booking.app.services.audit import AuditAction, log_actor_event
from bus_booking.app.services.notification_service import NotificationService

logger = get_logger(__name__)

router = APIRouter(prefix="/bookings", tags=["Bookings"])


def generate_booking_reference() -> str:
    """BK + epoch milliseconds + four random digits."""
    return f"BK{epoch_millis()}{secrets.randbelow(10000):04d}"


async def get_booking_or_404(db: AsyncSession, booking_id: int) -> Booking:
    booking = await db.get(Booking, booking_id)
    if not booking:
        raise ResourceNotFoundError("Booking", booking_id)
    return booking


async def _notify(db: AsyncSession, booking: Booking, event: str, extra: Optional[dict] = None) -> None:
    try:
        await NotificationService.create_booking_notification(db, booking, event, extra)
    except (SQLAlchemyError, ValueError) as e:
        await db.rollback()
        logger.error(f"Error creating {event} notification for booking {booking.id}: {e}")


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_booking(
    request: Request,
    body: BookingCreate,
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """
    Book seats on a bus for a route.

    Passenger ``i`` is assigned ``seats[i]``. The total is
    ``len(seats) * pricePerSeat`` when given, else the sum of the seat prices.
    """
    validate_booking(body.model_dump()).raise_for_errors()

    bus = await db.get(Bus, body.bus_id)
    if not bus:
        raise ResourceNotFoundError("Bus", body.bus_id)
    route = await db.get(Route, body.route_id)
    if not route:
        raise ResourceNotFoundError("Route", body.route_id)

    duplicates = sorted(seat for seat, count in Counter(body.seats).items() if count > 1)
    if duplicates:
        raise ValidationError("Duplicate seats in booking", details=f"Repeated seats: {', '.join(duplicates)}")

    layout_numbers = {seat["number"] for seat in bus.seat_layout}
    unknown = [seat for seat in body.seats if seat not in layout_numbers]
    if unknown:
        raise ValidationError("Invalid seat selection", details=f"Seats not on this bus: {', '.join(unknown)}")

    if body.price_per_seat is not None:
        total_amount = round(len(body.seats) * body.price_per_seat, 2)
    else:
        total_amount = price_for_seats(bus.seat_layout, body.seats)

    passengers = [
        {
            "name": passenger.name.strip(),
            "age": passenger.age,
            "gender": passenger.gender.lower(),
            "seatNumber": body.seats[index],
        }
        for index, passenger in enumerate(body.passengers)
    ]

    booking = Booking(
        user_id=current_user["user_id"],
        bus_id=bus.id,
        route_id=route.id,
        seats=body.seats,
        passengers=passengers,
        total_amount=total_amount,
        journey_date=body.journey_date or utcnow(),
        payment_method=body.payment_method,
        booking_reference=generate_booking_reference(),
    )
    db.add(booking)
    await db.commit()
    await db.refresh(booking)
    logger.info(f"Booking {booking.booking_reference} created for user {booking.user_id}")

    await _notify(db, booking, "confirmed", {"totalAmount": booking.total_amount})
    await log_actor_event(
        db, AuditAction.BOOKING_CREATED, current_user,
        metadata={"booking_id": booking.id, "reference": booking.booking_reference},
        ip_address=get_client_ip(request),
    )

    await db.refresh(booking)
    return success_response(request, BookingResponse.model_validate(booking), "Booking created successfully", status.HTTP_201_CREATED)


@router.get("")
async def list_bookings(
    request: Request,
    bus_id: Optional[int] = Query(None, alias="busId"),
    booking_status: Optional[BookingStatus] = Query(None, alias="status"),
    start_date: Optional[datetime] = Query(None, alias="startDate"),
    end_date: Optional[datetime] = Query(None, alias="endDate"),
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Caller's bookings (admins see all), newest first. Dates filter on booking date."""
    conditions = []
    owner_filter = ownership_guard.filter_by_ownership(current_user)
    if owner_filter is not None:
        conditions.append(Booking.user_id == owner_filter)
    if bus_id is not None:
        conditions.append(Booking.bus_id == bus_id)
    if booking_status is not None:
        conditions.append(Booking.status == booking_status)
    if start_date is not None:
        conditions.append(Booking.booking_date >= start_date)
    if end_date is not None:
        conditions.append(Booking.booking_date <= end_date)

    total = (await db.execute(select(func.count(Booking.id)).where(*conditions))).scalar_one()
    query = (
        select(Booking)
        .where(*conditions)
        .order_by(Booking.created_at.desc(), Booking.id.desc())
        .offset((page - 1) * limit)
        .limit(limit)
    )
    bookings = (await db.execute(query)).scalars().all()

    data = BookingListResponse(
        bookings=[BookingResponse.model_validate(b) for b in bookings],
        pagination=PageMeta.build(total, page, limit),
    )
    return success_response(request, data, "Bookings retrieved successfully")


@router.get("/{booking_id}")
async def get_booking(
    request: Request,
    booking_id: int = Path(..., ge=1),
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    booking = await get_booking_or_404(db, booking_id)
    ownership_guard.enforce(booking.user_id, current_user, "booking")
    return success_response(request, BookingResponse.model_validate(booking), "Booking retrieved successfully")


@router.put("/{booking_id}")
async def update_booking(
    request: Request,
    body: BookingUpdate,
    booking_id: int = Path(..., ge=1),
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Change the journey date and/or payment method."""
    booking = await get_booking_or_404(db, booking_id)
    ownership_guard.enforce(booking.user_id, current_user, "booking")

    if booking.status == BookingStatus.CANCELLED:
        raise ValidationError("Cannot update a cancelled booking", error_code="BOOKING_CANCELLED")

    changes = body.model_dump(exclude_unset=True, exclude_none=True)
    if "journey_date" in changes:
        booking.journey_date = changes["journey_date"]
    if "payment_method" in changes:
        booking.payment_method = changes["payment_method"]

    await db.commit()
    await db.refresh(booking)
    return success_response(request, BookingResponse.model_validate(booking), "Booking updated successfully")


@router.delete("/{booking_id}")
async def cancel_booking(
    request: Request,
    booking_id: int = Path(..., ge=1),
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Cancel a booking; the payment is marked refunded."""
    booking = await get_booking_or_404(db, booking_id)
    ownership_guard.enforce(booking.user_id, current_user, "booking")

    if booking.status == BookingStatus.CANCELLED:
        raise ValidationError("Booking is already cancelled", error_code="BOOKING_ALREADY_CANCELLED")

    booking.status = BookingStatus.CANCELLED
    booking.payment_status = PaymentStatus.REFUNDED
    await db.commit()
    await db.refresh(booking)

    await _notify(db, booking, "cancelled")
    await log_actor_event(
        db, AuditAction.BOOKING_CANCELLED, current_user,
        target_user_id=booking.user_id,
        metadata={"booking_id": booking.id, "reference": booking.booking_reference},
        ip_address=get_client_ip(request),
    )

    await db.refresh(booking)
    return success_response(request, BookingResponse.model_validate(booking), "Booking cancelled successfully")
