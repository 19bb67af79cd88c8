"""
Bus management API endpoints.

Agents manage their own buses; admins can act on any bus and may register
a bus for a given ``agentId``.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Path, Query, Request, status
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from bus_booking.app.core.dependencies import get_client_ip, get_current_user
from bus_booking.app.core.exceptions import ConflictError, ResourceNotFoundError
from bus_booking.app.core.guards import is_admin, ownership_guard, require_agent
from bus_booking.app.core.logging import get_logger
from bus_booking.app.core.responses import success_response
from bus_booking.app.db.session import get_db
from bus_booking.app.domain.seat_layout import available_seat_count, generate_seat_layout
from bus_booking.app.domain.validation import validate_bus
from bus_booking.app.models.agent import Agent
from bus_booking.app.models.booking import Booking
from bus_booking.app.models.bus import Bus
from bus_booking.app.models.enums import BusType
from bus_booking.app.schemas.bus import BusCreate, BusListResponse, BusResponse, BusUpdate, SeatMapResponse
from bus_booking.app.schemas.common import PageMeta
from bus_booking.app.services.audit import AuditAction, log_actor_event

logger = get_logger(__name__)

router = APIRouter(prefix="/buses", tags=["Buses"])


async def get_bus_or_404(db: AsyncSession, bus_id: int) -> Bus:
    bus = await db.get(Bus, bus_id)
    if not bus:
        raise ResourceNotFoundError("Bus", bus_id)
    return bus


async def _caller_agent(db: AsyncSession, current_user: dict) -> Optional[Agent]:
    result = await db.execute(select(Agent).where(Agent.user_id == current_user["user_id"]))
    return result.scalar_one_or_none()


async def _resolve_owner_agent(db: AsyncSession, current_user: dict, requested_agent_id: Optional[int]) -> Agent:
    if is_admin(current_user) and requested_agent_id is not None:
        agent = await db.get(Agent, requested_agent_id)
        if not agent:
            raise ResourceNotFoundError("Agent", requested_agent_id)
        return agent

    agent = await _caller_agent(db, current_user)
    if not agent:
        raise ResourceNotFoundError("Agent profile", details="Complete an agent profile before registering buses")
    return agent


async def _enforce_bus_owner(db: AsyncSession, bus: Bus, current_user: dict) -> None:
    agent = await db.get(Agent, bus.agent_id)
    ownership_guard.enforce(agent.user_id if agent else None, current_user, "bus")


async def _registration_taken(db: AsyncSession, registration_number: str, exclude_bus_id: Optional[int] = None) -> bool:
    query = select(Bus.id).where(Bus.registration_number == registration_number)
    if exclude_bus_id is not None:
        query = query.where(Bus.id != exclude_bus_id)
    return (await db.execute(query)).first() is not None


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_bus(
    request: Request,
    body: BusCreate,
    current_user: dict = Depends(require_agent),
    db: AsyncSession = Depends(get_db),
):
    """
    Register a bus. The seat layout is generated from capacity and type.
    """
    validate_bus(body.model_dump()).raise_for_errors()
    agent = await _resolve_owner_agent(db, current_user, body.agent_id)

    existing = await db.execute(select(Bus.id).where(Bus.bus_number == body.bus_number))
    if existing.first() is not None:
        raise ConflictError("Bus number already exists", error_code="BUS_NUMBER_EXISTS", details=body.bus_number)
    if body.registration_number and await _registration_taken(db, body.registration_number):
        raise ConflictError(
            "Registration number already exists",
            error_code="REGISTRATION_NUMBER_EXISTS",
            details=body.registration_number,
        )

    bus = Bus(
        agent_id=agent.id,
        bus_number=body.bus_number,
        registration_number=body.registration_number,
        type=BusType(body.type),
        capacity=body.capacity,
        manufacturer=body.manufacturer,
        model=body.model,
        year_of_manufacture=body.year_of_manufacture,
        amenities=body.amenities,
        route_ids=body.route_ids,
        insurance_details=body.insurance_details.model_dump(by_alias=True) if body.insurance_details else None,
        seat_layout=generate_seat_layout(body.capacity, body.type),
    )
    db.add(bus)
    await db.commit()
    await db.refresh(bus)
    logger.info(f"Bus {bus.bus_number} registered for agent {agent.id}")

    await log_actor_event(
        db, AuditAction.BUS_CREATED, current_user,
        metadata={"bus_id": bus.id, "bus_number": bus.bus_number},
        ip_address=get_client_ip(request),
    )
    return success_response(request, BusResponse.model_validate(bus), "Bus created successfully", status.HTTP_201_CREATED)


@router.get("")
async def list_buses(
    request: Request,
    agent_id: Optional[int] = Query(None, alias="agentId"),
    type: Optional[BusType] = Query(None),
    capacity: Optional[int] = Query(None, ge=1, description="Minimum capacity"),
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    conditions = []
    if agent_id is not None:
        conditions.append(Bus.agent_id == agent_id)
    if type is not None:
        conditions.append(Bus.type == type)
    if capacity is not None:
        conditions.append(Bus.capacity >= capacity)

    return await _paginated_buses(request, db, conditions, page, limit)


@router.get("/my-buses")
async def list_my_buses(
    request: Request,
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    current_user: dict = Depends(require_agent),
    db: AsyncSession = Depends(get_db),
):
    """Buses owned by the caller's agent profile."""
    agent = await _caller_agent(db, current_user)
    if not agent:
        raise ResourceNotFoundError("Agent profile", details="No agent profile exists for this user")
    return await _paginated_buses(request, db, [Bus.agent_id == agent.id], page, limit)


async def _paginated_buses(request: Request, db: AsyncSession, conditions: list, page: int, limit: int):
    count_query = select(func.count(Bus.id)).where(*conditions)
    total = (await db.execute(count_query)).scalar_one()

    query = (
        select(Bus)
        .where(*conditions)
        .order_by(Bus.created_at.desc(), Bus.id.desc())
        .offset((page - 1) * limit)
        .limit(limit)
    )
    buses = (await db.execute(query)).scalars().all()

    data = BusListResponse(
        buses=[BusResponse.model_validate(b) for b in buses],
        pagination=PageMeta.build(total, page, limit),
    )
    return success_response(request, data, "Buses retrieved successfully")


@router.get("/{bus_id}")
async def get_bus(
    request: Request,
    bus_id: int = Path(..., ge=1),
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    bus = await get_bus_or_404(db, bus_id)
    return success_response(request, BusResponse.model_validate(bus), "Bus retrieved successfully")


@router.get("/{bus_id}/seats")
async def get_bus_seats(
    request: Request,
    bus_id: int = Path(..., ge=1),
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    bus = await get_bus_or_404(db, bus_id)
    data = SeatMapResponse(
        bus_id=bus.id,
        bus_number=bus.bus_number,
        capacity=bus.capacity,
        available_seats=available_seat_count(bus.seat_layout),
        seat_layout=bus.seat_layout,
    )
    return success_response(request, data, "Seat layout retrieved successfully")


@router.put("/{bus_id}")
async def update_bus(
    request: Request,
    body: BusUpdate,
    bus_id: int = Path(..., ge=1),
    current_user: dict = Depends(require_agent),
    db: AsyncSession = Depends(get_db),
):
    """
    Update a bus. Changing capacity or type regenerates the seat layout.
    """
    bus = await get_bus_or_404(db, bus_id)
    await _enforce_bus_owner(db, bus, current_user)

    changes = body.model_dump(exclude_unset=True)
    validate_bus(changes, partial=True).raise_for_errors()

    if changes.get("registration_number") and await _registration_taken(db, changes["registration_number"], bus.id):
        raise ConflictError(
            "Registration number already exists",
            error_code="REGISTRATION_NUMBER_EXISTS",
            details=changes["registration_number"],
        )

    regenerate = False
    for field, value in changes.items():
        if field == "type":
            regenerate = regenerate or value != bus.type.value
            bus.type = BusType(value)
        elif field == "capacity":
            regenerate = regenerate or value != bus.capacity
            bus.capacity = value
        elif field == "insurance_details":
            bus.insurance_details = body.insurance_details.model_dump(by_alias=True) if value else None
        else:
            setattr(bus, field, value)

    if regenerate:
        bus.seat_layout = generate_seat_layout(bus.capacity, bus.type.value)

    await db.commit()
    await db.refresh(bus)

    await log_actor_event(
        db, AuditAction.BUS_UPDATED, current_user,
        metadata={"bus_id": bus.id, "fields": sorted(changes), "layout_regenerated": regenerate},
        ip_address=get_client_ip(request),
    )
    return success_response(request, BusResponse.model_validate(bus), "Bus updated successfully")


@router.delete("/{bus_id}")
async def delete_bus(
    request: Request,
    bus_id: int = Path(..., ge=1),
    current_user: dict = Depends(require_agent),
    db: AsyncSession = Depends(get_db),
):
    bus = await get_bus_or_404(db, bus_id)
    await _enforce_bus_owner(db, bus, current_user)

    has_bookings = await db.execute(select(Booking.id).where(Booking.bus_id == bus.id).limit(1))
    if has_bookings.first() is not None:
        raise ConflictError(
            "Bus has bookings",
            error_code="BUS_HAS_BOOKINGS",
            details="Mark the bus inactive instead of deleting it",
        )

    bus_number = bus.bus_number
    await db.delete(bus)
    await db.commit()

    await log_actor_event(
        db, AuditAction.BUS_DELETED, current_user,
        metadata={"bus_id": bus_id, "bus_number": bus_number},
        ip_address=get_client_ip(request),
    )
    return success_response(request, None, "Bus deleted successfully")
