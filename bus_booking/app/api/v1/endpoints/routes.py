"""
Route management API endpoints.
"""

from typing import Literal, Optional

from fastapi import APIRouter, Depends, Path, Query, Request, status
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from bus_booking.app.core.dependencies import get_client_ip, get_current_user
from bus_booking.app.core.exceptions import ConflictError, ResourceNotFoundError
from bus_booking.app.core.guards import require_agent
from bus_booking.app.core.responses import success_response
from bus_booking.app.db.session import get_db
from bus_booking.app.domain.validation import validate_route
from bus_booking.app.models.booking import Booking
from bus_booking.app.models.route import Route
from bus_booking.app.schemas.common import PageMeta
from bus_booking.app.schemas.route import RouteCreate, RouteListResponse, RouteResponse, RouteUpdate
from bus_booking.app.services.audit import AuditAction, log_actor_event

router = APIRouter(prefix="/routes", tags=["Routes"])

SORT_COLUMNS = {
    "createdAt": Route.created_at,
    "distance": Route.distance,
    "duration": Route.duration,
    "source": Route.source,
    "destination": Route.destination,
}


async def get_route_or_404(db: AsyncSession, route_id: int) -> Route:
    route = await db.get(Route, route_id)
    if not route:
        raise ResourceNotFoundError("Route", route_id)
    return route


async def _ensure_unique_pair(db: AsyncSession, source: str, destination: str, exclude_id: Optional[int] = None):
    query = select(Route.id).where(
        func.lower(Route.source) == source.strip().lower(),
        func.lower(Route.destination) == destination.strip().lower(),
    )
    if exclude_id is not None:
        query = query.where(Route.id != exclude_id)
    if (await db.execute(query)).first() is not None:
        raise ConflictError(
            "Route already exists",
            error_code="ROUTE_EXISTS",
            details=f"A route from {source} to {destination} already exists",
        )


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_route(
    request: Request,
    body: RouteCreate,
    current_user: dict = Depends(require_agent),
    db: AsyncSession = Depends(get_db),
):
    validate_route(body.model_dump()).raise_for_errors()
    await _ensure_unique_pair(db, body.source, body.destination)

    route = Route(
        source=body.source.strip(),
        destination=body.destination.strip(),
        distance=body.distance,
        duration=body.duration,
        stops=[stop.model_dump(by_alias=True) for stop in body.stops],
        is_active=body.is_active,
    )
    db.add(route)
    await db.commit()
    await db.refresh(route)

    await log_actor_event(
        db, AuditAction.ROUTE_CREATED, current_user,
        metadata={"route_id": route.id, "source": route.source, "destination": route.destination},
        ip_address=get_client_ip(request),
    )
    return success_response(request, RouteResponse.model_validate(route), "Route created successfully", status.HTTP_201_CREATED)


@router.get("")
async def list_routes(
    request: Request,
    source: Optional[str] = Query(None),
    destination: Optional[str] = Query(None),
    is_active: Optional[bool] = Query(None, alias="isActive"),
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Routes filtered by case-insensitive substring on source/destination."""
    conditions = []
    if source:
        conditions.append(Route.source.ilike(f"%{source.strip()}%"))
    if destination:
        conditions.append(Route.destination.ilike(f"%{destination.strip()}%"))
    if is_active is not None:
        conditions.append(Route.is_active == is_active)

    return await _paginated_routes(request, db, conditions, Route.created_at.desc(), page, limit)


@router.get("/search")
async def search_routes(
    request: Request,
    source: Optional[str] = Query(None),
    destination: Optional[str] = Query(None),
    sort_by: Literal["createdAt", "distance", "duration", "source", "destination"] = Query("createdAt", alias="sortBy"),
    sort_order: Literal["asc", "desc"] = Query("desc", alias="sortOrder"),
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """
    Exact (case-insensitive) matches on source and/or destination.
    """
    conditions = []
    if source:
        conditions.append(func.lower(Route.source) == source.strip().lower())
    if destination:
        conditions.append(func.lower(Route.destination) == destination.strip().lower())

    column = SORT_COLUMNS[sort_by]
    order = column.asc() if sort_order == "asc" else column.desc()
    return await _paginated_routes(request, db, conditions, order, page, limit)


async def _paginated_routes(request: Request, db: AsyncSession, conditions: list, order, page: int, limit: int):
    total = (await db.execute(select(func.count(Route.id)).where(*conditions))).scalar_one()
    query = (
        select(Route)
        .where(*conditions)
        .order_by(order, Route.id.desc())
        .offset((page - 1) * limit)
        .limit(limit)
    )
    routes = (await db.execute(query)).scalars().all()

    data = RouteListResponse(
        routes=[RouteResponse.model_validate(r) for r in routes],
        pagination=PageMeta.build(total, page, limit),
    )
    return success_response(request, data, "Routes retrieved successfully")


@router.get("/{route_id}")
async def get_route(
    request: Request,
    route_id: int = Path(..., ge=1),
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    route = await get_route_or_404(db, route_id)
    return success_response(request, RouteResponse.model_validate(route), "Route retrieved successfully")


@router.put("/{route_id}")
async def update_route(
    request: Request,
    body: RouteUpdate,
    route_id: int = Path(..., ge=1),
    current_user: dict = Depends(require_agent),
    db: AsyncSession = Depends(get_db),
):
    route = await get_route_or_404(db, route_id)
    changes = body.model_dump(exclude_unset=True)

    merged = {
        "source": changes.get("source") or route.source,
        "destination": changes.get("destination") or route.destination,
        "distance": changes.get("distance"),
        "duration": changes.get("duration"),
    }
    validate_route(merged, partial=True).raise_for_errors()
    if "source" in changes or "destination" in changes:
        await _ensure_unique_pair(db, merged["source"], merged["destination"], exclude_id=route.id)

    for field, value in changes.items():
        if field == "stops":
            route.stops = [stop.model_dump(by_alias=True) for stop in body.stops or []]
        elif field in ("source", "destination"):
            if value:
                setattr(route, field, value.strip())
        elif field == "duration":
            route.duration = value
        elif value is not None:
            setattr(route, field, value)

    await db.commit()
    await db.refresh(route)

    await log_actor_event(
        db, AuditAction.ROUTE_UPDATED, current_user,
        metadata={"route_id": route.id, "fields": sorted(changes)},
        ip_address=get_client_ip(request),
    )
    return success_response(request, RouteResponse.model_validate(route), "Route updated successfully")


@router.delete("/{route_id}")
async def delete_route(
    request: Request,
    route_id: int = Path(..., ge=1),
    current_user: dict = Depends(require_agent),
    db: AsyncSession = Depends(get_db),
):
    route = await get_route_or_404(db, route_id)

    has_bookings = await db.execute(select(Booking.id).where(Booking.route_id == route.id).limit(1))
    if has_bookings.first() is not None:
        raise ConflictError(
            "Route has bookings",
            error_code="ROUTE_HAS_BOOKINGS",
            details="Deactivate the route instead of deleting it",
        )

    await db.delete(route)
    await db.commit()

    await log_actor_event(
        db, AuditAction.ROUTE_DELETED, current_user,
        metadata={"route_id": route_id},
        ip_address=get_client_ip(request),
    )
    return success_response(request, None, "Route deleted successfully")
