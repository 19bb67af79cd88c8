"""
Session management API endpoints.

All operations are scoped to the caller's own sessions.
"""

from fastapi import APIRouter, Depends, Path, Request
from sqlalchemy.ext.asyncio import AsyncSession

from bus_booking.app.core.dependencies import get_client_ip, get_current_user
from bus_booking.app.core.responses import success_response
from bus_booking.app.db.session import get_db
from bus_booking.app.schemas.common import RevokedCountResponse
from bus_booking.app.schemas.session import SessionResponse
from bus_booking.app.services.audit import AuditAction, log_actor_event
from bus_booking.app.services.session_service import SessionService

router = APIRouter(prefix="/sessions", tags=["Sessions"])


@router.get("/my-sessions")
async def list_my_sessions(
    request: Request,
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Active sessions, most recently active first."""
    sessions = await SessionService.list_active(db, current_user["user_id"])
    current_sid = current_user.get("sid")
    data = [
        SessionResponse.model_validate(s).model_copy(update={"is_current": s.id == current_sid})
        for s in sessions
    ]
    return success_response(request, data, "Active sessions retrieved successfully")


@router.delete("/revoke/{session_id}")
async def revoke_session(
    request: Request,
    session_id: int = Path(..., ge=1),
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    await SessionService.revoke_one(db, current_user["user_id"], session_id)
    await log_actor_event(
        db,
        AuditAction.SESSION_REVOKED,
        current_user,
        metadata={"session_id": session_id},
        ip_address=get_client_ip(request),
    )
    return success_response(request, None, "Session revoked successfully")


@router.delete("/revoke-others")
async def revoke_other_sessions(
    request: Request,
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Revoke every session except the one the access token was issued for."""
    count = await SessionService.revoke_others(db, current_user["user_id"], current_user.get("sid"))
    await log_actor_event(
        db,
        AuditAction.SESSIONS_REVOKED,
        current_user,
        metadata={"scope": "others", "revoked_count": count},
        ip_address=get_client_ip(request),
    )
    return success_response(request, RevokedCountResponse(revoked_count=count), "Other sessions revoked successfully")


@router.delete("/logout-all")
async def logout_all_sessions(
    request: Request,
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    count = await SessionService.revoke_all(db, current_user["user_id"])
    await log_actor_event(
        db,
        AuditAction.SESSIONS_REVOKED,
        current_user,
        metadata={"scope": "all", "revoked_count": count},
        ip_address=get_client_ip(request),
    )
    return success_response(request, RevokedCountResponse(revoked_count=count), "All sessions revoked successfully")
