"""
Token API endpoints: refresh-token rotation and device logout.
"""

from fastapi import APIRouter, Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from bus_booking.app.api.v1.endpoints.auth import rotate_tokens
from bus_booking.app.core.dependencies import get_client_ip
from bus_booking.app.core.exceptions import ValidationError
from bus_booking.app.core.responses import success_response
from bus_booking.app.db.session import get_db
from bus_booking.app.schemas.auth import RefreshRequest
from bus_booking.app.services.audit import AuditAction, log_event
from bus_booking.app.services.session_service import SessionService

router = APIRouter(prefix="/token", tags=["Token"])


@router.post("/refresh")
async def refresh(
    request: Request,
    body: RefreshRequest,
    db: AsyncSession = Depends(get_db),
):
    """
    Exchange a refresh token for a new access/refresh pair.

    The presented refresh token stops working once this succeeds.
    """
    return await rotate_tokens(request, body, db)


@router.post("/revoke")
async def revoke(
    request: Request,
    body: RefreshRequest,
    db: AsyncSession = Depends(get_db),
):
    """Deactivate the session holding this refresh token."""
    if not body.refresh_token:
        raise ValidationError(
            "Refresh token is required",
            details="A refresh token is required to revoke a session",
            error_code="REFRESH_TOKEN_MISSING",
        )

    session = await SessionService.revoke_by_token(db, body.refresh_token)
    await log_event(
        db,
        AuditAction.SESSION_REVOKED,
        actor_id=session.user_id,
        metadata={"session_id": session.id, "via": "refresh_token"},
        ip_address=get_client_ip(request),
    )
    return success_response(request, None, "Token revoked successfully")
