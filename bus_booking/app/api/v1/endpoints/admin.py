"""
Admin API Endpoints.

Read access to the audit trail.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.ext.asyncio import AsyncSession

from bus_booking.app.core.guards import require_admin
from bus_booking.app.core.responses import success_response
from bus_booking.app.db.session import get_db
from bus_booking.app.schemas.audit import AuditLogResponse
from bus_booking.app.services.audit import get_audit_trail

router = APIRouter(prefix="/admin", tags=["Admin"])


@router.get("/audit-logs")
async def list_audit_logs(
    request: Request,
    action: Optional[str] = Query(None, description="Filter by action type"),
    target_user_id: Optional[int] = Query(None, alias="targetUserId"),
    limit: int = Query(100, ge=1, le=500),
    admin: dict = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    """
    Audit entries, newest first (admin-only).
    """
    logs = await get_audit_trail(db, target_user_id=target_user_id, action=action, limit=limit)
    data = {
        "logs": [AuditLogResponse.model_validate(log) for log in logs],
        "total": len(logs),
    }
    return success_response(request, data, "Audit logs retrieved successfully")
