"""
User profile API endpoints.
"""

from fastapi import APIRouter, Depends, Path, Request
from sqlalchemy.ext.asyncio import AsyncSession

from bus_booking.app.core.dependencies import get_client_ip, get_current_user
from bus_booking.app.core.exceptions import ConflictError, ValidationError
from bus_booking.app.core.guards import require_admin
from bus_booking.app.core.responses import success_response
from bus_booking.app.db.session import get_db
from bus_booking.app.domain.validation import normalize_phone
from bus_booking.app.models.enums import UserRole
from bus_booking.app.schemas.user import RoleUpdate, StatusUpdate, UserResponse, UserUpdate
from bus_booking.app.services.audit import AuditAction, log_actor_event
from bus_booking.app.services.user_service import UserService

router = APIRouter(prefix="/users", tags=["Users"])

# Roles an admin may assign through the API
ASSIGNABLE_ROLES = {UserRole.USER.value, UserRole.AGENT.value}


@router.get("/me")
async def get_me(
    request: Request,
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    user = await UserService.get_or_404(db, current_user["user_id"])
    return success_response(request, UserResponse.model_validate(user), "User profile retrieved successfully")


@router.put("/me")
async def update_me(
    request: Request,
    body: UserUpdate,
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Update name and/or email. ``email: null`` clears it."""
    user = await UserService.get_or_404(db, current_user["user_id"])
    changes = body.model_dump(exclude_unset=True)

    if "name" in changes:
        if not changes["name"] or not changes["name"].strip():
            raise ValidationError("Name cannot be empty")
        user.name = changes["name"].strip()

    if "email" in changes:
        email = changes["email"]
        if email and await UserService.email_taken(db, email, exclude_user_id=user.id):
            raise ConflictError("Email already in use", error_code="EMAIL_EXISTS", details=email)
        user.email = email

    await db.commit()
    await db.refresh(user)
    return success_response(request, UserResponse.model_validate(user), "User profile updated successfully")


@router.get("/{phone}")
async def get_user_by_phone(
    request: Request,
    phone: str = Path(...),
    admin: dict = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    user = await UserService.get_by_phone_or_404(db, normalize_phone(phone))
    return success_response(request, UserResponse.model_validate(user), "User retrieved successfully")


@router.put("/{phone}/role")
async def update_user_role(
    request: Request,
    body: RoleUpdate,
    phone: str = Path(...),
    admin: dict = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    """Set a user's role to USER or AGENT."""
    if body.role not in ASSIGNABLE_ROLES:
        raise ValidationError(
            "Invalid role",
            details=f"Role must be one of: {', '.join(sorted(ASSIGNABLE_ROLES))}",
            error_code="INVALID_ROLE",
        )

    user = await UserService.get_by_phone_or_404(db, normalize_phone(phone))
    old_role = user.role.value
    user.role = UserRole(body.role)
    await db.commit()
    await db.refresh(user)

    await log_actor_event(
        db,
        AuditAction.ROLE_CHANGED,
        admin,
        target_user_id=user.id,
        metadata={"old_role": old_role, "new_role": body.role},
        ip_address=get_client_ip(request),
    )
    return success_response(request, UserResponse.model_validate(user), "User role updated successfully")


@router.put("/{phone}/status")
async def update_user_status(
    request: Request,
    body: StatusUpdate,
    phone: str = Path(...),
    admin: dict = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    user = await UserService.get_by_phone_or_404(db, normalize_phone(phone))
    old_status = user.status.value
    user.status = body.status
    await db.commit()
    await db.refresh(user)

    await log_actor_event(
        db,
        AuditAction.STATUS_CHANGED,
        admin,
        target_user_id=user.id,
        metadata={"old_status": old_status, "new_status": body.status.value},
        ip_address=get_client_ip(request),
    )
    return success_response(request, UserResponse.model_validate(user), "User status updated successfully")
