"""
Security guards for role-based and ownership-based access control.

Provides dependencies for protecting endpoints.
"""

from typing import List, Optional
from fastapi import Depends
from bus_booking.app.models.enums import UserRole
from bus_booking.app.core.dependencies import get_current_user
from bus_booking.app.core.exceptions import InsufficientPermissionsError


def require_role(allowed_roles: List[UserRole]):
    """
    Dependency factory for role-based access control.

    Usage:
        @router.post("/buses")
        async def create_bus(current_user: dict = Depends(require_role([UserRole.AGENT, UserRole.ADMIN]))):
            ...

    Raises:
        InsufficientPermissionsError (403) if the token role is not allowed
    """
    async def role_checker(current_user: dict = Depends(get_current_user)) -> dict:
        try:
            user_role = UserRole(current_user.get("role"))
        except ValueError:
            raise InsufficientPermissionsError("Invalid role in token")

        if user_role not in allowed_roles:
            raise InsufficientPermissionsError(
                "Access denied",
                details=f"Required role: {', '.join([r.value for r in allowed_roles])}",
            )

        return current_user

    return role_checker


require_admin = require_role([UserRole.ADMIN])
require_agent = require_role([UserRole.AGENT, UserRole.ADMIN])


def is_admin(current_user: dict) -> bool:
    return current_user.get("role") == UserRole.ADMIN.value


class OwnershipGuard:
    """
    Ownership guard for per-user resources.

    Admins pass every check; everyone else must own the resource.

    Usage:
        ownership_guard = OwnershipGuard()

        booking = await get_booking(booking_id, db)
        ownership_guard.enforce(booking.user_id, current_user, "booking")
    """

    def enforce(self, resource_owner_id: int, current_user: dict, resource_name: str = "resource"):
        """
        Raises:
            InsufficientPermissionsError (403) if ownership check fails
        """
        if is_admin(current_user):
            return
        if current_user.get("user_id") != resource_owner_id:
            raise InsufficientPermissionsError(
                "Access denied",
                details=f"You do not have permission to access this {resource_name}.",
            )

    def filter_by_ownership(self, current_user: dict) -> Optional[int]:
        """
        The user_id to filter queries by, or None for admins (no filtering).
        """
        if is_admin(current_user):
            return None
        return current_user.get("user_id")


ownership_guard = OwnershipGuard()
