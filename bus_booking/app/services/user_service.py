"""
User lookup and creation.
"""

from typing import Optional, Tuple
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from bus_booking.app.core.exceptions import ResourceNotFoundError
from bus_booking.app.core.logging import get_logger
from bus_booking.app.core.time_utils import epoch_millis
from bus_booking.app.models.enums import UserRole, UserStatus
from bus_booking.app.models.user import User

logger = get_logger(__name__)


class UserService:

    @staticmethod
    async def get_by_phone(db: AsyncSession, phone: str) -> Optional[User]:
        result = await db.execute(select(User).where(User.phone == phone))
        return result.scalar_one_or_none()

    @staticmethod
    async def get_by_id(db: AsyncSession, user_id: int) -> Optional[User]:
        result = await db.execute(select(User).where(User.id == user_id))
        return result.scalar_one_or_none()

    @staticmethod
    async def get_or_404(db: AsyncSession, user_id: int) -> User:
        user = await UserService.get_by_id(db, user_id)
        if not user:
            raise ResourceNotFoundError("User", user_id)
        return user

    @staticmethod
    async def get_by_phone_or_404(db: AsyncSession, phone: str) -> User:
        user = await UserService.get_by_phone(db, phone)
        if not user:
            raise ResourceNotFoundError("User", details=f"No user found with phone: {phone}")
        return user

    @staticmethod
    async def resolve_or_create(db: AsyncSession, phone: str) -> Tuple[User, bool]:
        """
        Find the user for ``phone`` or create a USER with a placeholder name.

        Returns:
            (user, is_new_user)
        """
        user = await UserService.get_by_phone(db, phone)
        if user:
            return user, False

        user = User(
            phone=phone,
            name=f"User-{epoch_millis()}",
            role=UserRole.USER,
            status=UserStatus.ACTIVE,
        )
        db.add(user)
        await db.commit()
        await db.refresh(user)
        logger.info(f"Created user {user.id} for {phone}")
        return user, True

    @staticmethod
    async def email_taken(db: AsyncSession, email: str, exclude_user_id: Optional[int] = None) -> bool:
        query = select(User.id).where(User.email == email)
        if exclude_user_id is not None:
            query = query.where(User.id != exclude_user_id)
        result = await db.execute(query)
        return result.first() is not None
