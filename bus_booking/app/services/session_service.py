"""
Login sessions and refresh-token rotation.

A session row binds the current refresh token of one device to its user.
Rotation overwrites the stored token, so a previously issued refresh token
no longer matches any row. Sessions are deactivated, never deleted.
"""

import uuid
from datetime import timedelta
from typing import List, Optional, Tuple

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from bus_booking.app.core.config import settings
from bus_booking.app.core.exceptions import (
    ResourceNotFoundError,
    SessionExpiredError,
    SessionNotFoundError,
    UserInactiveError,
)
from bus_booking.app.core.jwt import decode_refresh_token, issue_token_pair
from bus_booking.app.core.logging import get_logger
from bus_booking.app.core.time_utils import is_expired, utcnow
from bus_booking.app.models.user import User
from bus_booking.app.models.user_session import UserSession
from bus_booking.app.services.user_service import UserService

logger = get_logger(__name__)


def _session_expiry():
    return utcnow() + timedelta(days=settings.session_expire_days)


class SessionService:

    @staticmethod
    async def create_session(
        db: AsyncSession,
        user: User,
        ip: str,
        device_info: Optional[dict] = None,
    ) -> Tuple[UserSession, str, str]:
        """
        Open a new session for ``user`` and issue its token pair.

        Returns:
            (session, access_token, refresh_token)
        """
        session = UserSession(
            user_id=user.id,
            # Replaced below once the session id is known
            refresh_token=f"pending-{uuid.uuid4().hex}",
            device_info=device_info,
            ip=ip,
            is_active=True,
            last_active_at=utcnow(),
            expires_at=_session_expiry(),
        )
        db.add(session)
        await db.flush()

        access_token, refresh_token = issue_token_pair(user, session.id)
        session.refresh_token = refresh_token
        await db.commit()
        await db.refresh(session)

        logger.info(f"Session {session.id} opened for user {user.id}")
        return session, access_token, refresh_token

    @staticmethod
    async def refresh(db: AsyncSession, refresh_token: str) -> Tuple[UserSession, User, str, str]:
        """
        Rotate the token pair of the session bound to ``refresh_token``.

        Raises:
            SessionNotFoundError: no active session holds this token
            SessionExpiredError: session past expiry (it is deactivated)
            ResourceNotFoundError: USER_NOT_FOUND
            UserInactiveError: user status is not ACTIVE
        """
        result = await db.execute(
            select(UserSession).where(
                UserSession.refresh_token == refresh_token,
                UserSession.is_active == True,  # noqa: E712
            )
        )
        session = result.scalar_one_or_none()
        if not session:
            raise SessionNotFoundError("The refresh token is invalid or has been revoked")

        if is_expired(session.expires_at):
            session.is_active = False
            await db.commit()
            logger.info(f"Session {session.id} expired")
            raise SessionExpiredError()

        payload = decode_refresh_token(refresh_token)
        if payload is None or payload.get("sid") != session.id:
            raise SessionNotFoundError("The refresh token is invalid or has been revoked")

        user = await UserService.get_by_id(db, session.user_id)
        if not user:
            raise ResourceNotFoundError("User", session.user_id)
        if not user.is_active:
            raise UserInactiveError(user.status.value)

        access_token, new_refresh_token = issue_token_pair(user, session.id)
        session.refresh_token = new_refresh_token
        session.expires_at = _session_expiry()
        session.last_active_at = utcnow()
        await db.commit()
        await db.refresh(session)

        return session, user, access_token, new_refresh_token

    @staticmethod
    async def list_active(db: AsyncSession, user_id: int) -> List[UserSession]:
        result = await db.execute(
            select(UserSession)
            .where(UserSession.user_id == user_id, UserSession.is_active == True)  # noqa: E712
            .order_by(UserSession.last_active_at.desc(), UserSession.id.desc())
        )
        return list(result.scalars().all())

    @staticmethod
    async def revoke_one(db: AsyncSession, user_id: int, session_id: int) -> UserSession:
        """Deactivate one of the caller's own active sessions."""
        result = await db.execute(
            select(UserSession).where(
                UserSession.id == session_id,
                UserSession.user_id == user_id,
                UserSession.is_active == True,  # noqa: E712
            )
        )
        session = result.scalar_one_or_none()
        if not session:
            raise SessionNotFoundError("The specified session does not exist or belongs to another user")

        session.is_active = False
        await db.commit()
        return session

    @staticmethod
    async def revoke_others(db: AsyncSession, user_id: int, current_session_id: Optional[int]) -> int:
        """Deactivate every active session of the user except ``current_session_id``."""
        stmt = update(UserSession).where(
            UserSession.user_id == user_id,
            UserSession.is_active == True,  # noqa: E712
        )
        if current_session_id is not None:
            stmt = stmt.where(UserSession.id != current_session_id)
        result = await db.execute(stmt.values(is_active=False))
        await db.commit()
        return result.rowcount

    @staticmethod
    async def revoke_all(db: AsyncSession, user_id: int) -> int:
        return await SessionService.revoke_others(db, user_id, None)

    @staticmethod
    async def revoke_by_token(db: AsyncSession, refresh_token: str) -> UserSession:
        """Deactivate the session holding ``refresh_token`` (device logout)."""
        result = await db.execute(
            select(UserSession).where(
                UserSession.refresh_token == refresh_token,
                UserSession.is_active == True,  # noqa: E712
            )
        )
        session = result.scalar_one_or_none()
        if not session:
            raise SessionNotFoundError("The refresh token is invalid or has already been revoked")

        session.is_active = False
        await db.commit()
        return session
