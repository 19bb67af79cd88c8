"""
Authentication API endpoints.

Phone + OTP login. A successful verification resolves (or creates) the user
and opens a new session bound to the returned refresh token.
"""

from fastapi import APIRouter, Depends, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from bus_booking.app.core.dependencies import get_client_ip, get_device_info
from bus_booking.app.core.exceptions import AppException, ValidationError
from bus_booking.app.core.logging import get_logger
from bus_booking.app.core.responses import success_response
from bus_booking.app.db.session import get_db
from bus_booking.app.domain.validation import normalize_phone
from bus_booking.app.schemas.auth import (
    LoginResponse,
    OTPSentResponse,
    RefreshRequest,
    SendOTPRequest,
    TokenPair,
    VerifyOTPRequest,
)
from bus_booking.app.schemas.user import UserResponse
from bus_booking.app.services.audit import AuditAction, log_event
from bus_booking.app.services.otp_service import OTPService, get_otp_service
from bus_booking.app.services.session_service import SessionService
from bus_booking.app.services.user_service import UserService

logger = get_logger(__name__)

router = APIRouter(prefix="/auth", tags=["Authentication"])


def _otp_sent(issued) -> OTPSentResponse:
    return OTPSentResponse(phone_number=issued.phone, otp_sent=issued.code, otp_expiry=issued.expires_at)


@router.post("/send-otp")
async def send_otp(
    request: Request,
    body: SendOTPRequest,
    otp_service: OTPService = Depends(get_otp_service),
):
    """
    Issue a one-time code for the phone number.

    Outside production the code is echoed back as ``otpSent``.
    """
    if not body.phone:
        raise ValidationError("Phone number is required", details="Phone number is required to send OTP")

    issued = await otp_service.issue(body.phone)
    return success_response(request, _otp_sent(issued), "OTP sent successfully")


@router.post("/resend-otp")
async def resend_otp(
    request: Request,
    body: SendOTPRequest,
    otp_service: OTPService = Depends(get_otp_service),
):
    """Replace any pending code with a fresh one."""
    if not body.phone:
        raise ValidationError("Phone number is required", details="Phone number is required to send OTP")

    issued = await otp_service.resend(body.phone)
    return success_response(request, _otp_sent(issued), "OTP resent successfully")


@router.post("/verify-otp")
async def verify_otp(
    request: Request,
    body: VerifyOTPRequest,
    db: AsyncSession = Depends(get_db),
    otp_service: OTPService = Depends(get_otp_service),
):
    """
    Verify the code, then log the user in.

    Creates the user on first login. Every successful call opens a new session.
    """
    if not body.phone or not body.otp:
        raise ValidationError(
            "Phone number and OTP are required",
            details="Both phone number and OTP are required for verification",
        )

    ip = get_client_ip(request)
    try:
        await otp_service.verify(body.phone, body.otp)
    except AppException as e:
        await log_event(
            db,
            AuditAction.LOGIN_FAILED,
            actor_phone=body.phone,
            metadata={"reason": e.error_code},
            ip_address=ip,
        )
        raise

    user, is_new_user = await UserService.resolve_or_create(db, normalize_phone(body.phone))

    session, access_token, refresh_token = await SessionService.create_session(
        db, user, ip=ip, device_info=get_device_info(request)
    )
    logger.info(f"User {user.id} logged in, session {session.id}")

    await log_event(
        db,
        AuditAction.USER_CREATED if is_new_user else AuditAction.LOGIN_SUCCESS,
        actor_id=user.id,
        actor_phone=user.phone,
        metadata={"session_id": session.id},
        ip_address=ip,
    )

    data = LoginResponse(
        user=UserResponse.model_validate(user),
        tokens=TokenPair(access_token=access_token, refresh_token=refresh_token),
        is_new_user=is_new_user,
        session_id=session.id,
    )
    message = "User created and logged in successfully" if is_new_user else "Logged in successfully"
    return success_response(request, data, message, status_code=status.HTTP_200_OK)


@router.post("/refresh-token")
async def refresh_token(
    request: Request,
    body: RefreshRequest,
    db: AsyncSession = Depends(get_db),
):
    """Same as POST /token/refresh."""
    return await rotate_tokens(request, body, db)


async def rotate_tokens(request: Request, body: RefreshRequest, db: AsyncSession):
    if not body.refresh_token:
        raise ValidationError(
            "Refresh token is required",
            details="A refresh token is required to generate a new access token",
            error_code="REFRESH_TOKEN_MISSING",
        )

    session, user, access_token, new_refresh_token = await SessionService.refresh(db, body.refresh_token)
    await log_event(
        db,
        AuditAction.TOKEN_REFRESHED,
        actor_id=user.id,
        actor_phone=user.phone,
        metadata={"session_id": session.id},
        ip_address=get_client_ip(request),
    )
    return success_response(
        request,
        TokenPair(access_token=access_token, refresh_token=new_refresh_token),
        "Tokens refreshed successfully",
    )
