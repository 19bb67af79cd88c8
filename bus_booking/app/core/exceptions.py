"""
Custom exceptions and error handlers for consistent error responses.

Provides standardized error codes and global exception handlers. Every
handler renders the shared response envelope, so nothing raised inside an
endpoint leaks past the HTTP layer in another shape.
"""

from typing import Any, Optional

from fastapi import HTTPException, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from bus_booking.app.core.config import settings
from bus_booking.app.core.logging import get_logger
from bus_booking.app.core.responses import error_response

logger = get_logger(__name__)


class AppException(Exception):
    """Base application exception."""

    def __init__(self, message: str, error_code: str, status_code: int = 500, details: Any = None):
        self.message = message
        self.error_code = error_code
        self.status_code = status_code
        self.details = details
        super().__init__(message)


class ValidationError(AppException):
    """Raised when input fails validation."""

    def __init__(self, message: str = "Validation failed", details: Any = None, error_code: str = "VALIDATION_ERROR"):
        super().__init__(
            message=message,
            error_code=error_code,
            status_code=status.HTTP_400_BAD_REQUEST,
            details=details,
        )


class ResourceNotFoundError(AppException):
    """Raised when requested resource is not found."""

    def __init__(self, resource: str, resource_id: Any = None, details: Any = None):
        message = f"{resource} not found"
        code = f"{resource.upper().replace(' ', '_')}_NOT_FOUND"
        if details is None:
            details = (
                f"No {resource.lower()} found with ID: {resource_id}"
                if resource_id is not None
                else f"No {resource.lower()} found"
            )
        super().__init__(
            message=message,
            error_code=code,
            status_code=status.HTTP_404_NOT_FOUND,
            details=details,
        )


class ConflictError(AppException):
    """Raised when a unique resource already exists."""

    def __init__(self, message: str, error_code: str, details: Any = None):
        super().__init__(
            message=message,
            error_code=error_code,
            status_code=status.HTTP_409_CONFLICT,
            details=details,
        )


class AuthenticationError(AppException):
    """Raised for authentication failures."""

    def __init__(self, message: str = "Authentication failed", error_code: str = "UNAUTHORIZED", details: Any = None):
        super().__init__(
            message=message,
            error_code=error_code,
            status_code=status.HTTP_401_UNAUTHORIZED,
            details=details,
        )


class InsufficientPermissionsError(AppException):
    """Raised when user doesn't have permission to perform an action."""

    def __init__(self, message: str = "Insufficient permissions", details: Any = None, error_code: str = "FORBIDDEN"):
        super().__init__(
            message=message,
            error_code=error_code,
            status_code=status.HTTP_403_FORBIDDEN,
            details=details,
        )


class InvalidPhoneError(AppException):
    def __init__(self, phone: Optional[str] = None):
        super().__init__(
            message="Invalid phone number format",
            error_code="INVALID_PHONE",
            status_code=status.HTTP_400_BAD_REQUEST,
            details=f"'{phone}' is not a valid phone number" if phone else "Phone number is required",
        )


class OTPNotFoundError(AppException):
    def __init__(self):
        super().__init__(
            message="No OTP found for this phone number",
            error_code="OTP_NOT_FOUND",
            status_code=status.HTTP_404_NOT_FOUND,
            details="Request a new OTP",
        )


class OTPExpiredError(AppException):
    def __init__(self):
        super().__init__(
            message="OTP has expired",
            error_code="OTP_EXPIRED",
            status_code=status.HTTP_400_BAD_REQUEST,
            details="Request a new OTP",
        )


class OTPAttemptsExceededError(AppException):
    def __init__(self):
        super().__init__(
            message="Maximum OTP attempts exceeded. Please request a new OTP.",
            error_code="OTP_ATTEMPTS_EXCEEDED",
            status_code=status.HTTP_429_TOO_MANY_REQUESTS,
        )


class InvalidOTPError(AppException):
    def __init__(self, remaining_attempts: int):
        self.remaining_attempts = remaining_attempts
        super().__init__(
            message=f"Invalid OTP. {remaining_attempts} attempts remaining.",
            error_code="INVALID_OTP",
            status_code=status.HTTP_400_BAD_REQUEST,
            details={"remainingAttempts": remaining_attempts},
        )


class SessionNotFoundError(AppException):
    def __init__(self, details: Any = "Session not found or already revoked"):
        super().__init__(
            message="Session not found",
            error_code="SESSION_NOT_FOUND",
            status_code=status.HTTP_404_NOT_FOUND,
            details=details,
        )


class SessionExpiredError(AppException):
    def __init__(self):
        super().__init__(
            message="Session has expired",
            error_code="SESSION_EXPIRED",
            status_code=status.HTTP_401_UNAUTHORIZED,
            details="Please log in again",
        )


class UserInactiveError(AppException):
    def __init__(self, user_status: str):
        super().__init__(
            message="User account is not active",
            error_code="USER_INACTIVE",
            status_code=status.HTTP_403_FORBIDDEN,
            details=f"Account status: {user_status}",
        )


# Global Exception Handlers

_HTTP_ERROR_CODES = {
    400: "BAD_REQUEST",
    401: "UNAUTHORIZED",
    403: "FORBIDDEN",
    404: "NOT_FOUND",
    405: "METHOD_NOT_ALLOWED",
    409: "CONFLICT",
    429: "TOO_MANY_REQUESTS",
    500: "INTERNAL_ERROR",
}


async def app_exception_handler(request: Request, exc: AppException) -> JSONResponse:
    """Handler for custom application exceptions."""
    if exc.status_code >= 500:
        logger.error(f"{exc.error_code}: {exc.message}", extra={"path": request.url.path})
    return error_response(
        request,
        message=exc.message,
        code=exc.error_code,
        details=exc.details,
        status_code=exc.status_code,
    )


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    """Handler for Starlette/FastAPI HTTPException (unknown routes included)."""
    code = _HTTP_ERROR_CODES.get(exc.status_code, "HTTP_ERROR")
    details: Optional[str] = None
    if exc.status_code == status.HTTP_404_NOT_FOUND and exc.detail == "Not Found":
        details = f"Cannot {request.method} {request.url.path}"
    return error_response(
        request,
        message=str(exc.detail),
        code=code,
        details=details,
        status_code=exc.status_code,
        headers=getattr(exc, "headers", None),
    )


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Handler for Pydantic request validation errors."""
    return error_response(
        request,
        message="Validation failed",
        code="VALIDATION_ERROR",
        details=exc.errors(),
        status_code=status.HTTP_400_BAD_REQUEST,
    )


async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Handler for unhandled exceptions."""
    logger.error(
        f"Unhandled exception: {type(exc).__name__}: {exc}",
        extra={"method": request.method, "path": request.url.path},
        exc_info=exc,
    )
    message = "An internal server error occurred"
    return error_response(
        request,
        message=message,
        code="INTERNAL_ERROR",
        details=message if settings.is_production else str(exc),
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
    )


def register_exception_handlers(app) -> None:
    app.add_exception_handler(AppException, app_exception_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(HTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(Exception, generic_exception_handler)
