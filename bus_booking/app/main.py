"""
FastAPI Application Entry Point.

This is the main application file for the Bus Booking Backend.
"""

from contextlib import asynccontextmanager
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware

from bus_booking.app.core.config import settings
from bus_booking.app.core.logging import get_logger, setup_logging
from bus_booking.app.api.v1.router import router as api_v1_router
from bus_booking.app.db.session import engine, Base
from bus_booking.app.core.exceptions import register_exception_handlers
from bus_booking.app.core.observability import ObservabilityMiddleware
from bus_booking.app.core.redis_client import close_redis, ping_redis
from bus_booking.app.core.responses import success_response

# Import models to ensure they are registered with Base
from bus_booking.app.models.user import User
from bus_booking.app.models.user_session import UserSession
from bus_booking.app.models.agent import Agent
from bus_booking.app.models.bus import Bus
from bus_booking.app.models.route import Route
from bus_booking.app.models.booking import Booking
from bus_booking.app.models.notification import Notification
from bus_booking.app.models.audit_log import AuditLog

setup_logging()
logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Lifespan context manager for application startup/shutdown.

    1. Creates database tables on startup.
    2. Closes the Redis connection on shutdown.
    """
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info(f"{settings.app_name} started ({settings.environment})")
    yield
    await close_redis()
    await engine.dispose()


app = FastAPI(
    title=settings.app_name,
    version=settings.api_version,
    debug=settings.debug,
    description="Bus booking backend: OTP login, sessions, fleet, routes and bookings",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.add_middleware(ObservabilityMiddleware)

register_exception_handlers(app)


@app.get("/health", tags=["Health"])
async def health_check(request: Request):
    """
    Health check endpoint.

    Redis is only probed when it backs the OTP store.
    """
    data = {
        "status": "healthy",
        "appName": settings.app_name,
        "version": settings.api_version,
        "environment": settings.environment,
    }
    if settings.otp_store_backend == "redis":
        data["redis"] = "up" if await ping_redis() else "down"
    return success_response(request, data, "Service is healthy")


app.include_router(api_v1_router, prefix=settings.api_prefix)
