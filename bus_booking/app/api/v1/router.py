"""
API v1 Router.

Aggregates all v1 API endpoints.
"""

from fastapi import APIRouter
from bus_booking.app.api.v1.endpoints import (
    auth, token, sessions, users, agents, buses, routes, bookings, search, notifications, admin
)

router = APIRouter()

# Identity
router.include_router(auth.router)
router.include_router(token.router)
router.include_router(sessions.router)
router.include_router(users.router)
router.include_router(agents.router)

# Fleet and bookings
router.include_router(buses.router)
router.include_router(routes.router)
router.include_router(bookings.router)
router.include_router(search.router)

router.include_router(notifications.router)
router.include_router(admin.router)
