"""
Notification endpoints and the booking reminder job.
"""

from datetime import timedelta

import pytest

from bus_booking.app.core.time_utils import utcnow
from bus_booking.app.models.enums import UserRole
from bus_booking.app.services.notification_service import NotificationService
from bus_booking.tests.helpers import (
    TestingSessionLocal,
    auth_headers,
    create_agent,
    create_bus,
    create_route,
    login,
    login_as,
)

PHONE = "+919876543210"


async def send(client, admin, user_id, **overrides):
    body = {
        "userId": user_id,
        "title": "Offer",
        "message": "20% off this weekend",
        "type": "PROMOTIONAL",
        "channel": "SMS",
        **overrides,
    }
    return await client.post("/api/notifications", json=body, headers=auth_headers(admin))


@pytest.mark.asyncio
async def test_admin_sends_notification(client):
    user = await login(client, PHONE)
    admin = await login_as(client, "+919900000001", UserRole.ADMIN)

    response = await send(client, admin, user["user"]["id"])
    assert response.status_code == 201
    notif = response.json()["data"]
    assert notif["sent"] is True
    assert notif["sentAt"] is not None
    assert notif["recipient"]["phone"] == PHONE
    assert notif["read"] is False


@pytest.mark.asyncio
async def test_send_validates_type_and_channel(client):
    user = await login(client, PHONE)
    admin = await login_as(client, "+919900000001", UserRole.ADMIN)

    bad_type = await send(client, admin, user["user"]["id"], type="SPAM")
    assert bad_type.status_code == 400
    assert "PROMOTIONAL" in bad_type.json()["error"]["details"]

    bad_channel = await send(client, admin, user["user"]["id"], channel="PIGEON")
    assert bad_channel.status_code == 400

    unknown_user = await send(client, admin, 9999)
    assert unknown_user.status_code == 404
    assert unknown_user.json()["error"]["code"] == "USER_NOT_FOUND"


@pytest.mark.asyncio
async def test_user_cannot_send(client):
    user = await login(client, PHONE)
    response = await send(client, user, user["user"]["id"])
    assert response.status_code == 403


@pytest.mark.asyncio
async def test_read_state_lifecycle(client):
    user = await login(client, PHONE)
    admin = await login_as(client, "+919900000001", UserRole.ADMIN)
    headers = auth_headers(user)
    first = (await send(client, admin, user["user"]["id"])).json()["data"]
    await send(client, admin, user["user"]["id"], title="Second")
    await send(client, admin, user["user"]["id"], title="Third")

    count = await client.get("/api/notifications/unread-count", headers=headers)
    assert count.json()["data"]["count"] == 3

    marked = await client.put(f"/api/notifications/{first['id']}/read", headers=headers)
    assert marked.json()["data"]["read"] is True

    unread = await client.get("/api/notifications", params={"read": "unread"}, headers=headers)
    assert unread.json()["data"]["pagination"]["total"] == 2
    read = await client.get("/api/notifications", params={"read": "read"}, headers=headers)
    assert [n["id"] for n in read.json()["data"]["notifications"]] == [first["id"]]

    all_read = await client.put("/api/notifications/mark-all-read", headers=headers)
    assert all_read.json()["data"]["modifiedCount"] == 2

    deleted = await client.delete(f"/api/notifications/{first['id']}", headers=headers)
    assert deleted.status_code == 200
    gone = await client.delete(f"/api/notifications/{first['id']}", headers=headers)
    assert gone.status_code == 404
    assert gone.json()["error"]["code"] == "NOTIFICATION_NOT_FOUND"


@pytest.mark.asyncio
async def test_cannot_touch_another_users_notification(client):
    user = await login(client, PHONE)
    other = await login(client, "+919812345678")
    admin = await login_as(client, "+919900000001", UserRole.ADMIN)
    notif = (await send(client, admin, user["user"]["id"])).json()["data"]

    response = await client.put(f"/api/notifications/{notif['id']}/read", headers=auth_headers(other))
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_schedule_journey_reminders(client):
    agent = await create_agent(client)
    bus = await create_bus(client, agent)
    route = await create_route(client, agent)
    user = await login(client, PHONE)
    headers = auth_headers(user)

    tomorrow = (utcnow() + timedelta(days=1)).replace(hour=10, minute=0, second=0, microsecond=0)
    next_week = tomorrow + timedelta(days=6)
    for seat, journey in (("1A", tomorrow), ("1B", next_week)):
        await client.post(
            "/api/bookings",
            json={
                "busId": bus["id"],
                "routeId": route["id"],
                "seats": [seat],
                "passengers": [{"name": "Asha", "age": 30, "gender": "female"}],
                "journeyDate": journey.isoformat(),
            },
            headers=headers,
        )

    async with TestingSessionLocal() as session:
        scheduled = await NotificationService.schedule_journey_reminders(session)
    assert scheduled == 1

    listed = await client.get("/api/notifications", params={"type": "JOURNEY_REMINDER"}, headers=headers)
    reminders = listed.json()["data"]["notifications"]
    assert len(reminders) == 1
    assert "is tomorrow at 10:00" in reminders[0]["message"]


@pytest.mark.asyncio
async def test_schedule_reminders_endpoint_is_admin_only(client):
    user = await login(client, PHONE)
    forbidden = await client.post("/api/notifications/schedule-reminders", headers=auth_headers(user))
    assert forbidden.status_code == 403

    admin = await login_as(client, "+919900000001", UserRole.ADMIN)
    response = await client.post("/api/notifications/schedule-reminders", headers=auth_headers(admin))
    assert response.status_code == 200
    assert response.json()["data"]["scheduled"] == 0
