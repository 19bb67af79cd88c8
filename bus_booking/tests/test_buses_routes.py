"""
Bus and route management endpoints.
"""

import pytest

from bus_booking.app.models.enums import UserRole
from bus_booking.tests.helpers import (
    auth_headers,
    create_agent,
    create_bus,
    create_route,
    login,
    login_as,
)


@pytest.mark.asyncio
async def test_create_bus_generates_layout(client):
    headers = await create_agent(client)
    bus = await create_bus(client, headers)

    assert bus["busNumber"] == "MH12AB1234"
    assert bus["status"] == "active"
    assert len(bus["seatLayout"]) == 10
    first = bus["seatLayout"][0]
    assert first["number"] == "1A"
    assert first["position"] == "window"
    # AC window seat: 500 * 1.2 * 1.1
    assert first["price"] == 660.0
    assert bus["seatLayout"][-1]["number"] == "3B"


@pytest.mark.asyncio
async def test_plain_user_cannot_create_bus(client):
    data = await login(client)
    response = await client.post("/api/buses", json={"busNumber": "X1"}, headers=auth_headers(data))
    assert response.status_code == 403


@pytest.mark.asyncio
async def test_duplicate_bus_number(client):
    headers = await create_agent(client)
    await create_bus(client, headers)
    response = await client.post(
        "/api/buses",
        json={"busNumber": "MH12AB1234", "type": "AC", "capacity": 10, "manufacturer": "Tata",
              "model": "Starbus", "yearOfManufacture": 2020},
        headers=headers,
    )
    assert response.status_code == 409
    assert response.json()["error"]["code"] == "BUS_NUMBER_EXISTS"


@pytest.mark.asyncio
async def test_invalid_bus_rejected(client):
    headers = await create_agent(client)
    response = await client.post(
        "/api/buses",
        json={"busNumber": "KA01", "type": "ROCKET", "capacity": 500, "manufacturer": "Tata",
              "model": "Starbus", "yearOfManufacture": 2020},
        headers=headers,
    )
    assert response.status_code == 400
    assert response.json()["error"]["code"] == "VALIDATION_ERROR"
    assert len(response.json()["error"]["details"]) == 2


@pytest.mark.asyncio
async def test_admin_creates_bus_for_agent(client):
    agent_headers = await create_agent(client)
    agent_id = (await client.get("/api/agents/profile", headers=agent_headers)).json()["data"]["id"]
    admin = await login_as(client, "+919900000001", UserRole.ADMIN)

    bus = await create_bus(client, auth_headers(admin), agentId=agent_id, busNumber="DL01CD5678")
    assert bus["agentId"] == agent_id


@pytest.mark.asyncio
async def test_list_and_my_buses(client):
    headers = await create_agent(client)
    other = await create_agent(client, "+919822222222")
    await create_bus(client, headers, busNumber="A1", type="SLEEPER", capacity=20)
    await create_bus(client, headers, busNumber="A2")
    await create_bus(client, other, busNumber="B1")

    all_buses = await client.get("/api/buses", headers=headers)
    assert all_buses.json()["data"]["pagination"]["total"] == 3

    sleepers = await client.get("/api/buses", params={"type": "SLEEPER"}, headers=headers)
    assert [b["busNumber"] for b in sleepers.json()["data"]["buses"]] == ["A1"]

    big = await client.get("/api/buses", params={"capacity": 15}, headers=headers)
    assert big.json()["data"]["pagination"]["total"] == 1

    mine = await client.get("/api/buses/my-buses", headers=headers)
    assert {b["busNumber"] for b in mine.json()["data"]["buses"]} == {"A1", "A2"}


@pytest.mark.asyncio
async def test_seat_map(client):
    headers = await create_agent(client)
    bus = await create_bus(client, headers)
    response = await client.get(f"/api/buses/{bus['id']}/seats", headers=headers)
    data = response.json()["data"]
    assert data["capacity"] == 10
    assert data["availableSeats"] == 10


@pytest.mark.asyncio
async def test_update_bus_regenerates_layout(client):
    headers = await create_agent(client)
    bus = await create_bus(client, headers)

    response = await client.put(f"/api/buses/{bus['id']}", json={"capacity": 6, "type": "sleeper"}, headers=headers)
    assert response.status_code == 200
    updated = response.json()["data"]
    assert updated["type"] == "SLEEPER"
    assert len(updated["seatLayout"]) == 6
    assert updated["seatLayout"][0]["type"] == "SLEEPER"


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "field", ["capacity", "type", "manufacturer", "model", "yearOfManufacture", "amenities", "routeIds", "status"]
)
async def test_update_bus_rejects_null_for_required_field(client, field):
    headers = await create_agent(client)
    bus = await create_bus(client, headers)

    response = await client.put(f"/api/buses/{bus['id']}", json={field: None}, headers=headers)
    assert response.status_code == 400
    error = response.json()["error"]
    assert error["code"] == "VALIDATION_ERROR"
    assert error["details"] == f"{field} cannot be set to null"

    unchanged = (await client.get(f"/api/buses/{bus['id']}", headers=headers)).json()["data"]
    assert unchanged["capacity"] == bus["capacity"]
    assert unchanged["type"] == bus["type"]
    assert unchanged["manufacturer"] == bus["manufacturer"]


@pytest.mark.asyncio
async def test_update_bus_can_clear_registration_number(client):
    headers = await create_agent(client)
    bus = await create_bus(client, headers)
    await client.put(f"/api/buses/{bus['id']}", json={"registrationNumber": "MH12XY0001"}, headers=headers)

    response = await client.put(f"/api/buses/{bus['id']}", json={"registrationNumber": None}, headers=headers)
    assert response.status_code == 200
    assert response.json()["data"]["registrationNumber"] is None


@pytest.mark.asyncio
async def test_other_agent_cannot_update_bus(client):
    owner = await create_agent(client)
    intruder = await create_agent(client, "+919822222222")
    bus = await create_bus(client, owner)

    response = await client.put(f"/api/buses/{bus['id']}", json={"model": "Hacked"}, headers=intruder)
    assert response.status_code == 403


@pytest.mark.asyncio
async def test_delete_bus(client):
    headers = await create_agent(client)
    bus = await create_bus(client, headers)

    response = await client.delete(f"/api/buses/{bus['id']}", headers=headers)
    assert response.status_code == 200

    missing = await client.get(f"/api/buses/{bus['id']}", headers=headers)
    assert missing.status_code == 404
    assert missing.json()["error"]["code"] == "BUS_NOT_FOUND"


@pytest.mark.asyncio
async def test_route_crud(client):
    headers = await create_agent(client)
    route = await create_route(client, headers, stops=[{"name": "Lonavala", "distanceFromStart": 65}])
    assert route["estimatedTravelTime"] == 150
    assert route["stops"][0]["name"] == "Lonavala"

    updated = await client.put(f"/api/routes/{route['id']}", json={"duration": 200}, headers=headers)
    assert updated.json()["data"]["estimatedTravelTime"] == 200

    fetched = await client.get(f"/api/routes/{route['id']}", headers=headers)
    assert fetched.json()["data"]["duration"] == 200

    deleted = await client.delete(f"/api/routes/{route['id']}", headers=headers)
    assert deleted.status_code == 200


@pytest.mark.asyncio
async def test_duplicate_route_pair_case_insensitive(client):
    headers = await create_agent(client)
    await create_route(client, headers)
    response = await client.post(
        "/api/routes", json={"source": "pune", "destination": "MUMBAI", "distance": 149}, headers=headers
    )
    assert response.status_code == 409
    assert response.json()["error"]["code"] == "ROUTE_EXISTS"


@pytest.mark.asyncio
async def test_route_requires_fields(client):
    headers = await create_agent(client)
    response = await client.post("/api/routes", json={"source": "Pune"}, headers=headers)
    assert response.status_code == 400
    assert response.json()["message"] == "Missing required fields"


@pytest.mark.asyncio
async def test_list_and_search_routes(client):
    headers = await create_agent(client)
    await create_route(client, headers)
    await create_route(client, headers, source="Pune", destination="Nashik", distance=210)
    await create_route(client, headers, source="Mumbai", destination="Goa", distance=590)

    substring = await client.get("/api/routes", params={"source": "pun"}, headers=headers)
    assert substring.json()["data"]["pagination"]["total"] == 2

    exact = await client.get("/api/routes/search", params={"source": "PUNE", "destination": "nashik"}, headers=headers)
    routes = exact.json()["data"]["routes"]
    assert [r["destination"] for r in routes] == ["Nashik"]

    by_distance = await client.get(
        "/api/routes/search", params={"sortBy": "distance", "sortOrder": "asc"}, headers=headers
    )
    assert [r["distance"] for r in by_distance.json()["data"]["routes"]] == [150, 210, 590]
