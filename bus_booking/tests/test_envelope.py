"""
Response envelope, request ids and framework errors.
"""

import json
import logging
import re
import uuid

import pytest
from httpx import ASGITransport, AsyncClient

from bus_booking.app.core.config import settings
from bus_booking.app.core.logging import DevelopmentFormatter, StructuredFormatter
from bus_booking.app.main import app

TIMESTAMP = re.compile(r"^\d{4}-\d{2}-\d{2}T\d{2}:\d{2}:\d{2}\.\d{3}Z$")


@pytest.mark.asyncio
async def test_health_is_enveloped_and_unprefixed(client):
    response = await client.get("/health")
    assert response.status_code == 200
    body = response.json()
    assert set(body) == {"success", "message", "data", "error", "meta"}
    assert body["success"] is True
    assert body["error"] is None
    assert body["data"]["status"] == "healthy"
    assert TIMESTAMP.match(body["meta"]["timestamp"])
    uuid.UUID(body["meta"]["requestId"], version=4)


@pytest.mark.asyncio
async def test_request_id_is_echoed(client):
    request_id = str(uuid.uuid4())
    response = await client.get("/health", headers={"X-Request-ID": request_id})
    assert response.headers["X-Request-ID"] == request_id
    assert response.json()["meta"]["requestId"] == request_id
    assert "X-Process-Time" in response.headers


@pytest.mark.asyncio
async def test_error_envelope_carries_request_id(client):
    request_id = str(uuid.uuid4())
    response = await client.get("/api/users/me", headers={"X-Request-ID": request_id})
    body = response.json()
    assert body["success"] is False
    assert body["data"] is None
    assert body["error"]["code"] == "TOKEN_MISSING"
    assert body["meta"]["requestId"] == request_id


@pytest.mark.asyncio
async def test_unknown_route(client):
    response = await client.get("/api/nowhere")
    assert response.status_code == 404
    body = response.json()
    assert body["error"]["code"] == "NOT_FOUND"
    assert body["error"]["details"] == "Cannot GET /api/nowhere"


@pytest.mark.asyncio
async def test_method_not_allowed(client):
    response = await client.delete("/api/auth/send-otp")
    assert response.status_code == 405
    assert response.json()["error"]["code"] == "METHOD_NOT_ALLOWED"


@pytest.mark.asyncio
async def test_malformed_body_is_validation_error(client):
    response = await client.post("/api/auth/send-otp", content="not json", headers={"Content-Type": "application/json"})
    assert response.status_code == 400
    assert response.json()["error"]["code"] == "VALIDATION_ERROR"


@pytest.fixture
async def lenient_client():
    """Client that returns 500 responses instead of re-raising app errors."""
    transport = ASGITransport(app=app, raise_app_exceptions=False)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


def break_health_check(mocker):
    mocker.patch.object(settings, "otp_store_backend", "redis")
    mocker.patch("bus_booking.app.main.ping_redis", side_effect=RuntimeError("redis driver exploded"))


@pytest.mark.asyncio
async def test_unhandled_error_is_internal_error_envelope(lenient_client, mocker, caplog):
    break_health_check(mocker)
    request_id = str(uuid.uuid4())

    with caplog.at_level(logging.INFO, logger="bus_booking"):
        response = await lenient_client.get("/health", headers={"X-Request-ID": request_id})

    assert response.status_code == 500
    body = response.json()
    assert body["success"] is False
    assert body["data"] is None
    assert body["error"]["code"] == "INTERNAL_ERROR"
    assert body["error"]["details"] == "redis driver exploded"
    assert body["meta"]["requestId"] == request_id
    assert response.headers["X-Request-ID"] == request_id
    assert "X-Process-Time" in response.headers

    unhandled = [r for r in caplog.records if r.getMessage().startswith("Unhandled exception")]
    assert unhandled and unhandled[0].exc_info is not None
    failed = [r for r in caplog.records if r.name == "bus_booking.http" and r.getMessage() == "Request failed"]
    assert len(failed) == 1
    assert failed[0].status_code == 500


@pytest.mark.asyncio
async def test_internal_error_details_hidden_in_production(lenient_client, mocker):
    break_health_check(mocker)
    mocker.patch.object(settings, "environment", "production")

    response = await lenient_client.get("/health")

    assert response.status_code == 500
    error = response.json()["error"]
    assert error["code"] == "INTERNAL_ERROR"
    assert "redis driver exploded" not in error["details"]
    assert error["details"] == "An internal server error occurred"


def test_request_log_fields_include_client_ip():
    record = logging.LogRecord("bus_booking.http", logging.INFO, __file__, 1, "Request completed", None, None)
    record.request_id = "req-1"
    record.ip = "10.0.0.7"

    structured = json.loads(StructuredFormatter().format(record))
    assert structured["ip"] == "10.0.0.7"
    assert "ip=10.0.0.7" in DevelopmentFormatter().format(record)
