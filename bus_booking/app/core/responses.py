"""
Response envelope.

Every HTTP response, success or error, is shaped as::

    {
        "success": bool,
        "message": str,
        "data": object | null,
        "error": {"code": str, "details": any} | null,
        "meta": {"requestId": uuid, "timestamp": ISO8601}
    }
"""

import uuid
from typing import Any, Optional

from fastapi import Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse

from bus_booking.app.core.time_utils import iso_timestamp


def request_id_for(request: Optional[Request]) -> str:
    """Request id set by the observability middleware, or a fresh UUID."""
    if request is not None:
        request_id = getattr(request.state, "request_id", None)
        if request_id:
            return request_id
    return str(uuid.uuid4())


def build_meta(request: Optional[Request] = None) -> dict:
    return {"requestId": request_id_for(request), "timestamp": iso_timestamp()}


def success_response(
    request: Optional[Request],
    data: Any = None,
    message: str = "Request successful",
    status_code: int = status.HTTP_200_OK,
) -> JSONResponse:
    """Wrap ``data`` (pydantic models, dicts, lists) in a success envelope."""
    body = {
        "success": True,
        "message": message,
        "data": jsonable_encoder(data, by_alias=True),
        "error": None,
        "meta": build_meta(request),
    }
    return JSONResponse(status_code=status_code, content=body)


def error_response(
    request: Optional[Request],
    message: str,
    code: str,
    details: Any = None,
    status_code: int = status.HTTP_400_BAD_REQUEST,
    headers: Optional[dict] = None,
) -> JSONResponse:
    body = {
        "success": False,
        "message": message,
        "data": None,
        "error": {"code": code, "details": jsonable_encoder(details if details is not None else message)},
        "meta": build_meta(request),
    }
    return JSONResponse(status_code=status_code, content=body, headers=headers)
