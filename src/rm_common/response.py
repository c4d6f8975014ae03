"""Response envelope shared by every endpoint.

Success: {"code": 0, "message": "success", "data": {...}, ...}
Error:   {"code": 3003, "message": "...", "data": <error details or null>, ...}

`timestamp` is ISO-8601 UTC; `request_id` is the id RequestLogMiddleware put
on request.state, so a client can quote it back when reporting a failure.
"""

import uuid
from datetime import datetime, timezone
from typing import Any

from fastapi import Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from src.rm_common.errors import AppError, RateLimitedError


class ApiResponse(BaseModel):
    code: int = 0
    message: str = "success"
    data: Any = None
    timestamp: str = Field(default_factory=lambda: datetime.now(timezone.utc).isoformat())
    request_id: str = Field(default_factory=lambda: f"req_{uuid.uuid4().hex[:12]}")


def success_response(data: Any = None) -> ApiResponse:
    return ApiResponse(code=0, message="success", data=data)


def error_response(code: int, message: str, data: Any = None) -> ApiResponse:
    return ApiResponse(code=code, message=message, data=data)


def app_error_json(exc: AppError, request: Request) -> JSONResponse:
    """Render an AppError with its category's HTTP status.

    A rate-limited caller also gets `Retry-After` so plain HTTP clients can
    back off without parsing the body.
    """
    resp = error_response(exc.code, exc.message, exc.details)
    resp.request_id = getattr(request.state, "request_id", resp.request_id)
    headers: dict[str, str] = {}
    if isinstance(exc, RateLimitedError):
        headers["Retry-After"] = str(exc.retry_after_seconds)
    return JSONResponse(
        status_code=exc.http_status,
        content=resp.model_dump(),
        headers=headers or None,
    )
