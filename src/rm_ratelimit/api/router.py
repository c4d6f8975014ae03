"""rm_ratelimit REST endpoints.

GET /bids/rate-limit   advisory countdown for the bid gate (read-only)
"""

from typing import Annotated

from fastapi import APIRouter, Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from src.rm_common.database import get_db_session
from src.rm_common.datetime_utils import utc_now
from src.rm_common.response import ApiResponse, success_response
from src.rm_gateway.auth.dependencies import get_current_user
from src.rm_gateway.user.db_models import UserModel
from src.rm_ratelimit.application.schemas import RateLimitStatusResponse
from src.rm_ratelimit.application.service import RateLimiter, bid_policy

router = APIRouter(prefix="/bids", tags=["bids"])

_limiter = RateLimiter()


@router.get("/rate-limit")
async def get_bid_rate_limit(
    request: Request,
    current_user: Annotated[UserModel, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
) -> ApiResponse:
    now = utc_now()
    status = await _limiter.status(db, str(current_user.id), bid_policy(), now)
    resp = success_response(RateLimitStatusResponse.from_domain(status, now).model_dump())
    resp.request_id = getattr(request.state, "request_id", resp.request_id)
    return resp
