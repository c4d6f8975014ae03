"""rm_bidding REST endpoints.

GET  /listings/{listing_id}/bids                     bids, highest first (default: open)
POST /listings/{listing_id}/bids                     place a bid (rate limited)
POST /listings/{listing_id}/bids/{bid_id}/accept     seller accepts a bid
POST /admin/sweep                                    run the expiry sweep once (admin)
"""

from typing import Annotated, Literal

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.ext.asyncio import AsyncSession

from src.rm_bidding.application.schemas import PlaceBidRequest
from src.rm_bidding.application.service import BiddingService
from src.rm_common.database import get_db_session
from src.rm_common.response import ApiResponse, success_response
from src.rm_gateway.auth.dependencies import get_current_user, require_role
from src.rm_gateway.user.db_models import UserModel

router = APIRouter(prefix="/listings", tags=["bids"])
admin_router = APIRouter(prefix="/admin", tags=["admin"])

_service = BiddingService()


@router.get("/{listing_id}/bids")
async def list_bids(
    listing_id: str,
    request: Request,
    current_user: Annotated[UserModel, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    status: Literal["open", "accepted", "rejected", "expired", "ALL"] = Query(
        "open", description="Filter by bid status. Use ALL for every bid."
    ),
) -> ApiResponse:
    result = await _service.list_bids(db, listing_id, None if status == "ALL" else status)
    resp = success_response(result.model_dump())
    resp.request_id = getattr(request.state, "request_id", resp.request_id)
    return resp


@router.post("/{listing_id}/bids", status_code=201)
async def place_bid(
    listing_id: str,
    body: PlaceBidRequest,
    request: Request,
    current_user: Annotated[UserModel, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
) -> ApiResponse:
    result = await _service.place_bid(
        db, listing_id, str(current_user.id), body.amount_cents, body.expires_in_days
    )
    resp = success_response(result.model_dump())
    resp.request_id = getattr(request.state, "request_id", resp.request_id)
    return resp


@router.post("/{listing_id}/bids/{bid_id}/accept")
async def accept_bid(
    listing_id: str,
    bid_id: str,
    request: Request,
    current_user: Annotated[UserModel, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
) -> ApiResponse:
    result = await _service.accept_bid(db, listing_id, bid_id, str(current_user.id))
    resp = success_response(result.model_dump())
    resp.request_id = getattr(request.state, "request_id", resp.request_id)
    return resp


@admin_router.post("/sweep")
async def run_sweep(
    request: Request,
    current_user: Annotated[UserModel, Depends(require_role("admin"))],
    db: Annotated[AsyncSession, Depends(get_db_session)],
) -> ApiResponse:
    result = await _service.sweep_expired_bids(db)
    resp = success_response(result.model_dump())
    resp.request_id = getattr(request.state, "request_id", resp.request_id)
    return resp
