"""rm_listing REST endpoints.

GET    /listings                        list with filters + cursor pagination
POST   /listings                        create (seller/admin)
GET    /listings/{listing_id}           detail (lazy expiry sweep, cached)
PATCH  /listings/{listing_id}/ask       owner updates ask price
DELETE /listings/{listing_id}           owner deletes while available
POST   /listings/{listing_id}/buy       buy-now one unit
"""

from typing import Annotated

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.ext.asyncio import AsyncSession

from src.rm_common.database import get_db_session
from src.rm_common.response import ApiResponse, success_response
from src.rm_gateway.auth.dependencies import get_current_user, require_role
from src.rm_gateway.user.db_models import UserModel
from src.rm_listing.application.schemas import CreateListingRequest, UpdateAskRequest
from src.rm_listing.application.service import ListingService
from src.rm_listing.domain.models import ListingFilters

router = APIRouter(prefix="/listings", tags=["listings"])

_service = ListingService()


@router.get("")
async def list_listings(
    request: Request,
    current_user: Annotated[UserModel, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    status: str | None = Query(
        None, description="Filter by status. Default: available. Use ALL for no filter."
    ),
    cuisine: str | None = Query(None),
    location: str | None = Query(None, description="Substring match on location"),
    seller_id: str | None = Query(None),
    min_price_cents: int | None = Query(None, ge=0),
    max_price_cents: int | None = Query(None, ge=0),
    limit: int = Query(20, ge=1, le=100),
    cursor: str | None = Query(None),
) -> ApiResponse:
    filters = ListingFilters(
        status=None if status == "ALL" else (status or "available"),
        cuisine=cuisine,
        location=location,
        seller_id=seller_id,
        min_price_cents=min_price_cents,
        max_price_cents=max_price_cents,
    )
    result = await _service.list_listings(db, filters, cursor, limit)
    resp = success_response(result.model_dump())
    resp.request_id = getattr(request.state, "request_id", resp.request_id)
    return resp


@router.post("", status_code=201)
async def create_listing(
    body: CreateListingRequest,
    request: Request,
    current_user: Annotated[UserModel, Depends(require_role("seller", "admin"))],
    db: Annotated[AsyncSession, Depends(get_db_session)],
) -> ApiResponse:
    result = await _service.create_listing(db, str(current_user.id), body)
    resp = success_response(result.model_dump())
    resp.request_id = getattr(request.state, "request_id", resp.request_id)
    return resp


@router.get("/{listing_id}")
async def get_listing(
    listing_id: str,
    request: Request,
    current_user: Annotated[UserModel, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
) -> ApiResponse:
    result = await _service.get_listing(db, listing_id)
    resp = success_response(result.model_dump())
    resp.request_id = getattr(request.state, "request_id", resp.request_id)
    return resp


@router.patch("/{listing_id}/ask")
async def update_ask(
    listing_id: str,
    body: UpdateAskRequest,
    request: Request,
    current_user: Annotated[UserModel, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
) -> ApiResponse:
    result = await _service.update_ask(db, listing_id, str(current_user.id), body.price_cents)
    resp = success_response(result.model_dump())
    resp.request_id = getattr(request.state, "request_id", resp.request_id)
    return resp


@router.delete("/{listing_id}")
async def delete_listing(
    listing_id: str,
    request: Request,
    current_user: Annotated[UserModel, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
) -> ApiResponse:
    await _service.delete_listing(db, listing_id, str(current_user.id))
    resp = success_response({"id": listing_id, "deleted": True})
    resp.request_id = getattr(request.state, "request_id", resp.request_id)
    return resp


@router.post("/{listing_id}/buy")
async def buy_now(
    listing_id: str,
    request: Request,
    current_user: Annotated[UserModel, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
) -> ApiResponse:
    result = await _service.buy_now(
        db, listing_id, str(current_user.id), current_user.public_name
    )
    resp = success_response(result.model_dump())
    resp.request_id = getattr(request.state, "request_id", resp.request_id)
    return resp
