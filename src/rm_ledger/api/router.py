"""rm_ledger REST endpoints.

GET /listings/{listing_id}/sales    sale history, newest first
GET /listings/{listing_id}/stats    last / 30-day avg / high / low / count
"""

from typing import Annotated

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.ext.asyncio import AsyncSession

from src.rm_common.database import get_db_session
from src.rm_common.response import ApiResponse, success_response
from src.rm_gateway.auth.dependencies import get_current_user
from src.rm_gateway.user.db_models import UserModel
from src.rm_ledger.application.service import LedgerService

router = APIRouter(prefix="/listings", tags=["ledger"])

_service = LedgerService()


@router.get("/{listing_id}/sales")
async def list_sales(
    listing_id: str,
    request: Request,
    current_user: Annotated[UserModel, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    limit: int = Query(50, ge=1, le=200),
) -> ApiResponse:
    result = await _service.list_sales(db, listing_id, limit)
    resp = success_response(result.model_dump())
    resp.request_id = getattr(request.state, "request_id", resp.request_id)
    return resp


@router.get("/{listing_id}/stats")
async def get_stats(
    listing_id: str,
    request: Request,
    current_user: Annotated[UserModel, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
) -> ApiResponse:
    result = await _service.get_stats(db, listing_id)
    resp = success_response(result.model_dump())
    resp.request_id = getattr(request.state, "request_id", resp.request_id)
    return resp
