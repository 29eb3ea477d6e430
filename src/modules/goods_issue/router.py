"""API endpoints for Goods Issue module."""

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from src.core.actor import CurrentActor
from src.core.database.session import get_db
from src.modules.goods_issue.models import GINItem, GoodsIssueNote
from src.modules.goods_issue.schemas import (
    GINCreate,
    GINItemResponse,
    GINItemReturn,
    GINResponse,
    ReturnableItemResponse,
)
from src.modules.goods_issue.service import GoodsIssueService
from src.shared.schemas.base import ApiResponse, PaginatedResponse

router = APIRouter(prefix="/goods-issues", tags=["Goods Issue"])


def _item_to_response(item: GINItem) -> GINItemResponse:
    response = GINItemResponse.model_validate(item)
    if item.asset is not None:
        response.asset_code = item.asset.asset_id
        response.asset_name = item.asset.asset_name
    return response


def _gin_to_response(gin: GoodsIssueNote) -> GINResponse:
    return GINResponse(
        id=gin.id,
        gin_number=gin.gin_number,
        issue_date=gin.issue_date,
        recipient=gin.recipient,
        purpose=gin.purpose,
        project_name=gin.project_name,
        notes=gin.notes,
        total_value=gin.total_value,
        created_by_id=gin.created_by_id,
        created_by_name=gin.created_by_name,
        created_at=gin.created_at,
        items=[_item_to_response(item) for item in gin.items],
    )


@router.post(
    "",
    response_model=ApiResponse[GINResponse],
    status_code=status.HTTP_201_CREATED,
)
async def create_gin(
    data: GINCreate,
    actor: CurrentActor,
    db: AsyncSession = Depends(get_db),
):
    """Issue materials on a new goods issue note."""
    gin = await GoodsIssueService(db).create_gin(data, actor)
    return ApiResponse(
        success=True,
        message=f"Goods issue note {gin.gin_number} created",
        data=_gin_to_response(gin),
    )


@router.get(
    "",
    response_model=ApiResponse[PaginatedResponse[GINResponse]],
)
async def list_gins(
    search: str | None = Query(None, description="Search by number, recipient or project"),
    page: int = Query(1, ge=1),
    limit: int = Query(100, ge=1, le=500),
    db: AsyncSession = Depends(get_db),
):
    """List goods issue notes, newest first."""
    gins, total = await GoodsIssueService(db).list_gins(search=search, page=page, limit=limit)
    return ApiResponse(
        success=True,
        data=PaginatedResponse.create(
            items=[_gin_to_response(g) for g in gins],
            total=total,
            page=page,
            limit=limit,
        ),
    )


@router.get(
    "/items/returnable",
    response_model=ApiResponse[list[ReturnableItemResponse]],
)
async def list_returnable_items(
    db: AsyncSession = Depends(get_db),
):
    """GIN lines with quantity still outstanding."""
    items = await GoodsIssueService(db).list_returnable_items()
    return ApiResponse(
        success=True,
        data=[
            ReturnableItemResponse(
                **_item_to_response(item).model_dump(),
                gin_number=item.gin.gin_number,
                recipient=item.gin.recipient,
                issue_date=item.gin.issue_date,
            )
            for item in items
        ],
    )


@router.post(
    "/items/{item_id}/return",
    response_model=ApiResponse[GINItemResponse],
)
async def return_gin_item(
    item_id: int,
    data: GINItemReturn,
    actor: CurrentActor,
    db: AsyncSession = Depends(get_db),
):
    """Return (part of) an issued line."""
    item = await GoodsIssueService(db).return_item(item_id, data, actor)
    return ApiResponse(
        success=True,
        message="Goods returned",
        data=_item_to_response(item),
    )


@router.get(
    "/{gin_id}",
    response_model=ApiResponse[GINResponse],
)
async def get_gin(
    gin_id: int,
    db: AsyncSession = Depends(get_db),
):
    """Get goods issue note by ID."""
    gin = await GoodsIssueService(db).get_gin(gin_id)
    return ApiResponse(success=True, data=_gin_to_response(gin))


@router.delete(
    "/{gin_id}",
    response_model=ApiResponse[None],
)
async def delete_gin(
    gin_id: int,
    actor: CurrentActor,
    db: AsyncSession = Depends(get_db),
):
    """Delete a goods issue note. Issued stock is not returned to the warehouse."""
    await GoodsIssueService(db).delete_gin(gin_id, actor)
    return ApiResponse(success=True, message="Goods issue note deleted", data=None)
