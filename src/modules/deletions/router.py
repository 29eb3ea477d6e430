"""API endpoints for Deletions module."""

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from src.core.actor import CurrentActor
from src.core.database.session import get_db
from src.modules.assets.schemas import AssetResponse
from src.modules.deletions.schemas import (
    DeletionRecordResponse,
    RestoreRequest,
    RestoreResponse,
)
from src.modules.deletions.service import DeletionService
from src.shared.schemas.base import ApiResponse, PaginatedResponse

router = APIRouter(prefix="/asset-deletions", tags=["Asset Deletions"])


@router.get(
    "",
    response_model=ApiResponse[PaginatedResponse[DeletionRecordResponse]],
)
async def list_deletion_records(
    search: str | None = Query(None, description="Search by code, name, SKU or reason"),
    page: int = Query(1, ge=1),
    limit: int = Query(100, ge=1, le=500),
    db: AsyncSession = Depends(get_db),
):
    """List deleted asset stock that can still be restored."""
    records, total = await DeletionService(db).list_records(search=search, page=page, limit=limit)
    return ApiResponse(
        success=True,
        data=PaginatedResponse.create(
            items=[DeletionRecordResponse.model_validate(r) for r in records],
            total=total,
            page=page,
            limit=limit,
        ),
    )


@router.get(
    "/{record_id}",
    response_model=ApiResponse[DeletionRecordResponse],
)
async def get_deletion_record(
    record_id: int,
    db: AsyncSession = Depends(get_db),
):
    """Get deletion record by ID."""
    record = await DeletionService(db).get_record(record_id)
    return ApiResponse(success=True, data=DeletionRecordResponse.model_validate(record))


@router.post(
    "/{record_id}/restore",
    response_model=ApiResponse[RestoreResponse],
)
async def restore_deleted_stock(
    record_id: int,
    data: RestoreRequest,
    actor: CurrentActor,
    db: AsyncSession = Depends(get_db),
):
    """Restore (part of) the deleted stock into the asset."""
    asset, record = await DeletionService(db).restore(record_id, data.quantity, actor)
    return ApiResponse(
        success=True,
        message="Stock restored" if record is not None else "Stock fully restored",
        data=RestoreResponse(
            asset=AssetResponse.model_validate(asset),
            record=DeletionRecordResponse.model_validate(record) if record is not None else None,
        ),
    )
