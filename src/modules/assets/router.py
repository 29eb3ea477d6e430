"""API endpoints for Assets module."""

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from src.core.actor import CurrentActor
from src.core.database.session import get_db
from src.modules.assets.models import AssetStatus, AssetType
from src.modules.assets.schemas import (
    AssetCreate,
    AssetDeleteRequest,
    AssetResponse,
    AssetUpdate,
    AuditEntryResponse,
)
from src.modules.assets.service import AssetService
from src.modules.deletions.schemas import DeleteAssetResponse, DeletionRecordResponse
from src.modules.deletions.service import DeletionService
from src.shared.schemas.base import ApiResponse, PaginatedResponse

router = APIRouter(prefix="/assets", tags=["Assets"])


@router.post(
    "",
    response_model=ApiResponse[AssetResponse],
    status_code=status.HTTP_201_CREATED,
)
async def create_asset(
    data: AssetCreate,
    actor: CurrentActor,
    db: AsyncSession = Depends(get_db),
):
    """Create an asset. A positive initial quantity is booked as inbound stock."""
    asset = await AssetService(db).create_asset(data, actor)
    return ApiResponse(
        success=True,
        message=f"Asset {asset.asset_id} created",
        data=AssetResponse.model_validate(asset),
    )


@router.get(
    "",
    response_model=ApiResponse[PaginatedResponse[AssetResponse]],
)
async def list_assets(
    asset_type: AssetType | None = Query(None),
    status_filter: AssetStatus | None = Query(None, alias="status"),
    search: str | None = Query(None, description="Search by name, code or SKU"),
    in_stock_only: bool = Query(False),
    page: int = Query(1, ge=1),
    limit: int = Query(100, ge=1, le=500),
    db: AsyncSession = Depends(get_db),
):
    """List assets."""
    assets, total = await AssetService(db).list_assets(
        asset_type=asset_type,
        status=status_filter,
        search=search,
        in_stock_only=in_stock_only,
        page=page,
        limit=limit,
    )
    return ApiResponse(
        success=True,
        data=PaginatedResponse.create(
            items=[AssetResponse.model_validate(a) for a in assets],
            total=total,
            page=page,
            limit=limit,
        ),
    )


@router.get(
    "/by-code/{asset_code}",
    response_model=ApiResponse[AssetResponse],
)
async def get_asset_by_code(
    asset_code: str,
    db: AsyncSession = Depends(get_db),
):
    """Get asset by business code."""
    asset = await AssetService(db).get_by_code(asset_code)
    return ApiResponse(success=True, data=AssetResponse.model_validate(asset))


@router.get(
    "/{asset_pk}",
    response_model=ApiResponse[AssetResponse],
)
async def get_asset(
    asset_pk: int,
    db: AsyncSession = Depends(get_db),
):
    """Get asset by ID."""
    asset = await AssetService(db).get_asset(asset_pk)
    return ApiResponse(success=True, data=AssetResponse.model_validate(asset))


@router.patch(
    "/{asset_pk}",
    response_model=ApiResponse[AssetResponse],
)
async def update_asset(
    asset_pk: int,
    data: AssetUpdate,
    actor: CurrentActor,
    db: AsyncSession = Depends(get_db),
):
    """Update descriptive fields of an asset."""
    asset = await AssetService(db).update_asset(asset_pk, data, actor)
    return ApiResponse(
        success=True,
        message="Asset updated",
        data=AssetResponse.model_validate(asset),
    )


@router.get(
    "/{asset_pk}/history",
    response_model=ApiResponse[PaginatedResponse[AuditEntryResponse]],
)
async def get_asset_history(
    asset_pk: int,
    page: int = Query(1, ge=1),
    limit: int = Query(50, ge=1, le=500),
    db: AsyncSession = Depends(get_db),
):
    """Ledger history of an asset, newest first."""
    entries, total = await AssetService(db).get_history(asset_pk, page=page, limit=limit)
    return ApiResponse(
        success=True,
        data=PaginatedResponse.create(
            items=[AuditEntryResponse.model_validate(e) for e in entries],
            total=total,
            page=page,
            limit=limit,
        ),
    )


@router.post(
    "/{asset_pk}/delete",
    response_model=ApiResponse[DeleteAssetResponse],
)
async def delete_asset(
    asset_pk: int,
    data: AssetDeleteRequest,
    actor: CurrentActor,
    db: AsyncSession = Depends(get_db),
):
    """Move the asset's stock (or part of it) into the deletion ledger."""
    record, remaining = await DeletionService(db).delete_asset(asset_pk, data, actor)
    return ApiResponse(
        success=True,
        message="Asset deleted" if remaining is None else "Stock partially deleted",
        data=DeleteAssetResponse(
            record=DeletionRecordResponse.model_validate(record),
            asset=AssetResponse.model_validate(remaining) if remaining is not None else None,
        ),
    )
