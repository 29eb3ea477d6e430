"""API endpoints for Warehouses module."""

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from src.core.database.session import get_db
from src.modules.warehouses.schemas import WarehouseCreate, WarehouseResponse, WarehouseUpdate
from src.modules.warehouses.service import WarehouseService
from src.shared.schemas.base import ApiResponse

router = APIRouter(prefix="/warehouses", tags=["Warehouses"])


@router.post(
    "",
    response_model=ApiResponse[WarehouseResponse],
    status_code=status.HTTP_201_CREATED,
)
async def create_warehouse(
    data: WarehouseCreate,
    db: AsyncSession = Depends(get_db),
):
    """Create a warehouse."""
    warehouse = await WarehouseService(db).create_warehouse(data)
    return ApiResponse(
        success=True,
        message="Warehouse created",
        data=WarehouseResponse.model_validate(warehouse),
    )


@router.get(
    "",
    response_model=ApiResponse[list[WarehouseResponse]],
)
async def list_warehouses(
    active_only: bool = Query(False),
    db: AsyncSession = Depends(get_db),
):
    """List warehouses by name."""
    warehouses = await WarehouseService(db).list_warehouses(active_only=active_only)
    return ApiResponse(
        success=True,
        data=[WarehouseResponse.model_validate(w) for w in warehouses],
    )


@router.get(
    "/{warehouse_id}",
    response_model=ApiResponse[WarehouseResponse],
)
async def get_warehouse(
    warehouse_id: int,
    db: AsyncSession = Depends(get_db),
):
    """Get warehouse by ID."""
    warehouse = await WarehouseService(db).get_warehouse(warehouse_id)
    return ApiResponse(success=True, data=WarehouseResponse.model_validate(warehouse))


@router.patch(
    "/{warehouse_id}",
    response_model=ApiResponse[WarehouseResponse],
)
async def update_warehouse(
    warehouse_id: int,
    data: WarehouseUpdate,
    db: AsyncSession = Depends(get_db),
):
    """Update name, description or active flag."""
    warehouse = await WarehouseService(db).update_warehouse(warehouse_id, data)
    return ApiResponse(
        success=True,
        message="Warehouse updated",
        data=WarehouseResponse.model_validate(warehouse),
    )


@router.delete(
    "/{warehouse_id}",
    response_model=ApiResponse[None],
)
async def delete_warehouse(
    warehouse_id: int,
    db: AsyncSession = Depends(get_db),
):
    """Delete a warehouse that no asset references."""
    await WarehouseService(db).delete_warehouse(warehouse_id)
    return ApiResponse(success=True, message="Warehouse deleted", data=None)
