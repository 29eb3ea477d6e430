"""API endpoints for Alerts module."""

from datetime import date

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from src.core.database.session import get_db
from src.modules.alerts.schemas import LowStockAlert, OverdueAlert, UpcomingReturnAlert
from src.modules.alerts.service import AlertService
from src.modules.allocations.schemas import AllocationResponse
from src.shared.schemas.base import ApiResponse

router = APIRouter(prefix="/alerts", tags=["Alerts"])


@router.get(
    "/low-stock",
    response_model=ApiResponse[list[LowStockAlert]],
)
async def low_stock(
    limit: int = Query(100, ge=1, le=500),
    db: AsyncSession = Depends(get_db),
):
    """Assets at or below their minimum stock level."""
    assets = await AlertService(db).low_stock(limit=limit)
    return ApiResponse(
        success=True,
        data=[
            LowStockAlert(
                asset_ref=a.id,
                asset_id=a.asset_id,
                asset_name=a.asset_name,
                asset_type=a.asset_type,
                unit=a.unit,
                warehouse_name=a.warehouse_name,
                stock_quantity=a.stock_quantity,
                min_stock_level=a.min_stock_level,
                shortage=a.min_stock_level - a.stock_quantity,
            )
            for a in assets
        ],
    )


@router.get(
    "/overdue",
    response_model=ApiResponse[list[OverdueAlert]],
)
async def overdue(
    today: date | None = Query(None, description="Reference date, defaults to today"),
    db: AsyncSession = Depends(get_db),
):
    """Allocations past their expected return date."""
    rows = await AlertService(db).overdue_allocations(today=today)
    return ApiResponse(
        success=True,
        data=[OverdueAlert(allocation=AllocationResponse.from_allocation(a), days_overdue=d) for a, d in rows],
    )


@router.get(
    "/upcoming-returns",
    response_model=ApiResponse[list[UpcomingReturnAlert]],
)
async def upcoming_returns(
    days: int | None = Query(None, ge=0, le=365, description="Window in days, defaults to the reminder setting"),
    today: date | None = Query(None, description="Reference date, defaults to today"),
    db: AsyncSession = Depends(get_db),
):
    """Active allocations due back soon."""
    rows = await AlertService(db).upcoming_returns(today=today, days=days)
    return ApiResponse(
        success=True,
        data=[
            UpcomingReturnAlert(allocation=AllocationResponse.from_allocation(a), days_until_due=d)
            for a, d in rows
        ],
    )
