"""Schemas for Alerts module."""

from decimal import Decimal

from pydantic import BaseModel

from src.modules.allocations.schemas import AllocationResponse


class LowStockAlert(BaseModel):
    asset_ref: int
    asset_id: str
    asset_name: str
    asset_type: str
    unit: str | None
    warehouse_name: str | None
    stock_quantity: Decimal
    min_stock_level: Decimal
    shortage: Decimal


class OverdueAlert(BaseModel):
    allocation: AllocationResponse
    days_overdue: int


class UpcomingReturnAlert(BaseModel):
    allocation: AllocationResponse
    days_until_due: int
