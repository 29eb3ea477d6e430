"""Schemas for Assets module."""

from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, Field

from src.modules.assets.models import AssetType


class AssetCreate(BaseModel):
    """Schema for creating an asset (manual entry).

    A positive initial_quantity is booked as a receipt at unit_cost.
    """

    asset_id: str | None = Field(None, max_length=100, description="Business code; generated when omitted")
    asset_name: str = Field(..., min_length=1, max_length=300)
    sku: str | None = Field(None, max_length=100)
    asset_type: AssetType
    unit: str | None = Field(None, max_length=50)
    brand: str | None = Field(None, max_length=200)
    warehouse_name: str | None = Field(None, max_length=200)
    cost_center: str | None = Field(None, max_length=200)
    is_consumable: bool = False
    initial_quantity: Decimal = Field(Decimal("0"), ge=0)
    unit_cost: Decimal = Field(Decimal("0"), ge=0)
    min_stock_level: Decimal = Field(Decimal("0"), ge=0)
    useful_life_months: int | None = Field(None, ge=0)
    depreciation_method: str | None = Field(None, max_length=50)
    notes: str | None = None


class AssetUpdate(BaseModel):
    """Descriptive fields only; balances change through ledger operations."""

    asset_name: str | None = Field(None, min_length=1, max_length=300)
    sku: str | None = Field(None, max_length=100)
    unit: str | None = Field(None, max_length=50)
    brand: str | None = Field(None, max_length=200)
    warehouse_name: str | None = Field(None, max_length=200)
    cost_center: str | None = Field(None, max_length=200)
    is_consumable: bool | None = None
    min_stock_level: Decimal | None = Field(None, ge=0)
    useful_life_months: int | None = Field(None, ge=0)
    depreciation_method: str | None = Field(None, max_length=50)
    notes: str | None = None


class AssetResponse(BaseModel):
    """Schema for asset response."""

    id: int
    asset_id: str
    asset_name: str
    sku: str | None
    asset_type: str
    unit: str | None
    brand: str | None
    warehouse_name: str | None
    cost_center: str | None
    is_consumable: bool
    cost_basis: Decimal
    opening_quantity: Decimal
    opening_value: Decimal
    inbound_quantity: Decimal
    inbound_value: Decimal
    outbound_quantity: Decimal
    outbound_value: Decimal
    closing_quantity: Decimal
    closing_value: Decimal
    stock_quantity: Decimal
    allocated_quantity: Decimal
    current_status: str
    min_stock_level: Decimal
    useful_life_months: int | None
    depreciation_method: str | None
    notes: str | None
    version: int
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class AssetDeleteRequest(BaseModel):
    """Move (part of) an asset's stock into the deletion ledger."""

    reason: str = Field(..., min_length=1, description="Reason for deletion")
    quantity: Decimal | None = Field(None, gt=0, description="Defaults to the whole stock")


class AuditEntryResponse(BaseModel):
    """Ledger history entry for an asset."""

    id: int
    action: str
    user_id: int | None
    user_name: str | None
    old_values: dict | None
    new_values: dict | None
    comment: str | None
    created_at: datetime

    model_config = {"from_attributes": True}
