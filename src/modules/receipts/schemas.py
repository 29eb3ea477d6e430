"""Schemas for Goods Receipt module."""

from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, Field, model_validator

from src.modules.assets.models import AssetType


class NewAssetLine(BaseModel):
    """Asset created on the fly by a receipt line."""

    asset_id: str | None = Field(None, max_length=100)
    asset_name: str = Field(..., min_length=1, max_length=300)
    asset_type: AssetType
    sku: str | None = Field(None, max_length=100)
    unit: str | None = Field(None, max_length=50)
    brand: str | None = Field(None, max_length=200)
    warehouse_name: str | None = Field(None, max_length=200)
    cost_center: str | None = Field(None, max_length=200)
    is_consumable: bool = False
    min_stock_level: Decimal = Field(Decimal("0"), ge=0)


class GRNItemCreate(BaseModel):
    """Receipt line: either an existing asset (asset_ref) or a new one (new_asset)."""

    asset_ref: int | None = None
    new_asset: NewAssetLine | None = None
    quantity: Decimal = Field(..., gt=0)
    unit_cost: Decimal = Field(..., ge=0)

    @model_validator(mode="after")
    def validate_target(self):
        if (self.asset_ref is None) == (self.new_asset is None):
            raise ValueError("Exactly one of asset_ref or new_asset is required")
        return self


class GRNCreate(BaseModel):
    supplier: str | None = Field(None, max_length=300)
    notes: str | None = None
    items: list[GRNItemCreate] = Field(..., min_length=1)


class GRNItemResponse(BaseModel):
    id: int
    asset_ref: int | None
    asset_code: str | None = None
    asset_name: str | None = None
    quantity: Decimal
    unit_cost: Decimal
    total_cost: Decimal

    model_config = {"from_attributes": True}


class GRNResponse(BaseModel):
    id: int
    grn_number: str
    receipt_date: datetime
    supplier: str | None
    notes: str | None
    total_value: Decimal
    created_by_id: int | None
    created_by_name: str | None
    created_at: datetime
    items: list[GRNItemResponse] = []
