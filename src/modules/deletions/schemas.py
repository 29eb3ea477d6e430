"""Schemas for Deletions module."""

from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, Field

from src.modules.assets.schemas import AssetResponse


class RestoreRequest(BaseModel):
    quantity: Decimal = Field(..., gt=0, description="Quantity to restore into stock")


class RestorationEntry(BaseModel):
    restored_quantity: Decimal
    restored_value: Decimal
    restored_by: int | None
    restored_by_name: str | None
    restored_at: datetime


class DeletionRecordResponse(BaseModel):
    """Schema for deletion record response."""

    id: int
    asset_id: str
    asset_name: str
    sku: str | None
    asset_type: str
    cost_center: str | None
    unit_cost: Decimal
    stock_quantity: Decimal
    cost_basis: Decimal
    deleted_by_id: int | None
    deleted_by_name: str | None
    deleted_at: datetime
    deletion_reason: str
    original_data: dict
    restoration_history: list[RestorationEntry]

    model_config = {"from_attributes": True}


class RestoreResponse(BaseModel):
    """Asset after restore; record is None once everything has been restored."""

    asset: AssetResponse
    record: DeletionRecordResponse | None = None


class DeleteAssetResponse(BaseModel):
    """Deletion record, plus the remaining asset on a partial deletion."""

    record: DeletionRecordResponse
    asset: AssetResponse | None = None
