"""Schemas for Goods Issue module."""

from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, Field

from src.modules.allocations.models import ReturnCondition


class GINItemCreate(BaseModel):
    asset_ref: int
    quantity: Decimal = Field(..., gt=0)


class GINCreate(BaseModel):
    """Schema for issuing materials on a goods issue note."""

    recipient: str | None = Field(None, max_length=200)
    purpose: str | None = None
    project_name: str | None = Field(None, max_length=300)
    notes: str | None = None
    items: list[GINItemCreate] = Field(..., min_length=1)


class GINItemReturn(BaseModel):
    return_quantity: Decimal = Field(..., gt=0)
    return_condition: ReturnCondition = ReturnCondition.GOOD
    return_notes: str | None = None


class GINItemResponse(BaseModel):
    id: int
    gin_id: int
    asset_ref: int | None
    asset_code: str | None = None
    asset_name: str | None = None
    quantity: Decimal
    returned_quantity: Decimal
    outstanding_quantity: Decimal
    unit_cost: Decimal
    total_cost: Decimal
    status: str
    return_date: datetime | None
    return_condition: str | None
    return_notes: str | None

    model_config = {"from_attributes": True}


class GINResponse(BaseModel):
    id: int
    gin_number: str
    issue_date: datetime
    recipient: str | None
    purpose: str | None
    project_name: str | None
    notes: str | None
    total_value: Decimal
    created_by_id: int | None
    created_by_name: str | None
    created_at: datetime
    items: list[GINItemResponse] = []

    model_config = {"from_attributes": True}


class ReturnableItemResponse(GINItemResponse):
    """GIN line with outstanding quantity, plus its voucher header."""

    gin_number: str
    recipient: str | None
    issue_date: datetime
