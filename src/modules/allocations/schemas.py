"""Schemas for Allocations module."""

from datetime import date, datetime
from decimal import Decimal

from pydantic import BaseModel, Field, model_validator

from src.modules.allocations.models import ReturnCondition


class AllocationCreate(BaseModel):
    """Schema for allocating an asset to an employee or a named recipient."""

    asset_ref: int = Field(..., description="Asset primary key")
    quantity: Decimal = Field(Decimal("1"), gt=0)
    allocated_to: int | None = Field(None, description="Employee ID")
    allocated_to_name: str | None = Field(
        None, max_length=200, description="Free-text recipient when not an employee"
    )
    purpose: str = Field(..., min_length=1)
    project_name: str | None = Field(None, max_length=300)
    expected_return_date: date | None = None

    @model_validator(mode="after")
    def validate_recipient(self):
        if self.allocated_to is None and not (self.allocated_to_name or "").strip():
            raise ValueError("allocated_to or allocated_to_name is required")
        return self


class AllocationReturnRequest(BaseModel):
    """Return of an allocation.

    return_quantity below the outstanding quantity makes a partial return
    (the allocation is split); omitted or equal means a full return.
    """

    return_quantity: Decimal | None = Field(None, gt=0)
    consumed_quantity: Decimal = Field(Decimal("0"), ge=0)
    reusability_percentage: Decimal = Field(Decimal("100"), ge=0, le=100)
    return_condition: ReturnCondition = ReturnCondition.GOOD


class AllocationResponse(BaseModel):
    """Schema for allocation response."""

    id: int
    asset_ref: int | None
    asset_code: str | None = None
    asset_name: str | None = None
    quantity: Decimal
    allocated_to: int | None
    allocated_to_name: str
    allocated_by_id: int | None
    allocated_by_name: str | None
    purpose: str
    project_name: str | None
    status: str
    is_consumed: bool
    consumed_quantity: Decimal
    remaining_quantity: Decimal
    reusability_percentage: Decimal | None
    return_condition: str | None
    expected_return_date: date | None
    actual_return_date: datetime | None
    created_at: datetime

    model_config = {"from_attributes": True}

    @classmethod
    def from_allocation(cls, allocation) -> "AllocationResponse":
        """Build from an Allocation with its asset loaded."""
        response = cls.model_validate(allocation)
        if allocation.asset is not None:
            response.asset_code = allocation.asset.asset_id
            response.asset_name = allocation.asset.asset_name
        return response


class AllocationReturnResponse(BaseModel):
    """Rows touched by a return: the returned row, plus the still-open row on a partial return."""

    returned: AllocationResponse
    remaining: AllocationResponse | None = None
