"""Schemas for Employees module."""

from pydantic import BaseModel, Field


class EmployeeCreate(BaseModel):
    employee_code: str = Field(..., min_length=1, max_length=50)
    full_name: str = Field(..., min_length=1, max_length=200)
    department: str | None = Field(None, max_length=200)
    email: str | None = Field(None, max_length=255)


class EmployeeResponse(BaseModel):
    id: int
    employee_code: str
    full_name: str
    department: str | None
    email: str | None
    is_active: bool

    model_config = {"from_attributes": True}
