"""API endpoints for Employees module."""

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from src.core.database.session import get_db
from src.modules.employees.schemas import EmployeeCreate, EmployeeResponse
from src.modules.employees.service import EmployeeService
from src.shared.schemas.base import ApiResponse, PaginatedResponse

router = APIRouter(prefix="/employees", tags=["Employees"])


@router.post(
    "",
    response_model=ApiResponse[EmployeeResponse],
    status_code=status.HTTP_201_CREATED,
)
async def create_employee(
    data: EmployeeCreate,
    db: AsyncSession = Depends(get_db),
):
    """Create an employee."""
    employee = await EmployeeService(db).create_employee(data)
    return ApiResponse(
        success=True,
        message="Employee created",
        data=EmployeeResponse.model_validate(employee),
    )


@router.get(
    "",
    response_model=ApiResponse[PaginatedResponse[EmployeeResponse]],
)
async def list_employees(
    search: str | None = Query(None),
    active_only: bool = Query(True),
    page: int = Query(1, ge=1),
    limit: int = Query(100, ge=1, le=500),
    db: AsyncSession = Depends(get_db),
):
    """List employees."""
    employees, total = await EmployeeService(db).list_employees(
        search=search, active_only=active_only, page=page, limit=limit
    )
    return ApiResponse(
        success=True,
        data=PaginatedResponse.create(
            items=[EmployeeResponse.model_validate(e) for e in employees],
            total=total,
            page=page,
            limit=limit,
        ),
    )


@router.get(
    "/{employee_id}",
    response_model=ApiResponse[EmployeeResponse],
)
async def get_employee(
    employee_id: int,
    db: AsyncSession = Depends(get_db),
):
    """Get employee by ID."""
    employee = await EmployeeService(db).get_employee(employee_id)
    return ApiResponse(success=True, data=EmployeeResponse.model_validate(employee))
