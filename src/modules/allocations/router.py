"""API endpoints for Allocations module."""

from datetime import date

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from src.core.actor import CurrentActor
from src.core.database.session import get_db
from src.modules.allocations.models import AllocationStatus
from src.modules.allocations.schemas import (
    AllocationCreate,
    AllocationResponse,
    AllocationReturnRequest,
    AllocationReturnResponse,
)
from src.modules.allocations.service import AllocationService
from src.shared.schemas.base import ApiResponse, PaginatedResponse

router = APIRouter(prefix="/allocations", tags=["Allocations"])


@router.post(
    "",
    response_model=ApiResponse[AllocationResponse],
    status_code=status.HTTP_201_CREATED,
)
async def allocate_asset(
    data: AllocationCreate,
    actor: CurrentActor,
    db: AsyncSession = Depends(get_db),
):
    """Allocate an asset to an employee or a named recipient."""
    allocation = await AllocationService(db).allocate(data, actor)
    return ApiResponse(
        success=True,
        message="Asset allocated",
        data=AllocationResponse.from_allocation(allocation),
    )


@router.get(
    "",
    response_model=ApiResponse[PaginatedResponse[AllocationResponse]],
)
async def list_allocations(
    status_filter: AllocationStatus | None = Query(None, alias="status"),
    asset_ref: int | None = Query(None),
    employee_id: int | None = Query(None),
    page: int = Query(1, ge=1),
    limit: int = Query(100, ge=1, le=500),
    db: AsyncSession = Depends(get_db),
):
    """List allocations, newest first."""
    allocations, total = await AllocationService(db).list_allocations(
        status=status_filter,
        asset_ref=asset_ref,
        employee_id=employee_id,
        page=page,
        limit=limit,
    )
    return ApiResponse(
        success=True,
        data=PaginatedResponse.create(
            items=[AllocationResponse.from_allocation(a) for a in allocations],
            total=total,
            page=page,
            limit=limit,
        ),
    )


@router.post(
    "/overdue/scan",
    response_model=ApiResponse[list[AllocationResponse]],
)
async def scan_overdue(
    actor: CurrentActor,
    today: date | None = Query(None, description="Reference date, defaults to today"),
    db: AsyncSession = Depends(get_db),
):
    """Mark active allocations past their expected return date as overdue."""
    service = AllocationService(db)
    marked = await service.mark_overdue(actor, today=today)
    return ApiResponse(
        success=True,
        message=f"{len(marked)} allocation(s) marked overdue",
        data=[AllocationResponse.from_allocation(await service.get_allocation(a.id)) for a in marked],
    )


@router.get(
    "/{allocation_id}",
    response_model=ApiResponse[AllocationResponse],
)
async def get_allocation(
    allocation_id: int,
    db: AsyncSession = Depends(get_db),
):
    """Get allocation by ID."""
    allocation = await AllocationService(db).get_allocation(allocation_id)
    return ApiResponse(success=True, data=AllocationResponse.from_allocation(allocation))


@router.post(
    "/{allocation_id}/return",
    response_model=ApiResponse[AllocationReturnResponse],
)
async def return_allocation(
    allocation_id: int,
    data: AllocationReturnRequest,
    actor: CurrentActor,
    db: AsyncSession = Depends(get_db),
):
    """Return an allocation in full, or partially when return_quantity is below the outstanding quantity."""
    returned, remaining = await AllocationService(db).return_allocation(allocation_id, data, actor)
    return ApiResponse(
        success=True,
        message="Allocation returned" if remaining is None else "Allocation partially returned",
        data=AllocationReturnResponse(
            returned=AllocationResponse.from_allocation(returned),
            remaining=AllocationResponse.from_allocation(remaining) if remaining is not None else None,
        ),
    )


@router.post(
    "/{allocation_id}/consume",
    response_model=ApiResponse[AllocationResponse],
)
async def consume_allocation(
    allocation_id: int,
    actor: CurrentActor,
    db: AsyncSession = Depends(get_db),
):
    """Record a consumable allocation as fully used up."""
    allocation = await AllocationService(db).mark_consumed(allocation_id, actor)
    return ApiResponse(
        success=True,
        message="Allocation consumed",
        data=AllocationResponse.from_allocation(allocation),
    )
