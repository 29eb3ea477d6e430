"""API endpoints for Goods Receipt module."""

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from src.core.actor import CurrentActor
from src.core.database.session import get_db
from src.modules.receipts.models import GoodsReceiptNote
from src.modules.receipts.schemas import GRNCreate, GRNItemResponse, GRNResponse
from src.modules.receipts.service import GoodsReceiptService
from src.shared.schemas.base import ApiResponse, PaginatedResponse

router = APIRouter(prefix="/goods-receipts", tags=["Goods Receipt"])


def _to_response(grn: GoodsReceiptNote) -> GRNResponse:
    return GRNResponse(
        id=grn.id,
        grn_number=grn.grn_number,
        receipt_date=grn.receipt_date,
        supplier=grn.supplier,
        notes=grn.notes,
        total_value=grn.total_value,
        created_by_id=grn.created_by_id,
        created_by_name=grn.created_by_name,
        created_at=grn.created_at,
        items=[
            GRNItemResponse(
                id=item.id,
                asset_ref=item.asset_ref,
                asset_code=item.asset.asset_id if item.asset else None,
                asset_name=item.asset.asset_name if item.asset else None,
                quantity=item.quantity,
                unit_cost=item.unit_cost,
                total_cost=item.total_cost,
            )
            for item in grn.items
        ],
    )


@router.post(
    "",
    response_model=ApiResponse[GRNResponse],
    status_code=status.HTTP_201_CREATED,
)
async def create_grn(
    data: GRNCreate,
    actor: CurrentActor,
    db: AsyncSession = Depends(get_db),
):
    """Receive stock on a new goods receipt note."""
    grn = await GoodsReceiptService(db).create_grn(data, actor)
    return ApiResponse(
        success=True,
        message=f"Goods receipt note {grn.grn_number} created",
        data=_to_response(grn),
    )


@router.get(
    "",
    response_model=ApiResponse[PaginatedResponse[GRNResponse]],
)
async def list_grns(
    search: str | None = Query(None, description="Search by number or supplier"),
    page: int = Query(1, ge=1),
    limit: int = Query(100, ge=1, le=500),
    db: AsyncSession = Depends(get_db),
):
    """List goods receipt notes, newest first."""
    grns, total = await GoodsReceiptService(db).list_grns(search=search, page=page, limit=limit)
    return ApiResponse(
        success=True,
        data=PaginatedResponse.create(
            items=[_to_response(g) for g in grns],
            total=total,
            page=page,
            limit=limit,
        ),
    )


@router.get(
    "/{grn_id}",
    response_model=ApiResponse[GRNResponse],
)
async def get_grn(
    grn_id: int,
    db: AsyncSession = Depends(get_db),
):
    """Get goods receipt note by ID."""
    grn = await GoodsReceiptService(db).get_grn(grn_id)
    return ApiResponse(success=True, data=_to_response(grn))
