"""Service for Goods Receipt module."""

import logging
from decimal import Decimal

from sqlalchemy import func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from src.core.actor import Actor
from src.core.config import settings
from src.core.documents import get_document_number
from src.core.exceptions import NotFoundError
from src.modules.assets.models import Asset
from src.modules.assets.schemas import AssetCreate
from src.modules.assets.service import AssetService
from src.modules.receipts.models import GoodsReceiptNote, GRNItem
from src.modules.receipts.schemas import GRNCreate
from src.shared.utils.money import round_money, round_quantity

logger = logging.getLogger(__name__)


class GoodsReceiptService:
    """Receipt of stock on GRN vouchers."""

    def __init__(self, db: AsyncSession):
        self.db = db
        self.assets = AssetService(db)

    async def get_grn(self, grn_id: int) -> GoodsReceiptNote:
        result = await self.db.execute(
            select(GoodsReceiptNote)
            .options(selectinload(GoodsReceiptNote.items).selectinload(GRNItem.asset))
            .where(GoodsReceiptNote.id == grn_id)
            .execution_options(populate_existing=True)
        )
        grn = result.scalar_one_or_none()
        if not grn:
            raise NotFoundError("Goods receipt note", grn_id)
        return grn

    async def list_grns(
        self,
        search: str | None = None,
        page: int = 1,
        limit: int = 100,
    ) -> tuple[list[GoodsReceiptNote], int]:
        """List GRNs, newest first."""
        query = (
            select(GoodsReceiptNote)
            .options(selectinload(GoodsReceiptNote.items).selectinload(GRNItem.asset))
            .order_by(GoodsReceiptNote.receipt_date.desc(), GoodsReceiptNote.id.desc())
        )
        if search and search.strip():
            s = f"%{search.strip()}%"
            query = query.where(
                or_(GoodsReceiptNote.grn_number.ilike(s), GoodsReceiptNote.supplier.ilike(s))
            )

        total = (await self.db.execute(select(func.count()).select_from(query.subquery()))).scalar() or 0
        result = await self.db.execute(query.offset((page - 1) * limit).limit(limit))
        return list(result.scalars().all()), total

    async def create_grn(self, data: GRNCreate, actor: Actor) -> GoodsReceiptNote:
        """
        Receive stock.

        Existing assets are locked in id order; new assets are created with
        zero balances and then go through the same receipt rule.
        """
        existing: dict[int, Asset] = {}
        for asset_ref in sorted({line.asset_ref for line in data.items if line.asset_ref is not None}):
            existing[asset_ref] = await self.assets.get_asset(asset_ref, for_update=True)

        grn_number = await get_document_number(self.db, settings.grn_number_prefix)
        grn = GoodsReceiptNote(
            grn_number=grn_number,
            supplier=data.supplier,
            notes=data.notes,
            created_by_id=actor.id,
            created_by_name=actor.name,
        )

        total_value = Decimal("0.00")
        for line in data.items:
            quantity = round_quantity(line.quantity)
            unit_cost = round_money(line.unit_cost)
            if line.asset_ref is not None:
                asset = existing[line.asset_ref]
            else:
                asset = await self.assets.create_asset(
                    AssetCreate(**line.new_asset.model_dump()), actor, commit=False
                )
            await self.assets.receive(asset, quantity, unit_cost, actor, reference=grn_number)

            total_cost = round_money(quantity * unit_cost)
            grn.items.append(
                GRNItem(asset_ref=asset.id, quantity=quantity, unit_cost=unit_cost, total_cost=total_cost)
            )
            total_value += total_cost

        grn.total_value = round_money(total_value)
        self.db.add(grn)
        await self.db.commit()
        logger.info("GRN %s received: %d line(s), total %s", grn_number, len(data.items), grn.total_value)
        return await self.get_grn(grn.id)
