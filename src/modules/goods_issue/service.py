"""Service for Goods Issue module."""

import logging
from collections import defaultdict
from datetime import datetime, timezone
from decimal import Decimal

from sqlalchemy import func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from src.core.actor import Actor
from src.core.audit import AuditAction, AuditService
from src.core.config import settings
from src.core.documents import get_document_number
from src.core.exceptions import NotFoundError
from src.modules.assets.models import Asset
from src.modules.assets.service import AssetService
from src.modules.goods_issue.models import GINItem, GINItemStatus, GoodsIssueNote
from src.modules.goods_issue.schemas import GINCreate, GINItemReturn
from src.modules.ledger.rules import Balances, apply_outgoing, apply_return
from src.shared.utils.money import round_money, round_quantity

logger = logging.getLogger(__name__)


class GoodsIssueService:
    """Issue of materials on GIN vouchers and their return."""

    def __init__(self, db: AsyncSession):
        self.db = db
        self.audit = AuditService(db)
        self.assets = AssetService(db)

    async def get_gin(self, gin_id: int) -> GoodsIssueNote:
        """Get GIN with items and their assets."""
        result = await self.db.execute(
            select(GoodsIssueNote)
            .options(selectinload(GoodsIssueNote.items).selectinload(GINItem.asset))
            .where(GoodsIssueNote.id == gin_id)
            .execution_options(populate_existing=True)
        )
        gin = result.scalar_one_or_none()
        if not gin:
            raise NotFoundError("Goods issue note", gin_id)
        return gin

    async def get_item(self, item_id: int) -> GINItem:
        result = await self.db.execute(
            select(GINItem)
            .options(selectinload(GINItem.asset), selectinload(GINItem.gin))
            .where(GINItem.id == item_id)
            .execution_options(populate_existing=True)
        )
        item = result.scalar_one_or_none()
        if not item:
            raise NotFoundError("GIN item", item_id)
        return item

    async def list_gins(
        self,
        search: str | None = None,
        page: int = 1,
        limit: int = 100,
    ) -> tuple[list[GoodsIssueNote], int]:
        """List GINs, newest first. Search matches number, recipient and project."""
        query = (
            select(GoodsIssueNote)
            .options(selectinload(GoodsIssueNote.items).selectinload(GINItem.asset))
            .order_by(GoodsIssueNote.issue_date.desc(), GoodsIssueNote.id.desc())
        )
        if search and search.strip():
            s = f"%{search.strip()}%"
            query = query.where(
                or_(
                    GoodsIssueNote.gin_number.ilike(s),
                    GoodsIssueNote.recipient.ilike(s),
                    GoodsIssueNote.project_name.ilike(s),
                )
            )

        total = (await self.db.execute(select(func.count()).select_from(query.subquery()))).scalar() or 0
        result = await self.db.execute(query.offset((page - 1) * limit).limit(limit))
        return list(result.scalars().all()), total

    async def list_returnable_items(self) -> list[GINItem]:
        """GIN lines with quantity still out."""
        result = await self.db.execute(
            select(GINItem)
            .options(selectinload(GINItem.asset), selectinload(GINItem.gin))
            .where(GINItem.status != GINItemStatus.RETURNED.value)
            .where(GINItem.asset_ref.is_not(None))
            .order_by(GINItem.created_at.desc(), GINItem.id.desc())
        )
        return list(result.scalars().all())

    async def create_gin(self, data: GINCreate, actor: Actor) -> GoodsIssueNote:
        """Issue stock. All lines are validated against stock before anything is written."""
        # Lock assets in id order; lines for the same asset draw on one running balance.
        asset_refs = sorted({line.asset_ref for line in data.items})
        assets: dict[int, Asset] = {}
        for asset_ref in asset_refs:
            assets[asset_ref] = await self.assets.get_asset(asset_ref, for_update=True)

        before = {ref: Balances.from_asset(asset) for ref, asset in assets.items()}
        after = dict(before)
        issued: dict[int, Decimal] = defaultdict(Decimal)
        for line in data.items:
            asset = assets[line.asset_ref]
            quantity = round_quantity(line.quantity)
            after[line.asset_ref] = apply_outgoing(
                after[line.asset_ref], quantity, asset_ref=asset.asset_id, track_allocation=False
            )
            issued[line.asset_ref] += quantity

        gin_number = await get_document_number(self.db, settings.gin_number_prefix)
        gin = GoodsIssueNote(
            gin_number=gin_number,
            recipient=data.recipient,
            purpose=data.purpose,
            project_name=data.project_name,
            notes=data.notes,
            created_by_id=actor.id,
            created_by_name=actor.name,
        )
        total_value = Decimal("0.00")
        for line in data.items:
            asset = assets[line.asset_ref]
            quantity = round_quantity(line.quantity)
            unit_cost = round_money(asset.cost_basis)
            total_cost = round_money(quantity * unit_cost)
            gin.items.append(
                GINItem(
                    asset_ref=asset.id,
                    quantity=quantity,
                    returned_quantity=Decimal("0"),
                    unit_cost=unit_cost,
                    total_cost=total_cost,
                    status=GINItemStatus.ISSUED.value,
                )
            )
            total_value += total_cost
        gin.total_value = round_money(total_value)
        self.db.add(gin)

        for ref, asset in assets.items():
            after[ref].write_to(asset)
        await self.db.flush()

        for ref, asset in assets.items():
            await self.audit.log(
                action=AuditAction.ISSUE_STOCK,
                entity_type="Asset",
                entity_id=asset.id,
                actor=actor,
                entity_identifier=asset.asset_id,
                old_values=before[ref].as_audit(),
                new_values={**after[ref].as_audit(), "issued_quantity": str(issued[ref])},
                comment=gin_number,
            )
        await self.db.commit()
        logger.info(
            "GIN %s issued: %d line(s), total %s",
            gin_number, len(data.items), gin.total_value,
        )
        return await self.get_gin(gin.id)

    async def return_item(self, item_id: int, data: GINItemReturn, actor: Actor) -> GINItem:
        """Return (part of) an issued line back into stock."""
        item = await self.get_item(item_id)
        if item.asset_ref is None:
            raise NotFoundError("Asset for GIN item", item_id)
        asset = await self.assets.get_asset(item.asset_ref, for_update=True)
        result = await self.db.execute(
            select(GINItem).where(GINItem.id == item_id).with_for_update()
            .execution_options(populate_existing=True)
        )
        item = result.scalar_one()

        return_quantity = round_quantity(data.return_quantity)
        before = Balances.from_asset(asset)
        after = apply_return(
            before,
            return_quantity,
            outstanding=item.outstanding_quantity,
            track_allocation=False,
        )

        item.returned_quantity = item.returned_quantity + return_quantity
        item.status = (
            GINItemStatus.RETURNED.value
            if item.returned_quantity >= item.quantity
            else GINItemStatus.PARTIAL_RETURNED.value
        )
        item.return_date = datetime.now(timezone.utc)
        item.return_condition = data.return_condition.value
        item.return_notes = data.return_notes
        after.write_to(asset)

        await self.audit.log(
            action=AuditAction.RETURN_ISSUE,
            entity_type="Asset",
            entity_id=asset.id,
            actor=actor,
            entity_identifier=asset.asset_id,
            old_values=before.as_audit(),
            new_values={
                **after.as_audit(),
                "gin_item_id": item.id,
                "returned_quantity": str(return_quantity),
            },
        )
        await self.db.commit()
        logger.info(
            "GIN item %s: %s returned to %s (%s/%s back)",
            item.id, return_quantity, asset.asset_id, item.returned_quantity, item.quantity,
        )
        return await self.get_item(item.id)

    async def delete_gin(self, gin_id: int, actor: Actor) -> None:
        """Delete a GIN and its lines. Issued stock is not put back."""
        gin = await self.get_gin(gin_id)
        gin_number = gin.gin_number
        await self.audit.log(
            action=AuditAction.DELETE_GIN,
            entity_type="GoodsIssueNote",
            entity_id=gin.id,
            actor=actor,
            entity_identifier=gin_number,
            old_values={
                "total_value": str(gin.total_value),
                "items": [
                    {
                        "asset_ref": item.asset_ref,
                        "quantity": str(item.quantity),
                        "returned_quantity": str(item.returned_quantity),
                    }
                    for item in gin.items
                ],
            },
        )
        await self.db.delete(gin)
        await self.db.commit()
        logger.info("GIN %s deleted (stock not reversed)", gin_number)
