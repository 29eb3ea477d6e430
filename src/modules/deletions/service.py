"""Service for Deletions module.

Deleting moves (part of) an asset's on-hand stock into the deletion ledger
together with a snapshot of the asset; restoring books it back through the
receipt rule, into the same asset if it still exists or into a recreated one.
"""

import logging
from datetime import datetime, timezone
from decimal import Decimal

from sqlalchemy import func, or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from src.core.actor import Actor
from src.core.audit import AuditAction, AuditService
from src.core.exceptions import NotFoundError, ValidationError
from src.modules.allocations.models import Allocation, AllocationStatus
from src.modules.assets.models import Asset, AssetType
from src.modules.assets.schemas import AssetCreate, AssetDeleteRequest
from src.modules.assets.service import AssetService
from src.modules.deletions.models import AssetDeletionRecord
from src.modules.goods_issue.models import GINItem, GINItemStatus
from src.modules.ledger.rules import Balances, apply_receipt, apply_write_off
from src.modules.receipts.models import GRNItem
from src.shared.utils.money import floor_zero, round_money, round_quantity, to_decimal

logger = logging.getLogger(__name__)


def _snapshot(asset: Asset) -> dict:
    """Fields needed to recreate the asset later (JSON-safe)."""
    return {
        "asset_pk": asset.id,
        "unit": asset.unit,
        "brand": asset.brand,
        "warehouse_name": asset.warehouse_name,
        "is_consumable": asset.is_consumable,
        "min_stock_level": str(asset.min_stock_level),
        "useful_life_months": asset.useful_life_months,
        "depreciation_method": asset.depreciation_method,
        "notes": asset.notes,
        "original_cost_basis": str(asset.cost_basis),
        "original_stock_quantity": str(asset.stock_quantity),
        "original_closing_quantity": str(asset.closing_quantity),
        "original_closing_value": str(asset.closing_value),
    }


class DeletionService:
    """Deletion ledger: delete (write off) asset stock and restore it."""

    def __init__(self, db: AsyncSession):
        self.db = db
        self.audit = AuditService(db)
        self.assets = AssetService(db)

    async def get_record(self, record_id: int, *, for_update: bool = False) -> AssetDeletionRecord:
        query = select(AssetDeletionRecord).where(AssetDeletionRecord.id == record_id)
        if for_update:
            query = query.with_for_update().execution_options(populate_existing=True)
        result = await self.db.execute(query)
        record = result.scalar_one_or_none()
        if not record:
            raise NotFoundError("Deletion record", record_id)
        return record

    async def list_records(
        self,
        search: str | None = None,
        page: int = 1,
        limit: int = 100,
    ) -> tuple[list[AssetDeletionRecord], int]:
        """List deletion records, most recently deleted first."""
        query = select(AssetDeletionRecord).order_by(
            AssetDeletionRecord.deleted_at.desc(), AssetDeletionRecord.id.desc()
        )
        if search and search.strip():
            s = f"%{search.strip()}%"
            query = query.where(
                or_(
                    AssetDeletionRecord.asset_id.ilike(s),
                    AssetDeletionRecord.asset_name.ilike(s),
                    AssetDeletionRecord.sku.ilike(s),
                    AssetDeletionRecord.deletion_reason.ilike(s),
                )
            )

        total = (await self.db.execute(select(func.count()).select_from(query.subquery()))).scalar() or 0
        result = await self.db.execute(query.offset((page - 1) * limit).limit(limit))
        return list(result.scalars().all()), total

    async def _ensure_nothing_outstanding(self, asset: Asset) -> None:
        open_gin_items = (
            await self.db.execute(
                select(func.count(GINItem.id))
                .where(GINItem.asset_ref == asset.id)
                .where(GINItem.status != GINItemStatus.RETURNED.value)
            )
        ).scalar() or 0
        if open_gin_items:
            raise ValidationError(
                f"Asset {asset.asset_id} has {open_gin_items} goods issue line(s) not fully returned",
                field="asset_id",
            )

        open_allocations = (
            await self.db.execute(
                select(func.count(Allocation.id))
                .where(Allocation.asset_ref == asset.id)
                .where(
                    Allocation.status.in_(
                        [AllocationStatus.ACTIVE.value, AllocationStatus.OVERDUE.value]
                    )
                )
            )
        ).scalar() or 0
        if open_allocations:
            raise ValidationError(
                f"Asset {asset.asset_id} has {open_allocations} open allocation(s)",
                field="asset_id",
            )

    async def delete_asset(
        self, asset_pk: int, data: AssetDeleteRequest, actor: Actor
    ) -> tuple[AssetDeletionRecord, Asset | None]:
        """
        Move stock into the deletion ledger.

        The whole stock removes the asset row; a smaller quantity writes it off
        and keeps the asset. Returns (record, remaining asset or None).
        """
        reason = data.reason.strip()
        if not reason:
            raise ValidationError("Deletion reason is required", field="reason")

        asset = await self.assets.get_asset(asset_pk, for_update=True)
        stock = to_decimal(asset.stock_quantity)
        quantity = round_quantity(data.quantity) if data.quantity is not None else stock
        if quantity <= 0:
            raise ValidationError(f"Asset {asset.asset_id} has no stock to delete", field="quantity")
        if quantity > stock:
            raise ValidationError(
                f"Cannot delete {quantity}: only {stock} in stock", field="quantity"
            )
        await self._ensure_nothing_outstanding(asset)

        closing_quantity = to_decimal(asset.closing_quantity)
        if closing_quantity > 0:
            unit_cost = round_money(to_decimal(asset.closing_value) / closing_quantity)
        else:
            unit_cost = round_money(asset.cost_basis)

        record = AssetDeletionRecord(
            asset_id=asset.asset_id,
            asset_name=asset.asset_name,
            sku=asset.sku,
            asset_type=asset.asset_type,
            cost_center=asset.cost_center,
            unit_cost=unit_cost,
            stock_quantity=quantity,
            cost_basis=round_money(unit_cost * quantity),
            deleted_by_id=actor.id,
            deleted_by_name=actor.name,
            deleted_at=datetime.now(timezone.utc),
            deletion_reason=reason,
            original_data=_snapshot(asset),
            restoration_history=[],
        )
        self.db.add(record)

        before = Balances.from_asset(asset)
        remaining: Asset | None
        if quantity == stock:
            # History rows keep their data but lose the reference.
            for model in (Allocation, GINItem, GRNItem):
                await self.db.execute(
                    update(model).where(model.asset_ref == asset.id).values(asset_ref=None)
                )
            await self.db.delete(asset)
            remaining = None
            new_values = None
        else:
            after = apply_write_off(before, quantity, unit_cost, asset_ref=asset.asset_id)
            after.write_to(asset)
            remaining = asset
            new_values = after.as_audit()
        await self.db.flush()

        await self.audit.log(
            action=AuditAction.DELETE_ASSET,
            entity_type="Asset",
            entity_id=asset_pk,
            actor=actor,
            entity_identifier=record.asset_id,
            old_values=before.as_audit(),
            new_values={**(new_values or {}), "deleted_quantity": str(quantity), "deletion_record_id": record.id},
            comment=reason,
        )
        await self.db.commit()
        logger.info(
            "Asset %s: %s deleted into record %s (%s)",
            record.asset_id, quantity, record.id, "partial" if remaining is not None else "full",
        )

        record = await self.get_record(record.id)
        if remaining is not None:
            await self.db.refresh(remaining)
        return record, remaining

    async def restore(
        self, record_id: int, quantity: Decimal, actor: Actor
    ) -> tuple[Asset, AssetDeletionRecord | None]:
        """
        Restore deleted stock.

        Returns (asset, record); record is None when it was fully restored and removed.
        """
        record = await self.get_record(record_id, for_update=True)
        quantity = round_quantity(quantity)
        available = to_decimal(record.stock_quantity)
        if quantity <= 0 or quantity > available:
            raise ValidationError(
                f"Restore quantity must be between 0 and {available}", field="quantity"
            )

        unit_cost = round_money(record.unit_cost)
        restored_value = round_money(quantity * unit_cost)
        asset = await self.assets.find_by_code(record.asset_id, for_update=True)

        if asset is not None:
            before = Balances.from_asset(asset)
            after = apply_receipt(before, quantity, unit_cost)
            after.write_to(asset)
            old_values = before.as_audit()
        else:
            asset = await self.assets.create_asset(
                self._recreate_data(record, quantity), actor, commit=False, check_warehouse=False
            )
            after = Balances.from_asset(asset)
            old_values = None

        fully_restored = quantity == available
        if fully_restored:
            await self.db.delete(record)
        else:
            record.stock_quantity = available - quantity
            record.cost_basis = floor_zero(round_money(record.cost_basis) - restored_value)
            record.restoration_history.append(
                {
                    "restored_quantity": str(quantity),
                    "restored_value": str(restored_value),
                    "restored_by": actor.id,
                    "restored_by_name": actor.name,
                    "restored_at": datetime.now(timezone.utc).isoformat(),
                }
            )
        await self.db.flush()

        await self.audit.log(
            action=AuditAction.RESTORE_ASSET,
            entity_type="Asset",
            entity_id=asset.id,
            actor=actor,
            entity_identifier=asset.asset_id,
            old_values=old_values,
            new_values={
                **after.as_audit(),
                "restored_quantity": str(quantity),
                "deletion_record_id": record_id,
            },
        )
        await self.db.commit()
        logger.info(
            "Record %s: %s of %s restored (stock now %s)%s",
            record_id, quantity, asset.asset_id, asset.stock_quantity,
            ", record closed" if fully_restored else "",
        )

        await self.db.refresh(asset)
        if fully_restored:
            return asset, None
        return asset, await self.get_record(record_id)

    @staticmethod
    def _recreate_data(record: AssetDeletionRecord, quantity: Decimal) -> AssetCreate:
        snapshot = record.original_data or {}
        return AssetCreate(
            asset_id=record.asset_id,
            asset_name=record.asset_name,
            sku=record.sku,
            asset_type=AssetType(record.asset_type),
            unit=snapshot.get("unit"),
            brand=snapshot.get("brand"),
            warehouse_name=snapshot.get("warehouse_name"),
            cost_center=record.cost_center,
            is_consumable=bool(snapshot.get("is_consumable", False)),
            initial_quantity=quantity,
            unit_cost=record.unit_cost,
            min_stock_level=to_decimal(snapshot.get("min_stock_level")),
            useful_life_months=snapshot.get("useful_life_months"),
            depreciation_method=snapshot.get("depreciation_method"),
            notes=snapshot.get("notes"),
        )
