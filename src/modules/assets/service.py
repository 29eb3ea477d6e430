"""Service for Assets module."""

import logging
from decimal import Decimal

from sqlalchemy import func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from src.core.actor import Actor
from src.core.audit import AuditAction, AuditService, list_audit_entries
from src.core.audit.models import AuditLog
from src.core.config import settings
from src.core.exceptions import DuplicateError, NotFoundError, ValidationError
from src.modules.assets.models import Asset, AssetStatus, AssetType
from src.modules.assets.schemas import AssetCreate, AssetUpdate
from src.modules.ledger.rules import Balances, apply_receipt
from src.modules.warehouses.service import WarehouseService
from src.shared.utils.asset_code import generate_asset_code

logger = logging.getLogger(__name__)


class AssetService:
    """Asset master data and the receipt entry point of the ledger."""

    def __init__(self, db: AsyncSession):
        self.db = db
        self.audit = AuditService(db)
        self.warehouses = WarehouseService(db)

    async def get_asset(self, asset_pk: int, *, for_update: bool = False) -> Asset:
        """Get asset by primary key.

        for_update locks the row until the transaction ends; every ledger
        operation reads balances this way.
        """
        query = select(Asset).where(Asset.id == asset_pk)
        if for_update:
            query = query.with_for_update().execution_options(populate_existing=True)
        result = await self.db.execute(query)
        asset = result.scalar_one_or_none()
        if not asset:
            raise NotFoundError("Asset", asset_pk)
        return asset

    async def find_by_code(self, asset_id: str, *, for_update: bool = False) -> Asset | None:
        query = select(Asset).where(Asset.asset_id == asset_id)
        if for_update:
            query = query.with_for_update().execution_options(populate_existing=True)
        result = await self.db.execute(query)
        return result.scalar_one_or_none()

    async def get_by_code(self, asset_id: str) -> Asset:
        asset = await self.find_by_code(asset_id)
        if not asset:
            raise NotFoundError(f"Asset with code {asset_id}")
        return asset

    async def list_assets(
        self,
        asset_type: AssetType | None = None,
        status: AssetStatus | None = None,
        search: str | None = None,
        in_stock_only: bool = False,
        page: int = 1,
        limit: int = 100,
    ) -> tuple[list[Asset], int]:
        """List assets with optional filters, ordered by name."""
        query = select(Asset).order_by(Asset.asset_name, Asset.id)

        if asset_type is not None:
            query = query.where(Asset.asset_type == asset_type.value)
        if status is not None:
            query = query.where(Asset.current_status == status.value)
        if in_stock_only:
            query = query.where(Asset.stock_quantity > 0)
        if search and search.strip():
            s = f"%{search.strip()}%"
            query = query.where(
                or_(Asset.asset_name.ilike(s), Asset.asset_id.ilike(s), Asset.sku.ilike(s))
            )

        count_query = select(func.count()).select_from(query.subquery())
        total = (await self.db.execute(count_query)).scalar() or 0

        query = query.offset((page - 1) * limit).limit(limit)
        result = await self.db.execute(query)
        return list(result.scalars().all()), total

    async def create_asset(
        self, data: AssetCreate, actor: Actor, commit: bool = True, check_warehouse: bool = True
    ) -> Asset:
        """Create an asset. A positive initial quantity goes through the receipt rule.

        An explicit warehouse_name must be an active warehouse; without one the
        default warehouse is used. Restores pass check_warehouse=False to keep
        the warehouse recorded at deletion time.
        """
        warehouse_name = (data.warehouse_name or "").strip() or None
        if warehouse_name and check_warehouse:
            warehouse_name = await self.warehouses.ensure_active(warehouse_name)
        asset_id = (data.asset_id or "").strip() or generate_asset_code(
            data.asset_name, data.asset_type, data.brand
        )
        if await self.find_by_code(asset_id):
            raise DuplicateError("Asset", "asset_id", asset_id)

        asset = Asset(
            asset_id=asset_id,
            asset_name=data.asset_name.strip(),
            sku=data.sku or asset_id,
            asset_type=data.asset_type.value,
            unit=data.unit,
            brand=data.brand,
            warehouse_name=warehouse_name or settings.default_warehouse_name,
            cost_center=data.cost_center or warehouse_name or settings.default_warehouse_name,
            is_consumable=data.is_consumable or data.asset_type == AssetType.MATERIALS,
            cost_basis=Decimal("0.00"),
            min_stock_level=data.min_stock_level,
            useful_life_months=data.useful_life_months,
            depreciation_method=data.depreciation_method,
            notes=data.notes,
        )
        Balances().write_to(asset)
        if data.initial_quantity > 0:
            apply_receipt(Balances(), data.initial_quantity, data.unit_cost).write_to(asset)
        else:
            asset.cost_basis = data.unit_cost

        self.db.add(asset)
        await self.db.flush()

        await self.audit.log(
            action=AuditAction.CREATE,
            entity_type="Asset",
            entity_id=asset.id,
            actor=actor,
            entity_identifier=asset.asset_id,
            new_values=Balances.from_asset(asset).as_audit(),
        )
        logger.info(
            "Asset %s created (stock=%s, cost_basis=%s)",
            asset.asset_id, asset.stock_quantity, asset.cost_basis,
        )

        if commit:
            await self.db.commit()
            await self.db.refresh(asset)
        return asset

    async def update_asset(
        self, asset_pk: int, data: AssetUpdate, actor: Actor
    ) -> Asset:
        """Update descriptive fields. Ledger balances are not accepted here."""
        asset = await self.get_asset(asset_pk, for_update=True)
        changes = data.model_dump(exclude_unset=True)
        for key in ("asset_name", "is_consumable", "min_stock_level"):
            if changes.get(key, ...) is None:
                changes.pop(key)
        if changes.get("is_consumable") is False and asset.asset_type == AssetType.MATERIALS.value:
            raise ValidationError("Materials are always consumable", field="is_consumable")
        if changes.get("warehouse_name"):
            changes["warehouse_name"] = await self.warehouses.ensure_active(changes["warehouse_name"])
        old_values = {key: str(getattr(asset, key)) for key in changes}
        for key, value in changes.items():
            setattr(asset, key, value)

        await self.audit.log(
            action=AuditAction.UPDATE,
            entity_type="Asset",
            entity_id=asset.id,
            actor=actor,
            entity_identifier=asset.asset_id,
            old_values=old_values,
            new_values={key: str(value) for key, value in changes.items()},
        )
        await self.db.commit()
        await self.db.refresh(asset)
        return asset

    async def receive(
        self,
        asset: Asset,
        quantity: Decimal,
        unit_cost: Decimal,
        actor: Actor,
        reference: str | None = None,
    ) -> Asset:
        """Apply the receipt rule to a locked asset row (no commit)."""
        before = Balances.from_asset(asset)
        after = apply_receipt(before, quantity, unit_cost)
        after.write_to(asset)

        await self.audit.log(
            action=AuditAction.RECEIVE_STOCK,
            entity_type="Asset",
            entity_id=asset.id,
            actor=actor,
            entity_identifier=asset.asset_id,
            old_values=before.as_audit(),
            new_values={**after.as_audit(), "received_quantity": str(quantity), "unit_cost": str(unit_cost)},
            comment=reference,
        )
        logger.info(
            "Received %s of %s at %s (stock %s -> %s)",
            quantity, asset.asset_id, unit_cost, before.stock_quantity, after.stock_quantity,
        )
        return asset

    async def get_history(
        self, asset_pk: int, page: int = 1, limit: int = 50
    ) -> tuple[list[AuditLog], int]:
        """Ledger history (audit entries) of an asset, newest first."""
        await self.get_asset(asset_pk)
        return await list_audit_entries(
            self.db, entity_type="Asset", entity_id=asset_pk, page=page, limit=limit
        )
