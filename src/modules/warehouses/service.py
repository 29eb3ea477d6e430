"""Service for Warehouses module."""

import logging

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from src.core.exceptions import DuplicateError, NotFoundError, ValidationError
from src.modules.assets.models import Asset
from src.modules.warehouses.models import Warehouse
from src.modules.warehouses.schemas import WarehouseCreate, WarehouseUpdate

logger = logging.getLogger(__name__)


class WarehouseService:
    """Warehouse directory; asset rows point at a warehouse by its name."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def _find_by_name(self, name: str) -> Warehouse | None:
        result = await self.db.execute(select(Warehouse).where(Warehouse.name == name))
        return result.scalar_one_or_none()

    async def _assets_using(self, name: str) -> int:
        result = await self.db.execute(
            select(func.count(Asset.id)).where(Asset.warehouse_name == name)
        )
        return result.scalar_one()

    async def create_warehouse(self, data: WarehouseCreate) -> Warehouse:
        name = data.name.strip()
        if not name:
            raise ValidationError("Warehouse name is required", field="name")
        if await self._find_by_name(name):
            raise DuplicateError("Warehouse", "name", name)

        warehouse = Warehouse(
            name=name,
            description=(data.description or "").strip() or None,
            is_active=data.is_active,
        )
        self.db.add(warehouse)
        await self.db.commit()
        await self.db.refresh(warehouse)
        logger.info("Warehouse %s created", name)
        return warehouse

    async def get_warehouse(self, warehouse_id: int) -> Warehouse:
        result = await self.db.execute(select(Warehouse).where(Warehouse.id == warehouse_id))
        warehouse = result.scalar_one_or_none()
        if not warehouse:
            raise NotFoundError("Warehouse", warehouse_id)
        return warehouse

    async def list_warehouses(self, active_only: bool = False) -> list[Warehouse]:
        query = select(Warehouse).order_by(Warehouse.name)
        if active_only:
            query = query.where(Warehouse.is_active.is_(True))
        result = await self.db.execute(query)
        return list(result.scalars().all())

    async def update_warehouse(self, warehouse_id: int, data: WarehouseUpdate) -> Warehouse:
        """Update a warehouse. A name still referenced by assets cannot change."""
        warehouse = await self.get_warehouse(warehouse_id)
        changes = data.model_dump(exclude_unset=True)

        name = changes.pop("name", None)
        if name is not None and name.strip() != warehouse.name:
            name = name.strip()
            if await self._find_by_name(name):
                raise DuplicateError("Warehouse", "name", name)
            in_use = await self._assets_using(warehouse.name)
            if in_use:
                raise ValidationError(
                    f"Warehouse {warehouse.name} is used by {in_use} asset(s) and cannot be renamed",
                    field="name",
                )
            warehouse.name = name
        if "description" in changes:
            warehouse.description = (changes["description"] or "").strip() or None
        if changes.get("is_active") is not None:
            warehouse.is_active = changes["is_active"]

        await self.db.commit()
        await self.db.refresh(warehouse)
        return warehouse

    async def delete_warehouse(self, warehouse_id: int) -> None:
        """Delete a warehouse no asset points at."""
        warehouse = await self.get_warehouse(warehouse_id)
        in_use = await self._assets_using(warehouse.name)
        if in_use:
            raise ValidationError(
                f"Warehouse {warehouse.name} is used by {in_use} asset(s)", field="name"
            )
        await self.db.delete(warehouse)
        await self.db.commit()
        logger.info("Warehouse %s deleted", warehouse.name)

    async def ensure_active(self, name: str) -> str:
        """Return the stripped name of an active warehouse, else raise ValidationError."""
        name = name.strip()
        warehouse = await self._find_by_name(name)
        if warehouse is None or not warehouse.is_active:
            raise ValidationError(f"Unknown or inactive warehouse: {name}", field="warehouse_name")
        return warehouse.name
