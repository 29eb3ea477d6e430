"""Service for Allocations module.

Lifecycle: active -> returned (full), active -> active(reduced) + returned(new
row) (partial), active -> returned/is_consumed (consumption), active -> overdue
(scan). Every operation locks the asset row, applies one ledger rule and
writes asset + allocation rows in a single transaction.
"""

import logging
from datetime import date, datetime, timedelta, timezone
from decimal import Decimal

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from src.core.actor import Actor
from src.core.audit import AuditAction, AuditService
from src.core.exceptions import ExcessiveReturnError, NotFoundError, ValidationError
from src.modules.allocations.models import Allocation, AllocationStatus
from src.modules.allocations.schemas import AllocationCreate, AllocationReturnRequest
from src.modules.assets.models import Asset
from src.modules.assets.service import AssetService
from src.modules.employees.service import EmployeeService
from src.modules.ledger.rules import (
    Balances,
    apply_consumption,
    apply_outgoing,
    apply_return,
)
from src.shared.utils.money import round_quantity

logger = logging.getLogger(__name__)


def _now() -> datetime:
    return datetime.now(timezone.utc)


class AllocationService:
    """Service for allocating assets and taking them back."""

    def __init__(self, db: AsyncSession):
        self.db = db
        self.audit = AuditService(db)
        self.assets = AssetService(db)

    async def get_allocation(self, allocation_id: int) -> Allocation:
        """Get allocation with asset and employee loaded."""
        result = await self.db.execute(
            select(Allocation)
            .options(selectinload(Allocation.asset), selectinload(Allocation.employee))
            .where(Allocation.id == allocation_id)
            .execution_options(populate_existing=True)
        )
        allocation = result.scalar_one_or_none()
        if not allocation:
            raise NotFoundError("Allocation", allocation_id)
        return allocation

    async def _lock(self, allocation_id: int) -> tuple[Allocation, Asset]:
        """Lock the asset, then the open allocation, for a ledger operation.

        Asset rows are always locked first so allocation, issue and deletion
        operations take locks in the same order.
        """
        row = (
            await self.db.execute(
                select(Allocation.asset_ref, Allocation.status).where(Allocation.id == allocation_id)
            )
        ).one_or_none()
        if row is None:
            raise NotFoundError("Allocation", allocation_id)
        self._ensure_open(allocation_id, row.status)
        asset = await self.assets.get_asset(row.asset_ref, for_update=True)

        result = await self.db.execute(
            select(Allocation).where(Allocation.id == allocation_id).with_for_update()
            .execution_options(populate_existing=True)
        )
        allocation = result.scalar_one()
        self._ensure_open(allocation_id, allocation.status)
        return allocation, asset

    @staticmethod
    def _ensure_open(allocation_id: int, status: str) -> None:
        if not AllocationStatus(status).is_open:
            # Double-submitted return/consume: the first one already settled the ledger.
            raise ValidationError(
                f"Allocation {allocation_id} is already {status}", field="status"
            )

    async def list_allocations(
        self,
        status: AllocationStatus | None = None,
        asset_ref: int | None = None,
        employee_id: int | None = None,
        page: int = 1,
        limit: int = 100,
    ) -> tuple[list[Allocation], int]:
        """List allocations, newest first."""
        query = (
            select(Allocation)
            .options(selectinload(Allocation.asset), selectinload(Allocation.employee))
            .order_by(Allocation.created_at.desc(), Allocation.id.desc())
        )
        if status is not None:
            query = query.where(Allocation.status == status.value)
        if asset_ref is not None:
            query = query.where(Allocation.asset_ref == asset_ref)
        if employee_id is not None:
            query = query.where(Allocation.allocated_to == employee_id)

        total = (await self.db.execute(select(func.count()).select_from(query.subquery()))).scalar() or 0
        result = await self.db.execute(query.offset((page - 1) * limit).limit(limit))
        return list(result.scalars().all()), total

    async def allocate(self, data: AllocationCreate, actor: Actor) -> Allocation:
        """Check an asset out to an employee or named recipient."""
        asset = await self.assets.get_asset(data.asset_ref, for_update=True)

        recipient_name = (data.allocated_to_name or "").strip()
        if data.allocated_to is not None:
            employee = await EmployeeService(self.db).get_employee(data.allocated_to)
            if not employee.is_active:
                raise ValidationError(
                    f"Employee {employee.employee_code} is inactive", field="allocated_to"
                )
            recipient_name = employee.full_name

        quantity = round_quantity(data.quantity)
        before = Balances.from_asset(asset)
        after = apply_outgoing(before, quantity, asset_ref=asset.asset_id, track_allocation=True)

        allocation = Allocation(
            asset_ref=asset.id,
            quantity=quantity,
            allocated_to=data.allocated_to,
            allocated_to_name=recipient_name,
            allocated_by_id=actor.id,
            allocated_by_name=actor.name,
            purpose=data.purpose.strip(),
            project_name=data.project_name,
            status=AllocationStatus.ACTIVE.value,
            is_consumed=False,
            consumed_quantity=Decimal("0"),
            remaining_quantity=quantity,
            expected_return_date=data.expected_return_date,
        )
        self.db.add(allocation)
        after.write_to(asset)
        await self.db.flush()

        await self.audit.log(
            action=AuditAction.ALLOCATE,
            entity_type="Asset",
            entity_id=asset.id,
            actor=actor,
            entity_identifier=asset.asset_id,
            old_values=before.as_audit(),
            new_values={**after.as_audit(), "allocation_id": allocation.id, "quantity": str(quantity)},
        )
        await self.db.commit()
        logger.info(
            "Allocated %s of %s to %s (stock %s -> %s)",
            quantity, asset.asset_id, recipient_name, before.stock_quantity, after.stock_quantity,
        )
        return await self.get_allocation(allocation.id)

    async def return_allocation(
        self, allocation_id: int, data: AllocationReturnRequest, actor: Actor
    ) -> tuple[Allocation, Allocation | None]:
        """Full or partial return, chosen by return_quantity.

        Returns (returned_row, still_open_row_or_None).
        """
        allocation, asset = await self._lock(allocation_id)
        outstanding = allocation.outstanding_quantity

        if data.return_quantity is not None:
            return_quantity = round_quantity(data.return_quantity)
            if return_quantity < outstanding:
                if data.consumed_quantity > 0:
                    raise ValidationError(
                        "Consumed quantity can only be recorded on a full return",
                        field="consumed_quantity",
                    )
                return await self.return_partial(allocation, asset, data, actor)
            if return_quantity > outstanding:
                raise ExcessiveReturnError(return_quantity, outstanding)

        returned = await self.return_full(allocation, asset, data, actor)
        return returned, None

    async def return_full(
        self,
        allocation: Allocation,
        asset: Asset,
        data: AllocationReturnRequest,
        actor: Actor,
    ) -> Allocation:
        """Return everything still out; for consumables part of it may be reported consumed."""
        consumed = round_quantity(data.consumed_quantity)
        if consumed > 0 and not asset.is_consumable:
            raise ValidationError(
                f"Asset {asset.asset_id} is not consumable", field="consumed_quantity"
            )
        if consumed > allocation.quantity:
            raise ValidationError(
                f"Consumed quantity {consumed} exceeds allocated quantity {allocation.quantity}",
                field="consumed_quantity",
            )
        if consumed == allocation.quantity:
            return await self._consume(allocation, asset, actor)

        return_quantity = allocation.quantity - consumed
        before = Balances.from_asset(asset)
        after = apply_return(
            before,
            return_quantity,
            outstanding=allocation.outstanding_quantity,
            track_allocation=True,
            reusability_percentage=data.reusability_percentage,
            release_quantity=allocation.quantity,
        )

        allocation.status = AllocationStatus.RETURNED.value
        allocation.actual_return_date = _now()
        allocation.return_condition = data.return_condition.value
        allocation.is_consumed = consumed > 0
        allocation.consumed_quantity = consumed
        allocation.remaining_quantity = return_quantity
        allocation.reusability_percentage = data.reusability_percentage
        after.write_to(asset)

        await self.audit.log(
            action=AuditAction.RETURN_ALLOCATION,
            entity_type="Asset",
            entity_id=asset.id,
            actor=actor,
            entity_identifier=asset.asset_id,
            old_values=before.as_audit(),
            new_values={
                **after.as_audit(),
                "allocation_id": allocation.id,
                "returned_quantity": str(return_quantity),
                "consumed_quantity": str(consumed),
            },
        )
        await self.db.commit()
        logger.info(
            "Allocation %s returned: %s back to %s, %s consumed (status %s)",
            allocation.id, return_quantity, asset.asset_id, consumed, after.status,
        )
        return await self.get_allocation(allocation.id)

    async def return_partial(
        self,
        allocation: Allocation,
        asset: Asset,
        data: AllocationReturnRequest,
        actor: Actor,
    ) -> tuple[Allocation, Allocation]:
        """Split the allocation: original keeps quantity - returned, a new returned row records the rest."""
        return_quantity = round_quantity(data.return_quantity)
        if not Decimal("0") < return_quantity < allocation.quantity:
            raise ValidationError(
                f"Partial return must be between 0 and {allocation.quantity}",
                field="return_quantity",
            )

        before = Balances.from_asset(asset)
        after = apply_return(
            before,
            return_quantity,
            outstanding=allocation.outstanding_quantity,
            track_allocation=True,
            reusability_percentage=data.reusability_percentage,
        )

        kept_quantity = allocation.quantity - return_quantity
        allocation.quantity = kept_quantity
        allocation.remaining_quantity = kept_quantity

        returned_row = Allocation(
            asset_ref=allocation.asset_ref,
            quantity=return_quantity,
            allocated_to=allocation.allocated_to,
            allocated_to_name=allocation.allocated_to_name,
            allocated_by_id=allocation.allocated_by_id,
            allocated_by_name=allocation.allocated_by_name,
            purpose=allocation.purpose,
            project_name=allocation.project_name,
            expected_return_date=allocation.expected_return_date,
            status=AllocationStatus.RETURNED.value,
            is_consumed=False,
            consumed_quantity=Decimal("0"),
            remaining_quantity=return_quantity,
            reusability_percentage=data.reusability_percentage,
            return_condition=data.return_condition.value,
            actual_return_date=_now(),
        )
        self.db.add(returned_row)
        after.write_to(asset)
        await self.db.flush()

        await self.audit.log(
            action=AuditAction.PARTIAL_RETURN_ALLOCATION,
            entity_type="Asset",
            entity_id=asset.id,
            actor=actor,
            entity_identifier=asset.asset_id,
            old_values=before.as_audit(),
            new_values={
                **after.as_audit(),
                "allocation_id": allocation.id,
                "returned_allocation_id": returned_row.id,
                "returned_quantity": str(return_quantity),
            },
        )
        await self.db.commit()
        logger.info(
            "Allocation %s partially returned: %s back, %s still out",
            allocation.id, return_quantity, kept_quantity,
        )
        return await self.get_allocation(returned_row.id), await self.get_allocation(allocation.id)

    async def mark_consumed(self, allocation_id: int, actor: Actor) -> Allocation:
        """Record the whole allocation as consumed (consumable materials only)."""
        allocation, asset = await self._lock(allocation_id)
        return await self._consume(allocation, asset, actor)

    async def _consume(self, allocation: Allocation, asset: Asset, actor: Actor) -> Allocation:
        if not asset.is_consumable:
            raise ValidationError(
                f"Asset {asset.asset_id} is not consumable and must be returned",
                field="is_consumed",
            )

        before = Balances.from_asset(asset)
        after = apply_consumption(before, allocation.quantity)

        allocation.status = AllocationStatus.RETURNED.value
        allocation.actual_return_date = _now()
        allocation.is_consumed = True
        allocation.consumed_quantity = allocation.quantity
        allocation.remaining_quantity = Decimal("0")
        allocation.reusability_percentage = Decimal("0")
        after.write_to(asset)

        await self.audit.log(
            action=AuditAction.CONSUME_ALLOCATION,
            entity_type="Asset",
            entity_id=asset.id,
            actor=actor,
            entity_identifier=asset.asset_id,
            old_values=before.as_audit(),
            new_values={
                **after.as_audit(),
                "allocation_id": allocation.id,
                "consumed_quantity": str(allocation.quantity),
            },
        )
        await self.db.commit()
        logger.info("Allocation %s consumed (%s of %s)", allocation.id, allocation.quantity, asset.asset_id)
        return await self.get_allocation(allocation.id)

    async def mark_overdue(self, actor: Actor, today: date | None = None) -> list[Allocation]:
        """Flip active allocations whose expected return date has passed to overdue."""
        today = today or date.today()
        result = await self.db.execute(
            select(Allocation)
            .where(Allocation.status == AllocationStatus.ACTIVE.value)
            .where(Allocation.expected_return_date.is_not(None))
            .where(Allocation.expected_return_date < today)
            .with_for_update()
        )
        allocations = list(result.scalars().all())
        for allocation in allocations:
            allocation.status = AllocationStatus.OVERDUE.value
            await self.audit.log(
                action=AuditAction.MARK_OVERDUE,
                entity_type="Allocation",
                entity_id=allocation.id,
                actor=actor,
                old_values={"status": AllocationStatus.ACTIVE.value},
                new_values={
                    "status": AllocationStatus.OVERDUE.value,
                    "expected_return_date": allocation.expected_return_date.isoformat(),
                },
            )
        await self.db.commit()
        if allocations:
            logger.info("Marked %d allocations overdue", len(allocations))
        return allocations

    async def list_upcoming_returns(
        self, days: int, today: date | None = None
    ) -> list[tuple[Allocation, int]]:
        """Active allocations due within `days`, with days until due."""
        today = today or date.today()
        horizon = today + timedelta(days=days)
        result = await self.db.execute(
            select(Allocation)
            .options(selectinload(Allocation.asset), selectinload(Allocation.employee))
            .where(Allocation.status == AllocationStatus.ACTIVE.value)
            .where(Allocation.expected_return_date.is_not(None))
            .where(Allocation.expected_return_date >= today)
            .where(Allocation.expected_return_date <= horizon)
            .order_by(Allocation.expected_return_date, Allocation.id)
        )
        return [
            (allocation, (allocation.expected_return_date - today).days)
            for allocation in result.scalars().all()
        ]
