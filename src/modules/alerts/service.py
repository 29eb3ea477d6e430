"""Service for Alerts module."""

from datetime import date

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from src.core.actor import SYSTEM_ACTOR
from src.core.config import settings
from src.modules.allocations.models import Allocation, AllocationStatus
from src.modules.allocations.service import AllocationService
from src.modules.assets.models import Asset


class AlertService:
    """Read-side alerts over assets and allocations."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def low_stock(self, limit: int = 100) -> list[Asset]:
        """Assets with a minimum level set and stock at or below it, most short first."""
        result = await self.db.execute(
            select(Asset)
            .where(Asset.min_stock_level > 0)
            .where(Asset.stock_quantity <= Asset.min_stock_level)
            .order_by((Asset.min_stock_level - Asset.stock_quantity).desc(), Asset.asset_name)
            .limit(limit)
        )
        return list(result.scalars().all())

    async def overdue_allocations(self, today: date | None = None) -> list[tuple[Allocation, int]]:
        """Flag newly overdue allocations, then list all overdue ones with days overdue."""
        today = today or date.today()
        await AllocationService(self.db).mark_overdue(SYSTEM_ACTOR, today=today)
        result = await self.db.execute(
            select(Allocation)
            .options(selectinload(Allocation.asset), selectinload(Allocation.employee))
            .where(Allocation.status == AllocationStatus.OVERDUE.value)
            .order_by(Allocation.expected_return_date, Allocation.id)
            .execution_options(populate_existing=True)
        )
        return [
            (allocation, (today - allocation.expected_return_date).days)
            for allocation in result.scalars().all()
        ]

    async def upcoming_returns(
        self, today: date | None = None, days: int | None = None
    ) -> list[tuple[Allocation, int]]:
        """Active allocations due within the reminder window."""
        if days is None:
            days = settings.return_reminder_days
        return await AllocationService(self.db).list_upcoming_returns(days, today=today)
