"""Allocation (checkout) of assets to employees or named recipients."""

from datetime import date, datetime
from decimal import Decimal
from enum import StrEnum

from sqlalchemy import BigInteger, Boolean, Date, DateTime, ForeignKey, Numeric, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from src.core.database.base import BaseModel, QuantityType


class AllocationStatus(StrEnum):
    """Allocation status enumeration."""

    ACTIVE = "active"
    RETURNED = "returned"  # Terminal: the row is immutable history
    OVERDUE = "overdue"  # Derived by scan: expected_return_date passed

    @property
    def is_open(self) -> bool:
        return self in (AllocationStatus.ACTIVE, AllocationStatus.OVERDUE)


class ReturnCondition(StrEnum):
    """Condition of returned goods."""

    GOOD = "good"
    DAMAGED = "damaged"
    NEEDS_REPAIR = "needs_repair"
    LOST = "lost"


class Allocation(BaseModel):
    """Checkout of equipment/tools (returnable) or materials (returnable or consumable)."""

    __tablename__ = "allocations"

    asset_ref: Mapped[int | None] = mapped_column(
        BigInteger, ForeignKey("assets.id", ondelete="SET NULL"), nullable=True, index=True
    )  # Null once the asset is deleted; the row stays as history
    quantity: Mapped[Decimal] = mapped_column(QuantityType, nullable=False)

    allocated_to: Mapped[int | None] = mapped_column(
        BigInteger, ForeignKey("employees.id"), nullable=True, index=True
    )
    allocated_to_name: Mapped[str] = mapped_column(
        String(200), nullable=False
    )  # Denormalized for display; free text when allocated_to is null
    allocated_by_id: Mapped[int | None] = mapped_column(BigInteger, nullable=True)
    allocated_by_name: Mapped[str | None] = mapped_column(String(200), nullable=True)
    purpose: Mapped[str] = mapped_column(Text, nullable=False)
    project_name: Mapped[str | None] = mapped_column(String(300), nullable=True)

    status: Mapped[str] = mapped_column(
        String(20), nullable=False, default=AllocationStatus.ACTIVE.value, index=True
    )
    is_consumed: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    consumed_quantity: Mapped[Decimal] = mapped_column(QuantityType, nullable=False, default=Decimal("0"))
    remaining_quantity: Mapped[Decimal] = mapped_column(QuantityType, nullable=False, default=Decimal("0"))
    reusability_percentage: Mapped[Decimal | None] = mapped_column(Numeric(5, 2), nullable=True)
    return_condition: Mapped[str | None] = mapped_column(String(30), nullable=True)

    expected_return_date: Mapped[date | None] = mapped_column(Date, nullable=True, index=True)
    actual_return_date: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    # Relationships
    asset: Mapped["Asset | None"] = relationship("Asset")
    employee: Mapped["Employee | None"] = relationship("Employee")

    @property
    def status_enum(self) -> AllocationStatus:
        return AllocationStatus(self.status)

    @property
    def outstanding_quantity(self) -> Decimal:
        """Quantity still checked out."""
        if not self.status_enum.is_open:
            return Decimal("0")
        return self.quantity - (self.consumed_quantity or Decimal("0"))


# Import at the end to avoid circular imports
from src.modules.assets.models import Asset  # noqa: E402
from src.modules.employees.models import Employee  # noqa: E402
