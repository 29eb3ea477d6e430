"""Goods issue notes (phiếu xuất kho) for consumable materials."""

from datetime import datetime
from decimal import Decimal
from enum import StrEnum

from sqlalchemy import BigInteger, DateTime, ForeignKey, String, Text, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from src.core.database.base import BaseModel, MoneyType, QuantityType


class GINItemStatus(StrEnum):
    """GIN line status. Transitions are monotonic: issued -> partial_returned -> returned."""

    ISSUED = "issued"
    PARTIAL_RETURNED = "partial_returned"
    RETURNED = "returned"


class GoodsIssueNote(BaseModel):
    """Voucher documenting an issue of materials out of the warehouse."""

    __tablename__ = "goods_issue_notes"

    gin_number: Mapped[str] = mapped_column(String(50), nullable=False, unique=True, index=True)
    issue_date: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False, index=True
    )
    recipient: Mapped[str | None] = mapped_column(String(200), nullable=True)
    purpose: Mapped[str | None] = mapped_column(Text, nullable=True)
    project_name: Mapped[str | None] = mapped_column(String(300), nullable=True)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    total_value: Mapped[Decimal] = mapped_column(MoneyType, nullable=False, default=Decimal("0.00"))
    created_by_id: Mapped[int | None] = mapped_column(BigInteger, nullable=True)
    created_by_name: Mapped[str | None] = mapped_column(String(200), nullable=True)

    items: Mapped[list["GINItem"]] = relationship(
        "GINItem",
        back_populates="gin",
        cascade="all, delete-orphan",
        order_by="GINItem.id",
    )


class GINItem(BaseModel):
    """Line of a GIN. Updated in place on every return, never split."""

    __tablename__ = "gin_items"

    gin_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("goods_issue_notes.id", ondelete="CASCADE"), nullable=False, index=True
    )
    asset_ref: Mapped[int | None] = mapped_column(
        BigInteger, ForeignKey("assets.id", ondelete="SET NULL"), nullable=True, index=True
    )
    quantity: Mapped[Decimal] = mapped_column(QuantityType, nullable=False)
    returned_quantity: Mapped[Decimal] = mapped_column(QuantityType, nullable=False, default=Decimal("0"))
    unit_cost: Mapped[Decimal] = mapped_column(
        MoneyType, nullable=False
    )  # Asset cost_basis at time of issue
    total_cost: Mapped[Decimal] = mapped_column(MoneyType, nullable=False)
    status: Mapped[str] = mapped_column(
        String(20), nullable=False, default=GINItemStatus.ISSUED.value, index=True
    )
    return_date: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    return_condition: Mapped[str | None] = mapped_column(String(30), nullable=True)
    return_notes: Mapped[str | None] = mapped_column(Text, nullable=True)

    gin: Mapped["GoodsIssueNote"] = relationship("GoodsIssueNote", back_populates="items")
    asset: Mapped["Asset | None"] = relationship("Asset")

    @property
    def outstanding_quantity(self) -> Decimal:
        return self.quantity - (self.returned_quantity or Decimal("0"))


from src.modules.assets.models import Asset  # noqa: E402
