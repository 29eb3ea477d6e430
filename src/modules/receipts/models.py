"""Goods receipt notes (phiếu nhập kho)."""

from datetime import datetime
from decimal import Decimal

from sqlalchemy import BigInteger, DateTime, ForeignKey, String, Text, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from src.core.database.base import BaseModel, MoneyType, QuantityType


class GoodsReceiptNote(BaseModel):
    """Inbound receipt voucher."""

    __tablename__ = "goods_receipt_notes"

    grn_number: Mapped[str] = mapped_column(String(50), nullable=False, unique=True, index=True)
    receipt_date: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False, index=True
    )
    supplier: Mapped[str | None] = mapped_column(String(300), nullable=True)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    total_value: Mapped[Decimal] = mapped_column(MoneyType, nullable=False, default=Decimal("0.00"))
    created_by_id: Mapped[int | None] = mapped_column(BigInteger, nullable=True)
    created_by_name: Mapped[str | None] = mapped_column(String(200), nullable=True)

    items: Mapped[list["GRNItem"]] = relationship(
        "GRNItem",
        back_populates="grn",
        cascade="all, delete-orphan",
        order_by="GRNItem.id",
    )


class GRNItem(BaseModel):
    """Line of a GRN."""

    __tablename__ = "grn_items"

    grn_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("goods_receipt_notes.id", ondelete="CASCADE"), nullable=False, index=True
    )
    asset_ref: Mapped[int | None] = mapped_column(
        BigInteger, ForeignKey("assets.id", ondelete="SET NULL"), nullable=True, index=True
    )
    quantity: Mapped[Decimal] = mapped_column(QuantityType, nullable=False)
    unit_cost: Mapped[Decimal] = mapped_column(MoneyType, nullable=False)
    total_cost: Mapped[Decimal] = mapped_column(MoneyType, nullable=False)

    grn: Mapped["GoodsReceiptNote"] = relationship("GoodsReceiptNote", back_populates="items")
    asset: Mapped["Asset | None"] = relationship("Asset")


from src.modules.assets.models import Asset  # noqa: E402
