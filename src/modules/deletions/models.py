"""Deletion ledger: snapshots of deleted asset stock, restorable later."""

from datetime import datetime
from decimal import Decimal

from sqlalchemy import JSON, BigInteger, DateTime, String, Text, func
from sqlalchemy.ext.mutable import MutableDict, MutableList
from sqlalchemy.orm import Mapped, mapped_column

from src.core.database.base import Base, BigIntPK, MoneyType, QuantityType


class AssetDeletionRecord(Base):
    """Deleted stock of one asset.

    stock_quantity / cost_basis hold what is still restorable; both shrink on
    partial restore and the row is removed once everything is restored.
    """

    __tablename__ = "asset_deletion_history"

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True, autoincrement=True)
    asset_id: Mapped[str] = mapped_column(String(100), nullable=False, index=True)  # Business code
    asset_name: Mapped[str] = mapped_column(String(300), nullable=False)
    sku: Mapped[str | None] = mapped_column(String(100), nullable=True)
    asset_type: Mapped[str] = mapped_column(String(20), nullable=False)
    cost_center: Mapped[str | None] = mapped_column(String(200), nullable=True)

    unit_cost: Mapped[Decimal] = mapped_column(MoneyType, nullable=False)
    stock_quantity: Mapped[Decimal] = mapped_column(QuantityType, nullable=False)
    cost_basis: Mapped[Decimal] = mapped_column(MoneyType, nullable=False)  # Total restorable value

    deleted_by_id: Mapped[int | None] = mapped_column(BigInteger, nullable=True)
    deleted_by_name: Mapped[str | None] = mapped_column(String(200), nullable=True)
    deleted_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False, index=True
    )
    deletion_reason: Mapped[str] = mapped_column(Text, nullable=False)

    original_data: Mapped[dict] = mapped_column(MutableDict.as_mutable(JSON), nullable=False, default=dict)
    restoration_history: Mapped[list] = mapped_column(
        MutableList.as_mutable(JSON), nullable=False, default=list
    )
