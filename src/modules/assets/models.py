"""Asset master data with denormalized ledger balances."""

from decimal import Decimal
from enum import StrEnum

from sqlalchemy import Boolean, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from src.core.database.base import BaseModel, MoneyType, QuantityType


class AssetType(StrEnum):
    """Asset type enumeration."""

    EQUIPMENT = "equipment"  # Thiết bị
    TOOLS = "tools"  # Công cụ dụng cụ
    MATERIALS = "materials"  # Vật tư


class AssetStatus(StrEnum):
    """Current status of an asset."""

    IN_STOCK = "in_stock"
    ALLOCATED = "allocated"  # Nothing left on the shelf
    UNDER_MAINTENANCE = "under_maintenance"  # Returned below reusability threshold


class Asset(BaseModel):
    """One stock-keeping unit (equipment, tool or consumable material).

    Balance fields are owned by src.modules.ledger.rules; nothing else should
    write them. `version` is an optimistic-lock counter bumped on every update.
    """

    __tablename__ = "assets"

    asset_id: Mapped[str] = mapped_column(String(100), nullable=False, unique=True, index=True)
    asset_name: Mapped[str] = mapped_column(String(300), nullable=False, index=True)
    sku: Mapped[str | None] = mapped_column(String(100), nullable=True)
    asset_type: Mapped[str] = mapped_column(String(20), nullable=False, index=True)
    unit: Mapped[str | None] = mapped_column(String(50), nullable=True)
    brand: Mapped[str | None] = mapped_column(String(200), nullable=True)
    warehouse_name: Mapped[str | None] = mapped_column(String(200), nullable=True)
    cost_center: Mapped[str | None] = mapped_column(String(200), nullable=True)
    is_consumable: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    cost_basis: Mapped[Decimal] = mapped_column(
        MoneyType, nullable=False, default=Decimal("0.00")
    )  # Unit cost used for every ledger value delta

    opening_quantity: Mapped[Decimal] = mapped_column(QuantityType, nullable=False, default=Decimal("0"))
    opening_value: Mapped[Decimal] = mapped_column(MoneyType, nullable=False, default=Decimal("0.00"))
    inbound_quantity: Mapped[Decimal] = mapped_column(QuantityType, nullable=False, default=Decimal("0"))
    inbound_value: Mapped[Decimal] = mapped_column(MoneyType, nullable=False, default=Decimal("0.00"))
    outbound_quantity: Mapped[Decimal] = mapped_column(QuantityType, nullable=False, default=Decimal("0"))
    outbound_value: Mapped[Decimal] = mapped_column(MoneyType, nullable=False, default=Decimal("0.00"))
    closing_quantity: Mapped[Decimal] = mapped_column(QuantityType, nullable=False, default=Decimal("0"))
    closing_value: Mapped[Decimal] = mapped_column(MoneyType, nullable=False, default=Decimal("0.00"))

    stock_quantity: Mapped[Decimal] = mapped_column(
        QuantityType, nullable=False, default=Decimal("0")
    )  # Available to allocate/issue
    allocated_quantity: Mapped[Decimal] = mapped_column(
        QuantityType, nullable=False, default=Decimal("0")
    )  # Currently checked out on allocations

    current_status: Mapped[str] = mapped_column(
        String(30), nullable=False, default=AssetStatus.IN_STOCK.value, index=True
    )
    min_stock_level: Mapped[Decimal] = mapped_column(QuantityType, nullable=False, default=Decimal("0"))

    useful_life_months: Mapped[int | None] = mapped_column(Integer, nullable=True)
    depreciation_method: Mapped[str | None] = mapped_column(String(50), nullable=True)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)

    version: Mapped[int] = mapped_column(Integer, nullable=False)

    __mapper_args__ = {"version_id_col": version}
