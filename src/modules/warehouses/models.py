from sqlalchemy import Boolean, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from src.core.database.base import BaseModel


class Warehouse(BaseModel):
    """Storage location. Assets reference it by name (Asset.warehouse_name)."""

    __tablename__ = "warehouses"

    name: Mapped[str] = mapped_column(String(200), unique=True, nullable=False, index=True)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
