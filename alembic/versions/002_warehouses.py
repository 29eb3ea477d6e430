"""Warehouses

Revision ID: 002_warehouses
Revises: 001_initial
Create Date: 2026-10-25

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = "002_warehouses"
down_revision: Union[str, None] = "001_initial"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "warehouses",
        sa.Column("id", sa.BigInteger(), autoincrement=True, nullable=False),
        sa.Column("name", sa.String(200), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default="true"),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_warehouses_name", "warehouses", ["name"], unique=True)

    # Every existing asset keeps pointing at a real warehouse.
    op.execute(
        "INSERT INTO warehouses (name, is_active) "
        "SELECT DISTINCT warehouse_name, true FROM assets WHERE warehouse_name IS NOT NULL"
    )


def downgrade() -> None:
    op.drop_index("ix_warehouses_name", table_name="warehouses")
    op.drop_table("warehouses")
