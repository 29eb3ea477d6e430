"""Initial ledger tables

Revision ID: 001_initial
Revises:
Create Date: 2026-10-18

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = "001_initial"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

QTY = sa.Numeric(15, 3)
MONEY = sa.Numeric(18, 2)


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    ]


def upgrade() -> None:
    # Document sequences (PXK/PNK voucher numbers)
    op.create_table(
        "document_sequences",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("prefix", sa.String(20), nullable=False),
        sa.Column("year", sa.Integer(), nullable=False),
        sa.Column("last_number", sa.Integer(), nullable=False, server_default="0"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("prefix", "year", name="uq_document_sequence_prefix_year"),
    )

    # Audit log
    op.create_table(
        "audit_logs",
        sa.Column("id", sa.BigInteger(), autoincrement=True, nullable=False),
        sa.Column("user_id", sa.BigInteger(), nullable=True),
        sa.Column("user_name", sa.String(200), nullable=True),
        sa.Column("action", sa.String(100), nullable=False),
        sa.Column("entity_type", sa.String(100), nullable=False),
        sa.Column("entity_id", sa.BigInteger(), nullable=False),
        sa.Column("entity_identifier", sa.String(200), nullable=True),
        sa.Column("old_values", sa.JSON(), nullable=True),
        sa.Column("new_values", sa.JSON(), nullable=True),
        sa.Column("comment", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_audit_logs_action", "audit_logs", ["action"])
    op.create_index("ix_audit_logs_entity_type", "audit_logs", ["entity_type"])
    op.create_index("ix_audit_logs_entity_id", "audit_logs", ["entity_id"])
    op.create_index("ix_audit_logs_created_at", "audit_logs", ["created_at"])

    # Employees
    op.create_table(
        "employees",
        sa.Column("id", sa.BigInteger(), autoincrement=True, nullable=False),
        sa.Column("employee_code", sa.String(50), nullable=False),
        sa.Column("full_name", sa.String(200), nullable=False),
        sa.Column("department", sa.String(200), nullable=True),
        sa.Column("email", sa.String(255), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default="true"),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_employees_employee_code", "employees", ["employee_code"], unique=True)
    op.create_index("ix_employees_full_name", "employees", ["full_name"])

    # Assets
    op.create_table(
        "assets",
        sa.Column("id", sa.BigInteger(), autoincrement=True, nullable=False),
        sa.Column("asset_id", sa.String(100), nullable=False),
        sa.Column("asset_name", sa.String(300), nullable=False),
        sa.Column("sku", sa.String(100), nullable=True),
        sa.Column("asset_type", sa.String(20), nullable=False),
        sa.Column("unit", sa.String(50), nullable=True),
        sa.Column("brand", sa.String(200), nullable=True),
        sa.Column("warehouse_name", sa.String(200), nullable=True),
        sa.Column("cost_center", sa.String(200), nullable=True),
        sa.Column("is_consumable", sa.Boolean(), nullable=False, server_default="false"),
        sa.Column("cost_basis", MONEY, nullable=False, server_default="0"),
        sa.Column("opening_quantity", QTY, nullable=False, server_default="0"),
        sa.Column("opening_value", MONEY, nullable=False, server_default="0"),
        sa.Column("inbound_quantity", QTY, nullable=False, server_default="0"),
        sa.Column("inbound_value", MONEY, nullable=False, server_default="0"),
        sa.Column("outbound_quantity", QTY, nullable=False, server_default="0"),
        sa.Column("outbound_value", MONEY, nullable=False, server_default="0"),
        sa.Column("closing_quantity", QTY, nullable=False, server_default="0"),
        sa.Column("closing_value", MONEY, nullable=False, server_default="0"),
        sa.Column("stock_quantity", QTY, nullable=False, server_default="0"),
        sa.Column("allocated_quantity", QTY, nullable=False, server_default="0"),
        sa.Column("current_status", sa.String(30), nullable=False, server_default="in_stock"),
        sa.Column("min_stock_level", QTY, nullable=False, server_default="0"),
        sa.Column("useful_life_months", sa.Integer(), nullable=True),
        sa.Column("depreciation_method", sa.String(50), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("version", sa.Integer(), nullable=False, server_default="1"),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_assets_asset_id", "assets", ["asset_id"], unique=True)
    op.create_index("ix_assets_asset_name", "assets", ["asset_name"])
    op.create_index("ix_assets_asset_type", "assets", ["asset_type"])
    op.create_index("ix_assets_current_status", "assets", ["current_status"])

    # Allocations
    op.create_table(
        "allocations",
        sa.Column("id", sa.BigInteger(), autoincrement=True, nullable=False),
        sa.Column("asset_ref", sa.BigInteger(), nullable=True),
        sa.Column("quantity", QTY, nullable=False),
        sa.Column("allocated_to", sa.BigInteger(), nullable=True),
        sa.Column("allocated_to_name", sa.String(200), nullable=False),
        sa.Column("allocated_by_id", sa.BigInteger(), nullable=True),
        sa.Column("allocated_by_name", sa.String(200), nullable=True),
        sa.Column("purpose", sa.Text(), nullable=False),
        sa.Column("project_name", sa.String(300), nullable=True),
        sa.Column("status", sa.String(20), nullable=False, server_default="active"),
        sa.Column("is_consumed", sa.Boolean(), nullable=False, server_default="false"),
        sa.Column("consumed_quantity", QTY, nullable=False, server_default="0"),
        sa.Column("remaining_quantity", QTY, nullable=False, server_default="0"),
        sa.Column("reusability_percentage", sa.Numeric(5, 2), nullable=True),
        sa.Column("return_condition", sa.String(30), nullable=True),
        sa.Column("expected_return_date", sa.Date(), nullable=True),
        sa.Column("actual_return_date", sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(["asset_ref"], ["assets.id"], ondelete="SET NULL"),
        sa.ForeignKeyConstraint(["allocated_to"], ["employees.id"]),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_allocations_asset_ref", "allocations", ["asset_ref"])
    op.create_index("ix_allocations_allocated_to", "allocations", ["allocated_to"])
    op.create_index("ix_allocations_status", "allocations", ["status"])
    op.create_index("ix_allocations_expected_return_date", "allocations", ["expected_return_date"])

    # Goods issue notes (PXK)
    op.create_table(
        "goods_issue_notes",
        sa.Column("id", sa.BigInteger(), autoincrement=True, nullable=False),
        sa.Column("gin_number", sa.String(50), nullable=False),
        sa.Column("issue_date", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("recipient", sa.String(200), nullable=True),
        sa.Column("purpose", sa.Text(), nullable=True),
        sa.Column("project_name", sa.String(300), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("total_value", MONEY, nullable=False, server_default="0"),
        sa.Column("created_by_id", sa.BigInteger(), nullable=True),
        sa.Column("created_by_name", sa.String(200), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_goods_issue_notes_gin_number", "goods_issue_notes", ["gin_number"], unique=True)
    op.create_index("ix_goods_issue_notes_issue_date", "goods_issue_notes", ["issue_date"])

    op.create_table(
        "gin_items",
        sa.Column("id", sa.BigInteger(), autoincrement=True, nullable=False),
        sa.Column("gin_id", sa.BigInteger(), nullable=False),
        sa.Column("asset_ref", sa.BigInteger(), nullable=True),
        sa.Column("quantity", QTY, nullable=False),
        sa.Column("returned_quantity", QTY, nullable=False, server_default="0"),
        sa.Column("unit_cost", MONEY, nullable=False),
        sa.Column("total_cost", MONEY, nullable=False),
        sa.Column("status", sa.String(20), nullable=False, server_default="issued"),
        sa.Column("return_date", sa.DateTime(timezone=True), nullable=True),
        sa.Column("return_condition", sa.String(30), nullable=True),
        sa.Column("return_notes", sa.Text(), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(["gin_id"], ["goods_issue_notes.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["asset_ref"], ["assets.id"], ondelete="SET NULL"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_gin_items_gin_id", "gin_items", ["gin_id"])
    op.create_index("ix_gin_items_asset_ref", "gin_items", ["asset_ref"])
    op.create_index("ix_gin_items_status", "gin_items", ["status"])

    # Goods receipt notes (PNK)
    op.create_table(
        "goods_receipt_notes",
        sa.Column("id", sa.BigInteger(), autoincrement=True, nullable=False),
        sa.Column("grn_number", sa.String(50), nullable=False),
        sa.Column("receipt_date", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("supplier", sa.String(300), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("total_value", MONEY, nullable=False, server_default="0"),
        sa.Column("created_by_id", sa.BigInteger(), nullable=True),
        sa.Column("created_by_name", sa.String(200), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_goods_receipt_notes_grn_number", "goods_receipt_notes", ["grn_number"], unique=True)
    op.create_index("ix_goods_receipt_notes_receipt_date", "goods_receipt_notes", ["receipt_date"])

    op.create_table(
        "grn_items",
        sa.Column("id", sa.BigInteger(), autoincrement=True, nullable=False),
        sa.Column("grn_id", sa.BigInteger(), nullable=False),
        sa.Column("asset_ref", sa.BigInteger(), nullable=True),
        sa.Column("quantity", QTY, nullable=False),
        sa.Column("unit_cost", MONEY, nullable=False),
        sa.Column("total_cost", MONEY, nullable=False),
        *_timestamps(),
        sa.ForeignKeyConstraint(["grn_id"], ["goods_receipt_notes.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["asset_ref"], ["assets.id"], ondelete="SET NULL"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_grn_items_grn_id", "grn_items", ["grn_id"])
    op.create_index("ix_grn_items_asset_ref", "grn_items", ["asset_ref"])

    # Deletion ledger
    op.create_table(
        "asset_deletion_history",
        sa.Column("id", sa.BigInteger(), autoincrement=True, nullable=False),
        sa.Column("asset_id", sa.String(100), nullable=False),
        sa.Column("asset_name", sa.String(300), nullable=False),
        sa.Column("sku", sa.String(100), nullable=True),
        sa.Column("asset_type", sa.String(20), nullable=False),
        sa.Column("cost_center", sa.String(200), nullable=True),
        sa.Column("unit_cost", MONEY, nullable=False),
        sa.Column("stock_quantity", QTY, nullable=False),
        sa.Column("cost_basis", MONEY, nullable=False),
        sa.Column("deleted_by_id", sa.BigInteger(), nullable=True),
        sa.Column("deleted_by_name", sa.String(200), nullable=True),
        sa.Column("deleted_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("deletion_reason", sa.Text(), nullable=False),
        sa.Column("original_data", sa.JSON(), nullable=False),
        sa.Column("restoration_history", sa.JSON(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_asset_deletion_history_asset_id", "asset_deletion_history", ["asset_id"])
    op.create_index("ix_asset_deletion_history_deleted_at", "asset_deletion_history", ["deleted_at"])


def downgrade() -> None:
    op.drop_table("asset_deletion_history")
    op.drop_table("grn_items")
    op.drop_table("goods_receipt_notes")
    op.drop_table("gin_items")
    op.drop_table("goods_issue_notes")
    op.drop_table("allocations")
    op.drop_table("assets")
    op.drop_table("employees")
    op.drop_table("audit_logs")
    op.drop_table("document_sequences")
