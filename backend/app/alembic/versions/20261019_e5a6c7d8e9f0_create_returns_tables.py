"""create returns, return_items and return_timeline_entries tables

Revision ID: e5a6c7d8e9f0
Revises: d4f5b6c7d8e9
Create Date: 2026-10-19 09:40:00.000000

"""

import sqlalchemy as sa
from alembic import op

# revision identifiers, used by Alembic.
revision = "e5a6c7d8e9f0"
down_revision = "d4f5b6c7d8e9"
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "returns",
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("return_id", sa.String(length=40), nullable=False),
        sa.Column("order_id", sa.String(length=36), nullable=False),
        sa.Column("customer_id", sa.String(length=36), nullable=False),
        sa.Column("return_reason", sa.String(length=30), nullable=False),
        sa.Column("return_description", sa.Text(), nullable=True),
        sa.Column("return_method", sa.String(length=20), nullable=False),
        sa.Column("status", sa.String(length=30), nullable=False),
        sa.Column("return_amount", sa.Numeric(precision=12, scale=2), nullable=False),
        sa.Column("refund_amount", sa.Numeric(precision=12, scale=2), nullable=True),
        sa.Column("refund_method", sa.String(length=30), nullable=False),
        sa.Column("pickup_address", sa.JSON(), nullable=True),
        sa.Column("admin_notes", sa.Text(), nullable=True),
        sa.Column("requested_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("approved_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("pickup_scheduled_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("items_received_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("refund_processed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("completed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("is_within_return_window", sa.Boolean(), nullable=False),
        sa.Column("return_window_expires_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("version", sa.Integer(), nullable=False),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("(CURRENT_TIMESTAMP)"),
            nullable=True,
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("(CURRENT_TIMESTAMP)"),
            nullable=True,
        ),
        sa.ForeignKeyConstraint(["order_id"], ["orders.id"], ondelete="RESTRICT"),
        sa.ForeignKeyConstraint(["customer_id"], ["customers.id"], ondelete="RESTRICT"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_returns_return_id"), "returns", ["return_id"], unique=True)
    op.create_index(op.f("ix_returns_order_id"), "returns", ["order_id"])
    op.create_index(op.f("ix_returns_customer_id"), "returns", ["customer_id"])
    op.create_index(op.f("ix_returns_status"), "returns", ["status"])

    op.create_table(
        "return_items",
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("return_request_id", sa.String(length=36), nullable=False),
        sa.Column("order_item_id", sa.String(length=36), nullable=False),
        sa.Column("position", sa.Integer(), nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("size", sa.String(length=20), nullable=False),
        sa.Column("image", sa.String(length=500), nullable=False),
        sa.Column("price", sa.Numeric(precision=12, scale=2), nullable=False),
        sa.Column("quantity", sa.Integer(), nullable=False),
        sa.Column("reason", sa.String(length=30), nullable=False),
        sa.Column("reason_description", sa.String(length=500), nullable=True),
        sa.Column("images", sa.JSON(), nullable=False),
        sa.CheckConstraint("quantity > 0", name="ck_return_items_quantity_positive"),
        sa.ForeignKeyConstraint(["return_request_id"], ["returns.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["order_item_id"], ["order_items.id"], ondelete="RESTRICT"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(
        op.f("ix_return_items_return_request_id"), "return_items", ["return_request_id"]
    )
    op.create_index(op.f("ix_return_items_order_item_id"), "return_items", ["order_item_id"])

    op.create_table(
        "return_timeline_entries",
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("return_request_id", sa.String(length=36), nullable=False),
        sa.Column("sequence", sa.Integer(), nullable=False),
        sa.Column("status", sa.String(length=30), nullable=False),
        sa.Column("message", sa.String(length=1000), nullable=False),
        sa.Column("timestamp", sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(["return_request_id"], ["returns.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint(
            "return_request_id", "sequence", name="uq_return_timeline_sequence"
        ),
    )
    op.create_index(
        op.f("ix_return_timeline_entries_return_request_id"),
        "return_timeline_entries",
        ["return_request_id"],
    )


def downgrade() -> None:
    op.drop_index(
        op.f("ix_return_timeline_entries_return_request_id"),
        table_name="return_timeline_entries",
    )
    op.drop_table("return_timeline_entries")
    op.drop_index(op.f("ix_return_items_order_item_id"), table_name="return_items")
    op.drop_index(op.f("ix_return_items_return_request_id"), table_name="return_items")
    op.drop_table("return_items")
    op.drop_index(op.f("ix_returns_status"), table_name="returns")
    op.drop_index(op.f("ix_returns_customer_id"), table_name="returns")
    op.drop_index(op.f("ix_returns_order_id"), table_name="returns")
    op.drop_index(op.f("ix_returns_return_id"), table_name="returns")
    op.drop_table("returns")
