"""trips, expenses and payments

Revision ID: 0001
Revises:
Create Date: 2026-10-18 00:00:00.000000
"""

from __future__ import annotations

from alembic import op
import sqlalchemy as sa


revision = "0001"
down_revision = None
branch_labels = None
depends_on = None

MONEY = sa.Numeric(12, 2)


def upgrade() -> None:
    op.create_table(
        "trips",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column("code", sa.String(length=10), nullable=False, unique=True),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("creation_time", sa.BigInteger(), nullable=False),
    )

    op.create_table(
        "trip_participants",
        sa.Column("trip_id", sa.String(length=36), sa.ForeignKey("trips.id", ondelete="CASCADE"), primary_key=True),
        sa.Column("participant", sa.String(length=255), primary_key=True),
    )

    op.create_table(
        "expenses",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column("trip_id", sa.String(length=36), sa.ForeignKey("trips.id", ondelete="CASCADE"), nullable=False),
        sa.Column("description", sa.String(length=255), nullable=False),
        sa.Column("amount", MONEY, nullable=False),
        sa.Column("subtotal", MONEY, nullable=False),
        sa.Column("tax", MONEY, nullable=False, server_default="0"),
        sa.Column("service_charge", MONEY, nullable=False, server_default="0"),
        sa.Column("total_discount", MONEY, nullable=False, server_default="0"),
        sa.Column("paid_by", sa.String(length=255), nullable=False),
        sa.Column("split_type", sa.String(length=50), nullable=False),
        sa.Column("creation_time", sa.BigInteger(), nullable=False),
        sa.CheckConstraint("split_type in ('equal','items')", name="expenses_split_type_check"),
    )

    op.create_table(
        "expense_participants",
        sa.Column("expense_id", sa.String(length=36), sa.ForeignKey("expenses.id", ondelete="CASCADE"), primary_key=True),
        sa.Column("participant", sa.String(length=255), primary_key=True),
        sa.Column("position", sa.Integer(), nullable=False, server_default="0"),
    )

    op.create_table(
        "expenses_items",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("expense_id", sa.String(length=36), sa.ForeignKey("expenses.id", ondelete="CASCADE"), nullable=False),
        sa.Column("description", sa.String(length=255), nullable=False),
        sa.Column("unit_price", MONEY, nullable=False),
        sa.Column("quantity", sa.Integer(), nullable=False),
        sa.Column("amount", MONEY, nullable=False),
        sa.Column("item_discount", MONEY, nullable=False, server_default="0"),
        sa.Column("paid_by", sa.String(length=255), nullable=False),
    )

    op.create_table(
        "item_consumers",
        sa.Column("item_id", sa.Integer(), sa.ForeignKey("expenses_items.id", ondelete="CASCADE"), primary_key=True),
        sa.Column("position", sa.Integer(), primary_key=True),
        sa.Column("consumer", sa.String(length=255), nullable=False),
    )

    op.create_table(
        "payments",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("trip_id", sa.String(length=36), sa.ForeignKey("trips.id", ondelete="CASCADE"), nullable=False),
        sa.Column("from_person", sa.String(length=255), nullable=False),
        sa.Column("to_person", sa.String(length=255), nullable=False),
        sa.Column("amount", MONEY, nullable=False),
        sa.Column("description", sa.Text()),
        sa.Column("payment_date", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.CheckConstraint("amount > 0", name="payments_amount_positive"),
    )

    op.create_index("idx_trips_code", "trips", ["code"])
    op.create_index("idx_expenses_trip_id", "expenses", ["trip_id"])
    op.create_index("idx_expense_participants_expense_id", "expense_participants", ["expense_id"])
    op.create_index("idx_expenses_items_expense_id", "expenses_items", ["expense_id"])
    op.create_index("idx_item_consumers_item_id", "item_consumers", ["item_id"])
    op.create_index("idx_payments_trip_id", "payments", ["trip_id"])


def downgrade() -> None:
    op.drop_index("idx_payments_trip_id", table_name="payments")
    op.drop_index("idx_item_consumers_item_id", table_name="item_consumers")
    op.drop_index("idx_expenses_items_expense_id", table_name="expenses_items")
    op.drop_index("idx_expense_participants_expense_id", table_name="expense_participants")
    op.drop_index("idx_expenses_trip_id", table_name="expenses")
    op.drop_index("idx_trips_code", table_name="trips")

    op.drop_table("payments")
    op.drop_table("item_consumers")
    op.drop_table("expenses_items")
    op.drop_table("expense_participants")
    op.drop_table("expenses")
    op.drop_table("trip_participants")
    op.drop_table("trips")
