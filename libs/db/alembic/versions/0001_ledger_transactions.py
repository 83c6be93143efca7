# ruff: noqa: I001
"""Ledger transactions table.

Revision ID: 0001_ledger_transactions
Revises: None
Create Date: 2024-03-02
"""

from __future__ import annotations

from collections.abc import Sequence

import sqlalchemy as sa
from alembic import op


# revision identifiers, used by Alembic.
revision: str = "0001_ledger_transactions"
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    op.create_table(
        "transactions",
        sa.Column("id", sa.String(36), primary_key=True),
        # Chat wall-clock time, no timezone.
        sa.Column("date", sa.DateTime(), nullable=False),
        sa.Column("sender", sa.Text(), nullable=False),
        sa.Column("item", sa.Text(), nullable=False),
        sa.Column("amount", sa.Numeric(10, 2), nullable=False),
        sa.Column("original_message", sa.Text(), nullable=True),
        sa.Column("category_id", sa.String(), nullable=True),
        sa.Column(
            "created_at",
            sa.DateTime(),
            nullable=False,
            server_default=sa.func.now(),
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(),
            nullable=False,
            server_default=sa.func.now(),
        ),
        sa.CheckConstraint("amount > 0", name="ck_transactions_amount_positive"),
    )

    op.create_index("idx_transactions_date", "transactions", ["date"], unique=False)
    op.create_index("idx_transactions_sender", "transactions", ["sender"], unique=False)
    op.create_index("idx_transactions_item", "transactions", ["item"], unique=False)
    op.create_index(
        "idx_transactions_date_sender", "transactions", ["date", "sender"], unique=False
    )
    op.create_index(
        "idx_transactions_item_amount", "transactions", ["item", "amount"], unique=False
    )


def downgrade() -> None:
    op.drop_index("idx_transactions_item_amount", table_name="transactions")
    op.drop_index("idx_transactions_date_sender", table_name="transactions")
    op.drop_index("idx_transactions_item", table_name="transactions")
    op.drop_index("idx_transactions_sender", table_name="transactions")
    op.drop_index("idx_transactions_date", table_name="transactions")
    op.drop_table("transactions")
