from __future__ import annotations

from datetime import datetime
from decimal import Decimal

from sqlalchemy import CheckConstraint, DateTime, Index, Numeric, String, Text, func
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    pass


# ---------------------------
# Core: transactions
# ---------------------------


class LedgerTransaction(Base):
    __tablename__ = "transactions"

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    # Local wall-clock time of the chat message; stored naive on purpose.
    date: Mapped[datetime] = mapped_column(DateTime, nullable=False)
    sender: Mapped[str] = mapped_column(Text, nullable=False)
    item: Mapped[str] = mapped_column(Text, nullable=False)
    amount: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    original_message: Mapped[str | None] = mapped_column(Text, nullable=True)
    # Set by the categorization subsystem; the parser never writes it.
    category_id: Mapped[str | None] = mapped_column(String, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, server_default=func.now()
    )

    __table_args__ = (
        CheckConstraint("amount > 0", name="ck_transactions_amount_positive"),
        Index("idx_transactions_date", "date"),
        Index("idx_transactions_sender", "sender"),
        Index("idx_transactions_item", "item"),
        Index("idx_transactions_date_sender", "date", "sender"),
        Index("idx_transactions_item_amount", "item", "amount"),
    )


__all__ = [
    "Base",
    "LedgerTransaction",
]
