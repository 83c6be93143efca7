"""Persistence integration for purchase_ledger.

Functions here move :class:`~purchase_ledger.models.Transaction` lists in and
out of the ``transactions`` table owned by ``libs/db``. They take a SQLAlchemy
session from ``ledger_db.client``; committing is left to the caller
(``session_scope`` commits on exit).

Scope:
- Save a full snapshot (the table ends up holding exactly the given list).
- Load the full list back, oldest first.
- Merge a newly parsed batch into the stored ledger without duplicating
  purchases that are already there.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from decimal import ROUND_HALF_UP, Decimal

from ledger_db.models.ledger import LedgerTransaction
from sqlalchemy import delete, select
from sqlalchemy.orm import Session

from .duplicates import merge_batches
from .logging_setup import get_logger
from .models import Transaction

_logger = get_logger("purchase_ledger.persistence")


def _to_decimal_2(value: Decimal) -> Decimal:
    return value.quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)


def to_row(tx: Transaction) -> LedgerTransaction:
    return LedgerTransaction(
        id=tx.id,
        date=tx.date,
        sender=tx.sender,
        item=tx.item,
        amount=_to_decimal_2(tx.amount),
        original_message=tx.original_message,
        category_id=tx.category_id,
        created_at=tx.created_at,
        updated_at=tx.updated_at,
    )


def from_row(row: LedgerTransaction) -> Transaction:
    return Transaction(
        id=row.id,
        date=row.date,
        sender=row.sender,
        item=row.item,
        amount=Decimal(row.amount),
        original_message=row.original_message,
        category_id=row.category_id,
        created_at=row.created_at,
        updated_at=row.updated_at,
    )


def save_snapshot(session: Session, transactions: Sequence[Transaction]) -> int:
    """Replace the stored ledger with ``transactions``; returns the row count."""

    session.execute(delete(LedgerTransaction))
    session.add_all(to_row(tx) for tx in transactions)
    session.flush()
    _logger.info("persist:snapshot rows=%d", len(transactions))
    return len(transactions)


def load_snapshot(session: Session) -> list[Transaction]:
    rows = session.scalars(
        select(LedgerTransaction).order_by(LedgerTransaction.date, LedgerTransaction.id)
    ).all()
    return [from_row(r) for r in rows]


def merge_into_store(session: Session, incoming: Iterable[Transaction]) -> tuple[int, int]:
    """Insert the records of ``incoming`` that are not already stored.

    Returns ``(added, skipped)``.
    """

    existing = load_snapshot(session)
    merged, skipped = merge_batches(existing, incoming)
    new = merged[len(existing) :]
    session.add_all(to_row(tx) for tx in new)
    session.flush()
    _logger.info("persist:merge existing=%d added=%d skipped=%d", len(existing), len(new), skipped)
    return len(new), skipped


__all__ = ["to_row", "from_row", "save_snapshot", "load_snapshot", "merge_into_store"]
