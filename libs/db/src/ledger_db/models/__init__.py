"""SQLAlchemy models registry for the ledger database."""

from .ledger import Base, LedgerTransaction

__all__ = [
    "Base",
    "LedgerTransaction",
]
