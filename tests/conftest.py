"""Pytest configuration for test isolation.

Parser settings and the database URL are read from the environment, and the
database client keeps one engine per process. To keep tests hermetic, each
test starts with the ``PL_*`` and database variables cleared and ends with the
shared engine disposed.
"""

from __future__ import annotations

from collections.abc import Iterator

import pytest
from ledger_db.client import dispose_engine

_ENV_VARS = (
    "PL_TARGET_SENDER",
    "PL_MAX_ITEM_AMOUNT",
    "PL_SIMILARITY_THRESHOLD",
    "PURCHASE_LEDGER_LOG_LEVEL",
    "LEDGER_DATABASE_URL",
    "DATABASE_URL",
)


@pytest.fixture(autouse=True)
def _isolate_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Drop settings leaking in from the developer's shell or a .env file."""

    for name in _ENV_VARS:
        monkeypatch.delenv(name, raising=False)


@pytest.fixture(autouse=True)
def _fresh_engine() -> Iterator[None]:
    """Let every test bind its own database URL."""

    dispose_engine()
    yield
    dispose_engine()
