"""Pytest configuration for test isolation.

``db.client`` keeps one engine per process and refuses to rebind it to a
different URL. Each test gets its own SQLite file, so the shared engine is
disposed before and after every test. Environment variables read by
``ImportSettings.from_env`` and ``db.client`` are cleared so a developer's
``.env`` never leaks into assertions.
"""

from __future__ import annotations

from collections.abc import Iterator
from pathlib import Path

import pytest
from db.client import dispose_engine

from tests.helpers.db import bootstrap_sqlite_db

_ENV_VARS = (
    "DATABASE_URL",
    "LEDGER_IMPORT_DEFAULT_CURRENCY",
    "LEDGER_IMPORT_SYNC_INTERVAL_SECONDS",
    "LEDGER_IMPORT_SYNC_USER_DELAY_SECONDS",
    "LEDGER_IMPORT_SYNC_LOOKBACK_DAYS",
    "LEDGER_IMPORT_BANK_CODES",
    "LEDGER_IMPORT_LOG_LEVEL",
)


@pytest.fixture(autouse=True)
def _isolate_env_and_engine(monkeypatch: pytest.MonkeyPatch) -> Iterator[None]:
    for name in _ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    dispose_engine()
    yield
    dispose_engine()


@pytest.fixture()
def db_url(tmp_path: Path) -> str:
    """A fresh, schema-initialized SQLite database for this test."""

    return bootstrap_sqlite_db(tmp_path / "ledger.sqlite3")
