from __future__ import annotations

import threading
from datetime import UTC, date, datetime, timedelta
from decimal import Decimal

import pytest
from db.client import session_scope
from db.models.ledger import BankConnection

from ledger_import.config import ImportSettings
from ledger_import.models import BankConnectionInfo, CandidateTransaction
from ledger_import.persistence import SqlConnectionDirectory, SqlLedgerStore
from ledger_import.sync import PeriodicSyncDriver

from tests.helpers.db import add_bank_connection, fetch_ledger_rows

NOW = datetime(2025, 3, 10, 12, 0, tzinfo=UTC)
FAST = ImportSettings(sync_user_delay=timedelta(0), sync_interval=timedelta(seconds=3600))


class _Feed:
    def __init__(self, failing: set[str] | None = None) -> None:
        self.failing = failing or set()
        self.calls: list[tuple[str, datetime, datetime]] = []

    def fetch_transactions(
        self, connection: BankConnectionInfo, start: datetime, end: datetime
    ) -> list[CandidateTransaction]:
        self.calls.append((connection.user_id, start, end))
        if connection.user_id in self.failing:
            raise ConnectionError("bank API unavailable")
        return [
            CandidateTransaction.build(
                date(2025, 3, 9), Decimal("-20.00"), f"Card {connection.user_id}"
            )
        ]


def _watermarks(db_url: str) -> dict[str, datetime | None]:
    with session_scope(database_url=db_url) as session:
        rows = session.query(BankConnection).all()
        return {
            r.user_id: (r.last_sync_at.replace(tzinfo=UTC) if r.last_sync_at else None)
            for r in rows
        }


def _driver(db_url: str, feed: _Feed, settings: ImportSettings = FAST) -> PeriodicSyncDriver:
    return PeriodicSyncDriver(
        SqlConnectionDirectory(database_url=db_url),
        feed,
        SqlLedgerStore(database_url=db_url),
        settings=settings,
        clock=lambda: NOW,
    )


def test_one_failing_user_does_not_stop_the_others(db_url: str) -> None:
    for user in ("alice", "bob", "carol"):
        add_bank_connection(db_url, user_id=user)
    feed = _Feed(failing={"bob"})

    report = _driver(db_url, feed).run_once(threading.Event())

    assert report.users_seen == 3
    assert report.users_synced == 2
    assert report.users_failed == 1
    assert report.imported == 2
    assert [c[0] for c in feed.calls] == ["alice", "bob", "carol"]
    assert _watermarks(db_url) == {"alice": NOW, "bob": None, "carol": NOW}
    [row] = fetch_ledger_rows(db_url, user_id="carol")
    assert row.source == "sync"


def test_window_starts_at_watermark_or_lookback(db_url: str) -> None:
    last = datetime(2025, 3, 1, 8, 30, tzinfo=UTC)
    add_bank_connection(db_url, user_id="fresh")
    add_bank_connection(db_url, user_id="seen", last_sync_at=last)
    feed = _Feed()

    _driver(db_url, feed).run_once(threading.Event())

    windows = {user: (start, end) for user, start, end in feed.calls}
    assert windows["fresh"] == (NOW - timedelta(days=7), NOW)
    assert windows["seen"] == (last, NOW)


def test_second_cycle_deduplicates_overlap(db_url: str) -> None:
    add_bank_connection(db_url, user_id="alice")
    driver = _driver(db_url, _Feed())

    driver.run_once(threading.Event())
    report = driver.run_once(threading.Event())

    assert report.users_synced == 1
    assert report.imported == 0
    assert len(fetch_ledger_rows(db_url, user_id="alice")) == 1


def test_only_the_oldest_active_connection_per_user(db_url: str) -> None:
    first = add_bank_connection(
        db_url, user_id="alice", bank_name="Old", created_at=NOW - timedelta(days=30)
    )
    add_bank_connection(db_url, user_id="alice", bank_name="New", created_at=NOW)
    add_bank_connection(db_url, user_id="dave", is_active=False)

    connections = SqlConnectionDirectory(database_url=db_url).list_active_connections()

    assert [(c.user_id, c.id, c.bank_name) for c in connections] == [("alice", first, "Old")]


def test_failed_merge_keeps_the_watermark(db_url: str) -> None:
    add_bank_connection(db_url, user_id="alice")

    class _BrokenStore(SqlLedgerStore):
        def merge_candidates(self, user_id, candidates, batch, *, source="import"):
            raise RuntimeError("disk full")

    driver = PeriodicSyncDriver(
        SqlConnectionDirectory(database_url=db_url),
        _Feed(),
        _BrokenStore(database_url=db_url),
        settings=FAST,
        clock=lambda: NOW,
    )

    report = driver.run_once(threading.Event())

    assert report.users_failed == 1
    assert _watermarks(db_url) == {"alice": None}


def test_cancelled_before_start_touches_nobody(db_url: str) -> None:
    add_bank_connection(db_url, user_id="alice")
    feed = _Feed()
    stop = threading.Event()
    stop.set()

    report = _driver(db_url, feed).run_once(stop)

    assert report.cancelled
    assert feed.calls == []


def test_cancellation_interrupts_the_pause_between_users(db_url: str) -> None:
    add_bank_connection(db_url, user_id="alice")
    add_bank_connection(db_url, user_id="bob")
    stop = threading.Event()

    class _StoppingFeed(_Feed):
        def fetch_transactions(self, connection, start, end):
            stop.set()
            return super().fetch_transactions(connection, start, end)

    feed = _StoppingFeed()
    slow = ImportSettings(sync_user_delay=timedelta(seconds=60))

    report = _driver(db_url, feed, slow).run_once(stop)

    assert report.cancelled
    assert report.users_seen == 1
    assert [c[0] for c in feed.calls] == ["alice"]


def test_background_thread_stops_promptly(db_url: str) -> None:
    add_bank_connection(db_url, user_id="alice")
    called = threading.Event()

    class _SignallingFeed(_Feed):
        def fetch_transactions(self, connection, start, end):
            called.set()
            return super().fetch_transactions(connection, start, end)

    driver = _driver(db_url, _SignallingFeed())
    thread = driver.start()
    assert called.wait(timeout=10)

    driver.stop(timeout=10)

    assert not thread.is_alive()


def test_start_twice_is_refused(db_url: str) -> None:
    driver = _driver(db_url, _Feed())
    driver.start()
    try:
        with pytest.raises(RuntimeError):
            driver.start()
    finally:
        driver.stop(timeout=10)
