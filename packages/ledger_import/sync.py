"""Periodic bank sync: pull recent transactions for every connected user.

Each cycle asks the :class:`~ledger_import.persistence.ConnectionDirectory`
for one active connection per user, fetches that connection's transactions
since its last successful sync (or the lookback window for a fresh
connection), and merges them through the same path as file uploads with
``source="sync"``. A failing user is logged and skipped; the cycle carries on
with the next one after a short pause so the bank API is not hammered.

Cancellation is cooperative through a :class:`threading.Event`: every wait in
the driver is an ``Event.wait`` so ``stop()`` takes effect within one pause.
"""

from __future__ import annotations

import threading
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Protocol

from .config import ImportSettings
from .logging_setup import get_logger
from .models import BankConnectionInfo, CandidateTransaction, ImportResult, ImportState
from .orchestrator import import_candidates
from .persistence import ConnectionDirectory, LedgerStore

_logger = get_logger("ledger_import.sync")


class BankFeed(Protocol):
    def fetch_transactions(
        self, connection: BankConnectionInfo, start: datetime, end: datetime
    ) -> Sequence[CandidateTransaction]: ...


@dataclass(frozen=True, slots=True)
class SyncCycleReport:
    """Per-cycle tallies, mostly for logging and tests."""

    users_seen: int = 0
    users_synced: int = 0
    users_failed: int = 0
    imported: int = 0
    cancelled: bool = False


def _utcnow() -> datetime:
    return datetime.now(UTC)


def _is_clean(result: ImportResult) -> bool:
    return result.error_count == 0 and result.state is not ImportState.FAILED


class PeriodicSyncDriver:
    """Run bank syncs on a fixed interval until stopped."""

    def __init__(
        self,
        directory: ConnectionDirectory,
        feed: BankFeed,
        store: LedgerStore,
        *,
        settings: ImportSettings | None = None,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self.directory = directory
        self.feed = feed
        self.store = store
        self.settings = settings or ImportSettings()
        self._clock = clock or _utcnow
        self._stop = threading.Event()
        self._thread: threading.Thread | None = None

    # ---- single cycle -------------------------------------------------------

    def sync_connection(self, connection: BankConnectionInfo) -> ImportResult:
        """Sync one connection; the watermark only advances on a clean merge."""

        end = self._clock()
        start = connection.last_sync_at or (end - self.settings.sync_lookback)
        candidates = self.feed.fetch_transactions(connection, start, end)
        result = import_candidates(
            connection.user_id,
            candidates,
            source_name=f"bank-sync:{connection.bank_name or connection.id}",
            store=self.store,
            source="sync",
            settings=self.settings,
        )
        if not _is_clean(result):
            _logger.warning(
                "Sync for user %s left watermark unchanged: %s",
                connection.user_id,
                "; ".join(result.error_messages),
            )
            return result
        self.directory.mark_synced(connection.id, end)
        _logger.info(
            "Synced user %s: imported=%d duplicates=%d",
            connection.user_id,
            result.imported_count,
            result.duplicates_skipped,
        )
        return result

    def run_once(self, stop_event: threading.Event | None = None) -> SyncCycleReport:
        """Sync every active connection once, pausing between users."""

        stop_event = stop_event or self._stop
        connections = self.directory.list_active_connections()
        _logger.info("Sync cycle starting for %d connections", len(connections))

        synced = failed = imported = 0
        delay = self.settings.sync_user_delay.total_seconds()
        for idx, connection in enumerate(connections):
            if stop_event.is_set():
                return SyncCycleReport(
                    users_seen=idx,
                    users_synced=synced,
                    users_failed=failed,
                    imported=imported,
                    cancelled=True,
                )
            try:
                result = self.sync_connection(connection)
                if _is_clean(result):
                    synced += 1
                    imported += result.imported_count
                else:
                    failed += 1
            except Exception:
                _logger.exception("Sync failed for user %s", connection.user_id)
                failed += 1
            if idx + 1 < len(connections) and stop_event.wait(delay):
                return SyncCycleReport(
                    users_seen=idx + 1,
                    users_synced=synced,
                    users_failed=failed,
                    imported=imported,
                    cancelled=True,
                )

        _logger.info("Sync cycle done: synced=%d failed=%d", synced, failed)
        return SyncCycleReport(
            users_seen=len(connections),
            users_synced=synced,
            users_failed=failed,
            imported=imported,
        )

    # ---- loop ---------------------------------------------------------------

    def run(self, stop_event: threading.Event | None = None) -> None:
        """Loop ``run_once`` every ``sync_interval`` until ``stop_event`` is set."""

        stop_event = stop_event or self._stop
        interval = self.settings.sync_interval.total_seconds()
        _logger.info("Bank sync driver started (interval=%ss)", interval)
        while not stop_event.is_set():
            try:
                self.run_once(stop_event)
            except Exception:
                # Directory outages must not kill the loop
                _logger.exception("Sync cycle aborted")
            if stop_event.wait(interval):
                break
        _logger.info("Bank sync driver stopped")

    def start(self) -> threading.Thread:
        if self._thread is not None and self._thread.is_alive():
            raise RuntimeError("sync driver already running")
        self._stop.clear()
        self._thread = threading.Thread(
            target=self.run, args=(self._stop,), name="ledger-bank-sync", daemon=True
        )
        self._thread.start()
        return self._thread

    def stop(self, timeout: float | None = None) -> None:
        self._stop.set()
        if self._thread is not None:
            self._thread.join(timeout)
            self._thread = None


__all__ = ["BankFeed", "PeriodicSyncDriver", "SyncCycleReport"]
