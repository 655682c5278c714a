# ruff: noqa: I001
"""Ledger Store: persistence of imported transactions and import batches.

Functions here write to the shared database owned by ``libs/db``. They rely
on the SQLAlchemy ORM models in ``db.models.ledger`` and sessions provided by
``db.client``. Every public method runs in its own short transaction.

Scope:
- Record the :class:`ImportBatch` header before a merge and update its status.
- Merge candidates into ``ledger_transactions`` with two dedup rules:
  identity match against earlier bank-sourced rows (and within the incoming
  list), then a fuzzy date + amount + description match against rows the user
  entered manually.
- Revert a batch: remove the batch and every ledger row it created.
- Enumerate active bank connections and advance their sync watermark.

Concurrency: merges for different users are independent. Two merges for the
same user racing each other are not coordinated here; the partial unique index
on ``(user_id, bank_transaction_id)`` turns the losing insert into an
``IntegrityError`` instead of a duplicate row.
"""

from __future__ import annotations

import re
import unicodedata
from collections import defaultdict
from collections.abc import Iterable, Sequence
from datetime import UTC, date, datetime
from decimal import Decimal
from typing import Protocol

from sqlalchemy import delete, select, update
from sqlalchemy.orm import Session

from db.client import session_scope
from db.models.ledger import BankConnection, ImportBatch, LedgerTransaction
from .errors import BatchNotFoundError
from .identity import normalize_amount
from .logging_setup import get_logger
from .models import (
    BankConnectionInfo,
    BatchStatus,
    CandidateTransaction,
    ImportBatchMetadata,
    MergeOutcome,
)

_logger = get_logger("ledger_import.persistence")

# Keep IN (...) lists under SQLite's historical 999 bound-parameter limit.
_IN_CHUNK = 500

_ALLOWED_SOURCES: set[str] = {"import", "sync"}


# ----------------------------------------------------------------------------
# Interfaces consumed by the orchestrator and the sync driver
# ----------------------------------------------------------------------------


class LedgerStore(Protocol):
    def record_batch(self, user_id: str, batch: ImportBatchMetadata) -> None: ...

    def mark_batch_status(self, user_id: str, batch_id: str, status: BatchStatus) -> None: ...

    def merge_candidates(
        self,
        user_id: str,
        candidates: Sequence[CandidateTransaction],
        batch: ImportBatchMetadata,
        *,
        source: str = "import",
    ) -> MergeOutcome: ...

    def revert_batch(self, user_id: str, batch_id: str) -> int: ...


class ConnectionDirectory(Protocol):
    def list_active_connections(self) -> list[BankConnectionInfo]: ...

    def mark_synced(self, connection_id: str, at: datetime) -> None: ...


# ----------------------------------------------------------------------------
# Helpers
# ----------------------------------------------------------------------------


def _as_utc(value: datetime | None) -> datetime | None:
    # SQLite hands back naive datetimes; everything stored here is UTC.
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


def normalize_description(value: str | None) -> str:
    """Fold a description for fuzzy comparison (case, accents, punctuation)."""

    if not value:
        return ""
    decomposed = unicodedata.normalize("NFD", value)
    stripped = "".join(ch for ch in decomposed if not unicodedata.combining(ch))
    words = re.findall(r"\w+", stripped.casefold())
    return " ".join(words)


def descriptions_match(imported: str, manual: str | None) -> bool:
    """True when two descriptions plausibly name the same transaction.

    Equal after folding, or one contained in the other when the shorter side
    has at least three characters ("coffee" vs "coffee shop athens").
    """

    a = normalize_description(imported)
    b = normalize_description(manual)
    if not a or not b:
        return False
    if a == b:
        return True
    shorter, longer = sorted((a, b), key=len)
    return len(shorter) >= 3 and shorter in longer


def _chunks(values: Sequence[object], size: int = _IN_CHUNK) -> Iterable[Sequence[object]]:
    for i in range(0, len(values), size):
        yield values[i : i + size]


def _existing_identities(session: Session, user_id: str, identities: Sequence[str]) -> set[str]:
    found: set[str] = set()
    for chunk in _chunks(identities):
        stmt = select(LedgerTransaction.bank_transaction_id).where(
            LedgerTransaction.user_id == user_id,
            LedgerTransaction.bank_transaction_id.in_(chunk),
        )
        found.update(v for v in session.scalars(stmt) if v is not None)
    return found


def _manual_rows_by_key(
    session: Session, user_id: str, dates: Sequence[date]
) -> dict[tuple[date, Decimal], list[LedgerTransaction]]:
    index: dict[tuple[date, Decimal], list[LedgerTransaction]] = defaultdict(list)
    for chunk in _chunks(dates):
        stmt = (
            select(LedgerTransaction)
            .where(
                LedgerTransaction.user_id == user_id,
                LedgerTransaction.bank_transaction_id.is_(None),
                LedgerTransaction.source == "manual",
                LedgerTransaction.date.in_(chunk),
            )
            .order_by(LedgerTransaction.id)
        )
        for row in session.scalars(stmt):
            index[(row.date, normalize_amount(Decimal(row.amount)))].append(row)
    return index


def _batch_to_metadata(row: ImportBatch) -> ImportBatchMetadata:
    return ImportBatchMetadata(
        id=row.id,
        source_file_name=row.source_file_name,
        imported_at=_as_utc(row.imported_at) or row.imported_at,
        candidate_count=row.candidate_count,
        total_amount=Decimal(row.total_amount),
        status=BatchStatus(row.status),
    )


# ----------------------------------------------------------------------------
# SQLAlchemy implementation
# ----------------------------------------------------------------------------


class SqlLedgerStore:
    """:class:`LedgerStore` backed by ``ledger_transactions``/``import_batches``."""

    def __init__(self, *, database_url: str | None = None) -> None:
        self._database_url = database_url

    def record_batch(self, user_id: str, batch: ImportBatchMetadata) -> None:
        with session_scope(database_url=self._database_url) as session:
            session.add(
                ImportBatch(
                    id=batch.id,
                    user_id=user_id,
                    source_file_name=batch.source_file_name,
                    imported_at=batch.imported_at,
                    candidate_count=batch.candidate_count,
                    total_amount=batch.total_amount,
                    status=batch.status.value,
                )
            )

    def mark_batch_status(self, user_id: str, batch_id: str, status: BatchStatus) -> None:
        with session_scope(database_url=self._database_url) as session:
            result = session.execute(
                update(ImportBatch)
                .where(ImportBatch.id == batch_id, ImportBatch.user_id == user_id)
                .values(status=status.value)
            )
            if result.rowcount == 0:
                raise BatchNotFoundError(f"import batch {batch_id!r} not found for user")

    def list_batches(self, user_id: str) -> list[ImportBatchMetadata]:
        with session_scope(database_url=self._database_url) as session:
            rows = session.scalars(
                select(ImportBatch)
                .where(ImportBatch.user_id == user_id)
                .order_by(ImportBatch.imported_at.desc())
            ).all()
            return [_batch_to_metadata(r) for r in rows]

    def merge_candidates(
        self,
        user_id: str,
        candidates: Sequence[CandidateTransaction],
        batch: ImportBatchMetadata,
        *,
        source: str = "import",
    ) -> MergeOutcome:
        """Insert the candidates that are not already in the user's ledger.

        A candidate is skipped as a duplicate when its identity already exists
        for the user, or appeared earlier in ``candidates``. Otherwise it is
        skipped as a manual duplicate when an unclaimed manual row has the same
        date and amount and a matching description; each manual row absorbs at
        most one candidate.
        """

        if source not in _ALLOWED_SOURCES:
            raise ValueError(
                f"Unsupported source: {source!r}. Allowed: {sorted(_ALLOWED_SOURCES)}"
            )
        if not candidates:
            return MergeOutcome()

        imported = 0
        duplicates = 0
        manual_duplicates = 0
        latest: date | None = None
        now = datetime.now(UTC)

        with session_scope(database_url=self._database_url) as session:
            identities = sorted({c.identity for c in candidates})
            seen = _existing_identities(session, user_id, identities)
            manual_index = _manual_rows_by_key(
                session, user_id, sorted({c.date for c in candidates})
            )
            claimed: set[int] = set()

            for c in candidates:
                if c.identity in seen:
                    duplicates += 1
                    continue
                seen.add(c.identity)

                key = (c.date, normalize_amount(c.amount))
                manual = next(
                    (
                        row
                        for row in manual_index.get(key, ())
                        if row.id not in claimed
                        and descriptions_match(c.description, row.description)
                    ),
                    None,
                )
                if manual is not None:
                    claimed.add(manual.id)
                    manual_duplicates += 1
                    continue

                session.add(
                    LedgerTransaction(
                        user_id=user_id,
                        date=c.date,
                        amount=normalize_amount(c.amount),
                        type="expense" if c.amount < 0 else "income",
                        currency_code=c.currency,
                        description=c.description,
                        category=c.category,
                        bank_transaction_id=c.identity,
                        source=source,
                        import_batch_id=batch.id,
                        notes="Imported via Statement" if source == "import" else "Bank sync",
                        created_at=now,
                        updated_at=now,
                    )
                )
                imported += 1
                if latest is None or c.date > latest:
                    latest = c.date

        _logger.info(
            "Merged batch %s: imported=%d duplicates=%d manual_duplicates=%d",
            batch.id,
            imported,
            duplicates,
            manual_duplicates,
        )
        return MergeOutcome(
            imported=imported,
            duplicates_skipped=duplicates,
            manual_duplicates_skipped=manual_duplicates,
            last_transaction_date=latest,
        )

    def revert_batch(self, user_id: str, batch_id: str) -> int:
        """Delete the batch and every ledger row it created; return rows removed."""

        with session_scope(database_url=self._database_url) as session:
            batch = session.get(ImportBatch, batch_id)
            if batch is None or batch.user_id != user_id:
                raise BatchNotFoundError(f"import batch {batch_id!r} not found for user")
            removed = session.execute(
                delete(LedgerTransaction).where(
                    LedgerTransaction.import_batch_id == batch_id,
                    LedgerTransaction.user_id == user_id,
                )
            ).rowcount
            session.execute(delete(ImportBatch).where(ImportBatch.id == batch_id))
        _logger.info("Reverted batch %s: removed %d ledger rows", batch_id, removed)
        return removed


class SqlConnectionDirectory:
    """:class:`ConnectionDirectory` backed by ``bank_connections``."""

    def __init__(self, *, database_url: str | None = None) -> None:
        self._database_url = database_url

    def list_active_connections(self) -> list[BankConnectionInfo]:
        """One active connection per user (the oldest), ordered by user id."""

        with session_scope(database_url=self._database_url) as session:
            rows = session.scalars(
                select(BankConnection)
                .where(BankConnection.is_active.is_(True))
                .order_by(BankConnection.user_id, BankConnection.created_at, BankConnection.id)
            ).all()
            by_user: dict[str, BankConnectionInfo] = {}
            for row in rows:
                if row.user_id in by_user:
                    continue
                by_user[row.user_id] = BankConnectionInfo(
                    id=row.id,
                    user_id=row.user_id,
                    bank_name=row.bank_name,
                    last_sync_at=_as_utc(row.last_sync_at),
                )
        return list(by_user.values())

    def mark_synced(self, connection_id: str, at: datetime) -> None:
        with session_scope(database_url=self._database_url) as session:
            session.execute(
                update(BankConnection)
                .where(BankConnection.id == connection_id)
                .values(last_sync_at=at, updated_at=datetime.now(UTC))
            )


__all__ = [
    "ConnectionDirectory",
    "LedgerStore",
    "SqlConnectionDirectory",
    "SqlLedgerStore",
    "descriptions_match",
    "normalize_description",
]
