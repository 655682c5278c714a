"""Data models for ``ledger_import``.

Transient records produced by extraction (:class:`CandidateTransaction`), the
value objects exchanged with the Ledger Store, and the result returned at the
upload boundary (:class:`ImportResult`).
"""

from __future__ import annotations

import enum
from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field

from .identity import compute_identity, normalize_amount

UNCATEGORIZED = "Uncategorized"

# ---------------------------------------------------------------------------
# Extraction output
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class CandidateTransaction:
    """A transaction extracted from a statement, not yet merged into the ledger.

    ``identity`` is the deterministic content hash of ``(date, amount,
    description)`` (see :func:`ledger_import.identity.compute_identity`) and is
    the Ledger Store's dedup key across imports. Extractors never build a
    candidate without a date or with a zero amount.
    """

    date: date
    amount: Decimal
    description: str
    identity: str
    currency: str = "EUR"
    category: str = UNCATEGORIZED

    def __post_init__(self) -> None:
        if self.amount == 0:
            raise ValueError("CandidateTransaction.amount must be non-zero")
        if not self.identity:
            raise ValueError("CandidateTransaction.identity must be set")

    @classmethod
    def build(
        cls,
        tx_date: date,
        amount: Decimal,
        description: str,
        *,
        currency: str = "EUR",
    ) -> CandidateTransaction:
        """Create a candidate with a 2-dp amount and its content identity."""

        amount = normalize_amount(amount)
        return cls(
            date=tx_date,
            amount=amount,
            description=description,
            identity=compute_identity(tx_date, amount, description),
            currency=currency,
        )


# ---------------------------------------------------------------------------
# Import lifecycle
# ---------------------------------------------------------------------------


class ImportState(enum.StrEnum):
    """Lifecycle of a single upload (or sync run) through the orchestrator."""

    RECEIVED = "received"
    REJECTED = "rejected"
    EXTRACTING = "extracting"
    EMPTY = "empty"
    EXTRACTED = "extracted"
    MERGING = "merging"
    COMPLETED = "completed"
    PARTIALLY_FAILED = "partially_failed"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self in _TERMINAL_STATES


_TERMINAL_STATES = frozenset(
    {
        ImportState.REJECTED,
        ImportState.EMPTY,
        ImportState.COMPLETED,
        ImportState.PARTIALLY_FAILED,
        ImportState.FAILED,
    }
)


class BatchStatus(enum.StrEnum):
    COMPLETED = "completed"
    FAILED = "failed"


@dataclass(frozen=True, slots=True)
class ImportBatchMetadata:
    """Header for one ingestion event, recorded before the merge runs."""

    id: str
    source_file_name: str
    imported_at: datetime
    candidate_count: int
    total_amount: Decimal
    status: BatchStatus = BatchStatus.COMPLETED


@dataclass(frozen=True, slots=True)
class MergeOutcome:
    """Counts reported by :meth:`LedgerStore.merge_candidates`."""

    imported: int = 0
    duplicates_skipped: int = 0
    manual_duplicates_skipped: int = 0
    errors: int = 0
    error_messages: tuple[str, ...] = ()
    last_transaction_date: date | None = None


@dataclass(frozen=True, slots=True)
class BankConnectionInfo:
    """An active external bank connection as seen by the sync driver."""

    id: str
    user_id: str
    bank_name: str | None
    last_sync_at: datetime | None


# ---------------------------------------------------------------------------
# Upload boundary result
# ---------------------------------------------------------------------------


class ImportResult(BaseModel):
    """Outcome of one import, as returned to the uploading user."""

    model_config = ConfigDict(extra="forbid")

    imported_count: int = 0
    duplicates_skipped: int = 0
    manual_duplicates_skipped: int = 0
    error_count: int = 0
    error_messages: list[str] = Field(default_factory=list)
    last_transaction_date: date | None = None
    batch_id: str | None = None
    state: ImportState = ImportState.RECEIVED

    def add_error(self, message: str, *, count: bool = True) -> None:
        self.error_messages.append(message)
        if count:
            self.error_count += 1


__all__ = [
    "UNCATEGORIZED",
    "BankConnectionInfo",
    "BatchStatus",
    "CandidateTransaction",
    "ImportBatchMetadata",
    "ImportResult",
    "ImportState",
    "MergeOutcome",
]
