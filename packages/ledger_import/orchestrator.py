# ruff: noqa: I001
"""Import orchestration: one upload (or one sync run) from bytes to ledger rows.

States
------
``RECEIVED`` -> ``REJECTED`` (empty, unsupported, or not-yet-supported input)
``RECEIVED`` -> ``EXTRACTING`` -> ``EMPTY`` (nothing recognisable in the file)
``EXTRACTING`` -> ``EXTRACTED`` -> ``MERGING`` -> ``COMPLETED`` | ``PARTIALLY_FAILED``
any non-terminal state -> ``FAILED`` on an unexpected error

Only ``MERGING`` writes to the store. The batch header is recorded right
before the merge so a batch never exists without its rows being attempted; if
the merge itself blows up the header is kept and marked ``failed``.

Failures never escape :meth:`StatementImport.run`: they are folded into the
returned :class:`~ledger_import.models.ImportResult`.
"""

from __future__ import annotations

import uuid
from collections.abc import Sequence
from datetime import UTC, datetime
from decimal import Decimal

from .config import ImportSettings
from .errors import (
    NoTransactionsFoundError,
    RejectedInputError,
    ScannedPdfError,
)
from .ingest.utils import load_candidates
from .logging_setup import get_logger
from .models import (
    BatchStatus,
    CandidateTransaction,
    ImportBatchMetadata,
    ImportResult,
    ImportState,
)
from .persistence import LedgerStore

_logger = get_logger("ledger_import.orchestrator")


def _failure_message(detail: str) -> str:
    return f"Import failed: {detail}"


class StatementImport:
    """Drive a single statement through extraction and merge.

    Parameters
    ----------
    user_id:
        Owner of the ledger the rows are merged into.
    file_name:
        Original upload name; its extension selects the extractor.
    content:
        Raw file bytes.
    store:
        Any :class:`~ledger_import.persistence.LedgerStore`.
    settings:
        Optional :class:`~ledger_import.config.ImportSettings`; defaults apply
        when omitted.
    """

    def __init__(
        self,
        user_id: str,
        file_name: str,
        content: bytes,
        *,
        store: LedgerStore,
        settings: ImportSettings | None = None,
    ) -> None:
        self.user_id = user_id
        self.file_name = file_name
        self.content = content
        self.store = store
        self.settings = settings or ImportSettings()
        self.state = ImportState.RECEIVED
        self.result = ImportResult()

    def _enter(self, state: ImportState) -> None:
        _logger.debug("Import %r: %s -> %s", self.file_name, self.state, state)
        self.state = state
        self.result.state = state

    def run(self) -> ImportResult:
        if self.state is not ImportState.RECEIVED:
            raise RuntimeError(f"import already ran (state={self.state})")

        try:
            self._enter(ImportState.EXTRACTING)
            candidates = load_candidates(self.file_name, self.content, settings=self.settings)
            if not candidates:
                raise NoTransactionsFoundError()
        except RejectedInputError as exc:
            _logger.info("Rejected upload %r: %s", self.file_name, exc.user_message)
            self.result.add_error(exc.user_message, count=False)
            self._enter(ImportState.REJECTED)
            return self.result
        except NoTransactionsFoundError as exc:
            _logger.info("No transactions in %r", self.file_name)
            self.result.add_error(exc.user_message, count=False)
            self._enter(ImportState.EMPTY)
            return self.result
        except ScannedPdfError as exc:
            _logger.warning("Unusable PDF %r: %s", self.file_name, exc.user_message)
            self.result.add_error(_failure_message(exc.user_message))
            self._enter(ImportState.FAILED)
            return self.result
        except Exception as exc:
            _logger.exception("Extraction failed for %r", self.file_name)
            self.result.add_error(_failure_message(str(exc)))
            self._enter(ImportState.FAILED)
            return self.result

        self._enter(ImportState.EXTRACTED)
        _logger.info("Extracted %d candidates from %r", len(candidates), self.file_name)
        return self._merge(candidates, source="import")

    def _merge(self, candidates: Sequence[CandidateTransaction], *, source: str) -> ImportResult:
        batch = ImportBatchMetadata(
            id=str(uuid.uuid4()),
            source_file_name=self.file_name,
            imported_at=datetime.now(UTC),
            candidate_count=len(candidates),
            total_amount=sum((c.amount for c in candidates), Decimal("0.00")),
            status=BatchStatus.COMPLETED,
        )
        self._enter(ImportState.MERGING)
        try:
            self.store.record_batch(self.user_id, batch)
        except Exception as exc:
            _logger.exception("Could not record batch for %r", self.file_name)
            self.result.add_error(_failure_message(str(exc)))
            self._enter(ImportState.FAILED)
            return self.result

        self.result.batch_id = batch.id
        try:
            outcome = self.store.merge_candidates(self.user_id, candidates, batch, source=source)
        except Exception as exc:
            _logger.exception("Merge failed for batch %s", batch.id)
            self.result.add_error(_failure_message(str(exc)))
            try:
                self.store.mark_batch_status(self.user_id, batch.id, BatchStatus.FAILED)
            except Exception:
                _logger.exception("Could not mark batch %s as failed", batch.id)
            self._enter(ImportState.FAILED)
            return self.result

        self.result.imported_count = outcome.imported
        self.result.duplicates_skipped = outcome.duplicates_skipped
        self.result.manual_duplicates_skipped = outcome.manual_duplicates_skipped
        self.result.last_transaction_date = outcome.last_transaction_date
        self.result.error_count += outcome.errors
        self.result.error_messages.extend(outcome.error_messages)
        self._enter(ImportState.PARTIALLY_FAILED if outcome.errors else ImportState.COMPLETED)
        return self.result


def import_statement(
    user_id: str,
    file_name: str,
    content: bytes,
    *,
    store: LedgerStore,
    settings: ImportSettings | None = None,
) -> ImportResult:
    """Import an uploaded statement file for ``user_id``."""

    return StatementImport(user_id, file_name, content, store=store, settings=settings).run()


def import_candidates(
    user_id: str,
    candidates: Sequence[CandidateTransaction],
    *,
    source_name: str,
    store: LedgerStore,
    source: str = "import",
    settings: ImportSettings | None = None,
) -> ImportResult:
    """Merge already-extracted candidates (e.g. from a bank feed).

    Shares the batch and merge path of file uploads, so fed transactions are
    deduplicated against imported ones by the same identity. An empty list
    ends in ``EMPTY`` without creating a batch.
    """

    job = StatementImport(user_id, source_name, b"", store=store, settings=settings)
    if not candidates:
        job.result.add_error(NoTransactionsFoundError.user_message, count=False)
        job._enter(ImportState.EMPTY)
        return job.result
    job._enter(ImportState.EXTRACTED)
    return job._merge(list(candidates), source=source)


__all__ = [
    "StatementImport",
    "import_candidates",
    "import_statement",
]
