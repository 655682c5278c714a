"""Public API for the ``ledger_import`` package.

Thin, DB-backed entrypoints for library callers and the CLI. The import
pipeline itself lives in :mod:`ledger_import.orchestrator`; these functions
only wire it to the SQLAlchemy store and to the environment.
"""

from __future__ import annotations

from pathlib import Path

from .config import ImportSettings
from .models import ImportBatchMetadata, ImportResult
from .orchestrator import import_statement
from .persistence import SqlLedgerStore


def import_statement_file(
    path: str | Path,
    user_id: str,
    *,
    database_url: str | None = None,
    settings: ImportSettings | None = None,
) -> ImportResult:
    """Import the statement at ``path`` into ``user_id``'s ledger.

    Parameters
    ----------
    path:
        CSV or PDF statement on disk. The file name (not its content) selects
        the extractor, as for uploads.
    user_id:
        Ledger owner.
    database_url:
        Optional override of ``DATABASE_URL``.
    settings:
        Defaults to :meth:`ImportSettings.from_env`.

    Raises
    ------
    FileNotFoundError, PermissionError
        The file cannot be read. Every other failure is reported through the
        returned :class:`ImportResult`.
    """

    p = Path(path)
    content = p.read_bytes()
    return import_statement(
        user_id,
        p.name,
        content,
        store=SqlLedgerStore(database_url=database_url),
        settings=settings or ImportSettings.from_env(),
    )


def revert_import(user_id: str, batch_id: str, *, database_url: str | None = None) -> int:
    """Undo one import batch; returns the number of ledger rows removed.

    Raises :class:`~ledger_import.errors.BatchNotFoundError` for unknown ids or
    batches owned by another user.
    """

    return SqlLedgerStore(database_url=database_url).revert_batch(user_id, batch_id)


def list_import_batches(
    user_id: str, *, database_url: str | None = None
) -> list[ImportBatchMetadata]:
    """Return ``user_id``'s import batches, newest first."""

    return SqlLedgerStore(database_url=database_url).list_batches(user_id)


__all__ = ["import_statement_file", "list_import_batches", "revert_import"]
