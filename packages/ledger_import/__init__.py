"""Public interface for the ``ledger_import`` package.

Bank statement ingestion: turn an uploaded CSV or text PDF into candidate
transactions, merge them into a user's ledger with duplicate detection, and
keep connected bank accounts in sync on a timer. Only symbol re-exports live
here.
"""

from .api import import_statement_file, list_import_batches, revert_import
from .config import ImportSettings
from .models import (
    BankConnectionInfo,
    BatchStatus,
    CandidateTransaction,
    ImportBatchMetadata,
    ImportResult,
    ImportState,
    MergeOutcome,
)
from .orchestrator import StatementImport, import_candidates, import_statement
from .persistence import (
    ConnectionDirectory,
    LedgerStore,
    SqlConnectionDirectory,
    SqlLedgerStore,
)
from .sync import BankFeed, PeriodicSyncDriver

__all__ = [
    # API
    "import_candidates",
    "import_statement",
    "import_statement_file",
    "list_import_batches",
    "revert_import",
    "StatementImport",
    # Models
    "BankConnectionInfo",
    "BatchStatus",
    "CandidateTransaction",
    "ImportBatchMetadata",
    "ImportResult",
    "ImportSettings",
    "ImportState",
    "MergeOutcome",
    # Stores and sync
    "BankFeed",
    "ConnectionDirectory",
    "LedgerStore",
    "PeriodicSyncDriver",
    "SqlConnectionDirectory",
    "SqlLedgerStore",
]
