"""Shared SQLAlchemy models registry for the workspace database.

Currently includes the ledger models used by ``ledger_import``.
"""

from .ledger import Base, BankConnection, ImportBatch, LedgerTransaction

__all__ = [
    "Base",
    "BankConnection",
    "ImportBatch",
    "LedgerTransaction",
]
