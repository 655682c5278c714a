"""Exceptions raised while ingesting a statement.

Every subclass of :class:`StatementImportError` carries a ``user_message``
that is safe to show to the uploading user. Row-level parse failures are not
exceptions at all: extractors drop such rows silently.
"""

from __future__ import annotations


class StatementImportError(Exception):
    """Base class for file-level import failures."""

    user_message: str = "Import failed."

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message or self.user_message)
        if message:
            self.user_message = message


# ---- Rejected input: surfaced as a single message, nothing is processed ----


class RejectedInputError(StatementImportError):
    pass


class EmptyFileError(RejectedInputError):
    user_message = "No file uploaded."


class UnsupportedFileError(RejectedInputError):
    user_message = "Invalid file format. Please upload a CSV, Excel, or PDF file."


class NotYetSupportedError(RejectedInputError):
    user_message = "Excel support is coming soon. Please upload a CSV or PDF."


# ---- Whole-file outcomes ----------------------------------------------------


class NoTransactionsFoundError(StatementImportError):
    user_message = "No transactions found in the file."


class ScannedPdfError(StatementImportError):
    """The PDF has no extractable text (or nothing resembling a statement row)."""

    user_message = "Could not parse PDF. Only text-based PDFs are supported."


class UnreadablePdfError(ScannedPdfError):
    """pdfplumber could not open or read the document."""


# ---- Store ------------------------------------------------------------------


class BatchNotFoundError(LookupError):
    """No import batch with the given id exists for the user."""


__all__ = [
    "BatchNotFoundError",
    "EmptyFileError",
    "NoTransactionsFoundError",
    "NotYetSupportedError",
    "RejectedInputError",
    "ScannedPdfError",
    "StatementImportError",
    "UnreadablePdfError",
    "UnsupportedFileError",
]
