"""Ingest utilities shared by the orchestrator, the API, and the CLI.

Exposes a single entrypoint that turns an uploaded file into candidate
transactions: sniff the format, decode the text when delimited, and delegate
to the matching adapter.
"""

from __future__ import annotations

from ..config import ImportSettings
from ..errors import EmptyFileError
from ..logging_setup import get_logger
from ..models import CandidateTransaction
from .sniffer import StatementKind, sniff_format

# Greek banks still export legacy Windows-1253 CSVs alongside UTF-8 ones.
_FALLBACK_ENCODINGS: tuple[str, ...] = ("cp1253",)

_logger = get_logger("ledger_import.ingest.utils")


def decode_statement_text(content: bytes) -> str:
    """Decode delimited statement bytes, preferring UTF-8 (with or without BOM)."""

    try:
        return content.decode("utf-8-sig")
    except UnicodeDecodeError:
        pass
    for encoding in _FALLBACK_ENCODINGS:
        try:
            text = content.decode(encoding)
        except UnicodeDecodeError:
            continue
        _logger.info("Decoded statement using fallback encoding %s", encoding)
        return text
    _logger.info("Decoded statement using fallback encoding latin-1")
    return content.decode("latin-1")


def load_candidates(
    file_name: str,
    content: bytes,
    *,
    settings: ImportSettings | None = None,
) -> list[CandidateTransaction]:
    """Read an uploaded statement and return its candidate transactions.

    Raises
    ------
    EmptyFileError, UnsupportedFileError, NotYetSupportedError
        The upload is rejected before any parsing.
    ScannedPdfError
        The PDF carries no usable text.
    """

    # Deferred imports keep pdfplumber off the import path of CSV-only callers
    from .adapters import delimited_csv, pdf_text

    settings = settings or ImportSettings()
    if not content:
        raise EmptyFileError()

    fmt = sniff_format(file_name, content[:4096])
    if fmt.kind is StatementKind.PDF:
        return pdf_text.extract_candidates(
            content,
            default_currency=settings.default_currency,
            bank_codes=settings.bank_codes,
        )

    assert fmt.delimiter is not None  # set for every delimited format
    return delimited_csv.extract_candidates(
        decode_statement_text(content),
        fmt.delimiter,
        default_currency=settings.default_currency,
    )


__all__ = ["decode_statement_text", "load_candidates"]
