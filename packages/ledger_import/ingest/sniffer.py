"""Pick a parsing strategy from an upload's file name and leading bytes."""

from __future__ import annotations

import enum
from dataclasses import dataclass
from pathlib import PurePath

from ..errors import NotYetSupportedError, UnsupportedFileError

ACCEPTED_EXTENSIONS: frozenset[str] = frozenset({".csv", ".xlsx", ".xls", ".pdf"})
_EXCEL_EXTENSIONS: frozenset[str] = frozenset({".xlsx", ".xls"})


class StatementKind(enum.StrEnum):
    CSV = "csv"
    PDF = "pdf"


@dataclass(frozen=True, slots=True)
class StatementFormat:
    kind: StatementKind
    # Field separator for delimited text; ``None`` for PDFs.
    delimiter: str | None = None


def file_extension(file_name: str) -> str:
    return PurePath(file_name).suffix.lower()


def detect_delimiter(first_line: str) -> str:
    """``;`` when the header line contains one, otherwise ``,``."""

    if ";" in first_line:
        return ";"
    return ","


def _first_line(head: bytes) -> str:
    text = head.decode("utf-8", errors="replace").lstrip("\ufeff")
    for line in text.splitlines():
        return line
    return ""


def sniff_format(file_name: str, head: bytes) -> StatementFormat:
    """Classify an upload.

    Raises
    ------
    UnsupportedFileError
        The extension is not one of ``.csv``, ``.xlsx``, ``.xls``, ``.pdf``.
    NotYetSupportedError
        Excel workbooks: accepted at the boundary but not parsed yet.
    """

    ext = file_extension(file_name)
    if ext not in ACCEPTED_EXTENSIONS:
        raise UnsupportedFileError()
    if ext in _EXCEL_EXTENSIONS:
        raise NotYetSupportedError()
    if ext == ".pdf":
        return StatementFormat(kind=StatementKind.PDF)
    return StatementFormat(kind=StatementKind.CSV, delimiter=detect_delimiter(_first_line(head)))


__all__ = [
    "ACCEPTED_EXTENSIONS",
    "StatementFormat",
    "StatementKind",
    "detect_delimiter",
    "file_extension",
    "sniff_format",
]
