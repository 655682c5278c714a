"""Adapter for heuristically mapping a bank CSV export to candidate transactions.

Bank CSVs disagree on column names, languages, and even on how many fields a
row has, so nothing about the header is validated. Each row is modelled as an
ordered mapping of ``lowercase header -> raw cell``; semantic fields are then
resolved by synonym lists:

- for each synonym (in order), the first header containing it (in column
  order, case- and accent-insensitive) is consulted;
- if that cell does not parse, the next synonym is tried;
- a field with no matching header is empty for every row.

Rows without a parseable date or with a zero/unparseable amount are dropped
silently: balance lines, sub-headers, and footers are routine in exports.
"""

from __future__ import annotations

import csv
import io
import re
import unicodedata
from collections.abc import Iterable, Iterator, Mapping, Sequence
from datetime import date
from decimal import Decimal
from typing import TypeAlias

from ...models import CandidateTransaction
from ...scalars import parse_amount, parse_date

UNKNOWN_DESCRIPTION = "Unknown Transaction"

DATE_SYNONYMS: tuple[str, ...] = (
    "date",
    "hmerominia",
    "ημερομηνια",
    "transaction date",
    "booking date",
    "time",
)
AMOUNT_SYNONYMS: tuple[str, ...] = ("amount", "poso", "ποσο", "value", "euro", "eur")
DESCRIPTION_SYNONYMS: tuple[str, ...] = (
    "description",
    "perigrafi",
    "περιγραφη",
    "αιτιολογια",
    "details",
    "memo",
    "notes",
    "transaction details",
)
CURRENCY_SYNONYMS: tuple[str, ...] = ("currency", "νομισμα", "ccy")

_CURRENCY_CODE_RE = re.compile(r"^[A-Za-z]{3}$")

Row: TypeAlias = Mapping[str, str]


def fold_header(value: str) -> str:
    """Lower-case, strip accents, and collapse whitespace for header matching."""

    decomposed = unicodedata.normalize("NFD", value)
    stripped = "".join(ch for ch in decomposed if not unicodedata.combining(ch))
    return re.sub(r"\s+", " ", stripped.casefold()).strip()


def _matching_keys(row: Row, synonyms: Sequence[str]) -> Iterator[str]:
    for synonym in synonyms:
        for key in row:
            if synonym in fold_header(key):
                yield key
                break


def iter_rows(text: str, delimiter: str) -> Iterator[dict[str, str]]:
    """Yield each data row as an ordered ``lowercase header -> value`` dict.

    Missing trailing fields read as ``""``; surplus fields are ignored;
    completely blank lines are skipped; the first header wins on duplicates.
    """

    reader = csv.reader(io.StringIO(text), delimiter=delimiter)
    headers: list[str] | None = None
    for record in reader:
        if not any(cell.strip() for cell in record):
            continue
        if headers is None:
            headers = [cell.strip().lower() for cell in record]
            continue
        row: dict[str, str] = {}
        for idx, header in enumerate(headers):
            if header in row:
                continue
            row[header] = record[idx] if idx < len(record) else ""
        yield row


def resolve_date(row: Row) -> date | None:
    for key in _matching_keys(row, DATE_SYNONYMS):
        value = row[key]
        if value and value.strip():
            parsed = parse_date(value)
            if parsed is not None:
                return parsed
    return None


def resolve_amount(row: Row) -> Decimal | None:
    for key in _matching_keys(row, AMOUNT_SYNONYMS):
        value = row[key]
        if value and value.strip():
            parsed = parse_amount(value)
            if parsed is not None:
                return parsed
    return None


def resolve_description(row: Row) -> str:
    for key in _matching_keys(row, DESCRIPTION_SYNONYMS):
        value = re.sub(r"\s+", " ", row[key] or "").strip()
        return value or UNKNOWN_DESCRIPTION
    return UNKNOWN_DESCRIPTION


def resolve_currency(row: Row, default: str) -> str:
    for key in _matching_keys(row, CURRENCY_SYNONYMS):
        value = (row[key] or "").strip()
        if _CURRENCY_CODE_RE.fullmatch(value):
            return value.upper()
    return default


def to_candidates(
    rows: Iterable[Row], *, default_currency: str = "EUR"
) -> Iterator[CandidateTransaction]:
    """Convert resolved rows to candidates, dropping rows that fail to parse."""

    for row in rows:
        tx_date = resolve_date(row)
        amount = resolve_amount(row)
        if tx_date is None or amount is None or amount == 0:
            continue
        yield CandidateTransaction.build(
            tx_date,
            amount,
            resolve_description(row),
            currency=resolve_currency(row, default_currency),
        )


def extract_candidates(
    text: str, delimiter: str, *, default_currency: str = "EUR"
) -> list[CandidateTransaction]:
    """Parse delimited statement ``text`` into candidate transactions."""

    return list(to_candidates(iter_rows(text, delimiter), default_currency=default_currency))


__all__ = [
    "AMOUNT_SYNONYMS",
    "CURRENCY_SYNONYMS",
    "DATE_SYNONYMS",
    "DESCRIPTION_SYNONYMS",
    "UNKNOWN_DESCRIPTION",
    "extract_candidates",
    "fold_header",
    "iter_rows",
    "to_candidates",
]
