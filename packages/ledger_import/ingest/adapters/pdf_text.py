"""Adapter for recovering transactions from text extracted out of PDF statements.

PDF text extraction flattens each visual statement row and frequently glues
neighbouring cells (and neighbouring rows) together with no whitespace, e.g.::

    01/03Coffee Shop Athens960,0003/03/2025

A single composite pattern is applied per line with ``finditer`` so a line may
yield several transactions. Named groups:

- ``start``: short transaction date ``d/m`` (no year);
- ``description``: lazily matched free text;
- ``code``: optional bank/channel code glued in front of the amount;
- ``amount``: strictly formatted Greek/EU amount (``1.234,56``);
- ``end``: value date ``d/m/yy`` or ``d/m/yyyy``, authoritative for the year.

The ``code`` group is only a disambiguation hint. When it produces a zero
amount (``96`` + ``0,00``) the split was wrong and the code is folded back
into the amount (``960,00``). That correction is an explicit step after the
match, not regex backtracking.
"""

from __future__ import annotations

import io
import re
from collections.abc import Iterable, Iterator, Sequence
from datetime import date
from decimal import Decimal

import pdfplumber

from ...config import DEFAULT_BANK_CODES
from ...errors import ScannedPdfError, UnreadablePdfError
from ...logging_setup import get_logger
from ...models import CandidateTransaction
from ...scalars import parse_amount, parse_date

PDF_PLACEHOLDER_DESCRIPTION = "Imported PDF Transaction"

_logger = get_logger("ledger_import.ingest.adapters.pdf_text")

_LINE_SPLIT_RE = re.compile(r"[\r\n]+")
_WHITESPACE_RE = re.compile(r"\s+")


def build_transaction_pattern(bank_codes: Sequence[str] = DEFAULT_BANK_CODES) -> re.Pattern[str]:
    """Compile the composite per-line pattern for the given bank codes.

    Codes are restricted to a known list: a generic ``\\d{2,3}`` would happily
    split ordinary amounts such as ``200,00`` into ``20`` + ``0,00``.
    """

    if not bank_codes:
        raise ValueError("at least one bank code is required")
    for code in bank_codes:
        if not re.fullmatch(r"\d{2,3}", code):
            raise ValueError(f"bank code must be 2-3 digits: {code!r}")
    codes = "|".join(sorted(dict.fromkeys(bank_codes), key=len, reverse=True))
    return re.compile(
        r"(?P<start>\d{1,2}/\d{1,2})"
        r"(?P<description>.*?)"
        rf"(?P<code>{codes})?"
        r"(?P<amount>-?(?:0|[1-9]\d{0,2}(?:\.\d{3})*),\d{2})"
        r"(?P<end>\d{1,2}/\d{1,2}/(?:20\d{2}|\d{2}))"
    )


TRANSACTION_PATTERN = build_transaction_pattern()


def _recombine(code: str, amount_text: str) -> Decimal | None:
    # Keep the sign in front: "96" + "-0,00" is "-960,00", not "96-0,00".
    if amount_text.startswith("-"):
        return parse_amount(f"-{code}{amount_text[1:]}")
    return parse_amount(f"{code}{amount_text}")


def clean_description(raw: str) -> str:
    cleaned = _WHITESPACE_RE.sub(" ", raw).strip()
    return cleaned or PDF_PLACEHOLDER_DESCRIPTION


def _candidate_from_match(
    match: re.Match[str], *, default_currency: str
) -> CandidateTransaction | None:
    end_date = parse_date(match["end"])
    if end_date is None:
        _logger.warning("Skipping PDF match: unparseable end date %r", match["end"])
        return None

    start_date: date = parse_date(f"{match['start']}/{end_date.year}") or end_date

    amount_text = match["amount"]
    amount = parse_amount(amount_text)
    if amount is None:
        _logger.warning("Skipping PDF match: unparseable amount %r", amount_text)
        return None

    code = match["code"] or ""
    if amount == 0 and code:
        combined = _recombine(code, amount_text)
        if combined is not None:
            _logger.debug("Recombined bank code %s with amount %s", code, amount_text)
            amount = combined

    if amount == 0:
        return None

    return CandidateTransaction.build(
        start_date,
        amount,
        clean_description(match["description"]),
        currency=default_currency,
    )


def iter_line_candidates(
    line: str,
    *,
    pattern: re.Pattern[str] = TRANSACTION_PATTERN,
    default_currency: str = "EUR",
) -> Iterator[tuple[re.Match[str], CandidateTransaction | None]]:
    """Yield every non-overlapping match on ``line`` with its candidate (if any)."""

    for match in pattern.finditer(line):
        yield match, _candidate_from_match(match, default_currency=default_currency)


def extract_candidates_from_lines(
    lines: Iterable[str],
    *,
    default_currency: str = "EUR",
    bank_codes: Sequence[str] = DEFAULT_BANK_CODES,
) -> list[CandidateTransaction]:
    """Recover candidates from extracted statement lines.

    Raises
    ------
    ScannedPdfError
        No lines at all, or no line matched the transaction pattern anywhere
        in the document (an image-only PDF or not a statement).
    """

    pattern = (
        TRANSACTION_PATTERN
        if tuple(bank_codes) == DEFAULT_BANK_CODES
        else build_transaction_pattern(bank_codes)
    )
    candidates: list[CandidateTransaction] = []
    n_lines = 0
    n_matches = 0
    for line in lines:
        if not line.strip():
            continue
        n_lines += 1
        for _match, candidate in iter_line_candidates(
            line, pattern=pattern, default_currency=default_currency
        ):
            n_matches += 1
            if candidate is not None:
                candidates.append(candidate)

    if n_lines == 0 or n_matches == 0:
        raise ScannedPdfError()
    _logger.info(
        "PDF extraction: %d lines, %d matches, %d candidates",
        n_lines,
        n_matches,
        len(candidates),
    )
    return candidates


def extract_lines(content: bytes) -> list[str]:
    """Return the non-empty text lines of every page, in reading order."""

    lines: list[str] = []
    try:
        with pdfplumber.open(io.BytesIO(content)) as pdf:
            for page in pdf.pages:
                text = page.extract_text() or ""
                lines.extend(part for part in _LINE_SPLIT_RE.split(text) if part.strip())
    except Exception as exc:
        raise UnreadablePdfError() from exc
    return lines


def extract_candidates(
    content: bytes,
    *,
    default_currency: str = "EUR",
    bank_codes: Sequence[str] = DEFAULT_BANK_CODES,
) -> list[CandidateTransaction]:
    """Extract candidate transactions from raw PDF bytes."""

    return extract_candidates_from_lines(
        extract_lines(content), default_currency=default_currency, bank_codes=bank_codes
    )


__all__ = [
    "PDF_PLACEHOLDER_DESCRIPTION",
    "TRANSACTION_PATTERN",
    "build_transaction_pattern",
    "clean_description",
    "extract_candidates",
    "extract_candidates_from_lines",
    "extract_lines",
    "iter_line_candidates",
]
