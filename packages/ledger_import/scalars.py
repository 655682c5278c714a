"""Locale-tolerant parsing of single date and amount tokens.

Both parsers return ``None`` instead of raising: a token that cannot be
parsed means "skip this row" to every caller, never a fatal error.
"""

from __future__ import annotations

import re
from datetime import UTC, date, datetime
from decimal import Decimal, InvalidOperation

from dateutil import parser as date_parser

# Tried in order after the free-form attempt. ``%Y`` only accepts four digits,
# so a two-digit year always falls through to ``%d/%m/%y``.
_EXACT_DATE_FORMATS: tuple[str, ...] = ("%d/%m/%Y", "%d-%m-%Y", "%d/%m/%y")

# A leading four-digit group means year/month/day, whatever the separator.
_YEAR_FIRST_RE = re.compile(r"^\d{4}\D")

_UNICODE_MINUS = "\u2212"
_CURRENCY_TOKENS_RE = re.compile(r"(?i)eur|usd|gbp|[€$£]")
_WHITESPACE_RE = re.compile(r"\s+")  # includes NBSP and thin spaces

# Greek/EU: dot groups thousands (strictly in threes), comma is the decimal mark.
_EU_AMOUNT_RE = re.compile(r"^(?:\d{1,3}(?:\.\d{3})+|\d+)(?:,\d+)?$")
# US: comma groups thousands, dot is the decimal mark.
_US_AMOUNT_RE = re.compile(r"^(?:\d{1,3}(?:,\d{3})+|\d+)(?:\.\d+)?$")


class _StatementParserInfo(date_parser.parserinfo):
    """dateutil lexicon that puts two-digit years in the 2000s."""

    def convertyear(self, year: int, century_specified: bool = False) -> int:
        if year < 100 and not century_specified:
            return year + 2000
        return year


_PARSER_INFO = _StatementParserInfo(dayfirst=True)


def _correct_century(d: date) -> date:
    if d.year < 100:
        return d.replace(year=d.year + 2000)
    return d


def _calendar_date(parsed: datetime) -> date:
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(UTC)
    return _correct_century(parsed.date())


def parse_date(token: str | None) -> date | None:
    """Parse a day/month/year token into a calendar date.

    Order: ISO 8601 date or date-time, then a free-form ``dateutil`` parse
    (day before month unless the token leads with a four-digit year), then the
    exact ``dd/MM/yyyy``, ``dd-MM-yyyy`` and ``d/M/yy`` formats. Timestamps
    with an offset are converted to UTC before taking the day. Two-digit years
    land in the 21st century (``"1/3/25"`` is 1 March 2025).
    """

    if token is None:
        return None
    s = token.strip()
    if not s:
        return None

    try:
        parsed = datetime.fromisoformat(s)
    except ValueError:
        pass
    else:
        return _calendar_date(parsed)

    try:
        parsed = date_parser.parse(
            s, parserinfo=_PARSER_INFO, dayfirst=not _YEAR_FIRST_RE.match(s)
        )
    except (ValueError, OverflowError):
        pass
    else:
        return _calendar_date(parsed)

    for fmt in _EXACT_DATE_FORMATS:
        try:
            parsed = datetime.strptime(s, fmt)
        except ValueError:
            continue
        if fmt.endswith("%y"):
            # strptime maps 69-99 to the 1900s; statements are always 20xx
            return parsed.date().replace(year=2000 + parsed.year % 100)
        return _correct_century(parsed.date())
    return None


def _normalize_amount_token(token: str) -> tuple[bool, str]:
    s = _CURRENCY_TOKENS_RE.sub("", token)
    s = _WHITESPACE_RE.sub("", s).replace(_UNICODE_MINUS, "-")
    negative = False
    if s.startswith("-"):
        negative, s = True, s[1:]
    elif s.startswith("+"):
        s = s[1:]
    return negative, s


def _to_decimal(digits: str) -> Decimal | None:
    try:
        return Decimal(digits)
    except InvalidOperation:
        return None


def parse_amount(token: str | None) -> Decimal | None:
    """Parse a signed currency token, Greek/EU rules first, then US rules.

    ``"1.234,56"`` and ``"1,234.56"`` both give ``Decimal("1234.56")``;
    ``"-12,50 €"`` gives ``Decimal("-12.50")``. Ambiguous tokens such as
    ``"1.234"`` resolve with EU rules (one thousand two hundred thirty-four).
    """

    if token is None:
        return None
    negative, body = _normalize_amount_token(token)
    if not body:
        return None

    value: Decimal | None = None
    if _EU_AMOUNT_RE.fullmatch(body):
        value = _to_decimal(body.replace(".", "").replace(",", "."))
    elif _US_AMOUNT_RE.fullmatch(body):
        value = _to_decimal(body.replace(",", ""))
    if value is None:
        return None
    return -value if negative else value


__all__ = ["parse_amount", "parse_date"]
