from __future__ import annotations

from datetime import date
from decimal import Decimal

import pytest

from ledger_import.scalars import parse_amount, parse_date


@pytest.mark.parametrize(
    ("token", "expected"),
    [
        ("2025-03-01", date(2025, 3, 1)),
        ("2025-03-01T10:15:00", date(2025, 3, 1)),
        ("01/03/2025", date(2025, 3, 1)),
        ("01-03-2025", date(2025, 3, 1)),
        ("1/3/25", date(2025, 3, 1)),
        ("31/12/99", date(2099, 12, 31)),
        ("  15/06/2024  ", date(2024, 6, 15)),
        ("01.03.2025", date(2025, 3, 1)),
        ("01/03/2025 10:15", date(2025, 3, 1)),
        ("01/03/2025 10:15:00", date(2025, 3, 1)),
        ("2025/03/01", date(2025, 3, 1)),
        ("1 Mar 2025", date(2025, 3, 1)),
        ("1.3.25", date(2025, 3, 1)),
    ],
)
def test_parse_date_accepts_common_statement_shapes(token: str, expected: date) -> None:
    assert parse_date(token) == expected


@pytest.mark.parametrize("token", [None, "", "   ", "32/01/2025", "hello", "2025/13/01"])
def test_parse_date_returns_none_for_garbage(token: str | None) -> None:
    assert parse_date(token) is None


@pytest.mark.parametrize(
    ("token", "expected"),
    [
        ("1.234,56", Decimal("1234.56")),
        ("1,234.56", Decimal("1234.56")),
        ("-12,50 €", Decimal("-12.50")),
        ("€ 1.000.000,00", Decimal("1000000.00")),
        ("+3,10", Decimal("3.10")),
        ("12.50", Decimal("12.50")),
        ("1.234", Decimal("1234")),
        ("42", Decimal("42")),
        ("-960,00", Decimal("-960.00")),
        ("100 EUR", Decimal("100")),
        ("1 234,56", Decimal("1234.56")),
    ],
)
def test_parse_amount_prefers_eu_then_us(token: str, expected: Decimal) -> None:
    assert parse_amount(token) == expected


@pytest.mark.parametrize("token", [None, "", "€", "abc", "1,2,3.4.5", "--5"])
def test_parse_amount_returns_none_for_garbage(token: str | None) -> None:
    assert parse_amount(token) is None


@pytest.mark.parametrize(
    ("token", "expected"),
    [
        ("2025-03-01T23:30:00-05:00", date(2025, 3, 2)),
        ("2025-03-02T00:30:00+02:00", date(2025, 3, 1)),
        ("2025-03-01T12:00:00Z", date(2025, 3, 1)),
        ("01/03/2025 23:30 -0500", date(2025, 3, 2)),
    ],
)
def test_parse_date_takes_the_utc_day_of_offset_timestamps(token: str, expected: date) -> None:
    assert parse_date(token) == expected


def test_parse_amount_accepts_unicode_minus() -> None:
    assert parse_amount("−45,90") == Decimal("-45.90")
    assert parse_amount("− 1.234,56 €") == Decimal("-1234.56")
