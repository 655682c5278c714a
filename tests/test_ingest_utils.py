from __future__ import annotations

from datetime import date
from decimal import Decimal

import pytest

from ledger_import.config import ImportSettings
from ledger_import.errors import EmptyFileError
from ledger_import.ingest import load_candidates
from ledger_import.ingest.utils import decode_statement_text


def test_decode_prefers_utf8_and_strips_bom() -> None:
    assert decode_statement_text("\ufeffΠοσό".encode()) == "Ποσό"


def test_decode_falls_back_to_greek_windows_codepage() -> None:
    assert decode_statement_text("ΚΑΦΕΣ".encode("cp1253")) == "ΚΑΦΕΣ"


def test_load_candidates_reads_legacy_encoded_greek_csv() -> None:
    content = "ΗΜΕΡΟΜΗΝΙΑ;ΠΟΣΟ;ΠΕΡΙΓΡΑΦΗ\n01/03/2025;-45,90;ΚΑΦΕΣ\n".encode("cp1253")

    [c] = load_candidates("export.csv", content)

    assert (c.date, c.amount, c.description) == (date(2025, 3, 1), Decimal("-45.90"), "ΚΑΦΕΣ")


def test_load_candidates_applies_default_currency() -> None:
    content = b"date,amount,description\n2025-03-01,10.00,Refund\n"

    [c] = load_candidates("x.csv", content, settings=ImportSettings(default_currency="GBP"))

    assert c.currency == "GBP"


def test_empty_upload_is_rejected() -> None:
    with pytest.raises(EmptyFileError):
        load_candidates("x.csv", b"")


def test_decode_ends_with_latin1_for_bytes_no_other_codec_accepts() -> None:
    # 0xFF is invalid UTF-8 and unassigned in cp1253
    assert decode_statement_text(b"caf\xe9 \xff") == "café ÿ"
