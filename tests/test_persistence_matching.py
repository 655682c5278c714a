from __future__ import annotations

import pytest

from ledger_import.persistence import descriptions_match, normalize_description


def test_normalize_description_folds_case_accents_and_punctuation() -> None:
    assert normalize_description("  Καφές - ΑΘΗΝΑ!! ") == "καφεσ αθηνα"
    assert normalize_description(None) == ""


@pytest.mark.parametrize(
    ("imported", "manual"),
    [
        ("COFFEE SHOP ATHENS", "Coffee shop athens"),
        ("POS 1234 COFFEE SHOP ATHENS", "coffee shop"),
        ("Bar", "BAR & GRILL"),
        ("ΚΑΦΕΣ", "Καφές"),
    ],
)
def test_descriptions_that_match(imported: str, manual: str) -> None:
    assert descriptions_match(imported, manual)


@pytest.mark.parametrize(
    ("imported", "manual"),
    [
        ("Coffee", "Groceries"),
        ("AB", "ABC STORE"),
        ("Rent", ""),
        ("Rent", None),
        ("---", "---"),
    ],
)
def test_descriptions_that_do_not_match(imported: str, manual: str | None) -> None:
    assert not descriptions_match(imported, manual)
