"""Deterministic content identity for candidate transactions."""

from __future__ import annotations

import hashlib
from datetime import date
from decimal import ROUND_HALF_UP, Decimal

_CENTS = Decimal("0.01")


def normalize_amount(amount: Decimal) -> Decimal:
    """Quantize to two decimals so ``960`` and ``960,00`` hash alike."""

    return amount.quantize(_CENTS, rounding=ROUND_HALF_UP)


def compute_identity(tx_date: date, amount: Decimal, description: str) -> str:
    """Return the SHA-256 hex digest of ``"{yyyyMMdd}_{amount}_{description}"``.

    The same triple always yields the same 64-char lowercase identity, no
    matter which extractor produced it. This is the only cross-import dedup
    key; extractors themselves never compare against earlier imports.
    """

    raw = f"{tx_date:%Y%m%d}_{normalize_amount(amount):f}_{description}"
    return hashlib.sha256(raw.encode("utf-8")).hexdigest()


__all__ = ["compute_identity", "normalize_amount"]
