"""Runtime settings for statement imports and the periodic bank sync.

Values come from environment variables (entrypoints load a local ``.env``
with ``python-dotenv`` first). Invalid values never abort startup: they are
logged and replaced by the default.
"""

from __future__ import annotations

import os
import re
from dataclasses import dataclass, field
from datetime import timedelta

from .logging_setup import get_logger

_logger = get_logger("ledger_import.config")

_CURRENCY_RE = re.compile(r"^[A-Z]{3}$")
_BANK_CODE_RE = re.compile(r"^\d{2,3}$")

# Channel/bank codes observed glued in front of amounts in Greek statements.
DEFAULT_BANK_CODES: tuple[str, ...] = ("949", "99", "96")


def _env_float(name: str, default: float, *, minimum: float = 0.0) -> float:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        value = float(raw)
    except ValueError:
        _logger.warning("Ignoring %s=%r: not a number; using %s", name, raw, default)
        return default
    if value < minimum:
        _logger.warning("Ignoring %s=%r: below %s; using %s", name, raw, minimum, default)
        return default
    return value


def _env_currency(name: str, default: str) -> str:
    raw = (os.getenv(name) or "").strip().upper()
    if not raw:
        return default
    if not _CURRENCY_RE.fullmatch(raw):
        _logger.warning("Ignoring %s=%r: expected a 3-letter ISO code", name, raw)
        return default
    return raw


def parse_bank_codes(raw: str | None) -> tuple[str, ...]:
    """Parse a comma-separated list of 2-3 digit codes.

    Longer codes are ordered first so ``949`` is tried before ``99``/``96`` in
    the extraction pattern's alternation.
    """

    if raw is None or not raw.strip():
        return DEFAULT_BANK_CODES
    codes = [c.strip() for c in raw.split(",") if c.strip()]
    bad = [c for c in codes if not _BANK_CODE_RE.fullmatch(c)]
    if bad or not codes:
        _logger.warning("Ignoring bank codes %r: each code must be 2-3 digits", raw)
        return DEFAULT_BANK_CODES
    unique = dict.fromkeys(codes)
    return tuple(sorted(unique, key=len, reverse=True))


@dataclass(frozen=True, slots=True)
class ImportSettings:
    """Settings shared by the import orchestrator and the sync driver."""

    default_currency: str = "EUR"
    bank_codes: tuple[str, ...] = DEFAULT_BANK_CODES
    sync_interval: timedelta = field(default_factory=lambda: timedelta(hours=6))
    sync_user_delay: timedelta = field(default_factory=lambda: timedelta(seconds=1))
    sync_lookback: timedelta = field(default_factory=lambda: timedelta(days=7))

    @classmethod
    def from_env(cls) -> ImportSettings:
        return cls(
            default_currency=_env_currency("LEDGER_IMPORT_DEFAULT_CURRENCY", "EUR"),
            bank_codes=parse_bank_codes(os.getenv("LEDGER_IMPORT_BANK_CODES")),
            sync_interval=timedelta(
                seconds=_env_float("LEDGER_IMPORT_SYNC_INTERVAL_SECONDS", 6 * 3600, minimum=1)
            ),
            sync_user_delay=timedelta(
                seconds=_env_float("LEDGER_IMPORT_SYNC_USER_DELAY_SECONDS", 1.0)
            ),
            sync_lookback=timedelta(days=_env_float("LEDGER_IMPORT_SYNC_LOOKBACK_DAYS", 7)),
        )


__all__ = ["DEFAULT_BANK_CODES", "ImportSettings", "parse_bank_codes"]
