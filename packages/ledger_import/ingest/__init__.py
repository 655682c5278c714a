"""Statement ingestion: format sniffing and per-format extraction adapters."""

from .utils import load_candidates

__all__ = ["load_candidates"]
