"""Per-format adapters producing :class:`~ledger_import.models.CandidateTransaction` lists."""
