from __future__ import annotations

from datetime import UTC, date, datetime
from decimal import Decimal

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Date,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
    Text,
    func,
    text,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship


class Base(DeclarativeBase):
    pass


def _utcnow() -> datetime:
    return datetime.now(UTC)


# ---------------------------
# Header: import_batches
# ---------------------------


class ImportBatch(Base):
    __tablename__ = "import_batches"

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    user_id: Mapped[str] = mapped_column(String, nullable=False, index=True)
    source_file_name: Mapped[str] = mapped_column(Text, nullable=False)
    imported_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=_utcnow, server_default=func.now()
    )
    candidate_count: Mapped[int] = mapped_column(Integer, nullable=False)
    total_amount: Mapped[Decimal] = mapped_column(Numeric(18, 2), nullable=False)
    # The only field mutated after creation; rows are otherwise immutable and
    # removed (with their ledger rows) only by an explicit revert.
    status: Mapped[str] = mapped_column(
        String, nullable=False, server_default=text("'completed'")
    )

    transactions: Mapped[list[LedgerTransaction]] = relationship(
        back_populates="import_batch",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    __table_args__ = (
        CheckConstraint("status in ('completed','failed')", name="ck_import_batch_status"),
    )


# ---------------------------
# Core: ledger_transactions
# ---------------------------


class LedgerTransaction(Base):
    __tablename__ = "ledger_transactions"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[str] = mapped_column(String, nullable=False)
    date: Mapped[date] = mapped_column(Date, nullable=False)
    # Signed: negative amounts are money leaving the account.
    amount: Mapped[Decimal] = mapped_column(Numeric(18, 2), nullable=False)
    type: Mapped[str] = mapped_column(String, nullable=False)
    currency_code: Mapped[str] = mapped_column(
        String(3), nullable=False, server_default=text("'EUR'")
    )
    description: Mapped[str] = mapped_column(Text, nullable=False)
    category: Mapped[str] = mapped_column(
        String, nullable=False, server_default=text("'Uncategorized'")
    )
    # Content hash of (date, amount, description); NULL for manual entries.
    bank_transaction_id: Mapped[str | None] = mapped_column(String(64), nullable=True)
    source: Mapped[str] = mapped_column(String, nullable=False, server_default=text("'manual'"))
    import_batch_id: Mapped[str | None] = mapped_column(
        String(36),
        ForeignKey("import_batches.id", ondelete="CASCADE"),
        nullable=True,
        index=True,
    )
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=_utcnow, server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=_utcnow, server_default=func.now()
    )

    import_batch: Mapped[ImportBatch | None] = relationship(back_populates="transactions")

    __table_args__ = (
        CheckConstraint("type in ('expense','income')", name="ck_ledger_tx_type"),
        CheckConstraint("source in ('import','sync','manual')", name="ck_ledger_tx_source"),
        Index(
            "uniq_ledger_tx_user_bank_id",
            "user_id",
            "bank_transaction_id",
            unique=True,
            postgresql_where=text("bank_transaction_id IS NOT NULL"),
            sqlite_where=text("bank_transaction_id IS NOT NULL"),
        ),
        Index("ix_ledger_tx_user_date", "user_id", "date"),
    )


# ---------------------------
# Reference: bank_connections
# ---------------------------


class BankConnection(Base):
    __tablename__ = "bank_connections"

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    user_id: Mapped[str] = mapped_column(String, nullable=False, index=True)
    bank_name: Mapped[str | None] = mapped_column(String, nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, server_default=text("true"))
    # Watermark for the periodic sync; NULL until the first successful run.
    last_sync_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=_utcnow, server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=_utcnow, server_default=func.now()
    )


__all__ = [
    "Base",
    "BankConnection",
    "ImportBatch",
    "LedgerTransaction",
]
