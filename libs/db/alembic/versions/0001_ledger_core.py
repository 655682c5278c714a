# ruff: noqa: I001
"""Ledger core tables: import batches, ledger transactions, bank connections.

Revision ID: 0001_ledger_core
Revises: None
Create Date: 2026-10-17
"""

from __future__ import annotations

from collections.abc import Sequence

import sqlalchemy as sa
from alembic import op


# revision identifiers, used by Alembic.
revision: str = "0001_ledger_core"
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.text("now()"),
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.text("now()"),
        ),
    ]


def upgrade() -> None:
    op.create_table(
        "import_batches",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column("user_id", sa.String(), nullable=False),
        sa.Column("source_file_name", sa.Text(), nullable=False),
        sa.Column(
            "imported_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.text("now()"),
        ),
        sa.Column("candidate_count", sa.Integer(), nullable=False),
        sa.Column("total_amount", sa.Numeric(18, 2), nullable=False),
        sa.Column(
            "status", sa.String(), nullable=False, server_default=sa.text("'completed'")
        ),
        sa.CheckConstraint("status in ('completed','failed')", name="ck_import_batch_status"),
    )
    op.create_index("ix_import_batches_user_id", "import_batches", ["user_id"])

    op.create_table(
        "ledger_transactions",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("user_id", sa.String(), nullable=False),
        sa.Column("date", sa.Date(), nullable=False),
        sa.Column("amount", sa.Numeric(18, 2), nullable=False),
        sa.Column("type", sa.String(), nullable=False),
        sa.Column(
            "currency_code", sa.String(length=3), nullable=False, server_default=sa.text("'EUR'")
        ),
        sa.Column("description", sa.Text(), nullable=False),
        sa.Column(
            "category", sa.String(), nullable=False, server_default=sa.text("'Uncategorized'")
        ),
        sa.Column("bank_transaction_id", sa.String(length=64), nullable=True),
        sa.Column("source", sa.String(), nullable=False, server_default=sa.text("'manual'")),
        sa.Column(
            "import_batch_id",
            sa.String(length=36),
            sa.ForeignKey("import_batches.id", ondelete="CASCADE"),
            nullable=True,
        ),
        sa.Column("notes", sa.Text(), nullable=True),
        *_timestamps(),
        sa.CheckConstraint("type in ('expense','income')", name="ck_ledger_tx_type"),
        sa.CheckConstraint(
            "source in ('import','sync','manual')", name="ck_ledger_tx_source"
        ),
    )
    # One identity per user; manual rows (NULL identity) are unconstrained.
    op.create_index(
        "uniq_ledger_tx_user_bank_id",
        "ledger_transactions",
        ["user_id", "bank_transaction_id"],
        unique=True,
        postgresql_where=sa.text("bank_transaction_id IS NOT NULL"),
        sqlite_where=sa.text("bank_transaction_id IS NOT NULL"),
    )
    op.create_index("ix_ledger_tx_user_date", "ledger_transactions", ["user_id", "date"])
    op.create_index(
        "ix_ledger_transactions_import_batch_id", "ledger_transactions", ["import_batch_id"]
    )

    op.create_table(
        "bank_connections",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column("user_id", sa.String(), nullable=False),
        sa.Column("bank_name", sa.String(), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.text("true")),
        sa.Column("last_sync_at", sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
    )
    op.create_index("ix_bank_connections_user_id", "bank_connections", ["user_id"])


def downgrade() -> None:
    op.drop_index("ix_bank_connections_user_id", table_name="bank_connections")
    op.drop_table("bank_connections")
    op.drop_index("ix_ledger_transactions_import_batch_id", table_name="ledger_transactions")
    op.drop_index("ix_ledger_tx_user_date", table_name="ledger_transactions")
    op.drop_index("uniq_ledger_tx_user_bank_id", table_name="ledger_transactions")
    op.drop_table("ledger_transactions")
    op.drop_index("ix_import_batches_user_id", table_name="import_batches")
    op.drop_table("import_batches")
