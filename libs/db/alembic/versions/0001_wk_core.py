# ruff: noqa: I001
"""Personal-finance core tables: profiles, transactions, wishlists, chat log.

Revision ID: 0001_wk_core
Revises: None
Create Date: 2026-10-19
"""

from __future__ import annotations

from collections.abc import Sequence

import sqlalchemy as sa
from alembic import op


# revision identifiers, used by Alembic.
revision: str = "0001_wk_core"
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def _created_at(name: str = "created_at") -> sa.Column:
    return sa.Column(
        name,
        sa.DateTime(timezone=True),
        nullable=False,
        server_default=sa.func.now(),
    )


def upgrade() -> None:
    op.create_table(
        "wk_profiles",
        sa.Column("id", sa.String(), primary_key=True),
        sa.Column("name", sa.Text(), nullable=False, server_default=sa.text("''")),
        sa.Column(
            "opening_balance", sa.Numeric(18, 2), nullable=False, server_default=sa.text("0")
        ),
        sa.Column(
            "current_balance", sa.Numeric(18, 2), nullable=False, server_default=sa.text("0")
        ),
        _created_at("updated_at"),
    )

    op.create_table(
        "wk_transactions",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("user_id", sa.String(), nullable=False),
        sa.Column("title", sa.Text(), nullable=False),
        sa.Column("amount", sa.Numeric(18, 2), nullable=False),
        sa.Column("type", sa.String(), nullable=False),
        sa.Column("date", sa.Date(), nullable=False),
        sa.Column("status", sa.String(), nullable=False, server_default=sa.text("'pending'")),
        _created_at(),
        sa.CheckConstraint("type in ('income','expense')", name="ck_wk_tx_type"),
        sa.CheckConstraint("status in ('pending','completed')", name="ck_wk_tx_status"),
        sa.CheckConstraint("amount >= 0", name="ck_wk_tx_amount"),
    )
    op.create_index(
        "ix_wk_tx_user_status_date", "wk_transactions", ["user_id", "status", "date"]
    )

    op.create_table(
        "wk_wishlists",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("user_id", sa.String(), nullable=False),
        sa.Column("item_name", sa.Text(), nullable=False),
        sa.Column("estimated_cost", sa.Numeric(18, 2), nullable=False),
        sa.Column("priority", sa.Integer(), nullable=False, server_default=sa.text("1")),
        sa.Column("status", sa.String(), nullable=False, server_default=sa.text("'pending'")),
        _created_at(),
        sa.CheckConstraint("status in ('pending','completed')", name="ck_wk_wl_status"),
        sa.CheckConstraint("estimated_cost >= 0", name="ck_wk_wl_cost"),
    )
    op.create_index("ix_wk_wl_user_priority", "wk_wishlists", ["user_id", "priority"])

    op.create_table(
        "wk_chat_messages",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("user_id", sa.String(), nullable=False),
        sa.Column("role", sa.String(), nullable=False),
        sa.Column("text", sa.Text(), nullable=False),
        _created_at("timestamp"),
        sa.CheckConstraint("role in ('user','assistant')", name="ck_wk_chat_role"),
    )
    op.create_index("ix_wk_chat_user_ts", "wk_chat_messages", ["user_id", "timestamp"])


def downgrade() -> None:
    op.drop_index("ix_wk_chat_user_ts", table_name="wk_chat_messages")
    op.drop_table("wk_chat_messages")
    op.drop_index("ix_wk_wl_user_priority", table_name="wk_wishlists")
    op.drop_table("wk_wishlists")
    op.drop_index("ix_wk_tx_user_status_date", table_name="wk_transactions")
    op.drop_table("wk_transactions")
    op.drop_table("wk_profiles")
