from __future__ import annotations

import datetime as dt
import uuid
from datetime import UTC, datetime
from decimal import Decimal

from sqlalchemy import (
    CheckConstraint,
    Date,
    DateTime,
    Index,
    Integer,
    Numeric,
    String,
    Text,
    func,
    text,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    pass


def _new_id() -> str:
    return str(uuid.uuid4())


def _utcnow() -> datetime:
    return datetime.now(UTC)


# ---------------------------
# wk_profiles
# ---------------------------


class WkProfile(Base):
    __tablename__ = "wk_profiles"

    # One profile per authenticated owner; the owner id is the primary key.
    id: Mapped[str] = mapped_column(String, primary_key=True)
    name: Mapped[str] = mapped_column(Text, nullable=False, server_default=text("''"))
    # User-entered starting point for the derived balance.
    opening_balance: Mapped[Decimal] = mapped_column(
        Numeric(18, 2), nullable=False, server_default=text("0")
    )
    # Cached value. Always recomputed from wk_transactions, never adjusted in place.
    current_balance: Mapped[Decimal] = mapped_column(
        Numeric(18, 2), nullable=False, server_default=text("0")
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=_utcnow, server_default=func.now()
    )


# ---------------------------
# wk_transactions
# ---------------------------


class WkTransaction(Base):
    __tablename__ = "wk_transactions"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_new_id)
    user_id: Mapped[str] = mapped_column(String, nullable=False)
    title: Mapped[str] = mapped_column(Text, nullable=False)
    amount: Mapped[Decimal] = mapped_column(Numeric(18, 2), nullable=False)
    # Column is named ``type`` in the wire format; values are 'income'/'expense'.
    type: Mapped[str] = mapped_column(String, nullable=False)
    date: Mapped[dt.date] = mapped_column(Date, nullable=False)
    status: Mapped[str] = mapped_column(
        String, nullable=False, server_default=text("'pending'")
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=_utcnow, server_default=func.now()
    )

    __table_args__ = (
        CheckConstraint("type in ('income','expense')", name="ck_wk_tx_type"),
        CheckConstraint("status in ('pending','completed')", name="ck_wk_tx_status"),
        CheckConstraint("amount >= 0", name="ck_wk_tx_amount"),
        Index("ix_wk_tx_user_status_date", "user_id", "status", "date"),
    )


# ---------------------------
# wk_wishlists
# ---------------------------


class WkWishlist(Base):
    __tablename__ = "wk_wishlists"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_new_id)
    user_id: Mapped[str] = mapped_column(String, nullable=False)
    item_name: Mapped[str] = mapped_column(Text, nullable=False)
    estimated_cost: Mapped[Decimal] = mapped_column(Numeric(18, 2), nullable=False)
    priority: Mapped[int] = mapped_column(Integer, nullable=False, server_default=text("1"))
    status: Mapped[str] = mapped_column(
        String, nullable=False, server_default=text("'pending'")
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=_utcnow, server_default=func.now()
    )

    __table_args__ = (
        CheckConstraint("status in ('pending','completed')", name="ck_wk_wl_status"),
        CheckConstraint("estimated_cost >= 0", name="ck_wk_wl_cost"),
        Index("ix_wk_wl_user_priority", "user_id", "priority"),
    )


# ---------------------------
# wk_chat_messages
# ---------------------------


class WkChatMessage(Base):
    __tablename__ = "wk_chat_messages"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_new_id)
    user_id: Mapped[str] = mapped_column(String, nullable=False)
    role: Mapped[str] = mapped_column(String, nullable=False)
    text: Mapped[str] = mapped_column(Text, nullable=False)
    timestamp: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=_utcnow, server_default=func.now()
    )

    __table_args__ = (
        CheckConstraint("role in ('user','assistant')", name="ck_wk_chat_role"),
        Index("ix_wk_chat_user_ts", "user_id", "timestamp"),
    )


__all__ = [
    "Base",
    "WkChatMessage",
    "WkProfile",
    "WkTransaction",
    "WkWishlist",
]
