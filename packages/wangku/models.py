"""Data models and type aliases for ``wangku``.

Two families live here:

- Plain frozen dataclasses for records read from the store (transactions,
  wishlist items, profiles, chat messages) and for the per-turn financial
  snapshot. They carry no behaviour and are safe to hand to pure functions.
- Pydantic models for the action instructions parsed out of assistant replies.
  These are validated DTOs: whatever survives validation can be applied to the
  store without further checks.
"""

from __future__ import annotations

import datetime as dt
from collections.abc import Sequence
from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from typing import Any, ClassVar, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

type TransactionKind = Literal["income", "expense"]
type RecordStatus = Literal["pending", "completed"]
type ChatRole = Literal["user", "assistant"]

TRANSACTION_KINDS: tuple[str, ...] = ("income", "expense")
RECORD_STATUSES: tuple[str, ...] = ("pending", "completed")

# ---------------------------------------------------------------------------
# Store records
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class Transaction:
    id: str
    user_id: str
    title: str
    amount: Decimal
    kind: TransactionKind
    date: dt.date
    status: RecordStatus
    created_at: datetime | None = None

    @property
    def is_completed(self) -> bool:
        return self.status == "completed"


@dataclass(frozen=True, slots=True)
class WishlistItem:
    id: str
    user_id: str
    item_name: str
    estimated_cost: Decimal
    priority: int
    status: RecordStatus
    created_at: datetime | None = None


@dataclass(frozen=True, slots=True)
class Profile:
    """Owner profile. ``current_balance`` is a cache of the derived balance."""

    user_id: str
    name: str
    opening_balance: Decimal
    current_balance: Decimal


@dataclass(frozen=True, slots=True)
class ChatMessage:
    id: str
    user_id: str
    role: ChatRole
    text: str
    timestamp: datetime


@dataclass(frozen=True, slots=True)
class FinancialSnapshot:
    """Inputs of one chat turn's context block. Built fresh; never cached."""

    balance: Decimal
    upcoming_transactions: Sequence[Transaction] = field(default_factory=tuple)
    recent_transactions: Sequence[Transaction] = field(default_factory=tuple)
    wishlist: Sequence[WishlistItem] = field(default_factory=tuple)


# ---------------------------------------------------------------------------
# Action instructions
# ---------------------------------------------------------------------------


def _reject_bool(v: Any) -> Any:
    # bool is an int subclass; pydantic's lax mode would turn True into 1.
    if isinstance(v, bool):
        raise ValueError("boolean is not a number")
    return v


class AddTransaction(BaseModel):
    """``ADD_TRANSACTION`` payload. ``kind`` is carried as ``type`` on the wire."""

    ACTION: ClassVar[str] = "ADD_TRANSACTION"

    model_config = ConfigDict(
        frozen=True, extra="ignore", populate_by_name=True, str_strip_whitespace=True
    )

    title: str = Field(min_length=1)
    amount: Decimal = Field(ge=0)
    kind: TransactionKind = Field(alias="type")
    date: dt.date
    status: RecordStatus

    @field_validator("amount", mode="before")
    @classmethod
    def _amount_not_bool(cls, v: Any) -> Any:
        return _reject_bool(v)

    @field_validator("kind", "status", mode="before")
    @classmethod
    def _normalize_token(cls, v: Any) -> Any:
        # Case and surrounding whitespace are forgiven; the word itself is not.
        if isinstance(v, str):
            return v.strip().lower()
        return v

    @field_validator("date", mode="before")
    @classmethod
    def _iso_date_only(cls, v: Any) -> Any:
        if isinstance(v, date):
            return v
        if not isinstance(v, str):
            raise ValueError("date must be a YYYY-MM-DD string")
        return date.fromisoformat(v.strip())


class AddWishlist(BaseModel):
    """``ADD_WISHLIST`` payload."""

    ACTION: ClassVar[str] = "ADD_WISHLIST"

    model_config = ConfigDict(frozen=True, extra="ignore", str_strip_whitespace=True)

    item_name: str = Field(min_length=1)
    estimated_cost: Decimal = Field(ge=0)
    priority: int = Field(ge=0)

    @field_validator("estimated_cost", "priority", mode="before")
    @classmethod
    def _number_not_bool(cls, v: Any) -> Any:
        return _reject_bool(v)


type ActionInstruction = AddTransaction | AddWishlist


__all__ = [
    "RECORD_STATUSES",
    "TRANSACTION_KINDS",
    "ActionInstruction",
    "AddTransaction",
    "AddWishlist",
    "ChatMessage",
    "ChatRole",
    "FinancialSnapshot",
    "Profile",
    "RecordStatus",
    "Transaction",
    "TransactionKind",
    "WishlistItem",
]
