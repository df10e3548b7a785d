# ruff: noqa: I001
"""Owner-scoped record store over the shared ``db`` library.

Each entity exposes the same four operations (``insert``, ``update``,
``delete`` and ``list``) plus ``get``. Every call runs in its own short
transaction via :func:`db.client.session_scope`; there is no cross-call
transaction. Rows come back as the frozen dataclasses in
:mod:`wangku.models`.

All SQLAlchemy failures are re-raised as :class:`~wangku.errors.StoreError`
so callers have a single error type for the persistence layer.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from datetime import UTC, datetime
from decimal import Decimal
from typing import Any, Generic, TypeVar

from sqlalchemy import case, func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from db.client import session_scope
from db.models.finance import WkChatMessage, WkProfile, WkTransaction, WkWishlist

from .errors import RecordNotFound, StoreError
from .formatting import to_decimal
from .logging_setup import get_logger
from .models import ChatMessage, Profile, Transaction, WishlistItem

R = TypeVar("R")

_logger = get_logger("wangku.store")

# Columns callers may never set directly.
_PROTECTED_COLUMNS = frozenset({"id", "user_id"})


def _to_transaction(row: WkTransaction) -> Transaction:
    return Transaction(
        id=row.id,
        user_id=row.user_id,
        title=row.title,
        amount=to_decimal(row.amount),
        kind=row.type,  # type: ignore[arg-type]
        date=row.date,
        status=row.status,  # type: ignore[arg-type]
        created_at=row.created_at,
    )


def _to_wishlist(row: WkWishlist) -> WishlistItem:
    return WishlistItem(
        id=row.id,
        user_id=row.user_id,
        item_name=row.item_name,
        estimated_cost=to_decimal(row.estimated_cost),
        priority=row.priority,
        status=row.status,  # type: ignore[arg-type]
        created_at=row.created_at,
    )


def _to_chat_message(row: WkChatMessage) -> ChatMessage:
    return ChatMessage(
        id=row.id,
        user_id=row.user_id,
        role=row.role,  # type: ignore[arg-type]
        text=row.text,
        timestamp=row.timestamp,
    )


def _to_profile(row: WkProfile) -> Profile:
    return Profile(
        user_id=row.id,
        name=row.name or "",
        opening_balance=to_decimal(row.opening_balance),
        current_balance=to_decimal(row.current_balance),
    )


class EntityStore(Generic[R]):
    """CRUD for one ORM model, restricted to rows owned by ``owner_id``."""

    def __init__(
        self,
        model: type[Any],
        to_record: Callable[[Any], R],
        *,
        owner_id: str,
        database_url: str | None,
    ) -> None:
        self._model = model
        self._to_record = to_record
        self._owner_id = owner_id
        self._database_url = database_url
        self._columns = frozenset(c.name for c in model.__table__.columns)
        self._name = model.__tablename__

    def _check_columns(self, names: Any, *, op: str) -> None:
        unknown = sorted(set(names) - self._columns)
        if unknown:
            raise StoreError(f"{self._name}.{op}: unknown column(s): {', '.join(unknown)}")

    def _load(self, session: Session, record_id: str) -> Any:
        row = session.get(self._model, record_id)
        if row is None or row.user_id != self._owner_id:
            raise RecordNotFound(f"{self._name}: no record with id {record_id!r}")
        return row

    def insert(self, fields: Mapping[str, Any]) -> R:
        self._check_columns(fields, op="insert")
        values = {k: v for k, v in fields.items() if k not in _PROTECTED_COLUMNS}
        try:
            with session_scope(database_url=self._database_url) as session:
                row = self._model(user_id=self._owner_id, **values)
                session.add(row)
                session.flush()
                record = self._to_record(row)
        except SQLAlchemyError as e:
            _logger.error("store:insert_failed table=%s error=%s", self._name, e.__class__.__name__)
            raise StoreError(f"{self._name}: insert failed: {e}") from e
        _logger.debug("store:insert table=%s id=%s", self._name, getattr(record, "id", None))
        return record

    def get(self, record_id: str) -> R:
        try:
            with session_scope(database_url=self._database_url) as session:
                return self._to_record(self._load(session, record_id))
        except SQLAlchemyError as e:
            raise StoreError(f"{self._name}: get failed: {e}") from e

    def update(self, record_id: str, fields: Mapping[str, Any]) -> R:
        self._check_columns(fields, op="update")
        try:
            with session_scope(database_url=self._database_url) as session:
                row = self._load(session, record_id)
                for k, v in fields.items():
                    if k not in _PROTECTED_COLUMNS:
                        setattr(row, k, v)
                session.flush()
                record = self._to_record(row)
        except SQLAlchemyError as e:
            _logger.error("store:update_failed table=%s error=%s", self._name, e.__class__.__name__)
            raise StoreError(f"{self._name}: update failed: {e}") from e
        return record

    def delete(self, record_id: str) -> None:
        try:
            with session_scope(database_url=self._database_url) as session:
                session.delete(self._load(session, record_id))
        except SQLAlchemyError as e:
            _logger.error("store:delete_failed table=%s error=%s", self._name, e.__class__.__name__)
            raise StoreError(f"{self._name}: delete failed: {e}") from e

    def list(
        self,
        filters: Mapping[str, Any] | None = None,
        *,
        order_by: str | None = None,
        ascending: bool = True,
        limit: int | None = None,
    ) -> list[R]:
        """Rows matching all equality ``filters``, optionally ordered and capped."""

        filters = dict(filters or {})
        self._check_columns(filters, op="list")
        if order_by is not None:
            self._check_columns([order_by], op="list")

        stmt = select(self._model).where(self._model.user_id == self._owner_id)
        for k, v in filters.items():
            stmt = stmt.where(getattr(self._model, k) == v)
        if order_by is not None:
            col = getattr(self._model, order_by)
            stmt = stmt.order_by(col.asc() if ascending else col.desc(), self._model.id)
        if limit is not None:
            stmt = stmt.limit(limit)
        try:
            with session_scope(database_url=self._database_url) as session:
                return [self._to_record(row) for row in session.scalars(stmt)]
        except SQLAlchemyError as e:
            raise StoreError(f"{self._name}: list failed: {e}") from e


class RecordStore:
    """Entry point bundling every entity store for one owner."""

    def __init__(self, owner_id: str, *, database_url: str | None = None) -> None:
        if not owner_id:
            raise ValueError("owner_id is required")
        self.owner_id = owner_id
        self._database_url = database_url
        self.transactions: EntityStore[Transaction] = EntityStore(
            WkTransaction, _to_transaction, owner_id=owner_id, database_url=database_url
        )
        self.wishlists: EntityStore[WishlistItem] = EntityStore(
            WkWishlist, _to_wishlist, owner_id=owner_id, database_url=database_url
        )
        self.chat_messages: EntityStore[ChatMessage] = EntityStore(
            WkChatMessage, _to_chat_message, owner_id=owner_id, database_url=database_url
        )

    # ---- profiles (keyed by owner id) -------------------------------------

    def get_profile(self) -> Profile | None:
        try:
            with session_scope(database_url=self._database_url) as session:
                row = session.get(WkProfile, self.owner_id)
                return _to_profile(row) if row is not None else None
        except SQLAlchemyError as e:
            raise StoreError(f"wk_profiles: get failed: {e}") from e

    def upsert_profile(
        self,
        *,
        name: str | None = None,
        opening_balance: Decimal | None = None,
        current_balance: Decimal | None = None,
    ) -> Profile:
        """Create the profile if missing; set only the fields that are not ``None``."""

        try:
            with session_scope(database_url=self._database_url) as session:
                row = session.get(WkProfile, self.owner_id)
                if row is None:
                    row = WkProfile(
                        id=self.owner_id,
                        name="",
                        opening_balance=Decimal(0),
                        current_balance=Decimal(0),
                    )
                    session.add(row)
                if name is not None:
                    row.name = name
                if opening_balance is not None:
                    row.opening_balance = opening_balance
                if current_balance is not None:
                    row.current_balance = current_balance
                row.updated_at = datetime.now(UTC)
                session.flush()
                return _to_profile(row)
        except SQLAlchemyError as e:
            _logger.error("store:profile_upsert_failed error=%s", e.__class__.__name__)
            raise StoreError(f"wk_profiles: upsert failed: {e}") from e

    # ---- aggregates -------------------------------------------------------

    def completed_net(self) -> Decimal:
        """Σ completed income − Σ completed expense, read fresh from the table."""

        signed = case(
            (WkTransaction.type == "income", WkTransaction.amount),
            else_=-WkTransaction.amount,
        )
        stmt = select(func.coalesce(func.sum(signed), 0)).where(
            WkTransaction.user_id == self.owner_id,
            WkTransaction.status == "completed",
        )
        try:
            with session_scope(database_url=self._database_url) as session:
                return to_decimal(session.scalar(stmt))
        except SQLAlchemyError as e:
            raise StoreError(f"wk_transactions: balance query failed: {e}") from e


__all__ = [
    "EntityStore",
    "RecordStore",
]
