"""Ledger operations: the mutation contracts shared by the UI and the assistant.

Every way of changing money-related records goes through :class:`Ledger`, so
manual edits and assistant actions get the same validation, the same balance
recomputation and the same error type (:class:`~wangku.errors.StoreError`).

Balance rule
------------
``current_balance = opening_balance + Σ completed income − Σ completed expense``.
After any mutation that touches a completed transaction the balance is re-read
from the transactions table and written to the profile. It is never adjusted
incrementally. The insert and the recomputation are separate store calls; a
crash in between leaves the cached value stale until the next recomputation.

Buying a wishlist item
----------------------
:meth:`Ledger.buy_wishlist_item` marks the item completed and then records a
completed expense for its estimated cost. The two writes are not atomic. If
the expense insert fails the item is flipped back to pending. A second call on
an already-bought item is rejected, but two calls racing on the same pending
item can both succeed; the operation is not idempotent under concurrency.
"""

from __future__ import annotations

from datetime import date
from decimal import Decimal
from typing import Any

from pydantic import ValidationError

from .errors import InvalidTransition, StoreError
from .formatting import to_decimal
from .logging_setup import get_logger
from .models import (
    AddTransaction,
    AddWishlist,
    FinancialSnapshot,
    Profile,
    Transaction,
    WishlistItem,
)
from .store import RecordStore

_logger = get_logger("wangku.ledger")

_EDITABLE_TRANSACTION_FIELDS = frozenset({"title", "amount", "kind", "date", "status"})


def _validated_transaction(fields: dict[str, Any]) -> AddTransaction:
    try:
        return AddTransaction.model_validate(fields)
    except ValidationError as e:
        raise ValueError(f"invalid transaction: {e.error_count()} field error(s): {e}") from e


class Ledger:
    def __init__(self, store: RecordStore) -> None:
        self.store = store

    # ---- profile ----------------------------------------------------------

    def ensure_profile(self) -> Profile:
        """Return the owner's profile, creating an empty one on first use."""

        profile = self.store.get_profile()
        if profile is None:
            _logger.info("ledger:profile_created owner=%s", self.store.owner_id)
            profile = self.store.upsert_profile()
        return profile

    def set_name(self, name: str) -> Profile:
        return self.store.upsert_profile(name=name.strip())

    def set_opening_balance(self, amount: Decimal | int | float | str) -> Profile:
        value = to_decimal(amount)
        self.store.upsert_profile(opening_balance=value)
        self.recompute_balance()
        return self.ensure_profile()

    def current_balance(self) -> Decimal:
        """Derived balance read fresh from the store (no write)."""

        profile = self.ensure_profile()
        return profile.opening_balance + self.store.completed_net()

    def recompute_balance(self) -> Decimal:
        balance = self.current_balance()
        self.store.upsert_profile(current_balance=balance)
        _logger.debug("ledger:balance_recomputed owner=%s", self.store.owner_id)
        return balance

    # ---- transactions -----------------------------------------------------

    def list_transactions(self, *, status: str | None = None) -> list[Transaction]:
        filters = {"status": status} if status else None
        return self.store.transactions.list(filters, order_by="date", ascending=True)

    def add_transaction(
        self,
        *,
        title: str,
        amount: Decimal | int | float | str,
        kind: str,
        on: date | str,
        status: str = "pending",
    ) -> Transaction:
        """Validate and insert one transaction; recompute the balance when completed."""

        tx = _validated_transaction(
            {"title": title, "amount": amount, "kind": kind, "date": on, "status": status}
        )
        return self.record_transaction(tx)

    def record_transaction(self, tx: AddTransaction) -> Transaction:
        """Insert an already-validated transaction instruction."""

        created = self.store.transactions.insert(
            {
                "title": tx.title,
                "amount": tx.amount,
                "type": tx.kind,
                "date": tx.date,
                "status": tx.status,
            }
        )
        _logger.info(
            "ledger:transaction_added id=%s kind=%s status=%s",
            created.id,
            created.kind,
            created.status,
        )
        if created.is_completed:
            try:
                self.recompute_balance()
            except StoreError as e:
                # The row is stored; the cached balance catches up on the next recompute.
                _logger.error("ledger:balance_recompute_failed id=%s err=%s", created.id, e)
        return created

    def update_transaction(self, transaction_id: str, **fields: Any) -> Transaction:
        """Edit a transaction. Completed transactions cannot go back to pending."""

        unknown = set(fields) - _EDITABLE_TRANSACTION_FIELDS
        if unknown:
            raise ValueError(f"cannot edit transaction field(s): {', '.join(sorted(unknown))}")
        current = self.store.transactions.get(transaction_id)
        merged = {
            "title": current.title,
            "amount": current.amount,
            "kind": current.kind,
            "date": current.date,
            "status": current.status,
            **fields,
        }
        tx = _validated_transaction(merged)
        if current.is_completed and tx.status != "completed":
            raise InvalidTransition(
                f"transaction {transaction_id} is completed and cannot return to {tx.status}"
            )
        updated = self.store.transactions.update(
            transaction_id,
            {
                "title": tx.title,
                "amount": tx.amount,
                "type": tx.kind,
                "date": tx.date,
                "status": tx.status,
            },
        )
        if current.is_completed or updated.is_completed:
            self.recompute_balance()
        return updated

    def confirm_transaction(self, transaction_id: str) -> Transaction:
        """Flip a pending transaction to completed."""

        current = self.store.transactions.get(transaction_id)
        if current.is_completed:
            raise InvalidTransition(f"transaction {transaction_id} is already completed")
        return self.update_transaction(transaction_id, status="completed")

    def delete_transaction(self, transaction_id: str) -> None:
        current = self.store.transactions.get(transaction_id)
        self.store.transactions.delete(transaction_id)
        _logger.info("ledger:transaction_deleted id=%s", transaction_id)
        if current.is_completed:
            self.recompute_balance()

    # ---- wishlist ---------------------------------------------------------

    def list_wishlist(self, *, include_completed: bool = False) -> list[WishlistItem]:
        filters = None if include_completed else {"status": "pending"}
        return self.store.wishlists.list(filters, order_by="priority", ascending=True)

    def add_wishlist_item(
        self,
        *,
        item_name: str,
        estimated_cost: Decimal | int | float | str,
        priority: int = 1,
    ) -> WishlistItem:
        try:
            wl = AddWishlist.model_validate(
                {"item_name": item_name, "estimated_cost": estimated_cost, "priority": priority}
            )
        except ValidationError as e:
            raise ValueError(f"invalid wishlist item: {e}") from e
        return self.record_wishlist_item(wl)

    def record_wishlist_item(self, wl: AddWishlist) -> WishlistItem:
        created = self.store.wishlists.insert(
            {
                "item_name": wl.item_name,
                "estimated_cost": wl.estimated_cost,
                "priority": wl.priority,
                "status": "pending",
            }
        )
        _logger.info("ledger:wishlist_added id=%s priority=%d", created.id, created.priority)
        return created

    def buy_wishlist_item(
        self, item_id: str, *, on: date | None = None
    ) -> tuple[WishlistItem, Transaction]:
        """Mark an item bought and record the matching completed expense."""

        item = self.store.wishlists.get(item_id)
        if item.status == "completed":
            raise InvalidTransition(f"wishlist item {item_id} is already bought")

        bought = self.store.wishlists.update(item_id, {"status": "completed"})
        try:
            expense = self.record_transaction(
                AddTransaction(
                    title=f"Beli {item.item_name}",
                    amount=item.estimated_cost,
                    kind="expense",
                    date=on or date.today(),
                    status="completed",
                )
            )
        except StoreError:
            _logger.error("ledger:buy_failed item=%s reverting_status", item_id)
            try:
                self.store.wishlists.update(item_id, {"status": "pending"})
            except StoreError:
                _logger.error("ledger:buy_revert_failed item=%s left_completed", item_id)
            raise
        return bought, expense

    def delete_wishlist_item(self, item_id: str) -> None:
        self.store.wishlists.delete(item_id)

    # ---- assistant context ------------------------------------------------

    def snapshot(self, *, limit: int = 10) -> FinancialSnapshot:
        """Fresh balance plus bounded upcoming/recent/wishlist lists."""

        return FinancialSnapshot(
            balance=self.current_balance(),
            upcoming_transactions=self.store.transactions.list(
                {"status": "pending"}, order_by="date", ascending=True, limit=limit
            ),
            recent_transactions=self.store.transactions.list(
                {"status": "completed"}, order_by="date", ascending=False, limit=limit
            ),
            wishlist=self.store.wishlists.list(
                {"status": "pending"}, order_by="priority", ascending=True, limit=limit
            ),
        )


__all__ = ["Ledger"]
