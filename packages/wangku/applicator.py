"""Apply a validated assistant action to the ledger.

One instruction, one ledger call, one attempt. Store failures propagate as
:class:`~wangku.errors.StoreError`, the same error manual edits raise, so the
caller reports them through the same channel.
"""

from __future__ import annotations

from .ledger import Ledger
from .logging_setup import get_logger
from .models import ActionInstruction, AddTransaction, AddWishlist, Transaction, WishlistItem

_logger = get_logger("wangku.applicator")


def apply_action(ledger: Ledger, instruction: ActionInstruction) -> Transaction | WishlistItem:
    if isinstance(instruction, AddTransaction):
        record: Transaction | WishlistItem = ledger.record_transaction(instruction)
    elif isinstance(instruction, AddWishlist):
        record = ledger.record_wishlist_item(instruction)
    else:  # pragma: no cover - exhaustive over ActionInstruction
        raise TypeError(f"unsupported action instruction: {type(instruction).__name__}")
    _logger.info("applicator:applied action=%s id=%s", instruction.ACTION, record.id)
    return record


__all__ = ["apply_action"]
