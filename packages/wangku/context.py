"""Financial context block injected into assistant prompts.

:func:`build_context_block` is a pure function of a :class:`FinancialSnapshot`
and a :class:`ContextSections` configuration. The chat assistant and the
summary report use the same renderer with different sections enabled.

Every enabled section renders a sentence when its list is empty so the model
never sees a dangling heading.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass

from .formatting import format_currency, format_date
from .models import FinancialSnapshot, Transaction, WishlistItem

DEFAULT_ITEM_LIMIT = 10

NO_RECENT_TRANSACTIONS = "Belum ada transaksi tercatat."
NO_UPCOMING_TRANSACTIONS = "Tidak ada transaksi mendatang."
NO_WISHLIST = "Belum ada wishlist."

_HEADER = "Data Keuangan Pengguna Saat Ini:"
_FOOTER = "Gunakan data di atas untuk menjawab jika pengguna bertanya tentang keuangan mereka."


@dataclass(frozen=True, slots=True)
class ContextSections:
    """Which record subsets appear in the block, and how many of each."""

    recent: bool = True
    upcoming: bool = True
    wishlist: bool = True
    footer: bool = True
    limit: int = DEFAULT_ITEM_LIMIT

    def __post_init__(self) -> None:
        if isinstance(self.limit, bool) or not isinstance(self.limit, int) or self.limit <= 0:
            raise ValueError("ContextSections.limit must be a positive integer")


CHAT_SECTIONS = ContextSections()
SUMMARY_SECTIONS = ContextSections(recent=False, footer=False)


def _upcoming_line(t: Transaction) -> str:
    return f"- {t.title} ({t.kind}): {format_currency(t.amount)} pada {format_date(t.date)}"


def _recent_line(t: Transaction) -> str:
    return f"- {t.title} ({t.kind}): {format_currency(t.amount)} ({format_date(t.date)})"


def _wishlist_line(w: WishlistItem) -> str:
    return f"- {w.item_name}: {format_currency(w.estimated_cost)}"


def _render(items: Sequence, line, empty: str, limit: int) -> str:
    if not items:
        return empty
    return "\n".join(line(it) for it in list(items)[:limit])


def build_context_block(
    snapshot: FinancialSnapshot,
    sections: ContextSections = CHAT_SECTIONS,
) -> str:
    """Render ``snapshot`` as the fixed-structure text block.

    Example (chat sections, everything empty)::

        Data Keuangan Pengguna Saat Ini:
        - Saldo: Rp0
        - Transaksi Terakhir (Sudah Terjadi):
        Belum ada transaksi tercatat.
        - Transaksi Mendatang (Pending):
        Tidak ada transaksi mendatang.
        - Wishlist:
        Belum ada wishlist.
    """

    lines: list[str] = [_HEADER, f"- Saldo: {format_currency(snapshot.balance)}"]
    if sections.recent:
        lines.append("- Transaksi Terakhir (Sudah Terjadi):")
        lines.append(
            _render(
                snapshot.recent_transactions, _recent_line, NO_RECENT_TRANSACTIONS, sections.limit
            )
        )
    if sections.upcoming:
        lines.append("- Transaksi Mendatang (Pending):")
        lines.append(
            _render(
                snapshot.upcoming_transactions,
                _upcoming_line,
                NO_UPCOMING_TRANSACTIONS,
                sections.limit,
            )
        )
    if sections.wishlist:
        lines.append("- Wishlist:")
        lines.append(_render(snapshot.wishlist, _wishlist_line, NO_WISHLIST, sections.limit))
    if sections.footer:
        lines.extend(["", _FOOTER])
    return "\n".join(lines)


__all__ = [
    "CHAT_SECTIONS",
    "DEFAULT_ITEM_LIMIT",
    "NO_RECENT_TRANSACTIONS",
    "NO_UPCOMING_TRANSACTIONS",
    "NO_WISHLIST",
    "SUMMARY_SECTIONS",
    "ContextSections",
    "build_context_block",
]
