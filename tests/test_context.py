from __future__ import annotations

from datetime import date
from decimal import Decimal

import pytest

from wangku.context import (
    NO_RECENT_TRANSACTIONS,
    NO_UPCOMING_TRANSACTIONS,
    NO_WISHLIST,
    SUMMARY_SECTIONS,
    ContextSections,
    build_context_block,
)
from wangku.models import FinancialSnapshot, Transaction, WishlistItem


def _tx(title: str, amount: str, kind: str, on: date, status: str) -> Transaction:
    return Transaction(
        id=f"tx-{title}",
        user_id="u1",
        title=title,
        amount=Decimal(amount),
        kind=kind,  # type: ignore[arg-type]
        date=on,
        status=status,  # type: ignore[arg-type]
    )


def _wl(name: str, cost: str, priority: int = 1) -> WishlistItem:
    return WishlistItem(
        id=f"wl-{name}",
        user_id="u1",
        item_name=name,
        estimated_cost=Decimal(cost),
        priority=priority,
        status="pending",
    )


def test_single_upcoming_item_is_listed_not_the_none_sentence():
    snap = FinancialSnapshot(
        balance=Decimal(500000),
        upcoming_transactions=[_tx("Sewa Kos", "750000", "expense", date(2030, 1, 5), "pending")],
    )

    block = build_context_block(snap)

    assert "- Saldo: Rp500.000" in block
    assert "- Sewa Kos (expense): Rp750.000 pada 5/1/2030" in block
    assert NO_UPCOMING_TRANSACTIONS not in block


def test_empty_lists_render_none_sentences_and_zero_balance():
    block = build_context_block(FinancialSnapshot(balance=Decimal(0)))

    assert "- Saldo: Rp0" in block
    assert NO_UPCOMING_TRANSACTIONS in block
    assert NO_WISHLIST in block
    assert NO_RECENT_TRANSACTIONS in block


def test_chat_block_has_fixed_section_order():
    snap = FinancialSnapshot(
        balance=Decimal("1250000"),
        recent_transactions=[_tx("Gaji", "5000000", "income", date(2024, 6, 1), "completed")],
        upcoming_transactions=[_tx("Listrik", "300000", "expense", date(2024, 6, 20), "pending")],
        wishlist=[_wl("Sepatu", "450000")],
    )

    lines = build_context_block(snap).splitlines()

    assert lines[0] == "Data Keuangan Pengguna Saat Ini:"
    assert lines[1] == "- Saldo: Rp1.250.000"
    assert lines[2] == "- Transaksi Terakhir (Sudah Terjadi):"
    assert lines[3] == "- Gaji (income): Rp5.000.000 (1/6/2024)"
    assert lines[4] == "- Transaksi Mendatang (Pending):"
    assert lines[5] == "- Listrik (expense): Rp300.000 pada 20/6/2024"
    assert lines[6] == "- Wishlist:"
    assert lines[7] == "- Sepatu: Rp450.000"
    assert lines[-1].startswith("Gunakan data di atas")


def test_summary_sections_omit_recent_transactions_and_footer():
    snap = FinancialSnapshot(
        balance=Decimal(10),
        recent_transactions=[_tx("Gaji", "5000000", "income", date(2024, 6, 1), "completed")],
    )

    block = build_context_block(snap, SUMMARY_SECTIONS)

    assert "Transaksi Terakhir" not in block
    assert "Gaji" not in block
    assert "Gunakan data di atas" not in block
    assert NO_UPCOMING_TRANSACTIONS in block


def test_limit_caps_each_section():
    upcoming = [
        _tx(f"Tagihan {i}", "1000", "expense", date(2030, 1, i + 1), "pending") for i in range(5)
    ]
    snap = FinancialSnapshot(balance=Decimal(0), upcoming_transactions=upcoming)

    block = build_context_block(snap, ContextSections(limit=2))

    assert "Tagihan 0" in block and "Tagihan 1" in block
    assert "Tagihan 2" not in block


@pytest.mark.parametrize("bad", [0, -1, True])
def test_limit_must_be_positive_int(bad):
    with pytest.raises(ValueError):
        ContextSections(limit=bad)
