from __future__ import annotations

from datetime import date
from decimal import Decimal

import pytest

from wangku.models import FinancialSnapshot
from wangku.prompting import (
    ACTION_GRAMMAR,
    FALLBACK_DISPLAY_NAME,
    build_chat_payload,
    build_summary_prompt,
    resolve_display_name,
)


@pytest.mark.parametrize(
    ("profile_name", "email", "expected"),
    [
        ("Sari", "sari@example.com", "Sari"),
        ("  ", "budi.s@example.com", "budi.s"),
        (None, None, FALLBACK_DISPLAY_NAME),
        ("", "@example.com", FALLBACK_DISPLAY_NAME),
    ],
)
def test_resolve_display_name(profile_name, email, expected):
    assert resolve_display_name(profile_name, email) == expected


def test_chat_payload_has_every_wire_field():
    payload = build_chat_payload(
        "catat gaji 5 juta hari ini",
        conversation_id="wangku-u1",
        sender_name="Sari",
        snapshot=FinancialSnapshot(balance=Decimal(500000)),
        today=date(2024, 6, 1),
    )

    assert set(payload) == {
        "text",
        "id",
        "fullainame",
        "nickainame",
        "senderName",
        "ownerName",
        "date",
        "role",
        "msgtype",
        "custom_profile",
    }
    assert payload["text"] == "catat gaji 5 juta hari ini"
    assert payload["id"] == "wangku-u1"
    assert payload["nickainame"] == "Wangi"
    assert payload["senderName"] == payload["ownerName"] == "Sari"
    assert payload["date"] == "2024-06-01"
    assert payload["msgtype"] == "text"


def test_custom_profile_orders_persona_context_grammar():
    payload = build_chat_payload(
        "halo",
        conversation_id="wangku-u1",
        sender_name="Sari",
        snapshot=FinancialSnapshot(balance=Decimal(0)),
        today=date(2024, 6, 1),
    )
    profile = payload["custom_profile"]

    persona_at = profile.index("Namamu adalah Wangi")
    context_at = profile.index("Data Keuangan Pengguna Saat Ini:")
    grammar_at = profile.index("### MANDATORY ACTION RULES ###")
    assert persona_at < context_at < grammar_at
    assert profile.endswith(ACTION_GRAMMAR)
    assert "pengguna bernama Sari" in profile


def test_payload_without_snapshot_still_carries_grammar():
    payload = build_chat_payload(
        "halo", conversation_id="wangku-u1", sender_name="Sari", snapshot=None
    )

    assert "Data Keuangan" not in payload["custom_profile"]
    assert ACTION_GRAMMAR in payload["custom_profile"]


def test_grammar_declares_both_actions_and_english_kind_tokens():
    assert '"type": "ADD_TRANSACTION"' in ACTION_GRAMMAR
    assert '"type": "ADD_WISHLIST"' in ACTION_GRAMMAR
    assert 'MUST be "income"' in ACTION_GRAMMAR
    assert '"expense"' in ACTION_GRAMMAR
    assert "@@ACTION:...@@" in ACTION_GRAMMAR


def test_summary_prompt_embeds_summary_context_and_html_rules():
    prompt = build_summary_prompt(FinancialSnapshot(balance=Decimal(1500000)))

    assert "- Saldo: Rp1.500.000" in prompt
    assert "Transaksi Terakhir" not in prompt
    assert "HTML" in prompt
