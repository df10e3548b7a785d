from __future__ import annotations

import json
from datetime import date
from decimal import Decimal

import pytest

from wangku.actions import extract_action, parse_action_payload, split_action_tag
from wangku.errors import ActionParseError
from wangku.models import AddTransaction, AddWishlist


def _tag(obj: dict) -> str:
    return f"@@ACTION:{json.dumps(obj)}@@"


def test_reply_without_tag_is_unchanged():
    reply = "Saldo kamu masih aman kok."

    result = extract_action(reply)

    assert result.text == reply
    assert result.instruction is None
    assert result.tag_found is False


def test_transaction_tag_is_stripped_and_fields_match():
    payload = {
        "type": "ADD_TRANSACTION",
        "data": {
            "title": "Gaji Juni",
            "amount": 5000000,
            "type": "income",
            "date": "2024-06-01",
            "status": "completed",
        },
    }
    reply = "Siap, gaji kamu sudah aku catat!\n" + _tag(payload)

    result = extract_action(reply)

    assert result.text == "Siap, gaji kamu sudah aku catat!"
    assert "@@" not in result.text
    assert result.instruction == AddTransaction(
        title="Gaji Juni",
        amount=Decimal(5000000),
        kind="income",
        date=date(2024, 6, 1),
        status="completed",
    )


def test_wishlist_tag_fields_match():
    reply = "Oke, masuk wishlist ya. " + _tag(
        {
            "type": "ADD_WISHLIST",
            "data": {"item_name": "Sepatu Lari", "estimated_cost": 450000, "priority": 1},
        }
    )

    result = extract_action(reply)

    assert result.text == "Oke, masuk wishlist ya."
    assert isinstance(result.instruction, AddWishlist)
    assert result.instruction.item_name == "Sepatu Lari"
    assert result.instruction.estimated_cost == Decimal(450000)
    assert result.instruction.priority == 1


def test_trailing_whitespace_after_tag_is_allowed():
    reply = "Dicatat. " + _tag(
        {"type": "ADD_WISHLIST", "data": {"item_name": "Buku", "estimated_cost": 1, "priority": 2}}
    ) + "\n\n"

    assert extract_action(reply).instruction is not None


def test_tag_in_the_middle_is_not_an_action():
    reply = "Contoh format: @@ACTION:{}@@ lalu teks lanjut."

    text, payload = split_action_tag(reply)

    assert text == reply
    assert payload is None


def test_malformed_json_is_stripped_and_dropped_without_raising():
    reply = "Sudah dicatat ya. @@ACTION:{type: ADD_TRANSACTION, data: oops@@"

    result = extract_action(reply)

    assert result.text == "Sudah dicatat ya."
    assert result.instruction is None
    assert result.tag_found is True


def test_indonesian_kind_is_rejected():
    reply = "Dicatat! " + _tag(
        {
            "type": "ADD_TRANSACTION",
            "data": {"title": "Gaji", "amount": 100, "type": "pemasukan", "date": "2024-06-01"},
        }
    )

    result = extract_action(reply)

    assert result.text == "Dicatat!"
    assert result.instruction is None


def test_kind_case_is_normalized():
    instr = parse_action_payload(
        json.dumps(
            {
                "type": "ADD_TRANSACTION",
                "data": {
                    "title": "Kopi",
                    "amount": "25000",
                    "type": " Expense ",
                    "date": "2024-06-02",
                    "status": " Pending ",
                },
            }
        )
    )

    assert isinstance(instr, AddTransaction)
    assert instr.kind == "expense"
    assert instr.status == "pending"


@pytest.mark.parametrize(
    "data",
    [
        {"title": "Kopi", "amount": -1, "type": "expense", "date": "2024-06-02", "status": "pending"},
        {"title": "Kopi", "amount": "dua puluh", "type": "expense", "date": "2024-06-02", "status": "pending"},
        {"title": "Kopi", "amount": True, "type": "expense", "date": "2024-06-02", "status": "pending"},
        {"title": "Kopi", "type": "expense", "date": "2024-06-02", "status": "pending"},
        {"title": "Kopi", "amount": 1, "type": "expense", "date": "02/06/2024", "status": "pending"},
        {"title": "Kopi", "amount": 1, "type": "expense", "date": "2024-06-02", "status": "done"},
        {"title": "", "amount": 1, "type": "expense", "date": "2024-06-02", "status": "pending"},
        {"title": "Kopi", "amount": 1, "type": "expense", "date": "2024-06-02"},
    ],
)
def test_invalid_transaction_fields_raise_parse_error(data):
    with pytest.raises(ActionParseError):
        parse_action_payload(json.dumps({"type": "ADD_TRANSACTION", "data": data}))


@pytest.mark.parametrize(
    "obj",
    [
        {"type": "DELETE_TRANSACTION", "data": {}},
        {"type": "ADD_WISHLIST", "data": {"item_name": "Laptop", "estimated_cost": -5, "priority": 1}},
        {"type": "ADD_WISHLIST", "data": {"item_name": "Laptop", "estimated_cost": 5, "priority": -1}},
        {"type": "ADD_WISHLIST", "data": {"item_name": "Laptop", "estimated_cost": 5}},
        {"data": {"item_name": "Laptop", "estimated_cost": 5}},
        ["ADD_WISHLIST"],
    ],
)
def test_invalid_envelopes_raise_parse_error(obj):
    with pytest.raises(ActionParseError):
        parse_action_payload(json.dumps(obj))


def test_only_last_tag_is_considered():
    first = _tag({"type": "ADD_WISHLIST", "data": {"item_name": "A", "estimated_cost": 1, "priority": 1}})
    last = _tag({"type": "ADD_WISHLIST", "data": {"item_name": "B", "estimated_cost": 2, "priority": 1}})

    result = extract_action(f"Teks {first} lagi {last}")

    assert result.instruction.item_name == "B"
    assert result.text == "Teks lagi"


def test_wishlist_priority_zero_is_accepted():
    instr = parse_action_payload(
        json.dumps(
            {
                "type": "ADD_WISHLIST",
                "data": {"item_name": "Kado", "estimated_cost": 100000, "priority": 0},
            }
        )
    )

    assert isinstance(instr, AddWishlist)
    assert instr.priority == 0


@pytest.mark.parametrize(
    ("tail", "expected"),
    [(" 😊", "Sip, dicatat 😊"), (".", "Sip, dicatat."), ("  \n", "Sip, dicatat")],
)
def test_short_tail_after_tag_is_kept_in_text(tail, expected):
    tag = _tag({"type": "ADD_WISHLIST", "data": {"item_name": "Tas", "estimated_cost": 3, "priority": 1}})

    result = extract_action(f"Sip, dicatat {tag}{tail}")

    assert isinstance(result.instruction, AddWishlist)
    assert result.text == expected


def test_long_text_after_tag_is_not_an_action():
    tag = _tag({"type": "ADD_WISHLIST", "data": {"item_name": "Tas", "estimated_cost": 3, "priority": 1}})
    reply = f"Formatnya begini {tag} lalu kamu lanjut cerita panjang."

    assert extract_action(reply) == (reply, None, False)


def test_earlier_malformed_tag_is_removed_from_text():
    last = _tag({"type": "ADD_WISHLIST", "data": {"item_name": "B", "estimated_cost": 2, "priority": 1}})

    result = extract_action(f"Oke @@ACTION:{{rusak@@ sudah ya. {last}")

    assert result.text == "Oke sudah ya."
    assert result.instruction.item_name == "B"
