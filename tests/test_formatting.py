from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal

import pytest

from wangku.formatting import format_currency, format_date, format_number, to_decimal


@pytest.mark.parametrize(
    ("value", "expected"),
    [
        (0, "0"),
        (500, "500"),
        (1500000, "1.500.000"),
        (Decimal("750000.00"), "750.000"),
        (1234.5, "1.234,5"),
        ("2500000.125", "2.500.000,125"),
        (-5000, "-5.000"),
    ],
)
def test_format_number_indonesian_grouping(value, expected):
    assert format_number(value) == expected


def test_format_currency_has_no_space_and_keeps_sign():
    assert format_currency(1500000) == "Rp1.500.000"
    assert format_currency(Decimal(0)) == "Rp0"
    assert format_currency(-5000) == "Rp-5.000"


def test_format_date_is_unpadded_day_month_year():
    assert format_date(date(2024, 6, 1)) == "1/6/2024"
    assert format_date(datetime(2024, 12, 25, 13, 0)) == "25/12/2024"
    assert format_date("2024-03-09") == "9/3/2024"


def test_to_decimal_treats_garbage_and_bool_as_zero():
    assert to_decimal(None) == 0
    assert to_decimal("abc") == 0
    assert to_decimal(True) == 0
    assert to_decimal("12.5") == Decimal("12.5")
