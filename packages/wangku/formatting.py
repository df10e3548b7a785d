"""Number, currency and date rendering for prompts and terminal output.

Every amount or date that reaches the remote model or the user goes through
this module so both see identical text. The house style is Indonesian:
``.`` groups thousands, ``,`` separates decimals (at most three fraction
digits, trailing zeros dropped), the currency is prefixed ``Rp`` with no space,
and dates read ``d/m/yyyy`` without zero padding.
"""

from __future__ import annotations

from datetime import date, datetime
from decimal import ROUND_HALF_EVEN, Decimal, InvalidOperation
from typing import Any

CURRENCY_PREFIX = "Rp"
THOUSANDS_SEP = "."
DECIMAL_SEP = ","
MAX_FRACTION_DIGITS = 3


def to_decimal(raw: Any) -> Decimal:
    """Coerce ``raw`` into a ``Decimal``; ``None`` and garbage become zero."""

    if isinstance(raw, Decimal):
        return raw
    if raw is None or isinstance(raw, bool):
        return Decimal(0)
    try:
        return Decimal(str(raw).strip())
    except (InvalidOperation, ValueError):
        return Decimal(0)


def format_number(value: Any) -> str:
    """Render ``value`` with Indonesian grouping, e.g. ``1500000.5 -> "1.500.000,5"``."""

    d = to_decimal(value)
    if not d.is_finite():
        return str(d)
    q = d.quantize(Decimal(1).scaleb(-MAX_FRACTION_DIGITS), rounding=ROUND_HALF_EVEN)
    negative = q < 0
    int_part, _, frac_part = f"{abs(q):f}".partition(".")
    frac_part = frac_part.rstrip("0")

    groups: list[str] = []
    while len(int_part) > 3:
        groups.insert(0, int_part[-3:])
        int_part = int_part[:-3]
    groups.insert(0, int_part)

    out = THOUSANDS_SEP.join(groups)
    if frac_part:
        out = f"{out}{DECIMAL_SEP}{frac_part}"
    if negative and out.strip("0.,"):
        out = f"-{out}"
    return out


def format_currency(value: Any) -> str:
    """``Rp`` + :func:`format_number`; negatives read ``Rp-5.000``."""

    return f"{CURRENCY_PREFIX}{format_number(value)}"


def format_date(value: date | datetime | str) -> str:
    """Render a calendar date as ``d/m/yyyy``. ISO strings are accepted."""

    if isinstance(value, str):
        value = date.fromisoformat(value.strip()[:10])
    if isinstance(value, datetime):
        value = value.date()
    return f"{value.day}/{value.month}/{value.year}"


__all__ = [
    "CURRENCY_PREFIX",
    "format_currency",
    "format_date",
    "format_number",
    "to_decimal",
]
