from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal
from typing import Any

MONEY = Decimal("0.01")

CURRENCY_SYMBOLS = {
    "INR": "₹",
    "USD": "$",
    "EUR": "€",
    "GBP": "£",
}


def _d(x: Any) -> Decimal:
    if x is None:
        return Decimal("0")
    return x if isinstance(x, Decimal) else Decimal(str(x))


def qmoney(x: Any) -> Decimal:
    return _d(x).quantize(MONEY, rounding=ROUND_HALF_UP)


def group_digits(whole: str, indian: bool = False) -> str:
    """
    "675000" -> "675,000"; with indian=True -> "6,75,000"
    (last three digits, then groups of two).
    """
    if len(whole) <= 3:
        return whole
    head, tail = whole[:-3], whole[-3:]
    size = 2 if indian else 3
    parts = []
    while head:
        parts.append(head[-size:])
        head = head[:-size]
    return ",".join(reversed(parts)) + "," + tail


def fmt_money(amount: Any, currency: str = "INR") -> str:
    """
    675000 -> "₹ 6,75,000"; 2450.5 (USD) -> "$ 2,450.50".
    Whole amounts are shown without decimals.
    """
    code = (currency or "INR").upper()
    symbol = CURRENCY_SYMBOLS.get(code, code)

    d = qmoney(amount)
    sign = "-" if d < 0 else ""
    whole, frac = f"{abs(d):.2f}".split(".")
    grouped = group_digits(whole, indian=(code == "INR"))
    if frac == "00":
        return f"{symbol} {sign}{grouped}"
    return f"{symbol} {sign}{grouped}.{frac}"


def fmt_qty(value: Any) -> str:
    """2.0 -> "2", 1.5 -> "1.5", None -> "-"."""
    if value is None:
        return "-"
    d = _d(value).normalize()
    if d == d.to_integral_value():
        return str(int(d))
    return format(d, "f")
