"""
engine/formatting.py
--------------------
Display formatting shared by the dashboard cards and the advisor prompts,
so the numbers a founder sees and the numbers the advisor reads never
disagree.

    format_currency(4237288.14)  → "₹42,37,288"      (en-IN grouping, no paise)
    format_currency(-1200)       → "-₹1,200"
    format_fixed(3.2394, 2)      → "3.24"
    format_ratio(3.2394)         → "3.24x"
    format_percent(59.04)        → "59.0%"

Values are never rounded before summation, only here at display time.
Rounding is half away from zero on the exact binary value, which is what
the browser's Intl.NumberFormat and Number.toFixed do.

No Streamlit imports. Pure Python.
"""

from __future__ import annotations

import math
from decimal import ROUND_HALF_UP, Context, Decimal

from engine.breakdown import BreakdownLine

CURRENCY_SYMBOL = "₹"

# Wide enough for any finite double at full integer precision.
_EXACT = Context(prec=400)


def _group_indian(digits: str) -> str:
    """Lakh/crore grouping: last three digits, then pairs. 4237288 → 42,37,288."""
    if len(digits) <= 3:
        return digits
    head, tail = digits[:-3], digits[-3:]
    groups: list[str] = []
    while len(head) > 2:
        groups.insert(0, head[-2:])
        head = head[:-2]
    if head:
        groups.insert(0, head)
    return ",".join(groups + [tail])


def _is_negative(value: float) -> bool:
    return value < 0 or (value == 0 and math.copysign(1.0, value) < 0)


def format_currency(value: float) -> str:
    """Rupee string with zero fraction digits."""
    value = float(value)
    if math.isnan(value):
        return "NaN"
    sign = "-" if _is_negative(value) else ""
    if math.isinf(value):
        return f"{sign}{CURRENCY_SYMBOL}∞"
    rounded = Decimal(abs(value)).quantize(Decimal(1), rounding=ROUND_HALF_UP, context=_EXACT)
    return f"{sign}{CURRENCY_SYMBOL}{_group_indian(str(int(rounded)))}"


def format_fixed(value: float, digits: int) -> str:
    """Fixed-point string with `digits` decimals."""
    value = float(value)
    if not math.isfinite(value):
        return "NaN" if math.isnan(value) else ("-Infinity" if value < 0 else "Infinity")
    quantum = Decimal(1).scaleb(-digits)
    rounded = Decimal(abs(value)).quantize(quantum, rounding=ROUND_HALF_UP, context=_EXACT)
    return f"{'-' if value < 0 else ''}{rounded:f}"


def format_ratio(value: float) -> str:
    return f"{format_fixed(value, 2)}x"


def format_percent(value: float) -> str:
    return f"{format_fixed(value, 1)}%"


def format_count(value: float) -> str:
    """Plain number as shown for divisor lines: 1800.0 → "1800", 12.5 → "12.5"."""
    value = float(value)
    if value.is_integer():
        return str(int(value))
    return f"{value:.10g}"


def format_line_value(line: BreakdownLine) -> str:
    if line.kind.is_monetary:
        return format_currency(line.value)
    return format_count(line.value)
