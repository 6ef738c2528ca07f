"""
engine/breakdown.py
-------------------
Line items for the "show your work" receipt attached to each metric.

A breakdown is an ordered tuple of BreakdownLine:
    first line        : LineKind.BASE, the metric's primary input
    following lines   : LineKind.ADD / LineKind.SUB, sign already applied
    ratio divisors    : LineKind.SUB_TEXT, a plain number shown as text

For additive breakdowns the BASE/ADD/SUB values sum to the metric.
SUB_TEXT lines are never part of that sum.

No Streamlit imports. Pure Python.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class LineKind(str, Enum):
    BASE = "base"
    ADD = "add"
    SUB = "sub"
    SUB_TEXT = "sub_text"

    @property
    def is_monetary(self) -> bool:
        return self is not LineKind.SUB_TEXT


@dataclass(frozen=True)
class BreakdownLine:
    label: str
    value: float
    kind:  LineKind


Breakdown = tuple[BreakdownLine, ...]


def base(label: str, value: float) -> BreakdownLine:
    return BreakdownLine(label, value, LineKind.BASE)


def add(label: str, value: float) -> BreakdownLine:
    return BreakdownLine(label, value, LineKind.ADD)


def sub(label: str, amount: float) -> BreakdownLine:
    """A deduction. `amount` is the positive quantity taken off; the line stores it negated."""
    return BreakdownLine(label, -amount, LineKind.SUB)


def divisor(label: str, value: float) -> BreakdownLine:
    return BreakdownLine(label, value, LineKind.SUB_TEXT)


def line_total(lines: Breakdown) -> float:
    """Sum of every monetary line. Equals the metric for additive breakdowns."""
    return sum(line.value for line in lines if line.kind.is_monetary)
