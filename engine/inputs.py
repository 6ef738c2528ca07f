"""
engine/inputs.py
----------------
Step 1 of the metrics pipeline.

Resolves a loosely-typed key/value record (as saved by the store or typed
into the editor) into a fully populated InputRecord.

Resolution rules
----------------
    A field is "provided" only when it carries a finite number, or a string
    that parses to one ("1,200" and " 42 " both count). Absent keys, None,
    booleans, garbage strings, NaN and ±inf are "not provided".

    Not provided → documented default:
        gst_rate_percent      → 18
        ad_spend_prospecting  → 0.8 × ad_spend_total
        everything else       → 0

    Provided values are kept exactly as given, including zero and negatives.
    A genuine zero order count stays zero here; the division guard
    (max(count, 1)) lives in engine/metrics.py at the division site.

No Streamlit imports. Pure Python.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field, fields
from typing import Any, Mapping

DEFAULT_GST_RATE_PERCENT: float = 18.0
PROSPECTING_SHARE_OF_SPEND: float = 0.8

# Field groups, in the order the editor shows them.
FIELD_GROUPS: dict[str, tuple[str, ...]] = {
    "Revenue": (
        "gross_sales_incl_gst", "gst_rate_percent", "discounts_total",
        "fees_commissions", "returns_value_ex_gst",
    ),
    "Volume": ("total_orders", "orders_new_customer", "units_sold"),
    "COGS": ("cost_mfg_per_unit", "packaging_consumables_total", "inventory_purchased_value"),
    "Logistics": (
        "shipping_expense_forward", "rto_penalty_total",
        "warehouse_pick_pack_total", "payment_gateway_fees",
    ),
    "Marketing": ("ad_spend_total", "ad_spend_prospecting"),
    "Overhead": ("total_fixed_opex", "target_profit_per_order"),
}

INPUT_FIELDS: tuple[str, ...] = tuple(name for group in FIELD_GROUPS.values() for name in group)


@dataclass(frozen=True)
class InputRecord:
    gross_sales_incl_gst:        float = 0.0
    gst_rate_percent:            float = DEFAULT_GST_RATE_PERCENT
    discounts_total:             float = 0.0
    returns_value_ex_gst:        float = 0.0
    fees_commissions:            float = 0.0
    total_orders:                float = 0.0
    orders_new_customer:         float = 0.0
    units_sold:                  float = 0.0
    cost_mfg_per_unit:           float = 0.0
    packaging_consumables_total: float = 0.0
    inventory_purchased_value:   float = 0.0
    shipping_expense_forward:    float = 0.0
    rto_penalty_total:           float = 0.0
    warehouse_pick_pack_total:   float = 0.0
    payment_gateway_fees:        float = 0.0
    ad_spend_total:              float = 0.0
    ad_spend_prospecting:        float = 0.0
    total_fixed_opex:            float = 0.0
    target_profit_per_order:     float = 0.0
    # Names of fields that fell back to their default during resolution.
    defaulted: frozenset[str] = field(default=frozenset(), compare=False)

    def as_dict(self) -> dict[str, float]:
        """Plain field → value mapping, suitable for saving or editing."""
        return {f.name: getattr(self, f.name) for f in fields(self) if f.name != "defaulted"}


def to_number(value: Any) -> float | None:
    """
    Coerce one raw value to a finite float, or None when it is not a number.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, str):
        value = value.strip().replace(",", "")
        if not value:
            return None
    try:
        number = float(value)
    except (TypeError, ValueError, OverflowError):
        return None
    return number if math.isfinite(number) else None


def resolve_inputs(raw: Mapping[str, Any] | None) -> InputRecord:
    """
    Build an InputRecord from any mapping. Never raises.

    Unknown keys (e.g. cash_on_hand) are ignored here; the store keeps them.
    """
    raw = raw if isinstance(raw, Mapping) else {}

    values: dict[str, float] = {}
    defaulted: set[str] = set()
    for name in INPUT_FIELDS:
        number = to_number(raw.get(name))
        if number is None:
            defaulted.add(name)
        else:
            values[name] = number

    if "gst_rate_percent" not in values:
        values["gst_rate_percent"] = DEFAULT_GST_RATE_PERCENT
    if "ad_spend_prospecting" not in values:
        values["ad_spend_prospecting"] = values.get("ad_spend_total", 0.0) * PROSPECTING_SHARE_OF_SPEND

    return InputRecord(**values, defaulted=frozenset(defaulted))
