"""
ui/components/editor.py
-----------------------
Sidebar form for editing the raw inputs. Returns the submitted record, or
None while the form has not been submitted.
"""

from __future__ import annotations
from typing import Any

import streamlit as st

from engine.inputs import FIELD_GROUPS, resolve_inputs

FIELD_LABELS: dict[str, str] = {
    "gross_sales_incl_gst":        "Gross Sales (Inc GST)",
    "gst_rate_percent":            "GST %",
    "discounts_total":             "Discounts",
    "fees_commissions":            "Fees / Commissions",
    "returns_value_ex_gst":        "Returns (Ex GST)",
    "total_orders":                "Total Orders",
    "orders_new_customer":         "New Cust Orders",
    "units_sold":                  "Units Sold",
    "cost_mfg_per_unit":           "Mfg Cost / Unit",
    "packaging_consumables_total": "Packaging & Consumables",
    "inventory_purchased_value":   "Inv. Purchased",
    "shipping_expense_forward":    "Shipping",
    "rto_penalty_total":           "RTO Penalty",
    "warehouse_pick_pack_total":   "Pick / Pack & Handling",
    "payment_gateway_fees":        "Payment Gateway Fees",
    "ad_spend_total":              "Total Ads",
    "ad_spend_prospecting":        "Prospecting Ads",
    "total_fixed_opex":            "Fixed OpEx",
    "target_profit_per_order":     "Target Profit / Order",
}


def render_editor(inputs: dict[str, Any]) -> dict[str, Any] | None:
    """
    Draw the edit form in the sidebar. Fields start at their resolved values,
    so a defaulted field shows the default it is computed with.
    Unknown keys in `inputs` are preserved.
    """
    record = resolve_inputs(inputs)
    with st.sidebar.form("edit_inputs"):
        st.markdown("### ✏️ Edit Inputs")
        edited: dict[str, Any] = dict(inputs)

        for group, names in FIELD_GROUPS.items():
            st.markdown(f"**{group}**")
            for name in names:
                edited[name] = st.number_input(
                    FIELD_LABELS.get(name, name),
                    value=float(getattr(record, name)),
                    step=1.0,
                    format="%.2f" if name == "gst_rate_percent" else "%.0f",
                    key=f"input_{name}",
                )

        submitted = st.form_submit_button("Save Updates", type="primary", use_container_width=True)

    return edited if submitted else None
