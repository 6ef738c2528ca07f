"""
engine/metrics.py
-----------------
Step 2 of the metrics pipeline. The core of the dashboard.

Derives every displayed figure from one period's InputRecord, plus the
receipt lines that explain each one.

Formula (evaluated in this order):
    gst_multiplier            = 1 + gst_rate_percent / 100
    net_sales_ex_gst          = gross_sales_incl_gst / gst_multiplier
    net_revenue               = net_sales_ex_gst − discounts − returns − fees_commissions
    cogs                      = units_sold × cost_mfg_per_unit + packaging     [units_sold > 0]
    logistics                 = shipping + rto + pick_pack + gateway_fees      [units_sold > 0]
    cm_dollars                = net_revenue − cogs − logistics
    cm_percent                = cm_dollars / net_revenue × 100                 [net_revenue > 0]
    ebitda                    = cm_dollars − ad_spend_total − total_fixed_opex
    net_burn                  = fixed_opex + ad_spend_total + inventory_purchased − cm_dollars
    variable_profit_per_order = cm_dollars / orders
    opex_per_order            = total_fixed_opex / orders
    safe_max_cpa              = variable_profit_per_order − opex_per_order − target_profit_per_order
    mer                       = net_revenue / ad_spend_total                   [ad_spend_total > 0]
    blended_cac               = ad_spend_total / new_customer_orders
    cost_per_order            = ad_spend_total / orders

    orders and new_customer_orders are max(count, 1) at the division site.
    A bracketed guard that fails yields 0.

Key insight on net_burn vs ebitda:
    Inventory bought this month is cash out the door even though it is not
    yet cost of goods *sold*. EBITDA tracks accrual profit; burn tracks cash,
    so a profitable month can still burn cash while building stock.

The function is total: it never raises and never returns NaN or ±inf for
finite inputs. Negative inputs are carried through unvalidated.

No Streamlit imports. Pure Python.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Mapping

from engine.breakdown import Breakdown, add, base, divisor, sub
from engine.inputs import InputRecord, resolve_inputs

# Breakdowns whose monetary lines sum to their metric.
ADDITIVE_BREAKDOWNS: dict[str, str] = {
    "net_revenue": "net_revenue",
    "cm":          "cm_dollars",
    "ebitda":      "ebitda",
    "safe_cpa":    "safe_max_cpa",
    "burn":        "net_burn",
}

# Breakdowns shown as numerator ÷ divisor.
RATIO_BREAKDOWNS: dict[str, str] = {
    "mer":            "mer",
    "blended_cac":    "blended_cac",
    "cost_per_order": "cost_per_order",
}


@dataclass(frozen=True)
class MetricsRecord:
    net_sales_ex_gst:          float
    net_revenue:               float
    cogs:                      float
    logistics:                 float
    cm_dollars:                float
    cm_percent:                float
    ebitda:                    float
    net_burn:                  float
    variable_profit_per_order: float
    opex_per_order:            float
    safe_max_cpa:              float
    mer:                       float
    blended_cac:               float
    cost_per_order:            float
    ad_spend_total:            float
    inputs:                    InputRecord
    breakdowns:                dict[str, Breakdown] = field(default_factory=dict)


def _safe_divide(numerator: float, denominator: float) -> float:
    return numerator / denominator if denominator > 0 else 0.0


def _order_divisor(count: float) -> float:
    return max(count, 1.0)


def compute_metrics(raw: InputRecord | Mapping[str, Any] | None) -> MetricsRecord:
    """
    Compute the full metrics record for one period.

    Args:
        raw : an InputRecord, or any mapping of raw field values
              (resolved with engine.inputs.resolve_inputs).

    Returns:
        MetricsRecord with every figure and all eight breakdowns.
    """
    inp = raw if isinstance(raw, InputRecord) else resolve_inputs(raw)

    # Revenue
    gst_multiplier   = 1 + inp.gst_rate_percent / 100
    net_sales_ex_gst = inp.gross_sales_incl_gst / gst_multiplier if gst_multiplier != 0 else 0.0
    gst_amount       = inp.gross_sales_incl_gst - net_sales_ex_gst
    net_revenue = (
        net_sales_ex_gst
        - inp.discounts_total
        - inp.returns_value_ex_gst
        - inp.fees_commissions
    )

    # Variable costs. With no units sold there is nothing to package or ship.
    has_units = inp.units_sold > 0
    cogs = inp.units_sold * inp.cost_mfg_per_unit + inp.packaging_consumables_total if has_units else 0.0
    logistics = (
        inp.shipping_expense_forward
        + inp.rto_penalty_total
        + inp.warehouse_pick_pack_total
        + inp.payment_gateway_fees
    ) if has_units else 0.0

    # Profitability
    cm_dollars = net_revenue - cogs - logistics
    cm_percent = _safe_divide(cm_dollars, net_revenue) * 100
    ebitda     = cm_dollars - inp.ad_spend_total - inp.total_fixed_opex
    net_burn   = (inp.total_fixed_opex + inp.ad_spend_total + inp.inventory_purchased_value) - cm_dollars

    # Unit economics
    orders     = _order_divisor(inp.total_orders)
    new_orders = _order_divisor(inp.orders_new_customer)
    variable_profit_per_order = cm_dollars / orders
    opex_per_order            = inp.total_fixed_opex / orders
    safe_max_cpa = variable_profit_per_order - opex_per_order - inp.target_profit_per_order

    # Efficiency
    mer            = _safe_divide(net_revenue, inp.ad_spend_total)
    blended_cac    = inp.ad_spend_total / new_orders
    cost_per_order = inp.ad_spend_total / orders

    breakdowns: dict[str, Breakdown] = {
        "net_revenue": (
            base("Gross Sales (Inc GST)", inp.gross_sales_incl_gst),
            sub(f"Less GST ({inp.gst_rate_percent:g}%)", gst_amount),
            sub("Less Discounts", inp.discounts_total),
            sub("Less Returns", inp.returns_value_ex_gst),
            sub("Less Fees & Commissions", inp.fees_commissions),
        ),
        "cm": (
            base("Net Revenue", net_revenue),
            sub("COGS & Packaging", cogs),
            sub("Logistics, RTO & Fees", logistics),
        ),
        "ebitda": (
            base("Contribution Margin", cm_dollars),
            sub("Marketing Spend", inp.ad_spend_total),
            sub("Fixed OpEx", inp.total_fixed_opex),
        ),
        "safe_cpa": (
            base("Contribution / Order", variable_profit_per_order),
            sub("Fixed OpEx / Order", opex_per_order),
            sub("Target Profit / Order", inp.target_profit_per_order),
        ),
        "burn": (
            base("Fixed OpEx", inp.total_fixed_opex),
            add("Ad Spend", inp.ad_spend_total),
            add("Inventory Purchase", inp.inventory_purchased_value),
            # CM offsets the burn
            sub("Less: Contrib. Margin", cm_dollars),
        ),
        "mer": (
            base("Net Revenue", net_revenue),
            divisor("÷ Total Ad Spend", inp.ad_spend_total),
        ),
        "blended_cac": (
            base("Total Ad Spend", inp.ad_spend_total),
            divisor("÷ New Orders", new_orders),
        ),
        "cost_per_order": (
            base("Total Ad Spend", inp.ad_spend_total),
            divisor("÷ Total Orders", orders),
        ),
    }

    return MetricsRecord(
        net_sales_ex_gst          = net_sales_ex_gst,
        net_revenue               = net_revenue,
        cogs                      = cogs,
        logistics                 = logistics,
        cm_dollars                = cm_dollars,
        cm_percent                = cm_percent,
        ebitda                    = ebitda,
        net_burn                  = net_burn,
        variable_profit_per_order = variable_profit_per_order,
        opex_per_order            = opex_per_order,
        safe_max_cpa              = safe_max_cpa,
        mer                       = mer,
        blended_cac               = blended_cac,
        cost_per_order            = cost_per_order,
        ad_spend_total            = inp.ad_spend_total,
        inputs                    = inp,
        breakdowns                = breakdowns,
    )
