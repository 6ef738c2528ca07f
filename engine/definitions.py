"""
engine/definitions.py
---------------------
Plain-English copy shown under each metric card ("What this tells you").

Keys match the dashboard cards. good_if is None when no single target
makes sense for every brand.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class MetricDefinition:
    title:   str
    insight: str
    good_if: str | None = None


METRIC_DEFINITIONS: dict[str, MetricDefinition] = {
    "net_revenue": MetricDefinition(
        title="Net Revenue",
        insight=(
            "The money that is actually yours after GST, discounts, returns and "
            "marketplace fees come off. Every other number on this page starts here."
        ),
    ),
    "cm_dollars": MetricDefinition(
        title="Contribution Margin",
        insight=(
            "What each sale leaves behind after making, packing and shipping it. "
            "This is the pool that has to pay for ads, salaries and rent."
        ),
        good_if="CM above 40% of net revenue",
    ),
    "ebitda": MetricDefinition(
        title="EBITDA",
        insight=(
            "Operating profit after marketing and fixed overhead. Negative means "
            "the business loses money on its current shape, not just its current scale."
        ),
        good_if="Positive, and growing month on month",
    ),
    "mer": MetricDefinition(
        title="MER (Marketing Efficiency)",
        insight=(
            "Net revenue earned per rupee of ad spend, across every channel. It "
            "ignores attribution games and tells you whether marketing pays overall."
        ),
        good_if="3x or higher for most D2C brands",
    ),
    "blended_cac": MetricDefinition(
        title="Blended CAC (New Customers)",
        insight=(
            "All ad spend divided by first-time orders. This is what a new "
            "customer really costs you once every campaign is counted."
        ),
        good_if="Below your Safe Max CPA",
    ),
    "cost_per_order": MetricDefinition(
        title="Cost Per Order",
        insight=(
            "Ad spend spread over every order, repeat buyers included. The gap "
            "between this and CAC shows how much repeat purchases subsidise acquisition."
        ),
    ),
    "safe_max_cpa": MetricDefinition(
        title="Safe Max CPA",
        insight=(
            "The most you can pay to win an order and still cover fixed costs and "
            "your target profit. Use it as the bid ceiling for your ad accounts."
        ),
        good_if="Comfortably above your Blended CAC",
    ),
    "net_burn": MetricDefinition(
        title="Net Cash Burn",
        insight=(
            "Cash consumed this month, including inventory you bought but have not "
            "sold yet. A profitable month can still burn cash when you build stock."
        ),
        good_if="Below zero (cash generative), or covered by runway",
    ),
}


def get_definition(key: str) -> MetricDefinition:
    return METRIC_DEFINITIONS.get(key) or MetricDefinition(title=key, insight="No definition found.")
