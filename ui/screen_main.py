"""
ui/screen_main.py
-----------------
Single-page dashboard.
Top:    three columns of metric cards (Profitability, Efficiency, Scaling).
Bottom: AI advisor, then the waitlist footer.
Sidebar (while editing): the input editor.

This file only owns the page layout, the store and the compute_metrics call.
All rendering logic lives in ui/components/.
"""

from __future__ import annotations

import streamlit as st

from config.settings import get_store_path
from engine.formatting import format_percent, format_ratio
from engine.metrics import MetricsRecord, compute_metrics
from engine.storage import InputStore
from ui.components.advisor_panel import render_advisor
from ui.components.editor import render_editor
from ui.components.metric_card import render_metric_card
from ui.components.waitlist_form import render_waitlist


def _section_header(title: str, sub: str) -> None:
    st.markdown(f"#### {title}")
    st.caption(sub)


def _render_cards(m: MetricsRecord) -> None:
    b = m.breakdowns
    profitability, efficiency, scaling = st.columns(3, gap="large")

    with profitability:
        _section_header("1. Are we Profitable?", "Financial Health & Margins")
        render_metric_card("net_revenue", m.net_revenue, b["net_revenue"])
        render_metric_card(
            "cm_dollars", m.cm_dollars, b["cm"],
            color="blue", sub=f"{format_percent(m.cm_percent)} Margin",
        )
        render_metric_card(
            "ebitda", m.ebitda, b["ebitda"],
            color="green" if m.ebitda > 0 else "red",
            sub="Profitable" if m.ebitda > 0 else "Loss Making",
        )

    with efficiency:
        _section_header("2. Efficiency", "Team Performance & Ad Spend")
        render_metric_card("mer", format_ratio(m.mer), b["mer"])
        render_metric_card("blended_cac", m.blended_cac, b["blended_cac"])
        render_metric_card(
            "cost_per_order", m.cost_per_order, b["cost_per_order"],
            color="violet", sub="All Orders (Blended)",
        )

    with scaling:
        _section_header("3. Scaling Logic", "Budget Limits & Cash Traps")
        render_metric_card(
            "safe_max_cpa", m.safe_max_cpa, b["safe_cpa"],
            color="violet", sub="Max Bid Limit",
        )
        render_metric_card(
            "net_burn", m.net_burn, b["burn"],
            color="orange", sub="Includes Inventory Buys",
        )


def render_home() -> None:
    store = InputStore(get_store_path())
    if st.session_state.get("inputs") is None:
        st.session_state["inputs"] = store.load()

    # ── Header ────────────────────────────────────────────────────────────────
    head, toggle = st.columns([4, 1])
    head.markdown("## 📊 CEO's Snapshot")
    head.caption("For decision makers in e-commerce")
    editing = toggle.toggle("Edit Numbers", key="editing")

    # ── Editor ────────────────────────────────────────────────────────────────
    if editing:
        edited = render_editor(st.session_state["inputs"])
        if edited is not None:
            st.session_state["inputs"] = edited
            try:
                store.save(edited)
                st.sidebar.success("Saved.")
            except OSError as exc:
                st.sidebar.error(f"Could not save inputs: {exc}")
        if st.sidebar.button("↺ Reset to sample data", key="btn_reset"):
            st.session_state["inputs"] = store.reset()
            # keyed number inputs would otherwise keep their edited values
            for key in [k for k in st.session_state if str(k).startswith("input_")]:
                del st.session_state[key]
            st.rerun()

    metrics = compute_metrics(st.session_state["inputs"])

    st.divider()
    _render_cards(metrics)

    st.divider()
    render_advisor(metrics)

    st.divider()
    render_waitlist("beta")
