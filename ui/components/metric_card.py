"""
ui/components/metric_card.py
----------------------------
One dashboard card: headline value, optional sub-caption, and an expander
with the receipt lines and the plain-English definition.
"""

from __future__ import annotations
import pandas as pd
import streamlit as st

from engine.breakdown import Breakdown, LineKind
from engine.definitions import get_definition
from engine.formatting import format_currency, format_line_value


def _receipt_rows(lines: Breakdown) -> list[dict]:
    rows = []
    for line in lines:
        label = line.label if line.kind is LineKind.BASE else f"  {line.label}"
        rows.append({"Line": label, "Amount": format_line_value(line)})
    return rows


def render_metric_card(
    def_key: str,
    value: float | str,
    breakdown: Breakdown | None = None,
    color: str | None = None,
    sub: str | None = None,
) -> None:
    """
    Render a metric card.

    value may be a number (formatted as currency) or a pre-formatted string
    such as "3.24x". color is a Streamlit markdown colour name.
    """
    definition = get_definition(def_key)
    display = format_currency(value) if isinstance(value, (int, float)) else value

    with st.container(border=True):
        st.caption(f"**{definition.title.upper()}**")
        st.markdown(f"### :{color}[{display}]" if color else f"### {display}")
        if sub:
            st.caption(sub)

        with st.expander("Details"):
            if breakdown:
                st.dataframe(
                    pd.DataFrame(_receipt_rows(breakdown)),
                    use_container_width=True,
                    hide_index=True,
                )
            st.markdown("**What this tells you:**")
            st.write(definition.insight)
            if definition.good_if:
                st.caption(f"🎯 Target: {definition.good_if}")
