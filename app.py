"""
app.py
------
CEO's Snapshot: one-page D2C metrics dashboard.
Cards with show-your-work receipts, an AI advisor, and an input editor.

Run with:
    streamlit run app.py
"""

import streamlit as st

st.set_page_config(
    page_title="CEO's Snapshot",
    page_icon="📊",
    layout="wide",
    initial_sidebar_state="expanded",
    menu_items={
        "Get Help": None,
        "Report a bug": None,
        "About": "**CEO's Snapshot**: margins, ad efficiency and cash burn for D2C brands",
    },
)

# ── Session state defaults ──────────────────────────────────────────────────
DEFAULTS: dict = {
    "inputs":        None,
    "insights":      None,
    "insights_note": None,
    "chat_messages": [],
}
for key, val in DEFAULTS.items():
    if key not in st.session_state:
        st.session_state[key] = val

# ── Single page ──────────────────────────────────────────────────────────────
from ui.screen_main import render_home
render_home()
