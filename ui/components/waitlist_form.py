"""
ui/components/waitlist_form.py
------------------------------
Footer signup for the beta waitlist.
"""

from __future__ import annotations
import streamlit as st

from engine.waitlist import WaitlistError, subscribe


def render_waitlist(list_type: str = "beta") -> None:
    with st.form(f"waitlist_{list_type}", clear_on_submit=True):
        st.markdown("**Join the beta waitlist**")
        email = st.text_input("Email", placeholder="you@brand.com", label_visibility="collapsed")
        submitted = st.form_submit_button("Join Waitlist")

    if submitted:
        try:
            subscribe(email, list_type)
            st.success("You're on the list. We'll be in touch.")
        except WaitlistError as exc:
            st.error(str(exc))
