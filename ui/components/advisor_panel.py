"""
ui/components/advisor_panel.py
------------------------------
AI advisor: one-click analyst brief plus a follow-up chat.

Both talk to engine.llm_client. When the advisor is unavailable the brief
falls back to the rule-based version so the panel is never empty.
"""

from __future__ import annotations
import streamlit as st

from engine.llm_client import (
    CHAT_GREETING,
    SUGGESTED_QUESTIONS,
    AdvisorError,
    AdvisorNotConfigured,
    ContentFiltered,
    chat_reply,
    fallback_brief,
    generate_insights,
)
from engine.metrics import MetricsRecord


def _render_brief(metrics: MetricsRecord) -> None:
    if st.button("✨ Generate AI Insights", key="btn_insights", use_container_width=True):
        with st.spinner("Reading your numbers…"):
            try:
                st.session_state["insights"] = generate_insights(metrics)
                st.session_state["insights_note"] = None
            except AdvisorNotConfigured:
                st.session_state["insights"] = fallback_brief(metrics)
                st.session_state["insights_note"] = "AI advisor not configured, showing the built-in health check."
            except ContentFiltered:
                st.session_state["insights"] = None
                st.session_state["insights_note"] = "The advisor's answer was blocked by safety filters. Try again."
            except AdvisorError as exc:
                st.session_state["insights"] = fallback_brief(metrics)
                st.session_state["insights_note"] = f"AI advisor unavailable ({exc}), showing the built-in health check."

    note = st.session_state.get("insights_note")
    if note:
        st.warning(note)

    insights = st.session_state.get("insights")
    if insights:
        with st.container(border=True):
            for para in [p.strip() for p in insights.split("\n\n") if p.strip()]:
                st.markdown(para)


def _send(metrics: MetricsRecord, question: str) -> None:
    history: list[dict] = st.session_state["chat_messages"]
    history.append({"role": "user", "content": question})
    try:
        answer = chat_reply(metrics, history)
    except AdvisorError:
        answer = "Sorry, I couldn't process that. Please try again."
    history.append({"role": "assistant", "content": answer})


def _render_chat(metrics: MetricsRecord) -> None:
    if not st.session_state.get("chat_messages"):
        st.session_state["chat_messages"] = [{"role": "assistant", "content": CHAT_GREETING}]

    for msg in st.session_state["chat_messages"]:
        with st.chat_message(msg["role"]):
            st.markdown(msg["content"])

    cols = st.columns(3)
    for idx, question in enumerate(SUGGESTED_QUESTIONS):
        if cols[idx % 3].button(question, key=f"suggest_{idx}", use_container_width=True):
            with st.spinner("Thinking…"):
                _send(metrics, question)
            st.rerun()

    question = st.chat_input("Ask about your numbers…")
    if question and question.strip():
        with st.spinner("Thinking…"):
            _send(metrics, question.strip())
        st.rerun()


def render_advisor(metrics: MetricsRecord) -> None:
    st.markdown("### 🤖 AI Advisor")
    st.caption("Interprets the numbers above. It never recomputes them.")
    _render_brief(metrics)
    st.divider()
    _render_chat(metrics)
