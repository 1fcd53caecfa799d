"""
Case list views
"""
import streamlit as st
from datetime import date
from typing import List, Optional

from config import settings
from models.case import Case
from models.case_store import CaseStore
from engine.status import continual_abatement_expiry, status_class

STATUS_BADGES = {
    settings.TIME_ONTIME: "🟢",
    settings.TIME_NEARING_DUE: "🟡",
    settings.TIME_OVERDUE: "🔴",
    settings.TIME_CLOSED: "⚪",
    "abatement": "🟠",
    "continual-abatement": "🔵",
}


def render_case_list(
    case_store: CaseStore,
    cases: List[Case],
    key: str,
    today: Optional[date] = None,
    empty_message: str = "No cases match the current filter.",
):
    """
    Render a case table with a selector that opens case details
    """
    if not cases:
        st.info(empty_message)
        return

    df = case_store.get_cases_df(cases, today)
    df.insert(0, '', [STATUS_BADGES[status_class(c, today)] for c in cases])

    st.dataframe(
        df.drop(columns=['time_status']),
        hide_index=True,
        use_container_width=True,
    )
    st.caption(f"{len(cases)} case(s)  |  🟢 On time  🟡 Nearing due  🔴 Overdue  🟠 Abatement  ⚪ Closed")

    labels = {c.id: f"{c.case_id} - {c.address.street}" for c in cases}
    selected = st.selectbox(
        "Open case",
        options=[None] + [c.id for c in cases],
        format_func=lambda cid: "Select a case..." if cid is None else labels[cid],
        key=f"{key}_select",
    )
    if selected:
        st.session_state.selected_case_id = selected


def render_continual_list(case_store: CaseStore, key: str):
    """Continual abatement cases with their expiry dates"""
    cases = case_store.continual_abatement_cases()
    if not cases:
        st.info("No properties are under continual abatement.")
        return

    for case in cases:
        expiry = continual_abatement_expiry(case)
        expiry_text = expiry.strftime(settings.DATE_FORMAT) if expiry else "No work date recorded"
        st.write(f"**{case.address.street}** ({case.case_id}) - expires {expiry_text}")

    render_case_list(case_store, cases, key)
