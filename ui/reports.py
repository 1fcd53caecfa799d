"""
Monthly and abatement reports
"""
import streamlit as st
import plotly.express as px
import pandas as pd
from datetime import date

from models.case_store import CaseStore
from engine.reports import monthly_report, abatement_report
from engine.status import STATUS_LABELS
from storage.database import Database


def render_reports(case_store: CaseStore):
    """
    Render the monthly activity report and the abatement action report
    """
    st.header("📊 Reports")

    reference = st.date_input("Report month", value=date.today())
    report = monthly_report(case_store.cases, reference)

    st.subheader(report.title)
    st.caption(f"{report.period_start:%B %d, %Y} through {report.period_end:%B %d, %Y}")

    col1, col2, col3 = st.columns(3)
    with col1:
        st.metric("New Cases", report.total)
    with col2:
        st.metric("Closed", report.closed)
    with col3:
        st.metric("Still Open", report.active)

    df = report.get_violations_df()
    if df.empty:
        st.info("No cases were opened in this period.")
    else:
        fig = px.bar(
            df,
            x='Cases',
            y='Violation',
            orientation='h',
            title='Cases by Violation',
            labels={'Violation': ''},
        )
        fig.update_layout(yaxis={'categoryorder': 'total ascending'}, height=350)
        st.plotly_chart(fig, use_container_width=True)

    if isinstance(case_store.store, Database):
        _render_status_counts(case_store.store)

    st.markdown("---")
    st.subheader("🚜 Abatement Action Report")
    text = abatement_report(case_store.cases)
    st.text(text)
    st.download_button(
        "⬇️ Download Abatement Report",
        data=text,
        file_name=f"abatement_report_{date.today():%Y%m%d}.txt",
        mime="text/plain",
    )


def _render_status_counts(db: Database):
    """Case counts per status from the database reporting table"""
    counts = db.get_status_counts()
    if not counts:
        return

    st.subheader("Cases by Status")
    df = pd.DataFrame([
        {'Status': STATUS_LABELS.get(status, status), 'Cases': count}
        for status, count in counts.items()
    ])
    st.dataframe(df, hide_index=True, use_container_width=True)
