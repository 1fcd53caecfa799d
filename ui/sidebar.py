"""
Sidebar: data file selector and case list filters
"""
import streamlit as st

from config import settings
from models.case_store import FILTER_LABELS


def render_sidebar():
    """
    Render sidebar with the data file controls and list filters
    Returns: dict with selected options
    """
    st.sidebar.title(f"{settings.APP_ICON} {settings.APP_TITLE}")
    st.sidebar.markdown("---")

    # Data file
    st.sidebar.subheader("📂 Data File")
    if settings.USE_DATABASE:
        st.sidebar.caption(f"DuckDB: `{settings.DATABASE_PATH}`")
        data_path = settings.DATABASE_PATH
    else:
        data_path = st.sidebar.text_input(
            "Path to data file",
            value=settings.DATA_PATH,
            help="JSON file holding all cases and properties"
        )

    col1, col2 = st.sidebar.columns(2)
    with col1:
        open_clicked = st.button("Open", use_container_width=True)
    with col2:
        create_clicked = st.button("Create New", use_container_width=True)
    overwrite = st.sidebar.checkbox(
        "Overwrite existing data",
        value=False,
        help="Create New replaces every case and property already stored at this location"
    )

    st.sidebar.markdown("---")

    # Officer name for the audit trail
    user = st.sidebar.text_input(
        "Officer",
        value=settings.OFFICER_NAME,
        help="Recorded in the audit trail"
    )

    # Filters
    st.sidebar.subheader("🔍 Filters")
    filter_name = st.sidebar.selectbox(
        "Show",
        options=list(FILTER_LABELS.keys()),
        format_func=lambda key: FILTER_LABELS[key],
    )
    search_term = st.sidebar.text_input(
        "Search",
        placeholder="Street, case number, or owner",
    )

    return {
        'data_path': data_path,
        'open': open_clicked,
        'create': create_clicked,
        'overwrite': overwrite,
        'user': user or "System",
        'filter_name': filter_name,
        'search_term': search_term,
    }
