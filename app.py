"""
Commerce Code Enforcement
Main Streamlit Application - case tracking, notices and abatement
"""
import logging
from datetime import date, datetime

import streamlit as st

from models.case_store import CaseStore
from config.catalog import load_violation_catalog
from engine.templates import load_document_templates
from storage.audit_log import AuditLog
from storage.database import open_store
from utils.errors import CaseTrackerError, ExternalServiceError, NotFoundError, ValidationError

from ui.sidebar import render_sidebar
from ui.case_list import render_case_list, render_continual_list
from ui.case_form import render_new_case_form
from ui.case_details import render_case_details
from ui.property_directory import render_property_directory
from ui.reports import render_reports
from ui.export import render_export_panel

from config import settings

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

# Page configuration
st.set_page_config(
    page_title=settings.APP_TITLE,
    page_icon=settings.APP_ICON,
    layout="wide",
    initial_sidebar_state="expanded",
)


# ---------------------------------------------------------------------------
# Session state helpers
# ---------------------------------------------------------------------------

def initialize_session_state():
    """Initialize session state variables."""
    defaults = {
        "case_store": None,
        "data_loaded": False,
        "audit_log": AuditLog(),
        "selected_case_id": None,
    }
    for key, value in defaults.items():
        if key not in st.session_state:
            st.session_state[key] = value


def open_data_file(data_path: str, create: bool, user: str, overwrite: bool = False) -> bool:
    """Open (or create) the data file and attach it to the session"""
    try:
        case_store = CaseStore(
            store=open_store(data_path),
            catalog=load_violation_catalog(),
            audit_log=st.session_state.audit_log,
            user=user,
        )
        if create:
            case_store.create_new(overwrite=overwrite)
        else:
            case_store.load()
    except NotFoundError as e:
        st.sidebar.error(f"{e} Use 'Create New' to start a data file.")
        return False
    except ValidationError as e:
        st.sidebar.warning(f"{e} Tick 'Overwrite existing data' to replace it.")
        return False
    except CaseTrackerError as e:
        logger.error("Could not open data file %s: %s", data_path, e)
        st.sidebar.error(str(e))
        return False

    st.session_state.case_store = case_store
    st.session_state.data_loaded = True
    st.session_state.selected_case_id = None
    return True


# ---------------------------------------------------------------------------
# Main
# ---------------------------------------------------------------------------

def main():
    initialize_session_state()
    sidebar = render_sidebar()

    if sidebar["open"] or sidebar["create"]:
        if open_data_file(sidebar["data_path"], sidebar["create"], sidebar["user"], sidebar["overwrite"]):
            st.sidebar.success("✅ Data file ready")

    st.title(f"{settings.APP_ICON} {settings.APP_TITLE}")
    st.markdown("---")

    if not st.session_state.data_loaded:
        st.info(
            "👈 **Get started:** open an existing data file or create a new one from the sidebar.\n\n"
            f"Default location: `{settings.DATA_PATH}`"
        )
        return

    case_store: CaseStore = st.session_state.case_store
    case_store.user = sidebar["user"]
    today = date.today()

    # Fold existing cases into the property directory the first time
    if not case_store.properties and case_store.cases:
        try:
            created = case_store.migrate_cases_to_properties()
            st.toast(f"Property directory built from {created} addresses")
        except ExternalServiceError as e:
            st.warning(str(e))

    filtered = case_store.search_cases(
        sidebar["search_term"],
        case_store.filter_cases(sidebar["filter_name"]),
    )

    tabs = st.tabs([
        "📋 All Cases",
        "⏰ Due",
        "🚜 Abatement",
        "🔁 Continual",
        "➕ New Case",
        "🏠 Properties",
        "📊 Reports",
        "📤 Export",
    ])

    with tabs[0]:
        render_case_list(case_store, filtered, key="all", today=today)
    with tabs[1]:
        render_case_list(
            case_store, case_store.due_cases(today), key="due", today=today,
            empty_message="No cases are past their compliance deadline.",
        )
    with tabs[2]:
        render_case_list(
            case_store, case_store.abatement_cases(), key="abatement", today=today,
            empty_message="No cases are pending abatement.",
        )
    with tabs[3]:
        render_continual_list(case_store, key="continual")
    with tabs[4]:
        render_new_case_form(case_store)
    with tabs[5]:
        render_property_directory(case_store, sidebar["search_term"])
    with tabs[6]:
        render_reports(case_store)
    with tabs[7]:
        render_export_panel(case_store.cases, case_store.properties, st.session_state.audit_log, sidebar["user"])

    selected_id = st.session_state.selected_case_id
    if selected_id:
        st.markdown("---")
        try:
            case = case_store.get_case(selected_id)
        except NotFoundError:
            st.session_state.selected_case_id = None
        else:
            render_case_details(case_store, case, load_document_templates())

    st.markdown("---")
    st.caption(
        f"{settings.APP_TITLE} | Last saved {case_store.last_updated or 'never'}"
        f" | {datetime.now().strftime('%Y-%m-%d %H:%M')}"
    )


if __name__ == "__main__":
    main()
