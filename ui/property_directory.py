"""
Property directory view
"""
import streamlit as st

from models.case import OwnerInfo, Property, ResidentInfo
from models.case_store import CaseStore
from utils.errors import ExternalServiceError, ValidationError
from utils.helpers import generate_id


def render_property_directory(case_store: CaseStore, search_term: str = ""):
    """
    Render the property directory in patrol order, with an edit form
    """
    st.header("🏠 Property Directory")

    properties = case_store.search_properties(search_term)

    if not case_store.properties and case_store.cases:
        if st.button("Build directory from existing cases"):
            try:
                created = case_store.migrate_cases_to_properties()
            except ExternalServiceError as e:
                st.warning(f"Directory built but not saved: {e}")
            else:
                st.success(f"Created {created} properties")
            properties = case_store.search_properties(search_term)

    if not properties:
        st.info("No properties on file.")
    else:
        for prop in properties:
            history = case_store.cases_for_property(prop)
            with st.expander(f"{prop.street_address} ({len(history)} case(s))"):
                _render_property_form(case_store, prop)
                for case in history:
                    st.write(f"- {case.case_id}: {case.violation.type} [{case.status}]")

    st.markdown("---")
    st.subheader("Add Property")
    _render_property_form(case_store, None)


def _render_property_form(case_store: CaseStore, prop):
    key = prop.id if prop else "new"
    with st.form(f"property_{key}"):
        street = st.text_input("Street Address", value=prop.street_address if prop else "")
        owner_name = st.text_input("Owner Name", value=prop.owner_info.name if prop else "")
        mailing = st.text_area("Mailing Address", value=prop.owner_info.mailing_address if prop else "")
        owner_phone = st.text_input("Owner Phone", value=prop.owner_info.phone if prop else "")
        resident_name = st.text_input("Resident Name", value=prop.resident_info.name if prop else "")
        resident_phone = st.text_input("Resident Phone", value=prop.resident_info.phone if prop else "")
        is_vacant = st.checkbox("Vacant", value=prop.is_vacant if prop else False)
        dilapidation = st.text_area("Dilapidation Notes", value=prop.dilapidation_notes if prop else "")
        confirm_delete = st.checkbox("Confirm delete", value=False) if prop else False

        col1, col2 = st.columns(2)
        with col1:
            save = st.form_submit_button("Save")
        with col2:
            delete = st.form_submit_button("Delete") if prop else False

    try:
        if save:
            case_store.save_property(Property(
                id=prop.id if prop else generate_id(),
                street_address=street,
                owner_info=OwnerInfo(name=owner_name, mailing_address=mailing, phone=owner_phone),
                resident_info=ResidentInfo(name=resident_name, phone=resident_phone),
                is_vacant=is_vacant,
                dilapidation_notes=dilapidation,
            ))
            st.success("Property saved")
        elif delete:
            case_store.delete_property(prop.id, confirmed=confirm_delete)
            st.success("Property deleted")
    except ValidationError as e:
        st.error(str(e))
    except ExternalServiceError as e:
        st.warning(f"Change kept in this session but not saved: {e}")
