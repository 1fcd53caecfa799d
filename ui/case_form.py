"""
New case form
"""
import streamlit as st

from config import settings
from models.case import Address, CaseDraft, OwnerInfo, Violation
from models.case_store import CaseStore
from ui.photos import photo_uploader
from utils.errors import ExternalServiceError, ValidationError


def render_new_case_form(case_store: CaseStore):
    """
    Render the new case form. Owner info is prefilled from the
    property directory when the street is already on file.
    """
    st.header("➕ New Case")

    street = st.text_input("Street Address", key="new_case_street")

    draft = CaseDraft(address=Address(street=street))
    found = case_store.prefill_owner(draft) if street.strip() else False
    if found:
        st.success("Property found in directory - owner info prefilled.")

    with st.form("new_case_form", clear_on_submit=False):
        case_id = st.text_input("Case Number")

        col1, col2, col3 = st.columns(3)
        with col1:
            city = st.text_input("City", value="Commerce")
        with col2:
            province = st.text_input("State", value="OK")
        with col3:
            postal_code = st.text_input("ZIP")

        st.subheader("Owner")
        owner_unknown = st.checkbox("Owner unknown", value=False)
        owner_name = st.text_input("Owner Name", value=draft.owner_info.name)
        mailing_address = st.text_area("Mailing Address", value=draft.owner_info.mailing_address)
        owner_phone = st.text_input("Phone", value=draft.owner_info.phone)
        is_vacant = st.checkbox("Vacant property", value=draft.is_vacant)

        st.subheader("Violation")
        options = [settings.VIOLATION_PLACEHOLDER] + case_store.catalog.types + [settings.VIOLATION_MANUAL]
        violation_type = st.selectbox("Violation", options=options)
        manual_description = st.text_area(
            "Manual violation description",
            help=f"Used when '{settings.VIOLATION_MANUAL}' is selected",
        )

        st.subheader("Photos")
        photos = photo_uploader("Evidence photos", key="new_case_photos")

        submitted = st.form_submit_button("Create Case", type="primary")

    if not submitted:
        return

    violation = Violation(type=violation_type)
    if violation_type == settings.VIOLATION_MANUAL:
        violation.description = manual_description

    draft.case_id = case_id
    draft.address = Address(street=street, city=city, province=province, postal_code=postal_code)
    draft.owner_info = OwnerInfo(name=owner_name, mailing_address=mailing_address, phone=owner_phone)
    draft.owner_info_status = settings.OWNER_UNKNOWN if owner_unknown else settings.OWNER_KNOWN
    draft.violation = violation
    draft.is_vacant = is_vacant
    draft.photos = photos

    try:
        case = case_store.create_case(draft)
    except ValidationError as e:
        st.error(str(e))
        return
    except ExternalServiceError as e:
        st.warning(f"Case created but not saved: {e}")
        return

    st.success(f"✅ Case {case.case_id} created. Compliance deadline: {case.compliance_deadline}")
