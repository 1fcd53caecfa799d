"""
Case details: notes, status changes, notices and abatement
"""
import streamlit as st
import streamlit.components.v1 as components
from dataclasses import replace
from datetime import date
from typing import List

from config import settings
from models.case import Case, abatement_stage, ABATEMENT_COSTED
from models.case_store import CaseStore
from engine.status import STATUS_LABELS, time_status, display_status
from engine.templates import DocTemplate, render_document, load_global_settings
from ui.photos import photo_uploader, render_gallery
from utils.errors import ExternalServiceError, ValidationError
from utils.helpers import format_currency, format_long_date, parse_date
from utils.validations import missing_abatement_requirements, sanitize_filename


def _run(action, success_message: str):
    """Run a store mutation and report the outcome"""
    try:
        action()
    except ValidationError as e:
        st.error(str(e))
        return
    except ExternalServiceError as e:
        st.warning(f"Change kept in this session but not saved: {e}")
        return
    st.success(success_message)


def render_case_details(case_store: CaseStore, case: Case, templates: List[DocTemplate]):
    """
    Render the detail panel for one case
    """
    st.header(f"📁 Case {case.case_id}")
    st.write(f"**{case.address.full}**")

    col1, col2, col3 = st.columns(3)
    with col1:
        st.metric("Status", display_status(case))
    with col2:
        st.metric("Deadline", case.compliance_deadline)
    with col3:
        st.metric("Time", time_status(case).replace('-', ' ').title())

    # Deadline
    current_deadline = parse_date(case.compliance_deadline) or date.today()
    col1, col2 = st.columns([3, 1])
    with col1:
        new_deadline = st.date_input("Compliance deadline", value=current_deadline, key=f"deadline_{case.id}")
    with col2:
        st.write("")
        if st.button("Update Deadline", key=f"deadline_btn_{case.id}"):
            edited = replace(case, compliance_deadline=format_long_date(new_deadline))
            _run(lambda: case_store.update_case(edited), f"Deadline set to {edited.compliance_deadline}")

    # Owner / violation
    col1, col2 = st.columns(2)
    with col1:
        st.subheader("Owner")
        if case.owner_unknown and case.owner_info.is_empty:
            st.write("Unknown")
        else:
            st.write(case.owner_info.name)
            st.text(case.owner_info.mailing_address)
            if case.owner_info.phone:
                st.write(case.owner_info.phone)
        if case.is_vacant:
            st.caption("Vacant property")
    with col2:
        st.subheader("Violation")
        st.write(f"**{case.violation.type}**")
        if case.violation.ordinance:
            st.caption(case.violation.ordinance)
        st.write(case.violation.description)

    st.markdown("---")

    # Status
    st.subheader("Status")
    new_status = st.selectbox(
        "Change status",
        options=settings.CASE_STATUSES,
        index=settings.CASE_STATUSES.index(case.status),
        format_func=lambda s: STATUS_LABELS.get(s, s),
        key=f"status_{case.id}",
    )
    col1, col2 = st.columns(2)
    with col1:
        if st.button("Update Status", key=f"status_btn_{case.id}") and new_status != case.status:
            _run(lambda: case_store.set_status(case.id, new_status), f"Status set to {new_status}")
    with col2:
        if case.status != settings.STATUS_PENDING_ABATEMENT and st.button(
            "Forward for Abatement", key=f"forward_{case.id}"
        ):
            _run(lambda: case_store.forward_for_abatement(case.id), "Forwarded for abatement")

    # Notes
    st.subheader("📝 Notes")
    note_text = st.text_area("Add note", key=f"note_{case.id}")
    if st.button("Add Note", key=f"note_btn_{case.id}"):
        _run(lambda: case_store.add_note(case.id, note_text), "Note added")
    for note in case.notes:
        st.write(f"**{note.date}** - {note.text}")

    # Photos
    st.subheader("📷 Photos")
    render_gallery(case.photos)
    new_photos = photo_uploader("Add photos", key=f"photos_{case.id}")
    if st.button("Save Photos", key=f"photos_btn_{case.id}", disabled=not new_photos):
        _run(lambda: case_store.add_photos(case.id, new_photos), f"{len(new_photos)} photo(s) added")

    # Follow-ups
    st.subheader("🔁 Follow-ups")
    for follow_up in case.follow_ups:
        st.write(f"**{follow_up.date}** - {follow_up.notes}")
        if follow_up.photos:
            render_gallery(follow_up.photos)
    with st.form(f"follow_up_{case.id}", clear_on_submit=True):
        follow_up_notes = st.text_area("Follow-up notes")
        follow_up_photos = photo_uploader("Follow-up photos", key=f"follow_up_photos_{case.id}")
        if st.form_submit_button("Record Follow-up"):
            _run(
                lambda: case_store.add_follow_up(case.id, follow_up_notes, follow_up_photos),
                "Follow-up recorded",
            )

    # Notices
    st.subheader("📄 Notices")
    _render_notices(case_store, case, templates)

    # Abatement
    if case.abatement is not None or case.status in (
        settings.STATUS_PENDING_ABATEMENT, settings.STATUS_CONTINUAL_ABATEMENT
    ):
        st.subheader("🚜 Abatement")
        _render_abatement(case_store, case)

    st.markdown("---")
    with st.expander("Delete case"):
        confirmed = st.checkbox("I understand this cannot be undone", key=f"confirm_del_{case.id}")
        if st.button("Delete", key=f"delete_{case.id}", type="primary"):
            try:
                case_store.delete_case(case.id, confirmed=confirmed)
            except ValidationError as e:
                st.error(str(e))
                return
            except ExternalServiceError as e:
                st.warning(f"Deleted in this session but not saved: {e}")
            st.session_state.selected_case_id = None


def _render_notices(case_store: CaseStore, case: Case, templates: List[DocTemplate]):
    for notice in case.notices:
        st.write(f"**{notice.date}** - {notice.title or notice.type}")

    if not templates:
        st.info("No document templates are configured.")
        return

    by_id = {t.id: t for t in templates}
    template_id = st.selectbox(
        "Template",
        options=list(by_id.keys()),
        format_func=lambda tid: by_id[tid].name,
        key=f"template_{case.id}",
    )
    template = by_id[template_id]

    missing = []
    if template.doc_type in settings.ABATEMENT_DOC_TYPES:
        missing = missing_abatement_requirements(case, template.doc_type)
        if missing:
            st.info(f"{template.name} needs: {', '.join(missing)}")

    html_doc = render_document(template, case, load_global_settings())
    with st.expander("Preview", expanded=False):
        components.html(html_doc, height=600, scrolling=True)

    title = f"{template.name} - {case.case_id}"
    file_name = sanitize_filename(f"{title}.html")
    if st.download_button("⬇️ Download", data=html_doc, file_name=file_name, mime="text/html",
                          key=f"download_{case.id}", disabled=bool(missing)):
        if template.doc_type in settings.ABATEMENT_DOC_TYPES:
            _run(
                lambda: case_store.record_abatement_document(case.id, template.doc_type, file_name, title),
                f"{template.name} recorded",
            )
        elif template.doc_type != settings.DOC_TYPE_ENVELOPE:
            _run(lambda: case_store.record_notice(case.id, template.id, title, file_name), "Notice recorded")


def _render_abatement(case_store: CaseStore, case: Case):
    abatement = case.abatement

    # Work photos
    col1, col2 = st.columns(2)
    for stage, col in (("before", col1), ("after", col2)):
        with col:
            st.write(f"**{stage.title()} photos**")
            render_gallery(
                (abatement.photos_before if stage == "before" else abatement.photos_after) if abatement else [],
                columns=2,
            )
            uploads = photo_uploader(f"Add {stage} photos", key=f"abatement_{stage}_{case.id}")
            if st.button(f"Save {stage.title()} Photos", key=f"abatement_{stage}_btn_{case.id}",
                         disabled=not uploads):
                _run(
                    lambda: case_store.add_abatement_photos(case.id, stage, uploads),
                    f"{len(uploads)} {stage} photo(s) added",
                )

    if abatement_stage(case) == ABATEMENT_COSTED:
        cost = abatement.cost
        st.write(
            f"{cost.employees} employee(s) x {cost.hours} hr x {format_currency(cost.rate)}"
            f" + {format_currency(cost.admin_fee)} admin = **{format_currency(cost.total)}**"
        )

    with st.form(f"abatement_{case.id}"):
        col1, col2 = st.columns(2)
        with col1:
            employees = st.number_input("Employees", min_value=0, step=1, value=1)
            hours = st.number_input("Hours", min_value=0.0, step=0.25, value=1.0)
            work_date = st.text_input("Work date", value=abatement.work_date if abatement else "")
        with col2:
            rate = st.number_input("Hourly rate", min_value=0.0, value=settings.ABATEMENT_HOURLY_RATE)
            admin_fee = st.number_input("Admin fee", min_value=0.0, value=settings.ABATEMENT_ADMIN_FEE)
            invoice_number = st.text_input("Invoice #", value=abatement.invoice_number if abatement else "")
        if st.form_submit_button("Save Cost"):
            _run(
                lambda: case_store.set_abatement_cost(
                    case.id, int(employees), hours, rate, admin_fee,
                    work_date=work_date, invoice_number=invoice_number,
                ),
                "Abatement cost saved",
            )

    parcel = abatement.parcel if abatement else None
    with st.form(f"parcel_{case.id}"):
        legal = st.text_area("Legal description", value=parcel.legal_description if parcel else "")
        tax_id = st.text_input("Tax ID", value=parcel.tax_id if parcel else "")
        parcel_number = st.text_input("Parcel number", value=parcel.parcel_number if parcel else "")
        if st.form_submit_button("Save Parcel Info"):
            _run(lambda: case_store.set_parcel_info(case.id, legal, tax_id, parcel_number), "Parcel info saved")

    # Issued documents
    if abatement:
        if abatement.statement_of_cost_doc_url:
            st.write(
                f"✅ Statement of Cost issued {abatement.statement_of_cost_date}"
                f" ({abatement.statement_of_cost_doc_url})"
            )
        if abatement.notice_of_lien_doc_url:
            st.write(f"✅ Notice of Lien issued ({abatement.notice_of_lien_doc_url})")
        if abatement.certificate_of_lien_doc_url:
            st.write(f"✅ Certificate of Lien issued ({abatement.certificate_of_lien_doc_url})")
    st.caption("Certificate of Lien is used 30 days after the Statement of Cost goes unpaid.")
