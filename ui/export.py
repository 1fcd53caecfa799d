"""
Export functionality for case data
"""
import streamlit as st
import pandas as pd
from typing import List, Optional
from datetime import date, datetime
import io

from config import settings
from models.case import Case, Property, abatement_stage, ABATEMENT_COSTED
from engine.status import time_status, display_status
from engine.street_order import sort_cases, sort_properties
from utils.helpers import format_currency
from storage.audit_log import AuditLog


def render_export_panel(
    cases: List[Case],
    properties: List[Property],
    audit_log: Optional[AuditLog],
    user: str,
):
    """
    Render export panel with download options
    """
    st.header("📤 Export Data")

    st.write("Download cases and the property directory.")

    export_format = st.radio(
        "Select export format:",
        options=["Excel (recommended)", "CSV"],
        help="Excel includes every sheet; CSV exports cases only"
    )

    col1, col2 = st.columns(2)
    with col1:
        export_cases = st.checkbox("Cases", value=True)
        export_properties = st.checkbox("Property Directory", value=True)
    with col2:
        export_abatement = st.checkbox("Abatement Costs", value=True)
        export_summary = st.checkbox("Summary", value=True)

    if st.button("📥 Generate Export", type="primary", use_container_width=True):
        with st.spinner("Generating export..."):
            if export_format == "Excel (recommended)":
                export_data = generate_excel_export(
                    cases, properties,
                    export_cases, export_properties, export_abatement, export_summary
                )
                filename = f"code_enforcement_{datetime.now().strftime('%Y%m%d_%H%M%S')}.xlsx"
                mime_type = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"
            else:
                export_data = generate_csv_export(cases)
                filename = f"cases_{datetime.now().strftime('%Y%m%d_%H%M%S')}.csv"
                mime_type = "text/csv"

            if audit_log:
                audit_log.log_export(export_type=export_format, user=user, record_count=len(cases))

            st.download_button(
                label=f"💾 Download {filename}",
                data=export_data,
                file_name=filename,
                mime=mime_type,
                use_container_width=True
            )


def generate_excel_export(
    cases: List[Case],
    properties: List[Property],
    include_cases: bool = True,
    include_properties: bool = True,
    include_abatement: bool = True,
    include_summary: bool = True,
    today: Optional[date] = None,
) -> bytes:
    """Generate Excel file with multiple sheets"""

    output = io.BytesIO()

    with pd.ExcelWriter(output, engine='openpyxl') as writer:

        if include_summary:
            summary_df = pd.DataFrame(generate_summary_data(cases, properties, today))
            summary_df.to_excel(writer, sheet_name='Summary', index=False)

        if include_cases:
            generate_cases_dataframe(cases, today).to_excel(writer, sheet_name='Cases', index=False)

        if include_properties:
            generate_properties_dataframe(properties).to_excel(writer, sheet_name='Properties', index=False)

        if include_abatement:
            abatement_df = generate_abatement_dataframe(cases)
            if not abatement_df.empty:
                abatement_df.to_excel(writer, sheet_name='Abatement Costs', index=False)

    output.seek(0)
    return output.getvalue()


def generate_csv_export(cases: List[Case], today: Optional[date] = None) -> bytes:
    """Generate CSV file with cases"""
    df = generate_cases_dataframe(cases, today)

    output = io.StringIO()
    df.to_csv(output, index=False)
    output.seek(0)

    return output.getvalue().encode('utf-8')


def generate_summary_data(
    cases: List[Case],
    properties: List[Property],
    today: Optional[date] = None,
) -> List[dict]:
    """Generate summary data"""
    overdue = [c for c in cases if time_status(c, today) == settings.TIME_OVERDUE]
    billed = sum(c.abatement.cost.total for c in cases if abatement_stage(c) == ABATEMENT_COSTED)

    summary = [
        {'Metric': 'Total Cases', 'Value': len(cases)},
        {'Metric': 'Open Cases', 'Value': len([c for c in cases if not c.is_closed])},
        {'Metric': 'Closed Cases', 'Value': len([c for c in cases if c.is_closed])},
        {'Metric': 'Overdue Cases', 'Value': len(overdue)},
        {'Metric': '', 'Value': ''},
    ]
    for status in settings.CASE_STATUSES:
        summary.append({'Metric': status, 'Value': len([c for c in cases if c.status == status])})

    summary += [
        {'Metric': '', 'Value': ''},
        {'Metric': 'Properties on File', 'Value': len(properties)},
        {'Metric': 'Vacant Properties', 'Value': len([p for p in properties if p.is_vacant])},
        {'Metric': 'Abatement Billed', 'Value': format_currency(billed)},
    ]

    return summary


def generate_cases_dataframe(cases: List[Case], today: Optional[date] = None) -> pd.DataFrame:
    """Generate cases dataframe for export, closed cases last"""

    data = []
    for case in sort_cases(cases):
        data.append({
            'Case Number': case.case_id,
            'Street': case.address.street,
            'City': case.address.city,
            'Status': display_status(case),
            'Time Status': time_status(case, today),
            'Violation': case.violation.type,
            'Ordinance': case.violation.ordinance,
            'Owner': case.owner_info.name or ('Unknown' if case.owner_unknown else ''),
            'Mailing Address': case.owner_info.mailing_address,
            'Vacant': 'Yes' if case.is_vacant else 'No',
            'Date Created': case.date_created,
            'Compliance Deadline': case.compliance_deadline,
            'Date Closed': case.date_closed or '',
            'Notices Sent': len(case.notices),
        })

    return pd.DataFrame(data)


def generate_properties_dataframe(properties: List[Property]) -> pd.DataFrame:
    """Generate property directory dataframe in patrol order"""

    data = []
    for prop in sort_properties(properties):
        data.append({
            'Street Address': prop.street_address,
            'Owner': prop.owner_info.name,
            'Mailing Address': prop.owner_info.mailing_address,
            'Owner Phone': prop.owner_info.phone,
            'Resident': prop.resident_info.name,
            'Resident Phone': prop.resident_info.phone,
            'Vacant': 'Yes' if prop.is_vacant else 'No',
            'Dilapidation Notes': prop.dilapidation_notes,
        })

    return pd.DataFrame(data)


def generate_abatement_dataframe(cases: List[Case]) -> pd.DataFrame:
    """Costed abatements only"""

    data = []
    for case in sort_cases(cases, list_type="abatement"):
        if abatement_stage(case) != ABATEMENT_COSTED:
            continue
        cost = case.abatement.cost
        data.append({
            'Case Number': case.case_id,
            'Street': case.address.street,
            'Work Date': case.abatement.work_date,
            'Invoice': case.abatement.invoice_number,
            'Employees': cost.employees,
            'Hours': cost.hours,
            'Rate': cost.rate,
            'Admin Fee': cost.admin_fee,
            'Total': cost.total,
        })

    return pd.DataFrame(data)
