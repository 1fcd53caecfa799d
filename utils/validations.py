"""
Input validation utilities
"""
import re
from typing import List

from config import settings
from models.case import ABATEMENT_COSTED, Case, CaseDraft, abatement_stage
from utils.errors import ValidationError


def missing_case_fields(draft: CaseDraft) -> List[str]:
    """
    List the required fields a new case is missing.
    Owner name and mailing address are only required when the owner is known.
    """
    missing = []
    if not draft.case_id.strip():
        missing.append("Case Number")
    if not draft.address.street.strip():
        missing.append("Address")
    if not draft.violation.is_selected:
        missing.append("Violation")
    if draft.owner_info_status != settings.OWNER_UNKNOWN:
        if not (draft.owner_info.name.strip() and draft.owner_info.mailing_address.strip()):
            missing.append("Owner Info")
    return missing


def validate_case_draft(draft: CaseDraft):
    """Raise ValidationError if a new case cannot be saved"""
    missing = missing_case_fields(draft)
    if missing:
        raise ValidationError(
            "Please fill in Case Number, Address, select a Violation, and provide "
            f"Owner Info (or mark as unknown). Missing: {', '.join(missing)}",
            missing_fields=missing,
        )


def missing_abatement_requirements(case: Case, doc_type: str) -> List[str]:
    """
    List what an abatement document still needs before it can be issued.
    Statement of Cost: cost data and a work date.
    Notice of Lien: cost data and complete parcel info.
    Certificate of Lien: an issued statement and complete parcel info.
    """
    abatement = case.abatement
    parcel_complete = bool(abatement and abatement.parcel and abatement.parcel.is_complete)
    costed = abatement_stage(case) == ABATEMENT_COSTED

    missing = []
    if doc_type == settings.DOC_TYPE_STATEMENT:
        if not costed:
            missing.append("Cost Details")
        if not (abatement and abatement.work_date.strip()):
            missing.append("Work Date")
    elif doc_type == settings.DOC_TYPE_LIEN:
        if not costed:
            missing.append("Cost Details")
        if not parcel_complete:
            missing.append("Parcel Info")
    elif doc_type == settings.DOC_TYPE_CERTIFICATE:
        if not (abatement and abatement.statement_of_cost_doc_url):
            missing.append("Statement of Cost")
        if not parcel_complete:
            missing.append("Parcel Info")
    return missing


def validate_status(status: str) -> bool:
    """Validate case status"""
    return status in settings.CASE_STATUSES


def sanitize_filename(filename: str) -> str:
    """Sanitize filename for safe file operations"""
    # Remove or replace unsafe characters
    filename = re.sub(r'[<>:"/\\|?*]', '_', filename)
    # Remove leading/trailing spaces and dots
    filename = filename.strip('. ')
    # Limit length
    if len(filename) > 255:
        filename = filename[:255]

    return filename or 'unnamed'
