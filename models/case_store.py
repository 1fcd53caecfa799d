"""
Case store - the in-memory case and property collections for one session

Every mutation persists the whole document through the configured backend.
A failed save is raised to the caller, but the in-memory change is kept:
memory and disk stay out of step until the next successful save.
"""
import logging
from dataclasses import replace
from datetime import date, timedelta
from typing import Callable, Dict, List, Optional

import pandas as pd

from config import settings
from config.catalog import ViolationCatalog, load_violation_catalog
from models.case import (
    Abatement,
    Case,
    CaseDocument,
    CaseDraft,
    CostDetails,
    EvidencePhoto,
    FollowUp,
    Note,
    NoticeRecord,
    ParcelInfo,
    Property,
    ResidentInfo,
)
from engine.status import time_status, display_status, is_due
from engine.street_order import sort_cases, sort_properties
from storage.audit_log import AuditLog
from utils.errors import ExternalServiceError, NotFoundError, ValidationError
from utils.helpers import format_long_date, generate_id, normalize_address, now_iso, parse_date
from utils.validations import missing_abatement_requirements, validate_case_draft, validate_status

logger = logging.getLogger(__name__)

CASE_FILTERS: Dict[str, Callable[[Case], bool]] = {
    'OPEN': lambda c: c.status != settings.STATUS_CLOSED,
    'ABATEMENT': lambda c: c.status == settings.STATUS_PENDING_ABATEMENT,
    'VACANT': lambda c: c.is_vacant,
    'DILAPIDATED': lambda c: c.violation.type == 'Dilapidated Structure',
    'UNKNOWN_OWNER': lambda c: c.owner_info_status == settings.OWNER_UNKNOWN,
    'TALL_GRASS': lambda c: c.violation.type == 'Tall Grass / Weeds',
    'INOPERABLE_VEHICLE': lambda c: c.violation.type == 'Inoperable / Abandoned Vehicle',
}

FILTER_LABELS = {
    'ALL': 'All Open & Closed Cases',
    'OPEN': 'All Open Cases',
    'ABATEMENT': 'Ready for Abatement',
    'VACANT': 'Vacant Properties',
    'DILAPIDATED': 'Dilapidated Structures',
    'UNKNOWN_OWNER': 'Unknown Owner',
    'TALL_GRASS': 'Tall Grass / Weeds',
    'INOPERABLE_VEHICLE': 'Inoperable Vehicles',
}


class CaseStore:
    """
    Holds the session's cases and property directory and persists them
    """

    def __init__(
        self,
        store=None,
        catalog: Optional[ViolationCatalog] = None,
        audit_log: Optional[AuditLog] = None,
        user: str = "System",
    ):
        self.store = store
        self.catalog = catalog or load_violation_catalog()
        self.audit_log = audit_log
        self.user = user
        self.cases: List[Case] = []
        self.properties: List[Property] = []
        self.last_updated: str = ""

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    def load(self):
        """Replace in-memory state with the stored document"""
        if self.store is None:
            raise NotFoundError("No data file is configured.")
        document = self.store.load()
        self.cases = document.cases
        self.properties = document.properties
        self.last_updated = document.last_updated

    def create_new(self, overwrite: bool = False):
        """Start an empty data file; existing data needs overwrite=True"""
        if self.store is None:
            raise NotFoundError("No data file is configured.")
        document = self.store.create_new(overwrite=overwrite)
        self.cases = document.cases
        self.properties = document.properties
        self.last_updated = document.last_updated

    def to_document(self) -> CaseDocument:
        return CaseDocument(cases=list(self.cases), properties=list(self.properties), last_updated=self.last_updated)

    def persist(self):
        """Save the whole document; raises ExternalServiceError on failure"""
        if self.store is None:
            raise NotFoundError("No data file is configured.")

        self.last_updated = now_iso()
        try:
            self.store.save(self.to_document())
        except ExternalServiceError as e:
            logger.error("Save failed, in-memory changes are not persisted: %s", e)
            if self.audit_log:
                self.audit_log.log_save_failure(str(e), self.user)
            raise

    # ------------------------------------------------------------------
    # Cases
    # ------------------------------------------------------------------

    def get_case(self, case_id: str) -> Case:
        """Look up a case by its opaque id"""
        found = next((c for c in self.cases if c.id == case_id), None)
        if found is None:
            raise NotFoundError(f"Case not found: {case_id}")
        return found

    def create_case(self, draft: CaseDraft, today: Optional[date] = None) -> Case:
        """
        Validate a draft and add it as a new ACTIVE case.
        The compliance deadline is COMPLIANCE_DAYS after creation.
        """
        validate_case_draft(draft)

        today = today or date.today()
        deadline = today + timedelta(days=settings.COMPLIANCE_DAYS)

        case = Case(
            id=generate_id(),
            case_id=draft.case_id.strip(),
            status=settings.STATUS_ACTIVE,
            date_created=format_long_date(today),
            compliance_deadline=format_long_date(deadline),
            address=replace(draft.address),
            owner_info=replace(draft.owner_info),
            owner_info_status=draft.owner_info_status,
            violation=self.catalog.resolve(draft.violation),
            notes=[Note(date=format_long_date(today), text="Case created.")],
            photos=list(draft.photos),
            notices=[],
            is_vacant=draft.is_vacant,
        )

        self.cases.insert(0, case)
        self._sync_property(case)

        if self.audit_log:
            self.audit_log.log_case_created(case.case_id, case.address.street, self.user)

        self.persist()
        return case

    def update_case(self, case: Case) -> Case:
        """Replace a stored case with an edited copy"""
        for i, existing in enumerate(self.cases):
            if existing.id == case.id:
                self.cases[i] = case
                break
        else:
            raise NotFoundError(f"Case not found: {case.id}")

        self._sync_property(case)
        self.persist()
        return case

    def delete_case(self, case_id: str, confirmed: bool = False):
        """Hard-delete a case; requires explicit confirmation"""
        if not confirmed:
            raise ValidationError("Deleting a case requires confirmation.", missing_fields=["confirmation"])

        case = self.get_case(case_id)
        self.cases = [c for c in self.cases if c.id != case_id]

        if self.audit_log:
            self.audit_log.log_case_deleted(case.case_id, self.user)

        self.persist()

    def set_status(self, case_id: str, status: str) -> Case:
        """
        Change a case's lifecycle status. Closing stamps date_closed,
        moving away from CLOSED clears it.
        """
        if not validate_status(status):
            raise ValidationError(f"Unknown status: {status}", missing_fields=["status"])

        case = self.get_case(case_id)
        old_status = case.status
        case.status = status

        if status == settings.STATUS_CLOSED and old_status != settings.STATUS_CLOSED:
            case.date_closed = now_iso()
        elif status != settings.STATUS_CLOSED:
            case.date_closed = None

        if self.audit_log and old_status != status:
            self.audit_log.log_status_change(case.case_id, old_status, status, self.user)

        self.persist()
        return case

    def forward_for_abatement(self, case_id: str, today: Optional[date] = None) -> Case:
        """Move a case to PENDING_ABATEMENT and note when it was forwarded"""
        case = self.get_case(case_id)
        case.notes.insert(0, Note(date=format_long_date(today or date.today()), text="Forwarded for abatement."))
        if case.abatement is None:
            case.abatement = Abatement()
        return self.set_status(case_id, settings.STATUS_PENDING_ABATEMENT)

    def add_note(self, case_id: str, text: str, today: Optional[date] = None) -> Case:
        """Prepend a note (newest first)"""
        if not text or not text.strip():
            raise ValidationError("Note text is required.", missing_fields=["text"])

        case = self.get_case(case_id)
        case.notes.insert(0, Note(date=format_long_date(today or date.today()), text=text.strip()))
        self.persist()
        return case

    def add_photos(self, case_id: str, photos: List[EvidencePhoto]) -> Case:
        case = self.get_case(case_id)
        case.photos.extend(photos)
        self.persist()
        return case

    def add_follow_up(
        self,
        case_id: str,
        notes: str,
        photos: Optional[List[EvidencePhoto]] = None,
        today: Optional[date] = None,
    ) -> Case:
        case = self.get_case(case_id)
        case.follow_ups.append(FollowUp(
            date=format_long_date(today or date.today()),
            notes=notes,
            photos=list(photos or []),
        ))
        self.persist()
        return case

    def record_notice(
        self,
        case_id: str,
        notice_type: str,
        title: str = "",
        doc_url: str = "",
        today: Optional[date] = None,
    ) -> NoticeRecord:
        """Append a generated notice to the case's notice history"""
        case = self.get_case(case_id)
        notice = self._append_notice(case, notice_type, title, doc_url, today)
        self.persist()
        return notice

    def _append_notice(
        self,
        case: Case,
        notice_type: str,
        title: str,
        doc_url: str,
        today: Optional[date],
    ) -> NoticeRecord:
        notice = NoticeRecord(
            type=notice_type,
            date=format_long_date(today or date.today()),
            title=title,
            doc_url=doc_url,
        )
        case.notices.append(notice)

        if self.audit_log:
            self.audit_log.log_notice_generated(case.case_id, notice_type, title, self.user)
        return notice

    # ------------------------------------------------------------------
    # Abatement
    # ------------------------------------------------------------------

    def _abatement(self, case: Case) -> Abatement:
        if case.abatement is None:
            case.abatement = Abatement()
        return case.abatement

    def set_abatement_cost(
        self,
        case_id: str,
        employees: int,
        hours: float,
        rate: float = settings.ABATEMENT_HOURLY_RATE,
        admin_fee: float = settings.ABATEMENT_ADMIN_FEE,
        work_date: Optional[str] = None,
        invoice_number: Optional[str] = None,
    ) -> CostDetails:
        """Record the abatement work and its billed cost"""
        if employees < 0 or hours < 0 or rate < 0 or admin_fee < 0:
            raise ValidationError("Abatement cost inputs cannot be negative.", missing_fields=["cost"])

        case = self.get_case(case_id)
        abatement = self._abatement(case)
        abatement.cost = CostDetails(employees=employees, hours=hours, rate=rate, admin_fee=admin_fee)
        if work_date is not None:
            abatement.work_date = work_date
        if invoice_number is not None:
            abatement.invoice_number = invoice_number

        self.persist()
        return abatement.cost

    def set_parcel_info(self, case_id: str, legal_description: str, tax_id: str, parcel_number: str) -> ParcelInfo:
        """Record the legal/tax identifiers needed for lien documents"""
        case = self.get_case(case_id)
        parcel = ParcelInfo(legal_description=legal_description, tax_id=tax_id, parcel_number=parcel_number)
        self._abatement(case).parcel = parcel
        self.persist()
        return parcel

    def add_abatement_photos(self, case_id: str, stage: str, photos: List[EvidencePhoto]) -> Case:
        """Attach 'before' or 'after' photos to the abatement record"""
        if stage not in ('before', 'after'):
            raise ValidationError(f"Unknown photo set: {stage}", missing_fields=["stage"])

        case = self.get_case(case_id)
        abatement = self._abatement(case)
        target = abatement.photos_before if stage == 'before' else abatement.photos_after
        target.extend(photos)
        self.persist()
        return case

    def record_abatement_document(
        self,
        case_id: str,
        doc_type: str,
        doc_url: str,
        title: str = "",
        today: Optional[date] = None,
    ) -> Abatement:
        """
        Record an issued Statement of Cost, Notice of Lien or Certificate of Lien
        on the abatement record and in the notice history.
        Raises ValidationError while the document's prerequisites are missing.
        """
        if doc_type not in settings.ABATEMENT_DOC_TYPES:
            raise ValidationError(f"Not an abatement document: {doc_type}", missing_fields=["doc_type"])

        case = self.get_case(case_id)
        missing = missing_abatement_requirements(case, doc_type)
        if missing:
            raise ValidationError(
                f"Cannot issue {title or doc_type} yet. Missing: {', '.join(missing)}",
                missing_fields=missing,
            )

        abatement = self._abatement(case)
        if doc_type == settings.DOC_TYPE_STATEMENT:
            abatement.statement_of_cost_date = format_long_date(today or date.today())
            abatement.statement_of_cost_doc_url = doc_url
        elif doc_type == settings.DOC_TYPE_LIEN:
            abatement.notice_of_lien_doc_url = doc_url
        else:
            abatement.certificate_of_lien_doc_url = doc_url

        self._append_notice(case, doc_type, title, doc_url, today)
        self.persist()
        return abatement

    # ------------------------------------------------------------------
    # Property directory
    # ------------------------------------------------------------------

    def find_property(self, street: str) -> Optional[Property]:
        """Directory lookup by normalized street address"""
        key = normalize_address(street)
        if not key:
            return None
        return next((p for p in self.properties if normalize_address(p.street_address) == key), None)

    def prefill_owner(self, draft: CaseDraft) -> bool:
        """
        Copy owner and vacancy info from the directory into a draft.
        Returns True if a property was found.
        """
        prop = self.find_property(draft.address.street)
        if prop is None:
            return False

        draft.owner_info = replace(prop.owner_info)
        draft.is_vacant = prop.is_vacant
        draft.owner_info_status = settings.OWNER_KNOWN
        return True

    def _sync_property(self, case: Case):
        """Create or update the directory entry for a case's address"""
        street = case.address.street.strip()
        if not street:
            return

        prop = self.find_property(street)
        if prop is None:
            self.properties.append(Property(
                id=generate_id(),
                street_address=street,
                owner_info=replace(case.owner_info),
                resident_info=ResidentInfo(),
                is_vacant=case.is_vacant,
                dilapidation_notes="",
            ))
            return

        # An unknown-owner case does not erase owner data already on file
        if not case.owner_info.is_empty:
            prop.owner_info = replace(case.owner_info)
        prop.is_vacant = case.is_vacant

    def save_property(self, prop: Property) -> Property:
        """Add or replace a directory entry by id"""
        if not prop.street_address.strip():
            raise ValidationError("Street address cannot be empty.", missing_fields=["streetAddress"])

        prop.street_address = prop.street_address.strip()
        for i, existing in enumerate(self.properties):
            if existing.id == prop.id:
                self.properties[i] = prop
                break
        else:
            self.properties.append(prop)

        self.persist()
        return prop

    def delete_property(self, property_id: str, confirmed: bool = False):
        """Remove a directory entry; associated cases are untouched"""
        if not confirmed:
            raise ValidationError("Deleting a property requires confirmation.", missing_fields=["confirmation"])
        if not any(p.id == property_id for p in self.properties):
            raise NotFoundError(f"Property not found: {property_id}")

        self.properties = [p for p in self.properties if p.id != property_id]
        self.persist()

    def migrate_cases_to_properties(self) -> int:
        """
        One-time fold of existing cases into the property directory.
        Runs only when the directory is empty; the latest case per address wins.
        Returns the number of properties created.
        """
        if self.properties or not self.cases:
            return 0

        logger.info("Performing one-time migration of %d cases to properties", len(self.cases))

        # Oldest first so later cases overwrite earlier ones
        ordered = sorted(self.cases, key=lambda c: parse_date(c.date_created) or date.min)
        by_address: Dict[str, Property] = {}
        for case in ordered:
            street = case.address.street.strip()
            if not street:
                continue
            key = normalize_address(street)
            existing = by_address.get(key)
            by_address[key] = Property(
                id=existing.id if existing else generate_id(),
                street_address=street,
                owner_info=replace(case.owner_info),
                resident_info=ResidentInfo(),
                is_vacant=case.is_vacant,
                dilapidation_notes="",
            )

        self.properties = list(by_address.values())
        self.persist()
        return len(self.properties)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def filter_cases(self, filter_name: str = 'ALL', list_type: str = "all") -> List[Case]:
        """Apply a named list filter, then sort for display"""
        cases = self.cases
        predicate = CASE_FILTERS.get(filter_name)
        if predicate is not None:
            cases = [c for c in cases if predicate(c)]
        return sort_cases(cases, list_type)

    def search_cases(self, term: str, cases: Optional[List[Case]] = None) -> List[Case]:
        """Match street, case number, or owner name (case-insensitive)"""
        cases = self.cases if cases is None else cases
        term = (term or "").strip().lower()
        if not term:
            return list(cases)
        return [
            c for c in cases
            if term in c.address.street.lower()
            or term in c.case_id.lower()
            or term in (c.owner_info.name or "").lower()
        ]

    def search_properties(self, term: str) -> List[Property]:
        term = (term or "").strip().lower()
        ordered = sort_properties(self.properties)
        if not term:
            return ordered
        return [
            p for p in ordered
            if term in p.street_address.lower() or term in (p.owner_info.name or "").lower()
        ]

    def cases_for_property(self, prop: Property) -> List[Case]:
        key = normalize_address(prop.street_address)
        return [c for c in self.cases if normalize_address(c.address.street) == key]

    def due_cases(self, today: Optional[date] = None) -> List[Case]:
        return sort_cases([c for c in self.cases if is_due(c, today)])

    def abatement_cases(self) -> List[Case]:
        return sort_cases(
            [c for c in self.cases if c.status == settings.STATUS_PENDING_ABATEMENT],
            list_type="abatement",
        )

    def continual_abatement_cases(self) -> List[Case]:
        return sort_cases([c for c in self.cases if c.status == settings.STATUS_CONTINUAL_ABATEMENT])

    def get_cases_df(self, cases: Optional[List[Case]] = None, today: Optional[date] = None) -> pd.DataFrame:
        """Get cases as a pandas DataFrame"""
        cases = self.cases if cases is None else cases
        if not cases:
            return pd.DataFrame()

        data = []
        for c in cases:
            data.append({
                'case_id': c.case_id,
                'street': c.address.street,
                'status': display_status(c),
                'time_status': time_status(c, today),
                'violation': c.violation.type,
                'owner': c.owner_info.name or ('Unknown' if c.owner_unknown else ''),
                'date_created': c.date_created,
                'compliance_deadline': c.compliance_deadline,
                'vacant': c.is_vacant,
                'notices': len(c.notices),
            })

        return pd.DataFrame(data)

    def get_properties_df(self) -> pd.DataFrame:
        """Get the property directory as a pandas DataFrame, in patrol order"""
        if not self.properties:
            return pd.DataFrame()

        data = []
        for p in sort_properties(self.properties):
            data.append({
                'street_address': p.street_address,
                'owner': p.owner_info.name,
                'mailing_address': p.owner_info.mailing_address,
                'owner_phone': p.owner_info.phone,
                'resident': p.resident_info.name,
                'vacant': p.is_vacant,
                'dilapidation_notes': p.dilapidation_notes,
            })

        return pd.DataFrame(data)
