"""
Data models for code enforcement cases and the property directory

Attributes are snake_case; to_dict()/from_dict() read and write the
camelCase shape of the persisted JSON document.
"""
import base64
from dataclasses import dataclass, field
from typing import Optional, List, Any, Dict

from config import settings
from utils.errors import ParseError
from utils.helpers import generate_id

ABATEMENT_NONE = "none"
ABATEMENT_PENDING_COST = "pending_cost"
ABATEMENT_COSTED = "costed"


def _as_dict(data: Any, what: str) -> dict:
    if not isinstance(data, dict):
        raise ParseError(f"{what} must be an object, got {type(data).__name__}")
    return data


def _as_list(data: Any, what: str) -> list:
    if data is None:
        return []
    if not isinstance(data, list):
        raise ParseError(f"{what} must be a list, got {type(data).__name__}")
    return data


def _as_str(value: Any) -> str:
    return "" if value is None else str(value)


def _as_bool(value: Any, what: str) -> bool:
    if value is None:
        return False
    if not isinstance(value, bool):
        raise ParseError(f"{what} must be true or false, got {value!r}")
    return value


def _as_number(value: Any, what: str) -> float:
    try:
        return float(value or 0)
    except (TypeError, ValueError):
        raise ParseError(f"{what} must be numeric, got {value!r}")


@dataclass
class Address:
    """Property street address; all fields are free text"""
    street: str = ""
    city: str = ""
    province: str = ""
    postal_code: str = ""

    def to_dict(self) -> dict:
        return {
            'street': self.street,
            'city': self.city,
            'province': self.province,
            'postalCode': self.postal_code,
        }

    @classmethod
    def from_dict(cls, data: Any) -> "Address":
        data = _as_dict(data or {}, "address")
        return cls(
            street=_as_str(data.get('street')),
            city=_as_str(data.get('city')),
            province=_as_str(data.get('province')),
            postal_code=_as_str(data.get('postalCode')),
        )

    @property
    def full(self) -> str:
        """Single-line address, e.g. '123 Main St, Commerce, OK 74339'"""
        region = " ".join(p for p in [self.province, self.postal_code] if p)
        return ", ".join(p for p in [self.street, self.city, region] if p)


@dataclass
class OwnerInfo:
    name: str = ""
    mailing_address: str = ""
    phone: str = ""

    def to_dict(self) -> dict:
        return {'name': self.name, 'mailingAddress': self.mailing_address, 'phone': self.phone}

    @classmethod
    def from_dict(cls, data: Any) -> "OwnerInfo":
        data = _as_dict(data or {}, "ownerInfo")
        return cls(
            name=_as_str(data.get('name')),
            mailing_address=_as_str(data.get('mailingAddress')),
            phone=_as_str(data.get('phone')),
        )

    @property
    def is_empty(self) -> bool:
        return not (self.name or self.mailing_address or self.phone)


@dataclass
class ResidentInfo:
    name: str = ""
    phone: str = ""

    def to_dict(self) -> dict:
        return {'name': self.name, 'phone': self.phone}

    @classmethod
    def from_dict(cls, data: Any) -> "ResidentInfo":
        data = _as_dict(data or {}, "residentInfo")
        return cls(name=_as_str(data.get('name')), phone=_as_str(data.get('phone')))


@dataclass
class Violation:
    """A violation type from the catalog, or a manual 'Other' entry"""
    type: str = settings.VIOLATION_PLACEHOLDER
    ordinance: str = ""
    description: str = ""
    corrective_action: str = ""
    notice_clause: str = ""

    def to_dict(self) -> dict:
        return {
            'type': self.type,
            'ordinance': self.ordinance,
            'description': self.description,
            'correctiveAction': self.corrective_action,
            'noticeClause': self.notice_clause,
        }

    @classmethod
    def from_dict(cls, data: Any) -> "Violation":
        data = _as_dict(data or {}, "violation")
        return cls(
            type=_as_str(data.get('type')) or settings.VIOLATION_PLACEHOLDER,
            ordinance=_as_str(data.get('ordinance')),
            description=_as_str(data.get('description')),
            corrective_action=_as_str(data.get('correctiveAction')),
            notice_clause=_as_str(data.get('noticeClause')),
        )

    @property
    def is_selected(self) -> bool:
        return bool(self.type) and self.type != settings.VIOLATION_PLACEHOLDER


@dataclass
class Note:
    date: str
    text: str

    def to_dict(self) -> dict:
        return {'date': self.date, 'text': self.text}

    @classmethod
    def from_dict(cls, data: Any) -> "Note":
        data = _as_dict(data, "note")
        return cls(date=_as_str(data.get('date')), text=_as_str(data.get('text')))


@dataclass
class EvidencePhoto:
    """Photo evidence; url is the display URL (data URL or link)"""
    id: str
    url: str
    date: str = ""
    notes: str = ""

    def to_dict(self) -> dict:
        return {'id': self.id, 'url': self.url, 'date': self.date, 'notes': self.notes}

    @classmethod
    def from_dict(cls, data: Any) -> "EvidencePhoto":
        data = _as_dict(data, "photo")
        return cls(
            id=_as_str(data.get('id')) or generate_id(),
            url=_as_str(data.get('url')),
            date=_as_str(data.get('date')),
            notes=_as_str(data.get('notes')),
        )

    @classmethod
    def from_upload(cls, data: bytes, mime_type: str, date: str = "", notes: str = "") -> "EvidencePhoto":
        """Embed uploaded image bytes as a data URL"""
        encoded = base64.b64encode(data).decode('ascii')
        return cls(
            id=generate_id(),
            url=f"data:{mime_type or 'image/jpeg'};base64,{encoded}",
            date=date,
            notes=notes,
        )


@dataclass
class NoticeRecord:
    """A generated notice; the notice history is append-only"""
    type: str
    date: str
    title: str = ""
    doc_url: str = ""

    def to_dict(self) -> dict:
        return {'type': self.type, 'date': self.date, 'title': self.title, 'docUrl': self.doc_url}

    @classmethod
    def from_dict(cls, data: Any) -> "NoticeRecord":
        data = _as_dict(data, "notice")
        return cls(
            type=_as_str(data.get('type')) or settings.DOC_TYPE_NOTICE,
            date=_as_str(data.get('date')),
            title=_as_str(data.get('title')),
            doc_url=_as_str(data.get('docUrl')),
        )


@dataclass
class FollowUp:
    date: str
    notes: str = ""
    photos: List[EvidencePhoto] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {'date': self.date, 'notes': self.notes, 'photos': [p.to_dict() for p in self.photos]}

    @classmethod
    def from_dict(cls, data: Any) -> "FollowUp":
        data = _as_dict(data, "followUp")
        return cls(
            date=_as_str(data.get('date')),
            notes=_as_str(data.get('notes')),
            photos=[EvidencePhoto.from_dict(p) for p in _as_list(data.get('photos'), "followUp.photos")],
        )


@dataclass
class CostDetails:
    """Abatement billing: employees x hours x rate plus a fixed admin fee"""
    employees: int
    hours: float
    rate: float
    admin_fee: float = settings.ABATEMENT_ADMIN_FEE
    type: str = "mowing"

    @property
    def labor_cost(self) -> float:
        return round(self.employees * self.hours * self.rate, 2)

    @property
    def total(self) -> float:
        return round(self.labor_cost + self.admin_fee, 2)

    def to_dict(self) -> dict:
        return {
            'type': self.type,
            'hours': self.hours,
            'employees': self.employees,
            'rate': self.rate,
            'adminFee': self.admin_fee,
            'total': self.total,
        }

    @classmethod
    def from_dict(cls, data: Any) -> "CostDetails":
        data = _as_dict(data, "costDetails")
        # total is derived, never trusted from the document
        return cls(
            employees=int(_as_number(data.get('employees'), "costDetails.employees")),
            hours=_as_number(data.get('hours'), "costDetails.hours"),
            rate=_as_number(data.get('rate'), "costDetails.rate"),
            admin_fee=_as_number(data.get('adminFee'), "costDetails.adminFee"),
            type=_as_str(data.get('type')) or "mowing",
        )


@dataclass
class ParcelInfo:
    legal_description: str = ""
    tax_id: str = ""
    parcel_number: str = ""

    @property
    def is_complete(self) -> bool:
        return bool(self.legal_description and self.tax_id and self.parcel_number)

    def to_dict(self) -> dict:
        return {
            'legalDescription': self.legal_description,
            'taxId': self.tax_id,
            'parcelNumber': self.parcel_number,
        }

    @classmethod
    def from_dict(cls, data: Any) -> "ParcelInfo":
        data = _as_dict(data, "propertyInfo")
        return cls(
            legal_description=_as_str(data.get('legalDescription')),
            tax_id=_as_str(data.get('taxId')),
            parcel_number=_as_str(data.get('parcelNumber')),
        )


@dataclass
class Abatement:
    """City-performed remediation billed back to the owner"""
    work_date: str = ""
    cost: Optional[CostDetails] = None
    photos_before: List[EvidencePhoto] = field(default_factory=list)
    photos_after: List[EvidencePhoto] = field(default_factory=list)
    parcel: Optional[ParcelInfo] = None
    invoice_number: str = ""
    statement_of_cost_date: str = ""
    statement_of_cost_doc_url: str = ""
    notice_of_lien_doc_url: str = ""
    certificate_of_lien_doc_url: str = ""

    def to_dict(self) -> dict:
        data: Dict[str, Any] = {
            'workDate': self.work_date,
            'photos': {
                'before': [p.to_dict() for p in self.photos_before],
                'after': [p.to_dict() for p in self.photos_after],
            },
            'invoiceNumber': self.invoice_number,
            'statementOfCostDate': self.statement_of_cost_date,
            'statementOfCostDocUrl': self.statement_of_cost_doc_url,
            'noticeOfLienDocUrl': self.notice_of_lien_doc_url,
            'certificateOfLienDocUrl': self.certificate_of_lien_doc_url,
        }
        if self.cost is not None:
            data['costDetails'] = self.cost.to_dict()
        if self.parcel is not None:
            data['propertyInfo'] = self.parcel.to_dict()
        return data

    @classmethod
    def from_dict(cls, data: Any) -> "Abatement":
        data = _as_dict(data, "abatement")
        photos = _as_dict(data.get('photos') or {}, "abatement.photos")
        cost = data.get('costDetails')
        parcel = data.get('propertyInfo')
        return cls(
            work_date=_as_str(data.get('workDate')),
            cost=CostDetails.from_dict(cost) if cost else None,
            photos_before=[EvidencePhoto.from_dict(p) for p in _as_list(photos.get('before'), "photos.before")],
            photos_after=[EvidencePhoto.from_dict(p) for p in _as_list(photos.get('after'), "photos.after")],
            parcel=ParcelInfo.from_dict(parcel) if parcel else None,
            invoice_number=_as_str(data.get('invoiceNumber')),
            statement_of_cost_date=_as_str(data.get('statementOfCostDate')),
            statement_of_cost_doc_url=_as_str(data.get('statementOfCostDocUrl')),
            notice_of_lien_doc_url=_as_str(data.get('noticeOfLienDocUrl')),
            certificate_of_lien_doc_url=_as_str(data.get('certificateOfLienDocUrl')),
        )


@dataclass
class Case:
    """A single code-violation enforcement record"""
    id: str
    case_id: str
    status: str = settings.STATUS_ACTIVE
    date_created: str = ""
    compliance_deadline: str = ""
    address: Address = field(default_factory=Address)
    owner_info: OwnerInfo = field(default_factory=OwnerInfo)
    owner_info_status: str = settings.OWNER_KNOWN
    violation: Violation = field(default_factory=Violation)
    notes: List[Note] = field(default_factory=list)  # newest first
    photos: List[EvidencePhoto] = field(default_factory=list)
    notices: List[NoticeRecord] = field(default_factory=list)
    is_vacant: bool = False
    follow_ups: List[FollowUp] = field(default_factory=list)
    abatement: Optional[Abatement] = None
    date_closed: Optional[str] = None

    @property
    def is_closed(self) -> bool:
        return self.status == settings.STATUS_CLOSED

    @property
    def owner_unknown(self) -> bool:
        return self.owner_info_status == settings.OWNER_UNKNOWN

    def to_dict(self) -> dict:
        data: Dict[str, Any] = {
            'id': self.id,
            'caseId': self.case_id,
            'status': self.status,
            'dateCreated': self.date_created,
            'complianceDeadline': self.compliance_deadline,
            'address': self.address.to_dict(),
            'ownerInfo': self.owner_info.to_dict(),
            'ownerInfoStatus': self.owner_info_status,
            'violation': self.violation.to_dict(),
            'evidence': {
                'notes': [n.to_dict() for n in self.notes],
                'photos': [p.to_dict() for p in self.photos],
            },
            'notices': [n.to_dict() for n in self.notices],
            'isVacant': self.is_vacant,
            'followUps': [f.to_dict() for f in self.follow_ups],
        }
        if self.abatement is not None:
            data['abatement'] = self.abatement.to_dict()
        if self.date_closed:
            data['dateClosed'] = self.date_closed
        return data

    @classmethod
    def from_dict(cls, data: Any) -> "Case":
        data = _as_dict(data, "case")
        if not data.get('id'):
            raise ParseError("case is missing its id")

        status = _as_str(data.get('status')) or settings.STATUS_ACTIVE
        if status not in settings.CASE_STATUSES:
            raise ParseError(f"case {data['id']} has unknown status {status!r}")

        owner_status = _as_str(data.get('ownerInfoStatus')) or settings.OWNER_KNOWN
        if owner_status not in (settings.OWNER_KNOWN, settings.OWNER_UNKNOWN):
            raise ParseError(f"case {data['id']} has unknown ownerInfoStatus {owner_status!r}")

        evidence = _as_dict(data.get('evidence') or {}, "evidence")
        abatement = data.get('abatement')

        return cls(
            id=_as_str(data['id']),
            case_id=_as_str(data.get('caseId')),
            status=status,
            date_created=_as_str(data.get('dateCreated')),
            compliance_deadline=_as_str(data.get('complianceDeadline')),
            address=Address.from_dict(data.get('address')),
            owner_info=OwnerInfo.from_dict(data.get('ownerInfo')),
            owner_info_status=owner_status,
            violation=Violation.from_dict(data.get('violation')),
            notes=[Note.from_dict(n) for n in _as_list(evidence.get('notes'), "evidence.notes")],
            photos=[EvidencePhoto.from_dict(p) for p in _as_list(evidence.get('photos'), "evidence.photos")],
            notices=[NoticeRecord.from_dict(n) for n in _as_list(data.get('notices'), "notices")],
            is_vacant=_as_bool(data.get('isVacant'), "case.isVacant"),
            follow_ups=[FollowUp.from_dict(f) for f in _as_list(data.get('followUps'), "followUps")],
            abatement=Abatement.from_dict(abatement) if abatement is not None else None,
            date_closed=data.get('dateClosed') or None,
        )


@dataclass
class Property:
    """Address-keyed directory entry used to pre-fill owner info for new cases"""
    id: str
    street_address: str
    owner_info: OwnerInfo = field(default_factory=OwnerInfo)
    resident_info: ResidentInfo = field(default_factory=ResidentInfo)
    is_vacant: bool = False
    dilapidation_notes: str = ""

    def to_dict(self) -> dict:
        return {
            'id': self.id,
            'streetAddress': self.street_address,
            'ownerInfo': self.owner_info.to_dict(),
            'residentInfo': self.resident_info.to_dict(),
            'isVacant': self.is_vacant,
            'dilapidationNotes': self.dilapidation_notes,
        }

    @classmethod
    def from_dict(cls, data: Any) -> "Property":
        data = _as_dict(data, "property")
        if not data.get('id'):
            raise ParseError("property is missing its id")
        return cls(
            id=_as_str(data['id']),
            street_address=_as_str(data.get('streetAddress')),
            owner_info=OwnerInfo.from_dict(data.get('ownerInfo')),
            resident_info=ResidentInfo.from_dict(data.get('residentInfo')),
            is_vacant=_as_bool(data.get('isVacant'), "property.isVacant"),
            dilapidation_notes=_as_str(data.get('dilapidationNotes')),
        )


@dataclass
class CaseDocument:
    """The single persisted document: {cases, properties, lastUpdated}"""
    cases: List[Case] = field(default_factory=list)
    properties: List[Property] = field(default_factory=list)
    last_updated: str = ""

    def to_dict(self) -> dict:
        return {
            'cases': [c.to_dict() for c in self.cases],
            'properties': [p.to_dict() for p in self.properties],
            'lastUpdated': self.last_updated,
        }

    @classmethod
    def from_dict(cls, data: Any) -> "CaseDocument":
        data = _as_dict(data, "document")
        return cls(
            cases=[Case.from_dict(c) for c in _as_list(data.get('cases'), "cases")],
            properties=[Property.from_dict(p) for p in _as_list(data.get('properties'), "properties")],
            last_updated=_as_str(data.get('lastUpdated')),
        )


@dataclass
class CaseDraft:
    """Form input for a new case, before validation"""
    case_id: str = ""
    address: Address = field(default_factory=Address)
    owner_info: OwnerInfo = field(default_factory=OwnerInfo)
    owner_info_status: str = settings.OWNER_KNOWN
    violation: Violation = field(default_factory=Violation)
    is_vacant: bool = False
    photos: List[EvidencePhoto] = field(default_factory=list)


def abatement_stage(case: Case) -> str:
    """
    Classify a case's abatement record.
    Returns: "none" (no record), "pending_cost" (record without cost data),
    or "costed" (complete cost data)
    """
    if case.abatement is None:
        return ABATEMENT_NONE
    if case.abatement.cost is None:
        return ABATEMENT_PENDING_COST
    return ABATEMENT_COSTED
