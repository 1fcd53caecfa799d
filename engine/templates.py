"""
Notice/document template renderer

Templates are HTML fragments containing {{Placeholder}} tokens. Rendering
substitutes every known token in a single pass, leaves unknown tokens
untouched, and wraps the result in a page layout chosen by document type.
"""
import html
import re
from dataclasses import dataclass
from datetime import date
from pathlib import Path
from typing import Dict, List, Optional, Union

import yaml

from config import settings
from models.case import Case, abatement_stage, ABATEMENT_COSTED
from utils.errors import ParseError
from utils.helpers import format_currency, format_long_date

TEMPLATES_PATH = Path(__file__).parent.parent / "config" / "templates.yaml"

TOKEN_PATTERN = re.compile(r'\{\{(\w+)\}\}')

VARIABLES_LIST = [
    {'category': 'Basic Case', 'items': [
        ('Date Today', '{{Date}}'),
        ('Case Number', '{{CaseNumber}}'),
        ('Status', '{{Status}}'),
    ]},
    {'category': 'Owner', 'items': [
        ('Name', '{{OwnerName}}'),
        ('Mailing Address', '{{MailingAddress}}'),
        ('Phone', '{{OwnerPhone}}'),
    ]},
    {'category': 'Property', 'items': [
        ('Street Address', '{{PropertyAddress}}'),
        ('Legal Description', '{{LegalDescription}}'),
        ('Tax ID', '{{TaxID}}'),
        ('Parcel #', '{{ParcelNumber}}'),
    ]},
    {'category': 'Violations', 'items': [
        ('Full Violation Block', '{{Violations}}'),
        ('Violation Type', '{{ViolationType}}'),
        ('Ordinance', '{{Ordinance}}'),
        ('Description', '{{ViolationDescription}}'),
        ('Corrective Action', '{{CorrectiveAction}}'),
        ('Compliance Deadline', '{{Deadline}}'),
    ]},
    {'category': 'Abatement / Costs', 'items': [
        ('Cost Breakdown', '{{CostBreakdown}}'),
        ('Total Cost', '{{TotalCost}}'),
        ('Invoice #', '{{InvoiceNumber}}'),
        ('Work Date', '{{WorkDate}}'),
    ]},
    {'category': 'Office', 'items': [
        ('City Name', '{{CityName}}'),
        ('Department', '{{DepartmentName}}'),
        ('Officer Name', '{{OfficerName}}'),
        ('Contact Phone', '{{ContactPhone}}'),
        ('Contact Email', '{{ContactEmail}}'),
    ]},
]


@dataclass
class DocTemplate:
    """A document template; doc_type selects the page layout"""
    id: str
    name: str
    content: str
    doc_type: str = settings.DOC_TYPE_NOTICE


@dataclass
class GlobalSettings:
    """Organization-wide values available to every template"""
    city_name: str = settings.CITY_NAME
    department_name: str = settings.DEPARTMENT_NAME
    officer_name: str = settings.OFFICER_NAME
    contact_phone: str = settings.CONTACT_PHONE
    contact_email: str = settings.CONTACT_EMAIL


def load_global_settings() -> GlobalSettings:
    """Organization settings from the environment-backed configuration"""
    return GlobalSettings()


def load_document_templates(path: Optional[Union[str, Path]] = None) -> List[DocTemplate]:
    """Load document templates from YAML"""
    templates_path = Path(path) if path else TEMPLATES_PATH
    try:
        with open(templates_path, 'r') as f:
            entries = (yaml.safe_load(f) or {}).get('templates') or []
    except FileNotFoundError:
        return []

    templates = []
    for e in entries:
        doc_type = str(e.get('doc_type', settings.DOC_TYPE_NOTICE))
        if doc_type not in settings.DOC_TYPES:
            raise ParseError(f"Template {e.get('id')!r} has unknown doc_type {doc_type!r}")
        templates.append(DocTemplate(
            id=str(e['id']),
            name=str(e.get('name', e['id'])),
            content=str(e.get('content', '')),
            doc_type=doc_type,
        ))
    return templates


def _text(value: str) -> str:
    return html.escape(value or "", quote=False)


def _multiline(value: str) -> str:
    """Escape and convert newlines to line breaks"""
    lines = (value or "").replace("\r\n", "\n").split("\n")
    return "<br>".join(_text(line) for line in lines)


def _violation_block(case: Case) -> str:
    v = case.violation
    return (
        '<div class="violation">'
        f'<p><strong>Violation:</strong> {_text(v.type)}</p>'
        f'<p><strong>Ordinance:</strong> {_text(v.ordinance)}</p>'
        f'<p><strong>Description:</strong> {_text(v.description)}</p>'
        f'<p><strong>Required Correction:</strong> {_text(v.corrective_action)}</p>'
        '</div>'
    )


def _cost_fields(case: Case) -> Dict[str, str]:
    """Cost tokens; empty unless the abatement has complete cost data"""
    stage = abatement_stage(case)
    abatement = case.abatement
    fields = {
        '{{TotalCost}}': '',
        '{{CostBreakdown}}': '',
        '{{InvoiceNumber}}': _text(abatement.invoice_number) if abatement else '',
        '{{WorkDate}}': _text(abatement.work_date) if abatement else '',
    }

    if stage == ABATEMENT_COSTED:
        cost = abatement.cost
        fields['{{TotalCost}}'] = format_currency(cost.total)
        fields['{{CostBreakdown}}'] = (
            '<table class="cost-breakdown">'
            f'<tr><td>Labor ({cost.employees} employee(s) &times; {cost.hours:g} hour(s) &times; '
            f'{format_currency(cost.rate)}/hr)</td><td class="amount">{format_currency(cost.labor_cost)}</td></tr>'
            f'<tr><td>Administrative Fee</td><td class="amount">{format_currency(cost.admin_fee)}</td></tr>'
            f'<tr class="total"><td>Total</td><td class="amount">{format_currency(cost.total)}</td></tr>'
            '</table>'
        )
    return fields


def build_variables(
    case: Case,
    global_settings: Optional[GlobalSettings] = None,
    today: Optional[date] = None,
) -> Dict[str, str]:
    """
    Map every recognised placeholder token to its substitution value
    """
    org = global_settings or GlobalSettings()
    today = today or date.today()
    parcel = case.abatement.parcel if case.abatement and case.abatement.parcel else None

    variables = {
        '{{Date}}': format_long_date(today),
        '{{CaseNumber}}': _text(case.case_id),
        '{{Status}}': _text(case.status.replace('_', ' ')),
        '{{OwnerName}}': _text(case.owner_info.name or "Current Owner"),
        '{{MailingAddress}}': _multiline(case.owner_info.mailing_address),
        '{{OwnerPhone}}': _text(case.owner_info.phone),
        '{{PropertyAddress}}': _text(case.address.full),
        '{{LegalDescription}}': _text(parcel.legal_description) if parcel else '',
        '{{TaxID}}': _text(parcel.tax_id) if parcel else '',
        '{{ParcelNumber}}': _text(parcel.parcel_number) if parcel else '',
        '{{Violations}}': _violation_block(case),
        '{{ViolationType}}': _text(case.violation.type),
        '{{Ordinance}}': _text(case.violation.ordinance),
        '{{ViolationDescription}}': _text(case.violation.description),
        '{{CorrectiveAction}}': _text(case.violation.corrective_action),
        '{{Deadline}}': _text(case.compliance_deadline),
        '{{CityName}}': _text(org.city_name),
        '{{DepartmentName}}': _text(org.department_name),
        '{{OfficerName}}': _text(org.officer_name),
        '{{ContactPhone}}': _text(org.contact_phone),
        '{{ContactEmail}}': _text(org.contact_email),
    }
    variables.update(_cost_fields(case))
    return variables


def substitute(content: str, variables: Dict[str, str]) -> str:
    """Replace known tokens in one pass; unknown tokens pass through unchanged"""
    return TOKEN_PATTERN.sub(lambda m: variables.get(m.group(0), m.group(0)), content)


def _layout(body: str, title: str, doc_type: str) -> str:
    if doc_type == settings.DOC_TYPE_ENVELOPE:
        width, height = settings.ENVELOPE_PAGE_SIZE
        margin = "0.4in"
        page_class = "envelope"
        extra_css = (
            ".return-address { font-size: 10pt; }\n"
            ".recipient { margin: 0.6in 0 0 3.5in; font-size: 12pt; }\n"
        )
    else:
        width, height = settings.LETTER_PAGE_SIZE
        margin = "1in"
        page_class = "letter"
        extra_css = (
            "h1 { text-align: center; font-size: 16pt; border-bottom: 2px solid #333; }\n"
            ".right { text-align: right; }\n"
            ".violation { border-left: 4px solid #cc0000; padding: 0 12px; margin: 16px 0; }\n"
            ".cost-breakdown { border-collapse: collapse; width: 100%; }\n"
            ".cost-breakdown td { padding: 4px; border-bottom: 1px solid #ccc; }\n"
            ".cost-breakdown .amount { text-align: right; }\n"
            ".cost-breakdown .total td { font-weight: bold; }\n"
        )

    return (
        "<!DOCTYPE html>\n"
        "<html>\n<head>\n<meta charset=\"utf-8\">\n"
        f"<title>{_text(title)}</title>\n"
        "<style>\n"
        f"@page {{ size: {width} {height}; margin: {margin}; }}\n"
        "body { font-family: 'Times New Roman', serif; font-size: 12pt; margin: 0; }\n"
        f".page {{ width: {width}; min-height: {height}; box-sizing: border-box; padding: {margin}; }}\n"
        f"{extra_css}"
        "</style>\n</head>\n<body>\n"
        f"<div class=\"page {page_class}\">\n{body}\n</div>\n"
        "</body>\n</html>\n"
    )


def render_document(
    template: DocTemplate,
    case: Case,
    global_settings: Optional[GlobalSettings] = None,
    today: Optional[date] = None,
) -> str:
    """
    Render a template against a case.
    Returns the full HTML document; printing or saving it is up to the caller.
    """
    variables = build_variables(case, global_settings, today)
    body = substitute(template.content, variables)
    return _layout(body, f"{template.name} - {case.case_id}", template.doc_type)
