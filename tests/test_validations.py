"""
Tests for utils.validations and utils.helpers.
"""
from datetime import date, datetime

import pytest

from config import settings
from models.case import Abatement, CostDetails, OwnerInfo, ParcelInfo, Violation
from utils.errors import ValidationError
from utils.helpers import format_currency, format_long_date, normalize_address, parse_date
from utils.validations import (
    missing_abatement_requirements,
    missing_case_fields,
    sanitize_filename,
    validate_case_draft,
    validate_status,
)


# ---------------------------------------------------------------------------
# Case draft validation
# ---------------------------------------------------------------------------

class TestMissingCaseFields:
    def test_complete_draft(self, make_draft):
        assert missing_case_fields(make_draft()) == []

    def test_everything_missing(self, make_draft):
        draft = make_draft(street=" ", case_id="", owner_info=OwnerInfo())
        draft.violation = Violation()
        assert missing_case_fields(draft) == ["Case Number", "Address", "Violation", "Owner Info"]

    def test_unknown_owner_needs_no_owner_info(self, make_draft):
        draft = make_draft(owner_info=OwnerInfo(), owner_info_status=settings.OWNER_UNKNOWN)
        assert missing_case_fields(draft) == []

    def test_validate_raises_with_message(self, make_draft):
        draft = make_draft(case_id="")
        with pytest.raises(ValidationError) as exc:
            validate_case_draft(draft)
        assert "Please fill in Case Number" in str(exc.value)
        assert exc.value.missing_fields == ["Case Number"]


# ---------------------------------------------------------------------------
# Abatement document prerequisites
# ---------------------------------------------------------------------------

class TestMissingAbatementRequirements:
    COMPLETE_PARCEL = ParcelInfo(legal_description="Lot 4", tax_id="T-1", parcel_number="P-1")

    def _costed(self, make_case, **kwargs):
        cost = CostDetails(employees=1, hours=2, rate=25.0)
        return make_case(abatement=Abatement(cost=cost, **kwargs))

    def test_no_abatement_record(self, make_case):
        case = make_case()
        assert missing_abatement_requirements(case, settings.DOC_TYPE_STATEMENT) == ["Cost Details", "Work Date"]
        assert missing_abatement_requirements(case, settings.DOC_TYPE_LIEN) == ["Cost Details", "Parcel Info"]
        assert missing_abatement_requirements(case, settings.DOC_TYPE_CERTIFICATE) == [
            "Statement of Cost", "Parcel Info",
        ]

    def test_statement_ready(self, make_case):
        case = self._costed(make_case, work_date="October 20, 2026")
        assert missing_abatement_requirements(case, settings.DOC_TYPE_STATEMENT) == []

    def test_lien_needs_complete_parcel(self, make_case):
        partial = self._costed(make_case, parcel=ParcelInfo(legal_description="Lot 4"))
        assert missing_abatement_requirements(partial, settings.DOC_TYPE_LIEN) == ["Parcel Info"]
        ready = self._costed(make_case, parcel=self.COMPLETE_PARCEL)
        assert missing_abatement_requirements(ready, settings.DOC_TYPE_LIEN) == []

    def test_certificate_needs_issued_statement(self, make_case):
        case = self._costed(make_case, parcel=self.COMPLETE_PARCEL)
        assert missing_abatement_requirements(case, settings.DOC_TYPE_CERTIFICATE) == ["Statement of Cost"]
        case.abatement.statement_of_cost_doc_url = "soc.html"
        assert missing_abatement_requirements(case, settings.DOC_TYPE_CERTIFICATE) == []

    def test_notices_have_no_prerequisites(self, make_case):
        assert missing_abatement_requirements(make_case(), settings.DOC_TYPE_NOTICE) == []


def test_validate_status():
    assert validate_status(settings.STATUS_CONTINUAL_ABATEMENT)
    assert not validate_status("OPEN")


def test_sanitize_filename():
    assert sanitize_filename('Notice: 2026/001?.html') == "Notice_ 2026_001_.html"
    assert sanitize_filename(" .. ") == "unnamed"


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

class TestParseDate:
    @pytest.mark.parametrize("text", [
        "October 19, 2026", "Oct 19, 2026", "2026-10-19", "10/19/2026", "2026/10/19",
        "2026-10-19T08:30:00", "2026-10-19T08:30:00Z",
    ])
    def test_formats(self, text):
        assert parse_date(text) == date(2026, 10, 19)

    def test_passthrough(self):
        assert parse_date(date(2026, 1, 2)) == date(2026, 1, 2)
        assert parse_date(datetime(2026, 1, 2, 3, 4)) == date(2026, 1, 2)

    def test_unparsable(self):
        assert parse_date("soon") is None
        assert parse_date("") is None
        assert parse_date(None) is None


def test_format_long_date_has_no_padding():
    assert format_long_date(date(2026, 10, 9)) == "October 9, 2026"


def test_normalize_address():
    assert normalize_address("  123   Main  ST ") == "123 main st"
    assert normalize_address("") == ""


def test_format_currency():
    assert format_currency(1234.5) == "$1,234.50"
    assert format_currency(-5) == "-$5.00"
