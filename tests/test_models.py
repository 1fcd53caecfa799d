"""
Tests for models.case serialization and the violation catalog.
"""
import pytest

from config import settings
from config.catalog import ViolationCatalog, load_violation_catalog
from models.case import (
    ABATEMENT_COSTED,
    ABATEMENT_NONE,
    ABATEMENT_PENDING_COST,
    Abatement,
    Address,
    Case,
    CostDetails,
    EvidencePhoto,
    ParcelInfo,
    Property,
    Violation,
    abatement_stage,
)
from utils.errors import ParseError


# ---------------------------------------------------------------------------
# Case
# ---------------------------------------------------------------------------

class TestCaseSerialization:
    def test_optional_fields_omitted(self, make_case):
        data = make_case().to_dict()
        assert 'abatement' not in data
        assert 'dateClosed' not in data
        assert data['evidence'] == {'notes': [], 'photos': []}

    def test_abatement_round_trip(self, make_case):
        abatement = Abatement(
            work_date="October 20, 2026",
            cost=CostDetails(employees=1, hours=2, rate=25.0),
            parcel=ParcelInfo(legal_description="Lot 1", tax_id="T", parcel_number="P"),
        )
        case = make_case(abatement=abatement)
        data = case.to_dict()
        assert data['abatement']['costDetails']['total'] == 100.0
        assert data['abatement']['propertyInfo']['taxId'] == "T"
        assert Case.from_dict(data) == case

    def test_missing_id_rejected(self):
        with pytest.raises(ParseError):
            Case.from_dict({'caseId': 'x'})

    def test_unknown_owner_status_rejected(self):
        with pytest.raises(ParseError):
            Case.from_dict({'id': 'x', 'ownerInfoStatus': 'MAYBE'})

    def test_non_object_rejected(self):
        with pytest.raises(ParseError):
            Case.from_dict(["not", "a", "case"])

    @pytest.mark.parametrize("value", ["false", "true", 0, 1])
    def test_vacancy_must_be_boolean(self, value):
        with pytest.raises(ParseError):
            Case.from_dict({'id': 'x', 'isVacant': value})
        with pytest.raises(ParseError):
            Property.from_dict({'id': 'p', 'streetAddress': '1 Main', 'isVacant': value})

    def test_vacancy_defaults_to_false(self):
        assert Case.from_dict({'id': 'x'}).is_vacant is False
        assert Case.from_dict({'id': 'x', 'isVacant': True}).is_vacant is True

    def test_empty_abatement_round_trip(self):
        case = Case.from_dict({'id': 'x', 'abatement': {}})
        assert case.abatement == Abatement()
        assert abatement_stage(case) == ABATEMENT_PENDING_COST
        assert Case.from_dict(case.to_dict()) == case


class TestEvidencePhoto:
    def test_from_upload_embeds_data_url(self):
        photo = EvidencePhoto.from_upload(b"GIF89a", "image/gif", date="October 19, 2026")
        assert photo.url == "data:image/gif;base64,R0lGODlh"
        assert photo.date == "October 19, 2026"
        assert photo.id

    def test_missing_mime_type(self):
        assert EvidencePhoto.from_upload(b"", "").url == "data:image/jpeg;base64,"


class TestCostDetails:
    def test_total(self):
        cost = CostDetails(employees=3, hours=1.25, rate=25.0, admin_fee=50.0)
        assert cost.labor_cost == 93.75
        assert cost.total == 143.75

    def test_stored_total_not_trusted(self):
        cost = CostDetails.from_dict({'employees': 1, 'hours': 1, 'rate': 20, 'adminFee': 5, 'total': 9999})
        assert cost.total == 25.0

    def test_non_numeric_rejected(self):
        with pytest.raises(ParseError):
            CostDetails.from_dict({'employees': 'two', 'hours': 1, 'rate': 20})


class TestAbatementStage:
    def test_stages(self, make_case):
        case = make_case()
        assert abatement_stage(case) == ABATEMENT_NONE
        case.abatement = Abatement()
        assert abatement_stage(case) == ABATEMENT_PENDING_COST
        case.abatement.cost = CostDetails(employees=1, hours=1, rate=25.0)
        assert abatement_stage(case) == ABATEMENT_COSTED


class TestAddress:
    def test_full(self):
        address = Address(street="123 Main St", city="Commerce", province="OK", postal_code="74339")
        assert address.full == "123 Main St, Commerce, OK 74339"

    def test_full_skips_blanks(self):
        assert Address(street="123 Main St").full == "123 Main St"


# ---------------------------------------------------------------------------
# ViolationCatalog
# ---------------------------------------------------------------------------

class TestViolationCatalog:
    def test_default_catalog(self):
        catalog = load_violation_catalog()
        assert "Tall Grass / Weeds" in catalog.types
        assert "Dilapidated Structure" in catalog.types
        assert catalog.get("Tall Grass / Weeds").ordinance

    def test_missing_file_falls_back(self, tmp_path):
        catalog = load_violation_catalog(tmp_path / "missing.yaml")
        assert catalog.types == ["Tall Grass / Weeds"]

    def test_resolve_copies_entry(self):
        catalog = load_violation_catalog()
        resolved = catalog.resolve(Violation(type="Tall Grass / Weeds"))
        assert resolved == catalog.get("Tall Grass / Weeds")
        assert resolved is not catalog.get("Tall Grass / Weeds")

    def test_resolve_manual(self):
        catalog = ViolationCatalog([])
        manual = Violation(type=settings.VIOLATION_MANUAL, description="Fence down")
        assert catalog.resolve(manual).description == "Fence down"

    def test_resolve_unknown_type(self):
        catalog = ViolationCatalog([])
        assert not catalog.resolve(Violation(type="Nonexistent")).is_selected
