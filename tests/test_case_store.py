"""
Tests for models.case_store.CaseStore.
"""
import json
from dataclasses import replace


import pytest


from config import settings
from config.catalog import load_violation_catalog
from models.case import (
    ABATEMENT_COSTED,
    ABATEMENT_PENDING_COST,
    CaseDocument,
    EvidencePhoto,
    OwnerInfo,
    Property,
    Violation,
    abatement_stage,
)
from models.case_store import CaseStore
from storage.json_store import JsonFileStore
from utils.errors import ExternalServiceError, NotFoundError, ValidationError


class FailingStore:
    """Store whose saves always fail."""

    def __init__(self):
        self.save_calls = 0

    def load(self):
        return CaseDocument()

    def save(self, document):
        self.save_calls += 1
        raise ExternalServiceError("Auto-save failed: disk full")


def _reload(data_path):
    store = CaseStore(store=JsonFileStore(data_path))
    store.load()
    return store


# ---------------------------------------------------------------------------
# create_case
# ---------------------------------------------------------------------------

class TestCreateCase:
    def test_new_case_defaults(self, case_store, make_draft, today):
        case = case_store.create_case(make_draft(), today)
        assert case.status == settings.STATUS_ACTIVE
        assert case.date_created == "October 19, 2026"
        assert case.compliance_deadline == "October 29, 2026"
        assert [n.text for n in case.notes] == ["Case created."]
        assert case.notices == []
        assert case.id

    def test_violation_resolved_from_catalog(self, case_store, make_draft, today):
        case = case_store.create_case(make_draft(), today)
        assert case.violation.type == "Tall Grass / Weeds"
        assert case.violation.ordinance
        assert case.violation.corrective_action

    def test_manual_violation_kept(self, case_store, make_draft, today):
        draft = make_draft(violation_type=settings.VIOLATION_MANUAL)
        draft.violation.description = "Broken fence along alley"
        case = case_store.create_case(draft, today)
        assert case.violation.type == settings.VIOLATION_MANUAL
        assert case.violation.description == "Broken fence along alley"

    def test_newest_case_first(self, case_store, make_draft, today):
        first = case_store.create_case(make_draft(case_id="A"), today)
        second = case_store.create_case(make_draft(case_id="B", street="5 Vine St"), today)
        assert case_store.cases == [second, first]

    def test_persisted_to_disk(self, case_store, make_draft, data_path, today):
        case = case_store.create_case(make_draft(), today)
        reloaded = _reload(data_path)
        assert [c.id for c in reloaded.cases] == [case.id]
        raw = json.loads(data_path.read_text())
        assert raw['cases'][0]['caseId'] == "2026-100"

    def test_missing_fields_rejected(self, case_store, make_draft, today):
        draft = make_draft(case_id="", violation_type=settings.VIOLATION_PLACEHOLDER)
        with pytest.raises(ValidationError) as exc:
            case_store.create_case(draft, today)
        assert exc.value.missing_fields == ["Case Number", "Violation"]
        assert case_store.cases == []

    def test_known_owner_requires_name_and_mailing_address(self, case_store, make_draft, today):
        draft = make_draft(owner_info=OwnerInfo(name="Jane Smith"))
        with pytest.raises(ValidationError) as exc:
            case_store.create_case(draft, today)
        assert exc.value.missing_fields == ["Owner Info"]

    def test_unknown_owner_allowed(self, case_store, make_draft, today):
        draft = make_draft(owner_info=OwnerInfo(), owner_info_status=settings.OWNER_UNKNOWN)
        case = case_store.create_case(draft, today)
        assert case.owner_unknown

    def test_audit_entry_written(self, case_store, make_draft, audit_log, today):
        case_store.create_case(make_draft(), today)
        logs = audit_log.get_recent_logs()
        assert logs[-1]['action'] == 'case_created'
        assert logs[-1]['user'] == "Tester"


# ---------------------------------------------------------------------------
# Lifecycle
# ---------------------------------------------------------------------------

class TestLifecycle:
    def test_get_case_not_found(self, case_store):
        with pytest.raises(NotFoundError):
            case_store.get_case("missing")

    def test_close_stamps_date(self, case_store, make_draft, today):
        case = case_store.create_case(make_draft(), today)
        case_store.set_status(case.id, settings.STATUS_CLOSED)
        assert case.date_closed

    def test_reopen_clears_date(self, case_store, make_draft, today):
        case = case_store.create_case(make_draft(), today)
        case_store.set_status(case.id, settings.STATUS_CLOSED)
        case_store.set_status(case.id, settings.STATUS_ACTIVE)
        assert case.date_closed is None

    def test_unknown_status_rejected(self, case_store, make_draft, today):
        case = case_store.create_case(make_draft(), today)
        with pytest.raises(ValidationError):
            case_store.set_status(case.id, "ARCHIVED")
        assert case.status == settings.STATUS_ACTIVE

    def test_status_change_audited(self, case_store, make_draft, audit_log, today):
        case = case_store.create_case(make_draft(), today)
        case_store.set_status(case.id, settings.STATUS_DUE)
        entry = audit_log.get_recent_logs()[-1]
        assert entry['action'] == 'status_change'
        assert entry['details']['new_status'] == settings.STATUS_DUE

    def test_notes_newest_first(self, case_store, make_draft, today):
        case = case_store.create_case(make_draft(), today)
        case_store.add_note(case.id, "Spoke with owner", today)
        assert case.notes[0].text == "Spoke with owner"
        assert case.notes[-1].text == "Case created."

    def test_empty_note_rejected(self, case_store, make_draft, today):
        case = case_store.create_case(make_draft(), today)
        with pytest.raises(ValidationError):
            case_store.add_note(case.id, "   ")

    def test_record_notice_appends(self, case_store, make_draft, today):
        case = case_store.create_case(make_draft(), today)
        case_store.record_notice(case.id, "initial-notice", "Initial Notice - 2026-100", today=today)
        case_store.record_notice(case.id, "final-notice", "Final Notice - 2026-100", today=today)
        assert [n.type for n in case.notices] == ["initial-notice", "final-notice"]
        assert case.notices[0].date == "October 19, 2026"

    def test_photos_and_follow_ups(self, case_store, make_draft, today):
        case = case_store.create_case(make_draft(), today)
        case_store.add_photos(case.id, [EvidencePhoto(id="p1", url="https://example.org/p1.jpg")])
        case_store.add_follow_up(case.id, "Grass still tall", today=today)
        assert [p.id for p in case.photos] == ["p1"]
        assert case.follow_ups[0].notes == "Grass still tall"

    def test_forward_for_abatement(self, case_store, make_draft, today):
        case = case_store.create_case(make_draft(), today)
        case_store.forward_for_abatement(case.id, today)
        assert case.status == settings.STATUS_PENDING_ABATEMENT
        assert case.notes[0].text == "Forwarded for abatement."
        assert abatement_stage(case) == ABATEMENT_PENDING_COST

    def test_update_case_replaces(self, case_store, make_draft, today):
        case = case_store.create_case(make_draft(), today)
        case.compliance_deadline = "November 30, 2026"
        case_store.update_case(case)
        assert case_store.get_case(case.id).compliance_deadline == "November 30, 2026"

    def test_deadline_edit_on_copy_is_persisted(self, case_store, make_draft, data_path, today):
        case = case_store.create_case(make_draft(), today)
        case_store.update_case(replace(case, compliance_deadline="December 15, 2026"))
        assert case_store.get_case(case.id).compliance_deadline == "December 15, 2026"
        assert _reload(data_path).get_case(case.id).compliance_deadline == "December 15, 2026"

    def test_uploaded_photos_persisted(self, case_store, make_draft, data_path, today):
        case = case_store.create_case(make_draft(), today)
        photo = EvidencePhoto.from_upload(b"\x89PNG", "image/png", date="October 19, 2026")
        case_store.add_follow_up(case.id, "Vehicle removed", [photo], today=today)
        reloaded = _reload(data_path).get_case(case.id)
        assert reloaded.follow_ups[0].photos[0].url == "data:image/png;base64,iVBORw=="

    def test_delete_requires_confirmation(self, case_store, make_draft, today):
        case = case_store.create_case(make_draft(), today)
        with pytest.raises(ValidationError):
            case_store.delete_case(case.id)
        case_store.delete_case(case.id, confirmed=True)
        assert case_store.cases == []

    def test_delete_missing_case(self, case_store):
        with pytest.raises(NotFoundError):
            case_store.delete_case("missing", confirmed=True)


# ---------------------------------------------------------------------------
# Abatement
# ---------------------------------------------------------------------------

class TestAbatement:
    def test_set_cost(self, case_store, make_draft, today):
        case = case_store.create_case(make_draft(), today)
        cost = case_store.set_abatement_cost(case.id, employees=2, hours=3, rate=25.0, admin_fee=50.0,
                                             work_date="October 20, 2026", invoice_number="INV-1")
        assert cost.total == 200.0
        assert abatement_stage(case) == ABATEMENT_COSTED
        assert case.abatement.work_date == "October 20, 2026"

    def test_negative_cost_rejected(self, case_store, make_draft, today):
        case = case_store.create_case(make_draft(), today)
        with pytest.raises(ValidationError):
            case_store.set_abatement_cost(case.id, employees=1, hours=-1)

    def test_parcel_info(self, case_store, make_draft, today):
        case = case_store.create_case(make_draft(), today)
        parcel = case_store.set_parcel_info(case.id, "Lot 4", "T-1", "P-1")
        assert parcel.is_complete
        assert case.abatement.parcel is parcel

    def test_abatement_photos(self, case_store, make_draft, today):
        case = case_store.create_case(make_draft(), today)
        case_store.add_abatement_photos(case.id, "after", [EvidencePhoto(id="a1", url="x")])
        assert [p.id for p in case.abatement.photos_after] == ["a1"]
        with pytest.raises(ValidationError):
            case_store.add_abatement_photos(case.id, "during", [])


# ---------------------------------------------------------------------------
# Abatement documents
# ---------------------------------------------------------------------------

class TestAbatementDocuments:
    @pytest.fixture
    def abated(self, case_store, make_draft, today):
        case = case_store.create_case(make_draft(), today)
        case_store.forward_for_abatement(case.id, today)
        return case

    def _cost(self, case_store, case):
        case_store.set_abatement_cost(case.id, employees=2, hours=1, work_date="October 20, 2026",
                                      invoice_number="INV-9")

    def test_statement_requires_cost(self, case_store, abated, today):
        with pytest.raises(ValidationError) as exc:
            case_store.record_abatement_document(abated.id, settings.DOC_TYPE_STATEMENT, "soc.html", today=today)
        assert "Cost Details" in exc.value.missing_fields
        assert abated.abatement.statement_of_cost_doc_url == ""
        assert abated.notices == []

    def test_statement_stamps_date_and_reference(self, case_store, abated, data_path, today):
        self._cost(case_store, abated)
        case_store.record_abatement_document(abated.id, settings.DOC_TYPE_STATEMENT, "soc.html",
                                             "Statement of Cost - 2026-100", today)
        assert abated.abatement.statement_of_cost_date == "October 19, 2026"
        assert abated.abatement.statement_of_cost_doc_url == "soc.html"
        assert abated.notices[-1].type == settings.DOC_TYPE_STATEMENT

        stored = _reload(data_path).get_case(abated.id).abatement
        assert stored.statement_of_cost_doc_url == "soc.html"

    def test_lien_requires_cost_and_parcel(self, case_store, abated, today):
        self._cost(case_store, abated)
        case_store.set_parcel_info(abated.id, "Lot 4", "T-1", "")
        with pytest.raises(ValidationError) as exc:
            case_store.record_abatement_document(abated.id, settings.DOC_TYPE_LIEN, "lien.html", today=today)
        assert exc.value.missing_fields == ["Parcel Info"]

        case_store.set_parcel_info(abated.id, "Lot 4", "T-1", "P-1")
        case_store.record_abatement_document(abated.id, settings.DOC_TYPE_LIEN, "lien.html", today=today)
        assert abated.abatement.notice_of_lien_doc_url == "lien.html"

    def test_certificate_requires_statement(self, case_store, abated, today):
        self._cost(case_store, abated)
        case_store.set_parcel_info(abated.id, "Lot 4", "T-1", "P-1")
        with pytest.raises(ValidationError) as exc:
            case_store.record_abatement_document(abated.id, settings.DOC_TYPE_CERTIFICATE, "cert.html", today=today)
        assert exc.value.missing_fields == ["Statement of Cost"]

        case_store.record_abatement_document(abated.id, settings.DOC_TYPE_STATEMENT, "soc.html", today=today)
        case_store.record_abatement_document(abated.id, settings.DOC_TYPE_CERTIFICATE, "cert.html", today=today)
        assert abated.abatement.certificate_of_lien_doc_url == "cert.html"

    def test_notice_types_rejected(self, case_store, abated, today):
        with pytest.raises(ValidationError):
            case_store.record_abatement_document(abated.id, settings.DOC_TYPE_NOTICE, "n.html", today=today)


# ---------------------------------------------------------------------------
# Create New
# ---------------------------------------------------------------------------

class TestCreateNew:
    def test_existing_cases_kept_without_overwrite(self, case_store, make_draft, data_path, today):
        case_store.create_case(make_draft(), today)

        fresh = CaseStore(store=JsonFileStore(data_path))
        with pytest.raises(ValidationError) as exc:
            fresh.create_new()
        assert exc.value.missing_fields == ["overwrite"]
        assert len(_reload(data_path).cases) == 1

    def test_overwrite_replaces_data(self, case_store, make_draft, data_path, today):
        case_store.create_case(make_draft(), today)

        fresh = CaseStore(store=JsonFileStore(data_path))
        fresh.create_new(overwrite=True)
        assert fresh.cases == []
        assert _reload(data_path).cases == []


# ---------------------------------------------------------------------------
# Property directory
# ---------------------------------------------------------------------------

class TestProperties:
    def test_case_creates_property(self, case_store, make_draft, today):
        case_store.create_case(make_draft(street="12 Vine St"), today)
        assert len(case_store.properties) == 1
        assert case_store.properties[0].owner_info.name == "Jane Smith"

    def test_lookup_is_normalized(self, case_store, make_draft, today):
        case_store.create_case(make_draft(street="12 Vine St"), today)
        assert case_store.find_property("  12   VINE st ") is not None
        assert case_store.find_property("14 Vine St") is None
        assert case_store.find_property("") is None

    def test_later_case_updates_owner(self, case_store, make_draft, today):
        case_store.create_case(make_draft(street="12 Vine St"), today)
        draft = make_draft(street="12 vine st", case_id="2026-200",
                           owner_info=OwnerInfo(name="New Owner", mailing_address="1 Elm"), is_vacant=True)
        case_store.create_case(draft, today)
        assert len(case_store.properties) == 1
        assert case_store.properties[0].owner_info.name == "New Owner"
        assert case_store.properties[0].is_vacant

    def test_unknown_owner_case_keeps_directory_owner(self, case_store, make_draft, today):
        case_store.create_case(make_draft(street="12 Vine St"), today)
        draft = make_draft(street="12 Vine St", case_id="2026-201", owner_info=OwnerInfo(),
                           owner_info_status=settings.OWNER_UNKNOWN)
        case_store.create_case(draft, today)
        assert case_store.properties[0].owner_info.name == "Jane Smith"

    def test_prefill_owner(self, case_store, make_draft, today):
        case_store.create_case(make_draft(street="12 Vine St"), today)
        draft = make_draft(street="12 Vine St", owner_info=OwnerInfo(),
                           owner_info_status=settings.OWNER_UNKNOWN)
        assert case_store.prefill_owner(draft)
        assert draft.owner_info.name == "Jane Smith"
        assert draft.owner_info_status == settings.OWNER_KNOWN
        # the draft gets its own copy
        draft.owner_info.name = "Changed"
        assert case_store.properties[0].owner_info.name == "Jane Smith"

    def test_prefill_without_match(self, case_store, make_draft):
        draft = make_draft(street="1 Nowhere Rd")
        assert not case_store.prefill_owner(draft)

    def test_save_and_delete_property(self, case_store, make_draft, today):
        case = case_store.create_case(make_draft(street="12 Vine St"), today)
        prop = Property(id="p1", street_address="  3 Main St ", owner_info=OwnerInfo(name="Owner"))
        case_store.save_property(prop)
        assert case_store.properties[-1].street_address == "3 Main St"

        with pytest.raises(ValidationError):
            case_store.delete_property("p1")
        case_store.delete_property("p1", confirmed=True)
        assert all(p.id != "p1" for p in case_store.properties)
        # cases are never touched by directory edits
        assert case_store.get_case(case.id)

    def test_save_property_requires_street(self, case_store):
        with pytest.raises(ValidationError):
            case_store.save_property(Property(id="p2", street_address="  "))

    def test_delete_missing_property(self, case_store):
        with pytest.raises(NotFoundError):
            case_store.delete_property("missing", confirmed=True)


# ---------------------------------------------------------------------------
# migrate_cases_to_properties
# ---------------------------------------------------------------------------

class TestMigration:
    def test_latest_case_per_address_wins(self, case_store, make_case):
        older = make_case(street="12 Vine St", created="January 5, 2026", owner_name="Old Owner")
        newer = make_case(street="12 VINE ST", created="March 5, 2026", owner_name="New Owner")
        other = make_case(street="1 Main St", created="February 1, 2026")
        case_store.cases = [newer, other, older]

        created = case_store.migrate_cases_to_properties()

        assert created == 2
        vine = case_store.find_property("12 Vine St")
        assert vine.owner_info.name == "New Owner"

    def test_skipped_when_directory_exists(self, case_store, make_case):
        case_store.cases = [make_case()]
        case_store.properties = [Property(id="p", street_address="9 Elm")]
        assert case_store.migrate_cases_to_properties() == 0
        assert len(case_store.properties) == 1


# ---------------------------------------------------------------------------
# Queries
# ---------------------------------------------------------------------------

class TestQueries:
    @pytest.fixture
    def populated(self, case_store, make_case):
        case_store.cases = [
            make_case(street="1 Vine St", case_id="V-1", owner_name="Alice Brown"),
            make_case(street="1 Main St", case_id="M-1", status=settings.STATUS_CLOSED),
            make_case(street="2 Main St", case_id="M-2", deadline="October 1, 2026",
                      violation_type="Inoperable / Abandoned Vehicle", is_vacant=True),
            make_case(street="3 Main St", case_id="M-3", status=settings.STATUS_PENDING_ABATEMENT,
                      deadline="October 1, 2026", owner_info_status=settings.OWNER_UNKNOWN),
            make_case(street="4 Main St", case_id="M-4", status=settings.STATUS_CONTINUAL_ABATEMENT),
        ]
        return case_store

    def test_all_sorted_closed_last(self, populated):
        ids = [c.case_id for c in populated.filter_cases('ALL')]
        assert ids == ["M-2", "M-3", "M-4", "V-1", "M-1"]

    @pytest.mark.parametrize("filter_name, expected", [
        ('OPEN', {"V-1", "M-2", "M-3", "M-4"}),
        ('ABATEMENT', {"M-3"}),
        ('VACANT', {"M-2"}),
        ('UNKNOWN_OWNER', {"M-3"}),
        ('INOPERABLE_VEHICLE', {"M-2"}),
        ('TALL_GRASS', {"V-1", "M-1", "M-3", "M-4"}),
        ('DILAPIDATED', set()),
    ])
    def test_named_filters(self, populated, filter_name, expected):
        assert {c.case_id for c in populated.filter_cases(filter_name)} == expected

    def test_search(self, populated):
        assert [c.case_id for c in populated.search_cases("alice")] == ["V-1"]
        assert [c.case_id for c in populated.search_cases("m-2")] == ["M-2"]
        assert len(populated.search_cases("main st")) == 4
        assert len(populated.search_cases("")) == 5

    def test_due_cases(self, populated, today):
        assert [c.case_id for c in populated.due_cases(today)] == ["M-2"]

    def test_abatement_and_continual(self, populated):
        assert [c.case_id for c in populated.abatement_cases()] == ["M-3"]
        assert [c.case_id for c in populated.continual_abatement_cases()] == ["M-4"]

    def test_cases_df(self, populated, today):
        df = populated.get_cases_df(today=today)
        assert len(df) == 5
        assert {'case_id', 'street', 'status', 'time_status', 'violation'} <= set(df.columns)
        assert populated.get_cases_df([]).empty

    def test_properties_df(self, case_store):
        case_store.properties = [Property(id="a", street_address="1 Vine"), Property(id="b", street_address="1 Main")]
        df = case_store.get_properties_df()
        assert list(df['street_address']) == ["1 Main", "1 Vine"]


# ---------------------------------------------------------------------------
# Save failures
# ---------------------------------------------------------------------------

class TestSaveFailure:
    def test_change_kept_in_memory(self, make_draft, today):
        failing = FailingStore()
        case_store = CaseStore(store=failing, catalog=load_violation_catalog())
        with pytest.raises(ExternalServiceError):
            case_store.create_case(make_draft(), today)
        assert len(case_store.cases) == 1
        assert failing.save_calls == 1

    def test_failure_audited(self, make_draft, audit_log, today):
        case_store = CaseStore(store=FailingStore(), audit_log=audit_log)
        with pytest.raises(ExternalServiceError):
            case_store.create_case(make_draft(), today)
        assert audit_log.get_recent_logs()[-1]['action'] == 'save_failed'

    def test_no_store_configured(self, make_draft, today):
        case_store = CaseStore(store=None)
        with pytest.raises(NotFoundError):
            case_store.load()
        with pytest.raises(NotFoundError):
            case_store.persist()
