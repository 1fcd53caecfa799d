"""
Pytest fixtures for the code enforcement test suite.
"""
import pytest
from datetime import date

from config import settings
from config.catalog import load_violation_catalog
from models.case import Address, Case, CaseDraft, OwnerInfo, Violation
from models.case_store import CaseStore
from storage.audit_log import AuditLog
from storage.json_store import JsonFileStore

TODAY = date(2026, 10, 19)


@pytest.fixture
def today():
    return TODAY


@pytest.fixture
def make_case():
    """Factory for in-memory cases with sensible defaults."""
    counter = {"n": 0}

    def _make(
        street="100 Main St",
        status=settings.STATUS_ACTIVE,
        deadline="October 29, 2026",
        created="October 19, 2026",
        violation_type="Tall Grass / Weeds",
        owner_name="Jane Smith",
        **kwargs,
    ):
        counter["n"] += 1
        n = counter["n"]
        return Case(
            id=kwargs.pop("id", f"case-{n}"),
            case_id=kwargs.pop("case_id", f"2026-{n:03d}"),
            status=status,
            date_created=created,
            compliance_deadline=deadline,
            address=Address(street=street, city="Commerce", province="OK", postal_code="74339"),
            owner_info=OwnerInfo(name=owner_name, mailing_address="PO Box 12\nCommerce, OK 74339"),
            violation=Violation(type=violation_type),
            **kwargs,
        )

    return _make


@pytest.fixture
def make_draft():
    """Factory for valid new case drafts."""

    def _make(street="100 Main St", case_id="2026-100", violation_type="Tall Grass / Weeds", **kwargs):
        return CaseDraft(
            case_id=case_id,
            address=Address(street=street, city="Commerce", province="OK", postal_code="74339"),
            owner_info=kwargs.pop(
                "owner_info", OwnerInfo(name="Jane Smith", mailing_address="PO Box 12\nCommerce, OK 74339")
            ),
            violation=Violation(type=violation_type),
            **kwargs,
        )

    return _make


@pytest.fixture
def data_path(tmp_path):
    return tmp_path / "code-enforcement-data.json"


@pytest.fixture
def json_store(data_path):
    store = JsonFileStore(data_path)
    store.create_new()
    return store


@pytest.fixture
def audit_log(tmp_path):
    return AuditLog(tmp_path / "audit_log.jsonl")


@pytest.fixture
def case_store(json_store, audit_log):
    """A store backed by an empty JSON data file."""
    store = CaseStore(store=json_store, catalog=load_violation_catalog(), audit_log=audit_log, user="Tester")
    store.load()
    return store
