"""
Shared fixtures: an in-memory property service and complete section data.
"""

from __future__ import annotations

import copy
import threading
from typing import Callable, Optional

import pytest

from core.onboarding import (
    DraftStorage,
    DraftStore,
    OnboardingSession,
    PropertyKind,
    get_flow,
)
from core.onboarding.lifecycle import DisplayMetrics
from core.onboarding.remote import PropertyAPI, UploadedFile


# =============================================================================
# Fake Property Service
# =============================================================================


class FakePropertyAPI(PropertyAPI):
    """
    Records every call and answers like the real service.

    Set failures[method] to an exception to make that method raise it.
    Set failing_uris to make uploads of those files fail.
    Set on_upload to run a hook while an upload is "in flight".
    """

    def __init__(self, property_id: str = "prop-123"):
        self.property_id = property_id
        self.calls: list[tuple] = []
        self.failures: dict[str, Exception] = {}
        self.failing_uris: dict[str, Exception] = {}
        self.on_upload: Optional[Callable] = None
        self._lock = threading.Lock()

    def _record(self, name: str, *args) -> None:
        with self._lock:
            self.calls.append((name, *args))
        if name in self.failures:
            raise self.failures[name]

    def calls_to(self, name: str) -> list[tuple]:
        return [call for call in self.calls if call[0] == name]

    def create_property(self, payload: dict) -> dict:
        self._record("create_property", payload)
        return {"success": True, "data": {"id": self.property_id}}

    def save_draft(self, property_id: str, payload: dict) -> dict:
        self._record("save_draft", property_id, payload)
        return {"success": True}

    def upload_files(self, property_id, upload_kind, files, file_type=None):
        self._record("upload_files", property_id, upload_kind, [f.uri for f in files], file_type)
        if self.on_upload is not None:
            self.on_upload(files)
        for upload in files:
            if upload.uri in self.failing_uris:
                raise self.failing_uris[upload.uri]
        return [
            UploadedFile(url=f"https://cdn.test/{upload.name}", key=f"key-{upload.name}")
            for upload in files
        ]

    def submit_for_review(self, property_id: str) -> dict:
        self._record("submit_for_review", property_id)
        return {"success": True, "message": "Submitted"}

    def delete_property(self, property_id: str) -> dict:
        self._record("delete_property", property_id)
        return {"success": True}


# =============================================================================
# Section Data
# =============================================================================


def photo(name: str, **overrides) -> dict:
    record = {
        "uri": f"file:///tmp/{name}",
        "name": name,
        "size": 2_000_000,
        "type": "image/jpeg",
        "width": 1920,
        "height": 1080,
    }
    record.update(overrides)
    return record


def pdf(name: str, **overrides) -> dict:
    record = {
        "uri": f"file:///tmp/{name}.pdf",
        "name": f"{name}.pdf",
        "size": 1_000_000,
        "type": "application/pdf",
    }
    record.update(overrides)
    return record


RESIDENTIAL_SECTIONS = {
    "property_details": {
        "property_title": "Ocean View Villa",
        "market": "Miami, FL",
        "pincode": "33139",
        "full_address": "1200 Ocean Drive, Miami Beach",
        "property_type": "Villa",
        "year_built": "2005",
        "bedrooms": "3",
        "bathrooms": "2.5",
        "guest_capacity": "6",
        "square_footage": "2400",
    },
    "pricing_valuation": {
        "estimated_property_value": "$1,250,000",
        "nightly_rate": "450",
        "cleaning_fee": "150",
        "rental_availability": "40",
        "minimum_stay": "3",
    },
    "features_compliance": {
        "furnishing_description": "Fully furnished with designer pieces",
        "featured_amenities": ["Pool", "Ocean View"],
        "house_rules": ["No smoking"],
        "local_highlights": "Two blocks from the beach and the art deco district",
    },
    "media_upload": {
        "photos": [photo("front.jpg"), photo("pool.jpg"), photo("living.jpg")],
        "virtual_tour": "https://www.youtube.com/watch?v=abc123",
    },
    "documents_upload": {
        name: pdf(name)
        for name in (
            "property_deed",
            "government_id",
            "property_tax_bill",
            "proof_of_insurance",
            "utility_bill",
            "appraisal_report",
            "authorization_to_sell",
        )
    },
    "legal_consents": {
        name: True
        for name in (
            "investment_risks",
            "platform_terms",
            "variable_income",
            "tokenization_consent",
            "usage_rights",
            "liquidity_limitations",
            "governance_rights",
        )
    },
    "listing_purpose": {"selected_purpose": "both"},
}


COMMERCIAL_SECTIONS = {
    "property_details": {
        "property_title": "Harbor Office Tower",
        "market": "Manhattan, NY",
        "pincode": "10004",
        "full_address": "1 Battery Park Plaza, New York",
        "zoning_type": "Office",
        "square_footage": "45,000",
        "year_built": "1998",
    },
    "financial_details": {
        "estimated_property_value": "$25,000,000",
        "base_rental_rate": "85",
        "cleaning_maintenance_fee": "20",
        "weeks_available_per_year": "48",
        "minimum_booking_duration": "Daily",
    },
    "features_compliance": {
        "building_amenities": ["Conference rooms"],
        "access_type": "Keycard",
        "property_highlights": "Harbor views and direct subway access",
    },
    "media_uploads": {
        "photos": [photo(f"office-{i}.jpg") for i in range(5)],
    },
    "documents": {
        name: pdf(name)
        for name in (
            "property_deed",
            "zoning_certificate",
            "title_report",
            "government_id",
            "certificate_of_occupancy",
            "rent_roll",
            "income_expense_statements",
            "cam_agreement",
            "environmental_report",
            "property_condition_assessment",
            "proof_of_insurance",
            "utility_bill",
            "property_appraisal",
            "authorization_to_tokenize",
        )
    },
    "legal_consents": dict(RESIDENTIAL_SECTIONS["legal_consents"]),
    "listing_type": {"selected_type": "rental-only"},
}


def complete_sections(kind: PropertyKind) -> dict:
    """Fresh copy of valid data for every section of a flow."""
    source = RESIDENTIAL_SECTIONS if kind == PropertyKind.RESIDENTIAL else COMMERCIAL_SECTIONS
    return copy.deepcopy(source)


def fill_store(store: DraftStore, sections: Optional[dict] = None) -> None:
    """Write every section of the given (or complete) data into a store."""
    for name, data in (sections or complete_sections(store.kind)).items():
        store.update_section(name, data)


# =============================================================================
# Fixtures
# =============================================================================


@pytest.fixture
def fake_api():
    """In-memory property service."""
    return FakePropertyAPI()


@pytest.fixture
def storage(tmp_path):
    """Draft storage in a temporary directory."""
    return DraftStorage(str(tmp_path / "drafts"))


@pytest.fixture
def residential_store(storage):
    return DraftStore(get_flow(PropertyKind.RESIDENTIAL), storage)


@pytest.fixture
def commercial_store(storage):
    return DraftStore(get_flow(PropertyKind.COMMERCIAL), storage)


@pytest.fixture
def fixed_metrics():
    """Deterministic approval metrics."""
    return lambda entry: DisplayMetrics(monthly_earnings=20_000, occupancy_rate=90, bookings_count=4)


@pytest.fixture
def session(tmp_path, fake_api, fixed_metrics):
    """Onboarding session on a temp data dir and the fake service."""
    return OnboardingSession(str(tmp_path / "data"), fake_api, metrics_source=fixed_metrics)
