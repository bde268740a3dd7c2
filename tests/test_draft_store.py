"""
Tests for the Draft Store

Tests covering:
1. Section merge semantics and persistence across restarts
2. Property id assignment rules
3. Submission, events and begin/reset
4. Stale upload results
5. Completion and the proceed gate
"""

from __future__ import annotations

import dataclasses
import json
from datetime import datetime

import pytest

from conftest import complete_sections, fill_store, photo
from core.onboarding import (
    RESIDENTIAL_FLOW,
    DraftLockedError,
    DraftStorage,
    DraftStore,
    PropertyIdConflictError,
    PropertyKind,
    get_flow,
)


# =============================================================================
# Fixtures
# =============================================================================


@pytest.fixture
def frozen_clock():
    """Clock fixed at a known instant."""
    return lambda: datetime(2026, 3, 1, 12, 0, 0)


def reopen(store: DraftStore, storage: DraftStorage) -> DraftStore:
    return DraftStore(get_flow(store.kind), storage)


# =============================================================================
# Section Updates
# =============================================================================


class TestUpdateSection:
    def test_defaults_on_first_start(self, residential_store):
        details = residential_store.get_section("property_details")
        assert details["property_title"] == ""
        assert residential_store.property_id is None
        assert not residential_store.is_submitted

    def test_documented_check_in_defaults(self, residential_store):
        features = residential_store.get_section("features_compliance")
        assert features["check_in_time"] == {"hour": 3, "minute": 0, "period": "PM"}
        assert features["check_out_time"] == {"hour": 11, "minute": 0, "period": "AM"}

    def test_shallow_merge_keeps_other_fields(self, residential_store):
        residential_store.update_section("property_details", {"property_title": "Sea View"})
        residential_store.update_section("property_details", {"bedrooms": "2"})

        details = residential_store.get_section("property_details")
        assert details["property_title"] == "Sea View"
        assert details["bedrooms"] == "2"

    def test_nested_values_replaced_wholesale(self, residential_store):
        residential_store.update_section(
            "features_compliance", {"check_in_time": {"hour": 4, "minute": 30, "period": "PM"}}
        )
        residential_store.update_section("features_compliance", {"check_in_time": {"hour": 5}})

        assert residential_store.get_section("features_compliance")["check_in_time"] == {"hour": 5}

    def test_returned_section_is_a_copy(self, residential_store):
        section = residential_store.update_section("property_details", {"property_title": "A1"})
        section["property_title"] = "mutated"
        assert residential_store.get_section("property_details")["property_title"] == "A1"

    def test_unknown_section(self, residential_store):
        with pytest.raises(KeyError):
            residential_store.update_section("financial_details", {"x": 1})

    def test_kinds_are_independent(self, residential_store, commercial_store):
        residential_store.update_section("property_details", {"property_title": "Home"})
        assert commercial_store.get_section("property_details")["property_title"] == ""


class TestPersistence:
    def test_draft_survives_restart(self, residential_store, storage):
        residential_store.update_section("property_details", {"property_title": "Sea View"})
        residential_store.set_property_id("prop-9")

        restarted = reopen(residential_store, storage)
        assert restarted.get_section("property_details")["property_title"] == "Sea View"
        assert restarted.property_id == "prop-9"

    def test_storage_layout(self, storage, frozen_clock):
        store = DraftStore(get_flow(PropertyKind.COMMERCIAL), storage, clock=frozen_clock)
        store.update_section("property_details", {"property_title": "Tower"})

        document = json.loads((storage.storage_root / "commercial_property.json").read_text())
        assert document["value"]["kind"] == "commercial"
        assert document["value"]["updated_at"] == "2026-03-01T12:00:00"
        assert "saved_at" in document

    def test_corrupt_file_starts_fresh(self, storage):
        (storage.storage_root / "residential_property.json").write_text("{not json")

        store = DraftStore(get_flow(PropertyKind.RESIDENTIAL), storage)
        assert store.get_section("property_details")["property_title"] == ""

    def test_missing_sections_filled_from_defaults(self, storage):
        storage.set_item(
            "residential_property",
            {"sections": {"property_details": {"property_title": "Old"}, "legacy": {}}},
        )

        store = DraftStore(get_flow(PropertyKind.RESIDENTIAL), storage)
        snapshot = store.snapshot()
        assert snapshot.title == "Old"
        assert snapshot.sections["property_details"]["market"] == ""
        assert "legacy" not in snapshot.sections
        assert "listing_purpose" in snapshot.sections

    def test_invalid_storage_key(self, storage):
        with pytest.raises(ValueError):
            storage.get_item("../etc/passwd")


# =============================================================================
# Property Id
# =============================================================================


class TestPropertyId:
    def test_assign_once(self, residential_store):
        residential_store.set_property_id("prop-1")
        assert residential_store.property_id == "prop-1"

    def test_same_id_is_noop(self, residential_store):
        residential_store.set_property_id("prop-1")
        residential_store.set_property_id("prop-1")
        assert residential_store.property_id == "prop-1"

    def test_different_id_rejected(self, residential_store):
        residential_store.set_property_id("prop-1")
        with pytest.raises(PropertyIdConflictError) as exc_info:
            residential_store.set_property_id("prop-2")

        assert exc_info.value.current_id == "prop-1"
        assert residential_store.property_id == "prop-1"


# =============================================================================
# Submission and Events
# =============================================================================


class TestSubmitProperty:
    def test_sets_flag_and_timestamp(self, storage, frozen_clock):
        store = DraftStore(get_flow(PropertyKind.RESIDENTIAL), storage, clock=frozen_clock)
        event = store.submit_property()

        assert store.is_submitted
        assert store.snapshot().submitted_at == datetime(2026, 3, 1, 12, 0, 0)
        assert event.kind == PropertyKind.RESIDENTIAL
        assert event.submitted_at == datetime(2026, 3, 1, 12, 0, 0)

    def test_listeners_receive_event(self, residential_store):
        received = []
        residential_store.subscribe(received.append)
        residential_store.update_section("property_details", {"property_title": "Sea View"})

        residential_store.submit_property()

        assert len(received) == 1
        assert received[0].draft.title == "Sea View"
        assert received[0].draft.is_submitted

    def test_unsubscribe(self, residential_store):
        received = []
        unsubscribe = residential_store.subscribe(received.append)
        unsubscribe()
        unsubscribe()

        residential_store.submit_property()
        assert received == []

    def test_failing_listener_does_not_block_others(self, residential_store, caplog):
        received = []

        def broken(event):
            raise RuntimeError("registry offline")

        residential_store.subscribe(broken)
        residential_store.subscribe(received.append)

        residential_store.submit_property()

        assert residential_store.is_submitted
        assert len(received) == 1
        assert "listener" in caplog.text


class TestBeginAndReset:
    def test_reset_restores_defaults(self, residential_store):
        fill_store(residential_store)
        residential_store.set_property_id("prop-1")
        residential_store.submit_property()

        residential_store.reset_store()

        assert residential_store.property_id is None
        assert not residential_store.is_submitted
        assert residential_store.get_section("property_details")["property_title"] == ""

    def test_begin_resumes_unsubmitted_draft(self, residential_store):
        residential_store.update_section("property_details", {"property_title": "Sea View"})
        draft = residential_store.begin_flow()
        assert draft.title == "Sea View"

    def test_submitted_draft_is_read_only(self, residential_store):
        residential_store.update_section("property_details", {"property_title": "Sea View"})
        residential_store.set_property_id("prop-1")
        residential_store.submit_property()

        with pytest.raises(DraftLockedError):
            residential_store.update_section("property_details", {"property_title": "Typo Fixed"})
        assert residential_store.get_section("property_details")["property_title"] == "Sea View"

        residential_store.begin_flow()
        residential_store.update_section("property_details", {"property_title": "Next Listing"})
        assert residential_store.get_section("property_details")["property_title"] == "Next Listing"

    def test_begin_after_submission_starts_fresh(self, residential_store):
        residential_store.update_section("property_details", {"property_title": "Sea View"})
        residential_store.set_property_id("prop-1")
        residential_store.submit_property()

        draft = residential_store.begin_flow()

        assert draft.title == ""
        assert draft.property_id is None
        assert not draft.is_submitted


# =============================================================================
# Upload Results
# =============================================================================


class TestMergeFileRecord:
    def test_merges_into_matching_record(self, residential_store):
        residential_store.update_section("media_upload", {"photos": [photo("a.jpg"), photo("b.jpg")]})

        merged = residential_store.merge_file_record(
            "media_upload", "photos", 1, "file:///tmp/b.jpg", "https://cdn.test/b.jpg", "key-b"
        )

        photos = residential_store.get_section("media_upload")["photos"]
        assert merged
        assert photos[1]["uploaded_url"] == "https://cdn.test/b.jpg"
        assert photos[1]["uploaded_key"] == "key-b"
        assert "uploaded_url" not in photos[0]

    def test_replaced_record_drops_result(self, residential_store):
        residential_store.update_section("media_upload", {"photos": [photo("a.jpg")]})
        residential_store.update_section("media_upload", {"photos": [photo("c.jpg")]})

        merged = residential_store.merge_file_record(
            "media_upload", "photos", 0, "file:///tmp/a.jpg", "https://cdn.test/a.jpg"
        )

        assert not merged
        assert "uploaded_url" not in residential_store.get_section("media_upload")["photos"][0]

    def test_removed_record_drops_result(self, residential_store):
        residential_store.update_section("media_upload", {"photos": []})
        assert not residential_store.merge_file_record(
            "media_upload", "photos", 0, "file:///tmp/a.jpg", "https://cdn.test/a.jpg"
        )

    def test_single_file_field(self, residential_store):
        sections = complete_sections(PropertyKind.RESIDENTIAL)
        residential_store.update_section("documents_upload", sections["documents_upload"])

        assert residential_store.merge_file_record(
            "documents_upload", "property_deed", None,
            "file:///tmp/property_deed.pdf", "https://cdn.test/deed.pdf",
        )
        pending = {p.field for p in residential_store.pending_uploads()}
        assert "property_deed" not in pending
        assert "government_id" in pending


# =============================================================================
# Validation and Completion
# =============================================================================


class TestValidationGates:
    def test_validate_shows_errors(self, residential_store):
        residential_store.validate_section("property_details")
        assert "property_title" in residential_store.shown_errors("property_details")

    def test_edit_clears_shown_error_for_that_field(self, residential_store):
        residential_store.validate_section("property_details")
        residential_store.update_section("property_details", {"property_title": "Sea View"})

        shown = residential_store.shown_errors("property_details")
        assert "property_title" not in shown
        assert "pincode" in shown

    def test_can_proceed_reads_live_data(self, residential_store):
        sections = complete_sections(PropertyKind.RESIDENTIAL)
        residential_store.update_section("property_details", sections["property_details"])
        assert residential_store.can_proceed("property_details")

        # No validate_section call in between: the gate still sees the edit
        residential_store.update_section("property_details", {"square_footage": "100"})
        assert not residential_store.can_proceed("property_details")

    def test_completion_status_all_sections(self, residential_store):
        status = residential_store.get_completion_status()
        assert list(status) == list(get_flow(PropertyKind.RESIDENTIAL).required_sections)
        assert not any(status.values())

    def test_complete_after_fill(self, commercial_store):
        fill_store(commercial_store)
        assert commercial_store.is_all_sections_complete(current_year=2026)

    def test_completion_recomputed_after_edit(self, residential_store):
        fill_store(residential_store)
        assert residential_store.is_all_sections_complete(current_year=2026)

        residential_store.update_section("listing_purpose", {"selected_purpose": None})

        report = residential_store.get_completion_report(current_year=2026)
        assert not report.ready_to_submit
        assert report.incomplete_sections == ["listing_purpose"]

    def test_malformed_photos_mark_section_incomplete(self, residential_store):
        fill_store(residential_store)
        residential_store.update_section("media_upload", {"photos": ["a.jpg", "b.jpg", "c.jpg"]})
        residential_store.update_section("documents_upload", {"property_deed": photo("deed.pdf", size="huge")})

        status = residential_store.get_completion_status(current_year=2026)

        assert status["media_upload"] is False
        assert not residential_store.can_proceed("media_upload")
        assert not residential_store.is_all_sections_complete(current_year=2026)

    def test_completion_uses_the_store_flow(self, storage):
        flow = dataclasses.replace(
            RESIDENTIAL_FLOW,
            section_validators={
                "property_details": RESIDENTIAL_FLOW.section_validators["property_details"],
            },
        )
        store = DraftStore(flow, storage)
        store.update_section(
            "property_details", complete_sections(PropertyKind.RESIDENTIAL)["property_details"]
        )

        assert store.get_completion_status(current_year=2026) == {"property_details": True}
        assert store.is_all_sections_complete(current_year=2026)
        assert store.get_completion_report(current_year=2026).ready_to_submit

    def test_pending_uploads_after_fill(self, residential_store):
        fill_store(residential_store)
        pending = residential_store.pending_uploads()

        # 3 photos + 7 documents; the virtual tour is a link
        assert len(pending) == 10
        documents = [p for p in pending if p.section == "documents_upload"]
        assert all(p.file_type == p.field for p in documents)
