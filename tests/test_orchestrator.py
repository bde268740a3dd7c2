"""
Tests for the Submission Orchestrator

Tests covering:
1. Create phase and the at-most-once property id
2. Save-draft phase ordering and failure handling
3. Concurrent uploads, per-file failures and stale results
4. Submit-for-review gating
5. Pre-submit warning for files still on the device
"""

from __future__ import annotations

import time
from concurrent.futures import ThreadPoolExecutor

import pytest

from conftest import fill_store, photo
from core.onboarding import (
    IncompleteDraftError,
    NetworkError,
    Phase,
    PhaseFailed,
    PhaseSucceeded,
    PreconditionError,
    ServerRejection,
    SubmissionOrchestrator,
    UploadKind,
    UploadReport,
)


CURRENT_YEAR = 2026


# =============================================================================
# Fixtures
# =============================================================================


@pytest.fixture
def orchestrator(residential_store, fake_api):
    """Orchestrator over an empty residential draft."""
    return SubmissionOrchestrator(residential_store, fake_api)


@pytest.fixture
def filled(residential_store, orchestrator):
    """Orchestrator over a complete residential draft."""
    fill_store(residential_store)
    return orchestrator


@pytest.fixture
def created(filled):
    """Complete draft that already has a property id."""
    assert isinstance(filled.create_property(), PhaseSucceeded)
    return filled


# =============================================================================
# Create Phase
# =============================================================================


class TestCreateProperty:
    def test_records_server_id(self, filled, fake_api):
        result = filled.create_property()

        assert isinstance(result, PhaseSucceeded)
        assert result.phase == Phase.CREATE
        assert result.property_id == "prop-123"
        assert filled.store.property_id == "prop-123"

        payload = fake_api.calls_to("create_property")[0][1]
        assert payload["title"] == "Ocean View Villa"
        assert payload["type"] == "residential"
        assert payload["location"]["city"] == "Miami"
        assert payload["location"]["state"] == "FL"
        assert payload["capacity"]["bedrooms"] == 3

    def test_second_create_refused_without_remote_call(self, created, fake_api):
        result = created.create_property()

        assert isinstance(result, PhaseFailed)
        assert isinstance(result.error, PreconditionError)
        assert result.property_id == "prop-123"
        assert len(fake_api.calls_to("create_property")) == 1

    def test_concurrent_creates_call_service_once(self, filled, fake_api):
        original = fake_api.create_property

        def slow_create(payload):
            time.sleep(0.05)
            return original(payload)

        fake_api.create_property = slow_create

        with ThreadPoolExecutor(max_workers=2) as pool:
            results = list(pool.map(lambda _: filled.create_property(), range(2)))

        assert len(fake_api.calls_to("create_property")) == 1
        assert sum(isinstance(r, PhaseSucceeded) for r in results) == 1
        assert filled.store.property_id == "prop-123"

    def test_network_failure_leaves_no_id(self, filled, fake_api):
        fake_api.failures["create_property"] = NetworkError("Connection refused")

        result = filled.create_property()

        assert isinstance(result, PhaseFailed)
        assert result.retryable
        assert filled.store.property_id is None

    def test_retry_after_failure(self, filled, fake_api):
        fake_api.failures["create_property"] = NetworkError("Connection refused")
        filled.create_property()
        del fake_api.failures["create_property"]

        assert isinstance(filled.create_property(), PhaseSucceeded)

    def test_response_without_id(self, filled, fake_api):
        fake_api.create_property = lambda payload: {"success": True, "data": {}}

        result = filled.create_property()

        assert isinstance(result.error, ServerRejection)
        assert not result.retryable
        assert filled.store.property_id is None

    def test_result_serialises(self, filled):
        assert filled.create_property().to_dict() == {
            "ok": True,
            "phase": "create",
            "property_id": "prop-123",
            "section": None,
        }


# =============================================================================
# Save Draft Phase
# =============================================================================


class TestSaveSection:
    def test_requires_property_id(self, filled, fake_api):
        result = filled.save_section("pricing_valuation")

        assert isinstance(result, PhaseFailed)
        assert isinstance(result.error, PreconditionError)
        assert result.section == "pricing_valuation"
        assert fake_api.calls_to("save_draft") == []

    def test_sends_section_payload(self, created, fake_api):
        result = created.save_section("pricing_valuation")

        assert isinstance(result, PhaseSucceeded)
        _, property_id, payload = fake_api.calls_to("save_draft")[0]
        assert property_id == "prop-123"
        assert payload["section"] == "pricing_valuation"
        assert payload["rentAmount"]["basePrice"] == 450
        assert payload["propertyValueEstimate"]["value"] == 1_250_000

    def test_file_records_sent_as_remote_refs(self, created, fake_api):
        created.save_section("media_upload")

        payload = fake_api.calls_to("save_draft")[0][2]
        first = payload["data"]["photos"][0]
        assert first["name"] == "front.jpg"
        assert first["url"] is None
        assert "uri" not in first

    def test_rejection_keeps_local_data(self, created, fake_api, residential_store):
        fake_api.failures["save_draft"] = ServerRejection("Invalid nightly rate", 400)

        result = created.save_section("pricing_valuation")

        assert isinstance(result, PhaseFailed)
        assert str(result.error) == "Invalid nightly rate"
        assert residential_store.get_section("pricing_valuation")["nightly_rate"] == "450"

    def test_save_all_stops_at_first_failure(self, created, fake_api):
        fake_api.failures["save_draft"] = NetworkError("timeout")

        results = created.save_all_sections()

        assert len(results) == 1
        assert results[0].section == "property_details"

    def test_save_all_in_wizard_order(self, created, fake_api):
        results = created.save_all_sections()

        assert all(isinstance(r, PhaseSucceeded) for r in results)
        assert [r.section for r in results] == list(created.store.flow.required_sections)


# =============================================================================
# Upload Phase
# =============================================================================


class TestUploadPendingFiles:
    def test_requires_property_id(self, filled, fake_api):
        result = filled.upload_pending_files()

        assert isinstance(result, PhaseFailed)
        assert result.phase == Phase.UPLOAD
        assert fake_api.calls_to("upload_files") == []

    def test_uploads_each_file_and_merges(self, created, fake_api, residential_store):
        result = created.upload_pending_files()

        assert isinstance(result, UploadReport)
        assert len(result.succeeded) == 10
        assert result.failed == []
        assert len(fake_api.calls_to("upload_files")) == 10

        photos = residential_store.get_section("media_upload")["photos"]
        assert photos[0]["uploaded_url"] == "https://cdn.test/front.jpg"
        assert residential_store.pending_uploads() == []

    def test_documents_sent_with_file_type(self, created, fake_api):
        created.upload_pending_files()

        deed_calls = [
            call for call in fake_api.calls_to("upload_files")
            if call[3] == ["file:///tmp/property_deed.pdf"]
        ]
        assert len(deed_calls) == 1
        _, _, upload_kind, _, file_type = deed_calls[0]
        assert upload_kind == UploadKind.FILES
        assert file_type == "property_deed"

    def test_failed_file_does_not_block_others(self, created, fake_api, residential_store):
        fake_api.failing_uris["file:///tmp/pool.jpg"] = NetworkError("timeout")

        result = created.upload_pending_files()

        assert len(result.succeeded) == 9
        assert [o.upload.name for o in result.failed] == ["pool.jpg"]
        assert [p.name for p in residential_store.pending_uploads()] == ["pool.jpg"]

    def test_nothing_pending(self, created, fake_api):
        created.upload_pending_files()
        calls = len(fake_api.calls_to("upload_files"))

        result = created.upload_pending_files()

        assert result.outcomes == ()
        assert len(fake_api.calls_to("upload_files")) == calls

    def test_stale_result_dropped(self, residential_store, fake_api):
        fill_store(residential_store)
        orchestrator = SubmissionOrchestrator(residential_store, fake_api, max_workers=1)
        orchestrator.create_property()

        def replace_front_photo(files):
            if files[0].name == "front.jpg":
                photos = residential_store.get_section("media_upload")["photos"]
                photos[0] = photo("replacement.jpg")
                residential_store.update_section("media_upload", {"photos": photos})

        fake_api.on_upload = replace_front_photo

        result = orchestrator.upload_pending_files()

        stale = [o for o in result.outcomes if o.upload.name == "front.jpg"][0]
        assert stale.succeeded
        assert not stale.merged

        photos = residential_store.get_section("media_upload")["photos"]
        assert photos[0]["name"] == "replacement.jpg"
        assert "uploaded_url" not in photos[0]
        assert photos[1]["uploaded_url"] == "https://cdn.test/pool.jpg"


class TestSubmissionWarning:
    def test_counts_by_kind(self, filled):
        warning = filled.submission_warning()

        assert len(warning.pending) == 10
        assert warning.message == (
            "3 photos are not yet uploaded to the server. "
            "7 documents are not yet uploaded to the server. "
            "You can continue, but the files may not be saved properly."
        )

    def test_no_warning_when_uploaded(self, created):
        created.upload_pending_files()
        assert created.submission_warning() is None


# =============================================================================
# Submit Phase
# =============================================================================


class TestSubmitForReview:
    def test_requires_property_id(self, filled, fake_api):
        result = filled.submit_for_review(CURRENT_YEAR)

        assert isinstance(result.error, PreconditionError)
        assert fake_api.calls_to("submit_for_review") == []

    def test_incomplete_draft_blocked_locally(self, orchestrator, residential_store, fake_api):
        residential_store.set_property_id("prop-123")

        result = orchestrator.submit_for_review(CURRENT_YEAR)

        assert isinstance(result.error, IncompleteDraftError)
        assert "property_details" in result.error.incomplete_sections
        assert str(result.error).startswith("Please complete all sections before submitting")
        assert fake_api.calls_to("submit_for_review") == []
        assert not residential_store.is_submitted

    def test_completeness_rechecked_at_submit(self, created, residential_store, fake_api):
        residential_store.update_section("property_details", {"square_footage": "100"})

        result = created.submit_for_review(CURRENT_YEAR)

        assert result.error.incomplete_sections == ["property_details"]
        assert fake_api.calls_to("submit_for_review") == []

    def test_success_marks_submitted(self, created, residential_store, fake_api):
        received = []
        residential_store.subscribe(received.append)

        result = created.submit_for_review(CURRENT_YEAR)

        assert isinstance(result, PhaseSucceeded)
        assert residential_store.is_submitted
        assert fake_api.calls_to("submit_for_review") == [("submit_for_review", "prop-123")]
        assert len(received) == 1

    def test_pending_uploads_do_not_block(self, created):
        assert created.submission_warning() is not None
        assert isinstance(created.submit_for_review(CURRENT_YEAR), PhaseSucceeded)

    def test_rejection_not_marked_submitted(self, created, residential_store, fake_api):
        fake_api.failures["submit_for_review"] = ServerRejection("Documents unreadable", 422)

        result = created.submit_for_review(CURRENT_YEAR)

        assert result.to_dict()["message"] == "Documents unreadable"
        assert result.to_dict()["error"] == "ServerRejection"
        assert not residential_store.is_submitted


class TestDeleteRemoteProperty:
    def test_deletes_remote_only(self, created, fake_api, residential_store):
        result = created.delete_remote_property()

        assert isinstance(result, PhaseSucceeded)
        assert fake_api.calls_to("delete_property") == [("delete_property", "prop-123")]
        assert residential_store.property_id == "prop-123"
