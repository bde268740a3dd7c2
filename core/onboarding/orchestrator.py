"""
Submission Orchestrator - Remote Submission Sequence for a Draft

Phases, strictly ordered per draft:
1. CREATE       details section -> server-assigned property id (at most once)
2. SAVE_DRAFT   one section at a time, requires the id
3. UPLOAD       pending file records, concurrently, requires the id
4. SUBMIT       requires the id and a freshly complete draft

Rules:
- Phase failures are returned as PhaseFailed, never raised
- Local draft data is never rolled back on a remote failure
- A failed upload never blocks saves or submission
- No automatic retries
"""

from __future__ import annotations

import logging
import threading
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Final, Optional, Union

from core.onboarding.drafts import DraftStore
from core.onboarding.errors import (
    IncompleteDraftError,
    OnboardingError,
    PreconditionError,
    ServerRejection,
)
from core.onboarding.remote import PropertyAPI, UploadedFile, extract_property_id
from core.onboarding.schema import PendingUpload, UploadKind


logger = logging.getLogger(__name__)


DEFAULT_UPLOAD_WORKERS: Final[int] = 4


# =============================================================================
# Result Types
# =============================================================================


class Phase(Enum):
    """Remote submission phase."""

    CREATE = "create"
    SAVE_DRAFT = "save_draft"
    UPLOAD = "upload"
    SUBMIT = "submit"
    DELETE = "delete"


@dataclass(frozen=True)
class PhaseSucceeded:
    """Returned when a remote phase completes."""

    phase: Phase
    property_id: str
    section: Optional[str] = None
    response: dict = field(default_factory=dict, compare=False)

    def to_dict(self) -> dict:
        return {
            "ok": True,
            "phase": self.phase.value,
            "property_id": self.property_id,
            "section": self.section,
        }


@dataclass(frozen=True)
class PhaseFailed:
    """Returned when a phase is refused locally or fails remotely."""

    phase: Phase
    error: OnboardingError
    property_id: Optional[str] = None
    section: Optional[str] = None

    @property
    def retryable(self) -> bool:
        return self.error.retryable

    def to_dict(self) -> dict:
        return {
            "ok": False,
            "phase": self.phase.value,
            "property_id": self.property_id,
            "section": self.section,
            "error": type(self.error).__name__,
            "message": str(self.error),
            "retryable": self.retryable,
        }


PhaseResult = Union[PhaseSucceeded, PhaseFailed]


@dataclass(frozen=True)
class UploadOutcome:
    """Result of uploading one file record."""

    upload: PendingUpload
    uploaded: Optional[UploadedFile] = None
    error: Optional[OnboardingError] = None
    merged: bool = False

    @property
    def succeeded(self) -> bool:
        return self.uploaded is not None and self.error is None

    def to_dict(self) -> dict:
        return {
            **self.upload.to_dict(),
            "succeeded": self.succeeded,
            "merged": self.merged,
            "url": self.uploaded.url if self.uploaded else None,
            "error": str(self.error) if self.error else None,
        }


@dataclass(frozen=True)
class UploadReport:
    """Per-file outcomes of an upload pass."""

    property_id: str
    outcomes: tuple[UploadOutcome, ...] = ()

    @property
    def succeeded(self) -> list[UploadOutcome]:
        return [o for o in self.outcomes if o.succeeded]

    @property
    def failed(self) -> list[UploadOutcome]:
        return [o for o in self.outcomes if not o.succeeded]

    def to_dict(self) -> dict:
        return {
            "ok": True,
            "phase": Phase.UPLOAD.value,
            "property_id": self.property_id,
            "uploaded": len(self.succeeded),
            "failed": len(self.failed),
            "outcomes": [o.to_dict() for o in self.outcomes],
        }


UploadResult = Union[UploadReport, PhaseFailed]


@dataclass(frozen=True)
class SubmissionWarning:
    """Non-blocking warning shown before submit when files are still local."""

    pending: tuple[PendingUpload, ...]
    message: str

    def to_dict(self) -> dict:
        return {
            "pending_count": len(self.pending),
            "message": self.message,
            "pending": [p.to_dict() for p in self.pending],
        }


def build_submission_warning(pending: list[PendingUpload]) -> Optional[SubmissionWarning]:
    """Describe pending uploads as a user-facing warning, or None if nothing is pending."""
    if not pending:
        return None

    photos = sum(1 for p in pending if p.upload_kind == UploadKind.IMAGES)
    videos = sum(1 for p in pending if p.upload_kind == UploadKind.VIDEOS)
    documents = sum(1 for p in pending if p.upload_kind == UploadKind.FILES)

    message = ""
    if photos:
        message += f"{photos} photos are not yet uploaded to the server. "
    if videos:
        message += f"{videos} videos are not yet uploaded to the server. "
    if documents:
        message += f"{documents} documents are not yet uploaded to the server. "
    message += "You can continue, but the files may not be saved properly."

    return SubmissionWarning(pending=tuple(pending), message=message)


# =============================================================================
# Orchestrator
# =============================================================================


class SubmissionOrchestrator:
    """
    Drives the remote submission sequence for one draft store.

    Usage:
        orchestrator = SubmissionOrchestrator(store, HTTPPropertyAPI(base_url))
        result = orchestrator.create_property()

        if isinstance(result, PhaseSucceeded):
            orchestrator.save_section("pricing_valuation")
    """

    def __init__(
        self,
        store: DraftStore,
        api: PropertyAPI,
        max_workers: int = DEFAULT_UPLOAD_WORKERS,
    ):
        """
        Args:
            store: Draft store to read from and write the id back to
            api: Remote property service
            max_workers: Concurrent uploads
        """
        self._store = store
        self._api = api
        self._max_workers = max(1, max_workers)
        self._create_lock = threading.Lock()

    @property
    def store(self) -> DraftStore:
        return self._store

    def _require_property_id(self, phase: Phase, section: Optional[str] = None) -> Union[str, PhaseFailed]:
        property_id = self._store.property_id
        if property_id is None:
            return PhaseFailed(
                phase=phase,
                error=PreconditionError("Property has not been created yet"),
                section=section,
            )
        return property_id

    # =========================================================================
    # Phases
    # =========================================================================

    def create_property(self) -> PhaseResult:
        """
        CREATE phase: send the details section and record the returned id.

        Refused without a remote call if the draft already has an id. Concurrent
        calls are serialised, so the remote create runs at most once.
        """
        with self._create_lock:
            return self._create_property()

    def _create_property(self) -> PhaseResult:
        existing = self._store.property_id
        if existing is not None:
            return PhaseFailed(
                phase=Phase.CREATE,
                error=PreconditionError(f"Property already created as {existing}"),
                property_id=existing,
            )

        draft = self._store.snapshot()
        payload = self._store.flow.create_payload(draft)
        try:
            response = self._api.create_property(payload)
        except OnboardingError as e:
            logger.warning("Create %s property failed: %s", draft.kind.value, e)
            return PhaseFailed(phase=Phase.CREATE, error=e)

        property_id = extract_property_id(response)
        if property_id is None:
            return PhaseFailed(
                phase=Phase.CREATE,
                error=ServerRejection("Property created but no id was returned"),
            )

        try:
            self._store.set_property_id(property_id)
        except PreconditionError as e:
            return PhaseFailed(phase=Phase.CREATE, error=e, property_id=self._store.property_id)

        return PhaseSucceeded(phase=Phase.CREATE, property_id=property_id, response=response)

    def save_section(self, section: str) -> PhaseResult:
        """
        SAVE_DRAFT phase for one section.

        Raises:
            KeyError: If the section does not exist for the flow
        """
        required = self._require_property_id(Phase.SAVE_DRAFT, section)
        if isinstance(required, PhaseFailed):
            return required
        property_id = required

        draft = self._store.snapshot()
        payload = self._store.flow.section_payload(draft, section)
        try:
            response = self._api.save_draft(property_id, payload)
        except OnboardingError as e:
            logger.warning("Save %s for %s failed: %s", section, property_id, e)
            return PhaseFailed(phase=Phase.SAVE_DRAFT, error=e, property_id=property_id, section=section)

        logger.info("Saved %s for %s", section, property_id)
        return PhaseSucceeded(
            phase=Phase.SAVE_DRAFT, property_id=property_id, section=section, response=response
        )

    def save_all_sections(self) -> list[PhaseResult]:
        """Save every section in wizard order, stopping at the first failure."""
        results: list[PhaseResult] = []
        for section in self._store.flow.required_sections:
            result = self.save_section(section)
            results.append(result)
            if isinstance(result, PhaseFailed):
                break
        return results

    def pending_uploads(self) -> list[PendingUpload]:
        return self._store.pending_uploads()

    def submission_warning(self) -> Optional[SubmissionWarning]:
        """Warning to show before submit if any picked files are still local."""
        return build_submission_warning(self._store.pending_uploads())

    def upload_pending_files(self) -> UploadResult:
        """
        UPLOAD phase: send every pending file record concurrently.

        Each file is uploaded independently. Successes are merged back into
        the draft unless the record changed meanwhile; failures are reported
        per file.
        """
        required = self._require_property_id(Phase.UPLOAD)
        if isinstance(required, PhaseFailed):
            return required
        property_id = required

        pending = self._store.pending_uploads()
        if not pending:
            return UploadReport(property_id=property_id)

        workers = min(self._max_workers, len(pending))
        with ThreadPoolExecutor(max_workers=workers) as executor:
            outcomes = list(
                executor.map(lambda upload: self._upload_one(property_id, upload), pending)
            )

        report = UploadReport(property_id=property_id, outcomes=tuple(outcomes))
        logger.info(
            "Uploaded %d/%d files for %s", len(report.succeeded), len(outcomes), property_id
        )
        return report

    def _upload_one(self, property_id: str, upload: PendingUpload) -> UploadOutcome:
        try:
            uploaded = self._api.upload_files(
                property_id, upload.upload_kind, [upload], file_type=upload.file_type
            )[0]
        except OnboardingError as e:
            logger.warning("Upload of %s failed: %s", upload.name or upload.uri, e)
            return UploadOutcome(upload=upload, error=e)

        merged = self._store.merge_file_record(
            upload.section, upload.field, upload.index, upload.uri, uploaded.url, uploaded.key
        )
        return UploadOutcome(upload=upload, uploaded=uploaded, merged=merged)

    def submit_for_review(self, current_year: Optional[int] = None) -> PhaseResult:
        """
        SUBMIT phase.

        Requires the property id and a complete draft, re-validated now.
        On success the draft is marked submitted, which notifies registry sync.
        """
        required = self._require_property_id(Phase.SUBMIT)
        if isinstance(required, PhaseFailed):
            return required
        property_id = required

        report = self._store.get_completion_report(current_year)
        if not report.ready_to_submit:
            return PhaseFailed(
                phase=Phase.SUBMIT,
                error=IncompleteDraftError(report.incomplete_sections),
                property_id=property_id,
            )

        try:
            response = self._api.submit_for_review(property_id)
        except OnboardingError as e:
            logger.warning("Submit %s for review failed: %s", property_id, e)
            return PhaseFailed(phase=Phase.SUBMIT, error=e, property_id=property_id)

        self._store.submit_property()
        return PhaseSucceeded(phase=Phase.SUBMIT, property_id=property_id, response=response)

    def delete_remote_property(self) -> PhaseResult:
        """Delete the draft's remote property. The local draft is left untouched."""
        required = self._require_property_id(Phase.DELETE)
        if isinstance(required, PhaseFailed):
            return required
        property_id = required

        try:
            response: dict[str, Any] = self._api.delete_property(property_id)
        except OnboardingError as e:
            logger.warning("Delete %s failed: %s", property_id, e)
            return PhaseFailed(phase=Phase.DELETE, error=e, property_id=property_id)
        return PhaseSucceeded(phase=Phase.DELETE, property_id=property_id, response=response)
