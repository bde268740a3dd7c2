"""
Draft Routes - Web API for the Property Wizard

The wizard screens drive a draft through these endpoints:
- section edits (saved locally on every change)
- validation and completion checks
- the remote phases: create, save, upload, submit

Remote phase failures come back as HTTP errors carrying the typed error name
and the server's message. Local draft data is never rolled back.
"""

from __future__ import annotations

from typing import Any, Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel

from core.onboarding import (
    DraftLockedError,
    DraftStore,
    OnboardingSession,
    PhaseFailed,
    PhaseResult,
    UploadReport,
)
from web.dependencies import error_detail, get_session, parse_kind, status_code_for


# =============================================================================
# Router Setup
# =============================================================================

router = APIRouter(prefix="/drafts", tags=["drafts"])


class SectionUpdate(BaseModel):
    """Partial section data; fields not present keep their stored values."""

    data: dict[str, Any]


def _store(kind: str, session: OnboardingSession) -> DraftStore:
    return session.store(parse_kind(kind))


def _require_section(store: DraftStore, section: str) -> None:
    if section not in store.flow.default_sections:
        raise HTTPException(
            status_code=404,
            detail=f"Unknown section '{section}' for {store.kind.value} property",
        )


def _phase_response(result: PhaseResult) -> dict:
    """Return a successful phase as JSON or raise its failure as an HTTP error."""
    if isinstance(result, PhaseFailed):
        raise HTTPException(
            status_code=status_code_for(result.error),
            detail={**error_detail(result.error), "phase": result.phase.value},
        )
    return result.to_dict()


def _draft_view(store: DraftStore) -> dict:
    draft = store.snapshot()
    return {
        "draft": draft.to_dict(),
        "completion": store.get_completion_report().to_dict(),
    }


# =============================================================================
# Draft State
# =============================================================================


@router.get("/{kind}")
def get_draft(kind: str, session: OnboardingSession = Depends(get_session)):
    """Current draft and its completion status."""
    return _draft_view(_store(kind, session))


@router.post("/{kind}/begin")
def begin_flow(kind: str, session: OnboardingSession = Depends(get_session)):
    """
    Start or resume the wizard.

    A draft left over from a completed submission is reset first.
    """
    store = _store(kind, session)
    store.begin_flow()
    return _draft_view(store)


@router.post("/{kind}/reset")
def reset_draft(kind: str, session: OnboardingSession = Depends(get_session)):
    """Discard the draft and start from defaults."""
    store = _store(kind, session)
    store.reset_store()
    return _draft_view(store)


# =============================================================================
# Sections
# =============================================================================


@router.patch("/{kind}/sections/{section}")
def update_section(
    kind: str,
    section: str,
    update: SectionUpdate,
    session: OnboardingSession = Depends(get_session),
):
    """
    Merge partial data into a section.

    Returns the merged section, the errors still shown against its inputs
    (edited inputs are cleared) and whether the section can be left.
    """
    store = _store(kind, session)
    _require_section(store, section)
    try:
        merged = store.update_section(section, update.data)
    except DraftLockedError as e:
        raise HTTPException(status_code=status_code_for(e), detail=error_detail(e))
    return {
        "section": section,
        "data": merged,
        "errors": {name: err.to_dict() for name, err in store.shown_errors(section).items()},
        "can_proceed": store.can_proceed(section),
    }


@router.get("/{kind}/sections/{section}/validation")
def validate_section(
    kind: str,
    section: str,
    year: Optional[int] = None,
    session: OnboardingSession = Depends(get_session),
):
    """Validate a section and show its field errors."""
    store = _store(kind, session)
    _require_section(store, section)
    return store.validate_section(section, current_year=year).to_dict()


@router.get("/{kind}/completion")
def completion(kind: str, session: OnboardingSession = Depends(get_session)):
    """Per-section completeness and overall readiness."""
    return _store(kind, session).get_completion_report().to_dict()


# =============================================================================
# Remote Phases
# =============================================================================


@router.post("/{kind}/create")
def create_property(kind: str, session: OnboardingSession = Depends(get_session)):
    """Create the remote property from the details section."""
    return _phase_response(session.orchestrator(parse_kind(kind)).create_property())


@router.post("/{kind}/sections/{section}/save")
def save_section(kind: str, section: str, session: OnboardingSession = Depends(get_session)):
    """Send one section to the property service."""
    orchestrator = session.orchestrator(parse_kind(kind))
    _require_section(orchestrator.store, section)
    return _phase_response(orchestrator.save_section(section))


@router.get("/{kind}/uploads/pending")
def pending_uploads(kind: str, session: OnboardingSession = Depends(get_session)):
    """Files picked locally but not yet uploaded, with the pre-submit warning."""
    orchestrator = session.orchestrator(parse_kind(kind))
    warning = orchestrator.submission_warning()
    return {
        "pending": [p.to_dict() for p in orchestrator.pending_uploads()],
        "warning": warning.message if warning else None,
    }


@router.post("/{kind}/uploads")
def upload_files(kind: str, session: OnboardingSession = Depends(get_session)):
    """
    Upload every pending file.

    Responds 200 even if some files fail; see each outcome.
    """
    result = session.orchestrator(parse_kind(kind)).upload_pending_files()
    if isinstance(result, UploadReport):
        return result.to_dict()
    return _phase_response(result)


@router.post("/{kind}/submit")
def submit_for_review(kind: str, session: OnboardingSession = Depends(get_session)):
    """Submit the completed draft for review and add it to the registry."""
    return _phase_response(session.orchestrator(parse_kind(kind)).submit_for_review())


@router.delete("/{kind}/remote")
def delete_remote_property(kind: str, session: OnboardingSession = Depends(get_session)):
    """Delete the remote property created for this draft."""
    return _phase_response(session.orchestrator(parse_kind(kind)).delete_remote_property())
