"""
Shared route helpers: session lookup, path parsing and error mapping.
"""

from __future__ import annotations

from fastapi import HTTPException, Request

from core.onboarding import (
    IncompleteDraftError,
    InvalidTransitionError,
    NetworkError,
    OnboardingError,
    OnboardingSession,
    PreconditionError,
    PropertyKind,
    RegistryEntryNotFound,
    ServerRejection,
)


def get_session(request: Request) -> OnboardingSession:
    """FastAPI dependency returning the app's onboarding session."""
    session = getattr(request.app.state, "session", None)
    if session is None:
        session = OnboardingSession.from_config()
        request.app.state.session = session
    return session


def parse_kind(kind: str) -> PropertyKind:
    """
    Parse the {kind} path segment.

    Raises:
        HTTPException(404) for unknown property kinds
    """
    try:
        return PropertyKind(kind)
    except ValueError:
        raise HTTPException(status_code=404, detail=f"Unknown property type: {kind}")


def status_code_for(error: OnboardingError) -> int:
    """HTTP status for a workflow error."""
    if isinstance(error, IncompleteDraftError):
        return 422
    if isinstance(error, PreconditionError):
        return 409
    if isinstance(error, NetworkError):
        return 503
    if isinstance(error, ServerRejection):
        return 502
    if isinstance(error, RegistryEntryNotFound):
        return 404
    if isinstance(error, InvalidTransitionError):
        return 400
    return 500


def error_detail(error: OnboardingError) -> dict:
    """Response body for a workflow error. Server messages are passed through verbatim."""
    return {
        "error": type(error).__name__,
        "message": str(error),
        "retryable": error.retryable,
    }
