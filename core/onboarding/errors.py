"""
Onboarding Errors - Typed Failures for the Draft/Submission Workflow

Field validation never raises: it returns FieldError values (see
core.onboarding.validation). The exceptions here cover workflow misuse,
remote failures and registry lifecycle violations.

Taxonomy:
- PreconditionError: an operation was attempted out of order
  (no property id yet, id already assigned, draft incomplete or submitted)
- NetworkError: transport failure, safe to retry manually
- ServerRejection: the remote API refused the request
- InvalidTransitionError / RegistryEntryNotFound: lifecycle misuse
"""

from __future__ import annotations

from typing import Optional


class OnboardingError(Exception):
    """Base class for all onboarding workflow errors."""

    retryable: bool = False


# =============================================================================
# Preconditions
# =============================================================================


class PreconditionError(OnboardingError):
    """Raised when a phase runs before the state it depends on exists."""


class PropertyIdConflictError(PreconditionError):
    """Raised when a draft already carries a different server-assigned id."""

    def __init__(self, current_id: str, new_id: str):
        self.current_id = current_id
        self.new_id = new_id
        super().__init__(
            f"Draft already has property id {current_id}; refusing to replace it with {new_id}"
        )


class DraftLockedError(PreconditionError):
    """Raised when a submitted draft is edited before a new flow begins."""

    def __init__(self, kind: str, property_id: Optional[str]):
        self.property_id = property_id
        super().__init__(
            f"The {kind} draft for property {property_id} has been submitted; "
            "start a new listing to make changes"
        )


class IncompleteDraftError(PreconditionError):
    """Raised when submit-for-review is attempted on an incomplete draft."""

    def __init__(self, incomplete_sections: list[str]):
        self.incomplete_sections = list(incomplete_sections)
        super().__init__(
            "Please complete all sections before submitting: "
            + ", ".join(self.incomplete_sections)
        )


# =============================================================================
# Remote Failures
# =============================================================================


class NetworkError(OnboardingError):
    """Transport-level failure talking to the property API."""

    retryable = True


class ServerRejection(OnboardingError):
    """
    The property API answered but refused the request.

    The server's message is kept verbatim so it can be shown to the user.
    """

    def __init__(self, message: str, status_code: Optional[int] = None):
        self.message = message
        self.status_code = status_code
        super().__init__(message)


# =============================================================================
# Registry Lifecycle
# =============================================================================


class RegistryEntryNotFound(OnboardingError):
    """No registry entry exists with the given id."""

    def __init__(self, entry_id: str):
        self.entry_id = entry_id
        super().__init__(f"Property {entry_id} not found")


class InvalidTransitionError(OnboardingError):
    """A registry status or flag change that the lifecycle does not allow."""
