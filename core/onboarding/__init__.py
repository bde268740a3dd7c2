"""
Property Onboarding - Draft and Submission Workflow

Walks a homeowner's property from an in-progress wizard draft to an entry in
their property list.

Principles:
1. Drafts are durable and always editable locally
2. The server-assigned property id is the gate for every remote phase
3. Completeness is re-validated at every gate, never cached
4. Registry sync is idempotent
5. Approval status and the enabled/paused flags are independent
"""

from core.onboarding.schema import (
    PropertyKind,
    RegistryStatus,
    UploadKind,
    PropertyDraft,
    PendingUpload,
    is_pending_upload,
)
from core.onboarding.errors import (
    OnboardingError,
    PreconditionError,
    PropertyIdConflictError,
    DraftLockedError,
    IncompleteDraftError,
    NetworkError,
    ServerRejection,
    RegistryEntryNotFound,
    InvalidTransitionError,
)
from core.onboarding.validation import (
    ErrorKind,
    FieldError,
    FieldErrorState,
    SectionValidationResult,
)
from core.onboarding.flows import PropertyFlow, get_flow
from core.onboarding.residential import RESIDENTIAL_FLOW
from core.onboarding.commercial import COMMERCIAL_FLOW
from core.onboarding.completion import (
    CompletionReport,
    get_completion_status,
    is_all_sections_complete,
)
from core.onboarding.storage import DraftStorage
from core.onboarding.drafts import DraftStore, DraftSubmitted
from core.onboarding.remote import PropertyAPI, HTTPPropertyAPI, UploadedFile
from core.onboarding.orchestrator import (
    Phase,
    PhaseSucceeded,
    PhaseFailed,
    PhaseResult,
    UploadOutcome,
    UploadReport,
    SubmissionWarning,
    SubmissionOrchestrator,
)
from core.onboarding.registry import (
    RegistryEntry,
    DashboardMetrics,
    HomeownerRegistry,
    RegistrySync,
    SyncCreated,
    SyncDuplicate,
    SyncSkipped,
    SyncResult,
)
from core.onboarding.lifecycle import (
    DisplayMetrics,
    StatusLifecycleManager,
    random_metrics,
)
from core.onboarding.session import OnboardingSession

__all__ = [
    # Schema
    "PropertyKind",
    "RegistryStatus",
    "UploadKind",
    "PropertyDraft",
    "PendingUpload",
    "is_pending_upload",
    # Errors
    "OnboardingError",
    "PreconditionError",
    "PropertyIdConflictError",
    "DraftLockedError",
    "IncompleteDraftError",
    "NetworkError",
    "ServerRejection",
    "RegistryEntryNotFound",
    "InvalidTransitionError",
    # Validation
    "ErrorKind",
    "FieldError",
    "FieldErrorState",
    "SectionValidationResult",
    # Flows
    "PropertyFlow",
    "get_flow",
    "RESIDENTIAL_FLOW",
    "COMMERCIAL_FLOW",
    # Completion
    "CompletionReport",
    "get_completion_status",
    "is_all_sections_complete",
    # Drafts
    "DraftStorage",
    "DraftStore",
    "DraftSubmitted",
    # Remote
    "PropertyAPI",
    "HTTPPropertyAPI",
    "UploadedFile",
    # Orchestration
    "Phase",
    "PhaseSucceeded",
    "PhaseFailed",
    "PhaseResult",
    "UploadOutcome",
    "UploadReport",
    "SubmissionWarning",
    "SubmissionOrchestrator",
    # Registry
    "RegistryEntry",
    "DashboardMetrics",
    "HomeownerRegistry",
    "RegistrySync",
    "SyncCreated",
    "SyncDuplicate",
    "SyncSkipped",
    "SyncResult",
    # Lifecycle
    "DisplayMetrics",
    "StatusLifecycleManager",
    "random_metrics",
    # Session
    "OnboardingSession",
]
