"""
Property Onboarding - Core Business Logic

This package provides the onboarding workflow:
1. Drafts (per-type wizard state, durable)
2. Section validation and completion
3. Remote submission (create, save, upload, submit)
4. Homeowner registry sync
5. Status lifecycle (approval, enabled, paused)
"""

from .onboarding import (
    PropertyKind,
    RegistryStatus,
    PropertyDraft,
    DraftStore,
    SubmissionOrchestrator,
    HomeownerRegistry,
    RegistrySync,
    StatusLifecycleManager,
    OnboardingSession,
)

__all__ = [
    "PropertyKind",
    "RegistryStatus",
    "PropertyDraft",
    "DraftStore",
    "SubmissionOrchestrator",
    "HomeownerRegistry",
    "RegistrySync",
    "StatusLifecycleManager",
    "OnboardingSession",
]
