"""
Registry Routes - Web API for the Homeowner Property List

Lists, edits and deletes registry entries, and applies lifecycle changes:
approval status, enabled flag and fractionalization pause.
"""

from __future__ import annotations

from typing import Any, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel

from core.onboarding import (
    DisplayMetrics,
    OnboardingSession,
    PropertyKind,
    RegistryEntry,
    RegistryStatus,
    StatusLifecycleManager,
    SyncCreated,
    SyncDuplicate,
)
from utils.formatting import format_currency, format_percent, format_square_footage
from web.dependencies import get_session


# =============================================================================
# Router Setup
# =============================================================================

router = APIRouter(prefix="/registry", tags=["registry"])


class StatusUpdate(BaseModel):
    status: str
    rejection_reason: Optional[str] = None
    monthly_earnings: Optional[int] = None
    occupancy_rate: Optional[int] = None
    bookings_count: Optional[int] = None


class EnabledUpdate(BaseModel):
    enabled: bool


class PauseRequest(BaseModel):
    reason: str


class EntryUpdate(BaseModel):
    changes: dict[str, Any]


def entry_view(entry: RegistryEntry, include_draft: bool = False) -> dict:
    """Entry as JSON with display-formatted price and occupancy."""
    data = entry.to_dict()
    if not include_draft:
        data.pop("draft", None)
    data["price_display"] = format_currency(entry.price)
    data["occupancy_display"] = format_percent(entry.occupancy_rate)
    data["square_footage_display"] = format_square_footage(entry.square_footage)
    data["can_delete"] = StatusLifecycleManager.can_delete(entry)
    return data


# =============================================================================
# Queries
# =============================================================================


@router.get("")
def list_properties(
    status: Optional[str] = Query(None, description="Filter by approval status"),
    property_type: Optional[str] = Query(None, alias="type", description="Filter by property type"),
    session: OnboardingSession = Depends(get_session),
):
    """List registry entries, newest first."""
    entries = session.registry.list_all()
    if status:
        try:
            wanted = RegistryStatus(status)
        except ValueError:
            raise HTTPException(status_code=400, detail=f"Invalid status: {status}")
        entries = [e for e in entries if e.status == wanted]
    if property_type:
        try:
            kind = PropertyKind(property_type)
        except ValueError:
            raise HTTPException(status_code=400, detail=f"Invalid property type: {property_type}")
        entries = [e for e in entries if e.type == kind]
    return {"properties": [entry_view(e) for e in entries], "count": len(entries)}


@router.get("/metrics")
def dashboard_metrics(session: OnboardingSession = Depends(get_session)):
    """Dashboard totals and the most recent approved properties."""
    metrics = session.registry.get_dashboard_metrics()
    return {
        **metrics.to_dict(),
        "total_earnings_display": format_currency(metrics.total_earnings),
        "recent_properties": [entry_view(e) for e in session.registry.get_recent_properties()],
    }


@router.post("/sync")
def sync_registry(session: OnboardingSession = Depends(get_session)):
    """Add any submitted drafts that are missing from the registry."""
    results = session.sync_submitted()
    return {
        "created": [entry_view(r.entry) for r in results if isinstance(r, SyncCreated)],
        "existing": [r.entry.id for r in results if isinstance(r, SyncDuplicate)],
    }


@router.get("/{entry_id}")
def get_property(entry_id: str, session: OnboardingSession = Depends(get_session)):
    return entry_view(session.registry.require(entry_id), include_draft=True)


# =============================================================================
# Edits
# =============================================================================


@router.patch("/{entry_id}")
def update_property(
    entry_id: str,
    update: EntryUpdate,
    session: OnboardingSession = Depends(get_session),
):
    """Edit display fields. Status and flags have their own endpoints."""
    try:
        entry = session.registry.update_property(entry_id, update.changes)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return entry_view(entry)


@router.delete("/{entry_id}")
def delete_property(entry_id: str, session: OnboardingSession = Depends(get_session)):
    if not session.lifecycle.delete_property(entry_id):
        raise HTTPException(status_code=404, detail=f"Property {entry_id} not found")
    return {"deleted": entry_id}


# =============================================================================
# Lifecycle
# =============================================================================


@router.post("/{entry_id}/status")
def update_status(
    entry_id: str,
    update: StatusUpdate,
    session: OnboardingSession = Depends(get_session),
):
    """Approve or reject a pending property."""
    try:
        new_status = RegistryStatus(update.status)
    except ValueError:
        raise HTTPException(status_code=400, detail=f"Invalid status: {update.status}")

    metrics = None
    if update.monthly_earnings is not None:
        metrics = DisplayMetrics(
            monthly_earnings=update.monthly_earnings,
            occupancy_rate=update.occupancy_rate or 0,
            bookings_count=update.bookings_count or 0,
        )

    entry = session.lifecycle.update_property_status(
        entry_id, new_status, rejection_reason=update.rejection_reason, metrics=metrics
    )
    return entry_view(entry)


@router.post("/{entry_id}/enabled")
def set_enabled(
    entry_id: str,
    update: EnabledUpdate,
    session: OnboardingSession = Depends(get_session),
):
    return entry_view(session.lifecycle.set_enabled(entry_id, update.enabled))


@router.post("/{entry_id}/pause")
def pause_fractionalization(
    entry_id: str,
    pause: PauseRequest,
    session: OnboardingSession = Depends(get_session),
):
    """Pause fractional ownership on an approved property. There is no resume."""
    return entry_view(session.lifecycle.pause_fractionalization(entry_id, pause.reason))
