"""
Homeowner Property Registry - Unified List of Submitted Properties

One list across residential and commercial submissions, with JSON file
persistence. Entries are created only by RegistrySync from submitted drafts;
afterwards they change only through the StatusLifecycleManager or explicit
edit/delete.

At most one entry exists per (type, title) pair and per remote property id.
Two different properties with the same title collapse into one entry; see
DESIGN.md.
"""

from __future__ import annotations

import copy
import json
import logging
import threading
import uuid
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Any, Callable, Final, Iterable, Optional, Union

from core.onboarding.drafts import DraftStore, DraftSubmitted
from core.onboarding.errors import RegistryEntryNotFound
from core.onboarding.flows import get_flow
from core.onboarding.schema import PropertyDraft, PropertyKind, RegistryStatus


logger = logging.getLogger(__name__)


# Fields an explicit edit may change. Status and flags go through the lifecycle.
EDITABLE_FIELDS: Final[frozenset[str]] = frozenset({
    "title",
    "location",
    "image",
    "price",
    "bedrooms",
    "bathrooms",
    "square_footage",
})

DEFAULT_RECENT_LIMIT: Final[int] = 4


def generate_entry_id(kind: PropertyKind) -> str:
    """Generate a registry entry id, e.g. residential-3f2a9c1b7d4e."""
    return f"{kind.value}-{uuid.uuid4().hex[:12]}"


# =============================================================================
# Registry Entry
# =============================================================================


@dataclass
class RegistryEntry:
    """A property in the homeowner's list."""

    id: str
    type: PropertyKind
    title: str
    location: str
    created_at: datetime
    status: RegistryStatus = RegistryStatus.PENDING
    enabled: bool = True
    rejection_reason: Optional[str] = None

    # Display metrics
    monthly_earnings: int = 0
    occupancy_rate: int = 0
    bookings_count: int = 0

    # Display details
    image: Optional[str] = None
    price: Optional[float] = None
    bedrooms: Optional[int] = None
    bathrooms: Optional[float] = None
    square_footage: Optional[float] = None

    # Fractionalization pause
    paused: bool = False
    pause_reason: Optional[str] = None
    paused_at: Optional[datetime] = None

    property_id: Optional[str] = None
    draft: dict = field(default_factory=dict)
    updated_at: Optional[datetime] = None

    @property
    def key(self) -> tuple[PropertyKind, str]:
        """Dedup key."""
        return self.type, self.title

    def to_dict(self) -> dict:
        """Convert entry to dictionary for serialisation."""
        return {
            "id": self.id,
            "type": self.type.value,
            "title": self.title,
            "location": self.location,
            "created_at": self.created_at.isoformat(),
            "status": self.status.value,
            "enabled": self.enabled,
            "rejection_reason": self.rejection_reason,
            "monthly_earnings": self.monthly_earnings,
            "occupancy_rate": self.occupancy_rate,
            "bookings_count": self.bookings_count,
            "image": self.image,
            "price": self.price,
            "bedrooms": self.bedrooms,
            "bathrooms": self.bathrooms,
            "square_footage": self.square_footage,
            "paused": self.paused,
            "pause_reason": self.pause_reason,
            "paused_at": self.paused_at.isoformat() if self.paused_at else None,
            "property_id": self.property_id,
            "draft": copy.deepcopy(self.draft),
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "RegistryEntry":
        """Create entry from dictionary."""
        paused_at = data.get("paused_at")
        updated_at = data.get("updated_at")
        return cls(
            id=data["id"],
            type=PropertyKind(data["type"]),
            title=data["title"],
            location=data.get("location", ""),
            created_at=datetime.fromisoformat(data["created_at"]),
            status=RegistryStatus(data.get("status", RegistryStatus.PENDING.value)),
            enabled=data.get("enabled", True),
            rejection_reason=data.get("rejection_reason"),
            monthly_earnings=data.get("monthly_earnings", 0),
            occupancy_rate=data.get("occupancy_rate", 0),
            bookings_count=data.get("bookings_count", 0),
            image=data.get("image"),
            price=data.get("price"),
            bedrooms=data.get("bedrooms"),
            bathrooms=data.get("bathrooms"),
            square_footage=data.get("square_footage"),
            paused=data.get("paused", False),
            pause_reason=data.get("pause_reason"),
            paused_at=datetime.fromisoformat(paused_at) if paused_at else None,
            property_id=data.get("property_id"),
            draft=data.get("draft") or {},
            updated_at=datetime.fromisoformat(updated_at) if updated_at else None,
        )


@dataclass(frozen=True)
class DashboardMetrics:
    """Headline numbers for the homeowner dashboard."""

    total_properties: int
    pending_approvals: int
    total_earnings: int
    active_bookings: int

    def to_dict(self) -> dict:
        return {
            "total_properties": self.total_properties,
            "pending_approvals": self.pending_approvals,
            "total_earnings": self.total_earnings,
            "active_bookings": self.active_bookings,
        }


# =============================================================================
# Registry
# =============================================================================


class HomeownerRegistry:
    """
    Storage and queries for registry entries.

    Uses in-memory storage with optional JSON file persistence.
    """

    def __init__(self, persist_path: Optional[str] = None):
        """
        Initialise registry.

        Args:
            persist_path: Optional path to persist entries to a JSON file
        """
        self._entries: dict[str, RegistryEntry] = {}
        self._persist_path = Path(persist_path) if persist_path else None
        self._lock = threading.RLock()

        if self._persist_path and self._persist_path.exists():
            self._load_from_file()

    def _save_to_file(self) -> None:
        """Persist entries to file."""
        if not self._persist_path:
            return

        data = {
            "properties": [entry.to_dict() for entry in self._entries.values()],
            "saved_at": datetime.utcnow().isoformat(),
        }

        self._persist_path.parent.mkdir(parents=True, exist_ok=True)
        self._persist_path.write_text(json.dumps(data, indent=2))

    def _load_from_file(self) -> None:
        """Load entries from file."""
        try:
            data = json.loads(self._persist_path.read_text())
            for entry_data in data.get("properties", []):
                entry = RegistryEntry.from_dict(entry_data)
                self._entries[entry.id] = entry
        except (json.JSONDecodeError, KeyError, ValueError) as e:
            logger.warning("Could not load registry data from %s: %s", self._persist_path, e)

    # =========================================================================
    # CRUD Operations
    # =========================================================================

    def add(self, entry: RegistryEntry) -> RegistryEntry:
        """
        Add a new entry.

        Raises:
            ValueError: If the id or the (type, title) pair already exists
        """
        with self._lock:
            if entry.id in self._entries:
                raise ValueError(f"Property {entry.id} already exists")
            if self.find_by_key(entry.type, entry.title) is not None:
                raise ValueError(f"A {entry.type.value} property titled '{entry.title}' already exists")
            self._entries[entry.id] = entry
            self._save_to_file()
            return entry

    def add_if_absent(self, entry: RegistryEntry) -> tuple[RegistryEntry, bool]:
        """
        Insert entry unless its property id or (type, title) pair exists.

        Returns:
            (entry in the registry, True if it was inserted)
        """
        with self._lock:
            existing = self.find_existing(entry.type, entry.title, entry.property_id)
            if existing is not None:
                return existing, False
            return self.add(entry), True

    def get(self, entry_id: str) -> Optional[RegistryEntry]:
        return self._entries.get(entry_id)

    def require(self, entry_id: str) -> RegistryEntry:
        """
        Get an entry or fail.

        Raises:
            RegistryEntryNotFound: If no entry has the id
        """
        entry = self._entries.get(entry_id)
        if entry is None:
            raise RegistryEntryNotFound(entry_id)
        return entry

    def find_by_key(self, kind: PropertyKind, title: str) -> Optional[RegistryEntry]:
        """Find the entry for a (type, title) pair."""
        for entry in self._entries.values():
            if entry.type == kind and entry.title == title:
                return entry
        return None

    def find_by_property_id(self, kind: PropertyKind, property_id: str) -> Optional[RegistryEntry]:
        """Find the entry created from a remote property of the given type."""
        for entry in self._entries.values():
            if entry.type == kind and entry.property_id == property_id:
                return entry
        return None

    def find_existing(
        self, kind: PropertyKind, title: str, property_id: Optional[str] = None
    ) -> Optional[RegistryEntry]:
        """Entry for the same remote property, else for the same (type, title) pair."""
        if property_id:
            entry = self.find_by_property_id(kind, property_id)
            if entry is not None:
                return entry
        return self.find_by_key(kind, title)

    def apply_changes(self, entry_id: str, **changes: Any) -> RegistryEntry:
        """
        Set attributes on an entry and persist.

        No rules are enforced here; callers are the lifecycle manager and
        update_property.

        Raises:
            RegistryEntryNotFound: If no entry has the id
        """
        with self._lock:
            entry = self.require(entry_id)
            for name, value in changes.items():
                setattr(entry, name, value)
            entry.updated_at = datetime.utcnow()
            self._save_to_file()
            return entry

    def update_property(self, entry_id: str, changes: dict[str, Any]) -> RegistryEntry:
        """
        Explicit edit of an entry's display fields.

        Raises:
            RegistryEntryNotFound: If no entry has the id
            ValueError: If changes touch a non-editable field, or the new title
                is taken by another entry of the same type
        """
        invalid = set(changes) - EDITABLE_FIELDS
        if invalid:
            raise ValueError(f"Fields cannot be edited directly: {sorted(invalid)}")
        with self._lock:
            entry = self.require(entry_id)
            if "title" in changes:
                other = self.find_by_key(entry.type, changes["title"])
                if other is not None and other.id != entry_id:
                    raise ValueError(
                        f"A {entry.type.value} property titled '{changes['title']}' already exists"
                    )
            return self.apply_changes(entry_id, **changes)

    def delete(self, entry_id: str) -> bool:
        """
        Delete an entry.

        Returns:
            True if deleted, False if not found
        """
        with self._lock:
            if entry_id in self._entries:
                del self._entries[entry_id]
                self._save_to_file()
                return True
            return False

    # =========================================================================
    # Query Operations
    # =========================================================================

    def list_all(self) -> list[RegistryEntry]:
        """Get all entries, newest first."""
        return sorted(self._entries.values(), key=lambda e: e.created_at, reverse=True)

    def list_by_status(self, status: RegistryStatus) -> list[RegistryEntry]:
        return [e for e in self.list_all() if e.status == status]

    def list_by_type(self, kind: PropertyKind) -> list[RegistryEntry]:
        return [e for e in self.list_all() if e.type == kind]

    def get_recent_properties(self, limit: int = DEFAULT_RECENT_LIMIT) -> list[RegistryEntry]:
        """Most recent approved entries."""
        return self.list_by_status(RegistryStatus.APPROVED)[:limit]

    def count(self) -> int:
        return len(self._entries)

    def get_dashboard_metrics(self) -> DashboardMetrics:
        """
        Compute dashboard metrics.

        Earnings and bookings count approved entries only.
        """
        entries = list(self._entries.values())
        approved = [e for e in entries if e.status == RegistryStatus.APPROVED]
        return DashboardMetrics(
            total_properties=len(entries),
            pending_approvals=sum(1 for e in entries if e.status == RegistryStatus.PENDING),
            total_earnings=sum(e.monthly_earnings for e in approved),
            active_bookings=sum(e.bookings_count for e in approved),
        )


# =============================================================================
# Registry Sync
# =============================================================================


@dataclass(frozen=True)
class SyncCreated:
    """Returned when a submitted draft produced a new registry entry."""

    entry: RegistryEntry


@dataclass(frozen=True)
class SyncDuplicate:
    """Returned when an entry for the draft already exists (same property id or title). No-op."""

    entry: RegistryEntry


@dataclass(frozen=True)
class SyncSkipped:
    """Returned when the draft is not eligible for the registry."""

    kind: PropertyKind
    reason: str


SyncResult = Union[SyncCreated, SyncDuplicate, SyncSkipped]


class RegistrySync:
    """
    Turns submitted drafts into registry entries, idempotently.

    Usage:
        sync = RegistrySync(registry)
        sync.attach(residential_store)   # sync on every submit
        sync.sync_all([residential_store, commercial_store])   # replay
    """

    def __init__(
        self,
        registry: HomeownerRegistry,
        id_factory: Callable[[PropertyKind], str] = generate_entry_id,
    ):
        self._registry = registry
        self._id_factory = id_factory

    def sync(self, draft: PropertyDraft) -> SyncResult:
        """
        Create the registry entry for a submitted draft if none exists.

        Safe to call any number of times for the same draft.
        """
        if not draft.is_submitted:
            return SyncSkipped(kind=draft.kind, reason="Draft has not been submitted")
        if not draft.title:
            return SyncSkipped(kind=draft.kind, reason="Draft has no title")

        existing = self._registry.find_existing(draft.kind, draft.title, draft.property_id)
        if existing is not None:
            return SyncDuplicate(entry=existing)

        entry = self._build_entry(draft)
        stored, created = self._registry.add_if_absent(entry)
        if not created:
            return SyncDuplicate(entry=stored)

        logger.info("Registered %s property '%s' as %s", draft.kind.value, draft.title, stored.id)
        return SyncCreated(entry=stored)

    def _build_entry(self, draft: PropertyDraft) -> RegistryEntry:
        fields = get_flow(draft.kind).registry_fields(draft)
        return RegistryEntry(
            id=self._id_factory(draft.kind),
            type=draft.kind,
            title=draft.title,
            location=fields.get("location") or "",
            created_at=draft.submitted_at or datetime.utcnow(),
            status=RegistryStatus.PENDING,
            image=fields.get("image"),
            price=fields.get("price"),
            bedrooms=fields.get("bedrooms"),
            bathrooms=fields.get("bathrooms"),
            square_footage=fields.get("square_footage"),
            property_id=draft.property_id,
            draft=draft.to_dict(),
        )

    def on_draft_submitted(self, event: DraftSubmitted) -> None:
        """DraftStore listener."""
        self.sync(event.draft)

    def attach(self, store: DraftStore) -> Callable[[], None]:
        """Sync automatically whenever the store's draft is submitted."""
        return store.subscribe(self.on_draft_submitted)

    def sync_all(self, stores: Iterable[DraftStore]) -> list[SyncResult]:
        """Sync the current draft of every store (e.g. on screen mount)."""
        return [self.sync(store.snapshot()) for store in stores]
