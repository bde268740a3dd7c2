"""
Draft Store - Durable In-Progress Property Record per Flow

One DraftStore exists per property kind. It owns the live PropertyDraft,
mirrors every mutation to DraftStorage, and publishes a DraftSubmitted event
once the remote submit has been confirmed.

Rules:
- update_section is a shallow merge; nested values are replaced wholesale
- the property id is assigned once and never replaced
- is_submitted is only set through submit_property
- a submitted draft is read-only until begin_flow or reset_store
- a stale upload result (record changed since the upload began) is dropped
"""

from __future__ import annotations

import copy
import logging
import threading
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Callable, Optional

from core.onboarding.completion import (
    CompletionReport,
    get_completion_report,
    get_completion_status,
    is_all_sections_complete,
)
from core.onboarding.errors import DraftLockedError, PropertyIdConflictError
from core.onboarding.flows import PropertyFlow
from core.onboarding.schema import (
    UPLOADED_KEY_KEY,
    UPLOADED_URL_KEY,
    PendingUpload,
    PropertyDraft,
    PropertyKind,
)
from core.onboarding.storage import DraftStorage
from core.onboarding.validation import FieldError, FieldErrorState, SectionValidationResult


logger = logging.getLogger(__name__)


# =============================================================================
# Events
# =============================================================================


@dataclass(frozen=True)
class DraftSubmitted:
    """Published after a draft is confirmed as submitted by the server."""

    kind: PropertyKind
    draft: PropertyDraft
    submitted_at: datetime


DraftListener = Callable[[DraftSubmitted], None]


# =============================================================================
# Draft Store
# =============================================================================


class DraftStore:
    """
    Live draft for one property flow.

    Usage:
        store = DraftStore(RESIDENTIAL_FLOW, DraftStorage("data/drafts"))
        store.update_section("property_details", {"property_title": "Sea View"})
        store.get_completion_status()
    """

    def __init__(
        self,
        flow: PropertyFlow,
        storage: DraftStorage,
        clock: Callable[[], datetime] = datetime.utcnow,
    ):
        """
        Initialise the store, loading any persisted draft for the flow.

        Args:
            flow: Property flow (defaults, validators, payload shapes)
            storage: Durable key-value storage
            clock: Timestamp source
        """
        self._flow = flow
        self._storage = storage
        self._clock = clock
        self._lock = threading.RLock()
        self._listeners: list[DraftListener] = []
        self._field_errors = {name: FieldErrorState() for name in flow.default_sections}
        self._draft = self._load()

    @property
    def kind(self) -> PropertyKind:
        return self._flow.kind

    @property
    def flow(self) -> PropertyFlow:
        return self._flow

    @property
    def storage_key(self) -> str:
        return f"{self._flow.kind.value}_property"

    # =========================================================================
    # Persistence
    # =========================================================================

    def _load(self) -> PropertyDraft:
        stored = self._storage.get_item(self.storage_key)
        if stored is None:
            return self._flow.new_draft()
        try:
            draft = PropertyDraft.from_dict(
                {**stored, "kind": self._flow.kind.value}, self._flow.default_sections
            )
        except (ValueError, TypeError) as e:
            logger.warning("Stored %s draft is invalid, starting fresh: %s", self.kind.value, e)
            return self._flow.new_draft()
        logger.info(
            "Loaded %s draft (property_id=%s, submitted=%s)",
            self.kind.value, draft.property_id, draft.is_submitted,
        )
        return draft

    def _persist(self) -> None:
        self._draft.updated_at = self._clock()
        self._storage.set_item(self.storage_key, self._draft.to_dict())

    # =========================================================================
    # Reads
    # =========================================================================

    def snapshot(self) -> PropertyDraft:
        """Return a detached copy of the current draft."""
        with self._lock:
            return copy.deepcopy(self._draft)

    @property
    def property_id(self) -> Optional[str]:
        return self._draft.property_id

    @property
    def is_submitted(self) -> bool:
        return self._draft.is_submitted

    def get_section(self, name: str) -> dict[str, Any]:
        """
        Get a copy of one section's data.

        Raises:
            KeyError: If the section does not exist for this flow
        """
        with self._lock:
            return copy.deepcopy(self._draft.section(name))

    # =========================================================================
    # Mutations
    # =========================================================================

    def update_section(self, name: str, partial: dict[str, Any]) -> dict[str, Any]:
        """
        Shallow-merge partial data into a section and persist.

        Fields absent from partial keep their values. Nested dicts and lists in
        partial replace the stored value wholesale. Shown errors for fields
        whose value changed are cleared.

        Args:
            name: Section name
            partial: Fields to overwrite

        Returns:
            Copy of the merged section

        Raises:
            KeyError: If the section does not exist for this flow
            DraftLockedError: If the draft has already been submitted
        """
        with self._lock:
            if self._draft.is_submitted:
                raise DraftLockedError(self.kind.value, self._draft.property_id)
            section = self._draft.section(name)
            changed = [key for key, value in partial.items() if section.get(key) != value]
            section.update(copy.deepcopy(partial))
            self._field_errors[name].on_change(changed)
            self._persist()
            return copy.deepcopy(section)

    def set_property_id(self, property_id: str) -> None:
        """
        Record the server-assigned property id.

        Setting the same id again is a no-op.

        Raises:
            PropertyIdConflictError: If a different id is already recorded
        """
        with self._lock:
            current = self._draft.property_id
            if current == property_id:
                return
            if current is not None:
                raise PropertyIdConflictError(current, property_id)
            self._draft.property_id = property_id
            self._persist()
        logger.info("Assigned property id %s to %s draft", property_id, self.kind.value)

    def submit_property(self) -> DraftSubmitted:
        """
        Mark the draft as submitted and notify subscribers.

        Only call after the remote submit-for-review call has succeeded.

        Returns:
            The published DraftSubmitted event
        """
        with self._lock:
            now = self._clock()
            self._draft.is_submitted = True
            self._draft.submitted_at = now
            self._persist()
            event = DraftSubmitted(kind=self.kind, draft=copy.deepcopy(self._draft), submitted_at=now)
            listeners = list(self._listeners)

        logger.info("%s draft %s submitted", self.kind.value, event.draft.property_id)
        for listener in listeners:
            try:
                listener(event)
            except Exception:
                # The draft stays submitted; registry sync can be replayed from it.
                logger.exception("Draft submitted listener %r failed", listener)
        return event

    def reset_store(self) -> PropertyDraft:
        """Restore every section, the id and the submitted flag to defaults."""
        with self._lock:
            self._draft = self._flow.new_draft()
            for state in self._field_errors.values():
                state.clear()
            self._persist()
            logger.info("Reset %s draft", self.kind.value)
            return copy.deepcopy(self._draft)

    def begin_flow(self) -> PropertyDraft:
        """
        Entry point for a new wizard session.

        A draft left over from a completed submission is reset so its data
        does not leak into the next listing. An unsubmitted draft is resumed.
        """
        with self._lock:
            if self._draft.is_submitted:
                return self.reset_store()
            return copy.deepcopy(self._draft)

    def merge_file_record(
        self,
        section: str,
        field_name: str,
        index: Optional[int],
        uri: str,
        uploaded_url: str,
        uploaded_key: Optional[str] = None,
    ) -> bool:
        """
        Attach an upload result to the file record it came from.

        The result is applied only if the record at that position still has
        the same uri as when the upload started.

        Returns:
            True if merged, False if the result was stale and dropped
        """
        with self._lock:
            value = self._draft.section(section).get(field_name)
            if index is not None:
                record = value[index] if isinstance(value, list) and index < len(value) else None
            else:
                record = value

            if not isinstance(record, dict) or record.get("uri") != uri:
                logger.warning(
                    "Dropping stale upload result for %s.%s[%s] (%s)",
                    section, field_name, index, uri,
                )
                return False

            record[UPLOADED_URL_KEY] = uploaded_url
            record[UPLOADED_KEY_KEY] = uploaded_key
            self._persist()
            return True

    # =========================================================================
    # Subscriptions
    # =========================================================================

    def subscribe(self, listener: DraftListener) -> Callable[[], None]:
        """
        Register a DraftSubmitted listener.

        Returns:
            A callable that removes the listener
        """
        with self._lock:
            self._listeners.append(listener)

        def unsubscribe() -> None:
            with self._lock:
                if listener in self._listeners:
                    self._listeners.remove(listener)

        return unsubscribe

    # =========================================================================
    # Validation & Completion
    # =========================================================================

    def validate_section(self, name: str, current_year: Optional[int] = None) -> SectionValidationResult:
        """Validate a section and show its errors against the inputs."""
        with self._lock:
            result = self._flow.validate_section(name, self._draft.section(name), current_year)
            self._field_errors[name].show(result)
            return result

    def shown_errors(self, name: str) -> dict[str, FieldError]:
        """Errors currently displayed for a section's inputs."""
        if name not in self._field_errors:
            raise KeyError(f"Unknown section '{name}' for {self.kind.value} property")
        return self._field_errors[name].errors

    def can_proceed(self, name: str, current_year: Optional[int] = None) -> bool:
        """Gate for leaving a section. Re-validates the live data."""
        with self._lock:
            return self._flow.validate_section(
                name, self._draft.section(name), current_year
            ).complete

    def get_completion_status(self, current_year: Optional[int] = None) -> dict[str, bool]:
        with self._lock:
            return get_completion_status(self._draft, current_year, self._flow)

    def get_completion_report(self, current_year: Optional[int] = None) -> CompletionReport:
        with self._lock:
            return get_completion_report(self._draft, current_year, self._flow)

    def is_all_sections_complete(self, current_year: Optional[int] = None) -> bool:
        with self._lock:
            return is_all_sections_complete(self._draft, current_year, self._flow)

    def pending_uploads(self) -> list[PendingUpload]:
        """File records picked locally but not yet uploaded."""
        with self._lock:
            return self._flow.pending_uploads(self._draft)
