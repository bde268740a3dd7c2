"""
Status Lifecycle Manager - Approval Status and Orthogonal Flags

Status transitions:
    draft   -> pending     only via RegistrySync, never here
    pending -> approved    metrics repopulated
    pending -> rejected    reason required, metrics zeroed

Flags that never touch status:
- enabled    toggled at any status
- paused     fractionalization pause, approved entries only, one-way

Deletion is structurally allowed at any status. can_delete reports the
product policy (draft or pending only) without enforcing it.
"""

from __future__ import annotations

import logging
import random
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Final, Optional

from core.onboarding.errors import InvalidTransitionError
from core.onboarding.registry import HomeownerRegistry, RegistryEntry
from core.onboarding.schema import RegistryStatus


logger = logging.getLogger(__name__)


# =============================================================================
# Constants
# =============================================================================

ALLOWED_TRANSITIONS: Final[dict[RegistryStatus, frozenset[RegistryStatus]]] = {
    RegistryStatus.DRAFT: frozenset(),
    RegistryStatus.PENDING: frozenset({RegistryStatus.APPROVED, RegistryStatus.REJECTED}),
    RegistryStatus.APPROVED: frozenset(),
    RegistryStatus.REJECTED: frozenset(),
}

DELETABLE_STATUSES: Final[frozenset[RegistryStatus]] = frozenset({
    RegistryStatus.DRAFT,
    RegistryStatus.PENDING,
})


# =============================================================================
# Metrics
# =============================================================================


@dataclass(frozen=True)
class DisplayMetrics:
    """Display metrics attached to an approved entry."""

    monthly_earnings: int
    occupancy_rate: int
    bookings_count: int


ZERO_METRICS: Final[DisplayMetrics] = DisplayMetrics(0, 0, 0)

MetricsSource = Callable[[RegistryEntry], DisplayMetrics]


def random_metrics(entry: RegistryEntry) -> DisplayMetrics:
    """Placeholder metrics for a newly approved entry until real bookings exist."""
    return DisplayMetrics(
        monthly_earnings=random.randint(10_000, 39_999),
        occupancy_rate=random.randint(80, 99),
        bookings_count=random.randint(1, 10),
    )


# =============================================================================
# Lifecycle Manager
# =============================================================================


class StatusLifecycleManager:
    """
    Applies status changes and flag toggles to registry entries.

    Usage:
        lifecycle = StatusLifecycleManager(registry)
        lifecycle.update_property_status(entry_id, RegistryStatus.APPROVED)
    """

    def __init__(
        self,
        registry: HomeownerRegistry,
        metrics_source: MetricsSource = random_metrics,
        clock: Callable[[], datetime] = datetime.utcnow,
    ):
        """
        Args:
            registry: Registry holding the entries
            metrics_source: Supplies metrics on approval when none are given
            clock: Timestamp source for pauses
        """
        self._registry = registry
        self._metrics_source = metrics_source
        self._clock = clock

    def update_property_status(
        self,
        entry_id: str,
        new_status: RegistryStatus,
        rejection_reason: Optional[str] = None,
        metrics: Optional[DisplayMetrics] = None,
    ) -> RegistryEntry:
        """
        Move an entry to a new approval status.

        Args:
            entry_id: Registry entry id
            new_status: APPROVED or REJECTED
            rejection_reason: Required when rejecting
            metrics: Metrics to show on approval; drawn from the metrics source if omitted

        Returns:
            The updated entry

        Raises:
            RegistryEntryNotFound: If no entry has the id
            InvalidTransitionError: If the transition is not allowed or a
                rejection has no reason
        """
        entry = self._registry.require(entry_id)
        if new_status not in ALLOWED_TRANSITIONS[entry.status]:
            raise InvalidTransitionError(
                f"Cannot move property {entry_id} from {entry.status.value} to {new_status.value}"
            )

        if new_status == RegistryStatus.REJECTED:
            reason = (rejection_reason or "").strip()
            if not reason:
                raise InvalidTransitionError("A rejection reason is required")
            changes = self._metric_changes(ZERO_METRICS)
            changes["rejection_reason"] = reason
        else:
            changes = self._metric_changes(metrics or self._metrics_source(entry))
            changes["rejection_reason"] = None

        updated = self._registry.apply_changes(entry_id, status=new_status, **changes)
        logger.info("Property %s is now %s", entry_id, new_status.value)
        return updated

    @staticmethod
    def _metric_changes(metrics: DisplayMetrics) -> dict:
        return {
            "monthly_earnings": metrics.monthly_earnings,
            "occupancy_rate": metrics.occupancy_rate,
            "bookings_count": metrics.bookings_count,
        }

    # =========================================================================
    # Enabled Flag
    # =========================================================================

    def set_enabled(self, entry_id: str, enabled: bool) -> RegistryEntry:
        """Enable or disable an entry. Status is unchanged."""
        self._registry.require(entry_id)
        return self._registry.apply_changes(entry_id, enabled=enabled)

    def enable(self, entry_id: str) -> RegistryEntry:
        return self.set_enabled(entry_id, True)

    def disable(self, entry_id: str) -> RegistryEntry:
        return self.set_enabled(entry_id, False)

    def toggle_enabled(self, entry_id: str) -> RegistryEntry:
        entry = self._registry.require(entry_id)
        return self.set_enabled(entry_id, not entry.enabled)

    # =========================================================================
    # Fractionalization Pause
    # =========================================================================

    def pause_fractionalization(self, entry_id: str, reason: str) -> RegistryEntry:
        """
        Pause fractional ownership on an approved entry.

        There is no resume operation.

        Raises:
            RegistryEntryNotFound: If no entry has the id
            InvalidTransitionError: If the entry is not approved, is already
                paused, or no reason is given
        """
        entry = self._registry.require(entry_id)
        if entry.status != RegistryStatus.APPROVED:
            raise InvalidTransitionError(
                f"Only approved properties can be paused (property {entry_id} is {entry.status.value})"
            )
        if entry.paused:
            raise InvalidTransitionError(f"Property {entry_id} is already paused")
        reason = (reason or "").strip()
        if not reason:
            raise InvalidTransitionError("A reason is required to pause fractionalization")

        updated = self._registry.apply_changes(
            entry_id, paused=True, pause_reason=reason, paused_at=self._clock()
        )
        logger.info("Paused fractionalization for %s: %s", entry_id, reason)
        return updated

    # =========================================================================
    # Deletion
    # =========================================================================

    @staticmethod
    def can_delete(entry: RegistryEntry) -> bool:
        """Whether the UI should offer delete for this entry."""
        return entry.status in DELETABLE_STATUSES

    def delete_property(self, entry_id: str) -> bool:
        """
        Delete an entry regardless of status.

        Returns:
            True if deleted, False if not found
        """
        deleted = self._registry.delete(entry_id)
        if deleted:
            logger.info("Deleted property %s", entry_id)
        return deleted
