"""
Onboarding Session - Wiring for One Application Context

Owns one draft store and one orchestrator per property kind, the homeowner
registry, the registry sync subscribed to both stores, and the lifecycle
manager. Create one per process (or per test) and pass it to whatever needs
it; there are no module-level store singletons.
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional

from core.onboarding.drafts import DraftStore
from core.onboarding.flows import get_flow
from core.onboarding.lifecycle import MetricsSource, StatusLifecycleManager, random_metrics
from core.onboarding.orchestrator import DEFAULT_UPLOAD_WORKERS, SubmissionOrchestrator
from core.onboarding.registry import HomeownerRegistry, RegistrySync, SyncResult
from core.onboarding.remote import HTTPPropertyAPI, PropertyAPI
from core.onboarding.schema import PropertyKind
from core.onboarding.storage import DraftStorage
from utils.config import Config


class OnboardingSession:
    """
    Draft stores, orchestrators and registry for one homeowner context.

    Layout under data_dir:
        drafts/residential_property.json
        drafts/commercial_property.json
        registry.json
    """

    def __init__(
        self,
        data_dir: str,
        api: PropertyAPI,
        upload_workers: int = DEFAULT_UPLOAD_WORKERS,
        metrics_source: MetricsSource = random_metrics,
    ):
        """
        Args:
            data_dir: Root directory for persisted drafts and the registry
            api: Remote property service
            upload_workers: Concurrent uploads per orchestrator
            metrics_source: Metrics for newly approved entries
        """
        root = Path(data_dir)
        self.api = api
        self.storage = DraftStorage(str(root / "drafts"))
        self.registry = HomeownerRegistry(str(root / "registry.json"))
        self.sync = RegistrySync(self.registry)
        self.lifecycle = StatusLifecycleManager(self.registry, metrics_source=metrics_source)

        self._stores: dict[PropertyKind, DraftStore] = {}
        self._orchestrators: dict[PropertyKind, SubmissionOrchestrator] = {}
        for kind in PropertyKind:
            store = DraftStore(get_flow(kind), self.storage)
            self.sync.attach(store)
            self._stores[kind] = store
            self._orchestrators[kind] = SubmissionOrchestrator(store, api, max_workers=upload_workers)

    @classmethod
    def from_config(cls, config: Optional[Config] = None) -> "OnboardingSession":
        """Build a session talking to the configured property service."""
        config = config or Config.load()
        api = HTTPPropertyAPI(
            config.api_base_url,
            token=config.api_token,
            timeout=config.request_timeout,
            upload_timeout=config.upload_timeout,
            video_timeout=config.video_upload_timeout,
        )
        return cls(config.data_dir, api, upload_workers=config.upload_workers)

    def store(self, kind: PropertyKind) -> DraftStore:
        return self._stores[kind]

    def orchestrator(self, kind: PropertyKind) -> SubmissionOrchestrator:
        return self._orchestrators[kind]

    @property
    def stores(self) -> list[DraftStore]:
        return list(self._stores.values())

    def sync_submitted(self) -> list[SyncResult]:
        """Replay registry sync for every store's current draft."""
        return self.sync.sync_all(self.stores)
