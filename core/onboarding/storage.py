"""
Draft Storage - Durable Key-Value Store for In-Progress Drafts

Each key maps to one JSON document under {storage_root}/{key}.json, so a
draft survives process restarts. One key per property kind; no versioning.
"""

from __future__ import annotations

import json
import logging
import re
from datetime import datetime
from pathlib import Path
from typing import Final, Optional


logger = logging.getLogger(__name__)


# =============================================================================
# Storage Configuration
# =============================================================================

DEFAULT_STORAGE_PATH: Final[str] = "data/drafts"

KEY_REGEX: Final = re.compile(r"^[a-z0-9_\-]+$")


# =============================================================================
# Draft Storage
# =============================================================================


class DraftStorage:
    """
    JSON-file key-value storage.

    Stored documents are wrapped as {"value": ..., "saved_at": ...}.
    Unreadable documents are logged and treated as absent.
    """

    def __init__(self, storage_root: Optional[str] = None):
        """
        Initialise draft storage.

        Args:
            storage_root: Directory for stored drafts. Defaults to data/drafts.
        """
        self._storage_root = Path(storage_root or DEFAULT_STORAGE_PATH)
        self._storage_root.mkdir(parents=True, exist_ok=True)

    @property
    def storage_root(self) -> Path:
        return self._storage_root

    def _path_for(self, key: str) -> Path:
        if not KEY_REGEX.match(key):
            raise ValueError(f"Invalid storage key: {key}")
        return self._storage_root / f"{key}.json"

    def get_item(self, key: str) -> Optional[dict]:
        """
        Load a stored value.

        Args:
            key: Storage key (lowercase letters, digits, '_' and '-')

        Returns:
            The stored dict, or None if missing or unreadable
        """
        path = self._path_for(key)
        if not path.exists():
            return None

        try:
            document = json.loads(path.read_text())
            value = document["value"]
        except (json.JSONDecodeError, KeyError, TypeError) as e:
            logger.warning("Discarding unreadable stored draft %s: %s", path, e)
            return None

        if not isinstance(value, dict):
            logger.warning("Discarding stored draft %s: expected an object", path)
            return None
        return value

    def set_item(self, key: str, value: dict) -> None:
        """Persist a value, replacing any previous one."""
        path = self._path_for(key)
        document = {
            "value": value,
            "saved_at": datetime.utcnow().isoformat(),
        }
        tmp_path = path.with_suffix(".json.tmp")
        tmp_path.write_text(json.dumps(document, indent=2))
        tmp_path.replace(path)

    def remove_item(self, key: str) -> bool:
        """
        Delete a stored value.

        Returns:
            True if deleted, False if not found
        """
        path = self._path_for(key)
        if path.exists():
            path.unlink()
            return True
        return False
