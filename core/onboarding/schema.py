"""
Onboarding Schema - Draft and File Record Types

Defines the in-progress property draft shared by the residential and
commercial wizards, plus the file-record helpers used by media and document
sections.

Principles:
- Section data is always held locally, synced or not
- The server-assigned property id is set once and never replaced
- is_submitted is only ever set after the remote submit call succeeds
"""

from __future__ import annotations

import copy
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Final, Iterator, Optional


# =============================================================================
# Enums
# =============================================================================


class PropertyKind(Enum):
    """Property flow type. Each kind has its own draft store."""

    RESIDENTIAL = "residential"
    COMMERCIAL = "commercial"


class RegistryStatus(Enum):
    """Approval status of an entry in the homeowner property registry."""

    DRAFT = "draft"
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class UploadKind(Enum):
    """Remote upload endpoint a file record is sent to."""

    IMAGES = "images"
    VIDEOS = "videos"
    FILES = "files"


# =============================================================================
# Constants
# =============================================================================

# Section that carries the title used for registry dedup and create payloads
DETAILS_SECTION: Final[str] = "property_details"

# Keys merged into a file record once its upload succeeds
UPLOADED_URL_KEY: Final[str] = "uploaded_url"
UPLOADED_KEY_KEY: Final[str] = "uploaded_key"


# =============================================================================
# File Records
# =============================================================================


def is_file_record(value: Any) -> bool:
    """Check whether a section value is a picked file ({uri, name, size, type})."""
    return isinstance(value, dict) and bool(value.get("uri"))


def is_pending_upload(value: Any) -> bool:
    """A file record is pending when it has a local uri but no uploaded url."""
    return is_file_record(value) and not value.get(UPLOADED_URL_KEY)


def cover_image(photos: Any, default: str) -> str:
    """Uploaded url (or local uri) of the first picked photo, else default."""
    if isinstance(photos, list):
        for photo in photos:
            if is_file_record(photo):
                return photo.get(UPLOADED_URL_KEY) or photo["uri"]
    return default


def iter_file_records(
    section_data: dict[str, Any],
) -> Iterator[tuple[str, Optional[int], dict[str, Any]]]:
    """
    Yield every file record in a section.

    Yields (field, index, record). index is None for single-file fields and
    the list position for multi-file fields such as photos.
    """
    for field_name, value in section_data.items():
        if isinstance(value, list):
            for index, item in enumerate(value):
                if is_file_record(item):
                    yield field_name, index, item
        elif is_file_record(value):
            yield field_name, None, value


@dataclass(frozen=True)
class PendingUpload:
    """A file record that still needs to be sent to the property API."""

    section: str
    field: str
    index: Optional[int]
    uri: str
    name: str
    upload_kind: UploadKind
    file_type: Optional[str] = None
    record: dict = field(default_factory=dict, compare=False)

    def to_dict(self) -> dict:
        """Convert to dictionary for serialisation."""
        return {
            "section": self.section,
            "field": self.field,
            "index": self.index,
            "uri": self.uri,
            "name": self.name,
            "upload_kind": self.upload_kind.value,
            "file_type": self.file_type,
        }


# =============================================================================
# Property Draft
# =============================================================================


@dataclass
class PropertyDraft:
    """
    In-progress property record for one wizard flow.

    sections maps section name -> that section's field dict. Field values are
    kept as entered (strings for numeric inputs) and parsed by the validators.
    """

    kind: PropertyKind
    sections: dict[str, dict[str, Any]]
    property_id: Optional[str] = None
    is_submitted: bool = False
    submitted_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @classmethod
    def create(cls, kind: PropertyKind, default_sections: dict[str, dict]) -> "PropertyDraft":
        """Create a fresh draft from the documented defaults for its kind."""
        return cls(kind=kind, sections=copy.deepcopy(default_sections))

    @property
    def title(self) -> str:
        """Property title as entered in the details section."""
        details = self.sections.get(DETAILS_SECTION, {})
        return str(details.get("property_title") or "").strip()

    def section(self, name: str) -> dict[str, Any]:
        """
        Get a section's data.

        Raises:
            KeyError: If the section does not exist for this kind
        """
        if name not in self.sections:
            raise KeyError(f"Unknown section '{name}' for {self.kind.value} property")
        return self.sections[name]

    def to_dict(self) -> dict:
        """Convert draft to dictionary for serialisation."""
        return {
            "kind": self.kind.value,
            "property_id": self.property_id,
            "sections": copy.deepcopy(self.sections),
            "is_submitted": self.is_submitted,
            "submitted_at": self.submitted_at.isoformat() if self.submitted_at else None,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }

    @classmethod
    def from_dict(cls, data: dict, default_sections: dict[str, dict]) -> "PropertyDraft":
        """
        Create a draft from stored data.

        Sections and fields missing from older stored versions are filled in
        from default_sections. Unknown sections are dropped.
        """
        kind = data.get("kind")
        if isinstance(kind, str):
            kind = PropertyKind(kind)

        stored_sections = data.get("sections") or {}
        sections: dict[str, dict[str, Any]] = {}
        for name, defaults in default_sections.items():
            merged = copy.deepcopy(defaults)
            stored = stored_sections.get(name)
            if isinstance(stored, dict):
                merged.update(stored)
            sections[name] = merged

        submitted_at = data.get("submitted_at")
        updated_at = data.get("updated_at")

        return cls(
            kind=kind,
            sections=sections,
            property_id=data.get("property_id"),
            is_submitted=bool(data.get("is_submitted", False)),
            submitted_at=datetime.fromisoformat(submitted_at) if submitted_at else None,
            updated_at=datetime.fromisoformat(updated_at) if updated_at else None,
        )
