"""
Property Flows - Per-Kind Wizard Definitions

A PropertyFlow bundles everything that differs between the residential and
commercial wizards: default sections, section validators (in wizard order),
which fields hold uploadable files, and how draft data is shaped for the
remote property API and the homeowner registry.

Flows are registered once at import time by core.onboarding.residential and
core.onboarding.commercial.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Optional

from core.onboarding.schema import (
    PendingUpload,
    PropertyDraft,
    PropertyKind,
    UploadKind,
    is_pending_upload,
    iter_file_records,
)
from core.onboarding.validation import (
    SectionValidationResult,
    SectionValidator,
    run_section_validator,
)


@dataclass(frozen=True)
class PropertyFlow:
    """
    Immutable definition of one property wizard.

    upload_fields maps section -> field -> UploadKind. A section listed in
    document_sections sends every file as UploadKind.FILES with the field name
    as the server-side file type.
    """

    kind: PropertyKind
    default_sections: dict[str, dict[str, Any]]
    section_validators: dict[str, SectionValidator]
    upload_fields: dict[str, dict[str, UploadKind]]
    document_sections: tuple[str, ...]
    create_payload: Callable[[PropertyDraft], dict]
    section_payload: Callable[[PropertyDraft, str], dict]
    registry_fields: Callable[[PropertyDraft], dict]

    def __post_init__(self) -> None:
        missing = set(self.section_validators) - set(self.default_sections)
        if missing:
            raise ValueError(f"Validators for unknown sections: {sorted(missing)}")

    @property
    def required_sections(self) -> tuple[str, ...]:
        """Sections that must be complete before submit, in wizard order."""
        return tuple(self.section_validators)

    def new_draft(self) -> PropertyDraft:
        return PropertyDraft.create(self.kind, self.default_sections)

    def validate_section(
        self,
        name: str,
        data: dict[str, Any],
        current_year: Optional[int] = None,
    ) -> SectionValidationResult:
        """
        Validate one section's data.

        Raises:
            KeyError: If the section has no validator in this flow
        """
        if name not in self.section_validators:
            raise KeyError(f"Unknown section '{name}' for {self.kind.value} property")
        return run_section_validator(name, self.section_validators[name], data, current_year)

    def upload_target(self, section: str, field_name: str) -> Optional[tuple[UploadKind, Optional[str]]]:
        """Return (upload kind, file type) for a file field, or None if not uploadable."""
        if section in self.document_sections:
            return UploadKind.FILES, field_name
        kind = self.upload_fields.get(section, {}).get(field_name)
        if kind is None:
            return None
        return kind, None

    def pending_uploads(self, draft: PropertyDraft) -> list[PendingUpload]:
        """List every picked file in the draft that has not been uploaded yet."""
        pending = []
        for section, data in draft.sections.items():
            for field_name, index, record in iter_file_records(data):
                if not is_pending_upload(record):
                    continue
                target = self.upload_target(section, field_name)
                if target is None:
                    continue
                upload_kind, file_type = target
                pending.append(
                    PendingUpload(
                        section=section,
                        field=field_name,
                        index=index,
                        uri=record["uri"],
                        name=record.get("name", ""),
                        upload_kind=upload_kind,
                        file_type=file_type,
                        record=dict(record),
                    )
                )
        return pending


# =============================================================================
# Flow Registry
# =============================================================================

_FLOW_REGISTRY: dict[PropertyKind, PropertyFlow] = {}


def register_flow(flow: PropertyFlow) -> None:
    """
    Register a property flow.

    Raises:
        ValueError: If a flow is already registered for the kind
    """
    if flow.kind in _FLOW_REGISTRY:
        raise ValueError(f"Flow already registered: {flow.kind.value}")
    _FLOW_REGISTRY[flow.kind] = flow


def get_flow(kind: PropertyKind) -> PropertyFlow:
    """
    Get the flow for a property kind.

    Raises:
        KeyError: If no flow is registered for the kind
    """
    return _FLOW_REGISTRY[kind]


# =============================================================================
# Payload Helpers
# =============================================================================


def export_file_record(record: dict[str, Any]) -> dict[str, Any]:
    """Reduce a file record to what the server needs: name, type, size and uploaded url/key."""
    return {
        "name": record.get("name"),
        "type": record.get("type"),
        "size": record.get("size"),
        "url": record.get("uploaded_url"),
        "key": record.get("uploaded_key"),
    }


def export_section_data(data: dict[str, Any]) -> dict[str, Any]:
    """Copy section data for a save-draft call, replacing file records with their remote refs."""
    exported: dict[str, Any] = {}
    for field_name, value in data.items():
        if isinstance(value, list):
            exported[field_name] = [
                export_file_record(item) if isinstance(item, dict) and item.get("uri") else item
                for item in value
            ]
        elif isinstance(value, dict) and value.get("uri"):
            exported[field_name] = export_file_record(value)
        else:
            exported[field_name] = value
    return exported
