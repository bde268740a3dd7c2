"""
Completion Aggregator - Section Completeness for a Draft

Always computed from the live section data. Nothing here is cached, so a
section edited after an earlier pass is re-evaluated on the next call.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from core.onboarding.flows import PropertyFlow, get_flow
from core.onboarding.schema import PropertyDraft, PropertyKind


@dataclass(frozen=True)
class CompletionReport:
    """Per-section completeness for one draft."""

    kind: PropertyKind
    sections: dict[str, bool]

    @property
    def ready_to_submit(self) -> bool:
        return all(self.sections.values())

    @property
    def incomplete_sections(self) -> list[str]:
        return [name for name, done in self.sections.items() if not done]

    def to_dict(self) -> dict:
        """Convert report to dictionary."""
        return {
            "kind": self.kind.value,
            "sections": dict(self.sections),
            "completed": sum(1 for done in self.sections.values() if done),
            "total": len(self.sections),
            "ready_to_submit": self.ready_to_submit,
            "incomplete_sections": self.incomplete_sections,
        }


def get_completion_status(
    draft: PropertyDraft,
    current_year: Optional[int] = None,
    flow: Optional[PropertyFlow] = None,
) -> dict[str, bool]:
    """
    Map every required section to whether it currently passes validation.

    Args:
        draft: Draft to evaluate
        current_year: Override for the year-built upper bound
        flow: Flow to validate with (defaults to the registered flow for the kind)

    Returns:
        Section name -> complete, in wizard order
    """
    flow = flow or get_flow(draft.kind)
    return {
        name: flow.validate_section(name, draft.sections.get(name, {}), current_year).complete
        for name in flow.required_sections
    }


def get_completion_report(
    draft: PropertyDraft,
    current_year: Optional[int] = None,
    flow: Optional[PropertyFlow] = None,
) -> CompletionReport:
    return CompletionReport(kind=draft.kind, sections=get_completion_status(draft, current_year, flow))


def is_all_sections_complete(
    draft: PropertyDraft,
    current_year: Optional[int] = None,
    flow: Optional[PropertyFlow] = None,
) -> bool:
    """True iff every required section is complete."""
    return all(get_completion_status(draft, current_year, flow).values())
