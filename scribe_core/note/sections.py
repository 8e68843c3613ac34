from __future__ import annotations

"""
Resolve structured note sections and build edit-attributed save payloads.

Design intent:
- Template component order wins over the note's own key order.
- Save rows carry the per-section edit count, never provenance internals.
- A note with zero tracked edits is credited to the generating clinician.
"""

from typing import TYPE_CHECKING, Any, Mapping, Sequence

from pydantic import ValidationError

from scribe_core.internal_core.contracts import SectionRow, TemplateComponent

if TYPE_CHECKING:
    from scribe_core.provenance.tracker import SectionTracker

DEFAULT_SECTIONS: tuple[str, ...] = (
    "Chief Complaints",
    "History of Present Illness",
    "Subjective",
    "Objective",
    "Assessment",
    "Plan",
    "Medication",
)


def section_text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, (list, tuple)):
        return "\n".join(str(item) for item in value)
    return str(value)


def parse_components(raw: Sequence[Any] | None) -> list[TemplateComponent]:
    components: list[TemplateComponent] = []
    for item in raw or []:
        if isinstance(item, TemplateComponent):
            components.append(item)
            continue
        try:
            components.append(TemplateComponent.model_validate(item))
        except ValidationError:
            continue
    return components


def ordered_section_keys(
    note: Mapping[str, Any] | None,
    components: Sequence[Any] | None = None,
) -> list[str]:
    parsed = parse_components(components)
    if parsed:
        ordered = [
            item.name.strip()
            for item in sorted(parsed, key=lambda comp: comp.position)
            if item.name.strip()
        ]
        if ordered:
            return ordered

    keys = [str(key) for key in (note or {}) if not str(key).startswith("_")]
    if keys and not any(section in keys for section in DEFAULT_SECTIONS):
        return keys
    return list(DEFAULT_SECTIONS)


def build_section_rows(
    note: Mapping[str, Any],
    components: Sequence[Any] | None,
    tracker: "SectionTracker",
) -> list[SectionRow]:
    mapping_by_name: dict[str, Any] = {}
    for component in parse_components(components):
        name = component.name.strip()
        mapping_id = component.resolved_mapping_id()
        if name and mapping_id is not None:
            mapping_by_name[name] = mapping_id

    counts = tracker.edit_counts()
    return [
        SectionRow(
            template_component_mapping_id=mapping_id,
            section=name,
            text=section_text(note.get(name)),
            edit_count=counts.get(name, 0),
        )
        for name, mapping_id in mapping_by_name.items()
    ]


def resolve_modified_by(total_edits: int, *, doctor_id: str, scribe_id: str) -> str:
    return scribe_id if total_edits > 0 else doctor_id
