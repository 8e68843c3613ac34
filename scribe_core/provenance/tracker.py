from __future__ import annotations

"""
Per-note orchestration of section provenance and edit counts.

Design intent:
- Hold one annotation per section key, never per editor widget.
- Persist counts plus run-length tags after every change; never persist text.
- Degrade to Baseline provenance when stored state does not fit the live text.
"""

import logging
from dataclasses import dataclass
from typing import Any, Mapping

from pydantic import ValidationError

from scribe_core.internal_core.config import EngineConfig
from scribe_core.internal_core.contracts import SectionStateRecord
from scribe_core.internal_core.state_store import SectionStateStore
from scribe_core.note.sections import section_text
from scribe_core.provenance.annotation import Annotation
from scribe_core.provenance.codec import (
    ProvenanceRun,
    decode_runs,
    encode_runs,
    runs_from_json,
    runs_to_json,
)
from scribe_core.provenance.diff import compute_delta, edit_count

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SectionState:
    section_key: str
    insertion_count: int
    deletion_count: int
    runs: tuple[ProvenanceRun, ...]

    @property
    def edit_count(self) -> int:
        return edit_count(self.insertion_count, self.deletion_count)

    def to_record(self) -> SectionStateRecord:
        return SectionStateRecord(
            edits=self.edit_count,
            ins=self.insertion_count,
            deletions=self.deletion_count,
            prov_rle=runs_to_json(self.runs),
        )


class _SectionEntry:
    __slots__ = ("annotation", "insertions", "deletions")

    def __init__(self, annotation: Annotation, insertions: int = 0, deletions: int = 0) -> None:
        self.annotation = annotation
        self.insertions = max(0, insertions)
        self.deletions = max(0, deletions)


def _snapshot(section_key: str, entry: _SectionEntry) -> SectionState:
    return SectionState(
        section_key=section_key,
        insertion_count=entry.insertions,
        deletion_count=entry.deletions,
        runs=tuple(encode_runs(entry.annotation.tags)),
    )


class SectionTracker:
    def __init__(
        self,
        note_id: str,
        store: SectionStateStore,
        config: EngineConfig | None = None,
    ) -> None:
        self._note_id = note_id
        self._store = store
        self._config = config or EngineConfig()
        self._sections: dict[str, _SectionEntry] = {}

    @property
    def note_id(self) -> str:
        return self._note_id

    def section_keys(self) -> list[str]:
        return list(self._sections)

    def is_tracked(self, section_key: str) -> bool:
        return section_key in self._sections

    def observe(self, section_key: str, text: str | None) -> int:
        existing = self._sections.get(section_key)
        if existing is not None:
            return edit_count(existing.insertions, existing.deletions)

        live_text = text or ""
        stored = self._store.load_note(self._note_id).get(section_key)
        entry = self._restore_entry(section_key, live_text, stored) if stored is not None else None
        if entry is None:
            entry = _SectionEntry(Annotation.baseline(live_text))
        self._sections[section_key] = entry
        self._persist(section_key, entry)
        return edit_count(entry.insertions, entry.deletions)

    def observe_note(self, sections: Mapping[str, Any]) -> dict[str, int]:
        """Start tracking a freshly generated note; prior history for these keys is dropped."""
        counts: dict[str, int] = {}
        for section_key, value in sections.items():
            if str(section_key).startswith("_"):
                continue
            entry = _SectionEntry(Annotation.baseline(section_text(value)))
            self._sections[section_key] = entry
            self._persist(section_key, entry)
            counts[section_key] = 0
        logger.info("note_observed note_id=%s sections=%s", self._note_id, len(counts))
        return counts

    def apply_edit(self, section_key: str, new_text: str | None) -> int:
        text = new_text or ""
        entry = self._sections.get(section_key)
        if entry is None:
            entry = _SectionEntry(Annotation.baseline(text))
            self._sections[section_key] = entry
            self._persist(section_key, entry)
            return 0

        delta = compute_delta(
            entry.annotation,
            text,
            insertions=entry.insertions,
            deletions=entry.deletions,
            max_cells=self._config.SCRIBE_MAX_DELTA_CELLS,
        )
        if delta.method == "identical":
            return edit_count(entry.insertions, entry.deletions)

        entry.annotation = delta.annotation
        entry.insertions = max(0, entry.insertions + delta.insertion_delta)
        entry.deletions = max(0, entry.deletions + delta.deletion_delta)
        self._persist(section_key, entry)
        logger.debug(
            "section_edit note_id=%s section=%s method=%s ins_delta=%s del_delta=%s chars=%s",
            self._note_id,
            section_key,
            delta.method,
            delta.insertion_delta,
            delta.deletion_delta,
            len(entry.annotation),
        )
        return edit_count(entry.insertions, entry.deletions)

    def rebase(self, section_key: str, text: str | None = None) -> None:
        if text is None:
            text = self._require(section_key).annotation.text
        rebased = _SectionEntry(Annotation.baseline(text))
        self._sections[section_key] = rebased
        self._persist(section_key, rebased)
        logger.info("section_rebased note_id=%s section=%s", self._note_id, section_key)

    def rebase_all(self) -> None:
        for section_key in list(self._sections):
            self.rebase(section_key)

    def edit_count(self, section_key: str) -> int:
        entry = self._require(section_key)
        return edit_count(entry.insertions, entry.deletions)

    def edit_counts(self) -> dict[str, int]:
        return {
            section_key: edit_count(entry.insertions, entry.deletions)
            for section_key, entry in self._sections.items()
        }

    def total_edits(self) -> int:
        return sum(self.edit_counts().values())

    def annotation(self, section_key: str) -> Annotation:
        return self._require(section_key).annotation

    def section_state(self, section_key: str) -> SectionState:
        return _snapshot(section_key, self._require(section_key))

    def discard(self) -> None:
        self._sections.clear()
        self._store.delete_note(self._note_id)
        logger.info("note_discarded note_id=%s", self._note_id)

    def _require(self, section_key: str) -> _SectionEntry:
        entry = self._sections.get(section_key)
        if entry is None:
            raise KeyError(f"Unknown section: {section_key}")
        return entry

    def _persist(self, section_key: str, entry: _SectionEntry) -> None:
        record = _snapshot(section_key, entry).to_record()
        self._store.save_section(self._note_id, section_key, record.to_json_dict())

    def _restore_entry(
        self,
        section_key: str,
        live_text: str,
        stored: Mapping[str, Any],
    ) -> _SectionEntry | None:
        try:
            record = SectionStateRecord.model_validate(stored)
        except ValidationError as exc:
            logger.warning(
                "section_state_invalid note_id=%s section=%s errors=%s",
                self._note_id,
                section_key,
                exc.error_count(),
            )
            return None

        tags = decode_runs(record.prov_rle, len(live_text))
        stored_len = sum(run.count for run in runs_from_json(record.prov_rle))
        if stored_len != len(live_text):
            logger.warning(
                "section_state_length_mismatch note_id=%s section=%s stored=%s live=%s",
                self._note_id,
                section_key,
                stored_len,
                len(live_text),
            )
        return _SectionEntry(Annotation.from_tags(live_text, tags), record.ins, record.deletions)
