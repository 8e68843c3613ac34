from __future__ import annotations

import logging

from scribe_core.provenance.tracker import SectionTracker

logger = logging.getLogger(__name__)


class EditCoalescer:
    """Collapse bursts of edit events into one diff per section per drain.

    A newer edit for a section replaces its pending text. ``drain`` is the
    scheduling tick (frame callback, timer or request boundary).
    """

    def __init__(self, tracker: SectionTracker) -> None:
        self._tracker = tracker
        self._pending: dict[str, str] = {}

    def submit(self, section_key: str, text: str | None) -> None:
        self._pending[section_key] = text or ""

    def cancel(self, section_key: str) -> bool:
        return self._pending.pop(section_key, None) is not None

    def pending_sections(self) -> list[str]:
        return list(self._pending)

    def drain(self) -> dict[str, int]:
        pending = self._pending
        self._pending = {}
        counts: dict[str, int] = {}
        for section_key, text in pending.items():
            try:
                counts[section_key] = self._tracker.apply_edit(section_key, text)
            except Exception:
                # One failing section must not stall edits queued for the others.
                logger.warning(
                    "edit_drain_failed note_id=%s section=%s",
                    self._tracker.note_id,
                    section_key,
                    exc_info=True,
                )
        return counts
