from __future__ import annotations

"""
Accumulate streamed fragments per speaker pair into stable paragraphs.

Design intent:
- Partial fragments only replace the in-flight text; finals are stitched in.
- A paragraph is emitted once no new final arrives for the flush interval.
- Deadlines are plain timestamps so any host loop can drive the flush.
"""

import logging
import time
from dataclasses import dataclass
from typing import Callable, Iterable

from scribe_core.transcript.models import FragmentEvent, TranscriptEntry
from scribe_core.transcript.stitching import merge_incremental

logger = logging.getLogger(__name__)

Clock = Callable[[], float]


@dataclass
class FragmentAccumulator:
    speaker_from: str | None
    speaker_to: str | None
    partial: str = ""
    paragraph: str = ""
    flush_due_at: float | None = None
    last_timestamp: str | float | None = None

    def is_idle(self) -> bool:
        return not self.partial and not self.paragraph and self.flush_due_at is None


class TranscriptAssembler:
    def __init__(
        self,
        *,
        flush_interval_sec: float = 0.8,
        clock: Clock | None = None,
    ) -> None:
        self._flush_interval_sec = max(0.0, float(flush_interval_sec))
        self._clock = clock or time.monotonic
        self._slots: dict[str, FragmentAccumulator] = {}

    def ingest(self, event: FragmentEvent) -> None:
        key = event.key
        slot = self._slots.get(key)
        if slot is None:
            slot = FragmentAccumulator(speaker_from=event.speaker_from, speaker_to=event.speaker_to)
            self._slots[key] = slot

        if not event.is_final:
            slot.partial = event.text
            return

        merged_final = merge_incremental(slot.partial, event.text)
        slot.partial = ""
        slot.paragraph = merge_incremental(slot.paragraph + " " if slot.paragraph else "", merged_final)
        slot.last_timestamp = event.timestamp
        # A newer final replaces any pending flush for this key.
        slot.flush_due_at = self._clock() + self._flush_interval_sec

    def ingest_many(self, events: Iterable[FragmentEvent]) -> None:
        for event in events:
            self.ingest(event)

    def flush_due(self) -> list[TranscriptEntry]:
        now = self._clock()
        return self._flush(lambda slot: slot.flush_due_at is not None and slot.flush_due_at <= now)

    def flush_all(self) -> list[TranscriptEntry]:
        return self._flush(lambda slot: slot.flush_due_at is not None)

    def next_deadline(self) -> float | None:
        deadlines = [slot.flush_due_at for slot in self._slots.values() if slot.flush_due_at is not None]
        return min(deadlines) if deadlines else None

    def snapshot(self, key: str) -> FragmentAccumulator | None:
        slot = self._slots.get(key)
        if slot is None:
            return None
        return FragmentAccumulator(
            speaker_from=slot.speaker_from,
            speaker_to=slot.speaker_to,
            partial=slot.partial,
            paragraph=slot.paragraph,
            flush_due_at=slot.flush_due_at,
            last_timestamp=slot.last_timestamp,
        )

    def active_keys(self) -> list[str]:
        return list(self._slots)

    def clear(self) -> None:
        self._slots = {}

    def _flush(self, should_flush: Callable[[FragmentAccumulator], bool]) -> list[TranscriptEntry]:
        entries: list[TranscriptEntry] = []
        for key, slot in list(self._slots.items()):
            if not should_flush(slot):
                continue
            slot.flush_due_at = None
            if slot.paragraph:
                entries.append(
                    TranscriptEntry(
                        speaker_from=slot.speaker_from,
                        speaker_to=slot.speaker_to,
                        text=slot.paragraph,
                        timestamp=slot.last_timestamp,
                    )
                )
                logger.debug("transcript_flush key=%s chars=%s", key, len(slot.paragraph))
                slot.paragraph = ""
            if slot.is_idle():
                del self._slots[key]
        return entries
