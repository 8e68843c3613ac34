from __future__ import annotations

"""
Character-level provenance annotation for note section text.

Design intent:
- One unit per code point, tagged Baseline ("B", AI generated) or UserEdited ("U").
- Annotations are immutable values; every edit produces a new one.
"""

from dataclasses import dataclass
from typing import Iterable, Literal, Sequence

ProvenanceTag = Literal["B", "U"]

BASELINE: ProvenanceTag = "B"
USER_EDITED: ProvenanceTag = "U"


def normalize_tag(raw: object) -> ProvenanceTag:
    return USER_EDITED if raw == USER_EDITED else BASELINE


@dataclass(frozen=True)
class AnnotatedChar:
    ch: str
    tag: ProvenanceTag


@dataclass(frozen=True)
class Annotation:
    units: tuple[AnnotatedChar, ...] = ()

    @classmethod
    def baseline(cls, text: str | None) -> "Annotation":
        return cls(tuple(AnnotatedChar(ch, BASELINE) for ch in (text or "")))

    @classmethod
    def from_tags(cls, text: str | None, tags: Sequence[str]) -> "Annotation":
        """Zip live text with stored tags; missing tags fall back to Baseline."""
        chars = text or ""
        return cls(
            tuple(
                AnnotatedChar(ch, normalize_tag(tags[index]) if index < len(tags) else BASELINE)
                for index, ch in enumerate(chars)
            )
        )

    @classmethod
    def from_units(cls, units: Iterable[AnnotatedChar]) -> "Annotation":
        return cls(tuple(units))

    def __len__(self) -> int:
        return len(self.units)

    @property
    def text(self) -> str:
        return "".join(unit.ch for unit in self.units)

    @property
    def tags(self) -> list[ProvenanceTag]:
        return [unit.tag for unit in self.units]

    def user_edited_count(self) -> int:
        return sum(1 for unit in self.units if unit.tag == USER_EDITED)

    def is_baseline(self) -> bool:
        return all(unit.tag == BASELINE for unit in self.units)
