from __future__ import annotations

"""
Typed fragment and transcript entry contracts.

Design intent:
- Validate upstream fragment events at the boundary.
- Keep speaker pair keys explicit for per-direction accumulation.
"""

from pydantic import BaseModel, ConfigDict, Field, field_validator


def transcript_key(speaker_from: str | None, speaker_to: str | None) -> str:
    return f"{speaker_from or 'unknown'}->{speaker_to or 'unknown'}"


class FragmentEvent(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    speaker_from: str | None = Field(default=None, alias="from")
    speaker_to: str | None = Field(default=None, alias="to")
    text: str = ""
    is_final: bool = Field(default=False, alias="final")
    timestamp: str | float | None = None

    @field_validator("text", mode="before")
    @classmethod
    def _coerce_text(cls, value: object) -> str:
        return "" if value is None else str(value)

    @property
    def key(self) -> str:
        return transcript_key(self.speaker_from, self.speaker_to)


class TranscriptEntry(BaseModel):
    model_config = ConfigDict(extra="forbid")

    speaker_from: str | None = None
    speaker_to: str | None = None
    text: str = Field(min_length=1)
    timestamp: str | float | None = None
