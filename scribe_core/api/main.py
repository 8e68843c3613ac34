from __future__ import annotations

"""
HTTP surface for transcript stitching and note edit provenance.

Design intent:
- Keep API orchestration thin and typed.
- Delegate stitching/diff logic to transcript and provenance modules.
- Never echo section text into logs; counts and keys only.
"""

import logging
from typing import Any

from fastapi import FastAPI, HTTPException, Query
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel, Field

from scribe_core.internal_core.config import EngineConfig, load_config
from scribe_core.internal_core.contracts import SectionRow
from scribe_core.internal_core.state_store import SectionStateStore, build_state_store
from scribe_core.note.sections import (
    build_section_rows,
    ordered_section_keys,
    resolve_modified_by,
    section_text,
)
from scribe_core.provenance.coalescer import EditCoalescer
from scribe_core.provenance.codec import runs_to_json
from scribe_core.provenance.tracker import SectionTracker
from scribe_core.transcript.accumulator import TranscriptAssembler
from scribe_core.transcript.models import FragmentEvent, TranscriptEntry


class FragmentIngestResponse(BaseModel):
    key: str
    accepted: bool = True
    flushed: list[TranscriptEntry] = Field(default_factory=list)


class TranscriptEntriesResponse(BaseModel):
    entries: list[TranscriptEntry] = Field(default_factory=list)


class ObserveNoteRequest(BaseModel):
    sections: dict[str, Any] = Field(default_factory=dict)
    components: list[dict[str, Any]] = Field(default_factory=list)
    restore: bool = False


class SectionEditInput(BaseModel):
    section: str = Field(min_length=1)
    text: str | None = None


class SectionEditsRequest(BaseModel):
    edits: list[SectionEditInput] = Field(default_factory=list)


class RebaseSectionRequest(BaseModel):
    text: str | None = None


class SectionStatePayload(BaseModel):
    section: str
    edit_count: int = Field(ge=0)
    insertion_count: int = Field(ge=0)
    deletion_count: int = Field(ge=0)
    prov_rle: list[list[Any]] = Field(default_factory=list)


class NoteEditsResponse(BaseModel):
    note_id: str
    section_order: list[str] = Field(default_factory=list)
    sections: list[SectionStatePayload] = Field(default_factory=list)
    total_edits: int = Field(ge=0)
    failed_sections: list[str] = Field(default_factory=list)


class SavePayloadRequest(BaseModel):
    doctor_id: str = Field(min_length=1)
    scribe_id: str = Field(min_length=1)
    components: list[dict[str, Any]] | None = None


class SavePayloadResponse(BaseModel):
    note_id: str
    rows: list[SectionRow] = Field(default_factory=list)
    total_edits: int = Field(ge=0)
    modified_by: str


app = FastAPI(title="scribe_core provenance service")
logger = logging.getLogger(__name__)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def _get_config() -> EngineConfig:
    existing = getattr(app.state, "engine_config", None)
    if isinstance(existing, EngineConfig):
        return existing
    created = load_config()
    logging.getLogger("scribe_core").setLevel(created.log_level)
    setattr(app.state, "engine_config", created)
    return created


def _get_state_store() -> SectionStateStore:
    existing = getattr(app.state, "section_state_store", None)
    if existing is not None:
        return existing
    created = build_state_store(_get_config().SCRIBE_STATE_DIR)
    setattr(app.state, "section_state_store", created)
    return created


def _get_tracker_store() -> dict[str, SectionTracker]:
    existing = getattr(app.state, "note_trackers", None)
    if isinstance(existing, dict):
        return existing
    created: dict[str, SectionTracker] = {}
    setattr(app.state, "note_trackers", created)
    return created


def _get_components_store() -> dict[str, list[dict[str, Any]]]:
    existing = getattr(app.state, "note_components", None)
    if isinstance(existing, dict):
        return existing
    created: dict[str, list[dict[str, Any]]] = {}
    setattr(app.state, "note_components", created)
    return created


def _get_transcript_assembler() -> TranscriptAssembler:
    existing = getattr(app.state, "transcript_assembler", None)
    if isinstance(existing, TranscriptAssembler):
        return existing
    created = TranscriptAssembler(flush_interval_sec=_get_config().flush_interval_sec)
    setattr(app.state, "transcript_assembler", created)
    return created


def _get_transcript_entries() -> list[TranscriptEntry]:
    existing = getattr(app.state, "transcript_entries", None)
    if isinstance(existing, list):
        return existing
    created: list[TranscriptEntry] = []
    setattr(app.state, "transcript_entries", created)
    return created


def _tracker_for(note_id: str, *, create: bool) -> SectionTracker:
    trackers = _get_tracker_store()
    tracker = trackers.get(note_id)
    if tracker is None:
        if not create:
            raise HTTPException(status_code=404, detail=f"Unknown note_id: {note_id}")
        tracker = SectionTracker(note_id, _get_state_store(), _get_config())
        trackers[note_id] = tracker
    return tracker


def _collect_flushed(entries: list[TranscriptEntry]) -> list[TranscriptEntry]:
    if entries:
        _get_transcript_entries().extend(entries)
    return entries


def _note_edits_response(
    tracker: SectionTracker,
    *,
    failed_sections: list[str] | None = None,
) -> NoteEditsResponse:
    sections: list[SectionStatePayload] = []
    for section_key in tracker.section_keys():
        state = tracker.section_state(section_key)
        sections.append(
            SectionStatePayload(
                section=section_key,
                edit_count=state.edit_count,
                insertion_count=state.insertion_count,
                deletion_count=state.deletion_count,
                prov_rle=runs_to_json(state.runs),
            )
        )
    note = {key: None for key in tracker.section_keys()}
    return NoteEditsResponse(
        note_id=tracker.note_id,
        section_order=ordered_section_keys(note, _get_components_store().get(tracker.note_id)),
        sections=sections,
        total_edits=tracker.total_edits(),
        failed_sections=list(failed_sections or []),
    )


@app.get("/healthz")
def healthz() -> dict[str, str]:
    return {"status": "ok"}


@app.post("/transcript/fragments", response_model=FragmentIngestResponse)
def ingest_fragment(event: FragmentEvent) -> FragmentIngestResponse:
    assembler = _get_transcript_assembler()
    flushed = _collect_flushed(assembler.flush_due())
    assembler.ingest(event)
    return FragmentIngestResponse(key=event.key, flushed=flushed)


@app.post("/transcript/flush", response_model=TranscriptEntriesResponse)
def flush_transcript(force: bool = Query(default=False)) -> TranscriptEntriesResponse:
    assembler = _get_transcript_assembler()
    entries = assembler.flush_all() if force else assembler.flush_due()
    return TranscriptEntriesResponse(entries=_collect_flushed(entries))


@app.get("/transcript/entries", response_model=TranscriptEntriesResponse)
def list_transcript_entries() -> TranscriptEntriesResponse:
    _collect_flushed(_get_transcript_assembler().flush_due())
    return TranscriptEntriesResponse(entries=list(_get_transcript_entries()))


@app.post("/notes/{note_id}/sections", response_model=NoteEditsResponse)
def observe_note(note_id: str, request: ObserveNoteRequest) -> NoteEditsResponse:
    if not request.sections:
        raise HTTPException(status_code=400, detail="sections is required and cannot be empty.")
    tracker = _tracker_for(note_id, create=True)
    if request.components:
        _get_components_store()[note_id] = list(request.components)

    if request.restore:
        for section_key, value in request.sections.items():
            tracker.observe(section_key, section_text(value))
    else:
        tracker.observe_note(request.sections)
    return _note_edits_response(tracker)


@app.post("/notes/{note_id}/edits", response_model=NoteEditsResponse)
def apply_note_edits(note_id: str, request: SectionEditsRequest) -> NoteEditsResponse:
    tracker = _tracker_for(note_id, create=False)
    coalescer = EditCoalescer(tracker)
    for item in request.edits:
        coalescer.submit(item.section, item.text)
    submitted = coalescer.pending_sections()
    counts = coalescer.drain()
    failed = [section_key for section_key in submitted if section_key not in counts]
    return _note_edits_response(tracker, failed_sections=failed)


@app.get("/notes/{note_id}/edits", response_model=NoteEditsResponse)
def get_note_edits(note_id: str) -> NoteEditsResponse:
    return _note_edits_response(_tracker_for(note_id, create=False))


@app.post("/notes/{note_id}/sections/{section_key}/rebase", response_model=NoteEditsResponse)
def rebase_section(
    note_id: str,
    section_key: str,
    request: RebaseSectionRequest | None = None,
) -> NoteEditsResponse:
    tracker = _tracker_for(note_id, create=False)
    text = request.text if request is not None else None
    try:
        tracker.rebase(section_key, text)
    except KeyError as exc:
        raise HTTPException(status_code=404, detail=f"Unknown section: {section_key}") from exc
    return _note_edits_response(tracker)


@app.post("/notes/{note_id}/rebase", response_model=NoteEditsResponse)
def rebase_note(note_id: str) -> NoteEditsResponse:
    tracker = _tracker_for(note_id, create=False)
    tracker.rebase_all()
    return _note_edits_response(tracker)


@app.post("/notes/{note_id}/save-payload", response_model=SavePayloadResponse)
def build_save_payload(note_id: str, request: SavePayloadRequest) -> SavePayloadResponse:
    tracker = _tracker_for(note_id, create=False)
    components = request.components
    if components is None:
        components = _get_components_store().get(note_id, [])
    note = {section_key: tracker.annotation(section_key).text for section_key in tracker.section_keys()}
    rows = build_section_rows(note, components, tracker)
    if not rows:
        raise HTTPException(
            status_code=400,
            detail="No template components with mapping ids; note is not eligible for save.",
        )
    total = tracker.total_edits()
    modified_by = resolve_modified_by(total, doctor_id=request.doctor_id, scribe_id=request.scribe_id)
    logger.info(
        "save_payload_built note_id=%s rows=%s total_edits=%s attributed=%s",
        note_id,
        len(rows),
        total,
        "scribe" if modified_by == request.scribe_id and total > 0 else "doctor",
    )
    return SavePayloadResponse(note_id=note_id, rows=rows, total_edits=total, modified_by=modified_by)


@app.delete("/notes/{note_id}")
def delete_note(note_id: str) -> dict[str, str]:
    tracker = _get_tracker_store().pop(note_id, None)
    _get_components_store().pop(note_id, None)
    if tracker is None:
        _get_state_store().delete_note(note_id)
    else:
        tracker.discard()
    return {"status": "deleted", "note_id": note_id}
