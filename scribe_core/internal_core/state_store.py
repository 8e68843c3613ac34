from __future__ import annotations

import hashlib
import json
import logging
import re
from pathlib import Path
from threading import RLock
from typing import Any, Dict, Protocol

logger = logging.getLogger(__name__)

_UNSAFE_NAME_RE = re.compile(r"[^A-Za-z0-9_.-]+")


class SectionStateStore(Protocol):
    def load_note(self, note_id: str) -> Dict[str, Dict[str, Any]]: ...

    def save_section(self, note_id: str, section_key: str, record: Dict[str, Any]) -> None: ...

    def delete_note(self, note_id: str) -> None: ...


class InMemorySectionStateStore:
    def __init__(self) -> None:
        self._lock = RLock()
        self._notes: Dict[str, Dict[str, Any]] = {}

    def _ensure(self, note_id: str) -> Dict[str, Any]:
        note = self._notes.get(note_id)
        if note is None:
            note = {"note_id": note_id, "sections": {}}
            self._notes[note_id] = note
        return note

    def load_note(self, note_id: str) -> Dict[str, Dict[str, Any]]:
        with self._lock:
            note = self._notes.get(note_id)
            if note is None:
                return {}
            return {key: dict(value) for key, value in note["sections"].items()}

    def save_section(self, note_id: str, section_key: str, record: Dict[str, Any]) -> None:
        with self._lock:
            note = self._ensure(note_id)
            note["sections"][section_key] = dict(record)

    def delete_note(self, note_id: str) -> None:
        with self._lock:
            self._notes.pop(note_id, None)

    def note_ids(self) -> list[str]:
        with self._lock:
            return sorted(self._notes)


class JsonFileSectionStateStore:
    """One JSON document per note, written whole on every section update."""

    def __init__(self, root_dir: Path) -> None:
        self._root_dir = Path(root_dir)
        self._lock = RLock()

    def _path(self, note_id: str) -> Path:
        if not note_id:
            raise ValueError(f"Invalid note_id: {note_id!r}")
        # Sanitized names can collide; the digest of the raw id keeps files per note.
        safe = _UNSAFE_NAME_RE.sub("_", note_id).strip("._")[:64] or "note"
        digest = hashlib.sha256(note_id.encode("utf-8")).hexdigest()[:16]
        return self._root_dir / f"{safe}-{digest}.json"

    def load_note(self, note_id: str) -> Dict[str, Dict[str, Any]]:
        path = self._path(note_id)
        with self._lock:
            if not path.exists():
                return {}
            try:
                payload = json.loads(path.read_text(encoding="utf-8"))
            except (OSError, json.JSONDecodeError) as exc:
                logger.warning("state_store_unreadable note_id=%s error=%s", note_id, exc)
                return {}
        sections = payload.get("sections") if isinstance(payload, dict) else None
        if not isinstance(sections, dict):
            return {}
        return {str(key): value for key, value in sections.items() if isinstance(value, dict)}

    def save_section(self, note_id: str, section_key: str, record: Dict[str, Any]) -> None:
        path = self._path(note_id)
        with self._lock:
            sections = self.load_note(note_id)
            sections[section_key] = dict(record)
            self._root_dir.mkdir(parents=True, exist_ok=True)
            tmp_path = path.with_suffix(".json.tmp")
            tmp_path.write_text(
                json.dumps({"note_id": note_id, "sections": sections}, ensure_ascii=False),
                encoding="utf-8",
            )
            tmp_path.replace(path)

    def delete_note(self, note_id: str) -> None:
        path = self._path(note_id)
        with self._lock:
            path.unlink(missing_ok=True)


def build_state_store(state_dir: Path | None) -> SectionStateStore:
    if state_dir is None:
        return InMemorySectionStateStore()
    return JsonFileSectionStateStore(state_dir)
