from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

_LOG_LEVELS = {"CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG"}


def _project_root() -> Path:
    # scribe_core/internal_core/config.py -> scribe_core -> repo root
    return Path(__file__).resolve().parents[2]


def _getenv_str(name: str, default: str) -> str:
    value = os.getenv(name)
    return default if value is None else value


def _getenv_int(name: str, default: int) -> int:
    value = os.getenv(name)
    if value is None or value == "":
        return default
    return int(value)


def _getenv_opt_path(name: str) -> Optional[Path]:
    raw = os.getenv(name, "").strip()
    if not raw:
        return None
    candidate = Path(raw).expanduser()
    if not candidate.is_absolute():
        candidate = _project_root() / candidate
    return candidate.resolve()


@dataclass(frozen=True)
class EngineConfig:
    SCRIBE_MAX_DELTA_CELLS: int = 20000
    SCRIBE_TRANSCRIPT_FLUSH_MS: int = 800
    SCRIBE_STATE_DIR: Optional[Path] = None
    SCRIBE_LOG_LEVEL: str = "INFO"

    def __post_init__(self) -> None:
        if self.SCRIBE_MAX_DELTA_CELLS < 1:
            raise ValueError("SCRIBE_MAX_DELTA_CELLS must be >= 1")
        if self.SCRIBE_TRANSCRIPT_FLUSH_MS < 0:
            raise ValueError("SCRIBE_TRANSCRIPT_FLUSH_MS must be >= 0")
        if self.SCRIBE_LOG_LEVEL.upper() not in _LOG_LEVELS:
            raise ValueError(f"Unsupported SCRIBE_LOG_LEVEL: {self.SCRIBE_LOG_LEVEL!r}")

    @property
    def flush_interval_sec(self) -> float:
        return self.SCRIBE_TRANSCRIPT_FLUSH_MS / 1000.0

    @property
    def log_level(self) -> str:
        return self.SCRIBE_LOG_LEVEL.upper()


def load_config() -> EngineConfig:
    return EngineConfig(
        SCRIBE_MAX_DELTA_CELLS=_getenv_int("SCRIBE_MAX_DELTA_CELLS", 20000),
        SCRIBE_TRANSCRIPT_FLUSH_MS=_getenv_int("SCRIBE_TRANSCRIPT_FLUSH_MS", 800),
        SCRIBE_STATE_DIR=_getenv_opt_path("SCRIBE_STATE_DIR"),
        SCRIBE_LOG_LEVEL=_getenv_str("SCRIBE_LOG_LEVEL", "INFO").strip() or "INFO",
    )
