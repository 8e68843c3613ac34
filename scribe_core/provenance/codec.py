from __future__ import annotations

"""
Run-length encoding of provenance tag sequences for storage.

Only tags are encoded; the character payload is stored separately as plain text
and re-zipped with the decoded tags on restore.
"""

from dataclasses import dataclass
from typing import Any, Sequence

from scribe_core.provenance.annotation import BASELINE, ProvenanceTag, normalize_tag


@dataclass(frozen=True)
class ProvenanceRun:
    tag: ProvenanceTag
    count: int


def encode_runs(tags: Sequence[str]) -> list[ProvenanceRun]:
    if not tags:
        return []
    runs: list[ProvenanceRun] = []
    last = normalize_tag(tags[0])
    count = 1
    for raw in tags[1:]:
        tag = normalize_tag(raw)
        if tag == last:
            count += 1
            continue
        runs.append(ProvenanceRun(tag=last, count=count))
        last = tag
        count = 1
    runs.append(ProvenanceRun(tag=last, count=count))
    return runs


def decode_runs(runs: Sequence[Any] | None, length: int) -> list[ProvenanceTag]:
    """Expand runs to exactly ``length`` tags, padding with Baseline or truncating.

    Malformed runs (wrong shape, non-integer or non-positive counts) are skipped.
    """
    target = max(0, int(length))
    tags: list[ProvenanceTag] = []
    for run in runs or []:
        if len(tags) >= target:
            break
        parsed = _parse_run(run)
        if parsed is None:
            continue
        tag, count = parsed
        tags.extend([tag] * min(count, target - len(tags)))
    if len(tags) < target:
        tags.extend([BASELINE] * (target - len(tags)))
    return tags


def _parse_run(run: Any) -> tuple[ProvenanceTag, int] | None:
    if isinstance(run, ProvenanceRun):
        return (run.tag, run.count) if run.count > 0 else None
    if not isinstance(run, (list, tuple)) or len(run) != 2:
        return None
    raw_tag, raw_count = run
    if isinstance(raw_count, bool) or not isinstance(raw_count, (int, float)):
        return None
    if isinstance(raw_count, float) and not raw_count.is_integer():
        return None
    if raw_count <= 0:
        return None
    return normalize_tag(raw_tag), int(raw_count)


def runs_to_json(runs: Sequence[ProvenanceRun]) -> list[list[Any]]:
    return [[run.tag, run.count] for run in runs]


def runs_from_json(payload: Any) -> list[ProvenanceRun]:
    if not isinstance(payload, (list, tuple)):
        return []
    runs: list[ProvenanceRun] = []
    for item in payload:
        parsed = _parse_run(item)
        if parsed is None:
            continue
        tag, count = parsed
        if runs and runs[-1].tag == tag:
            runs[-1] = ProvenanceRun(tag=tag, count=runs[-1].count + count)
        else:
            runs.append(ProvenanceRun(tag=tag, count=count))
    return runs
