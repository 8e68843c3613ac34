from __future__ import annotations

"""
Compute provenance-preserving edit deltas between an annotation and new text.

Design intent:
- Unchanged characters keep their tag; inserted characters become UserEdited.
- Deleting a Baseline character counts as a deletion; deleting a UserEdited
  character undoes one of the editor's own insertions instead.
- Exact LCS backtrace while the table stays within a cell budget, otherwise a
  linear prefix/suffix split so a single edit never blocks for long.
"""

from dataclasses import dataclass
from typing import Literal, Sequence

from scribe_core.provenance.annotation import (
    USER_EDITED,
    AnnotatedChar,
    Annotation,
)

DEFAULT_MAX_DELTA_CELLS = 20000

DiffMethod = Literal["identical", "exact", "greedy"]


@dataclass(frozen=True)
class EditDelta:
    annotation: Annotation
    insertion_delta: int
    deletion_delta: int
    method: DiffMethod


def edit_count(insertions: int, deletions: int) -> int:
    return max(0, insertions) + max(0, deletions)


class _RunningCounts:
    def __init__(self, insertions: int, deletions: int) -> None:
        self.insertions = insertions
        self.deletions = deletions

    def remove(self, unit: AnnotatedChar) -> None:
        if unit.tag == USER_EDITED:
            self.insertions = max(0, self.insertions - 1)
        else:
            self.deletions += 1

    def insert(self, ch: str) -> AnnotatedChar:
        self.insertions += 1
        return AnnotatedChar(ch, USER_EDITED)


def compute_delta(
    previous: Annotation,
    new_text: str | None,
    *,
    insertions: int = 0,
    deletions: int = 0,
    max_cells: int = DEFAULT_MAX_DELTA_CELLS,
) -> EditDelta:
    """Diff ``previous`` against ``new_text``.

    ``insertions``/``deletions`` are the section's running counts; the floor on
    undone insertions is applied against them, so the returned deltas can be
    added to the stored counts as-is.
    """
    text = new_text or ""
    if previous.text == text:
        return EditDelta(annotation=previous, insertion_delta=0, deletion_delta=0, method="identical")

    start_ins = max(0, int(insertions))
    start_del = max(0, int(deletions))
    counts = _RunningCounts(start_ins, start_del)

    cost = (len(previous) + 1) * (len(text) + 1)
    if cost <= max_cells:
        units = _exact_delta(previous.units, text, counts)
        method: DiffMethod = "exact"
    else:
        units = _greedy_delta(previous.units, text, counts)
        method = "greedy"

    return EditDelta(
        annotation=Annotation(tuple(units)),
        insertion_delta=counts.insertions - start_ins,
        deletion_delta=counts.deletions - start_del,
        method=method,
    )


def _lcs_table(prev_chars: Sequence[str], next_chars: Sequence[str]) -> list[list[int]]:
    cols = len(next_chars) + 1
    table = [[0] * cols]
    for prev_ch in prev_chars:
        above = table[-1]
        row = [0] * cols
        for j in range(1, cols):
            if prev_ch == next_chars[j - 1]:
                row[j] = above[j - 1] + 1
            else:
                row[j] = above[j] if above[j] > row[j - 1] else row[j - 1]
        table.append(row)
    return table


def _exact_delta(
    prev_units: Sequence[AnnotatedChar],
    text: str,
    counts: _RunningCounts,
) -> list[AnnotatedChar]:
    prev_chars = [unit.ch for unit in prev_units]
    table = _lcs_table(prev_chars, text)

    i = len(prev_chars)
    j = len(text)
    reversed_units: list[AnnotatedChar] = []

    while i > 0 and j > 0:
        if prev_chars[i - 1] == text[j - 1]:
            reversed_units.append(AnnotatedChar(text[j - 1], prev_units[i - 1].tag))
            i -= 1
            j -= 1
        elif table[i - 1][j] >= table[i][j - 1]:
            counts.remove(prev_units[i - 1])
            i -= 1
        else:
            reversed_units.append(counts.insert(text[j - 1]))
            j -= 1

    while i > 0:
        counts.remove(prev_units[i - 1])
        i -= 1
    while j > 0:
        reversed_units.append(counts.insert(text[j - 1]))
        j -= 1

    reversed_units.reverse()
    return reversed_units


def _greedy_delta(
    prev_units: Sequence[AnnotatedChar],
    text: str,
    counts: _RunningCounts,
) -> list[AnnotatedChar]:
    n = len(prev_units)
    m = len(text)

    prefix = 0
    while prefix < n and prefix < m and prev_units[prefix].ch == text[prefix]:
        prefix += 1

    suffix = 0
    while (
        suffix < n - prefix
        and suffix < m - prefix
        and prev_units[n - 1 - suffix].ch == text[m - 1 - suffix]
    ):
        suffix += 1

    for index in range(prefix, n - suffix):
        counts.remove(prev_units[index])

    inserted = [counts.insert(text[index]) for index in range(prefix, m - suffix)]
    return [*prev_units[:prefix], *inserted, *prev_units[n - suffix :]]

