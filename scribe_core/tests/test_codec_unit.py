import pytest

from scribe_core.provenance.codec import (
    ProvenanceRun,
    decode_runs,
    encode_runs,
    runs_from_json,
    runs_to_json,
)


def test_encode_runs_is_maximal() -> None:
    runs = encode_runs(["B", "B", "U", "U", "U", "B"])
    assert runs == [ProvenanceRun("B", 2), ProvenanceRun("U", 3), ProvenanceRun("B", 1)]
    assert runs_to_json(runs) == [["B", 2], ["U", 3], ["B", 1]]


@pytest.mark.parametrize(
    "tags",
    [
        [],
        ["B"],
        ["U", "U", "U"],
        ["B", "U", "B", "U", "U", "B", "B"],
    ],
)
def test_decode_restores_encoded_tags(tags: list[str]) -> None:
    assert decode_runs(encode_runs(tags), len(tags)) == tags


def test_encode_treats_unknown_tags_as_baseline() -> None:
    assert runs_to_json(encode_runs(["B", "x", "U"])) == [["B", 2], ["U", 1]]


def test_decode_pads_short_runs_with_baseline() -> None:
    assert decode_runs([["U", 2]], 5) == ["U", "U", "B", "B", "B"]


def test_decode_truncates_long_runs() -> None:
    assert decode_runs([["B", 3], ["U", 4]], 5) == ["B", "B", "B", "U", "U"]


def test_decode_skips_malformed_runs() -> None:
    runs = [["U", -1], "junk", ["X", 1], ["U", 1.5], ["U", True], ["U", 2]]
    assert decode_runs(runs, 4) == ["B", "U", "U", "B"]


def test_decode_without_runs_is_all_baseline() -> None:
    assert decode_runs(None, 3) == ["B", "B", "B"]
    assert decode_runs([], 0) == []


def test_runs_from_json_merges_adjacent_runs() -> None:
    assert runs_from_json([["U", 1], ["U", 2], ["B", 1]]) == [ProvenanceRun("U", 3), ProvenanceRun("B", 1)]
    assert runs_from_json("not-a-list") == []
