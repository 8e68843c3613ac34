import pytest

from scribe_core.internal_core.config import EngineConfig
from scribe_core.internal_core.state_store import InMemorySectionStateStore
from scribe_core.provenance.annotation import BASELINE, USER_EDITED
from scribe_core.provenance.tracker import SectionTracker


def _tracker(store: InMemorySectionStateStore | None = None, **config: int) -> SectionTracker:
    return SectionTracker("note_1", store or InMemorySectionStateStore(), EngineConfig(**config))


def test_observe_initializes_baseline_and_persists_record() -> None:
    store = InMemorySectionStateStore()
    tracker = _tracker(store)

    assert tracker.observe("Subjective", "fever, cough") == 0
    assert tracker.annotation("Subjective").is_baseline()
    assert store.load_note("note_1")["Subjective"] == {
        "edits": 0,
        "ins": 0,
        "del": 0,
        "prov_rle": [["B", 12]],
    }


def test_apply_edit_reports_insertions_around_surviving_text() -> None:
    store = InMemorySectionStateStore()
    tracker = _tracker(store)
    tracker.observe("Subjective", "fever, cough")

    assert tracker.apply_edit("Subjective", "High fever, cough, and fatigue") == 18

    state = tracker.section_state("Subjective")
    assert state.insertion_count == 18
    assert state.deletion_count == 0
    assert tracker.total_edits() == 18
    assert store.load_note("note_1")["Subjective"]["prov_rle"] == [["U", 5], ["B", 12], ["U", 13]]
    assert store.load_note("note_1")["Subjective"]["edits"] == 18


def test_removing_own_insertion_returns_count_to_zero() -> None:
    tracker = _tracker()
    tracker.observe("Plan", "abc")
    assert tracker.apply_edit("Plan", "abXc") == 1
    assert tracker.apply_edit("Plan", "abc") == 0
    assert tracker.annotation("Plan").is_baseline()


def test_rebase_resets_counts_and_provenance() -> None:
    tracker = _tracker()
    tracker.observe("Subjective", "fever, cough")
    tracker.observe("Plan", "Rest")
    tracker.apply_edit("Subjective", "High fever, cough, and fatigue")
    tracker.apply_edit("Plan", "Rest and fluids")

    tracker.rebase("Subjective")

    assert tracker.edit_count("Subjective") == 0
    assert tracker.annotation("Subjective").text == "High fever, cough, and fatigue"
    assert tracker.annotation("Subjective").is_baseline()
    assert tracker.total_edits() == tracker.edit_count("Plan") == 11


def test_rebase_with_replacement_text_and_rebase_all() -> None:
    tracker = _tracker()
    tracker.observe("Assessment", "Viral URI")
    tracker.apply_edit("Assessment", "Likely viral URI")

    tracker.rebase("Assessment", "Regenerated assessment")
    assert tracker.annotation("Assessment").text == "Regenerated assessment"
    assert tracker.edit_count("Assessment") == 0

    tracker.apply_edit("Assessment", "Regenerated assessment!")
    tracker.rebase_all()
    assert tracker.total_edits() == 0


def test_observe_restores_persisted_state_for_same_text() -> None:
    store = InMemorySectionStateStore()
    first = _tracker(store)
    first.observe("Subjective", "fever, cough")
    first.apply_edit("Subjective", "High fever, cough, and fatigue")

    second = _tracker(store)
    assert second.observe("Subjective", "High fever, cough, and fatigue") == 18
    assert second.annotation("Subjective").tags == [USER_EDITED] * 5 + [BASELINE] * 12 + [USER_EDITED] * 13


def test_observe_pads_or_truncates_mismatched_tags() -> None:
    store = InMemorySectionStateStore()
    store.save_section("note_1", "Plan", {"edits": 2, "ins": 2, "del": 0, "prov_rle": [["U", 2]]})
    tracker = _tracker(store)

    assert tracker.observe("Plan", "Rest") == 2
    assert tracker.annotation("Plan").tags == [USER_EDITED, USER_EDITED, BASELINE, BASELINE]

    store.save_section("note_1", "Objective", {"edits": 0, "ins": 0, "del": 0, "prov_rle": [["U", 9]]})
    tracker.observe("Objective", "BP ok")
    assert tracker.annotation("Objective").tags == [USER_EDITED] * 5


def test_observe_degrades_invalid_record_to_baseline() -> None:
    store = InMemorySectionStateStore()
    store.save_section("note_1", "Plan", {"ins": -4, "prov_rle": [["U", 4]]})
    tracker = _tracker(store)

    assert tracker.observe("Plan", "Rest") == 0
    assert tracker.annotation("Plan").is_baseline()


def test_observe_is_noop_for_tracked_section() -> None:
    tracker = _tracker()
    tracker.observe("Plan", "Rest")
    tracker.apply_edit("Plan", "Rest!")
    assert tracker.observe("Plan", "something else") == 1
    assert tracker.annotation("Plan").text == "Rest!"


def test_apply_edit_on_untracked_section_starts_baseline() -> None:
    tracker = _tracker()
    assert tracker.apply_edit("Medication", "Ibuprofen") == 0
    assert tracker.annotation("Medication").is_baseline()


def test_apply_edit_with_missing_text_deletes_everything() -> None:
    tracker = _tracker()
    tracker.observe("Plan", "abc")
    assert tracker.apply_edit("Plan", None) == 3
    assert tracker.annotation("Plan").text == ""


def test_small_cell_budget_switches_to_greedy() -> None:
    tracker = _tracker(SCRIBE_MAX_DELTA_CELLS=100)
    tracker.observe("Subjective", "fever, cough")
    assert tracker.apply_edit("Subjective", "High fever, cough, and fatigue") == 42
    assert len(tracker.annotation("Subjective")) == 30


def test_observe_note_joins_list_sections_and_skips_private_keys() -> None:
    tracker = _tracker()
    counts = tracker.observe_note({"Plan": ["Rest", "Fluids"], "_templateMeta": {}, "Subjective": "Cough"})

    assert counts == {"Plan": 0, "Subjective": 0}
    assert tracker.annotation("Plan").text == "Rest\nFluids"
    assert tracker.section_keys() == ["Plan", "Subjective"]


def test_unknown_section_raises_key_error() -> None:
    tracker = _tracker()
    with pytest.raises(KeyError):
        tracker.edit_count("Plan")


def test_rebase_of_untracked_section_raises_key_error() -> None:
    store = InMemorySectionStateStore()
    tracker = _tracker(store)

    with pytest.raises(KeyError):
        tracker.rebase("Plan")

    assert not tracker.is_tracked("Plan")
    assert store.load_note("note_1") == {}
    tracker.observe("Plan", "Rest")
    assert tracker.apply_edit("Plan", "Rest!") == 1


def test_discard_drops_persisted_state() -> None:
    store = InMemorySectionStateStore()
    tracker = _tracker(store)
    tracker.observe("Plan", "Rest")

    tracker.discard()

    assert tracker.section_keys() == []
    assert store.load_note("note_1") == {}
