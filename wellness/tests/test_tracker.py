from __future__ import annotations

import json

import pytest

from wellness.models.profile import UserProfile, WellnessGoal
from wellness.models.tip import WellnessTip
from wellness.services.sqlite_repo import InMemoryWellnessStore
from wellness.services.tracker import WellnessTracker


def _tip(tip_id: str, steps: list[str] | None = None) -> WellnessTip:
    return WellnessTip(
        id=tip_id,
        title=f"Title {tip_id}",
        short_description="Short description.",
        category=WellnessGoal.ENERGY_BOOST,
        steps=steps,
    )


@pytest.fixture()
def tracker(store: InMemoryWellnessStore) -> WellnessTracker:
    tracker = WellnessTracker(store=store)
    tracker.store_recommendations([_tip("a", steps=["One", "Two", "Three"]), _tip("b")])
    return tracker


def test_toggle_save_adds_then_removes(tracker: WellnessTracker, store: InMemoryWellnessStore) -> None:
    tip = tracker.find_tip("a")
    assert tip is not None

    assert tracker.toggle_save(tip) is True
    assert [saved.id for saved in store.get_saved_tips()] == ["a"]
    assert store.get_recommendations()[0].is_saved is True

    assert tracker.toggle_save(tip) is False
    assert store.get_saved_tips() == []
    assert store.get_recommendations()[0].is_saved is False


def test_new_recommendations_are_marked_when_already_saved(tracker: WellnessTracker) -> None:
    tip = tracker.find_tip("b")
    assert tip is not None
    tracker.toggle_save(tip)

    refreshed = tracker.store_recommendations([_tip("b"), _tip("c")])

    assert [(item.id, item.is_saved) for item in refreshed] == [("b", True), ("c", False)]


def test_saved_tips_remain_findable_after_clearing_session(tracker: WellnessTracker) -> None:
    tip = tracker.find_tip("a")
    assert tip is not None
    tracker.toggle_save(tip)

    tracker.clear_session()

    assert tracker.find_tip("b") is None
    found = tracker.find_tip("a")
    assert found is not None and found.is_saved


def test_toggle_step_flips_completion(tracker: WellnessTracker, store: InMemoryWellnessStore) -> None:
    first = tracker.toggle_step("a", 1)
    assert first is not None and first.completed_steps == [1]
    assert store.get_recommendations()[0].completed_steps == [1]

    second = tracker.toggle_step("a", 1)
    assert second is not None and second.completed_steps == []


def test_toggle_step_updates_saved_copy(tracker: WellnessTracker, store: InMemoryWellnessStore) -> None:
    tip = tracker.find_tip("a")
    assert tip is not None
    tracker.toggle_save(tip)

    tracker.toggle_step("a", 2)

    assert store.get_saved_tips()[0].completed_steps == [2]


def test_toggle_step_rejects_unknown_tip_and_index(tracker: WellnessTracker) -> None:
    assert tracker.toggle_step("missing", 0) is None
    with pytest.raises(IndexError):
        tracker.toggle_step("a", 3)
    with pytest.raises(IndexError):
        tracker.toggle_step("a", -1)


def test_export_then_import_restores_state(tracker: WellnessTracker, profile: UserProfile) -> None:
    tracker.store.save_profile(profile)
    tip = tracker.find_tip("a")
    assert tip is not None
    tracker.toggle_save(tip)
    tracker.add_progress("a", completed=True, notes="Done before lunch")

    exported = tracker.export_data()
    payload = json.loads(exported)
    assert set(payload) == {"profile", "saved_tips", "recommendations", "progress", "last_updated"}

    restored = WellnessTracker(store=InMemoryWellnessStore())
    assert restored.import_data(exported) is True
    assert restored.store.get_profile() == profile
    assert [saved.id for saved in restored.store.get_saved_tips()] == ["a"]
    assert [entry.notes for entry in restored.store.get_progress()] == ["Done before lunch"]

    # Importing the same payload again does not duplicate progress entries.
    assert restored.import_data(exported) is True
    assert len(restored.store.get_progress()) == 1


@pytest.mark.parametrize(
    "text",
    [
        "not json",
        "[1, 2]",
        json.dumps({"profile": {"age": 5, "gender": "male", "goals": ["mindfulness"]}}),
        json.dumps({"saved_tips": [{"id": "x", "category": "unknown"}]}),
    ],
)
def test_import_rejects_invalid_payloads(text: str) -> None:
    tracker = WellnessTracker(store=InMemoryWellnessStore())

    assert tracker.import_data(text) is False
    assert tracker.store.get_profile() is None
    assert tracker.store.get_saved_tips() == []
