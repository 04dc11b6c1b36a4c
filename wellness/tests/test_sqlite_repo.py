from __future__ import annotations

from datetime import datetime, timezone
from pathlib import Path

import pytest

from wellness.models.profile import UserProfile, WellnessGoal
from wellness.models.progress import ProgressEntry
from wellness.models.tip import WellnessTip
from wellness.services.sqlite_repo import (
    InMemoryWellnessStore,
    SQLiteWellnessStore,
    create_store,
)


def _tip(tip_id: str, **overrides: object) -> WellnessTip:
    values: dict[str, object] = {
        "id": tip_id,
        "title": f"Title {tip_id}",
        "short_description": "Short description.",
        "category": WellnessGoal.MINDFULNESS,
        "created_at": datetime(2024, 3, 1, 12, 0, tzinfo=timezone.utc),
    }
    values.update(overrides)
    return WellnessTip(**values)  # type: ignore[arg-type]


@pytest.fixture(params=["memory", "sqlite"])
def any_store(request: pytest.FixtureRequest, tmp_path: Path):
    if request.param == "memory":
        yield InMemoryWellnessStore()
        return
    store = SQLiteWellnessStore(tmp_path / "wellness.db")
    yield store
    store.close()


def test_profile_and_tips_round_trip(any_store, profile: UserProfile) -> None:
    tips = [_tip("a", steps=["One", "Two"], completed_steps=[1]), _tip("b", is_saved=True)]

    any_store.save_profile(profile)
    any_store.save_recommendations(tips)

    assert any_store.get_profile() == profile
    assert [tip.to_document() for tip in any_store.get_recommendations()] == [tip.to_document() for tip in tips]
    assert any_store.get_last_updated() is not None


def test_empty_store_returns_defaults(any_store) -> None:
    assert any_store.get_profile() is None
    assert any_store.get_recommendations() == []
    assert any_store.get_saved_tips() == []
    assert any_store.get_progress() == []
    assert any_store.get_last_updated() is None


def test_progress_is_appended(any_store) -> None:
    any_store.append_progress(ProgressEntry(tip_id="a", completed=True, notes="Felt great"))
    any_store.append_progress(ProgressEntry(tip_id="b", completed=False))

    entries = any_store.get_progress()

    assert [(entry.tip_id, entry.completed, entry.notes) for entry in entries] == [
        ("a", True, "Felt great"),
        ("b", False, None),
    ]


def test_clear_session_keeps_saved_tips(any_store, profile: UserProfile) -> None:
    any_store.save_profile(profile)
    any_store.save_recommendations([_tip("a")])
    any_store.save_saved_tips([_tip("s", is_saved=True)])

    any_store.clear_session()

    assert any_store.get_profile() is None
    assert any_store.get_recommendations() == []
    assert [tip.id for tip in any_store.get_saved_tips()] == ["s"]


def test_clear_all_removes_everything(any_store, profile: UserProfile) -> None:
    any_store.save_profile(profile)
    any_store.save_saved_tips([_tip("s")])

    any_store.clear_all()

    assert any_store.get_saved_tips() == []
    assert any_store.get_last_updated() is None


def test_sqlite_store_persists_across_connections(tmp_path: Path, profile: UserProfile) -> None:
    db_path = tmp_path / "nested" / "wellness.db"
    first = SQLiteWellnessStore(db_path)
    first.save_profile(profile)
    first.close()

    second = SQLiteWellnessStore(db_path)
    try:
        assert second.get_profile() == profile
    finally:
        second.close()


def test_invalid_stored_tip_is_skipped() -> None:
    store = InMemoryWellnessStore()
    store._write("recommendations", [{"id": "x", "category": "astrology"}, _tip("ok").to_document()])

    assert [tip.id for tip in store.get_recommendations()] == ["ok"]


def test_create_store_honours_env_path(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("WELLNESS_DB_PATH", str(tmp_path / "env.db"))

    store = create_store()

    assert isinstance(store, SQLiteWellnessStore)
    assert store.db_path == tmp_path / "env.db"
    store.close()


def test_create_store_falls_back_to_memory(tmp_path: Path) -> None:
    blocker = tmp_path / "not-a-dir"
    blocker.write_text("file in the way")

    store = create_store(blocker / "wellness.db")

    assert isinstance(store, InMemoryWellnessStore)
