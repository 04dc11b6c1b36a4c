"""Tests for the command-line tip generator."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from wellness.scripts import generate_tips
from wellness.services.sqlite_repo import SQLiteWellnessStore


@pytest.fixture(autouse=True)
def _no_api_key(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    monkeypatch.delenv("GEMINI_API_KEY", raising=False)
    monkeypatch.delenv("WELLNESS_GEMINI_API_KEY", raising=False)
    monkeypatch.setenv("WELLNESS_DB_PATH", str(tmp_path / "cli.db"))


def test_missing_key_prints_fallback_tips(capsys: pytest.CaptureFixture[str]) -> None:
    exit_code = generate_tips.main(["--age", "30", "--goal", "mindfulness"])

    payload = json.loads(capsys.readouterr().out)
    assert exit_code == 0
    assert payload["outcome"] == "network_fallback"
    assert "GEMINI_API_KEY" in payload["error"]
    assert len(payload["tips"]) >= 5
    assert {tip["category"] for tip in payload["tips"]} == {"mindfulness"}


def test_details_and_save(capsys: pytest.CaptureFixture[str], tmp_path: Path) -> None:
    exit_code = generate_tips.main(
        [
            "--age",
            "45",
            "--gender",
            "female",
            "--goal",
            "better-sleep",
            "--goal",
            "flexibility",
            "--describe",
            "better-sleep=Falling asleep takes an hour",
            "--details",
            "--save",
        ]
    )

    payload = json.loads(capsys.readouterr().out)
    assert exit_code == 0
    assert all(tip["steps"] and tip["benefits"] for tip in payload["tips"])

    store = SQLiteWellnessStore(tmp_path / "cli.db")
    try:
        profile = store.get_profile()
        assert profile is not None
        assert profile.age == 45
        assert [tip.id for tip in store.get_recommendations()] == [tip["id"] for tip in payload["tips"]]
    finally:
        store.close()


def test_invalid_profile_exits() -> None:
    with pytest.raises(SystemExit):
        generate_tips.main(["--age", "5", "--goal", "mindfulness"])


def test_malformed_goal_description_is_rejected() -> None:
    with pytest.raises(SystemExit):
        generate_tips.main(["--age", "30", "--goal", "mindfulness", "--describe", "no-separator"])
