"""Shared fixtures for the test suite."""

from __future__ import annotations

import pytest

from wellness.config import GenerationSettings
from wellness.models.profile import Gender, UserProfile, WellnessGoal
from wellness.services.sqlite_repo import InMemoryWellnessStore
from wellness.tests.support import FakeClock


@pytest.fixture()
def profile() -> UserProfile:
    return UserProfile(
        age=34,
        gender=Gender.FEMALE,
        goals=(WellnessGoal.ENERGY_BOOST, WellnessGoal.BETTER_SLEEP),
        name="Sam",
        goal_descriptions={WellnessGoal.BETTER_SLEEP: "I wake up at 3am most nights"},
    )


@pytest.fixture()
def settings() -> GenerationSettings:
    return GenerationSettings(
        api_key="test-key",
        base_url="https://gemini.test/v1beta",
        min_request_interval=1.0,
        backoff_base=2.0,
        retry_delay=1.0,
    )


@pytest.fixture()
def fake_clock() -> FakeClock:
    return FakeClock()


@pytest.fixture()
def store() -> InMemoryWellnessStore:
    return InMemoryWellnessStore()
