from __future__ import annotations

from datetime import datetime, timezone

import pytest

from wellness.models.profile import WellnessGoal
from wellness.models.tip import Difficulty, WellnessTip
from wellness.services.fallback import (
    FALLBACK_TEMPLATES,
    default_details,
    fallback_detailed_tip,
    fallback_recommendations,
    fallback_tip,
)


@pytest.mark.parametrize(
    "goals",
    [
        [WellnessGoal.ENERGY_BOOST],
        [WellnessGoal.WEIGHT_LOSS, WellnessGoal.FLEXIBILITY],
        [WellnessGoal.MUSCLE_GAIN, WellnessGoal.MENTAL_HEALTH, WellnessGoal.MINDFULNESS],
    ],
)
def test_fallback_tips_stay_within_goals(goals: list[WellnessGoal]) -> None:
    tips = fallback_recommendations(goals)

    assert len(tips) >= 5
    assert all(tip.category in goals for tip in tips)
    assert all(tip.title and tip.short_description for tip in tips)
    assert len({tip.id for tip in tips}) == len(tips)


def test_templates_for_selected_goals_come_first() -> None:
    tips = fallback_recommendations([WellnessGoal.FLEXIBILITY])

    assert tips[0].title == "Desk Stretch Breaks"


def test_fallback_is_deterministic_apart_from_time() -> None:
    goals = [WellnessGoal.BETTER_SLEEP, WellnessGoal.CARDIOVASCULAR]
    first = fallback_recommendations(goals, now=datetime(2024, 1, 1, tzinfo=timezone.utc))
    second = fallback_recommendations(goals, now=datetime(2024, 6, 1, tzinfo=timezone.utc))

    def shape(tips: list[WellnessTip]) -> list[tuple[str, str, WellnessGoal]]:
        return [(tip.title, tip.short_description, tip.category) for tip in tips]

    assert shape(first) == shape(second)


def test_every_goal_has_a_template() -> None:
    assert {template[2] for template in FALLBACK_TEMPLATES} == set(WellnessGoal)


def test_fallback_tip_cycles_goals_with_distinct_titles() -> None:
    goals = [WellnessGoal.MINDFULNESS, WellnessGoal.HEALTHY_EATING]

    tips = [fallback_tip(index, goals) for index in range(5)]

    assert [tip.title for tip in tips[:2]] == ["Single-Task Moments", "Protein-Rich Breakfast"]
    assert [tip.category for tip in tips] == [
        WellnessGoal.MINDFULNESS,
        WellnessGoal.HEALTHY_EATING,
        WellnessGoal.MINDFULNESS,
        WellnessGoal.HEALTHY_EATING,
        WellnessGoal.MINDFULNESS,
    ]
    assert len({tip.title for tip in tips}) == 5


def test_fallback_tip_matches_fallback_list_positions() -> None:
    goals = [WellnessGoal.CARDIOVASCULAR]

    padded = [fallback_tip(index, goals) for index in range(5)]
    listed = fallback_recommendations(goals)

    assert [(tip.title, tip.category) for tip in padded] == [(tip.title, tip.category) for tip in listed]


def test_default_details_satisfy_detail_invariants() -> None:
    details = default_details("Evening Walk")

    assert "Evening Walk" in (details.long_description or "")
    assert 5 <= len(details.steps) <= 6
    assert 4 <= len(details.benefits) <= 5
    assert details.time_required
    assert details.difficulty is Difficulty.EASY


def test_fallback_detailed_tip_keeps_identity() -> None:
    tip = fallback_recommendations([WellnessGoal.ENERGY_BOOST])[0]

    detailed = fallback_detailed_tip(tip)

    assert (detailed.id, detailed.title, detailed.created_at) == (tip.id, tip.title, tip.created_at)
    assert detailed.has_details
    assert tip.long_description is None
