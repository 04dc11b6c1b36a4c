from __future__ import annotations

from wellness.models.profile import Gender, UserProfile, WellnessGoal
from wellness.models.tip import WellnessTip
from wellness.services.prompts import build_detail_prompt, build_recommendation_prompt


def test_recommendation_prompt_embeds_profile_and_goal_descriptions(profile: UserProfile) -> None:
    prompt = build_recommendation_prompt(profile, tip_count=6)

    assert "Age: 34" in prompt
    assert "Gender: female" in prompt
    assert "Name: Sam" in prompt
    assert "better-sleep (Better Sleep): I wake up at 3am most nights" in prompt
    # Goals without a description fall back to the generic hint.
    assert "energy-boost (Energy Boost): When and how do you want to increase your energy?" in prompt
    assert "exactly 6 tips" in prompt
    assert "MUST be one of: energy-boost, better-sleep" in prompt
    assert "Do not use markdown" in prompt
    assert '"title"' in prompt and '"description"' in prompt and '"category"' in prompt


def test_recommendation_prompt_omits_missing_name() -> None:
    profile = UserProfile(age=50, gender=Gender.OTHER, goals=(WellnessGoal.FLEXIBILITY,))

    prompt = build_recommendation_prompt(profile, tip_count=5)

    assert "Name:" not in prompt
    assert "exactly 5 tips" in prompt


def test_detail_prompt_requests_bounded_fields(profile: UserProfile) -> None:
    tip = WellnessTip(
        id="tip-1-0",
        title="Morning Light Walk",
        short_description="Get ten minutes of daylight after waking.",
        category=WellnessGoal.BETTER_SLEEP,
    )

    prompt = build_detail_prompt(tip, profile)

    assert '"Morning Light Walk" - Get ten minutes of daylight after waking.' in prompt
    assert "34-year-old female focused on Energy Boost, Better Sleep" in prompt
    assert "exactly 5 short, concrete steps" in prompt
    assert "exactly 4 short benefit statements" in prompt
    for key in ("longDescription", "steps", "benefits", "timeRequired", "difficulty"):
        assert f'"{key}"' in prompt
