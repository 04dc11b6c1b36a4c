"""Static substitute content used when generation or parsing fails.

Nothing in this module touches the network or raises for a non-empty goal
list; the templates are module constants, so the same goals always yield the
same titles, descriptions and categories.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Final, Sequence

from wellness.models.profile import WellnessGoal
from wellness.models.tip import Difficulty, TipDetails, WellnessTip
from wellness.services.tip_mapper import make_tip_id

MIN_FALLBACK_TIPS: Final[int] = 5

FALLBACK_TEMPLATES: Final[tuple[tuple[str, str, WellnessGoal], ...]] = (
    ("Morning Hydration Ritual", "Start your day with a full glass of water before coffee.", WellnessGoal.ENERGY_BOOST),
    ("5-Minute Mindful Breathing", "Pause for five slow, deep breaths whenever stress builds up.", WellnessGoal.STRESS_MANAGEMENT),
    ("Evening Walk Challenge", "Take a brisk 20-minute walk after dinner to support your heart.", WellnessGoal.CARDIOVASCULAR),
    ("Protein-Rich Breakfast", "Include about 20g of protein in your first meal of the day.", WellnessGoal.HEALTHY_EATING),
    ("Digital Sunset Routine", "Put screens away one hour before bed to fall asleep faster.", WellnessGoal.BETTER_SLEEP),
    ("Portion-Aware Plates", "Fill half your plate with vegetables to manage portions naturally.", WellnessGoal.WEIGHT_LOSS),
    ("Bodyweight Strength Circuit", "Do three rounds of squats, push-ups and lunges twice a week.", WellnessGoal.MUSCLE_GAIN),
    ("Gratitude Check-In", "Write down three things that went well before ending your day.", WellnessGoal.MENTAL_HEALTH),
    ("Desk Stretch Breaks", "Stand up and stretch your hips and shoulders every hour.", WellnessGoal.FLEXIBILITY),
    ("Single-Task Moments", "Give one everyday activity your full attention without distractions.", WellnessGoal.MINDFULNESS),
)

DEFAULT_LONG_DESCRIPTION: Final[str] = (
    "{title} is an approachable way to improve your wellness. Small, consistent habits like this "
    "one support both physical and mental health, and the benefits build up over time. Start at a "
    "comfortable level, notice how you feel, and adjust the practice so it fits your routine."
)
DEFAULT_STEPS: Final[tuple[str, ...]] = (
    "Begin with a clear intention and commitment",
    "Start small and build gradually",
    "Track your progress in a journal",
    "Find an accountability partner if possible",
    "Adjust the practice to fit your lifestyle",
    "Be patient and consistent with your efforts",
)
DEFAULT_BENEFITS: Final[tuple[str, ...]] = (
    "Enhanced overall wellness and vitality",
    "Improved physical and mental resilience",
    "Better stress management capabilities",
    "Increased energy throughout the day",
)
DEFAULT_TIME_REQUIRED: Final[str] = "15-30 minutes"


_TEMPLATE_BY_GOAL: Final[dict[WellnessGoal, tuple[str, str, WellnessGoal]]] = {
    template[2]: template for template in FALLBACK_TEMPLATES
}


def _template_category(template_goal: WellnessGoal, goals: Sequence[WellnessGoal]) -> WellnessGoal:
    return template_goal if template_goal in goals else goals[0]


def _templates_for(goals: Sequence[WellnessGoal]) -> list[tuple[str, str, WellnessGoal]]:
    """Templates for the caller's goals in goal order, then the rest."""

    matching = [_TEMPLATE_BY_GOAL[goal] for goal in dict.fromkeys(goals)]
    others = [template for template in FALLBACK_TEMPLATES if template[2] not in goals]
    return matching + others


def fallback_recommendations(
    goals: Sequence[WellnessGoal],
    *,
    count: int = MIN_FALLBACK_TIPS,
    now: datetime | None = None,
) -> list[WellnessTip]:
    """Return ``count`` (at least five) template tips categorised under ``goals``."""

    goals = list(goals) or [WellnessGoal.ENERGY_BOOST]
    created_at = now or datetime.now(timezone.utc)
    templates = _templates_for(goals)
    total = max(count, MIN_FALLBACK_TIPS)

    tips: list[WellnessTip] = []
    for index in range(total):
        title, description, template_goal = templates[index % len(templates)]
        tips.append(
            WellnessTip(
                id=make_tip_id(index, prefix="fallback", now=created_at),
                title=title,
                short_description=description,
                category=_template_category(template_goal, goals),
                created_at=created_at,
            )
        )
    return tips


def fallback_tip(index: int, goals: Sequence[WellnessGoal], *, now: datetime | None = None) -> WellnessTip:
    """Return the padding tip for position ``index``.

    Categories cycle over ``goals`` by position. Titles walk the same
    goal-first template order as :func:`fallback_recommendations`, so
    consecutive padding tips differ.
    """

    goals = list(goals) or [WellnessGoal.ENERGY_BOOST]
    templates = _templates_for(goals)
    title, description, _ = templates[index % len(templates)]
    created_at = now or datetime.now(timezone.utc)
    return WellnessTip(
        id=make_tip_id(index, prefix="generated", now=created_at),
        title=title,
        short_description=description,
        category=goals[index % len(goals)],
        created_at=created_at,
    )


def default_details(title: str = "This practice") -> TipDetails:
    """Return the fixed detail payload used when augmentation fails entirely."""

    return TipDetails(
        long_description=DEFAULT_LONG_DESCRIPTION.format(title=title),
        steps=list(DEFAULT_STEPS),
        benefits=list(DEFAULT_BENEFITS),
        time_required=DEFAULT_TIME_REQUIRED,
        difficulty=Difficulty.EASY,
    )


def fallback_detailed_tip(tip: WellnessTip) -> WellnessTip:
    return tip.with_details(default_details(tip.title))
