"""User profile and wellness goal definitions."""
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Mapping, Sequence


MIN_AGE = 13
MAX_AGE = 120
MAX_GOALS = 3


class WellnessGoal(str, Enum):
    """The ten focus areas a user can pick from."""

    WEIGHT_LOSS = "weight-loss"
    MUSCLE_GAIN = "muscle-gain"
    BETTER_SLEEP = "better-sleep"
    STRESS_MANAGEMENT = "stress-management"
    HEALTHY_EATING = "healthy-eating"
    MENTAL_HEALTH = "mental-health"
    ENERGY_BOOST = "energy-boost"
    FLEXIBILITY = "flexibility"
    CARDIOVASCULAR = "cardiovascular"
    MINDFULNESS = "mindfulness"


class Gender(str, Enum):
    MALE = "male"
    FEMALE = "female"
    OTHER = "other"
    PREFER_NOT_TO_SAY = "prefer-not-to-say"


GOAL_ICONS: Mapping[WellnessGoal, str] = {
    WellnessGoal.WEIGHT_LOSS: "⚖️",
    WellnessGoal.MUSCLE_GAIN: "💪",
    WellnessGoal.BETTER_SLEEP: "😴",
    WellnessGoal.STRESS_MANAGEMENT: "🧘",
    WellnessGoal.HEALTHY_EATING: "🥗",
    WellnessGoal.MENTAL_HEALTH: "🧠",
    WellnessGoal.ENERGY_BOOST: "⚡",
    WellnessGoal.FLEXIBILITY: "🤸",
    WellnessGoal.CARDIOVASCULAR: "❤️",
    WellnessGoal.MINDFULNESS: "🌸",
}

GOAL_LABELS: Mapping[WellnessGoal, str] = {
    WellnessGoal.WEIGHT_LOSS: "Weight Loss",
    WellnessGoal.MUSCLE_GAIN: "Muscle Gain",
    WellnessGoal.BETTER_SLEEP: "Better Sleep",
    WellnessGoal.STRESS_MANAGEMENT: "Stress Management",
    WellnessGoal.HEALTHY_EATING: "Healthy Eating",
    WellnessGoal.MENTAL_HEALTH: "Mental Health",
    WellnessGoal.ENERGY_BOOST: "Energy Boost",
    WellnessGoal.FLEXIBILITY: "Flexibility",
    WellnessGoal.CARDIOVASCULAR: "Cardiovascular Health",
    WellnessGoal.MINDFULNESS: "Mindfulness",
}

# Shown to the model when the user did not describe a goal in their own words.
GOAL_DESCRIPTIONS: Mapping[WellnessGoal, str] = {
    WellnessGoal.WEIGHT_LOSS: "Describe your weight loss goals and target",
    WellnessGoal.MUSCLE_GAIN: "What muscle building results are you aiming for?",
    WellnessGoal.BETTER_SLEEP: "Describe your sleep challenges and goals",
    WellnessGoal.STRESS_MANAGEMENT: "What stress areas do you want to address?",
    WellnessGoal.HEALTHY_EATING: "Describe your dietary goals and preferences",
    WellnessGoal.MENTAL_HEALTH: "What aspects of mental health do you want to improve?",
    WellnessGoal.ENERGY_BOOST: "When and how do you want to increase your energy?",
    WellnessGoal.FLEXIBILITY: "What flexibility goals do you have?",
    WellnessGoal.CARDIOVASCULAR: "Describe your cardiovascular fitness goals",
    WellnessGoal.MINDFULNESS: "What mindfulness practices interest you?",
}


def goal_icon(goal: WellnessGoal) -> str:
    return GOAL_ICONS[goal]


def goal_label(goal: WellnessGoal) -> str:
    return GOAL_LABELS[goal]


def _coerce_goals(values: Sequence[Any]) -> tuple[WellnessGoal, ...]:
    goals: list[WellnessGoal] = []
    for value in values:
        goal = WellnessGoal(value)
        if goal not in goals:
            goals.append(goal)
    return tuple(goals)


@dataclass(frozen=True, slots=True)
class UserProfile:
    """Demographic and goal profile submitted for a recommendation request.

    Construction validates the age range and the goal count so that the
    generation layer can rely on at least one valid goal being present.
    """

    age: int
    gender: Gender
    goals: tuple[WellnessGoal, ...]
    name: str | None = None
    goal_descriptions: Mapping[WellnessGoal, str] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if isinstance(self.age, bool) or not isinstance(self.age, int):
            raise ValueError("Age must be a whole number")
        if not MIN_AGE <= self.age <= MAX_AGE:
            raise ValueError(f"Age must be between {MIN_AGE} and {MAX_AGE}")

        object.__setattr__(self, "gender", Gender(self.gender))
        goals = _coerce_goals(self.goals)
        if not goals:
            raise ValueError("At least one wellness goal is required")
        if len(goals) > MAX_GOALS:
            raise ValueError(f"At most {MAX_GOALS} wellness goals may be selected")
        object.__setattr__(self, "goals", goals)

        descriptions: dict[WellnessGoal, str] = {}
        for key, text in dict(self.goal_descriptions or {}).items():
            goal = WellnessGoal(key)
            if goal in goals and isinstance(text, str) and text.strip():
                descriptions[goal] = text.strip()
        object.__setattr__(self, "goal_descriptions", descriptions)

        name = self.name.strip() if isinstance(self.name, str) else None
        object.__setattr__(self, "name", name or None)

    def description_for(self, goal: WellnessGoal) -> str | None:
        """Return the user's own words for ``goal`` if they provided any."""

        return self.goal_descriptions.get(goal)

    def to_document(self) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "age": self.age,
            "gender": self.gender.value,
            "goals": [goal.value for goal in self.goals],
            "goal_descriptions": {goal.value: text for goal, text in self.goal_descriptions.items()},
        }
        if self.name:
            payload["name"] = self.name
        return payload

    @classmethod
    def from_document(cls, data: Mapping[str, Any]) -> "UserProfile":
        descriptions = data.get("goal_descriptions") or data.get("goalDescriptions") or {}
        return cls(
            age=data.get("age"),  # type: ignore[arg-type]
            gender=data.get("gender"),  # type: ignore[arg-type]
            goals=tuple(data.get("goals") or ()),
            name=data.get("name"),
            goal_descriptions=descriptions if isinstance(descriptions, Mapping) else {},
        )
