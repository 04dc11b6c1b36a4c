"""Models describing wellness tips and their detail fields."""
from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import date, datetime, timezone
from enum import Enum
from typing import Any, Mapping, Sequence

from wellness.models.profile import GOAL_ICONS, WellnessGoal


class Difficulty(str, Enum):
    EASY = "easy"
    MEDIUM = "medium"
    HARD = "hard"


def _default_datetime() -> datetime:
    """Return a timezone-aware UTC timestamp."""
    return datetime.now(timezone.utc)


def _parse_datetime(value: Any) -> datetime | None:
    """Coerce a string/date/datetime value into a timezone-aware UTC datetime."""

    if isinstance(value, datetime):
        dt = value
    elif isinstance(value, date):
        dt = datetime(value.year, value.month, value.day, tzinfo=timezone.utc)
    elif isinstance(value, str):
        text = value.strip()
        if not text:
            return None
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        try:
            dt = datetime.fromisoformat(text)
        except ValueError:
            return None
    else:
        return None

    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def _listify_strings(value: Any) -> list[str]:
    """Normalise a value into a list of non-empty strings."""

    if isinstance(value, str):
        trimmed = value.strip()
        return [trimmed] if trimmed else []

    if isinstance(value, Sequence):
        result: list[str] = []
        for item in value:
            if isinstance(item, str):
                trimmed = item.strip()
                if trimmed:
                    result.append(trimmed)
        return result

    return []


def _optional_str(value: Any) -> str | None:
    if isinstance(value, str) and value.strip():
        return value.strip()
    return None


def _listify_indices(value: Any) -> list[int]:
    if not isinstance(value, Sequence) or isinstance(value, str):
        return []
    return [item for item in value if isinstance(item, int) and not isinstance(item, bool)]


@dataclass(slots=True)
class TipDetails:
    """Detail fields produced by the detail augmentation step."""

    long_description: str | None = None
    steps: list[str] = field(default_factory=list)
    benefits: list[str] = field(default_factory=list)
    time_required: str | None = None
    difficulty: Difficulty = Difficulty.EASY


@dataclass(slots=True)
class WellnessTip:
    """A single actionable wellness recommendation."""

    id: str
    title: str
    short_description: str
    category: WellnessGoal
    created_at: datetime = field(default_factory=_default_datetime)
    long_description: str | None = None
    steps: list[str] | None = None
    benefits: list[str] | None = None
    time_required: str | None = None
    difficulty: Difficulty | None = None
    is_saved: bool = False
    completed_steps: list[int] = field(default_factory=list)

    @property
    def icon(self) -> str:
        """Display icon, always derived from ``category``."""

        return GOAL_ICONS[self.category]

    @property
    def has_details(self) -> bool:
        return bool(self.long_description and self.steps and self.benefits)

    def with_details(self, details: TipDetails) -> "WellnessTip":
        """Return a copy carrying ``details``; identity and summary fields stay as they are."""

        return replace(
            self,
            long_description=details.long_description,
            steps=list(details.steps),
            benefits=list(details.benefits),
            time_required=details.time_required,
            difficulty=details.difficulty,
            completed_steps=list(self.completed_steps),
        )

    def to_document(self) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "id": self.id,
            "title": self.title,
            "short_description": self.short_description,
            "category": self.category.value,
            "icon": self.icon,
            "created_at": self.created_at.astimezone(timezone.utc).isoformat(),
            "is_saved": self.is_saved,
            "completed_steps": list(self.completed_steps),
        }
        if self.long_description is not None:
            payload["long_description"] = self.long_description
        if self.steps is not None:
            payload["steps"] = list(self.steps)
        if self.benefits is not None:
            payload["benefits"] = list(self.benefits)
        if self.time_required is not None:
            payload["time_required"] = self.time_required
        if self.difficulty is not None:
            payload["difficulty"] = self.difficulty.value
        return payload

    @classmethod
    def from_document(cls, data: Mapping[str, Any]) -> "WellnessTip":
        difficulty_raw = data.get("difficulty")
        try:
            difficulty = Difficulty(difficulty_raw) if difficulty_raw else None
        except ValueError:
            difficulty = None

        steps = data.get("steps")
        benefits = data.get("benefits")
        return cls(
            id=str(data.get("id") or ""),
            title=str(data.get("title") or ""),
            short_description=str(data.get("short_description") or data.get("shortDescription") or ""),
            category=WellnessGoal(data.get("category")),
            created_at=_parse_datetime(data.get("created_at") or data.get("createdAt")) or _default_datetime(),
            long_description=_optional_str(data.get("long_description") or data.get("longDescription")),
            steps=_listify_strings(steps) if steps is not None else None,
            benefits=_listify_strings(benefits) if benefits is not None else None,
            time_required=_optional_str(data.get("time_required") or data.get("timeRequired")),
            difficulty=difficulty,
            is_saved=bool(data.get("is_saved") or data.get("isSaved")),
            completed_steps=_listify_indices(data.get("completed_steps") or data.get("completedSteps")),
        )
