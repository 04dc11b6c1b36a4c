"""Map parsed model entries onto :class:`WellnessTip` values."""
from __future__ import annotations

from datetime import datetime, timezone
import re
from typing import Any, Mapping, Sequence

from wellness.models.profile import WellnessGoal
from wellness.models.tip import WellnessTip
from wellness.utils.text import markdown_to_plain_text

_SEPARATOR_RE = re.compile(r"[\s_]+")


def make_tip_id(index: int, *, prefix: str = "tip", now: datetime | None = None) -> str:
    """Build an id from the creation instant (epoch milliseconds) and ``index``."""

    moment = now or datetime.now(timezone.utc)
    return f"{prefix}-{int(moment.timestamp() * 1000)}-{index}"


def _normalise_category(value: str) -> str:
    return _SEPARATOR_RE.sub("-", value.strip().lower()).strip("-")


def resolve_category(raw: Any, goals: Sequence[WellnessGoal]) -> WellnessGoal:
    """Resolve a free-form category string to a goal.

    Exact enum value first, then a case/separator-insensitive match, then
    substring containment in either direction against every known goal, and
    finally the caller's first goal.
    """

    if isinstance(raw, WellnessGoal):
        return raw

    text = raw if isinstance(raw, str) else ""
    try:
        return WellnessGoal(text)
    except ValueError:
        pass

    normalised = _normalise_category(text)
    if normalised:
        for goal in WellnessGoal:
            if goal.value == normalised:
                return goal
        for goal in WellnessGoal:
            if goal.value in normalised or normalised in goal.value:
                return goal

    return goals[0]


def clamp_to_goals(category: WellnessGoal, goals: Sequence[WellnessGoal]) -> WellnessGoal:
    """Keep ``category`` when the user picked it, otherwise use their first goal."""

    return category if category in goals else goals[0]


def to_tip(
    raw_entry: Mapping[str, Any],
    index: int,
    goals: Sequence[WellnessGoal],
    *,
    now: datetime | None = None,
) -> WellnessTip:
    """Build a tip from one parsed entry of the model's JSON array."""

    if not goals:
        raise ValueError("At least one goal is required to map a tip")

    created_at = now or datetime.now(timezone.utc)
    title = markdown_to_plain_text(raw_entry.get("title")) or f"Wellness Tip {index + 1}"
    description = (
        markdown_to_plain_text(raw_entry.get("description") or raw_entry.get("shortDescription"))
        or "Improve your wellness with this tip"
    )
    category = clamp_to_goals(resolve_category(raw_entry.get("category"), goals), goals)

    return WellnessTip(
        id=make_tip_id(index, now=created_at),
        title=title,
        short_description=description,
        category=category,
        created_at=created_at,
        is_saved=False,
    )
