"""Defensive parsing of model output into tips and tip details.

Both entry points are total: whatever text comes back from the model they
return a usable value, substituting fallback content where the text cannot
be interpreted. Each stage is a small function returning ``None`` when it
cannot produce a value, so the first stage that succeeds wins.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
import json
import logging
import re
from typing import Any, Callable, Sequence

from wellness.config import MAX_TIP_COUNT, MIN_TIP_COUNT
from wellness.models.profile import WellnessGoal
from wellness.models.tip import Difficulty, TipDetails, WellnessTip
from wellness.services.fallback import DEFAULT_TIME_REQUIRED, default_details, fallback_recommendations, fallback_tip
from wellness.services.tip_mapper import to_tip
from wellness.utils.text import (
    find_balanced,
    last_complete_element_end,
    remove_trailing_commas,
    strip_code_fences,
)

logger = logging.getLogger(__name__)

REQUIRED_TIP_FIELDS = ("title", "description", "category")

_STRING_FIELD_TEMPLATE = r'"{name}"\s*:\s*"((?:[^"\\]|\\.)*)"'
_ARRAY_FIELD_TEMPLATE = r'"{name}"\s*:\s*\['
_QUOTED_ITEM_RE = re.compile(r'"((?:[^"\\]|\\.)*)"')


class ParseError(ValueError):
    """Raised internally when a stage cannot interpret the model output."""


@dataclass(slots=True)
class ParsedRecommendations:
    """Tips plus whether any of them came from the fallback templates."""

    tips: list[WellnessTip]
    used_fallback: bool
    parsed_count: int = 0


# ---------------------------------------------------------------------------
# Shared stages
# ---------------------------------------------------------------------------

def strict_parse(candidate: str) -> Any | None:
    try:
        return json.loads(candidate)
    except json.JSONDecodeError:
        return None


def relaxed_parse(candidate: str) -> Any | None:
    return strict_parse(remove_trailing_commas(candidate))


def truncated_array_parse(candidate: str) -> Any | None:
    """Close an array that was cut off after its last complete object."""

    cut = last_complete_element_end(candidate)
    if cut == -1:
        return None
    return relaxed_parse(candidate[: cut + 1] + "]")


def _first_value(candidate: str, stages: Sequence[Callable[[str], Any | None]]) -> Any | None:
    for stage in stages:
        value = stage(candidate)
        if value is not None:
            return value
    return None


# ---------------------------------------------------------------------------
# Recommendation list
# ---------------------------------------------------------------------------

def extract_tip_entries(raw_text: str) -> list[dict[str, Any]]:
    """Return the well-formed tip entries found in ``raw_text``.

    Raises :class:`ParseError` when no array can be located or decoded, or
    when nothing usable survives filtering.
    """

    cleaned = strip_code_fences(raw_text or "")
    candidate = find_balanced(cleaned, "[", "]")
    if candidate is None:
        raise ParseError("No JSON array found in response")

    payload = _first_value(candidate, (strict_parse, relaxed_parse, truncated_array_parse))
    if payload is None:
        raise ParseError("Response array could not be decoded")
    if not isinstance(payload, list) or not payload:
        raise ParseError("Response JSON was not a non-empty array")

    entries = [entry for entry in payload if _is_complete_entry(entry)]
    if not entries:
        raise ParseError("No tip entries carried title, description and category")
    return entries


def _is_complete_entry(entry: Any) -> bool:
    if not isinstance(entry, dict):
        return False
    for name in REQUIRED_TIP_FIELDS:
        value = entry.get(name)
        if not isinstance(value, str) or not value.strip():
            return False
    return True


def parse_recommendations_outcome(
    raw_text: str,
    goals: Sequence[WellnessGoal],
    *,
    max_tips: int = MAX_TIP_COUNT,
    min_tips: int = MIN_TIP_COUNT,
    now: datetime | None = None,
) -> ParsedRecommendations:
    """Parse ``raw_text`` into at least ``min_tips`` tips, reporting fallback usage."""

    goals = list(goals)
    created_at = now or datetime.now(timezone.utc)
    try:
        entries = extract_tip_entries(raw_text)
    except ParseError as exc:
        logger.info("Using fallback tips: %s", exc, extra={"event": "parser.fallback"})
        return ParsedRecommendations(
            tips=fallback_recommendations(goals, count=min_tips, now=created_at),
            used_fallback=True,
        )

    tips = [to_tip(entry, index, goals, now=created_at) for index, entry in enumerate(entries[:max_tips])]
    parsed_count = len(tips)
    while len(tips) < min_tips:
        tips.append(fallback_tip(len(tips), goals, now=created_at))

    return ParsedRecommendations(tips=tips, used_fallback=len(tips) > parsed_count, parsed_count=parsed_count)


def parse_recommendations(
    raw_text: str,
    goals: Sequence[WellnessGoal],
    *,
    max_tips: int = MAX_TIP_COUNT,
    min_tips: int = MIN_TIP_COUNT,
    now: datetime | None = None,
) -> list[WellnessTip]:
    """Return tips parsed from ``raw_text``; never raises."""

    return parse_recommendations_outcome(
        raw_text, goals, max_tips=max_tips, min_tips=min_tips, now=now
    ).tips


# ---------------------------------------------------------------------------
# Tip details
# ---------------------------------------------------------------------------

def _object_parse(cleaned: str) -> dict[str, Any] | None:
    candidate = find_balanced(cleaned, "{", "}")
    if candidate is None:
        return None
    payload = _first_value(candidate, (strict_parse, relaxed_parse))
    return payload if isinstance(payload, dict) else None


def _unescape(value: str) -> str:
    try:
        return json.loads(f'"{value}"')
    except json.JSONDecodeError:
        return value


def regex_extract_details(cleaned: str) -> dict[str, Any] | None:
    """Pull individual fields out of text that is not valid JSON."""

    fields: dict[str, Any] = {}
    for name in ("longDescription", "timeRequired", "difficulty"):
        match = re.search(_STRING_FIELD_TEMPLATE.format(name=name), cleaned, re.DOTALL)
        if match:
            fields[name] = _unescape(match.group(1))

    for name in ("steps", "benefits"):
        match = re.search(_ARRAY_FIELD_TEMPLATE.format(name=name), cleaned)
        if not match:
            continue
        # Only a closed array counts; a cut-off one yields no items.
        span = find_balanced(cleaned[match.end() - 1 :], "[", "]", allow_unclosed=False)
        if span is not None:
            fields[name] = [_unescape(item) for item in _QUOTED_ITEM_RE.findall(span[1:-1])]

    return fields or None


def _string_list(value: Any) -> list[str]:
    if not isinstance(value, list):
        return []
    return [item.strip() for item in value if isinstance(item, str) and item.strip()]


def _difficulty(value: Any) -> Difficulty:
    if isinstance(value, str):
        try:
            return Difficulty(value.strip().lower())
        except ValueError:
            pass
    return Difficulty.EASY


def normalise_details(fields: dict[str, Any]) -> TipDetails:
    long_description = fields.get("longDescription")
    time_required = fields.get("timeRequired")
    return TipDetails(
        long_description=long_description.strip() if isinstance(long_description, str) and long_description.strip() else None,
        steps=_string_list(fields.get("steps")),
        benefits=_string_list(fields.get("benefits")),
        time_required=time_required.strip() if isinstance(time_required, str) and time_required.strip() else DEFAULT_TIME_REQUIRED,
        difficulty=_difficulty(fields.get("difficulty")),
    )


def parse_detailed_explanation(raw_text: str) -> TipDetails:
    """Return detail fields parsed from ``raw_text``; never raises.

    Missing lists come back empty so callers can tell what the model actually
    provided; the recommender fills them from the defaults.
    """

    try:
        cleaned = strip_code_fences(raw_text or "")
        fields = _object_parse(cleaned) or regex_extract_details(cleaned)
        if fields is None:
            raise ParseError("No detail fields found in response")
        return normalise_details(fields)
    except (ParseError, TypeError, ValueError, re.error) as exc:
        logger.info("Using default tip details: %s", exc, extra={"event": "parser.details_fallback"})
        return default_details()
