"""Generate wellness tips for a profile from the command line and print them as JSON."""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import os
import sys
from typing import Any, Sequence

from wellness.config import GenerationSettings, configure_logging
from wellness.models.profile import Gender, UserProfile, WellnessGoal
from wellness.services.gemini_client import GeminiClient
from wellness.services.recommender import GenerationResult, WellnessRecommender
from wellness.services.sqlite_repo import SQLiteWellnessStore
from wellness.services.tracker import WellnessTracker

LOGGER = logging.getLogger("wellness.generate_tips")


def _parse_goal_description(value: str) -> tuple[str, str]:
    goal, separator, text = value.partition("=")
    if not separator or not text.strip():
        raise argparse.ArgumentTypeError("Goal descriptions must look like GOAL=TEXT")
    try:
        WellnessGoal(goal.strip())
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"Unknown goal: {goal}") from exc
    return goal.strip(), text.strip()


def _parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Generate personalised wellness tips")
    parser.add_argument("--age", type=int, required=True, help="Age in years (13-120)")
    parser.add_argument(
        "--gender",
        choices=[gender.value for gender in Gender],
        default=Gender.PREFER_NOT_TO_SAY.value,
        help="Gender used to tailor the tips",
    )
    parser.add_argument(
        "--goal",
        dest="goals",
        action="append",
        choices=[goal.value for goal in WellnessGoal],
        required=True,
        help="Wellness goal; repeat for up to three goals",
    )
    parser.add_argument("--name", default=None, help="Optional first name")
    parser.add_argument(
        "--describe",
        dest="descriptions",
        action="append",
        type=_parse_goal_description,
        default=[],
        metavar="GOAL=TEXT",
        help="Describe a goal in your own words",
    )
    parser.add_argument(
        "--details",
        action="store_true",
        help="Also generate detailed explanations for every tip",
    )
    parser.add_argument(
        "--save",
        action="store_true",
        help="Store the profile and tips in the local database (WELLNESS_DB_PATH)",
    )
    return parser.parse_args(argv)


def _build_profile(args: argparse.Namespace) -> UserProfile:
    try:
        return UserProfile(
            age=args.age,
            gender=Gender(args.gender),
            goals=tuple(args.goals),
            name=args.name,
            goal_descriptions=dict(args.descriptions),
        )
    except ValueError as exc:
        raise SystemExit(f"Invalid profile: {exc}") from exc


async def _generate(
    recommender: WellnessRecommender,
    profile: UserProfile,
    *,
    with_details: bool,
) -> GenerationResult:
    result = await recommender.generate_recommendations_result(profile)
    if with_details:
        result.tips = [
            await recommender.generate_detailed_explanation(tip, profile) for tip in result.tips
        ]
    return result


def _render(result: GenerationResult) -> dict[str, Any]:
    return {
        "outcome": result.outcome.value,
        "error": result.error,
        "tips": [tip.to_document() for tip in result.tips],
    }


async def _run(args: argparse.Namespace, settings: GenerationSettings) -> GenerationResult:
    profile = _build_profile(args)
    async with GeminiClient(settings) as client:
        recommender = WellnessRecommender(client=client, tip_count=settings.tip_count)
        result = await _generate(recommender, profile, with_details=args.details)

    if args.save:
        store = SQLiteWellnessStore()
        try:
            store.save_profile(profile)
            WellnessTracker(store=store).store_recommendations(result.tips)
        finally:
            store.close()
        LOGGER.info("Stored profile and %d tips in %s", len(result.tips), store.db_path)
    return result


def main(argv: Sequence[str] | None = None) -> int:
    configure_logging()
    args = _parse_args(argv)
    settings = GenerationSettings.from_env()
    if not settings.has_api_key:
        LOGGER.warning("GEMINI_API_KEY is not set; printing fallback tips")

    result = asyncio.run(_run(args, settings))
    if result.used_fallback:
        LOGGER.warning("Returned %s content: %s", result.outcome.value, result.error or "unparseable response")

    json.dump(_render(result), sys.stdout, indent=2, ensure_ascii=False)
    sys.stdout.write(os.linesep)
    return 0


if __name__ == "__main__":  # pragma: no cover - CLI entry point
    raise SystemExit(main())
