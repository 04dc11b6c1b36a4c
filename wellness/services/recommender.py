"""Orchestrate prompt building, the remote call, parsing and fallback."""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
import logging
from typing import Protocol

from wellness.config import MIN_TIP_COUNT, MAX_TIP_COUNT
from wellness.models.profile import UserProfile
from wellness.models.tip import TipDetails, WellnessTip
from wellness.services.fallback import default_details, fallback_detailed_tip, fallback_recommendations
from wellness.services.gemini_client import ConfigurationError, GenerationError
from wellness.services.prompts import build_detail_prompt, build_recommendation_prompt
from wellness.services.tip_parser import parse_detailed_explanation, parse_recommendations_outcome

logger = logging.getLogger(__name__)


class SupportsGenerate(Protocol):
    """Subset of :class:`GeminiClient` relied on by the recommender."""

    async def generate(self, prompt: str) -> str:
        """Return the model's raw text answer."""


class GenerationOutcome(str, Enum):
    SUCCESS = "success"
    PARSE_FALLBACK = "parse_fallback"
    NETWORK_FALLBACK = "network_fallback"


@dataclass(slots=True)
class GenerationResult:
    """Tips produced by one recommendation run and how they were obtained."""

    tips: list[WellnessTip]
    outcome: GenerationOutcome
    error: str | None = None

    @property
    def used_fallback(self) -> bool:
        return self.outcome is not GenerationOutcome.SUCCESS


@dataclass(slots=True)
class WellnessRecommender:
    """Generate tip lists and tip details for a user profile.

    Network and parse failures never reach the caller: they are logged and
    replaced by fallback content. A missing API key is the one failure that
    can be surfaced, and only when ``raise_on_configuration_error`` is set.
    """

    client: SupportsGenerate
    tip_count: int = MAX_TIP_COUNT
    raise_on_configuration_error: bool = False

    async def generate_recommendations(self, profile: UserProfile) -> list[WellnessTip]:
        result = await self.generate_recommendations_result(profile)
        return result.tips

    async def generate_recommendations_result(self, profile: UserProfile) -> GenerationResult:
        goals = list(profile.goals)
        prompt = build_recommendation_prompt(profile, tip_count=self.tip_count)

        try:
            raw_text = await self.client.generate(prompt)
        except ConfigurationError as exc:
            if self.raise_on_configuration_error:
                raise
            return self._network_fallback(profile, exc)
        except GenerationError as exc:
            return self._network_fallback(profile, exc)

        parsed = parse_recommendations_outcome(
            raw_text,
            goals,
            max_tips=self.tip_count,
            min_tips=MIN_TIP_COUNT,
        )
        if parsed.parsed_count == 0:
            logger.warning(
                "Model response could not be parsed; returning fallback tips",
                extra={"event": "recommendations.fallback", "reason": "parse"},
            )
            return GenerationResult(tips=parsed.tips, outcome=GenerationOutcome.PARSE_FALLBACK)

        logger.info(
            "Generated %d tips (%d from the model)",
            len(parsed.tips),
            parsed.parsed_count,
            extra={"event": "recommendations.generated", "padded": parsed.used_fallback},
        )
        return GenerationResult(tips=parsed.tips, outcome=GenerationOutcome.SUCCESS)

    async def generate_detailed_explanation(self, tip: WellnessTip, profile: UserProfile) -> WellnessTip:
        """Return ``tip`` with detail fields populated; never raises."""

        prompt = build_detail_prompt(tip, profile)
        try:
            raw_text = await self.client.generate(prompt)
        except GenerationError as exc:
            logger.warning(
                "Detail generation failed for %s: %s",
                tip.id,
                exc,
                extra={"event": "details.fallback", "reason": type(exc).__name__},
            )
            return fallback_detailed_tip(tip)

        details = parse_detailed_explanation(raw_text)
        return tip.with_details(_complete_details(details, tip))

    async def aclose(self) -> None:
        """Release the client's connections if it holds any."""

        close = getattr(self.client, "aclose", None)
        if close is not None:
            await close()

    def _network_fallback(self, profile: UserProfile, exc: GenerationError) -> GenerationResult:
        logger.warning(
            "Recommendation request failed; returning fallback tips: %s",
            exc,
            extra={"event": "recommendations.fallback", "reason": type(exc).__name__},
        )
        return GenerationResult(
            tips=fallback_recommendations(profile.goals, count=MIN_TIP_COUNT),
            outcome=GenerationOutcome.NETWORK_FALLBACK,
            error=str(exc),
        )


def _complete_details(details: TipDetails, tip: WellnessTip) -> TipDetails:
    """Fill whatever the model left out from the default details."""

    defaults = default_details(tip.title)
    return TipDetails(
        long_description=details.long_description or defaults.long_description,
        steps=details.steps or defaults.steps,
        benefits=details.benefits or defaults.benefits,
        time_required=details.time_required or defaults.time_required,
        difficulty=details.difficulty,
    )
