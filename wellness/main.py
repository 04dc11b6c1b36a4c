"""FastAPI web application exposing the wellness tip generator"""

from __future__ import annotations

from contextlib import asynccontextmanager
from functools import lru_cache
import json
import logging
from typing import Any, AsyncIterator

from fastapi import Depends, FastAPI, HTTPException
from fastapi.responses import JSONResponse, PlainTextResponse
from pydantic import BaseModel, Field, field_validator

from wellness.config import GenerationSettings
from wellness.models.profile import Gender, UserProfile, WellnessGoal
from wellness.models.tip import WellnessTip
from wellness.services.gemini_client import ConfigurationError, GeminiClient
from wellness.services.recommender import WellnessRecommender
from wellness.services.sqlite_repo import WellnessStore, create_store
from wellness.services.tracker import WellnessTracker


@asynccontextmanager
async def _lifespan(_: FastAPI) -> AsyncIterator[None]:
    yield
    if _cached_recommender.cache_info().currsize:
        await _cached_recommender().aclose()
        _cached_recommender.cache_clear()


app = FastAPI(title="Wellness Tips", lifespan=_lifespan)

logger = logging.getLogger(__name__)


def _build_debug_detail(exc: Exception) -> dict[str, str]:
    """Return a serialisable mapping describing ``exc`` for debugging."""

    message = str(exc).strip()
    return {
        "type": type(exc).__name__,
        "message": message or "No exception message provided.",
    }


@app.get("/healthz")
def healthz():
    return {"ok": True}


@lru_cache(maxsize=1)
def _cached_store() -> WellnessStore:
    return create_store()


@lru_cache(maxsize=1)
def _cached_recommender() -> WellnessRecommender:
    settings = GenerationSettings.from_env()
    if not settings.has_api_key:
        logger.warning(
            "GEMINI_API_KEY is not set; recommendations will use fallback content",
            extra={"event": "recommender.no_api_key"},
        )
    return WellnessRecommender(client=GeminiClient(settings), tip_count=settings.tip_count)


def get_store() -> WellnessStore:
    """FastAPI dependency returning the shared store."""

    return _cached_store()


def get_recommender() -> WellnessRecommender:
    """FastAPI dependency returning the shared recommender."""

    return _cached_recommender()


def get_tracker(store: WellnessStore = Depends(get_store)) -> WellnessTracker:
    return WellnessTracker(store=store)


class ProfileRequest(BaseModel):
    """Profile submitted by the client before requesting recommendations."""

    age: int = Field(..., ge=13, le=120, description="Age in years.")
    gender: Gender
    goals: list[WellnessGoal] = Field(..., min_length=1, max_length=3)
    name: str | None = Field(default=None, max_length=80)
    goal_descriptions: dict[WellnessGoal, str] = Field(default_factory=dict)

    @field_validator("goals")
    @classmethod
    def _ensure_unique_goals(cls, value: list[WellnessGoal]) -> list[WellnessGoal]:
        if len(set(value)) != len(value):
            raise ValueError("Goals must not repeat.")
        return value

    def to_profile(self) -> UserProfile:
        return UserProfile(
            age=self.age,
            gender=self.gender,
            goals=tuple(self.goals),
            name=self.name,
            goal_descriptions=dict(self.goal_descriptions),
        )


class ProgressRequest(BaseModel):
    tip_id: str = Field(..., min_length=1)
    completed: bool = True
    notes: str | None = None


class TipResponse(BaseModel):
    """Serialised tip returned to clients."""

    id: str
    title: str
    short_description: str
    category: WellnessGoal
    icon: str
    created_at: str
    is_saved: bool = False
    completed_steps: list[int] = Field(default_factory=list)
    long_description: str | None = None
    steps: list[str] | None = None
    benefits: list[str] | None = None
    time_required: str | None = None
    difficulty: str | None = None

    @classmethod
    def from_tip(cls, tip: WellnessTip) -> "TipResponse":
        return cls(**tip.to_document())


class RecommendationsResponse(BaseModel):
    tips: list[TipResponse]
    outcome: str | None = None


def _require_profile(store: WellnessStore) -> UserProfile:
    profile = store.get_profile()
    if profile is None:
        raise HTTPException(status_code=409, detail="Submit a profile before requesting recommendations.")
    return profile


def _require_tip(tracker: WellnessTracker, tip_id: str) -> WellnessTip:
    tip = tracker.find_tip(tip_id)
    if tip is None:
        raise HTTPException(status_code=404, detail="Tip not found")
    return tip


@app.put("/api/profile")
async def save_profile(
    payload: ProfileRequest,
    store: WellnessStore = Depends(get_store),
) -> dict[str, Any]:
    profile = payload.to_profile()
    store.save_profile(profile)
    return profile.to_document()


@app.get("/api/profile")
async def read_profile(store: WellnessStore = Depends(get_store)) -> JSONResponse:
    profile = store.get_profile()
    if profile is None:
        return JSONResponse({"detail": "No profile stored"}, status_code=404)
    return JSONResponse(profile.to_document())


@app.post("/api/recommendations", response_model=RecommendationsResponse)
async def generate_recommendations(
    store: WellnessStore = Depends(get_store),
    tracker: WellnessTracker = Depends(get_tracker),
    recommender: WellnessRecommender = Depends(get_recommender),
) -> RecommendationsResponse:
    """Generate a fresh tip list for the stored profile."""

    profile = _require_profile(store)
    logger.info(
        "Recommendation request received",
        extra={"event": "recommendations.request", "goal_count": len(profile.goals)},
    )

    try:
        result = await recommender.generate_recommendations_result(profile)
    except ConfigurationError as exc:
        raise HTTPException(
            status_code=503,
            detail={
                "message": "AI recommendations are not configured",
                "debug": _build_debug_detail(exc),
            },
        ) from exc

    tips = tracker.store_recommendations(result.tips)
    return RecommendationsResponse(
        tips=[TipResponse.from_tip(tip) for tip in tips],
        outcome=result.outcome.value,
    )


@app.get("/api/recommendations", response_model=RecommendationsResponse)
async def cached_recommendations(store: WellnessStore = Depends(get_store)) -> RecommendationsResponse:
    return RecommendationsResponse(tips=[TipResponse.from_tip(tip) for tip in store.get_recommendations()])


@app.post("/api/tips/{tip_id}/details", response_model=TipResponse)
async def tip_details(
    tip_id: str,
    store: WellnessStore = Depends(get_store),
    tracker: WellnessTracker = Depends(get_tracker),
    recommender: WellnessRecommender = Depends(get_recommender),
) -> TipResponse:
    """Return the tip with detail fields, generating them on first request."""

    tip = _require_tip(tracker, tip_id)
    if tip.has_details:
        return TipResponse.from_tip(tip)

    profile = _require_profile(store)
    detailed = await recommender.generate_detailed_explanation(tip, profile)
    tracker.replace_tip(detailed)
    return TipResponse.from_tip(detailed)


@app.post("/api/tips/{tip_id}/save")
async def toggle_save(
    tip_id: str,
    tracker: WellnessTracker = Depends(get_tracker),
) -> dict[str, Any]:
    tip = _require_tip(tracker, tip_id)
    return {"id": tip.id, "is_saved": tracker.toggle_save(tip)}


@app.get("/api/tips/saved", response_model=list[TipResponse])
async def saved_tips(store: WellnessStore = Depends(get_store)) -> list[TipResponse]:
    return [TipResponse.from_tip(tip) for tip in store.get_saved_tips()]


@app.post("/api/tips/{tip_id}/steps/{step_index}", response_model=TipResponse)
async def toggle_step(
    tip_id: str,
    step_index: int,
    tracker: WellnessTracker = Depends(get_tracker),
) -> TipResponse:
    try:
        updated = tracker.toggle_step(tip_id, step_index)
    except IndexError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    if updated is None:
        raise HTTPException(status_code=404, detail="Tip not found")
    return TipResponse.from_tip(updated)


@app.post("/api/progress", status_code=201)
async def add_progress(
    payload: ProgressRequest,
    tracker: WellnessTracker = Depends(get_tracker),
) -> dict[str, Any]:
    _require_tip(tracker, payload.tip_id)
    entry = tracker.add_progress(payload.tip_id, payload.completed, payload.notes)
    return entry.to_document()


@app.delete("/api/session", status_code=204)
async def clear_session(tracker: WellnessTracker = Depends(get_tracker)) -> None:
    tracker.clear_session()


@app.get("/api/export", response_class=PlainTextResponse)
async def export_data(tracker: WellnessTracker = Depends(get_tracker)) -> PlainTextResponse:
    return PlainTextResponse(tracker.export_data(), media_type="application/json")


@app.post("/api/import")
async def import_data(
    payload: dict[str, Any],
    tracker: WellnessTracker = Depends(get_tracker),
) -> dict[str, bool]:
    if not tracker.import_data(json.dumps(payload)):
        raise HTTPException(status_code=400, detail="Import payload is invalid")
    return {"imported": True}
