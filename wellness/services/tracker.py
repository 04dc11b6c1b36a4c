"""Session operations on top of the store: saving tips, step completion, progress."""
from __future__ import annotations

from dataclasses import dataclass, replace
import json
import logging
from typing import Any

from wellness.models.profile import UserProfile
from wellness.models.progress import ProgressEntry
from wellness.models.tip import WellnessTip
from wellness.services.sqlite_repo import WellnessStore

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class WellnessTracker:
    """Keep recommendations and saved tips consistent as the user interacts with them."""

    store: WellnessStore

    def find_tip(self, tip_id: str) -> WellnessTip | None:
        for tip in self.store.get_recommendations():
            if tip.id == tip_id:
                return tip
        return next((tip for tip in self.store.get_saved_tips() if tip.id == tip_id), None)

    def is_saved(self, tip_id: str) -> bool:
        return any(tip.id == tip_id for tip in self.store.get_saved_tips())

    def mark_saved(self, tips: list[WellnessTip]) -> list[WellnessTip]:
        """Flag tips whose ids are already in the saved list."""

        saved_ids = {tip.id for tip in self.store.get_saved_tips()}
        return [replace(tip, is_saved=tip.id in saved_ids) for tip in tips]

    def store_recommendations(self, tips: list[WellnessTip]) -> list[WellnessTip]:
        marked = self.mark_saved(tips)
        self.store.save_recommendations(marked)
        return marked

    def toggle_save(self, tip: WellnessTip) -> bool:
        """Add ``tip`` to the saved list or remove it; return the new saved state."""

        saved = self.store.get_saved_tips()
        remaining = [item for item in saved if item.id != tip.id]
        is_saved = len(remaining) == len(saved)
        if is_saved:
            remaining.append(replace(tip, is_saved=True))
        self.store.save_saved_tips(remaining)

        recommendations = [
            replace(item, is_saved=is_saved) if item.id == tip.id else item
            for item in self.store.get_recommendations()
        ]
        self.store.save_recommendations(recommendations)
        return is_saved

    def replace_tip(self, tip: WellnessTip) -> None:
        """Write an updated tip back wherever it is stored."""

        recommendations = self.store.get_recommendations()
        if any(item.id == tip.id for item in recommendations):
            self.store.save_recommendations([tip if item.id == tip.id else item for item in recommendations])

        saved = self.store.get_saved_tips()
        if any(item.id == tip.id for item in saved):
            self.store.save_saved_tips([replace(tip, is_saved=True) if item.id == tip.id else item for item in saved])

    def toggle_step(self, tip_id: str, step_index: int) -> WellnessTip | None:
        """Flip completion of one step; return the updated tip or ``None`` if unknown."""

        tip = self.find_tip(tip_id)
        if tip is None:
            return None
        if step_index < 0 or (tip.steps is not None and step_index >= len(tip.steps)):
            raise IndexError(f"Tip {tip_id} has no step {step_index}")

        if step_index in tip.completed_steps:
            completed = [index for index in tip.completed_steps if index != step_index]
        else:
            completed = [*tip.completed_steps, step_index]
        updated = replace(tip, completed_steps=completed)
        self.replace_tip(updated)
        return updated

    def add_progress(self, tip_id: str, completed: bool, notes: str | None = None) -> ProgressEntry:
        entry = ProgressEntry(tip_id=tip_id, completed=completed, notes=notes)
        self.store.append_progress(entry)
        return entry

    def clear_session(self) -> None:
        self.store.clear_session()

    def export_data(self) -> str:
        profile = self.store.get_profile()
        last_updated = self.store.get_last_updated()
        data = {
            "profile": profile.to_document() if profile else None,
            "saved_tips": [tip.to_document() for tip in self.store.get_saved_tips()],
            "recommendations": [tip.to_document() for tip in self.store.get_recommendations()],
            "progress": [entry.to_document() for entry in self.store.get_progress()],
            "last_updated": last_updated.isoformat() if last_updated else None,
        }
        return json.dumps(data, indent=2, ensure_ascii=False)

    def import_data(self, text: str) -> bool:
        """Load a payload produced by :meth:`export_data`; return ``False`` if it is invalid."""

        try:
            data: Any = json.loads(text)
            if not isinstance(data, dict):
                raise ValueError("Import payload must be a JSON object")
            profile = UserProfile.from_document(data["profile"]) if data.get("profile") else None
            saved = [WellnessTip.from_document(item) for item in data.get("saved_tips") or []]
            recommendations = [WellnessTip.from_document(item) for item in data.get("recommendations") or []]
            progress = [ProgressEntry.from_document(item) for item in data.get("progress") or []]
        except (ValueError, TypeError, AttributeError) as exc:
            logger.warning("Rejected import payload: %s", exc, extra={"event": "tracker.import_invalid"})
            return False

        if profile is not None:
            self.store.save_profile(profile)
        if saved:
            self.store.save_saved_tips(saved)
        if recommendations:
            self.store.save_recommendations(recommendations)
        existing = {(entry.tip_id, entry.date) for entry in self.store.get_progress()}
        for entry in progress:
            if (entry.tip_id, entry.date) not in existing:
                self.store.append_progress(entry)
        return True
