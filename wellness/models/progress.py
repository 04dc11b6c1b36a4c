"""Progress log entries recorded against tips."""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Mapping


@dataclass(slots=True)
class ProgressEntry:
    """One check-in for a tip."""

    tip_id: str
    completed: bool
    notes: str | None = None
    date: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def to_document(self) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "tip_id": self.tip_id,
            "completed": self.completed,
            "date": self.date.astimezone(timezone.utc).isoformat(),
        }
        if self.notes:
            payload["notes"] = self.notes
        return payload

    @classmethod
    def from_document(cls, data: Mapping[str, Any]) -> "ProgressEntry":
        raw_date = data.get("date")
        try:
            when = datetime.fromisoformat(str(raw_date)) if raw_date else datetime.now(timezone.utc)
        except ValueError:
            when = datetime.now(timezone.utc)
        if when.tzinfo is None:
            when = when.replace(tzinfo=timezone.utc)
        notes = data.get("notes")
        return cls(
            tip_id=str(data.get("tip_id") or data.get("tipId") or ""),
            completed=bool(data.get("completed")),
            notes=notes if isinstance(notes, str) and notes else None,
            date=when,
        )
