"""SQLite-backed store for the wellness session.

The store keeps four JSON payloads under fixed keys:
  - profile          (the submitted :class:`UserProfile`)
  - recommendations  (the current tip list)
  - saved_tips       (tips the user bookmarked; survive ``clear_session``)
  - progress         (append-only progress log)
plus a ``last_updated`` timestamp refreshed on every write.

Design notes
------------
- One ``kv`` table with ``key TEXT PRIMARY KEY`` and a ``data`` column holding
  the models' ``to_document()`` JSON. No transactional semantics beyond a
  single upsert are needed.
- WAL mode is enabled. Suitable for single-writer, multi-reader local use.

Default location (if not provided):  ~/.wellness/wellness.db
"""

from __future__ import annotations

from datetime import datetime, timezone
import json
import logging
from pathlib import Path
import sqlite3
from typing import Any, Final, Protocol

from wellness.config import resolve_db_path
from wellness.models.profile import UserProfile
from wellness.models.progress import ProgressEntry
from wellness.models.tip import WellnessTip

logger = logging.getLogger(__name__)

PROFILE_KEY: Final[str] = "profile"
RECOMMENDATIONS_KEY: Final[str] = "recommendations"
SAVED_TIPS_KEY: Final[str] = "saved_tips"
PROGRESS_KEY: Final[str] = "progress"
LAST_UPDATED_KEY: Final[str] = "last_updated"
ALL_KEYS: Final[tuple[str, ...]] = (
    PROFILE_KEY,
    RECOMMENDATIONS_KEY,
    SAVED_TIPS_KEY,
    PROGRESS_KEY,
    LAST_UPDATED_KEY,
)


class WellnessStore(Protocol):
    """Contract for persisting the profile, tips and progress."""

    def get_profile(self) -> UserProfile | None: ...

    def save_profile(self, profile: UserProfile) -> None: ...

    def get_recommendations(self) -> list[WellnessTip]: ...

    def save_recommendations(self, tips: list[WellnessTip]) -> None: ...

    def get_saved_tips(self) -> list[WellnessTip]: ...

    def save_saved_tips(self, tips: list[WellnessTip]) -> None: ...

    def get_progress(self) -> list[ProgressEntry]: ...

    def append_progress(self, entry: ProgressEntry) -> None: ...

    def get_last_updated(self) -> datetime | None: ...

    def clear_session(self) -> None: ...

    def clear_all(self) -> None: ...


def _json(obj: Any) -> str:
    return json.dumps(obj, ensure_ascii=False, separators=(",", ":"))


def _iso_now() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="seconds")


def _parse_timestamp(value: Any) -> datetime | None:
    if not isinstance(value, str) or not value:
        return None
    try:
        parsed = datetime.fromisoformat(value)
    except ValueError:
        return None
    return parsed if parsed.tzinfo else parsed.replace(tzinfo=timezone.utc)


class _DocumentStore:
    """Shared (de)serialisation on top of ``_read``/``_write``/``_delete``."""

    def _read(self, key: str) -> Any | None:  # pragma: no cover - interface
        raise NotImplementedError

    def _write(self, key: str, value: Any) -> None:  # pragma: no cover - interface
        raise NotImplementedError

    def _delete(self, key: str) -> None:  # pragma: no cover - interface
        raise NotImplementedError

    def _touch(self) -> None:
        self._write(LAST_UPDATED_KEY, _iso_now())

    def _read_tips(self, key: str) -> list[WellnessTip]:
        payload = self._read(key)
        if not isinstance(payload, list):
            return []
        tips: list[WellnessTip] = []
        for item in payload:
            if not isinstance(item, dict):
                continue
            try:
                tips.append(WellnessTip.from_document(item))
            except ValueError:
                logger.warning("Skipping stored tip with invalid data under %s", key)
        return tips

    def get_profile(self) -> UserProfile | None:
        payload = self._read(PROFILE_KEY)
        if not isinstance(payload, dict):
            return None
        try:
            return UserProfile.from_document(payload)
        except ValueError:
            logger.warning("Stored profile is invalid; ignoring it")
            return None

    def save_profile(self, profile: UserProfile) -> None:
        self._write(PROFILE_KEY, profile.to_document())
        self._touch()

    def get_recommendations(self) -> list[WellnessTip]:
        return self._read_tips(RECOMMENDATIONS_KEY)

    def save_recommendations(self, tips: list[WellnessTip]) -> None:
        self._write(RECOMMENDATIONS_KEY, [tip.to_document() for tip in tips])
        self._touch()

    def get_saved_tips(self) -> list[WellnessTip]:
        return self._read_tips(SAVED_TIPS_KEY)

    def save_saved_tips(self, tips: list[WellnessTip]) -> None:
        self._write(SAVED_TIPS_KEY, [tip.to_document() for tip in tips])
        self._touch()

    def get_progress(self) -> list[ProgressEntry]:
        payload = self._read(PROGRESS_KEY)
        if not isinstance(payload, list):
            return []
        return [ProgressEntry.from_document(item) for item in payload if isinstance(item, dict)]

    def append_progress(self, entry: ProgressEntry) -> None:
        entries = [item.to_document() for item in self.get_progress()]
        entries.append(entry.to_document())
        self._write(PROGRESS_KEY, entries)
        self._touch()

    def get_last_updated(self) -> datetime | None:
        return _parse_timestamp(self._read(LAST_UPDATED_KEY))

    def clear_session(self) -> None:
        """Forget the profile and recommendations but keep saved tips."""
        self._delete(PROFILE_KEY)
        self._delete(RECOMMENDATIONS_KEY)
        self._touch()

    def clear_all(self) -> None:
        for key in ALL_KEYS:
            self._delete(key)


class InMemoryWellnessStore(_DocumentStore):
    """Store used in tests and when the database cannot be opened."""

    def __init__(self) -> None:
        self._data: dict[str, str] = {}

    def _read(self, key: str) -> Any | None:
        raw = self._data.get(key)
        return json.loads(raw) if raw is not None else None

    def _write(self, key: str, value: Any) -> None:
        self._data[key] = _json(value)

    def _delete(self, key: str) -> None:
        self._data.pop(key, None)


class SQLiteWellnessStore(_DocumentStore):
    """Key/value store persisted in a local SQLite file."""

    def __init__(self, db_path: str | Path | None = None, *, table: str = "kv") -> None:
        self._db_path = Path(db_path) if db_path else resolve_db_path()
        self._table = table

        if str(self._db_path) != ":memory:":
            self._db_path.parent.mkdir(parents=True, exist_ok=True)
        self._conn = sqlite3.connect(str(self._db_path), check_same_thread=False)
        self._conn.row_factory = sqlite3.Row
        with self._conn:
            self._conn.execute("PRAGMA journal_mode = WAL;")
        self._bootstrap()

    @property
    def db_path(self) -> Path:
        return self._db_path

    def _bootstrap(self) -> None:
        with self._conn:
            self._conn.execute(
                f"""
                CREATE TABLE IF NOT EXISTS {self._table} (
                    key TEXT PRIMARY KEY,
                    data TEXT NOT NULL,
                    updated_at TEXT NOT NULL
                );
                """
            )

    def _read(self, key: str) -> Any | None:
        row = self._conn.execute(
            f"SELECT data FROM {self._table} WHERE key = ?;",
            (key,),
        ).fetchone()
        if not row:
            return None
        try:
            return json.loads(row["data"])
        except json.JSONDecodeError:
            logger.warning("Discarding corrupt JSON stored under %s", key)
            return None

    def _write(self, key: str, value: Any) -> None:
        with self._conn:
            self._conn.execute(
                f"""
                INSERT INTO {self._table}(key, data, updated_at)
                VALUES (?, ?, ?)
                ON CONFLICT(key) DO UPDATE SET
                    data = excluded.data,
                    updated_at = excluded.updated_at;
                """,
                (key, _json(value), _iso_now()),
            )

    def _delete(self, key: str) -> None:
        with self._conn:
            self._conn.execute(f"DELETE FROM {self._table} WHERE key = ?;", (key,))

    def close(self) -> None:
        self._conn.close()


def create_store(db_path: str | Path | None = None) -> WellnessStore:
    """Open the SQLite store, falling back to memory when the file is unusable."""

    try:
        return SQLiteWellnessStore(db_path=db_path)
    except (sqlite3.Error, OSError):
        logger.exception("SQLite store init failed; falling back to in-memory.")
        return InMemoryWellnessStore()
