"""Environment-driven configuration for the generation layer."""
from __future__ import annotations

from dataclasses import dataclass
import logging
import os
from pathlib import Path
from typing import Final

LOGGER = logging.getLogger(__name__)

DEFAULT_MODEL: Final[str] = "gemini-1.5-flash"
DEFAULT_BASE_URL: Final[str] = "https://generativelanguage.googleapis.com/v1beta"
DEFAULT_DB_PATH: Final[Path] = Path.home() / ".wellness" / "wellness.db"

# Requested tips per call; the parser always pads to at least five.
MIN_TIP_COUNT: Final[int] = 5
MAX_TIP_COUNT: Final[int] = 6


def _env_str(*names: str) -> str | None:
    for name in names:
        value = os.getenv(name)
        if value and value.strip():
            return value.strip()
    return None


def _env_float(name: str, default: float, *, minimum: float = 0.0) -> float:
    """Return a float from the environment, falling back to ``default`` on bad input."""

    raw_value = os.getenv(name)
    if not raw_value:
        return default

    try:
        value = float(raw_value)
    except ValueError:
        LOGGER.warning("Ignoring invalid numeric value in %s", name)
        return default

    if value < minimum:
        LOGGER.warning("Ignoring out-of-range value in %s", name)
        return default
    return value


def _env_int(name: str, default: int, *, minimum: int = 0, maximum: int | None = None) -> int:
    raw_value = os.getenv(name)
    if not raw_value:
        return default

    if not raw_value.strip().isdigit():
        LOGGER.warning("Ignoring invalid integer value in %s", name)
        return default

    value = int(raw_value)
    if value < minimum or (maximum is not None and value > maximum):
        LOGGER.warning("Ignoring out-of-range value in %s", name)
        return default
    return value


@dataclass(frozen=True, slots=True)
class GenerationSettings:
    """Settings for talking to the Gemini ``generateContent`` endpoint."""

    api_key: str | None = None
    model: str = DEFAULT_MODEL
    base_url: str = DEFAULT_BASE_URL
    min_request_interval: float = 1.5
    request_timeout: float = 15.0
    max_attempts: int = 3
    backoff_base: float = 2.0
    retry_delay: float = 1.0
    tip_count: int = MAX_TIP_COUNT
    temperature: float = 0.7
    max_output_tokens: int = 2048
    top_p: float = 0.95
    top_k: int = 40

    @classmethod
    def from_env(cls) -> "GenerationSettings":
        """Read settings once from the process environment."""

        return cls(
            api_key=_env_str("GEMINI_API_KEY", "WELLNESS_GEMINI_API_KEY"),
            model=_env_str("WELLNESS_GEMINI_MODEL") or DEFAULT_MODEL,
            base_url=(_env_str("WELLNESS_GEMINI_BASE_URL") or DEFAULT_BASE_URL).rstrip("/"),
            min_request_interval=_env_float("WELLNESS_MIN_REQUEST_INTERVAL", 1.5),
            request_timeout=_env_float("WELLNESS_REQUEST_TIMEOUT", 15.0, minimum=0.1),
            max_attempts=_env_int("WELLNESS_MAX_ATTEMPTS", 3, minimum=1),
            backoff_base=_env_float("WELLNESS_BACKOFF_BASE", 2.0),
            retry_delay=_env_float("WELLNESS_RETRY_DELAY", 1.0),
            tip_count=_env_int("WELLNESS_TIP_COUNT", MAX_TIP_COUNT, minimum=MIN_TIP_COUNT, maximum=MAX_TIP_COUNT),
            temperature=_env_float("WELLNESS_TEMPERATURE", 0.7),
            max_output_tokens=_env_int("WELLNESS_MAX_OUTPUT_TOKENS", 2048, minimum=1),
        )

    @property
    def has_api_key(self) -> bool:
        return bool(self.api_key)


def resolve_db_path() -> Path:
    """Return the SQLite location, honouring ``WELLNESS_DB_PATH``."""

    raw = _env_str("WELLNESS_DB_PATH")
    return Path(raw).expanduser() if raw else DEFAULT_DB_PATH


def configure_logging() -> None:
    """Configure root logging based on ``WELLNESS_LOG_LEVEL``."""
    level_name = os.getenv("WELLNESS_LOG_LEVEL", "INFO").upper()
    level = getattr(logging, level_name, logging.INFO)
    logging.basicConfig(level=level, format="%(asctime)s [%(levelname)s] %(name)s: %(message)s")
