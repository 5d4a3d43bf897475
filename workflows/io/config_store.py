"""
[Prompt Bot Config Store] Environment-backed runtime settings.

Settings are read from environment variables and fall back to the defaults
below, so a bare checkout runs with in-memory state and English recognition.
Values are cached after the first read; call ``reload_settings()`` after
changing the environment (tests do this through monkeypatch).
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional

logger = logging.getLogger(__name__)

_DEFAULTS: Dict[str, Any] = {
    "culture": "en-us",
    "state_path": None,
    "min_lead_hours": 1.0,
    "fallback_diagnostics": False,
    "log_level": "INFO",
}

_TRUTHY = ("1", "true", "yes")


@dataclass(frozen=True)
class BotSettings:
    """Resolved settings for one process."""

    culture: str
    state_path: Optional[Path]
    min_lead_hours: float
    fallback_diagnostics: bool
    log_level: str


_cached_settings: Optional[BotSettings] = None


def is_dev_mode() -> bool:
    """Check if running in development mode. Does NOT mutate environment."""
    env_value = os.getenv("ENV", "prod").lower()
    return env_value in ("dev", "development", "local")


def _read_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return float(raw)
    except ValueError:
        logger.warning("[CONFIG] Ignoring non-numeric %s=%r, using %s", name, raw, default)
        return default


def _load_settings() -> BotSettings:
    raw_path = os.getenv("PROMPT_BOT_STATE_PATH")
    state_path = Path(raw_path).expanduser() if raw_path and raw_path.strip() else _DEFAULTS["state_path"]

    default_level = "DEBUG" if is_dev_mode() else _DEFAULTS["log_level"]

    return BotSettings(
        culture=(os.getenv("PROMPT_BOT_CULTURE") or _DEFAULTS["culture"]).strip().lower(),
        state_path=state_path,
        min_lead_hours=_read_float("PROMPT_BOT_MIN_LEAD_HOURS", _DEFAULTS["min_lead_hours"]),
        fallback_diagnostics=os.getenv("PROMPT_BOT_FALLBACK_DIAGNOSTICS", "").lower() in _TRUTHY,
        log_level=(os.getenv("LOG_LEVEL") or default_level).upper(),
    )


def get_settings(*, force_reload: bool = False) -> BotSettings:
    """[Prompt Bot Config Store] Return the cached settings, loading them on first use."""
    global _cached_settings

    if _cached_settings is None or force_reload:
        _cached_settings = _load_settings()
    return _cached_settings


def reload_settings() -> BotSettings:
    """[Prompt Bot Config Store] Drop the cache and re-read the environment."""
    return get_settings(force_reload=True)


def get_culture() -> str:
    """[Prompt Bot Config Store] Return the recognizer culture code (e.g., 'en-us')."""
    return get_settings().culture


def get_min_lead_hours() -> float:
    """[Prompt Bot Config Store] Return how far ahead a travel date must be, in hours."""
    return get_settings().min_lead_hours


__all__ = [
    "BotSettings",
    "get_settings",
    "reload_settings",
    "get_culture",
    "get_min_lead_hours",
    "is_dev_mode",
]
