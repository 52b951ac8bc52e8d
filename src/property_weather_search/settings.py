from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from typing import Optional


MISSING_WEATHER_POLICIES = ("exclude", "include")


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    v = str(raw).strip().lower()
    if v in {"1", "true", "t", "yes", "y", "on"}:
        return True
    if v in {"0", "false", "f", "no", "n", "off"}:
        return False
    return default


def _env_int(name: str, default: int) -> int:
    raw = (os.getenv(name) or "").strip()
    if not raw:
        return default
    try:
        value = int(raw)
    except ValueError:
        return default
    return value if value > 0 else default


def _env_float(name: str, default: float) -> float:
    raw = (os.getenv(name) or "").strip()
    if not raw:
        return default
    try:
        value = float(raw)
    except ValueError:
        return default
    return value if value > 0 else default


def _env_str(name: str) -> Optional[str]:
    raw = (os.getenv(name) or "").strip()
    return raw or None


@dataclass(frozen=True)
class Settings:
    """Runtime configuration.

    Env vars are read once per process; defaults MUST preserve the documented
    search behavior (20 results, pages of 50, at most 3 pages).
    """

    db_path: str = "./properties.sqlite"
    weather_url: str = "https://api.open-meteo.com/v1/forecast"
    weather_timeout: float = 5.0
    weather_cache_ttl: float = 3600.0
    weather_cache_max_entries: int = 1024
    weather_concurrency: int = 5
    desired_results: int = 20
    fetch_batch_size: int = 50
    max_attempts: int = 3
    on_missing_weather: str = "exclude"
    frontend_url: Optional[str] = None
    cache_enabled: bool = True

    @classmethod
    def from_env(cls) -> "Settings":
        policy = (os.getenv("PWS_ON_MISSING_WEATHER") or "").strip().lower()
        if policy not in MISSING_WEATHER_POLICIES:
            policy = "exclude"
        return cls(
            db_path=_env_str("PWS_SQLITE_PATH") or cls.db_path,
            weather_url=_env_str("PWS_WEATHER_URL") or cls.weather_url,
            weather_timeout=_env_float("PWS_WEATHER_TIMEOUT", cls.weather_timeout),
            weather_cache_ttl=_env_float(
                "PWS_WEATHER_CACHE_TTL", cls.weather_cache_ttl
            ),
            weather_cache_max_entries=_env_int(
                "PWS_WEATHER_CACHE_MAX_ENTRIES", cls.weather_cache_max_entries
            ),
            weather_concurrency=_env_int(
                "PWS_WEATHER_CONCURRENCY", cls.weather_concurrency
            ),
            desired_results=_env_int("PWS_DESIRED_RESULTS", cls.desired_results),
            fetch_batch_size=_env_int("PWS_FETCH_BATCH_SIZE", cls.fetch_batch_size),
            max_attempts=_env_int("PWS_MAX_ATTEMPTS", cls.max_attempts),
            on_missing_weather=policy,
            frontend_url=_env_str("FRONTEND_URL"),
            cache_enabled=_env_bool("PWS_CACHE", True),
        )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings.from_env()


def reset_settings_cache() -> None:
    """Test helper to force env re-read."""

    get_settings.cache_clear()
