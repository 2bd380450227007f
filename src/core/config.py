# core/config.py
from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

logger = logging.getLogger(__name__)

DEFAULT_LRCLIB_URL = "https://lrclib.net"
DEFAULT_POLL_INTERVAL_MS = 1000
DEFAULT_DRIFT_TOLERANCE_S = 2.0
DEFAULT_HTTP_TIMEOUT_S = 15.0
DEFAULT_USER_AGENT = "lyricsync/0.1"


@dataclass(frozen=True)
class Settings:
    spotify_token: Optional[str] = None
    genius_token: Optional[str] = None
    youtube_api_key: Optional[str] = None
    lrclib_url: str = DEFAULT_LRCLIB_URL
    poll_interval_ms: int = DEFAULT_POLL_INTERVAL_MS
    drift_tolerance_s: float = DEFAULT_DRIFT_TOLERANCE_S
    http_timeout_s: float = DEFAULT_HTTP_TIMEOUT_S
    user_agent: str = DEFAULT_USER_AGENT
    mpv_path: Optional[str] = None

    @property
    def video_enabled(self) -> bool:
        return bool(self.youtube_api_key)


def _env_str(name: str) -> Optional[str]:
    raw = os.getenv(name)
    if raw is None:
        return None
    raw = raw.strip()
    return raw or None


def _env_int(name: str, default: int) -> int:
    raw = _env_str(name)
    if raw is None:
        return default
    try:
        val = int(raw)
    except ValueError:
        logger.warning("Invalid integer for %s=%r; using %s", name, raw, default)
        return default
    if val < 1:
        logger.warning("Non-positive value for %s=%r; using %s", name, raw, default)
        return default
    return val


def _env_float(name: str, default: float) -> float:
    raw = _env_str(name)
    if raw is None:
        return default
    try:
        val = float(raw)
    except ValueError:
        logger.warning("Invalid number for %s=%r; using %s", name, raw, default)
        return default
    if val <= 0:
        logger.warning("Non-positive value for %s=%r; using %s", name, raw, default)
        return default
    return val


def load_settings(env_file: Optional[str] = None) -> Settings:
    """
    Build Settings from the environment.

    A .env file (explicit path, or ./.env) is loaded first; variables already
    present in the environment win over the file.
    """
    path = Path(env_file) if env_file else Path.cwd() / ".env"
    if path.is_file():
        load_dotenv(path, override=False)
        logger.debug("Loaded environment from %s", path)

    return Settings(
        spotify_token=_env_str("SPOTIFY_ACCESS_TOKEN"),
        genius_token=_env_str("GENIUS_ACCESS_TOKEN"),
        youtube_api_key=_env_str("YOUTUBE_API_KEY"),
        lrclib_url=(_env_str("LYRICSYNC_LRCLIB_URL") or DEFAULT_LRCLIB_URL).rstrip("/"),
        poll_interval_ms=_env_int("LYRICSYNC_POLL_INTERVAL_MS", DEFAULT_POLL_INTERVAL_MS),
        drift_tolerance_s=_env_float("LYRICSYNC_DRIFT_TOLERANCE_S", DEFAULT_DRIFT_TOLERANCE_S),
        http_timeout_s=_env_float("LYRICSYNC_HTTP_TIMEOUT_S", DEFAULT_HTTP_TIMEOUT_S),
        user_agent=_env_str("LYRICSYNC_USER_AGENT") or DEFAULT_USER_AGENT,
        mpv_path=_env_str("LYRICSYNC_MPV_PATH"),
    )
