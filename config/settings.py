from __future__ import annotations

import os
from functools import lru_cache
from typing import List, Mapping, Optional

from dotenv import load_dotenv


load_dotenv()


def read_env_any(*keys: str, environ: Optional[Mapping[str, str]] = None) -> Optional[str]:
    """Return the first non-empty value among ``keys``.

    Hosting dashboards make it easy to save a variable as ``" YT_API_KEY"``,
    so a key whose name only matches after trimming is accepted too.
    """
    env = os.environ if environ is None else environ
    for key in keys:
        value = (env.get(key) or "").strip()
        if value:
            return value
        for name, candidate in env.items():
            if name.strip() == key and candidate and candidate.strip():
                return candidate.strip()
    return None


def _as_bool(value: Optional[str], default: bool) -> bool:
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


class Settings:
    """Application settings loaded from environment variables.

    Keep all credentials and config centralized here.
    """

    def __init__(self, environ: Optional[Mapping[str, str]] = None) -> None:
        env = os.environ if environ is None else environ

        self.app_env: str = env.get("APP_ENV", "development")
        self.gemini_api_key: Optional[str] = read_env_any(
            "GEMINI_API_KEY", "GOOGLE_API_KEY", environ=env
        )
        self.youtube_api_key: Optional[str] = read_env_any(
            "YT_API_KEY", "YT_APIKEY", "YOUTUBE_API_KEY", "YT_KEY", environ=env
        )
        self.channel_id: Optional[str] = read_env_any(
            "YT_CHANNEL_ID", "YOUTUBE_CHANNEL_ID", "CHANNEL_ID", environ=env
        )
        self.gemini_model: str = env.get("GEMINI_MODEL", "gemini-2.5-flash")
        self.gemini_base_url: str = env.get(
            "GEMINI_BASE_URL", "https://generativelanguage.googleapis.com/v1beta"
        )
        self.youtube_api_url: str = env.get(
            "YOUTUBE_API_URL", "https://www.googleapis.com/youtube/v3"
        )
        self.youtube_feed_url: str = env.get(
            "YOUTUBE_FEED_URL", "https://www.youtube.com/feeds/videos.xml"
        )
        self.show_name: str = env.get("SHOW_NAME", "AI With Arun Show")
        self.guardrails_enabled: bool = _as_bool(env.get("GUARDRAILS_ENABLED"), True)
        self.recent_video_count: int = int(env.get("RECENT_VIDEO_COUNT", "25"))
        self.http_timeout: float = float(env.get("HTTP_TIMEOUT", "30"))
        self.cors_origins: List[str] = [
            origin.strip()
            for origin in env.get("CORS_ORIGINS", "*").split(",")
            if origin.strip()
        ]
        self.max_sessions: int = int(env.get("MAX_SESSIONS", "1000"))

    @property
    def catalog_configured(self) -> bool:
        return bool(self.youtube_api_key and self.channel_id)

    def env_status(self) -> dict:
        """Presence flags only; secrets are never echoed back."""
        key = self.youtube_api_key
        return {
            "GEMINI_API_KEY_set": bool(self.gemini_api_key),
            "YT_CHANNEL_ID_set": bool(self.channel_id),
            "YT_API_KEY_set": bool(key),
            "YT_API_KEY_preview": key[:4] + "..." if key else None,
        }


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()
