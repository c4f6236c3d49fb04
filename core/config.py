"""Configuration management for the bot"""
import os
import random
from typing import List, Optional


def _int_env(name: str, default: int) -> int:
    value = os.getenv(name, "").strip()
    try:
        return int(value) if value else default
    except ValueError:
        raise ValueError(f"{name} must be an integer, got {value!r}")


class Config:
    """Centralized configuration management"""

    def __init__(self):
        # Bot credentials
        self.BOT_TOKEN = os.getenv("BOT_TOKEN", "")

        # Single operator who receives critical alerts and may use /stats
        admin_id = os.getenv("BOT_ADMIN_ID", "").strip()
        self.BOT_ADMIN_ID: Optional[int] = int(admin_id) if admin_id.lstrip("-").isdigit() else None

        # Archive channel: permanent home of every uploaded file
        self.ARCHIVE_CHANNEL_ID = _int_env("ARCHIVE_CHANNEL_ID", -1002505399520)

        # Cache files
        self.FILE_CACHE_PATH = os.getenv("FILE_CACHE_PATH", "file_id_cache.json")
        self.LANG_CACHE_PATH = os.getenv("LANG_CACHE_PATH", "user_languages.json")

        # Download services (one per provider)
        self.YOUTUBE_DL_API = os.getenv("YOUTUBE_DL_API", "")
        self.SPOTIFY_DL_API = os.getenv("SPOTIFY_DL_API", "")
        self.TIKTOK_DL_API = os.getenv("TIKTOK_DL_API", "")

        # Spotify Web API (track metadata)
        self.SPOTIFY_CLIENT_ID = os.getenv("SPOTIFY_CLIENT_ID", "")
        self.SPOTIFY_CLIENT_SECRET = os.getenv("SPOTIFY_CLIENT_SECRET", "")

        # Proxies for yt-dlp metadata lookups
        proxies_str = os.getenv("PROXIES", "")
        self.PROXIES: List[str] = [p.strip() for p in proxies_str.split(",") if p.strip()] if proxies_str else []

        # User agents
        self.USER_AGENTS = [
            "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 Chrome/122.0.0.0 Safari/537.36",
            "Mozilla/5.0 (Macintosh; Intel Mac OS X 13_6) AppleWebKit/537.36 Chrome/121.0.0.0 Safari/537.36",
            "Mozilla/5.0 (X11; Linux x86_64) AppleWebKit/537.36 Chrome/120.0.0.0 Safari/537.36",
        ]

        # Performance settings
        self.MAX_CONCURRENT_DOWNLOADS = _int_env("MAX_CONCURRENT_DOWNLOADS", 8)

        # Timeout settings (seconds)
        self.DOWNLOAD_TIMEOUT = _int_env("DOWNLOAD_TIMEOUT", 600)
        self.METADATA_TIMEOUT = _int_env("METADATA_TIMEOUT", 30)
        self.SHUTDOWN_GRACE_SECONDS = _int_env("SHUTDOWN_GRACE_SECONDS", 10)

        # Inline mode
        self.INLINE_SEARCH_LIMIT = _int_env("INLINE_SEARCH_LIMIT", 20)

        # Localization
        self.DEFAULT_LOCALE = os.getenv("DEFAULT_LOCALE", "en")

        # Health endpoint
        self.HEALTH_PORT = _int_env("PORT", 30077)

    def pick_proxy(self) -> Optional[str]:
        """Get random proxy from list"""
        return random.choice(self.PROXIES) if self.PROXIES else None

    def pick_user_agent(self) -> str:
        """Get random user agent"""
        return random.choice(self.USER_AGENTS)

    def is_admin(self, user_id: int) -> bool:
        """Check if user is the bot admin"""
        return self.BOT_ADMIN_ID is not None and user_id == self.BOT_ADMIN_ID

    def validate(self) -> bool:
        """Validate required configuration"""
        if not self.BOT_TOKEN:
            raise ValueError("BOT_TOKEN is required")
        if self.BOT_ADMIN_ID is None:
            raise ValueError("BOT_ADMIN_ID is required and must be a number")
        for name in ("YOUTUBE_DL_API", "SPOTIFY_DL_API", "TIKTOK_DL_API"):
            if not getattr(self, name):
                raise ValueError(f"{name} is required")
        return True

# Global config instance
config = Config()
