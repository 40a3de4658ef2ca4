"""
Settings - Application configuration using dataclasses.

Environment variables:
- DATABASE_URL: SQLAlchemy async URL of the record store
- CACHE_BACKEND: redis, memory
- REDIS_HOST / REDIS_PORT / REDIS_USER_NAME / REDIS_PASSWORD: cache connection
- REDIS_TIMEOUT: connect/operation timeout in seconds
- CACHE_TTL: TTL of cache entries in seconds
- PORT: HTTP listening port
- UPLOAD_DIR: directory for uploaded blobs
- PHOTO_LIMIT / VIDEO_LIMIT: capacity ceilings
- LOG_FILE: optional rotating JSON log file (levels: LOG_LEVEL, LOG_JSON)
- CORS_ORIGINS: comma-separated allowed origins
"""

import os
from enum import Enum
from typing import List, Optional
from dataclasses import dataclass, field

from ..errors import ConfigurationError


class CacheBackend(str, Enum):
    """Cache backend options."""
    REDIS = "redis"
    MEMORY = "memory"


def _env_list(name: str, default: str) -> List[str]:
    return [item.strip() for item in os.getenv(name, default).split(",") if item.strip()]


def _env_cache_backend() -> CacheBackend:
    raw = os.getenv("CACHE_BACKEND", "redis")
    try:
        return CacheBackend(raw)
    except ValueError as e:
        raise ConfigurationError(f"Unknown cache backend: {raw}", data={"env": "CACHE_BACKEND"}, cause=e)


@dataclass
class Settings:
    """Application settings from environment."""

    # Record store
    database_url: str = field(
        default_factory=lambda: os.getenv("DATABASE_URL", "sqlite+aiosqlite:///./catalog.db")
    )
    database_echo: bool = field(
        default_factory=lambda: os.getenv("DATABASE_ECHO", "false").lower() == "true"
    )

    # Cache
    cache_backend: CacheBackend = field(
        default_factory=_env_cache_backend
    )
    redis_host: str = field(
        default_factory=lambda: os.getenv("REDIS_HOST", "localhost")
    )
    redis_port: int = field(
        default_factory=lambda: int(os.getenv("REDIS_PORT", "6379"))
    )
    redis_username: Optional[str] = field(
        default_factory=lambda: os.getenv("REDIS_USER_NAME")
    )
    redis_password: Optional[str] = field(
        default_factory=lambda: os.getenv("REDIS_PASSWORD")
    )
    redis_timeout: float = field(
        default_factory=lambda: float(os.getenv("REDIS_TIMEOUT", "2"))
    )
    cache_ttl: int = field(
        default_factory=lambda: int(os.getenv("CACHE_TTL", "3600"))
    )
    cache_prefix: str = field(
        default_factory=lambda: os.getenv("CACHE_PREFIX", "")
    )

    # HTTP
    port: int = field(
        default_factory=lambda: int(os.getenv("PORT", "8000"))
    )
    cors_origins: List[str] = field(
        default_factory=lambda: _env_list("CORS_ORIGINS", "*")
    )

    # Ingestion
    upload_dir: str = field(
        default_factory=lambda: os.getenv("UPLOAD_DIR", "uploads")
    )
    photo_limit: int = field(
        default_factory=lambda: int(os.getenv("PHOTO_LIMIT", "50"))
    )
    video_limit: int = field(
        default_factory=lambda: int(os.getenv("VIDEO_LIMIT", "20"))
    )

    # Logging
    log_file: Optional[str] = field(
        default_factory=lambda: os.getenv("LOG_FILE")
    )

    def capacity_limits(self) -> dict:
        """Capacity ceiling per asset kind value."""
        return {"photo": self.photo_limit, "video": self.video_limit}


# Singleton instance
_settings: Optional[Settings] = None


def get_settings() -> Settings:
    """Get settings singleton."""
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings


def reset_settings():
    """Forget the cached settings (tests, reloads)."""
    global _settings
    _settings = None
