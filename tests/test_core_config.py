"""Unit tests for app.core.config (settings and cache factory)."""

import pytest

from app.core.config import CacheBackend, Settings, create_cache_client, get_settings, reset_settings
from app.core.connectors import InMemoryCache, RedisCache
from app.core.errors import ConfigurationError


@pytest.fixture(autouse=True)
def fresh_settings():
    reset_settings()
    yield
    reset_settings()


@pytest.mark.unit
class TestSettings:
    """Test Settings dataclass."""

    def test_get_settings_singleton(self):
        """Test get_settings returns the same instance."""
        assert get_settings() is get_settings()

    def test_reset_settings(self):
        first = get_settings()
        reset_settings()
        assert get_settings() is not first

    def test_defaults(self, monkeypatch):
        """Test default values with a clean environment.

        ЧТО ПРОВЕРЯЕМ:
            Capacity ceilings 50/20, TTL 3600, port 8000, redis backend
        """
        for name in (
            "DATABASE_URL", "CACHE_BACKEND", "CACHE_TTL", "PORT", "PHOTO_LIMIT",
            "VIDEO_LIMIT", "REDIS_HOST", "REDIS_PORT", "REDIS_TIMEOUT", "UPLOAD_DIR",
            "CORS_ORIGINS", "REDIS_USER_NAME", "REDIS_PASSWORD",
        ):
            monkeypatch.delenv(name, raising=False)

        settings = Settings()

        assert settings.database_url.startswith("sqlite+aiosqlite://")
        assert settings.cache_backend is CacheBackend.REDIS
        assert settings.cache_ttl == 3600
        assert settings.port == 8000
        assert settings.photo_limit == 50
        assert settings.video_limit == 20
        assert settings.redis_host == "localhost"
        assert settings.redis_port == 6379
        assert settings.redis_timeout == 2.0
        assert settings.redis_username is None
        assert settings.upload_dir == "uploads"
        assert settings.cors_origins == ["*"]

    def test_environment_overrides(self, monkeypatch):
        monkeypatch.setenv("CACHE_BACKEND", "memory")
        monkeypatch.setenv("CACHE_TTL", "60")
        monkeypatch.setenv("PHOTO_LIMIT", "5")
        monkeypatch.setenv("REDIS_USER_NAME", "catalog")
        monkeypatch.setenv("CORS_ORIGINS", "https://a.example, https://b.example")

        settings = get_settings()

        assert settings.cache_backend is CacheBackend.MEMORY
        assert settings.cache_ttl == 60
        assert settings.photo_limit == 5
        assert settings.redis_username == "catalog"
        assert settings.cors_origins == ["https://a.example", "https://b.example"]

    def test_capacity_limits(self):
        settings = Settings(photo_limit=7, video_limit=3)
        assert settings.capacity_limits() == {"photo": 7, "video": 3}

    def test_invalid_backend(self, monkeypatch):
        monkeypatch.setenv("CACHE_BACKEND", "memcached")
        with pytest.raises(ConfigurationError, match="Unknown cache backend: memcached"):
            Settings()


@pytest.mark.unit
class TestCacheFactory:

    def test_memory_backend(self):
        settings = Settings(cache_backend=CacheBackend.MEMORY)
        assert isinstance(create_cache_client(settings=settings), InMemoryCache)

    def test_redis_backend_uses_settings(self):
        settings = Settings(
            cache_backend=CacheBackend.REDIS,
            redis_host="cache",
            redis_port=6380,
            redis_username="u",
            redis_password="p",
            redis_timeout=0.5,
            cache_prefix="catalog:",
        )

        cache = create_cache_client(settings=settings)

        assert isinstance(cache, RedisCache)
        assert (cache.host, cache.port, cache.username, cache.password) == ("cache", 6380, "u", "p")
        assert cache.timeout == 0.5
        assert cache.prefix == "catalog:"
        assert cache.client is None

    def test_explicit_backend_and_overrides(self):
        settings = Settings(cache_backend=CacheBackend.MEMORY)
        cache = create_cache_client(CacheBackend.REDIS, settings=settings, host="other")
        assert isinstance(cache, RedisCache)
        assert cache.host == "other"

    def test_unknown_backend(self):
        settings = Settings(cache_backend=CacheBackend.MEMORY)
        with pytest.raises(ConfigurationError) as exc:
            create_cache_client("memcached", settings=settings)
        assert exc.value.status_code == 500
