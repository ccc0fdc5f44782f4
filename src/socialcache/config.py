"""Process-wide settings, read once from the environment."""

from __future__ import annotations

import os

from socialcache.duration import parse_duration

DEFAULT_BASE_URL = "http://20.244.56.144/test"
DEFAULT_TTL_MS = 30_000
DEFAULT_MAX_CONCURRENCY = 10
DEFAULT_TIMEOUT_S = 10.0


def _env_flag(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")


class Settings:
    """Application settings loaded from environment variables."""

    def __init__(self) -> None:
        self.base_url: str = os.getenv("SOCIALCACHE_BASE_URL", DEFAULT_BASE_URL).rstrip("/")
        self.ttl_ms: int = parse_duration(os.getenv("SOCIALCACHE_TTL", str(DEFAULT_TTL_MS)))
        self.max_concurrency: int = int(
            os.getenv("SOCIALCACHE_MAX_CONCURRENCY", str(DEFAULT_MAX_CONCURRENCY))
        )
        self.timeout_s: float = float(os.getenv("SOCIALCACHE_TIMEOUT", str(DEFAULT_TIMEOUT_S)))
        self.single_flight: bool = _env_flag("SOCIALCACHE_SINGLE_FLIGHT", True)
        self.environment: str = os.getenv("ENVIRONMENT", "local")
        self.cors_origins: list[str] = os.getenv("CORS_ORIGINS", "*").split(",")

        if self.max_concurrency < 1:
            raise ValueError("SOCIALCACHE_MAX_CONCURRENCY must be at least 1")

    @property
    def is_production(self) -> bool:
        return self.environment == "production"
