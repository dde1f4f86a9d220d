import logging
import os
from dataclasses import dataclass
from functools import lru_cache

import redis
from dotenv import load_dotenv

load_dotenv()


def _split_list(value: str) -> tuple[str, ...]:
    """Split a comma-separated environment value into a tuple of non-empty items."""
    return tuple(item.strip() for item in value.split(",") if item.strip())


@dataclass(frozen=True)
class Settings:
    """Application settings loaded from environment variables."""

    # Redis (quota counters and translation cache)
    redis_url: str = os.getenv("REDIS_URL", "redis://localhost:6379")
    redis_password: str | None = os.getenv("REDIS_PASSWORD")
    key_prefix: str = os.getenv("KEY_PREFIX", "cron_translator")

    # Model provider (OpenAI-compatible chat completions)
    openrouter_api_key: str | None = os.getenv("OPENROUTER_API_KEY")
    openrouter_base_url: str = os.getenv("OPENROUTER_BASE_URL", "https://openrouter.ai/api/v1")
    app_referer: str = os.getenv("APP_REFERER", "https://kronilo.timothybrits.com")
    app_title: str = os.getenv("APP_TITLE", "Cron Translator")

    # Model roster, primary first
    translation_models: tuple[str, ...] = _split_list(
        os.getenv("TRANSLATION_MODELS", "google/gemma-3-27b-it:free,qwen/qwen3-14b:free")
    )
    model_timeout_seconds: float = float(os.getenv("MODEL_TIMEOUT_SECONDS", "7"))
    retry_backoff_seconds: float = float(os.getenv("RETRY_BACKOFF_SECONDS", "0.25"))
    retry_temperature: float = float(os.getenv("RETRY_TEMPERATURE", "0.1"))
    primary_attempts: int = int(os.getenv("PRIMARY_ATTEMPTS", "2"))
    model_max_tokens: int = int(os.getenv("MODEL_MAX_TOKENS", "50"))

    # Cache
    cache_version: str = os.getenv("CACHE_VERSION", "v4")
    cache_ttl: int = int(os.getenv("CACHE_TTL", "1814400"))  # 21 days default

    # Quota
    daily_limit: int = int(os.getenv("DAILY_LIMIT", "50"))
    per_caller_max: int = int(os.getenv("PER_CALLER_MAX", "3"))
    per_caller_window_seconds: int = int(os.getenv("PER_CALLER_WINDOW_SECONDS", "3600"))
    burst_max: int = int(os.getenv("BURST_MAX", "2"))
    burst_window_seconds: int = int(os.getenv("BURST_WINDOW_SECONDS", "60"))
    counter_flush_seconds: float = float(os.getenv("COUNTER_FLUSH_SECONDS", "3"))

    # API
    cors_origins: tuple[str, ...] = _split_list(
        os.getenv(
            "CORS_ORIGINS",
            "https://kronilo.timothybrits.com,https://kronilo.onrender.com,http://localhost:5173",
        )
    )
    log_level: str = os.getenv("LOG_LEVEL", "INFO")
    api_host: str = os.getenv("API_HOST", "0.0.0.0")
    api_port: int = int(os.getenv("API_PORT", "8000"))
    api_reload: bool = os.getenv("API_RELOAD", "false").lower() == "true"

    @property
    def primary_model(self) -> str:
        """Identifier of the first model in the roster."""
        return self.translation_models[0]

    def __post_init__(self) -> None:
        """Validate settings after initialization."""
        if not self.translation_models:
            raise ValueError("TRANSLATION_MODELS must name at least one model")

        for name in ("daily_limit", "per_caller_max", "per_caller_window_seconds", "burst_max", "burst_window_seconds"):
            if getattr(self, name) <= 0:
                raise ValueError(f"{name.upper()} must be a positive integer, got {getattr(self, name)}")

        if self.burst_window_seconds > self.per_caller_window_seconds:
            raise ValueError("BURST_WINDOW_SECONDS must not exceed PER_CALLER_WINDOW_SECONDS")

        if self.primary_attempts < 1:
            raise ValueError("PRIMARY_ATTEMPTS must be at least 1")

        if self.model_timeout_seconds <= 0:
            raise ValueError("MODEL_TIMEOUT_SECONDS must be positive")


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


# Global settings instance
settings = get_settings()


def get_redis_client() -> redis.Redis:
    """Create a Redis client instance."""
    return redis.from_url(
        settings.redis_url,
        password=settings.redis_password,
        decode_responses=True,
    )


def configure_logging(level: str | None = None) -> None:
    """Configure root logging once for the process."""
    logging.basicConfig(
        level=(level or settings.log_level).upper(),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )
