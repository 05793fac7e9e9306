"""
Configuration settings for the hybrid inference layer.

All settings are loaded from environment variables with sensible defaults.
Use .env file for local development. Settings are read once at startup;
there is no hot reload.
"""

from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # === Application ===
    APP_NAME: str = "Hybrid Inference Layer"
    APP_VERSION: str = "0.1.0"
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"
    ENVIRONMENT: str = "development"

    # === Circuit Breaker (one per remote tier) ===
    BREAKER_FAILURE_THRESHOLD: int = 10  # consecutive failures to trip
    BREAKER_SUCCESS_THRESHOLD: int = 3  # HALF_OPEN successes to close
    BREAKER_COOLDOWN_SECONDS: float = 60.0

    # === Retry Policies ===
    # Per-category overrides, e.g. {"network_error": {"max_attempts": 2, "base_delay": 0.5}}
    RETRY_POLICY_OVERRIDES: dict[str, dict] = {}

    # === Result Cache ===
    CACHE_ENABLED: bool = True
    CACHE_TTL_SECONDS: float = 3600.0
    CACHE_MAX_ENTRIES: int = 1000
    CACHE_KEY_PREFIX: str = "ai:suggestion:"

    # === Local Tier ===
    LOCAL_TIER_ENABLED: bool = False
    LOCAL_CONFIDENCE_THRESHOLD: float = 0.7  # used when preferences carry none
    LOCAL_TIER_VERSION: str = "local-v1"
    # "package.module:callable" taking an InferenceRequest and returning an InferenceResult
    LOCAL_TIER_FACTORY: Optional[str] = None

    # === Remote Tiers (OpenAI-compatible chat completions) ===
    REMOTE_API_BASE_URL: str = "https://api.openai.com/v1"
    REMOTE_API_KEY: str = ""
    PRIMARY_MODEL: str = "gpt-4o-mini"
    FALLBACK_MODEL: str = "gpt-3.5-turbo"
    SECONDARY_API_BASE_URL: Optional[str] = None  # defaults to REMOTE_API_BASE_URL
    SECONDARY_API_KEY: Optional[str] = None  # defaults to REMOTE_API_KEY
    LLM_MAX_TOKENS: int = 1000
    LLM_TEMPERATURE: float = 0.7
    TIER_TIMEOUT_SECONDS: float = 30.0

    # === Backpressure (token bucket per remote client) ===
    REMOTE_REQUESTS_PER_MINUTE: int = 60
    REMOTE_BURST_SIZE: int = 10

    # === Monitoring ===
    PROMETHEUS_ENABLED: bool = True


# Global settings instance
settings = Settings()
