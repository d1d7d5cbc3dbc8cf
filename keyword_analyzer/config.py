"""Runtime settings for the keyword analyzer.

Every tunable can be overridden through an environment variable of the same
name in upper case (``BATCH_SIZE``, ``RATE_LIMIT_PAUSE`` ...).  Delays are
expressed in seconds.
"""
from __future__ import annotations

import os
from typing import Literal

from pydantic import BaseModel, Field, field_validator

DEFAULT_CORS_ORIGINS = ["http://localhost:3000", "http://127.0.0.1:3000"]


class Settings(BaseModel):
    # OpenRouter
    openrouter_api_key: str | None = None
    openrouter_api_base: str = "https://openrouter.ai/api/v1"
    openrouter_model: str = "mistralai/mistral-7b-instruct"
    app_url: str = "https://keyword-analyzer.vercel.app"
    app_title: str = "Keyword Analyzer"

    # Batching
    batch_size: int = Field(default=10, ge=1)
    concurrent_batches: bool = True
    item_delay: float = Field(default=0.1, ge=0)
    batch_delay: float = Field(default=0.3, ge=0)

    # Oracle calls
    max_retries: int = Field(default=3, ge=0)
    retry_base_delay: float = Field(default=5.0, ge=0)
    rate_limit_pause: float = Field(default=60.0, ge=0)
    request_timeout: float = Field(default=30.0, gt=0)

    # Circuit breaker
    consecutive_error_threshold: int = Field(default=3, ge=1)
    consecutive_error_pause: float = Field(default=30.0, ge=0)

    # Pacing
    pacer_mode: Literal["token_bucket", "fixed_delay"] = "token_bucket"
    rate_limit_capacity: int = Field(default=50, ge=1)
    rate_limit_period: float = Field(default=60.0, gt=0)
    fixed_delay: float = Field(default=1.0, ge=0)

    # Progress stream
    keepalive_interval: float = Field(default=15.0, gt=0)
    subscriber_timeout: float = Field(default=300.0, gt=0)
    subscriber_queue_size: int = Field(default=100, ge=1)
    sse_retry_ms: int = Field(default=15000, ge=0)

    # Input
    default_category: str = "Broad"

    # Server
    cors_origins: list[str] = Field(default_factory=lambda: list(DEFAULT_CORS_ORIGINS))
    log_level: str = "INFO"
    host: str = "0.0.0.0"
    port: int = 8000

    @field_validator("log_level")
    @classmethod
    def _upper_log_level(cls, value: str) -> str:
        return value.upper()

    @classmethod
    def from_env(cls, environ: dict[str, str] | None = None) -> "Settings":
        """Build settings from environment variables, ignoring unset ones."""

        env = os.environ if environ is None else environ
        values: dict[str, object] = {}
        for name in cls.model_fields:
            if name == "cors_origins":
                continue
            raw = env.get(name.upper())
            if raw is not None and raw.strip() != "":
                values[name] = raw.strip()

        origins_env = env.get("API_CORS_ORIGINS", "")
        origins = [origin.strip() for origin in origins_env.split(",") if origin.strip()]
        if origins:
            values["cors_origins"] = origins
        return cls(**values)


__all__ = ["Settings"]
