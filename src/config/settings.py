# src/config/settings.py — v2
"""Typed configuration loaded from .env via pydantic-settings.

Single source of truth for all deployment-specific settings.
"""

from __future__ import annotations

from pathlib import Path
from typing import Literal

from pydantic import field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from careerlens.core.errors import ConfigurationError


class Settings(BaseSettings):
    """Application settings loaded from .env file."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # === AI SCORING ENDPOINT ===
    llm_default_provider: str = "openrouter"
    llm_default_model: str = "google/gemini-flash-1.5-8b"
    llm_default_temperature: float = 0.1

    # Per-component assignment, "provider:model" (highest priority)
    llm_resume_scorer: str = ""
    llm_profile_reviewer: str = "openrouter:google/gemini-2.5-flash-preview"

    # Provider credentials and endpoints
    openrouter_api_key: str = ""
    openrouter_base_url: str = "https://openrouter.ai/api/v1"
    openai_api_key: str = ""
    openai_base_url: str = "https://api.openai.com/v1"
    ai_http_referer: str = "http://localhost"
    ai_app_title: str = "careerlens"

    resume_ai_timeout_s: float = 30.0
    resume_ai_max_tokens: int = 250
    profile_ai_timeout_s: float = 25.0
    profile_ai_max_tokens: int = 300

    # === PROFILE DATA-FETCH ENDPOINT ===
    rapidapi_key: str = ""
    profile_api_url: str = "https://linkedin-api8.p.rapidapi.com/get-profile-data-by-url"
    profile_api_host: str = "linkedin-api8.p.rapidapi.com"
    profile_fields: str = "full_name,headline,summary,experiences,skills"
    profile_fetch_timeout_s: float = 30.0
    profile_analysis_timeout_s: float = 45.0

    # === RETRY ===
    http_max_attempts: int = 3
    http_backoff_base_s: float = 2.0
    http_backoff_max_s: float = 8.0
    http_backoff_jitter: bool = True

    # === CACHE ===
    cache_enabled: bool = True
    cache_backend: Literal["json", "sqlite", "redis"] = "json"
    cache_root: Path = Path("~/.careerlens/cache")
    cache_redis_url: str = ""
    memory_cache_max_size: int = 100
    resume_cache_ttl_s: float = 60 * 30
    profile_cache_ttl_s: float = 60 * 60 * 24 * 30
    linkedin_analysis_cache_ttl_s: float = 60 * 30
    memo_max_size: int = 100
    memo_ttl_s: float = 60 * 30

    # === WORKER ===
    worker_mode: Literal["process", "thread"] = "process"
    worker_max_workers: int = 1

    # === PERSISTENCE ===
    store_backend: Literal["sqlite", "supabase", "none"] = "sqlite"
    store_db_path: Path = Path("~/.careerlens/analyses.db")
    store_procedure_name: str = "insert_analysis"
    supabase_url: str = ""
    supabase_key: str = ""
    memory_fallback_max_size: int = 200

    # === PERFORMANCE MONITOR ===
    perf_max_samples: int = 100
    perf_stale_after_s: float = 60 * 5

    # === Logging ===
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"
    log_format: Literal["json", "text"] = "json"
    log_file: Path | None = None
    log_rotation: str = "10MB"
    log_retention: int = 30

    # --- Validators ---

    @field_validator(
        "resume_ai_timeout_s",
        "profile_ai_timeout_s",
        "profile_fetch_timeout_s",
        "profile_analysis_timeout_s",
    )
    @classmethod
    def validate_timeout(cls, v: float) -> float:  # noqa: N805
        if v <= 0:
            raise ValueError("timeouts must be > 0")
        return v

    @field_validator("http_max_attempts", "memory_cache_max_size", "memo_max_size")
    @classmethod
    def validate_positive(cls, v: int) -> int:  # noqa: N805
        if v < 1:
            raise ValueError("must be >= 1")
        return v

    @model_validator(mode="after")
    def validate_config_consistency(self) -> Settings:
        """Validate cross-field consistency rules."""
        errors: list[str] = []

        if self.cache_enabled and self.cache_backend == "redis" and not self.cache_redis_url:
            errors.append("CACHE_REDIS_URL must be set when CACHE_BACKEND=redis")

        if self.store_backend == "supabase" and not (
            self.supabase_url and self.supabase_key
        ):
            errors.append(
                "SUPABASE_URL and SUPABASE_KEY must be set when STORE_BACKEND=supabase"
            )

        if self.http_backoff_base_s < 0 or self.http_backoff_max_s < 0:
            errors.append("HTTP backoff delays must be >= 0")

        if errors:
            raise ConfigurationError("; ".join(errors))

        return self

    # --- Helpers ---

    @property
    def profile_fields_list(self) -> list[str]:
        """Parse comma-separated profile field list."""
        return [f.strip() for f in self.profile_fields.split(",") if f.strip()]

    def api_key_for(self, provider: str) -> str:
        """Return the credential configured for an AI provider."""
        return {
            "openrouter": self.openrouter_api_key,
            "openai": self.openai_api_key,
        }.get(provider, "")

    def base_url_for(self, provider: str) -> str:
        """Return the base URL configured for an AI provider."""
        return {
            "openrouter": self.openrouter_base_url,
            "openai": self.openai_base_url,
        }.get(provider, "")


def load_settings(**overrides: object) -> Settings:
    """Load settings from .env with optional overrides.

    Args:
        **overrides: Field-level overrides (for testing or per-call config).

    Returns:
        Validated Settings instance.

    Raises:
        ConfigurationError: If configuration is internally inconsistent.
    """
    return Settings(**overrides)  # type: ignore[arg-type]
