# tests/integration/config/test_int_settings.py — v2
"""Integration tests for configuration loading.

Tests Settings with real .env files, validation rules, cross-field
consistency and the AI component resolution built on top of them.
No external services required.
"""

from __future__ import annotations

from pathlib import Path

import pytest

from careerlens.cache.cache_factory import create_cache_store
from careerlens.config.settings import ConfigurationError, Settings
from careerlens.llm.config import resolve_all
from careerlens.storage.store_factory import create_analysis_store


class TestSettingsLoading:

    def test_defaults(self):
        settings = Settings(_env_file=None)
        assert settings.llm_default_provider == "openrouter"
        assert settings.cache_backend == "json"
        assert settings.cache_enabled is True

    def test_from_env_file(self, tmp_path: Path):
        env_file = tmp_path / ".env"
        env_file.write_text(
            "OPENROUTER_API_KEY=sk-or-test\n"
            "RAPIDAPI_KEY=rapid-test\n"
            "LLM_RESUME_SCORER=openai:gpt-4o-mini\n"
            "HTTP_MAX_ATTEMPTS=5\n"
            "CACHE_BACKEND=sqlite\n"
            f"CACHE_ROOT={tmp_path / 'cache'}\n"
            "WORKER_MODE=thread\n"
            "PROFILE_FIELDS=full_name, headline ,skills\n"
            "UNRELATED_VARIABLE=ignored\n"
        )
        settings = Settings(_env_file=str(env_file))
        assert settings.openrouter_api_key == "sk-or-test"
        assert settings.rapidapi_key == "rapid-test"
        assert settings.http_max_attempts == 5
        assert settings.cache_root == tmp_path / "cache"
        assert settings.worker_mode == "thread"
        assert settings.profile_fields_list == ["full_name", "headline", "skills"]

    def test_env_file_drives_component_resolution(self, tmp_path: Path):
        env_file = tmp_path / ".env"
        env_file.write_text(
            "LLM_RESUME_SCORER=openai:gpt-4o-mini\n"
            "LLM_PROFILE_REVIEWER=\n"
            "LLM_DEFAULT_MODEL=meta-llama/llama-3-8b\n"
        )
        assignments = resolve_all(Settings(_env_file=str(env_file)))
        assert assignments["resume_scorer"].key == "openai:gpt-4o-mini"
        assert assignments["resume_scorer"].source == "component"
        assert assignments["profile_reviewer"].model == "meta-llama/llama-3-8b"
        assert assignments["profile_reviewer"].source == "default"


class TestSettingsValidation:

    def test_redis_needs_url(self, tmp_path: Path):
        env_file = tmp_path / ".env"
        env_file.write_text("CACHE_BACKEND=redis\n")
        with pytest.raises(ConfigurationError, match="CACHE_REDIS_URL"):
            Settings(_env_file=str(env_file))

    def test_all_errors_reported_together(self):
        with pytest.raises(ConfigurationError) as exc_info:
            Settings(
                _env_file=None,
                cache_backend="redis",
                store_backend="supabase",
            )
        message = str(exc_info.value)
        assert "CACHE_REDIS_URL" in message
        assert "SUPABASE_URL" in message

    def test_invalid_literal_rejected(self):
        with pytest.raises(Exception):
            Settings(_env_file=None, store_backend="mongo")


class TestBackendsFromSettings:

    @pytest.mark.asyncio
    async def test_configured_backends_usable(self, tmp_path: Path):
        settings = Settings(
            _env_file=None,
            cache_backend="sqlite",
            cache_root=tmp_path / "cache",
            store_backend="sqlite",
            store_db_path=tmp_path / "db" / "analyses.db",
        )
        cache = create_cache_store(settings)
        store = create_analysis_store(settings)
        try:
            assert await cache.keys() == []
            assert await store.fetch_latest("resume", "nobody") is None
            assert (tmp_path / "db" / "analyses.db").exists()
        finally:
            cache.close()
            store.close()
