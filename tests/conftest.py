# tests/conftest.py — v2
"""Shared test fixtures for all unit and integration tests.

Provides settings without .env, sample resume/job texts, a raw profile
document, memory-only tiered caches and canned AI responses.
No external dependencies — all I/O is mocked or local.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

import pytest

from careerlens.cache.memory_cache import KeyValueCache
from careerlens.cache.tiered_cache import TieredCache
from careerlens.config.settings import Settings
from careerlens.core.models import AnalysisResult


# === FIXTURES: Configuration ===


@pytest.fixture
def settings(tmp_path: Path) -> Settings:
    """Settings isolated from the environment: no durable tiers, thread worker."""
    return Settings(
        _env_file=None,
        openrouter_api_key="test-openrouter-key",
        rapidapi_key="test-rapidapi-key",
        cache_enabled=False,
        cache_root=tmp_path / "cache",
        store_backend="none",
        store_db_path=tmp_path / "analyses.db",
        worker_mode="thread",
        http_backoff_base_s=0,
        http_backoff_max_s=0,
        http_backoff_jitter=False,
    )


# === FIXTURES: Sample data ===


@pytest.fixture
def resume_text() -> str:
    return "Senior engineer. Built React frontends and Node services backed by SQL."


@pytest.fixture
def job_description() -> str:
    return "We need React, Node, AWS and SQL experience."


@pytest.fixture
def raw_profile() -> dict[str, Any]:
    """Profile document as returned by the data-fetch endpoint."""
    return {
        "full_name": "Jane Doe",
        "headline": "Backend engineer building data platforms",
        "summary": "Engineer with ten years of experience in Python and cloud systems. " * 4,
        "image_url": "https://example.com/jane.png",
        "experiences": [
            {
                "title": "Staff Engineer",
                "company": "Acme",
                "description": "Led the migration of the billing platform to Kubernetes and Postgres.",
                "starts_at": {"year": 2019},
            },
            {
                "title": "Engineer",
                "company": "Initech",
                "description": "APIs",
                "starts_at": {"year": 2015},
                "ends_at": {"year": 2019},
            },
        ],
        "education": [{"school": "MIT", "degree_name": "BSc", "field_of_study": "CS"}],
        "skills": ["Python", {"name": "Kubernetes"}, "PostgreSQL"],
    }


@pytest.fixture
def profile_review_text() -> str:
    return (
        "Score: 82\n"
        "Strengths:\n- Clear headline\n- Strong experience\n"
        "Weaknesses:\n- Few skills listed\n"
        "Suggestions:\n- Add more skills to your profile\n- Grow your network\n"
    )


@pytest.fixture
def result_cache_factory():
    """Build memory-only TieredCaches of AnalysisResult."""

    def _factory(namespace: str = "test_analysis") -> TieredCache[AnalysisResult]:
        return TieredCache(namespace, AnalysisResult, KeyValueCache(max_size=10))

    return _factory
