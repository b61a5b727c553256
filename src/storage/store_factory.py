# src/storage/store_factory.py — v1
"""Factory: instantiate the analysis store from configuration."""

from __future__ import annotations

from careerlens.config.settings import Settings
from careerlens.storage.base_analysis_store import BaseAnalysisStore


def create_analysis_store(settings: Settings) -> BaseAnalysisStore | None:
    """Create the configured analysis store.

    Args:
        settings: Application settings (STORE_BACKEND env var).

    Returns:
        BaseAnalysisStore instance, or None when STORE_BACKEND=none
        (results are then kept in memory only).

    Raises:
        ValueError: If the backend is not supported or incompletely configured.
    """
    if settings.store_backend == "none":
        return None

    if settings.store_backend == "sqlite":
        from careerlens.storage.sqlite_store import SqliteAnalysisStore
        return SqliteAnalysisStore(db_path=settings.store_db_path)

    if settings.store_backend == "supabase":
        from careerlens.storage.supabase_store import SupabaseAnalysisStore
        if not (settings.supabase_url and settings.supabase_key):
            raise ValueError(
                "SUPABASE_URL and SUPABASE_KEY must be set when STORE_BACKEND=supabase"
            )
        return SupabaseAnalysisStore(
            url=settings.supabase_url, key=settings.supabase_key
        )

    raise ValueError(f"Unsupported analysis store: {settings.store_backend!r}")
