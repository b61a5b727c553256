# src/cache/json_store.py — v2
"""JSON file-based durable cache (default CACHE_BACKEND=json).

One ``<key>.json`` file per record under CACHE_ROOT.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path

from pydantic import ValidationError

from careerlens.cache.base_cache_store import BaseCacheStore
from careerlens.cache.models import DurableRecord

logger = logging.getLogger(__name__)


class JsonCacheStore(BaseCacheStore):
    """File-based cache store using JSON files."""

    def __init__(self, cache_root: Path | str) -> None:
        self._root = Path(cache_root).expanduser()
        self._root.mkdir(parents=True, exist_ok=True)

    async def get(self, key: str) -> DurableRecord | None:
        path = self._entry_path(key)
        if not path.exists():
            return None
        try:
            return DurableRecord.model_validate_json(path.read_text(encoding="utf-8"))
        except (OSError, ValidationError, json.JSONDecodeError) as e:
            # Unreadable entries are dropped so they do not fail every lookup.
            logger.warning("Removing unreadable cache entry %s: %s", key, e)
            path.unlink(missing_ok=True)
            return None

    async def put(self, key: str, record: DurableRecord) -> None:
        path = self._entry_path(key)
        tmp = path.with_suffix(".json.tmp")
        tmp.write_text(record.model_dump_json(), encoding="utf-8")
        tmp.replace(path)

    async def delete(self, key: str) -> None:
        self._entry_path(key).unlink(missing_ok=True)

    async def keys(self, prefix: str = "") -> list[str]:
        if not self._root.is_dir():
            return []
        return sorted(
            p.stem for p in self._root.glob(f"{prefix}*.json") if p.is_file()
        )

    def _entry_path(self, key: str) -> Path:
        """Return file path for a cache key."""
        safe_key = key.replace("/", "_").replace("\\", "_")
        return self._root / f"{safe_key}.json"
