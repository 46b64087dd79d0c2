"""File-based caching layer for API responses."""

from __future__ import annotations

import hashlib
import json
import logging
import time
from pathlib import Path
from typing import Any

from .config import DEFAULT_CACHE_DIR

logger = logging.getLogger(__name__)

DEFAULT_TTL = 3600  # 1 hour


class FileCache:
    """File-based cache with TTL support.

    ``scope`` is mixed into every key so responses fetched with one
    credential are never served to another.
    """

    def __init__(
        self,
        cache_dir: Path = DEFAULT_CACHE_DIR,
        ttl: int = DEFAULT_TTL,
        scope: str = "",
    ) -> None:
        self._cache_dir = cache_dir
        self._ttl = ttl
        self._scope = scope
        self._cache_dir.mkdir(parents=True, exist_ok=True)

    @staticmethod
    def scope_for_token(token: str) -> str:
        return hashlib.sha256(token.encode()).hexdigest()[:16]

    def _make_key(self, url: str, params: dict[str, Any] | None = None) -> str:
        raw = self._scope + url + json.dumps(params or {}, sort_keys=True)
        return hashlib.sha256(raw.encode()).hexdigest()

    def _path_for(self, key: str) -> Path:
        return self._cache_dir / f"{key}.json"

    def get(self, url: str, params: dict[str, Any] | None = None) -> Any | None:
        path = self._path_for(self._make_key(url, params))
        if not path.exists():
            return None
        try:
            data = json.loads(path.read_text())
        except (json.JSONDecodeError, OSError):
            return None
        if time.time() - data.get("ts", 0) > self._ttl:
            path.unlink(missing_ok=True)
            return None
        logger.debug("Cache hit: %s", url)
        return data.get("value")

    def set(self, url: str, params: dict[str, Any] | None, value: Any) -> None:
        path = self._path_for(self._make_key(url, params))
        payload = {"ts": time.time(), "value": value}
        try:
            path.write_text(json.dumps(payload, ensure_ascii=False))
        except OSError as exc:
            logger.debug("Cache write failed for %s: %s", url, exc)

    def clear(self) -> int:
        """Delete every cached entry; returns how many files were removed."""
        removed = 0
        for path in self._cache_dir.glob("*.json"):
            path.unlink(missing_ok=True)
            removed += 1
        return removed
