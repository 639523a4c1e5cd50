"""File-based cache for TestLink API responses."""

import json
import hashlib
import logging
from datetime import datetime, timedelta
from pathlib import Path
from typing import Optional, Any

from .config import CACHE_DIR, CACHE_TTL_HOURS

logger = logging.getLogger(__name__)


class FileCache:
    """JSON file cache with TTL, one directory per namespace."""

    def __init__(self, namespace: str = "testlink"):
        self.cache_dir = CACHE_DIR / namespace
        self.ttl = timedelta(hours=CACHE_TTL_HOURS)

    def _get_cache_path(self, key: str) -> Path:
        key_hash = hashlib.sha256(key.encode()).hexdigest()[:16]
        return self.cache_dir / f"{key_hash}.json"

    def get(self, key: str) -> Optional[Any]:
        """Get value from cache if present and not expired."""
        path = self._get_cache_path(key)

        try:
            data = json.loads(path.read_text())
        except FileNotFoundError:
            return None
        except (json.JSONDecodeError, UnicodeDecodeError):
            logger.debug(f"Ignoring unreadable cache entry {path}")
            return None

        try:
            if data["key"] != key:
                return None
            cached_at = datetime.fromisoformat(data["cached_at"])

            if datetime.now() - cached_at > self.ttl:
                path.unlink(missing_ok=True)
                return None

            return data["value"]
        except (KeyError, TypeError, ValueError):
            logger.debug(f"Ignoring unreadable cache entry {path}")
            return None

    def set(self, key: str, value: Any) -> None:
        self.cache_dir.mkdir(parents=True, exist_ok=True)

        path = self._get_cache_path(key)
        data = {
            "cached_at": datetime.now().isoformat(),
            "key": key,
            "value": value,
        }
        path.write_text(json.dumps(data, indent=2))

    def clear(self) -> int:
        """Clear all cached items. Returns count of items cleared."""
        if not self.cache_dir.exists():
            return 0

        count = 0
        for path in self.cache_dir.glob("*.json"):
            try:
                path.unlink()
            except FileNotFoundError:
                continue
            count += 1
        return count
