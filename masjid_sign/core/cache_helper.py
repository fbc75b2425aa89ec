import hashlib
import json
import logging
import os
from datetime import date
from typing import Any, Optional

logger = logging.getLogger(__name__)


class CacheHelper:
    """Day-scoped JSON cache on disk: an entry is only served on the day it was written."""

    DEFAULT_CACHE_DIR = ".cache"

    def __init__(self, cache_dir: Optional[str] = None, namespace: str = ""):
        base_dir = os.path.expanduser(cache_dir or self.DEFAULT_CACHE_DIR)
        self.cache_dir = os.path.join(base_dir, namespace) if namespace else base_dir
        os.makedirs(self.cache_dir, exist_ok=True)

    def _get_cache_file(self, key: str) -> str:
        key_hash = hashlib.md5(key.encode()).hexdigest()
        return os.path.join(self.cache_dir, f"{key_hash}.json")

    def get_cached_content(self, key: str, today: Optional[date] = None) -> Optional[Any]:
        """Cached value for key if it was saved on `today` (local date by default)."""
        today = today or date.today()
        try:
            cache_file = self._get_cache_file(key)
            if not os.path.exists(cache_file):
                return None

            with open(cache_file, "r") as f:
                cached = json.load(f)

            if date.fromisoformat(cached["date"]) == today:
                return cached["content"]
            return None

        except Exception as e:
            logger.error(f"Error reading cache: {e}")
            return None

    def save_to_cache(self, key: str, content: Any, today: Optional[date] = None) -> None:
        today = today or date.today()
        try:
            with open(self._get_cache_file(key), "w") as f:
                json.dump({"date": today.isoformat(), "content": content}, f)
        except Exception as e:
            logger.error(f"Error saving to cache: {e}")
