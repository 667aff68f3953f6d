"""On-disk cache for GitHub review listings of closed pull requests."""

import os
import json
import hashlib
import logging
from datetime import datetime
from threading import Lock
from typing import Dict, List, Optional


class CacheManager:
    """Caches API listings in a JSON file so repeated historical syncs skip immutable data."""

    def __init__(self, cache_file: str = '.review_quest_cache.json', use_cache: bool = True,
                 max_age_hours: Optional[float] = None):
        """Initialize the cache manager.

        Args:
            cache_file: Path to the cache file
            use_cache: Whether caching is enabled
            max_age_hours: Entries older than this are ignored (None = never expire)
        """
        self.cache_file = cache_file
        self.use_cache = use_cache
        self.max_age_hours = max_age_hours
        self._lock = Lock()
        self.cache = self._load_cache()

    def _load_cache(self) -> Dict:
        if not self.use_cache or not os.path.exists(self.cache_file):
            return {}

        try:
            with open(self.cache_file, 'r') as f:
                cache = json.load(f)
                logging.info(f"Loaded cache from {self.cache_file} with {len(cache)} entries")
                return cache
        except (OSError, ValueError) as e:
            logging.warning(f"Failed to load cache: {e}")
            return {}

    def save_cache(self):
        """Save cache to file."""
        if not self.use_cache:
            return

        try:
            with self._lock:
                with open(self.cache_file, 'w') as f:
                    json.dump(self.cache, f, indent=2)
            logging.info(f"Saved cache to {self.cache_file} with {len(self.cache)} entries")
        except OSError as e:
            logging.warning(f"Failed to save cache: {e}")

    @staticmethod
    def get_cache_key(repo: str, endpoint: str, params: Dict = None) -> str:
        """Generate a cache key for an API call.

        Args:
            repo: Repository full name
            endpoint: API endpoint
            params: Query parameters

        Returns:
            MD5 hash of the cache key
        """
        key_data = f"{repo}:{endpoint}:{json.dumps(params, sort_keys=True) if params else ''}"
        return hashlib.md5(key_data.encode()).hexdigest()

    def get(self, cache_key: str) -> Optional[List[Dict]]:
        """Return cached data, or None when missing, expired or caching is off."""
        if not self.use_cache:
            return None

        with self._lock:
            cached_entry = self.cache.get(cache_key)
        if cached_entry is None:
            return None

        cached_time = datetime.fromisoformat(cached_entry['timestamp'])
        age_hours = (datetime.now() - cached_time).total_seconds() / 3600
        if self.max_age_hours is not None and age_hours > self.max_age_hours:
            logging.debug(f"Ignoring expired cache entry (age: {age_hours:.1f} hours)")
            return None

        logging.debug(f"Using cached data (age: {age_hours:.1f} hours)")
        return cached_entry['data']

    def put(self, cache_key: str, data: List[Dict]):
        if not self.use_cache:
            return

        with self._lock:
            self.cache[cache_key] = {
                'timestamp': datetime.now().isoformat(),
                'data': data
            }

    def __contains__(self, key: str) -> bool:
        return key in self.cache
