"""
Unit tests for caching functionality
"""

import pytest
import os
import json
import tempfile
from datetime import datetime, timedelta

from review_quest.cache import CacheManager


class TestCacheFunctionality:
    """Test cases for basic cache operations."""

    @pytest.fixture
    def temp_cache_file(self):
        """Create a temporary cache file for testing."""
        fd, path = tempfile.mkstemp(suffix='.json')
        os.close(fd)
        yield path
        if os.path.exists(path):
            os.remove(path)

    @pytest.fixture
    def cache(self, temp_cache_file):
        return CacheManager(temp_cache_file, use_cache=True)

    def test_cache_save_and_load(self, cache, temp_cache_file):
        """Test saving and loading cache."""
        cache.put('key1', ['item1', 'item2'])
        cache.save_cache()

        reloaded = CacheManager(temp_cache_file, use_cache=True)
        assert reloaded.get('key1') == ['item1', 'item2']
        assert 'key1' in reloaded

    def test_cache_disabled(self, temp_cache_file):
        """Test that nothing is stored or written when caching is disabled."""
        cache = CacheManager(temp_cache_file, use_cache=False)
        cache.put('key', [{'id': 1}])
        cache.save_cache()

        assert cache.get('key') is None
        with open(temp_cache_file, 'r') as f:
            assert f.read() == ''

    def test_get_from_cache_miss(self, cache):
        assert cache.get('non_existent_key') is None

    def test_cache_timestamp_format(self, cache):
        cache.put('key', [{'id': 1}])
        timestamp = datetime.fromisoformat(cache.cache['key']['timestamp'])
        assert isinstance(timestamp, datetime)

    def test_corrupt_cache_file_is_ignored(self, temp_cache_file, caplog):
        with open(temp_cache_file, 'w') as f:
            f.write('{not json')

        cache = CacheManager(temp_cache_file, use_cache=True)

        assert cache.cache == {}
        assert "Failed to load cache" in caplog.text

    def test_save_cache_exception_handling(self, caplog):
        """Test that save_cache logs instead of raising on unwritable paths."""
        cache = CacheManager('/invalid/path/cache.json', use_cache=True)
        cache.put('key', [])

        cache.save_cache()

        assert "Failed to save cache" in caplog.text


class TestCacheExpiration:
    """Test cache expiration logic."""

    def test_expired_entry_is_ignored(self, tmp_path):
        cache = CacheManager(str(tmp_path / 'cache.json'), use_cache=True, max_age_hours=1)
        cache.cache['old'] = {
            'timestamp': (datetime.now() - timedelta(hours=2)).isoformat(),
            'data': [{'id': 1}],
        }

        assert cache.get('old') is None

    def test_entries_never_expire_without_max_age(self, tmp_path):
        cache = CacheManager(str(tmp_path / 'cache.json'), use_cache=True)
        cache.cache['old'] = {
            'timestamp': (datetime.now() - timedelta(days=400)).isoformat(),
            'data': [{'id': 1}],
        }

        assert cache.get('old') == [{'id': 1}]


class TestCacheKeyGeneration:
    """Test cases for cache key generation."""

    def test_same_params_same_key(self):
        key1 = CacheManager.get_cache_key('repo', 'endpoint', {'param': 'value'})
        key2 = CacheManager.get_cache_key('repo', 'endpoint', {'param': 'value'})
        assert key1 == key2

    def test_different_params_different_key(self):
        key1 = CacheManager.get_cache_key('repo', 'endpoint', {'param': 'value1'})
        key2 = CacheManager.get_cache_key('repo', 'endpoint', {'param': 'value2'})
        assert key1 != key2

    def test_different_repo_different_key(self):
        key1 = CacheManager.get_cache_key('acme/api', 'pulls/1/reviews')
        key2 = CacheManager.get_cache_key('acme/web', 'pulls/1/reviews')
        assert key1 != key2

    def test_param_order_independence(self):
        key1 = CacheManager.get_cache_key('repo', 'endpoint', {'a': '1', 'b': '2'})
        key2 = CacheManager.get_cache_key('repo', 'endpoint', {'b': '2', 'a': '1'})
        assert key1 == key2

    def test_cache_file_contents(self, tmp_path):
        path = tmp_path / 'cache.json'
        cache = CacheManager(str(path), use_cache=True)
        key = cache.get_cache_key('acme/api', 'pulls/1/reviews')
        cache.put(key, [{'id': 5}])
        cache.save_cache()

        with open(path) as f:
            stored = json.load(f)
        assert stored[key]['data'] == [{'id': 5}]
