"""Tests for the cache module."""

from __future__ import annotations

import json
import time

from gitpulse.cache import FileCache


def test_cache_get_set(tmp_path):
    cache = FileCache(cache_dir=tmp_path, ttl=3600)
    cache.set("/test/url", {"key": "val"}, [1, 2, 3])
    result = cache.get("/test/url", {"key": "val"})
    assert result == [1, 2, 3]


def test_cache_miss(tmp_path):
    cache = FileCache(cache_dir=tmp_path, ttl=3600)
    result = cache.get("/nonexistent", None)
    assert result is None


def test_cache_ttl_expired(tmp_path):
    cache = FileCache(cache_dir=tmp_path, ttl=1)
    cache.set("/test/url", None, {"data": True})

    # Manually backdate the timestamp
    key = cache._make_key("/test/url", None)
    path = tmp_path / f"{key}.json"
    data = json.loads(path.read_text())
    data["ts"] = time.time() - 10  # 10 seconds ago
    path.write_text(json.dumps(data))

    result = cache.get("/test/url", None)
    assert result is None
    assert not path.exists()


def test_cache_different_params(tmp_path):
    cache = FileCache(cache_dir=tmp_path, ttl=3600)
    cache.set("/url", {"a": "1"}, "first")
    cache.set("/url", {"a": "2"}, "second")
    assert cache.get("/url", {"a": "1"}) == "first"
    assert cache.get("/url", {"a": "2"}) == "second"


def test_cache_scopes_are_isolated(tmp_path):
    oauth = FileCache(cache_dir=tmp_path, scope=FileCache.scope_for_token("gho_user"))
    app = FileCache(cache_dir=tmp_path, scope=FileCache.scope_for_token("ghs_install"))
    oauth.set("/user/repos", None, ["private/repo"])
    assert app.get("/user/repos", None) is None
    assert oauth.get("/user/repos", None) == ["private/repo"]


def test_scope_for_token_does_not_leak_token():
    scope = FileCache.scope_for_token("secret-token")
    assert "secret" not in scope
    assert len(scope) == 16


def test_cache_corrupted_file(tmp_path):
    cache = FileCache(cache_dir=tmp_path)
    key = cache._make_key("/url", None)
    (tmp_path / f"{key}.json").write_text("{not json")
    assert cache.get("/url", None) is None


def test_cache_clear(tmp_path):
    cache = FileCache(cache_dir=tmp_path)
    cache.set("/a", None, 1)
    cache.set("/b", None, 2)
    assert cache.clear() == 2
    assert cache.get("/a", None) is None
