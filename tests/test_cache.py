from __future__ import annotations

import pytest

from fpl_insights.cache import TTLCache
from fpl_insights.config import DEFAULT_CACHE_TTLS, Settings


class FakeClock:
    def __init__(self):
        self.now = 1000.0

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def cache(clock):
    return TTLCache(max_entries=3, ttl_by_category={"live": 30, "bootstrap": 300, "default": 60}, clock=clock)


def test_hit_and_miss(cache):
    assert cache.get("bootstrap") is None
    cache.set("bootstrap", {"events": []}, "bootstrap")
    assert cache.get("bootstrap") == {"events": []}
    stats = cache.stats()
    assert stats["hits"] == 1
    assert stats["misses"] == 1
    assert stats["entries"] == 1


def test_ttl_per_category(cache, clock):
    cache.set("live:5", [1], "live")
    cache.set("bootstrap", [2], "bootstrap")
    clock.advance(31)
    assert cache.get("live:5") is None
    assert cache.get("bootstrap") == [2]
    clock.advance(300)
    assert cache.get("bootstrap") is None
    assert len(cache) == 0


def test_unknown_category_uses_default(cache, clock):
    cache.set("whatever", 1, "no-such-category")
    assert cache.ttl_for("no-such-category") == 60
    clock.advance(59)
    assert cache.get("whatever") == 1
    clock.advance(1)
    assert cache.get("whatever") is None


def test_lru_eviction(cache):
    for key in ("a", "b", "c"):
        cache.set(key, key)
    cache.get("a")  # "b" is now least recently used
    cache.set("d", "d")
    assert cache.get("b") is None
    assert cache.get("a") == "a"
    assert cache.stats()["evictions"] == 1
    assert len(cache) == 3


def test_get_or_load_calls_loader_once(cache):
    calls = []

    def loader():
        calls.append(1)
        return {"loaded": True}

    assert cache.get_or_load("k", loader) == {"loaded": True}
    assert cache.get_or_load("k", loader) == {"loaded": True}
    assert len(calls) == 1


def test_get_or_load_does_not_store_failures(cache):
    def broken():
        raise RuntimeError("upstream down")

    with pytest.raises(RuntimeError):
        cache.get_or_load("k", broken)
    assert len(cache) == 0


def test_invalidate(cache):
    cache.set("manager:1:picks:5", 1)
    cache.set("manager:1:history", 2)
    cache.set("bootstrap", 3)
    assert cache.invalidate("manager:1") == 2
    assert cache.get("bootstrap") == 3
    assert cache.invalidate() == 1
    assert len(cache) == 0


def test_max_entries_validated():
    with pytest.raises(ValueError):
        TTLCache(max_entries=0)


def test_settings_defaults(monkeypatch):
    for name in ("FPL_BASE_URL", "FPL_HTTP_TIMEOUT", "FPL_MAX_CONCURRENCY", "FPL_CACHE_MAX_ENTRIES"):
        monkeypatch.delenv(name, raising=False)
    for category in DEFAULT_CACHE_TTLS:
        monkeypatch.delenv(f"FPL_CACHE_TTL_{category.upper()}", raising=False)
    settings = Settings.from_env()
    assert settings.max_concurrency == 5
    assert settings.cache_ttls == DEFAULT_CACHE_TTLS


def test_settings_from_env(monkeypatch):
    monkeypatch.setenv("FPL_BASE_URL", "http://localhost:9000/api/")
    monkeypatch.setenv("FPL_MAX_CONCURRENCY", "0")
    monkeypatch.setenv("FPL_CACHE_TTL_LIVE", "5")
    settings = Settings.from_env()
    assert settings.base_url == "http://localhost:9000/api"
    assert settings.max_concurrency == 1
    assert settings.cache_ttls["live"] == 5


def test_settings_rejects_garbage(monkeypatch):
    monkeypatch.setenv("FPL_HTTP_TIMEOUT", "soon")
    with pytest.raises(ValueError, match="FPL_HTTP_TIMEOUT"):
        Settings.from_env()
