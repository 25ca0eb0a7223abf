"""Test the execution cache.

Tests for plotgraph.engine.cache:
    - get() hits only when both fingerprints match
    - put() supersedes the node's previous entry
    - drop() / clear() and the stats counters

Run:
    pytest tests/test_cache.py -v
"""

from __future__ import annotations

import pytest

from plotgraph.engine.cache import CacheStats, ExecutionCache
from plotgraph.nodes.base import NodeOutput


@pytest.fixture
def cache() -> ExecutionCache:
    c = ExecutionCache()
    c.put("a", "in1", "p1", NodeOutput.empty(), "out1")
    return c


class TestExecutionCache:
    def test_hit(self, cache: ExecutionCache) -> None:
        cached = cache.get("a", "in1", "p1")
        assert cached is not None
        assert cached.fingerprint == "out1"

    @pytest.mark.parametrize("key", [("a", "in2", "p1"), ("a", "in1", "p2"), ("b", "in1", "p1")])
    def test_miss(self, cache: ExecutionCache, key) -> None:
        assert cache.get(*key) is None

    def test_put_supersedes(self, cache: ExecutionCache) -> None:
        cache.put("a", "in2", "p1", NodeOutput.empty(), "out2")
        assert len(cache) == 1
        assert cache.get("a", "in1", "p1") is None
        assert cache.get("a", "in2", "p1").fingerprint == "out2"

    def test_stats(self, cache: ExecutionCache) -> None:
        cache.get("a", "in1", "p1")
        cache.get("a", "x", "p1")
        cache.get("zz", "in1", "p1")
        assert cache.stats == CacheStats(hits=1, misses=2, entries=1)

    def test_drop(self, cache: ExecutionCache) -> None:
        cache.put("b", "i", "p", NodeOutput.empty(), "o")
        assert cache.drop(["a", "missing"]) == 1
        assert "a" not in cache
        assert "b" in cache

    def test_clear(self, cache: ExecutionCache) -> None:
        cache.get("a", "in1", "p1")
        cache.clear()
        assert len(cache) == 0
        assert cache.stats == CacheStats(hits=0, misses=0, entries=0)
