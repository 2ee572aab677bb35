"""
cache_service.py — LLM Response Caching
In-memory cache keyed by SHA-256 of (system_prompt + user_message + model).
TTL-based expiry, a capacity bound (oldest insert evicted first) and
hit-rate statistics. The clock is injected so expiry can be driven in tests.
"""

import hashlib
import sys
import threading
import time
from collections import OrderedDict
from typing import Callable

from config import ANALYSIS_CACHE_CAPACITY, ANALYSIS_CACHE_TTL_SECONDS


class ResponseCache:
    """In-memory LLM response cache with TTL, capacity and hit tracking."""

    def __init__(
        self,
        clock: Callable[[], float] = time.time,
        capacity: int = ANALYSIS_CACHE_CAPACITY,
        default_ttl: int = ANALYSIS_CACHE_TTL_SECONDS,
    ):
        self.clock = clock
        self.capacity = max(1, capacity)
        self.default_ttl = default_ttl
        # hash → {response, timestamp, ttl, hit_count}
        self._cache: OrderedDict[str, dict] = OrderedDict()
        self._lock = threading.Lock()
        self._hits: int = 0
        self._misses: int = 0

    # ------------------------------------------------------------------
    @staticmethod
    def _hash(system_prompt: str, user_message: str, model: str) -> str:
        """SHA-256 of concatenated inputs."""
        raw = f"{system_prompt}||{user_message}||{model}"
        return hashlib.sha256(raw.encode("utf-8")).hexdigest()

    # ------------------------------------------------------------------
    def get(self, system_prompt: str, user_message: str, model: str) -> dict | None:
        """Return cached response or None on miss / expiry."""
        key = self._hash(system_prompt, user_message, model)
        with self._lock:
            entry = self._cache.get(key)
            if entry is None:
                self._misses += 1
                return None

            age = self.clock() - entry["timestamp"]
            if age > entry["ttl"]:
                del self._cache[key]
                self._misses += 1
                return None

            entry["hit_count"] += 1
            self._hits += 1
            return entry["response"]

    # ------------------------------------------------------------------
    def set(
        self,
        system_prompt: str,
        user_message: str,
        model: str,
        response: dict,
        ttl_seconds: int | None = None,
    ):
        """Store a response with a TTL (seconds). ttl_seconds=0 → don't cache."""
        ttl = self.default_ttl if ttl_seconds is None else ttl_seconds
        if ttl <= 0:
            return
        key = self._hash(system_prompt, user_message, model)
        with self._lock:
            self._cache.pop(key, None)
            self._cache[key] = {
                "response": response,
                "timestamp": self.clock(),
                "ttl": ttl,
                "hit_count": 0,
            }
            while len(self._cache) > self.capacity:
                self._cache.popitem(last=False)

    # ------------------------------------------------------------------
    def clear_expired(self) -> int:
        """Evict all entries past their TTL; returns how many were removed."""
        now = self.clock()
        with self._lock:
            expired = [
                k for k, v in self._cache.items()
                if now - v["timestamp"] > v["ttl"]
            ]
            for k in expired:
                del self._cache[k]
        return len(expired)

    def clear(self):
        with self._lock:
            self._cache.clear()

    def __len__(self) -> int:
        return len(self._cache)

    # ------------------------------------------------------------------
    def get_stats(self) -> dict:
        """Cache statistics: entries, hit rate, estimated memory."""
        total_lookups = self._hits + self._misses
        return {
            "total_entries": len(self._cache),
            "capacity": self.capacity,
            "hits": self._hits,
            "misses": self._misses,
            "hit_rate": round(self._hits / total_lookups, 4) if total_lookups else 0.0,
            "estimated_memory_bytes": sys.getsizeof(self._cache),
        }
