"""
In-Memory TTL Cache
Process-local cache with expiry, access tracking and bounded size

Features:
- Per-entry TTL (default 1 hour)
- Oldest 10% (by last access) evicted when the size cap is hit
- Hit/miss counters and hit rate
- Optional background sweeper removing expired entries
"""

import threading
import time
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Callable, Dict, Optional

from loguru import logger

from ..schemas import CacheStats


@dataclass
class CacheEntry:
    value: Any
    expires_at: float
    created_at: float
    access_count: int = 0
    last_accessed: float = 0.0


class MemoryCache:
    """
    TTL cache held in process memory

    Usage:
        cache = MemoryCache(max_size=500, default_ttl=1800)
        cache.set("abc123", {"scores": []})
        cache.get("abc123")
    """

    def __init__(
        self,
        max_size: int = 1000,
        default_ttl: int = 3600,
        sweep_interval: int = 300,
        clock: Callable[[], float] = time.time
    ):
        """
        Initialize Memory Cache

        Args:
            max_size: Maximum number of entries
            default_ttl: Entry lifetime in seconds
            sweep_interval: Seconds between background cleanups
            clock: Time source in seconds (injectable for tests)
        """
        self.max_size = max_size
        self.default_ttl = default_ttl
        self.sweep_interval = sweep_interval
        self._clock = clock

        self._entries: Dict[str, CacheEntry] = {}
        self._lock = threading.RLock()
        self._hits = 0
        self._misses = 0
        self._last_clear_time = datetime.utcnow()

        self._stop_event = threading.Event()
        self._sweeper: Optional[threading.Thread] = None

        logger.info(f"Memory cache initialized: max_size={max_size}, ttl={default_ttl}s")

    @property
    def backend(self) -> str:
        return "memory"

    def set(self, key: str, value: Any, ttl: Optional[int] = None) -> None:
        now = self._clock()
        lifetime = ttl if ttl is not None else self.default_ttl

        with self._lock:
            if key not in self._entries and len(self._entries) >= self.max_size:
                self._evict_oldest()

            self._entries[key] = CacheEntry(
                value=value,
                expires_at=now + lifetime,
                created_at=now,
                last_accessed=now
            )

        logger.debug(f"Cached {key} for {lifetime}s")

    def get(self, key: str) -> Optional[Any]:
        """
        Get a cached value

        Returns:
            The value, or None on miss or expiry (both count as a miss)
        """
        now = self._clock()

        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                self._misses += 1
                return None

            if now >= entry.expires_at:
                del self._entries[key]
                self._misses += 1
                logger.debug(f"Cache expired for {key}")
                return None

            entry.access_count += 1
            entry.last_accessed = now
            self._hits += 1
            return entry.value

    def has(self, key: str) -> bool:
        """True if the key exists and has not expired (does not touch counters)"""
        with self._lock:
            entry = self._entries.get(key)
            return entry is not None and self._clock() < entry.expires_at

    def delete(self, key: str) -> bool:
        with self._lock:
            return self._entries.pop(key, None) is not None

    def cleanup(self) -> int:
        """Remove expired entries, returns how many were removed"""
        now = self._clock()

        with self._lock:
            expired = [k for k, entry in self._entries.items() if now >= entry.expires_at]
            for key in expired:
                del self._entries[key]

        if expired:
            logger.debug(f"Cleaned up {len(expired)} expired cache entries")
        return len(expired)

    def clear(self) -> None:
        with self._lock:
            count = len(self._entries)
            self._entries.clear()
            self._hits = 0
            self._misses = 0
            self._last_clear_time = datetime.utcnow()

        logger.info(f"Memory cache cleared ({count} entries)")

    def get_stats(self) -> CacheStats:
        with self._lock:
            total = self._hits + self._misses
            return CacheStats(
                hit_rate=self._hits / total if total else 0.0,
                total_hits=self._hits,
                total_misses=self._misses,
                cache_size=len(self._entries),
                last_clear_time=self._last_clear_time
            )

    def get_cache_info(self) -> Dict[str, Any]:
        """Stats plus per-entry metadata"""
        now = self._clock()

        with self._lock:
            entries = [
                {
                    "key": key,
                    "age_seconds": round(now - entry.created_at, 1),
                    "expires_in_seconds": round(entry.expires_at - now, 1),
                    "access_count": entry.access_count,
                }
                for key, entry in self._entries.items()
            ]

        return {
            "backend": self.backend,
            "max_size": self.max_size,
            "default_ttl": self.default_ttl,
            "stats": self.get_stats().model_dump(mode="json"),
            "entries": entries,
        }

    # ============================================
    # Background sweeper
    # ============================================

    def start_sweeper(self) -> None:
        """Start periodic cleanup in a daemon thread"""
        if self._sweeper and self._sweeper.is_alive():
            return

        self._stop_event.clear()
        self._sweeper = threading.Thread(
            target=self._sweep_loop, name="memory-cache-sweeper", daemon=True
        )
        self._sweeper.start()
        logger.info(f"Cache sweeper started (every {self.sweep_interval}s)")

    def shutdown(self) -> None:
        """Stop the sweeper thread"""
        self._stop_event.set()
        if self._sweeper:
            self._sweeper.join(timeout=5)
            self._sweeper = None
            logger.info("Cache sweeper stopped")

    def _sweep_loop(self) -> None:
        while not self._stop_event.wait(self.sweep_interval):
            self.cleanup()

    def _evict_oldest(self) -> None:
        count = max(1, int(len(self._entries) * 0.1))
        oldest = sorted(self._entries.items(), key=lambda kv: kv[1].last_accessed)[:count]
        for key, _ in oldest:
            del self._entries[key]
        logger.debug(f"Evicted {count} least recently used cache entries")

    def __len__(self) -> int:
        return len(self._entries)
