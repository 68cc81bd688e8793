"""Namespaced TTL/LRU cache shared by retrieval stages."""
import logging
import threading
import time
from collections import OrderedDict
from dataclasses import dataclass
from typing import Any, Callable, Optional

from .keys import build_cache_key

logger = logging.getLogger(__name__)

_MISSING = object()


class CacheNamespace:
    """Well-known namespaces."""
    SEARCH_RESULTS = "search_results"
    EMBEDDINGS = "embeddings"
    CHAT_HISTORY = "chat_history"
    DOCUMENTS = "documents"


class CacheTTL:
    """TTL presets in seconds."""
    VERY_SHORT = 30
    SHORT = 300
    MEDIUM = 1800
    LONG = 7200
    VERY_LONG = 86400


@dataclass
class CacheEntry:
    key: str
    value: Any
    created_at: float
    ttl: float
    access_count: int = 0
    last_accessed_at: float = 0.0

    def is_expired(self, now: float) -> bool:
        return now - self.created_at > self.ttl


@dataclass(frozen=True)
class CacheStats:
    hits: int
    misses: int
    hit_rate: float
    entries: int
    evictions: int
    expirations: int


class ScoreCache:
    """Thread-safe TTL cache with least-recently-accessed eviction.

    Expired entries are treated as misses on read and removed by sweep().
    A background sweeper can be started with start_sweeper().
    """

    def __init__(
        self,
        max_entries: int = 1000,
        default_ttl: float = CacheTTL.SHORT,
        sweep_interval: float = 120.0,
        clock: Callable[[], float] = time.monotonic,
    ):
        """Initialize cache.

        Args:
            max_entries: Capacity before LRU eviction.
            default_ttl: TTL used when set() gets none.
            sweep_interval: Seconds between background sweeps.
            clock: Time source, injectable for tests.
        """
        if max_entries < 1:
            raise ValueError("max_entries must be at least 1")
        self._max_entries = max_entries
        self._default_ttl = default_ttl
        self._sweep_interval = sweep_interval
        self._clock = clock
        self._entries: OrderedDict[str, CacheEntry] = OrderedDict()
        self._lock = threading.Lock()
        self._hits = 0
        self._misses = 0
        self._evictions = 0
        self._expirations = 0
        self._stop = threading.Event()
        self._sweeper: Optional[threading.Thread] = None

    def get(
        self,
        namespace: str,
        key: str,
        params: Optional[dict] = None,
        default: Any = None,
    ) -> Any:
        """Get value, or default on miss or expiry."""
        cache_key = build_cache_key(namespace, key, params)
        with self._lock:
            entry = self._entries.get(cache_key)
            if entry is None:
                self._misses += 1
                return default
            now = self._clock()
            if entry.is_expired(now):
                del self._entries[cache_key]
                self._expirations += 1
                self._misses += 1
                return default
            entry.access_count += 1
            entry.last_accessed_at = now
            self._entries.move_to_end(cache_key)
            self._hits += 1
            return entry.value

    def set(
        self,
        namespace: str,
        key: str,
        value: Any,
        ttl: Optional[float] = None,
        params: Optional[dict] = None,
    ) -> None:
        """Store value, evicting the least recently accessed entry at capacity."""
        cache_key = build_cache_key(namespace, key, params)
        with self._lock:
            now = self._clock()
            if cache_key in self._entries:
                del self._entries[cache_key]
            elif len(self._entries) >= self._max_entries:
                evicted, _ = self._entries.popitem(last=False)
                self._evictions += 1
                logger.debug(f"Cache evicted {evicted}")
            self._entries[cache_key] = CacheEntry(
                key=cache_key,
                value=value,
                created_at=now,
                ttl=self._default_ttl if ttl is None else ttl,
                last_accessed_at=now,
            )

    def has(self, namespace: str, key: str, params: Optional[dict] = None) -> bool:
        """Check for a live entry without touching stats or recency."""
        cache_key = build_cache_key(namespace, key, params)
        with self._lock:
            entry = self._entries.get(cache_key)
            return entry is not None and not entry.is_expired(self._clock())

    def delete(self, namespace: str, key: str, params: Optional[dict] = None) -> bool:
        cache_key = build_cache_key(namespace, key, params)
        with self._lock:
            return self._entries.pop(cache_key, None) is not None

    def clear_namespace(self, namespace: str) -> int:
        """Drop every entry of a namespace.

        Returns:
            Number of removed entries.
        """
        prefix = f"{namespace}:"
        with self._lock:
            doomed = [k for k in self._entries if k.startswith(prefix)]
            for k in doomed:
                del self._entries[k]
        if doomed:
            logger.info(f"Cache cleared {len(doomed)} entries from '{namespace}'")
        return len(doomed)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def sweep(self) -> int:
        """Remove expired entries.

        Returns:
            Number of removed entries.
        """
        with self._lock:
            now = self._clock()
            expired = [k for k, e in self._entries.items() if e.is_expired(now)]
            for k in expired:
                del self._entries[k]
            self._expirations += len(expired)
        if expired:
            logger.debug(f"Cache sweep removed {len(expired)} expired entries")
        return len(expired)

    def stats(self) -> CacheStats:
        with self._lock:
            total = self._hits + self._misses
            return CacheStats(
                hits=self._hits,
                misses=self._misses,
                hit_rate=self._hits / total if total else 0.0,
                entries=len(self._entries),
                evictions=self._evictions,
                expirations=self._expirations,
            )

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def start_sweeper(self) -> None:
        """Start the background sweep thread (idempotent)."""
        if self._sweeper is not None and self._sweeper.is_alive():
            return
        self._stop.clear()
        self._sweeper = threading.Thread(
            target=self._sweep_loop, name="score-cache-sweeper", daemon=True
        )
        self._sweeper.start()
        logger.info(f"Cache sweeper started (interval={self._sweep_interval}s)")

    def _sweep_loop(self) -> None:
        while not self._stop.wait(self._sweep_interval):
            self.sweep()

    def close(self) -> None:
        """Stop the sweeper and wait for it to exit."""
        self._stop.set()
        if self._sweeper is not None:
            self._sweeper.join(timeout=self._sweep_interval)
            self._sweeper = None

    def __enter__(self) -> "ScoreCache":
        self.start_sweeper()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()
