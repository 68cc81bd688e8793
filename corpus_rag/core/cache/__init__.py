"""Score cache."""
from .keys import CACHE_VERSION, build_cache_key, cache_version, fingerprint, normalize_query
from .score_cache import CacheEntry, CacheNamespace, CacheStats, CacheTTL, ScoreCache

__all__ = [
    "CACHE_VERSION",
    "build_cache_key",
    "cache_version",
    "fingerprint",
    "normalize_query",
    "CacheEntry",
    "CacheNamespace",
    "CacheStats",
    "CacheTTL",
    "ScoreCache",
]
