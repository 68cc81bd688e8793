"""Cache key construction."""
import hashlib
import json
import re
import unicodedata
from typing import Any, Optional

# Bump when the index, embedding model or scoring changes.
CACHE_VERSION = {
    "index": "v1",
    "embedding_model": "multilingual-e5-small",
    "scoring": "hybrid-v1",
}

_ZERO_WIDTH = re.compile("[\u200b-\u200d\ufeff]")
_WHITESPACE = re.compile(r"\s+")


def cache_version(embedding_model: Optional[str] = None) -> dict[str, str]:
    """CACHE_VERSION with the configured embedding model swapped in."""
    if not embedding_model:
        return dict(CACHE_VERSION)
    return {**CACHE_VERSION, "embedding_model": embedding_model}


def normalize_query(text: str) -> str:
    """Normalize query text so trivially different phrasings share a key."""
    text = unicodedata.normalize("NFKC", text or "")
    text = _ZERO_WIDTH.sub("", text)
    text = _WHITESPACE.sub(" ", text.strip())
    return text.lower()


def fingerprint(params: Optional[dict[str, Any]]) -> str:
    """Order-independent hash of structured parameters."""
    if not params:
        return "-"
    payload = json.dumps(params, sort_keys=True, separators=(",", ":"), default=str)
    return hashlib.sha256(payload.encode("utf-8")).hexdigest()[:16]


def build_cache_key(namespace: str, key: str, params: Optional[dict[str, Any]] = None) -> str:
    """Build "namespace:normalized_key:fingerprint"."""
    return f"{namespace}:{normalize_query(key)}:{fingerprint(params)}"
