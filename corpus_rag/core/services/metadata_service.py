"""Metadata service - display metadata for context sources."""

import asyncio
import logging
from typing import Optional

from ..cache import CacheNamespace, CacheTTL, ScoreCache
from ..models.document import ContextChunk, DocumentMetadata, SourceMetadata
from ..protocols.metadata_store import MetadataStoreProtocol
from ..retry import retry_async

logger = logging.getLogger(__name__)


class MetadataEnricher:
    """Fetch source cards with bounded concurrency, tolerating failures."""

    def __init__(
        self,
        metadata_store: MetadataStoreProtocol,
        cache: Optional[ScoreCache] = None,
        concurrency: int = 8,
        lookup_timeout: float = 1.5,
        retries: int = 1,
        min_backoff: float = 0.12,
        max_backoff: float = 0.25,
        max_sources: int = 8,
    ):
        """Initialize enricher.

        Args:
            metadata_store: Metadata store.
            cache: Shared cache for document metadata.
            concurrency: Maximum lookups in flight.
            lookup_timeout: Per-lookup timeout in seconds.
            retries: Retries per lookup on transient errors.
            min_backoff: Minimum retry delay in seconds.
            max_backoff: Maximum retry delay in seconds.
            max_sources: Maximum source cards returned.
        """
        self._store = metadata_store
        self._cache = cache
        self._concurrency = concurrency
        self._lookup_timeout = lookup_timeout
        self._retries = retries
        self._min_backoff = min_backoff
        self._max_backoff = max_backoff
        self._max_sources = max_sources

    async def _lookup(self, document_id: str) -> Optional[DocumentMetadata]:
        if self._cache is not None:
            cached = self._cache.get(CacheNamespace.DOCUMENTS, document_id)
            if cached is not None:
                return cached

        async def attempt() -> Optional[DocumentMetadata]:
            return await asyncio.wait_for(
                asyncio.to_thread(self._store.get_document_by_id, document_id),
                timeout=self._lookup_timeout,
            )

        metadata = await retry_async(
            attempt,
            retries=self._retries,
            min_backoff=self._min_backoff,
            max_backoff=self._max_backoff,
        )
        if metadata is not None and self._cache is not None:
            self._cache.set(CacheNamespace.DOCUMENTS, document_id, metadata, CacheTTL.MEDIUM)
        return metadata

    async def enrich(self, chunks: list[ContextChunk]) -> list[SourceMetadata]:
        """Build source cards for the documents in a context.

        Args:
            chunks: Context chunks, in context order.

        Returns:
            One card per document, at most max_sources.
        """
        firsts: dict[str, ContextChunk] = {}
        for chunk in chunks:
            if chunk.document_id and chunk.document_id not in firsts:
                firsts[chunk.document_id] = chunk
        targets = list(firsts.values())[:self._max_sources]
        if not targets:
            return []

        semaphore = asyncio.Semaphore(self._concurrency)

        async def fetch(chunk: ContextChunk) -> SourceMetadata:
            async with semaphore:
                try:
                    metadata = await self._lookup(chunk.document_id)
                except Exception as e:
                    logger.warning(f"Metadata lookup failed for {chunk.document_id}: {e!r}")
                    metadata = None
            return SourceMetadata.from_chunk(chunk, metadata)

        sources = await asyncio.gather(*(fetch(c) for c in targets))
        logger.info(f"Sources: {len(sources)} documents enriched")
        return list(sources)
