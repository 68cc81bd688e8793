"""Vector and lexical retrievers."""

import asyncio
import logging
from dataclasses import dataclass
from typing import Optional

from ..cache import CACHE_VERSION, CacheNamespace, CacheTTL, ScoreCache
from ..errors import RetrievalError
from ..models.document import Candidate, SourceKind
from ..models.retrieval import RetrievalOptions
from ..protocols.embedder import EmbedderProtocol
from ..protocols.lexical_store import LexicalStoreProtocol
from ..protocols.vector_store import VectorStoreProtocol
from ..strategies.scoring import LexicalScorer

logger = logging.getLogger(__name__)


@dataclass
class VectorSearch:
    """Vector candidates plus the query embedding that found them."""
    candidates: list[Candidate]
    embedding: list[float]
    fresh: bool = False


class VectorRetriever:
    """Embed the query and search the vector index."""

    def __init__(
        self,
        embedder: EmbedderProtocol,
        vector_store: VectorStoreProtocol,
        cache: Optional[ScoreCache] = None,
        query_prefix: str = "query: ",
        model_name: str = CACHE_VERSION["embedding_model"],
    ):
        """Initialize retriever.

        Args:
            embedder: Embedding service.
            vector_store: Vector store.
            cache: Shared cache for query embeddings.
            query_prefix: Prefix the embedding model expects for queries.
            model_name: Embedding model name, part of the embedding cache key.
        """
        self._embedder = embedder
        self._vector_store = vector_store
        self._cache = cache
        self._query_prefix = query_prefix
        self._model_name = model_name

    def _params(self) -> dict:
        return {"model": self._model_name, "prefix": self._query_prefix}

    def _search(self, query: str, options: RetrievalOptions) -> VectorSearch:
        embedding = None
        if self._cache is not None:
            embedding = self._cache.get(CacheNamespace.EMBEDDINGS, query, self._params())
        fresh = embedding is None
        if fresh:
            embedding = self._embedder.encode(f"{self._query_prefix}{query}").tolist()

        candidates = self._vector_store.query(
            query_embedding=embedding,
            top_k=options.max_results,
            min_score=options.min_vector_score,
        )
        return VectorSearch(candidates=candidates, embedding=embedding, fresh=fresh)

    async def search(self, query: str, options: RetrievalOptions) -> VectorSearch:
        """Get vector candidates without writing to the cache.

        A worker thread outlives a cancelled search, so a new embedding is
        only stored through remember().

        Raises:
            RetrievalError: If embedding or the vector index fails.
        """
        try:
            result = await asyncio.to_thread(self._search, query, options)
        except Exception as e:
            logger.error(f"Vector search error: {e}")
            raise RetrievalError(f"Vector search failed: {e}", source="vector") from e

        logger.debug(f"Vector search: {len(result.candidates)} candidates for '{query[:50]}'")
        return result

    def remember(self, query: str, result: VectorSearch) -> None:
        """Cache the query embedding of a completed search."""
        if self._cache is not None and result.fresh:
            self._cache.set(
                CacheNamespace.EMBEDDINGS, query, result.embedding, CacheTTL.LONG, self._params()
            )

    async def retrieve(self, query: str, options: RetrievalOptions) -> list[Candidate]:
        """Get vector candidates for a query, caching its embedding."""
        result = await self.search(query, options)
        self.remember(query, result)
        return result.candidates


class LexicalRetriever:
    """Full-text search rescored with the lexical scorer."""

    def __init__(
        self,
        lexical_store: LexicalStoreProtocol,
        scorer: Optional[LexicalScorer] = None,
        fetch_multiplier: int = 2,
    ):
        """Initialize retriever.

        Args:
            lexical_store: Full-text store.
            scorer: Lexical relevance scorer.
            fetch_multiplier: Over-fetch factor before rescoring.
        """
        self._lexical_store = lexical_store
        self._scorer = scorer or LexicalScorer()
        self._fetch_multiplier = fetch_multiplier

    def _search(self, query: str, options: RetrievalOptions) -> list[Candidate]:
        passages = self._lexical_store.search(query, options.max_results * self._fetch_multiplier)
        candidates = [
            Candidate(
                passage=p,
                raw_score=self._scorer.score(query, p.content),
                source_kind=SourceKind.LEXICAL,
            )
            for p in passages
            if p.content and p.content.strip()
        ]
        candidates.sort(key=lambda c: (-c.raw_score, c.id))
        return candidates[:options.max_results]

    async def retrieve(self, query: str, options: RetrievalOptions) -> list[Candidate]:
        """Get lexical candidates for a query.

        Raises:
            RetrievalError: If the lexical store fails.
        """
        try:
            candidates = await asyncio.to_thread(self._search, query, options)
        except Exception as e:
            logger.error(f"Lexical search error: {e}")
            raise RetrievalError(f"Lexical search failed: {e}", source="lexical") from e

        logger.debug(f"Lexical search: {len(candidates)} candidates for '{query[:50]}'")
        return candidates
