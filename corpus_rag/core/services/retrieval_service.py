"""Retrieval service - hybrid retrieval and context assembly."""

import asyncio
import logging
from dataclasses import replace
from typing import Optional

from ..cache import CACHE_VERSION, CacheNamespace, CacheTTL, ScoreCache
from ..errors import ConfigurationError, RetrievalTimeoutError
from ..models.chat import ChatHistory
from ..models.document import FusedResult
from ..models.retrieval import RetrievalOptions, RetrievalOutcome
from ..strategies.fusion import HybridMerger, calculate_confidence
from ..strategies.quality import QualityGate
from .context_assembler import ContextAssembler
from .intent_service import IntentClassifier
from .metadata_service import MetadataEnricher
from .retrievers import LexicalRetriever, VectorRetriever

logger = logging.getLogger(__name__)


class RetrievalService:
    """Classify, retrieve, fuse, assemble and gate."""

    def __init__(
        self,
        vector_retriever: VectorRetriever,
        lexical_retriever: LexicalRetriever,
        classifier: IntentClassifier,
        merger: HybridMerger,
        assembler: ContextAssembler,
        gate: QualityGate,
        cache: Optional[ScoreCache] = None,
        enricher: Optional[MetadataEnricher] = None,
        default_options: Optional[RetrievalOptions] = None,
        timeout: Optional[float] = 30.0,
        version: Optional[dict[str, str]] = None,
    ):
        """Initialize retrieval service.

        Args:
            vector_retriever: Dense retriever.
            lexical_retriever: Full-text retriever.
            classifier: Query intent classifier.
            merger: Hybrid merger.
            assembler: Context assembler.
            gate: Quality gate.
            cache: Shared cache for search results.
            enricher: Source metadata enricher.
            default_options: Options used when a call passes none.
            timeout: Default retrieval deadline in seconds, None for no limit.
            version: Index, model and scoring versions keyed into cached results.
        """
        self._vector = vector_retriever
        self._lexical = lexical_retriever
        self._classifier = classifier
        self._merger = merger
        self._assembler = assembler
        self._gate = gate
        self._cache = cache
        self._enricher = enricher
        self._default_options = default_options or RetrievalOptions()
        self._timeout = timeout
        self._version = version or CACHE_VERSION

    def _validate(self, question: str, options: RetrievalOptions) -> None:
        if not question or not question.strip():
            raise ConfigurationError("question must not be empty", detail={"field": "question"})
        options.validate()
        budget = self._assembler.chunk_budget
        if options.max_results < budget:
            raise ConfigurationError(
                f"max_results ({options.max_results}) is below the context "
                f"chunk budget ({budget})",
                detail={"field": "max_results", "value": options.max_results, "budget": budget},
            )

    async def search(
        self,
        query: str,
        options: RetrievalOptions,
        timeout: Optional[float] = None,
    ) -> list[FusedResult]:
        """Run both retrievers concurrently and fuse their results.

        Raises:
            RetrievalError: If a backend fails.
            RetrievalTimeoutError: If the deadline passes first.
        """
        params = {**options.fingerprint_params(), "version": self._version}
        use_cache = options.cache_enabled and self._cache is not None

        if use_cache:
            cached = self._cache.get(CacheNamespace.SEARCH_RESULTS, query, params)
            if cached is not None:
                logger.info(f"Search cache hit for '{query[:50]}'")
                return [replace(r) for r in cached]

        vector_task = asyncio.ensure_future(self._vector.search(query, options))
        lexical_task = asyncio.ensure_future(self._lexical.retrieve(query, options))
        try:
            vector_search, lexical_candidates = await asyncio.wait_for(
                asyncio.gather(vector_task, lexical_task),
                timeout=timeout,
            )
        except asyncio.TimeoutError as e:
            logger.warning(f"Retrieval timed out after {timeout}s for '{query[:50]}'")
            raise RetrievalTimeoutError(timeout) from e
        finally:
            for task in (vector_task, lexical_task):
                if not task.done():
                    task.cancel()

        # cache writes only once both retrievers have finished
        self._vector.remember(query, vector_search)
        results = self._merger.merge(query, vector_search.candidates, lexical_candidates, options)

        if use_cache:
            self._cache.set(
                CacheNamespace.SEARCH_RESULTS,
                query,
                tuple(replace(r) for r in results),
                CacheTTL.SHORT,
                params,
            )
        return results

    async def retrieve_and_assemble(
        self,
        question: str,
        history: Optional[ChatHistory] = None,
        options: Optional[RetrievalOptions] = None,
        timeout: Optional[float] = None,
    ) -> RetrievalOutcome:
        """Answer-side retrieval for one question.

        Args:
            question: User question.
            history: Recent session turns.
            options: Retrieval options, service defaults if None.
            timeout: Deadline in seconds for the retriever fan-out.

        Returns:
            Context, intent, confidence and gate decision.

        Raises:
            ConfigurationError: On invalid question or options.
            RetrievalError: If a backend fails.
            RetrievalTimeoutError: If the deadline passes.
        """
        history = history or ChatHistory()
        options = options or self._default_options
        self._validate(question, options)

        intent = self._classifier.classify_with_history(question, history)
        search_query = self._classifier.expand_follow_up(question, history)
        options = self._classifier.apply_weights(options, intent)
        strategy = self._classifier.strategy_label(intent, options)

        results = await self.search(
            search_query,
            options,
            timeout=timeout if timeout is not None else self._timeout,
        )

        confidence = calculate_confidence(results)
        context = self._assembler.assemble(results)
        top_score = results[0].fused_score if results else 0.0
        gate = self._gate.evaluate(
            context_size=len(context),
            confidence=confidence,
            top_score=top_score,
            chat_action=intent.chat_action,
            prior_artifact=history.last_answer,
        )

        sources = []
        if gate.proceed and self._enricher is not None and len(context):
            sources = await self._enricher.enrich(context.chunks)

        logger.info(
            f"Retrieval '{question[:50]}': strategy={strategy}, "
            f"action={intent.chat_action.value}, results={len(results)}, "
            f"context={len(context)}, confidence={confidence:.2f}, gate={gate.reason}"
        )

        return RetrievalOutcome(
            context=context,
            intent=intent,
            confidence=confidence,
            gate=gate,
            results=results,
            search_query=search_query,
            strategy_label=strategy,
            sources=sources,
        )
