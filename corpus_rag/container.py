import logging
from dataclasses import dataclass, field
from typing import Any, Callable, TypeVar

from .config.settings import Settings

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass
class Container:
    _factories: dict[type, Callable[[], Any]] = field(default_factory=dict)
    _singletons: dict[type, Any] = field(default_factory=dict)
    _singleton_flags: set[type] = field(default_factory=set)

    def register(
        self, interface: type[T], factory: Callable[[], T], singleton: bool = False
    ) -> None:
        """Register factory for interface.

        Args:
            interface: Interface type.
            factory: Factory function.
            singleton: Whether to cache instance.
        """
        self._factories[interface] = factory
        if singleton:
            self._singleton_flags.add(interface)

    def resolve(self, interface: type[T]) -> T:
        if interface in self._singletons:
            return self._singletons[interface]

        if interface not in self._factories:
            raise KeyError(f"No factory registered for {interface}")

        instance = self._factories[interface]()

        if interface in self._singleton_flags:
            self._singletons[interface] = instance

        return instance

    def is_resolved(self, interface: type) -> bool:
        return interface in self._singletons

    def reset(self) -> None:
        """Reset singletons (for testing)."""
        self._singletons.clear()


container = Container()


def configure_container(settings: Settings) -> Container:
    """Configure container with all dependencies.

    Args:
        settings: Application settings.

    Returns:
        Configured container.
    """
    from sqlalchemy import Engine

    from .core.cache import ScoreCache, cache_version
    from .core.models.retrieval import RetrievalOptions
    from .core.protocols.conversation_store import ConversationStoreProtocol
    from .core.protocols.embedder import EmbedderProtocol
    from .core.protocols.lexical_store import LexicalStoreProtocol
    from .core.protocols.llm import LLMProtocol
    from .core.protocols.metadata_store import MetadataStoreProtocol
    from .core.protocols.vector_store import VectorStoreProtocol
    from .core.services.chat_service import ChatService
    from .core.services.context_assembler import ContextAssembler
    from .core.services.intent_service import IntentClassifier
    from .core.services.metadata_service import MetadataEnricher
    from .core.services.retrieval_service import RetrievalService
    from .core.services.retrievers import LexicalRetriever, VectorRetriever
    from .core.services.session_service import SessionHistoryService
    from .core.strategies.fusion import HybridMerger
    from .core.strategies.quality import QualityGate
    from .core.strategies.scoring import LexicalScorer
    from .infrastructure.database.conversation_store import PostgresConversationStore
    from .infrastructure.database.engine import create_db_engine
    from .infrastructure.database.lexical_store import PostgresLexicalStore
    from .infrastructure.database.metadata_store import PostgresMetadataStore
    from .infrastructure.embeddings.sentence_transformer import (
        SentenceTransformerEmbedder,
    )
    from .infrastructure.llm.ollama_client import OllamaClient
    from .infrastructure.vector_stores.chroma_store import ChromaVectorStore

    def make_cache() -> ScoreCache:
        cache = ScoreCache(
            max_entries=settings.cache_max_entries,
            default_ttl=settings.cache_default_ttl,
            sweep_interval=settings.cache_sweep_interval,
        )
        cache.start_sweeper()
        return cache

    container.register(ScoreCache, make_cache, singleton=True)

    container.register(
        Engine,
        lambda: create_db_engine(settings.database_url, pool_size=settings.database_pool_size),
        singleton=True,
    )

    container.register(
        EmbedderProtocol,
        lambda: SentenceTransformerEmbedder(settings.embedding_model),
        singleton=True,
    )

    container.register(
        VectorStoreProtocol,
        lambda: ChromaVectorStore(
            host=settings.chroma_host,
            port=settings.chroma_port,
            collection_name=settings.chroma_collection,
            timeout=settings.chroma_timeout,
        ),
        singleton=True,
    )

    container.register(
        LexicalStoreProtocol,
        lambda: PostgresLexicalStore(
            container.resolve(Engine), ts_config=settings.lexical_ts_config
        ),
        singleton=True,
    )

    container.register(
        MetadataStoreProtocol,
        lambda: PostgresMetadataStore(container.resolve(Engine)),
        singleton=True,
    )

    container.register(
        ConversationStoreProtocol,
        lambda: PostgresConversationStore(container.resolve(Engine)),
        singleton=True,
    )

    container.register(
        LLMProtocol,
        lambda: OllamaClient(
            base_url=settings.llm_base_url,
            model=settings.llm_model,
            max_tokens=settings.llm_max_tokens,
            temperature=settings.llm_temperature,
        ),
        singleton=True,
    )

    container.register(
        MetadataEnricher,
        lambda: MetadataEnricher(
            metadata_store=container.resolve(MetadataStoreProtocol),
            cache=container.resolve(ScoreCache),
            concurrency=settings.metadata_concurrency,
            lookup_timeout=settings.metadata_timeout,
            retries=settings.metadata_retries,
            max_sources=settings.metadata_max_sources,
        ),
        singleton=True,
    )

    container.register(
        RetrievalService,
        lambda: RetrievalService(
            vector_retriever=VectorRetriever(
                embedder=container.resolve(EmbedderProtocol),
                vector_store=container.resolve(VectorStoreProtocol),
                cache=container.resolve(ScoreCache),
                query_prefix=settings.embedding_query_prefix,
                model_name=settings.embedding_model,
            ),
            lexical_retriever=LexicalRetriever(
                lexical_store=container.resolve(LexicalStoreProtocol),
                scorer=LexicalScorer(),
            ),
            classifier=IntentClassifier(),
            merger=HybridMerger(),
            assembler=ContextAssembler(
                chunk_budget=settings.context_chunk_budget,
                max_per_document=settings.context_max_per_document,
            ),
            gate=QualityGate(),
            cache=container.resolve(ScoreCache),
            enricher=container.resolve(MetadataEnricher),
            default_options=RetrievalOptions(
                vector_weight=settings.rag_vector_weight,
                lexical_weight=settings.rag_lexical_weight,
                min_vector_score=settings.rag_min_vector_score,
                min_lexical_score=settings.rag_min_lexical_score,
                max_results=settings.rag_max_results,
                max_per_document=settings.rag_max_per_document,
                cache_enabled=settings.cache_enabled,
            ).validate(),
            timeout=settings.retrieval_timeout,
            version=cache_version(settings.embedding_model),
        ),
        singleton=True,
    )

    container.register(
        SessionHistoryService,
        lambda: SessionHistoryService(
            conversation_store=container.resolve(ConversationStoreProtocol),
            cache=container.resolve(ScoreCache),
            history_turns=settings.history_turns,
        ),
        singleton=True,
    )

    container.register(
        ChatService,
        lambda: ChatService(
            llm=container.resolve(LLMProtocol),
            retrieval_service=container.resolve(RetrievalService),
            session_service=container.resolve(SessionHistoryService),
        ),
        singleton=True,
    )

    logger.info("Container configured")
    return container


def shutdown_container() -> None:
    """Release resources owned by resolved singletons."""
    from sqlalchemy import Engine

    from .core.cache import ScoreCache

    if container.is_resolved(ScoreCache):
        container.resolve(ScoreCache).close()
    if container.is_resolved(Engine):
        container.resolve(Engine).dispose()
    container.reset()
    logger.info("Container shut down")
