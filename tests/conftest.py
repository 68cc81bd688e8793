"""In-memory fakes for the external collaborators."""

import asyncio
import time
from typing import Optional

import numpy as np
import pytest

from corpus_rag.core.cache import ScoreCache
from corpus_rag.core.models.chat import ConversationTurn
from corpus_rag.core.models.document import Candidate, DocumentMetadata, Passage, SourceKind
from corpus_rag.core.services.context_assembler import ContextAssembler
from corpus_rag.core.services.intent_service import IntentClassifier
from corpus_rag.core.services.retrieval_service import RetrievalService
from corpus_rag.core.services.retrievers import LexicalRetriever, VectorRetriever
from corpus_rag.core.strategies.fusion import HybridMerger
from corpus_rag.core.strategies.quality import QualityGate


def make_passage(
    pid: str,
    doc: str = "doc-1",
    title: str = "Untitled",
    content: str = "some passage text",
    chunk_index: int = 0,
    author: Optional[str] = None,
) -> Passage:
    return Passage(
        id=pid,
        document_id=doc,
        document_title=title,
        chunk_index=chunk_index,
        content=content,
        token_count=len(content.split()),
        document_author=author,
    )


def vector_candidate(passage: Passage, score: float) -> Candidate:
    return Candidate(passage=passage, raw_score=score, source_kind=SourceKind.VECTOR)


def lexical_candidate(passage: Passage, score: float) -> Candidate:
    return Candidate(passage=passage, raw_score=score, source_kind=SourceKind.LEXICAL)


class FakeClock:
    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakeEmbedder:
    def __init__(self, delay: float = 0.0):
        self.delay = delay
        self.calls: list[str] = []

    def encode(self, texts):
        self.calls.append(texts)
        if self.delay:
            time.sleep(self.delay)
        return np.array([0.1, 0.2, 0.3])

    def warmup(self) -> None:
        pass


class FakeVectorStore:
    def __init__(self, candidates: Optional[list[Candidate]] = None, delay: float = 0.0,
                 error: Optional[Exception] = None):
        self.candidates = candidates or []
        self.delay = delay
        self.error = error
        self.calls: list[dict] = []

    def query(self, query_embedding, top_k=20, min_score=0.0):
        self.calls.append({"top_k": top_k, "min_score": min_score})
        if self.delay:
            time.sleep(self.delay)
        if self.error:
            raise self.error
        return [c for c in self.candidates if c.raw_score >= min_score][:top_k]

    def count(self) -> int:
        return len(self.candidates)


class FakeLexicalStore:
    def __init__(self, passages: Optional[list[Passage]] = None,
                 error: Optional[Exception] = None):
        self.passages = passages or []
        self.error = error
        self.limits: list[int] = []

    def search(self, query_text: str, limit: int) -> list[Passage]:
        self.limits.append(limit)
        if self.error:
            raise self.error
        return self.passages[:limit]


class FakeMetadataStore:
    def __init__(self, documents: Optional[dict[str, DocumentMetadata]] = None,
                 failures: Optional[dict[str, list[Exception]]] = None):
        self.documents = documents or {}
        self.failures = failures or {}
        self.calls: list[str] = []

    def get_document_by_id(self, document_id: str) -> Optional[DocumentMetadata]:
        self.calls.append(document_id)
        pending = self.failures.get(document_id)
        if pending:
            raise pending.pop(0)
        return self.documents.get(document_id)


class FakeConversationStore:
    def __init__(self, turns: Optional[list[ConversationTurn]] = None):
        # newest first, like the real store
        self.turns = turns or []
        self.calls = 0

    def recent_turns(self, session_id, user_id, limit):
        self.calls += 1
        return self.turns[:limit]


class FakeLLM:
    def __init__(self, tokens: Optional[list[str]] = None):
        self.tokens = tokens or ["Prayer ", "helps."]
        self.calls: list[dict] = []

    async def chat_stream(self, user_message, context=None, history=None):
        self.calls.append({"user_message": user_message, "context": context, "history": history})
        for token in self.tokens:
            await asyncio.sleep(0)
            yield token


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def cache(clock) -> ScoreCache:
    return ScoreCache(max_entries=100, default_ttl=300, clock=clock)


def build_retrieval_service(
    vector_store: FakeVectorStore,
    lexical_store: FakeLexicalStore,
    cache: Optional[ScoreCache] = None,
    enricher=None,
    chunk_budget: int = 8,
    embedder: Optional[FakeEmbedder] = None,
    version: Optional[dict[str, str]] = None,
) -> RetrievalService:
    return RetrievalService(
        vector_retriever=VectorRetriever(embedder or FakeEmbedder(), vector_store, cache=cache),
        lexical_retriever=LexicalRetriever(lexical_store),
        classifier=IntentClassifier(),
        merger=HybridMerger(),
        assembler=ContextAssembler(chunk_budget=chunk_budget, max_per_document=2),
        gate=QualityGate(),
        cache=cache,
        enricher=enricher,
        version=version,
    )
