import pytest

from conftest import FakeEmbedder, FakeLexicalStore, FakeVectorStore, make_passage, vector_candidate
from corpus_rag.core.cache import CacheNamespace
from corpus_rag.core.errors import RetrievalError
from corpus_rag.core.models.document import SourceKind
from corpus_rag.core.models.retrieval import RetrievalOptions
from corpus_rag.core.services.retrievers import LexicalRetriever, VectorRetriever


@pytest.mark.asyncio
async def test_vector_retriever_passes_floor_and_limit():
    store = FakeVectorStore([vector_candidate(make_passage("p1"), 0.9)])
    retriever = VectorRetriever(FakeEmbedder(), store)

    candidates = await retriever.retrieve("prayer", RetrievalOptions(max_results=10, min_vector_score=0.4))

    assert [c.id for c in candidates] == ["p1"]
    assert store.calls == [{"top_k": 10, "min_score": 0.4}]


@pytest.mark.asyncio
async def test_query_embedding_is_prefixed_and_cached(cache):
    embedder = FakeEmbedder()
    retriever = VectorRetriever(embedder, FakeVectorStore(), cache=cache)

    await retriever.retrieve("What is prayer?", RetrievalOptions())
    await retriever.retrieve("what is  prayer?", RetrievalOptions())

    assert embedder.calls == ["query: What is prayer?"]


@pytest.mark.asyncio
async def test_vector_failure_is_wrapped():
    retriever = VectorRetriever(FakeEmbedder(), FakeVectorStore(error=ConnectionError("refused")))

    with pytest.raises(RetrievalError) as exc_info:
        await retriever.retrieve("prayer", RetrievalOptions())

    assert exc_info.value.source == "vector"
    assert isinstance(exc_info.value.__cause__, ConnectionError)


@pytest.mark.asyncio
async def test_lexical_retriever_rescores_and_drops_empty_passages():
    store = FakeLexicalStore([
        make_passage("weak", content="Notes on fasting and prayers"),
        make_passage("blank", content="   "),
        make_passage("strong", content="Prayer for peace. A prayer of hope."),
    ])
    retriever = LexicalRetriever(store)

    candidates = await retriever.retrieve("prayer peace", RetrievalOptions(max_results=10))

    assert [c.id for c in candidates] == ["strong", "weak"]
    assert all(c.source_kind is SourceKind.LEXICAL for c in candidates)
    assert candidates[0].raw_score > candidates[1].raw_score
    assert store.limits == [20]


@pytest.mark.asyncio
async def test_lexical_failure_is_wrapped():
    retriever = LexicalRetriever(FakeLexicalStore(error=RuntimeError("syntax error in tsquery")))

    with pytest.raises(RetrievalError) as exc_info:
        await retriever.retrieve("prayer", RetrievalOptions())

    assert exc_info.value.source == "lexical"


@pytest.mark.asyncio
async def test_search_leaves_the_cache_untouched_until_remembered(cache):
    retriever = VectorRetriever(FakeEmbedder(), FakeVectorStore(), cache=cache)

    result = await retriever.search("prayer", RetrievalOptions())
    assert result.fresh
    assert len(cache) == 0

    retriever.remember("prayer", result)
    again = await retriever.search("prayer", RetrievalOptions())

    assert not again.fresh
    assert again.embedding == result.embedding
    assert len(cache) == 1


@pytest.mark.asyncio
async def test_embedding_model_is_part_of_the_cache_key(cache):
    small, large = FakeEmbedder(), FakeEmbedder()
    store = FakeVectorStore()

    await VectorRetriever(small, store, cache=cache, model_name="e5-small").retrieve("prayer", RetrievalOptions())
    await VectorRetriever(large, store, cache=cache, model_name="e5-large").retrieve("prayer", RetrievalOptions())

    assert len(large.calls) == 1
    assert cache.clear_namespace(CacheNamespace.EMBEDDINGS) == 2
