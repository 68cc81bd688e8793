import pytest

from conftest import (
    FakeConversationStore,
    FakeLLM,
    FakeLexicalStore,
    FakeVectorStore,
    build_retrieval_service,
    make_passage,
    vector_candidate,
)
from corpus_rag.core.services.chat_service import NOT_FOUND_REPLY, ChatService
from corpus_rag.core.services.session_service import SessionHistoryService

WAR = make_passage(
    "p-war",
    doc="d-war",
    title="Prayers for War-Affected Children",
    content="A prayer for children who became orphans of war.",
)


def build_chat(vector_store, lexical_store, cache, llm):
    return ChatService(
        llm=llm,
        retrieval_service=build_retrieval_service(vector_store, lexical_store, cache=cache),
        session_service=SessionHistoryService(FakeConversationStore(), cache),
    )


async def collect(stream):
    return [item async for item in stream]


@pytest.mark.asyncio
async def test_rejected_context_never_reaches_the_llm(cache):
    llm = FakeLLM()
    chat = build_chat(FakeVectorStore(), FakeLexicalStore(), cache, llm)

    items = await collect(chat.process_message("What is prayer?", "s1"))

    first_token, outcome = items[0]
    assert first_token == ""
    assert not outcome.gate.proceed
    assert items[1] == (NOT_FOUND_REPLY, None)
    assert len(items) == 2
    assert llm.calls == []


@pytest.mark.asyncio
async def test_rejection_reply_includes_suggestions(cache):
    chat = build_chat(FakeVectorStore(), FakeLexicalStore(), cache, FakeLLM())

    items = await collect(chat.process_message("prayer", "s1"))

    reply = items[1][0]
    assert reply.startswith(NOT_FOUND_REPLY)
    assert reply.endswith("Try adding more specific terms to your question.")


@pytest.mark.asyncio
async def test_approved_context_is_streamed_and_recorded(cache):
    llm = FakeLLM(["Prayer ", "comforts ", "orphans."])
    vector_store = FakeVectorStore([vector_candidate(WAR, 0.8)])
    chat = build_chat(vector_store, FakeLexicalStore([WAR]), cache, llm)

    items = await collect(chat.process_message("prayer for orphans of war", "s1"))

    assert items[0][1].gate.proceed
    assert "".join(token for token, _ in items[1:]) == "Prayer comforts orphans."
    [call] = llm.calls
    assert "=== Prayers for War-Affected Children ===" in call["context"]
    assert call["history"] == []

    history = await chat._sessions.get_history("s1")
    assert history.questions == ["prayer for orphans of war"]
    assert history.last_answer == "Prayer comforts orphans."


@pytest.mark.asyncio
async def test_history_is_passed_to_the_llm(cache):
    llm = FakeLLM()
    vector_store = FakeVectorStore([vector_candidate(WAR, 0.8)])
    chat = build_chat(vector_store, FakeLexicalStore([WAR]), cache, llm)

    await collect(chat.process_message("prayer for orphans of war", "s1"))
    await collect(chat.process_message("prayer for war orphans", "s1"))

    assert llm.calls[1]["history"] == [
        {"role": "user", "content": "prayer for orphans of war"},
        {"role": "assistant", "content": "Prayer helps."},
    ]


@pytest.mark.asyncio
async def test_blank_answer_is_not_recorded(cache):
    llm = FakeLLM(["  "])
    vector_store = FakeVectorStore([vector_candidate(WAR, 0.8)])
    chat = build_chat(vector_store, FakeLexicalStore([WAR]), cache, llm)

    await collect(chat.process_message("prayer for orphans of war", "s1"))

    history = await chat._sessions.get_history("s1")
    assert not history.has_history
