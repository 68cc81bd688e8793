import asyncio
import logging
import sys
import uuid

import httpx
import requests
from sqlalchemy import Engine
from sqlalchemy.exc import SQLAlchemyError

from corpus_rag.config.settings import settings
from corpus_rag.container import configure_container, container, shutdown_container
from corpus_rag.core.errors import CorpusRagError
from corpus_rag.core.protocols.vector_store import VectorStoreProtocol
from corpus_rag.core.services.chat_service import ChatService
from corpus_rag.infrastructure.database.engine import ping

logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")
logger = logging.getLogger(__name__)


def check_chroma() -> bool:
    url = f"http://{settings.chroma_host}:{settings.chroma_port}/api/v2/heartbeat"
    try:
        resp = httpx.get(url, timeout=5)
    except httpx.HTTPError as e:
        logger.error(f"ChromaDB unreachable at {url}: {e}")
        return False
    if resp.status_code != 200:
        logger.error(f"ChromaDB heartbeat returned {resp.status_code}")
        return False
    logger.info("ChromaDB is ready")
    return True


def check_llm() -> bool:
    model = settings.llm_model
    base_url = settings.llm_base_url.replace("/v1", "")
    try:
        resp = httpx.get(f"{base_url}/api/tags", timeout=5)
    except httpx.HTTPError as e:
        logger.error(f"LLM endpoint unreachable at {base_url}: {e}")
        return False
    if resp.status_code != 200:
        logger.error(f"LLM endpoint returned {resp.status_code}")
        return False
    models = [m["name"] for m in resp.json().get("models", [])]
    if not any(model in m for m in models):
        logger.error(f"Model {model} is not pulled (available: {', '.join(models) or 'none'})")
        return False
    logger.info(f"Model {model} is ready")
    return True


def check_index() -> bool:
    store = container.resolve(VectorStoreProtocol)
    try:
        passages = store.count()
    except requests.RequestException as e:
        logger.error(f"Collection {settings.chroma_collection} unavailable: {e}")
        return False
    if passages == 0:
        logger.error(f"Collection {settings.chroma_collection} is empty")
        return False
    logger.info(f"Collection {settings.chroma_collection} holds {passages} passages")
    return True


def check_database() -> bool:
    try:
        ok = ping(container.resolve(Engine))
    except SQLAlchemyError as e:
        logger.error(f"Database unreachable: {e}")
        return False
    if not ok:
        logger.error("Database ping returned an unexpected result")
        return False
    logger.info("Database is ready")
    return True


def cmd_check() -> None:
    """Check command - probe external services."""
    configure_container(settings)
    try:
        results = [check_chroma(), check_llm(), check_database()]
        if results[0]:
            results.append(check_index())
    finally:
        shutdown_container()
    if not all(results):
        sys.exit(1)
    logger.info("All services ready")


async def _ask(question: str, session_id: str, user_id: str | None) -> None:
    chat = container.resolve(ChatService)
    async for token, outcome in chat.process_message(question, session_id, user_id):
        if outcome is not None:
            logger.info(
                f"Strategy {outcome.strategy_label}, confidence {outcome.confidence:.2f}, "
                f"gate {outcome.gate.reason}"
            )
            continue
        print(token, end="", flush=True)
    print()


def cmd_ask(question: str, session_id: str | None, user_id: str | None) -> None:
    """Ask command - answer one question from the corpus."""
    configure_container(settings)
    try:
        asyncio.run(_ask(question, session_id or uuid.uuid4().hex, user_id))
    except CorpusRagError as e:
        logger.error(f"Request failed: {e}")
        sys.exit(1)
    finally:
        shutdown_container()


def main():
    """CLI entry point."""
    if len(sys.argv) < 2:
        print("Usage: python -m corpus_rag.presentation.cli <command>")
        print("Commands: ask <question> [session_id] [user_id], check")
        sys.exit(1)

    command = sys.argv[1]

    if command == "check":
        cmd_check()
    elif command == "ask":
        if len(sys.argv) < 3:
            print("Usage: python -m corpus_rag.presentation.cli ask <question> [session_id] [user_id]")
            sys.exit(1)
        session_id = sys.argv[3] if len(sys.argv) > 3 else None
        user_id = sys.argv[4] if len(sys.argv) > 4 else None
        cmd_ask(sys.argv[2], session_id, user_id)
    else:
        print(f"Unknown command: {command}")
        sys.exit(1)


if __name__ == "__main__":
    main()
