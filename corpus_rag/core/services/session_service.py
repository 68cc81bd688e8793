"""Session service - recent turn history with a cache in front of storage."""

import asyncio
import logging
from typing import Optional

from ..cache import CacheNamespace, CacheTTL, ScoreCache
from ..models.chat import ChatHistory
from ..protocols.conversation_store import ConversationStoreProtocol
from ..retry import retry_async

logger = logging.getLogger(__name__)


class SessionHistoryService:
    """Serve recent conversation turns per session."""

    def __init__(
        self,
        conversation_store: ConversationStoreProtocol,
        cache: ScoreCache,
        history_turns: int = 3,
        retries: int = 1,
    ):
        """Initialize service.

        Args:
            conversation_store: Persisted conversations.
            cache: Shared cache.
            history_turns: Number of recent turns kept.
            retries: Retries on transient store errors.
        """
        self._store = conversation_store
        self._cache = cache
        self._history_turns = history_turns
        self._retries = retries

    async def get_history(self, session_id: str, user_id: Optional[str] = None) -> ChatHistory:
        """Get recent turns, oldest first."""
        cached = self._cache.get(CacheNamespace.CHAT_HISTORY, session_id)
        if cached is not None:
            logger.debug(f"History cache hit for session {session_id}")
            return ChatHistory(turns=list(cached.turns), max_turns=self._history_turns)

        turns = await retry_async(
            lambda: asyncio.to_thread(
                self._store.recent_turns, session_id, user_id, self._history_turns
            ),
            retries=self._retries,
        )
        history = ChatHistory(turns=list(reversed(turns)), max_turns=self._history_turns)

        if history.has_history:
            self._cache.set(CacheNamespace.CHAT_HISTORY, session_id, history, CacheTTL.MEDIUM)
        logger.debug(f"History loaded for session {session_id}: {len(history.turns)} turns")
        return history

    def record_turn(
        self,
        session_id: str,
        question: str,
        answer: str,
        history: Optional[ChatHistory] = None,
    ) -> None:
        """Append a finished turn to the session history.

        Args:
            session_id: Chat session id.
            question: User question.
            answer: Completed answer.
            history: History loaded for this turn, used when the cached one
                was evicted meanwhile.
        """
        cached = self._cache.get(CacheNamespace.CHAT_HISTORY, session_id)
        base = cached if cached is not None else history
        if base is None:
            # next read reloads from the store
            self.invalidate(session_id)
            return

        updated = ChatHistory(turns=list(base.turns), max_turns=self._history_turns)
        updated.add_pair(question, answer)
        self._cache.set(CacheNamespace.CHAT_HISTORY, session_id, updated, CacheTTL.MEDIUM)

    def invalidate(self, session_id: str) -> None:
        self._cache.delete(CacheNamespace.CHAT_HISTORY, session_id)
