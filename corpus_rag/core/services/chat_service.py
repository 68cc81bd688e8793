"""Chat service - coordinates retrieval, gating and the LLM."""

import logging
from typing import AsyncIterator, Optional

from ..models.retrieval import RetrievalOptions, RetrievalOutcome
from ..protocols.llm import LLMProtocol
from .retrieval_service import RetrievalService
from .session_service import SessionHistoryService

logger = logging.getLogger(__name__)

NOT_FOUND_REPLY = (
    "I couldn't find enough information about that in the available documents."
)


class ChatService:
    """Chat service that answers from approved context only."""

    def __init__(
        self,
        llm: LLMProtocol,
        retrieval_service: RetrievalService,
        session_service: SessionHistoryService,
    ):
        """Initialize chat service.

        Args:
            llm: LLM client.
            retrieval_service: Hybrid retrieval service.
            session_service: Session history service.
        """
        self._llm = llm
        self._retrieval = retrieval_service
        self._sessions = session_service

    @staticmethod
    def rejection_reply(outcome: RetrievalOutcome) -> str:
        """Reply used when the quality gate rejects the context."""
        if not outcome.intent.suggestions:
            return NOT_FOUND_REPLY
        hints = ". ".join(outcome.intent.suggestions)
        return f"{NOT_FOUND_REPLY} {hints}."

    async def process_message(
        self,
        user_message: str,
        session_id: str,
        user_id: Optional[str] = None,
        options: Optional[RetrievalOptions] = None,
    ) -> AsyncIterator[tuple[str, Optional[RetrievalOutcome]]]:
        """Process user message.

        Flow:
            1. Load recent history for the session
            2. Retrieve, assemble and gate context
            3. On rejection reply "not found" without calling the LLM
            4. Otherwise stream the LLM answer and record the turn

        Args:
            user_message: User's message.
            session_id: Chat session id.
            user_id: Session owner.
            options: Retrieval options override.

        Yields:
            Tuples of (token, outcome). outcome is only set on first yield.
        """
        history = await self._sessions.get_history(session_id, user_id)
        outcome = await self._retrieval.retrieve_and_assemble(user_message, history, options)

        yield ("", outcome)

        if not outcome.gate.proceed:
            logger.info(
                f"No answer from docs for '{user_message[:50]}' ({outcome.gate.reason})"
            )
            yield (self.rejection_reply(outcome), None)
            return

        context = outcome.context.to_prompt() if len(outcome.context) else None
        answer_parts: list[str] = []
        async for token in self._llm.chat_stream(
            user_message=user_message, context=context, history=history.to_list()
        ):
            answer_parts.append(token)
            yield (token, None)

        answer = "".join(answer_parts)
        if answer.strip():
            self._sessions.record_turn(session_id, user_message, answer, history)
