"""Conversation store protocol for dependency injection."""
from typing import Optional, Protocol, runtime_checkable

from ..models.chat import ConversationTurn


@runtime_checkable
class ConversationStoreProtocol(Protocol):
    """Protocol for persisted conversation turns."""

    def recent_turns(
        self,
        session_id: str,
        user_id: Optional[str],
        limit: int,
    ) -> list[ConversationTurn]:
        """Get the most recent turns of a session.

        Args:
            session_id: Chat session id.
            user_id: Owner of the session.
            limit: Maximum turns.

        Returns:
            Turns, newest first.
        """
        ...
