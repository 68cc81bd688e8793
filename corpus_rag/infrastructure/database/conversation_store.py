from typing import Optional

from sqlalchemy import Engine, text

from corpus_rag.core.models.chat import ConversationTurn

RECENT_TURNS_SQL = """
    SELECT question, answer
    FROM conversations
    WHERE session_id = :session_id
      AND deleted_at IS NULL
      {user_filter}
    ORDER BY created_at DESC
    LIMIT :limit
"""


class PostgresConversationStore:
    """Persisted chat turns."""

    def __init__(self, engine: Engine):
        self._engine = engine

    def recent_turns(
        self,
        session_id: str,
        user_id: Optional[str],
        limit: int,
    ) -> list[ConversationTurn]:
        """Get the most recent turns, newest first."""
        params = {"session_id": session_id, "limit": int(limit)}
        user_filter = ""
        if user_id is not None:
            user_filter = "AND user_id = :user_id"
            params["user_id"] = user_id

        with self._engine.connect() as conn:
            rows = conn.execute(
                text(RECENT_TURNS_SQL.format(user_filter=user_filter)), params
            ).mappings().all()

        return [ConversationTurn(question=r["question"], answer=r["answer"]) for r in rows]
