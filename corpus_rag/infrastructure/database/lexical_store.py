import logging

from sqlalchemy import Engine, text

from corpus_rag.core.models.document import Passage

logger = logging.getLogger(__name__)

SEARCH_SQL = text(
    """
    SELECT
      c.id AS id,
      c.document_id AS document_id,
      c.chunk_index AS chunk_index,
      c.content AS content,
      c.token_count AS token_count,
      d.title AS document_title,
      d.author AS document_author
    FROM chunks c
    JOIN documents d ON d.id = c.document_id
    WHERE to_tsvector(:config, c.content) @@ websearch_to_tsquery(:config, :q)
    LIMIT :limit
    """
)


class PostgresLexicalStore:
    """Full-text passage search on PostgreSQL."""

    def __init__(self, engine: Engine, ts_config: str = "english"):
        """Initialize store.

        Args:
            engine: SQLAlchemy engine.
            ts_config: Text search configuration.
        """
        self._engine = engine
        self._ts_config = ts_config

    def search(self, query_text: str, limit: int) -> list[Passage]:
        """Full-text search over chunk content."""
        if not query_text.strip():
            return []

        with self._engine.connect() as conn:
            rows = conn.execute(
                SEARCH_SQL,
                {"config": self._ts_config, "q": query_text, "limit": int(limit)},
            ).mappings().all()

        passages = [
            Passage(
                id=str(row["id"]),
                document_id=str(row["document_id"]),
                document_title=row["document_title"] or "Untitled",
                chunk_index=int(row["chunk_index"] or 0),
                content=row["content"] or "",
                token_count=int(row["token_count"] or 0),
                document_author=row["document_author"],
            )
            for row in rows
        ]
        logger.debug(f"Full-text search returned {len(passages)} rows")
        return passages
