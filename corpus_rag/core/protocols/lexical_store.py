"""Lexical store protocol for dependency injection."""
from typing import Protocol, runtime_checkable

from ..models.document import Passage


@runtime_checkable
class LexicalStoreProtocol(Protocol):
    """Protocol for full-text passage search."""

    def search(self, query_text: str, limit: int) -> list[Passage]:
        """Full-text search.

        The store's own ranking is not trusted; passages are rescored.

        Args:
            query_text: Raw query.
            limit: Maximum passages to return.

        Returns:
            Matching passages.
        """
        ...
