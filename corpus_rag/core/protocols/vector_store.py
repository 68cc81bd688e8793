"""Vector store protocol for dependency injection."""
from typing import Protocol, runtime_checkable

from ..models.document import Candidate


@runtime_checkable
class VectorStoreProtocol(Protocol):
    """Protocol for nearest-neighbour search over passage embeddings."""

    def query(
        self,
        query_embedding: list[float],
        top_k: int = 20,
        min_score: float = 0.0,
    ) -> list[Candidate]:
        """Search by embedding.

        Args:
            query_embedding: Query vector.
            top_k: Number of results to return.
            min_score: Similarity floor in [0, 1].

        Returns:
            Vector candidates, best first.
        """
        ...

    def count(self) -> int:
        """Get passage count."""
        ...
