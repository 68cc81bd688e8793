"""Context assembler - bounds and diversifies the generation context."""

import logging

from ..models.document import AssembledContext, ContextChunk, FusedResult
from ..strategies.diversity import diversify_with_relax

logger = logging.getLogger(__name__)


class ContextAssembler:
    """Select a bounded, document-diverse set of chunks."""

    def __init__(self, chunk_budget: int = 8, max_per_document: int = 2):
        """Initialize assembler.

        Args:
            chunk_budget: Maximum chunks in the context.
            max_per_document: Tight per-document cap, relaxed by one when short.
        """
        if chunk_budget < 1:
            raise ValueError("chunk_budget must be at least 1")
        if max_per_document < 1:
            raise ValueError("max_per_document must be at least 1")
        self._chunk_budget = chunk_budget
        self._max_per_document = max_per_document

    @property
    def chunk_budget(self) -> int:
        return self._chunk_budget

    def assemble(self, results: list[FusedResult]) -> AssembledContext:
        """Build context from score-sorted fused results.

        Chunks are grouped by document; groups keep the order of their best
        chunk and chunks keep score order inside a group.

        Args:
            results: Fused results, best first.

        Returns:
            Assembled context of at most chunk_budget chunks.
        """
        selected = diversify_with_relax(results, self._max_per_document, self._chunk_budget)

        groups: dict[str, list[FusedResult]] = {}
        for result in selected:
            groups.setdefault(result.document_id, []).append(result)

        chunks = [
            ContextChunk(
                content=r.content,
                document_title=r.document_title,
                document_author=r.document_author,
                document_id=r.document_id,
                passage_id=r.id,
                score=r.fused_score,
            )
            for group in groups.values()
            for r in group
        ]

        logger.info(
            f"Context: {len(chunks)}/{self._chunk_budget} chunks "
            f"from {len(groups)} documents ({len(results)} candidates)"
        )
        return AssembledContext(chunks=chunks)
