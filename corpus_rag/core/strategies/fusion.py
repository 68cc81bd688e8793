"""Vector + lexical score fusion."""
import logging
from typing import Optional

from ..models.document import Candidate, FusedResult, Provenance
from ..models.retrieval import RetrievalOptions
from .diversity import diversify
from .scoring import TitleBoostStrategy

logger = logging.getLogger(__name__)


class HybridMerger:
    """Merge vector and lexical candidates into one ranking."""

    def __init__(self, title_boost: Optional[TitleBoostStrategy] = None):
        """Initialize merger.

        Args:
            title_boost: Title boosting strategy.
        """
        self._title_boost = title_boost or TitleBoostStrategy()

    def merge(
        self,
        query: str,
        vector_candidates: list[Candidate],
        lexical_candidates: list[Candidate],
        options: RetrievalOptions,
    ) -> list[FusedResult]:
        """Fuse two candidate lists.

        Args:
            query: Query used for title boosting.
            vector_candidates: Candidates from the vector index.
            lexical_candidates: Candidates from the lexical store.
            options: Weights, floors and caps.

        Returns:
            Fused results sorted by score, capped and diversified.
        """
        vectors = [c for c in vector_candidates if c.raw_score >= options.min_vector_score]
        lexicals = [c for c in lexical_candidates if c.raw_score >= options.min_lexical_score]

        fused: dict[str, FusedResult] = {}
        for c in vectors:
            score = max(c.raw_score, 0.0) * options.vector_weight
            existing = fused.get(c.id)
            if existing is not None and existing.original_score >= score:
                continue
            fused[c.id] = FusedResult(
                passage=c.passage,
                fused_score=score,
                original_score=score,
                provenance=Provenance.VECTOR,
                vector_score=c.raw_score,
            )

        for c in lexicals:
            score = max(c.raw_score, 0.0) * options.lexical_weight
            existing = fused.get(c.id)
            if existing is None:
                fused[c.id] = FusedResult(
                    passage=c.passage,
                    fused_score=score,
                    original_score=score,
                    provenance=Provenance.LEXICAL,
                    lexical_score=c.raw_score,
                )
            elif existing.provenance is Provenance.LEXICAL:
                if score > existing.original_score:
                    existing.fused_score = existing.original_score = score
                    existing.lexical_score = c.raw_score
            elif existing.lexical_score is None:
                existing.original_score += score
                existing.fused_score = existing.original_score
                existing.provenance = Provenance.HYBRID
                existing.lexical_score = c.raw_score

        results = self._title_boost.apply(query, list(fused.values()))
        results.sort(key=lambda r: (-r.fused_score, r.id))
        results = results[:options.max_results]
        results = diversify(results, options.max_per_document)

        hybrid = sum(1 for r in results if r.provenance is Provenance.HYBRID)
        logger.info(
            f"Hybrid search: {len(vectors)} vector + {len(lexicals)} lexical "
            f"= {len(fused)} fused, {len(results)} kept ({hybrid} hybrid)"
        )
        return results


def calculate_confidence(results: list[FusedResult]) -> float:
    """Estimate how well the ranking answers the query.

    Returns:
        Confidence in [0, 1]; 0 for no results.
    """
    if not results:
        return 0.0

    top = results[0].fused_score
    confidence = min(top * 0.7, 0.7)

    if len(results) > 1 and top > 0 and results[1].fused_score / top > 0.8:
        confidence += 0.15

    hybrid = sum(1 for r in results if r.provenance is Provenance.HYBRID)
    confidence += hybrid / len(results) * 0.15

    return min(confidence, 1.0)
