import logging
import re
from abc import ABC, abstractmethod
from dataclasses import dataclass, replace

from ..models.document import FusedResult

logger = logging.getLogger(__name__)

_NON_WORD = re.compile(r"[^\w\s]")


def extract_terms(query: str, min_length: int = 3) -> list[str]:
    """Split query into distinct lowercase terms, punctuation dropped.

    Args:
        query: Raw query text.
        min_length: Shortest term kept.

    Returns:
        Terms in first-seen order.
    """
    cleaned = _NON_WORD.sub(" ", query.lower())
    seen = set()
    terms = []
    for term in cleaned.split():
        if len(term) >= min_length and term not in seen:
            seen.add(term)
            terms.append(term)
    return terms


@dataclass(frozen=True)
class LexicalWeights:
    """Tunable constants of the lexical relevance formula."""
    exact_tf_weight: float = 2.0
    position_weight: float = 0.2
    exact_bonus: float = 0.3
    frequency_step: float = 0.1
    frequency_cap: float = 0.5
    coverage_bonus: float = 0.4


class LexicalScorer:
    """Score a passage against a query by term overlap."""

    def __init__(self, weights: LexicalWeights | None = None):
        self._weights = weights or LexicalWeights()

    def score(self, query: str, passage: str) -> float:
        """Compute lexical relevance.

        Args:
            query: User query.
            passage: Passage text.

        Returns:
            Score in [0, 1]. Zero when no query term matches.
        """
        terms = extract_terms(query)
        if not terms or not passage or not passage.strip():
            return 0.0

        w = self._weights
        text = passage.lower()
        word_count = max(len(text.split()), 1)
        total = 0.0
        matched = 0

        for term in terms:
            escaped = re.escape(term)
            exact = len(re.findall(rf"\b{escaped}\b", text))
            substring = len(re.findall(escaped, text)) - exact
            if exact == 0 and substring == 0:
                continue
            matched += 1
            tf = (w.exact_tf_weight * exact + substring) / word_count
            position = (1 - text.index(term) / len(text)) * w.position_weight
            bonus = w.exact_bonus if exact else 0.0
            frequency = min((exact + substring) * w.frequency_step, w.frequency_cap)
            total += tf + position + bonus + frequency

        coverage = matched / len(terms)
        score = (total + coverage * w.coverage_bonus) * coverage
        return max(0.0, min(score, 1.0))


class ScoringStrategy(ABC):
    """Base class for scoring strategies."""

    @abstractmethod
    def apply(self, query: str, results: list[FusedResult]) -> list[FusedResult]:
        """Apply strategy to results."""
        ...


@dataclass(frozen=True)
class TitleBoostWeights:
    """Bonuses for query terms found in a document title."""
    per_term: float = 0.15
    multi_term_bonus: float = 0.3
    single_term_bonus: float = 0.2


class TitleBoostStrategy(ScoringStrategy):
    """Boost results whose document title names query concepts."""

    def __init__(self, weights: TitleBoostWeights | None = None):
        """Initialize strategy.

        Args:
            weights: Custom boost constants.
        """
        self._weights = weights or TitleBoostWeights()

    def boost_for(self, terms: list[str], title: str) -> float:
        """Compute title boost for one title."""
        title_lower = (title or "").lower()
        matches = sum(1 for term in terms if term in title_lower)
        if matches == 0:
            return 0.0
        concept = (
            self._weights.multi_term_bonus if matches >= 2
            else self._weights.single_term_bonus
        )
        return matches * self._weights.per_term + concept

    def apply(self, query: str, results: list[FusedResult]) -> list[FusedResult]:
        """Add title boost on top of fused scores. Order is left unchanged."""
        terms = extract_terms(query)
        if not terms or not results:
            return results

        boosted = []
        count = 0
        for result in results:
            boost = self.boost_for(terms, result.document_title)
            if boost:
                count += 1
                result = replace(
                    result,
                    title_boost=boost,
                    fused_score=result.original_score + boost,
                )
            boosted.append(result)

        if count:
            logger.info(f"Title boost: {count}/{len(results)} results boosted")

        return boosted
