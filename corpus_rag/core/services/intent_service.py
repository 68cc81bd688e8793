"""Intent service - classifies questions to steer retrieval and gating."""

import logging
import re
from typing import Mapping, Optional

from ..models.chat import ChatHistory
from ..models.intent import ChatAction, DocumentFormat, IntentResult, RetrievalStrategy
from ..models.retrieval import RetrievalOptions

logger = logging.getLogger(__name__)

STRATEGY_PATTERNS: dict[RetrievalStrategy, list[re.Pattern]] = {
    RetrievalStrategy.FACTUAL: [
        re.compile(r"^(what|when|where|who|which|how much|how many)"),
        re.compile(r"\b(define|definition|meaning|date|number|name|list)\b"),
        re.compile(r"\b(is|are|was|were|will be|has|have|had)\s"),
    ],
    RetrievalStrategy.CONCEPTUAL: [
        re.compile(r"^(how|why|explain|describe)"),
        re.compile(r"\b(understand|concept|theory|principle|process|mechanism)\b"),
        re.compile(r"\b(significance|importance|impact|effect|influence)\b"),
        re.compile(r"\b(teach me|help me understand|how to|how do|how can|why)\b"),
    ],
    RetrievalStrategy.COMPARATIVE: [
        re.compile(r"\b(compare|comparison|versus|vs|difference|similar|different)\b"),
        re.compile(r"\b(better|worse|best|worst|more|less|advantage|disadvantage)\b"),
        re.compile(r"\b(between|among|against)\b.*\b(and|or)\b"),
    ],
}

# (vector_weight, lexical_weight); GENERAL keeps the caller's weights
STRATEGY_WEIGHTS: dict[RetrievalStrategy, tuple[float, float]] = {
    RetrievalStrategy.FACTUAL: (0.7, 0.3),
    RetrievalStrategy.CONCEPTUAL: (0.8, 0.2),
    RetrievalStrategy.COMPARATIVE: (0.6, 0.4),
}

DOCUMENT_FORMATS: dict[DocumentFormat, re.Pattern] = {
    DocumentFormat.PDF: re.compile(r"\b(pdf|portable document)\b"),
    DocumentFormat.PPTX: re.compile(r"\b(powerpoint|ppt|pptx|presentation|slides?|slideshow)\b"),
    DocumentFormat.XLSX: re.compile(r"\b(excel|xlsx?|spreadsheet|workbook|table)\b"),
}
DOCUMENT_VERBS = re.compile(
    r"\b(create|make|generate|give me|export|download|save|produce|write|turn.*into|convert.*to)\b"
)
TRANSFORM_VERBS = re.compile(
    r"\b(add|create|develop|write|make|generate|expand|elaborate|revise|divide|integrate|"
    r"turn|convert|include|incorporate|design|construct|build)\b"
)
PRIOR_REFERENCE = re.compile(r"\b(that|this|the outline|the plan|those|these|it|them)\b")
SYNTHESIS_KEYWORDS = re.compile(
    r"\b(outline|scope|sequence|syllabus|curriculum|framework|weekly|modules?|"
    r"lesson plan|teaching plan|course design)\b"
)
BASIC_FACTUAL = re.compile(r"^(what is|what's|who is|who's|define|explain|describe|tell me about)\s")

FOLLOW_UP_PATTERNS = [
    re.compile(r"^(what|how|why|when|where|who)['’]?s?\s+(it|this|that|they|their|them|these|those)", re.I),
    re.compile(r"^(and|but|also|so|then)\s", re.I),
    re.compile(r"(tell me more|what about|how about|what else|anything else|can you|could you explain)", re.I),
]
BARE_QUESTION = re.compile(r"^(why|how|when|where|what|who)\??$", re.I)


class IntentClassifier:
    """Rule-based classifier over question text and conversation shape."""

    def __init__(
        self,
        strategy_weights: Optional[Mapping[RetrievalStrategy, tuple[float, float]]] = None,
        long_answer_chars: int = 400,
        short_imperative_words: int = 6,
        basic_factual_words: int = 8,
    ):
        """Initialize classifier.

        Args:
            strategy_weights: Vector/lexical weights per strategy.
            long_answer_chars: Prior answer length that counts as an artifact.
            short_imperative_words: Max words of a transform imperative.
            basic_factual_words: Max words of a basic factual question.
        """
        self._weights = dict(strategy_weights or STRATEGY_WEIGHTS)
        self._long_answer_chars = long_answer_chars
        self._short_imperative_words = short_imperative_words
        self._basic_factual_words = basic_factual_words

    def classify(
        self,
        question: str,
        has_history: bool = False,
        last_answer_length: int = 0,
    ) -> IntentResult:
        """Classify question on both axes.

        Args:
            question: User question.
            has_history: Whether the session has prior turns.
            last_answer_length: Length of the previous answer in characters.

        Returns:
            Intent result.
        """
        q = question.lower().strip()
        strategy, confidence = self._classify_strategy(q)
        action, doc_format = self._classify_action(q, has_history, last_answer_length)

        result = IntentResult(
            retrieval_strategy=strategy,
            chat_action=action,
            document_format=doc_format,
            strategy_confidence=confidence,
            suggestions=self._suggestions(question),
        )
        logger.debug(
            f"Intent for '{question[:50]}': {strategy.value}/{action.value} "
            f"(confidence={confidence:.2f})"
        )
        return result

    def classify_with_history(self, question: str, history: ChatHistory) -> IntentResult:
        return self.classify(question, history.has_history, history.last_answer_length)

    def _classify_strategy(self, q: str) -> tuple[RetrievalStrategy, float]:
        scores = {
            strategy: sum(1 for p in patterns if p.search(q))
            for strategy, patterns in STRATEGY_PATTERNS.items()
        }
        best = max(scores.values())
        if best == 0:
            return RetrievalStrategy.GENERAL, 0.5

        winners = [s for s, score in scores.items() if score == best]
        confidence = min(best / 3, 1.0)
        if len(winners) > 1:
            return RetrievalStrategy.GENERAL, confidence
        return winners[0], confidence

    def _classify_action(
        self,
        q: str,
        has_history: bool,
        last_answer_length: int,
    ) -> tuple[ChatAction, Optional[DocumentFormat]]:
        if DOCUMENT_VERBS.search(q):
            for doc_format, pattern in DOCUMENT_FORMATS.items():
                if pattern.search(q):
                    return ChatAction.GENERATE_DOCUMENT, doc_format

        if has_history and last_answer_length > self._long_answer_chars:
            short_imperative = (
                len(q.split()) <= self._short_imperative_words and bool(TRANSFORM_VERBS.search(q))
            )
            if PRIOR_REFERENCE.search(q) or short_imperative:
                return ChatAction.TRANSFORM_PRIOR_ARTIFACT, None

        if SYNTHESIS_KEYWORDS.search(q):
            return ChatAction.SYNTHESIZE_FROM_DOCS, None

        if BASIC_FACTUAL.search(q) and len(q.split()) <= self._basic_factual_words:
            return ChatAction.BASIC_FACTUAL, None

        return ChatAction.RETRIEVE_FROM_DOCS, None

    def _suggestions(self, question: str) -> list[str]:
        suggestions = []
        lower = question.lower()
        if len(question) < 10:
            suggestions.append("Try adding more specific terms to your question")
        if "?" not in lower and ("what" in lower or "how" in lower):
            suggestions.append("Consider rephrasing as a complete question")
        return suggestions

    def weights_for(self, strategy: RetrievalStrategy) -> Optional[tuple[float, float]]:
        """Vector/lexical weights for a strategy, None to keep defaults."""
        return self._weights.get(strategy)

    def apply_weights(self, options: RetrievalOptions, intent: IntentResult) -> RetrievalOptions:
        """Return options with the strategy's weights applied."""
        weights = self.weights_for(intent.retrieval_strategy)
        if weights is None:
            return options
        return options.with_weights(*weights)

    @staticmethod
    def strategy_label(intent: IntentResult, options: RetrievalOptions) -> str:
        return (
            f"{intent.retrieval_strategy.value} "
            f"({options.vector_weight}/{options.lexical_weight})"
        )

    @staticmethod
    def is_follow_up(question: str) -> bool:
        """Check if question leans on earlier turns."""
        text = question.strip()
        if any(p.search(text) for p in FOLLOW_UP_PATTERNS):
            return True
        return len(text) < 10 and bool(BARE_QUESTION.match(text))

    def expand_follow_up(self, question: str, history: ChatHistory) -> str:
        """Build the search query, prefixing recent questions for follow-ups.

        Args:
            question: Current question.
            history: Recent session turns.

        Returns:
            Query to search with.
        """
        if not history.has_history or not self.is_follow_up(question):
            return question

        expanded = f"{' '.join(history.questions)} {question}"
        logger.info(f"Follow-up query expanded: '{question[:50]}' -> '{expanded[:100]}'")
        return expanded
