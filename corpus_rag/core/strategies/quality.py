"""Quality gate deciding whether retrieved context is good enough to answer."""
import logging
from dataclasses import dataclass
from typing import Mapping, Optional

from ..models.intent import ChatAction
from ..models.retrieval import GateDecision

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class QualityThresholds:
    confidence: float
    top_score: float


DEFAULT_THRESHOLDS = QualityThresholds(confidence=0.7, top_score=0.55)

ACTION_THRESHOLDS: dict[ChatAction, QualityThresholds] = {
    ChatAction.SYNTHESIZE_FROM_DOCS: QualityThresholds(confidence=0.35, top_score=0.40),
    ChatAction.BASIC_FACTUAL: QualityThresholds(confidence=0.4, top_score=0.45),
}


class QualityGate:
    """Approve or reject an assembled context."""

    def __init__(
        self,
        thresholds: Optional[Mapping[ChatAction, QualityThresholds]] = None,
        default: QualityThresholds = DEFAULT_THRESHOLDS,
        min_confidence: float = 0.1,
    ):
        """Initialize gate.

        Args:
            thresholds: Per-action thresholds, merged over the defaults.
            default: Thresholds for actions without an entry.
            min_confidence: Confidence at or below which the gate always rejects.
        """
        self._thresholds = {**ACTION_THRESHOLDS, **(thresholds or {})}
        self._default = default
        self._min_confidence = min_confidence

    def thresholds_for(self, action: ChatAction) -> QualityThresholds:
        return self._thresholds.get(action, self._default)

    def evaluate(
        self,
        context_size: int,
        confidence: float,
        top_score: float,
        chat_action: ChatAction,
        prior_artifact: str = "",
    ) -> GateDecision:
        """Decide whether to answer from the context.

        Args:
            context_size: Number of chunks in the assembled context.
            confidence: Search confidence.
            top_score: Fused score of the best result.
            chat_action: Classified chat action.
            prior_artifact: Previous answer the user may be referring to.

        Returns:
            Gate decision with a machine-readable reason.
        """
        has_artifact = bool(prior_artifact and prior_artifact.strip())

        if chat_action is ChatAction.TRANSFORM_PRIOR_ARTIFACT and has_artifact:
            return GateDecision(proceed=True, reason="override_prior_artifact", override=True)
        if chat_action is ChatAction.GENERATE_DOCUMENT and (has_artifact or context_size > 0):
            return GateDecision(proceed=True, reason="override_document_generation", override=True)

        if context_size == 0:
            decision = GateDecision(proceed=False, reason="empty_context")
        elif confidence <= self._min_confidence:
            decision = GateDecision(proceed=False, reason="low_confidence")
        else:
            t = self.thresholds_for(chat_action)
            if confidence < t.confidence and top_score < t.top_score:
                decision = GateDecision(proceed=False, reason="below_thresholds")
            else:
                decision = GateDecision(proceed=True, reason="sufficient")

        if not decision.proceed:
            logger.info(
                f"Quality gate rejected ({decision.reason}): chunks={context_size}, "
                f"confidence={confidence:.2f}, top={top_score:.2f}, action={chat_action.value}"
            )
        return decision

