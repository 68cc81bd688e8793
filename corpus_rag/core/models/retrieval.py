"""Retrieval request/response models."""
from dataclasses import asdict, dataclass, field, replace
from typing import Optional

from ..errors import ConfigurationError
from .document import AssembledContext, FusedResult, SourceMetadata
from .intent import IntentResult


@dataclass(frozen=True)
class RetrievalOptions:
    """Per-request retrieval tuning.

    Weights are independent multipliers and need not sum to 1.
    """
    vector_weight: float = 0.7
    lexical_weight: float = 0.3
    min_vector_score: float = 0.5
    min_lexical_score: float = 0.05
    max_results: int = 20
    max_per_document: int = 3
    cache_enabled: bool = True
    caller_id: Optional[str] = None

    def validate(self) -> "RetrievalOptions":
        """Check ranges, raise ConfigurationError on the first bad field."""
        for name in ("vector_weight", "lexical_weight"):
            value = getattr(self, name)
            if not 0.0 <= value <= 1.0:
                raise ConfigurationError(
                    f"{name} must be within [0, 1], got {value}",
                    detail={"field": name, "value": value},
                )
        for name in ("min_vector_score", "min_lexical_score"):
            value = getattr(self, name)
            if value < 0.0:
                raise ConfigurationError(
                    f"{name} must be non-negative, got {value}",
                    detail={"field": name, "value": value},
                )
        if self.max_results < 1:
            raise ConfigurationError(
                f"max_results must be at least 1, got {self.max_results}",
                detail={"field": "max_results", "value": self.max_results},
            )
        if self.max_per_document < 1:
            raise ConfigurationError(
                f"max_per_document must be at least 1, got {self.max_per_document}",
                detail={"field": "max_per_document", "value": self.max_per_document},
            )
        return self

    def with_weights(self, vector_weight: float, lexical_weight: float) -> "RetrievalOptions":
        return replace(self, vector_weight=vector_weight, lexical_weight=lexical_weight)

    def fingerprint_params(self) -> dict:
        """Parameters that make two searches distinct for caching."""
        params = asdict(self)
        params.pop("cache_enabled")
        if params["caller_id"] is None:
            params.pop("caller_id")
        return params


@dataclass(frozen=True)
class GateDecision:
    """Quality gate verdict."""
    proceed: bool
    reason: str
    override: bool = False


@dataclass
class RetrievalOutcome:
    """Everything retrieve_and_assemble hands back to the chat layer."""
    context: AssembledContext
    intent: IntentResult
    confidence: float
    gate: GateDecision
    results: list[FusedResult] = field(default_factory=list)
    search_query: str = ""
    strategy_label: str = ""
    sources: list[SourceMetadata] = field(default_factory=list)

    @property
    def top_score(self) -> float:
        return self.results[0].fused_score if self.results else 0.0
