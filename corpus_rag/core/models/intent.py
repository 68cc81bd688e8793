"""Intent domain models."""
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional


class RetrievalStrategy(Enum):
    """Question type, drives vector/lexical weighting."""
    FACTUAL = "factual"
    CONCEPTUAL = "conceptual"
    COMPARATIVE = "comparative"
    GENERAL = "general"


class ChatAction(Enum):
    """What the user wants done with the corpus."""
    RETRIEVE_FROM_DOCS = "retrieve_from_docs"
    SYNTHESIZE_FROM_DOCS = "synthesize_from_docs"
    TRANSFORM_PRIOR_ARTIFACT = "transform_prior_artifact"
    GENERATE_DOCUMENT = "generate_document"
    BASIC_FACTUAL = "basic_factual"


class DocumentFormat(Enum):
    """Export format for generate_document."""
    PDF = "pdf"
    PPTX = "pptx"
    XLSX = "xlsx"


@dataclass(frozen=True)
class IntentResult:
    """Result of query intent classification."""
    retrieval_strategy: RetrievalStrategy
    chat_action: ChatAction
    document_format: Optional[DocumentFormat] = None
    strategy_confidence: float = 0.5
    suggestions: list[str] = field(default_factory=list)
