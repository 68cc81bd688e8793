"""Domain models."""
from .document import (
    AssembledContext,
    Candidate,
    ContextChunk,
    DocumentMetadata,
    FusedResult,
    Passage,
    Provenance,
    SourceKind,
    SourceMetadata,
)
from .chat import ChatHistory, ConversationTurn
from .intent import ChatAction, DocumentFormat, IntentResult, RetrievalStrategy
from .retrieval import GateDecision, RetrievalOptions, RetrievalOutcome

__all__ = [
    "AssembledContext",
    "Candidate",
    "ContextChunk",
    "DocumentMetadata",
    "FusedResult",
    "Passage",
    "Provenance",
    "SourceKind",
    "SourceMetadata",
    "ChatHistory",
    "ConversationTurn",
    "ChatAction",
    "DocumentFormat",
    "IntentResult",
    "RetrievalStrategy",
    "GateDecision",
    "RetrievalOptions",
    "RetrievalOutcome",
]
