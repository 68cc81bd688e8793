"""Core business services."""
from .retrievers import VectorRetriever, LexicalRetriever
from .intent_service import IntentClassifier
from .context_assembler import ContextAssembler
from .metadata_service import MetadataEnricher
from .session_service import SessionHistoryService
from .retrieval_service import RetrievalService
from .chat_service import ChatService

__all__ = [
    "VectorRetriever",
    "LexicalRetriever",
    "IntentClassifier",
    "ContextAssembler",
    "MetadataEnricher",
    "SessionHistoryService",
    "RetrievalService",
    "ChatService",
]
