"""Protocol interfaces for dependency injection."""
from .embedder import EmbedderProtocol
from .vector_store import VectorStoreProtocol
from .lexical_store import LexicalStoreProtocol
from .metadata_store import MetadataStoreProtocol
from .conversation_store import ConversationStoreProtocol
from .llm import LLMProtocol

__all__ = [
    "EmbedderProtocol",
    "VectorStoreProtocol",
    "LexicalStoreProtocol",
    "MetadataStoreProtocol",
    "ConversationStoreProtocol",
    "LLMProtocol",
]
