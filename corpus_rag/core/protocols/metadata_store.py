"""Metadata store protocol for dependency injection."""
from typing import Optional, Protocol, runtime_checkable

from ..models.document import DocumentMetadata


@runtime_checkable
class MetadataStoreProtocol(Protocol):
    """Protocol for display-only document metadata."""

    def get_document_by_id(self, document_id: str) -> Optional[DocumentMetadata]:
        """Get document metadata, None if unknown."""
        ...
