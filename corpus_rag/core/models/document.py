"""Document domain models."""
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional


class SourceKind(str, Enum):
    """Retriever that produced a candidate."""
    VECTOR = "vector"
    LEXICAL = "lexical"


class Provenance(str, Enum):
    """Where a fused result came from."""
    VECTOR = "vector"
    LEXICAL = "lexical"
    HYBRID = "hybrid"  # found by both retrievers


@dataclass(frozen=True)
class Passage:
    """Stored document chunk as returned by a backend."""
    id: str
    document_id: str
    document_title: str
    chunk_index: int
    content: str
    token_count: int = 0
    document_author: Optional[str] = None


@dataclass(frozen=True)
class Candidate:
    """Retrieved passage before fusion."""
    passage: Passage
    raw_score: float
    source_kind: SourceKind

    @property
    def id(self) -> str:
        return self.passage.id

    @property
    def document_id(self) -> str:
        return self.passage.document_id

    @property
    def document_title(self) -> str:
        return self.passage.document_title

    @property
    def document_author(self) -> Optional[str]:
        return self.passage.document_author

    @property
    def content(self) -> str:
        return self.passage.content

    @property
    def chunk_index(self) -> int:
        return self.passage.chunk_index

    @property
    def token_count(self) -> int:
        return self.passage.token_count


@dataclass
class FusedResult:
    """Candidate after vector/lexical score fusion."""
    passage: Passage
    fused_score: float
    provenance: Provenance
    original_score: float = 0.0
    title_boost: float = 0.0
    vector_score: Optional[float] = None
    lexical_score: Optional[float] = None

    @property
    def id(self) -> str:
        return self.passage.id

    @property
    def document_id(self) -> str:
        return self.passage.document_id

    @property
    def document_title(self) -> str:
        return self.passage.document_title

    @property
    def document_author(self) -> Optional[str]:
        return self.passage.document_author

    @property
    def content(self) -> str:
        return self.passage.content

    @property
    def chunk_index(self) -> int:
        return self.passage.chunk_index

    @property
    def token_count(self) -> int:
        return self.passage.token_count

    @property
    def score(self) -> float:
        """Final ranking score."""
        return self.fused_score


@dataclass(frozen=True)
class ContextChunk:
    """One passage of the generation context."""
    content: str
    document_title: str
    document_author: Optional[str] = None
    document_id: str = ""
    passage_id: str = ""
    score: float = 0.0


@dataclass
class AssembledContext:
    """Bounded, diversified context handed to the completion generator."""
    chunks: list[ContextChunk] = field(default_factory=list)

    def __len__(self) -> int:
        return len(self.chunks)

    def __iter__(self):
        return iter(self.chunks)

    @property
    def document_ids(self) -> list[str]:
        """Unique document ids in context order."""
        seen = set()
        ids = []
        for chunk in self.chunks:
            if chunk.document_id not in seen:
                seen.add(chunk.document_id)
                ids.append(chunk.document_id)
        return ids

    def as_tuples(self) -> list[tuple[str, str, Optional[str]]]:
        return [(c.content, c.document_title, c.document_author) for c in self.chunks]

    def to_prompt(self) -> str:
        """Render context blocks for the LLM."""
        parts = []
        for chunk in self.chunks:
            header = chunk.document_title
            if chunk.document_author:
                header = f"{header} by {chunk.document_author}"
            parts.append(f"=== {header} ===\n{chunk.content or 'No content available'}")
        return "\n\n".join(parts)


@dataclass(frozen=True)
class DocumentMetadata:
    """Display metadata stored for a document."""
    id: str
    title: str
    author: Optional[str] = None
    storage_path: Optional[str] = None
    file_size: Optional[int] = None
    amazon_url: Optional[str] = None
    resource_url: Optional[str] = None
    download_enabled: bool = False
    contact_person: Optional[str] = None
    contact_email: Optional[str] = None


@dataclass
class SourceMetadata:
    """Source card shown next to an answer."""
    document_id: str
    title: str
    chunk_id: str
    author: Optional[str] = None
    has_file: bool = False
    file_size: Optional[int] = None
    amazon_url: Optional[str] = None
    resource_url: Optional[str] = None
    download_enabled: bool = False
    contact_person: Optional[str] = None
    contact_email: Optional[str] = None

    @classmethod
    def from_chunk(
        cls, chunk: ContextChunk, metadata: Optional[DocumentMetadata] = None
    ) -> "SourceMetadata":
        """Build a source card, falling back to chunk fields when metadata is missing."""
        if metadata is None:
            return cls(
                document_id=chunk.document_id,
                title=chunk.document_title,
                chunk_id=chunk.passage_id,
                author=chunk.document_author,
            )
        return cls(
            document_id=chunk.document_id,
            title=chunk.document_title,
            chunk_id=chunk.passage_id,
            author=chunk.document_author or metadata.author,
            has_file=bool(metadata.storage_path),
            file_size=metadata.file_size,
            amazon_url=metadata.amazon_url,
            resource_url=metadata.resource_url,
            download_enabled=metadata.download_enabled,
            contact_person=metadata.contact_person,
            contact_email=metadata.contact_email,
        )
