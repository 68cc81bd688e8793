import logging
from typing import Optional

import requests

from corpus_rag.core.models.document import Candidate, Passage, SourceKind

logger = logging.getLogger(__name__)


class ChromaVectorStore:
    """Read-only passage index over the ChromaDB HTTP API."""

    def __init__(
        self,
        host: str = "localhost",
        port: int = 8001,
        collection_name: str = "passages",
        tenant: str = "default_tenant",
        database: str = "default_database",
        timeout: float = 10.0,
    ):
        """Initialize ChromaDB client.

        Args:
            host: ChromaDB host.
            port: ChromaDB port.
            collection_name: Collection holding passage embeddings.
            tenant: Tenant name.
            database: Database name.
            timeout: HTTP timeout in seconds.
        """
        self._base_url = f"http://{host}:{port}/api/v2"
        self._tenant = tenant
        self._database = database
        self._collection_name = collection_name
        self._timeout = timeout
        self._collection_id: Optional[str] = None

    @property
    def _collections_url(self) -> str:
        return f"{self._base_url}/tenants/{self._tenant}/databases/{self._database}/collections"

    def _collection(self) -> str:
        """Resolve collection ID by name."""
        if self._collection_id:
            return self._collection_id

        resp = requests.get(
            f"{self._collections_url}/{self._collection_name}", timeout=self._timeout
        )
        resp.raise_for_status()
        self._collection_id = resp.json()["id"]
        logger.info(f"Using collection {self._collection_name} ({self._collection_id})")
        return self._collection_id

    @staticmethod
    def _to_candidate(passage_id: str, content: str, metadata: dict, distance: float) -> Candidate:
        # cosine distance in [0, 2]
        similarity = max(0.0, min(1.0, 1.0 - distance))
        passage = Passage(
            id=passage_id,
            document_id=str(metadata.get("document_id", "")),
            document_title=metadata.get("document_title") or "Untitled",
            chunk_index=int(metadata.get("chunk_index", 0)),
            content=content or "",
            token_count=int(metadata.get("token_count", 0)),
            document_author=metadata.get("document_author") or None,
        )
        return Candidate(passage=passage, raw_score=similarity, source_kind=SourceKind.VECTOR)

    def query(
        self,
        query_embedding: list[float],
        top_k: int = 20,
        min_score: float = 0.0,
    ) -> list[Candidate]:
        """Search by embedding."""
        col_id = self._collection()
        resp = requests.post(
            f"{self._collections_url}/{col_id}/query",
            json={
                "query_embeddings": [query_embedding],
                "n_results": top_k,
                "include": ["documents", "metadatas", "distances"],
            },
            timeout=self._timeout,
        )
        resp.raise_for_status()

        data = resp.json()
        if not data.get("ids") or not data["ids"][0]:
            return []

        candidates = [
            self._to_candidate(
                passage_id,
                data["documents"][0][i],
                data["metadatas"][0][i] or {},
                data["distances"][0][i],
            )
            for i, passage_id in enumerate(data["ids"][0])
        ]
        return [c for c in candidates if c.raw_score >= min_score]

    def count(self) -> int:
        """Get passage count."""
        col_id = self._collection()
        resp = requests.get(f"{self._collections_url}/{col_id}/count", timeout=self._timeout)
        resp.raise_for_status()
        return int(resp.json())
