from typing import Optional

from sqlalchemy import Engine, text

from corpus_rag.core.models.document import DocumentMetadata

DOCUMENT_SQL = text(
    """
    SELECT id, title, author, storage_path, file_size, amazon_url, resource_url,
           download_enabled, contact_person, contact_email
    FROM documents
    WHERE id = :id
    """
)


class PostgresMetadataStore:
    """Document display metadata from the relational store."""

    def __init__(self, engine: Engine):
        self._engine = engine

    def get_document_by_id(self, document_id: str) -> Optional[DocumentMetadata]:
        with self._engine.connect() as conn:
            row = conn.execute(DOCUMENT_SQL, {"id": document_id}).mappings().first()

        if row is None:
            return None

        return DocumentMetadata(
            id=str(row["id"]),
            title=row["title"],
            author=row["author"],
            storage_path=row["storage_path"],
            file_size=row["file_size"],
            amazon_url=row["amazon_url"],
            resource_url=row["resource_url"],
            download_enabled=bool(row["download_enabled"]),
            contact_person=row["contact_person"],
            contact_email=row["contact_email"],
        )
