from dataclasses import asdict
from enum import Enum
from typing import Any

import psycopg
from psycopg import sql
from psycopg.rows import dict_row
from psycopg.types.json import Jsonb

from pdfquiz.processor.exceptions import DocumentNotFoundError
from pdfquiz.processor.models import Document, DocumentMetadata, UploadStatus
from pdfquiz.storage.base import BaseDocumentStore
from pdfquiz.storage.connection import Database
from pdfquiz.storage.exceptions import StorageError

_COLUMNS = (
    "id",
    "filename",
    "file_size",
    "mime_type",
    "file_url",
    "upload_status",
    "extracted_text",
    "text_length",
    "processing_progress",
    "error_message",
    "error_code",
    "created_at",
    "processed_at",
    "metadata",
)

_SCHEMA = """
CREATE TABLE IF NOT EXISTS documents (
    id TEXT PRIMARY KEY,
    filename TEXT NOT NULL,
    file_size BIGINT NOT NULL,
    mime_type TEXT NOT NULL,
    file_url TEXT NOT NULL,
    upload_status TEXT NOT NULL,
    extracted_text TEXT,
    text_length INTEGER NOT NULL DEFAULT 0,
    processing_progress INTEGER NOT NULL DEFAULT 0,
    error_message TEXT,
    error_code TEXT,
    created_at TIMESTAMP NOT NULL,
    processed_at TIMESTAMP,
    metadata JSONB NOT NULL DEFAULT '{}'::jsonb
)
"""

_MIGRATIONS = ("ALTER TABLE documents ADD COLUMN IF NOT EXISTS error_code TEXT",)


def _to_column(value: Any) -> Any:
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, DocumentMetadata):
        return Jsonb(asdict(value))
    return value


def _row_to_document(row: dict[str, Any]) -> Document:
    metadata = row["metadata"] or {}
    return Document(
        id=row["id"],
        filename=row["filename"],
        file_size=row["file_size"],
        mime_type=row["mime_type"],
        file_url=row["file_url"],
        upload_status=UploadStatus(row["upload_status"]),
        extracted_text=row["extracted_text"],
        text_length=row["text_length"],
        processing_progress=row["processing_progress"],
        error_message=row["error_message"],
        error_code=row["error_code"],
        created_at=row["created_at"],
        processed_at=row["processed_at"],
        metadata=DocumentMetadata(**metadata),
    )


class PostgresDocumentStore(BaseDocumentStore):
    """Database operations for the documents table."""

    def __init__(self, database: Database) -> None:
        self._database = database

    def ensure_schema(self) -> None:
        """Create the documents table if it does not exist yet."""
        with self._database.connection() as conn:
            conn.execute(_SCHEMA)
            for statement in _MIGRATIONS:
                conn.execute(statement)
            conn.commit()

    def insert(self, document: Document) -> None:
        values = [_to_column(getattr(document, column)) for column in _COLUMNS]
        query = sql.SQL("INSERT INTO documents ({}) VALUES ({})").format(
            sql.SQL(", ").join(sql.Identifier(column) for column in _COLUMNS),
            sql.SQL(", ").join(sql.Placeholder() for _ in _COLUMNS),
        )
        try:
            with self._database.connection() as conn:
                conn.execute(query, values)
                conn.commit()
        except psycopg.OperationalError as exc:
            raise StorageError(f"Failed to insert document {document.id}: {exc}") from exc

    def get(self, document_id: str) -> Document:
        """Find a document by ID.

        Raises:
            DocumentNotFoundError: if no document with this ID exists.
        """
        try:
            with self._database.connection() as conn:
                with conn.cursor(row_factory=dict_row) as cur:
                    cur.execute("SELECT * FROM documents WHERE id = %s", (document_id,))
                    row = cur.fetchone()
        except psycopg.OperationalError as exc:
            raise StorageError(f"Failed to load document {document_id}: {exc}") from exc

        if row is None:
            raise DocumentNotFoundError(
                f"Document {document_id} not found", document_id=document_id
            )
        return _row_to_document(row)

    def update(self, document_id: str, **fields: Any) -> Document:
        """Overwrite the given columns and return the updated record.

        Raises:
            ValueError: if a field is not a documents column.
            DocumentNotFoundError: if no document with this ID exists.
        """
        unknown = set(fields) - set(_COLUMNS[1:])
        if unknown:
            raise ValueError(f"Unknown document fields: {sorted(unknown)}")
        if not fields:
            return self.get(document_id)

        assignments = sql.SQL(", ").join(
            sql.SQL("{} = {}").format(sql.Identifier(name), sql.Placeholder())
            for name in fields
        )
        query = sql.SQL("UPDATE documents SET {} WHERE id = {} RETURNING *").format(
            assignments, sql.Placeholder()
        )
        values = [_to_column(value) for value in fields.values()]
        try:
            with self._database.connection() as conn:
                with conn.cursor(row_factory=dict_row) as cur:
                    cur.execute(query, [*values, document_id])
                    row = cur.fetchone()
                conn.commit()
        except psycopg.OperationalError as exc:
            raise StorageError(f"Failed to update document {document_id}: {exc}") from exc

        if row is None:
            raise DocumentNotFoundError(
                f"Document {document_id} not found", document_id=document_id
            )
        return _row_to_document(row)

    def delete(self, document_id: str) -> None:
        """Delete a document row.

        Raises:
            DocumentNotFoundError: if no document with this ID exists.
        """
        try:
            with self._database.connection() as conn:
                with conn.cursor() as cur:
                    cur.execute("DELETE FROM documents WHERE id = %s", (document_id,))
                    deleted = cur.rowcount
                conn.commit()
        except psycopg.OperationalError as exc:
            raise StorageError(f"Failed to delete document {document_id}: {exc}") from exc

        if deleted == 0:
            raise DocumentNotFoundError(
                f"Document {document_id} not found", document_id=document_id
            )

    def list_documents(self, limit: int | None = None) -> list[Document]:
        query = "SELECT * FROM documents ORDER BY created_at DESC"
        params: tuple[Any, ...] = ()
        if limit is not None:
            query += " LIMIT %s"
            params = (limit,)
        try:
            with self._database.connection() as conn:
                with conn.cursor(row_factory=dict_row) as cur:
                    cur.execute(query, params)
                    rows = cur.fetchall()
        except psycopg.OperationalError as exc:
            raise StorageError(f"Failed to list documents: {exc}") from exc
        return [_row_to_document(row) for row in rows]
