import threading
from dataclasses import replace
from typing import Any

from pdfquiz.processor.exceptions import DocumentNotFoundError
from pdfquiz.processor.models import Document
from pdfquiz.storage.base import BaseDocumentStore


class InMemoryDocumentStore(BaseDocumentStore):
    """Keeps document records in a dict. Each call is atomic."""

    def __init__(self) -> None:
        self._documents: dict[str, Document] = {}
        self._lock = threading.Lock()

    def insert(self, document: Document) -> None:
        with self._lock:
            if document.id in self._documents:
                raise ValueError(f"Document {document.id} already exists")
            self._documents[document.id] = document

    def get(self, document_id: str) -> Document:
        with self._lock:
            document = self._documents.get(document_id)
        if document is None:
            raise _not_found(document_id)
        return document

    def update(self, document_id: str, **fields: Any) -> Document:
        with self._lock:
            document = self._documents.get(document_id)
            if document is None:
                raise _not_found(document_id)
            updated = replace(document, **fields)
            self._documents[document_id] = updated
        return updated

    def delete(self, document_id: str) -> None:
        with self._lock:
            if self._documents.pop(document_id, None) is None:
                raise _not_found(document_id)

    def list_documents(self, limit: int | None = None) -> list[Document]:
        with self._lock:
            documents = sorted(
                self._documents.values(), key=lambda item: item.created_at, reverse=True
            )
        return documents if limit is None else documents[:limit]


def _not_found(document_id: str) -> DocumentNotFoundError:
    return DocumentNotFoundError(f"Document {document_id} not found", document_id=document_id)
