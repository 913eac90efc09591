from abc import ABC, abstractmethod
from typing import Any

from pdfquiz.processor.models import Document


class BaseObjectStore(ABC):
    """Contract for binary payload storage."""

    @abstractmethod
    def put(self, data: bytes, filename: str) -> str:
        """Store a payload and return the reference used to read it back.

        Raises:
            StorageError: if the store is unreachable.
        """

    @abstractmethod
    def get(self, url: str) -> bytes:
        """Read a payload previously stored with put().

        Raises:
            ObjectNotFoundError: if nothing is stored under url.
            StorageError: if the store is unreachable.
        """

    @abstractmethod
    def delete(self, url: str) -> None:
        """Remove a stored payload. Deleting a missing payload is a no-op."""


class BaseDocumentStore(ABC):
    """Contract for document record storage."""

    @abstractmethod
    def insert(self, document: Document) -> None:
        """Persist a new document record."""

    @abstractmethod
    def get(self, document_id: str) -> Document:
        """Fetch a document record.

        Raises:
            DocumentNotFoundError: if no document with this ID exists.
        """

    @abstractmethod
    def update(self, document_id: str, **fields: Any) -> Document:
        """Overwrite the given fields and return the updated record.

        Raises:
            DocumentNotFoundError: if no document with this ID exists.
        """

    @abstractmethod
    def delete(self, document_id: str) -> None:
        """Remove a document record.

        Raises:
            DocumentNotFoundError: if no document with this ID exists.
        """

    @abstractmethod
    def list_documents(self, limit: int | None = None) -> list[Document]:
        """Return document records, newest first."""
