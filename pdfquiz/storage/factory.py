from pdfquiz.config.settings import Settings
from pdfquiz.storage.base import BaseDocumentStore
from pdfquiz.storage.connection import Database
from pdfquiz.storage.memory_document_store import InMemoryDocumentStore
from pdfquiz.storage.postgres_document_store import PostgresDocumentStore


class DocumentStoreFactory:
    """Creates the configured document record store."""

    STORES = ("memory", "postgres")

    @classmethod
    def create(
        cls,
        settings: Settings,
        database: Database | None = None,
    ) -> BaseDocumentStore:
        name = settings.document_store.lower()
        if name == "memory":
            return InMemoryDocumentStore()
        if name == "postgres":
            if database is None:
                raise ValueError("document_store=postgres requires a Database")
            store = PostgresDocumentStore(database)
            store.ensure_schema()
            return store
        raise ValueError(
            f"Unknown document store '{name}'. Choose from: {list(cls.STORES)}"
        )
