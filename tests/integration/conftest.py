import os
from collections.abc import Generator

import psycopg
import pytest

from pdfquiz.config.settings import Settings
from pdfquiz.storage.connection import Database, build_conninfo
from pdfquiz.storage.postgres_document_store import PostgresDocumentStore


def _test_settings() -> Settings:
    os.environ.setdefault("DB_DATABASE", "pdfquiz_test")
    return Settings()


@pytest.fixture(scope="session")
def test_settings() -> Settings:
    return _test_settings()


@pytest.fixture(scope="session")
def database(test_settings: Settings) -> Generator[Database, None, None]:
    try:
        with psycopg.connect(build_conninfo(test_settings), connect_timeout=3):
            pass
    except psycopg.OperationalError as e:
        pytest.skip(
            f"PostgreSQL test DB not available: {e}. "
            "Set DB_* env to point at a disposable database"
        )
    db = Database.from_settings(test_settings)
    try:
        yield db
    finally:
        db.close()


@pytest.fixture
def document_store(database: Database) -> Generator[PostgresDocumentStore, None, None]:
    store = PostgresDocumentStore(database)
    store.ensure_schema()
    created: list[str] = []
    original_insert = store.insert

    def tracking_insert(document):  # type: ignore[no-untyped-def]
        original_insert(document)
        created.append(document.id)

    store.insert = tracking_insert  # type: ignore[method-assign]
    yield store
    if not created:
        return
    with database.connection() as conn:
        with conn.cursor() as cur:
            cur.execute("DELETE FROM documents WHERE id = ANY(%s)", (created,))
        conn.commit()
