"""FastAPI dependency injection functions.

Expensive collaborators (database connection, ChromaDB client, embedding
model) are created once per process, at startup or on first use, and shared
by reference.
Services are cheap and built per request around those shared instances.
"""

import threading
from functools import lru_cache

from fastapi import Depends

from tasklens.config import Config, load_settings
from tasklens.db.connection import Database
from tasklens.db.migrations import run_migrations
from tasklens.embeddings import Embedder
from tasklens.indexing.backfill import EmbeddingBackfill
from tasklens.search.service import SemanticSearchService
from tasklens.tasks.index import TaskIndex
from tasklens.tasks.store import TaskStore
from tasklens.vectorstore.store import VectorStore


@lru_cache
def get_settings() -> Config:
    """Get cached application settings."""
    return load_settings()


_db_instance: Database | None = None
_vectorstore_instance: VectorStore | None = None
_embedder_instance: Embedder | None = None

# Guards first construction of the shared instances; sync dependencies run in
# the threadpool, so two first requests can arrive at once
_instances_lock = threading.Lock()


def get_db() -> Database:
    """Get database connection with migrations applied."""
    global _db_instance

    settings = get_settings()

    with _instances_lock:
        # Check if cached connection is stale (db file was deleted)
        if _db_instance is not None and not settings.db_path.exists():
            _db_instance.close()
            _db_instance = None

        if _db_instance is None:
            _db_instance = Database(settings.db_path)
            run_migrations(_db_instance)
        return _db_instance


def get_vectorstore() -> VectorStore:
    """Get the shared vector store instance."""
    global _vectorstore_instance
    with _instances_lock:
        if _vectorstore_instance is None:
            settings = get_settings()
            _vectorstore_instance = VectorStore(settings.chroma_path)
        return _vectorstore_instance


def get_embedder() -> Embedder:
    """Get the shared embedder. The model itself loads on first use."""
    global _embedder_instance
    with _instances_lock:
        if _embedder_instance is None:
            settings = get_settings()
            _embedder_instance = Embedder(model=settings.embedding.model)
        return _embedder_instance


def get_task_store(db: Database = Depends(get_db)) -> TaskStore:
    """Get TaskStore instance."""
    return TaskStore(db)


def get_task_index(
    store: TaskStore = Depends(get_task_store),
    vectorstore: VectorStore = Depends(get_vectorstore),
) -> TaskIndex:
    """Get TaskIndex instance."""
    return TaskIndex(store, vectorstore)


def get_search_service(
    embedder: Embedder = Depends(get_embedder),
    index: TaskIndex = Depends(get_task_index),
    settings: Config = Depends(get_settings),
) -> SemanticSearchService:
    """Get SemanticSearchService instance."""
    return SemanticSearchService(embedder=embedder, backend=index, config=settings.search)


def get_backfill(
    store: TaskStore = Depends(get_task_store),
    index: TaskIndex = Depends(get_task_index),
    embedder: Embedder = Depends(get_embedder),
    settings: Config = Depends(get_settings),
) -> EmbeddingBackfill:
    """Get EmbeddingBackfill instance."""
    return EmbeddingBackfill(store, index, embedder, batch_size=settings.indexing.batch_size)


def _reset_instances() -> None:
    """Close and forget the shared instances (shutdown and tests)."""
    global _db_instance, _vectorstore_instance, _embedder_instance
    with _instances_lock:
        db, vectorstore = _db_instance, _vectorstore_instance
        _db_instance = None
        _vectorstore_instance = None
        _embedder_instance = None

    try:
        if db is not None:
            db.close()
    finally:
        if vectorstore is not None:
            vectorstore.close()
