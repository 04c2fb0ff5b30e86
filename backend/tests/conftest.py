"""Shared pytest fixtures for all tests.

These fixtures properly clean up resources to prevent file descriptor leaks.
"""

import gc

import pytest

from factories import InMemoryBackend, KeywordEmbedder, build_message, build_task
from tasklens.db.connection import Database
from tasklens.db.migrations import run_migrations
from tasklens.tasks.store import TaskStore
from tasklens.vectorstore.store import VectorStore


@pytest.fixture(autouse=True)
def cleanup_after_test():
    """Clean up resources after each test to prevent file descriptor leaks.

    This runs automatically after every test to help garbage collect
    any lingering ChromaDB or SQLite connections.
    """
    yield
    gc.collect()


@pytest.fixture
def make_task():
    """Factory for Task records."""
    return build_task


@pytest.fixture
def make_message():
    """Factory for Message records."""
    return build_message


@pytest.fixture
def keyword_embedder():
    """Deterministic embedder that never loads a model."""
    return KeywordEmbedder()


@pytest.fixture
def in_memory_backend():
    """Factory for canned search backends."""
    return InMemoryBackend


@pytest.fixture
def temp_vectorstore(tmp_path):
    """Create a temporary vector store that cleans up properly.

    This fixture should be used instead of creating VectorStore instances
    directly in tests to ensure ChromaDB connections are released.
    """
    index_path = tmp_path / "chroma"
    store = VectorStore(index_path)
    yield store
    store.close()
    gc.collect()


@pytest.fixture
def temp_db(tmp_path):
    """Create a temporary database with the production schema."""
    db = Database(tmp_path / "test.db")
    run_migrations(db)
    yield db
    db.close()
    gc.collect()


@pytest.fixture
def task_store(temp_db):
    """TaskStore over the temporary database."""
    return TaskStore(temp_db)


@pytest.fixture
def data_dir(tmp_path, monkeypatch):
    """Point TASKLENS_DATA_DIR at a temp directory and reset cached instances."""
    from tasklens.api.deps import _reset_instances, get_settings
    from tasklens.config import load_settings

    directory = tmp_path / "tasklens"
    directory.mkdir()
    monkeypatch.setenv("TASKLENS_DATA_DIR", str(directory))

    load_settings.cache_clear()
    get_settings.cache_clear()
    _reset_instances()

    yield directory

    _reset_instances()
    load_settings.cache_clear()
    get_settings.cache_clear()
