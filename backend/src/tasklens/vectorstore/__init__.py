"""Vector store module for semantic search."""

from tasklens.vectorstore.store import VectorHit, VectorStore

__all__ = ["VectorHit", "VectorStore"]
