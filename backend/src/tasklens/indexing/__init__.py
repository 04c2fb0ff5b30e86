"""Embedding backfill for the vector index."""

from tasklens.indexing.backfill import BackfillResult, EmbeddingBackfill

__all__ = ["BackfillResult", "EmbeddingBackfill"]
