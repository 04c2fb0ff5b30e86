"""Semantic search over tasks and chat messages."""

from tasklens.search.errors import (
    EmbeddingUnavailable,
    InvalidQuery,
    SearchError,
    StorageUnavailable,
)
from tasklens.search.models import EnrichedResult, MatchedMessage, SearchCandidate
from tasklens.search.service import SemanticSearchService

__all__ = [
    "EmbeddingUnavailable",
    "EnrichedResult",
    "InvalidQuery",
    "MatchedMessage",
    "SearchCandidate",
    "SearchError",
    "SemanticSearchService",
    "StorageUnavailable",
]
