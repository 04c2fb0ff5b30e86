"""Search error taxonomy."""


class SearchError(Exception):
    """Base exception for semantic search errors."""

    pass


class InvalidQuery(SearchError):
    """Raised when the query is empty or too short to search for."""

    pass


class EmbeddingUnavailable(SearchError):
    """Raised when the query text cannot be turned into a vector."""

    pass


class StorageUnavailable(SearchError):
    """Raised when a vector lookup or record fetch fails.

    Attributes:
        stage: Pipeline stage that failed (task_lookup, message_lookup, hydration).
    """

    def __init__(self, message: str, stage: str = "") -> None:
        super().__init__(message)
        self.stage = stage
