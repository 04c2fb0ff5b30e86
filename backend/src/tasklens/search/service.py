"""Semantic search over tasks and their chat messages."""

import asyncio
import logging
from collections.abc import Iterable

from tasklens.config import SearchConfig
from tasklens.search.errors import EmbeddingUnavailable, InvalidQuery, StorageUnavailable
from tasklens.search.gateway import EmbeddingProvider, SearchBackend, VectorQueryGateway
from tasklens.search.hydrator import hydrate
from tasklens.search.merger import merge
from tasklens.search.models import EnrichedResult
from tasklens.search.ranking import rank
from tasklens.tasks.schemas import Task

logger = logging.getLogger(__name__)


class SemanticSearchService:
    """Finds tasks by meaning, using both task text and chat messages.

    Pipeline: embed the query, look up nearest tasks and messages
    concurrently, merge both hit lists per task, hydrate tasks discovered
    only through messages, then rank and trim.

    The service holds no per-request state and can be shared between
    requests.
    """

    def __init__(
        self,
        embedder: EmbeddingProvider,
        backend: SearchBackend,
        config: SearchConfig,
    ) -> None:
        """Initialize search service.

        Args:
            embedder: Text-to-vector collaborator.
            backend: Vector lookups and batched task fetches.
            config: Fan-out, limits and snippet settings.
        """
        self._embedder = embedder
        self._backend = backend
        self._gateway = VectorQueryGateway(backend)
        self._config = config

    def validate_query(self, query: str | None) -> str:
        """Return the stripped query.

        Raises:
            InvalidQuery: If the query is missing or shorter than the minimum length.
        """
        cleaned = (query or "").strip()
        minimum = self._config.min_query_length
        if len(cleaned) < minimum:
            raise InvalidQuery(f"Search query must be at least {minimum} characters long")
        return cleaned

    def _embed_query(self, query: str) -> list[float]:
        try:
            vector = self._embedder.embed(query)
        except EmbeddingUnavailable:
            raise
        except Exception as e:
            raise EmbeddingUnavailable(f"Failed to generate query embedding: {e}") from e
        if not vector:
            raise EmbeddingUnavailable("Failed to generate query embedding")
        return vector

    def _fetch_tasks(self, task_ids: set[str]) -> Iterable[Task]:
        try:
            return list(self._backend.fetch_tasks_by_ids(task_ids))
        except Exception as e:
            raise StorageUnavailable(f"Task fetch failed: {e}", stage="hydration") from e

    async def search(self, query: str | None) -> list[EnrichedResult]:
        """Search tasks and messages for ``query``.

        Args:
            query: Free-text query.

        Returns:
            Up to ``config.result_limit`` results ordered by ascending
            distance. Empty when nothing matches.

        Raises:
            InvalidQuery: If the query is too short. No other work is done.
            EmbeddingUnavailable: If the query cannot be embedded.
            StorageUnavailable: If a lookup or the hydration fetch fails.
        """
        cleaned = self.validate_query(query)
        config = self._config

        vector = await asyncio.to_thread(self._embed_query, cleaned)

        try:
            task_hits, message_hits = await self._gateway.search(vector, config.initial_k)
            candidates = merge(task_hits, message_hits, cleaned, config.snippet_max_length)
            candidates = await asyncio.to_thread(hydrate, candidates, self._fetch_tasks)
        except StorageUnavailable as e:
            logger.error(f"Semantic search failed at stage {e.stage!r} for query {cleaned!r}: {e}")
            raise

        results = rank(
            candidates.values(),
            cleaned,
            limit=config.result_limit,
            snippet_max_length=config.snippet_max_length,
            max_messages=config.max_relevant_messages,
        )
        logger.info(
            f"Semantic search for {cleaned!r}: {len(task_hits)} task hits, "
            f"{len(message_hits)} message hits, {len(results)} results"
        )
        return results
