"""Nearest-neighbour lookups over tasks and messages."""

import asyncio
import logging
from collections.abc import Iterable, Sequence
from typing import Protocol

from tasklens.search.errors import StorageUnavailable
from tasklens.search.models import MessageHit, TaskHit
from tasklens.tasks.schemas import Task

logger = logging.getLogger(__name__)


class EmbeddingProvider(Protocol):
    """Maps text to a fixed-length vector."""

    def embed(self, text: str) -> list[float]: ...


class SearchBackend(Protocol):
    """Storage capable of top-K vector queries over tasks and messages."""

    def nearest_tasks(self, vector: Sequence[float], k: int) -> list[TaskHit]: ...

    def nearest_messages(self, vector: Sequence[float], k: int) -> list[MessageHit]: ...

    def fetch_tasks_by_ids(self, task_ids: set[str]) -> Iterable[Task]: ...


class VectorQueryGateway:
    """Runs the two independent nearest-neighbour lookups for a query vector."""

    def __init__(self, backend: SearchBackend) -> None:
        self._backend = backend

    def search_tasks(self, vector: Sequence[float], k: int) -> list[TaskHit]:
        """Top-``k`` tasks by distance.

        Raises:
            StorageUnavailable: If the backend lookup fails.
        """
        try:
            return list(self._backend.nearest_tasks(vector, k))
        except StorageUnavailable:
            raise
        except Exception as e:
            raise StorageUnavailable(f"Task lookup failed: {e}", stage="task_lookup") from e

    def search_messages(self, vector: Sequence[float], k: int) -> list[MessageHit]:
        """Top-``k`` messages by distance.

        Raises:
            StorageUnavailable: If the backend lookup fails.
        """
        try:
            return list(self._backend.nearest_messages(vector, k))
        except StorageUnavailable:
            raise
        except Exception as e:
            raise StorageUnavailable(
                f"Message lookup failed: {e}", stage="message_lookup"
            ) from e

    async def search(
        self, vector: Sequence[float], k: int
    ) -> tuple[list[TaskHit], list[MessageHit]]:
        """Run both lookups concurrently and wait for both to finish.

        Raises:
            StorageUnavailable: If either lookup fails.
        """
        task_hits, message_hits = await asyncio.gather(
            asyncio.to_thread(self.search_tasks, vector, k),
            asyncio.to_thread(self.search_messages, vector, k),
        )
        logger.debug(f"Vector lookup returned {len(task_hits)} tasks, {len(message_hits)} messages")
        return task_hits, message_hits
