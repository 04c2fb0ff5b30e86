"""Vector index over stored tasks and messages."""

import logging
from collections.abc import Sequence

from tasklens.constants.indexing import MESSAGES_COLLECTION, TASKS_COLLECTION
from tasklens.search.models import MessageHit, TaskHit
from tasklens.tasks.schemas import Message, Task
from tasklens.tasks.store import TaskStore
from tasklens.vectorstore.store import VectorStore

logger = logging.getLogger(__name__)


class TaskIndex:
    """Joins ChromaDB nearest-neighbour queries with the SQLite records.

    Vectors whose record has since been deleted are dropped from lookup
    results rather than returned half-empty.
    """

    def __init__(self, store: TaskStore, vectorstore: VectorStore) -> None:
        self._store = store
        self._vectorstore = vectorstore

    def nearest_tasks(self, vector: Sequence[float], k: int) -> list[TaskHit]:
        hits = self._vectorstore.query_by_vector(TASKS_COLLECTION, vector, n_results=k)
        if not hits:
            return []
        tasks = {task.id: task for task in self._store.get_tasks_by_ids(h.id for h in hits)}
        stale = [h.id for h in hits if h.id not in tasks]
        if stale:
            logger.debug(f"Ignoring {len(stale)} task vectors without a stored task")
        return [TaskHit(task=tasks[h.id], distance=h.distance) for h in hits if h.id in tasks]

    def nearest_messages(self, vector: Sequence[float], k: int) -> list[MessageHit]:
        hits = self._vectorstore.query_by_vector(MESSAGES_COLLECTION, vector, n_results=k)
        if not hits:
            return []
        messages = {m.id: m for m in self._store.get_messages_by_ids(h.id for h in hits)}
        stale = [h.id for h in hits if h.id not in messages]
        if stale:
            logger.debug(f"Ignoring {len(stale)} message vectors without a stored message")
        return [
            MessageHit(message=messages[h.id], distance=h.distance)
            for h in hits
            if h.id in messages
        ]

    def fetch_tasks_by_ids(self, task_ids: set[str]) -> list[Task]:
        return self._store.get_tasks_by_ids(task_ids)

    def index_tasks(self, tasks: Sequence[Task], vectors: Sequence[Sequence[float]]) -> None:
        """Store task vectors."""
        self._vectorstore.upsert(
            TASKS_COLLECTION,
            ids=[task.id for task in tasks],
            embeddings=vectors,
            metadatas=[{"category": task.category or ""} for task in tasks],
        )

    def index_messages(
        self, messages: Sequence[Message], vectors: Sequence[Sequence[float]]
    ) -> None:
        """Store message vectors, tagged with their task for cleanup."""
        self._vectorstore.upsert(
            MESSAGES_COLLECTION,
            ids=[message.id for message in messages],
            embeddings=vectors,
            metadatas=[
                {"task_id": message.task_id, "sender_id": message.sender_id}
                for message in messages
            ],
        )

    def remove_task(self, task_id: str, message_ids: Sequence[str] = ()) -> None:
        """Drop a task's vector and the vectors of its messages."""
        self._vectorstore.delete(TASKS_COLLECTION, ids=[task_id])
        if message_ids:
            self._vectorstore.delete(MESSAGES_COLLECTION, ids=list(message_ids))
        else:
            self._vectorstore.delete(MESSAGES_COLLECTION, where={"task_id": task_id})

    def vector_counts(self) -> tuple[int, int]:
        """Number of stored (task, message) vectors."""
        return (
            self._vectorstore.count(TASKS_COLLECTION),
            self._vectorstore.count(MESSAGES_COLLECTION),
        )
