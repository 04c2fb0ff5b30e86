"""Embedding backfill for tasks and messages.

Tasks and messages are embedded lazily: new rows start with
``embedded_at = NULL`` and this job embeds them in batches, writes the
vectors to the index, and stamps the rows. Already embedded rows are only
re-embedded when the run is forced.
"""

import logging
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from typing import Protocol, TypeVar

from tasklens.constants.indexing import EMBEDDING_BATCH_SIZE
from tasklens.search.errors import EmbeddingUnavailable
from tasklens.search.gateway import EmbeddingProvider
from tasklens.tasks.index import TaskIndex
from tasklens.tasks.schemas import Message, Task
from tasklens.tasks.store import TaskStore

logger = logging.getLogger(__name__)

T = TypeVar("T", Task, Message)


class BatchEmbeddingProvider(EmbeddingProvider, Protocol):
    """Embedder that can also embed many texts in one call."""

    def embed_many(self, texts: Sequence[str]) -> list[list[float]]: ...


def task_embedding_text(task: Task) -> str:
    """Text embedded for a task: name, description and tags."""
    return f"{task.name} {task.description or ''} {' '.join(task.tags)}".strip()


def message_embedding_text(message: Message) -> str:
    """Text embedded for a message."""
    return message.content.strip()


@dataclass
class BackfillResult:
    """Counts from one backfill run."""

    tasks_embedded: int = 0
    messages_embedded: int = 0
    skipped: list[str] = field(default_factory=list)
    failed: list[str] = field(default_factory=list)


class EmbeddingBackfill:
    """Embeds every task and message that has no vector yet."""

    def __init__(
        self,
        store: TaskStore,
        index: TaskIndex,
        embedder: BatchEmbeddingProvider,
        batch_size: int = EMBEDDING_BATCH_SIZE,
    ) -> None:
        self._store = store
        self._index = index
        self._embedder = embedder
        self._batch_size = batch_size

    def _embed_batch(
        self,
        records: Sequence[T],
        text_for: Callable[[T], str],
        kind: str,
        result: BackfillResult,
    ) -> tuple[list[T], list[list[float]]]:
        pending: list[T] = []
        texts: list[str] = []
        for record in records:
            text = text_for(record)
            if not text:
                logger.warning(f"Skipping {kind} {record.id}: empty text")
                result.skipped.append(record.id)
                continue
            pending.append(record)
            texts.append(text)
        if not pending:
            return [], []

        try:
            return pending, self._embedder.embed_many(texts)
        except EmbeddingUnavailable as e:
            logger.warning(f"Batch of {len(pending)} {kind}s failed, embedding one by one: {e}")

        embedded: list[T] = []
        vectors: list[list[float]] = []
        for record, text in zip(pending, texts):
            try:
                vector = self._embedder.embed(text)
            except EmbeddingUnavailable as e:
                logger.error(f"Failed to embed {kind} {record.id}: {e}")
                result.failed.append(record.id)
                continue
            embedded.append(record)
            vectors.append(vector)
        return embedded, vectors

    def _batches(self, ids: list[str]) -> list[list[str]]:
        return [ids[i : i + self._batch_size] for i in range(0, len(ids), self._batch_size)]

    def embed_tasks(self, result: BackfillResult, force: bool = False) -> None:
        ids = self._store.pending_task_ids(include_embedded=force)
        if not ids:
            logger.info("No tasks need embedding")
            return

        batches = self._batches(ids)
        logger.info(f"Embedding {len(ids)} tasks in {len(batches)} batches")
        for number, batch in enumerate(batches, start=1):
            tasks = self._store.get_tasks_by_ids(batch)
            embedded, vectors = self._embed_batch(tasks, task_embedding_text, "task", result)
            if embedded:
                self._index.index_tasks(embedded, vectors)
                self._store.mark_tasks_embedded([task.id for task in embedded])
                result.tasks_embedded += len(embedded)
            logger.info(f"Task batch {number}/{len(batches)} done ({result.tasks_embedded} so far)")

    def embed_messages(self, result: BackfillResult, force: bool = False) -> None:
        ids = self._store.pending_message_ids(include_embedded=force)
        if not ids:
            logger.info("No messages need embedding")
            return

        batches = self._batches(ids)
        logger.info(f"Embedding {len(ids)} messages in {len(batches)} batches")
        for number, batch in enumerate(batches, start=1):
            messages = self._store.get_messages_by_ids(batch)
            embedded, vectors = self._embed_batch(
                messages, message_embedding_text, "message", result
            )
            if embedded:
                self._index.index_messages(embedded, vectors)
                self._store.mark_messages_embedded([message.id for message in embedded])
                result.messages_embedded += len(embedded)
            logger.info(
                f"Message batch {number}/{len(batches)} done ({result.messages_embedded} so far)"
            )

    def run(self, force: bool = False) -> BackfillResult:
        """Embed pending tasks, then pending messages.

        Args:
            force: Re-embed records that already have a vector.

        Returns:
            Counts of embedded, skipped and failed records.
        """
        result = BackfillResult()
        self.embed_tasks(result, force=force)
        self.embed_messages(result, force=force)
        logger.info(
            f"Embedding backfill finished: {result.tasks_embedded} tasks, "
            f"{result.messages_embedded} messages, {len(result.skipped)} skipped, "
            f"{len(result.failed)} failed"
        )
        return result
