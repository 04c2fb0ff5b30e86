"""Test doubles and record factories shared across test modules."""

import re
import zlib
from datetime import datetime, timedelta, UTC

from tasklens.search.models import MessageHit, TaskHit
from tasklens.tasks.schemas import Message, Task

BASE_TIME = datetime(2025, 1, 1, 9, 0, tzinfo=UTC)


class KeywordEmbedder:
    """Deterministic bag-of-words embedder for tests.

    Texts sharing words land close together in cosine space. The first
    dimension is constant so no vector is ever all zeros.
    """

    DIM = 256

    def __init__(self) -> None:
        self.calls: list[str] = []
        self.batches: list[list[str]] = []

    def embed(self, text: str) -> list[float]:
        self.calls.append(text)
        vector = [0.0] * self.DIM
        vector[0] = 0.1
        for word in re.findall(r"\w+", text.lower()):
            vector[1 + zlib.crc32(word.encode()) % (self.DIM - 1)] += 1.0
        return vector

    def embed_many(self, texts):
        self.batches.append(list(texts))
        return [self.embed(text) for text in texts]


class InMemoryBackend:
    """Search backend returning canned hits and recording every call."""

    def __init__(
        self,
        task_hits: list[TaskHit] | None = None,
        message_hits: list[MessageHit] | None = None,
        tasks: list[Task] | None = None,
    ) -> None:
        self.task_hits = task_hits or []
        self.message_hits = message_hits or []
        self.tasks = {task.id: task for task in tasks or []}
        self.calls: list[tuple[str, object]] = []

    def nearest_tasks(self, vector, k):
        self.calls.append(("nearest_tasks", k))
        return self.task_hits[:k]

    def nearest_messages(self, vector, k):
        self.calls.append(("nearest_messages", k))
        return self.message_hits[:k]

    def fetch_tasks_by_ids(self, task_ids):
        self.calls.append(("fetch_tasks_by_ids", set(task_ids)))
        return [self.tasks[task_id] for task_id in task_ids if task_id in self.tasks]


def build_task(task_id: str, name: str | None = None, description: str | None = None, **kw):
    """Build a Task with sensible defaults."""
    return Task(
        id=task_id,
        name=name or f"Task {task_id}",
        description=description,
        tags=kw.get("tags", []),
        category=kw.get("category", ""),
        created_at=kw.get("created_at", BASE_TIME),
        updated_at=kw.get("updated_at", BASE_TIME),
    )


def build_message(message_id: str, task_id: str, content: str | None = None, minutes: int = 0):
    """Build a Message with sensible defaults."""
    return Message(
        id=message_id,
        task_id=task_id,
        content=content or f"Message {message_id}",
        sender_id="user-1",
        created_at=BASE_TIME + timedelta(minutes=minutes),
    )

