"""SQLite-backed storage for tasks and their chat messages."""

import json
import logging
import uuid
from collections.abc import Iterable, Sequence
from datetime import datetime, UTC
from sqlite3 import Row
from typing import Optional

from tasklens.db.connection import Database
from tasklens.tasks.schemas import Message, MessageCreate, Task, TaskCreate, TaskWithMessages

logger = logging.getLogger(__name__)

# SQLite limits the number of bound parameters per statement (999 on older builds)
MAX_IDS_PER_QUERY = 900

TASK_COLUMNS = "id, name, description, tags, category, created_at, updated_at"
MESSAGE_COLUMNS = "id, task_id, content, sender_id, created_at"


class TaskNotFound(Exception):
    """Raised when an operation references a task that does not exist."""

    pass


def _new_id() -> str:
    return uuid.uuid4().hex


def _row_to_task(row: Row) -> Task:
    return Task(
        id=row["id"],
        name=row["name"],
        description=row["description"],
        tags=json.loads(row["tags"] or "[]"),
        category=row["category"] or "",
        created_at=datetime.fromisoformat(row["created_at"]),
        updated_at=datetime.fromisoformat(row["updated_at"]),
    )


def _row_to_message(row: Row) -> Message:
    return Message(
        id=row["id"],
        task_id=row["task_id"],
        content=row["content"],
        sender_id=row["sender_id"],
        created_at=datetime.fromisoformat(row["created_at"]),
    )


def _chunks(ids: Sequence[str], size: int = MAX_IDS_PER_QUERY) -> Iterable[Sequence[str]]:
    for start in range(0, len(ids), size):
        yield ids[start : start + size]


class TaskStore:
    """Repository for tasks and chat messages.

    Tasks own their messages: deleting a task cascades to its thread.
    Embedding state is tracked per row through ``embedded_at`` so the
    backfill job only embeds records once unless forced.
    """

    def __init__(self, db: Database) -> None:
        """Initialize task store.

        Args:
            db: Database connection with migrations applied.
        """
        self._db = db

    # ------------------------------------------------------------------
    # Tasks
    # ------------------------------------------------------------------

    def _insert_task(self, data: TaskCreate, now: datetime) -> Task:
        task = Task(
            id=_new_id(),
            name=data.name.strip(),
            description=data.description,
            tags=[tag.strip() for tag in data.tags if tag.strip()],
            category=data.category,
            created_at=now,
            updated_at=now,
        )
        self._db.execute(
            f"INSERT INTO tasks ({TASK_COLUMNS}) VALUES (?, ?, ?, ?, ?, ?, ?)",
            (
                task.id,
                task.name,
                task.description,
                json.dumps(task.tags),
                task.category,
                now.isoformat(),
                now.isoformat(),
            ),
        )
        return task

    def create_task(self, data: TaskCreate) -> Task:
        """Create a task.

        Args:
            data: Task fields.

        Returns:
            The stored task.
        """
        with self._db.lock:
            task = self._insert_task(data, datetime.now(UTC))
            self._db.commit()
        return task

    def create_tasks(self, items: Sequence[TaskCreate]) -> tuple[list[Task], list[str]]:
        """Create many tasks in one transaction, skipping names already stored.

        Args:
            items: Tasks to create.

        Returns:
            Tuple of (created tasks, names skipped as duplicates).
        """
        created: list[Task] = []
        skipped: list[str] = []
        now = datetime.now(UTC)

        with self._db.lock:
            existing = {row["name"] for row in self._db.fetchall("SELECT name FROM tasks")}
            try:
                for item in items:
                    name = item.name.strip()
                    if name in existing:
                        skipped.append(name)
                        continue
                    created.append(self._insert_task(item, now))
                    existing.add(name)
                self._db.commit()
            except Exception:
                self._db.rollback()
                raise

        return created, skipped

    def get_task(self, task_id: str) -> Optional[Task]:
        """Get a task by ID, or None if it does not exist."""
        row = self._db.fetchone(f"SELECT {TASK_COLUMNS} FROM tasks WHERE id = ?", (task_id,))
        return _row_to_task(row) if row else None

    def get_tasks_by_ids(self, task_ids: Iterable[str]) -> list[Task]:
        """Fetch tasks by ID.

        Missing IDs are silently absent from the result.
        """
        ids = sorted(set(task_ids))
        tasks: list[Task] = []
        for chunk in _chunks(ids):
            placeholders = ", ".join("?" for _ in chunk)
            rows = self._db.fetchall(
                f"SELECT {TASK_COLUMNS} FROM tasks WHERE id IN ({placeholders})",
                tuple(chunk),
            )
            tasks.extend(_row_to_task(row) for row in rows)
        return tasks

    def list_tasks(self, limit: int = 50) -> list[TaskWithMessages]:
        """List the newest tasks with their chat threads.

        Args:
            limit: Maximum number of tasks to return.

        Returns:
            Tasks ordered newest first; each thread ordered oldest first.
        """
        rows = self._db.fetchall(
            f"SELECT {TASK_COLUMNS} FROM tasks ORDER BY created_at DESC, rowid DESC LIMIT ?",
            (limit,),
        )
        tasks = [_row_to_task(row) for row in rows]
        if not tasks:
            return []

        threads: dict[str, list[Message]] = {task.id: [] for task in tasks}
        for chunk in _chunks(list(threads)):
            placeholders = ", ".join("?" for _ in chunk)
            message_rows = self._db.fetchall(
                f"""
                SELECT {MESSAGE_COLUMNS} FROM messages
                WHERE task_id IN ({placeholders})
                ORDER BY created_at ASC, rowid ASC
                """,
                tuple(chunk),
            )
            for row in message_rows:
                threads[row["task_id"]].append(_row_to_message(row))

        return [
            TaskWithMessages(**task.model_dump(), messages=threads[task.id]) for task in tasks
        ]

    def delete_task(self, task_id: str) -> bool:
        """Delete a task and its messages.

        Returns:
            True if deleted, False if not found.
        """
        with self._db.lock:
            cursor = self._db.execute("DELETE FROM tasks WHERE id = ?", (task_id,))
            self._db.commit()
            return cursor.rowcount > 0

    # ------------------------------------------------------------------
    # Messages
    # ------------------------------------------------------------------

    def add_message(self, task_id: str, data: MessageCreate) -> Message:
        """Post a message to a task's thread.

        Raises:
            TaskNotFound: If the task does not exist.
        """
        message = Message(
            id=_new_id(),
            task_id=task_id,
            content=data.content,
            sender_id=data.sender_id,
            created_at=datetime.now(UTC),
        )
        with self._db.lock:
            if self.get_task(task_id) is None:
                raise TaskNotFound(task_id)
            self._db.execute(
                f"INSERT INTO messages ({MESSAGE_COLUMNS}) VALUES (?, ?, ?, ?, ?)",
                (
                    message.id,
                    message.task_id,
                    message.content,
                    message.sender_id,
                    message.created_at.isoformat(),
                ),
            )
            self._db.commit()
        return message

    def list_messages(self, task_id: str) -> list[Message]:
        """List a task's messages, oldest first."""
        rows = self._db.fetchall(
            f"SELECT {MESSAGE_COLUMNS} FROM messages WHERE task_id = ? "
            "ORDER BY created_at ASC, rowid ASC",
            (task_id,),
        )
        return [_row_to_message(row) for row in rows]

    def get_messages_by_ids(self, message_ids: Iterable[str]) -> list[Message]:
        """Fetch messages by ID. Missing IDs are silently absent."""
        ids = sorted(set(message_ids))
        messages: list[Message] = []
        for chunk in _chunks(ids):
            placeholders = ", ".join("?" for _ in chunk)
            rows = self._db.fetchall(
                f"SELECT {MESSAGE_COLUMNS} FROM messages WHERE id IN ({placeholders})",
                tuple(chunk),
            )
            messages.extend(_row_to_message(row) for row in rows)
        return messages

    def list_message_ids(self, task_id: str) -> list[str]:
        """IDs of every message in a task's thread."""
        rows = self._db.fetchall("SELECT id FROM messages WHERE task_id = ?", (task_id,))
        return [row["id"] for row in rows]

    # ------------------------------------------------------------------
    # Embedding bookkeeping
    # ------------------------------------------------------------------

    def pending_task_ids(self, include_embedded: bool = False) -> list[str]:
        """IDs of tasks that still need an embedding, oldest first."""
        sql = "SELECT id FROM tasks"
        if not include_embedded:
            sql += " WHERE embedded_at IS NULL"
        sql += " ORDER BY created_at ASC, rowid ASC"
        return [row["id"] for row in self._db.fetchall(sql)]

    def pending_message_ids(self, include_embedded: bool = False) -> list[str]:
        """IDs of messages that still need an embedding, oldest first."""
        sql = "SELECT id FROM messages"
        if not include_embedded:
            sql += " WHERE embedded_at IS NULL"
        sql += " ORDER BY created_at ASC, rowid ASC"
        return [row["id"] for row in self._db.fetchall(sql)]

    def _mark_embedded(self, table: str, ids: Sequence[str]) -> None:
        if not ids:
            return
        now = datetime.now(UTC).isoformat()
        with self._db.lock:
            self._db.executemany(
                f"UPDATE {table} SET embedded_at = ? WHERE id = ?",
                [(now, record_id) for record_id in ids],
            )
            self._db.commit()

    def mark_tasks_embedded(self, task_ids: Sequence[str]) -> None:
        """Record that tasks have been written to the vector index."""
        self._mark_embedded("tasks", task_ids)

    def mark_messages_embedded(self, message_ids: Sequence[str]) -> None:
        """Record that messages have been written to the vector index."""
        self._mark_embedded("messages", message_ids)
