"""Task and chat message storage."""

from tasklens.tasks.schemas import Message, MessageCreate, Task, TaskCreate, TaskWithMessages
from tasklens.tasks.store import TaskNotFound, TaskStore

__all__ = [
    "Message",
    "MessageCreate",
    "Task",
    "TaskCreate",
    "TaskNotFound",
    "TaskStore",
    "TaskWithMessages",
]
