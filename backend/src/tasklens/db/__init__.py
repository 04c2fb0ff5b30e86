"""Database layer for TaskLens."""

from tasklens.db.connection import Database
from tasklens.db.migrations import run_migrations

__all__ = ["Database", "run_migrations"]
