"""Task and chat message endpoints."""

import logging

from fastapi import APIRouter, Depends, HTTPException, Query, Request, status

from tasklens.api.deps import get_settings, get_task_index, get_task_store
from tasklens.config import Config
from tasklens.tasks.importer import CSVImportError, parse_tasks_csv
from tasklens.tasks.index import TaskIndex
from tasklens.tasks.schemas import (
    ImportResult,
    Message,
    MessageCreate,
    Task,
    TaskCreate,
    TaskWithMessages,
)
from tasklens.tasks.store import TaskNotFound, TaskStore

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/tasks", tags=["tasks"])


@router.get("", response_model=list[TaskWithMessages])
async def list_tasks(
    limit: int | None = Query(None, ge=1, le=1000, description="Maximum tasks to return"),
    store: TaskStore = Depends(get_task_store),
    settings: Config = Depends(get_settings),
) -> list[TaskWithMessages]:
    """List the newest tasks with their chat threads."""
    return store.list_tasks(limit or settings.search.list_limit)


@router.post("", response_model=Task, status_code=status.HTTP_201_CREATED)
async def create_task(
    data: TaskCreate,
    store: TaskStore = Depends(get_task_store),
) -> Task:
    """Create a task.

    The task becomes searchable once the embedding backfill has run.
    """
    return store.create_task(data)


@router.post("/import", response_model=ImportResult, status_code=status.HTTP_201_CREATED)
async def import_tasks(
    request: Request,
    store: TaskStore = Depends(get_task_store),
) -> ImportResult:
    """Bulk-create tasks from CSV.

    Header: ``name,description,tags,category`` (only ``name`` is required;
    tags are semicolon separated). Tasks whose name already exists are
    skipped.
    """
    body = (await request.body()).decode("utf-8", errors="replace")
    try:
        items, skipped = parse_tasks_csv(body)
    except CSVImportError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

    created, duplicates = store.create_tasks(items)
    skipped.extend(f"duplicate name: {name}" for name in duplicates)
    logger.info(f"Imported {len(created)} tasks, skipped {len(skipped)} rows")
    return ImportResult(created=len(created), skipped=skipped)


@router.get("/{task_id}", response_model=Task)
async def get_task(
    task_id: str,
    store: TaskStore = Depends(get_task_store),
) -> Task:
    """Get a single task."""
    task = store.get_task(task_id)
    if not task:
        raise HTTPException(status_code=404, detail="Task not found")
    return task


@router.delete("/{task_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_task(
    task_id: str,
    store: TaskStore = Depends(get_task_store),
    index: TaskIndex = Depends(get_task_index),
) -> None:
    """Delete a task, its chat thread, and their vectors."""
    message_ids = store.list_message_ids(task_id)
    if not store.delete_task(task_id):
        raise HTTPException(status_code=404, detail="Task not found")

    try:
        index.remove_task(task_id, message_ids)
    except Exception as e:
        # Stale vectors are filtered out at query time, so the delete still stands
        logger.warning(f"Failed to remove vectors for task {task_id}: {e}")


@router.get("/{task_id}/messages", response_model=list[Message])
async def list_messages(
    task_id: str,
    store: TaskStore = Depends(get_task_store),
) -> list[Message]:
    """List a task's chat messages, oldest first."""
    if store.get_task(task_id) is None:
        raise HTTPException(status_code=404, detail="Task not found")
    return store.list_messages(task_id)


@router.post(
    "/{task_id}/messages", response_model=Message, status_code=status.HTTP_201_CREATED
)
async def post_message(
    task_id: str,
    data: MessageCreate,
    store: TaskStore = Depends(get_task_store),
) -> Message:
    """Post a chat message on a task."""
    try:
        return store.add_message(task_id, data)
    except TaskNotFound:
        raise HTTPException(status_code=404, detail="Task not found")
