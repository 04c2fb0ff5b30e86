"""Vector index maintenance endpoints."""

import asyncio

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel

from tasklens.api.deps import get_backfill, get_task_index, get_task_store
from tasklens.indexing.backfill import EmbeddingBackfill
from tasklens.tasks.index import TaskIndex
from tasklens.tasks.store import TaskStore

router = APIRouter(prefix="/api/index", tags=["index"])


class BackfillResponse(BaseModel):
    """Outcome of an embedding backfill run."""

    tasks_embedded: int
    messages_embedded: int
    skipped: list[str]
    failed: list[str]


class IndexStatus(BaseModel):
    """Vectors stored and records still waiting for an embedding."""

    task_vectors: int
    message_vectors: int
    pending_tasks: int
    pending_messages: int


@router.get("/status", response_model=IndexStatus)
async def get_index_status(
    store: TaskStore = Depends(get_task_store),
    index: TaskIndex = Depends(get_task_index),
) -> IndexStatus:
    """Report how much of the data is searchable."""
    task_vectors, message_vectors = await asyncio.to_thread(index.vector_counts)
    return IndexStatus(
        task_vectors=task_vectors,
        message_vectors=message_vectors,
        pending_tasks=len(store.pending_task_ids()),
        pending_messages=len(store.pending_message_ids()),
    )


@router.post("/embeddings", response_model=BackfillResponse)
async def run_embedding_backfill(
    force: bool = Query(False, description="Re-embed records that already have a vector"),
    backfill: EmbeddingBackfill = Depends(get_backfill),
) -> BackfillResponse:
    """Embed every task and message that has no vector yet.

    Records that fail to embed are reported in ``failed`` and stay pending
    for the next run.
    """
    result = await asyncio.to_thread(backfill.run, force)
    return BackfillResponse(
        tasks_embedded=result.tasks_embedded,
        messages_embedded=result.messages_embedded,
        skipped=result.skipped,
        failed=result.failed,
    )
