"""Fill in task records for candidates discovered through messages."""

import logging
from collections.abc import Callable, Iterable, Mapping

from tasklens.search.models import SearchCandidate
from tasklens.tasks.schemas import Task

logger = logging.getLogger(__name__)

FetchTasks = Callable[[set[str]], Iterable[Task]]


def hydrate(
    candidates: Mapping[str, SearchCandidate],
    fetch_tasks_by_ids: FetchTasks,
) -> dict[str, SearchCandidate]:
    """Attach task records to candidates that lack them.

    Missing tasks are fetched with a single batched call. A candidate whose
    task no longer exists (deleted between the index lookup and this fetch)
    is dropped with a warning.

    Args:
        candidates: Mapping of task ID to candidate.
        fetch_tasks_by_ids: Returns the tasks found for a set of IDs.

    Returns:
        A new mapping containing only hydrated candidates.
    """
    missing = {task_id for task_id, c in candidates.items() if not c.is_hydrated}
    if not missing:
        return dict(candidates)

    fetched = {task.id: task for task in fetch_tasks_by_ids(missing)}

    hydrated: dict[str, SearchCandidate] = {}
    for task_id, candidate in candidates.items():
        if candidate.is_hydrated:
            hydrated[task_id] = candidate
        elif task_id in fetched:
            hydrated[task_id] = candidate.with_task(fetched[task_id])
        else:
            logger.warning(
                f"Skipping task {task_id}: matched through a message but the task "
                "could not be fetched"
            )
    return hydrated
