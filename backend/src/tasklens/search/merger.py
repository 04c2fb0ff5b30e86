"""Merge task and message hits into per-task search candidates.

Merging happens in two phases that must run in order:

1. ``build_from_tasks`` creates one candidate per directly matched task.
2. ``fold_in_messages`` attaches each matched message to its task's
   candidate, creating message-only candidates for tasks that did not match
   directly.

Running tasks first guarantees that ``task_distance`` is only ever set from
a task-level match. Both phases return new mappings and leave their inputs
untouched.
"""

from collections.abc import Iterable, Mapping

from tasklens.constants.search import SNIPPET_MAX_LENGTH
from tasklens.search.models import MatchedMessage, MessageHit, SearchCandidate, TaskHit
from tasklens.search.snippets import get_context_snippet


def build_from_tasks(task_hits: Iterable[TaskHit]) -> dict[str, SearchCandidate]:
    """Create a candidate for every directly matched task.

    A task listed more than once keeps its last hit.
    """
    candidates: dict[str, SearchCandidate] = {}
    for hit in task_hits:
        candidates[hit.task.id] = SearchCandidate.from_task_hit(hit)
    return candidates


def to_matched_message(
    hit: MessageHit, query: str, snippet_max_length: int = SNIPPET_MAX_LENGTH
) -> MatchedMessage:
    """Build the evidence record for a matched message."""
    message = hit.message
    return MatchedMessage(
        id=message.id,
        content=message.content,
        distance=hit.distance,
        created_at=message.created_at,
        snippet=get_context_snippet(message.content, query, snippet_max_length),
    )


def fold_in_messages(
    candidates: Mapping[str, SearchCandidate],
    message_hits: Iterable[MessageHit],
    query: str,
    snippet_max_length: int = SNIPPET_MAX_LENGTH,
) -> dict[str, SearchCandidate]:
    """Attach matched messages to their tasks' candidates.

    Every matched message is kept, not only the best one per task.

    Args:
        candidates: Output of ``build_from_tasks``.
        message_hits: Messages returned by the nearest-neighbour lookup.
        query: Search query, used for message snippets.
        snippet_max_length: Maximum snippet length in characters.

    Returns:
        A new mapping of task ID to candidate.
    """
    merged = dict(candidates)
    for hit in message_hits:
        matched = to_matched_message(hit, query, snippet_max_length)
        task_id = hit.message.task_id
        existing = merged.get(task_id)
        if existing is not None:
            merged[task_id] = existing.with_message(matched)
        else:
            merged[task_id] = SearchCandidate.from_message(task_id, matched)
    return merged


def merge(
    task_hits: Iterable[TaskHit],
    message_hits: Iterable[MessageHit],
    query: str,
    snippet_max_length: int = SNIPPET_MAX_LENGTH,
) -> dict[str, SearchCandidate]:
    """Merge both hit lists into a mapping of task ID to candidate."""
    return fold_in_messages(
        build_from_tasks(task_hits), message_hits, query, snippet_max_length
    )
