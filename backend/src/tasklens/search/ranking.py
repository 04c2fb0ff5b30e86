"""Rank merged candidates and build the enriched search results."""

from collections.abc import Iterable

from tasklens.constants.search import (
    FINAL_RESULTS_LIMIT,
    MATCH_SOURCE_MESSAGE,
    MATCH_SOURCE_TASK,
    MATCH_SOURCE_TASK_AND_MESSAGE,
    MAX_RELEVANT_MESSAGES,
    SNIPPET_MAX_LENGTH,
)
from tasklens.search.models import EnrichedResult, MatchSource, SearchCandidate
from tasklens.search.snippets import get_context_snippet


def determine_match_source(candidate: SearchCandidate) -> MatchSource:
    """Label which evidence produced the candidate's best distance.

    The task's own text wins ties: a direct distance equal to the best
    distance makes the task the primary source.
    """
    if (
        candidate.task_distance is not None
        and candidate.task_distance == candidate.best_overall_distance
    ):
        if candidate.matched_messages:
            return MATCH_SOURCE_TASK_AND_MESSAGE
        return MATCH_SOURCE_TASK
    return MATCH_SOURCE_MESSAGE


def build_result(
    candidate: SearchCandidate,
    query: str,
    snippet_max_length: int = SNIPPET_MAX_LENGTH,
    max_messages: int = MAX_RELEVANT_MESSAGES,
) -> EnrichedResult:
    """Turn a hydrated candidate into an enriched result."""
    task = candidate.task
    if task is None:
        raise ValueError(f"Candidate {candidate.task_id} has no task data")

    match_source = determine_match_source(candidate)

    snippet = None
    if match_source in (MATCH_SOURCE_TASK, MATCH_SOURCE_TASK_AND_MESSAGE):
        snippet = get_context_snippet(task.description or task.name, query, snippet_max_length)

    relevant = list(candidate.matched_messages[:max_messages]) or None

    return EnrichedResult(
        **task.model_dump(),
        best_overall_distance=candidate.best_overall_distance,
        match_source=match_source,
        relevant_messages=relevant,
        task_context_snippet=snippet,
    )


def rank(
    candidates: Iterable[SearchCandidate],
    query: str,
    limit: int = FINAL_RESULTS_LIMIT,
    snippet_max_length: int = SNIPPET_MAX_LENGTH,
    max_messages: int = MAX_RELEVANT_MESSAGES,
) -> list[EnrichedResult]:
    """Order candidates by best distance and build the final result list.

    Candidates without task data are skipped.

    Args:
        candidates: Hydrated candidates.
        query: Search query, used for task snippets.
        limit: Maximum number of results.
        snippet_max_length: Maximum snippet length in characters.
        max_messages: Matched messages attached per result.

    Returns:
        Results sorted by ascending ``best_overall_distance``.
    """
    results = [
        build_result(candidate, query, snippet_max_length, max_messages)
        for candidate in candidates
        if candidate.is_hydrated
    ]
    results.sort(key=lambda r: r.best_overall_distance)
    return results[:limit]
