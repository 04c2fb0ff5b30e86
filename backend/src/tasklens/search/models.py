"""Data types flowing through the semantic search pipeline."""

from dataclasses import dataclass, field, replace
from datetime import datetime
from typing import Literal, Optional

from pydantic import BaseModel, Field

from tasklens.tasks.schemas import Message, Task

MatchSource = Literal["task", "message", "task_and_message"]


@dataclass(frozen=True)
class TaskHit:
    """A task returned by the nearest-neighbour lookup."""

    task: Task
    distance: float


@dataclass(frozen=True)
class MessageHit:
    """A chat message returned by the nearest-neighbour lookup."""

    message: Message
    distance: float


class MatchedMessage(BaseModel):
    """A matched message attached to a task as supporting evidence."""

    id: str
    content: str
    distance: float
    created_at: datetime
    snippet: Optional[str] = None


@dataclass(frozen=True)
class SearchCandidate:
    """Per-query evidence that a task is relevant.

    ``best_overall_distance`` is always the minimum of ``task_distance`` (when
    the task matched directly) and every matched message's distance.
    ``matched_messages`` is kept sorted by ascending distance.
    """

    task_id: str
    best_overall_distance: float
    task: Optional[Task] = None
    task_distance: Optional[float] = None
    matched_messages: tuple[MatchedMessage, ...] = field(default_factory=tuple)

    @classmethod
    def from_task_hit(cls, hit: TaskHit) -> "SearchCandidate":
        """Candidate for a task that matched directly."""
        return cls(
            task_id=hit.task.id,
            task=hit.task,
            task_distance=hit.distance,
            best_overall_distance=hit.distance,
        )

    @classmethod
    def from_message(cls, task_id: str, matched: MatchedMessage) -> "SearchCandidate":
        """Candidate for a task reached only through one of its messages."""
        return cls(
            task_id=task_id,
            matched_messages=(matched,),
            best_overall_distance=matched.distance,
        )

    @property
    def has_direct_match(self) -> bool:
        return self.task_distance is not None

    @property
    def is_hydrated(self) -> bool:
        return self.task is not None

    def with_message(self, matched: MatchedMessage) -> "SearchCandidate":
        """Return a copy with ``matched`` folded into the evidence."""
        # sorted() is stable, so equal distances keep their arrival order
        messages = tuple(
            sorted((*self.matched_messages, matched), key=lambda m: m.distance)
        )
        return replace(
            self,
            matched_messages=messages,
            best_overall_distance=min(self.best_overall_distance, matched.distance),
        )

    def with_task(self, task: Task) -> "SearchCandidate":
        """Return a copy carrying the hydrated task record."""
        return replace(self, task=task)


class EnrichedResult(BaseModel):
    """A ranked task with the evidence that made it relevant."""

    id: str
    name: str
    description: Optional[str] = None
    tags: list[str] = Field(default_factory=list)
    category: str = ""
    created_at: datetime
    updated_at: datetime
    best_overall_distance: float = Field(..., description="Lowest distance across all evidence")
    match_source: MatchSource = Field(..., description="Which evidence produced the best distance")
    relevant_messages: Optional[list[MatchedMessage]] = Field(
        None, description="Closest matched messages, ascending by distance"
    )
    task_context_snippet: Optional[str] = Field(
        None, description="Excerpt of the task text, only when the task text matched best"
    )


class SearchResponse(BaseModel):
    """Search response with results."""

    query: str
    results: list[EnrichedResult]
    total: int
