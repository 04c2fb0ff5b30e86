"""Task and chat message schemas."""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class TaskCreate(BaseModel):
    """Request to create a new task."""

    name: str = Field(..., min_length=1, description="Short task title")
    description: Optional[str] = Field(None, description="Long-form task description")
    tags: list[str] = Field(default_factory=list, description="Free-form labels")
    category: str = Field("", description="Task category")


class Task(BaseModel):
    """A tracked task."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(..., description="Task ID")
    name: str = Field(..., description="Short task title")
    description: Optional[str] = Field(None, description="Long-form task description")
    tags: list[str] = Field(default_factory=list, description="Free-form labels")
    category: str = Field("", description="Task category")
    created_at: datetime = Field(..., description="Creation timestamp")
    updated_at: datetime = Field(..., description="Last update timestamp")


class MessageCreate(BaseModel):
    """Request to post a chat message on a task."""

    content: str = Field(..., min_length=1, description="Message text")
    sender_id: str = Field(..., min_length=1, description="ID of the sending user")


class Message(BaseModel):
    """A chat message in a task's thread."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(..., description="Message ID")
    task_id: str = Field(..., description="ID of the task this message belongs to")
    content: str = Field(..., description="Message text")
    sender_id: str = Field(..., description="ID of the sending user")
    created_at: datetime = Field(..., description="Creation timestamp")


class TaskWithMessages(Task):
    """A task together with its chat thread, oldest message first."""

    messages: list[Message] = Field(default_factory=list)


class ImportResult(BaseModel):
    """Outcome of a bulk CSV import."""

    created: int
    skipped: list[str] = Field(default_factory=list, description="Reasons rows were skipped")
