"""Request/response models for task and stats endpoints."""

from datetime import datetime, timezone
from typing import List, Optional

from pydantic import BaseModel, Field, field_validator

from arise.models.level_event import LevelEvent
from arise.models.task import RecurringDescriptor, Task, TaskPriority


def to_naive_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Convert a timezone-aware timestamp to naive UTC (stores keep naive UTC)."""
    if value is None or value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


class TaskCreateRequest(BaseModel):
    """Request model for creating a task."""

    name: str = Field(..., description="Task name")
    description: Optional[str] = Field(None, description="Task description")
    priority: TaskPriority = Field(TaskPriority.NORMAL, description="Task priority")
    recurring: Optional[RecurringDescriptor] = Field(None, description="Recurrence schedule")

    @field_validator("name")
    @classmethod
    def _strip_name(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("name must not be empty")
        return v

    @field_validator("description")
    @classmethod
    def _strip_description(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return None
        return v.strip() or None

    @field_validator("recurring")
    @classmethod
    def _normalize_next_due(cls, v: Optional[RecurringDescriptor]) -> Optional[RecurringDescriptor]:
        if v is None or v.next_due is None:
            return v
        return v.model_copy(update={"next_due": to_naive_utc(v.next_due)})


class TaskResponse(BaseModel):
    task: Task


class TaskListResponse(BaseModel):
    tasks: List[Task]
    count: int


class LevelHistoryResponse(BaseModel):
    events: List[LevelEvent]
    count: int


class MaterializeResponse(BaseModel):
    created_count: int
