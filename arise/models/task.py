"""Task data model for arise."""

from datetime import datetime
from typing import List, Optional
from enum import Enum
from pydantic import BaseModel, Field, field_validator, model_validator


class TaskPriority(str, Enum):
    """Task priority enumeration (drives the base XP award)."""
    LOW = "low"
    NORMAL = "normal"
    HIGH = "high"
    URGENT = "urgent"


class RecurrenceType(str, Enum):
    """Recurrence type enumeration."""
    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"
    CUSTOM = "custom"


class RecurringDescriptor(BaseModel):
    """Schedule metadata attached to a task that regenerates after completion.

    Notes:
    - `interval` is only meaningful for `custom` (every N days) and is required there.
    - `days` is only meaningful for `weekly`; weekday numbers use Sunday=0 ... Saturday=6.
    - `day_of_month` is only meaningful for `monthly`; without it each step keeps
      the day of the previous due date.
    - `next_due` is a naive UTC timestamp.
    """

    type: RecurrenceType = Field(..., description="Recurrence type")
    interval: Optional[int] = Field(None, ge=1, description="For custom recurrence: every N days")
    days: Optional[List[int]] = Field(
        None, description="For weekly recurrence: weekday numbers (0 = Sunday, 6 = Saturday)"
    )
    day_of_month: Optional[int] = Field(
        None, ge=1, le=31, description="For monthly recurrence: anchor day, clamped in shorter months"
    )
    next_due: Optional[datetime] = Field(None, description="Next occurrence due timestamp")

    @field_validator("days")
    @classmethod
    def _validate_days(cls, v):
        if v is None:
            return None
        for day in v:
            if day < 0 or day > 6:
                raise ValueError(f"weekday numbers must be within 0-6, got {day}")
        return sorted(set(v))

    @model_validator(mode="after")
    def _validate_interval(self):
        if self.type == RecurrenceType.CUSTOM and self.interval is None:
            raise ValueError("custom recurrence requires an interval")
        return self

    class Config:
        """Pydantic configuration."""
        use_enum_values = True


class Task(BaseModel):
    """Canonical Task model."""

    id: str = Field(..., description="Unique task identifier (UUID v4)")
    user_id: str = Field(..., description="User ID who owns this task")
    name: str = Field(..., min_length=1, description="Task name")
    description: Optional[str] = Field(None, description="Task description")
    priority: TaskPriority = Field(TaskPriority.NORMAL, description="Task priority")
    completed: bool = Field(False, description="Whether this task instance is completed")
    created_at: datetime = Field(..., description="Task creation timestamp")
    updated_at: datetime = Field(..., description="Task last update timestamp")
    completed_at: Optional[datetime] = Field(None, description="Completion timestamp (null while pending)")
    deleted_at: Optional[datetime] = Field(None, description="Soft-delete timestamp (null if active)")
    recurring: Optional[RecurringDescriptor] = Field(None, description="Recurrence schedule, if any")

    # Recurrence lineage: id of the first task in the chain of materialized instances
    lineage_id: Optional[str] = Field(
        None, description="Recurring lineage id (the root task id); defaults to the task's own id"
    )

    class Config:
        """Pydantic configuration."""
        use_enum_values = True
