"""Data models for arise."""

from arise.models.task import Task, TaskPriority, RecurrenceType, RecurringDescriptor
from arise.models.progress import Rank, UserProgress, XPResult
from arise.models.level_event import LevelEvent
from arise.models.user import User

__all__ = [
    "Task",
    "TaskPriority",
    "RecurrenceType",
    "RecurringDescriptor",
    "Rank",
    "UserProgress",
    "XPResult",
    "LevelEvent",
    "User",
]
