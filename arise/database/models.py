"""SQLAlchemy database models for arise."""

from datetime import datetime
import uuid
from sqlalchemy import Column, String, Integer, Boolean, DateTime, JSON, ForeignKey, UniqueConstraint

from typing import Union, TypeVar, Type
from arise.database.database import Base
from arise.models.progress import Rank
from arise.models.task import TaskPriority

T = TypeVar('T')


def enum_to_value(enum_obj: Union[str, T]) -> str:
    """Convert enum to string value (handles both enum and string).

    Args:
        enum_obj: Enum instance or string value

    Returns:
        String value of the enum, or the string itself if already a string
    """
    if hasattr(enum_obj, 'value'):
        return enum_obj.value
    return str(enum_obj)


def value_to_enum(value: str, enum_class: Type[T], default: T) -> T:
    """Convert string to enum with fallback to default.

    Args:
        value: String value to convert
        enum_class: Enum class to convert to
        default: Default enum value if conversion fails

    Returns:
        Enum instance, or default if conversion fails
    """
    if not value:
        return default
    try:
        return enum_class(value)
    except (ValueError, AttributeError):
        return default


class TaskDB(Base):
    """Database model for Task."""

    __tablename__ = "tasks"
    __table_args__ = (
        # Prevent double-spawning the same occurrence of a recurring lineage.
        # Note: NULL next_due values do not participate (non-recurring tasks are unaffected).
        UniqueConstraint("user_id", "lineage_id", "next_due", name="uq_task_lineage_occurrence"),
    )

    # Primary key
    id = Column(String, primary_key=True, default=lambda: str(uuid.uuid4()))

    # User association
    user_id = Column(String, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)

    # Basic fields
    name = Column(String, nullable=False)
    description = Column(String, nullable=True)
    priority = Column(String, nullable=False, default=TaskPriority.NORMAL.value)
    completed = Column(Boolean, nullable=False, default=False)

    # Timestamps
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow, index=True)
    updated_at = Column(DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow)
    completed_at = Column(DateTime, nullable=True)
    deleted_at = Column(DateTime, nullable=True, index=True)

    # Recurrence (all null for one-off tasks)
    recurrence_type = Column(String, nullable=True)
    recurrence_interval = Column(Integer, nullable=True)
    recurrence_days = Column(JSON, nullable=True)
    recurrence_day_of_month = Column(Integer, nullable=True)
    next_due = Column(DateTime, nullable=True, index=True)
    lineage_id = Column(String, nullable=True, index=True)

    def to_pydantic(self):
        """Convert database model to Pydantic model."""
        from arise.models.task import Task, RecurringDescriptor

        recurring = None
        if self.recurrence_type:
            recurring = RecurringDescriptor(
                type=self.recurrence_type,
                interval=self.recurrence_interval,
                days=self.recurrence_days,
                day_of_month=self.recurrence_day_of_month,
                next_due=self.next_due,
            )

        return Task(
            id=self.id,
            user_id=self.user_id,
            name=self.name,
            description=self.description,
            priority=value_to_enum(self.priority, TaskPriority, TaskPriority.NORMAL),
            completed=bool(self.completed),
            created_at=self.created_at,
            updated_at=self.updated_at,
            completed_at=self.completed_at,
            deleted_at=self.deleted_at,
            recurring=recurring,
            lineage_id=self.lineage_id,
        )

    @classmethod
    def from_pydantic(cls, task):
        """Create database model from Pydantic model."""
        recurring = task.recurring
        return cls(
            id=task.id,
            user_id=task.user_id,
            name=task.name,
            description=task.description,
            priority=enum_to_value(task.priority),
            completed=task.completed,
            created_at=task.created_at,
            updated_at=task.updated_at,
            completed_at=task.completed_at,
            deleted_at=task.deleted_at,
            recurrence_type=enum_to_value(recurring.type) if recurring else None,
            recurrence_interval=recurring.interval if recurring else None,
            recurrence_days=list(recurring.days) if recurring and recurring.days is not None else None,
            recurrence_day_of_month=recurring.day_of_month if recurring else None,
            next_due=recurring.next_due if recurring else None,
            lineage_id=task.lineage_id or task.id,
        )


class UserDB(Base):
    """Database model for User (profile + progression state)."""

    __tablename__ = "users"

    # Primary key (token subject)
    id = Column(String, primary_key=True)

    # User profile
    email = Column(String, nullable=True, unique=True)
    name = Column(String, nullable=True)

    # Progression
    rank = Column(String, nullable=False, default=Rank.E.value)
    level = Column(Integer, nullable=False, default=1)
    current_xp = Column(Integer, nullable=False, default=0)
    required_xp = Column(Integer, nullable=False, default=100)
    version = Column(Integer, nullable=False, default=0)

    # Timestamps
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)
    updated_at = Column(DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow)

    def to_pydantic(self):
        """Convert database model to Pydantic model."""
        from arise.models.user import User
        return User(
            id=self.id,
            email=self.email,
            name=self.name,
            rank=value_to_enum(self.rank, Rank, Rank.E),
            level=self.level,
            current_xp=self.current_xp,
            required_xp=self.required_xp,
            version=self.version,
            created_at=self.created_at,
            updated_at=self.updated_at,
        )

    @classmethod
    def from_pydantic(cls, user):
        """Create database model from Pydantic model."""
        return cls(
            id=user.id,
            email=user.email,
            name=user.name,
            rank=enum_to_value(user.rank),
            level=user.level,
            current_xp=user.current_xp,
            required_xp=user.required_xp,
            version=user.version,
            created_at=user.created_at,
            updated_at=user.updated_at,
        )


class LevelEventDB(Base):
    """Database model for LevelEvent (level-up history)."""

    __tablename__ = "level_events"

    id = Column(String, primary_key=True, default=lambda: str(uuid.uuid4()))
    user_id = Column(String, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)

    old_level = Column(Integer, nullable=False)
    new_level = Column(Integer, nullable=False)
    old_rank = Column(String, nullable=False)
    new_rank = Column(String, nullable=False)
    xp_gained = Column(Integer, nullable=False)

    timestamp = Column(DateTime, nullable=False, default=datetime.utcnow, index=True)

    def to_pydantic(self):
        """Convert database model to Pydantic model."""
        from arise.models.level_event import LevelEvent
        return LevelEvent(
            id=self.id,
            user_id=self.user_id,
            old_level=self.old_level,
            new_level=self.new_level,
            old_rank=value_to_enum(self.old_rank, Rank, Rank.E),
            new_rank=value_to_enum(self.new_rank, Rank, Rank.E),
            xp_gained=self.xp_gained,
            timestamp=self.timestamp,
        )

    @classmethod
    def from_pydantic(cls, event):
        """Create database model from Pydantic model."""
        return cls(
            id=event.id,
            user_id=event.user_id,
            old_level=event.old_level,
            new_level=event.new_level,
            old_rank=enum_to_value(event.old_rank),
            new_rank=enum_to_value(event.new_rank),
            xp_gained=event.xp_gained,
            timestamp=event.timestamp,
        )
