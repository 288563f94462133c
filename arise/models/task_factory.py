"""Task creation factory for arise.

This module centralizes task creation logic so that ids, lineage and the first
recurrence due date are assigned the same way everywhere.
"""

import uuid
from datetime import datetime
from typing import Optional

from arise.engine.recurrence import initial_next_due
from arise.models.constants import DEFAULT_PRIORITY
from arise.models.task import RecurrenceType, RecurringDescriptor, Task, TaskPriority


def create_task_base(
    user_id: str,
    name: str,
    description: Optional[str] = None,
    priority: Optional[TaskPriority] = None,
    recurring: Optional[RecurringDescriptor] = None,
    now: Optional[datetime] = None,
) -> Task:
    """Create a pending task with defaults applied.

    A new task starts its own lineage. A monthly descriptor without an anchor
    day takes it from its first due date (or `now`). A recurring descriptor
    without a next_due gets the first occurrence after `now`.

    Args:
        user_id: User ID who owns this task (required)
        name: Task name (required)
        description: Task description
        priority: Task priority (defaults to normal)
        recurring: Recurrence descriptor
        now: Creation timestamp (defaults to the current UTC time)

    Returns:
        Task object with defaults applied
    """
    now = now or datetime.utcnow()
    task_id = str(uuid.uuid4())

    if (
        recurring is not None
        and recurring.type == RecurrenceType.MONTHLY
        and recurring.day_of_month is None
    ):
        anchor = recurring.next_due or now
        recurring = recurring.model_copy(update={"day_of_month": anchor.day})

    if recurring is not None and recurring.next_due is None:
        recurring = recurring.model_copy(update={"next_due": initial_next_due(recurring, now)})

    return Task(
        id=task_id,
        user_id=user_id,
        name=name,
        description=description,
        priority=priority if priority is not None else DEFAULT_PRIORITY,
        completed=False,
        created_at=now,
        updated_at=now,
        recurring=recurring,
        lineage_id=task_id,
    )
