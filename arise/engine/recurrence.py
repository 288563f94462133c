"""Recurrence engine for arise.

Computes the next due timestamp of a recurring task and materializes the next
pending instance of a completed one. Pure: `now` is always passed in.

Timestamps are naive UTC, so "+24h" and "+1 calendar day" coincide.
"""

from __future__ import annotations

import calendar
import uuid
from datetime import datetime, timedelta
from typing import Optional

from arise.errors import ValidationError
from arise.models.task import RecurrenceType, RecurringDescriptor, Task


def _weekday_sunday_first(d: datetime) -> int:
    # Python weekday: Monday=0 ... Sunday=6; recurrence days use Sunday=0 ... Saturday=6
    return (d.weekday() + 1) % 7


def _add_one_month(d: datetime, anchor_day: Optional[int] = None) -> datetime:
    """`anchor_day` (default: d's day) of the next calendar month, clamped to the month's last day."""
    year = d.year + (1 if d.month == 12 else 0)
    month = 1 if d.month == 12 else d.month + 1
    last_day = calendar.monthrange(year, month)[1]
    return d.replace(year=year, month=month, day=min(anchor_day or d.day, last_day))


def _next_weekly(reference_due: datetime, days: list[int]) -> datetime:
    current = _weekday_sunday_first(reference_due)
    later = [day for day in sorted(days) if day > current]
    if later:
        delta = later[0] - current
    else:
        delta = 7 - current + min(days)
    return reference_due + timedelta(days=delta)


def compute_next_occurrence(recurring: RecurringDescriptor, reference_due: datetime) -> Optional[datetime]:
    """Compute the occurrence following `reference_due`.

    Returns None only for a custom recurrence without an interval.
    """
    rtype = RecurrenceType(recurring.type)

    if rtype == RecurrenceType.DAILY:
        return reference_due + timedelta(hours=24)

    if rtype == RecurrenceType.WEEKLY:
        if recurring.days:
            return _next_weekly(reference_due, recurring.days)
        return reference_due + timedelta(days=7)

    if rtype == RecurrenceType.MONTHLY:
        return _add_one_month(reference_due, recurring.day_of_month)

    if rtype == RecurrenceType.CUSTOM:
        if recurring.interval is None:
            return None
        return reference_due + timedelta(days=recurring.interval)

    return None


def initial_next_due(recurring: RecurringDescriptor, now: datetime) -> Optional[datetime]:
    """First due timestamp for a recurring task created at `now`."""
    return compute_next_occurrence(recurring, now)


def materialize_next_instance(task: Task, now: datetime) -> Optional[Task]:
    """Build the next pending instance of a completed recurring task.

    Recurrence fires only once the due moment has passed: returns None if the
    task is not completed, is not recurring, or its next_due is unset or still
    in the future. The input task is left untouched.

    Raises:
        ValidationError: If the descriptor cannot produce a next occurrence
    """
    if not task.completed or task.recurring is None:
        return None
    due = task.recurring.next_due
    if due is None or due > now:
        return None

    following = compute_next_occurrence(task.recurring, due)
    if following is None:
        raise ValidationError(f"Task {task.id}: recurrence descriptor has no next occurrence")

    return task.model_copy(
        update={
            "id": str(uuid.uuid4()),
            "completed": False,
            "completed_at": None,
            "deleted_at": None,
            "created_at": now,
            "updated_at": now,
            "lineage_id": task.lineage_id or task.id,
            "recurring": task.recurring.model_copy(update={"next_due": following}),
        }
    )
