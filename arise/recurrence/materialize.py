"""Materialize the next instances of completed recurring tasks."""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from arise.database.repository import TaskRepository
from arise.engine.recurrence import materialize_next_instance
from arise.errors import ValidationError
from arise.models.task import Task

logger = logging.getLogger(__name__)


def spawn_next_instance(task_repo: TaskRepository, task: Task, now: datetime) -> Optional[Task]:
    """Create the next instance of one completed recurring task, if it is due.

    Idempotent: an occurrence that already exists for the task's lineage (even
    a soft-deleted one) is never created twice. Returns the created task, or
    None when nothing was created.
    """
    candidate = materialize_next_instance(task, now)
    if candidate is None:
        return None

    lineage_id = candidate.lineage_id
    if task_repo.find_occurrence(task.user_id, lineage_id, candidate.recurring.next_due):
        return None

    try:
        created = task_repo.create(candidate)
    except IntegrityError:
        # A concurrent evaluation created the same occurrence first.
        logger.info(f"Occurrence of lineage {lineage_id} due {candidate.recurring.next_due} already exists")
        return None
    logger.debug(f"Spawned task {created.id} from {task.id} (due {candidate.recurring.next_due})")
    return created


def materialize_due_recurrences(
    db: Session,
    *,
    user_id: str,
    now: Optional[datetime] = None,
) -> int:
    """Create next instances for every completed recurring task whose due moment has passed.

    Returns number of tasks created.
    """
    now = now or datetime.utcnow()
    task_repo = TaskRepository(db)

    created = 0
    for task in task_repo.get_completed_recurring(user_id):
        try:
            if spawn_next_instance(task_repo, task, now) is not None:
                created += 1
        except ValidationError as e:
            logger.warning(f"Skipping recurring task {task.id}: {str(e)}")
            continue

    return created
