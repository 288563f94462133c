"""Task completion: flip the task, award its XP, roll the recurrence forward."""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Optional

from pydantic import BaseModel
from sqlalchemy.orm import Session

from arise.database.repository import TaskRepository
from arise.database.user_repository import UserRepository
from arise.engine.progression import xp_for_task
from arise.models.task import Task
from arise.progression.award import XPAward, award_xp
from arise.recurrence.materialize import spawn_next_instance

logger = logging.getLogger(__name__)


class CompletionResult(BaseModel):
    """Outcome of completing a task."""

    task: Task
    already_completed: bool = False
    award: XPAward
    spawned_task: Optional[Task] = None


def complete_task(
    db: Session,
    *,
    user_id: str,
    task_id: str,
    now: Optional[datetime] = None,
) -> CompletionResult:
    """Mark a task completed and award XP to its owner.

    Completing an instance is a one-way transition: a repeated completion of
    the same task is a no-op and awards nothing. If the task is recurring and
    already due, its next instance is created right away; otherwise the
    recurrence sweep picks it up once due. If the XP award fails the task is
    reopened, so completion and award land together.

    Raises:
        NotFoundError: If the task does not exist
        PermissionDeniedError: If the task belongs to another user
    """
    now = now or datetime.utcnow()
    task_repo = TaskRepository(db)

    existing = task_repo.get_owned(user_id, task_id)
    completed = None if existing.completed else task_repo.mark_completed(user_id, task_id, now)

    if completed is None:
        logger.debug(f"Task {task_id} already completed; no XP awarded")
        return CompletionResult(
            task=task_repo.get(user_id, task_id) or existing,
            already_completed=True,
            award=XPAward(xp_awarded=0, stats=UserRepository(db).get_progress(user_id)),
        )

    try:
        award = award_xp(db, user_id=user_id, xp_amount=xp_for_task(completed), now=now)
    except Exception as e:
        # Reopen the task so a retry can award the XP.
        logger.warning(f"XP award for task {task_id} failed, reopening it: {type(e).__name__}: {str(e)}")
        task_repo.revert_completion(user_id, task_id, completed.completed_at)
        raise
    spawned = spawn_next_instance(task_repo, completed, now)

    logger.debug(f"Completed task {task_id} for user {user_id}: +{award.xp_awarded} XP")
    return CompletionResult(task=completed, award=award, spawned_task=spawned)
