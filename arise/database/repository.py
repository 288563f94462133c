"""Repository layer for task database operations."""

import logging
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional
from sqlalchemy.orm import Session
from sqlalchemy import desc

from arise.errors import NotFoundError, PermissionDeniedError, ValidationError
from arise.models.task import Task
from arise.database.feed import task_feed
from arise.database.models import TaskDB, enum_to_value

logger = logging.getLogger(__name__)

# Fields a caller may change through update(); completion goes through mark_completed().
UPDATABLE_FIELDS = {"name", "description", "priority"}


class TaskRepository:
    """Repository for Task database operations.

    Every mutating call takes the acting user's id and enforces ownership.
    """

    def __init__(self, db: Session):
        self.db = db

    def _load_owned(self, user_id: str, task_id: str) -> TaskDB:
        """Load an active task row, checking that `user_id` owns it."""
        task_db = self.db.query(TaskDB).filter(
            TaskDB.id == task_id,
            TaskDB.deleted_at.is_(None),
        ).first()
        if not task_db:
            raise NotFoundError(f"Task {task_id} not found")
        if task_db.user_id != user_id:
            raise PermissionDeniedError(f"Task {task_id} belongs to another user")
        return task_db

    def _publish(self, user_id: str) -> None:
        if task_feed.has_listeners(user_id):
            task_feed.publish(user_id, self.get_all(user_id))

    def create(self, task: Task) -> Task:
        """Create a new task."""
        try:
            task_db = TaskDB.from_pydantic(task)
            self.db.add(task_db)
            self.db.commit()
            self.db.refresh(task_db)
            logger.debug(f"Created task {task.id}: {task.name[:50]}")
        except Exception as e:
            self.db.rollback()
            logger.error(f"Failed to create task {task.id}: {type(e).__name__}: {str(e)}")
            raise
        self._publish(task.user_id)
        return task_db.to_pydantic()

    def get(self, user_id: str, task_id: str) -> Optional[Task]:
        """Get task by ID for a specific user."""
        task_db = self.db.query(TaskDB).filter(
            TaskDB.id == task_id,
            TaskDB.user_id == user_id,
            TaskDB.deleted_at.is_(None),
        ).first()
        return task_db.to_pydantic() if task_db else None

    def get_owned(self, user_id: str, task_id: str) -> Task:
        """Get an active task by ID, enforcing ownership.

        Raises:
            NotFoundError: If no active task has this id
            PermissionDeniedError: If the task belongs to another user
        """
        return self._load_owned(user_id, task_id).to_pydantic()

    def get_all(self, user_id: str) -> List[Task]:
        """Get all tasks for a user sorted by creation date (newest first)."""
        tasks_db = self.db.query(TaskDB).filter(
            TaskDB.user_id == user_id,
            TaskDB.deleted_at.is_(None),
        ).order_by(desc(TaskDB.created_at)).all()
        return [task_db.to_pydantic() for task_db in tasks_db]

    def get_completed_recurring(self, user_id: str) -> List[Task]:
        """Get completed recurring tasks that carry a next due date (oldest due first)."""
        tasks_db = self.db.query(TaskDB).filter(
            TaskDB.user_id == user_id,
            TaskDB.completed.is_(True),
            TaskDB.recurrence_type.isnot(None),
            TaskDB.next_due.isnot(None),
            TaskDB.deleted_at.is_(None),
        ).order_by(TaskDB.next_due).all()
        return [task_db.to_pydantic() for task_db in tasks_db]

    def find_occurrence(self, user_id: str, lineage_id: str, next_due: datetime) -> Optional[Task]:
        """Find the instance of a lineage due at `next_due`, including soft-deleted ones."""
        task_db = self.db.query(TaskDB).filter(
            TaskDB.user_id == user_id,
            TaskDB.lineage_id == lineage_id,
            TaskDB.next_due == next_due,
        ).first()
        return task_db.to_pydantic() if task_db else None

    def update(self, user_id: str, task_id: str, fields: Dict[str, Any]) -> Task:
        """Apply a partial update to a task owned by `user_id`.

        Raises:
            NotFoundError: If no active task has this id
            PermissionDeniedError: If the task belongs to another user
            ValidationError: If `fields` names a field that cannot be updated
        """
        unknown = set(fields) - UPDATABLE_FIELDS
        if unknown:
            raise ValidationError(f"Cannot update task fields: {', '.join(sorted(unknown))}")

        task_db = self._load_owned(user_id, task_id)

        for key, value in fields.items():
            if key == "priority":
                value = enum_to_value(value)
            setattr(task_db, key, value)
        task_db.updated_at = datetime.utcnow()

        try:
            self.db.commit()
            self.db.refresh(task_db)
            logger.debug(f"Updated task {task_id}: {sorted(fields)}")
        except Exception as e:
            self.db.rollback()
            logger.error(f"Failed to update task {task_id}: {type(e).__name__}: {str(e)}")
            raise
        self._publish(user_id)
        return task_db.to_pydantic()

    def mark_completed(self, user_id: str, task_id: str, completed_at: datetime) -> Optional[Task]:
        """Flip a pending task to completed.

        The flip is a conditional update, so concurrent completions of the same
        task succeed exactly once. Returns the completed task, or None if it was
        already completed.

        Raises:
            NotFoundError: If no active task has this id
            PermissionDeniedError: If the task belongs to another user
        """
        self._load_owned(user_id, task_id)

        try:
            affected = (
                self.db.query(TaskDB)
                .filter(TaskDB.id == task_id, TaskDB.completed.is_(False))
                .update(
                    {
                        TaskDB.completed: True,
                        TaskDB.completed_at: completed_at,
                        TaskDB.updated_at: datetime.utcnow(),
                    },
                    synchronize_session=False,
                )
            )
            self.db.commit()
        except Exception as e:
            self.db.rollback()
            logger.error(f"Failed to complete task {task_id}: {type(e).__name__}: {str(e)}")
            raise

        if not affected:
            return None
        logger.debug(f"Completed task {task_id}")
        self._publish(user_id)
        return self.get(user_id, task_id)

    def revert_completion(self, user_id: str, task_id: str, completed_at: datetime) -> bool:
        """Undo a completion made by mark_completed() at `completed_at`.

        Only the exact completion is reverted, so a later completion of the
        same task is never undone. Returns True if the task was reopened.
        """
        try:
            affected = (
                self.db.query(TaskDB)
                .filter(
                    TaskDB.id == task_id,
                    TaskDB.user_id == user_id,
                    TaskDB.completed.is_(True),
                    TaskDB.completed_at == completed_at,
                )
                .update(
                    {
                        TaskDB.completed: False,
                        TaskDB.completed_at: None,
                        TaskDB.updated_at: datetime.utcnow(),
                    },
                    synchronize_session=False,
                )
            )
            self.db.commit()
        except Exception as e:
            self.db.rollback()
            logger.error(f"Failed to revert completion of task {task_id}: {type(e).__name__}: {str(e)}")
            raise

        if affected:
            logger.debug(f"Reverted completion of task {task_id}")
            self._publish(user_id)
        return bool(affected)

    def delete(self, user_id: str, task_id: str) -> None:
        """Soft-delete a task owned by `user_id`.

        Raises:
            NotFoundError: If no active task has this id
            PermissionDeniedError: If the task belongs to another user
        """
        task_db = self._load_owned(user_id, task_id)

        try:
            task_db.deleted_at = datetime.utcnow()
            self.db.commit()
            logger.debug(f"Soft-deleted task {task_id}")
        except Exception as e:
            self.db.rollback()
            logger.error(f"Failed to soft-delete task {task_id}: {type(e).__name__}: {str(e)}")
            raise
        self._publish(user_id)

    def subscribe(self, user_id: str, callback: Callable[[List[Task]], None]) -> Callable[[], None]:
        """Receive the user's full task list (newest first) after every committed write.

        Returns:
            A function that cancels the subscription
        """
        return task_feed.subscribe(user_id, callback)
