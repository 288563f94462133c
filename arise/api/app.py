"""FastAPI web application for arise."""

import logging

from fastapi import Depends, FastAPI, Request, Response, status
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from arise import __version__
from arise.api.task_models import (
    LevelHistoryResponse,
    MaterializeResponse,
    TaskCreateRequest,
    TaskListResponse,
    TaskResponse,
)
from arise.auth.dependencies import get_current_user
from arise.database.database import get_db
from arise.database.level_event_repository import LevelEventRepository
from arise.database.repository import TaskRepository
from arise.database.user_repository import UserRepository
from arise.errors import ConcurrentUpdateError, NotFoundError, PermissionDeniedError, ValidationError
from arise.models.progress import UserProgress
from arise.models.task_factory import create_task_base
from arise.models.user import User
from arise.progression.completion import CompletionResult, complete_task
from arise.recurrence.materialize import materialize_due_recurrences

logger = logging.getLogger(__name__)

# Initialize FastAPI app
app = FastAPI(
    title="arise API",
    description="Complete tasks, earn XP, level up",
    version=__version__,
)


def _error(status_code: int, exc: Exception) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"detail": str(exc)})


@app.exception_handler(NotFoundError)
async def not_found_handler(request: Request, exc: NotFoundError):
    return _error(status.HTTP_404_NOT_FOUND, exc)


@app.exception_handler(PermissionDeniedError)
async def permission_denied_handler(request: Request, exc: PermissionDeniedError):
    return _error(status.HTTP_403_FORBIDDEN, exc)


@app.exception_handler(ValidationError)
async def validation_error_handler(request: Request, exc: ValidationError):
    return _error(422, exc)


@app.exception_handler(ConcurrentUpdateError)
async def concurrent_update_handler(request: Request, exc: ConcurrentUpdateError):
    logger.warning(f"Concurrent update on {request.url.path}: {str(exc)}")
    return _error(status.HTTP_409_CONFLICT, exc)


@app.get("/health")
async def health():
    """Health check endpoint."""
    return {"status": "healthy", "version": __version__}


@app.post("/tasks", response_model=TaskResponse, status_code=status.HTTP_201_CREATED)
def create_task(
    request: TaskCreateRequest,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Create a task (recurring tasks get their first due date from now)."""
    task = create_task_base(
        user_id=current_user.id,
        name=request.name,
        description=request.description,
        priority=request.priority,
        recurring=request.recurring,
    )
    created = TaskRepository(db).create(task)
    return TaskResponse(task=created)


@app.get("/tasks", response_model=TaskListResponse)
def list_tasks(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """List the current user's tasks, newest first."""
    tasks = TaskRepository(db).get_all(current_user.id)
    return TaskListResponse(tasks=tasks, count=len(tasks))


@app.get("/tasks/{task_id}", response_model=TaskResponse)
def get_task(
    task_id: str,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Get a single task."""
    return TaskResponse(task=TaskRepository(db).get_owned(current_user.id, task_id))


@app.delete("/tasks/{task_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_task(
    task_id: str,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Delete a task, whatever its completion state."""
    TaskRepository(db).delete(current_user.id, task_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@app.post("/tasks/{task_id}/complete", response_model=CompletionResult)
def complete(
    task_id: str,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Complete a task and award its XP."""
    return complete_task(db, user_id=current_user.id, task_id=task_id)


@app.get("/stats", response_model=UserProgress)
def get_stats(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Current progression state."""
    return UserRepository(db).get_progress(current_user.id)


@app.get("/stats/history", response_model=LevelHistoryResponse)
def get_level_history(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Level-up history, newest first."""
    events = LevelEventRepository(db).list_for_user(current_user.id)
    return LevelHistoryResponse(events=events, count=len(events))


@app.post("/recurrence/materialize", response_model=MaterializeResponse)
def materialize(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Spawn next instances of completed recurring tasks whose due moment has passed."""
    created = materialize_due_recurrences(db, user_id=current_user.id)
    return MaterializeResponse(created_count=created)


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
