"""Task router (API endpoints)."""

import logging
from uuid import UUID

from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from src.database.dependencies import get_db_session
from src.features.auth.dependencies import get_current_user_id

from .exceptions import TaskNotFound
from .schemas import TaskCreateRequest, TaskResponse, TaskUpdateRequest
from .service import TaskService

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/tasks", tags=["Tasks"])


@router.get("", response_model=list[TaskResponse])
async def list_tasks(session: AsyncSession = Depends(get_db_session)):
    """List all tasks."""
    tasks = await TaskService.get_all(session)
    return [TaskResponse.model_validate(t) for t in tasks]


@router.get("/{task_id}", response_model=TaskResponse)
async def get_task(task_id: int, session: AsyncSession = Depends(get_db_session)):
    """Get a task by ID."""
    task = await TaskService.get_by_id(session, task_id)
    if not task:
        raise TaskNotFound(task_id)
    return TaskResponse.model_validate(task)


@router.post("", response_model=TaskResponse, status_code=status.HTTP_201_CREATED)
async def create_task(
    data: TaskCreateRequest,
    user_id: UUID = Depends(get_current_user_id),
    session: AsyncSession = Depends(get_db_session),
):
    """Create a task (authenticated)."""
    task = await TaskService.create(session, data.title)
    await session.commit()
    logger.info(f"Task {task.id} created by user {user_id}")
    return TaskResponse.model_validate(task)


@router.put("/{task_id}", response_model=TaskResponse)
async def update_task(
    task_id: int,
    data: TaskUpdateRequest,
    user_id: UUID = Depends(get_current_user_id),
    session: AsyncSession = Depends(get_db_session),
):
    """Update a task (authenticated).

    - **status**: one of INBOX, TO_DO, IN_PROGRESS, DONE
    """
    task = await TaskService.get_by_id(session, task_id)
    if not task:
        raise TaskNotFound(task_id)

    task = await TaskService.update(session, task, data)
    await session.commit()
    return TaskResponse.model_validate(task)


@router.delete("/{task_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_task(
    task_id: int,
    user_id: UUID = Depends(get_current_user_id),
    session: AsyncSession = Depends(get_db_session),
):
    """Delete a task (authenticated)."""
    deleted = await TaskService.delete(session, task_id)
    if not deleted:
        raise TaskNotFound(task_id)

    await session.commit()
    logger.info(f"Task {task_id} deleted by user {user_id}")
    return Response(status_code=status.HTTP_204_NO_CONTENT)
