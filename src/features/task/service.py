"""Task service layer."""

import logging

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from .models import Task
from .schemas import TaskUpdateRequest

logger = logging.getLogger(__name__)


class TaskService:
    """Service for task CRUD operations."""

    @staticmethod
    async def get_all(session: AsyncSession) -> list[Task]:
        """All tasks ordered by id."""
        result = await session.execute(select(Task).order_by(Task.id.asc()))
        return list(result.scalars().all())

    @staticmethod
    async def get_by_id(session: AsyncSession, task_id: int) -> Task | None:
        result = await session.execute(select(Task).where(Task.id == task_id))
        return result.scalar_one_or_none()

    @staticmethod
    async def create(session: AsyncSession, title: str) -> Task:
        """Create a task in the INBOX with default labels, description and due date."""
        task = Task(title=title)
        session.add(task)
        await session.flush()
        await session.refresh(task)
        logger.info(f"Created task {task.id}")
        return task

    @staticmethod
    async def update(session: AsyncSession, task: Task, data: TaskUpdateRequest) -> Task:
        """Overwrite every editable field of ``task``.

        An omitted due date keeps the current one.
        """
        task.labels = list(data.labels)
        task.title = data.title
        task.description = data.description
        task.status = data.status.value
        if data.due_date is not None:
            task.due_date = data.due_date

        await session.flush()
        await session.refresh(task)
        logger.info(f"Updated task {task.id}")
        return task

    @staticmethod
    async def delete(session: AsyncSession, task_id: int) -> bool:
        task = await TaskService.get_by_id(session, task_id)
        if task is None:
            return False

        await session.delete(task)
        await session.flush()
        logger.info(f"Deleted task {task_id}")
        return True
