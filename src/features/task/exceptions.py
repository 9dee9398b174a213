"""Task-related exceptions."""

from fastapi import HTTPException, status


class TaskNotFound(HTTPException):
    """Raised when a task does not exist."""

    def __init__(self, task_id: int):
        super().__init__(status_code=status.HTTP_404_NOT_FOUND, detail=f"Task {task_id} not found")
