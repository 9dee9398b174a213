"""Task schemas (DTOs)."""

from datetime import datetime

from pydantic import BaseModel, Field

from .models import TaskStatus


# Request schemas
class TaskCreateRequest(BaseModel):
    """Create a task from its title."""

    title: str = Field(..., min_length=1, max_length=500)


class TaskUpdateRequest(BaseModel):
    """Replace a task's editable fields."""

    labels: list[str] = Field(default_factory=list)
    title: str = Field(..., min_length=1, max_length=500)
    description: str = ""
    status: TaskStatus
    due_date: datetime | None = None


# Response schemas
class TaskResponse(BaseModel):
    """Task response."""

    id: int
    labels: list[str]
    title: str
    description: str
    status: TaskStatus
    due_date: datetime | None = None
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}
