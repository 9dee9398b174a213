"""Task domain models."""

from datetime import datetime, timedelta
from enum import StrEnum

from sqlalchemy import JSON, Enum, Integer, String, Text
from sqlalchemy.dialects.postgresql import ARRAY
from sqlalchemy.orm import Mapped, mapped_column

from src.database.base import Base, TimestampMixin, UTCDateTime, utc_now

DEFAULT_DUE_IN = timedelta(days=7)


class TaskStatus(StrEnum):
    """Workflow state of a task."""

    INBOX = "INBOX"
    TO_DO = "TO_DO"
    IN_PROGRESS = "IN_PROGRESS"
    DONE = "DONE"


def default_due_date() -> datetime:
    return utc_now() + DEFAULT_DUE_IN


class Task(Base, TimestampMixin):
    """A to-do item."""

    __tablename__ = "tasks"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    # PostgreSQL text[]; JSON on backends without arrays
    labels: Mapped[list[str]] = mapped_column(
        ARRAY(String).with_variant(JSON(), "sqlite"),
        nullable=False,
        default=list,
    )
    title: Mapped[str] = mapped_column(Text, nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False, default="", server_default="")
    status: Mapped[str] = mapped_column(
        Enum(TaskStatus, native_enum=False, length=20),
        nullable=False,
        default=TaskStatus.INBOX.value,
        server_default=TaskStatus.INBOX.value,
        index=True,
    )
    due_date: Mapped[datetime | None] = mapped_column(UTCDateTime(), nullable=True, default=default_due_date)
